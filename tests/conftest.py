import json

import pytest

from corpus_vocab.sources.base import DocumentSource, LabelledDocument

CORPUS = ["the cat sat", "the dog sat"]


class FailingSource(DocumentSource):
    """Yields `good` documents, then raises."""

    name = "failing"

    def __init__(self, good=1):
        self.good = good

    def stream(self):
        for i in range(self.good):
            yield LabelledDocument(text=f"doc number {i}")
        raise IOError("disk went away")


@pytest.fixture
def corpus():
    return list(CORPUS)


@pytest.fixture
def write_jsonl(tmp_path):
    def _write(name, rows):
        path = tmp_path / name
        with open(path, "w", encoding="utf-8") as f:
            for r in rows:
                f.write(r if isinstance(r, str) else json.dumps(r))
                f.write("\n")
        return str(path)

    return _write
