"""Sentence transformer: document source + tokenizer -> lazy stream of Sequence.

One document becomes exactly one Sequence. The sequence id is the document's
ordinal in the source stream, which the accumulator uses to order new terms.
Any failure while reading or tokenizing is raised as SourceFailure; documents
are never skipped.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterator, List, Optional
import logging

from ..errors import SourceFailure
from ..sources.base import DocumentSource
from ..tokenization.base import TokenizerAdapter
from .labels import LabelsSource

log = logging.getLogger("corpus_vocab.sequence.transformer")

@dataclass
class Sequence:
    sequence_id: int
    tokens: List[str]
    labels: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.tokens)

class SentenceTransformer:
    def __init__(self, source: DocumentSource, tokenizer: TokenizerAdapter,
                 labels_source: Optional[LabelsSource] = None):
        self.source = source
        self.tokenizer = tokenizer
        self.labels_source = labels_source

    def __iter__(self) -> Iterator[Sequence]:
        source_name = getattr(self.source, "name", "source")
        try:
            docs = iter(self.source.stream())
        except Exception as e:
            raise SourceFailure(f"Source {source_name}: could not open stream: {e}") from e

        ordinal = 0
        while True:
            try:
                doc = next(docs)
            except StopIteration:
                return
            except SourceFailure:
                raise
            except Exception as e:
                raise SourceFailure(
                    f"Source {source_name}: failed reading document #{ordinal}: {e}", sequence_id=ordinal
                ) from e

            try:
                tokens = list(self.tokenizer.tokenize(doc.text))
            except Exception as e:
                raise SourceFailure(
                    f"Source {source_name}: tokenizer {getattr(self.tokenizer, 'name', '?')} "
                    f"failed on document #{ordinal}: {e}",
                    sequence_id=ordinal,
                ) from e

            for tok in tokens:
                if isinstance(tok, str):
                    continue
                raise SourceFailure(
                    f"Source {source_name}: tokenizer {getattr(self.tokenizer, 'name', '?')} "
                    f"returned a non-string token {tok!r} for document #{ordinal}",
                    sequence_id=ordinal,
                )

            labels = list(doc.labels)
            if self.labels_source is not None:
                if labels:
                    for label in labels:
                        self.labels_source.store_label(label)
                else:
                    labels = [self.labels_source.next_label()]

            yield Sequence(sequence_id=ordinal, tokens=tokens, labels=labels)
            ordinal += 1
