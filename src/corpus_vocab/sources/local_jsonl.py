"""Local JSONL batch source.

Each line should be JSON with at least:
- text
Optional:
- id, label (a string or a list of strings)

Supports multiple input formats:
- Single file: "path/to/file.jsonl"
- Multiple files: ["path/to/file1.jsonl", "path/to/file2.jsonl"]
- Directory: "path/to/directory/" (processes all .jsonl files)
- Glob pattern: "path/to/*.jsonl" or "path/to/**/*.jsonl"

Unlike a best-effort reader, a missing file or a malformed line raises:
silently dropping documents would skew document frequencies.
"""

from __future__ import annotations
import json
import os
import glob
from pathlib import Path
from typing import Iterable, List, Union, Any, Dict
from .base import DocumentSource, LabelledDocument, SourceSpec

class MalformedDocument(ValueError):
    """A JSONL line could not be turned into a document."""

class LocalJSONLSource(DocumentSource):
    def __init__(self, spec: SourceSpec):
        if spec.dataset is None:
            raise ValueError(f"Source {spec.name}: local_jsonl requires a dataset path")
        self.spec = spec
        self.name = spec.name
        self.files = self._resolve_files(spec.dataset)

    def _resolve_files(self, dataset: Union[str, List[str]]) -> List[str]:
        """Resolve dataset specification to list of file paths.

        Supports:
        - Single file path (string)
        - List of file paths
        - Directory path (processes all .jsonl files, recursively)
        - Glob pattern
        """
        files: List[str] = []

        if isinstance(dataset, list):
            for item in dataset:
                files.extend(self._resolve_files(item))
            return files

        dataset = str(dataset)
        path = Path(dataset)

        if '*' in dataset or '?' in dataset or '[' in dataset:
            matched_files = glob.glob(dataset, recursive=True)
            files.extend([f for f in matched_files if os.path.isfile(f) and f.endswith('.jsonl')])
            return sorted(files)

        if path.is_dir():
            # rglob already covers the top level
            files.extend(str(f) for f in path.rglob("*.jsonl") if f.is_file())
            return sorted(files)

        # Single file; existence is checked when streaming
        return [dataset]

    def metadata(self) -> Dict[str, Any]:
        return {
            "kind": "local_jsonl",
            "files": self.files,
            "file_count": len(self.files),
            "total_size_bytes": sum(os.path.getsize(f) for f in self.files if os.path.exists(f))
        }

    def _labels(self, ex: Dict[str, Any]) -> List[str]:
        if not self.spec.label_field:
            return []
        raw = ex.get(self.spec.label_field)
        if raw is None:
            return []
        if isinstance(raw, list):
            return [str(x) for x in raw]
        return [str(raw)]

    def stream(self) -> Iterable[LabelledDocument]:
        """Stream documents from all configured JSONL files, in file order."""
        for file_path in self.files:
            if not os.path.exists(file_path):
                raise FileNotFoundError(f"Source {self.name}: file not found: {file_path}")

            with open(file_path, "r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        ex = json.loads(line)
                    except json.JSONDecodeError as e:
                        raise MalformedDocument(f"Invalid JSON in {file_path}:{line_num}: {e}") from e
                    if not isinstance(ex, dict):
                        raise MalformedDocument(f"Expected a JSON object in {file_path}:{line_num}")
                    text = ex.get(self.spec.text_field)
                    if not isinstance(text, str):
                        raise MalformedDocument(
                            f"Missing or non-string '{self.spec.text_field}' in {file_path}:{line_num}"
                        )
                    yield LabelledDocument(
                        text=text,
                        labels=self._labels(ex),
                        doc_id=str(ex.get(self.spec.id_field, f"{Path(file_path).stem}_{line_num}")),
                    )
