"""Document source plugin interface.

Goal: allow new corpora to feed vocabulary builds without changing build code.

A source can be:
- in-memory (lists of strings, test fixtures)
- batch (local dumps, exported JSONL)
- streaming (generators over remote data)

All sources expose a unified `stream()` generator yielding LabelledDocument.
A source that cannot read a document must raise; the build treats it as fatal.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

@dataclass(frozen=True)
class LabelledDocument:
    text: str
    labels: List[str] = field(default_factory=list)
    doc_id: Optional[str] = None

@dataclass
class SourceSpec:
    name: str
    kind: str                # implementation key, e.g., memory, local_jsonl
    dataset: Union[str, List[str], None] = None  # file, directory, glob, or list of files
    text_field: str = "text"
    label_field: Optional[str] = "label"
    id_field: str = "id"
    documents: Optional[List[Any]] = None  # only used when kind="memory"

class DocumentSource:
    """Base interface for all sources."""
    name: str = "source"

    def metadata(self) -> Dict[str, Any]:
        return {}

    def stream(self) -> Iterable[LabelledDocument]:
        raise NotImplementedError
