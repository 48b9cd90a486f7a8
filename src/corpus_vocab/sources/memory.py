"""In-memory source over a list of documents.

Accepted items:
- plain strings
- (text, label) tuples; label may be a string, a list of strings, or None
- LabelledDocument instances
"""

from __future__ import annotations
from typing import Any, Dict, Iterable
from .base import DocumentSource, LabelledDocument, SourceSpec

def to_document(item: Any) -> LabelledDocument:
    if isinstance(item, LabelledDocument):
        return item
    if isinstance(item, str):
        return LabelledDocument(text=item)
    if isinstance(item, tuple) and len(item) == 2:
        text, label = item
        if not isinstance(text, str):
            raise TypeError(f"Document text must be str, got {type(text).__name__}")
        if label is None:
            labels = []
        elif isinstance(label, str):
            labels = [label]
        else:
            labels = [str(x) for x in label]
        return LabelledDocument(text=text, labels=labels)
    raise TypeError(f"Unsupported document item: {type(item).__name__}")

class InMemorySource(DocumentSource):
    def __init__(self, documents: Iterable[Any], name: str = "memory"):
        self.name = name
        self.documents = documents

    @classmethod
    def from_spec(cls, spec: SourceSpec) -> "InMemorySource":
        return cls(spec.documents or [], name=spec.name)

    def metadata(self) -> Dict[str, Any]:
        n = len(self.documents) if hasattr(self.documents, "__len__") else None
        return {"kind": "memory", "documents": n}

    def stream(self) -> Iterable[LabelledDocument]:
        for item in self.documents:
            yield to_document(item)
