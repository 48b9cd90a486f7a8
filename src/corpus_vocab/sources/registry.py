"""Source registry: maps a `kind` string from the build config to a DocumentSource factory.

Built-in kinds:
- memory: documents listed inline (SourceSpec.documents)
- local_jsonl: JSONL exports on disk (SourceSpec.dataset)

Corpora that need their own reader (a database cursor, a tarball of
transcripts) register a factory at runtime with register_source(). Built-in
kinds cannot be shadowed, so a config naming `local_jsonl` always gets the
strict JSONL reader.
"""

from __future__ import annotations
from typing import Callable, Dict
from .base import SourceSpec, DocumentSource
from .local_jsonl import LocalJSONLSource
from .memory import InMemorySource

SourceFactory = Callable[[SourceSpec], DocumentSource]

_BUILTIN: Dict[str, SourceFactory] = {
    "local_jsonl": LocalJSONLSource,
    "memory": InMemorySource.from_spec,
}

_PLUGINS: Dict[str, SourceFactory] = {}

def register_source(kind: str, factory: SourceFactory) -> None:
    """Make `kind` usable in SourceSpec.kind.

    Example:
        register_source("transcripts_tar", lambda spec: TranscriptTarSource(spec.dataset))
    """
    if kind in _BUILTIN:
        raise ValueError(f"Source kind '{kind}' is built in and cannot be replaced")
    _PLUGINS[kind] = factory

def unregister_source(kind: str) -> None:
    _PLUGINS.pop(kind, None)

def list_sources() -> Dict[str, str]:
    """kind -> "static" for built-ins, "dynamic" for registered plugins."""
    kinds = {kind: "static" for kind in _BUILTIN}
    kinds.update({kind: "dynamic" for kind in _PLUGINS})
    return kinds

def make_source(spec: SourceSpec) -> DocumentSource:
    factory = _BUILTIN.get(spec.kind) or _PLUGINS.get(spec.kind)
    if factory is None:
        raise ValueError(
            f"Source {spec.name}: no document source registered for kind '{spec.kind}' "
            f"(known kinds: {sorted(list_sources())})"
        )
    return factory(spec)
