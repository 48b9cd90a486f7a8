"""Build configuration.

Options can be given in code or loaded from YAML, e.g.:

    min_word_frequency: 2
    parallel: true
    worker_count: 4
    stop_words: [the, a, an]
    stop_words_file: configs/stopwords_en.txt
    tokenizer: whitespace

Keeping build options in YAML gives versioned, reviewable configuration across runs.
The config is validated once at construction and is never mutated during a build.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from typing import Any, Dict, FrozenSet, Iterable, Optional
import logging
import os
import yaml

log = logging.getLogger("corpus_vocab.config")


def load_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_stop_words(path: str) -> FrozenSet[str]:
    """Read a stop-word file: one term per line, blank lines and `#` comments ignored."""
    words = set()
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            words.add(line)
    return frozenset(words)


@dataclass(frozen=True)
class VectorizerConfig:
    min_word_frequency: int = 0
    parallel: bool = True
    worker_count: Optional[int] = None  # None -> os.cpu_count()
    stop_words: FrozenSet[str] = field(default_factory=frozenset)
    # bounded look-ahead buffer filled by one producer thread; 0 = locked cursor only
    prefetch_size: int = 64
    show_progress: bool = False
    log_every_docs: int = 10000
    tokenizer: str = "whitespace"
    label_template: str = "DOC_%d"

    def __post_init__(self):
        if isinstance(self.min_word_frequency, bool) or not isinstance(self.min_word_frequency, int):
            raise ValueError(f"min_word_frequency must be an int, got {self.min_word_frequency!r}")
        if self.min_word_frequency < 0:
            raise ValueError(f"min_word_frequency must be >= 0, got {self.min_word_frequency}")

        workers = self.worker_count
        if workers is None:
            workers = os.cpu_count() or 1
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            raise ValueError(f"worker_count must be a positive int, got {self.worker_count!r}")
        object.__setattr__(self, "worker_count", workers)

        if self.prefetch_size < 0:
            raise ValueError(f"prefetch_size must be >= 0, got {self.prefetch_size}")
        if self.log_every_docs < 1:
            raise ValueError(f"log_every_docs must be >= 1, got {self.log_every_docs}")
        if "%d" not in self.label_template:
            raise ValueError(f"label_template must contain '%d', got {self.label_template!r}")

        if isinstance(self.stop_words, str):
            raise ValueError("stop_words must be a collection of terms, not a string")
        object.__setattr__(self, "stop_words", frozenset(self.stop_words or ()))

    @property
    def effective_workers(self) -> int:
        """Worker threads actually used: 1 when parallelism is disabled."""
        return self.worker_count if self.parallel else 1

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "VectorizerConfig":
        d = dict(d or {})
        raw_stop_words = d.pop("stop_words", None)
        if isinstance(raw_stop_words, str):
            raise ValueError(f"stop_words must be a list of terms, not a string: {raw_stop_words!r}")
        stop_words = set(raw_stop_words or ())
        sw_file = d.pop("stop_words_file", None)
        if sw_file:
            stop_words |= load_stop_words(sw_file)

        known = {f.name for f in fields(cls)}
        unknown = sorted(k for k in d if k not in known)
        if unknown:
            log.warning(f"Ignoring unknown config keys: {unknown}")
        kwargs = {k: v for k, v in d.items() if k in known}
        return cls(stop_words=frozenset(stop_words), **kwargs)

    def with_stop_words(self, extra: Iterable[str]) -> "VectorizerConfig":
        """Return a copy with additional stop words."""
        d = {f.name: getattr(self, f.name) for f in fields(self)}
        d["stop_words"] = self.stop_words | frozenset(extra)
        return VectorizerConfig(**d)


def load_config(path: str) -> VectorizerConfig:
    """Load a VectorizerConfig from YAML. A top-level `vocab:` section is used if present."""
    raw = load_yaml(path)
    if "vocab" in raw and isinstance(raw["vocab"], dict):
        raw = raw["vocab"]
    return VectorizerConfig.from_dict(raw)
