"""Build statistics.

Counts come from the merged tallies; sentence-length percentiles (p50/p90/p99)
are computed over a bounded sample of per-document token counts: the first
MAX_LENGTH_SAMPLES documents by sequence id, so the same corpus gives the same
percentiles for any worker count.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List
import numpy as np

from ..vocab.constructor import VocabConstructor
from ..vocab.cache import VocabularyCache

def _percentiles(xs: List[float], ps=(50, 90, 99)) -> Dict[str, float]:
    if not xs:
        return {}
    arr = np.array(xs, dtype=np.float64)
    out = {}
    for p in ps:
        out[f"p{p}"] = float(np.percentile(arr, p))
    return out

@dataclass
class BuildStats:
    documents: int = 0
    tokens: int = 0
    stop_word_hits: int = 0
    vocab_size: int = 0
    retained_occurrences: int = 0
    workers: int = 1
    elapsed_s: float = 0.0
    sentence_length: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def collect(cls, constructor: VocabConstructor, cache: VocabularyCache,
                workers: int, elapsed_s: float) -> "BuildStats":
        return cls(
            documents=constructor.documents,
            tokens=constructor.tokens,
            stop_word_hits=constructor.stop_word_hits,
            vocab_size=cache.size(),
            retained_occurrences=cache.total_word_occurrences(),
            workers=workers,
            elapsed_s=elapsed_s,
            sentence_length=_percentiles(constructor.length_samples),
        )

    @property
    def docs_per_second(self) -> float:
        return self.documents / self.elapsed_s if self.elapsed_s > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
