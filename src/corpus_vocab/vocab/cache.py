"""Vocabulary cache.

Holds the finalized vocabulary: one VocabEntry per retained term, with indices
forming the contiguous range [0, size). The cache is filled exactly once by
VocabConstructor.finalize() and is read-only afterwards, so lookups need no lock.

Note on totals: total_word_occurrences() sums retained entries only. Occurrences
of terms pruned by the minimum-frequency threshold (and of stop words) are not
included, so the value is the vocabulary's mass rather than the raw corpus size.
"""

from __future__ import annotations
from dataclasses import dataclass
import operator
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from ..errors import AlreadyFinalized

@dataclass(frozen=True)
class VocabEntry:
    term: str
    index: int
    total_occurrences: int
    document_frequency: int

class VocabularyCache:
    def __init__(self):
        self._by_term: Dict[str, VocabEntry] = {}
        self._by_index: List[VocabEntry] = []
        self._total_occurrences = 0
        self._total_docs = 0
        self._finalized = False

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    def finalize_from(self, rows: Iterable[Tuple[str, int, int]], total_number_of_docs: int = 0) -> None:
        """Fill the cache from (term, total_occurrences, document_frequency) rows, in index order.

        Called once by the accumulator; afterwards the cache is immutable.
        """
        if self._finalized:
            raise AlreadyFinalized("VocabularyCache is already finalized")
        by_term: Dict[str, VocabEntry] = {}
        by_index: List[VocabEntry] = []
        total = 0
        for term, occurrences, doc_freq in rows:
            if term in by_term:
                raise ValueError(f"Duplicate term in vocabulary rows: {term!r}")
            entry = VocabEntry(term=term, index=len(by_index),
                               total_occurrences=int(occurrences), document_frequency=int(doc_freq))
            by_term[term] = entry
            by_index.append(entry)
            total += entry.total_occurrences

        self._by_term = by_term
        self._by_index = by_index
        self._total_occurrences = total
        self._total_docs = int(total_number_of_docs)
        self._finalized = True

    # ---- lookups ----

    def lookup_by_term(self, term: str) -> Optional[VocabEntry]:
        return self._by_term.get(term)

    def lookup_by_index(self, index: int) -> Optional[VocabEntry]:
        """Entry at index; accepts any integer type (e.g. numpy ints), bools excluded."""
        if isinstance(index, bool):
            return None
        try:
            index = operator.index(index)
        except TypeError:
            return None
        if 0 <= index < len(self._by_index):
            return self._by_index[index]
        return None

    def contains(self, term: str) -> bool:
        return term in self._by_term

    __contains__ = contains

    def index_of(self, term: str) -> int:
        """Index of term, or -1 when absent."""
        entry = self._by_term.get(term)
        return entry.index if entry is not None else -1

    def word_at_index(self, index: int) -> Optional[str]:
        entry = self.lookup_by_index(index)
        return entry.term if entry is not None else None

    def word_frequency(self, term: str) -> int:
        entry = self._by_term.get(term)
        return entry.total_occurrences if entry is not None else 0

    def doc_appeared_in(self, term: str) -> int:
        entry = self._by_term.get(term)
        return entry.document_frequency if entry is not None else 0

    # ---- aggregates ----

    def size(self) -> int:
        return len(self._by_index)

    def __len__(self) -> int:
        return len(self._by_index)

    def total_word_occurrences(self) -> int:
        return self._total_occurrences

    def total_number_of_docs(self) -> int:
        return self._total_docs

    def words(self) -> List[str]:
        """Terms in index order."""
        return [e.term for e in self._by_index]

    def entries(self) -> List[VocabEntry]:
        return list(self._by_index)

    def __iter__(self) -> Iterator[VocabEntry]:
        return iter(self._by_index)

    def summary(self, top_n: int = 10) -> Dict[str, Any]:
        """Size, totals and the most frequent terms (ties broken by index)."""
        top = sorted(self._by_index, key=lambda e: (-e.total_occurrences, e.index))[:top_n]
        return {
            "size": self.size(),
            "total_word_occurrences": self._total_occurrences,
            "total_number_of_docs": self._total_docs,
            "top_terms": [
                {"term": e.term, "occurrences": e.total_occurrences, "docs": e.document_frequency}
                for e in top
            ],
        }

    def __repr__(self) -> str:
        state = "finalized" if self._finalized else "empty"
        return f"VocabularyCache(size={self.size()}, {state})"
