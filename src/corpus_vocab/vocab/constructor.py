"""Vocabulary accumulator.

Workers never touch the shared aggregate per token. Each one fills a private
PartialTally and hands it to VocabConstructor.merge_partial() when done; only
that merge is serialized. Merging is a per-term sum, so the final counts do not
depend on how documents were spread over workers or in which order tallies
arrive.

Index order: every tally remembers, per term, the earliest (sequence id,
position) it saw. finalize() assigns indices by that key, which reproduces
single-threaded first-seen order for any worker count. Terms fed without a
sequence id sort after those with one, in merge order.
"""

from __future__ import annotations
from collections import Counter
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple
import logging
import threading

from ..errors import AlreadyFinalized
from .cache import VocabularyCache

log = logging.getLogger("corpus_vocab.vocab.constructor")

_UNORDERED = (float("inf"), 0)
# sentence-length sample for percentile stats: the first MAX_LENGTH_SAMPLES documents
# of the corpus by sequence id, so the sample does not depend on worker scheduling
MAX_LENGTH_SAMPLES = 10000

class PartialTally:
    """Counts from one worker. Not thread-safe; one tally per worker."""

    def __init__(self):
        self.word_counts: Counter = Counter()
        self.doc_counts: Counter = Counter()
        self.first_seen: Dict[str, Tuple[int, int]] = {}
        self.documents = 0
        self.tokens = 0
        self.stop_word_hits = 0
        self.length_samples: List[int] = []

    def process_sentence(self, sentence: Iterable[str], stop_words: FrozenSet[str],
                         sequence_id: Optional[int] = None) -> None:
        """Count one document's terms. Each distinct term adds at most 1 to its document frequency."""
        self.documents += 1
        seen = set()
        n = 0
        for pos, term in enumerate(sentence):
            n += 1
            if term in stop_words:
                self.stop_word_hits += 1
                continue
            self.word_counts[term] += 1
            if term in seen:
                continue
            seen.add(term)
            self.doc_counts[term] += 1
            if sequence_id is not None:
                key = (sequence_id, pos)
                prev = self.first_seen.get(term)
                if prev is None or key < prev:
                    self.first_seen[term] = key
        self.tokens += n
        if sequence_id is not None:
            if sequence_id < MAX_LENGTH_SAMPLES:
                self.length_samples.append(n)
        elif len(self.length_samples) < MAX_LENGTH_SAMPLES:
            self.length_samples.append(n)

    def __len__(self) -> int:
        return len(self.word_counts)

class VocabConstructor:
    """Shared aggregate of worker tallies; finalize() turns it into a VocabularyCache."""

    def __init__(self, stop_words: Iterable[str] = ()):
        self.stop_words: FrozenSet[str] = frozenset(stop_words)
        self._lock = threading.Lock()
        self._counts: Counter = Counter()
        self._docs: Counter = Counter()
        self._first_seen: Dict[str, Tuple[int, int]] = {}
        self._finalized = False

        self.documents = 0
        self.tokens = 0
        self.stop_word_hits = 0
        self.merges = 0
        self.length_samples: List[int] = []

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    def new_tally(self) -> PartialTally:
        return PartialTally()

    def merge_partial(self, tally: PartialTally) -> None:
        """Add a worker's tally into the aggregate. Safe to call from several threads."""
        with self._lock:
            if self._finalized:
                raise AlreadyFinalized("Cannot merge into a finalized vocabulary")
            self._counts.update(tally.word_counts)
            self._docs.update(tally.doc_counts)
            for term, key in tally.first_seen.items():
                prev = self._first_seen.get(term)
                if prev is None or key < prev:
                    self._first_seen[term] = key

            self.documents += tally.documents
            self.tokens += tally.tokens
            self.stop_word_hits += tally.stop_word_hits
            self.merges += 1
            room = MAX_LENGTH_SAMPLES - len(self.length_samples)
            if room > 0:
                self.length_samples.extend(tally.length_samples[:room])
        log.debug(f"merged tally: terms={len(tally)} docs={tally.documents} (merge #{self.merges})")

    def finalize(self, min_word_frequency: int = 0, target: Optional[VocabularyCache] = None) -> VocabularyCache:
        """Prune terms below min_word_frequency and index the rest. Runs once."""
        if min_word_frequency < 0:
            raise ValueError(f"min_word_frequency must be >= 0, got {min_word_frequency}")
        with self._lock:
            if self._finalized:
                raise AlreadyFinalized("finalize() was already called on this VocabConstructor")
            self._finalized = True

            retained = [t for t, c in self._counts.items() if c >= min_word_frequency]
            # stable: terms without a sequence id keep merge order
            retained.sort(key=lambda t: self._first_seen.get(t, _UNORDERED))
            pruned = len(self._counts) - len(retained)

            cache = target if target is not None else VocabularyCache()
            cache.finalize_from(
                ((t, self._counts[t], self._docs[t]) for t in retained),
                total_number_of_docs=self.documents,
            )

            # pruned counts are discarded with the aggregate
            self._counts = Counter()
            self._docs = Counter()
            self._first_seen = {}

        log.info(f"Vocabulary finalized: size={cache.size()} pruned={pruned} "
                 f"min_word_frequency={min_word_frequency} docs={self.documents}")
        return cache
