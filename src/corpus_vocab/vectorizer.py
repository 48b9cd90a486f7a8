"""Text vectorizer facade: builds the vocabulary a downstream vectorizer indexes into.

fit() wires source -> tokenizer -> SentenceTransformer -> SequenceIterator ->
worker tallies -> VocabConstructor.finalize() -> VocabularyCache.

State machine: UNINITIALIZED -> BUILDING -> FINALIZED. fit() may be called
again from FINALIZED to rebuild; the new cache replaces the old one only after
it is finalized. While a rebuild is BUILDING, vocab_cache and
num_words_encountered() keep answering from the previous cache; consumers
holding the old cache keep a valid, read-only object either way.

Failure: any error aborts the whole build and surfaces as SourceFailure (other
VocabularyErrors pass through unchanged). Workers stop, partial tallies are
dropped and the facade goes back to UNINITIALIZED, including on a failed
rebuild. The previously finalized cache is then no longer reachable through
the facade, although references held elsewhere stay valid. There is no
partial-success mode.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import Enum
from typing import Any, Iterable, List, Optional, Union
import logging
import threading
import time

from tqdm import tqdm

from .analytics.stats import BuildStats
from .config import VectorizerConfig
from .errors import NotYetBuilt, SourceFailure, VocabularyError
from .sequence.iterator import SequenceIterator
from .sequence.labels import LabelsSource
from .sequence.transformer import SentenceTransformer
from .sources.base import DocumentSource, SourceSpec
from .sources.memory import InMemorySource
from .sources.registry import make_source
from .tokenization.base import TokenizerAdapter
from .tokenization.registry import get_tokenizer, list_tokenizers
from .vocab.cache import VocabularyCache
from .vocab.constructor import VocabConstructor

log = logging.getLogger("corpus_vocab.vectorizer")

def _as_source_failure(err: Exception) -> SourceFailure:
    """Wrap an unexpected worker error; callers re-raise VocabularyErrors unchanged."""
    return SourceFailure(f"Vocabulary worker failed: {type(err).__name__}: {err}")

class VectorizerState(str, Enum):
    UNINITIALIZED = "uninitialized"
    BUILDING = "building"
    FINALIZED = "finalized"

class TextVectorizer:
    def __init__(
        self,
        source: Union[DocumentSource, Iterable[Any]],
        tokenizer: Optional[TokenizerAdapter] = None,
        config: Optional[VectorizerConfig] = None,
        vocab_cache: Optional[VocabularyCache] = None,
    ):
        self.config = config or VectorizerConfig()
        self.source = source if isinstance(source, DocumentSource) else InMemorySource(source)

        if tokenizer is None:
            tokenizer = get_tokenizer(self.config.tokenizer)
            if tokenizer is None:
                raise ValueError(f"Unknown tokenizer: {self.config.tokenizer}. Available: {list_tokenizers()}")
        self.tokenizer = tokenizer

        if vocab_cache is not None and vocab_cache.is_finalized:
            raise ValueError("vocab_cache must be empty; a finalized cache cannot be rebuilt in place")
        # filled by the first fit(); later rebuilds create a fresh cache
        self._target_cache = vocab_cache

        self._state_lock = threading.Lock()
        self._state = VectorizerState.UNINITIALIZED
        self._vocab_cache: Optional[VocabularyCache] = None
        self._labels_source: Optional[LabelsSource] = None
        self._stats: Optional[BuildStats] = None

        self._progress_lock = threading.Lock()
        self._processed = 0

    @classmethod
    def from_spec(cls, spec: SourceSpec, config: Optional[VectorizerConfig] = None,
                  tokenizer: Optional[TokenizerAdapter] = None) -> "TextVectorizer":
        """Build a vectorizer over a registered source kind."""
        return cls(make_source(spec), tokenizer=tokenizer, config=config)

    # ---- state / queries ----

    @property
    def state(self) -> VectorizerState:
        return self._state

    @property
    def vocab_cache(self) -> VocabularyCache:
        # during a rebuild the previous finalized cache stays readable
        if self._vocab_cache is None:
            raise NotYetBuilt("Vocabulary is not built yet; call fit() first")
        return self._vocab_cache

    @property
    def labels_source(self) -> LabelsSource:
        if self._labels_source is None:
            raise NotYetBuilt("Labels are collected by fit(); call fit() first")
        return self._labels_source

    @property
    def stats(self) -> Optional[BuildStats]:
        return self._stats

    def num_words_encountered(self) -> int:
        """Total occurrences of retained terms (pruned and stop-word tokens excluded)."""
        return self.vocab_cache.total_word_occurrences()

    # ---- build ----

    def fit(self) -> "TextVectorizer":
        self.build_vocab()
        return self

    def build_vocab(self) -> VocabularyCache:
        with self._state_lock:
            if self._state is VectorizerState.BUILDING:
                raise RuntimeError("fit() is already running on this vectorizer")
            rebuild = self._state is VectorizerState.FINALIZED
            self._state = VectorizerState.BUILDING

        cfg = self.config
        workers = cfg.effective_workers
        source_name = getattr(self.source, "name", "source")
        log.info(f"Building vocabulary: source={source_name} tokenizer={getattr(self.tokenizer, 'name', '?')} "
                 f"workers={workers} min_word_frequency={cfg.min_word_frequency} "
                 f"stop_words={len(cfg.stop_words)} rebuild={rebuild}")

        start = time.time()
        labels = LabelsSource(cfg.label_template)
        transformer = SentenceTransformer(self.source, self.tokenizer, labels)
        prefetch = cfg.prefetch_size if workers > 1 else 0
        iterator = SequenceIterator(transformer, prefetch_size=prefetch)
        constructor = VocabConstructor(cfg.stop_words)
        target = self._target_cache

        try:
            self._run_workers(iterator, constructor, workers)
            cache = constructor.finalize(cfg.min_word_frequency, target=target)
        except BaseException as e:
            log.exception(f"Vocabulary build failed for source={source_name}: {e}")
            with self._state_lock:
                self._state = VectorizerState.UNINITIALIZED
                self._vocab_cache = None
                self._labels_source = None
                self._stats = None
            raise
        finally:
            iterator.close()

        stats = BuildStats.collect(constructor, cache, workers=workers, elapsed_s=time.time() - start)
        with self._state_lock:
            self._vocab_cache = cache
            self._labels_source = labels
            self._stats = stats
            self._target_cache = None
            self._state = VectorizerState.FINALIZED

        log.info(f"Vocabulary complete: size={stats.vocab_size} docs={stats.documents} tokens={stats.tokens} "
                 f"retained_occurrences={stats.retained_occurrences} stop_word_hits={stats.stop_word_hits} "
                 f"labels={labels.number_of_labels_used()} elapsed={stats.elapsed_s:.2f}s")
        if stats.sentence_length:
            log.info(f"Sentence length percentiles: {stats.sentence_length}")
        return cache

    def _run_workers(self, iterator: SequenceIterator, constructor: VocabConstructor, workers: int) -> None:
        stop = threading.Event()
        stop_words = constructor.stop_words
        self._processed = 0
        progress = tqdm(unit="doc", desc="vocab", disable=not self.config.show_progress)

        def work() -> int:
            tally = constructor.new_tally()
            while not stop.is_set():
                seq = iterator.next_sequence()
                if seq is None:
                    break
                tally.process_sentence(seq.tokens, stop_words, sequence_id=seq.sequence_id)
                self._tick(progress)
            # an aborted build discards its tallies
            if not stop.is_set():
                constructor.merge_partial(tally)
            return tally.documents

        try:
            if workers == 1:
                try:
                    work()
                except VocabularyError:
                    raise
                except Exception as e:
                    raise _as_source_failure(e) from e
                return

            errors: List[BaseException] = []
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="corpus-vocab") as pool:
                futures = [pool.submit(work) for _ in range(workers)]
                for fut in as_completed(futures):
                    err = fut.exception()
                    if err is not None:
                        if not errors:
                            stop.set()
                            iterator.close()
                        errors.append(err)
            if errors:
                err = errors[0]
                if isinstance(err, Exception) and not isinstance(err, VocabularyError):
                    raise _as_source_failure(err) from err
                raise err
        finally:
            progress.close()

    def _tick(self, progress: tqdm) -> None:
        with self._progress_lock:
            self._processed += 1
            n = self._processed
            progress.update(1)
        if n % self.config.log_every_docs == 0:
            log.info(f"processed={n} documents")
