"""Sequence iterator: the pull surface shared by vocabulary workers.

Two modes:
- locked cursor (prefetch_size=0): each next_sequence() advances the transformer
  under a lock, so tokenization happens on the calling worker's thread.
- prefetch (prefetch_size>0): one producer thread fills a bounded queue and
  workers take from it. Memory is bounded by the queue size.

Either way every sequence is handed to exactly one caller. Exhaustion is
signalled by returning None. A SourceFailure from the transformer is raised to
the caller that hit it and to every caller after it.
"""

from __future__ import annotations
from typing import Iterator, Optional
import logging
import queue
import threading

from ..errors import SourceFailure
from .transformer import Sequence, SentenceTransformer

log = logging.getLogger("corpus_vocab.sequence.iterator")

_END = object()
# producer re-checks the closed flag this often while the queue is full
_PUT_POLL_S = 0.1

class _Failure:
    def __init__(self, error: BaseException):
        self.error = error

class SequenceIterator:
    def __init__(self, transformer: SentenceTransformer, prefetch_size: int = 0):
        if prefetch_size < 0:
            raise ValueError(f"prefetch_size must be >= 0, got {prefetch_size}")
        self.transformer = transformer
        self.prefetch_size = prefetch_size

        self._lock = threading.Lock()
        self._start_lock = threading.Lock()
        self._closed = threading.Event()
        self._exhausted = False
        self._error: Optional[BaseException] = None
        self._it: Optional[Iterator[Sequence]] = None

        self._queue: Optional[queue.Queue] = None
        self._producer: Optional[threading.Thread] = None

    # ---- public surface ----

    def next_sequence(self) -> Optional[Sequence]:
        """Return the next sequence, or None once the corpus is exhausted (or the iterator closed)."""
        if self.prefetch_size == 0:
            return self._next_locked()
        return self._next_prefetched()

    def close(self) -> None:
        """Stop producing. Blocked and future callers get None."""
        with self._start_lock:
            # no producer can start after this point
            self._closed.set()
        if self._queue is not None:
            try:
                while True:
                    self._queue.get_nowait()
            except queue.Empty:
                pass
            # wake any consumer blocked in get(); it re-posts for the next one
            try:
                self._queue.put_nowait(_END)
            except queue.Full:
                # refilled by the producer meanwhile, so nobody is blocked in get()
                pass
        producer = self._producer
        if producer is not None and producer is not threading.current_thread():
            producer.join()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def __iter__(self) -> Iterator[Sequence]:
        while True:
            seq = self.next_sequence()
            if seq is None:
                return
            yield seq

    def __enter__(self) -> "SequenceIterator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---- locked cursor ----

    def _next_locked(self) -> Optional[Sequence]:
        with self._lock:
            self._raise_if_failed()
            if self._exhausted or self._closed.is_set():
                return None
            if self._it is None:
                self._it = iter(self.transformer)
            try:
                return next(self._it)
            except StopIteration:
                self._exhausted = True
                return None
            except BaseException as e:
                self._error = e
                raise

    # ---- prefetch ----

    def _start_producer(self) -> bool:
        with self._start_lock:
            if self._closed.is_set():
                return False
            if self._producer is not None:
                return True
            self._queue = queue.Queue(maxsize=self.prefetch_size)
            self._producer = threading.Thread(
                target=self._produce, name="corpus-vocab-sequence-producer", daemon=True
            )
            self._producer.start()
            return True

    def _post(self, item) -> bool:
        """Put into the bounded queue; give up once closed."""
        while not self._closed.is_set():
            try:
                self._queue.put(item, timeout=_PUT_POLL_S)
                return True
            except queue.Full:
                continue
        return False

    def _produce(self) -> None:
        try:
            for seq in self.transformer:
                if not self._post(seq):
                    return
        except BaseException as e:
            self._post(_Failure(e))
            return
        self._post(_END)

    def _next_prefetched(self) -> Optional[Sequence]:
        self._raise_if_failed()
        if self._exhausted or self._closed.is_set():
            return None
        if not self._start_producer():
            return None

        item = self._queue.get()
        if item is _END:
            self._exhausted = True
            self._repost(_END)
            return None
        if isinstance(item, _Failure):
            self._error = item.error
            self._repost(item)
            raise item.error
        if self._closed.is_set():
            return None
        return item

    def _repost(self, item) -> None:
        """Hand a terminal item on to the next consumer blocked in get()."""
        try:
            self._queue.put_nowait(item)
        except queue.Full:
            # a full queue means nobody is waiting in get(), e.g. after close() refilled it
            pass

    def _raise_if_failed(self) -> None:
        if self._error is None:
            return
        if isinstance(self._error, SourceFailure):
            raise SourceFailure(f"Sequence stream already failed: {self._error}",
                                sequence_id=self._error.sequence_id) from self._error
        raise SourceFailure(f"Sequence stream already failed: {self._error}") from self._error
