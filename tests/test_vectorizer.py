import random
import threading

import pytest

from corpus_vocab.config import VectorizerConfig
from corpus_vocab.errors import NotYetBuilt, SourceFailure
from corpus_vocab.sources.base import SourceSpec
from corpus_vocab.sources.memory import InMemorySource
from corpus_vocab.tokenization.base import TokenizerAdapter
from corpus_vocab.vectorizer import TextVectorizer, VectorizerState
from corpus_vocab.vocab.cache import VocabularyCache
from corpus_vocab.vocab.constructor import PartialTally

from conftest import FailingSource


def _fit(docs, **cfg):
    return TextVectorizer(docs, config=VectorizerConfig(**cfg)).fit()


def _counts(cache):
    return {e.term: (e.total_occurrences, e.document_frequency) for e in cache}


@pytest.mark.parametrize("parallel", [False, True])
def test_stop_words_removed_and_counts(corpus, parallel):
    vec = _fit(corpus, stop_words={"the"}, min_word_frequency=1, parallel=parallel, worker_count=3)
    cache = vec.vocab_cache
    assert _counts(cache) == {"cat": (1, 1), "sat": (2, 2), "dog": (1, 1)}
    assert cache.lookup_by_term("the") is None
    assert vec.num_words_encountered() == 4
    assert vec.state is VectorizerState.FINALIZED


def test_threshold_two_keeps_only_sat(corpus):
    vec = _fit(corpus, stop_words={"the"}, min_word_frequency=2)
    assert _counts(vec.vocab_cache) == {"sat": (2, 2)}
    assert vec.vocab_cache.lookup_by_term("sat").index == 0
    # pruned occurrences are not part of the total
    assert vec.num_words_encountered() == 2


@pytest.mark.parametrize("parallel", [False, True])
def test_empty_corpus(parallel):
    vec = _fit([], parallel=parallel, worker_count=4)
    assert vec.vocab_cache.size() == 0
    assert vec.num_words_encountered() == 0
    assert vec.stats.documents == 0


@pytest.mark.parametrize("parallel,prefetch", [(False, 0), (True, 0), (True, 8)])
def test_source_failure_aborts_fit(parallel, prefetch):
    vec = TextVectorizer(FailingSource(good=1),
                         config=VectorizerConfig(parallel=parallel, worker_count=4, prefetch_size=prefetch))
    with pytest.raises(SourceFailure):
        vec.fit()
    assert vec.state is VectorizerState.UNINITIALIZED
    with pytest.raises(NotYetBuilt):
        vec.num_words_encountered()
    with pytest.raises(NotYetBuilt):
        vec.vocab_cache


def test_queries_before_fit_raise(corpus):
    vec = TextVectorizer(corpus)
    assert vec.state is VectorizerState.UNINITIALIZED
    with pytest.raises(NotYetBuilt):
        vec.num_words_encountered()
    with pytest.raises(NotYetBuilt):
        vec.labels_source
    assert vec.stats is None


def _random_corpus(n_docs=300, seed=7):
    rng = random.Random(seed)
    words = [f"w{i}" for i in range(60)] + ["the", "a"]
    return [" ".join(rng.choice(words) for _ in range(rng.randint(0, 25))) for _ in range(n_docs)]


@pytest.mark.parametrize("workers,prefetch", [(2, 0), (4, 4), (8, 64)])
def test_totals_and_indices_independent_of_worker_count(workers, prefetch):
    docs = _random_corpus()
    single = _fit(docs, parallel=False, stop_words={"the", "a"}, min_word_frequency=3).vocab_cache
    multi = _fit(docs, parallel=True, worker_count=workers, prefetch_size=prefetch,
                 stop_words={"the", "a"}, min_word_frequency=3).vocab_cache
    assert _counts(single) == _counts(multi)
    assert single.words() == multi.words()
    assert single.total_word_occurrences() == multi.total_word_occurrences()


def test_threshold_law_and_document_frequency_bound():
    docs = _random_corpus(seed=11)
    stop = {"the", "a"}
    cache = _fit(docs, stop_words=stop, min_word_frequency=5, worker_count=4).vocab_cache

    occurrences, doc_freq = {}, {}
    for d in docs:
        toks = d.split()
        for t in toks:
            occurrences[t] = occurrences.get(t, 0) + 1
        for t in set(toks):
            doc_freq[t] = doc_freq.get(t, 0) + 1

    for term, n in occurrences.items():
        expected = n >= 5 and term not in stop
        assert (term in cache) == expected
        if expected:
            assert cache.word_frequency(term) == n
            assert cache.doc_appeared_in(term) == doc_freq[term]
            assert cache.doc_appeared_in(term) <= len(docs)
    assert sorted(e.index for e in cache) == list(range(cache.size()))


def test_index_order_is_first_seen():
    cache = _fit(["b a", "c a", "d"], parallel=True, worker_count=3).vocab_cache
    assert cache.words() == ["b", "a", "c", "d"]


def test_rebuild_replaces_cache(corpus):
    docs = list(corpus)
    vec = _fit(docs, stop_words={"the"})
    first = vec.vocab_cache
    docs.append("a bird sat")
    vec.fit()
    second = vec.vocab_cache
    assert second is not first
    assert first.size() == 3
    assert second.word_frequency("sat") == 3
    assert "bird" in second


def test_supplied_cache_is_filled():
    target = VocabularyCache()
    vec = TextVectorizer(["x y x"], vocab_cache=target).fit()
    assert vec.vocab_cache is target
    assert target.is_finalized
    assert target.word_frequency("x") == 2


def test_finalized_cache_cannot_be_supplied():
    cache = VocabularyCache()
    cache.finalize_from([])
    with pytest.raises(ValueError):
        TextVectorizer([], vocab_cache=cache)


def test_unknown_tokenizer_name():
    with pytest.raises(ValueError):
        TextVectorizer([], config=VectorizerConfig(tokenizer="nope"))


def test_common_tokenizer_from_config():
    cache = _fit(["The cat.", "the CAT!"], tokenizer="common").vocab_cache
    assert _counts(cache) == {"the": (2, 2), "cat": (2, 2)}


def test_labels_and_stats(corpus):
    vec = TextVectorizer(InMemorySource([(corpus[0], "animals"), corpus[1]]),
                         config=VectorizerConfig(stop_words={"the"}, worker_count=2)).fit()
    assert vec.labels_source.get_labels() == ["animals", "DOC_0"]
    stats = vec.stats
    assert stats.documents == 2
    assert stats.tokens == 6
    assert stats.stop_word_hits == 2
    assert stats.vocab_size == 3
    assert stats.retained_occurrences == 4
    assert stats.sentence_length["p50"] == 3.0
    assert stats.to_dict()["workers"] == 2


def test_from_spec_with_jsonl(write_jsonl):
    path = write_jsonl("corpus.jsonl", [{"text": "the cat sat"}, {"text": "the dog sat"}])
    spec = SourceSpec(name="jsonl", kind="local_jsonl", dataset=path)
    vec = TextVectorizer.from_spec(spec, config=VectorizerConfig(stop_words={"the"}, min_word_frequency=2)).fit()
    assert vec.vocab_cache.words() == ["sat"]


def test_malformed_jsonl_is_source_failure(write_jsonl):
    path = write_jsonl("corpus.jsonl", [{"text": "ok"}, "{broken"])
    spec = SourceSpec(name="jsonl", kind="local_jsonl", dataset=path)
    vec = TextVectorizer.from_spec(spec, config=VectorizerConfig(parallel=False))
    with pytest.raises(SourceFailure):
        vec.fit()
    assert vec.state is VectorizerState.UNINITIALIZED


def test_failed_rebuild_returns_to_uninitialized(corpus):
    class Flaky(InMemorySource):
        fail = False

        def stream(self):
            if self.fail:
                raise IOError("gone")
            return super().stream()

    src = Flaky(corpus)
    vec = TextVectorizer(src).fit()
    old = vec.vocab_cache
    src.fail = True
    with pytest.raises(SourceFailure):
        vec.fit()
    assert vec.state is VectorizerState.UNINITIALIZED
    # consumers holding the old cache keep a valid read-only object
    assert old.size() == 4


class NestedTokenizer(TokenizerAdapter):
    name = "nested"

    def tokenize(self, text):
        return [["not", "hashable"]]


@pytest.mark.parametrize("parallel", [False, True])
def test_bad_tokenizer_output_is_source_failure(corpus, parallel):
    vec = TextVectorizer(corpus, tokenizer=NestedTokenizer(),
                         config=VectorizerConfig(parallel=parallel, worker_count=3))
    with pytest.raises(SourceFailure):
        vec.fit()
    assert vec.state is VectorizerState.UNINITIALIZED


@pytest.mark.parametrize("parallel", [False, True])
def test_unexpected_worker_error_is_wrapped(corpus, monkeypatch, parallel):
    def boom(self, sentence, stop_words, sequence_id=None):
        raise RuntimeError("tally broke")

    monkeypatch.setattr(PartialTally, "process_sentence", boom)
    vec = TextVectorizer(corpus, config=VectorizerConfig(parallel=parallel, worker_count=3))
    with pytest.raises(SourceFailure) as exc:
        vec.fit()
    assert isinstance(exc.value.__cause__, RuntimeError)
    assert vec.state is VectorizerState.UNINITIALIZED


def test_previous_cache_readable_during_rebuild(corpus):
    class Gated(InMemorySource):
        hold = False

        def __init__(self, documents):
            super().__init__(documents)
            self.entered = threading.Event()
            self.gate = threading.Event()

        def stream(self):
            if self.hold:
                self.entered.set()
                self.gate.wait(5)
            yield from super().stream()

    docs = list(corpus)
    src = Gated(docs)
    vec = TextVectorizer(src, config=VectorizerConfig(parallel=False)).fit()
    old = vec.vocab_cache
    before = vec.num_words_encountered()

    docs.append("a bird sat")
    src.hold = True
    errors = []

    def rebuild():
        try:
            vec.fit()
        except Exception as e:
            errors.append(e)

    t = threading.Thread(target=rebuild)
    t.start()
    try:
        assert src.entered.wait(5)
        assert vec.state is VectorizerState.BUILDING
        assert vec.vocab_cache is old
        assert vec.num_words_encountered() == before
    finally:
        src.gate.set()
        t.join(5)

    assert not errors
    assert vec.state is VectorizerState.FINALIZED
    assert vec.vocab_cache is not old
    assert "bird" in vec.vocab_cache
