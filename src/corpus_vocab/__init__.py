"""corpus_vocab

Frequency-filtered corpus vocabulary construction, the step that runs before
bag-of-words or embedding vectorization.

Public API surface:
- corpus_vocab.vectorizer.TextVectorizer : fit() a vocabulary from a document source
- corpus_vocab.config.VectorizerConfig : validated build options
- corpus_vocab.vocab : accumulator (VocabConstructor) and VocabularyCache
- corpus_vocab.sources : add/extend document sources
- corpus_vocab.tokenization : add/extend tokenizer adapters
"""
__all__ = ["__version__"]
__version__ = "0.1.0"
