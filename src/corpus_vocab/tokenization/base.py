"""Tokenizer adapter plugin.

Tokenization rules are owned by adapters, not by the vocabulary builder.
Implement this interface and register it via `corpus_vocab.tokenization.registry`.

Design goals:
- Vocabulary construction runs without knowing tokenizer internals
- Tokenizers (casing, stemming, language rules) can be swapped without touching the build

Minimal contract:
- tokenize(text) -> list[str]
- optional: tokenize_batch(list[str]) -> list[list[str]] for speed

Adapters are called from several worker threads and must not keep per-call state.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Sequence

class TokenPreProcessor(ABC):
    """Per-token normalization applied by a tokenizer before emitting a term."""

    @abstractmethod
    def pre_process(self, token: str) -> str:
        ...

class TokenizerAdapter(ABC):
    """Base tokenizer adapter."""
    name: str = "tokenizer"

    @abstractmethod
    def tokenize(self, text: str) -> List[str]:
        """Split a document into terms, in order."""
        raise NotImplementedError

    def tokenize_batch(self, texts: Sequence[str]) -> List[List[str]]:
        """Optional fast path; default falls back to single tokenize."""
        return [self.tokenize(t) for t in texts]
