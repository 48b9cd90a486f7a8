"""Default whitespace tokenizer and the common token preprocessor."""

from __future__ import annotations
from typing import List, Optional
from ..utils.text import normalize_unicode_nfc, sanitize, strip_punctuation
from .base import TokenizerAdapter, TokenPreProcessor

class CommonPreprocessor(TokenPreProcessor):
    """NFC-normalize, strip digits/punctuation, optionally lowercase."""

    def __init__(self, lowercase: bool = True):
        self.lowercase = lowercase

    def pre_process(self, token: str) -> str:
        token = strip_punctuation(normalize_unicode_nfc(token))
        return token.lower() if self.lowercase else token

class DefaultTokenizer(TokenizerAdapter):
    """Whitespace tokenizer.

    HTML tags are removed before splitting. Tokens that become empty after
    preprocessing are dropped.
    """
    name = "whitespace"

    def __init__(self, pre_processor: Optional[TokenPreProcessor] = None):
        self.pre_processor = pre_processor

    def tokenize(self, text: str) -> List[str]:
        if not isinstance(text, str):
            raise TypeError(f"Expected str, got {type(text).__name__}")
        tokens = sanitize(text).split(" ")
        if self.pre_processor is not None:
            tokens = [self.pre_processor.pre_process(t) for t in tokens]
        return [t for t in tokens if t]
