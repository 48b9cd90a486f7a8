"""Tokenizer registry.

This enables swapping tokenizers by name in the build config without modifying build code.
For now, we keep a simple in-process registry.
"""

from __future__ import annotations
from typing import Dict, List, Optional
from .base import TokenizerAdapter
from .default import CommonPreprocessor, DefaultTokenizer

_TOKENIZERS: Dict[str, TokenizerAdapter] = {
    "whitespace": DefaultTokenizer(),
    "common": DefaultTokenizer(CommonPreprocessor(lowercase=True)),
}

def register_tokenizer(name: str, tok: TokenizerAdapter) -> None:
    _TOKENIZERS[name] = tok

def get_tokenizer(name: str) -> Optional[TokenizerAdapter]:
    return _TOKENIZERS.get(name)

def list_tokenizers() -> List[str]:
    return sorted(_TOKENIZERS)
