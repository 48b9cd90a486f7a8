"""Text normalization helpers used by tokenizer preprocessors."""

from __future__ import annotations
import re
import unicodedata

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")
# digits and common punctuation, stripped from individual tokens
_PUNCT_RE = re.compile(r"[\d.:,\"'()\[\]|/?!;]+")

def normalize_unicode_nfc(text: str) -> str:
    """Apply Unicode NFC (Canonical Composition) normalization.

    Ensures the same word always has the same code points, so it maps to a single term.
    """
    if not text:
        return text
    return unicodedata.normalize("NFC", text)

def sanitize(text: str) -> str:
    """Remove simple HTML tags and normalize whitespace."""
    text = _TAG_RE.sub(" ", text)
    return _WS_RE.sub(" ", text).strip()

def strip_punctuation(token: str) -> str:
    return _PUNCT_RE.sub("", token)
