"""Vocabulary accumulation (VocabConstructor) and the finalized VocabularyCache."""

from .cache import VocabEntry, VocabularyCache
from .constructor import PartialTally, VocabConstructor

__all__ = ["VocabEntry", "VocabularyCache", "PartialTally", "VocabConstructor"]
