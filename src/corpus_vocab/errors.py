"""Error taxonomy for vocabulary construction.

Everything raised on purpose by the build path derives from VocabularyError,
so callers can catch one type. Configuration mistakes stay ValueError.
"""

from __future__ import annotations
from typing import Optional


class VocabularyError(Exception):
    """Base class for vocabulary build errors."""


class SourceFailure(VocabularyError):
    """The document source or tokenizer failed; the whole fit() is aborted.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, sequence_id: Optional[int] = None):
        super().__init__(message)
        self.sequence_id = sequence_id


class AlreadyFinalized(VocabularyError):
    """finalize() was called a second time on the same accumulator."""


class NotYetBuilt(VocabularyError):
    """A query needing a finalized vocabulary ran before fit() completed."""
