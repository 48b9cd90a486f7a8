"""Logging utilities.

We use Python's standard `logging` module with the same compact format across
all modules, so vocabulary builds log next to the rest of a preprocessing run.

- Logs go to: `<log_dir>/<run_id>.log` when a log directory is given
- Also prints concise progress to stderr.
"""

from __future__ import annotations
import logging
import os
from typing import Optional

_FORMAT = "%(asctime)s %(levelname)s %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S"

# marker attribute so repeated setup_logging() calls don't stack handlers
_HANDLER_TAG = "_corpus_vocab_handler"


def setup_logging(run_id: str = "vocab", log_dir: Optional[str] = None, level: int = logging.INFO) -> Optional[str]:
    """
    Setup logging configuration.

    Args:
        run_id: Run identifier, used as the log file name
        log_dir: Directory for the log file (console only if None)
        level: Root log level

    Returns:
        Path of the log file, or None when logging to console only
    """
    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        if getattr(h, _HANDLER_TAG, False):
            root.removeHandler(h)
            h.close()

    fmt = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)

    # Console
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    setattr(ch, _HANDLER_TAG, True)
    root.addHandler(ch)

    if log_dir is None:
        return None

    # File
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, f"{run_id}.log")
    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setFormatter(fmt)
    setattr(fh, _HANDLER_TAG, True)
    root.addHandler(fh)
    return log_path
