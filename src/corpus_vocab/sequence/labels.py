"""Labels seen while iterating a labelled corpus.

Documents that carry no label get a generated one from a template
(`DOC_0`, `DOC_1`, ...), so every sequence has at least one label.
"""

from __future__ import annotations
import threading
from typing import List

class LabelsSource:
    def __init__(self, template: str = "DOC_%d"):
        self.template = template
        self._lock = threading.Lock()
        self._counter = 0
        self._labels: List[str] = []
        self._seen = set()

    def next_label(self) -> str:
        """Generate and store the next templated label."""
        with self._lock:
            label = self.template % self._counter
            self._counter += 1
            self._store(label)
            return label

    def store_label(self, label: str) -> None:
        with self._lock:
            self._store(label)

    def _store(self, label: str) -> None:
        if label not in self._seen:
            self._seen.add(label)
            self._labels.append(label)

    def get_labels(self) -> List[str]:
        """Distinct labels in first-seen order."""
        with self._lock:
            return list(self._labels)

    def number_of_labels_used(self) -> int:
        with self._lock:
            return len(self._labels)

    def reset(self) -> None:
        with self._lock:
            self._counter = 0
            self._labels.clear()
            self._seen.clear()
