"""
Text Pool
=========
Interns word values so repeated words on a page (or across the pages of one
document) share a single string object. One pool is created per pipeline and
passed to the components that build words.
"""

import threading
from typing import Dict


class TextPool:
    """Thread-safe string interning scoped to its owner."""

    def __init__(self):
        self._values: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get_or_add(self, value: str) -> str:
        cached = self._values.get(value)
        if cached is not None:
            return cached
        with self._lock:
            return self._values.setdefault(value, value)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, value: object) -> bool:
        return value in self._values

    def clear(self) -> None:
        with self._lock:
            self._values.clear()
