"""
Errors and Cancellation
=======================
Exception hierarchy shared by all text layer components, plus the cooperative
cancellation token checked at coarse loop boundaries.
"""

import threading
from typing import Optional


class TextLayerError(Exception):
    """Base class for text layer failures"""


class DegenerateGeometryError(TextLayerError, ArithmeticError):
    """Geometry with no defined orientation (zero-length baseline, NaN rotation)"""


class EmptyIndexError(TextLayerError, ValueError):
    """Spatial index requested over an empty element set"""


class OperationCancelled(TextLayerError):
    """Raised when a cancellation token fires during a batch pass"""


class CancellationToken:
    """
    Cooperative cancellation flag.

    Usage:
        token = CancellationToken()
        worker = threading.Thread(target=pipeline.build, args=(glyphs,), kwargs={'token': token})
        ...
        token.cancel()
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("Text layer construction was cancelled")


def check_cancelled(token: Optional[CancellationToken]) -> None:
    """No-op when no token was supplied."""
    if token is not None:
        token.raise_if_cancelled()
