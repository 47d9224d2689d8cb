"""
guideproxy/core/errors.py
Exceptions shared by the fetch/retry layer and the proxy.
"""

from typing import Optional


class ShapeError(ValueError):
    """Upstream JSON contained no array the normalizer could use."""


class UpstreamError(Exception):
    """Raised by fetch_with_retry once every attempt has failed."""

    def __init__(self, failure, attempts: int):
        super().__init__(failure.message)
        self.failure  = failure
        self.attempts = attempts

    @property
    def kind(self):
        return self.failure.kind

    @property
    def status(self) -> Optional[int]:
        return self.failure.status
