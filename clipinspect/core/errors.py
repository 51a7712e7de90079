"""Exceptions used inside the clipboard pipeline.

None of these cross the public boundary: the parser and the writer convert
them into :class:`ParseResult` / :class:`CopyResult` data.
"""

from __future__ import annotations

import time
from typing import Optional


class ClipboardError(Exception):
    """Base exception for clipboard pipeline errors."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.original_error = original_error
        self.timestamp = time.time()

    def __str__(self):
        base_msg = super().__str__()
        if self.original_error:
            return f"{base_msg} (Caused by: {type(self.original_error).__name__}: {self.original_error})"
        return base_msg


class UnsupportedPlatformError(ClipboardError):
    """A required capability is missing (read/write API, secure context)."""
    pass


class EmptyInputError(ClipboardError):
    """Nothing to copy."""
    pass


class DecodeFailure(ClipboardError):
    """A blob or file could not be read as text."""
    pass


class ParseFailure(ClipboardError):
    """Structural parse error (JSON and friends)."""
    pass


class WriteFailure(ClipboardError):
    """Both write mechanisms failed."""
    pass
