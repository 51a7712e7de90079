"""Two-tier clipboard write-back.

The structured tier writes one clipboard item tagged with the requested
format. When it fails for any reason the legacy tier copies plain text; an
HTML request is then downgraded, which the result reports explicitly.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Union

from clipinspect.core.errors import (
    EmptyInputError,
    UnsupportedPlatformError,
    WriteFailure,
)
from clipinspect.core.platform import ClipboardBackend, LegacyCopier, MemoryBlob, MemoryClipboardItem
from clipinspect.core.types import CopyResult, TextFormat, WriteTier

COPY_OK_MESSAGE = "Copied to clipboard"
COPY_PLAIN_MESSAGE = "Copied to clipboard as plain text"
EMPTY_INPUT_MESSAGE = "Content must not be empty"


def coerce_format(fmt: Union[str, TextFormat]) -> TextFormat:
    """Map a requested format onto the write path; RTF is written as plain text."""

    try:
        value = TextFormat(fmt)
    except ValueError:
        logging.info("Unsupported write format %r, using text/plain", fmt)
        return TextFormat.PLAIN
    if value is TextFormat.RTF:
        return TextFormat.PLAIN
    return value


class ClipboardWriter:
    """Writes strings through a structured backend with a legacy fallback."""

    def __init__(
        self,
        backend: Optional[ClipboardBackend] = None,
        legacy: Optional[LegacyCopier] = None,
    ) -> None:
        self.backend = backend
        self.legacy = legacy

    async def write_back(self, text: str, fmt: Union[str, TextFormat] = TextFormat.PLAIN) -> CopyResult:
        """Copy *text* as *fmt*; failures come back as data, never as exceptions."""

        try:
            self._check_input(text)
        except EmptyInputError as exc:
            return CopyResult(success=False, message=str(exc))

        target = coerce_format(fmt)
        try:
            await self._write_structured(text, target)
        except Exception as exc:
            logging.warning("Structured clipboard write failed, trying legacy copy: %s", exc)
        else:
            logging.debug("Wrote %d chars to clipboard as %s", len(text), target.value)
            return CopyResult(success=True, message=COPY_OK_MESSAGE, tier=WriteTier.STRUCTURED)

        downgraded = target is TextFormat.HTML
        if downgraded:
            logging.warning("Legacy copy does not support HTML, copying as plain text")
        try:
            await self._write_legacy(text)
        except WriteFailure as exc:
            logging.error("Clipboard write failed: %s", exc)
            return CopyResult(
                success=False,
                message=f"Copy failed: {exc}",
                tier=WriteTier.LEGACY,
                downgraded=downgraded,
            )
        return CopyResult(
            success=True,
            message=COPY_PLAIN_MESSAGE if downgraded else COPY_OK_MESSAGE,
            tier=WriteTier.LEGACY,
            downgraded=downgraded,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _check_input(text: str) -> None:
        if not isinstance(text, str) or not text.strip():
            raise EmptyInputError(EMPTY_INPUT_MESSAGE)

    async def _write_structured(self, text: str, fmt: TextFormat) -> None:
        backend = self.backend
        if backend is None or not backend.is_available():
            raise UnsupportedPlatformError("Clipboard API is not supported")
        item = MemoryClipboardItem({fmt.value: MemoryBlob(text.encode("utf-8"), fmt.value)})
        await backend.write([item])

    async def _write_legacy(self, text: str) -> None:
        legacy = self.legacy
        if legacy is None:
            raise WriteFailure("no legacy clipboard mechanism available")
        try:
            # pyperclip shells out and sleeps between retries
            copied = await asyncio.to_thread(legacy.copy, text)
        except UnsupportedPlatformError as exc:
            raise WriteFailure("no legacy clipboard mechanism available", exc) from exc
        except Exception as exc:
            raise WriteFailure("legacy copy raised an error", exc) from exc
        if not copied:
            raise WriteFailure("the copy command was rejected")
