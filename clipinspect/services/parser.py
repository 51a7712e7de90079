"""Parse cycles: direct clipboard reads and paste/drop transfers."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, List, Optional

from clipinspect.config.constants import ORIGIN_DROP, ORIGIN_MANUAL, ORIGIN_PASTE
from clipinspect.core.errors import UnsupportedPlatformError
from clipinspect.core.extractor import extract
from clipinspect.core.normalizer import normalize
from clipinspect.core.platform import ClipboardBackend
from clipinspect.core.types import DataItem, ParseResult, RawEntry, SourceChannel

Clock = Callable[[], float]

_ORIGIN_LABELS = {
    ORIGIN_PASTE: ("from paste event", "Paste handling failed"),
    ORIGIN_DROP: ("from drop event", "Drop handling failed"),
}


def _log_extra(origin: str) -> dict:
    return {"origin": f"[{origin}] "}


def is_clipboard_api_supported(backend: Optional[ClipboardBackend]) -> bool:
    return backend is not None and backend.is_available()


def is_read_supported(backend: Optional[ClipboardBackend]) -> bool:
    return is_clipboard_api_supported(backend) and backend.is_secure_context()


class ResultSlot:
    """Holds the result currently shown to the caller.

    Each parse cycle takes a ticket from :meth:`begin` before it starts. A
    result is only accepted if no cycle started later has already been
    accepted, so a slow read cannot overwrite a newer paste.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._issued = 0
        self._accepted = 0
        self._current: Optional[ParseResult] = None

    def begin(self) -> int:
        with self._lock:
            self._issued += 1
            return self._issued

    def offer(self, ticket: int, result: ParseResult) -> bool:
        with self._lock:
            if ticket < self._accepted:
                logging.debug(
                    "Discarding stale parse result (ticket %d < %d)", ticket, self._accepted
                )
                return False
            self._accepted = ticket
            self._current = result
            return True

    def set(self, result: Optional[ParseResult]) -> None:
        """Replace the current result outright (history loads, clears)."""

        with self._lock:
            self._issued += 1
            self._accepted = self._issued
            self._current = result

    @property
    def current(self) -> Optional[ParseResult]:
        with self._lock:
            return self._current


class ClipboardParser:
    """Runs extraction and normalization and wraps the outcome as a ParseResult."""

    def __init__(
        self,
        backend: Optional[ClipboardBackend] = None,
        *,
        max_inline_bytes: Optional[int] = None,
        clock: Clock = time.time,
    ) -> None:
        self.backend = backend
        self.max_inline_bytes = max_inline_bytes
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _result(self, success: bool, message: str, items: List[DataItem]) -> ParseResult:
        return ParseResult(
            success=success,
            message=message,
            items=tuple(items),
            timestamp_ms=self._now_ms(),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def parse_payload(self, payload: Any) -> List[DataItem]:
        entries = await extract(payload, self.max_inline_bytes)
        return normalize(entries)

    async def read_clipboard_items(self, origin: str = ORIGIN_MANUAL) -> List[DataItem]:
        """Read the system clipboard; raises when the read cannot be attempted."""

        backend = self.backend
        if not is_clipboard_api_supported(backend):
            raise UnsupportedPlatformError("Clipboard API is not supported")
        if not backend.is_secure_context():
            raise UnsupportedPlatformError("A secure context is required to read the clipboard")

        items: List[DataItem] = []
        for clipboard_item in await backend.read():
            items.extend(await self.parse_payload(clipboard_item))

        if not items:
            items.extend(await self._read_text_fallback(origin))
        return items

    async def parse_clipboard(self, origin: str = ORIGIN_MANUAL) -> ParseResult:
        """Read and parse the whole clipboard."""

        try:
            items = await self.read_clipboard_items(origin)
        except Exception as exc:
            logging.error("Clipboard parse failed: %s", exc, extra=_log_extra(origin))
            return self._result(False, f"Parse failed: {exc}", [])

        logging.info("Parsed %d clipboard items", len(items), extra=_log_extra(origin))
        return self._result(True, f"Parsed {len(items)} data items", items)

    async def parse_transfer(self, transfer: Any, origin: str = ORIGIN_PASTE) -> ParseResult:
        """Parse the transfer of a paste or drop event.

        A paste whose transfer yields nothing falls back to a full clipboard
        read; a drop never does.
        """

        suffix, failure = _ORIGIN_LABELS.get(origin, ("", "Parse failed"))
        try:
            items = await self.parse_payload(transfer)
            if not items and origin == ORIGIN_PASTE:
                fallback = await self.parse_clipboard(origin)
                items = list(fallback.items)
        except Exception as exc:
            logging.error("Transfer parse failed: %s", exc, extra=_log_extra(origin))
            return self._result(False, f"{failure}: {exc}", [])

        logging.info("Parsed %d transfer items", len(items), extra=_log_extra(origin))
        message = f"Parsed {len(items)} data items"
        if suffix:
            message = f"{message} {suffix}"
        return self._result(True, message, items)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _read_text_fallback(self, origin: str) -> List[DataItem]:
        try:
            text = await self.backend.read_text()
        except Exception as exc:
            logging.warning("Failed to read text from clipboard: %s", exc, extra=_log_extra(origin))
            return []
        if not text:
            return []
        entry = RawEntry(
            source_channel=SourceChannel.DECLARED_TYPE,
            mime_hint="text/plain",
            payload=str(text),
            origin="clipboard",
        )
        return normalize([entry])
