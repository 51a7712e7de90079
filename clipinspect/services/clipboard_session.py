"""Session state the UI binds to: current result, copy status, history, listeners."""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from PySide6.QtCore import QObject, Signal

from clipinspect.config.constants import ORIGIN_DROP, ORIGIN_MANUAL, ORIGIN_PASTE
from clipinspect.core.types import CopyResult, HistoryEntry, ParseResult, TextFormat

from .history import HistoryLedger, get_global_history
from .listeners import EVENT_DROP, EVENT_PASTE, EventSource, ListenerHandle
from .parser import ClipboardParser, ResultSlot
from .writeback import ClipboardWriter

MODE_WRITE = "write"
MODE_PARSE = "parse"
MODE_INSPECTOR = "inspector"
MODES = (MODE_WRITE, MODE_PARSE, MODE_INSPECTOR)

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"
STATUS_INFO = "info"

_SUCCESS_NOTICES = {
    ORIGIN_PASTE: "Paste detected, clipboard content parsed automatically",
    ORIGIN_DROP: "Drop detected, dropped content parsed",
}


class ClipboardSession(QObject):
    """Ties the parser, the writer and the history ledger together.

    Results are published through Qt signals. Paste and drop subscriptions
    are held as :class:`ListenerHandle` objects owned by the session;
    enabling a mode again releases the previous handle first.
    """

    result_changed = Signal(object)
    copy_finished = Signal(object)
    status_message = Signal(str, str)
    history_changed = Signal()

    def __init__(
        self,
        parser: ClipboardParser,
        writer: ClipboardWriter,
        *,
        history: Optional[HistoryLedger] = None,
        event_source: Optional[EventSource] = None,
    ) -> None:
        super().__init__()
        self.parser = parser
        self.writer = writer
        self.history = history if history is not None else get_global_history()
        self.event_source = event_source
        self.mode = MODE_PARSE

        self._slot = ResultSlot()
        self._paste_handle: Optional[ListenerHandle] = None
        self._drop_handle: Optional[ListenerHandle] = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def current_result(self) -> Optional[ParseResult]:
        return self._slot.current

    @property
    def paste_listener_active(self) -> bool:
        return self._paste_handle is not None and self._paste_handle.active

    @property
    def drop_listener_active(self) -> bool:
        return self._drop_handle is not None and self._drop_handle.active

    # ------------------------------------------------------------------
    # Mode switching
    # ------------------------------------------------------------------
    def set_mode(self, mode: str) -> None:
        if mode not in MODES:
            raise ValueError(f"Unknown mode: {mode}")
        self.mode = mode
        if mode == MODE_PARSE and self.event_source is not None:
            self.enable_paste_listener()
        else:
            self.disable_paste_listener()

    # ------------------------------------------------------------------
    # Parse and copy
    # ------------------------------------------------------------------
    async def handle_parse(self) -> ParseResult:
        ticket = self._slot.begin()
        result = await self.parser.parse_clipboard(ORIGIN_MANUAL)
        self._accept(ticket, result, ORIGIN_MANUAL)
        return result

    async def handle_copy(
        self, text: str, fmt: Union[str, TextFormat] = TextFormat.PLAIN
    ) -> CopyResult:
        result = await self.writer.write_back(text, fmt)
        self.copy_finished.emit(result)
        self.status_message.emit(STATUS_SUCCESS if result.success else STATUS_ERROR, result.message)
        return result

    def clear_parse_data(self) -> None:
        self._slot.set(None)
        self.result_changed.emit(None)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def enable_paste_listener(self, source: Optional[EventSource] = None) -> ListenerHandle:
        self.disable_paste_listener()
        self._paste_handle = ListenerHandle(
            self._require_source(source), [(EVENT_PASTE, self._on_paste)]
        )
        return self._paste_handle

    def disable_paste_listener(self) -> None:
        if self._paste_handle is not None:
            self._paste_handle.disable()
            self._paste_handle = None

    def enable_drop_listener(self, source: Optional[EventSource] = None) -> ListenerHandle:
        self.disable_drop_listener()
        self._drop_handle = ListenerHandle(
            self._require_source(source), [(EVENT_DROP, self._on_drop)]
        )
        return self._drop_handle

    def disable_drop_listener(self) -> None:
        if self._drop_handle is not None:
            self._drop_handle.disable()
            self._drop_handle = None

    def close(self) -> None:
        self.disable_paste_listener()
        self.disable_drop_listener()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    def load_history_item(self, entry: HistoryEntry) -> None:
        self._slot.set(entry.result)
        self.result_changed.emit(entry.result)
        self.status_message.emit(STATUS_SUCCESS, "History entry loaded")

    def clear_history(self) -> None:
        self.history.clear()
        self.history_changed.emit()
        self.status_message.emit(STATUS_SUCCESS, "History cleared")

    def toggle_history_visibility(self) -> bool:
        visible = self.history.toggle_visible()
        self.history_changed.emit()
        return visible

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _require_source(self, source: Optional[EventSource]) -> EventSource:
        source = source or self.event_source
        if source is None:
            raise ValueError("No event source to listen on")
        self.event_source = source
        return source

    async def _on_paste(self, transfer: Any) -> None:
        ticket = self._slot.begin()
        result = await self.parser.parse_transfer(transfer, ORIGIN_PASTE)
        self._accept(ticket, result, ORIGIN_PASTE)

    async def _on_drop(self, transfer: Any) -> None:
        ticket = self._slot.begin()
        result = await self.parser.parse_transfer(transfer, ORIGIN_DROP)
        self._accept(ticket, result, ORIGIN_DROP)

    def _accept(self, ticket: int, result: ParseResult, origin: str) -> None:
        if result.success:
            self.history.append(result)
            self.history_changed.emit()

        if not self._slot.offer(ticket, result):
            logging.info("Parse result from %s superseded by a newer cycle", origin)
            return

        self.result_changed.emit(result)
        if result.success:
            self.status_message.emit(STATUS_SUCCESS, _SUCCESS_NOTICES.get(origin, result.message))
        else:
            self.status_message.emit(STATUS_ERROR, result.message)
