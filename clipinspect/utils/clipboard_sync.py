# clipboard_sync.py
#
# Platform adapters for the clipboard pipeline. Qt provides the structured
# clipboard (QClipboard / QMimeData) and the change notifications; pyperclip
# is the plain-text legacy tier used when the structured write fails.

from __future__ import annotations

import logging
import mimetypes
import time
from typing import List, Optional, Sequence

import pyperclip
from PySide6.QtCore import QByteArray, QMimeData, QObject
from PySide6.QtGui import QClipboard, QGuiApplication

from clipinspect.config import SETTINGS
from clipinspect.core.errors import UnsupportedPlatformError
from clipinspect.core.platform import (
    ClipboardItemLike,
    FileLike,
    LocalFile,
    MemoryBlob,
    MemoryClipboardItem,
    MemoryDataTransfer,
    MemoryFile,
    is_text_like,
)
from clipinspect.services.listeners import EVENT_DROP, EVENT_PASTE, EventCallback, EventHub

PyperclipException = getattr(pyperclip, "PyperclipException", Exception)

URI_LIST = "text/uri-list"
_NO_MECHANISM_HINT = "copy/paste mechanism"


def _mime_bytes(mime: QMimeData, fmt: str) -> bytes:
    return bytes(mime.data(fmt).data())


def _is_transferable_format(fmt: str) -> bool:
    # Qt advertises platform-private formats such as application/x-qt-image
    return "/" in fmt and not fmt.startswith("application/x-qt")


def _pasted_file_name(fmt: str) -> str:
    extension = mimetypes.guess_extension(fmt) or ""
    if extension == ".jpe":
        extension = ".jpg"
    return f"{fmt.split('/', 1)[0]}{extension}"


def transfer_from_mime_data(mime: Optional[QMimeData]) -> MemoryDataTransfer:
    """Build a DataTransfer from Qt mime data (paste, drop or clipboard).

    Text-like formats become declared string data; binary formats become
    files named like browsers name pasted images (``image.png``); local file
    URLs become files read lazily from disk.
    """

    transfer = MemoryDataTransfer()
    if mime is None:
        return transfer

    files: List[FileLike] = []
    for fmt in mime.formats():
        if not _is_transferable_format(fmt):
            continue
        try:
            raw = _mime_bytes(mime, fmt)
        except Exception as exc:
            logging.warning("Failed to read mime format %s: %s", fmt, exc)
            continue
        if not raw:
            continue
        if is_text_like(fmt) or fmt == URI_LIST:
            transfer.data[fmt] = raw.decode("utf-8", errors="replace")
        else:
            files.append(MemoryFile(data=raw, type=fmt, name=_pasted_file_name(fmt)))

    if mime.hasUrls():
        for url in mime.urls():
            if url.isLocalFile():
                files.append(LocalFile(url.toLocalFile()))

    transfer.file_list.extend(files)
    return transfer


def clipboard_item_from_mime_data(mime: Optional[QMimeData]) -> Optional[MemoryClipboardItem]:
    if mime is None:
        return None
    blobs = {}
    for fmt in mime.formats():
        if not _is_transferable_format(fmt):
            continue
        blobs[fmt] = MemoryBlob(_mime_bytes(mime, fmt), fmt)
    return MemoryClipboardItem(blobs) if blobs else None


async def mime_data_from_items(items: Sequence[ClipboardItemLike]) -> QMimeData:
    mime = QMimeData()
    for item in items:
        for fmt in item.types:
            raw = await (await item.get_type(fmt)).read()
            if fmt == "text/plain":
                mime.setText(raw.decode("utf-8"))
            elif fmt == "text/html":
                mime.setHtml(raw.decode("utf-8"))
            else:
                mime.setData(fmt, QByteArray(raw))
    return mime


class QtClipboardBackend:
    """Structured clipboard access through ``QClipboard``."""

    def __init__(self, clipboard: Optional[QClipboard] = None) -> None:
        self._clipboard = clipboard

    def _get_clipboard(self) -> QClipboard:
        if self._clipboard is not None:
            return self._clipboard
        if QGuiApplication.instance() is None:
            raise UnsupportedPlatformError("No Qt GUI application is running")
        return QGuiApplication.clipboard()

    def is_available(self) -> bool:
        return self._clipboard is not None or QGuiApplication.instance() is not None

    def is_secure_context(self) -> bool:
        # A desktop process reads the clipboard directly; there is no origin policy.
        return True

    async def read(self) -> List[MemoryClipboardItem]:
        item = clipboard_item_from_mime_data(self._get_clipboard().mimeData())
        return [item] if item is not None else []

    async def read_text(self) -> str:
        return self._get_clipboard().text()

    async def write(self, items: Sequence[ClipboardItemLike]) -> None:
        clipboard = self._get_clipboard()
        mime = await mime_data_from_items(items)
        clipboard.setMimeData(mime)
        logging.debug("Set clipboard mime data with formats %s", mime.formats())

    async def write_text(self, text: str) -> None:
        self._get_clipboard().setText(text)


class QtClipboardEventSource(QObject):
    """Turns clipboard changes and widget drops into paste/drop events.

    The clipboard ``dataChanged`` signal is connected while at least one
    paste listener is registered.
    """

    def __init__(self, clipboard: Optional[QClipboard] = None) -> None:
        super().__init__()
        self._clipboard = clipboard
        self._hub = EventHub()
        self._connected = False

    def add_listener(self, event: str, callback: EventCallback) -> None:
        self._hub.add_listener(event, callback)
        if event == EVENT_PASTE:
            self._connect()

    def remove_listener(self, event: str, callback: EventCallback) -> None:
        self._hub.remove_listener(event, callback)
        if event == EVENT_PASTE and self._hub.listener_count(EVENT_PASTE) == 0:
            self._disconnect()

    def deliver_paste(self, mime: Optional[QMimeData]) -> None:
        self._hub.dispatch_soon(EVENT_PASTE, transfer_from_mime_data(mime))

    def deliver_drop(self, mime: Optional[QMimeData]) -> None:
        """Call from a widget's ``dropEvent`` with ``event.mimeData()``."""

        self._hub.dispatch_soon(EVENT_DROP, transfer_from_mime_data(mime))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _clipboard_or_none(self) -> Optional[QClipboard]:
        if self._clipboard is not None:
            return self._clipboard
        if QGuiApplication.instance() is None:
            return None
        return QGuiApplication.clipboard()

    def _connect(self) -> None:
        if self._connected:
            return
        clipboard = self._clipboard_or_none()
        if clipboard is None:
            logging.debug("No clipboard to watch; paste events must be delivered manually")
            return
        clipboard.dataChanged.connect(self._on_clipboard_changed)
        self._connected = True

    def _disconnect(self) -> None:
        if not self._connected:
            return
        clipboard = self._clipboard_or_none()
        if clipboard is not None:
            try:
                clipboard.dataChanged.disconnect(self._on_clipboard_changed)
            except (RuntimeError, TypeError) as exc:
                logging.debug("Clipboard signal already disconnected: %s", exc)
        self._connected = False

    def _on_clipboard_changed(self) -> None:
        clipboard = self._clipboard_or_none()
        if clipboard is None:
            return
        mime = clipboard.mimeData()
        logging.debug("Clipboard changed: %s", describe_mime_data(mime))
        self.deliver_paste(mime)


class PyperclipCopier:
    """Legacy plain-text copy through pyperclip, with retries."""

    def __init__(self, retries: Optional[int] = None, delay: Optional[float] = None) -> None:
        self.retries = retries if retries is not None else SETTINGS.write_retries
        self.delay = delay if delay is not None else SETTINGS.write_retry_delay

    def copy(self, text: str) -> bool:
        for attempt in range(self.retries):
            try:
                pyperclip.copy(text)
            except PyperclipException as exc:
                if _NO_MECHANISM_HINT in str(exc):
                    raise UnsupportedPlatformError("pyperclip found no copy mechanism", exc) from exc
                logging.warning(
                    "pyperclip.copy failed (attempt %d/%d): %s", attempt + 1, self.retries, exc
                )
                time.sleep(self.delay)
                continue
            logging.debug("Set clipboard text via pyperclip on attempt %d", attempt + 1)
            return True
        logging.error("Failed to write clipboard using pyperclip after retries")
        return False


def describe_mime_data(mime: Optional[QMimeData]) -> str:
    """Describe Qt mime data for log lines."""

    if mime is None:
        return "mime(None)"
    parts: List[str] = []
    for fmt in mime.formats():
        parts.append(f"{fmt}={len(_mime_bytes(mime, fmt))}B")
    if mime.hasUrls():
        parts.append(f"urls={len(mime.urls())}")
    return f"mime({', '.join(parts) or 'empty'})"
