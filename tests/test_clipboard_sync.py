import asyncio
import pathlib
import sys
from unittest.mock import MagicMock, patch

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest
from PySide6.QtCore import QByteArray, QMimeData, QUrl

from clipinspect.core.errors import UnsupportedPlatformError
from clipinspect.core.platform import LocalFile, MemoryClipboardItem
from clipinspect.core.types import DataKind, FileDescriptor
from clipinspect.services.parser import ClipboardParser
from clipinspect.utils.clipboard_sync import (
    PyperclipCopier,
    PyperclipException,
    QtClipboardBackend,
    QtClipboardEventSource,
    describe_mime_data,
    transfer_from_mime_data,
)


def _mime(text=None, html=None):
    mime = QMimeData()
    if text is not None:
        mime.setText(text)
    if html is not None:
        mime.setHtml(html)
    return mime


def test_transfer_from_none_is_empty():
    transfer = transfer_from_mime_data(None)
    assert transfer.types == []
    assert transfer.files == []


def test_text_formats_become_declared_data():
    transfer = transfer_from_mime_data(_mime(text="hello", html="<b>hello</b>"))

    assert transfer.get_data("text/plain") == "hello"
    assert transfer.get_data("text/html") == "<b>hello</b>"
    assert transfer.files == []


def test_binary_formats_become_pasted_files():
    mime = QMimeData()
    mime.setData("image/png", QByteArray(b"\x89PNG"))

    transfer = transfer_from_mime_data(mime)

    (pasted,) = transfer.files
    assert pasted.name == "image.png"
    assert pasted.type == "image/png"
    assert pasted.size == 4
    assert "Files" in transfer.types


def test_local_file_urls_become_files(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")
    mime = QMimeData()
    mime.setUrls([QUrl.fromLocalFile(str(path))])

    transfer = transfer_from_mime_data(mime)
    result = asyncio.run(ClipboardParser().parse_transfer(transfer, "drop"))

    assert any(isinstance(f, LocalFile) and f.name == "notes.txt" for f in transfer.files)
    file_items = [item for item in result.items if isinstance(item.content, FileDescriptor)]
    assert len(file_items) == 1
    assert file_items[0].content.name == "notes.txt"
    assert file_items[0].kind is DataKind.TEXT_PLAIN


def test_backend_reads_clipboard_mime_data():
    clipboard = MagicMock()
    clipboard.mimeData.return_value = _mime(text="hello")
    clipboard.text.return_value = "hello"
    backend = QtClipboardBackend(clipboard)

    items = asyncio.run(backend.read())

    assert backend.is_available()
    assert backend.is_secure_context()
    assert "text/plain" in items[0].types
    assert asyncio.run(backend.read_text()) == "hello"


def test_backend_read_of_empty_clipboard():
    clipboard = MagicMock()
    clipboard.mimeData.return_value = QMimeData()

    assert asyncio.run(QtClipboardBackend(clipboard).read()) == []


def test_backend_write_sets_mime_data():
    clipboard = MagicMock()
    backend = QtClipboardBackend(clipboard)

    asyncio.run(backend.write([MemoryClipboardItem.from_text("<b>x</b>", "text/html")]))
    asyncio.run(backend.write_text("probe"))

    written = clipboard.setMimeData.call_args[0][0]
    assert written.html() == "<b>x</b>"
    clipboard.setText.assert_called_once_with("probe")


def test_backend_without_application_is_unavailable():
    with patch("clipinspect.utils.clipboard_sync.QGuiApplication") as app_cls:
        app_cls.instance.return_value = None
        backend = QtClipboardBackend()

        assert not backend.is_available()
        with pytest.raises(UnsupportedPlatformError):
            asyncio.run(backend.read_text())


def test_event_source_connects_while_paste_listeners_exist():
    clipboard = MagicMock()
    source = QtClipboardEventSource(clipboard)
    seen = []

    def callback(transfer):
        seen.append(transfer)

    source.add_listener("paste", callback)
    clipboard.mimeData.return_value = _mime(text="copied")
    source._on_clipboard_changed()
    source.remove_listener("paste", callback)

    clipboard.dataChanged.connect.assert_called_once()
    clipboard.dataChanged.disconnect.assert_called_once()
    assert seen[0].get_data("text/plain") == "copied"


def test_event_source_delivers_drops():
    source = QtClipboardEventSource(MagicMock())
    seen = []
    source.add_listener("drop", seen.append)

    source.deliver_drop(_mime(text="dropped"))

    assert seen[0].get_data("text/plain") == "dropped"


def test_pyperclip_copier_retries_transient_errors():
    with patch("clipinspect.utils.clipboard_sync.pyperclip.copy") as copy, patch(
        "clipinspect.utils.clipboard_sync.time.sleep"
    ) as sleep:
        copy.side_effect = [PyperclipException("busy"), None]

        assert PyperclipCopier(retries=3, delay=0.01).copy("hello") is True

    assert copy.call_count == 2
    sleep.assert_called_once_with(0.01)


def test_pyperclip_copier_gives_up_after_retries():
    with patch("clipinspect.utils.clipboard_sync.pyperclip.copy") as copy, patch(
        "clipinspect.utils.clipboard_sync.time.sleep"
    ):
        copy.side_effect = PyperclipException("busy")

        assert PyperclipCopier(retries=2, delay=0).copy("hello") is False

    assert copy.call_count == 2


def test_pyperclip_without_mechanism_raises():
    message = "Pyperclip could not find a copy/paste mechanism for your system."
    with patch("clipinspect.utils.clipboard_sync.pyperclip.copy") as copy:
        copy.side_effect = PyperclipException(message)

        with pytest.raises(UnsupportedPlatformError):
            PyperclipCopier(retries=3, delay=0).copy("hello")

    assert copy.call_count == 1


def test_describe_mime_data():
    assert describe_mime_data(None) == "mime(None)"
    assert "text/plain=5B" in describe_mime_data(_mime(text="hello"))
