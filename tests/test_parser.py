import asyncio
import pathlib
import sys
from unittest.mock import patch

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from clipinspect.core.platform import MemoryClipboardItem, MemoryDataTransfer, MemoryFile
from clipinspect.core.types import DataKind, ParseResult
from clipinspect.services.parser import (
    ClipboardParser,
    ResultSlot,
    is_clipboard_api_supported,
    is_read_supported,
)

from fakes import FakeBackend


def _parser(backend):
    return ClipboardParser(backend, clock=lambda: 1.5)


class ExplodingTransfer:
    """Transfer whose declared-type channel cannot be enumerated."""

    @property
    def types(self):
        raise RuntimeError("boom")

    def get_data(self, mime):
        return ""

    files = [MemoryFile(data=b"%PDF", type="application/pdf", name="doc.pdf")]
    items = []


DEEPLY_NESTED = "[" * 100000 + "]" * 100000


def test_parse_clipboard_reads_every_item():
    backend = FakeBackend(
        [MemoryClipboardItem.from_text("hello"), MemoryClipboardItem.from_text("<b>x</b>", "text/html")]
    )

    result = asyncio.run(_parser(backend).parse_clipboard())

    assert result.success
    assert result.message == "Parsed 2 data items"
    assert result.timestamp_ms == 1500
    assert [item.kind for item in result.items] == [DataKind.TEXT_PLAIN, DataKind.TEXT_HTML]
    assert result.items[0].metadata.source == "clipboarditem-types"


def test_empty_read_falls_back_to_plain_text():
    backend = FakeBackend([], text='{"a": 1}')

    result = asyncio.run(_parser(backend).parse_clipboard())

    (item,) = result.items
    assert item.kind is DataKind.APPLICATION_JSON
    assert item.metadata.source == "clipboard-text"


def test_empty_clipboard_is_a_successful_empty_result():
    result = asyncio.run(_parser(FakeBackend([], text="")).parse_clipboard())

    assert result.success
    assert result.items == ()
    assert result.message == "Parsed 0 data items"


def test_missing_backend_is_reported_as_failure():
    result = asyncio.run(_parser(None).parse_clipboard())

    assert not result.success
    assert result.message == "Parse failed: Clipboard API is not supported"
    assert result.items == ()


def test_insecure_context_is_reported_as_failure():
    backend = FakeBackend([MemoryClipboardItem.from_text("x")], secure=False)

    result = asyncio.run(_parser(backend).parse_clipboard())

    assert not result.success
    assert "secure context" in result.message
    assert backend.read_calls == 0


def test_read_error_is_reported_as_failure():
    result = asyncio.run(_parser(FakeBackend(read_error=PermissionError("denied"))).parse_clipboard())

    assert not result.success
    assert result.message == "Parse failed: denied"


def test_paste_transfer_is_parsed():
    transfer = MemoryDataTransfer({"text/plain": "pasted"})

    result = asyncio.run(_parser(None).parse_transfer(transfer, "paste"))

    assert result.success
    assert result.message == "Parsed 1 data items from paste event"
    assert result.items[0].content == "pasted"


def test_empty_paste_falls_back_to_clipboard_read():
    backend = FakeBackend([MemoryClipboardItem.from_text("from clipboard")])

    result = asyncio.run(_parser(backend).parse_transfer(MemoryDataTransfer(), "paste"))

    assert backend.read_calls == 1
    assert result.message == "Parsed 1 data items from paste event"
    assert result.items[0].content == "from clipboard"


def test_empty_drop_never_reads_clipboard():
    backend = FakeBackend([MemoryClipboardItem.from_text("ignored")])

    result = asyncio.run(_parser(backend).parse_transfer(MemoryDataTransfer(), "drop"))

    assert backend.read_calls == 0
    assert result.success
    assert result.message == "Parsed 0 data items from drop event"


def test_transfer_failure_is_reported_per_origin():
    parser = _parser(None)

    with patch.object(parser, "parse_payload", side_effect=RuntimeError("boom")):
        result = asyncio.run(parser.parse_transfer(MemoryDataTransfer({"text/plain": "x"}), "drop"))

    assert not result.success
    assert result.message == "Drop handling failed: boom"


def test_capability_checks():
    assert not is_clipboard_api_supported(None)
    assert is_clipboard_api_supported(FakeBackend())
    assert not is_read_supported(FakeBackend(secure=False))
    assert is_read_supported(FakeBackend())


def test_result_slot_rejects_older_cycles():
    slot = ResultSlot()
    older_ticket = slot.begin()
    newer_ticket = slot.begin()
    older = ParseResult(True, "older")
    newer = ParseResult(True, "newer")

    assert slot.offer(newer_ticket, newer)
    assert not slot.offer(older_ticket, older)
    assert slot.current is newer


def test_result_slot_accepts_in_order_cycles():
    slot = ResultSlot()
    first = ParseResult(True, "first")
    second = ParseResult(True, "second")

    assert slot.offer(slot.begin(), first)
    assert slot.offer(slot.begin(), second)
    assert slot.current is second


def test_result_slot_set_overrides_pending_cycles():
    slot = ResultSlot()
    pending = slot.begin()
    loaded = ParseResult(True, "loaded")

    slot.set(loaded)

    assert not slot.offer(pending, ParseResult(True, "late"))
    assert slot.current is loaded


def test_failing_channel_getter_keeps_other_channels():
    result = asyncio.run(_parser(None).parse_transfer(ExplodingTransfer(), "drop"))

    assert result.success
    assert [item.kind for item in result.items] == [DataKind.APPLICATION_PDF]


def test_deeply_nested_text_does_not_sink_the_transfer():
    transfer = MemoryDataTransfer({"text/plain": DEEPLY_NESTED, "text/html": "<b>x</b>"})

    result = asyncio.run(_parser(None).parse_transfer(transfer, "drop"))

    assert result.success
    assert [item.kind for item in result.items] == [DataKind.TEXT_PLAIN, DataKind.TEXT_HTML]
    assert result.items[1].content == "<b>x</b>"
