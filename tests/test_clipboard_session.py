import asyncio
import pathlib
import sys
from unittest.mock import MagicMock

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from clipinspect.core.platform import MemoryClipboardItem, MemoryDataTransfer
from clipinspect.core.types import ParseResult
from clipinspect.services.clipboard_session import ClipboardSession
from clipinspect.services.history import HistoryLedger
from clipinspect.services.listeners import EVENT_DROP, EVENT_PASTE, EventHub
from clipinspect.services.parser import ClipboardParser
from clipinspect.services.writeback import ClipboardWriter

from fakes import FakeBackend


class GatedParser:
    """Parser whose clipboard reads finish only when the test releases them."""

    def __init__(self):
        self.pending = []

    async def parse_clipboard(self, origin):
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future

    def release(self, index, result):
        self.pending[index].set_result(result)


def _session(backend=None, parser=None, **kwargs):
    backend = backend or FakeBackend([MemoryClipboardItem.from_text("hello")])
    session = ClipboardSession(
        parser or ClipboardParser(backend),
        ClipboardWriter(backend, MagicMock()),
        history=HistoryLedger(max_items=5),
        **kwargs,
    )
    shown, statuses = [], []
    session.result_changed.connect(lambda result: shown.append(result))
    session.status_message.connect(lambda level, text: statuses.append((level, text)))
    return session, shown, statuses


def test_handle_parse_publishes_and_records():
    session, shown, statuses = _session()

    result = asyncio.run(session.handle_parse())

    assert shown == [result]
    assert session.current_result is result
    assert len(session.history) == 1
    assert statuses == [("success", "Parsed 1 data items")]


def test_failed_parse_is_shown_but_not_recorded():
    session, shown, statuses = _session(FakeBackend(secure=False))

    result = asyncio.run(session.handle_parse())

    assert not result.success
    assert shown == [result]
    assert len(session.history) == 0
    assert statuses[0][0] == "error"


def test_slow_older_parse_does_not_overwrite_newer_result():
    parser = GatedParser()
    session, shown, _ = _session(parser=parser)
    older = ParseResult(True, "older", timestamp_ms=1)
    newer = ParseResult(True, "newer", timestamp_ms=2)

    async def scenario():
        first = asyncio.ensure_future(session.handle_parse())
        await asyncio.sleep(0)
        second = asyncio.ensure_future(session.handle_parse())
        await asyncio.sleep(0)
        parser.release(1, newer)
        await second
        parser.release(0, older)
        await first

    asyncio.run(scenario())

    assert shown == [newer]
    assert session.current_result is newer
    assert len(session.history) == 2


def test_parse_mode_toggles_paste_listener():
    hub = EventHub()
    session, _, _ = _session(event_source=hub)

    session.set_mode("parse")
    session.set_mode("parse")
    assert session.paste_listener_active
    assert hub.listener_count(EVENT_PASTE) == 1

    session.set_mode("write")
    assert not session.paste_listener_active
    assert hub.listener_count(EVENT_PASTE) == 0


def test_unknown_mode_is_rejected():
    session, _, _ = _session()
    with pytest.raises(ValueError):
        session.set_mode("preview")


def test_paste_event_is_parsed_automatically():
    hub = EventHub()
    session, shown, statuses = _session(event_source=hub)
    session.enable_paste_listener()

    asyncio.run(hub.dispatch(EVENT_PASTE, MemoryDataTransfer({"text/plain": "pasted"})))

    assert shown[0].items[0].content == "pasted"
    assert statuses == [("success", "Paste detected, clipboard content parsed automatically")]


def test_drop_listener_and_close():
    hub = EventHub()
    session, shown, _ = _session(event_source=hub)
    session.enable_drop_listener()

    asyncio.run(hub.dispatch(EVENT_DROP, MemoryDataTransfer({"text/plain": "dropped"})))
    session.close()

    assert shown[0].message == "Parsed 1 data items from drop event"
    assert not session.drop_listener_active
    assert hub.listener_count(EVENT_DROP) == 0


def test_enabling_listener_without_source_fails():
    session, _, _ = _session()
    with pytest.raises(ValueError):
        session.enable_paste_listener()


def test_handle_copy_emits_copy_result():
    session, _, statuses = _session()
    copies = []
    session.copy_finished.connect(lambda result: copies.append(result))

    result = asyncio.run(session.handle_copy("hello"))

    assert copies == [result]
    assert result.success
    assert statuses == [("success", "Copied to clipboard")]


def test_history_load_and_clear():
    session, shown, _ = _session()
    changes = []
    session.history_changed.connect(lambda: changes.append(True))
    asyncio.run(session.handle_parse())
    entry = session.history.list()[0]

    session.clear_parse_data()
    assert session.current_result is None

    session.load_history_item(entry)
    assert session.current_result is entry.result
    assert shown[-1] == entry.result

    session.clear_history()
    assert len(session.history) == 0
    assert session.toggle_history_visibility() is True
    assert len(changes) == 3
