import asyncio
import pathlib
import sys
from unittest.mock import MagicMock

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from clipinspect.core.platform import MemoryDataTransfer, MemoryFile
from clipinspect.services.listeners import (
    EVENT_DROP,
    EVENT_PASTE,
    EventHub,
    ListenerHandle,
    enable_drop_listener,
    enable_paste_listener,
)
from clipinspect.services.parser import ClipboardParser


def _text_transfer(text="hi"):
    return MemoryDataTransfer({"text/plain": text})


def test_paste_listener_delivers_parse_results():
    hub = EventHub()
    results = []

    handle = enable_paste_listener(hub, ClipboardParser(), results.append)
    asyncio.run(hub.dispatch(EVENT_PASTE, _text_transfer()))

    assert handle.active
    assert [r.message for r in results] == ["Parsed 1 data items from paste event"]


def test_disable_unsubscribes_and_is_idempotent():
    hub = EventHub()
    results = []
    handle = enable_paste_listener(hub, ClipboardParser(), results.append)

    handle.disable()
    handle.disable()
    asyncio.run(hub.dispatch(EVENT_PASTE, _text_transfer()))

    assert not handle.active
    assert hub.listener_count(EVENT_PASTE) == 0
    assert results == []


def test_drop_listener_only_sees_drops():
    hub = EventHub()
    results = []
    enable_drop_listener(hub, ClipboardParser(), results.append)
    png = MemoryFile(data=b"abc", type="image/png", name="a.png")

    asyncio.run(hub.dispatch(EVENT_PASTE, _text_transfer()))
    asyncio.run(hub.dispatch(EVENT_DROP, MemoryDataTransfer(file_list=[png])))

    assert len(results) == 1
    assert results[0].message == "Parsed 1 data items from drop event"


def test_handle_as_context_manager():
    hub = EventHub()
    callback = MagicMock()

    with ListenerHandle(hub, [(EVENT_PASTE, callback)]):
        assert hub.listener_count(EVENT_PASTE) == 1

    assert hub.listener_count(EVENT_PASTE) == 0


def test_remove_listener_failure_is_logged_not_raised():
    source = MagicMock()
    source.remove_listener.side_effect = RuntimeError("gone")
    handle = ListenerHandle(source, [(EVENT_PASTE, MagicMock())])

    handle.disable()

    assert not handle.active


def test_dispatch_soon_without_running_loop():
    hub = EventHub()
    seen = []
    hub.add_listener(EVENT_PASTE, seen.append)

    hub.dispatch_soon(EVENT_PASTE, "payload")

    assert seen == ["payload"]


def test_dispatch_soon_inside_loop_schedules_task():
    hub = EventHub()
    seen = []

    async def callback(payload):
        seen.append(payload)

    hub.add_listener(EVENT_DROP, callback)

    async def scenario():
        hub.dispatch_soon(EVENT_DROP, "payload")
        assert seen == []
        await asyncio.sleep(0)
        await asyncio.sleep(0)

    asyncio.run(scenario())

    assert seen == ["payload"]
