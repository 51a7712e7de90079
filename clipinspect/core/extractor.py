"""Pull raw entries out of paste/drop transfers and clipboard items.

Three channels are read, always in this order: declared types, the file
list and the item list. A failing entry is logged and skipped; it never
stops the remaining entries or channels.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, List, Optional

from clipinspect.config import SETTINGS

from .platform import Blob, ClipboardItemLike, DataTransferLike, FileLike, is_text_like
from .types import FileDescriptor, RawEntry, SourceChannel

ORIGIN_DATATRANSFER = "datatransfer"
ORIGIN_CLIPBOARDITEM = "clipboarditem"


def is_data_transfer(payload: Any) -> bool:
    return callable(getattr(payload, "get_data", None))


def is_clipboard_item(payload: Any) -> bool:
    return callable(getattr(payload, "get_type", None))


async def make_preview_handle(
    blob: Blob, max_inline_bytes: Optional[int] = None
) -> Optional[str]:
    """Return a URL the UI can render *blob* from.

    Blobs that already live somewhere addressable (``url`` attribute) reuse
    that URL; others are inlined as ``data:`` URLs up to *max_inline_bytes*.
    The caller owns the handle.
    """

    url = getattr(blob, "url", None)
    if url:
        return str(url)

    limit = SETTINGS.preview_max_inline_bytes if max_inline_bytes is None else max_inline_bytes
    if blob.size > limit:
        logging.debug("Preview skipped, %d bytes exceeds inline limit %d", blob.size, limit)
        return None
    raw = await blob.read()
    encoded = base64.b64encode(raw).decode("ascii")
    return f"data:{blob.type or 'application/octet-stream'};base64,{encoded}"


async def describe_file(
    file: FileLike, max_inline_bytes: Optional[int] = None
) -> FileDescriptor:
    """Build a :class:`FileDescriptor`, eagerly allocating previews for images."""

    mime = getattr(file, "type", "") or ""
    preview = None
    if mime.lower().startswith("image/"):
        preview = await make_preview_handle(file, max_inline_bytes)
    return FileDescriptor(
        name=getattr(file, "name", "") or "",
        size=int(file.size),
        mime_hint=mime,
        preview_handle=preview,
        last_modified=getattr(file, "last_modified", None),
    )


# ----------------------------------------------------------------------
# DataTransfer (paste and drop events)
# ----------------------------------------------------------------------
def _channel(payload: Any, name: str) -> List[Any]:
    """Snapshot one channel of *payload*; a failing getter yields no entries."""

    try:
        return list(getattr(payload, name, None) or [])
    except Exception as exc:
        logging.warning("Skipping %s channel of %s: %s", name, type(payload).__name__, exc)
        return []


def _declared_entries(transfer: DataTransferLike) -> List[RawEntry]:
    entries: List[RawEntry] = []
    for mime in _channel(transfer, "types"):
        try:
            data = transfer.get_data(mime)
        except Exception as exc:
            logging.warning("Skipping declared type %s: %s", mime, exc)
            continue
        if not data:
            # "Files" and friends advertise a type without string data
            continue
        entries.append(
            RawEntry(
                source_channel=SourceChannel.DECLARED_TYPE,
                mime_hint=mime,
                payload=str(data),
                origin=ORIGIN_DATATRANSFER,
            )
        )
    return entries


async def _file_list_entries(
    transfer: DataTransferLike, max_inline_bytes: Optional[int]
) -> List[RawEntry]:
    entries: List[RawEntry] = []
    for file in _channel(transfer, "files"):
        if file is None:
            continue
        try:
            descriptor = await describe_file(file, max_inline_bytes)
        except Exception as exc:
            logging.warning("Skipping transfer file %r: %s", getattr(file, "name", "?"), exc)
            continue
        entries.append(
            RawEntry(
                source_channel=SourceChannel.FILE_LIST,
                mime_hint=descriptor.mime_hint,
                payload=descriptor,
                origin=ORIGIN_DATATRANSFER,
            )
        )
    return entries


async def _item_list_entries(
    transfer: DataTransferLike, max_inline_bytes: Optional[int]
) -> List[RawEntry]:
    entries: List[RawEntry] = []
    for item in _channel(transfer, "items"):
        try:
            file = item.get_as_file()
            if file is None:
                continue
            descriptor = await describe_file(file, max_inline_bytes)
        except Exception as exc:
            logging.warning(
                "Skipping transfer item (kind=%s, type=%s): %s",
                getattr(item, "kind", "?"),
                getattr(item, "type", "?"),
                exc,
            )
            continue
        entries.append(
            RawEntry(
                source_channel=SourceChannel.ITEM_LIST,
                mime_hint=descriptor.mime_hint,
                payload=descriptor,
                origin=ORIGIN_DATATRANSFER,
                item_kind=getattr(item, "kind", None),
                item_type=getattr(item, "type", None),
            )
        )
    return entries


async def extract_data_transfer(
    transfer: Optional[DataTransferLike], max_inline_bytes: Optional[int] = None
) -> List[RawEntry]:
    if transfer is None:
        return []
    entries = _declared_entries(transfer)
    entries.extend(await _file_list_entries(transfer, max_inline_bytes))
    entries.extend(await _item_list_entries(transfer, max_inline_bytes))
    return entries


# ----------------------------------------------------------------------
# ClipboardItem (asynchronous clipboard reads)
# ----------------------------------------------------------------------
async def _read_declared_type(
    item: ClipboardItemLike, mime: str, max_inline_bytes: Optional[int]
) -> Optional[RawEntry]:
    blob = await item.get_type(mime)
    if is_text_like(getattr(blob, "type", "") or ""):
        text = await blob.text()
        if not text:
            return None
        payload: Any = text
    else:
        payload = await describe_file(blob, max_inline_bytes)
    return RawEntry(
        source_channel=SourceChannel.DECLARED_TYPE,
        mime_hint=mime,
        payload=payload,
        origin=ORIGIN_CLIPBOARDITEM,
    )


async def extract_clipboard_item(
    item: Optional[ClipboardItemLike], max_inline_bytes: Optional[int] = None
) -> List[RawEntry]:
    if item is None:
        return []
    types = _channel(item, "types")
    # Reads run concurrently; gather keeps the advertised order.
    results = await asyncio.gather(
        *(_read_declared_type(item, mime, max_inline_bytes) for mime in types),
        return_exceptions=True,
    )
    entries: List[RawEntry] = []
    for mime, result in zip(types, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logging.warning("Skipping clipboard type %s: %s", mime, result)
            continue
        if result is not None:
            entries.append(result)
    return entries


async def extract(payload: Any, max_inline_bytes: Optional[int] = None) -> List[RawEntry]:
    """Extract raw entries from a DataTransfer-like or ClipboardItem-like payload.

    Unknown or missing payloads yield an empty list.
    """

    if payload is None:
        return []
    if is_data_transfer(payload):
        return await extract_data_transfer(payload, max_inline_bytes)
    if is_clipboard_item(payload):
        return await extract_clipboard_item(payload, max_inline_bytes)
    logging.debug("Unsupported transfer payload type: %s", type(payload).__name__)
    return []
