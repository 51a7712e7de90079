"""Turn raw entries into classified, deduplicated data items."""

from __future__ import annotations

import logging
from typing import Iterable, List, Set, Tuple

from clipinspect.utils.formatting import describe_item, format_file_size, utf8_size

from .analyzer import analyze_text
from .classifier import classify
from .metadata import FileMetadata
from .types import DataItem, FileDescriptor, RawEntry, SourceChannel

CHANNEL_ORDER = (
    SourceChannel.DECLARED_TYPE,
    SourceChannel.FILE_LIST,
    SourceChannel.ITEM_LIST,
)


def order_entries(entries: Iterable[RawEntry]) -> List[RawEntry]:
    """Stable sort by channel precedence; order inside a channel is kept."""

    rank = {channel: index for index, channel in enumerate(CHANNEL_ORDER)}
    return sorted(entries, key=lambda entry: rank[entry.source_channel])


def _text_item(entry: RawEntry, text: str) -> DataItem:
    size = utf8_size(text)
    metadata = analyze_text(text, entry.mime_hint, byte_size=size)
    return DataItem(
        kind=classify(entry.mime_hint, text),
        content=text,
        byte_size=size,
        metadata=metadata.with_source(entry.source_tag),
    )


def _file_item(entry: RawEntry, descriptor: FileDescriptor) -> DataItem:
    kind = classify(entry.mime_hint, descriptor)
    metadata = FileMetadata(
        mime_hint=entry.mime_hint,
        formatted_size=format_file_size(descriptor.size),
        source=entry.source_tag,
        file_info=descriptor,
        item_kind=entry.item_kind,
        item_type=entry.item_type,
    )
    preview = descriptor.preview_handle if kind.is_image else None
    return DataItem(
        kind=kind,
        content=descriptor,
        byte_size=descriptor.size,
        metadata=metadata,
        preview_handle=preview,
    )


def normalize(entries: Iterable[RawEntry]) -> List[DataItem]:
    """Classify *entries* and drop files seen through more than one channel.

    Declared-type entries are all kept. File entries are keyed on
    ``(name, size, mime_hint)`` and the first one wins, with declared types
    processed before the file list and the file list before the item list.
    """

    items: List[DataItem] = []
    seen_files: Set[Tuple[str, int, str]] = set()

    for entry in order_entries(entries):
        payload = entry.payload
        if isinstance(payload, FileDescriptor):
            if entry.source_channel is not SourceChannel.DECLARED_TYPE:
                key = payload.dedup_key
                if key in seen_files:
                    logging.debug(
                        "Dropping duplicate file %r seen via %s",
                        payload.name,
                        entry.source_channel.value,
                    )
                    continue
                seen_files.add(key)
            item = _file_item(entry, payload)
        elif isinstance(payload, str):
            item = _text_item(entry, payload)
        else:
            logging.warning(
                "Skipping entry from %s with unsupported payload %s",
                entry.source_tag,
                type(payload).__name__,
            )
            continue
        logging.debug("Normalized %s from %s", describe_item(item), entry.source_tag)
        items.append(item)

    return items
