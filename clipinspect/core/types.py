"""Core data types shared by the extraction, classification and write paths."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple, Union

if TYPE_CHECKING:  # pragma: no cover
    from .metadata import Metadata


class DataKind(str, Enum):
    """Closed classification assigned to one clipboard or drop entry."""

    TEXT_PLAIN = "text/plain"
    TEXT_HTML = "text/html"
    TEXT_RTF = "text/rtf"
    IMAGE_PNG = "image/png"
    IMAGE_JPEG = "image/jpeg"
    IMAGE_GIF = "image/gif"
    IMAGE_WEBP = "image/webp"
    IMAGE_SVG = "image/svg+xml"
    IMAGE_BMP = "image/bmp"
    IMAGE_TIFF = "image/tiff"
    APPLICATION_JSON = "application/json"
    APPLICATION_XML = "application/xml"
    APPLICATION_PDF = "application/pdf"
    FILES = "files"
    UNKNOWN = "unknown"

    @property
    def is_image(self) -> bool:
        return self.value.startswith("image/")

    @property
    def is_text(self) -> bool:
        return self in TEXT_KINDS


TEXT_KINDS = frozenset(
    {
        DataKind.TEXT_PLAIN,
        DataKind.TEXT_HTML,
        DataKind.TEXT_RTF,
        DataKind.APPLICATION_JSON,
        DataKind.APPLICATION_XML,
    }
)


class SourceChannel(str, Enum):
    """Extraction source a payload exposes data through."""

    DECLARED_TYPE = "declared-type"
    FILE_LIST = "file-list"
    ITEM_LIST = "item-list"


class TextFormat(str, Enum):
    """Formats accepted by the write-back path."""

    PLAIN = "text/plain"
    HTML = "text/html"
    RTF = "text/rtf"


class WriteTier(str, Enum):
    STRUCTURED = "structured"
    LEGACY = "legacy"


@dataclass(frozen=True)
class FileDescriptor:
    """Name, size and type of a file seen on the clipboard or in a drop."""

    name: str
    size: int
    mime_hint: str
    preview_handle: Optional[str] = None
    last_modified: Optional[int] = None

    @property
    def dedup_key(self) -> Tuple[str, int, str]:
        return (self.name, self.size, self.mime_hint)

    def to_dict(self) -> dict:
        data = {"name": self.name, "size": self.size, "type": self.mime_hint}
        if self.preview_handle is not None:
            data["url"] = self.preview_handle
        if self.last_modified is not None:
            data["last_modified"] = self.last_modified
        return data


Payload = Union[str, FileDescriptor]


@dataclass(frozen=True)
class RawEntry:
    """Unclassified, source-tagged unit produced by extraction.

    ``origin`` names the platform shape the entry came from (``datatransfer``,
    ``clipboarditem`` or ``clipboard``) and ends up in the item's source tag.
    """

    source_channel: SourceChannel
    mime_hint: str
    payload: Payload
    origin: str = "datatransfer"
    item_kind: Optional[str] = None
    item_type: Optional[str] = None

    @property
    def is_file(self) -> bool:
        return isinstance(self.payload, FileDescriptor)

    @property
    def source_tag(self) -> str:
        suffix = {
            SourceChannel.DECLARED_TYPE: "types",
            SourceChannel.FILE_LIST: "files",
            SourceChannel.ITEM_LIST: "items",
        }[self.source_channel]
        if self.origin == "clipboard":
            return "clipboard-text"
        return f"{self.origin}-{suffix}"


@dataclass(frozen=True)
class DataItem:
    """Classified, metadata-enriched record exposed to callers."""

    kind: DataKind
    content: Payload
    byte_size: int
    metadata: "Metadata"
    preview_handle: Optional[str] = None

    def to_dict(self) -> dict:
        content = self.content
        data = {
            "type": self.kind.value,
            "content": content.to_dict() if isinstance(content, FileDescriptor) else content,
            "size": self.byte_size,
            "metadata": self.metadata.to_dict(),
        }
        if self.preview_handle is not None:
            data["preview"] = self.preview_handle
        return data


@dataclass(frozen=True)
class ParseResult:
    """Outcome of one complete extraction cycle."""

    success: bool
    message: str
    items: Tuple[DataItem, ...] = field(default_factory=tuple)
    timestamp_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "data": [item.to_dict() for item in self.items],
            "timestamp": self.timestamp_ms,
        }


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    timestamp_ms: int
    result: ParseResult
    summary: str


@dataclass(frozen=True)
class CopyResult:
    """Write-back outcome.

    ``tier`` tells which mechanism produced the result (``None`` when no
    platform call was attempted) and ``downgraded`` is set when an HTML request
    was written as plain text.
    """

    success: bool
    message: str
    tier: Optional[WriteTier] = None
    downgraded: bool = False
