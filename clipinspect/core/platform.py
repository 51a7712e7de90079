"""Platform-facing shapes consumed by the pipeline.

The extractor understands two payload shapes: a DataTransfer-like object
(paste and drop events) and a ClipboardItem-like object (direct clipboard
reads). Both are described as protocols so any adapter can feed the pipeline;
the in-memory classes below are what the Qt adapter produces.
"""

from __future__ import annotations

import asyncio
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
    runtime_checkable,
)

TEXT_BLOB_PREFIXES = ("text/",)


def is_text_like(mime: str) -> bool:
    mime = (mime or "").lower()
    return mime.startswith(TEXT_BLOB_PREFIXES) or mime.split(";")[0].strip() == "application/json"


@runtime_checkable
class Blob(Protocol):
    type: str

    @property
    def size(self) -> int:
        ...

    async def read(self) -> bytes:
        ...

    async def text(self) -> str:
        ...


@runtime_checkable
class FileLike(Blob, Protocol):
    name: str


@runtime_checkable
class TransferItem(Protocol):
    kind: str
    type: str

    def get_as_file(self) -> Optional[FileLike]:
        ...


@runtime_checkable
class DataTransferLike(Protocol):
    """Payload of a paste or drop event."""

    @property
    def types(self) -> Sequence[str]:
        ...

    def get_data(self, mime: str) -> str:
        ...

    @property
    def files(self) -> Sequence[FileLike]:
        ...

    @property
    def items(self) -> Sequence[TransferItem]:
        ...


@runtime_checkable
class ClipboardItemLike(Protocol):
    """One item returned by an asynchronous clipboard read."""

    @property
    def types(self) -> Sequence[str]:
        ...

    async def get_type(self, mime: str) -> Blob:
        ...


@runtime_checkable
class ClipboardBackend(Protocol):
    """Asynchronous system clipboard access (the structured tier)."""

    def is_available(self) -> bool:
        ...

    def is_secure_context(self) -> bool:
        ...

    async def read(self) -> Sequence[ClipboardItemLike]:
        ...

    async def read_text(self) -> str:
        ...

    async def write(self, items: Sequence[ClipboardItemLike]) -> None:
        ...

    async def write_text(self, text: str) -> None:
        ...


@runtime_checkable
class LegacyCopier(Protocol):
    """Plain-text only copy mechanism; returns ``False`` when the copy is rejected."""

    def copy(self, text: str) -> bool:
        ...


# ----------------------------------------------------------------------
# In-memory implementations
# ----------------------------------------------------------------------
@dataclass
class MemoryBlob:
    data: bytes = b""
    type: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    async def read(self) -> bytes:
        return bytes(self.data)

    async def text(self) -> str:
        return (await self.read()).decode("utf-8", errors="replace")


@dataclass
class MemoryFile(MemoryBlob):
    name: str = ""
    last_modified: Optional[int] = None
    url: Optional[str] = None


class LocalFile:
    """File on disk, read lazily off the event loop."""

    def __init__(self, path: Path | str, mime: Optional[str] = None) -> None:
        self.path = Path(path)
        self.name = self.path.name
        self.type = mime if mime is not None else (mimetypes.guess_type(self.name)[0] or "")
        self.url = self.path.resolve().as_uri()
        try:
            stat = self.path.stat()
        except OSError:
            self._size = 0
            self.last_modified = None
        else:
            self._size = stat.st_size
            self.last_modified = int(stat.st_mtime * 1000)

    @property
    def size(self) -> int:
        return self._size

    async def read(self) -> bytes:
        return await asyncio.to_thread(self.path.read_bytes)

    async def text(self) -> str:
        return (await self.read()).decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        return f"LocalFile({str(self.path)!r}, type={self.type!r})"


@dataclass
class MemoryTransferItem:
    kind: str
    type: str
    file: Optional[FileLike] = None

    def get_as_file(self) -> Optional[FileLike]:
        return self.file if self.kind == "file" else None


@dataclass
class MemoryDataTransfer:
    """DataTransfer built from a mapping of MIME type to string data."""

    data: Dict[str, str] = field(default_factory=dict)
    file_list: List[FileLike] = field(default_factory=list)
    item_list: Optional[List[TransferItem]] = None

    @property
    def types(self) -> List[str]:
        types = list(self.data.keys())
        if self.file_list and "Files" not in types:
            types.append("Files")
        return types

    def get_data(self, mime: str) -> str:
        return self.data.get(mime, "")

    @property
    def files(self) -> List[FileLike]:
        return list(self.file_list)

    @property
    def items(self) -> List[TransferItem]:
        if self.item_list is not None:
            return list(self.item_list)
        items: List[TransferItem] = [
            MemoryTransferItem(kind="string", type=mime) for mime in self.data
        ]
        items.extend(
            MemoryTransferItem(kind="file", type=f.type, file=f) for f in self.file_list
        )
        return items


@dataclass
class MemoryClipboardItem:
    blobs: Dict[str, Blob] = field(default_factory=dict)

    @property
    def types(self) -> List[str]:
        return list(self.blobs.keys())

    async def get_type(self, mime: str) -> Blob:
        try:
            return self.blobs[mime]
        except KeyError:
            raise LookupError(f"Type {mime!r} is not present on this clipboard item") from None

    @classmethod
    def from_text(cls, text: str, mime: str = "text/plain") -> "MemoryClipboardItem":
        return cls({mime: MemoryBlob(text.encode("utf-8"), mime)})
