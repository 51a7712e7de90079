"""Per-kind metadata records attached to classified data items.

Every record carries the common subset (``mime_hint``, ``formatted_size`` and
``source``). The text family adds statistics and language information, and the
HTML, RTF and JSON variants add their structural sub-records. Which variant an
item gets is decided by the kind the classifier assigns.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Optional

from .types import FileDescriptor


def _without_none(data: Dict[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, dict):
            value = _without_none(value)
        cleaned[key] = value
    return cleaned


@dataclass(frozen=True)
class TextStats:
    lines: int = 0
    words: int = 0
    characters: int = 0
    characters_no_spaces: int = 0


@dataclass(frozen=True)
class HtmlStructure:
    has_doctype: bool = False
    has_html_tag: bool = False
    has_head_tag: bool = False
    has_body_tag: bool = False
    is_complete: bool = False
    images: int = 0
    links: int = 0
    tables: int = 0
    forms: int = 0


@dataclass(frozen=True)
class HtmlStyling:
    style_tags: int = 0
    script_tags: int = 0
    inline_styles: int = 0


@dataclass(frozen=True)
class RtfInfo:
    has_valid_header: bool = False
    version: Optional[int] = None
    charset: Optional[str] = None


@dataclass(frozen=True)
class JsonInfo:
    is_valid: bool = False
    shape: Optional[str] = None
    keys: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class Metadata:
    """Common subset, also used on its own when nothing else is known."""

    mime_hint: str = ""
    formatted_size: str = "0 B"
    source: Optional[str] = None

    def with_source(self, source: str) -> "Metadata":
        return replace(self, source=source)

    def to_dict(self) -> Dict[str, Any]:
        return _without_none(asdict(self))


@dataclass(frozen=True)
class TextMetadata(Metadata):
    language: str = "en"
    encoding: str = "utf-8"
    charset: Optional[str] = None
    text_stats: TextStats = field(default_factory=TextStats)


@dataclass(frozen=True)
class HtmlMetadata(TextMetadata):
    html_structure: HtmlStructure = field(default_factory=HtmlStructure)
    styling: HtmlStyling = field(default_factory=HtmlStyling)
    title: Optional[str] = None


@dataclass(frozen=True)
class RtfMetadata(TextMetadata):
    rtf_info: RtfInfo = field(default_factory=RtfInfo)


@dataclass(frozen=True)
class JsonMetadata(TextMetadata):
    json_info: JsonInfo = field(default_factory=JsonInfo)


@dataclass(frozen=True)
class FileMetadata(Metadata):
    file_info: Optional[FileDescriptor] = None
    item_kind: Optional[str] = None
    item_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.file_info is not None:
            data["file_info"] = self.file_info.to_dict()
        return data

