"""Human readable sizes and log-friendly item descriptions."""

from __future__ import annotations

import hashlib
from typing import Optional

from clipinspect.core.types import DataItem, FileDescriptor

_UNITS = ("B", "KB", "MB", "GB")


def format_file_size(num: Optional[int]) -> str:
    """Return ``num`` bytes as ``"1.5 KB"`` style text (base 1024, max GB)."""

    if num is None:
        return "?"
    if num <= 0:
        return "0 B"
    size = float(num)
    unit = _UNITS[0]
    for unit in _UNITS:
        if size < 1024.0 or unit == _UNITS[-1]:
            break
        size /= 1024.0
    text = f"{size:.2f}".rstrip("0").rstrip(".")
    return f"{text} {unit}"


def utf8_size(text: str) -> int:
    return len(text.encode("utf-8"))


def describe_item(item: DataItem) -> str:
    """Build a short description of *item* for log lines."""

    kind = item.kind.value
    content = item.content

    if isinstance(content, FileDescriptor):
        return (
            f"{kind}(file={content.name!r}, size={format_file_size(content.size)}, "
            f"type={content.mime_hint or '?'})"
        )

    preview = content.replace("\n", "\\n")
    if len(preview) > 40:
        preview = f"{preview[:37]}..."
    if item.kind.is_text:
        return f"{kind}(len={len(content)} preview='{preview}')"
    digest = hashlib.sha256(content.encode("utf-8", errors="replace")).hexdigest()[:12]
    return f"{kind}(size={item.byte_size}, sha256={digest})"
