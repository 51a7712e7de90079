"""MIME hint and content based classification of clipboard entries.

:func:`classify` is pure and total: it never raises and falls back to
:attr:`DataKind.UNKNOWN`. The declared MIME type is only a hint, so string
samples are sniffed and file samples are checked by their name.
"""

from __future__ import annotations

import json
from typing import Callable, Optional, Tuple, Union

from .types import DataKind, FileDescriptor

Sample = Union[str, FileDescriptor, object, None]

EXACT_TYPES = {
    "text/plain": DataKind.TEXT_PLAIN,
    "text/html": DataKind.TEXT_HTML,
    "text/rtf": DataKind.TEXT_RTF,
    "application/rtf": DataKind.TEXT_RTF,
    "image/png": DataKind.IMAGE_PNG,
    "image/jpeg": DataKind.IMAGE_JPEG,
    "image/jpg": DataKind.IMAGE_JPEG,
    "image/gif": DataKind.IMAGE_GIF,
    "image/webp": DataKind.IMAGE_WEBP,
    "image/svg+xml": DataKind.IMAGE_SVG,
    "image/bmp": DataKind.IMAGE_BMP,
    "image/tiff": DataKind.IMAGE_TIFF,
    "application/json": DataKind.APPLICATION_JSON,
    "application/xml": DataKind.APPLICATION_XML,
    "text/xml": DataKind.APPLICATION_XML,
    "application/pdf": DataKind.APPLICATION_PDF,
}

# Declared types too generic to stop classification when there is text to sniff
GENERIC_TEXT_TYPES = frozenset({"text/plain"})

SUFFIX_TYPES: Tuple[Tuple[Tuple[str, ...], DataKind], ...] = (
    ((".rtf",), DataKind.TEXT_RTF),
    ((".json",), DataKind.APPLICATION_JSON),
    ((".xml",), DataKind.APPLICATION_XML),
    ((".html", ".htm"), DataKind.TEXT_HTML),
    ((".txt",), DataKind.TEXT_PLAIN),
    ((".jpg", ".jpeg"), DataKind.IMAGE_JPEG),
    ((".png",), DataKind.IMAGE_PNG),
    ((".gif",), DataKind.IMAGE_GIF),
    ((".webp",), DataKind.IMAGE_WEBP),
    ((".svg",), DataKind.IMAGE_SVG),
    ((".bmp",), DataKind.IMAGE_BMP),
    ((".tiff", ".tif"), DataKind.IMAGE_TIFF),
)

RTF_HEADER = "{\\rtf"


def normalize_mime(mime_hint: Optional[str]) -> str:
    """Lowercase, trim and drop ``;param=value`` suffixes."""

    if not mime_hint:
        return ""
    return str(mime_hint).split(";", 1)[0].strip().lower()


def mime_charset(mime_hint: Optional[str]) -> Optional[str]:
    """Return the ``charset=`` parameter of *mime_hint*, if any."""

    if not mime_hint:
        return None
    for part in str(mime_hint).split(";")[1:]:
        key, _, value = part.partition("=")
        if key.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"')
    return None


# ----------------------------------------------------------------------
# Content sniffing predicates
# ----------------------------------------------------------------------
def looks_like_json(text: str, mime: str = "") -> bool:
    stripped = text.strip()
    if not (
        (stripped.startswith("{") and stripped.endswith("}"))
        or (stripped.startswith("[") and stripped.endswith("]"))
    ):
        return False
    try:
        json.loads(stripped)
    except (ValueError, RecursionError):
        return False
    return True


def looks_like_xml_declaration(text: str, mime: str = "") -> bool:
    return text.strip().startswith("<?xml")


def looks_like_html_document(text: str, mime: str = "") -> bool:
    head = text.strip()[:14].lower()
    return head.startswith("<!doctype html") or head.startswith("<html")


def looks_like_html_fragment(text: str, mime: str = "") -> bool:
    stripped = text.strip()
    return stripped.startswith("<") and stripped.endswith(">") and "html" in mime


def looks_like_markup(text: str, mime: str = "") -> bool:
    stripped = text.strip()
    return stripped.startswith("<") and stripped.endswith(">")


def looks_like_rtf(text: str, mime: str = "") -> bool:
    return text.startswith(RTF_HEADER)


def looks_like_plain_text(text: str, mime: str = "") -> bool:
    return mime.startswith("text/") or bool(text)


Predicate = Callable[[str, str], bool]

# Evaluated in order, first match wins.
SNIFFERS: Tuple[Tuple[Predicate, DataKind], ...] = (
    (looks_like_json, DataKind.APPLICATION_JSON),
    (looks_like_xml_declaration, DataKind.APPLICATION_XML),
    (looks_like_html_document, DataKind.TEXT_HTML),
    (looks_like_html_fragment, DataKind.TEXT_HTML),
    (looks_like_markup, DataKind.APPLICATION_XML),
    (looks_like_rtf, DataKind.TEXT_RTF),
    (looks_like_plain_text, DataKind.TEXT_PLAIN),
)


def sniff(text: str, mime: str = "") -> Optional[DataKind]:
    """Infer a kind from the shape of *text*; ``None`` when nothing matches."""

    for predicate, kind in SNIFFERS:
        if predicate(text, mime):
            return kind
    return None


# ----------------------------------------------------------------------
# Classification
# ----------------------------------------------------------------------
def _is_file_sample(sample: Sample) -> bool:
    if isinstance(sample, FileDescriptor):
        return True
    return not isinstance(sample, (str, bytes)) and isinstance(getattr(sample, "name", None), str)


def _file_name_and_type(sample: Sample) -> Tuple[str, str]:
    if isinstance(sample, FileDescriptor):
        return sample.name, sample.mime_hint
    return getattr(sample, "name", "") or "", getattr(sample, "type", "") or ""


def classify_by_suffix(name: str) -> Optional[DataKind]:
    lowered = (name or "").lower()
    for suffixes, kind in SUFFIX_TYPES:
        if lowered.endswith(suffixes):
            return kind
    return None


def _classify_by_prefix(mime: str, sample: Sample) -> DataKind:
    if mime.startswith("image/"):
        # Heuristic: the real pixel format is not verified.
        return DataKind.IMAGE_PNG
    if mime.startswith("application/"):
        if "json" in mime:
            return DataKind.APPLICATION_JSON
        if "xml" in mime:
            return DataKind.APPLICATION_XML
        if "pdf" in mime:
            return DataKind.APPLICATION_PDF
    if isinstance(sample, str) and sample.strip():
        return DataKind.TEXT_PLAIN
    return DataKind.UNKNOWN


def classify(mime_hint: Optional[str], sample: Sample = None) -> DataKind:
    """Map a declared MIME type plus optional content sample to a :class:`DataKind`."""

    mime = normalize_mime(mime_hint)
    is_string = isinstance(sample, str)

    if mime in ("", "text") and is_string:
        mime = "text/plain"

    exact = EXACT_TYPES.get(mime)
    if exact is not None and not (is_string and mime in GENERIC_TEXT_TYPES):
        return exact

    if _is_file_sample(sample):
        name, file_type = _file_name_and_type(sample)
        by_suffix = classify_by_suffix(name)
        if by_suffix is not None:
            return by_suffix
        file_mime = normalize_mime(file_type)
        if file_mime:
            by_type = classify(file_mime)
            if by_type is not DataKind.UNKNOWN:
                return by_type
        return DataKind.FILES

    if is_string:
        if not sample.strip():
            # An empty body does not erase the declared text type.
            if mime.startswith("text/"):
                return DataKind.TEXT_PLAIN
        else:
            sniffed = sniff(sample, mime)
            if sniffed is not None:
                return sniffed

    return _classify_by_prefix(mime, sample)
