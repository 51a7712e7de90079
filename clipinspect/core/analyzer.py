"""Format-specific metadata for text-bearing clipboard content."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Union

from clipinspect.utils.formatting import format_file_size, utf8_size

from .classifier import classify, mime_charset, RTF_HEADER
from .errors import DecodeFailure, ParseFailure
from .metadata import (
    HtmlMetadata,
    HtmlStructure,
    HtmlStyling,
    JsonInfo,
    JsonMetadata,
    Metadata,
    RtfInfo,
    RtfMetadata,
    TextMetadata,
    TextStats,
)
from .platform import Blob, is_text_like
from .types import DataKind

INVALID_JSON_MESSAGE = "Invalid JSON"

# First matching block wins.
_LANGUAGE_BLOCKS = (
    (re.compile(r"[\u4e00-\u9fff]"), "zh-CN"),
    (re.compile(r"[\u3040-\u309f\u30a0-\u30ff]"), "ja"),
    (re.compile(r"[\uac00-\ud7af]"), "ko"),
    (re.compile(r"[а-яё]", re.IGNORECASE), "ru"),
    (re.compile(r"[αβγδεζηθικλμνξοπρστυφχψω]", re.IGNORECASE), "el"),
)

_HTML_DOCTYPE = re.compile(r"<!DOCTYPE", re.IGNORECASE)
_HTML_TAG = re.compile(r"<html[^>]*>", re.IGNORECASE)
_HEAD_TAG = re.compile(r"<head[^>]*>", re.IGNORECASE)
_BODY_TAG = re.compile(r"<body[^>]*>", re.IGNORECASE)
_TITLE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_IMG_TAG = re.compile(r"<img[^>]*>", re.IGNORECASE)
# <a> or <a ...>, not <abbr>/<article>
_LINK_TAG = re.compile(r"<a(?:\s[^>]*)?>", re.IGNORECASE)
_TABLE_TAG = re.compile(r"<table[^>]*>", re.IGNORECASE)
_FORM_TAG = re.compile(r"<form[^>]*>", re.IGNORECASE)
_STYLE_TAG = re.compile(r"<style[^>]*>", re.IGNORECASE)
_SCRIPT_TAG = re.compile(r"<script[^>]*>", re.IGNORECASE)
_INLINE_STYLE = re.compile(r"style\s*=", re.IGNORECASE)

_RTF_VERSION = re.compile(r"\\rtf(\d+)")
_RTF_CHARSET = re.compile(r"\\(ansi|mac|pca|pc)")


def detect_language(text: str) -> str:
    for pattern, language in _LANGUAGE_BLOCKS:
        if pattern.search(text):
            return language
    return "en"


def text_stats(text: str) -> TextStats:
    return TextStats(
        lines=len(text.split("\n")),
        words=len(text.split()),
        characters=len(text),
        characters_no_spaces=len(re.sub(r"\s", "", text)),
    )


def html_structure(text: str) -> HtmlStructure:
    has_doctype = bool(_HTML_DOCTYPE.search(text))
    has_html_tag = bool(_HTML_TAG.search(text))
    has_head_tag = bool(_HEAD_TAG.search(text))
    has_body_tag = bool(_BODY_TAG.search(text))
    return HtmlStructure(
        has_doctype=has_doctype,
        has_html_tag=has_html_tag,
        has_head_tag=has_head_tag,
        has_body_tag=has_body_tag,
        is_complete=has_doctype and has_html_tag and has_head_tag and has_body_tag,
        images=len(_IMG_TAG.findall(text)),
        links=len(_LINK_TAG.findall(text)),
        tables=len(_TABLE_TAG.findall(text)),
        forms=len(_FORM_TAG.findall(text)),
    )


def html_styling(text: str) -> HtmlStyling:
    return HtmlStyling(
        style_tags=len(_STYLE_TAG.findall(text)),
        script_tags=len(_SCRIPT_TAG.findall(text)),
        inline_styles=len(_INLINE_STYLE.findall(text)),
    )


def rtf_info(text: str) -> RtfInfo:
    version = _RTF_VERSION.search(text)
    charset = _RTF_CHARSET.search(text)
    return RtfInfo(
        has_valid_header=text.startswith(RTF_HEADER),
        version=int(version.group(1)) if version else None,
        charset=charset.group(1) if charset else None,
    )


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except (ValueError, RecursionError) as exc:
        raise ParseFailure(INVALID_JSON_MESSAGE, exc) from exc


def json_info(text: str) -> JsonInfo:
    try:
        parsed = _parse_json(text)
    except ParseFailure as exc:
        logging.debug("JSON analysis failed: %s", exc)
        return JsonInfo(is_valid=False, error=INVALID_JSON_MESSAGE)

    if isinstance(parsed, list):
        return JsonInfo(is_valid=True, shape="array", keys=len(parsed))
    if isinstance(parsed, dict):
        return JsonInfo(is_valid=True, shape="object", keys=len(parsed))
    if isinstance(parsed, str):
        shape = "string"
    elif isinstance(parsed, bool):
        shape = "boolean"
    elif parsed is None:
        # JSON null reports as an object with no keys
        return JsonInfo(is_valid=True, shape="object", keys=0)
    else:
        shape = "number"
    return JsonInfo(is_valid=True, shape=shape, keys=0)


def analyze_text(text: str, mime_hint: str, byte_size: Optional[int] = None) -> TextMetadata:
    """Analyze *text* declared as *mime_hint*.

    The structural sub-record is chosen by the kind :func:`classify` assigns,
    not by the declared type, so JSON pasted as ``text/plain`` still gets
    ``json_info``.
    """

    size = utf8_size(text) if byte_size is None else byte_size
    common = dict(
        mime_hint=mime_hint,
        formatted_size=format_file_size(size),
        language=detect_language(text),
        encoding="corrupted" if "\ufffd" in text else "utf-8",
        charset=mime_charset(mime_hint),
        text_stats=text_stats(text),
    )

    kind = classify(mime_hint, text)
    if kind is DataKind.TEXT_HTML:
        title = _TITLE.search(text)
        return HtmlMetadata(
            **common,
            html_structure=html_structure(text),
            styling=html_styling(text),
            title=title.group(1).strip() if title else None,
        )
    if kind is DataKind.TEXT_RTF:
        return RtfMetadata(**common, rtf_info=rtf_info(text))
    if kind is DataKind.APPLICATION_JSON:
        return JsonMetadata(**common, json_info=json_info(text))
    return TextMetadata(**common)


async def _decode_blob(blob: Blob) -> str:
    try:
        return await blob.text()
    except Exception as exc:
        raise DecodeFailure("Failed to read blob as text", exc) from exc


async def analyze(content: Union[str, Blob], mime_hint: str) -> Metadata:
    """Analyze text or a blob; blob read failures degrade to size-only metadata."""

    if isinstance(content, str):
        return analyze_text(content, mime_hint)

    size = int(getattr(content, "size", 0) or 0)
    base = Metadata(mime_hint=mime_hint, formatted_size=format_file_size(size))
    if not (is_text_like(mime_hint) or is_text_like(getattr(content, "type", "") or "")):
        return base

    try:
        text = await _decode_blob(content)
    except DecodeFailure as exc:
        logging.warning("Content analysis degraded for %s: %s", mime_hint or "?", exc)
        return base

    # Size reflects the blob, not the decoded text
    return analyze_text(text, mime_hint, byte_size=size)
