"""Clipboard extraction, classification and analysis pipeline."""

from .types import (
    CopyResult,
    DataItem,
    DataKind,
    FileDescriptor,
    HistoryEntry,
    ParseResult,
    RawEntry,
    SourceChannel,
    TextFormat,
    WriteTier,
)
from .classifier import classify
from .analyzer import analyze, analyze_text
from .extractor import extract
from .normalizer import normalize

__all__ = [
    "CopyResult",
    "DataItem",
    "DataKind",
    "FileDescriptor",
    "HistoryEntry",
    "ParseResult",
    "RawEntry",
    "SourceChannel",
    "TextFormat",
    "WriteTier",
    "analyze",
    "analyze_text",
    "classify",
    "extract",
    "normalize",
]
