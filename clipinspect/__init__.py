"""ClipInspect: clipboard extraction, classification and write-back."""

from . import core  # noqa: F401

__version__ = "0.1.0"
