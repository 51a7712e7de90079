"""Utility modules for ClipInspect.

The Qt and pyperclip adapters live in :mod:`clipinspect.utils.clipboard_sync`
and are imported explicitly so the core pipeline stays importable without a
GUI stack.
"""
