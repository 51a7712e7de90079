# main.py
# Command line entry point: parse, copy, diagnose and watch the clipboard.

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
import threading
from typing import List, Optional

from PySide6.QtCore import QTimer
from PySide6.QtGui import QGuiApplication

from clipinspect import __version__
from clipinspect.config import SETTINGS, Settings, load_settings
from clipinspect.config.constants import APP_NAME, ORG_NAME
from clipinspect.core.types import ParseResult, TextFormat
from clipinspect.services.diagnostics import DiagnosticsManager
from clipinspect.services.listeners import enable_paste_listener
from clipinspect.services.parser import ClipboardParser
from clipinspect.services.writeback import ClipboardWriter
from clipinspect.utils.clipboard_sync import (
    PyperclipCopier,
    QtClipboardBackend,
    QtClipboardEventSource,
)
from clipinspect.utils.formatting import describe_item
from clipinspect.utils.logging_helpers import log_user_notice
from clipinspect.utils.logging_setup import configure_logging


def _log_thread_exception(args):
    """Log unhandled thread exceptions instead of letting them vanish."""
    logging.critical(
        "Unhandled exception in thread %s: %s",
        args.thread.name,
        args.exc_value,
        exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
    )


def _log_unhandled_exception(exc_type, exc_value, exc_traceback):
    logging.critical(
        "Unhandled exception: %s", exc_value, exc_info=(exc_type, exc_value, exc_traceback)
    )


def setup_exit_handler(app_instance: QGuiApplication) -> None:
    """Quit the Qt event loop on SIGINT/SIGTERM."""

    def signal_handler(signum, frame):
        logging.info("Received %s, shutting down", signal.Signals(signum).name)
        app_instance.quit()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def ensure_application(argv: Optional[List[str]] = None) -> QGuiApplication:
    app = QGuiApplication.instance()
    if app is None:
        app = QGuiApplication(argv or [sys.argv[0]])
        app.setApplicationName(APP_NAME)
        app.setOrganizationName(ORG_NAME)
    return app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="clipinspect", description="Inspect and write the clipboard")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--settings", help="Path to an alternative settings.ini")
    parser.add_argument("--log-level", help="Override the configured log level")
    parser.add_argument("--log-file", help="Also write logs to this file")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("parse", help="Parse the clipboard and print the result as JSON")

    copy = commands.add_parser("copy", help="Write text to the clipboard")
    copy.add_argument("text")
    copy.add_argument(
        "--format",
        default=TextFormat.PLAIN.value,
        choices=[fmt.value for fmt in TextFormat],
        help="Clipboard format to write",
    )
    copy.add_argument(
        "--legacy", action="store_true", help="Skip the structured clipboard and copy plain text"
    )

    diagnose = commands.add_parser("diagnose", help="Print a clipboard diagnostics report")
    diagnose.add_argument(
        "--no-write", action="store_true", help="Do not overwrite the clipboard with a probe"
    )

    commands.add_parser("watch", help="Parse every clipboard change until interrupted")
    return parser


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False), flush=True)


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------
def run_parse(settings: Settings) -> int:
    ensure_application()
    parser = ClipboardParser(
        QtClipboardBackend(), max_inline_bytes=settings.preview_max_inline_bytes
    )
    result = asyncio.run(parser.parse_clipboard())
    for item in result.items:
        logging.debug("Parsed item %s", describe_item(item))
    _print_json(result.to_dict())
    return 0 if result.success else 1


def run_copy(settings: Settings, text: str, fmt: str, legacy_only: bool = False) -> int:
    backend = None
    if not legacy_only:
        ensure_application()
        backend = QtClipboardBackend()
    writer = ClipboardWriter(
        backend, PyperclipCopier(settings.write_retries, settings.write_retry_delay)
    )
    result = asyncio.run(writer.write_back(text, fmt))
    if result.success:
        log_user_notice(result.message)
        return 0
    logging.error("%s", result.message)
    return 1


def run_diagnose(settings: Settings, write_probe: bool = True) -> int:
    ensure_application()
    manager = DiagnosticsManager(
        QtClipboardBackend(),
        PyperclipCopier(settings.write_retries, settings.write_retry_delay),
        write_probe=write_probe,
    )
    report = asyncio.run(manager.run())
    print(report.to_json(), flush=True)
    return 0


def run_watch(settings: Settings) -> int:
    app = ensure_application()
    setup_exit_handler(app)
    # Python signal handlers only run while the interpreter has control
    wakeup = QTimer()
    wakeup.timeout.connect(lambda: None)
    wakeup.start(200)
    parser = ClipboardParser(
        QtClipboardBackend(), max_inline_bytes=settings.preview_max_inline_bytes
    )
    source = QtClipboardEventSource()

    def on_result(result: ParseResult) -> None:
        _print_json(result.to_dict())

    handle = enable_paste_listener(source, parser, on_result)
    log_user_notice("Watching the clipboard, press Ctrl+C to stop")
    try:
        return app.exec()
    finally:
        handle.disable()
        wakeup.stop()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args.settings) if args.settings else SETTINGS

    configure_logging(args.log_level or settings.log_level, args.log_file or settings.log_file)
    threading.excepthook = _log_thread_exception
    sys.excepthook = _log_unhandled_exception

    if args.command == "parse":
        return run_parse(settings)
    if args.command == "copy":
        return run_copy(settings, args.text, args.format, args.legacy)
    if args.command == "diagnose":
        return run_diagnose(settings, not args.no_write)
    return run_watch(settings)


if __name__ == "__main__":
    sys.exit(main())
