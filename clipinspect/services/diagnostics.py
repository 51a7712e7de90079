"""Clipboard environment diagnostics.

Collects what the running environment supports and probes the clipboard
with a text read, a full read and a text write. Every probe records its own
success or error so one broken capability does not hide the others.
"""

from __future__ import annotations

import json
import logging
import platform
import sys
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import PySide6
from PySide6.QtCore import qVersion

from clipinspect.config.constants import DIAGNOSTIC_WRITE_PROBE
from clipinspect.core.platform import ClipboardBackend, LegacyCopier

from .parser import is_clipboard_api_supported, is_read_supported

PREVIEW_CHARS = 100


@dataclass
class ProbeResult:
    success: bool
    error: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DiagnosticsReport:
    timestamp: str
    environment: Dict[str, Any]
    capabilities: Dict[str, bool]
    probes: Dict[str, ProbeResult] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


class DiagnosticsManager:
    """Runs capability checks and clipboard probes."""

    def __init__(
        self,
        backend: Optional[ClipboardBackend],
        legacy: Optional[LegacyCopier] = None,
        *,
        write_probe: bool = True,
    ) -> None:
        self._backend = backend
        self._legacy = legacy
        self._write_probe = write_probe

    def environment(self) -> Dict[str, Any]:
        return {
            "platform": platform.platform(),
            "python": sys.version.split()[0],
            "pyside6": PySide6.__version__,
            "qt": qVersion(),
        }

    def capabilities(self) -> Dict[str, bool]:
        backend = self._backend
        available = is_clipboard_api_supported(backend)
        return {
            "has_clipboard": available,
            "is_secure_context": bool(available and backend.is_secure_context()),
            "can_read": is_read_supported(backend),
            "can_write": available,
            "has_legacy_copy": self._legacy is not None,
        }

    async def run(self) -> DiagnosticsReport:
        started = time.perf_counter()
        report = DiagnosticsReport(
            timestamp=datetime.now(timezone.utc).isoformat(),
            environment=self.environment(),
            capabilities=self.capabilities(),
        )
        if not report.capabilities["has_clipboard"]:
            logging.info("Clipboard diagnostics skipped probes: no clipboard backend")
            return report

        report.probes["read_text"] = await self._probe_read_text()
        report.probes["read"] = await self._probe_read()
        if self._write_probe:
            report.probes["write_text"] = await self._probe_write_text()

        failed = [name for name, probe in report.probes.items() if not probe.success]
        logging.info(
            "Clipboard diagnostics finished in %.2fs (failed probes: %s)",
            time.perf_counter() - started,
            ", ".join(failed) or "none",
        )
        return report

    # ------------------------------------------------------------------
    # Probes
    # ------------------------------------------------------------------
    async def _probe_read_text(self) -> ProbeResult:
        try:
            text = await self._backend.read_text()
        except Exception as exc:
            logging.debug("read_text probe failed: %s", exc, exc_info=True)
            return ProbeResult(success=False, error=str(exc) or type(exc).__name__)
        text = text or ""
        return ProbeResult(
            success=True,
            details={
                "has_content": bool(text),
                "content_length": len(text),
                "preview": text[:PREVIEW_CHARS],
            },
        )

    async def _probe_read(self) -> ProbeResult:
        try:
            items = list(await self._backend.read())
        except Exception as exc:
            logging.debug("read probe failed: %s", exc, exc_info=True)
            return ProbeResult(success=False, error=str(exc) or type(exc).__name__)
        types = [mime for item in items for mime in item.types]
        return ProbeResult(success=True, details={"item_count": len(items), "types": types})

    async def _probe_write_text(self) -> ProbeResult:
        try:
            await self._backend.write_text(DIAGNOSTIC_WRITE_PROBE)
        except Exception as exc:
            logging.debug("write_text probe failed: %s", exc, exc_info=True)
            return ProbeResult(success=False, error=str(exc) or type(exc).__name__)
        return ProbeResult(success=True)
