# constants.py
# Central configuration values and constants

from __future__ import annotations

from pathlib import Path

# Application identity
APP_NAME = "ClipInspect"
ORG_NAME = "ClipInspect"

# Settings file bundled next to this module
SETTINGS_PATH = str(Path(__file__).resolve().parent / "settings.ini")

# History
DEFAULT_HISTORY_MAX_ITEMS = 20

# Write-back
DEFAULT_WRITE_RETRIES = 3
DEFAULT_WRITE_RETRY_DELAY = 0.1
DIAGNOSTIC_WRITE_PROBE = "ClipboardDebugTest"

# Previews larger than this are not inlined as data: URLs
DEFAULT_PREVIEW_MAX_INLINE_BYTES = 10 * 1024 * 1024

# Logging
LOG_FILENAME = "clipinspect.log"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3
DEFAULT_LOG_LEVEL = "INFO"

# Parse origins used for source tags and log prefixes
ORIGIN_MANUAL = "manual"
ORIGIN_PASTE = "paste"
ORIGIN_DROP = "drop"
