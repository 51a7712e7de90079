"""Parse, write-back, history, listener and diagnostics services."""
