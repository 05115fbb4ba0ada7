"""pdfcheck: client-side orchestrator for CLI-backed PDF consistency checks."""

__version__ = "0.1.0"
