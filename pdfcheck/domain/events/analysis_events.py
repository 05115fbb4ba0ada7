"""Domain Events carried on the named notification channels.

Payloads travel as plain dictionaries (the host bridge format); these
dataclasses convert to and from that shape.
"""

from dataclasses import dataclass, field
import time
from typing import Any, Dict

from pdfcheck.domain.models.common import LOG_LEVEL_INFO

# Channel names
LOG_CHANNEL = "log"
PROGRESS_CHANNEL = "analysis-progress"
PDF_DETECTED_CHANNEL = "pdf-detected"


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


@dataclass
class ProgressEvent(DomainEvent):
    """Event emitted when the backend finishes (or starts) one file."""
    file_name: str
    completed: bool
    success: bool
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ProgressEvent":
        name = payload.get("file_name", payload.get("fileName", ""))
        return cls(
            file_name=str(name or ""),
            completed=bool(payload.get("completed", False)),
            success=bool(payload.get("success", False)),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {"file_name": self.file_name, "completed": self.completed, "success": self.success}


@dataclass
class LogEvent(DomainEvent):
    """Event carrying one transcript line."""
    message: str
    level: str = LOG_LEVEL_INFO
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "LogEvent":
        return cls(
            message=str(payload.get("message", "")),
            level=str(payload.get("level") or LOG_LEVEL_INFO),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {"message": self.message, "level": self.level}


@dataclass
class PdfDetectedEvent(DomainEvent):
    """Event emitted by the folder watcher when a new PDF appears."""
    path: str
    name: str
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "PdfDetectedEvent":
        return cls(path=str(payload.get("path", "")), name=str(payload.get("name", "")))

    def to_payload(self) -> Dict[str, Any]:
        return {"path": self.path, "name": self.name}
