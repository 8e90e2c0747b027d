"""Log entry model for the activity log shown to the user."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict


class LogLevel(Enum):
    """Severity of a user-facing log entry."""
    INFO = "info"
    SUCCESS = "success"
    WARN = "warn"
    ERROR = "error"


@dataclass(frozen=True)
class LogEntry:
    """A single timestamped, leveled line in the activity log."""

    message: str
    level: LogLevel = LogLevel.INFO
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert entry to dictionary representation."""
        return {
            'message': self.message,
            'level': self.level.value,
            'timestamp': self.timestamp.isoformat()
        }

    def __repr__(self) -> str:
        return f"LogEntry(level={self.level.value!r}, message={self.message!r})"
