"""Bounded activity log and the scroll-follow helper used by log views."""

from collections import deque
from typing import Deque, List, Tuple

from models.log_entry import LogEntry, LogLevel

MAX_LOGS = 1000
AUTO_SCROLL_THRESHOLD = 50


class LogStore:
    """
    Append-only, capacity-bounded record of user-facing events.

    Oldest entries are evicted first once ``max_logs`` is exceeded.
    """

    def __init__(self, max_logs: int = MAX_LOGS):
        if max_logs < 1:
            raise ValueError(f"max_logs must be positive, got {max_logs}")
        self.max_logs = max_logs
        self._entries: Deque[LogEntry] = deque(maxlen=max_logs)
        self._appended = 0

    def append(self, message: str, level: LogLevel = LogLevel.INFO) -> LogEntry:
        """
        Record a new entry stamped with the current time.

        Args:
            message: Human-readable text
            level: Severity used by views for styling; unknown values become info

        Returns:
            The created entry
        """
        try:
            level = LogLevel(level)
        except ValueError:
            level = LogLevel.INFO
        entry = LogEntry(message=message, level=level)
        self._entries.append(entry)
        self._appended += 1
        return entry

    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def entries_since(self, cursor: int) -> Tuple[List[LogEntry], int]:
        """
        Return entries appended after ``cursor`` and the new cursor.

        The cursor counts every append ever made, so a consumer that falls
        behind simply misses evicted entries.
        """
        first_retained = self._appended - len(self._entries)
        start = max(cursor - first_retained, 0)
        return list(self._entries)[start:], self._appended

    @property
    def cursor(self) -> int:
        return self._appended

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class ScrollFollower:
    """Tracks whether a log view should stay pinned to the newest entry."""

    def __init__(self, threshold: int = AUTO_SCROLL_THRESHOLD):
        self.threshold = threshold
        self._following = True

    def on_scroll(self, scroll_top: float, scroll_height: float, client_height: float) -> bool:
        self._following = scroll_height - scroll_top - client_height < self.threshold
        return self._following

    def should_autoscroll(self) -> bool:
        # Read before rendering a new entry; the value reflects the last scroll.
        return self._following
