"""Transient advisory messages."""
import time
from dataclasses import dataclass
from typing import Callable, Optional

RUN_STARTED = "Reconciliation run started successfully!"


@dataclass
class Notice:
    """A message shown to the user."""

    message: str
    is_error: bool
    posted_at: float


class NoticeBoard:
    """Holds the current notice.

    Success notices expire after ``success_ttl`` seconds; errors stay until
    dismissed or replaced by a newer notice.
    """

    def __init__(self, success_ttl: float = 3.0, clock: Callable[[], float] = time.monotonic):
        self.success_ttl = success_ttl
        self.clock = clock
        self._notice: Optional[Notice] = None

    def success(self, message: str) -> Notice:
        self._notice = Notice(message=message, is_error=False, posted_at=self.clock())
        return self._notice

    def error(self, message: str) -> Notice:
        self._notice = Notice(message=message, is_error=True, posted_at=self.clock())
        return self._notice

    def current(self) -> Optional[Notice]:
        notice = self._notice
        if notice is None:
            return None
        if not notice.is_error and self.clock() - notice.posted_at >= self.success_ttl:
            self._notice = None
            return None
        return notice

    def dismiss(self) -> None:
        self._notice = None
