"""Run triggering and status polling."""

from .orchestrator import RunOrchestrator, RunState, UNKNOWN_STATUS_MESSAGE
from .scheduler import PollScheduler, PollHandle

__all__ = [
    "RunOrchestrator",
    "RunState",
    "UNKNOWN_STATUS_MESSAGE",
    "PollScheduler",
    "PollHandle",
]
