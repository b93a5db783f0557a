"""Periodic status polling."""
import logging
import threading
from typing import Callable, Dict, Optional

from phantom_recon.runner.orchestrator import RunOrchestrator
from phantom_recon.schema.models import ReconciliationResult

logger = logging.getLogger(__name__)


class PollHandle:
    """Cancellable handle on a running poll loop."""

    def __init__(self, thread: threading.Thread, stop_event: threading.Event):
        self._thread = thread
        self._stop_event = stop_event

    @property
    def active(self) -> bool:
        return self._thread.is_alive() and not self._stop_event.is_set()

    def cancel(self, timeout: Optional[float] = None) -> None:
        """Stop the loop and wait for its thread to exit."""
        self._stop_event.set()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout)


class PollScheduler:
    """Drives ``RunOrchestrator.poll_all`` on a fixed interval.

    The first cycle runs immediately. The loop ends by itself once no
    mappings are tracked, and ``stop`` (or leaving the ``with`` block)
    cancels it and joins the thread.
    """

    def __init__(
        self,
        orchestrator: RunOrchestrator,
        interval: float = 30.0,
        on_cycle: Optional[Callable[[Dict[str, ReconciliationResult]], None]] = None,
    ):
        self.orchestrator = orchestrator
        self.interval = interval
        self.on_cycle = on_cycle
        self._handle: Optional[PollHandle] = None
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._handle is not None and self._handle.active

    def start(self) -> Optional[PollHandle]:
        """Start polling; returns None when there is nothing to poll."""
        with self._lock:
            if self._handle is not None and self._handle.active:
                return self._handle

            if not self.orchestrator.has_mappings():
                return None

            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name="phantom-recon-poller",
                daemon=True,
            )
            self._handle = PollHandle(thread, stop_event)
            thread.start()
            logger.info(f"Polling every {self.interval}s")
            return self._handle

    def stop(self) -> None:
        """Cancel the poll loop, if any."""
        with self._lock:
            handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()
            logger.info("Polling stopped")

    def sync(self, auto_refresh: bool) -> None:
        """Run the loop only while auto-refresh is on and mappings exist."""
        if auto_refresh and self.orchestrator.has_mappings():
            self.start()
        else:
            self.stop()

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            if not self.orchestrator.has_mappings():
                logger.info("No mappings left to poll")
                break

            try:
                results = self.orchestrator.poll_all()
                if self.on_cycle and not stop_event.is_set():
                    self.on_cycle(results)
            except Exception as e:
                logger.error(f"Poll cycle failed: {e}")

            if stop_event.wait(self.interval):
                break

        stop_event.set()

    def __enter__(self) -> "PollScheduler":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
