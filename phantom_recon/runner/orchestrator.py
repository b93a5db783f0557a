"""
Run orchestration for reconciliation mappings.

Triggers backend runs, polls their status and merges the full result once a
run succeeds. Each mapping id has its own lock and its own cached
ReconciliationResult; polling one mapping never blocks or taints another.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import Enum
from typing import Dict, List, Optional, Iterable

from phantom_recon.api.exceptions import PhantomApiError
from phantom_recon.api.phantom_client import PhantomClient
from phantom_recon.schema.models import ReconciliationResult, ReconciliationStatus

logger = logging.getLogger(__name__)

UNKNOWN_STATUS_MESSAGE = "Unable to determine status"


class RunState(str, Enum):
    """Client-side lifecycle of a mapping's run."""

    IDLE = "idle"
    TRIGGERED = "triggered"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RunOrchestrator:
    """
    Tracks reconciliation runs keyed by mapping id.

    Usage:
    ```python
    orchestrator = RunOrchestrator(client)
    orchestrator.track(["rec-1", "rec-2"])
    orchestrator.trigger("rec-1")
    results = orchestrator.poll_all()
    ```
    """

    def __init__(self, client: PhantomClient, max_workers: int = 4):
        """
        Initialize the orchestrator.

        Args:
            client: API client
            max_workers: Maximum concurrent status requests per poll cycle
        """
        self.client = client
        self.max_workers = max_workers
        self._known: List[str] = []
        self._results: Dict[str, ReconciliationResult] = {}
        self._states: Dict[str, RunState] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Tracked mappings
    # ------------------------------------------------------------------

    def track(self, mapping_ids: Iterable[str]) -> None:
        """Replace the set of mappings polled by ``poll_all``."""
        ids = list(dict.fromkeys(mapping_ids))
        with self._registry_lock:
            dropped = set(self._known) - set(ids)
            self._known = ids
            for mapping_id in dropped:
                self._results.pop(mapping_id, None)
                self._states.pop(mapping_id, None)
                self._locks.pop(mapping_id, None)

    def known_ids(self) -> List[str]:
        with self._registry_lock:
            return list(self._known)

    def has_mappings(self) -> bool:
        with self._registry_lock:
            return bool(self._known)

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def trigger(self, reconciliation_id: str) -> str:
        """
        Start a run without waiting for it to complete.

        Concurrent triggers for the same mapping are not deduplicated.

        Returns:
            Acknowledgement text from the backend

        Raises:
            PhantomApiError: If the run could not be started
        """
        lock = self._lock_for(reconciliation_id)
        with lock:
            previous = self._states.get(reconciliation_id, RunState.IDLE)
            self._states[reconciliation_id] = RunState.TRIGGERED

        try:
            ack = self.client.trigger_run(reconciliation_id)
        except PhantomApiError:
            with lock:
                self._states[reconciliation_id] = previous
            raise

        with lock:
            self._states[reconciliation_id] = RunState.POLLING

        with self._registry_lock:
            if reconciliation_id not in self._known:
                self._known.append(reconciliation_id)

        logger.info(f"Triggered reconciliation run {reconciliation_id}")
        return ack

    def poll_once(self, reconciliation_id: str) -> ReconciliationResult:
        """
        Refresh one mapping's cached result.

        A failed status request keeps whatever was known before; only a
        mapping with no known status falls back to a synthetic FAILED.

        Returns:
            Copy of the cached result after the refresh
        """
        lock = self._lock_for(reconciliation_id)

        try:
            status_payload = self.client.get_status(reconciliation_id)
            if not isinstance(status_payload, dict):
                raise PhantomApiError(f"Unexpected status body: {status_payload!r}")
        except Exception as e:
            logger.error(f"Error fetching status for {reconciliation_id}: {e}")
            with lock:
                result = self._results.get(reconciliation_id)
                if result is None or result.status is None:
                    result = result or ReconciliationResult(reconciliation_id=reconciliation_id)
                    result.status = ReconciliationStatus.FAILED.value
                    result.message = UNKNOWN_STATUS_MESSAGE
                    self._results[reconciliation_id] = result
                    self._states[reconciliation_id] = RunState.FAILED
                return result.copy()

        details = None
        if status_payload.get("status") == ReconciliationStatus.SUCCESS.value:
            try:
                details = self.client.get_result(reconciliation_id)
                if not isinstance(details, dict):
                    raise PhantomApiError(f"Unexpected result body: {details!r}")
            except Exception as e:
                details = None
                # Keep the status info; details come on a later cycle
                logger.warning(f"Could not fetch full result for {reconciliation_id}: {e}")

        with lock:
            result = self._results.get(reconciliation_id)
            if result is None:
                result = ReconciliationResult(reconciliation_id=reconciliation_id)
                self._results[reconciliation_id] = result

            previous_status = result.status
            result.merge_status(status_payload)
            if details:
                result.merge_details(details)
            self._states[reconciliation_id] = self._state_for(result.status)

            if previous_status != result.status:
                logger.info(
                    f"Reconciliation {reconciliation_id}: {previous_status} -> {result.status}"
                )
            return result.copy()

    def poll_all(self, mapping_ids: Optional[Iterable[str]] = None) -> Dict[str, ReconciliationResult]:
        """
        Poll every tracked mapping concurrently.

        Each request is awaited independently; a failure for one mapping is
        logged and does not affect the others.
        """
        ids = list(mapping_ids) if mapping_ids is not None else self.known_ids()
        if not ids:
            return {}

        results: Dict[str, ReconciliationResult] = {}
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(ids))) as executor:
            future_to_id = {executor.submit(self.poll_once, mid): mid for mid in ids}

            for future in as_completed(future_to_id):
                mapping_id = future_to_id[future]
                try:
                    results[mapping_id] = future.result()
                except Exception as e:
                    logger.error(f"Polling {mapping_id} failed: {e}")

        return results

    # ------------------------------------------------------------------
    # Cached state
    # ------------------------------------------------------------------

    def get_result(self, reconciliation_id: str) -> Optional[ReconciliationResult]:
        """Copy of the cached result, or None before any poll."""
        lock = self._existing_lock(reconciliation_id)
        if lock is None:
            return None
        with lock:
            result = self._results.get(reconciliation_id)
            return result.copy() if result else None

    def state(self, reconciliation_id: str) -> RunState:
        lock = self._existing_lock(reconciliation_id)
        if lock is None:
            return RunState.IDLE
        with lock:
            return self._states.get(reconciliation_id, RunState.IDLE)

    def results(self) -> Dict[str, ReconciliationResult]:
        """Copies of all cached results."""
        results = {}
        for mapping_id in self.known_ids():
            result = self.get_result(mapping_id)
            if result is not None:
                results[mapping_id] = result
        return results

    def _lock_for(self, reconciliation_id: str) -> threading.Lock:
        with self._registry_lock:
            return self._locks.setdefault(reconciliation_id, threading.Lock())

    def _existing_lock(self, reconciliation_id: str) -> Optional[threading.Lock]:
        with self._registry_lock:
            return self._locks.get(reconciliation_id)

    @staticmethod
    def _state_for(status: Optional[str]) -> RunState:
        if status == ReconciliationStatus.SUCCESS.value:
            return RunState.SUCCEEDED
        if status == ReconciliationStatus.FAILED.value:
            return RunState.FAILED
        return RunState.POLLING
