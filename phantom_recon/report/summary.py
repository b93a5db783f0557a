"""Display math for reconciliation results."""
from typing import Optional, Dict, Any

from phantom_recon.schema.models import (
    ReconciliationResult,
    ReconciliationMethod,
    ReconciliationStatus,
)

STATUS_LABELS = {
    ReconciliationStatus.SUCCESS.value: "Completed",
    ReconciliationStatus.RUNNING.value: "Running",
    ReconciliationStatus.FAILED.value: "Failed",
    ReconciliationStatus.PENDING.value: "Pending",
}

DETAILS_NOT_READY = (
    "Detailed reconciliation results are not available yet. "
    "Please wait for the reconciliation to complete."
)


def as_count(value: Any) -> Optional[int]:
    """Count as an int; None when missing or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def format_count(value: Any) -> str:
    """Thousands-separated count, or N/A when the backend did not report it."""
    if value is None:
        return "N/A"
    count = as_count(value)
    if count is None:
        return str(value)
    return f"{count:,}"


def bar_ratio(value: Any, *counts: Any) -> float:
    """Share of ``value`` against the largest reported count (0.0 when undefined)."""
    value = as_count(value)
    if value is None:
        return 0.0

    reported = [c for c in (as_count(c) for c in counts) if c is not None]
    denominator = max(reported) if reported else 0
    if denominator <= 0:
        return 0.0
    return value / denominator


def status_label(status: Optional[str]) -> str:
    return STATUS_LABELS.get(status, "Unknown")


class ResultSummary:
    """Presentation view of one ReconciliationResult."""

    def __init__(self, result: ReconciliationResult):
        self.result = result

    @property
    def status_label(self) -> str:
        return status_label(self.result.status)

    @property
    def has_details(self) -> bool:
        return self.result.has_details

    @property
    def previews_enabled(self) -> bool:
        """Table previews are not produced for probabilistic matching."""
        return self.result.reconciliation_method != ReconciliationMethod.PROBABILISTIC_MATCH.value

    def source_bars(self) -> Dict[str, float]:
        """Left/right file sizes relative to the larger one."""
        left = self.result.left_file_row_count
        right = self.result.right_file_row_count
        return {
            "left": bar_ratio(left, left, right),
            "right": bar_ratio(right, left, right),
        }

    def category_bars(self) -> Dict[str, float]:
        """Common/exclusive counts relative to the largest of the three."""
        common = self.result.common_row_count
        left = self.result.left_file_exclusive_row_count
        right = self.result.right_file_exclusive_row_count
        return {
            "common": bar_ratio(common, common, left, right),
            "leftExclusive": bar_ratio(left, common, left, right),
            "rightExclusive": bar_ratio(right, common, left, right),
        }

    def to_dict(self) -> Dict[str, Any]:
        r = self.result
        return {
            "reconciliation_id": r.reconciliation_id,
            "status": self.status_label,
            "message": r.message,
            "method": r.reconciliation_method or "N/A",
            "executed_at": r.execution_timestamp or "N/A",
            "left_rows": format_count(r.left_file_row_count),
            "right_rows": format_count(r.right_file_row_count),
            "common_rows": format_count(r.common_row_count),
            "left_exclusive_rows": format_count(r.left_file_exclusive_row_count),
            "right_exclusive_rows": format_count(r.right_file_exclusive_row_count),
        }
