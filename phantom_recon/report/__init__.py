"""Result presentation helpers."""

from .summary import ResultSummary, format_count, bar_ratio, status_label, DETAILS_NOT_READY

__all__ = ["ResultSummary", "format_count", "bar_ratio", "status_label", "DETAILS_NOT_READY"]
