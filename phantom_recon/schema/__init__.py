"""Reconciliation data models."""

from .models import (
    ReconciliationMapping,
    ReconciliationResult,
    ReconciliationStatus,
    ReconciliationMethod,
    ParsedTable,
    PreviewCategory,
    PreviewCategoryState,
    PreviewData,
)

__all__ = [
    "ReconciliationMapping",
    "ReconciliationResult",
    "ReconciliationStatus",
    "ReconciliationMethod",
    "ParsedTable",
    "PreviewCategory",
    "PreviewCategoryState",
    "PreviewData",
]
