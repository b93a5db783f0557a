"""Models for reconciliation mappings, results and sample previews."""
import json
from collections import OrderedDict
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import List, Dict, Any, Optional


class ReconciliationStatus(str, Enum):
    """Run status reported by the backend."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class ReconciliationMethod(str, Enum):
    """Matching method used for a run."""

    EXACT_MATCH = "EXACT_MATCH"
    PROBABILISTIC_MATCH = "PROBABILISTIC_MATCH"


class PreviewCategory(str, Enum):
    """Sample partition of a reconciliation result."""

    COMMON = "common"
    LEFT_EXCLUSIVE = "leftExclusive"
    RIGHT_EXCLUSIVE = "rightExclusive"

    @property
    def label(self) -> str:
        return {
            "common": "Common rows",
            "leftExclusive": "Left exclusive rows",
            "rightExclusive": "Right exclusive rows",
        }[self.value]

    @classmethod
    def in_priority_order(cls) -> List["PreviewCategory"]:
        """Categories in the order a result view prefers them."""
        return [cls.COMMON, cls.LEFT_EXCLUSIVE, cls.RIGHT_EXCLUSIVE]


def decode_field_map(raw: Any) -> "OrderedDict[str, str]":
    """Decode a field map sent as a JSON string (or already-decoded dict)."""
    if raw is None or raw == "":
        return OrderedDict()
    if isinstance(raw, str):
        raw = json.loads(raw, object_pairs_hook=OrderedDict)
    if not isinstance(raw, dict):
        raise ValueError(f"Field map must be an object, got {type(raw).__name__}")
    return OrderedDict((str(k), str(v)) for k, v in raw.items())


@dataclass
class ReconciliationMapping:
    """Field-to-field mapping between the outputs of two tasks."""

    playground_id: str
    left_task_id: str
    right_task_id: str
    field_map: Dict[str, str] = field(default_factory=OrderedDict)
    id: Optional[str] = None  # Assigned by the server
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    def to_api_payload(self) -> Dict[str, Any]:
        """Body for the create endpoint."""
        return {
            "playgroundId": self.playground_id,
            "leftTableId": self.left_task_id,
            "rightTableId": self.right_task_id,
            "map": json.dumps(self.field_map),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "playground_id": self.playground_id,
            "left_task_id": self.left_task_id,
            "right_task_id": self.right_task_id,
            "field_map": dict(self.field_map),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ReconciliationMapping":
        """Build a mapping from a backend record."""
        raw_map = data.get("mapping", data.get("map"))
        return cls(
            id=data.get("reconciliationId", data.get("id")),
            playground_id=data.get("playgroundId"),
            left_task_id=data.get("leftTableId"),
            right_task_id=data.get("rightTableId"),
            field_map=decode_field_map(raw_map),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )


# Backend (camelCase) name -> ReconciliationResult attribute
RESULT_FIELDS = {
    "status": "status",
    "message": "message",
    "executionTimestamp": "execution_timestamp",
    "reconciliationMethod": "reconciliation_method",
    "leftFileRowCount": "left_file_row_count",
    "rightFileRowCount": "right_file_row_count",
    "commonRowCount": "common_row_count",
    "leftFileExclusiveRowCount": "left_file_exclusive_row_count",
    "rightFileExclusiveRowCount": "right_file_exclusive_row_count",
    "sampleCommonRowsS3Path": "sample_common_rows_s3_path",
    "sampleExclusiveLeftRowsS3Path": "sample_exclusive_left_rows_s3_path",
    "sampleExclusiveRightRowsS3Path": "sample_exclusive_right_rows_s3_path",
}

STATUS_FIELDS = ("status", "message", "executionTimestamp", "reconciliationMethod")

SAMPLE_PATH_FIELDS = {
    PreviewCategory.COMMON: "sample_common_rows_s3_path",
    PreviewCategory.LEFT_EXCLUSIVE: "sample_exclusive_left_rows_s3_path",
    PreviewCategory.RIGHT_EXCLUSIVE: "sample_exclusive_right_rows_s3_path",
}


@dataclass
class ReconciliationResult:
    """Latest known state of a mapping's reconciliation run.

    Status fields arrive first from the status endpoint; counts and sample
    locators are merged in once the run has succeeded. Counts stay ``None``
    when the backend did not report them.
    """

    reconciliation_id: str
    status: Optional[str] = None
    message: Optional[str] = None
    execution_timestamp: Optional[str] = None
    reconciliation_method: Optional[str] = None
    left_file_row_count: Optional[int] = None
    right_file_row_count: Optional[int] = None
    common_row_count: Optional[int] = None
    left_file_exclusive_row_count: Optional[int] = None
    right_file_exclusive_row_count: Optional[int] = None
    sample_common_rows_s3_path: Optional[str] = None
    sample_exclusive_left_rows_s3_path: Optional[str] = None
    sample_exclusive_right_rows_s3_path: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def merge_status(self, payload: Dict[str, Any]) -> None:
        """Apply the status-endpoint fields, leaving everything else intact."""
        for key in STATUS_FIELDS:
            if key in payload:
                setattr(self, RESULT_FIELDS[key], payload[key])

    def merge_details(self, payload: Dict[str, Any]) -> None:
        """Union the full result into this one; absent values never clear known ones."""
        for key, value in payload.items():
            if value is None:
                continue
            attr = RESULT_FIELDS.get(key)
            if attr:
                setattr(self, attr, value)
            elif key not in ("reconciliationId", "id"):
                self.extra[key] = value

    def sample_path(self, category: PreviewCategory) -> Optional[str]:
        """Locator of a category's sample blob, or None when it has none."""
        return getattr(self, SAMPLE_PATH_FIELDS[PreviewCategory(category)]) or None

    @property
    def has_details(self) -> bool:
        return self.left_file_row_count is not None or self.right_file_row_count is not None

    @property
    def succeeded(self) -> bool:
        return self.status == ReconciliationStatus.SUCCESS.value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to backend-style dictionary."""
        data = {key: getattr(self, attr) for key, attr in RESULT_FIELDS.items()}
        data["reconciliationId"] = self.reconciliation_id
        data.update(self.extra)
        return data

    def copy(self) -> "ReconciliationResult":
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values["extra"] = dict(self.extra)
        return ReconciliationResult(**values)


@dataclass
class ParsedTable:
    """Decoded sample: column headers plus rows of equal length."""

    headers: List[str] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "ParsedTable":
        return cls(headers=[], rows=[])

    @property
    def is_empty(self) -> bool:
        return not self.headers and not self.rows

    def to_dict(self) -> Dict[str, Any]:
        return {"headers": list(self.headers), "rows": [list(r) for r in self.rows]}


@dataclass
class PreviewData:
    """Successfully fetched sample for one category."""

    is_compact_encoding: bool
    parsed_table: Optional[ParsedTable]  # None when the payload is not tabular
    raw_text: str

    def to_dict(self) -> Dict[str, Any]:
        data = {"is_compact_encoding": self.is_compact_encoding, "raw_text": self.raw_text}
        if self.parsed_table is not None:
            data.update(self.parsed_table.to_dict())
        return data


@dataclass
class PreviewCategoryState:
    """Fetch state of one preview category."""

    loading: bool = False
    data: Optional[PreviewData] = None
    error: Optional[str] = None
    permanent_error: bool = False

    def copy(self) -> "PreviewCategoryState":
        return PreviewCategoryState(
            loading=self.loading,
            data=self.data,
            error=self.error,
            permanent_error=self.permanent_error,
        )
