"""Tests for JSON and Excel exporters."""
import json

import pytest
from openpyxl import load_workbook

from phantom_recon.exporter.excel_exporter import ExcelExporter
from phantom_recon.exporter.json_exporter import JsonExporter
from phantom_recon.schema.models import (
    ParsedTable,
    PreviewCategory,
    PreviewCategoryState,
    PreviewData,
    ReconciliationMapping,
    ReconciliationResult,
)


@pytest.fixture
def mapping():
    return ReconciliationMapping(
        id="rec-1", playground_id="pg", left_task_id="t1", right_task_id="t2",
        field_map={"id": "userId"},
    )


@pytest.fixture
def result():
    return ReconciliationResult(
        reconciliation_id="rec-1",
        status="SUCCESS",
        left_file_row_count=1500,
        right_file_row_count=1200,
        common_row_count=1000,
    )


@pytest.fixture
def previews():
    return {
        PreviewCategory.COMMON: PreviewCategoryState(
            data=PreviewData(
                is_compact_encoding=False,
                parsed_table=ParsedTable(headers=["id"], rows=[["1"], ["2"]]),
                raw_text="id\n1\n2",
            )
        ),
        PreviewCategory.LEFT_EXCLUSIVE: PreviewCategoryState(
            data=PreviewData(is_compact_encoding=False, parsed_table=None, raw_text="line a\nline b")
        ),
        PreviewCategory.RIGHT_EXCLUSIVE: PreviewCategoryState(
            error="File not found", permanent_error=True
        ),
    }


class TestJsonExporter:
    """Test JSON export."""

    def test_export(self, tmp_path, mapping, result, previews):
        output_file = tmp_path / "out" / "result.json"

        JsonExporter().export(output_file, mapping, result, previews)

        data = json.loads(output_file.read_text())
        assert data["metadata"]["reconciliation_id"] == "rec-1"
        assert data["mapping"] == {"id": "userId"}
        assert data["summary"]["left_rows"] == "1,500"
        assert data["result"]["commonRowCount"] == 1000
        assert data["previews"]["common"]["rows"] == [["1"], ["2"]]
        assert data["previews"]["leftExclusive"]["raw_text"] == "line a\nline b"
        assert "rightExclusive" not in data["previews"]


class TestExcelExporter:
    """Test Excel export."""

    def test_export(self, tmp_path, result, previews):
        output_file = tmp_path / "result.xlsx"

        ExcelExporter().export(output_file, result, previews)

        wb = load_workbook(output_file)
        assert wb.sheetnames == ["Summary", "Common", "Left exclusive"]

        summary = {row[0]: row[1] for row in wb["Summary"].iter_rows(min_row=2, values_only=True)}
        assert summary["status"] == "Completed"
        assert summary["common_rows"] == "1,000"

        common = list(wb["Common"].iter_rows(values_only=True))
        assert common == [("id",), ("1",), ("2",)]

        left = list(wb["Left exclusive"].iter_rows(values_only=True))
        assert left == [("line a",), ("line b",)]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
