"""Excel exporter."""
from pathlib import Path
from typing import Dict

from openpyxl import Workbook

from phantom_recon.report.summary import ResultSummary
from phantom_recon.schema.models import (
    ReconciliationResult,
    PreviewCategory,
    PreviewCategoryState,
)

# Excel caps sheet titles at 31 characters
SHEET_TITLES = {
    PreviewCategory.COMMON: "Common",
    PreviewCategory.LEFT_EXCLUSIVE: "Left exclusive",
    PreviewCategory.RIGHT_EXCLUSIVE: "Right exclusive",
}


class ExcelExporter:
    """Export a result summary and preview tables to an .xlsx workbook."""

    def export(
        self,
        output_file: Path,
        result: ReconciliationResult,
        previews: Dict[PreviewCategory, PreviewCategoryState],
    ) -> None:
        """
        Write one Summary sheet plus one sheet per loaded category.

        Args:
            output_file: Destination .xlsx path
            result: Reconciliation result to summarize
            previews: Preview states; categories without data are skipped
        """
        output_file.parent.mkdir(parents=True, exist_ok=True)

        wb = Workbook()
        ws = wb.active
        ws.title = "Summary"
        ws.append(["Field", "Value"])
        for key, value in ResultSummary(result).to_dict().items():
            ws.append([key, value if value is not None else ""])

        for category in PreviewCategory.in_priority_order():
            state = previews.get(category)
            if state is None or state.data is None:
                continue

            sheet = wb.create_sheet(title=SHEET_TITLES[category])
            table = state.data.parsed_table

            if table is None:
                # Not tabular, keep the raw lines
                for line in state.data.raw_text.split("\n"):
                    sheet.append([line])
                continue

            sheet.append(list(table.headers))
            for row in table.rows:
                sheet.append(list(row))

        wb.save(output_file)
