"""JSON exporter."""
import json
from pathlib import Path
from datetime import datetime
from typing import Dict

from phantom_recon.report.summary import ResultSummary
from phantom_recon.schema.models import (
    ReconciliationMapping,
    ReconciliationResult,
    PreviewCategory,
    PreviewCategoryState,
)


class JsonExporter:
    """Export a reconciliation result and its loaded previews to JSON."""

    def export(
        self,
        output_file: Path,
        mapping: ReconciliationMapping,
        result: ReconciliationResult,
        previews: Dict[PreviewCategory, PreviewCategoryState],
    ) -> None:
        """Export to JSON file."""
        output_file.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "metadata": {
                "exported_at": datetime.now().isoformat(),
                "reconciliation_id": mapping.id,
                "playground_id": mapping.playground_id,
                "left_task_id": mapping.left_task_id,
                "right_task_id": mapping.right_task_id,
            },
            "mapping": dict(mapping.field_map),
            "summary": ResultSummary(result).to_dict(),
            "result": result.to_dict(),
            "previews": {
                category.value: state.data.to_dict()
                for category, state in previews.items()
                if state.data is not None
            },
        }

        with open(output_file, "w") as f:
            json.dump(data, f, indent=2, default=str)
