"""Mapping validation."""
from collections import Counter
from typing import List, Dict, Optional


class MappingValidator:
    """Validates a field map against the fields of both tasks."""

    def validate(
        self,
        field_map: Dict[str, str],
        left_fields: Optional[List[str]] = None,
        right_fields: Optional[List[str]] = None,
    ) -> List[str]:
        """Return validation errors; an empty list means the map can be saved."""
        errors = []

        if not field_map:
            errors.append("Please create at least one field mapping")
            return errors

        # Field lists may be unknown (empty) when the task has no selected fields
        if left_fields:
            for left in field_map:
                if left not in left_fields:
                    errors.append(f"Unknown left field: {left}")

        if right_fields:
            for left, right in field_map.items():
                if right not in right_fields:
                    errors.append(f"Unknown right field: {right} (mapped from {left})")

        return errors

    def warnings(self, field_map: Dict[str, str]) -> List[str]:
        """Non-blocking issues, such as a right field targeted more than once."""
        counts = Counter(field_map.values())
        return [
            f"Right field {right} is targeted by {count} left fields"
            for right, count in counts.items()
            if count > 1
        ]
