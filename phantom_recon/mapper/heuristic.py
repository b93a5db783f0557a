"""Name-similarity suggestions for field pairs."""
import re
from difflib import SequenceMatcher
from typing import List, Dict, Optional


class HeuristicPairSuggester:
    """Suggest left-to-right field pairs from field names."""

    FUZZY_THRESHOLD = 0.75

    def __init__(self, threshold: Optional[float] = None):
        """Initialize suggester with an optional fuzzy-match threshold."""
        self.threshold = self.FUZZY_THRESHOLD if threshold is None else threshold

    def suggest(
        self,
        left_fields: List[str],
        right_fields: List[str],
        existing: Optional[Dict[str, str]] = None,
    ) -> Dict[str, str]:
        """
        Suggest pairs for the left fields not already mapped.

        Args:
            left_fields: Field names of the left task
            right_fields: Field names of the right task
            existing: Pairs already chosen; never overwritten

        Returns:
            Dict[str, str]: Suggested {left_field: right_field}, in left order
        """
        existing = existing or {}
        taken = set(existing.values())
        suggestions = {}

        for left in left_fields:
            if left in existing:
                continue

            available = [r for r in right_fields if r not in taken]
            match = self._find_match(left, available)

            if match:
                suggestions[left] = match
                taken.add(match)

        return suggestions

    def _find_match(self, left: str, candidates: List[str]) -> Optional[str]:
        """Find best matching right field."""
        left_lower = left.lower()

        # Exact match
        for right in candidates:
            if right.lower() == left_lower:
                return right

        # Normalized match
        left_normalized = self._normalize(left)
        for right in candidates:
            if self._normalize(right) == left_normalized:
                return right

        # Fuzzy match
        best_match = None
        best_ratio = self.threshold

        for right in candidates:
            ratio = SequenceMatcher(None, left_lower, right.lower()).ratio()

            if ratio >= best_ratio and (best_match is None or ratio > best_ratio):
                best_ratio = ratio
                best_match = right

        return best_match

    @staticmethod
    def _normalize(name: str) -> str:
        return re.sub(r"[\s_\-]+", "", name.lower())
