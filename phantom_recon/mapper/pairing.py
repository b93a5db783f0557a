"""Interactive left/right field pairing."""
from collections import OrderedDict
from enum import Enum
from typing import List, Dict, Optional


class PairingAction(str, Enum):
    """Outcome of a pairing interaction."""

    ARMED = "armed"
    REMOVED = "removed"
    CONFIRMED = "confirmed"
    NOOP = "noop"


class FieldPairing:
    """Working field map built by selecting one field per side.

    Selecting an unmapped field arms it; selecting an already-mapped field
    removes its pair instead. ``confirm`` commits the two armed fields as a
    pair and disarms both.
    """

    def __init__(
        self,
        left_fields: Optional[List[str]] = None,
        right_fields: Optional[List[str]] = None,
        field_map: Optional[Dict[str, str]] = None,
        read_only: bool = False,
    ):
        self.left_fields = list(left_fields or [])
        self.right_fields = list(right_fields or [])
        self.field_map: "OrderedDict[str, str]" = OrderedDict(field_map or {})
        self.read_only = read_only
        self.armed_left: Optional[str] = None
        self.armed_right: Optional[str] = None

    def select_left(self, field: str) -> PairingAction:
        """Click on a left field."""
        if self.read_only:
            return PairingAction.NOOP

        if field in self.field_map:
            self.remove(field)
            return PairingAction.REMOVED

        self.armed_left = field
        return PairingAction.ARMED

    def select_right(self, field: str) -> PairingAction:
        """Click on a right field."""
        if self.read_only:
            return PairingAction.NOOP

        sources = self.left_fields_for(field)
        if len(sources) == 1:
            self.remove(sources[0])
            return PairingAction.REMOVED

        # Unmapped, or targeted by several left fields: nothing unambiguous to remove
        self.armed_right = field
        return PairingAction.ARMED

    def confirm(self) -> PairingAction:
        """Commit the armed pair."""
        if self.read_only or not (self.armed_left and self.armed_right):
            return PairingAction.NOOP

        self.field_map[self.armed_left] = self.armed_right
        self.armed_left = None
        self.armed_right = None
        return PairingAction.CONFIRMED

    def remove(self, left_field: str) -> bool:
        """Remove the pair keyed by a left field."""
        if left_field in self.field_map:
            del self.field_map[left_field]
            return True
        return False

    def reset(self) -> None:
        """Clear all pairs and armed selections."""
        self.field_map = OrderedDict()
        self.armed_left = None
        self.armed_right = None

    def left_fields_for(self, right_field: str) -> List[str]:
        """Left fields currently paired with a right field."""
        return [left for left, right in self.field_map.items() if right == right_field]

    def ordered_left_fields(self, search: str = "") -> List[str]:
        """Left fields for display: mapped, then armed, then the rest alphabetically."""
        mapped = set(self.field_map.keys())
        return self._ordered(self.left_fields, mapped, self.armed_left, search)

    def ordered_right_fields(self, search: str = "") -> List[str]:
        """Right fields for display: mapped, then armed, then the rest alphabetically."""
        mapped = set(self.field_map.values())
        return self._ordered(self.right_fields, mapped, self.armed_right, search)

    @staticmethod
    def _ordered(
        fields: List[str],
        mapped: set,
        armed: Optional[str],
        search: str,
    ) -> List[str]:
        needle = (search or "").lower()
        visible = [f for f in fields if needle in f.lower()]

        def sort_key(name: str):
            if name in mapped:
                group = 0
            elif name == armed:
                group = 1
            else:
                group = 2
            return (group, name.lower(), name)

        return sorted(visible, key=sort_key)
