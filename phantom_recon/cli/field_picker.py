"""Interactive left/right field pairing."""
from typing import Dict, Optional

import click
import questionary
from colorama import Fore

from phantom_recon.mapper.heuristic import HeuristicPairSuggester
from phantom_recon.mapper.pairing import FieldPairing, PairingAction

PICK_LEFT = "Pick left field"
PICK_RIGHT = "Pick right field"
CONFIRM = "Confirm armed pair"
SUGGEST = "Suggest pairs by name"
SEARCH = "Filter fields"
RESET = "Clear all pairs"
SAVE = "Save mapping"
CANCEL = "Cancel"


class FieldPicker:
    """Drive a FieldPairing session from the terminal."""

    def __init__(self, pairing: FieldPairing, suggester: Optional[HeuristicPairSuggester] = None):
        """Initialize picker."""
        self.pairing = pairing
        self.suggester = suggester or HeuristicPairSuggester()
        self.search = ""

    def prompt_pairs(self) -> Optional[Dict[str, str]]:
        """
        Let the user build the field map.

        Returns:
            Dict[str, str]: The confirmed field map, or None if cancelled
        """
        if not self.pairing.left_fields or not self.pairing.right_fields:
            click.echo(f"{Fore.YELLOW}Both tasks need at least one selected field")
            return None

        while True:
            self._display_pairs()

            choice = questionary.select(
                "Action",
                choices=[PICK_LEFT, PICK_RIGHT, CONFIRM, SUGGEST, SEARCH, RESET, SAVE, CANCEL],
            ).ask()

            if choice is None or choice == CANCEL:
                click.echo(f"{Fore.YELLOW}Pairing cancelled")
                return None

            if choice == PICK_LEFT:
                self._pick(self.pairing.ordered_left_fields(self.search), self.pairing.select_left)
            elif choice == PICK_RIGHT:
                self._pick(self.pairing.ordered_right_fields(self.search), self.pairing.select_right)
            elif choice == CONFIRM:
                if self.pairing.confirm() == PairingAction.NOOP:
                    click.echo(f"{Fore.RED}Arm one left and one right field first")
            elif choice == SUGGEST:
                self.apply_suggestions()
            elif choice == SEARCH:
                self.search = click.prompt("Filter", default="", show_default=False).strip()
            elif choice == RESET:
                self.pairing.reset()
            elif choice == SAVE:
                if self.pairing.field_map:
                    return dict(self.pairing.field_map)
                click.echo(f"{Fore.RED}Please create at least one field mapping")

    def apply_suggestions(self) -> Dict[str, str]:
        """Add name-based suggestions for unmapped left fields."""
        suggestions = self.suggester.suggest(
            self.pairing.left_fields,
            self.pairing.right_fields,
            self.pairing.field_map,
        )
        for left, right in suggestions.items():
            self.pairing.field_map[left] = right

        click.echo(f"{Fore.GREEN}Added {len(suggestions)} suggested pair(s)")
        return suggestions

    def _pick(self, fields, select) -> None:
        if not fields:
            click.echo(f"{Fore.YELLOW}No fields match '{self.search}'")
            return

        field = questionary.select("Field", choices=fields).ask()
        if field is None:
            return

        action = select(field)
        if action == PairingAction.REMOVED:
            click.echo(f"{Fore.YELLOW}Removed pair for {field}")
        elif action == PairingAction.ARMED:
            click.echo(f"{Fore.CYAN}Armed {field}")

    def _display_pairs(self) -> None:
        click.echo(f"\n{Fore.CYAN}Current pairs ({len(self.pairing.field_map)}):")
        for left, right in self.pairing.field_map.items():
            click.echo(f"   {left:30s} -> {right}")

        armed = [f for f in (self.pairing.armed_left, self.pairing.armed_right) if f]
        if armed:
            click.echo(
                f"{Fore.CYAN}Armed: left={self.pairing.armed_left or '-'} "
                f"right={self.pairing.armed_right or '-'}"
            )
        if self.search:
            click.echo(f"{Fore.CYAN}Filter: '{self.search}'")
