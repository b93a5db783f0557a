"""Mapping persistence and field pairing."""

from .mapping_store import MappingStore
from .pairing import FieldPairing, PairingAction
from .heuristic import HeuristicPairSuggester

__all__ = ["MappingStore", "FieldPairing", "PairingAction", "HeuristicPairSuggester"]
