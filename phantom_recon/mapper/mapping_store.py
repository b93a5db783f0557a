"""Persistence of reconciliation mappings."""
import logging
from collections import OrderedDict
from typing import List, Dict, Optional

from phantom_recon.api.exceptions import MappingValidationError, TransientApiError
from phantom_recon.api.phantom_client import PhantomClient
from phantom_recon.mapper.pairing import FieldPairing
from phantom_recon.schema.models import ReconciliationMapping
from phantom_recon.validator.mapping_validator import MappingValidator

logger = logging.getLogger(__name__)


class MappingStore:
    """CRUD over the mapping endpoints plus the client-side invariants.

    Keeps the last successfully loaded mapping list per playground so a
    transient failure while refreshing does not lose it.
    """

    def __init__(self, client: PhantomClient, validator: Optional[MappingValidator] = None):
        """Initialize store."""
        self.client = client
        self.validator = validator or MappingValidator()
        self._mappings: Dict[str, List[ReconciliationMapping]] = {}

    def create(
        self,
        playground_id: str,
        left_task_id: str,
        right_task_id: str,
        field_map: Dict[str, str],
    ) -> ReconciliationMapping:
        """Persist a new mapping."""
        self._require_field_map(field_map)

        mapping = ReconciliationMapping(
            playground_id=playground_id,
            left_task_id=left_task_id,
            right_task_id=right_task_id,
            field_map=OrderedDict(field_map),
        )
        created = self.client.create_mapping(mapping)
        logger.info(f"Created mapping {created.id} ({left_task_id} -> {right_task_id})")

        if created.id is not None:
            self._mappings.setdefault(playground_id, []).append(created)
        return created

    def update(self, mapping_id: str, field_map: Dict[str, str]) -> ReconciliationMapping:
        """Replace a mapping's whole field map."""
        self._require_field_map(field_map)

        response = self.client.update_mapping(mapping_id, field_map)
        record = response.get("data") if isinstance(response.get("data"), dict) else None

        cached = self.get(mapping_id)
        if record and record.get("reconciliationId", record.get("id")):
            updated = ReconciliationMapping.from_api(record)
            if not updated.field_map:
                updated.field_map = OrderedDict(field_map)
        elif cached is not None:
            updated = ReconciliationMapping(
                id=cached.id,
                playground_id=cached.playground_id,
                left_task_id=cached.left_task_id,
                right_task_id=cached.right_task_id,
                field_map=OrderedDict(field_map),
                created_at=cached.created_at,
                updated_at=cached.updated_at,
            )
        else:
            updated = ReconciliationMapping(
                id=mapping_id,
                playground_id=None,
                left_task_id=None,
                right_task_id=None,
                field_map=OrderedDict(field_map),
            )

        self._replace_cached(updated)
        logger.info(f"Updated mapping {mapping_id} ({len(field_map)} pairs)")
        return updated

    def delete(self, mapping_id: str) -> None:
        """Delete a mapping by id."""
        self.client.delete_mapping(mapping_id)
        for playground_id, mappings in self._mappings.items():
            self._mappings[playground_id] = [m for m in mappings if m.id != mapping_id]
        logger.info(f"Deleted mapping {mapping_id}")

    def list_by_playground(self, playground_id: str) -> List[ReconciliationMapping]:
        """List a playground's mappings, falling back to the last good list on transient errors."""
        try:
            mappings = self.client.list_mappings(playground_id)
        except TransientApiError as e:
            if playground_id in self._mappings:
                logger.warning(f"Keeping cached mappings for {playground_id}: {e}")
                return list(self._mappings[playground_id])
            raise

        self._mappings[playground_id] = list(mappings)
        return list(mappings)

    def get(self, mapping_id: str) -> Optional[ReconciliationMapping]:
        """Cached mapping by id."""
        for mappings in self._mappings.values():
            for mapping in mappings:
                if mapping.id == mapping_id:
                    return mapping
        return None

    def open_pairing(
        self,
        left_task_id: str,
        right_task_id: str,
        mapping: Optional[ReconciliationMapping] = None,
        read_only: bool = False,
    ) -> FieldPairing:
        """Start a pairing session with both tasks' fields loaded."""
        left_fields = self.client.get_task_fields(left_task_id)
        right_fields = self.client.get_task_fields(right_task_id)

        return FieldPairing(
            left_fields=left_fields,
            right_fields=right_fields,
            field_map=mapping.field_map if mapping else None,
            read_only=read_only,
        )

    def save_pairing(
        self,
        pairing: FieldPairing,
        playground_id: str,
        left_task_id: str,
        right_task_id: str,
        mapping_id: Optional[str] = None,
    ) -> ReconciliationMapping:
        """Validate a pairing session and create or update its mapping."""
        errors = self.validator.validate(
            pairing.field_map, pairing.left_fields, pairing.right_fields
        )
        if errors:
            raise MappingValidationError("; ".join(errors))

        for warning in self.validator.warnings(pairing.field_map):
            logger.warning(warning)

        if mapping_id:
            return self.update(mapping_id, pairing.field_map)
        return self.create(playground_id, left_task_id, right_task_id, pairing.field_map)

    def _require_field_map(self, field_map: Dict[str, str]) -> None:
        if not field_map:
            raise MappingValidationError(
                "Please create at least one field mapping before adding a pair"
            )

    def _replace_cached(self, updated: ReconciliationMapping) -> None:
        for playground_id, mappings in self._mappings.items():
            self._mappings[playground_id] = [
                updated if m.id == updated.id else m for m in mappings
            ]
