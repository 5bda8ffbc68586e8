from enum import Enum
from typing import Any, Dict, Iterable, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from leadbook.crud import lead_history as crud_history
from leadbook.models import ChangeRecord, Lead
from leadbook.schemas.lead import LeadCreate, LeadOut


def _comparable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_comparable(v) for v in value]
    return value


def lead_snapshot(lead: Lead) -> Dict[str, Any]:
    return LeadOut.model_validate(lead).model_dump(mode="json", by_alias=True)


class ChangeRecorder:
    """
        Builds the audit payload for a Lead mutation and appends it to the
        caller's session, so the record commits (or rolls back) together
        with the mutation it describes.

        Payloads:
        - created / imported: `{"action": ..., "data": <full lead snapshot>}`
        - updated: `{"action": "updated", "changes": {field: {"from", "to"}}}`
          holding only the fields whose values actually changed; no record is
          written when nothing changed.

        Field equality is per field: enums compare by value, tag lists
        element by element in order, and None means "absent".
    """

    @staticmethod
    async def record_created(db: AsyncSession, lead: Lead, user_id: UUID) -> ChangeRecord:
        return await crud_history.create_change_record(
            db, lead.id, user_id, {"action": "created", "data": lead_snapshot(lead)}
        )

    @staticmethod
    async def record_imported(db: AsyncSession, lead: Lead, user_id: UUID) -> ChangeRecord:
        return await crud_history.create_change_record(
            db, lead.id, user_id, {"action": "imported", "data": lead_snapshot(lead)}
        )

    @staticmethod
    def compute_changes(lead: Lead, payload: LeadCreate, fields: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """
        Diff the stored lead against the validated payload over `fields`
        (snake_case names). Keys of the result use the wire (camelCase) names.
        """
        changes = {}
        for name in fields:
            before = _comparable(getattr(lead, name))
            after = _comparable(getattr(payload, name))
            if before != after:
                alias = LeadCreate.model_fields[name].alias or name
                changes[alias] = {"from": before, "to": after}
        return changes

    @staticmethod
    async def record_updated(
        db: AsyncSession,
        lead_id: UUID,
        changes: Dict[str, Dict[str, Any]],
        user_id: UUID,
    ) -> Optional[ChangeRecord]:
        if not changes:
            return None
        return await crud_history.create_change_record(
            db, lead_id, user_id, {"action": "updated", "changes": changes}
        )
