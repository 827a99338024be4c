from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from quoteflow.constants.audit_actions import AuditAction
from quoteflow.models.support.audit_log_models import AuditLog
from quoteflow.utils.audit_helpers import actor_label, entity_label, render_audit_message


_RESERVED_CONTEXT_KEYS = {"actor", "label", "old_status", "new_status"}


@dataclass(frozen=True)
class TransitionRecord:
    entity_type: str
    entity_id: int
    tenant_id: int | None
    actor_user_id: int | None
    action: AuditAction
    old_status: str | None
    new_status: str | None
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AuditRecorder(Protocol):
    async def record(self, entry: TransitionRecord) -> None: ...


class SqlAuditRecorder:
    """Writes audit rows into the caller's session so they commit or roll back with the entity."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(self, entry: TransitionRecord) -> None:
        metadata = jsonable_encoder(entry.metadata)
        message = render_audit_message(
            entry.action,
            actor=actor_label(entry.actor_user_id),
            label=entity_label(entry.entity_type, entry.entity_id, metadata),
            old_status=entry.old_status,
            new_status=entry.new_status,
            **{k: v for k, v in metadata.items() if k not in _RESERVED_CONTEXT_KEYS},
        )

        self.db.add(
            AuditLog(
                tenant_id=entry.tenant_id,
                actor_user_id=entry.actor_user_id,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
                action=AuditAction(entry.action).value,
                old_status=entry.old_status,
                new_status=entry.new_status,
                event_metadata=metadata,
                message=message,
                created_at=entry.timestamp,
            )
        )
        # Surface constraint errors inside the transition's transaction
        await self.db.flush()
