from sqlalchemy import Column, Integer, String, Index, JSON
from quoteflow.core.db import Base
from quoteflow.models.base.mixins import TimestampMixin


class AuditLog(Base, TimestampMixin):
    """Immutable transition log. APPEND-ONLY. Never updated, never deleted."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=True, index=True)
    actor_user_id = Column(Integer, nullable=True, index=True)
    entity_type = Column(String(20), nullable=False)
    entity_id = Column(Integer, nullable=False)
    action = Column(String(64), nullable=False, index=True)
    old_status = Column(String(32), nullable=True)
    new_status = Column(String(32), nullable=True)
    event_metadata = Column("metadata", JSON, nullable=True)
    message = Column(String, nullable=False)

    __table_args__ = (Index("ix_audit_log_entity", "entity_type", "entity_id", "created_at"),)

    def __repr__(self):
        return f"<AuditLog id={self.id} action={self.action} entity={self.entity_type}:{self.entity_id}>"
