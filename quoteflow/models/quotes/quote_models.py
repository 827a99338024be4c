from sqlalchemy import Column, Integer, String, Enum, Index, Boolean, DateTime, Date, Text
from quoteflow.core.db import Base
from quoteflow.models.base.mixins import TimestampMixin, SoftDeleteMixin
from quoteflow.models.enums.quote_status import QuoteStatus


class Quote(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    quote_number = Column(String(50), nullable=False, index=True)
    customer_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True)

    status = Column(Enum(QuoteStatus), nullable=False, default=QuoteStatus.draft, index=True)
    valid_until = Column(Date, nullable=True)

    sent_at = Column(DateTime(timezone=True), nullable=True)
    viewed_at = Column(DateTime(timezone=True), nullable=True)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    # Legacy mirror of accepted_at kept for older portal clients
    approved_at = Column(DateTime(timezone=True), nullable=True)
    declined_at = Column(DateTime(timezone=True), nullable=True)
    decline_reason = Column(Text, nullable=True)

    deposit_verified = Column(Boolean, nullable=False, default=False)
    deposit_verified_at = Column(DateTime(timezone=True), nullable=True)
    deposit_payment_method = Column(String(50), nullable=True)
    deposit_transaction_id = Column(String(255), nullable=True)

    # portal_closed_at is the auto-close deadline while portal_open is true,
    # and the closure time once the portal has been closed manually.
    portal_open = Column(Boolean, nullable=False, default=False)
    portal_opened_at = Column(DateTime(timezone=True), nullable=True)
    portal_closed_at = Column(DateTime(timezone=True), nullable=True)
    selections_complete = Column(Boolean, nullable=False, default=False)

    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        Index("ix_quote_tenant_status", "tenant_id", "status"),
        Index("ix_quote_portal_open_closed_at", "portal_open", "portal_closed_at"),
    )

    def __repr__(self):
        return f"<Quote {self.quote_number} status={self.status}>"
