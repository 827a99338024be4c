from sqlalchemy import Column, Integer, String, ForeignKey, Enum, Index, Boolean, DateTime, Text, UniqueConstraint
from quoteflow.core.db import Base
from quoteflow.models.base.mixins import TimestampMixin, SoftDeleteMixin
from quoteflow.models.enums.job_status import JobStatus


class Job(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="RESTRICT"), nullable=False, unique=True, index=True)
    job_number = Column(String(50), nullable=False, index=True)
    job_name = Column(String(255), nullable=True)
    customer_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True)

    status = Column(Enum(JobStatus), nullable=False, default=JobStatus.accepted, index=True)

    deposit_paid = Column(Boolean, nullable=False, default=False)
    deposit_paid_at = Column(DateTime(timezone=True), nullable=True)

    scheduled_start_date = Column(DateTime(timezone=True), nullable=True)
    scheduled_end_date = Column(DateTime(timezone=True), nullable=True)
    actual_start_date = Column(DateTime(timezone=True), nullable=True)
    actual_end_date = Column(DateTime(timezone=True), nullable=True)

    customer_selections_complete = Column(Boolean, nullable=False, default=False)
    portal_expires_at = Column(DateTime(timezone=True), nullable=True)
    contractor_notes = Column(Text, nullable=True)

    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        Index("ix_job_tenant_status", "tenant_id", "status"),
        UniqueConstraint("tenant_id", "job_number", name="uq_job_tenant_number"),
    )

    def __repr__(self):
        return f"<Job {self.job_number} status={self.status}>"
