from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

from quoteflow.models.enums.job_status import JobStatus


class JobStatusUpdate(BaseModel):
    status: JobStatus
    scheduled_start_date: Optional[datetime] = None
    scheduled_end_date: Optional[datetime] = None
    reason: Optional[str] = None


class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    quote_id: int
    job_number: str
    job_name: Optional[str]
    customer_name: Optional[str]
    status: JobStatus

    deposit_paid: bool
    deposit_paid_at: Optional[datetime]

    scheduled_start_date: Optional[datetime]
    scheduled_end_date: Optional[datetime]
    actual_start_date: Optional[datetime]
    actual_end_date: Optional[datetime]

    customer_selections_complete: bool
    portal_expires_at: Optional[datetime]
    contractor_notes: Optional[str]

    version: int
