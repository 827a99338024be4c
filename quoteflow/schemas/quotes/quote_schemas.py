from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime, date

from quoteflow.models.enums.quote_status import QuoteStatus

# =====================================================
# REQUESTS
# =====================================================

class QuoteStatusUpdate(BaseModel):
    status: QuoteStatus
    reason: Optional[str] = None
    notes: Optional[str] = None


class MarkDepositPaidRequest(BaseModel):
    payment_method: str = "cash"
    notes: Optional[str] = None


class ReopenQuoteRequest(BaseModel):
    reason: Optional[str] = None


# =====================================================
# RESPONSES
# =====================================================

class QuoteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    quote_number: str
    customer_name: Optional[str]
    customer_email: Optional[str]
    status: QuoteStatus
    valid_until: Optional[date]

    sent_at: Optional[datetime]
    viewed_at: Optional[datetime]
    accepted_at: Optional[datetime]
    declined_at: Optional[datetime]
    decline_reason: Optional[str]

    deposit_verified: bool
    deposit_verified_at: Optional[datetime]
    deposit_payment_method: Optional[str]
    deposit_transaction_id: Optional[str]

    portal_open: bool
    portal_opened_at: Optional[datetime]
    portal_closed_at: Optional[datetime]
    selections_complete: bool

    version: int


class AllowedStatusesOut(BaseModel):
    entity_type: str
    current_status: str
    allowed: List[str]
