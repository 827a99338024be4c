from typing import Dict, Optional
from pydantic import BaseModel, Field


class PaymentObject(BaseModel):
    id: str
    amount: Optional[int] = None
    currency: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)


class PaymentEventData(BaseModel):
    object: PaymentObject


class PaymentEvent(BaseModel):
    id: Optional[str] = None
    type: str
    data: PaymentEventData


class PaymentEventAck(BaseModel):
    received: bool = True
    handled: bool
    detail: Optional[str] = None
