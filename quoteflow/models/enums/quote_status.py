# quoteflow/models/enums/quote_status.py
import enum

class QuoteStatus(str, enum.Enum):
    draft = "draft"
    sent = "sent"
    viewed = "viewed"
    accepted = "accepted"
    rejected = "rejected"
    declined = "declined"
    expired = "expired"
    deposit_paid = "deposit_paid"
