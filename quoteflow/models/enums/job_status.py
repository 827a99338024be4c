# quoteflow/models/enums/job_status.py
import enum

class JobStatus(str, enum.Enum):
    accepted = "accepted"
    pending_deposit = "pending_deposit"
    deposit_paid = "deposit_paid"
    selections_pending = "selections_pending"
    selections_complete = "selections_complete"
    scheduled = "scheduled"
    in_progress = "in_progress"
    paused = "paused"
    completed = "completed"
    invoiced = "invoiced"
    paid = "paid"
    closed = "closed"
    canceled = "canceled"
    on_hold = "on_hold"
