import enum


class AuditAction(str, enum.Enum):
    # ---------------- QUOTES ----------------
    QUOTE_SENT = "quote_sent"
    QUOTE_VIEWED = "quote_viewed"
    QUOTE_VIEWED_MULTIPLE = "quote_viewed_multiple"
    QUOTE_ACCEPTED = "quote_accepted"
    QUOTE_DECLINED = "quote_declined"
    QUOTE_DEPOSIT_PAID = "quote_deposit_paid"
    QUOTE_EXPIRED = "quote_expired"
    QUOTE_REOPENED = "quote_reopened"
    QUOTE_STATUS_CHANGED = "quote_status_changed"

    # ---------------- JOBS ----------------
    JOB_CREATED = "job_created"
    JOB_DEPOSIT_PAID = "job_deposit_paid"
    JOB_SCHEDULED = "job_scheduled"
    JOB_STARTED = "job_started"
    JOB_COMPLETED = "job_completed"
    JOB_CLOSED = "job_closed"
    JOB_PAUSED = "job_paused"
    JOB_ON_HOLD = "job_on_hold"
    JOB_STATUS_CHANGED = "job_status_changed"

    # ---------------- SYSTEM ----------------
    PORTAL_LOCKED = "portal_locked"
