from quoteflow.constants.audit_actions import AuditAction


AUDIT_TEMPLATES = {
    # ---------------- QUOTES ----------------
    AuditAction.QUOTE_SENT:
        "{actor} sent quote {label}",

    AuditAction.QUOTE_VIEWED:
        "Quote {label} viewed by customer",

    AuditAction.QUOTE_VIEWED_MULTIPLE:
        "Quote {label} viewed again by customer",

    AuditAction.QUOTE_ACCEPTED:
        "Quote {label} accepted",

    AuditAction.QUOTE_DECLINED:
        "Quote {label} moved from {old_status} to {new_status}",

    AuditAction.QUOTE_DEPOSIT_PAID:
        "{actor} confirmed deposit for quote {label} via {payment_method}",

    AuditAction.QUOTE_EXPIRED:
        "Quote {label} expired",

    AuditAction.QUOTE_REOPENED:
        "{actor} reopened quote {label} (was {old_status})",

    AuditAction.QUOTE_STATUS_CHANGED:
        "{actor} changed quote {label} from {old_status} to {new_status}",

    # ---------------- JOBS ----------------
    AuditAction.JOB_CREATED:
        "Job {label} created in {new_status}",

    AuditAction.JOB_DEPOSIT_PAID:
        "Deposit recorded for job {label}",

    AuditAction.JOB_SCHEDULED:
        "{actor} scheduled job {label}",

    AuditAction.JOB_STARTED:
        "{actor} started job {label}",

    AuditAction.JOB_COMPLETED:
        "{actor} completed job {label}",

    AuditAction.JOB_CLOSED:
        "{actor} closed job {label}",

    AuditAction.JOB_PAUSED:
        "{actor} paused job {label}",

    AuditAction.JOB_ON_HOLD:
        "Job {label} put on hold (was {old_status})",

    AuditAction.JOB_STATUS_CHANGED:
        "{actor} changed job {label} from {old_status} to {new_status}",

    # ---------------- SYSTEM ----------------
    AuditAction.PORTAL_LOCKED:
        "Customer portal for quote {label} locked after expiry",
}
