import enum


class ErrorCode(str, enum.Enum):
    # ---------------- GENERIC ----------------
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # ---------------- STATUS FLOW ----------------
    INVALID_TRANSITION = "INVALID_TRANSITION"
    REQUIRES_ADMIN_ACTION = "REQUIRES_ADMIN_ACTION"
    INVALID_STATE = "INVALID_STATE"
    MISSING_ACTOR = "MISSING_ACTOR"

    # ---------------- ENTITIES ----------------
    QUOTE_NOT_FOUND = "QUOTE_NOT_FOUND"
    JOB_NOT_FOUND = "JOB_NOT_FOUND"

    # ---------------- WEBHOOKS ----------------
    INVALID_WEBHOOK_SIGNATURE = "INVALID_WEBHOOK_SIGNATURE"
