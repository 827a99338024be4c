from fastapi import HTTPException
from quoteflow.constants.error_codes import ErrorCode


class AppException(HTTPException):
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: ErrorCode,
        details: dict | None = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.error_code = error_code
        self.details = details


def _status_value(status) -> str | None:
    return getattr(status, "value", status)


# =====================================================
# STATUS FLOW ERRORS
# =====================================================
class InvalidTransition(AppException):
    """The requested edge is not in the transition table and no exception applies."""

    def __init__(self, entity_type, from_status, to_status, allowed):
        self.entity_type = _status_value(entity_type)
        self.from_status = _status_value(from_status)
        self.to_status = _status_value(to_status)
        self.allowed = [_status_value(s) for s in allowed]

        allowed_text = ", ".join(self.allowed) or "none (terminal state)"
        super().__init__(
            409,
            f'Cannot transition {self.entity_type} from "{self.from_status}" '
            f'to "{self.to_status}". Allowed transitions: {allowed_text}',
            ErrorCode.INVALID_TRANSITION,
            details={
                "from_status": self.from_status,
                "to_status": self.to_status,
                "allowed": self.allowed,
            },
        )


class ConcurrentTransition(InvalidTransition):
    """The persisted status changed between validation and the write."""


class RequiresAdminAction(AppException):
    def __init__(self, entity_type, to_status):
        self.entity_type = _status_value(entity_type)
        self.to_status = _status_value(to_status)
        super().__init__(
            403,
            f'Status "{self.to_status}" requires admin action. '
            "Only administrators can set this status.",
            ErrorCode.REQUIRES_ADMIN_ACTION,
            details={"to_status": self.to_status},
        )


class InvalidState(AppException):
    def __init__(self, entity_type, current_status, required):
        self.entity_type = _status_value(entity_type)
        self.current_status = _status_value(current_status)
        self.required = [_status_value(s) for s in required]
        super().__init__(
            409,
            f'{self.entity_type.capitalize()} must be in '
            f'"{" | ".join(self.required)}" status. '
            f"Current status: {self.current_status}",
            ErrorCode.INVALID_STATE,
            details={
                "current_status": self.current_status,
                "required": self.required,
            },
        )


class NotFound(AppException):
    def __init__(self, entity_type, entity_id):
        self.entity_type = _status_value(entity_type)
        self.entity_id = entity_id
        error_code = (
            ErrorCode.QUOTE_NOT_FOUND
            if self.entity_type == "quote"
            else ErrorCode.JOB_NOT_FOUND
        )
        super().__init__(
            404,
            f"{self.entity_type.capitalize()} not found",
            error_code,
            details={"id": entity_id},
        )


class MissingActor(AppException):
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            400,
            f"Admin user ID required to {operation}",
            ErrorCode.MISSING_ACTOR,
        )
