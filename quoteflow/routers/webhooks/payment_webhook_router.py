from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from quoteflow.constants.error_codes import ErrorCode
from quoteflow.core.config import PAYMENT_WEBHOOK_SECRET, PAYMENT_WEBHOOK_TOLERANCE_SECONDS
from quoteflow.core.db import get_db
from quoteflow.core.exceptions import AppException
from quoteflow.utils.logger import get_logger
from quoteflow.utils.response import success_response, APIResponse
from quoteflow.utils.webhook_signature import (
    SIGNATURE_HEADER,
    WebhookSignatureError,
    verify_signature,
)

from quoteflow.schemas.webhooks.payment_webhook_schemas import PaymentEvent, PaymentEventAck
from quoteflow.services.payments.payment_event_service import handle_payment_event

logger = get_logger(__name__)

router = APIRouter(
    prefix="/webhooks",
    tags=["Webhooks"],
)


@router.post(
    "/payments",
    response_model=APIResponse[PaymentEventAck],
)
async def payment_webhook_api(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    # Signature is computed over the raw bytes, so read them before parsing
    body = await request.body()

    try:
        verify_signature(
            body,
            request.headers.get(SIGNATURE_HEADER),
            PAYMENT_WEBHOOK_SECRET,
            tolerance=PAYMENT_WEBHOOK_TOLERANCE_SECONDS,
        )
    except WebhookSignatureError as exc:
        logger.warning("Rejected payment webhook", extra={"reason": str(exc)})
        raise AppException(
            400,
            "Invalid webhook signature",
            ErrorCode.INVALID_WEBHOOK_SIGNATURE,
        )

    try:
        event = PaymentEvent.model_validate_json(body)
    except ValidationError as exc:
        raise AppException(
            400,
            "Malformed payment event",
            ErrorCode.VALIDATION_ERROR,
            details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
        )

    ack = await handle_payment_event(db, event)
    return success_response("Webhook received", ack)
