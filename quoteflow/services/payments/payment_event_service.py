import logging

from sqlalchemy.ext.asyncio import AsyncSession

from quoteflow.core.exceptions import InvalidState, NotFound
from quoteflow.schemas.webhooks.payment_webhook_schemas import PaymentEvent, PaymentEventAck
from quoteflow.services.status_flow.status_flow_service import build_status_flow_service

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"


async def handle_payment_event(db: AsyncSession, event: PaymentEvent) -> PaymentEventAck:
    """Route a verified payment event to the deposit confirmation path.

    Events that cannot ever succeed (unknown quote, quote in the wrong state) are
    acknowledged so the provider stops redelivering them.
    """
    if event.type != PAYMENT_SUCCEEDED:
        logger.info("Ignoring payment event", extra={"event_id": event.id, "event_type": event.type})
        return PaymentEventAck(handled=False, detail=f"Ignored event type {event.type}")

    raw_quote_id = event.data.object.metadata.get("quote_id")
    try:
        quote_id = int(raw_quote_id)
    except (TypeError, ValueError):
        logger.warning(
            "Payment event without a usable quote_id",
            extra={"event_id": event.id, "quote_id": raw_quote_id},
        )
        return PaymentEventAck(handled=False, detail="No quote_id in payment metadata")

    status_flow = build_status_flow_service(db)
    try:
        quote = await status_flow.handle_payment_success(quote_id, event.data.object.id)
    except (NotFound, InvalidState) as exc:
        logger.warning(
            "Payment event could not be applied",
            extra={"event_id": event.id, "quote_id": quote_id, "error_code": exc.error_code.value},
        )
        return PaymentEventAck(handled=False, detail=exc.detail)

    logger.info(
        "Deposit confirmed from payment event",
        extra={"event_id": event.id, "quote_id": quote.id, "payment_reference": event.data.object.id},
    )
    return PaymentEventAck(handled=True)
