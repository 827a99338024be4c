import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from quoteflow.models.enums.quote_status import QuoteStatus
from quoteflow.services.status_flow.authority import Authority
from quoteflow.services.status_flow.status_flow_service import build_status_flow_service

logger = logging.getLogger(__name__)

_EXPIRABLE_STATUSES = {QuoteStatus.sent, QuoteStatus.viewed}


async def expire_overdue_quotes(db: AsyncSession, today: date | None = None) -> int:
    """Expire sent/viewed quotes whose ``valid_until`` is before ``today``. Returns the count."""
    today = today or date.today()
    status_flow = build_status_flow_service(db)
    store = status_flow.store

    quote_ids = await store.list_overdue_quote_ids(today)
    if not quote_ids:
        return 0

    expired = 0
    for quote_id in quote_ids:
        try:
            async with store.transaction():
                quote = await store.get_quote(quote_id, for_update=True)
                if quote is None or quote.status not in _EXPIRABLE_STATUSES:
                    continue

                await status_flow.transition_quote(
                    quote,
                    QuoteStatus.expired,
                    authority=Authority.automated(),
                    tenant_id=quote.tenant_id,
                    reason=f"Expired automatically on {today}",
                )
        except Exception:
            logger.exception("Failed to expire quote", extra={"quote_id": quote_id})
            continue

        expired += 1

    logger.info("Quote expiry finished", extra={"expired": expired, "candidates": len(quote_ids)})
    return expired
