from datetime import date, timedelta

from quoteflow.models.enums.quote_status import QuoteStatus
from quoteflow.services.quotes.quote_expiry_service import expire_overdue_quotes

TODAY = date(2026, 10, 19)


async def test_overdue_open_quotes_expire(db, make_quote, audit_actions):
    sent = await make_quote(status=QuoteStatus.sent, valid_until=TODAY - timedelta(days=1))
    viewed = await make_quote(status=QuoteStatus.viewed, valid_until=TODAY - timedelta(days=30))

    expired = await expire_overdue_quotes(db, today=TODAY)

    assert expired == 2
    for quote in (sent, viewed):
        await db.refresh(quote)
        assert quote.status == QuoteStatus.expired
        assert await audit_actions("quote", quote.id) == ["quote_expired"]


async def test_quotes_still_valid_or_past_offer_stage_are_kept(db, make_quote):
    valid = await make_quote(status=QuoteStatus.sent, valid_until=TODAY)
    accepted = await make_quote(status=QuoteStatus.accepted, valid_until=TODAY - timedelta(days=5))
    undated = await make_quote(status=QuoteStatus.viewed, valid_until=None)

    assert await expire_overdue_quotes(db, today=TODAY) == 0

    for quote, status in ((valid, QuoteStatus.sent), (accepted, QuoteStatus.accepted), (undated, QuoteStatus.viewed)):
        await db.refresh(quote)
        assert quote.status == status
