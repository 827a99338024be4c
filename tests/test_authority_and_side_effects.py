from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from quoteflow.constants.audit_actions import AuditAction
from quoteflow.core.exceptions import MissingActor
from quoteflow.models.enums.job_status import JobStatus
from quoteflow.models.enums.quote_status import QuoteStatus
from quoteflow.services.status_flow.authority import Authority, AuthorityKind
from quoteflow.services.status_flow.side_effects import (
    TransitionParams,
    job_action,
    job_effect,
    quote_action,
    quote_effect,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# -------------------------
# Authority
# -------------------------
def test_automated_authority_has_no_actor():
    authority = Authority.automated()
    assert authority.is_automated
    assert not authority.is_admin
    assert authority.actor_id is None


@pytest.mark.parametrize("kind", [AuthorityKind.user, AuthorityKind.admin])
def test_human_authority_requires_actor(kind):
    with pytest.raises(MissingActor):
        Authority(kind)


def test_automated_authority_rejects_actor():
    with pytest.raises(ValueError):
        Authority(AuthorityKind.automated, 7)


def test_for_user_maps_role():
    assert Authority.for_user(SimpleNamespace(id=3, is_admin=True)) == Authority.admin(3)
    assert Authority.for_user(SimpleNamespace(id=4, is_admin=False)) == Authority.user(4)


# -------------------------
# Quote side effects
# -------------------------
def _quote(**fields):
    values = {"viewed_at": None}
    values.update(fields)
    return SimpleNamespace(**values)


def _job(**fields):
    values = {"actual_start_date": None, "actual_end_date": None, "contractor_notes": None}
    values.update(fields)
    return SimpleNamespace(**values)


def test_sent_sets_sent_at():
    effect = quote_effect(_quote(), QuoteStatus.sent, TransitionParams(), NOW)
    assert effect.updates == {"sent_at": NOW}


def test_viewed_keeps_first_view_time():
    first = NOW - timedelta(days=2)
    effect = quote_effect(_quote(viewed_at=first), QuoteStatus.viewed, TransitionParams(), NOW)
    assert effect.updates == {"viewed_at": first}


def test_accepted_writes_legacy_approved_at():
    effect = quote_effect(_quote(), QuoteStatus.accepted, TransitionParams(), NOW)
    assert effect.updates == {"accepted_at": NOW, "approved_at": NOW}


def test_declined_records_reason():
    effect = quote_effect(_quote(), QuoteStatus.declined, TransitionParams(reason="Too pricey"), NOW)
    assert effect.updates == {"declined_at": NOW, "decline_reason": "Too pricey"}


def test_deposit_paid_opens_portal():
    params = TransitionParams(payment_reference="pi_1", portal_duration=timedelta(days=14))
    effect = quote_effect(_quote(), QuoteStatus.deposit_paid, params, NOW)

    assert effect.updates["deposit_verified"] is True
    assert effect.updates["deposit_payment_method"] == "stripe"
    assert effect.updates["deposit_transaction_id"] == "pi_1"
    assert effect.updates["portal_open"] is True
    assert effect.updates["portal_closed_at"] == NOW + timedelta(days=14)
    assert effect.metadata["payment_method"] == "stripe"


def test_manual_deposit_has_no_transaction_id():
    params = TransitionParams(payment_method="check", notes="Check #1042")
    effect = quote_effect(_quote(), QuoteStatus.deposit_paid, params, NOW)
    assert "deposit_transaction_id" not in effect.updates
    assert effect.metadata["notes"] == "Check #1042"


def test_expired_is_status_only():
    effect = quote_effect(_quote(), QuoteStatus.expired, TransitionParams(), NOW)
    assert effect.updates == {}


# -------------------------
# Job side effects
# -------------------------
def test_scheduled_only_writes_supplied_dates():
    start = NOW + timedelta(days=3)
    effect = job_effect(_job(), JobStatus.scheduled, TransitionParams(scheduled_start_date=start), NOW)
    assert effect.updates == {"scheduled_start_date": start}


def test_in_progress_keeps_existing_start():
    started = NOW - timedelta(hours=5)
    effect = job_effect(_job(actual_start_date=started), JobStatus.in_progress, TransitionParams(), NOW)
    assert effect.updates == {"actual_start_date": started}


def test_completed_sets_end_date():
    effect = job_effect(_job(), JobStatus.completed, TransitionParams(), NOW)
    assert effect.updates == {"actual_end_date": NOW}


def test_on_hold_appends_note():
    effect = job_effect(
        _job(contractor_notes="Gate code 1234"),
        JobStatus.on_hold,
        TransitionParams(hold_note="[Auto] held"),
        NOW,
    )
    assert effect.updates == {"contractor_notes": "Gate code 1234\n[Auto] held"}


def test_paused_reason_goes_to_metadata_only():
    effect = job_effect(_job(), JobStatus.paused, TransitionParams(reason="Rain"), NOW)
    assert effect.updates == {}
    assert effect.metadata == {"reason": "Rain"}


def test_audit_actions_fall_back_to_status_changed():
    assert quote_action(QuoteStatus.sent) is AuditAction.QUOTE_SENT
    assert quote_action(QuoteStatus.draft) is AuditAction.QUOTE_STATUS_CHANGED
    assert job_action(JobStatus.in_progress) is AuditAction.JOB_STARTED
    assert job_action(JobStatus.paid) is AuditAction.JOB_STATUS_CHANGED
