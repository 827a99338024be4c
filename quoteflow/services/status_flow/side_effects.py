"""
Field updates implied by each target status.

Every function here is pure: ``(entity, params, now) -> TransitionEffect``. The
engine merges ``updates`` into the conditional status write and ``metadata``
into the audit record. The audit action for each target lives in the tables at
the bottom, keyed by the same status.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Any

from quoteflow.constants.audit_actions import AuditAction
from quoteflow.models.enums.job_status import JobStatus
from quoteflow.models.enums.quote_status import QuoteStatus

DEFAULT_PAYMENT_METHOD = "stripe"


@dataclass(frozen=True)
class TransitionParams:
    reason: str | None = None
    notes: str | None = None
    payment_reference: str | None = None
    payment_method: str | None = None
    scheduled_start_date: datetime | None = None
    scheduled_end_date: datetime | None = None
    hold_note: str | None = None
    portal_duration: timedelta = timedelta(days=14)


@dataclass(frozen=True)
class TransitionEffect:
    updates: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)


def _status_only(entity, params: TransitionParams, now: datetime) -> TransitionEffect:
    metadata = {"reason": params.reason} if params.reason else {}
    return TransitionEffect(metadata=metadata)


# =====================================================
# QUOTES
# =====================================================
def _quote_sent(quote, params, now):
    metadata = {"reason": params.reason} if params.reason else {}
    return TransitionEffect({"sent_at": now}, metadata)


def _quote_viewed(quote, params, now):
    return TransitionEffect({"viewed_at": quote.viewed_at or now})


def _quote_accepted(quote, params, now):
    return TransitionEffect({"accepted_at": now, "approved_at": now})


def _quote_declined(quote, params, now):
    updates = {"declined_at": now}
    if params.reason:
        updates["decline_reason"] = params.reason
    return TransitionEffect(updates, {"reason": params.reason})


def _quote_deposit_paid(quote, params, now):
    method = params.payment_method or DEFAULT_PAYMENT_METHOD
    updates = {
        "deposit_verified": True,
        "deposit_verified_at": now,
        "deposit_payment_method": method,
        "portal_open": True,
        "portal_opened_at": now,
        "portal_closed_at": now + params.portal_duration,
    }
    if params.payment_reference:
        updates["deposit_transaction_id"] = params.payment_reference

    metadata = {
        "payment_method": method,
        "payment_reference": params.payment_reference,
        "portal_closes_at": updates["portal_closed_at"],
    }
    if params.notes:
        metadata["notes"] = params.notes
    return TransitionEffect(updates, metadata)


QUOTE_SIDE_EFFECTS = MappingProxyType({
    QuoteStatus.sent: _quote_sent,
    QuoteStatus.viewed: _quote_viewed,
    QuoteStatus.accepted: _quote_accepted,
    QuoteStatus.rejected: _quote_declined,
    QuoteStatus.declined: _quote_declined,
    QuoteStatus.deposit_paid: _quote_deposit_paid,
    QuoteStatus.expired: _status_only,
})

QUOTE_AUDIT_ACTIONS = MappingProxyType({
    QuoteStatus.sent: AuditAction.QUOTE_SENT,
    QuoteStatus.viewed: AuditAction.QUOTE_VIEWED,
    QuoteStatus.accepted: AuditAction.QUOTE_ACCEPTED,
    QuoteStatus.rejected: AuditAction.QUOTE_DECLINED,
    QuoteStatus.declined: AuditAction.QUOTE_DECLINED,
    QuoteStatus.deposit_paid: AuditAction.QUOTE_DEPOSIT_PAID,
    QuoteStatus.expired: AuditAction.QUOTE_EXPIRED,
})


# =====================================================
# JOBS
# =====================================================
def _job_deposit_paid(job, params, now):
    return TransitionEffect({"deposit_paid": True, "deposit_paid_at": now})


def _job_scheduled(job, params, now):
    updates = {}
    if params.scheduled_start_date:
        updates["scheduled_start_date"] = params.scheduled_start_date
    if params.scheduled_end_date:
        updates["scheduled_end_date"] = params.scheduled_end_date
    return TransitionEffect(
        updates,
        {
            "scheduled_start_date": params.scheduled_start_date,
            "scheduled_end_date": params.scheduled_end_date,
        },
    )


def _job_in_progress(job, params, now):
    return TransitionEffect({"actual_start_date": job.actual_start_date or now})


def _job_completed(job, params, now):
    return TransitionEffect({"actual_end_date": job.actual_end_date or now})


def _job_paused(job, params, now):
    return TransitionEffect(metadata={"reason": params.reason})


def _job_on_hold(job, params, now):
    note = params.hold_note or params.reason
    if not note:
        return _status_only(job, params, now)

    existing = job.contractor_notes
    notes = f"{existing}\n{note}" if existing else note
    return TransitionEffect({"contractor_notes": notes}, {"note": note})


JOB_SIDE_EFFECTS = MappingProxyType({
    JobStatus.deposit_paid: _job_deposit_paid,
    JobStatus.scheduled: _job_scheduled,
    JobStatus.in_progress: _job_in_progress,
    JobStatus.completed: _job_completed,
    JobStatus.closed: _status_only,
    JobStatus.paused: _job_paused,
    JobStatus.on_hold: _job_on_hold,
})

JOB_AUDIT_ACTIONS = MappingProxyType({
    JobStatus.deposit_paid: AuditAction.JOB_DEPOSIT_PAID,
    JobStatus.scheduled: AuditAction.JOB_SCHEDULED,
    JobStatus.in_progress: AuditAction.JOB_STARTED,
    JobStatus.completed: AuditAction.JOB_COMPLETED,
    JobStatus.closed: AuditAction.JOB_CLOSED,
    JobStatus.paused: AuditAction.JOB_PAUSED,
    JobStatus.on_hold: AuditAction.JOB_ON_HOLD,
})


def quote_effect(quote, to_status: QuoteStatus, params: TransitionParams, now: datetime) -> TransitionEffect:
    return QUOTE_SIDE_EFFECTS.get(to_status, _status_only)(quote, params, now)


def job_effect(job, to_status: JobStatus, params: TransitionParams, now: datetime) -> TransitionEffect:
    return JOB_SIDE_EFFECTS.get(to_status, _status_only)(job, params, now)


def quote_action(to_status: QuoteStatus) -> AuditAction:
    return QUOTE_AUDIT_ACTIONS.get(to_status, AuditAction.QUOTE_STATUS_CHANGED)


def job_action(to_status: JobStatus) -> AuditAction:
    return JOB_AUDIT_ACTIONS.get(to_status, AuditAction.JOB_STATUS_CHANGED)
