"""
Static status graphs for quotes and jobs.

The tables are the single source of truth for which edges exist. Two rules are
layered on top of them and bypass the table entirely:

- a quote in ``rejected``/``declined``/``expired`` can only be reopened to
  ``sent``, and only by an admin;
- a job in ``closed``/``canceled`` can be moved anywhere, but only by an admin.
"""

from types import MappingProxyType

from quoteflow.models.enums.entity_type import EntityType
from quoteflow.models.enums.job_status import JobStatus
from quoteflow.models.enums.quote_status import QuoteStatus


QUOTE_STATUS_FLOW = MappingProxyType({
    QuoteStatus.draft: frozenset({QuoteStatus.sent}),
    QuoteStatus.sent: frozenset({QuoteStatus.viewed, QuoteStatus.declined, QuoteStatus.expired}),
    QuoteStatus.viewed: frozenset({QuoteStatus.accepted, QuoteStatus.declined, QuoteStatus.expired}),
    QuoteStatus.accepted: frozenset({QuoteStatus.deposit_paid, QuoteStatus.declined}),
    QuoteStatus.rejected: frozenset(),
    QuoteStatus.declined: frozenset(),
    QuoteStatus.expired: frozenset(),
    QuoteStatus.deposit_paid: frozenset(),
})

JOB_STATUS_FLOW = MappingProxyType({
    JobStatus.accepted: frozenset({JobStatus.deposit_paid}),
    JobStatus.pending_deposit: frozenset({JobStatus.deposit_paid}),
    JobStatus.deposit_paid: frozenset({JobStatus.scheduled, JobStatus.selections_pending}),
    JobStatus.selections_pending: frozenset({JobStatus.selections_complete, JobStatus.scheduled}),
    JobStatus.selections_complete: frozenset({JobStatus.scheduled}),
    JobStatus.scheduled: frozenset({JobStatus.in_progress}),
    JobStatus.in_progress: frozenset({JobStatus.completed, JobStatus.paused}),
    JobStatus.paused: frozenset({JobStatus.in_progress}),
    JobStatus.completed: frozenset({JobStatus.closed, JobStatus.paid}),
    JobStatus.invoiced: frozenset({JobStatus.paid, JobStatus.closed}),
    JobStatus.paid: frozenset({JobStatus.closed}),
    JobStatus.closed: frozenset(),
    JobStatus.canceled: frozenset(),
    JobStatus.on_hold: frozenset({JobStatus.scheduled, JobStatus.deposit_paid}),
})

STATUS_FLOWS = MappingProxyType({
    EntityType.quote: QUOTE_STATUS_FLOW,
    EntityType.job: JOB_STATUS_FLOW,
})

STATUS_ENUMS = MappingProxyType({
    EntityType.quote: QuoteStatus,
    EntityType.job: JobStatus,
})

# Quotes in these states can only be reopened (-> sent) by an admin
REOPENABLE_QUOTE_STATUSES = frozenset({
    QuoteStatus.rejected,
    QuoteStatus.declined,
    QuoteStatus.expired,
})

# Terminal job states; admins may override to any status
TERMINAL_JOB_STATUSES = frozenset({JobStatus.closed, JobStatus.canceled})

# Targets that need admin authority even when the edge exists
ADMIN_REQUIRED_JOB_STATUSES = frozenset({
    JobStatus.scheduled,
    JobStatus.in_progress,
    JobStatus.completed,
    JobStatus.closed,
})

# Job states that wait on customer input; the portal sweep may hold these
PORTAL_HOLDABLE_JOB_STATUSES = frozenset({
    JobStatus.deposit_paid,
    JobStatus.selections_pending,
})


def coerce_status(entity_type, status):
    """Turn a raw string into the entity's status enum, raising ValueError if unknown."""
    return STATUS_ENUMS[EntityType(entity_type)](status)


def can_transition(entity_type, from_status, to_status, is_admin: bool = False) -> bool:
    entity_type = EntityType(entity_type)
    from_status = coerce_status(entity_type, from_status)
    to_status = coerce_status(entity_type, to_status)

    if entity_type is EntityType.quote and from_status in REOPENABLE_QUOTE_STATUSES:
        return is_admin and to_status is QuoteStatus.sent

    if entity_type is EntityType.job and from_status in TERMINAL_JOB_STATUSES:
        return is_admin

    return to_status in STATUS_FLOWS[entity_type].get(from_status, frozenset())


def allowed_next_statuses(entity_type, status, is_admin: bool = False) -> list[str]:
    """Legal targets from ``status``, sorted by name. Admin-only targets are not filtered out."""
    entity_type = EntityType(entity_type)
    status = coerce_status(entity_type, status)

    if entity_type is EntityType.quote and status in REOPENABLE_QUOTE_STATUSES:
        allowed = {QuoteStatus.sent} if is_admin else set()
    elif entity_type is EntityType.job and status in TERMINAL_JOB_STATUSES:
        allowed = {s for s in JobStatus if s is not status} if is_admin else set()
    else:
        allowed = STATUS_FLOWS[entity_type].get(status, frozenset())

    return sorted(s.value for s in allowed)


def requires_admin(entity_type, to_status) -> bool:
    entity_type = EntityType(entity_type)
    if entity_type is not EntityType.job:
        return False
    return coerce_status(entity_type, to_status) in ADMIN_REQUIRED_JOB_STATUSES
