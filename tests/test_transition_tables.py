import itertools

import pytest

from quoteflow.models.enums.entity_type import EntityType
from quoteflow.models.enums.job_status import JobStatus
from quoteflow.models.enums.quote_status import QuoteStatus
from quoteflow.services.status_flow.transition_tables import (
    JOB_STATUS_FLOW,
    QUOTE_STATUS_FLOW,
    allowed_next_statuses,
    can_transition,
    requires_admin,
)

QUOTE_EDGES = {
    "draft": {"sent"},
    "sent": {"viewed", "declined", "expired"},
    "viewed": {"accepted", "declined", "expired"},
    "accepted": {"deposit_paid", "declined"},
    "rejected": set(),
    "declined": set(),
    "expired": set(),
    "deposit_paid": set(),
}

JOB_EDGES = {
    "accepted": {"deposit_paid"},
    "pending_deposit": {"deposit_paid"},
    "deposit_paid": {"scheduled", "selections_pending"},
    "selections_pending": {"selections_complete", "scheduled"},
    "selections_complete": {"scheduled"},
    "scheduled": {"in_progress"},
    "in_progress": {"completed", "paused"},
    "paused": {"in_progress"},
    "completed": {"closed", "paid"},
    "invoiced": {"paid", "closed"},
    "paid": {"closed"},
    "closed": set(),
    "canceled": set(),
    "on_hold": {"scheduled", "deposit_paid"},
}


def _expected_quote(from_status, to_status, is_admin):
    if from_status in {"rejected", "declined", "expired"}:
        return is_admin and to_status == "sent"
    return to_status in QUOTE_EDGES[from_status]


def _expected_job(from_status, to_status, is_admin):
    if from_status in {"closed", "canceled"}:
        return is_admin
    return to_status in JOB_EDGES[from_status]


def test_tables_cover_every_status():
    assert {s.value for s in QUOTE_STATUS_FLOW} == set(QUOTE_EDGES)
    assert {s.value for s in JOB_STATUS_FLOW} == set(JOB_EDGES)


@pytest.mark.parametrize("is_admin", [False, True])
def test_quote_table_fidelity(is_admin):
    for from_status, to_status in itertools.product(QuoteStatus, QuoteStatus):
        expected = _expected_quote(from_status.value, to_status.value, is_admin)
        assert can_transition(EntityType.quote, from_status, to_status, is_admin) is expected, (
            from_status,
            to_status,
        )


@pytest.mark.parametrize("is_admin", [False, True])
def test_job_table_fidelity(is_admin):
    for from_status, to_status in itertools.product(JobStatus, JobStatus):
        expected = _expected_job(from_status.value, to_status.value, is_admin)
        assert can_transition(EntityType.job, from_status, to_status, is_admin) is expected, (
            from_status,
            to_status,
        )


def test_can_transition_accepts_raw_strings():
    assert can_transition("quote", "draft", "sent") is True
    assert can_transition("job", "scheduled", "completed") is False


def test_unknown_status_is_rejected():
    with pytest.raises(ValueError):
        can_transition("quote", "draft", "archived")


def test_invoiced_is_unreachable():
    # No edge in the job graph leads into invoiced; only an admin override from
    # a terminal state can reach it.
    incoming = [s for s, targets in JOB_STATUS_FLOW.items() if JobStatus.invoiced in targets]
    assert incoming == []


def test_allowed_next_statuses_sorted():
    assert allowed_next_statuses("quote", "viewed") == ["accepted", "declined", "expired"]
    assert allowed_next_statuses("job", "in_progress") == ["completed", "paused"]


def test_allowed_next_statuses_for_reopenable_quote():
    assert allowed_next_statuses("quote", "expired") == []
    assert allowed_next_statuses("quote", "expired", is_admin=True) == ["sent"]


def test_allowed_next_statuses_admin_override_for_closed_job():
    assert allowed_next_statuses("job", "closed") == []
    allowed = allowed_next_statuses("job", "closed", is_admin=True)
    assert "closed" not in allowed
    assert len(allowed) == len(JobStatus) - 1


def test_allowed_next_statuses_keeps_admin_targets_for_non_admin():
    assert allowed_next_statuses("job", "deposit_paid") == ["scheduled", "selections_pending"]


@pytest.mark.parametrize("status", ["scheduled", "in_progress", "completed", "closed"])
def test_admin_required_job_targets(status):
    assert requires_admin("job", status) is True


def test_quote_targets_never_require_admin():
    assert not any(requires_admin("quote", s) for s in QuoteStatus)
    assert requires_admin("job", "paused") is False
