"""
Status flow engine for quotes and jobs.

The engine is the only writer of ``status`` on both entities. Every transition
runs as: read current status, validate against the transition tables, write
status plus side-effect fields conditionally on the status still being what was
validated, then record exactly one audit entry. All of it happens in the store's
transaction scope, so an audit failure rolls the status write back.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from quoteflow.constants.audit_actions import AuditAction
from quoteflow.constants.error_codes import ErrorCode
from quoteflow.core.config import PORTAL_DURATION_DAYS
from quoteflow.core.exceptions import (
    AppException,
    ConcurrentTransition,
    InvalidState,
    InvalidTransition,
    MissingActor,
    NotFound,
    RequiresAdminAction,
)
from quoteflow.models.enums.entity_type import EntityType
from quoteflow.models.enums.job_status import JobStatus
from quoteflow.models.enums.quote_status import QuoteStatus
from quoteflow.services.status_flow import transition_tables
from quoteflow.services.status_flow.audit_recorder import (
    AuditRecorder,
    SqlAuditRecorder,
    TransitionRecord,
)
from quoteflow.services.status_flow.authority import Authority
from quoteflow.services.status_flow.entity_store import EntityStore, SqlEntityStore
from quoteflow.services.status_flow.side_effects import (
    DEFAULT_PAYMENT_METHOD,
    TransitionEffect,
    TransitionParams,
    job_action,
    job_effect,
    quote_action,
    quote_effect,
)

logger = logging.getLogger(__name__)

# Job statuses that are still waiting for the deposit
_AWAITING_DEPOSIT_JOB_STATUSES = frozenset({JobStatus.accepted, JobStatus.pending_deposit})


class StatusFlowService:
    def __init__(
        self,
        store: EntityStore,
        audit: AuditRecorder,
        *,
        portal_duration_days: int = PORTAL_DURATION_DAYS,
        clock=None,
    ):
        self.store = store
        self.audit = audit
        self.portal_duration = timedelta(days=portal_duration_days)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # =====================================================
    # QUERY HELPERS
    # =====================================================
    @staticmethod
    def allowed_next_statuses(entity_type, status, is_admin: bool = False) -> list[str]:
        return transition_tables.allowed_next_statuses(entity_type, status, is_admin)

    @staticmethod
    def can_transition(entity_type, from_status, to_status, is_admin: bool = False) -> bool:
        return transition_tables.can_transition(entity_type, from_status, to_status, is_admin)

    # =====================================================
    # GENERIC TRANSITIONS
    # =====================================================
    async def transition_quote(
        self,
        quote,
        to_status,
        *,
        authority: Authority,
        tenant_id: int | None,
        reason: str | None = None,
        payment_reference: str | None = None,
        payment_method: str | None = None,
        notes: str | None = None,
    ):
        params = self._params(
            reason=reason,
            notes=notes,
            payment_reference=payment_reference,
            payment_method=payment_method,
        )
        async with self.store.transaction():
            return await self._apply_quote(quote, QuoteStatus(to_status), authority, tenant_id, params)

    async def transition_job(
        self,
        job,
        to_status,
        *,
        authority: Authority,
        tenant_id: int | None,
        scheduled_start_date: datetime | None = None,
        scheduled_end_date: datetime | None = None,
        reason: str | None = None,
    ):
        params = self._params(
            reason=reason,
            scheduled_start_date=scheduled_start_date,
            scheduled_end_date=scheduled_end_date,
        )
        async with self.store.transaction():
            return await self._apply_job(job, JobStatus(to_status), authority, tenant_id, params)

    # =====================================================
    # DEPOSIT CONFIRMATION
    # =====================================================
    async def handle_payment_success(
        self,
        quote_id: int,
        payment_reference: str,
        *,
        tenant_id: int | None = None,
    ):
        """Automated deposit confirmation from a payment event.

        Safe under at-least-once delivery: a quote that is already
        ``deposit_paid`` is returned unchanged.
        """
        params = self._params(
            payment_reference=payment_reference,
            payment_method=DEFAULT_PAYMENT_METHOD,
        )
        return await self._confirm_deposit(quote_id, tenant_id, Authority.automated(), params)

    async def mark_deposit_paid_manual(
        self,
        quote_id: int,
        *,
        actor_id: int | None,
        tenant_id: int | None,
        payment_method: str = "cash",
        notes: str | None = None,
    ):
        if actor_id is None:
            raise MissingActor("confirm a deposit manually")

        if not payment_method or payment_method.lower() == DEFAULT_PAYMENT_METHOD:
            raise AppException(
                400,
                "Manual deposit confirmation requires a non-Stripe payment method",
                ErrorCode.VALIDATION_ERROR,
            )

        params = self._params(payment_method=payment_method, notes=notes)
        return await self._confirm_deposit(quote_id, tenant_id, Authority.admin(actor_id), params)

    async def _confirm_deposit(self, quote_id, tenant_id, authority: Authority, params: TransitionParams):
        async with self.store.transaction():
            quote = await self.store.get_quote(quote_id, tenant_id, for_update=True)
            if quote is None:
                raise NotFound(EntityType.quote, quote_id)

            if quote.status == QuoteStatus.deposit_paid:
                self._log_duplicate_deposit(quote, params)
                return quote

            if quote.status != QuoteStatus.accepted:
                raise InvalidState(EntityType.quote, quote.status, [QuoteStatus.accepted])

            try:
                await self._apply_quote(quote, QuoteStatus.deposit_paid, authority, tenant_id, params)
            except ConcurrentTransition as exc:
                # Lost the race to another confirmation; the quote was reloaded
                if exc.from_status != QuoteStatus.deposit_paid:
                    raise InvalidState(EntityType.quote, exc.from_status, [QuoteStatus.accepted])
                self._log_duplicate_deposit(quote, params)
                return quote

            await self._hand_off_job(quote, authority, tenant_id)
            return quote

    def _log_duplicate_deposit(self, quote, params: TransitionParams):
        logger.info(
            "Deposit already confirmed, skipping",
            extra={
                "quote_id": quote.id,
                "payment_reference": params.payment_reference,
                "recorded_reference": quote.deposit_transaction_id,
            },
        )

    async def _hand_off_job(self, quote, authority: Authority, tenant_id):
        """Make sure the paid quote has a job that reflects the deposit."""
        job = await self.store.get_job_for_quote(quote.id, for_update=True)

        if job is None:
            now = self._now()
            status = (
                JobStatus.selections_complete
                if quote.selections_complete
                else JobStatus.deposit_paid
            )
            job = await self.store.create_job(
                {
                    "tenant_id": quote.tenant_id,
                    "quote_id": quote.id,
                    "job_number": await self.store.next_job_number(quote.tenant_id, now.year),
                    "job_name": f"{quote.customer_name or 'Customer'} - {quote.quote_number}",
                    "customer_name": quote.customer_name,
                    "customer_email": quote.customer_email,
                    "status": status,
                    "deposit_paid": True,
                    "deposit_paid_at": now,
                    "customer_selections_complete": quote.selections_complete,
                    "portal_expires_at": quote.portal_closed_at,
                }
            )
            await self._record(
                EntityType.job,
                job,
                tenant_id,
                authority,
                AuditAction.JOB_CREATED,
                None,
                status,
                {"job_number": job.job_number, "quote_number": quote.quote_number},
            )
            logger.info(
                "Job created from paid quote",
                extra={"quote_id": quote.id, "job_id": job.id, "job_status": status.value},
            )
            return job

        if job.status in _AWAITING_DEPOSIT_JOB_STATUSES:
            await self._apply_job(job, JobStatus.deposit_paid, authority, tenant_id, self._params())

        return job

    # =====================================================
    # REOPEN
    # =====================================================
    async def reopen_quote(
        self,
        quote_id: int,
        *,
        actor_id: int | None,
        tenant_id: int | None,
        reason: str | None = None,
    ):
        if actor_id is None:
            raise MissingActor("reopen a quote")
        authority = Authority.admin(actor_id)

        async with self.store.transaction():
            quote = await self.store.get_quote(quote_id, tenant_id, for_update=True)
            if quote is None:
                raise NotFound(EntityType.quote, quote_id)

            previous_status = QuoteStatus(quote.status)
            if previous_status not in transition_tables.REOPENABLE_QUOTE_STATUSES:
                raise InvalidState(
                    EntityType.quote,
                    previous_status,
                    sorted(s.value for s in transition_tables.REOPENABLE_QUOTE_STATUSES),
                )

            await self._apply_quote(
                quote, QuoteStatus.sent, authority, tenant_id, self._params(reason=reason)
            )
            await self._record(
                EntityType.quote,
                quote,
                tenant_id,
                authority,
                AuditAction.QUOTE_REOPENED,
                previous_status,
                QuoteStatus.sent,
                {
                    "quote_number": quote.quote_number,
                    "previous_status": previous_status,
                    "reason": reason,
                    "admin_action": True,
                },
            )
            return quote

    # =====================================================
    # PORTAL HOLD
    # =====================================================
    async def hold_job(self, job, *, tenant_id: int | None, note: str):
        """Forced ``on_hold`` used by the portal sweep; bypasses the table but not the write guard."""
        async with self.store.transaction():
            from_status = JobStatus(job.status)
            if from_status not in transition_tables.PORTAL_HOLDABLE_JOB_STATUSES:
                raise InvalidState(
                    EntityType.job,
                    from_status,
                    sorted(s.value for s in transition_tables.PORTAL_HOLDABLE_JOB_STATUSES),
                )

            effect = job_effect(job, JobStatus.on_hold, self._params(hold_note=note), self._now())
            await self._commit(
                EntityType.job,
                job,
                from_status,
                JobStatus.on_hold,
                effect,
                Authority.automated(),
                tenant_id,
                job_action(JobStatus.on_hold),
                {"job_number": job.job_number},
            )
            return job

    # =====================================================
    # APPLY
    # =====================================================
    async def _apply_quote(self, quote, to_status: QuoteStatus, authority: Authority, tenant_id, params):
        from_status = QuoteStatus(quote.status)
        label = {"quote_number": quote.quote_number}

        if to_status is QuoteStatus.viewed and self._is_repeat_view(quote):
            await self._record(
                EntityType.quote,
                quote,
                tenant_id,
                authority,
                AuditAction.QUOTE_VIEWED_MULTIPLE,
                from_status,
                from_status,
                {**label, "subsequent_view": True, "viewed_at": quote.viewed_at},
            )
            return quote

        if not transition_tables.can_transition(EntityType.quote, from_status, to_status, authority.is_admin):
            raise InvalidTransition(
                EntityType.quote,
                from_status,
                to_status,
                transition_tables.allowed_next_statuses(EntityType.quote, from_status, authority.is_admin),
            )

        effect = quote_effect(quote, to_status, params, self._now())
        await self._commit(
            EntityType.quote,
            quote,
            from_status,
            to_status,
            effect,
            authority,
            tenant_id,
            quote_action(to_status),
            label,
        )
        return quote

    async def _apply_job(self, job, to_status: JobStatus, authority: Authority, tenant_id, params):
        from_status = JobStatus(job.status)

        if transition_tables.requires_admin(EntityType.job, to_status) and not authority.is_admin:
            raise RequiresAdminAction(EntityType.job, to_status)

        if not transition_tables.can_transition(EntityType.job, from_status, to_status, authority.is_admin):
            raise InvalidTransition(
                EntityType.job,
                from_status,
                to_status,
                transition_tables.allowed_next_statuses(EntityType.job, from_status, authority.is_admin),
            )

        effect = job_effect(job, to_status, params, self._now())
        await self._commit(
            EntityType.job,
            job,
            from_status,
            to_status,
            effect,
            authority,
            tenant_id,
            job_action(to_status),
            {"job_number": job.job_number},
        )
        return job

    async def _commit(
        self,
        entity_type: EntityType,
        entity,
        from_status,
        to_status,
        effect: TransitionEffect,
        authority: Authority,
        tenant_id,
        action: AuditAction,
        label: dict,
    ):
        written = await self.store.write_status(
            entity, from_status, {"status": to_status, **effect.updates}
        )
        if not written:
            fresh = await self._reload(entity_type, entity)
            raise ConcurrentTransition(
                entity_type,
                fresh.status,
                to_status,
                transition_tables.allowed_next_statuses(entity_type, fresh.status, authority.is_admin),
            )

        await self._record(
            entity_type,
            entity,
            tenant_id,
            authority,
            action,
            from_status,
            to_status,
            {**label, **effect.metadata},
        )
        logger.info(
            "Status transition applied",
            extra={
                "entity_type": entity_type.value,
                "entity_id": entity.id,
                "old_status": from_status.value,
                "new_status": to_status.value,
                "actor_user_id": authority.actor_id,
            },
        )

    async def _reload(self, entity_type: EntityType, entity):
        if entity_type is EntityType.quote:
            fresh = await self.store.get_quote(entity.id)
        else:
            fresh = await self.store.get_job(entity.id)
        if fresh is None:
            raise NotFound(entity_type, entity.id)
        return fresh

    async def _record(
        self,
        entity_type: EntityType,
        entity,
        tenant_id,
        authority: Authority,
        action: AuditAction,
        old_status,
        new_status,
        metadata: dict,
    ):
        await self.audit.record(
            TransitionRecord(
                entity_type=entity_type.value,
                entity_id=entity.id,
                tenant_id=tenant_id if tenant_id is not None else entity.tenant_id,
                actor_user_id=authority.actor_id,
                action=action,
                old_status=getattr(old_status, "value", old_status),
                new_status=getattr(new_status, "value", new_status),
                metadata=metadata,
                timestamp=self._now(),
            )
        )

    # =====================================================
    # HELPERS
    # =====================================================
    @staticmethod
    def _is_repeat_view(quote) -> bool:
        return quote.status == QuoteStatus.viewed

    def _params(self, **kwargs) -> TransitionParams:
        return TransitionParams(portal_duration=self.portal_duration, **kwargs)

    def _now(self) -> datetime:
        return self._clock()


def build_status_flow_service(db: AsyncSession) -> StatusFlowService:
    return StatusFlowService(SqlEntityStore(db), SqlAuditRecorder(db))
