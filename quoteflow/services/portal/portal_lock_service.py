"""
Portal expiry sweep.

Closes customer portals whose deadline has passed and puts the dependent job on
hold when the customer never finished their selections. Each quote is handled
in its own transaction; one failing quote never blocks the rest of the batch.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from quoteflow.constants.audit_actions import AuditAction
from quoteflow.models.enums.entity_type import EntityType
from quoteflow.schemas.portal.portal_schemas import PortalSweepError, PortalSweepResult
from quoteflow.services.notifications.notification_service import (
    NotificationService,
    notification_service,
)
from quoteflow.services.status_flow.audit_recorder import TransitionRecord
from quoteflow.services.status_flow.status_flow_service import (
    StatusFlowService,
    build_status_flow_service,
)
from quoteflow.services.status_flow.transition_tables import PORTAL_HOLDABLE_JOB_STATUSES

logger = logging.getLogger(__name__)

PORTAL_EXPIRED_NOTE = "[Auto] Portal expired - awaiting customer selections"


class PortalLockService:
    def __init__(
        self,
        status_flow: StatusFlowService,
        notifier: NotificationService | None = None,
        clock=None,
    ):
        self.status_flow = status_flow
        self.store = status_flow.store
        self.notifier = notifier or notification_service
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def lock_expired_portals(
        self, *, dry_run: bool = False, tenant_id: int | None = None
    ) -> PortalSweepResult:
        """Sweep every tenant, or only ``tenant_id`` when given."""
        now = self._clock()
        quote_ids = await self.store.list_expired_portal_quote_ids(now, tenant_id)
        result = PortalSweepResult(checked=len(quote_ids), dry_run=dry_run)

        logger.info(
            "Portal sweep started",
            extra={"candidates": len(quote_ids), "dry_run": dry_run, "tenant_id": tenant_id},
        )

        for quote_id in quote_ids:
            try:
                outcome = await self._lock_one(quote_id, dry_run)
            except Exception as exc:
                logger.exception("Failed to lock portal", extra={"quote_id": quote_id})
                result.errors.append(PortalSweepError(quote_id=quote_id, error=str(exc)))
                continue

            if outcome is None:
                continue

            quote, job, flagged, contractor_email = outcome
            result.locked += 1
            if flagged:
                result.jobs_flagged += 1

            if not dry_run:
                await self.notifier.notify(
                    contractor_email,
                    "portal_expired",
                    {
                        "quote_number": quote.quote_number,
                        "customer_name": quote.customer_name or "unknown",
                        "job_line": (
                            f"Job {job.job_number} was put on hold." if flagged else ""
                        ),
                    },
                )

        logger.info(
            "Portal sweep finished",
            extra={
                "checked": result.checked,
                "locked": result.locked,
                "jobs_flagged": result.jobs_flagged,
                "errors": len(result.errors),
                "dry_run": dry_run,
            },
        )
        return result

    async def _lock_one(self, quote_id: int, dry_run: bool):
        async with self.store.transaction():
            quote = await self.store.get_quote(quote_id, for_update=not dry_run)
            # Closed by a concurrent sweep or an admin since the candidate query
            if quote is None or not quote.portal_open:
                return None

            if not dry_run:
                await self.store.update_fields(quote, {"portal_open": False})

            job = await self.store.get_job_for_quote(quote.id, for_update=not dry_run)
            flagged = (
                job is not None
                and not job.customer_selections_complete
                and job.status in PORTAL_HOLDABLE_JOB_STATUSES
            )

            if dry_run:
                return quote, job, flagged, None

            if flagged:
                await self.status_flow.hold_job(job, tenant_id=quote.tenant_id, note=PORTAL_EXPIRED_NOTE)

            status = getattr(quote.status, "value", quote.status)
            await self.status_flow.audit.record(
                TransitionRecord(
                    entity_type=EntityType.quote.value,
                    entity_id=quote.id,
                    tenant_id=quote.tenant_id,
                    actor_user_id=None,
                    action=AuditAction.PORTAL_LOCKED,
                    old_status=status,
                    new_status=status,
                    metadata={
                        "quote_number": quote.quote_number,
                        "portal_closed_at": quote.portal_closed_at,
                        "job_id": job.id if job else None,
                        "job_flagged": flagged,
                    },
                )
            )

            contractor_email = await self.store.find_contractor_email(quote.tenant_id)
            return quote, job, flagged, contractor_email


async def lock_expired_portals(
    db: AsyncSession, *, dry_run: bool = False, tenant_id: int | None = None
) -> PortalSweepResult:
    service = PortalLockService(build_status_flow_service(db))
    return await service.lock_expired_portals(dry_run=dry_run, tenant_id=tenant_id)
