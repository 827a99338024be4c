from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from quoteflow.core.db import get_db
from quoteflow.core.exceptions import NotFound
from quoteflow.models.enums.entity_type import EntityType
from quoteflow.utils.check_roles import require_role
from quoteflow.utils.response import success_response, APIResponse

from quoteflow.schemas.jobs.job_schemas import JobOut, JobStatusUpdate
from quoteflow.schemas.portal.portal_schemas import PortalSweepResult
from quoteflow.schemas.quotes.quote_schemas import (
    QuoteOut,
    MarkDepositPaidRequest,
    ReopenQuoteRequest,
)

from quoteflow.services.portal.portal_lock_service import lock_expired_portals
from quoteflow.services.status_flow.authority import Authority
from quoteflow.services.status_flow.status_flow_service import build_status_flow_service

router = APIRouter(
    prefix="/admin/status",
    tags=["Admin Status"],
)


@router.post(
    "/quotes/{quote_id}/mark-deposit-paid",
    response_model=APIResponse[QuoteOut],
)
async def mark_deposit_paid_api(
    quote_id: int,
    payload: MarkDepositPaidRequest,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin"])),
):
    quote = await build_status_flow_service(db).mark_deposit_paid_manual(
        quote_id,
        actor_id=user.id,
        tenant_id=user.tenant_id,
        payment_method=payload.payment_method,
        notes=payload.notes,
    )
    return success_response(
        "Deposit marked as paid. Customer portal is now open for selections.",
        QuoteOut.model_validate(quote),
    )


@router.post(
    "/quotes/{quote_id}/reopen",
    response_model=APIResponse[QuoteOut],
)
async def reopen_quote_api(
    quote_id: int,
    payload: ReopenQuoteRequest,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin"])),
):
    quote = await build_status_flow_service(db).reopen_quote(
        quote_id,
        actor_id=user.id,
        tenant_id=user.tenant_id,
        reason=payload.reason,
    )
    return success_response(
        "Quote reopened successfully",
        QuoteOut.model_validate(quote),
    )


@router.patch(
    "/jobs/{job_id}/status",
    response_model=APIResponse[JobOut],
)
async def admin_update_job_status_api(
    job_id: int,
    payload: JobStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin"])),
):
    status_flow = build_status_flow_service(db)
    job = await status_flow.store.get_job(job_id, user.tenant_id)
    if job is None:
        raise NotFound(EntityType.job, job_id)

    job = await status_flow.transition_job(
        job,
        payload.status,
        authority=Authority.admin(user.id),
        tenant_id=user.tenant_id,
        scheduled_start_date=payload.scheduled_start_date,
        scheduled_end_date=payload.scheduled_end_date,
        reason=payload.reason,
    )
    return success_response(
        f"Job status updated to {job.status.value}",
        JobOut.model_validate(job),
    )


@router.post(
    "/portal-sweep",
    response_model=APIResponse[PortalSweepResult],
)
async def run_portal_sweep_api(
    dry_run: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin"])),
):
    # Scheduled runs sweep every tenant; this endpoint only sweeps the caller's
    result = await lock_expired_portals(db, dry_run=dry_run, tenant_id=user.tenant_id)
    return success_response(
        "Portal sweep completed (dry run)" if dry_run else "Portal sweep completed",
        result,
    )
