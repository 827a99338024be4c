from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from quoteflow.core.db import get_db
from quoteflow.core.exceptions import NotFound
from quoteflow.models.enums.entity_type import EntityType
from quoteflow.utils.check_roles import require_role
from quoteflow.utils.response import success_response, APIResponse

from quoteflow.schemas.jobs.job_schemas import JobOut, JobStatusUpdate
from quoteflow.schemas.quotes.quote_schemas import AllowedStatusesOut

from quoteflow.services.status_flow.authority import Authority
from quoteflow.services.status_flow.status_flow_service import build_status_flow_service

router = APIRouter(
    prefix="/jobs",
    tags=["Jobs"],
)


async def _load_job(status_flow, job_id: int, tenant_id: int):
    job = await status_flow.store.get_job(job_id, tenant_id)
    if job is None:
        raise NotFound(EntityType.job, job_id)
    return job


@router.get(
    "/{job_id}",
    response_model=APIResponse[JobOut],
)
async def get_job_api(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "user"])),
):
    job = await _load_job(build_status_flow_service(db), job_id, user.tenant_id)
    return success_response("Job retrieved successfully", JobOut.model_validate(job))


@router.get(
    "/{job_id}/allowed-statuses",
    response_model=APIResponse[AllowedStatusesOut],
)
async def get_job_allowed_statuses_api(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "user"])),
):
    status_flow = build_status_flow_service(db)
    job = await _load_job(status_flow, job_id, user.tenant_id)
    return success_response(
        "Allowed statuses retrieved successfully",
        AllowedStatusesOut(
            entity_type=EntityType.job.value,
            current_status=job.status.value,
            allowed=status_flow.allowed_next_statuses(EntityType.job, job.status, user.is_admin),
        ),
    )


@router.patch(
    "/{job_id}/status",
    response_model=APIResponse[JobOut],
)
async def update_job_status_api(
    job_id: int,
    payload: JobStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "user"])),
):
    status_flow = build_status_flow_service(db)
    job = await _load_job(status_flow, job_id, user.tenant_id)
    job = await status_flow.transition_job(
        job,
        payload.status,
        authority=Authority.for_user(user),
        tenant_id=user.tenant_id,
        scheduled_start_date=payload.scheduled_start_date,
        scheduled_end_date=payload.scheduled_end_date,
        reason=payload.reason,
    )
    return success_response(
        f"Job status updated to {job.status.value}",
        JobOut.model_validate(job),
    )
