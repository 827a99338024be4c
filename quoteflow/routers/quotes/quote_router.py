from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from quoteflow.constants.error_codes import ErrorCode
from quoteflow.core.db import get_db
from quoteflow.core.exceptions import AppException, NotFound
from quoteflow.models.enums.entity_type import EntityType
from quoteflow.models.enums.quote_status import QuoteStatus
from quoteflow.utils.check_roles import require_role
from quoteflow.utils.response import success_response, APIResponse

from quoteflow.schemas.quotes.quote_schemas import (
    QuoteOut,
    QuoteStatusUpdate,
    AllowedStatusesOut,
)

from quoteflow.services.status_flow.authority import Authority
from quoteflow.services.status_flow.status_flow_service import build_status_flow_service

router = APIRouter(
    prefix="/quotes",
    tags=["Quotes"],
)


async def _load_quote(status_flow, quote_id: int, tenant_id: int):
    quote = await status_flow.store.get_quote(quote_id, tenant_id)
    if quote is None:
        raise NotFound(EntityType.quote, quote_id)
    return quote


@router.get(
    "/{quote_id}",
    response_model=APIResponse[QuoteOut],
)
async def get_quote_api(
    quote_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "user"])),
):
    quote = await _load_quote(build_status_flow_service(db), quote_id, user.tenant_id)
    return success_response(
        "Quote retrieved successfully",
        QuoteOut.model_validate(quote),
    )


@router.get(
    "/{quote_id}/allowed-statuses",
    response_model=APIResponse[AllowedStatusesOut],
)
async def get_quote_allowed_statuses_api(
    quote_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "user"])),
):
    status_flow = build_status_flow_service(db)
    quote = await _load_quote(status_flow, quote_id, user.tenant_id)
    return success_response(
        "Allowed statuses retrieved successfully",
        AllowedStatusesOut(
            entity_type=EntityType.quote.value,
            current_status=quote.status.value,
            allowed=status_flow.allowed_next_statuses(EntityType.quote, quote.status, user.is_admin),
        ),
    )


@router.post(
    "/{quote_id}/status",
    response_model=APIResponse[QuoteOut],
)
async def update_quote_status_api(
    quote_id: int,
    payload: QuoteStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "user"])),
):
    # Deposits go through payment events or the admin confirmation endpoint
    if payload.status == QuoteStatus.deposit_paid:
        raise AppException(
            400,
            "Use the mark-deposit-paid endpoint to confirm a deposit",
            ErrorCode.VALIDATION_ERROR,
        )

    status_flow = build_status_flow_service(db)
    quote = await _load_quote(status_flow, quote_id, user.tenant_id)
    quote = await status_flow.transition_quote(
        quote,
        payload.status,
        authority=Authority.for_user(user),
        tenant_id=user.tenant_id,
        reason=payload.reason,
        notes=payload.notes,
    )
    return success_response(
        f"Quote status updated to {quote.status.value}",
        QuoteOut.model_validate(quote),
    )
