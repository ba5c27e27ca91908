from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import BaseModel, Field

from ..models import U64_MAX
from ..schemas import CampaignOut, CampaignPayload, DonationPayload, DonationReceipt, ErrorResponse
from ..service import CampaignService, get_service

router = APIRouter(
    prefix="/api/v1/campaigns",
    tags=["campaigns"],
)

_NOT_FOUND = {"model": ErrorResponse, "description": "Campaign not found"}
_TOO_LARGE = {"model": ErrorResponse, "description": "Encoded campaign exceeds the record size bound"}


class PaginationEnvelope(BaseModel):
    """
    Envelope for paginated list responses.
    """
    items: List[CampaignOut] = Field(..., description="Campaigns in ascending id order")
    total: int = Field(..., description="Total number of stored campaigns")
    limit: int = Field(..., description="Limit applied to the query")
    offset: int = Field(..., description="Offset applied to the query")


def _campaign_id(campaign_id: int = Path(..., ge=0, le=U64_MAX, description="Campaign id")) -> int:
    return campaign_id


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=PaginationEnvelope,
    summary="List Campaigns",
    description="List stored campaigns in ascending id order with limit/offset pagination.",
)
def list_campaigns(
    limit: int = Query(50, ge=0, le=1000, description="Maximum number of items to return"),
    offset: int = Query(0, ge=0, description="Number of items to skip"),
    service: CampaignService = Depends(get_service),
) -> PaginationEnvelope:
    items, total = service.list_campaigns(offset=offset, limit=limit)
    return PaginationEnvelope(
        items=[CampaignOut(**it) for it in items],
        total=total,
        limit=limit,
        offset=offset,
    )


# PUBLIC_INTERFACE
@router.get(
    "/{campaign_id}",
    response_model=CampaignOut,
    summary="Get Campaign",
    responses={404: _NOT_FOUND},
)
def get_campaign(
    campaign_id: int = Depends(_campaign_id),
    service: CampaignService = Depends(get_service),
) -> CampaignOut:
    """
    Retrieve a single campaign by its id.
    """
    return CampaignOut(**service.get_campaign(campaign_id))


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=CampaignOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Campaign",
    description="Create a campaign with a new id and a raised amount of zero.",
    responses={413: _TOO_LARGE},
)
def create_campaign(payload: CampaignPayload, service: CampaignService = Depends(get_service)) -> CampaignOut:
    return CampaignOut(**service.create_campaign(payload))


# PUBLIC_INTERFACE
@router.put(
    "/{campaign_id}",
    response_model=CampaignOut,
    summary="Update Campaign",
    description=(
        "Replace title, description and goal_amount of a campaign. "
        "creator and raised_amount are never changed by this endpoint."
    ),
    responses={404: _NOT_FOUND, 413: _TOO_LARGE},
)
def update_campaign(
    payload: CampaignPayload,
    campaign_id: int = Depends(_campaign_id),
    service: CampaignService = Depends(get_service),
) -> CampaignOut:
    return CampaignOut(**service.update_campaign(campaign_id, payload))


# PUBLIC_INTERFACE
@router.delete(
    "/{campaign_id}",
    response_model=CampaignOut,
    summary="Delete Campaign",
    description="Permanently delete a campaign and return the removed record.",
    responses={404: _NOT_FOUND},
)
def delete_campaign(
    campaign_id: int = Depends(_campaign_id),
    service: CampaignService = Depends(get_service),
) -> CampaignOut:
    return CampaignOut(**service.delete_campaign(campaign_id))


# PUBLIC_INTERFACE
@router.post(
    "/donations",
    response_model=DonationReceipt,
    summary="Donate to Campaign",
    description="Add a donation to a campaign. Donations that would exceed the goal are rejected whole.",
    responses={
        404: _NOT_FOUND,
        409: {"model": ErrorResponse, "description": "Donation exceeds the campaign goal"},
        413: _TOO_LARGE,
    },
)
def donate_to_campaign(
    payload: DonationPayload, service: CampaignService = Depends(get_service)
) -> DonationReceipt:
    return DonationReceipt(message=service.donate_to_campaign(payload))
