from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import U64_MAX


# PUBLIC_INTERFACE
class CampaignPayload(BaseModel):
    """
    Schema for creating or updating a campaign.

    On update only title, description and goal_amount are applied; creator is
    fixed at creation.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Roof Repair",
                "description": "Fix roof",
                "goal_amount": 1000,
                "creator": "alice",
            }
        }
    )

    title: str = Field(..., description="Campaign title")
    description: str = Field(..., description="Campaign description")
    goal_amount: int = Field(..., ge=0, le=U64_MAX, description="Target funding amount")
    creator: str = Field(..., description="Name of the campaign creator")

    @field_validator("title", "description", "creator")
    @classmethod
    def validate_utf8(cls, v: str) -> str:
        """
        Reject text that cannot be stored as UTF-8 (e.g. lone surrogates).
        """
        try:
            v.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ValueError("text must be encodable as UTF-8") from e
        return v


# PUBLIC_INTERFACE
class DonationPayload(BaseModel):
    """
    Schema for a donation to an existing campaign.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"campaign_id": 1, "amount": 400}})

    campaign_id: int = Field(..., ge=0, le=U64_MAX, description="Id of the campaign to donate to")
    amount: int = Field(..., ge=0, le=U64_MAX, description="Donated amount")


# PUBLIC_INTERFACE
class CampaignOut(BaseModel):
    """
    Schema returned by the API for a campaign.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Roof Repair",
                "description": "Fix roof",
                "goal_amount": 1000,
                "raised_amount": 400,
                "created_at": "2026-01-25T10:15:30.123456Z",
                "updated_at": None,
                "creator": "alice",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the campaign")
    title: str = Field(..., description="Campaign title")
    description: str = Field(..., description="Campaign description")
    goal_amount: int = Field(..., description="Target funding amount")
    raised_amount: int = Field(..., description="Sum of accepted donations")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Last update timestamp, null until updated")
    creator: str = Field(..., description="Name of the campaign creator")


class DonationReceipt(BaseModel):
    """Confirmation returned for an accepted donation."""

    message: str = Field(..., description="Human readable confirmation naming the amount and campaign id")


class ErrorResponse(BaseModel):
    """Body returned for NotFound, NotEnoughFunds and SizeExceeded."""

    error: str = Field(..., description="Error kind")
    message: str = Field(..., description="Human readable error message")
