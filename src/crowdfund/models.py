from __future__ import annotations

from datetime import datetime
from typing import Optional

from typing_extensions import TypedDict

U64_MAX = 2**64 - 1


# PUBLIC_INTERFACE
class CampaignEntity(TypedDict):
    """
    The persisted campaign record.

    Fields:
    - id: Unique unsigned 64-bit identifier, assigned once at creation
    - title: Free-form title (mutable via update)
    - description: Free-form description (mutable via update)
    - goal_amount: Target funding amount (mutable via update)
    - raised_amount: Cumulative donations; only donations change it
    - created_at: Creation timestamp, never changed afterwards
    - updated_at: Timestamp of the last update, None until the first update
    - creator: Free-form creator name, fixed at creation
    """

    id: int
    title: str
    description: str
    goal_amount: int
    raised_amount: int
    created_at: datetime
    updated_at: Optional[datetime]
    creator: str
