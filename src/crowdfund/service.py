from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from threading import RLock
from typing import Callable, List, Optional, Tuple

from .allocator import IdAllocator
from .codec import Codec, get_codec
from .errors import NotEnoughFunds, SizeExceeded, not_found
from .models import U64_MAX, CampaignEntity
from .schemas import CampaignPayload, DonationPayload
from .settings import get_settings
from .stable import StableDatabase
from .store import CampaignStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
class CampaignService:
    """
    Campaign operations on top of the durable store and the id allocator.

    Every operation validates before writing: when one raises a CampaignError
    the stored state is exactly what it was before the call.
    """

    def __init__(
        self,
        store: CampaignStore,
        allocator: IdAllocator,
        codec: Codec,
        max_record_bytes: int,
        now: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._allocator = allocator
        self._codec = codec
        self._max_record_bytes = max_record_bytes
        self._now = now or utc_now
        # Serializes create so allocation and insert are not interleaved
        self._create_lock = RLock()

    @property
    def max_record_bytes(self) -> int:
        return self._max_record_bytes

    def validate_size(self, entity: CampaignEntity) -> None:
        """Raise SizeExceeded if the encoded record is larger than the bound."""
        if len(self._codec.encode(entity)) > self._max_record_bytes:
            raise SizeExceeded(f"Campaign data exceeds the max size of {self._max_record_bytes}")

    def get_campaign(self, campaign_id: int) -> CampaignEntity:
        """Return the campaign stored at ``campaign_id`` or raise NotFound."""
        entity = self._store.get(campaign_id)
        if entity is None:
            raise not_found(campaign_id)
        return entity

    def list_campaigns(self, offset: int = 0, limit: int = 50) -> Tuple[List[CampaignEntity], int]:
        """Return one page of campaigns in ascending id order and the total count."""
        return self._store.list(offset=offset, limit=limit)

    def create_campaign(self, payload: CampaignPayload) -> CampaignEntity:
        """
        Create a campaign with a freshly allocated id.

        The id is allocated before the size check, so a rejected payload still
        consumes its id. Ids are not required to be contiguous.
        """
        with self._create_lock:
            campaign_id = self._allocator.next_id()
            entity: CampaignEntity = {
                "id": campaign_id,
                "title": payload.title,
                "description": payload.description,
                "goal_amount": payload.goal_amount,
                "raised_amount": 0,
                "created_at": self._now(),
                "updated_at": None,
                "creator": payload.creator,
            }
            self.validate_size(entity)
            self._store.insert(campaign_id, entity)
        logger.info(f"Created campaign {campaign_id} for creator {payload.creator!r}")
        return dict(entity)  # type: ignore[return-value]

    def update_campaign(self, campaign_id: int, payload: CampaignPayload) -> CampaignEntity:
        """
        Overwrite title, description and goal_amount and stamp updated_at.

        raised_amount, created_at, creator and id are left untouched.
        """

        def apply(current: CampaignEntity) -> CampaignEntity:
            current["title"] = payload.title
            current["description"] = payload.description
            current["goal_amount"] = payload.goal_amount
            current["updated_at"] = self._now()
            self.validate_size(current)
            return current

        updated = self._store.mutate(campaign_id, apply)
        if updated is None:
            raise not_found(campaign_id)
        logger.info(f"Updated campaign {campaign_id}")
        return updated

    def delete_campaign(self, campaign_id: int) -> CampaignEntity:
        """Permanently remove a campaign and return it; there is no soft delete."""
        removed = self._store.remove(campaign_id)
        if removed is None:
            raise not_found(campaign_id)
        logger.info(f"Deleted campaign {campaign_id}")
        return removed

    def donate_to_campaign(self, payload: DonationPayload) -> str:
        """
        Add ``payload.amount`` to the campaign's raised amount.

        The donation is all or nothing: if the new total would exceed the goal
        (or the unsigned 64-bit range) the record is left as it was and
        NotEnoughFunds is raised. Read, check and write happen as one unit.
        """
        campaign_id = payload.campaign_id
        amount = payload.amount

        def apply(current: CampaignEntity) -> CampaignEntity:
            logger.info(
                f"Campaign ID: {campaign_id}, Goal: {current['goal_amount']}, "
                f"Raised: {current['raised_amount']}, Donation: {amount}"
            )
            new_raised = current["raised_amount"] + amount
            if new_raised > U64_MAX:
                logger.warning(f"Donation of {amount} overflows raised amount of campaign {campaign_id}")
                raise NotEnoughFunds("Donation overflows the raised amount")
            if new_raised > current["goal_amount"]:
                logger.warning(
                    f"Donation exceeds goal: Campaign ID: {campaign_id}, Raised: {current['raised_amount']}, "
                    f"Donation: {amount}, Goal: {current['goal_amount']}"
                )
                raise NotEnoughFunds("Donation exceeds the campaign goal")
            current["raised_amount"] = new_raised
            self.validate_size(current)
            return current

        if self._store.mutate(campaign_id, apply) is None:
            raise not_found(campaign_id)
        return f"Donation of {amount} accepted to campaign {campaign_id}"


# PUBLIC_INTERFACE
def build_service(db_path: str, max_record_bytes: int, now: Optional[Clock] = None) -> CampaignService:
    """Wire the durable regions, store, allocator and service for ``db_path``."""
    db = StableDatabase(db_path)
    codec = get_codec()
    store = CampaignStore(db, codec, max_record_bytes)
    allocator = IdAllocator(db)
    return CampaignService(store, allocator, codec, max_record_bytes, now=now)


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_service() -> CampaignService:
    """
    Return the process-wide CampaignService configured from settings.

    The store and allocator are singletons; every request shares them.
    """
    settings = get_settings()
    return build_service(settings.db_path, settings.max_record_bytes)
