from __future__ import annotations


# PUBLIC_INTERFACE
class CampaignError(Exception):
    """
    Base class for user-facing campaign errors.

    Each error carries a human readable ``msg`` naming the offending id or the
    violated bound. ``kind`` is the stable name reported to API clients.
    """

    kind = "CampaignError"

    def __init__(self, msg: str) -> None:
        super().__init__(msg)
        self.msg = msg

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.msg}


class NotFound(CampaignError):
    """The requested campaign id does not exist in the store."""

    kind = "NotFound"


class NotEnoughFunds(CampaignError):
    """A donation would push the raised amount above the campaign goal."""

    kind = "NotEnoughFunds"


class SizeExceeded(CampaignError):
    """The encoded record is larger than the configured byte bound."""

    kind = "SizeExceeded"


# PUBLIC_INTERFACE
class StorageFault(RuntimeError):
    """
    The durable substrate is broken (a write failed or the region layout does
    not match). Not a user input problem; the current operation is aborted.
    """


def not_found(campaign_id: int) -> NotFound:
    return NotFound(f"Campaign with id={campaign_id} not found")
