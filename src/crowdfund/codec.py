from __future__ import annotations

from typing import Protocol

from pydantic import TypeAdapter

from .models import CampaignEntity


# PUBLIC_INTERFACE
class Codec(Protocol):
    """Serialize/deserialize capability for stored campaign records."""

    def encode(self, entity: CampaignEntity) -> bytes:
        ...

    def decode(self, data: bytes) -> CampaignEntity:
        ...


class JsonCodec:
    """
    Compact JSON encoding of a CampaignEntity, driven by pydantic.

    The encoded length of this representation is what the record byte bound
    is measured against.
    """

    def __init__(self) -> None:
        self._adapter: TypeAdapter[CampaignEntity] = TypeAdapter(CampaignEntity)

    def encode(self, entity: CampaignEntity) -> bytes:
        return self._adapter.dump_json(entity)

    def decode(self, data: bytes) -> CampaignEntity:
        return self._adapter.validate_json(data)


# PUBLIC_INTERFACE
def get_codec() -> Codec:
    """Return the default record codec."""
    return JsonCodec()
