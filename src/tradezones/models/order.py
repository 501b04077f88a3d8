"""Order and zone-callback models.

These mirror the structures the settlement protocol hands to a zone.
All records are immutable once constructed; amounts are integer token
base units and timestamps are integer block times (seconds).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace


class ItemType(int, enum.Enum):
    """Asset class of an offer or consideration item."""
    NATIVE = 0
    ERC20 = 1
    ERC721 = 2
    ERC1155 = 3
    ERC721_WITH_CRITERIA = 4
    ERC1155_WITH_CRITERIA = 5


class OrderType(int, enum.Enum):
    """Fill policy of an order.

    Restricted orders are routed through their zone; partial orders
    accept numerator/denominator fractions below 1.
    """
    FULL_OPEN = 0
    PARTIAL_OPEN = 1
    FULL_RESTRICTED = 2
    PARTIAL_RESTRICTED = 3
    CONTRACT = 4

    @property
    def is_restricted(self) -> bool:
        return self in (OrderType.FULL_RESTRICTED, OrderType.PARTIAL_RESTRICTED)

    @property
    def allows_partial(self) -> bool:
        return self in (OrderType.PARTIAL_OPEN, OrderType.PARTIAL_RESTRICTED)


ZERO_HASH = b"\x00" * 32
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class OfferItem:
    """An item the offerer gives, as signed."""
    item_type: ItemType
    token: str
    identifier_or_criteria: int
    start_amount: int
    end_amount: int


@dataclass(frozen=True)
class ConsiderationItem:
    """An item the offerer expects, as signed."""
    item_type: ItemType
    token: str
    identifier_or_criteria: int
    start_amount: int
    end_amount: int
    recipient: str


@dataclass(frozen=True)
class OrderComponents:
    """The full signed order. Its struct hash is the order identity."""
    offerer: str
    zone: str
    offer: tuple[OfferItem, ...]
    consideration: tuple[ConsiderationItem, ...]
    order_type: OrderType
    start_time: int
    end_time: int
    zone_hash: bytes
    salt: int
    conduit_key: bytes = ZERO_HASH
    counter: int = 0


@dataclass(frozen=True)
class SpentItem:
    """An offer item with its settled amount."""
    item_type: ItemType
    token: str
    identifier: int
    amount: int


@dataclass(frozen=True)
class ReceivedItem:
    """A consideration item with its settled amount and recipient."""
    item_type: ItemType
    token: str
    identifier: int
    amount: int
    recipient: str


@dataclass(frozen=True)
class ZoneParameters:
    """Everything a zone sees during a validation callback.

    Offer and consideration amounts are the settled amounts, already
    scaled by the fill fraction the fulfiller requested.
    """
    order_hash: bytes
    fulfiller: str
    offerer: str
    offer: tuple[SpentItem, ...]
    consideration: tuple[ReceivedItem, ...]
    extra_data: bytes
    start_time: int
    end_time: int
    zone_hash: bytes
    order_hashes: tuple[bytes, ...] = field(default_factory=tuple)

    def for_sub_zone(self, zone_hash: bytes, extra_data: bytes) -> ZoneParameters:
        """Copy with a sub-zone's own commitment and data swapped in."""
        return replace(self, zone_hash=zone_hash, extra_data=extra_data)
