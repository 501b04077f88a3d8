"""Order identity: the EIP-712 struct hash of the signed order components.

The settlement protocol keys every per-order record by this hash. It is
the struct hash only (no domain separator), so the same order has the
same identity on every chain; replay protection comes from the
offerer's signature over the full digest, not from the identity.
"""

from __future__ import annotations

from eth_abi import encode
from eth_utils import keccak

from tradezones.models.order import ConsiderationItem, OfferItem, OrderComponents

OFFER_ITEM_TYPESTRING = (
    b"OfferItem(uint8 itemType,address token,uint256 identifierOrCriteria,"
    b"uint256 startAmount,uint256 endAmount)"
)
CONSIDERATION_ITEM_TYPESTRING = (
    b"ConsiderationItem(uint8 itemType,address token,uint256 identifierOrCriteria,"
    b"uint256 startAmount,uint256 endAmount,address recipient)"
)
ORDER_COMPONENTS_TYPESTRING = (
    b"OrderComponents(address offerer,address zone,OfferItem[] offer,"
    b"ConsiderationItem[] consideration,uint8 orderType,uint256 startTime,"
    b"uint256 endTime,bytes32 zoneHash,uint256 salt,bytes32 conduitKey,uint256 counter)"
)

OFFER_ITEM_TYPEHASH = keccak(OFFER_ITEM_TYPESTRING)
CONSIDERATION_ITEM_TYPEHASH = keccak(CONSIDERATION_ITEM_TYPESTRING)
# Referenced structs are appended in alphabetical order
ORDER_COMPONENTS_TYPEHASH = keccak(
    ORDER_COMPONENTS_TYPESTRING + CONSIDERATION_ITEM_TYPESTRING + OFFER_ITEM_TYPESTRING
)


def offer_item_hash(item: OfferItem) -> bytes:
    return keccak(encode(
        ["bytes32", "uint8", "address", "uint256", "uint256", "uint256"],
        [
            OFFER_ITEM_TYPEHASH,
            int(item.item_type),
            item.token,
            item.identifier_or_criteria,
            item.start_amount,
            item.end_amount,
        ],
    ))


def consideration_item_hash(item: ConsiderationItem) -> bytes:
    return keccak(encode(
        ["bytes32", "uint8", "address", "uint256", "uint256", "uint256", "address"],
        [
            CONSIDERATION_ITEM_TYPEHASH,
            int(item.item_type),
            item.token,
            item.identifier_or_criteria,
            item.start_amount,
            item.end_amount,
            item.recipient,
        ],
    ))


def order_hash(components: OrderComponents) -> bytes:
    """Compute the 32-byte order identity.

    Arrays hash as keccak of their concatenated element hashes, so an
    empty offer or consideration hashes to keccak(b"").
    """
    offer_hash = keccak(b"".join(offer_item_hash(i) for i in components.offer))
    consideration_hash = keccak(
        b"".join(consideration_item_hash(i) for i in components.consideration)
    )
    return keccak(encode(
        [
            "bytes32", "address", "address", "bytes32", "bytes32", "uint8",
            "uint256", "uint256", "bytes32", "uint256", "bytes32", "uint256",
        ],
        [
            ORDER_COMPONENTS_TYPEHASH,
            components.offerer,
            components.zone,
            offer_hash,
            consideration_hash,
            int(components.order_type),
            components.start_time,
            components.end_time,
            components.zone_hash,
            components.salt,
            components.conduit_key,
            components.counter,
        ],
    ))
