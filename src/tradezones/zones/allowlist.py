"""Allowlist zones: restrict who may fulfill an order.

OffererAllowlistZone keeps an explicit address set per order, registered
by the offerer before fulfillment. MerkleAllowlistZone keeps nothing:
the order's zone hash is the Merkle root and the fulfiller brings a
proof for their own address.
"""

from __future__ import annotations

from typing import Iterable, Optional

from eth_utils import to_checksum_address

from tradezones.chain import Chain
from tradezones.codec import decode_proof
from tradezones.crypto.merkle import address_leaf, verify_proof
from tradezones.crypto.order_hash import order_hash
from tradezones.errors import RejectionReason, ZoneRejection
from tradezones.models.order import OrderComponents, ZoneParameters
from tradezones.zones.base import Zone


class OffererAllowlistZone(Zone):
    """Fulfillers must be in the set the offerer registered for this order."""

    name = "OffererAllowlistZone"

    def __init__(
        self,
        chain: Chain,
        protocol: str,
        aggregator: Optional[str] = None,
        address: Optional[str] = None,
    ) -> None:
        super().__init__(chain, protocol, aggregator, address)
        self._allowed: dict[bytes, frozenset[str]] = {}

    def set_allowed_addresses(
        self,
        sender: str,
        components: OrderComponents,
        addresses: Iterable[str],
    ) -> bytes:
        """Register the fulfiller set for an order, replacing any earlier set.

        Only the order's offerer may call this. Returns the order hash the
        set is keyed by.

        Raises:
            ZoneRejection: MSG_SENDER_NOT_OFFERER.
        """
        if to_checksum_address(sender) != to_checksum_address(components.offerer):
            raise ZoneRejection(
                RejectionReason.MSG_SENDER_NOT_OFFERER,
                f"{sender} is not the offerer",
            )
        key = order_hash(components)
        self._allowed[key] = frozenset(to_checksum_address(a) for a in addresses)
        self._log.info(
            "allowlist_set",
            order_hash="0x" + key.hex(),
            count=len(self._allowed[key]),
        )
        return key

    def allowed_addresses(self, key: bytes) -> frozenset[str]:
        return self._allowed.get(bytes(key), frozenset())

    def is_allowed(self, key: bytes, fulfiller: str) -> bool:
        return to_checksum_address(fulfiller) in self.allowed_addresses(key)

    def _authorize(self, params: ZoneParameters) -> None:
        if not self.is_allowed(params.order_hash, params.fulfiller):
            raise ZoneRejection(
                RejectionReason.ORDER_RESTRICTED,
                f"{params.fulfiller} is not allowed for this order",
            )

    def allowlists(self) -> dict[bytes, frozenset[str]]:
        return dict(self._allowed)

    def load_allowlists(self, allowlists: dict[bytes, frozenset[str]]) -> None:
        self._allowed = {
            bytes(k): frozenset(to_checksum_address(a) for a in v)
            for k, v in allowlists.items()
        }

    def snapshot(self) -> dict[bytes, frozenset[str]]:
        return dict(self._allowed)

    def restore(self, state: dict[bytes, frozenset[str]]) -> None:
        self._allowed = dict(state)


class MerkleAllowlistZone(Zone):
    """Fulfillers prove membership in the Merkle root held in the zone hash.

    Extra data is an ABI-encoded bytes32[] proof for address_leaf(fulfiller).
    """

    name = "MerkleAllowlistZone"

    def _authorize(self, params: ZoneParameters) -> None:
        proof = decode_proof(params.extra_data)
        if not verify_proof(address_leaf(params.fulfiller), proof, params.zone_hash):
            raise ZoneRejection(
                RejectionReason.ORDER_RESTRICTED,
                f"{params.fulfiller} not in committed allowlist",
            )
