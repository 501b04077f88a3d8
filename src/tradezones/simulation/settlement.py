"""A minimal settlement protocol that drives zones the way the real one does.

It covers the parts zones depend on: order time windows, full versus
partial fills and the filled fraction per order, settled amounts scaled
by the requested fraction, the two zone callbacks around the transfers,
and all-or-nothing execution. Offerer signatures, conduits, criteria
resolution and native-currency items are outside its scope.
"""

from __future__ import annotations

from fractions import Fraction
from typing import Optional

from eth_utils import to_checksum_address

from tradezones.chain import Chain, Contract
from tradezones.crypto.order_hash import order_hash
from tradezones.errors import SettlementError
from tradezones.models.order import (
    ItemType,
    OrderComponents,
    ReceivedItem,
    SpentItem,
    ZoneParameters,
)
from tradezones.observability import get_logger
from tradezones.zones.base import Zone

_TRANSFERABLE = (ItemType.ERC20, ItemType.ERC721)


class SettlementSimulator(Contract):
    """Usage:
        protocol = SettlementSimulator(chain)
        protocol.fulfill_advanced_order(order, bob, 1, 2, extra_data=proof)
    """

    def __init__(self, chain: Chain, address: Optional[str] = None) -> None:
        super().__init__(chain, address)
        self._filled: dict[bytes, Fraction] = {}
        self._log = get_logger("settlement").bind(protocol=self.address)

    def filled_fraction(self, key: bytes) -> Fraction:
        return self._filled.get(bytes(key), Fraction(0))

    def fulfill_advanced_order(
        self,
        order: OrderComponents,
        fulfiller: str,
        numerator: int = 1,
        denominator: int = 1,
        extra_data: bytes = b"",
    ) -> bytes:
        """Settle `numerator / denominator` of an order for `fulfiller`.

        Returns the order hash. Any zone rejection or protocol failure
        undoes every state change made during the call.

        Raises:
            SettlementError: for protocol-level failures.
            ZoneRejection: when the order's zone refuses the fulfillment.
        """
        fulfiller = to_checksum_address(fulfiller)
        with self.chain.transaction():
            key = order_hash(order)
            fraction = self._apply_fraction(order, key, numerator, denominator)
            params = self._zone_parameters(order, key, fulfiller, fraction, extra_data)

            zone = self._zone(order) if order.order_type.is_restricted else None
            if zone is not None:
                zone.authorize_order(self.address, params)

            for spent in params.offer:
                self._transfer(spent.item_type, spent.token, order.offerer, fulfiller,
                               spent.amount, spent.identifier)
            for received in params.consideration:
                self._transfer(received.item_type, received.token, fulfiller,
                               received.recipient, received.amount, received.identifier)

            if zone is not None:
                zone.validate_order(self.address, params)

        self._log.info(
            "order_fulfilled",
            order_hash="0x" + key.hex(),
            fulfiller=fulfiller,
            fraction=str(fraction),
        )
        return key

    def _apply_fraction(
        self,
        order: OrderComponents,
        key: bytes,
        numerator: int,
        denominator: int,
    ) -> Fraction:
        now = self.chain.timestamp
        if not order.start_time <= now < order.end_time:
            raise SettlementError(
                f"order active from {order.start_time} to {order.end_time}, now {now}"
            )
        if denominator == 0 or numerator == 0 or numerator > denominator:
            raise SettlementError(f"bad fill fraction {numerator}/{denominator}")
        requested = Fraction(numerator, denominator)
        if requested != 1 and not order.order_type.allows_partial:
            raise SettlementError("partial fills not enabled for this order")

        remaining = 1 - self.filled_fraction(key)
        if remaining == 0:
            raise SettlementError("order already fully filled")
        fraction = min(requested, remaining)
        self._filled[key] = self.filled_fraction(key) + fraction
        return fraction

    def _zone_parameters(
        self,
        order: OrderComponents,
        key: bytes,
        fulfiller: str,
        fraction: Fraction,
        extra_data: bytes,
    ) -> ZoneParameters:
        def scaled(amount: int) -> int:
            return amount * fraction.numerator // fraction.denominator

        return ZoneParameters(
            order_hash=key,
            fulfiller=fulfiller,
            offerer=to_checksum_address(order.offerer),
            offer=tuple(
                SpentItem(
                    item_type=item.item_type,
                    token=item.token,
                    identifier=item.identifier_or_criteria,
                    amount=scaled(item.start_amount),
                )
                for item in order.offer
            ),
            consideration=tuple(
                ReceivedItem(
                    item_type=item.item_type,
                    token=item.token,
                    identifier=item.identifier_or_criteria,
                    amount=scaled(item.start_amount),
                    recipient=to_checksum_address(item.recipient),
                )
                for item in order.consideration
            ),
            extra_data=extra_data,
            start_time=order.start_time,
            end_time=order.end_time,
            zone_hash=order.zone_hash,
            order_hashes=(key,),
        )

    def _zone(self, order: OrderComponents) -> Zone:
        if not self.chain.has_contract(order.zone):
            raise SettlementError(f"no zone deployed at {order.zone}")
        zone = self.chain.contract(order.zone)
        if not isinstance(zone, Zone):
            raise SettlementError(f"{order.zone} is not a zone")
        return zone

    def _transfer(
        self,
        item_type: ItemType,
        token: str,
        sender: str,
        recipient: str,
        amount: int,
        identifier: int,
    ) -> None:
        if item_type not in _TRANSFERABLE:
            raise SettlementError(f"unsupported item type {item_type.name}")
        if not self.chain.has_contract(token):
            raise SettlementError(f"no token deployed at {token}")
        contract = self.chain.contract(token)
        value = amount if item_type == ItemType.ERC20 else identifier
        contract.transfer_from(self.address, sender, recipient, value)  # type: ignore[attr-defined]

    def snapshot(self) -> dict[bytes, Fraction]:
        return dict(self._filled)

    def restore(self, state: dict[bytes, Fraction]) -> None:
        self._filled = dict(state)
