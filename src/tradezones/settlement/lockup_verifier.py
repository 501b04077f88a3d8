"""Post-settlement check that traded lockup positions still hold enough.

Orders that trade vesting plans (as ERC721 positions) commit, through
the zone hash, to the minimum remaining amount each position must carry
when it settles. This stops an offerer from redeeming a plan between
signing and fulfillment and delivering an emptied position.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from tradezones.chain import Chain
from tradezones.codec import commitment_hash, decode_lockup_verification
from tradezones.errors import RejectionReason, TokenError, ZoneRejection
from tradezones.models.order import ItemType, ZoneParameters
from tradezones.settlement.vesting import LockupWhitelist, VestingService
from tradezones.zones.base import Zone


class LockupVerifierZone(Zone):
    name = "LockupVerifierZone"

    def __init__(
        self,
        chain: Chain,
        protocol: str,
        lockup_addresses: Iterable[str],
        aggregator: Optional[str] = None,
        address: Optional[str] = None,
    ) -> None:
        self.whitelist = LockupWhitelist(lockup_addresses)
        super().__init__(chain, protocol, aggregator, address)

    def _validate(self, params: ZoneParameters) -> None:
        if commitment_hash(params.extra_data) != params.zone_hash:
            raise ZoneRejection(
                RejectionReason.INVALID_EXTRA_DATA,
                "expected amounts do not match the committed zone hash",
            )
        expected = decode_lockup_verification(params.extra_data)
        self._verify(
            [(i.item_type, i.token, i.identifier) for i in params.offer],
            expected.offer_amounts,
        )
        self._verify(
            [(i.item_type, i.token, i.identifier) for i in params.consideration],
            expected.consideration_amounts,
        )

    def _verify(
        self,
        items: Sequence[tuple[ItemType, str, int]],
        expected_amounts: Sequence[int],
    ) -> None:
        for position, (item_type, token, plan_id) in enumerate(items):
            expected = expected_amounts[position] if position < len(expected_amounts) else 0
            # Zero means no verification requested for this item
            if expected == 0 or item_type != ItemType.ERC721:
                continue
            self.whitelist.require(token)
            if not self.chain.has_contract(token):
                raise ZoneRejection(
                    RejectionReason.LOCKUP_INVALID_AMOUNT,
                    f"no lockup service deployed at {token}",
                )
            service: VestingService = self.chain.contract(token)  # type: ignore[assignment]
            try:
                remaining = service.plan(plan_id).amount
            except TokenError as exc:
                raise ZoneRejection(
                    RejectionReason.LOCKUP_INVALID_AMOUNT,
                    f"plan {plan_id} not found",
                ) from exc
            if remaining < expected:
                raise ZoneRejection(
                    RejectionReason.LOCKUP_INVALID_AMOUNT,
                    f"plan {plan_id} holds {remaining}, expected {expected}",
                )
