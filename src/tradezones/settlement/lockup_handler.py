"""Post-settlement hook that turns settled proceeds into vesting plans.

The order's zone hash is keccak of the encoded LockParams, so the lock
schedule is fixed when the offerer signs. After the protocol has moved
assets, the hook pulls each locked item back from whoever received it
and creates a plan for them:

* offer items were received by the fulfiller and lock for the fulfiller;
* consideration items lock for their recipient.

Amounts are the protocol's settled amounts, so a partial fill locks its
pro-rata share.
"""

from __future__ import annotations

from typing import Optional

from tradezones.chain import Chain
from tradezones.codec import commitment_hash, decode_lock_params
from tradezones.errors import RejectionReason, ZoneRejection
from tradezones.models.lockup import LockupParams
from tradezones.models.order import ItemType, ZoneParameters
from tradezones.settlement.vesting import VestingEscrowAdapter
from tradezones.zones.base import Zone, require_nonzero


def lockup_rate(amount: int, schedule: LockupParams) -> int:
    """Tokens unlocked per period, or INVALID_RATE if it cannot be computed.

    Raises:
        ZoneRejection: END_LESS_THAN_CLIFF or INVALID_RATE.
    """
    if schedule.end_offset_time < schedule.cliff_offset_time:
        raise ZoneRejection(
            RejectionReason.END_LESS_THAN_CLIFF,
            f"end {schedule.end_offset_time} < cliff {schedule.cliff_offset_time}",
        )
    if schedule.end_offset_time == 0 or schedule.period == 0:
        raise ZoneRejection(RejectionReason.INVALID_RATE, "zero end offset or period")
    rate = amount // schedule.end_offset_time
    if rate == 0:
        raise ZoneRejection(
            RejectionReason.INVALID_RATE,
            f"{amount} over {schedule.end_offset_time}s rounds to zero",
        )
    return rate


def require_lockable(item_type: ItemType) -> None:
    if item_type != ItemType.ERC20:
        raise ZoneRejection(
            RejectionReason.INVALID_ITEM_TYPE,
            f"only ERC20 items can be locked, got {item_type.name}",
        )


class LockupHandlerZone(Zone):
    """Locks settled items into plans on the configured vesting service."""

    name = "LockupHandlerZone"

    def __init__(
        self,
        chain: Chain,
        protocol: str,
        vesting_service: str,
        aggregator: Optional[str] = None,
        address: Optional[str] = None,
    ) -> None:
        super().__init__(chain, protocol, aggregator, address)
        self.adapter = VestingEscrowAdapter(
            chain, self.address, require_nonzero(vesting_service, "vesting service"),
        )

    def _validate(self, params: ZoneParameters) -> None:
        if commitment_hash(params.extra_data) != params.zone_hash:
            raise ZoneRejection(
                RejectionReason.INVALID_EXTRA_DATA,
                "lock params do not match the committed zone hash",
            )
        lock = decode_lock_params(params.extra_data)

        with self.chain.transaction():
            if lock.offer_lockup.initialized:
                if not params.offer:
                    raise ZoneRejection(RejectionReason.NO_OFFER)
                for item in params.offer:
                    self._lock(
                        item.item_type, item.token, item.amount,
                        params.fulfiller, lock.offer_lockup,
                    )
            if lock.consideration_lockup.initialized:
                if not params.consideration:
                    raise ZoneRejection(RejectionReason.NO_CONSIDERATION)
                for received in params.consideration:
                    self._lock(
                        received.item_type, received.token, received.amount,
                        received.recipient, lock.consideration_lockup,
                    )

    def _lock(
        self,
        item_type: ItemType,
        token: str,
        amount: int,
        beneficiary: str,
        schedule: LockupParams,
    ) -> int:
        require_lockable(item_type)
        rate = lockup_rate(amount, schedule)
        return self.adapter.lock_from(
            source=beneficiary,
            beneficiary=beneficiary,
            token=token,
            amount=amount,
            start=schedule.start,
            cliff_offset=schedule.cliff_offset_time,
            rate=rate,
            period=schedule.period,
        )
