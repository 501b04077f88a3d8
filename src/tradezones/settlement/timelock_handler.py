"""Post-settlement hook that holds settled proceeds until a fixed date.

Each side's unlock date comes from the committed TimeLockParams; zero
leaves that side untouched. A locked side becomes a single-release plan
whose cliff is the unlock date and whose rate releases everything at once.

This is a simplified stand-in for a dedicated time-lock service, where the
lock is a transferable position whose redemption is refused before the
unlock date. Here the vesting service plays that role: withdrawing before
the cliff yields nothing rather than failing. The up-front
INVALID_UNLOCK_DATE check on past or present dates is specific to this
hook; the dedicated service only enforces the date at redemption.
"""

from __future__ import annotations

from typing import Optional

from tradezones.chain import Chain
from tradezones.codec import commitment_hash, decode_time_lock_params
from tradezones.errors import RejectionReason, ZoneRejection
from tradezones.models.order import ZoneParameters
from tradezones.settlement.lockup_handler import require_lockable
from tradezones.settlement.vesting import VestingEscrowAdapter
from tradezones.zones.base import Zone, require_nonzero


class TimeLockHandlerZone(Zone):
    name = "TimeLockHandlerZone"

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
                "time lock params do not match the committed zone hash",
            )
        lock = decode_time_lock_params(params.extra_data)

        with self.chain.transaction():
            if lock.offer_unlock_date:
                if not params.offer:
                    raise ZoneRejection(RejectionReason.NO_OFFER)
                for item in params.offer:
                    require_lockable(item.item_type)
                    self._lock_until(
                        item.token, item.amount, params.fulfiller, lock.offer_unlock_date,
                    )
            if lock.consideration_unlock_date:
                if not params.consideration:
                    raise ZoneRejection(RejectionReason.NO_CONSIDERATION)
                for received in params.consideration:
                    require_lockable(received.item_type)
                    self._lock_until(
                        received.token, received.amount, received.recipient,
                        lock.consideration_unlock_date,
                    )

    def _lock_until(self, token: str, amount: int, beneficiary: str, unlock_date: int) -> int:
        now = self.chain.timestamp
        if unlock_date <= now:
            raise ZoneRejection(
                RejectionReason.INVALID_UNLOCK_DATE,
                f"unlock date {unlock_date} is not after {now}",
            )
        if amount == 0:
            raise ZoneRejection(RejectionReason.INVALID_RATE, "nothing to lock")
        return self.adapter.lock_from(
            source=beneficiary,
            beneficiary=beneficiary,
            token=token,
            amount=amount,
            start=now,
            cliff_offset=unlock_date - now,
            rate=amount,
            period=1,
        )
