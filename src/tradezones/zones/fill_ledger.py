"""Per-(order, fulfiller) cumulative fill accounting.

A record is created on the first accepted fill and only ever grows. The
ledger is an explicit object handed to the zones that need it, so one
deployment can share a ledger between zones (or give each its own) and
tests start from a fresh one.
"""

from __future__ import annotations

from typing import Iterator, Optional

from eth_utils import to_checksum_address

from tradezones.chain import Chain
from tradezones.errors import RejectionReason, ZoneRejection

FillKey = tuple[bytes, str]


class FillLedger:
    """Cumulative filled amount keyed by (order hash, fulfiller).

    Usage:
        ledger = FillLedger(chain)
        ledger.record_fill(order_hash, bob, amount=400, min_fill=0, max_fill=400)
        ledger.filled(order_hash, bob)   # 400
    """

    def __init__(self, chain: Optional[Chain] = None) -> None:
        self._filled: dict[FillKey, int] = {}
        if chain is not None:
            chain.track(self)

    @staticmethod
    def _key(order_hash: bytes, fulfiller: str) -> FillKey:
        return (bytes(order_hash), to_checksum_address(fulfiller))

    def filled(self, order_hash: bytes, fulfiller: str) -> int:
        return self._filled.get(self._key(order_hash, fulfiller), 0)

    def record_fill(
        self,
        order_hash: bytes,
        fulfiller: str,
        amount: int,
        min_fill: int,
        max_fill: int,
    ) -> int:
        """Add a fill and return the new cumulative amount.

        The minimum applies to this call's amount alone; the maximum
        applies to the cumulative total. Nothing is written on failure.

        Raises:
            ZoneRejection: MAX_FILL_EXCEEDED or UNDER_MIN_FILL.
        """
        if amount < 0:
            raise ValueError(f"Fill amount must be non-negative, got {amount}")
        key = self._key(order_hash, fulfiller)
        current = self._filled.get(key, 0)
        cumulative = current + amount
        if cumulative > max_fill:
            raise ZoneRejection(
                RejectionReason.MAX_FILL_EXCEEDED,
                f"cumulative {cumulative} exceeds cap {max_fill}",
            )
        if amount < min_fill:
            raise ZoneRejection(
                RejectionReason.UNDER_MIN_FILL,
                f"fill {amount} below minimum {min_fill}",
            )
        self._filled[key] = cumulative
        return cumulative

    def entries(self) -> Iterator[tuple[bytes, str, int]]:
        """All records as (order hash, fulfiller, cumulative amount)."""
        for (order_hash, fulfiller), amount in self._filled.items():
            yield order_hash, fulfiller, amount

    def load(self, entries: list[tuple[bytes, str, int]]) -> None:
        """Replace the ledger contents, e.g. from persisted state."""
        self._filled = {
            self._key(order_hash, fulfiller): amount
            for order_hash, fulfiller, amount in entries
        }

    def snapshot(self) -> dict[FillKey, int]:
        return dict(self._filled)

    def restore(self, state: dict[FillKey, int]) -> None:
        self._filled = dict(state)
