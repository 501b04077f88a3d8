"""Compose several zones under one order.

The offerer commits to an ordered list of (zone, sub zone hash) pairs by
putting their running hash in the order's zone hash. The fulfiller then
supplies the same list with each zone's extra data. Dropping, reordering
or swapping an entry changes the running hash, so the fulfiller cannot
substitute weaker validation than the offerer signed for.
"""

from __future__ import annotations

from typing import Optional

from tradezones.chain import Chain
from tradezones.codec import aggregate_zone_hash, decode_zone_entries
from tradezones.errors import RejectionReason, ZoneRejection
from tradezones.models.authorization import ZoneEntry
from tradezones.models.order import ZoneParameters
from tradezones.zones.base import Zone


class ZoneAggregator(Zone):
    """Forwards both callbacks to each committed sub-zone, in order.

    Sub-zones must list this aggregator as a trusted caller.
    """

    name = "ZoneAggregator"

    def __init__(self, chain: Chain, protocol: str, address: Optional[str] = None) -> None:
        super().__init__(chain, protocol, aggregator=None, address=address)

    def _resolve(self, params: ZoneParameters) -> list[tuple[ZoneEntry, Zone]]:
        entries = decode_zone_entries(params.extra_data)
        if not entries:
            raise ZoneRejection(RejectionReason.INVALID_ZONES, "empty zone list")

        expected = aggregate_zone_hash([(e.zone_address, e.zone_hash) for e in entries])
        if expected != params.zone_hash:
            raise ZoneRejection(
                RejectionReason.INVALID_ZONES,
                "zone list does not match the committed zone hash",
            )

        resolved: list[tuple[ZoneEntry, Zone]] = []
        for entry in entries:
            if not self.chain.has_contract(entry.zone_address):
                raise ZoneRejection(
                    RejectionReason.INVALID_ZONES,
                    f"no zone deployed at {entry.zone_address}",
                )
            zone = self.chain.contract(entry.zone_address)
            if not isinstance(zone, Zone):
                raise ZoneRejection(
                    RejectionReason.INVALID_ZONES,
                    f"{entry.zone_address} is not a zone",
                )
            resolved.append((entry, zone))
        return resolved

    def _authorize(self, params: ZoneParameters) -> None:
        resolved = self._resolve(params)
        with self.chain.transaction():
            for entry, zone in resolved:
                zone.authorize_order(
                    self.address, params.for_sub_zone(entry.zone_hash, entry.extra_data),
                )

    def _validate(self, params: ZoneParameters) -> None:
        resolved = self._resolve(params)
        with self.chain.transaction():
            for entry, zone in resolved:
                zone.validate_order(
                    self.address, params.for_sub_zone(entry.zone_hash, entry.extra_data),
                )
