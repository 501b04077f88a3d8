"""Validation zones called by the settlement protocol around each fulfillment."""

from tradezones.zones.aggregator import ZoneAggregator
from tradezones.zones.allowlist import MerkleAllowlistZone, OffererAllowlistZone
from tradezones.zones.base import Zone
from tradezones.zones.fill_ledger import FillLedger
from tradezones.zones.signature import (
    ServerSignatureZone,
    ServerSignedFillZone,
    SignedAllowlistZone,
)

__all__ = [
    "ZoneAggregator",
    "MerkleAllowlistZone",
    "OffererAllowlistZone",
    "Zone",
    "FillLedger",
    "ServerSignatureZone",
    "ServerSignedFillZone",
    "SignedAllowlistZone",
]
