"""Core data models for tradezones."""

from tradezones.models.order import (
    ZERO_ADDRESS,
    ZERO_HASH,
    ConsiderationItem,
    ItemType,
    OfferItem,
    OrderComponents,
    OrderType,
    ReceivedItem,
    SpentItem,
    ZoneParameters,
)
from tradezones.models.authorization import (
    AuthParams,
    ServerFillData,
    ServerToken,
    SignedAllowlistData,
    SignedAuthToken,
    ZoneEntry,
)
from tradezones.models.lockup import (
    LockParams,
    LockupParams,
    LockupPlan,
    LockupVerificationParams,
    TimeLockParams,
)

__all__ = [
    "ZERO_ADDRESS",
    "ZERO_HASH",
    "ConsiderationItem",
    "ItemType",
    "OfferItem",
    "OrderComponents",
    "OrderType",
    "ReceivedItem",
    "SpentItem",
    "ZoneParameters",
    "AuthParams",
    "ServerFillData",
    "ServerToken",
    "SignedAllowlistData",
    "SignedAuthToken",
    "ZoneEntry",
    "LockParams",
    "LockupParams",
    "LockupPlan",
    "LockupVerificationParams",
    "TimeLockParams",
]
