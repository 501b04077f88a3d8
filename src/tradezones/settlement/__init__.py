"""Settlement hooks: lock settled proceeds, verify traded lock positions."""

from tradezones.settlement.lockup_handler import LockupHandlerZone
from tradezones.settlement.lockup_verifier import LockupVerifierZone
from tradezones.settlement.timelock_handler import TimeLockHandlerZone
from tradezones.settlement.vesting import LockupWhitelist, VestingEscrowAdapter

__all__ = [
    "LockupHandlerZone",
    "LockupVerifierZone",
    "TimeLockHandlerZone",
    "LockupWhitelist",
    "VestingEscrowAdapter",
]
