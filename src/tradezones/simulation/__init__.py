"""In-memory reference collaborators: tokens, lockup plans and the settlement protocol."""

from tradezones.simulation.lockup_plans import TokenLockupPlans
from tradezones.simulation.settlement import SettlementSimulator
from tradezones.simulation.tokens import (
    FeeOnTransferToken,
    InMemoryToken,
    StrictApprovalToken,
)

__all__ = [
    "TokenLockupPlans",
    "SettlementSimulator",
    "FeeOnTransferToken",
    "InMemoryToken",
    "StrictApprovalToken",
]
