"""Lock schedule and lock verification models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LockupParams:
    """Vesting schedule for one side of a trade.

    Offsets are relative to `start`. A start of 0 means "the block time
    at which the hook runs", not the time the order was signed.
    """
    start: int
    cliff_offset_time: int
    end_offset_time: int
    period: int
    initialized: bool

    @classmethod
    def disabled(cls) -> LockupParams:
        return cls(0, 0, 0, 0, False)


@dataclass(frozen=True)
class LockParams:
    """Lock schedules for both sides, committed to by the order's zone hash."""
    offer_lockup: LockupParams
    consideration_lockup: LockupParams


@dataclass(frozen=True)
class TimeLockParams:
    """Single-release unlock dates per side. Zero leaves that side unlocked."""
    offer_unlock_date: int
    consideration_unlock_date: int


@dataclass(frozen=True)
class LockupVerificationParams:
    """Minimum remaining plan amounts expected per item position.

    A zero (or missing) entry means no verification for that item.
    """
    offer_amounts: tuple[int, ...]
    consideration_amounts: tuple[int, ...]


@dataclass(frozen=True)
class LockupPlan:
    """A vesting position held by the external vesting service."""
    plan_id: int
    token: str
    amount: int
    start: int
    cliff: int
    rate: int
    period: int
