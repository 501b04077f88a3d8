"""In-memory token lockup plans: vesting positions held as NFTs.

A plan unlocks nothing before its cliff. From the cliff on, the
unlocked amount is ((now - start) // period) * rate, capped at the plan
amount, so a plan is fully unlocked at start + ceil(amount / rate) * period.
Redeeming pays out the unlocked part, moves start forward to the last
unlocked period, and burns the plan once empty.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Optional

from eth_utils import to_checksum_address

from tradezones.chain import Chain, Contract
from tradezones.errors import TokenError
from tradezones.models.lockup import LockupPlan
from tradezones.models.order import ZERO_ADDRESS
from tradezones.simulation.tokens import InMemoryToken


class TokenLockupPlans(Contract):
    """Usage:
        lockup = TokenLockupPlans(chain)
        plan_id = lockup.create_plan(hook, bob, usdc.address, 1000, start, cliff, 1, 1)
        lockup.redeem_all_plans(bob)
    """

    def __init__(self, chain: Chain, address: Optional[str] = None) -> None:
        super().__init__(chain, address)
        self._plans: dict[int, LockupPlan] = {}
        self._owners: dict[int, str] = {}
        self._approvals: dict[int, str] = {}
        self._operators: set[tuple[str, str]] = set()
        self._next_id = 1

    def _token(self, address: str) -> InMemoryToken:
        return self.chain.contract(address)  # type: ignore[return-value]

    def create_plan(
        self,
        caller: str,
        recipient: str,
        token: str,
        amount: int,
        start: int,
        cliff: int,
        rate: int,
        period: int,
    ) -> int:
        """Pull `amount` of `token` from caller and mint a plan to recipient."""
        recipient = to_checksum_address(recipient)
        if recipient == ZERO_ADDRESS:
            raise TokenError("lockup: zero recipient")
        if amount == 0 or rate == 0 or period == 0:
            raise TokenError("lockup: zero amount, rate or period")
        if rate > amount:
            raise TokenError("lockup: rate above amount")
        if cliff < start:
            raise TokenError("lockup: cliff before start")

        self._token(token).transfer_from(self.address, caller, self.address, amount)
        plan_id = self._next_id
        self._next_id += 1
        self._plans[plan_id] = LockupPlan(
            plan_id=plan_id,
            token=to_checksum_address(token),
            amount=amount,
            start=start,
            cliff=cliff,
            rate=rate,
            period=period,
        )
        self._owners[plan_id] = recipient
        return plan_id

    def plan(self, plan_id: int) -> LockupPlan:
        if plan_id not in self._plans:
            raise TokenError(f"lockup: no plan {plan_id}")
        return self._plans[plan_id]

    def owner_of(self, plan_id: int) -> str:
        if plan_id not in self._owners:
            raise TokenError(f"lockup: no plan {plan_id}")
        return self._owners[plan_id]

    def balance_of(self, holder: str) -> int:
        holder = to_checksum_address(holder)
        return sum(1 for owner in self._owners.values() if owner == holder)

    def token_of_owner_by_index(self, holder: str, index: int) -> int:
        holder = to_checksum_address(holder)
        owned = sorted(pid for pid, owner in self._owners.items() if owner == holder)
        if index >= len(owned):
            raise TokenError(f"lockup: {holder} owns {len(owned)} plans")
        return owned[index]

    def locked_balances(self, holder: str, token: str) -> int:
        """Total remaining amount of `token` across the holder's plans."""
        holder = to_checksum_address(holder)
        token = to_checksum_address(token)
        return sum(
            plan.amount
            for pid, plan in self._plans.items()
            if plan.token == token and self._owners[pid] == holder
        )

    def plan_balance_of(self, plan_id: int, timestamp: int) -> tuple[int, int, int]:
        """Unlocked balance, remainder and the start of the next period."""
        plan = self.plan(plan_id)
        if timestamp < plan.start or timestamp < plan.cliff:
            return 0, plan.amount, plan.start
        periods = (timestamp - plan.start) // plan.period
        unlocked = min(plan.amount, periods * plan.rate)
        return unlocked, plan.amount - unlocked, plan.start + periods * plan.period

    # --- NFT transfers ------------------------------------------------------

    def approve(self, owner: str, spender: str, plan_id: int) -> None:
        if self.owner_of(plan_id) != to_checksum_address(owner):
            raise TokenError(f"lockup: {owner} does not own plan {plan_id}")
        self._approvals[plan_id] = to_checksum_address(spender)

    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> None:
        key = (to_checksum_address(owner), to_checksum_address(operator))
        if approved:
            self._operators.add(key)
        else:
            self._operators.discard(key)

    def transfer_from(self, spender: str, owner: str, to: str, plan_id: int) -> None:
        owner = to_checksum_address(owner)
        spender = to_checksum_address(spender)
        if self.owner_of(plan_id) != owner:
            raise TokenError(f"lockup: {owner} does not own plan {plan_id}")
        authorized = (
            spender == owner
            or self._approvals.get(plan_id) == spender
            or (owner, spender) in self._operators
        )
        if not authorized:
            raise TokenError(f"lockup: {spender} may not move plan {plan_id}")
        self._approvals.pop(plan_id, None)
        self._owners[plan_id] = to_checksum_address(to)

    # --- Redemption ---------------------------------------------------------

    def redeem_all_plans(self, caller: str) -> int:
        """Pay out everything unlocked across the caller's plans. Returns the total."""
        caller = to_checksum_address(caller)
        now = self.chain.timestamp
        total = 0
        for plan_id in sorted(pid for pid, owner in self._owners.items() if owner == caller):
            unlocked, remainder, next_start = self.plan_balance_of(plan_id, now)
            if unlocked == 0:
                continue
            plan = self._plans[plan_id]
            self._token(plan.token).transfer(self.address, caller, unlocked)
            total += unlocked
            if remainder == 0:
                del self._plans[plan_id]
                del self._owners[plan_id]
                self._approvals.pop(plan_id, None)
            else:
                self._plans[plan_id] = replace(plan, amount=remainder, start=next_start)
        return total

    def snapshot(self) -> tuple[Any, ...]:
        return (
            dict(self._plans),
            dict(self._owners),
            dict(self._approvals),
            set(self._operators),
            self._next_id,
        )

    def restore(self, state: tuple[Any, ...]) -> None:
        plans, owners, approvals, operators, next_id = state
        self._plans = dict(plans)
        self._owners = dict(owners)
        self._approvals = dict(approvals)
        self._operators = set(operators)
        self._next_id = next_id
