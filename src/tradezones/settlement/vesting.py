"""Adapter around the external vesting (token lockup plan) service.

The adapter acts on behalf of one holder address, normally the
settlement hook that owns it. It pulls settled tokens from a source,
proves the full nominal amount actually arrived, and hands them to the
vesting service as a new plan for the beneficiary.

Collaborators are consumed through the narrow Token and VestingService
interfaces below; tradezones.simulation ships in-memory versions.
"""

from __future__ import annotations

from typing import Iterable, Protocol

from eth_utils import to_checksum_address

from tradezones.chain import Chain
from tradezones.errors import RejectionReason, TokenError, ZoneRejection
from tradezones.models.lockup import LockupPlan
from tradezones.models.order import ZERO_ADDRESS
from tradezones.observability import get_logger


class Token(Protocol):
    """ERC20-style token. The acting account is always passed explicitly."""

    address: str

    def balance_of(self, holder: str) -> int: ...

    def allowance(self, owner: str, spender: str) -> int: ...

    def approve(self, owner: str, spender: str, amount: int) -> None: ...

    def transfer(self, sender: str, to: str, amount: int) -> None: ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None: ...


class VestingService(Protocol):
    """Token lockup plans: one NFT-style position per plan."""

    address: str

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
    ) -> int: ...

    def locked_balances(self, holder: str, token: str) -> int: ...

    def plan(self, plan_id: int) -> LockupPlan: ...

    def owner_of(self, plan_id: int) -> str: ...

    def redeem_all_plans(self, caller: str) -> None: ...


class VestingEscrowAdapter:
    """Creates lock positions from tokens held by (or pulled into) `holder`.

    Usage:
        adapter = VestingEscrowAdapter(chain, hook.address, lockup.address)
        plan_id = adapter.lock_from(source=bob, beneficiary=bob, token=usdc.address,
                                    amount=1000, start=0, cliff_offset=500,
                                    rate=1, period=1)
    """

    def __init__(self, chain: Chain, holder: str, service: str) -> None:
        self.chain = chain
        self.holder = to_checksum_address(holder)
        self.service_address = to_checksum_address(service)
        self._log = get_logger("vesting_adapter").bind(holder=self.holder)

    @property
    def service(self) -> VestingService:
        return self._deployed(self.service_address, "vesting service")  # type: ignore[return-value]

    def token(self, address: str) -> Token:
        return self._deployed(address, "token")  # type: ignore[return-value]

    def _deployed(self, address: str, what: str) -> object:
        if not self.chain.has_contract(address):
            raise TokenError(f"no {what} deployed at {address}")
        return self.chain.contract(address)

    def resolve_start(self, start: int) -> int:
        """A start of 0 means the current block time."""
        return start if start != 0 else self.chain.timestamp

    def create_lock(
        self,
        beneficiary: str,
        token: str,
        amount: int,
        start: int,
        cliff: int,
        rate: int,
        period: int,
    ) -> int:
        """Lock `amount` already held by the holder. Returns the plan id.

        Some tokens refuse to change a non-zero allowance, so an existing
        allowance is reset to zero before approving the new amount.
        """
        start = self.resolve_start(start)
        asset = self.token(token)
        if asset.allowance(self.holder, self.service_address) != 0:
            asset.approve(self.holder, self.service_address, 0)
        asset.approve(self.holder, self.service_address, amount)
        plan_id = self.service.create_plan(
            self.holder, beneficiary, asset.address, amount, start, cliff, rate, period,
        )
        self._log.info(
            "lock_created",
            plan_id=plan_id,
            beneficiary=beneficiary,
            token=asset.address,
            amount=amount,
            start=start,
            cliff=cliff,
            rate=rate,
            period=period,
        )
        return plan_id

    def pull_exact(self, source: str, token: str, amount: int) -> None:
        """Move `amount` from source into the holder, or reject.

        Raises:
            ZoneRejection: INSUFFICIENT_PRE_BALANCE if the source holds less
                than `amount`; INSUFFICIENT_POST_BALANCE if the holder's
                balance grew by anything other than `amount`.
        """
        asset = self.token(token)
        source_balance = asset.balance_of(source)
        if source_balance < amount:
            raise ZoneRejection(
                RejectionReason.INSUFFICIENT_PRE_BALANCE,
                f"{source} holds {source_balance}, needs {amount}",
            )
        before = asset.balance_of(self.holder)
        asset.transfer_from(self.holder, source, self.holder, amount)
        received = asset.balance_of(self.holder) - before
        if received != amount:
            raise ZoneRejection(
                RejectionReason.INSUFFICIENT_POST_BALANCE,
                f"received {received} of {amount}",
            )

    def lock_from(
        self,
        source: str,
        beneficiary: str,
        token: str,
        amount: int,
        start: int,
        cliff_offset: int,
        rate: int,
        period: int,
    ) -> int:
        """Pull settled tokens from `source` and lock them for `beneficiary`."""
        start = self.resolve_start(start)
        self.pull_exact(source, token, amount)
        return self.create_lock(
            beneficiary, token, amount, start, start + cliff_offset, rate, period,
        )


class LockupWhitelist:
    """The set of vesting service deployments a verifier trusts."""

    def __init__(self, addresses: Iterable[str]) -> None:
        resolved = [to_checksum_address(a) for a in addresses]
        if not resolved:
            raise ZoneRejection(RejectionReason.NO_WHITELISTED_ADDRESSES)
        if ZERO_ADDRESS in resolved:
            raise ZoneRejection(RejectionReason.WHITELISTED_ZERO_ADDRESS)
        self._addresses = frozenset(resolved)

    def __contains__(self, address: str) -> bool:
        return self.is_whitelisted(address)

    def __len__(self) -> int:
        return len(self._addresses)

    def is_whitelisted(self, address: str) -> bool:
        return to_checksum_address(address) in self._addresses

    def require(self, address: str) -> None:
        if not self.is_whitelisted(address):
            raise ZoneRejection(RejectionReason.LOCKUP_NOT_WHITELISTED, f"{address}")
