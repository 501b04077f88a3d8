"""In-memory ERC20 tokens, including the non-standard ones hooks must survive."""

from __future__ import annotations

from typing import Optional

from eth_utils import to_checksum_address

from tradezones.chain import Chain, Contract
from tradezones.errors import TokenError

MAX_UINT256 = 2**256 - 1

TokenState = tuple[dict[str, int], dict[tuple[str, str], int]]


class InMemoryToken(Contract):
    """A plain ERC20 with explicit acting accounts.

    An allowance of MAX_UINT256 is never decremented.
    """

    def __init__(
        self,
        chain: Chain,
        symbol: str,
        decimals: int = 18,
        address: Optional[str] = None,
    ) -> None:
        super().__init__(chain, address)
        self.symbol = symbol
        self.decimals = decimals
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.symbol!r}, {self.address})"

    def mint(self, to: str, amount: int) -> None:
        to = to_checksum_address(to)
        self._balances[to] = self._balances.get(to, 0) + amount

    def balance_of(self, holder: str) -> int:
        return self._balances.get(to_checksum_address(holder), 0)

    def allowance(self, owner: str, spender: str) -> int:
        key = (to_checksum_address(owner), to_checksum_address(spender))
        return self._allowances.get(key, 0)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        key = (to_checksum_address(owner), to_checksum_address(spender))
        self._allowances[key] = amount

    def transfer(self, sender: str, to: str, amount: int) -> None:
        self._move(to_checksum_address(sender), to_checksum_address(to), amount)

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        owner = to_checksum_address(owner)
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise TokenError(f"{self.symbol}: allowance {allowed} below {amount}")
        if allowed != MAX_UINT256:
            self._allowances[(owner, to_checksum_address(spender))] = allowed - amount
        self._move(owner, to_checksum_address(to), amount)

    def _move(self, sender: str, to: str, amount: int) -> None:
        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise TokenError(f"{self.symbol}: balance {balance} below {amount}")
        self._balances[sender] = balance - amount
        self._credit(to, amount)

    def _credit(self, to: str, amount: int) -> None:
        self._balances[to] = self._balances.get(to, 0) + amount

    def snapshot(self) -> TokenState:
        return dict(self._balances), dict(self._allowances)

    def restore(self, state: TokenState) -> None:
        balances, allowances = state
        self._balances = dict(balances)
        self._allowances = dict(allowances)


class FeeOnTransferToken(InMemoryToken):
    """Burns `fee_bps` basis points of every transfer in flight."""

    def __init__(
        self,
        chain: Chain,
        symbol: str,
        fee_bps: int = 100,
        decimals: int = 18,
        address: Optional[str] = None,
    ) -> None:
        super().__init__(chain, symbol, decimals, address)
        self.fee_bps = fee_bps

    def _credit(self, to: str, amount: int) -> None:
        fee = amount * self.fee_bps // 10_000
        super()._credit(to, amount - fee)


class StrictApprovalToken(InMemoryToken):
    """Refuses to change a non-zero allowance to another non-zero value."""

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if amount != 0 and self.allowance(owner, spender) != 0:
            raise TokenError(f"{self.symbol}: reset allowance to zero first")
        super().approve(owner, spender, amount)
