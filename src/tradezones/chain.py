"""Host chain: block clock, contract registry and all-or-nothing transactions.

Every mutable object that must roll back with a failed fulfillment is
tracked here. Tracked objects expose snapshot() and restore(state); the
outermost transaction snapshots all of them on entry and restores all of
them if any exception escapes.

Usage:
    chain = Chain(chain_id=1)
    ledger = FillLedger(chain)
    with chain.transaction():
        ledger.record_fill(...)   # undone if anything below raises
        zone.validate_order(...)
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional, Protocol

from eth_abi import encode
from eth_utils import keccak, to_checksum_address

from tradezones.observability import get_logger

DEFAULT_GENESIS_TIMESTAMP = 1_700_000_000

_log = get_logger("chain")


class Journaled(Protocol):
    """State that can be captured and put back in place."""

    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


class Contract:
    """Base for anything deployed at an address on the host chain.

    Subclasses with mutable state override snapshot/restore. Stateless
    contracts keep the defaults.
    """

    def __init__(self, chain: Chain, address: Optional[str] = None) -> None:
        self.chain = chain
        self.address = chain.deploy(self, address)

    def snapshot(self) -> Any:
        return None

    def restore(self, state: Any) -> None:
        return None


class Chain:
    """A single-threaded host chain with a settable block timestamp."""

    def __init__(self, chain_id: int = 1, timestamp: int = DEFAULT_GENESIS_TIMESTAMP) -> None:
        self._chain_id = chain_id
        self._timestamp = timestamp
        self._contracts: dict[str, Contract] = {}
        self._tracked: list[Journaled] = []
        self._nonce = 0
        self._depth = 0

    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    def timestamp(self) -> int:
        return self._timestamp

    def advance(self, seconds: int) -> int:
        """Move the block clock forward. Returns the new timestamp."""
        if seconds < 0:
            raise ValueError("Cannot move the block clock backwards")
        self._timestamp += seconds
        return self._timestamp

    def set_timestamp(self, timestamp: int) -> None:
        if timestamp < self._timestamp:
            raise ValueError("Cannot move the block clock backwards")
        self._timestamp = timestamp

    def _next_address(self) -> str:
        self._nonce += 1
        digest = keccak(encode(["uint256", "uint256"], [self._chain_id, self._nonce]))
        return to_checksum_address(digest[12:])

    def deploy(self, contract: Contract, address: Optional[str] = None) -> str:
        """Register a contract and track its state. Returns its address."""
        resolved = to_checksum_address(address) if address else self._next_address()
        if resolved in self._contracts:
            raise ValueError(f"Address already in use: {resolved}")
        self._contracts[resolved] = contract
        self.track(contract)
        return resolved

    def contract(self, address: str) -> Contract:
        """Look up a deployed contract. Raises KeyError if none is deployed."""
        return self._contracts[to_checksum_address(address)]

    def has_contract(self, address: str) -> bool:
        return to_checksum_address(address) in self._contracts

    def track(self, obj: Journaled) -> None:
        """Include an object's state in transactional rollback."""
        if not any(existing is obj for existing in self._tracked):
            self._tracked.append(obj)

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run a block atomically.

        Nested transactions join the outermost one: only the outermost
        level snapshots and restores.
        """
        if self._depth > 0:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        snapshots = [(obj, obj.snapshot()) for obj in self._tracked]
        self._depth = 1
        try:
            yield
        except BaseException as exc:
            for obj, state in snapshots:
                obj.restore(state)
            _log.debug("transaction_reverted", error=type(exc).__name__)
            raise
        finally:
            self._depth = 0
