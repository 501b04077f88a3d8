"""Shared fixtures: a host chain, named accounts, tokens and a settlement protocol."""

from __future__ import annotations

import itertools
from typing import Callable, Optional, Sequence

import pytest
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import keccak

from tradezones.chain import Chain
from tradezones.models.order import (
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
from tradezones.simulation.lockup_plans import TokenLockupPlans
from tradezones.simulation.settlement import SettlementSimulator
from tradezones.simulation.tokens import MAX_UINT256, InMemoryToken

GENESIS_TIMESTAMP = 1_700_000_000
USDC_AMOUNT = 1_000 * 10**6
WETH_AMOUNT = 10**18


def _account(name: str) -> LocalAccount:
    return Account.from_key(keccak(text=f"tradezones-test-{name}"))


@pytest.fixture
def chain() -> Chain:
    return Chain(chain_id=31337, timestamp=GENESIS_TIMESTAMP)


@pytest.fixture
def alice() -> LocalAccount:
    return _account("alice")


@pytest.fixture
def bob() -> LocalAccount:
    return _account("bob")


@pytest.fixture
def charlie() -> LocalAccount:
    return _account("charlie")


@pytest.fixture
def dan() -> LocalAccount:
    return _account("dan")


@pytest.fixture
def server() -> LocalAccount:
    return _account("server")


@pytest.fixture
def protocol(chain: Chain) -> SettlementSimulator:
    return SettlementSimulator(chain)


@pytest.fixture
def usdc(chain: Chain, alice: LocalAccount, protocol: SettlementSimulator) -> InMemoryToken:
    token = InMemoryToken(chain, "USDC", decimals=6)
    token.mint(alice.address, USDC_AMOUNT)
    token.approve(alice.address, protocol.address, MAX_UINT256)
    return token


@pytest.fixture
def weth(
    chain: Chain,
    bob: LocalAccount,
    charlie: LocalAccount,
    dan: LocalAccount,
    protocol: SettlementSimulator,
) -> InMemoryToken:
    token = InMemoryToken(chain, "WETH")
    for holder in (bob, charlie, dan):
        token.mint(holder.address, WETH_AMOUNT)
        token.approve(holder.address, protocol.address, MAX_UINT256)
    return token


@pytest.fixture
def lockup(chain: Chain) -> TokenLockupPlans:
    return TokenLockupPlans(chain)


@pytest.fixture
def make_order(
    chain: Chain,
    alice: LocalAccount,
    usdc: InMemoryToken,
    weth: InMemoryToken,
) -> Callable[..., OrderComponents]:
    """Alice offers 1000 USDC for 1 WETH unless told otherwise."""
    salts = itertools.count(1)

    def _make(
        zone: str,
        zone_hash: bytes = ZERO_HASH,
        order_type: OrderType = OrderType.FULL_RESTRICTED,
        offer: Optional[Sequence[OfferItem]] = None,
        consideration: Optional[Sequence[ConsiderationItem]] = None,
    ) -> OrderComponents:
        if offer is None:
            offer = [OfferItem(ItemType.ERC20, usdc.address, 0, USDC_AMOUNT, USDC_AMOUNT)]
        if consideration is None:
            consideration = [
                ConsiderationItem(
                    ItemType.ERC20, weth.address, 0, WETH_AMOUNT, WETH_AMOUNT, alice.address,
                )
            ]
        return OrderComponents(
            offerer=alice.address,
            zone=zone,
            offer=tuple(offer),
            consideration=tuple(consideration),
            order_type=order_type,
            start_time=chain.timestamp,
            end_time=chain.timestamp + 86_400,
            zone_hash=zone_hash,
            salt=next(salts),
        )

    return _make


@pytest.fixture
def make_params(
    alice: LocalAccount,
    bob: LocalAccount,
    usdc: InMemoryToken,
    weth: InMemoryToken,
    chain: Chain,
) -> Callable[..., ZoneParameters]:
    """Zone callback parameters for calling a zone directly."""

    def _make(
        fulfiller: Optional[str] = None,
        extra_data: bytes = b"",
        zone_hash: bytes = ZERO_HASH,
        order_hash: bytes = b"\x11" * 32,
        offer_amount: int = USDC_AMOUNT,
        consideration_amount: int = WETH_AMOUNT,
    ) -> ZoneParameters:
        return ZoneParameters(
            order_hash=order_hash,
            fulfiller=fulfiller or bob.address,
            offerer=alice.address,
            offer=(SpentItem(ItemType.ERC20, usdc.address, 0, offer_amount),),
            consideration=(
                ReceivedItem(ItemType.ERC20, weth.address, 0, consideration_amount, alice.address),
            ),
            extra_data=extra_data,
            start_time=chain.timestamp,
            end_time=chain.timestamp + 86_400,
            zone_hash=zone_hash,
        )

    return _make
