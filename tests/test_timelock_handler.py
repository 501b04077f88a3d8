"""Tests for single-release time locks on settled proceeds."""

from dataclasses import replace

import pytest

from tradezones.codec import commitment_hash, encode_time_lock_params
from tradezones.errors import RejectionReason, ZoneRejection
from tradezones.models.lockup import TimeLockParams
from tradezones.models.order import ItemType, ReceivedItem
from tradezones.settlement.timelock_handler import TimeLockHandlerZone
from tradezones.simulation.tokens import MAX_UINT256

USDC_AMOUNT = 1_000 * 10**6
WETH_AMOUNT = 10**18
WEEK = 7 * 86_400


@pytest.fixture
def hook(chain, protocol, lockup, alice, bob, usdc, weth) -> TimeLockHandlerZone:
    zone = TimeLockHandlerZone(chain, protocol.address, lockup.address)
    usdc.approve(bob.address, zone.address, MAX_UINT256)
    weth.approve(alice.address, zone.address, MAX_UINT256)
    return zone


def _time_lock(offer_date: int, consideration_date: int) -> bytes:
    return encode_time_lock_params(TimeLockParams(offer_date, consideration_date))


class TestTimeLockHandlerZone:
    def test_locks_until_unlock_date(self, chain, protocol, lockup, hook, alice, bob, usdc, weth, make_order) -> None:
        unlock = chain.timestamp + WEEK
        extra = _time_lock(unlock, unlock + WEEK)
        order = make_order(hook.address, zone_hash=commitment_hash(extra))

        protocol.fulfill_advanced_order(order, bob.address, extra_data=extra)

        bob_plan = lockup.plan(lockup.token_of_owner_by_index(bob.address, 0))
        assert bob_plan.amount == USDC_AMOUNT
        assert bob_plan.cliff == unlock
        assert bob_plan.rate == USDC_AMOUNT
        assert lockup.locked_balances(alice.address, weth.address) == WETH_AMOUNT

        chain.set_timestamp(unlock - 1)
        assert lockup.redeem_all_plans(bob.address) == 0
        chain.set_timestamp(unlock)
        assert lockup.redeem_all_plans(bob.address) == USDC_AMOUNT
        assert usdc.balance_of(bob.address) == USDC_AMOUNT

    def test_zero_date_leaves_side_unlocked(self, chain, protocol, lockup, hook, alice, bob, usdc, weth, make_order) -> None:
        extra = _time_lock(chain.timestamp + WEEK, 0)
        order = make_order(hook.address, zone_hash=commitment_hash(extra))

        protocol.fulfill_advanced_order(order, bob.address, extra_data=extra)

        assert weth.balance_of(alice.address) == WETH_AMOUNT
        assert lockup.balance_of(alice.address) == 0
        assert lockup.balance_of(bob.address) == 1

    def test_unlock_date_must_be_in_future(self, chain, protocol, hook, alice, bob, usdc, make_order) -> None:
        extra = _time_lock(chain.timestamp, 0)
        order = make_order(hook.address, zone_hash=commitment_hash(extra))

        with pytest.raises(ZoneRejection) as exc:
            protocol.fulfill_advanced_order(order, bob.address, extra_data=extra)
        assert exc.value.reason == RejectionReason.INVALID_UNLOCK_DATE
        assert usdc.balance_of(alice.address) == USDC_AMOUNT

    def test_dates_must_match_commitment(self, chain, protocol, hook, bob, make_order) -> None:
        committed = _time_lock(chain.timestamp + WEEK, 0)
        order = make_order(hook.address, zone_hash=commitment_hash(committed))

        with pytest.raises(ZoneRejection) as exc:
            protocol.fulfill_advanced_order(
                order, bob.address, extra_data=_time_lock(chain.timestamp + 1, 0),
            )
        assert exc.value.reason == RejectionReason.INVALID_EXTRA_DATA

    def test_zero_amount_rejected(self, chain, protocol, hook, make_params) -> None:
        extra = _time_lock(chain.timestamp + WEEK, 0)
        params = make_params(zone_hash=commitment_hash(extra), extra_data=extra, offer_amount=0)
        with pytest.raises(ZoneRejection) as exc:
            hook.validate_order(protocol.address, params)
        assert exc.value.reason == RejectionReason.INVALID_RATE

    def test_rejects_non_erc20(self, chain, protocol, hook, make_params) -> None:
        extra = _time_lock(0, chain.timestamp + WEEK)
        params = make_params(zone_hash=commitment_hash(extra), extra_data=extra)
        received = params.consideration[0]
        nft = ReceivedItem(ItemType.ERC721, received.token, 3, 1, received.recipient)
        with pytest.raises(ZoneRejection) as exc:
            hook.validate_order(protocol.address, replace(params, consideration=(nft,)))
        assert exc.value.reason == RejectionReason.INVALID_ITEM_TYPE

    def test_locked_side_needs_items(self, chain, protocol, hook, make_params) -> None:
        extra = _time_lock(0, chain.timestamp + WEEK)
        params = make_params(zone_hash=commitment_hash(extra), extra_data=extra)
        with pytest.raises(ZoneRejection) as exc:
            hook.validate_order(protocol.address, replace(params, consideration=()))
        assert exc.value.reason == RejectionReason.NO_CONSIDERATION

    def test_malformed_params(self, protocol, hook, make_params) -> None:
        extra = b"\x01\x02"
        with pytest.raises(ZoneRejection) as exc:
            hook.validate_order(
                protocol.address, make_params(zone_hash=commitment_hash(extra), extra_data=extra),
            )
        assert exc.value.reason == RejectionReason.INVALID_EXTRA_DATA
