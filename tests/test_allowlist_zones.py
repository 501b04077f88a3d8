"""Tests for the offerer-registered and Merkle allowlist zones."""

import pytest

from tradezones.codec import encode_proof
from tradezones.crypto.merkle import MerkleTree, address_leaf, hash_pair
from tradezones.errors import RejectionReason, ZoneRejection
from tradezones.models.order import OrderType
from tradezones.zones.allowlist import MerkleAllowlistZone, OffererAllowlistZone

USDC_AMOUNT = 1_000 * 10**6
WETH_AMOUNT = 10**18


class TestOffererAllowlistZone:
    def test_allowed_fulfiller_settles(self, chain, protocol, alice, bob, usdc, weth, make_order) -> None:
        zone = OffererAllowlistZone(chain, protocol.address)
        order = make_order(zone.address)
        zone.set_allowed_addresses(alice.address, order, [bob.address])

        protocol.fulfill_advanced_order(order, bob.address)

        assert usdc.balance_of(bob.address) == USDC_AMOUNT
        assert weth.balance_of(alice.address) == WETH_AMOUNT

    def test_other_fulfiller_rejected_without_side_effects(
        self, chain, protocol, alice, bob, charlie, usdc, weth, make_order,
    ) -> None:
        zone = OffererAllowlistZone(chain, protocol.address)
        order = make_order(zone.address)
        zone.set_allowed_addresses(alice.address, order, [bob.address])

        with pytest.raises(ZoneRejection) as exc:
            protocol.fulfill_advanced_order(order, charlie.address)
        assert exc.value.reason == RejectionReason.ORDER_RESTRICTED
        assert usdc.balance_of(alice.address) == USDC_AMOUNT
        assert weth.balance_of(charlie.address) == WETH_AMOUNT

    def test_only_offerer_can_register(self, chain, protocol, bob, make_order) -> None:
        zone = OffererAllowlistZone(chain, protocol.address)
        order = make_order(zone.address)
        with pytest.raises(ZoneRejection) as exc:
            zone.set_allowed_addresses(bob.address, order, [bob.address])
        assert exc.value.reason == RejectionReason.MSG_SENDER_NOT_OFFERER
        assert zone.allowlists() == {}

    def test_unregistered_order_is_restricted(self, chain, protocol, bob, make_order) -> None:
        zone = OffererAllowlistZone(chain, protocol.address)
        order = make_order(zone.address)
        with pytest.raises(ZoneRejection) as exc:
            protocol.fulfill_advanced_order(order, bob.address)
        assert exc.value.reason == RejectionReason.ORDER_RESTRICTED

    def test_registration_replaces_previous_set(self, chain, protocol, alice, bob, charlie, make_order) -> None:
        zone = OffererAllowlistZone(chain, protocol.address)
        order = make_order(zone.address)
        key = zone.set_allowed_addresses(alice.address, order, [bob.address])
        zone.set_allowed_addresses(alice.address, order, [charlie.address])
        assert not zone.is_allowed(key, bob.address)
        assert zone.is_allowed(key, charlie.address)

    def test_partial_fills_by_two_allowed_fulfillers(
        self, chain, protocol, alice, bob, charlie, usdc, make_order,
    ) -> None:
        zone = OffererAllowlistZone(chain, protocol.address)
        order = make_order(zone.address, order_type=OrderType.PARTIAL_RESTRICTED)
        zone.set_allowed_addresses(alice.address, order, [bob.address, charlie.address])

        protocol.fulfill_advanced_order(order, bob.address, 1, 2)
        protocol.fulfill_advanced_order(order, charlie.address, 1, 2)

        assert usdc.balance_of(bob.address) == USDC_AMOUNT // 2
        assert usdc.balance_of(charlie.address) == USDC_AMOUNT // 2

    def test_direct_call_rejected(self, chain, protocol, bob, make_params) -> None:
        zone = OffererAllowlistZone(chain, protocol.address)
        with pytest.raises(ZoneRejection) as exc:
            zone.authorize_order(bob.address, make_params())
        assert exc.value.reason == RejectionReason.CALLER_NOT_PROTOCOL


class TestMerkleAllowlistZone:
    def test_bob_accepted_dan_rejected(self, chain, protocol, bob, charlie, dan, usdc, make_order) -> None:
        zone = MerkleAllowlistZone(chain, protocol.address)
        root = hash_pair(address_leaf(bob.address), address_leaf(charlie.address))
        proof = encode_proof([address_leaf(charlie.address)])

        dan_order = make_order(zone.address, zone_hash=root)
        with pytest.raises(ZoneRejection) as exc:
            protocol.fulfill_advanced_order(dan_order, dan.address, extra_data=proof)
        assert exc.value.reason == RejectionReason.ORDER_RESTRICTED

        bob_order = make_order(zone.address, zone_hash=root)
        protocol.fulfill_advanced_order(bob_order, bob.address, extra_data=proof)
        assert usdc.balance_of(bob.address) == USDC_AMOUNT

    def test_larger_tree(self, chain, protocol, alice, bob, charlie, dan, make_params) -> None:
        zone = MerkleAllowlistZone(chain, protocol.address)
        tree = MerkleTree()
        for account in (alice, bob, charlie):
            tree.add_leaf(address_leaf(account.address))
        root = tree.compute_root()

        for account in (alice, bob, charlie):
            proof = tree.inclusion_proof(address_leaf(account.address))
            params = make_params(
                fulfiller=account.address,
                zone_hash=root,
                extra_data=encode_proof(proof.path),
            )
            zone.authorize_order(protocol.address, params)

        bob_proof = tree.inclusion_proof(address_leaf(bob.address))
        with pytest.raises(ZoneRejection):
            zone.authorize_order(
                protocol.address,
                make_params(fulfiller=dan.address, zone_hash=root,
                            extra_data=encode_proof(bob_proof.path)),
            )

    def test_malformed_proof(self, chain, protocol, make_params) -> None:
        zone = MerkleAllowlistZone(chain, protocol.address)
        with pytest.raises(ZoneRejection) as exc:
            zone.authorize_order(protocol.address, make_params(extra_data=b"\x01\x02"))
        assert exc.value.reason == RejectionReason.INVALID_EXTRA_DATA

    def test_caller_must_be_protocol(self, chain, protocol, bob, charlie, make_params) -> None:
        zone = MerkleAllowlistZone(chain, protocol.address)
        root = hash_pair(address_leaf(bob.address), address_leaf(charlie.address))
        params = make_params(
            zone_hash=root, extra_data=encode_proof([address_leaf(charlie.address)]),
        )
        with pytest.raises(ZoneRejection) as exc:
            zone.authorize_order(bob.address, params)
        assert exc.value.reason == RejectionReason.CALLER_NOT_PROTOCOL
