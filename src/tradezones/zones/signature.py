"""Zones authorized by EIP-712 signatures.

ServerSignatureZone
    A standalone server token over (orderHash, fulfiller, deadline).
SignedAllowlistZone
    The offerer signs a Merkle root of (fulfiller, fillCap) leaves bound
    to the order hash, optionally requiring a server token as well. Fills
    are capped per fulfiller.
ServerSignedFillZone
    The server signs the fill bounds and window for each fulfiller.

Every signed struct encodes addresses as uint256. Each zone's domain is
bound to its own address and chain id, so tokens do not replay across
deployments or chains.
"""

from __future__ import annotations

from typing import Optional

from eth_utils import to_checksum_address

from tradezones.chain import Chain
from tradezones.codec import (
    decode_server_fill,
    decode_signed_allowlist,
    decode_signed_auth_token,
)
from tradezones.crypto.merkle import capped_leaf, process_proof
from tradezones.crypto.typed_data import SignatureAuthority, address_as_uint
from tradezones.errors import RejectionReason, ZoneRejection
from tradezones.models.order import ZoneParameters
from tradezones.zones.base import Zone, check_window, fill_amount, require_nonzero
from tradezones.zones.fill_ledger import FillLedger

AUTH_PARAMS_FIELDS = (
    {"name": "orderHash", "type": "bytes32"},
    {"name": "fulfiller", "type": "uint256"},
    {"name": "deadline", "type": "uint256"},
)

SIGNED_ALLOWLIST_PARAMS_FIELDS = (
    {"name": "orderHash", "type": "bytes32"},
    {"name": "merkleRoot", "type": "bytes32"},
    {"name": "requireServerSignature", "type": "uint256"},
    {"name": "startTimestamp", "type": "uint256"},
    {"name": "endTimestamp", "type": "uint256"},
)

SIGNED_ALLOWLIST_AUTH_FIELDS = (
    {"name": "orderHash", "type": "bytes32"},
    {"name": "fulfiller", "type": "uint256"},
    {"name": "fillCap", "type": "uint256"},
    {"name": "deadline", "type": "uint256"},
)

SERVER_FILL_AUTH_FIELDS = (
    {"name": "orderHash", "type": "bytes32"},
    {"name": "fulfiller", "type": "uint256"},
    {"name": "minFill", "type": "uint256"},
    {"name": "maxFill", "type": "uint256"},
    {"name": "startTimestamp", "type": "uint256"},
    {"name": "endTimestamp", "type": "uint256"},
    {"name": "deadline", "type": "uint256"},
)


class _SignedZone(Zone):
    """A zone holding a SignatureAuthority for its configured server key."""

    def __init__(
        self,
        chain: Chain,
        protocol: str,
        server: str,
        aggregator: Optional[str] = None,
        address: Optional[str] = None,
    ) -> None:
        super().__init__(chain, protocol, aggregator, address)
        self.server = require_nonzero(server, "server signer")
        self.authority = SignatureAuthority(self.server, self.domain)


class ServerSignatureZone(_SignedZone):
    """Every fulfillment needs a fresh server token for this exact order and fulfiller."""

    name = "ServerSignatureZone"

    def _authorize(self, params: ZoneParameters) -> None:
        token = decode_signed_auth_token(params.extra_data)
        auth = token.auth_params
        self.authority.authorize(
            "AuthParams",
            AUTH_PARAMS_FIELDS,
            {
                "orderHash": auth.order_hash,
                "fulfiller": address_as_uint(auth.fulfiller),
                "deadline": auth.deadline,
            },
            token.signature,
            deadline=auth.deadline,
            now=self.chain.timestamp,
        )
        if auth.fulfiller != to_checksum_address(params.fulfiller):
            raise ZoneRejection(
                RejectionReason.INCORRECT_FULFILLER,
                f"token issued to {auth.fulfiller}",
            )
        if auth.order_hash != params.order_hash:
            raise ZoneRejection(RejectionReason.INCORRECT_ORDER)


class SignedAllowlistZone(_SignedZone):
    """Offerer-signed capped allowlist with an optional server co-signature.

    The Merkle root is never supplied directly: it is recomputed from the
    fulfiller's (address, fillCap) leaf and proof, and only accepted if the
    offerer signed that exact root for this order.
    """

    name = "SignedAllowlistZone"

    def __init__(
        self,
        chain: Chain,
        protocol: str,
        server: str,
        ledger: Optional[FillLedger] = None,
        aggregator: Optional[str] = None,
        address: Optional[str] = None,
    ) -> None:
        super().__init__(chain, protocol, server, aggregator, address)
        self.ledger = ledger if ledger is not None else FillLedger(chain)

    def _authorize(self, params: ZoneParameters) -> None:
        data = decode_signed_allowlist(params.extra_data)

        merkle_root = process_proof(capped_leaf(params.fulfiller, data.fill_cap), data.proof)
        signed_by_offerer = self.authority.is_signed_by(
            params.offerer,
            "SignedAllowlistParams",
            SIGNED_ALLOWLIST_PARAMS_FIELDS,
            {
                "orderHash": params.order_hash,
                "merkleRoot": merkle_root,
                "requireServerSignature": int(data.require_server_signature),
                "startTimestamp": data.start_timestamp,
                "endTimestamp": data.end_timestamp,
            },
            data.offerer_signature,
        )
        if not signed_by_offerer:
            raise ZoneRejection(
                RejectionReason.ORDER_RESTRICTED,
                f"{params.fulfiller} not in the allowlist the offerer signed",
            )

        if data.require_server_signature:
            self.authority.authorize(
                "SignedAllowlistAuthParams",
                SIGNED_ALLOWLIST_AUTH_FIELDS,
                {
                    "orderHash": params.order_hash,
                    "fulfiller": address_as_uint(params.fulfiller),
                    "fillCap": data.fill_cap,
                    "deadline": data.server_token.deadline,
                },
                data.server_token.signature,
                deadline=data.server_token.deadline,
                now=self.chain.timestamp,
            )

        check_window(data.start_timestamp, data.end_timestamp, self.chain.timestamp)
        self.ledger.record_fill(
            params.order_hash,
            params.fulfiller,
            fill_amount(params),
            min_fill=0,
            max_fill=data.fill_cap,
        )


class ServerSignedFillZone(_SignedZone):
    """Server-signed per-fulfiller fill bounds and time window."""

    name = "ServerSignedFillZone"

    def __init__(
        self,
        chain: Chain,
        protocol: str,
        server: str,
        ledger: Optional[FillLedger] = None,
        aggregator: Optional[str] = None,
        address: Optional[str] = None,
    ) -> None:
        super().__init__(chain, protocol, server, aggregator, address)
        self.ledger = ledger if ledger is not None else FillLedger(chain)

    def _authorize(self, params: ZoneParameters) -> None:
        data = decode_server_fill(params.extra_data)
        self.authority.authorize(
            "ServerFillAuthParams",
            SERVER_FILL_AUTH_FIELDS,
            {
                "orderHash": params.order_hash,
                "fulfiller": address_as_uint(params.fulfiller),
                "minFill": data.min_fill,
                "maxFill": data.max_fill,
                "startTimestamp": data.start_timestamp,
                "endTimestamp": data.end_timestamp,
                "deadline": data.server_token.deadline,
            },
            data.server_token.signature,
            deadline=data.server_token.deadline,
            now=self.chain.timestamp,
        )
        check_window(data.start_timestamp, data.end_timestamp, self.chain.timestamp)
        self.ledger.record_fill(
            params.order_hash,
            params.fulfiller,
            fill_amount(params),
            min_fill=data.min_fill,
            max_fill=data.max_fill,
        )
