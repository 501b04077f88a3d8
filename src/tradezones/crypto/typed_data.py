"""EIP-712 signature authority.

An authorization token is a typed struct signed by a configured key over
a domain bound to (name, version, chain id, verifying contract). The
domain binding means a token minted for one zone deployment or one chain
cannot be replayed against another.

Signed structs encode addresses as uint256, matching the off-chain
signers the zones are paired with.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_keys.exceptions import BadSignature
from eth_keys.exceptions import ValidationError as KeyValidationError
from eth_utils import to_checksum_address

from tradezones.errors import RejectionReason, ZoneRejection

TypeFields = Sequence[Mapping[str, str]]

# r (32) + s (32) + v (1)
SIGNATURE_LENGTH = 65


@dataclass(frozen=True)
class Eip712Domain:
    """The domain separator inputs for one zone deployment."""
    name: str
    version: str
    chain_id: int
    verifying_contract: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract,
        }


def address_as_uint(address: str) -> int:
    """Encode an address the way signed structs carry it."""
    return int(address, 16)


def typed_message(
    domain: Eip712Domain,
    primary_type: str,
    fields: TypeFields,
    message: Mapping[str, Any],
) -> SignableMessage:
    """Build the EIP-712 signable message for a single flat struct."""
    return encode_typed_data(
        domain_data=domain.as_dict(),
        message_types={primary_type: [dict(f) for f in fields]},
        message_data=dict(message),
    )


def sign_typed_data(
    private_key: str | bytes,
    domain: Eip712Domain,
    primary_type: str,
    fields: TypeFields,
    message: Mapping[str, Any],
) -> bytes:
    """Sign a typed struct. Used by off-chain signers (servers, offerers)."""
    signable = typed_message(domain, primary_type, fields, message)
    signed = Account.sign_message(signable, private_key=private_key)
    return bytes(signed.signature)


def recover_signer(
    domain: Eip712Domain,
    primary_type: str,
    fields: TypeFields,
    message: Mapping[str, Any],
    signature: bytes,
) -> str | None:
    """Recover the signing address, or None for an unusable signature."""
    if len(signature) != SIGNATURE_LENGTH:
        return None
    signable = typed_message(domain, primary_type, fields, message)
    try:
        return to_checksum_address(Account.recover_message(signable, signature=signature))
    except (BadSignature, KeyValidationError, ValueError):
        return None


class SignatureAuthority:
    """Verifies tokens signed by one configured key on one domain.

    Usage:
        authority = SignatureAuthority(server_address, domain)
        authority.authorize("AuthParams", AUTH_PARAMS_FIELDS, message,
                            signature, deadline=message["deadline"], now=ts)
    """

    def __init__(self, signer: str, domain: Eip712Domain) -> None:
        self._signer = to_checksum_address(signer)
        self._domain = domain

    @property
    def signer(self) -> str:
        return self._signer

    @property
    def domain(self) -> Eip712Domain:
        return self._domain

    def is_signed_by(
        self,
        expected_signer: str,
        primary_type: str,
        fields: TypeFields,
        message: Mapping[str, Any],
        signature: bytes,
    ) -> bool:
        """True if the signature over the struct recovers to expected_signer."""
        recovered = recover_signer(self._domain, primary_type, fields, message, signature)
        return recovered is not None and recovered == to_checksum_address(expected_signer)

    def authorize(
        self,
        primary_type: str,
        fields: TypeFields,
        message: Mapping[str, Any],
        signature: bytes,
        deadline: int,
        now: int,
    ) -> None:
        """Accept the token or raise INVALID_SIGNATURE / EXPIRED."""
        if not self.is_signed_by(self._signer, primary_type, fields, message, signature):
            raise ZoneRejection(RejectionReason.INVALID_SIGNATURE)
        if now > deadline:
            raise ZoneRejection(
                RejectionReason.EXPIRED,
                f"deadline {deadline} passed at {now}",
            )
