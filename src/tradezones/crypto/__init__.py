"""Cryptographic primitives: Merkle allowlists, EIP-712 authorization, order hashing."""

from tradezones.crypto.merkle import MerkleTree, verify_proof
from tradezones.crypto.order_hash import order_hash
from tradezones.crypto.typed_data import Eip712Domain, SignatureAuthority

__all__ = ["MerkleTree", "verify_proof", "order_hash", "Eip712Domain", "SignatureAuthority"]
