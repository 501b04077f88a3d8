"""Merkle allowlists with sorted-pair keccak hashing.

Pairs are always hashed smaller-value first, so a proof is just the list
of sibling hashes: provers never need left/right flags. Only the root is
ever committed to an order; leaves stay off-chain.

Leaves:
    address_leaf(addr)        keccak(address20)
    capped_leaf(addr, cap)    keccak(abi.encodePacked(address, uint256))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from eth_utils import keccak, to_canonical_address, to_checksum_address
from web3 import Web3


@dataclass(frozen=True)
class MerkleProof:
    """An inclusion proof for a single leaf."""
    leaf_hash: bytes
    path: list[bytes]
    root: bytes


class MerkleTree:
    """A Merkle tree over pre-hashed 32-byte leaves.

    Leaves keep their insertion order. An odd node at the end of a level
    is promoted unchanged to the next level.

    Usage:
        tree = MerkleTree()
        tree.add_leaf(address_leaf(bob))
        tree.add_leaf(address_leaf(charlie))
        root = tree.compute_root()
        proof = tree.inclusion_proof(address_leaf(bob))
    """

    def __init__(self) -> None:
        self._leaves: list[bytes] = []
        self._tree: list[list[bytes]] = []
        self._computed = False

    def add_leaf(self, leaf_hash: bytes) -> None:
        """Add a leaf hash. Must be called before compute_root."""
        if self._computed:
            raise RuntimeError("Tree already computed. Create a new tree.")
        if len(leaf_hash) != 32:
            raise ValueError(f"Leaf must be 32 bytes, got {len(leaf_hash)}")
        self._leaves.append(bytes(leaf_hash))

    @property
    def leaf_count(self) -> int:
        return len(self._leaves)

    def compute_root(self) -> bytes:
        """Compute the Merkle root. A single leaf is its own root."""
        if not self._leaves:
            raise ValueError("Cannot compute the root of an empty tree")

        self._tree = [list(self._leaves)]
        current_level = self._tree[0]
        while len(current_level) > 1:
            next_level: list[bytes] = []
            for i in range(0, len(current_level), 2):
                if i + 1 < len(current_level):
                    next_level.append(hash_pair(current_level[i], current_level[i + 1]))
                else:
                    next_level.append(current_level[i])
            self._tree.append(next_level)
            current_level = next_level

        self._computed = True
        return current_level[0]

    def inclusion_proof(self, leaf_hash: bytes) -> MerkleProof | None:
        """Generate an inclusion proof for a leaf.

        Returns None if the leaf is not in the tree.
        Must call compute_root first.
        """
        if not self._computed:
            raise RuntimeError("Must call compute_root before generating proofs")

        leaves = self._tree[0]
        if leaf_hash not in leaves:
            return None

        path: list[bytes] = []
        current_idx = leaves.index(leaf_hash)
        for level in self._tree[:-1]:
            sibling_idx = current_idx + 1 if current_idx % 2 == 0 else current_idx - 1
            # Promoted odd nodes have no sibling at this level
            if sibling_idx < len(level):
                path.append(level[sibling_idx])
            current_idx //= 2

        return MerkleProof(leaf_hash=leaf_hash, path=path, root=self._tree[-1][0])


def hash_pair(a: bytes, b: bytes) -> bytes:
    """Hash two nodes, numerically smaller first."""
    if a <= b:
        return keccak(a + b)
    return keccak(b + a)


def process_proof(leaf_hash: bytes, proof: Sequence[bytes]) -> bytes:
    """Fold the proof into the leaf, returning the implied root.

    An empty proof means the leaf is itself the root.
    """
    computed = bytes(leaf_hash)
    for sibling in proof:
        computed = hash_pair(computed, bytes(sibling))
    return computed


def verify_proof(leaf_hash: bytes, proof: Sequence[bytes], root: bytes) -> bool:
    """True if the proof links the leaf to the root."""
    return process_proof(leaf_hash, proof) == bytes(root)


def address_leaf(address: str) -> bytes:
    """Leaf for an address-only allowlist."""
    return keccak(to_canonical_address(address))


def capped_leaf(address: str, fill_cap: int) -> bytes:
    """Leaf for an allowlist entry carrying a per-fulfiller fill cap."""
    return bytes(Web3.solidity_keccak(
        ["address", "uint256"], [to_checksum_address(address), fill_cap],
    ))
