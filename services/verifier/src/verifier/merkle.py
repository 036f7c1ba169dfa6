"""
Merkle tree helpers for the BoothGuard audit trail.

Leaves are audit-entry hashes in ``entry_id`` order. Odd layers
duplicate their last node. The same pairing is used to build anchors
and to produce and check inclusion proofs.
"""

from __future__ import annotations

import hashlib


def hash_pair(left: str, right: str) -> str:
    """SHA-256 hash of two concatenated hex digests."""
    return hashlib.sha256((left + right).encode()).hexdigest()


def build_merkle_root(hashes: list[str]) -> str:
    """Build a Merkle root from an ordered list of hex-digest hashes.

    If a layer has an odd number of elements the last element is
    duplicated.  Returns the single root hash.
    """
    if not hashes:
        raise ValueError("Cannot build Merkle root from empty list")

    layer = list(hashes)
    while len(layer) > 1:
        next_layer: list[str] = []
        for i in range(0, len(layer), 2):
            left = layer[i]
            right = layer[i + 1] if i + 1 < len(layer) else layer[i]
            next_layer.append(hash_pair(left, right))
        layer = next_layer
    return layer[0]


def build_merkle_proof(hashes: list[str], index: int) -> list[dict[str, str]]:
    """Return the sibling path from leaf *index* up to the root.

    Each step is ``{"position": "left" | "right", "hash": <sibling>}``.
    """
    if not 0 <= index < len(hashes):
        raise IndexError(f"Leaf index {index} out of range for {len(hashes)} leaves")

    proof: list[dict[str, str]] = []
    layer = list(hashes)
    idx = index
    while len(layer) > 1:
        if len(layer) % 2 == 1:
            layer.append(layer[-1])
        if idx % 2 == 0:
            proof.append({"position": "right", "hash": layer[idx + 1]})
        else:
            proof.append({"position": "left", "hash": layer[idx - 1]})
        layer = [hash_pair(layer[i], layer[i + 1]) for i in range(0, len(layer), 2)]
        idx //= 2
    return proof


def root_from_proof(leaf: str, proof: list[dict[str, str]]) -> str:
    """Fold *proof* over *leaf* and return the implied root."""
    node = leaf
    for step in proof:
        if step["position"] == "left":
            node = hash_pair(step["hash"], node)
        else:
            node = hash_pair(node, step["hash"])
    return node
