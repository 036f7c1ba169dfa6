"""Tests for the Merkle helpers used by audit anchoring."""

from __future__ import annotations

import hashlib

import pytest

from verifier.merkle import build_merkle_proof, build_merkle_root, hash_pair, root_from_proof


def _leaf(n: int) -> str:
    return hashlib.sha256(str(n).encode()).hexdigest()


class TestMerkleRoot:
    def test_empty_raises(self):
        with pytest.raises(ValueError, match="empty list"):
            build_merkle_root([])

    def test_single_leaf_is_root(self):
        assert build_merkle_root([_leaf(1)]) == _leaf(1)

    def test_two_leaves(self):
        assert build_merkle_root([_leaf(1), _leaf(2)]) == hash_pair(_leaf(1), _leaf(2))

    def test_odd_layer_duplicates_last(self):
        a, b, c = _leaf(1), _leaf(2), _leaf(3)
        expected = hash_pair(hash_pair(a, b), hash_pair(c, c))
        assert build_merkle_root([a, b, c]) == expected

    def test_order_matters(self):
        assert build_merkle_root([_leaf(1), _leaf(2)]) != build_merkle_root([_leaf(2), _leaf(1)])


class TestMerkleProof:
    @pytest.mark.parametrize("size", [1, 2, 5, 8])
    def test_every_leaf_proves_to_root(self, size: int):
        leaves = [_leaf(i) for i in range(size)]
        root = build_merkle_root(leaves)
        for idx, leaf in enumerate(leaves):
            assert root_from_proof(leaf, build_merkle_proof(leaves, idx)) == root

    def test_tampered_leaf_fails(self):
        leaves = [_leaf(i) for i in range(4)]
        proof = build_merkle_proof(leaves, 2)
        assert root_from_proof(_leaf(99), proof) != build_merkle_root(leaves)

    def test_index_out_of_range(self):
        with pytest.raises(IndexError):
            build_merkle_proof([_leaf(0)], 1)
