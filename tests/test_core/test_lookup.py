"""
Tests for the hand-rank lookup tables and their Merkle commitments.
"""

import pytest
from dataclasses import replace

from mentalpoker.core.card import parse_cards
from mentalpoker.core.hand import lookup_key
from mentalpoker.core.lookup import (
    BASIC, FLUSH, MerkleTree, MembershipProof, build_tables, verify_membership,
)


def key_of(text):
    cards = [c.prime52 for c in parse_cards(text)]
    return lookup_key(cards, [True] * len(cards))


@pytest.fixture(scope="module")
def built():
    return build_tables()


class TestTables:
    """Tests for the table contents."""

    def test_table_sizes(self, built):
        basic, flush = built
        assert len(basic) == 6175
        assert len(flush) == 1287

    def test_values_cover_all_strengths(self, built):
        basic, flush = built
        values = sorted(list(basic.values()) + list(flush.values()))
        assert values == list(range(1, 7463))

    def test_known_values(self, built):
        basic, flush = built
        assert flush[key_of("As Ks Qs Js Ts")] == 1
        assert basic[key_of("As Ah Ad Ac Ks")] == 11
        assert basic[key_of("As Ah Ad Kc Ks")] == 167
        assert flush[key_of("As Ks Qs Js 9s")] == 323
        assert basic[key_of("As Kh Qd Jc Ts")] == 1600
        assert basic[key_of("7s 5h 4d 3c 2s")] == 7462

    def test_same_ranks_stronger_as_flush(self, built):
        basic, flush = built
        key = key_of("As Kh Qd Jc 9s")
        assert flush[key] < basic[key]

    def test_roots_are_committed(self, tables):
        assert set(tables.roots) == {BASIC, FLUSH}
        assert tables.roots[BASIC] != tables.roots[FLUSH]


class TestMembership:
    """Tests for membership proofs."""

    def test_prove_and_verify(self, tables):
        key = key_of("As Ah Kd Kc Qs")
        value, proof = tables.prove(key, is_flush=False)
        assert verify_membership(tables.roots[BASIC], key, value, proof)

    def test_wrong_value_fails(self, tables):
        key = key_of("As Ah Kd Kc Qs")
        value, proof = tables.prove(key, is_flush=False)
        assert not verify_membership(tables.roots[BASIC], key, value - 1, proof)

    def test_wrong_table_fails(self, tables):
        key = key_of("As Ks Qs Js 9s")
        value, proof = tables.prove(key, is_flush=True)
        assert not verify_membership(tables.roots[BASIC], key, value, proof)

    def test_wrong_index_fails(self, tables):
        key = key_of("As Ks Qs Js 9s")
        value, proof = tables.prove(key, is_flush=True)
        moved = replace(proof, index=proof.index + 1)
        assert not verify_membership(tables.roots[FLUSH], key, value, moved)

    def test_garbage_sibling_fails(self, tables):
        key = key_of("As Ks Qs Js 9s")
        value, proof = tables.prove(key, is_flush=True)
        broken = replace(proof, siblings=("not hex",) + proof.siblings[1:])
        assert not verify_membership(tables.roots[FLUSH], key, value, broken)

    def test_missing_key(self, tables):
        with pytest.raises(KeyError):
            tables.prove(4, is_flush=False)

    def test_proof_serialization(self, tables):
        _, proof = tables.prove(key_of("As Ks Qs Js Ts"), is_flush=True)
        assert MembershipProof.from_dict(proof.to_dict()) == proof


class TestMerkleTree:
    def test_odd_sized_tree(self):
        tree = MerkleTree({5: 50, 3: 30, 9: 90})
        for key in (3, 5, 9):
            assert verify_membership(tree.root, key, tree.get(key), tree.prove(key))

    def test_single_leaf(self):
        tree = MerkleTree({7: 1})
        assert verify_membership(tree.root, 7, 1, tree.prove(7))

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            MerkleTree({})
