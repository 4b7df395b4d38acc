"""
Hand-rank lookup tables and their Merkle commitments.

There are two tables, both mapping a lookup key (product of the rank primes
of five cards) to a hand strength from 1 (Royal Flush) to 7462 (worst high
card):

- "basic": every 5-card rank multiset that is not a flush (6175 keys)
- "flush": five distinct ranks of one suit (1287 keys)

Each table is committed to a Merkle root once, at setup. The table only ever
holds the two roots; players holding the full tables produce membership
proofs, and the table checks them with verify_membership().
"""

from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache
from itertools import combinations, combinations_with_replacement
from typing import Dict, List, Tuple, Any
import hashlib
import logging

from mentalpoker.core.card import PRIMES_13, Rank
from mentalpoker.core.hand import score_ranks


logger = logging.getLogger(__name__)


BASIC = "basic"
FLUSH = "flush"
VARIANTS = (BASIC, FLUSH)

_LEAF_PREFIX = b"\x00"
_NODE_PREFIX = b"\x01"


def variant_for(is_flush: bool) -> str:
    return FLUSH if is_flush else BASIC


def _leaf_hash(key: int, value: int) -> bytes:
    payload = f"{key}:{value}".encode()
    return hashlib.sha256(_LEAF_PREFIX + payload).digest()


def _node_hash(left: bytes, right: bytes) -> bytes:
    return hashlib.sha256(_NODE_PREFIX + left + right).digest()


@dataclass(frozen=True)
class MembershipProof:
    """Position of a leaf and the sibling hashes from leaf to root."""
    index: int
    siblings: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "siblings": list(self.siblings)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> MembershipProof:
        return cls(int(data["index"]), tuple(data["siblings"]))


class MerkleTree:
    """
    Binary SHA-256 Merkle tree over (key, value) leaves sorted by key.

    An odd node at any level is paired with itself.
    """

    def __init__(self, entries: Dict[int, int]):
        if not entries:
            raise ValueError("Cannot commit to an empty table")
        self._keys: List[int] = sorted(entries)
        self._index = {key: i for i, key in enumerate(self._keys)}
        self._entries = dict(entries)

        level = [_leaf_hash(k, entries[k]) for k in self._keys]
        self._levels: List[List[bytes]] = [level]
        while len(level) > 1:
            if len(level) % 2:
                level = level + [level[-1]]
            level = [_node_hash(level[i], level[i + 1]) for i in range(0, len(level), 2)]
            self._levels.append(level)

    @property
    def root(self) -> str:
        return self._levels[-1][0].hex()

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: int) -> bool:
        return key in self._index

    def get(self, key: int) -> int:
        return self._entries[key]

    def prove(self, key: int) -> MembershipProof:
        """
        Membership proof for a key.

        Raises:
            KeyError: If the key is not in the table.
        """
        index = self._index[key]
        siblings = []
        position = index
        for level in self._levels[:-1]:
            sibling = position ^ 1
            if sibling >= len(level):
                sibling = position
            siblings.append(level[sibling].hex())
            position //= 2
        return MembershipProof(index, tuple(siblings))


def verify_membership(root: str, key: int, value: int, proof: MembershipProof) -> bool:
    """The single predicate the table uses: is (key, value) committed under root?"""
    if proof.index < 0:
        return False
    try:
        node = _leaf_hash(key, value)
        position = proof.index
        for sibling_hex in proof.siblings:
            sibling = bytes.fromhex(sibling_hex)
            if position % 2:
                node = _node_hash(sibling, node)
            else:
                node = _node_hash(node, sibling)
            position //= 2
    except ValueError:
        return False
    return position == 0 and node.hex() == root


def build_tables() -> Tuple[Dict[int, int], Dict[int, int]]:
    """
    Build the basic and flush tables from the 5-card evaluator.

    Returns:
        (basic, flush) dicts of lookup key -> strength (1 = best).
    """
    scored: List[Tuple[int, str, int]] = []

    for combo in combinations_with_replacement(Rank, 5):
        if max(combo.count(r) for r in set(combo)) > 4:
            continue
        score, _ = score_ranks(combo, is_flush=False)
        scored.append((score, BASIC, _key_for(combo)))

    for combo in combinations(Rank, 5):
        score, _ = score_ranks(combo, is_flush=True)
        scored.append((score, FLUSH, _key_for(combo)))

    scored.sort()
    basic: Dict[int, int] = {}
    flush: Dict[int, int] = {}
    for strength, (_, variant, key) in enumerate(scored, start=1):
        (flush if variant == FLUSH else basic)[key] = strength

    logger.debug(f"Built lookup tables: {len(basic)} basic, {len(flush)} flush")
    return basic, flush


def _key_for(ranks) -> int:
    key = 1
    for r in ranks:
        key *= PRIMES_13[r]
    return key


class HandRankTables:
    """
    Both lookup tables with their Merkle trees.

    This is the prover side: whoever holds it can look up a hand and produce
    the proof the table will check. The table itself only needs ``roots``.
    """

    def __init__(self, basic: Dict[int, int], flush: Dict[int, int]):
        self._trees = {BASIC: MerkleTree(basic), FLUSH: MerkleTree(flush)}

    @property
    def roots(self) -> Dict[str, str]:
        return {variant: tree.root for variant, tree in self._trees.items()}

    def tree(self, variant: str) -> MerkleTree:
        if variant not in self._trees:
            raise ValueError(f"Unknown table variant: {variant}")
        return self._trees[variant]

    def lookup(self, key: int, is_flush: bool) -> int:
        return self.tree(variant_for(is_flush)).get(key)

    def prove(self, key: int, is_flush: bool) -> Tuple[int, MembershipProof]:
        """
        Value and membership proof for a key.

        Raises:
            KeyError: If the key is not in the selected table.
        """
        tree = self.tree(variant_for(is_flush))
        return tree.get(key), tree.prove(key)


@lru_cache(maxsize=1)
def reference_tables() -> HandRankTables:
    """The reference tables, built once per process."""
    basic, flush = build_tables()
    tables = HandRankTables(basic, flush)
    logger.info(f"Hand-rank tables committed: basic={tables.roots[BASIC][:16]} flush={tables.roots[FLUSH][:16]}")
    return tables
