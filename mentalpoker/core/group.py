"""
Group arithmetic for card masking.

Elements live in the prime-order subgroup of quadratic residues modulo the
RFC 3526 2048-bit MODP prime. The group is written additively so the masking
code reads like the textbook ElGamal-over-a-curve description:

    a + b      group operation
    a - b      a plus the inverse of b
    k * a      scalar multiplication (k an int)

Scalars (player secrets, masking nonces) are random 256-bit integers.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Union
import hashlib
import secrets


# RFC 3526, group 14
MODULUS = int(
    "FFFFFFFFFFFFFFFFC90FDAA22168C234C4C6628B80DC1CD1"
    "29024E088A67CC74020BBEA63B139B22514A08798E3404DD"
    "EF9519B3CD3A431B302B0A6DF25F14374FE1356D6D51C245"
    "E485B576625E7EC6F44C42E9A637ED6B0BFF5CB6F406B7ED"
    "EE386BFB5A899FA5AE9F24117C4B1FE649286651ECE45B3D"
    "C2007CB8A163BF0598DA48361C55D39A69163FA8FD24CF5F"
    "83655D23DCA3AD961C62F356208552BB9ED529077096966D"
    "670C354E4ABC9804F1746C08CA18217C32905E462E36CE3B"
    "E39E772C180E86039B2783A2EC07A28FB5C55DF06F4C52C9"
    "DE2BCBF6955817183995497CEA956AE515D2261898FA0510"
    "15728E5A8AACAA68FFFFFFFFFFFFFFFF",
    16,
)

# Order of the quadratic-residue subgroup
ORDER = (MODULUS - 1) // 2

SCALAR_BITS = 256


@dataclass(frozen=True)
class GroupElement:
    """An element of the masking group (immutable)."""

    value: int

    def __post_init__(self) -> None:
        if not 0 < self.value < MODULUS:
            raise ValueError("Group element out of range")

    @classmethod
    def identity(cls) -> GroupElement:
        return cls(1)

    @property
    def is_identity(self) -> bool:
        return self.value == 1

    def __add__(self, other: GroupElement) -> GroupElement:
        if not isinstance(other, GroupElement):
            return NotImplemented
        return GroupElement(self.value * other.value % MODULUS)

    def __neg__(self) -> GroupElement:
        return GroupElement(pow(self.value, -1, MODULUS))

    def __sub__(self, other: GroupElement) -> GroupElement:
        if not isinstance(other, GroupElement):
            return NotImplemented
        return self + (-other)

    def __rmul__(self, scalar: int) -> GroupElement:
        if not isinstance(scalar, int):
            return NotImplemented
        return GroupElement(pow(self.value, scalar, MODULUS))

    __mul__ = __rmul__

    def to_hex(self) -> str:
        return format(self.value, "x")

    @classmethod
    def from_hex(cls, s: str) -> GroupElement:
        try:
            value = int(s, 16)
        except ValueError:
            raise ValueError(f"Invalid group element: {s!r}")
        return cls(value)

    def to_bytes(self) -> bytes:
        return self.value.to_bytes((MODULUS.bit_length() + 7) // 8, "big")

    def __repr__(self) -> str:
        h = self.to_hex()
        return f"GroupElement({h[:8]}…{h[-4:]})" if len(h) > 12 else f"GroupElement({h})"


GENERATOR = GroupElement(4)


ElementLike = Union[GroupElement, str]


def as_element(value: ElementLike) -> GroupElement:
    """Accept either an element or its hex string."""
    if isinstance(value, GroupElement):
        return value
    return GroupElement.from_hex(value)


def random_scalar() -> int:
    """A fresh non-zero 256-bit scalar."""
    while True:
        k = secrets.randbits(SCALAR_BITS)
        if k:
            return k


def hash_to_group(label: bytes) -> GroupElement:
    """
    Deterministically map a label into the subgroup.

    The label is expanded with SHA-256 to the size of the modulus and the
    result is squared, which lands in the quadratic-residue subgroup. Nobody
    knows the discrete log of the output relative to GENERATOR.
    """
    width = (MODULUS.bit_length() + 7) // 8
    stream = b""
    counter = 0
    while len(stream) < width + 16:
        stream += hashlib.sha256(label + counter.to_bytes(4, "big")).digest()
        counter += 1
    x = int.from_bytes(stream, "big") % MODULUS
    if x in (0, 1, MODULUS - 1):
        raise ValueError(f"Degenerate hash for label {label!r}")
    return GroupElement(x * x % MODULUS)


def hash_to_scalar(*parts: bytes) -> int:
    """Fiat-Shamir challenge from a transcript of byte strings."""
    h = hashlib.sha256()
    for part in parts:
        h.update(len(part).to_bytes(4, "big"))
        h.update(part)
    return int.from_bytes(h.digest(), "big")
