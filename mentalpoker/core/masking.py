"""
Card masking across any number of players.

A masked card is an ElGamal-style triple over the masking group:

    mask_key       sum of the public keys of everyone masking the card
    ephemeral_key  joint ephemeral key from all masking operations
    message        card point plus (sum of secrets) * ephemeral_key

All functions are pure: they take a MaskedCard and return a new one, so the
operations of different players can be composed in any order.

Usage:
    secret_a, secret_b = new_secret(), new_secret()
    card = MaskedCard.from_card(Card.from_string("As"))
    card = mask(add_player_to_card_mask(card, secret_a), new_nonce())
    card = mask(add_player_to_card_mask(card, secret_b), new_nonce())
    card = partial_unmask(partial_unmask(card, secret_b), secret_a)
    assert decode(card) == Card.from_string("As")

The true card is recoverable only after every contributor has partially
unmasked it. Unmasking with a secret that never contributed corrupts the card
and nothing here can tell; decode() is where it shows up.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional
import secrets

from mentalpoker.core.card import Card, card_point, point_to_card
from mentalpoker.core.group import (
    GENERATOR, SCALAR_BITS, GroupElement, as_element, hash_to_scalar, random_scalar,
)


@dataclass(frozen=True)
class MaskedCard:
    """A card value, masked or not."""

    mask_key: GroupElement
    ephemeral_key: GroupElement
    message: GroupElement

    @classmethod
    def from_card(cls, card: Card) -> MaskedCard:
        """Unmasked starting value for a card identity."""
        return cls(GroupElement.identity(), GroupElement.identity(), card_point(card))

    @classmethod
    def empty(cls) -> MaskedCard:
        return cls(GroupElement.identity(), GroupElement.identity(), GroupElement.identity())

    @property
    def is_masked(self) -> bool:
        return not self.mask_key.is_identity

    def to_dict(self) -> Dict[str, str]:
        return {
            "mask_key": self.mask_key.to_hex(),
            "ephemeral_key": self.ephemeral_key.to_hex(),
            "message": self.message.to_hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> MaskedCard:
        return cls(
            as_element(data["mask_key"]),
            as_element(data["ephemeral_key"]),
            as_element(data["message"]),
        )


def new_secret() -> int:
    """A fresh masking secret for one player."""
    return random_scalar()


def new_nonce() -> int:
    """A fresh masking nonce. Never reuse one across cards."""
    return random_scalar()


def public_key(secret: int) -> GroupElement:
    return secret * GENERATOR


def add_player_to_card_mask(card: MaskedCard, secret: int) -> MaskedCard:
    """
    Add a player's key to the card's mask.

    If nobody has masked the card yet its ephemeral key is still the identity,
    which would make the player's contribution vanish; the ephemeral key is
    seeded from the generator instead.
    """
    ephemeral_key = GENERATOR if card.mask_key.is_identity else card.ephemeral_key
    return MaskedCard(
        mask_key=card.mask_key + public_key(secret),
        ephemeral_key=ephemeral_key,
        message=card.message + secret * ephemeral_key,
    )


def mask(card: MaskedCard, nonce: int) -> MaskedCard:
    """
    Re-randomize a card under its current mask key.

    Raises:
        ValueError: If nobody has added a key to the card yet.
    """
    if card.mask_key.is_identity:
        raise ValueError("Cannot mask a card with no contributors")
    return MaskedCard(
        mask_key=card.mask_key,
        ephemeral_key=card.ephemeral_key + nonce * GENERATOR,
        message=card.message + nonce * card.mask_key,
    )


def partial_unmask(card: MaskedCard, secret: int) -> MaskedCard:
    """Remove one player's contribution. No-op on an unmasked card."""
    if card.mask_key.is_identity:
        return card
    return MaskedCard(
        mask_key=card.mask_key - public_key(secret),
        ephemeral_key=card.ephemeral_key,
        message=card.message - secret * card.ephemeral_key,
    )


def decode(card: MaskedCard) -> Card:
    """
    Card identity of a fully unmasked card.

    Raises:
        CorruptedCard: If the message is not a card point.
    """
    return point_to_card(card.message)


def try_decode(card: MaskedCard) -> Optional[Card]:
    """decode() that returns None instead of raising."""
    if card.mask_key.is_identity:
        try:
            return decode(card)
        except ValueError:
            return None
    return None


# Decryption shares
#
# To reveal a board card a player publishes secret * ephemeral_key together
# with a Chaum-Pedersen proof that the same secret is behind their public
# key. The table applies the share without ever seeing the secret.

# Proof nonces are wider than challenge * secret so the response hides the secret
_PROOF_NONCE_BITS = 2 * SCALAR_BITS + 128


@dataclass(frozen=True)
class ShareProof:
    commitment_g: GroupElement
    commitment_e: GroupElement
    response: int

    def to_dict(self) -> Dict[str, str]:
        return {
            "commitment_g": self.commitment_g.to_hex(),
            "commitment_e": self.commitment_e.to_hex(),
            "response": format(self.response, "x"),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ShareProof:
        return cls(
            as_element(data["commitment_g"]),
            as_element(data["commitment_e"]),
            int(data["response"], 16),
        )


@dataclass(frozen=True)
class DecryptionShare:
    share: GroupElement
    proof: ShareProof

    def to_dict(self) -> Dict[str, Any]:
        return {"share": self.share.to_hex(), "proof": self.proof.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DecryptionShare:
        return cls(as_element(data["share"]), ShareProof.from_dict(data["proof"]))


def _challenge(
    pk: GroupElement, epk: GroupElement, share: GroupElement,
    t_g: GroupElement, t_e: GroupElement,
) -> int:
    return hash_to_scalar(
        b"mentalpoker/share",
        GENERATOR.to_bytes(), pk.to_bytes(), epk.to_bytes(),
        share.to_bytes(), t_g.to_bytes(), t_e.to_bytes(),
    )


def decryption_share(card: MaskedCard, secret: int) -> DecryptionShare:
    """Compute and prove this player's share for unmasking a card."""
    pk = public_key(secret)
    share = secret * card.ephemeral_key
    r = secrets.randbits(_PROOF_NONCE_BITS)
    t_g = r * GENERATOR
    t_e = r * card.ephemeral_key
    c = _challenge(pk, card.ephemeral_key, share, t_g, t_e)
    return DecryptionShare(share, ShareProof(t_g, t_e, r + c * secret))


def verify_share(card: MaskedCard, pk: GroupElement, share: DecryptionShare) -> bool:
    """True if the share was made with the secret behind ``pk``."""
    proof = share.proof
    if proof.response <= 0:
        return False
    c = _challenge(pk, card.ephemeral_key, share.share, proof.commitment_g, proof.commitment_e)
    return (
        proof.response * GENERATOR == proof.commitment_g + c * pk
        and proof.response * card.ephemeral_key == proof.commitment_e + c * share.share
    )


def apply_share(card: MaskedCard, pk: GroupElement, share: DecryptionShare) -> MaskedCard:
    """partial_unmask() using a verified share instead of the secret."""
    if card.mask_key.is_identity:
        return card
    return MaskedCard(
        mask_key=card.mask_key - pk,
        ephemeral_key=card.ephemeral_key,
        message=card.message - share.share,
    )
