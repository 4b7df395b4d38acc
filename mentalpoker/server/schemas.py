"""
Pydantic schemas for API request/response validation.

Group elements travel as lowercase hex strings; cards in claims use their
52-prime encoding.
"""

from typing import List, Optional, Dict
from pydantic import BaseModel, Field

from mentalpoker.core.lookup import MembershipProof
from mentalpoker.core.masking import DecryptionShare, MaskedCard, ShareProof
from mentalpoker.core.group import as_element
from mentalpoker.core.showdown import ShowdownClaim


# ============= Card Protocol Schemas =============

class MaskedCardSchema(BaseModel):
    """A masked card as three hex group elements."""
    mask_key: str
    ephemeral_key: str
    message: str

    def to_core(self) -> MaskedCard:
        return MaskedCard.from_dict(self.model_dump())


class ShareProofSchema(BaseModel):
    commitment_g: str
    commitment_e: str
    response: str


class DecryptionShareSchema(BaseModel):
    """A decryption share with its proof."""
    share: str
    proof: ShareProofSchema

    def to_core(self) -> DecryptionShare:
        return DecryptionShare(as_element(self.share), ShareProof.from_dict(self.proof.model_dump()))


class MembershipProofSchema(BaseModel):
    index: int = Field(ge=0)
    siblings: List[str]


class ShowdownClaimSchema(BaseModel):
    """A showdown claim."""
    hole_cards: List[int]
    board_cards: List[int]
    used: List[bool]
    is_flush: bool
    lookup_key: int
    lookup_value: int
    proof: MembershipProofSchema
    secret: str = Field(..., description="The seat's mask secret for this hand, hex")

    def to_core(self) -> ShowdownClaim:
        return ShowdownClaim.from_dict(self.model_dump())


# ============= Request Schemas =============

class CreateTableRequest(BaseModel):
    """Request to create a new table."""
    small_blind: int = Field(gt=0, default=1)
    big_blind: int = Field(gt=0, default=2)
    min_bet: int = Field(gt=0, default=1)
    min_buy_in: int = Field(gt=0, default=20)
    max_buy_in: int = Field(gt=0, default=200)


class JoinRequest(BaseModel):
    """Request to take a seat."""
    seat: int = Field(ge=0, le=1)
    deposit: int = Field(gt=0)


class ActionRequest(BaseModel):
    """Request to take a betting action."""
    action_type: str = Field(..., description="Action type: POST_SB, POST_BB, BET, CALL, PREFLOP_CALL, RAISE, CHECK, FOLD")
    amount: Optional[int] = Field(default=0, ge=0, description="Chips added by BET/RAISE and blinds")


class HoleCardsRequest(BaseModel):
    """The opponent's masked hole cards and the caller's mask key."""
    cards: List[MaskedCardSchema]
    mask_key: str


class BoardRequest(BaseModel):
    """Masked cards of the next board deal."""
    cards: List[MaskedCardSchema]


class RevealRequest(BaseModel):
    """Decryption shares for the committed board deal."""
    shares: List[DecryptionShareSchema]


# ============= Response Schemas =============

class TableCreatedSchema(BaseModel):
    table_id: str
    roots: Dict[str, str]


class ActionResultSchema(BaseModel):
    """Result of an action."""
    success: bool
    message: str
    action_type: Optional[str] = None
    amount: int = 0
    stage: str


class LeaveResultSchema(BaseModel):
    success: bool
    withdrawn: int


class ShowResultSchema(BaseModel):
    success: bool
    value: int
    stage: str


class SettleResultSchema(BaseModel):
    """Payout of a settled hand."""
    success: bool
    amounts: List[int]
    winner: Optional[int] = None
    reason: str
    hand_number: int


class LookupEntrySchema(BaseModel):
    """A lookup-table entry with its membership proof."""
    variant: str
    key: int
    value: int
    proof: MembershipProofSchema

    @classmethod
    def build(cls, variant: str, key: int, value: int, proof: MembershipProof) -> "LookupEntrySchema":
        return cls(variant=variant, key=key, value=value, proof=MembershipProofSchema(**proof.to_dict()))


class ErrorSchema(BaseModel):
    """Error response."""
    error: str
    detail: Optional[str] = None

