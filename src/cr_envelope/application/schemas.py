"""Pydantic schemas for cr_envelope API.

Amounts cross the wire as 2-decimal values and are converted to integer cents
here; nothing past this module sees a Decimal. Snowflake ids are rendered as
strings so JavaScript clients do not lose precision.
"""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from src.cr_common.cents import cents_to_display, to_cents
from src.cr_common.enums import EnvelopeBox, EnvelopeType
from src.cr_envelope.domain.models import Claim, Envelope

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateEnvelopeRequest(BaseModel):
    type: EnvelopeType
    total_amount: Decimal = Field(..., gt=0, decimal_places=2)
    total_count: int = Field(..., ge=1)
    greeting: str = Field("", max_length=100)

    @field_validator("type", mode="before")
    @classmethod
    def upper_type(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @property
    def total_amount_cents(self) -> int:
        return to_cents(self.total_amount)


class ClaimRequest(BaseModel):
    id: int = Field(..., gt=0)


class ListRequest(BaseModel):
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=100)
    type: Literal["sent", "received"] = "sent"

    @property
    def box(self) -> EnvelopeBox:
        return EnvelopeBox(self.type)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class EnvelopeView(BaseModel):
    id: str
    creator_id: str
    type: str
    total_amount_cents: int
    total_amount_display: str
    remaining_amount_cents: int
    remaining_amount_display: str
    total_count: int
    remaining_count: int
    greeting: str
    status: str
    expires_at: str
    created_at: str | None = None

    @classmethod
    def from_domain(cls, envelope: Envelope) -> "EnvelopeView":
        return cls(
            id=str(envelope.id),
            creator_id=envelope.creator_id,
            type=envelope.envelope_type.value,
            total_amount_cents=envelope.total_amount,
            total_amount_display=cents_to_display(envelope.total_amount),
            remaining_amount_cents=envelope.remaining_amount,
            remaining_amount_display=cents_to_display(envelope.remaining_amount),
            total_count=envelope.total_count,
            remaining_count=envelope.remaining_count,
            greeting=envelope.greeting,
            status=envelope.status.value,
            expires_at=envelope.expires_at.isoformat(),
            created_at=envelope.created_at.isoformat() if envelope.created_at else None,
        )


class ClaimView(BaseModel):
    id: str
    red_envelope_id: str
    user_id: str
    amount_cents: int
    amount_display: str
    claimed_at: str | None = None

    @classmethod
    def from_domain(cls, claim: Claim) -> "ClaimView":
        return cls(
            id=str(claim.id),
            red_envelope_id=str(claim.envelope_id),
            user_id=claim.user_id,
            amount_cents=claim.amount,
            amount_display=cents_to_display(claim.amount),
            claimed_at=claim.claimed_at.isoformat() if claim.claimed_at else None,
        )


class CreateEnvelopeResponse(BaseModel):
    id: str
    fee_cents: int
    expires_at: str


class ClaimResponse(BaseModel):
    amount_cents: int
    amount_display: str
    red_envelope: EnvelopeView


class DetailResponse(BaseModel):
    red_envelope: EnvelopeView
    claims: list[ClaimView]
    user_claimed: ClaimView | None = None


class ListResponse(BaseModel):
    total: int
    page: int
    page_size: int
    red_envelopes: list[EnvelopeView]
