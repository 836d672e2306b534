from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from datetime import date, datetime
from typing import Any, Literal

SortDirection = Literal["asc", "desc"]

CENTS_PER_UNIT = Decimal(100)

# Largest value a signed 64-bit BIGINT column holds
MAX_CENTS = 2**63 - 1
MAX_AMOUNT = Decimal(MAX_CENTS) / CENTS_PER_UNIT


def to_cents(amount: Decimal) -> int:
    """
    Convert a currency amount to integer minor units.

    Half cents round away from zero, so 0.005 becomes 1 cent and 12.3
    becomes 1230.
    """
    return int((amount * CENTS_PER_UNIT).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ExpenseCreate(BaseModel):
    amount: Decimal = Field(..., description="Must be a positive value")
    category: str = Field(..., max_length=100)
    description: str
    date: date

    @field_validator("amount", mode="before")
    @classmethod
    def amount_must_be_positive(cls, v: Any) -> Decimal:
        if isinstance(v, bool) or not isinstance(v, (int, float, str, Decimal)):
            raise ValueError("Amount must be a number")
        try:
            val = Decimal(str(v).strip())
        except InvalidOperation:
            raise ValueError("Amount must be a number")
        if not val.is_finite() or val <= 0:
            raise ValueError("Amount must be greater than 0")
        if val > MAX_AMOUNT:
            raise ValueError("Amount is too large")
        return val

    @field_validator("category", "description")
    @classmethod
    def must_not_be_blank(cls, v: str, info) -> str:
        if not v.strip():
            raise ValueError(f"{info.field_name.capitalize()} cannot be blank")
        return v.strip()

    @property
    def amount_cents(self) -> int:
        return to_cents(self.amount)


class ExpenseResponse(BaseModel):
    id: str
    idempotency_key: str
    amount_cents: int
    category: str
    description: str
    date: date
    created_at: datetime

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )
