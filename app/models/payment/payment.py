"""
Payment Models
One payment per (contest, payer); amount is trusted client input.
"""
from pydantic import BaseModel, Field
from typing import Optional


class PaymentCreate(BaseModel):
    """Request to register for a contest"""
    contest_id: str = Field(..., alias="contestId", min_length=1)
    email: Optional[str] = Field(None, description="Defaults to the authenticated user")
    amount: float = Field(..., gt=0)
    transaction_id: Optional[str] = Field(None, alias="transactionId")

    class Config:
        populate_by_name = True


class ContestRegistration(BaseModel):
    """Request body for POST /contests/{id}/register"""
    amount: float = Field(..., gt=0)
    transaction_id: Optional[str] = Field(None, alias="transactionId")

    class Config:
        populate_by_name = True
