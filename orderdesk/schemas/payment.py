from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class PaymentInitRequest(BaseModel):
    """Starts a hosted checkout; amount is in major units (e.g. 80.00)."""
    email: EmailStr
    amount: float = Field(..., gt=0, description="Amount to charge in major currency units.")
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    callback_url: Optional[str] = Field(None, description="Where the gateway redirects after payment.")


class PaymentInitResponse(BaseModel):
    authorization_url: str
    reference: str


class PaymentVerifyResponse(BaseModel):
    ok: bool
    reference: Optional[str] = None
    amount: Optional[int] = None  # minor units, as reported by the gateway
    currency: Optional[str] = None
    paid_at: Optional[str] = None
    channel: Optional[str] = None
