import logging
from decimal import Decimal
from fastapi import APIRouter, Depends, Query

from orderdesk.core.deps import get_payment_gateway
from orderdesk.core.security import CurrentUser, get_current_user
from orderdesk.schemas.payment import PaymentInitRequest, PaymentInitResponse, PaymentVerifyResponse
from orderdesk.schemas.response import SuccessResponse
from orderdesk.services.payment_gateway import PaymentGateway

router = APIRouter()
log = logging.getLogger(__name__)


@router.post("/paystack/initialize", response_model=SuccessResponse)
async def initialize_payment_endpoint(
    request_data: PaymentInitRequest,
    user: CurrentUser = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Starts a hosted checkout and returns the URL the browser should be sent to.
    The returned reference is later submitted with the order.
    """
    tx = await gateway.initialize(
        amount=Decimal(str(request_data.amount)),
        currency=request_data.currency,
        email=request_data.email,
        callback_url=request_data.callback_url,
    )
    log.info(f"Payment {tx.reference} initialized for user {user.id}.")
    data = PaymentInitResponse(authorization_url=tx.authorization_url, reference=tx.reference)
    return SuccessResponse(data=data.model_dump())


@router.get("/paystack/verify", response_model=SuccessResponse)
async def verify_payment_endpoint(
    reference: str = Query(..., min_length=1, max_length=100),
    user: CurrentUser = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """Reports whether a reference has been paid; an unpaid reference is ``ok: false``, not an error."""
    result = await gateway.verify(reference)
    if not result.ok:
        return SuccessResponse(data=PaymentVerifyResponse(ok=False).model_dump())
    data = PaymentVerifyResponse(
        ok=True,
        reference=result.reference,
        amount=result.amount,
        currency=result.currency,
        paid_at=result.paid_at,
        channel=result.channel,
    )
    return SuccessResponse(data=data.model_dump())
