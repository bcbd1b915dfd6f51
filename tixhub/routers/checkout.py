from fastapi import APIRouter, Depends
from tixhub.core.dependencies import get_authenticated_user, AuthenticatedUser
from tixhub.models.order import (
    CheckoutRequest, CheckoutPreviewRequest, CheckoutPreview, CheckoutResponse,
    VerifyPaymentRequest, PaymentVerificationResponse
)
from tixhub.services import checkout_service

router = APIRouter()


@router.post("/preview", response_model=CheckoutPreview)
async def preview_checkout(
    data: CheckoutPreviewRequest,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    """Order breakdown and totals for the current cart"""
    return await checkout_service.preview_checkout(user.user_id, data.promo_code)


@router.post("", response_model=CheckoutResponse, status_code=201)
async def checkout(
    data: CheckoutRequest,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    """
    Create pending orders for the cart and start a Monnify payment.

    The response carries the `checkout_url` to redirect the buyer to.
    After paying, Monnify sends the buyer back to `/payment/callback`,
    which calls `POST /checkout/verify`.
    """
    return await checkout_service.checkout(
        user.user_id,
        promo_code=data.promo_code,
        customer_name=data.customer_name or user.name,
        customer_email=data.customer_email or user.email
    )


@router.post("/verify", response_model=PaymentVerificationResponse)
async def verify_payment(data: VerifyPaymentRequest):
    """Confirm a payment by reference (payment callback page)"""
    return await checkout_service.verify_payment(data.payment_reference)
