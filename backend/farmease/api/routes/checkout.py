from fastapi import APIRouter, Depends, HTTPException, status

from farmease.api.deps import get_cart_store
from farmease.schemas.checkout import (
    CheckoutResult,
    CheckoutState,
    CheckoutStatusResponse,
    PaymentDetailsRequest
)
from farmease.services.cart_service import CartStore
from farmease.services.checkout_service import checkout_registry
from farmease.utils.pricing import format_minor_units

router = APIRouter()


@router.get("", response_model=CheckoutStatusResponse)
async def get_checkout_status(
    store: CartStore = Depends(get_cart_store)
):
    """
    Get the checkout state and the amount to pay.
    """
    sequencer = checkout_registry.find(store.session.user_id)
    return CheckoutStatusResponse(
        state=sequencer.state if sequencer else CheckoutState.IDLE,
        last_outcome=sequencer.last_outcome if sequencer else None,
        total_amount=store.get_total(),
        total_display=format_minor_units(store.get_total_minor_units()),
        order_number=sequencer.last_order_number if sequencer else None
    )


@router.post("", response_model=CheckoutResult)
async def begin_checkout(
    store: CartStore = Depends(get_cart_store)
):
    """
    Proceed to payment. Requires a non-empty cart.
    """
    result = checkout_registry.get(store.session.user_id).begin(store)
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result.message
        )
    return result


@router.post("/payment", response_model=CheckoutResult)
async def submit_payment(
    request: PaymentDetailsRequest,
    store: CartStore = Depends(get_cart_store)
):
    """
    Submit payment details.

    Payment is simulated. On success the invoice is emailed and the cart is
    cleared. On failure the cart is kept and payment can be retried.
    """
    sequencer = checkout_registry.get(store.session.user_id)
    result = await sequencer.submit_payment(store, request)
    if not result.success and result.state != CheckoutState.FAILED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=result.message
        )
    if result.success:
        checkout_registry.release(store.session.user_id)
    return result


@router.delete("", response_model=CheckoutResult)
async def cancel_checkout(
    store: CartStore = Depends(get_cart_store)
):
    """
    Close the payment step and keep the cart.
    """
    result = checkout_registry.get(store.session.user_id).cancel()
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=result.message
        )
    checkout_registry.release(store.session.user_id)
    return result
