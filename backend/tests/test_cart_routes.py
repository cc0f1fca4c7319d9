"""
Tests for cart, rental and checkout endpoints.
"""

import pytest
from datetime import date, timedelta
from unittest.mock import AsyncMock, MagicMock
from fastapi import HTTPException, status

from farmease.api.routes.cart import (
    get_cart,
    add_to_cart,
    add_rental_to_cart,
    update_cart_item,
    remove_from_cart,
    clear_cart
)
from farmease.api.routes.rentals import get_rental_quote
from farmease.api.routes.checkout import (
    begin_checkout,
    get_checkout_status,
    submit_payment,
    cancel_checkout
)
from farmease.core.security import AuthSession
from farmease.models.product import ProductSummary
from farmease.schemas.cart import AddToCartRequest, UpdateCartItemRequest, RentalRequest
from farmease.schemas.checkout import CheckoutState, InvoiceDispatchResult, PaymentDetailsRequest
from farmease.schemas.stock import StockLevelsOk
from farmease.services.cart_service import CartStore
from farmease.services.checkout_service import checkout_registry
from farmease.services.payment_simulation import PaymentSimulationService
from farmease.services.storage import InMemoryClientStorage


TOMATOES = ProductSummary(
    _id="tomato1",
    name="Organic Tomatoes",
    price="₹45.99",
    image="https://example.com/tomatoes.jpg",
    category="Organic Produce",
    stock=3
)

TRACTOR = ProductSummary(
    _id="tractor1",
    name="Mini Tractor",
    price="₹100",
    image="https://example.com/tractor.jpg",
    category="Rental Equipment",
    stock=1
)


def make_product_service(product=None, levels=None):
    product_service = MagicMock()
    product_service.fetch_product = AsyncMock(return_value=product)
    product_service.fetch_stock_levels = AsyncMock(return_value=StockLevelsOk(levels=levels or {}))
    return product_service


async def signed_in_store():
    return await CartStore.load(
        InMemoryClientStorage(),
        AuthSession(user_id="user123", email="buyer@example.com")
    )


def fast_sequencer(invoice_success=True):
    sequencer = checkout_registry.get("user123")
    sequencer.payment_service = PaymentSimulationService(delay_seconds=0)
    sequencer.invoice_service = MagicMock()
    sequencer.invoice_service.send_invoice = AsyncMock(
        return_value=InvoiceDispatchResult(success=invoice_success, error=None if invoice_success else "boom")
    )
    return sequencer


class TestCartEndpoints:
    """Test cart endpoints."""

    @pytest.mark.asyncio
    async def test_add_and_view(self):
        """Test adding a product and viewing the cart with stock hints."""
        store = await signed_in_store()
        product_service = make_product_service(TOMATOES, levels={"tomato1": 3})

        added = await add_to_cart(AddToCartRequest(product_id="tomato1", quantity=3), store, product_service)
        assert added.message == "Organic Tomatoes added to your cart"

        response = await get_cart(store, product_service)

        assert response.total_items == 3
        assert response.total_display == "₹137.97"
        assert response.items[0].line_total == "₹137.97"
        assert response.items[0].stock == 3
        assert response.items[0].stock_warning is True

    @pytest.mark.asyncio
    async def test_anonymous_add_redirects_to_login(self):
        """Test that anonymous additions get 401 with a login redirect."""
        store = await CartStore.load(InMemoryClientStorage(), None)

        with pytest.raises(HTTPException) as exc_info:
            await add_to_cart(AddToCartRequest(product_id="tomato1"), store, make_product_service(TOMATOES))

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
        assert exc_info.value.detail["redirect_to"] == "/login"

    @pytest.mark.asyncio
    async def test_add_unknown_product(self):
        """Test that unknown products give 404."""
        store = await signed_in_store()

        with pytest.raises(HTTPException) as exc_info:
            await add_to_cart(AddToCartRequest(product_id="nope"), store, make_product_service(None))

        assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_rental_cannot_be_added_by_quantity(self):
        """Test that rental equipment is refused on the quantity endpoint."""
        store = await signed_in_store()

        with pytest.raises(HTTPException) as exc_info:
            await add_to_cart(AddToCartRequest(product_id="tractor1"), store, make_product_service(TRACTOR))

        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST
        assert store.is_empty()

    @pytest.mark.asyncio
    async def test_add_out_of_stock_product(self):
        """Test that a product without stock cannot be added."""
        store = await signed_in_store()
        sold_out = TOMATOES.model_copy(update={"stock": 0})

        with pytest.raises(HTTPException) as exc_info:
            await add_to_cart(AddToCartRequest(product_id="tomato1"), store, make_product_service(sold_out))

        assert exc_info.value.status_code == status.HTTP_409_CONFLICT
        assert exc_info.value.detail["ceiling"] == 0
        assert store.is_empty()

    @pytest.mark.asyncio
    async def test_add_more_than_stock(self):
        """Test that the requested quantity is capped at the available stock."""
        store = await signed_in_store()

        with pytest.raises(HTTPException) as exc_info:
            await add_to_cart(AddToCartRequest(product_id="tomato1", quantity=4), store, make_product_service(TOMATOES))

        assert exc_info.value.status_code == status.HTTP_409_CONFLICT
        assert exc_info.value.detail["ceiling"] == 3
        assert exc_info.value.detail["message"] == "Only 3 items available in stock."
        assert store.is_empty()

    @pytest.mark.asyncio
    async def test_update_over_stock_conflicts(self):
        """Test that exceeding stock gives 409 with the ceiling and keeps the cart."""
        store = await signed_in_store()
        product_service = make_product_service(TOMATOES, levels={"tomato1": 3})
        await add_to_cart(AddToCartRequest(product_id="tomato1", quantity=2), store, product_service)

        with pytest.raises(HTTPException) as exc_info:
            await update_cart_item("tomato1", UpdateCartItemRequest(quantity=5), store, product_service)

        assert exc_info.value.status_code == status.HTTP_409_CONFLICT
        assert exc_info.value.detail["ceiling"] == 3
        assert store.get_item("tomato1").quantity == 2

    @pytest.mark.asyncio
    async def test_update_within_stock(self):
        """Test a permitted quantity change."""
        store = await signed_in_store()
        product_service = make_product_service(TOMATOES, levels={"tomato1": 3})
        await add_to_cart(AddToCartRequest(product_id="tomato1", quantity=1), store, product_service)

        response = await update_cart_item("tomato1", UpdateCartItemRequest(quantity=2), store, product_service)

        assert response.total_items == 2

    @pytest.mark.asyncio
    async def test_update_missing_item(self):
        """Test that updating an item not in the cart gives 404."""
        store = await signed_in_store()

        with pytest.raises(HTTPException) as exc_info:
            await update_cart_item("nope", UpdateCartItemRequest(quantity=2), store, make_product_service())

        assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_remove_and_clear(self):
        """Test removal and clearing."""
        store = await signed_in_store()
        product_service = make_product_service(TOMATOES)
        await add_to_cart(AddToCartRequest(product_id="tomato1"), store, product_service)

        response = await remove_from_cart("absent", store)
        assert response.total_items == 1

        response = await clear_cart(store)
        assert response.items == []
        assert response.total_amount == 0.0


class TestRentalEndpoints:
    """Test rental endpoints."""

    @pytest.mark.asyncio
    async def test_quote(self):
        """Test a public rental quote."""
        request = RentalRequest(product_id="tractor1", from_date=date(2024, 1, 1), to_date=date(2024, 1, 3))

        response = await get_rental_quote(request, make_product_service(TRACTOR))

        assert response.total_days == 3
        assert response.total_price == 300.00
        assert response.total_display == "₹300.00"

    @pytest.mark.asyncio
    async def test_quote_reversed_dates(self):
        """Test that reversed dates give 400."""
        request = RentalRequest(product_id="tractor1", from_date=date(2024, 1, 3), to_date=date(2024, 1, 1))

        with pytest.raises(HTTPException) as exc_info:
            await get_rental_quote(request, make_product_service(TRACTOR))

        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_book_rental(self):
        """Test that a booking is added with its total as the price."""
        store = await signed_in_store()
        start = date.today() + timedelta(days=1)
        request = RentalRequest(product_id="tractor1", from_date=start, to_date=start + timedelta(days=2))

        response = await add_rental_to_cart(request, store, make_product_service(TRACTOR))

        assert response.total_items == 1
        assert response.total_display == "₹300.00"
        assert response.items[0].kind == "rental"
        assert response.items[0].rental_dates is not None

    @pytest.mark.asyncio
    async def test_book_rental_in_the_past(self):
        """Test that bookings cannot start before today."""
        store = await signed_in_store()
        start = date.today() - timedelta(days=1)
        request = RentalRequest(product_id="tractor1", from_date=start, to_date=start + timedelta(days=2))

        with pytest.raises(HTTPException) as exc_info:
            await add_rental_to_cart(request, store, make_product_service(TRACTOR))

        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST
        assert store.is_empty()

    @pytest.mark.asyncio
    async def test_book_out_of_stock_rental(self):
        """Test that equipment without stock cannot be booked."""
        store = await signed_in_store()
        unavailable = TRACTOR.model_copy(update={"stock": 0})
        start = date.today() + timedelta(days=1)
        request = RentalRequest(product_id="tractor1", from_date=start, to_date=start + timedelta(days=2))

        with pytest.raises(HTTPException) as exc_info:
            await add_rental_to_cart(request, store, make_product_service(unavailable))

        assert exc_info.value.status_code == status.HTTP_409_CONFLICT
        assert store.is_empty()


class TestCheckoutEndpoints:
    """Test checkout endpoints."""

    @pytest.mark.asyncio
    async def test_begin_checkout_empty_cart(self):
        """Test that checkout of an empty cart gives 400."""
        checkout_registry.reset()
        store = await signed_in_store()

        with pytest.raises(HTTPException) as exc_info:
            await begin_checkout(store)

        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_begin_checkout(self):
        """Test entering the payment step and reading the state."""
        checkout_registry.reset()
        store = await signed_in_store()
        await add_to_cart(AddToCartRequest(product_id="tomato1", quantity=2), store, make_product_service(TOMATOES))

        result = await begin_checkout(store)
        status_response = await get_checkout_status(store)

        assert result.state == CheckoutState.AWAITING_PAYMENT_DETAILS
        assert status_response.state == CheckoutState.AWAITING_PAYMENT_DETAILS
        assert status_response.total_display == "₹91.98"

    @pytest.mark.asyncio
    async def test_payment_without_checkout_conflicts(self):
        """Test that payment details before proceeding to payment give 409."""
        checkout_registry.reset()
        store = await signed_in_store()
        await add_to_cart(AddToCartRequest(product_id="tomato1"), store, make_product_service(TOMATOES))

        with pytest.raises(HTTPException) as exc_info:
            await submit_payment(PaymentDetailsRequest(), store)

        assert exc_info.value.status_code == status.HTTP_409_CONFLICT
        assert not store.is_empty()

    @pytest.mark.asyncio
    async def test_failed_payment_is_reported(self):
        """Test that a failed invoice gives a failed result, not an error status."""
        checkout_registry.reset()
        store = await signed_in_store()
        await add_to_cart(AddToCartRequest(product_id="tomato1", quantity=2), store, make_product_service(TOMATOES))
        await begin_checkout(store)
        sequencer = fast_sequencer(invoice_success=False)

        result = await submit_payment(PaymentDetailsRequest(), store)
        status_response = await get_checkout_status(store)

        assert result.success is False
        assert result.state == CheckoutState.FAILED
        assert sequencer.state == CheckoutState.AWAITING_PAYMENT_DETAILS
        assert status_response.last_outcome == CheckoutState.FAILED
        assert store.get_total_item_count() == 2

    @pytest.mark.asyncio
    async def test_successful_payment_clears_cart(self):
        """Test a completed checkout and that the user's sequencer is released."""
        checkout_registry.reset()
        store = await signed_in_store()
        await add_to_cart(AddToCartRequest(product_id="tomato1", quantity=2), store, make_product_service(TOMATOES))
        await begin_checkout(store)
        fast_sequencer()

        result = await submit_payment(PaymentDetailsRequest(), store)
        status_response = await get_checkout_status(store)

        assert result.success is True
        assert result.redirect_to == "/"
        assert store.is_empty()
        assert checkout_registry.find("user123") is None
        assert status_response.state == CheckoutState.IDLE
        assert status_response.total_amount == 0.0

    @pytest.mark.asyncio
    async def test_cancel_while_processing_conflicts(self):
        """Test that a payment being processed cannot be cancelled."""
        checkout_registry.reset()
        store = await signed_in_store()
        checkout_registry.get("user123").state = CheckoutState.PROCESSING

        with pytest.raises(HTTPException) as exc_info:
            await cancel_checkout(store)

        assert exc_info.value.status_code == status.HTTP_409_CONFLICT
        assert checkout_registry.find("user123").state == CheckoutState.PROCESSING

    @pytest.mark.asyncio
    async def test_cancel_keeps_cart(self):
        """Test leaving the payment step."""
        checkout_registry.reset()
        store = await signed_in_store()
        await add_to_cart(AddToCartRequest(product_id="tomato1"), store, make_product_service(TOMATOES))
        await begin_checkout(store)

        result = await cancel_checkout(store)
        status_response = await get_checkout_status(store)

        assert result.success is True
        assert status_response.state == CheckoutState.IDLE
        assert status_response.total_display == "₹45.99"
        assert checkout_registry.find("user123") is None
