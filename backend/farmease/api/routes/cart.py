from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status

from farmease.api.deps import get_cart_store, get_optional_cart_store, get_product_service
from farmease.config.checkout_config import is_quantity_category, is_rental_category
from farmease.models.cart import QuantityItem, RentalItem
from farmease.schemas.cart import (
    AddToCartRequest,
    UpdateCartItemRequest,
    RentalRequest,
    CartItemResponse,
    CartResponse
)
from farmease.services.cart_service import CartStore
from farmease.services.product_service import ProductDataService
from farmease.services.rental_service import quote_rental, build_rental_item
from farmease.services.stock_service import StockReconciler
from farmease.utils.pricing import display_price, line_total_display, format_minor_units

router = APIRouter()


def build_cart_response(
    store: CartStore,
    reconciler: Optional[StockReconciler] = None,
    message: Optional[str] = None
) -> CartResponse:
    """Render the cart with display prices, line totals and stock hints."""
    items = []
    for item in store.items:
        ceiling = reconciler.snapshot.ceiling(item.id) if reconciler else None
        items.append(CartItemResponse(
            id=item.id,
            kind=item.kind,
            name=item.name,
            price=display_price(item.price),
            image=item.image,
            quantity=item.quantity,
            category=item.category,
            line_total=line_total_display(item.price, item.quantity),
            stock=ceiling,
            stock_warning=reconciler.at_ceiling(item) if reconciler else False,
            rental_dates=item.rental_dates if isinstance(item, RentalItem) else None
        ))

    return CartResponse(
        items=items,
        total_amount=store.get_total(),
        total_display=format_minor_units(store.get_total_minor_units()),
        total_items=store.get_total_item_count(),
        message=message
    )


def _login_required(result) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "title": result.title,
            "message": result.message,
            "redirect_to": result.redirect_to
        },
        headers={"WWW-Authenticate": "Bearer"},
    )


def _out_of_stock(product) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "title": "Out of stock",
            "message": f"{product.name} is currently out of stock.",
            "ceiling": 0
        }
    )


@router.get("", response_model=CartResponse)
async def get_cart(
    store: CartStore = Depends(get_cart_store),
    product_service: ProductDataService = Depends(get_product_service)
):
    """
    Get the current user's cart.

    Refreshes stock levels for every item in one lookup and flags lines
    that have reached their available stock.
    """
    reconciler = StockReconciler(product_service)
    await reconciler.refresh_for_cart(store)
    return build_cart_response(store, reconciler)


@router.post("/items", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    request: AddToCartRequest,
    store: CartStore = Depends(get_optional_cart_store),
    product_service: ProductDataService = Depends(get_product_service)
):
    """
    Add a product to the cart by quantity.

    Anonymous callers get 401 with a login redirect. Out-of-stock products
    and quantities above the available stock are refused with 409. If the
    product is already in the cart, its quantity is increased.
    """
    product = await product_service.fetch_product(request.product_id)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )

    if is_rental_category(product.category) or not is_quantity_category(product.category):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{product.name} cannot be added to the cart by quantity"
        )

    if product.stock == 0:
        raise _out_of_stock(product)

    if request.quantity > product.stock:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "title": "Maximum stock reached",
                "message": f"Only {product.stock} items available in stock.",
                "ceiling": product.stock
            }
        )

    result = await store.add_item(QuantityItem(
        id=product.id,
        name=product.name,
        price=product.price,
        image=product.image,
        quantity=request.quantity,
        category=product.category
    ))
    if not result.applied:
        raise _login_required(result)

    return build_cart_response(store, message=result.message)


@router.post("/rentals", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_rental_to_cart(
    request: RentalRequest,
    store: CartStore = Depends(get_optional_cart_store),
    product_service: ProductDataService = Depends(get_product_service)
):
    """
    Book rental equipment for a date range.

    The line price is the total for the whole range and its quantity is 1.
    Booking the same equipment again replaces the earlier dates.
    """
    product = await product_service.fetch_product(request.product_id)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )

    if not is_rental_category(product.category):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{product.name} is not rental equipment"
        )

    if product.stock == 0:
        raise _out_of_stock(product)

    if request.from_date < date.today():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Rental cannot start in the past"
        )

    quote = quote_rental(product.price, request.from_date, request.to_date)
    if quote is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please select dates. The end date must not be before the start date."
        )

    result = await store.add_item(build_rental_item(product, quote))
    if not result.applied:
        raise _login_required(result)

    return build_cart_response(
        store,
        message=f"{product.name} has been added to your cart for rental from "
                f"{quote.from_date:%b %d, %Y} to {quote.to_date:%b %d, %Y}."
    )


@router.put("/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: str,
    request: UpdateCartItemRequest,
    store: CartStore = Depends(get_cart_store),
    product_service: ProductDataService = Depends(get_product_service)
):
    """
    Update the quantity of an item in the cart.

    A quantity above the available stock is rejected with 409 and the
    cart is left unchanged. Zero or less removes the item.
    """
    if store.get_item(item_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found in cart"
        )

    reconciler = StockReconciler(product_service)
    await reconciler.refresh_for_cart(store)

    result = await reconciler.request_quantity_change(store, item_id, request.quantity)
    if not result.accepted:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "title": result.title,
                "message": result.message,
                "ceiling": result.ceiling
            }
        )

    return build_cart_response(store, reconciler)


@router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_from_cart(
    item_id: str,
    store: CartStore = Depends(get_cart_store)
):
    """
    Remove an item from the cart. Removing an absent item is not an error.
    """
    await store.remove_item(item_id)
    return build_cart_response(store)


@router.delete("", response_model=CartResponse)
async def clear_cart(
    store: CartStore = Depends(get_cart_store)
):
    """
    Clear all items from the cart.
    """
    await store.clear()
    return build_cart_response(store)
