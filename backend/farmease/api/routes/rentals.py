from fastapi import APIRouter, Depends, HTTPException, status

from farmease.api.deps import get_product_service
from farmease.config.checkout_config import is_rental_category
from farmease.schemas.cart import RentalRequest, RentalQuoteResponse
from farmease.services.product_service import ProductDataService
from farmease.services.rental_service import quote_rental

router = APIRouter()


@router.post("/quote", response_model=RentalQuoteResponse)
async def get_rental_quote(
    request: RentalRequest,
    product_service: ProductDataService = Depends(get_product_service)
):
    """
    Price a rental for a date range (public endpoint).

    Both dates count as rental days.
    """
    product = await product_service.fetch_product(request.product_id)
    if not product or not is_rental_category(product.category):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Rental equipment not found"
        )

    quote = quote_rental(product.price, request.from_date, request.to_date)
    if quote is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The end date must not be before the start date"
        )

    return RentalQuoteResponse(
        product_id=product.id,
        daily_rate=quote.daily_rate,
        from_date=quote.from_date,
        to_date=quote.to_date,
        total_days=quote.total_days,
        total_price=quote.total_price,
        total_display=quote.total_display
    )
