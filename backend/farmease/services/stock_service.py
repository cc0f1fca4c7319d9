import logging
from typing import Iterable

from farmease.models.cart import LineItem
from farmease.schemas.cart import QuantityChangeResult
from farmease.schemas.stock import StockSnapshot, DataServiceError
from farmease.services.cart_service import CartStore
from farmease.services.product_service import ProductDataService

logger = logging.getLogger(__name__)


class StockReconciler:
    """
    Client-side stock ceilings for cart quantities.

    Advisory only: the snapshot is refreshed when the cart is viewed and is
    not re-checked at checkout, so the catalogue may have less stock by the
    time the order is placed.
    """

    def __init__(self, data_service: ProductDataService):
        self.data_service = data_service
        self.snapshot = StockSnapshot()

    async def refresh(self, ids: Iterable[str]) -> StockSnapshot:
        """Fetch current stock for the given ids with a single lookup."""
        ids = list(dict.fromkeys(ids))
        if not ids:
            self.snapshot = StockSnapshot()
            return self.snapshot

        result = await self.data_service.fetch_stock_levels(ids)
        if isinstance(result, DataServiceError):
            # No known ceilings until the next successful refresh
            logger.error(f"Stock lookup failed: {result.message}")
            self.snapshot = StockSnapshot()
        else:
            self.snapshot = StockSnapshot(levels=result.levels)
        return self.snapshot

    async def refresh_for_cart(self, store: CartStore) -> StockSnapshot:
        return await self.refresh(item.id for item in store.items)

    async def request_quantity_change(
        self,
        store: CartStore,
        item_id: str,
        requested_quantity: int
    ) -> QuantityChangeResult:
        """
        Change a line quantity unless it exceeds the known stock.

        Ids with no known stock have no ceiling.
        """
        ceiling = self.snapshot.ceiling(item_id)
        if ceiling is not None and requested_quantity > ceiling:
            logger.info(f"Quantity {requested_quantity} for {item_id} exceeds stock {ceiling}")
            return QuantityChangeResult(
                accepted=False,
                ceiling=ceiling,
                title="Maximum stock reached",
                message=f"Only {ceiling} items available in stock."
            )

        await store.update_quantity(item_id, requested_quantity)
        return QuantityChangeResult(accepted=True, ceiling=ceiling)

    def at_ceiling(self, item: LineItem) -> bool:
        """True when the line has reached its known stock."""
        ceiling = self.snapshot.ceiling(item.id)
        # Zero stock gives no hint, matching the storefront
        return bool(ceiling) and item.quantity >= ceiling
