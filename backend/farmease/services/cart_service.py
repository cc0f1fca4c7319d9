import logging
import math
from decimal import Decimal
from typing import List, Optional

from pydantic import ValidationError

from farmease.config.checkout_config import CHECKOUT_CONFIG
from farmease.core.config import settings
from farmease.core.security import AuthSession
from farmease.models.cart import LineItem, QuantityItem, RentalItem, dump_line_items, load_line_items
from farmease.schemas.cart import AddItemResult, AddOutcome
from farmease.services.storage import ClientStorage
from farmease.utils.pricing import parse_price, exact_amount, to_minor_units, from_minor_units

logger = logging.getLogger(__name__)


class CartStore:
    """
    Cart of the current session.

    Holds the ordered line items and re-persists the whole collection to
    durable client storage after every mutation. Construct with `load()`
    so the stored snapshot is restored first.
    """

    def __init__(
        self,
        storage: ClientStorage,
        session: Optional[AuthSession] = None,
        storage_key: str = CHECKOUT_CONFIG["cart_storage_key"]
    ):
        self.storage = storage
        self.session = session
        self.storage_key = storage_key
        self._items: List[LineItem] = []

    @classmethod
    async def load(
        cls,
        storage: ClientStorage,
        session: Optional[AuthSession] = None
    ) -> "CartStore":
        """Create a store and restore the persisted snapshot."""
        store = cls(storage, session)
        await store.restore()
        return store

    @property
    def items(self) -> List[LineItem]:
        return list(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def get_item(self, item_id: str) -> Optional[LineItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    async def restore(self) -> None:
        """Load the stored snapshot, discarding it when it cannot be parsed."""
        raw = await self.storage.get(self.storage_key)
        if raw is None:
            self._items = []
            return

        try:
            items = load_line_items(raw)
        except ValidationError as e:
            await self._discard_snapshot(f"Failed to parse stored cart, starting empty: {str(e)}")
            return

        if len({item.id for item in items}) != len(items):
            await self._discard_snapshot("Stored cart has duplicate line items, starting empty")
            return

        self._items = items

    async def _discard_snapshot(self, reason: str) -> None:
        logger.error(reason)
        await self.storage.remove(self.storage_key)
        self._items = []

    async def _persist(self) -> None:
        await self.storage.set(self.storage_key, dump_line_items(self._items))

    async def add_item(self, item: LineItem) -> AddItemResult:
        """
        Add a line item.

        Refused without a signed-in session. An id already in the cart has
        its quantity increased by the requested quantity; a rental booking
        for an id already in the cart replaces the earlier booking.
        """
        if self.session is None or not self.session.is_authenticated:
            return AddItemResult(
                outcome=AddOutcome.LOGIN_REQUIRED,
                title="Login Required",
                message="Please login to add items to your cart",
                redirect_to=settings.LOGIN_PATH
            )

        index = next((i for i, existing in enumerate(self._items) if existing.id == item.id), None)

        if index is None:
            self._items.append(item.model_copy())
            result = AddItemResult(
                outcome=AddOutcome.ADDED,
                title="Added to Cart",
                message=f"{item.name} added to your cart"
            )
        else:
            existing = self._items[index]
            if isinstance(existing, QuantityItem) and isinstance(item, QuantityItem):
                self._items[index] = existing.model_copy(
                    update={"quantity": existing.quantity + item.quantity}
                )
            else:
                self._items[index] = item.model_copy()
            result = AddItemResult(
                outcome=AddOutcome.QUANTITY_UPDATED,
                title="Cart Updated",
                message=f"{item.name} quantity updated in your cart"
            )

        await self._persist()
        return result

    async def remove_item(self, item_id: str) -> None:
        """Remove a line item; no-op when absent."""
        self._items = [item for item in self._items if item.id != item_id]
        await self._persist()

    async def update_quantity(self, item_id: str, quantity: int) -> None:
        """
        Replace the quantity of a line item.

        Zero or less removes the item. Stock ceilings are the caller's
        concern. Rental lines always stay at quantity 1.
        """
        if quantity <= 0:
            await self.remove_item(item_id)
            return

        updated = []
        for item in self._items:
            if item.id == item_id and isinstance(item, QuantityItem):
                item = item.model_copy(update={"quantity": quantity})
            elif item.id == item_id and isinstance(item, RentalItem):
                logger.debug(f"Ignoring quantity change for rental line {item_id}")
            updated.append(item)
        self._items = updated
        await self._persist()

    async def clear(self) -> None:
        """Empty the cart."""
        self._items = []
        await self._persist()

    def get_total_minor_units(self) -> int:
        """Sum of price * quantity, rounded to paise once; unparseable prices count as 0."""
        total = Decimal(0)
        for item in self._items:
            amount = parse_price(item.price)
            if math.isnan(amount):
                logger.warning(f"Unparseable price {item.price!r} for cart item {item.id}, counting as 0")
                continue
            if isinstance(item, RentalItem):
                # Booking total was computed once, at add time
                total += exact_amount(amount)
            else:
                total += exact_amount(amount, item.quantity)
        return to_minor_units(total)

    def get_total(self) -> float:
        """Cart total amount."""
        return from_minor_units(self.get_total_minor_units())

    def get_total_item_count(self) -> int:
        """Sum of quantities across all line items."""
        return sum(item.quantity for item in self._items)
