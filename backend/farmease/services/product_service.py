import logging
from typing import List, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from farmease.models.product import ProductStock, ProductSummary
from farmease.schemas.stock import StockLevelsOk, DataServiceError, StockLevelsResult
from farmease.utils.helpers import coerce_document_id

logger = logging.getLogger(__name__)


class ProductDataService:
    """Read access to the hosted product catalogue."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def fetch_stock_levels(self, ids: List[str]) -> StockLevelsResult:
        """
        Fetch available stock for a set of product ids in one query.

        Rows that fail validation are skipped; ids with no row are absent
        from the result.
        """
        if not ids:
            return StockLevelsOk(levels={})

        try:
            cursor = self.db.products.find(
                {"_id": {"$in": [coerce_document_id(i) for i in ids]}},
                {"stock": 1}
            )
            rows = await cursor.to_list(length=len(ids))
        except PyMongoError as e:
            logger.error(f"Error fetching stock levels: {str(e)}")
            return DataServiceError(message=str(e))

        levels = {}
        for row in rows:
            try:
                stock = ProductStock.model_validate(row)
            except ValidationError as e:
                logger.warning(f"Skipping invalid stock row {row.get('_id')}: {str(e)}")
                continue
            levels[stock.id] = stock.stock

        return StockLevelsOk(levels=levels)

    async def fetch_product(self, product_id: str) -> Optional[ProductSummary]:
        """Fetch one product with its category name resolved."""
        try:
            product = await self.db.products.find_one({"_id": coerce_document_id(product_id)})
            if not product:
                return None

            category_name = product.get("category", "")
            if product.get("category_id"):
                category = await self.db.categories.find_one(
                    {"_id": coerce_document_id(str(product["category_id"]))}
                )
                if category:
                    category_name = category.get("name", "")
        except PyMongoError as e:
            logger.error(f"Error fetching product {product_id}: {str(e)}")
            return None

        try:
            return ProductSummary.model_validate({**product, "category": category_name})
        except ValidationError as e:
            logger.error(f"Invalid product document {product_id}: {str(e)}")
            return None
