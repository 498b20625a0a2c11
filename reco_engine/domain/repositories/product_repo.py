# reco_engine/domain/repositories/product_repo.py

from __future__ import annotations
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from reco_engine.domain.models.product import Product

# Missing `status` counts as active
ACTIVE_FILTER: Dict[str, Any] = {"status": {"$in": ["active", None]}}


class ProductRepo:
    """
    Catalog repository backed by the 'products' collection.
    Read-only from the engine's point of view; documents are validated into
    Product on the way out.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "products"):
        self.col = db[collection_name]

    async def list_candidates(
        self,
        *,
        category_id: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        limit: int = 100,
    ) -> List[Product]:
        """Active products matching the optional category/price filters, bounded."""
        query: Dict[str, Any] = dict(ACTIVE_FILTER)
        if category_id:
            query["category_id"] = category_id
        price: Dict[str, float] = {}
        if min_price is not None:
            price["$gte"] = min_price
        if max_price is not None:
            price["$lte"] = max_price
        if price:
            query["price"] = price

        cursor = self.col.find(query, {"_id": 0}).limit(limit)
        return [Product.model_validate(doc) async for doc in cursor]

    async def get_by_product_id(self, product_id: str) -> Optional[Product]:
        doc = await self.col.find_one({"product_id": product_id}, {"_id": 0})
        return Product.model_validate(doc) if doc else None

    async def get_many_by_product_ids(self, ids: List[str]) -> List[Product]:
        """Unordered; callers re-order by their own id list."""
        if not ids:
            return []
        cursor = self.col.find({"product_id": {"$in": ids}}, {"_id": 0})
        return [Product.model_validate(doc) async for doc in cursor]
