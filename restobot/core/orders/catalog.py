"""
Read-only access to the menu.
"""

from typing import Optional

from sqlalchemy import select

from restobot.config import settings
from restobot.core.errors import NotFound
from restobot.core.orders.models import CatalogPage
from restobot.db.models import Category, Product
from restobot.db.sqlite import Database

# Telegram keyboards get unwieldy past this
MAX_PAGE_SIZE = 20


class CatalogReader:
    """Queries for active categories and products."""

    def __init__(self, database: Database, page_size: Optional[int] = None):
        self._db = database
        self.page_size = min(page_size or settings.catalog_page_size, MAX_PAGE_SIZE)

    async def list_categories(self) -> list[Category]:
        """Active categories by sort order."""
        async with self._db.session() as session:
            result = await session.execute(
                select(Category)
                .where(Category.is_active.is_(True))
                .order_by(Category.sort_order.asc(), Category.name.asc())
            )
            return list(result.scalars().all())

    async def get_category(self, category_id: int) -> Category:
        async with self._db.session() as session:
            category = await session.get(Category, category_id)
        if category is None or not category.is_active:
            raise NotFound(f"Category {category_id} not found")
        return category

    async def list_products(
        self,
        category_id: Optional[int] = None,
        offset: int = 0,
    ) -> CatalogPage:
        """
        Active products ordered by name, one page at a time.

        Args:
            category_id: Restrict to one category
            offset: Number of products to skip

        Returns:
            CatalogPage with at most page_size products
        """
        offset = max(offset, 0)
        query = select(Product).where(Product.is_active.is_(True))
        if category_id is not None:
            query = query.where(Product.category_id == category_id)
        # One extra row tells whether another page exists
        query = query.order_by(Product.name.asc(), Product.id.asc()).offset(offset).limit(
            self.page_size + 1
        )

        async with self._db.session() as session:
            result = await session.execute(query)
            products = list(result.scalars().all())

        return CatalogPage(
            items=products[: self.page_size],
            offset=offset,
            has_more=len(products) > self.page_size,
            page_size=self.page_size,
        )

    async def get_product(self, product_id: int) -> Product:
        """Active product by id, or NotFound."""
        async with self._db.session() as session:
            product = await session.get(Product, product_id)
        if product is None or not product.is_active:
            raise NotFound(f"Product {product_id} not found")
        return product
