import logging
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import IngestFailed
from app.models.product import Product
from app.schemas.product import ProductResponse, ProductRow

logger = logging.getLogger(__name__)

products_table = Product.__table__

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class ProductService:
    """Store-side product operations. Callers own the session and its transaction."""

    @staticmethod
    async def list_products(session: AsyncSession) -> List[ProductResponse]:
        """List every product ordered by name.

        Rows that do not validate are logged and skipped so a single bad row
        cannot fail the whole listing.
        """
        result = await session.execute(
            select(products_table).order_by(products_table.c.name.asc())
        )
        products = []
        for row in result:
            try:
                products.append(ProductResponse.model_validate(dict(row._mapping)))
            except ValidationError as e:
                logger.warning("Skipping malformed product row %s: %s", row._mapping.get("id"), e)
        logger.info("Retrieved %d products from the database", len(products))
        return products

    @staticmethod
    async def get_product_by_name(session: AsyncSession, name: str) -> Optional[ProductResponse]:
        """Get a product by its exact name."""
        result = await session.execute(
            select(products_table).where(products_table.c.name == name)
        )
        row = result.first()
        if row is None:
            return None
        return ProductResponse.model_validate(dict(row._mapping))

    @staticmethod
    async def upsert_product(session: AsyncSession, row: ProductRow) -> ProductResponse:
        """Insert a product, or update the existing product with the same name.

        On a name conflict the stored id is kept and the row's id is dropped.
        The product is read back afterwards so the caller sees the resolved id,
        timestamps and stock flag as the database stored them.
        """
        dialect_name = session.get_bind().dialect.name
        try:
            insert = _INSERT_BY_DIALECT[dialect_name]
        except KeyError:
            raise IngestFailed(f"upsert is not supported on {dialect_name}") from None

        stmt = insert(products_table).values(
            id=row.id,
            name=row.name,
            image=row.image,
            price=row.price,
            qty=row.qty,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[products_table.c.name],
            set_={
                "image": stmt.excluded.image,
                "price": stmt.excluded.price,
                "qty": stmt.excluded.qty,
                "updated_at": func.now(),
                "out_of_stock": stmt.excluded.qty == 0,
            },
        )
        await session.execute(stmt)

        stored = await ProductService.get_product_by_name(session, row.name)
        if stored is None:
            raise LookupError(f"product '{row.name}' missing after upsert")
        return stored
