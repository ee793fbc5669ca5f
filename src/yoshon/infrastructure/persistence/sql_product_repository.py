"""SQL-table-backed implementation of ProductRepository.

Uses SQLAlchemy Core against a single ``products`` table. Each call
checks a connection out of the engine's pool and returns it when done;
nothing is held across calls.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
    delete,
    func,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from yoshon.domain.exceptions import StoreError
from yoshon.domain.model.product import (
    BRAND_FIELD,
    PRODUCT_NAME_FIELD,
    YOSHON_FIELD,
    Product,
)
from yoshon.domain.repository.product_repository import ProductRepository
from yoshon.infrastructure.logging import get_logger

LOG = get_logger("sql-store")

metadata = MetaData()

products_table = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(BRAND_FIELD, String(255), nullable=False),
    Column(PRODUCT_NAME_FIELD, String(255), nullable=False),
    Column(YOSHON_FIELD, String(255), nullable=False),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
    Column(
        "updated_at",
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    ),
    Index("idx_brand", BRAND_FIELD),
    UniqueConstraint(BRAND_FIELD, PRODUCT_NAME_FIELD, name="unique_product"),
    mysql_engine="InnoDB",
    mysql_charset="utf8mb4",
    mysql_collate="utf8mb4_unicode_ci",
)

_c = products_table.c


def create_database_if_missing(server_engine: Engine, name: str) -> None:
    """Run CREATE DATABASE IF NOT EXISTS on a server-level MySQL engine."""
    quoted = server_engine.dialect.identifier_preparer.quote_identifier(name)
    with server_engine.begin() as conn:
        conn.execute(text(f"CREATE DATABASE IF NOT EXISTS {quoted}"))


class SqlProductRepository(ProductRepository):

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_schema(self) -> None:
        """Create the products table if it does not exist yet."""
        with self._translate_errors("create the products table"):
            metadata.create_all(self.engine, tables=[products_table], checkfirst=True)

    # --- ProductRepository interface ------------------------------------------

    def list_all(self) -> list[Product]:
        stmt = select(_c.id, _c[BRAND_FIELD], _c[PRODUCT_NAME_FIELD], _c[YOSHON_FIELD]).order_by(_c.id)
        with self._translate_errors("list products"):
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).fetchall()
        return [self._to_domain(r) for r in rows]

    def get_by_id(self, product_id: int) -> Product | None:
        with self._translate_errors("fetch a product"):
            with self.engine.connect() as conn:
                row = conn.execute(self._select_one(product_id)).fetchone()
        return self._to_domain(row) if row else None

    def add(self, product: Product) -> Product:
        stmt = insert(products_table).values(self._to_values(product))
        with self._translate_errors("add a product"):
            with self.engine.begin() as conn:
                result = conn.execute(stmt)
                product.id = int(result.inserted_primary_key[0])
        return product

    def save(self, product: Product) -> bool:
        stmt = (
            update(products_table)
            .where(_c.id == product.id)
            .values(self._to_values(product))
        )
        with self._translate_errors("update a product"):
            with self.engine.begin() as conn:
                result = conn.execute(stmt)
        return result.rowcount > 0

    def delete(self, product_id: int) -> Product | None:
        with self._translate_errors("delete a product"):
            with self.engine.begin() as conn:
                row = conn.execute(self._select_one(product_id)).fetchone()
                result = conn.execute(delete(products_table).where(_c.id == product_id))
                if result.rowcount == 0:
                    return None
        return self._to_domain(row)

    def replace_all(self, products: list[Product]) -> int:
        rows = [self._to_values(p) for p in products]

        # One transaction: a failing row rolls the table back to its old state.
        # IDs come from the table's own sequence so later inserts never collide.
        with self._translate_errors("replace the catalog"):
            with self.engine.begin() as conn:
                conn.execute(delete(products_table))
                if rows:
                    conn.execute(insert(products_table), rows)
                new_ids = conn.execute(select(_c.id).order_by(_c.id)).scalars().all()
        for product, new_id in zip(products, new_ids):
            product.id = int(new_id)
        return len(new_ids)

    def count(self) -> int:
        with self._translate_errors("count products"):
            with self.engine.connect() as conn:
                total = conn.execute(select(func.count()).select_from(products_table)).scalar_one()
        return int(total)

    # --- Helpers --------------------------------------------------------------

    @staticmethod
    def _select_one(product_id: int):
        return select(
            _c.id, _c[BRAND_FIELD], _c[PRODUCT_NAME_FIELD], _c[YOSHON_FIELD]
        ).where(_c.id == product_id)

    @staticmethod
    def _to_values(product: Product) -> dict[str, Any]:
        return {
            BRAND_FIELD: product.brand,
            PRODUCT_NAME_FIELD: product.product_name,
            YOSHON_FIELD: product.yoshon,
        }

    @staticmethod
    def _to_domain(row: Row) -> Product:
        m = row._mapping
        return Product(
            id=int(m["id"]),
            brand=m[BRAND_FIELD],
            product_name=m[PRODUCT_NAME_FIELD],
            yoshon=m[YOSHON_FIELD],
        )

    @contextmanager
    def _translate_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            LOG.error("Could not %s: %s", action, exc.orig)
            raise StoreError(f"Could not {action}: duplicate Brand and Product Name") from exc
        except SQLAlchemyError as exc:
            LOG.error("Could not %s: %s", action, exc)
            raise StoreError(f"Could not {action}") from exc
