"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from yoshon.domain.repository.product_repository import ProductRepository
from yoshon.infrastructure.config import BACKEND_JSON, Settings
from yoshon.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from yoshon.infrastructure.persistence.sql_product_repository import (
    SqlProductRepository,
)


def build_engine(settings: Settings, *, with_database: bool = True) -> Engine:
    url = make_url(settings.sqlalchemy_url(with_database=with_database))
    if url.get_backend_name() == "sqlite":
        return create_engine(url)
    return create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=10)


def product_repository(settings: Settings | None = None) -> ProductRepository:
    """Open the configured store.

    Raises StoreError when the JSON backend's data file is missing.
    """
    settings = settings or Settings.from_env()
    if settings.store_backend == BACKEND_JSON:
        return JsonProductRepository(settings.data_file)
    return SqlProductRepository(build_engine(settings))
