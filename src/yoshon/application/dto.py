"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry results from the application layer to the HTTP and CLI
adapters without those adapters reaching into repositories.
"""

from __future__ import annotations

from dataclasses import dataclass

from yoshon.domain.model.product import Product


@dataclass(frozen=True)
class CatalogChangeDTO:
    """Output: the product a write touched plus the catalog size after it."""

    product: Product
    total_products: int


@dataclass(frozen=True)
class HealthDTO:
    """Output: liveness report for the catalog store."""

    status: str
    total_products: int
    timestamp: str  # ISO 8601, UTC
