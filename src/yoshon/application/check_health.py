"""Application service: Catalog Health use case."""

from __future__ import annotations

from datetime import datetime, timezone

from yoshon.application.dto import HealthDTO
from yoshon.domain.repository.product_repository import ProductRepository


class CheckHealthHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(self) -> HealthDTO:
        """Count the catalog; a StoreError from the count propagates."""
        total = self._product_repo.count()
        return HealthDTO(
            status="ok",
            total_products=total,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
