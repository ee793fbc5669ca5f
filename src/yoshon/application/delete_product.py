"""Application service: Delete Product use case."""

from __future__ import annotations

from yoshon.application.dto import CatalogChangeDTO
from yoshon.domain.exceptions import EntityNotFoundError
from yoshon.domain.repository.product_repository import ProductRepository


class DeleteProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(self, product_id: int) -> CatalogChangeDTO:
        removed = self._product_repo.delete(product_id)
        if removed is None:
            raise EntityNotFoundError(f"Product with ID '{product_id}' not found")
        return CatalogChangeDTO(product=removed, total_products=self._product_repo.count())
