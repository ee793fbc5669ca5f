"""Application service: Update Product use case."""

from __future__ import annotations

from typing import Any

from yoshon.domain.exceptions import EntityNotFoundError
from yoshon.domain.model.product import Product
from yoshon.domain.repository.product_repository import ProductRepository


class UpdateProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(
        self, product_id: int, brand: Any, product_name: Any, yoshon: Any = None
    ) -> Product:
        """Replace Brand, Product Name and Yoshon of an existing product.

        Input is validated before the store is touched; existence is
        decided by the store's write itself, not by a prior read.
        """
        product = Product.create(brand, product_name, yoshon)
        product.id = product_id

        if not self._product_repo.save(product):
            raise EntityNotFoundError(f"Product with ID '{product_id}' not found")
        return product
