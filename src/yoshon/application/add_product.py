"""Application service: Add Product use case."""

from __future__ import annotations

from typing import Any

from yoshon.application.dto import CatalogChangeDTO
from yoshon.domain.model.product import Product
from yoshon.domain.repository.product_repository import ProductRepository


class AddProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(self, brand: Any, product_name: Any, yoshon: Any = None) -> CatalogChangeDTO:
        """Add a new product to the catalog.

        Yoshon falls back to the "Status N/A Yet" sentinel when omitted.
        """
        product = self._product_repo.add(Product.create(brand, product_name, yoshon))
        return CatalogChangeDTO(product=product, total_products=self._product_repo.count())
