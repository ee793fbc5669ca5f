"""Application service: Replace Catalog (bulk import) use case."""

from __future__ import annotations

from typing import Any

from yoshon.domain.exceptions import ValidationError
from yoshon.domain.model.product import Product
from yoshon.domain.repository.product_repository import ProductRepository


class ReplaceCatalogHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(self, entries: Any) -> int:
        """Discard the whole catalog and load ``entries`` in its place.

        Entries are trusted beyond their shape: missing names are stored
        as empty strings and a missing Yoshon gets the default. Every
        entry is checked before the store is touched, and the swap
        itself is atomic, so a rejected import leaves the old catalog.
        Returns the new total.
        """
        if not isinstance(entries, list):
            raise ValidationError("Products must be an array")

        products = []
        for position, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise ValidationError(f"Product at position {position} must be an object")
            products.append(Product.imported(entry))

        return self._product_repo.replace_all(products)
