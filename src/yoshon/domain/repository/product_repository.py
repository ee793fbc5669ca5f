"""Abstract repository for the Product entity.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON file, SQL table)
live in the infrastructure layer.

Implementations raise StoreError when the backing store fails.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from yoshon.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product, ordered by ID."""

    @abstractmethod
    def get_by_id(self, product_id: int) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def add(self, product: Product) -> Product:
        """Persist a new product and assign its ID."""

    @abstractmethod
    def save(self, product: Product) -> bool:
        """Overwrite an existing product.

        Returns False when no product with that ID exists.
        """

    @abstractmethod
    def delete(self, product_id: int) -> Product | None:
        """Remove a product and return it, or None if not found."""

    @abstractmethod
    def replace_all(self, products: list[Product]) -> int:
        """Atomically swap the whole catalog; returns the new total.

        The store assigns fresh IDs, increasing in the given order.
        """

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored products."""
