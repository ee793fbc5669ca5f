"""Product entity.

The catalog holds a single kind of record: a branded product tagged
with its Yoshon status. Products are created, fully replaced and
removed by admins; there is no partial update.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from yoshon.domain.exceptions import ValidationError

DEFAULT_YOSHON = "Status N/A Yet"

# Field names as they appear on the wire and in storage.
BRAND_FIELD = "Brand"
PRODUCT_NAME_FIELD = "Product Name"
YOSHON_FIELD = "Yoshon"


def _present(value: Any) -> bool:
    return isinstance(value, str) and value != ""


@dataclass
class Product:
    """A product in the catalog.

    ``id`` is None until a repository assigns one on creation; after
    that it never changes.
    """

    id: int | None
    brand: str
    product_name: str
    yoshon: str = DEFAULT_YOSHON

    @classmethod
    def create(cls, brand: Any, product_name: Any, yoshon: Any = None) -> Product:
        """Build a new, not yet persisted product from raw input."""
        product = cls(id=None, brand="", product_name="")
        product.revise(brand, product_name, yoshon)
        return product

    @classmethod
    def imported(cls, raw: dict[str, Any]) -> Product:
        """Build a product from a bulk import entry.

        Import callers are trusted: missing names become empty strings
        instead of being rejected.
        """
        return cls(
            id=None,
            brand=str(raw.get(BRAND_FIELD) or ""),
            product_name=str(raw.get(PRODUCT_NAME_FIELD) or ""),
            yoshon=str(raw.get(YOSHON_FIELD) or DEFAULT_YOSHON),
        )

    def revise(self, brand: Any, product_name: Any, yoshon: Any = None) -> None:
        """Replace all editable fields at once.

        Names are stored exactly as given; any falsy Yoshon means the
        default status.
        """
        if not _present(brand) or not _present(product_name):
            raise ValidationError("Brand and Product Name are required")

        self.brand = brand
        self.product_name = product_name
        self.yoshon = str(yoshon) if yoshon else DEFAULT_YOSHON

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            BRAND_FIELD: self.brand,
            PRODUCT_NAME_FIELD: self.product_name,
            YOSHON_FIELD: self.yoshon,
        }
