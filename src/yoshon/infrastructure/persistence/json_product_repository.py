"""JSON-file-backed implementation of ProductRepository.

The whole catalog is one JSON array; every write rewrites the file.
Each read-modify-write runs under a lock and lands through a
temporary file renamed over the target, so a reader never sees a
half-written catalog and concurrent writers in this process cannot
drop each other's updates.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

from yoshon.domain.exceptions import StoreError
from yoshon.domain.model.product import (
    BRAND_FIELD,
    DEFAULT_YOSHON,
    PRODUCT_NAME_FIELD,
    YOSHON_FIELD,
    Product,
)
from yoshon.domain.repository.product_repository import ProductRepository
from yoshon.infrastructure.logging import get_logger

LOG = get_logger("json-store")


class JsonProductRepository(ProductRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = Path(file_path)
        self._lock = threading.RLock()
        if not self._file_path.exists():
            raise StoreError(f"Data file not found: {self._file_path}")
        self._backfill_ids()

    @property
    def file_path(self) -> Path:
        return self._file_path

    @staticmethod
    def initialize(file_path: Path) -> bool:
        """Create an empty catalog file; returns False if it already exists."""
        file_path = Path(file_path)
        if file_path.exists():
            return False
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text("[]\n", encoding="utf-8")
        return True

    # --- ProductRepository interface ------------------------------------------

    def list_all(self) -> list[Product]:
        return sorted(
            (self._to_domain(raw) for raw in self._load_raw()),
            key=lambda p: p.id,
        )

    def get_by_id(self, product_id: int) -> Product | None:
        for raw in self._load_raw():
            if raw["id"] == product_id:
                return self._to_domain(raw)
        return None

    def add(self, product: Product) -> Product:
        with self._lock:
            records = self._load_raw()
            product.id = self._next_id(records)
            records.append(self._to_raw(product))
            self._persist_raw(records)
        return product

    def save(self, product: Product) -> bool:
        with self._lock:
            records = self._load_raw()
            for i, raw in enumerate(records):
                if raw["id"] == product.id:
                    records[i] = self._to_raw(product)
                    self._persist_raw(records)
                    return True
        return False

    def delete(self, product_id: int) -> Product | None:
        with self._lock:
            records = self._load_raw()
            for i, raw in enumerate(records):
                if raw["id"] == product_id:
                    removed = records.pop(i)
                    self._persist_raw(records)
                    return self._to_domain(removed)
        return None

    def replace_all(self, products: list[Product]) -> int:
        with self._lock:
            for new_id, product in enumerate(products, start=1):
                product.id = new_id
            self._persist_raw([self._to_raw(p) for p in products])
        return len(products)

    def count(self) -> int:
        return len(self._load_raw())

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(product: Product) -> dict[str, Any]:
        return product.to_dict()

    @staticmethod
    def _to_domain(raw: dict[str, Any]) -> Product:
        return Product(
            id=raw["id"],
            brand=raw.get(BRAND_FIELD, ""),
            product_name=raw.get(PRODUCT_NAME_FIELD, ""),
            yoshon=raw.get(YOSHON_FIELD) or DEFAULT_YOSHON,
        )

    @staticmethod
    def _next_id(records: list[dict[str, Any]]) -> int:
        ids = [r["id"] for r in records if isinstance(r.get("id"), int)]
        return max(ids, default=0) + 1

    # --- File helpers ---------------------------------------------------------

    def _backfill_ids(self) -> None:
        """Give legacy records (written without IDs) a stable ID once."""
        with self._lock:
            records = self._read_file()
            missing = [r for r in records if not isinstance(r.get("id"), int)]
            if not missing:
                return
            next_id = self._next_id(records)
            for raw in missing:
                raw["id"] = next_id
                next_id += 1
            self._persist_raw(records)
            LOG.info("Assigned IDs to %d product(s) in %s", len(missing), self._file_path)

    def _load_raw(self) -> list[dict[str, Any]]:
        with self._lock:
            records = self._read_file()
        for raw in records:
            if not isinstance(raw.get("id"), int):
                raise StoreError(f"Product without an ID in {self._file_path}")
        return records

    def _read_file(self) -> list[dict[str, Any]]:
        try:
            data = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOG.error("Could not read %s: %s", self._file_path, exc)
            raise StoreError(f"Could not read {self._file_path}") from exc
        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            LOG.error("%s does not hold a JSON array of objects", self._file_path)
            raise StoreError(f"{self._file_path} does not hold a JSON array of objects")
        return data

    def _persist_raw(self, records: list[dict[str, Any]]) -> None:
        payload = json.dumps(records, indent=2, ensure_ascii=False) + "\n"
        directory = self._file_path.parent
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=directory, prefix=f".{self._file_path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, self._file_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            LOG.error("Could not write %s: %s", self._file_path, exc)
            raise StoreError(f"Could not write {self._file_path}") from exc
