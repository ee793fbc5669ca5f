"""Starlette app exposing the product catalog as a JSON API.

Reads are public; writes need the shared admin password. Store calls
are blocking, so every one runs in Starlette's thread pool.
"""

from __future__ import annotations

import hmac
import json
from typing import Any

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from yoshon.application.add_product import AddProductHandler
from yoshon.application.check_health import CheckHealthHandler
from yoshon.application.delete_product import DeleteProductHandler
from yoshon.application.replace_catalog import ReplaceCatalogHandler
from yoshon.application.update_product import UpdateProductHandler
from yoshon.domain.exceptions import EntityNotFoundError, StoreError, ValidationError
from yoshon.domain.model.product import BRAND_FIELD, PRODUCT_NAME_FIELD, YOSHON_FIELD
from yoshon.domain.repository.product_repository import ProductRepository
from yoshon.infrastructure.bootstrap import product_repository
from yoshon.infrastructure.config import Settings
from yoshon.infrastructure.logging import get_logger


LOG = get_logger("http")

ADMIN_HEADER = "x-admin-password"

_INVALID_BODY = object()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def _read_body(request: Request) -> Any:
    """Return the decoded JSON body, None when empty, or _INVALID_BODY."""
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return _INVALID_BODY


def _is_admin(request: Request, body: Any, admin_password: str) -> bool:
    supplied: Any = request.headers.get(ADMIN_HEADER)
    if not supplied and isinstance(body, dict):
        supplied = body.get("password")
    if not isinstance(supplied, str) or not supplied:
        return False
    return hmac.compare_digest(supplied.encode("utf-8"), admin_password.encode("utf-8"))


def create_app(
    settings: Settings | None = None,
    *,
    repository: ProductRepository | None = None,
) -> Starlette:
    """Create a Starlette app exposing the product catalog API.

    ``repository`` overrides the store built from ``settings``; opening
    the configured store raises StoreError if the JSON data file is
    missing.
    """

    settings = settings or Settings.from_env()
    repo = repository or product_repository(settings)

    LOG.info("Catalog API using %s store", type(repo).__name__)
    if settings.uses_default_password:
        LOG.warning("ADMIN_PASSWORD is not set; using the development default.")

    async def admin_body(request: Request) -> tuple[Any, JSONResponse | None]:
        # Authorization is decided before the body is validated.
        body = await _read_body(request)
        if not _is_admin(request, body, settings.admin_password):
            return body, _error(401, "Unauthorized")
        if body is _INVALID_BODY:
            return body, _error(400, "Request body must be valid JSON")
        return body, None

    async def list_products(_: Request) -> JSONResponse:
        try:
            products = await run_in_threadpool(repo.list_all)
        except StoreError:
            LOG.exception("Error fetching products")
            return _error(500, "Failed to fetch products")
        return JSONResponse([p.to_dict() for p in products])

    async def get_product(request: Request) -> JSONResponse:
        product_id = request.path_params["product_id"]
        try:
            product = await run_in_threadpool(repo.get_by_id, product_id)
        except StoreError:
            LOG.exception("Error fetching product %s", product_id)
            return _error(500, "Failed to fetch product")
        if product is None:
            return _error(404, "Product not found")
        return JSONResponse(product.to_dict())

    async def add_product(request: Request) -> JSONResponse:
        body, denied = await admin_body(request)
        if denied is not None:
            return denied
        if not isinstance(body, dict):
            return _error(400, "Brand and Product Name are required")

        try:
            change = await run_in_threadpool(
                AddProductHandler(repo).handle,
                body.get(BRAND_FIELD),
                body.get(PRODUCT_NAME_FIELD),
                body.get(YOSHON_FIELD),
            )
        except ValidationError as exc:
            return _error(400, str(exc))
        except StoreError:
            LOG.exception("Error adding product")
            return _error(500, "Failed to add product")

        LOG.info("Added product %s", change.product.id)
        return JSONResponse(
            {
                "message": "Product added successfully",
                "product": change.product.to_dict(),
                "totalProducts": change.total_products,
            },
            status_code=201,
        )

    async def update_product(request: Request) -> JSONResponse:
        product_id = request.path_params["product_id"]
        body, denied = await admin_body(request)
        if denied is not None:
            return denied
        if not isinstance(body, dict):
            return _error(400, "Brand and Product Name are required")

        try:
            product = await run_in_threadpool(
                UpdateProductHandler(repo).handle,
                product_id,
                body.get(BRAND_FIELD),
                body.get(PRODUCT_NAME_FIELD),
                body.get(YOSHON_FIELD),
            )
        except ValidationError as exc:
            return _error(400, str(exc))
        except EntityNotFoundError:
            return _error(404, "Product not found")
        except StoreError:
            LOG.exception("Error updating product %s", product_id)
            return _error(500, "Failed to update product")

        LOG.info("Updated product %s", product_id)
        return JSONResponse(
            {"message": "Product updated successfully", "product": product.to_dict()}
        )

    async def delete_product(request: Request) -> JSONResponse:
        product_id = request.path_params["product_id"]
        _, denied = await admin_body(request)
        if denied is not None:
            return denied

        try:
            change = await run_in_threadpool(DeleteProductHandler(repo).handle, product_id)
        except EntityNotFoundError:
            return _error(404, "Product not found")
        except StoreError:
            LOG.exception("Error deleting product %s", product_id)
            return _error(500, "Failed to delete product")

        LOG.info("Deleted product %s", product_id)
        return JSONResponse(
            {
                "message": "Product deleted successfully",
                "product": change.product.to_dict(),
                "totalProducts": change.total_products,
            }
        )

    async def replace_products(request: Request) -> JSONResponse:
        body, denied = await admin_body(request)
        if denied is not None:
            return denied
        # Accept a bare array or the {"products": [...]} envelope.
        entries = body.get("products") if isinstance(body, dict) else body

        try:
            total = await run_in_threadpool(ReplaceCatalogHandler(repo).handle, entries)
        except ValidationError as exc:
            return _error(400, str(exc))
        except StoreError:
            LOG.exception("Error importing products")
            return _error(500, "Failed to import products")

        LOG.info("Catalog replaced with %d product(s)", total)
        return JSONResponse(
            {"message": "Products imported successfully", "totalProducts": total}
        )

    async def health(_: Request) -> JSONResponse:
        try:
            report = await run_in_threadpool(CheckHealthHandler(repo).handle)
        except StoreError:
            LOG.exception("Health check error")
            return JSONResponse(
                {"status": "error", "message": "Product store unavailable"},
                status_code=500,
            )
        return JSONResponse(
            {
                "status": report.status,
                "totalProducts": report.total_products,
                "timestamp": report.timestamp,
            }
        )

    async def http_error(_: Request, exc: HTTPException) -> JSONResponse:
        return _error(exc.status_code, exc.detail)

    async def server_error(_: Request, exc: Exception) -> JSONResponse:
        LOG.error("Server error: %r", exc)
        return _error(500, "Internal server error")

    routes = [
        Route("/api/health", health, methods=["GET"]),
        Route("/api/products", list_products, methods=["GET"]),
        Route("/api/products", add_product, methods=["POST"]),
        Route("/api/products/bulk/replace", replace_products, methods=["POST"]),
        Route("/api/products/import/json", replace_products, methods=["POST"]),
        Route("/api/products/{product_id:int}", get_product, methods=["GET"]),
        Route("/api/products/{product_id:int}", update_product, methods=["PUT"]),
        Route("/api/products/{product_id:int}", delete_product, methods=["DELETE"]),
    ]

    app = Starlette(
        debug=False,
        routes=routes,
        exception_handlers={HTTPException: http_error, Exception: server_error},
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.repository = repo
    return app


__all__ = ["create_app"]
