"""CLI commands for managing the catalog directly against the store."""

from __future__ import annotations

import json
from pathlib import Path

import click

from yoshon.application.add_product import AddProductHandler
from yoshon.application.delete_product import DeleteProductHandler
from yoshon.application.replace_catalog import ReplaceCatalogHandler
from yoshon.application.update_product import UpdateProductHandler
from yoshon.domain.exceptions import DomainException
from yoshon.domain.repository.product_repository import ProductRepository
from yoshon.infrastructure.bootstrap import product_repository


def _open_repository() -> ProductRepository:
    try:
        return product_repository()
    except DomainException as exc:
        raise click.ClickException(str(exc))


@click.command("list")
def product_list() -> None:
    """List all products in the catalog."""
    repo = _open_repository()
    try:
        products = repo.list_all()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Brand':<24} {'Product Name':<32} {'Yoshon'}")
    click.echo("-" * 80)
    for p in products:
        click.echo(f"{p.id:<6} {p.brand:<24} {p.product_name:<32} {p.yoshon}")


@click.command("add")
@click.option("--brand", required=True, help="Brand name.")
@click.option("--name", "product_name", required=True, help="Product name.")
@click.option("--yoshon", default=None, help="Yoshon status (default: Status N/A Yet).")
def product_add(brand: str, product_name: str, yoshon: str | None) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(product_repo=_open_repository())

    try:
        change = handler.handle(brand, product_name, yoshon)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    p = change.product
    click.echo(
        f"Product #{p.id} '{p.brand} {p.product_name}' added as '{p.yoshon}' "
        f"({change.total_products} total)"
    )


@click.command("update")
@click.option("--id", "product_id", required=True, type=int, help="Product ID.")
@click.option("--brand", required=True, help="Brand name.")
@click.option("--name", "product_name", required=True, help="Product name.")
@click.option("--yoshon", default=None, help="Yoshon status (default: Status N/A Yet).")
def product_update(product_id: int, brand: str, product_name: str, yoshon: str | None) -> None:
    """Replace a product's Brand, Product Name and Yoshon status."""
    handler = UpdateProductHandler(product_repo=_open_repository())

    try:
        product = handler.handle(product_id, brand, product_name, yoshon)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{product.id} updated to '{product.brand} {product.product_name}' ({product.yoshon})")


@click.command("delete")
@click.option("--id", "product_id", required=True, type=int, help="Product ID.")
def product_delete(product_id: int) -> None:
    """Remove a product from the catalog."""
    handler = DeleteProductHandler(product_repo=_open_repository())

    try:
        change = handler.handle(product_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{product_id} deleted ({change.total_products} remaining)")


@click.command("import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def product_import(source: Path) -> None:
    """Replace the whole catalog with the products in SOURCE.

    SOURCE holds a JSON array of products, or an object with a
    "products" array.
    """
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise click.ClickException(f"{source} is not valid JSON: {exc}")
    entries = data.get("products") if isinstance(data, dict) else data

    handler = ReplaceCatalogHandler(product_repo=_open_repository())
    try:
        total = handler.handle(entries)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Imported {total} product(s) from {source}")
