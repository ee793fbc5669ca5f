import click

from yoshon.infrastructure.cli.product_commands import (
    product_add,
    product_delete,
    product_import,
    product_list,
    product_update,
)
from yoshon.infrastructure.cli.server_commands import init_db, init_store, serve


@click.group()
def cli() -> None:
    """Yoshon — product catalog with Yoshon status"""


@cli.group()
def product() -> None:
    """Manage products."""


# Register subcommands
cli.add_command(serve)
cli.add_command(init_db)
cli.add_command(init_store)
product.add_command(product_add)
product.add_command(product_delete)
product.add_command(product_import)
product.add_command(product_list)
product.add_command(product_update)
