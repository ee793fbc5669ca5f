"""CLI commands for running the API and preparing its store."""

from __future__ import annotations

import click
from sqlalchemy.exc import SQLAlchemyError

from yoshon.domain.exceptions import DomainException
from yoshon.infrastructure.bootstrap import build_engine
from yoshon.infrastructure.config import Settings
from yoshon.infrastructure.logging import get_logger
from yoshon.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from yoshon.infrastructure.persistence.sql_product_repository import (
    SqlProductRepository,
    create_database_if_missing,
)

LOG = get_logger("cli")


def _settings() -> Settings:
    try:
        return Settings.from_env()
    except DomainException as exc:
        raise click.ClickException(str(exc))


@click.command("serve")
@click.option("--host", default=None, help="Bind address (default: HOST or 127.0.0.1).")
@click.option("--port", default=None, type=int, help="Bind port (default: PORT or 3000).")
@click.option("--log-level", default="info", help="uvicorn log level.")
def serve(host: str | None, port: int | None, log_level: str) -> None:
    """Run the catalog HTTP API."""
    import uvicorn

    from yoshon.infrastructure.http.app import create_app

    settings = _settings()
    try:
        app = create_app(settings)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    uvicorn.run(
        app,
        host=host or settings.host,
        port=port or settings.port,
        log_level=log_level,
    )


@click.command("init-db")
def init_db() -> None:
    """Create the database and the products table if missing."""
    settings = _settings()

    try:
        if not settings.database_url:
            server_engine = build_engine(settings, with_database=False)
            try:
                create_database_if_missing(server_engine, settings.db_name)
            finally:
                server_engine.dispose()
            click.echo(f"Database '{settings.db_name}' created/exists")

        engine = build_engine(settings)
        try:
            repo = SqlProductRepository(engine)
            repo.create_schema()
            click.echo("Products table created/exists")
            total = repo.count()
        finally:
            engine.dispose()
    except (DomainException, SQLAlchemyError) as exc:
        LOG.error("Database initialization failed: %s", exc)
        raise click.ClickException(f"Error initializing database: {exc}")

    if total == 0:
        click.echo("Table is empty. Add products via the API or import from JSON.")
    else:
        click.echo(f"Table contains {total} products")
    click.echo("Database initialized successfully!")


@click.command("init-store")
def init_store() -> None:
    """Create an empty JSON data file if missing."""
    settings = _settings()
    try:
        created = JsonProductRepository.initialize(settings.data_file)
    except OSError as exc:
        raise click.ClickException(f"Could not create {settings.data_file}: {exc}")

    if created:
        click.echo(f"Created empty catalog at {settings.data_file}")
    else:
        click.echo(f"{settings.data_file} already exists")
