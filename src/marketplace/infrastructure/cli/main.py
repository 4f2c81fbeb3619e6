import click
import uvicorn

from marketplace.infrastructure.cli.catalog_commands import catalog_add, catalog_show
from marketplace.infrastructure.cli.order_commands import (
    order_create,
    order_list,
    order_show,
    order_status,
)
from marketplace.infrastructure.config import Settings
from marketplace.infrastructure.logging_config import setup_logging


@click.group()
def cli() -> None:
    """Marketplace Orders"""
    setup_logging()


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def catalog() -> None:
    """Manage the local catalog."""


@cli.command()
@click.option("--host", default=None, help="Bind address (default from MARKETPLACE_HOST).")
@click.option("--port", type=int, default=None, help="Port (default from MARKETPLACE_PORT).")
def serve(host: str | None, port: int | None) -> None:
    """Run the HTTP API."""
    from marketplace.infrastructure.http.app import create_app

    settings = Settings.from_env()
    uvicorn.run(
        create_app(settings=settings),
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )


# Register subcommands
order.add_command(order_create)
order.add_command(order_list)
order.add_command(order_show)
order.add_command(order_status)
catalog.add_command(catalog_add)
catalog.add_command(catalog_show)
