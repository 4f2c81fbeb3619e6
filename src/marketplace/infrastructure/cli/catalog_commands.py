"""CLI commands for seeding the local catalog."""

from __future__ import annotations

import click

from marketplace.application.manage_catalog import AddCatalogItemHandler
from marketplace.domain.exceptions import DomainException
from marketplace.infrastructure.bootstrap import catalog_store


@click.command("add")
@click.option("--type", "item_type", required=True,
              type=click.Choice(["Product", "Service"]), help="Item type.")
@click.option("--name", required=True, help="Item name.")
@click.option("--price", required=True, help="Unit price (e.g. 15.00).")
@click.option("--seller", required=True, help="Seller ID owning the item.")
@click.option("--stock", type=int, default=None, help="Units in stock (Products only).")
@click.option("--image", "images", multiple=True, help="Image URL; repeatable.")
def catalog_add(
    item_type: str,
    name: str,
    price: str,
    seller: str,
    stock: int | None,
    images: tuple[str, ...],
) -> None:
    """Add a Product or Service to the catalog."""
    handler = AddCatalogItemHandler(catalog=catalog_store())

    try:
        item = handler.handle(
            item_type=item_type,
            name=name,
            price=price,
            seller_id=seller,
            stock=stock,
            images=list(images),
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{item.item_type.value} {item.id} '{item.name}' added at {item.price}")


@click.command("show")
def catalog_show() -> None:
    """List all catalog items with their stock."""
    items = catalog_store().list_all()

    if not items:
        click.echo("No catalog items found.")
        return

    click.echo(f"{'ID':<34} {'Type':<8} {'Name':<20} {'Price':>10} {'Stock':>7}")
    click.echo("-" * 83)
    for item in items:
        stock = "-" if item.stock is None else str(item.stock)
        click.echo(
            f"{item.id:<34} {item.item_type.value:<8} {item.name:<20} "
            f"{str(item.price):>10} {stock:>7}"
        )
