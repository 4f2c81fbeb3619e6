"""CLI commands for the Order aggregate."""

from __future__ import annotations

from datetime import datetime

import click

from marketplace.application.create_order import PlaceOrderHandler
from marketplace.application.dto import PlaceOrderRequest
from marketplace.application.notifications import (
    OrderEvent,
    OrderEventKind,
    publish_best_effort,
)
from marketplace.application.order_queries import OrderQueries
from marketplace.application.update_order_status import UpdateOrderStatusHandler
from marketplace.domain.exceptions import DomainException
from marketplace.domain.model.actor import Actor, Role
from marketplace.domain.model.order import Order
from marketplace.infrastructure.bootstrap import (
    catalog_store,
    event_publisher,
    order_repository,
)

_ROLES = click.Choice([role.value for role in Role])


def _parse_items(raw: str) -> list[dict]:
    """Parse 'Product:<id>:3,Service:<id>:1' into raw line items."""
    items: list[dict] = []
    for entry in raw.split(","):
        entry = entry.strip()
        parts = entry.split(":")
        if len(parts) != 3:
            raise click.BadParameter(
                f"Invalid item format '{entry}'. Expected 'Type:ItemId:Quantity'."
            )
        item_type, item_id, qty_str = (part.strip() for part in parts)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for item '{item_id}'."
            )
        items.append({"itemId": item_id, "itemType": item_type, "quantity": qty})
    return items


def _display_order(order: Order) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {order.id}  (status={order.status.value})")
    click.echo(f"Buyer:    {order.buyer_id}")
    click.echo(f"Payment:  {order.payment.method} ({order.payment.status.value})")
    click.echo(f"Created:  {order.created_at.strftime('%Y-%m-%d %H:%M UTC')}")
    if order.service_date:
        click.echo(f"Service:  {order.service_date.strftime('%Y-%m-%d %H:%M')}")
    if order.cancellation_reason:
        click.echo(f"Reason:   {order.cancellation_reason}")
    click.echo()
    click.echo(f"  {'Item':<20} {'Type':<8} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*56}")
    for line in order.items:
        click.echo(
            f"  {line.name:<20} {line.item_type.value:<8} {line.quantity.value:>5} "
            f"{str(line.price_at_purchase):>10} {str(line.line_total):>10}"
        )
    click.echo(f"  {'-'*56}")
    click.echo(f"  {'Order Total':<36} {str(order.total_amount):>20}")


@click.command("create")
@click.option("--buyer", required=True, help="Buyer ID placing the order.")
@click.option("--items", required=True, help="Items as 'Type:ItemId:Qty,Type:ItemId:Qty'.")
@click.option("--street", default=None, help="Shipping street.")
@click.option("--city", default=None, help="Shipping city.")
@click.option("--zip", "zip_code", default=None, help="Shipping ZIP code.")
@click.option("--country", default=None, help="Shipping country.")
@click.option("--service-street", default=None, help="Service street.")
@click.option("--service-city", default=None, help="Service city.")
@click.option("--service-zip", default=None, help="Service ZIP code.")
@click.option("--service-country", default=None, help="Service country.")
@click.option("--service-date", type=click.DateTime(), default=None,
              help="When the service should take place (e.g. 2026-11-01T09:00:00).")
@click.option("--notes", default=None, help="Notes to the seller.")
@click.option("--payment-method", default=None, help="Payment method label.")
def order_create(
    buyer: str,
    items: str,
    street: str | None,
    city: str | None,
    zip_code: str | None,
    country: str | None,
    service_street: str | None,
    service_city: str | None,
    service_zip: str | None,
    service_country: str | None,
    service_date: datetime | None,
    notes: str | None,
    payment_method: str | None,
) -> None:
    """Place a new order."""
    shipping = None
    if any((street, city, zip_code, country)):
        shipping = {"street": street, "city": city, "zipCode": zip_code, "country": country}
    service_address = None
    if any((service_street, service_city, service_zip, service_country)):
        service_address = {
            "street": service_street,
            "city": service_city,
            "zipCode": service_zip,
            "country": service_country,
        }

    request = PlaceOrderRequest(
        items=_parse_items(items),
        shipping_address=shipping,
        service_address=service_address,
        service_date=service_date,
        notes_to_seller=notes,
        payment_method=payment_method,
    )
    actor = Actor(id=buyer, role=Role.BUYER)
    handler = PlaceOrderHandler(order_repo=order_repository(), catalog=catalog_store())

    try:
        order = handler.handle(actor, request)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    publish_best_effort(event_publisher(), OrderEvent.of(OrderEventKind.CREATED, order, actor))
    click.echo("Order placed.")
    _display_order(order)


@click.command("show")
@click.option("--id", "order_id", required=True, help="Order ID to display.")
@click.option("--actor", "actor_id", required=True, help="ID of the user asking.")
@click.option("--role", required=True, type=_ROLES, help="Role of the user asking.")
def order_show(order_id: str, actor_id: str, role: str) -> None:
    """Show details of an existing order."""
    queries = OrderQueries(order_repo=order_repository())

    try:
        order = queries.get_by_id(order_id, Actor(id=actor_id, role=Role(role)))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(order)


@click.command("status")
@click.option("--id", "order_id", required=True, help="Order ID to update.")
@click.option("--to", "new_status", required=True, help="New status, e.g. confirmed.")
@click.option("--actor", "actor_id", required=True, help="ID of the seller or admin.")
@click.option("--role", required=True, type=_ROLES, help="Role of the user acting.")
@click.option("--reason", default=None, help="Cancellation reason.")
def order_status(
    order_id: str,
    new_status: str,
    actor_id: str,
    role: str,
    reason: str | None,
) -> None:
    """Move an order to a new status (reserves or releases stock as needed)."""
    actor = Actor(id=actor_id, role=Role(role))
    handler = UpdateOrderStatusHandler(order_repo=order_repository(), catalog=catalog_store())

    try:
        order = handler.handle(order_id, new_status, actor, cancellation_reason=reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    publish_best_effort(
        event_publisher(), OrderEvent.of(OrderEventKind.STATUS_CHANGED, order, actor)
    )
    click.echo(f"Order {order.id} is now {order.status.value}.")


@click.command("list")
@click.option("--buyer", default=None, help="List orders placed by this buyer.")
@click.option("--seller", default=None, help="List orders containing this seller's items.")
def order_list(buyer: str | None, seller: str | None) -> None:
    """List a buyer's orders or a seller's sales."""
    if (buyer is None) == (seller is None):
        raise click.UsageError("Pass exactly one of --buyer or --seller.")

    queries = OrderQueries(order_repo=order_repository())
    try:
        if buyer is not None:
            orders = queries.list_for_buyer(buyer, Actor(id=buyer, role=Role.BUYER))
        else:
            orders = queries.list_for_seller(seller, Actor(id=seller, role=Role.SELLER))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not orders:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':<34} {'Status':<22} {'Total':>10}")
    click.echo("-" * 68)
    for order in orders:
        click.echo(f"{order.id:<34} {order.status.value:<22} {str(order.total_amount):>10}")
