"""FastAPI entry point for the order API.

Identity is established upstream: the gateway authenticates the caller and
forwards ``X-Actor-Id`` and ``X-Actor-Role``, which are trusted as is.

Route handlers are plain ``def`` functions; FastAPI runs them in its thread
pool, so concurrent requests reach the repositories from several threads.
Notifications are queued as background tasks and run after the response
has been produced.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, Header, HTTPException

from marketplace.application.create_order import PlaceOrderHandler
from marketplace.application.notifications import (
    OrderEvent,
    OrderEventKind,
    OrderEventPublisher,
    publish_best_effort,
)
from marketplace.application.order_queries import OrderQueries
from marketplace.application.update_order_status import UpdateOrderStatusHandler
from marketplace.domain.exceptions import ValidationError
from marketplace.domain.model.actor import Actor, Role
from marketplace.domain.repository.catalog_store import CatalogStore
from marketplace.domain.repository.order_repository import OrderRepository
from marketplace.infrastructure import bootstrap
from marketplace.infrastructure.config import Settings
from marketplace.infrastructure.http.errors import register_error_handlers
from marketplace.infrastructure.http.schemas import (
    CreateOrderBody,
    UpdateStatusBody,
    order_list,
    order_to_json,
    success,
)

log = logging.getLogger(__name__)


def current_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> Actor:
    if not x_actor_id or not x_actor_role:
        raise HTTPException(
            status_code=401,
            detail="You are not logged in! Please log in to get access.",
        )
    try:
        role = Role(x_actor_role.lower())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role: {x_actor_role}") from None
    return Actor(id=x_actor_id, role=role)


def restrict_to(*roles: Role):
    """Dependency that only lets the given roles through."""

    def dependency(actor: Actor = Depends(current_actor)) -> Actor:
        if actor.role not in roles:
            raise HTTPException(
                status_code=403,
                detail="You do not have permission to perform this action.",
            )
        return actor

    return dependency


def _orders_router(
    order_repo: OrderRepository,
    catalog: CatalogStore,
    publisher: OrderEventPublisher,
) -> APIRouter:
    router = APIRouter(prefix="/orders", tags=["orders"])
    place_order = PlaceOrderHandler(order_repo, catalog)
    update_status = UpdateOrderStatusHandler(order_repo, catalog)
    queries = OrderQueries(order_repo)

    def notify(tasks: BackgroundTasks, kind: OrderEventKind, order, actor: Actor) -> None:
        tasks.add_task(publish_best_effort, publisher, OrderEvent.of(kind, order, actor))

    @router.post("", status_code=201)
    def create_order(
        body: CreateOrderBody,
        background_tasks: BackgroundTasks,
        actor: Actor = Depends(restrict_to(Role.BUYER, Role.ADMIN)),
    ):
        order = place_order.handle(actor, body.to_request())
        notify(background_tasks, OrderEventKind.CREATED, order, actor)
        return success(order=order_to_json(order))

    @router.get("")
    def list_orders_by_status(
        status: str,
        actor: Actor = Depends(restrict_to(Role.ADMIN)),
    ):
        return order_list(queries.list_by_status(status, actor))

    @router.get("/my-orders")
    def my_orders(actor: Actor = Depends(restrict_to(Role.BUYER, Role.ADMIN))):
        return order_list(queries.list_for_buyer(actor.id, actor))

    @router.get("/my-sales")
    def my_sales(actor: Actor = Depends(restrict_to(Role.SELLER, Role.ADMIN))):
        return order_list(queries.list_for_seller(actor.id, actor))

    @router.get("/{order_id}")
    def get_order(
        order_id: str,
        background_tasks: BackgroundTasks,
        actor: Actor = Depends(current_actor),
    ):
        order = queries.get_by_id(order_id, actor)
        notify(background_tasks, OrderEventKind.VIEWED, order, actor)
        return success(order=order_to_json(order))

    @router.patch("/{order_id}/status")
    def update_order_status(
        order_id: str,
        body: UpdateStatusBody,
        background_tasks: BackgroundTasks,
        actor: Actor = Depends(restrict_to(Role.SELLER, Role.ADMIN)),
    ):
        if not body.status:
            raise ValidationError("New order status is required.")
        order = update_status.handle(
            order_id, body.status, actor, cancellation_reason=body.cancellationReason
        )
        notify(background_tasks, OrderEventKind.STATUS_CHANGED, order, actor)
        return success(order=order_to_json(order))

    return router


def create_app(
    order_repo: OrderRepository | None = None,
    catalog: CatalogStore | None = None,
    publisher: OrderEventPublisher | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the API; repositories default to the JSON files from ``settings``."""
    settings = settings or Settings.from_env()
    order_repo = order_repo or bootstrap.order_repository(settings)
    catalog = catalog or bootstrap.catalog_store(settings)
    publisher = publisher or bootstrap.event_publisher()

    app = FastAPI(title="Marketplace Orders")
    register_error_handlers(app)
    app.include_router(_orders_router(order_repo, catalog, publisher))

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    log.info("Order API ready (data dir: %s)", settings.data_dir)
    return app
