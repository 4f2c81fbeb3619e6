"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from marketplace.application.notifications import LoggingEventPublisher
from marketplace.infrastructure.config import Settings
from marketplace.infrastructure.persistence.json_catalog_store import JsonCatalogStore
from marketplace.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)


def catalog_store(settings: Settings | None = None) -> JsonCatalogStore:
    settings = settings or Settings.from_env()
    return JsonCatalogStore(settings.catalog_file)


def order_repository(settings: Settings | None = None) -> JsonOrderRepository:
    settings = settings or Settings.from_env()
    return JsonOrderRepository(settings.orders_file)


def event_publisher() -> LoggingEventPublisher:
    return LoggingEventPublisher()
