"""Request and response shapes of the HTTP API.

Request models only check the JSON shape.  Business validation (item
tags, quantities, addresses) stays in the order builder so the CLI and
the API reject the same inputs with the same messages.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from marketplace.application.dto import PlaceOrderRequest
from marketplace.domain.model.order import Order
from marketplace.domain.model.value_objects import Address


class OrderItemIn(BaseModel):
    itemId: str | None = None
    itemType: str | None = None
    quantity: int | None = None


class AddressIn(BaseModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zipCode: str | None = None
    country: str | None = None
    phoneNumber: str | None = None


class CreateOrderBody(BaseModel):
    items: list[OrderItemIn] = []
    shippingAddress: AddressIn | None = None
    serviceDate: datetime | None = None
    serviceAddress: AddressIn | None = None
    notesToSeller: str | None = None
    paymentMethod: str | None = None

    def to_request(self) -> PlaceOrderRequest:
        return PlaceOrderRequest(
            items=[item.model_dump() for item in self.items],
            shipping_address=self.shippingAddress.model_dump() if self.shippingAddress else None,
            service_address=self.serviceAddress.model_dump() if self.serviceAddress else None,
            service_date=self.serviceDate,
            notes_to_seller=self.notesToSeller,
            payment_method=self.paymentMethod,
        )


class UpdateStatusBody(BaseModel):
    status: str | None = None
    cancellationReason: str | None = None


# --- Responses ----------------------------------------------------------------


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _address(address: Address | None) -> dict | None:
    if address is None:
        return None
    return {
        "street": address.street,
        "city": address.city,
        "state": address.state,
        "zipCode": address.zip_code,
        "country": address.country,
        "phoneNumber": address.phone_number,
    }


def order_to_json(order: Order) -> dict:
    """Render an order for API clients; money as decimal strings."""
    return {
        "id": order.id,
        "buyerId": order.buyer_id,
        "status": order.status.value,
        "items": [
            {
                "itemId": line.item_id,
                "itemType": line.item_type.value,
                "name": line.name,
                "image": line.image,
                "quantity": line.quantity.value,
                "priceAtPurchase": str(line.price_at_purchase.amount),
                "sellerId": line.seller_id,
            }
            for line in order.items
        ],
        "totalAmount": str(order.total_amount.amount),
        "currency": order.total_amount.currency,
        "paymentDetails": {
            "method": order.payment.method,
            "transactionId": order.payment.transaction_id,
            "status": order.payment.status.value,
            "paidAt": _iso(order.payment.paid_at),
        },
        "shippingAddress": _address(order.shipping_address),
        "serviceAddress": _address(order.service_address),
        "serviceDate": _iso(order.service_date),
        "notesToSeller": order.notes_to_seller,
        "cancellationReason": order.cancellation_reason,
        "createdAt": order.created_at.isoformat(),
        "updatedAt": order.updated_at.isoformat(),
    }


def success(**data) -> dict:
    return {"status": "success", "data": data}


def order_list(orders: list[Order]) -> dict:
    return {
        "status": "success",
        "results": len(orders),
        "data": {"orders": [order_to_json(order) for order in orders]},
    }
