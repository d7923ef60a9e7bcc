"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class LineItemSchema(BaseModel):
    product_id: str
    vendor_id: str | None = None
    title: str | None = None
    unit_price: float = Field(ge=0)
    quantity: int = Field(ge=1)


class PartSummary(BaseModel):
    part_id: str
    order_number: str
    vendor_id: str | None = None
    status: str


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    customer_email: str
    items: list[LineItemSchema] = Field(min_length=1)
    order_number: str | None = None
    customer_name: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    payment_method: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_email": "jane@example.com",
                    "order_number": "ORD-1001",
                    "items": [
                        {"product_id": "prod-1", "title": "House blend", "unit_price": 12.5, "quantity": 2},
                        {
                            "product_id": "prod-9",
                            "vendor_id": "vendor-7f3a",
                            "title": "Ceramic mug",
                            "unit_price": 18.0,
                            "quantity": 1,
                        },
                    ],
                    "city": "Springfield",
                    "payment_method": "cod",
                }
            ]
        }
    }


class ChangeStatusRequest(BaseModel):
    status: str
    actor: str
    reason: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"status": "shipped", "actor": "vendor", "reason": None},
            ]
        }
    }


class CustomerCancelRequest(BaseModel):
    order_identifier: str
    customer_email: str
    reason: str | None = None


class CancelItemsRequest(BaseModel):
    customer_email: str
    item_ids: list[str] = Field(min_length=1)
    reason: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderIdResponse(BaseModel):
    order_id: str


class SplitResponse(BaseModel):
    order_id: str
    admin_part_id: str | None = None
    vendor_part_ids: list[str] = []
    failures: list[dict] = []


class StatusChangeResponse(BaseModel):
    order_id: str
    parent_id: str | None = None
    previous_status: str
    new_status: str


class CancellationResponse(BaseModel):
    order_id: str
    requested_for: str
    new_status: str
    commission_reversed: bool
    cancelled_parts: list[str] = []


class ItemCancellationResponse(BaseModel):
    order_id: str
    order_number: str
    cancelled_items: list[str]
    refund_amount: float
    remaining_total: float
    order_status: str


class AdminOrderResponse(BaseModel):
    order_id: str
    order_number: str
    kind: str
    parent_id: str | None = None
    vendor_id: str | None = None
    status: str
    total_amount: float
    created_at: str | None = None


class DisplayStatusResponse(BaseModel):
    status: str
    contributing_sub_statuses: list[str] = []
    can_customer_cancel: bool
    can_admin_change: bool
    source: str


class CustomerOrderResponse(DisplayStatusResponse):
    order_id: str
    order_number: str
    order_type: str
    total_amount: float
    created_at: str | None = None
    parts: list[PartSummary] = []
