"""Pydantic request schemas for the ordering API.

These are external contracts, kept separate from the aggregates. Business
rules (positive quantities where the service decides, ownership, state)
are enforced by the services so they come back in the common envelope.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "quantity": 2,
                }
            ]
        }
    }


class UpdateLineQuantityRequest(BaseModel):
    # Zero or less removes the line
    quantity: int


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class ConfirmOrderRequest(BaseModel):
    delivery_address: str | None = Field(default=None, max_length=500)


class CustomerOrderLineSchema(BaseModel):
    product_id: str
    quantity: int


class CreateCustomerOrderRequest(BaseModel):
    lines: list[CustomerOrderLineSchema] = Field(default_factory=list)
    table_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "lines": [
                        {"product_id": "prod-001", "quantity": 2},
                        {"product_id": "prod-002", "quantity": 1},
                    ],
                    "table_id": "4",
                }
            ]
        }
    }


class AddOrderLineRequest(BaseModel):
    product_id: str
    quantity: int


class UpdateOrderStatusRequest(BaseModel):
    status: str

    model_config = {"json_schema_extra": {"examples": [{"status": "Delivered"}]}}


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class RegisterPaymentRequest(BaseModel):
    payment_method_id: str
    delivery_address: str | None = Field(default=None, max_length=500)


class PaymentMethodRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
