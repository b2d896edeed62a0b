"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CartItemSchema(BaseModel):
    variant_id: str
    quantity: int = Field(ge=1)


class ShippingSchema(BaseModel):
    receiver: str
    phone_number: str
    address: str
    city: str
    postal_code: str


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class SettleOrderRequest(BaseModel):
    user_id: str
    items: list[CartItemSchema]
    shipping: ShippingSchema
    buyer_name: str | None = None
    buyer_email: str | None = None
    voucher_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "user_id": "user-001",
                    "items": [{"variant_id": "var-001", "quantity": 2}],
                    "shipping": {
                        "receiver": "Ayu Lestari",
                        "phone_number": "+6281234567890",
                        "address": "Jl. Merdeka 10",
                        "city": "Bandung",
                        "postal_code": "40115",
                    },
                    "buyer_email": "ayu@example.com",
                    "voucher_id": None,
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: str


class InvoiceCallbackRequest(BaseModel):
    external_id: str
    status: str
    id: str | None = None
    payment_method: str | None = None
    paid_amount: int | None = None


# ---------------------------------------------------------------------------
# Voucher / Variant Request Schemas
# ---------------------------------------------------------------------------
class RegisterVoucherRequest(BaseModel):
    code: str
    name: str | None = None
    description: str | None = None
    scope: str
    brand_id: str | None = None
    is_percent: bool = False
    value: int = Field(ge=1)
    stock: int = Field(ge=0, default=0)
    effective_at: datetime | None = None
    expired_at: datetime | None = None


class RegisterVariantRequest(BaseModel):
    variant_id: str | None = None
    brand_id: str
    product_name: str
    sku: str | None = None
    price: int = Field(ge=0)
    stock: int = Field(ge=0, default=0)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class VoucherIdResponse(BaseModel):
    voucher_id: str


class VariantIdResponse(BaseModel):
    variant_id: str


class InvoiceResponse(BaseModel):
    invoice_status: str
    invoice_reference: str | None = None
    invoice_url: str | None = None


class InvoiceLineResponse(BaseModel):
    id: str
    variant_id: str
    product_name: str
    quantity: int
    price: int
    total: int


class OrderDetailResponse(BaseModel):
    id: str
    brand_id: str
    invoice_number: str
    subtotal: int
    discount: int
    total: int
    voucher_id: str | None = None
    status: str
    lines: list[InvoiceLineResponse]


class OrderResponse(BaseModel):
    id: str
    user_id: str
    receiver: str
    phone_number: str
    address: str
    city: str
    postal_code: str
    subtotal: int
    discount: int
    total: int
    voucher_id: str | None = None
    status: str
    invoice: InvoiceResponse
    details: list[OrderDetailResponse]
    created_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        """Serialize the persisted order as stored. Nothing is recomputed."""
        return cls(
            id=str(order.id),
            user_id=str(order.user_id),
            receiver=order.receiver,
            phone_number=order.phone_number,
            address=order.address,
            city=order.city,
            postal_code=order.postal_code,
            subtotal=order.subtotal,
            discount=order.discount,
            total=order.total,
            voucher_id=str(order.voucher_id) if order.voucher_id else None,
            status=order.status,
            invoice=InvoiceResponse(
                invoice_status=order.invoice_status,
                invoice_reference=order.invoice_reference,
                invoice_url=order.invoice_url,
            ),
            details=[
                OrderDetailResponse(
                    id=str(detail.id),
                    brand_id=str(detail.brand_id),
                    invoice_number=detail.invoice_number,
                    subtotal=detail.subtotal,
                    discount=detail.discount,
                    total=detail.total,
                    voucher_id=str(detail.voucher_id) if detail.voucher_id else None,
                    status=detail.status,
                    lines=[
                        InvoiceLineResponse(
                            id=str(line.id),
                            variant_id=str(line.variant_id),
                            product_name=line.product_name,
                            quantity=line.quantity,
                            price=line.price,
                            total=line.total,
                        )
                        for line in order.lines_for(detail)
                    ],
                )
                for detail in order.details
            ],
            created_at=order.created_at,
        )


class SettlementResponse(BaseModel):
    order: OrderResponse
    invoice_reference: str | None = None
    invoice_url: str | None = None
