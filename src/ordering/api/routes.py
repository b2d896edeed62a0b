"""FastAPI routes for the Ordering domain — settlement, orders, vouchers and variants."""

from fastapi import APIRouter, Header, HTTPException
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    InvoiceCallbackRequest,
    InvoiceResponse,
    OrderResponse,
    RegisterVariantRequest,
    RegisterVoucherRequest,
    SettleOrderRequest,
    SettlementResponse,
    StatusResponse,
    UpdateOrderStatusRequest,
    VariantIdResponse,
    VoucherIdResponse,
)
from ordering.catalog.registration import RegisterVariant
from ordering.invoicing import get_gateway
from ordering.order.issuance import issue_invoice
from ordering.order.queries import get_order, list_orders, orders_for_user
from ordering.order.settlement import SettlementRequest, settle
from ordering.order.status import ProcessInvoiceCallback, UpdateOrderStatus
from ordering.voucher.management import DeactivateVoucher, RegisterVoucher

# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=SettlementResponse)
async def settle_order(body: SettleOrderRequest) -> SettlementResponse:
    """Settle a cart: create the order, price it and issue its invoice."""
    result = settle(
        SettlementRequest(
            user_id=body.user_id,
            items=[item.model_dump() for item in body.items],
            shipping=body.shipping.model_dump(),
            buyer_name=body.buyer_name,
            buyer_email=body.buyer_email,
            voucher_id=body.voucher_id,
        )
    )
    return SettlementResponse(
        order=OrderResponse.from_order(result.order),
        invoice_reference=result.invoice.invoice_reference,
        invoice_url=result.invoice.invoice_url,
    )


@order_router.get("", response_model=list[OrderResponse])
async def search_orders(user_id: str | None = None, status: str | None = None) -> list[OrderResponse]:
    orders = orders_for_user(user_id, status) if user_id else list_orders(status)
    return [OrderResponse.from_order(order) for order in orders]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def read_order(order_id: str) -> OrderResponse:
    return OrderResponse.from_order(get_order(order_id))


@order_router.put("/{order_id}/status", response_model=StatusResponse)
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> StatusResponse:
    command = UpdateOrderStatus(order_id=order_id, status=body.status)
    result = current_domain.process(command, asynchronous=False)
    return StatusResponse(status=result)


@order_router.post("/{order_id}/invoice", response_model=InvoiceResponse)
async def retry_invoice(order_id: str) -> InvoiceResponse:
    """Issue (or re-issue after a failure) the invoice for a priced order."""
    result = issue_invoice(order_id)
    if not result.success:
        raise HTTPException(status_code=502, detail=result.failure_reason)
    return InvoiceResponse(
        invoice_status="issued",
        invoice_reference=result.invoice_reference,
        invoice_url=result.invoice_url,
    )


# ---------------------------------------------------------------------------
# Invoice Callback Router
# ---------------------------------------------------------------------------
callback_router = APIRouter(prefix="/callbacks", tags=["callbacks"])


@callback_router.post("/invoice", response_model=StatusResponse)
async def invoice_callback(
    body: InvoiceCallbackRequest,
    x_callback_token: str = Header(default=""),
) -> StatusResponse:
    """Apply a status notification from the invoice provider."""
    if not get_gateway().verify_callback_token(x_callback_token):
        raise HTTPException(status_code=401, detail="Invalid callback token")

    command = ProcessInvoiceCallback(
        external_id=body.external_id,
        status=body.status,
        invoice_reference=body.id,
        payment_method=body.payment_method,
        paid_amount=body.paid_amount,
    )
    result = current_domain.process(command, asynchronous=False)
    return StatusResponse(status=result)


# ---------------------------------------------------------------------------
# Voucher Router
# ---------------------------------------------------------------------------
voucher_router = APIRouter(prefix="/vouchers", tags=["vouchers"])


@voucher_router.post("", status_code=201, response_model=VoucherIdResponse)
async def register_voucher(body: RegisterVoucherRequest) -> VoucherIdResponse:
    command = RegisterVoucher(**body.model_dump())
    result = current_domain.process(command, asynchronous=False)
    return VoucherIdResponse(voucher_id=result)


@voucher_router.put("/{voucher_id}/deactivate", response_model=StatusResponse)
async def deactivate_voucher(voucher_id: str) -> StatusResponse:
    current_domain.process(DeactivateVoucher(voucher_id=voucher_id), asynchronous=False)
    return StatusResponse(status="deactivated")


# ---------------------------------------------------------------------------
# Variant Router
# ---------------------------------------------------------------------------
variant_router = APIRouter(prefix="/variants", tags=["variants"])


@variant_router.post("", status_code=201, response_model=VariantIdResponse)
async def register_variant(body: RegisterVariantRequest) -> VariantIdResponse:
    command = RegisterVariant(**body.model_dump())
    result = current_domain.process(command, asynchronous=False)
    return VariantIdResponse(variant_id=result)
