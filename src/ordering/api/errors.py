"""Map settlement failures onto HTTP responses.

A gateway failure is reported with the persisted order id, so clients can
tell "order saved, invoice missing" apart from a failed settlement.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.exceptions import InvoiceGatewayError, SettlementPersistenceError, VoucherOutOfStock

logger = structlog.get_logger(__name__)


def _messages(exc: Exception):
    return getattr(exc, "messages", None) or str(exc)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "validation_error", "detail": _messages(exc)})


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "not_found", "detail": _messages(exc)})


async def out_of_stock_handler(request: Request, exc: VoucherOutOfStock) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"error": "out_of_stock", "detail": exc.message, "voucher_id": exc.voucher_id},
    )


async def gateway_error_handler(request: Request, exc: InvoiceGatewayError) -> JSONResponse:
    return JSONResponse(
        status_code=502,
        content={
            "error": "invoice_gateway_error",
            "detail": exc.reason,
            "order_id": exc.order_id,
            "order_persisted": True,
        },
    )


async def persistence_error_handler(request: Request, exc: SettlementPersistenceError) -> JSONResponse:
    logger.error("settlement.persistence_error", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=500, content={"error": "persistence_error", "detail": "Settlement failed"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(VoucherOutOfStock, out_of_stock_handler)
    app.add_exception_handler(InvoiceGatewayError, gateway_error_handler)
    app.add_exception_handler(SettlementPersistenceError, persistence_error_handler)
