"""Settlement Coordinator — turns a cart submission into a priced, invoiced order.

Flow:
    Drafting → Created          CreateOrder (T1): order shell, details, lines
    Created → Priced            voucher rule resolved for phase 2
    Priced → Settled            PriceOrder (T2): totals + voucher consumption
    Settled → InvoiceRequested  provider call, outside any transaction
    InvoiceRequested → Completed

Any state before Completed can move to Failed. The voucher is validated
before T1 opens, so an unknown or inactive voucher leaves no rows behind.
Rows committed by T1/T2 are never deleted on a later failure: a priced order
whose invoice could not be issued stays ``awaiting_payment`` with
``invoice_status = failed`` and surfaces as ``InvoiceGatewayError``.
"""

import json
from dataclasses import dataclass, field
from enum import Enum

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.exceptions import InvoiceGatewayError, SettlementError, SettlementPersistenceError
from ordering.invoicing.port import InvoiceResult
from ordering.order.creation import CreateOrder
from ordering.order.issuance import issue_invoice
from ordering.order.order import Order
from ordering.order.totals import PriceOrder
from ordering.utils.logging import add_context, remove_context
from ordering.voucher.resolver import resolve_voucher

logger = structlog.get_logger(__name__)

SHIPPING_FIELDS = ("receiver", "phone_number", "address", "city", "postal_code")


class SettlementState(Enum):
    DRAFTING = "drafting"
    CREATED = "created"
    PRICED = "priced"
    SETTLED = "settled"
    INVOICE_REQUESTED = "invoice_requested"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class SettlementRequest:
    user_id: str
    items: list[dict]
    shipping: dict
    buyer_name: str | None = None
    buyer_email: str | None = None
    voucher_id: str | None = None


@dataclass(frozen=True)
class SettlementResult:
    order: Order
    invoice: InvoiceResult


@dataclass
class SettlementCoordinator:
    """Runs one settlement. Instances are single-use and record the state reached."""

    request: SettlementRequest
    state: SettlementState = SettlementState.DRAFTING
    order_id: str | None = None
    failure_reason: str | None = None
    history: list[SettlementState] = field(default_factory=list)

    def settle(self) -> SettlementResult:
        self.validate()
        try:
            return self._run()
        except (ValidationError, ObjectNotFoundError, SettlementError) as exc:
            self._fail(exc)
            raise
        except Exception as exc:
            self._fail(exc)
            raise SettlementPersistenceError(str(exc), order_id=self.order_id) from exc
        finally:
            remove_context("order_id")

    def validate(self) -> None:
        """Reject a request before any transaction opens."""
        errors = {}
        if not self.request.user_id:
            errors["user_id"] = ["is required"]
        for name in SHIPPING_FIELDS:
            value = (self.request.shipping or {}).get(name)
            if value is None or not str(value).strip():
                errors[name] = ["is required"]
        if not self.request.items:
            errors["items"] = ["An order needs at least one line item"]
        if errors:
            raise ValidationError(errors)

    def _run(self) -> SettlementResult:
        request = self.request

        # Fails with VoucherNotFound before anything is written
        resolve_voucher(request.voucher_id)

        self.order_id = current_domain.process(
            CreateOrder(
                user_id=request.user_id,
                buyer_name=request.buyer_name,
                buyer_email=request.buyer_email,
                items=json.dumps(request.items),
                **{name: request.shipping[name] for name in SHIPPING_FIELDS},
            ),
            asynchronous=False,
        )
        add_context(order_id=self.order_id)
        self._advance(SettlementState.CREATED)
        logger.info("settlement.created", user_id=request.user_id)

        self._advance(SettlementState.PRICED)
        current_domain.process(
            PriceOrder(order_id=self.order_id, voucher_id=request.voucher_id or None),
            asynchronous=False,
        )
        self._advance(SettlementState.SETTLED)

        order = current_domain.repository_for(Order).get(self.order_id)
        logger.info(
            "settlement.priced",
            subtotal=order.subtotal,
            discount=order.discount,
            total=order.total,
            voucher_id=order.voucher_id,
        )

        self._advance(SettlementState.INVOICE_REQUESTED)
        invoice = issue_invoice(self.order_id)
        if not invoice.success:
            raise InvoiceGatewayError(self.order_id, invoice.failure_reason or "Unknown invoice provider failure")

        self._advance(SettlementState.COMPLETED)
        logger.info("settlement.invoice_issued", invoice_reference=invoice.invoice_reference)
        return SettlementResult(order=current_domain.repository_for(Order).get(self.order_id), invoice=invoice)

    def _advance(self, state: SettlementState) -> None:
        self.history.append(self.state)
        self.state = state

    def _fail(self, exc: Exception) -> None:
        self.failure_reason = getattr(exc, "message", None) or str(exc)
        logger.warning(
            "settlement.failed",
            order_id=self.order_id,
            user_id=self.request.user_id,
            state=self.state.value,
            error_type=type(exc).__name__,
            reason=self.failure_reason,
        )
        self._advance(SettlementState.FAILED)


def settle(request: SettlementRequest) -> SettlementResult:
    return SettlementCoordinator(request).settle()
