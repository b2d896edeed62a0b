"""Invoice issuance — the step after pricing commits.

Issuance is keyed by order id, idempotent and retryable. The provider call
happens outside any unit of work; only the outcome is written back, in its
own short unit of work. A failed attempt leaves the order priced and
persisted with ``invoice_status = failed`` for the reconciliation sweep.
"""

import structlog
from protean import UnitOfWork
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.invoicing import get_gateway
from ordering.invoicing.port import BuyerProfile, InvoiceFee, InvoiceLineItem, InvoiceResult
from ordering.order.order import InvoiceStatus, Order

logger = structlog.get_logger(__name__)


def buyer_profile(order: Order) -> BuyerProfile:
    return BuyerProfile(
        given_names=order.buyer_name or order.receiver,
        email=order.buyer_email,
        mobile_number=order.phone_number,
        address=order.address,
        city=order.city,
        postal_code=order.postal_code,
    )


def invoice_line_items(order: Order) -> list[InvoiceLineItem]:
    """Provider line items, grouped detail by detail in the order they were created."""
    items = []
    for detail in order.details:
        for line in order.lines_for(detail):
            items.append(InvoiceLineItem(name=line.product_name, unit_price=line.price, quantity=line.quantity))
    return items


def invoice_fee_items(order: Order) -> list[InvoiceFee]:
    """Every discount applied to the order, as negative fees."""
    fees = [InvoiceFee(value=-detail.discount) for detail in order.details if detail.discount]
    if order.discount:
        fees.append(InvoiceFee(value=-order.discount))
    return fees


def _issued_result(order: Order) -> InvoiceResult:
    return InvoiceResult(
        success=True,
        invoice_reference=order.invoice_reference,
        invoice_url=order.invoice_url,
        gateway_status=InvoiceStatus.ISSUED.value,
    )


def issue_invoice(order_id: str) -> InvoiceResult:
    """Request the order's invoice from the provider and record the outcome.

    Returns the stored result without calling the provider when the invoice
    has already been issued. Raises ``ValidationError`` for unpriced orders.
    """
    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)

    if not order.is_priced:
        raise ValidationError({"order_id": ["Order must be priced before its invoice is issued"]})
    if order.invoice_status == InvoiceStatus.ISSUED.value:
        return _issued_result(order)

    result = get_gateway().generate_invoice(
        order_id=str(order.id),
        buyer=buyer_profile(order),
        line_items=invoice_line_items(order),
        fee_items=invoice_fee_items(order),
        total=order.total,
    )

    with UnitOfWork():
        order = repo.get(order_id)
        if order.invoice_status == InvoiceStatus.ISSUED.value:
            # A concurrent attempt won; keep its reference
            return _issued_result(order)

        if result.success:
            order.record_invoice_issued(result.invoice_reference, result.invoice_url)
            logger.info("invoice.issued", order_id=order_id, invoice_reference=result.invoice_reference)
        else:
            order.record_invoice_failure(result.failure_reason or "Unknown invoice provider failure")
            logger.warning(
                "invoice.failed",
                order_id=order_id,
                attempt=order.invoice_attempts,
                reason=result.failure_reason,
            )
        repo.add(order)

    return result


def issue_outstanding_invoices() -> dict[str, InvoiceResult]:
    """Reconciliation sweep: retry every priced order whose invoice is pending or failed.

    An order that raises is logged and reported as a failed result; the
    rest of the batch still runs.
    """
    from ordering.order.queries import orders_awaiting_invoice

    results = {}
    for order in orders_awaiting_invoice():
        order_id = str(order.id)
        try:
            results[order_id] = issue_invoice(order_id)
        except Exception as exc:
            logger.exception("invoice.sweep_error", order_id=order_id)
            results[order_id] = InvoiceResult(success=False, gateway_status="error", failure_reason=str(exc))
    return results
