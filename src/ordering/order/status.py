"""Order status changes — back-office updates and invoice provider callbacks."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)

# Provider statuses that name a different order status. SETTLED follows PAID
# once funds are disbursed.
PROVIDER_STATUS_ALIASES = {"settled": "paid"}


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)


@ordering.command(part_of="Order")
class ProcessInvoiceCallback:
    """A status notification from the invoice provider.

    ``external_id`` is the order id the invoice was created with. The
    provider reports statuses in upper case (``PAID``, ``SETTLED``, ``EXPIRED``).
    """

    external_id = Identifier(required=True)
    status = String(required=True, max_length=50)
    invoice_reference = String(max_length=255)
    payment_method = String(max_length=100)
    paid_amount = Integer()


@ordering.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.change_status(command.status, source="backoffice")
        repo.add(order)
        return order.status

    @handle(ProcessInvoiceCallback)
    def process_callback(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.external_id)

        status = command.status.lower()
        changed = order.change_status(PROVIDER_STATUS_ALIASES.get(status, status), source="invoice_callback")
        if changed:
            repo.add(order)
        logger.info(
            "invoice.callback",
            order_id=str(order.id),
            status=order.status,
            replayed=not changed,
            invoice_reference=command.invoice_reference,
            payment_method=command.payment_method,
        )
        return order.status
