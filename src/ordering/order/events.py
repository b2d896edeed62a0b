"""Domain events for the Order aggregate.

All events are versioned, immutable facts representing settlement progress
and order status changes.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderCreated:
    """An order shell was persisted with its per-brand details and lines."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    brand_ids = Text(required=True)  # JSON list, in cart encounter order
    line_count = Integer(required=True)
    created_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPriced:
    """Subtotals, discounts and totals were committed for the order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    subtotal = Integer(required=True)
    discount = Integer(required=True)
    total = Integer(required=True)
    voucher_id = Identifier()
    priced_at = DateTime(required=True)


@ordering.event(part_of="Order")
class InvoiceIssued:
    """The invoice provider accepted the order's invoice."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    invoice_reference = String(required=True)
    invoice_url = String()
    amount = Integer(required=True)
    issued_at = DateTime(required=True)


@ordering.event(part_of="Order")
class InvoiceIssueFailed:
    """An attempt to issue the order's invoice failed. The order itself stands."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    reason = String(required=True)
    attempt = Integer(required=True)
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    __version__ = "v1"

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    source = String(required=True)  # "backoffice" or "invoice_callback"
    changed_at = DateTime(required=True)
