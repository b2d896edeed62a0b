"""Order aggregate (CQRS) — one purchase event split into per-brand slices.

An Order owns one OrderDetail per brand present in the cart, and every
OrderDetail is invoiced through InvoiceDetail lines. Lines are kept flat on
the aggregate and point at their detail through ``order_detail_id``.

Totals are written exactly once, when the order is priced. After that the
only permitted mutations are status transitions and the outcome of invoice
issuance.

Status Machine:
    AWAITING_PAYMENT → PENDING/PAID/EXPIRED
    PENDING → PAID/EXPIRED
    PAID → PROCESSING → DELIVERY → COMPLETED
    PAID/PROCESSING/DELIVERY/COMPLETED → REFUND_REQUESTED
    REFUND_REQUESTED → REFUND_REJECTED/REFUND_COMPLETED

Invoice issuance is tracked separately from payment status:
    PENDING → ISSUED
    PENDING → FAILED → ISSUED (retry)
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from ordering.domain import ordering
from ordering.order.events import (
    InvoiceIssued,
    InvoiceIssueFailed,
    OrderCreated,
    OrderPriced,
    OrderStatusChanged,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    AWAITING_PAYMENT = "awaiting_payment"
    EXPIRED = "expired"
    PAID = "paid"
    PENDING = "pending"
    PROCESSING = "processing"
    DELIVERY = "delivery"
    COMPLETED = "completed"
    REFUND_REQUESTED = "refund_requested"
    REFUND_REJECTED = "refund_rejected"
    REFUND_COMPLETED = "refund_completed"


class InvoiceStatus(Enum):
    PENDING = "pending"
    ISSUED = "issued"
    FAILED = "failed"


_VALID_TRANSITIONS = {
    OrderStatus.AWAITING_PAYMENT: {OrderStatus.PENDING, OrderStatus.PAID, OrderStatus.EXPIRED},
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.EXPIRED},
    OrderStatus.PAID: {OrderStatus.PROCESSING, OrderStatus.REFUND_REQUESTED},
    OrderStatus.PROCESSING: {OrderStatus.DELIVERY, OrderStatus.REFUND_REQUESTED},
    OrderStatus.DELIVERY: {OrderStatus.COMPLETED, OrderStatus.REFUND_REQUESTED},
    OrderStatus.COMPLETED: {OrderStatus.REFUND_REQUESTED},
    OrderStatus.REFUND_REQUESTED: {OrderStatus.REFUND_REJECTED, OrderStatus.REFUND_COMPLETED},
    OrderStatus.EXPIRED: set(),  # Terminal
    OrderStatus.REFUND_REJECTED: set(),  # Terminal
    OrderStatus.REFUND_COMPLETED: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderDetail:
    """One brand's slice of an order, invoiced and shipped independently."""

    brand_id = Identifier(required=True)
    invoice_number = String(required=True, max_length=255)
    subtotal = Integer(default=0)
    discount = Integer(default=0)
    total = Integer(default=0)
    voucher_id = Identifier()
    status = String(choices=OrderStatus, default=OrderStatus.AWAITING_PAYMENT.value)


@ordering.entity(part_of="Order")
class InvoiceDetail:
    """A product-variant line. Name and price are snapshots taken at settlement."""

    order_detail_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    price = Integer(required=True, min_value=0)
    total = Integer(required=True, min_value=0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    user_id = Identifier(required=True)
    receiver = String(required=True, max_length=255)
    phone_number = String(required=True, max_length=50)
    address = String(required=True, max_length=500)
    city = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    buyer_name = String(max_length=255)
    buyer_email = String(max_length=255)
    details = HasMany(OrderDetail)
    lines = HasMany(InvoiceDetail)
    subtotal = Integer(default=0)
    discount = Integer(default=0)
    total = Integer(default=0)
    voucher_id = Identifier()
    status = String(choices=OrderStatus, default=OrderStatus.AWAITING_PAYMENT.value)
    priced_at = DateTime()
    invoice_status = String(choices=InvoiceStatus, default=InvoiceStatus.PENDING.value)
    invoice_reference = String(max_length=255)
    invoice_url = String(max_length=500)
    invoice_attempts = Integer(default=0)
    invoice_error = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def priced_totals_must_reconcile(self):
        if not self.priced_at:
            return
        if self.subtotal != sum(detail.total for detail in self.details):
            raise ValidationError({"subtotal": ["Order subtotal must equal the sum of its detail totals"]})
        if self.total != self.subtotal - self.discount:
            raise ValidationError({"total": ["Order total must equal subtotal less discount"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open(cls, user_id, shipping, buyer_name=None, buyer_email=None):
        """Start an order shell: awaiting payment, zero totals, no details yet.

        Args:
            user_id: The purchasing user.
            shipping: Dict with receiver, phone_number, address, city, postal_code.
        """
        now = datetime.now(UTC)
        return cls(
            user_id=user_id,
            receiver=shipping.get("receiver"),
            phone_number=shipping.get("phone_number"),
            address=shipping.get("address"),
            city=shipping.get("city"),
            postal_code=shipping.get("postal_code"),
            buyer_name=buyer_name,
            buyer_email=buyer_email,
            status=OrderStatus.AWAITING_PAYMENT.value,
            invoice_status=InvoiceStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )

    def add_detail(self, brand_id, invoice_number):
        detail = OrderDetail(
            brand_id=brand_id,
            invoice_number=invoice_number,
            status=self.status,
        )
        self.add_details(detail)
        return detail

    def add_line(self, detail, variant_id, product_name, quantity, price):
        line = InvoiceDetail(
            order_detail_id=str(detail.id),
            variant_id=variant_id,
            product_name=product_name,
            quantity=quantity,
            price=price,
            total=quantity * price,
        )
        self.add_lines(line)
        return line

    def record_creation(self):
        """Announce the assembled order. Called once, after all details and lines are attached."""
        self.raise_(
            OrderCreated(
                order_id=str(self.id),
                user_id=str(self.user_id),
                brand_ids=json.dumps([str(d.brand_id) for d in self.details]),
                line_count=len(self.lines),
                created_at=self.created_at,
            )
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def lines_for(self, detail):
        detail_id = str(detail.id)
        return [line for line in self.lines if str(line.order_detail_id) == detail_id]

    @property
    def is_priced(self):
        return self.priced_at is not None

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    def apply_pricing(self, quote):
        """Write the totals computed by the pricing engine. Allowed once."""
        if self.is_priced:
            raise ValidationError({"priced_at": ["Order totals have already been set"]})

        detail_quotes = {q.detail_id: q for q in quote.details}
        if set(detail_quotes) != {str(d.id) for d in self.details}:
            raise ValidationError({"details": ["Quote does not cover exactly this order's details"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            for detail in self.details:
                detail_quote = detail_quotes[str(detail.id)]
                detail.subtotal = detail_quote.subtotal
                detail.discount = detail_quote.discount
                detail.total = detail_quote.total
                if detail_quote.voucher_applied:
                    detail.voucher_id = quote.voucher_id

            self.subtotal = quote.subtotal
            self.discount = quote.discount
            self.total = quote.total
            self.voucher_id = quote.voucher_id if quote.consumes_voucher else None
            self.priced_at = now
            self.updated_at = now

        self.raise_(
            OrderPriced(
                order_id=str(self.id),
                subtotal=self.subtotal,
                discount=self.discount,
                total=self.total,
                voucher_id=self.voucher_id,
                priced_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def change_status(self, new_status, source="backoffice"):
        """Move the order (and every detail) to ``new_status``.

        Returns False when the order is already in that status.
        """
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status '{new_status}'"]}) from None

        current = OrderStatus(self.status)
        if target == current:
            return False
        if target not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

        now = datetime.now(UTC)
        self.status = target.value
        for detail in self.details:
            detail.status = target.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                source=source,
                changed_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Invoice issuance
    # -------------------------------------------------------------------
    def record_invoice_issued(self, reference, url=None):
        if InvoiceStatus(self.invoice_status) == InvoiceStatus.ISSUED:
            raise ValidationError({"invoice_status": ["Invoice has already been issued"]})

        now = datetime.now(UTC)
        self.invoice_status = InvoiceStatus.ISSUED.value
        self.invoice_reference = reference
        self.invoice_url = url
        self.invoice_attempts = (self.invoice_attempts or 0) + 1
        self.invoice_error = None
        self.updated_at = now

        self.raise_(
            InvoiceIssued(
                order_id=str(self.id),
                invoice_reference=reference,
                invoice_url=url,
                amount=self.total,
                issued_at=now,
            )
        )

    def record_invoice_failure(self, reason):
        if InvoiceStatus(self.invoice_status) == InvoiceStatus.ISSUED:
            raise ValidationError({"invoice_status": ["Invoice has already been issued"]})

        now = datetime.now(UTC)
        self.invoice_status = InvoiceStatus.FAILED.value
        self.invoice_attempts = (self.invoice_attempts or 0) + 1
        self.invoice_error = reason[:500]
        self.updated_at = now

        self.raise_(
            InvoiceIssueFailed(
                order_id=str(self.id),
                reason=reason[:500],
                attempt=self.invoice_attempts,
                failed_at=now,
            )
        )
