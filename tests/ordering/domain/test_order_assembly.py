"""Tests for the Order Assembler — brand grouping, invoice numbers and line snapshots."""

from datetime import UTC, datetime

import pytest
from ordering.catalog.resolver import ResolvedLine
from ordering.order.assembly import assemble, generate_invoice_number, group_by_brand
from ordering.order.events import OrderCreated
from ordering.order.order import InvoiceStatus, OrderStatus
from protean.exceptions import ValidationError

SHIPPING = {
    "receiver": "Ayu",
    "phone_number": "0812",
    "address": "Jl. Merdeka 10",
    "city": "Bandung",
    "postal_code": "40115",
}


def _line(variant_id, brand_id, price, quantity=1):
    return ResolvedLine(
        variant_id=variant_id,
        brand_id=brand_id,
        product_name=f"Product {variant_id}",
        price=price,
        quantity=quantity,
    )


class TestGroupByBrand:
    def test_preserves_encounter_order(self):
        lines = [_line("y1", "brand-y", 10), _line("x1", "brand-x", 20), _line("y2", "brand-y", 30)]
        groups = group_by_brand(lines)
        assert list(groups) == ["brand-y", "brand-x"]
        assert [line.variant_id for line in groups["brand-y"]] == ["y1", "y2"]


class TestInvoiceNumber:
    def test_format(self):
        moment = datetime(2024, 1, 1, tzinfo=UTC)
        assert generate_invoice_number("u1", "o1", "b1", moment) == f"u1/o1/b1/{int(moment.timestamp())}"


class TestAssemble:
    def test_one_detail_per_brand(self):
        lines = [_line("x1", "brand-x", 1000), _line("y1", "brand-y", 1500), _line("x2", "brand-x", 2000)]
        order = assemble("user-1", lines, SHIPPING)

        assert [str(d.brand_id) for d in order.details] == ["brand-x", "brand-y"]
        assert len(order.lines) == 3
        x_detail = order.details[0]
        assert [line.variant_id for line in order.lines_for(x_detail)] == ["x1", "x2"]

    def test_line_totals_are_price_times_quantity(self):
        order = assemble("user-1", [_line("x1", "brand-x", 1250, quantity=3)], SHIPPING)
        line = order.lines[0]
        assert line.price == 1250
        assert line.quantity == 3
        assert line.total == 3750
        assert line.product_name == "Product x1"

    def test_invoice_numbers_embed_user_order_and_brand(self):
        order = assemble("user-1", [_line("x1", "brand-x", 1000), _line("y1", "brand-y", 1500)], SHIPPING)
        numbers = [d.invoice_number for d in order.details]
        assert numbers[0].startswith(f"user-1/{order.id}/brand-x/")
        assert numbers[1].startswith(f"user-1/{order.id}/brand-y/")
        assert len(set(numbers)) == 2

    def test_order_shell_is_unpriced_and_awaiting_payment(self):
        order = assemble("user-1", [_line("x1", "brand-x", 1000)], SHIPPING)
        assert order.status == OrderStatus.AWAITING_PAYMENT.value
        assert order.invoice_status == InvoiceStatus.PENDING.value
        assert order.subtotal == 0
        assert order.total == 0
        assert not order.is_priced
        assert all(d.total == 0 for d in order.details)

    def test_raises_order_created(self):
        order = assemble("user-1", [_line("x1", "brand-x", 1000), _line("y1", "brand-y", 1500)], SHIPPING)
        assert len(order._events) == 1
        event = order._events[0]
        assert isinstance(event, OrderCreated)
        assert event.line_count == 2

    def test_empty_cart_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            assemble("user-1", [], SHIPPING)
        assert "items" in exc_info.value.messages
