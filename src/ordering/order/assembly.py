"""Order Assembler — groups resolved cart lines into per-brand order details."""

from datetime import UTC, datetime

from protean.exceptions import ValidationError

from ordering.catalog.resolver import ResolvedLine
from ordering.order.order import Order


def generate_invoice_number(user_id, order_id, brand_id, moment: datetime | None = None) -> str:
    """Human-traceable invoice number: ``userID/orderID/brandID/unixTimestamp``."""
    moment = moment or datetime.now(UTC)
    return f"{user_id}/{order_id}/{brand_id}/{int(moment.timestamp())}"


def group_by_brand(lines: list[ResolvedLine]) -> dict[str, list[ResolvedLine]]:
    """Bucket lines by brand, keeping brands in the order they first appear."""
    groups: dict[str, list[ResolvedLine]] = {}
    for line in lines:
        groups.setdefault(line.brand_id, []).append(line)
    return groups


def assemble(user_id, lines: list[ResolvedLine], shipping: dict, buyer_name=None, buyer_email=None) -> Order:
    """Build an unsaved Order with one OrderDetail per brand and one InvoiceDetail per line.

    The order's identity is generated up front so invoice numbers can embed it
    before anything is persisted.
    """
    if not lines:
        raise ValidationError({"items": ["An order needs at least one line item"]})

    order = Order.open(
        user_id=user_id,
        shipping=shipping,
        buyer_name=buyer_name,
        buyer_email=buyer_email,
    )

    for brand_id, brand_lines in group_by_brand(lines).items():
        detail = order.add_detail(
            brand_id=brand_id,
            invoice_number=generate_invoice_number(user_id, order.id, brand_id, order.created_at),
        )
        for line in brand_lines:
            order.add_line(
                detail,
                variant_id=line.variant_id,
                product_name=line.product_name,
                quantity=line.quantity,
                price=line.price,
            )

    order.record_creation()
    return order
