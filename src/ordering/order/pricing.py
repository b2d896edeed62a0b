"""Pricing & Discount Engine.

Pure functions over an order's details and lines. All amounts are integers in
the smallest currency unit.

A voucher discounts at exactly one level, decided by its rule's scope:
brand-scoped rules touch only the matching OrderDetail, order-scoped rules
touch only the Order aggregate. Order pricing runs after every detail is
priced and sums detail *totals*, so a brand discount flows into the order
subtotal.
"""

from dataclasses import dataclass

from ordering.voucher.discount import DiscountRule


@dataclass(frozen=True)
class DetailQuote:
    detail_id: str
    brand_id: str
    subtotal: int
    discount: int
    total: int
    voucher_applied: bool = False

    @property
    def discount_fee(self) -> int | None:
        """Negative fee sent to the invoice provider, or None when undiscounted."""
        return -self.discount if self.discount else None


@dataclass(frozen=True)
class OrderQuote:
    details: tuple[DetailQuote, ...]
    subtotal: int
    discount: int
    total: int
    voucher_id: str | None
    consumes_voucher: bool

    @property
    def discount_fees(self) -> list[int]:
        """Every discount as a negative amount, detail discounts first."""
        fees = [q.discount_fee for q in self.details if q.discount_fee is not None]
        if self.discount:
            fees.append(-self.discount)
        return fees


def price_detail(detail, lines, rule: DiscountRule) -> DetailQuote:
    """Subtotal of the detail's lines, discounted only by a rule for its brand."""
    subtotal = sum(line.total for line in lines)
    applied = rule.applies_to_brand(detail.brand_id)
    discount = rule.discount_on(subtotal) if applied else 0
    return DetailQuote(
        detail_id=str(detail.id),
        brand_id=str(detail.brand_id),
        subtotal=subtotal,
        discount=discount,
        total=subtotal - discount,
        voucher_applied=applied,
    )


def price_order(detail_quotes, rule: DiscountRule) -> tuple[int, int, int]:
    """Return ``(subtotal, discount, total)`` for the order as a whole."""
    subtotal = sum(q.total for q in detail_quotes)
    discount = rule.discount_on(subtotal) if rule.applies_to_order else 0
    return subtotal, discount, subtotal - discount


def quote(order, rule: DiscountRule) -> OrderQuote:
    """Price every detail, then the order, and report whether the voucher is used."""
    detail_quotes = tuple(price_detail(detail, order.lines_for(detail), rule) for detail in order.details)
    subtotal, discount, total = price_order(detail_quotes, rule)

    # A matching brand or an order-level rule consumes the voucher, even if
    # the discount rounds to zero.
    consumes = rule.applies_to_order or any(q.voucher_applied for q in detail_quotes)

    return OrderQuote(
        details=detail_quotes,
        subtotal=subtotal,
        discount=discount,
        total=total,
        voucher_id=rule.voucher_id if consumes else None,
        consumes_voucher=consumes,
    )
