"""Discount rules derived from vouchers.

The scope a rule applies at is a closed set of variants, so pricing code
dispatches on type instead of comparing free-form strings:

    NoDiscount            — no voucher, or nothing to discount
    BrandDiscount(brand)  — discounts the OrderDetail of that brand only
    OrderDiscount         — discounts the Order aggregate only
"""

from dataclasses import dataclass

from protean.exceptions import ValidationError

from ordering.voucher.voucher import Voucher, VoucherScope


@dataclass(frozen=True)
class NoDiscount:
    pass


@dataclass(frozen=True)
class BrandDiscount:
    brand_id: str


@dataclass(frozen=True)
class OrderDiscount:
    pass


DiscountScope = NoDiscount | BrandDiscount | OrderDiscount


@dataclass(frozen=True)
class DiscountRule:
    scope: DiscountScope
    voucher_id: str | None = None
    is_percent: bool = False
    value: int = 0

    @classmethod
    def from_voucher(cls, voucher: Voucher) -> "DiscountRule":
        if voucher.scope == VoucherScope.BRAND.value:
            if not voucher.brand_id:
                raise ValidationError({"brand_id": ["Brand vouchers must specify a brand"]})
            scope = BrandDiscount(brand_id=str(voucher.brand_id))
        elif voucher.scope == VoucherScope.TOTAL.value:
            scope = OrderDiscount()
        else:
            raise ValidationError({"scope": [f"Unknown voucher scope '{voucher.scope}'"]})

        return cls(
            scope=scope,
            voucher_id=str(voucher.id),
            is_percent=bool(voucher.is_percent),
            value=voucher.value,
        )

    def applies_to_brand(self, brand_id) -> bool:
        return isinstance(self.scope, BrandDiscount) and self.scope.brand_id == str(brand_id)

    @property
    def applies_to_order(self) -> bool:
        return isinstance(self.scope, OrderDiscount)

    def discount_on(self, subtotal: int) -> int:
        """Amount taken off ``subtotal``, never more than the subtotal itself.

        Percentages truncate toward zero: 10% of 999 is 99.
        """
        if self.is_percent:
            amount = subtotal * self.value // 100
        else:
            amount = self.value
        return max(0, min(amount, subtotal))


NO_DISCOUNT = DiscountRule(scope=NoDiscount())
