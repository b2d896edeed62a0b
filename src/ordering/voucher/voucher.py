"""Voucher aggregate — a discount rule redeemable against one order at a time.

A voucher targets exactly one level of an order:

    brand  → the OrderDetail whose brand matches ``brand_id``
    total  → the Order aggregate

Stock is the number of orders that can still redeem the voucher. It is only
decremented through ``VoucherRepository.consume`` so concurrent settlements
cannot both take the last unit.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering
from ordering.voucher.events import VoucherDeactivated, VoucherRegistered, VoucherRestocked


class VoucherScope(Enum):
    BRAND = "brand"
    TOTAL = "total"


@ordering.aggregate
class Voucher:
    code = String(required=True, max_length=100)
    name = String(max_length=255)
    description = Text()
    scope = String(required=True, choices=VoucherScope)
    brand_id = Identifier()
    is_percent = Boolean(default=False)
    value = Integer(required=True, min_value=1)
    stock = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    effective_at = DateTime()
    expired_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def brand_vouchers_must_name_a_brand(self):
        if self.scope == VoucherScope.BRAND.value and not self.brand_id:
            raise ValidationError({"brand_id": ["Brand vouchers must specify a brand"]})

    @invariant.post
    def percent_cannot_exceed_hundred(self):
        if self.is_percent and self.value is not None and self.value > 100:
            raise ValidationError({"value": ["Percent discounts cannot exceed 100"]})

    @invariant.post
    def validity_window_must_be_ordered(self):
        if self.effective_at and self.expired_at and self.expired_at <= self.effective_at:
            raise ValidationError({"expired_at": ["Expiry must be after the effective date"]})

    @classmethod
    def register(
        cls,
        code,
        scope,
        value,
        is_percent=False,
        brand_id=None,
        stock=0,
        name=None,
        description=None,
        effective_at=None,
        expired_at=None,
    ):
        now = datetime.now(UTC)
        voucher = cls(
            code=code,
            name=name,
            description=description,
            scope=scope,
            brand_id=brand_id,
            is_percent=is_percent,
            value=value,
            stock=stock,
            is_active=True,
            effective_at=effective_at,
            expired_at=expired_at,
            created_at=now,
            updated_at=now,
        )
        voucher.raise_(
            VoucherRegistered(
                voucher_id=str(voucher.id),
                code=code,
                scope=scope,
                brand_id=str(brand_id) if brand_id else None,
                is_percent=is_percent,
                value=value,
                stock=stock,
                registered_at=now,
            )
        )
        return voucher

    def is_redeemable_at(self, moment: datetime) -> bool:
        """Active and inside the validity window. Stock is checked at consumption."""
        if not self.is_active:
            return False
        if self.effective_at and moment < _aware(self.effective_at):
            return False
        if self.expired_at and moment >= _aware(self.expired_at):
            return False
        return True

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Voucher is already inactive"]})

        now = datetime.now(UTC)
        self.is_active = False
        self.updated_at = now
        self.raise_(VoucherDeactivated(voucher_id=str(self.id), deactivated_at=now))

    def restock(self, quantity):
        if quantity < 1:
            raise ValidationError({"quantity": ["Restock quantity must be at least 1"]})

        self.stock += quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(VoucherRestocked(voucher_id=str(self.id), added=quantity, new_stock=self.stock))


def _aware(moment: datetime) -> datetime:
    # Stores without timezone support hand back naive datetimes
    return moment if moment.tzinfo else moment.replace(tzinfo=UTC)
