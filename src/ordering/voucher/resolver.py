"""Voucher Resolver — optional voucher id to a discount rule."""

from datetime import datetime

from protean.utils.globals import current_domain

from ordering.voucher.discount import NO_DISCOUNT, DiscountRule
from ordering.voucher.voucher import Voucher


def resolve_voucher(voucher_id: str | None, at: datetime | None = None) -> DiscountRule:
    """Return the discount rule for ``voucher_id``.

    An absent id (``None``, empty, ``"0"``) yields the inert ``NO_DISCOUNT``
    rule. A supplied id that does not match an active voucher raises
    ``VoucherNotFound``.
    """
    if not voucher_id or str(voucher_id) == "0":
        return NO_DISCOUNT

    voucher = current_domain.repository_for(Voucher).get_active(str(voucher_id), at=at)
    return DiscountRule.from_voucher(voucher)
