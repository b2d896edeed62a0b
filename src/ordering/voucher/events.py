"""Domain events for the Voucher aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Voucher")
class VoucherRegistered:
    __version__ = "v1"

    voucher_id = Identifier(required=True)
    code = String(required=True)
    scope = String(required=True)
    brand_id = Identifier()
    is_percent = Boolean(required=True)
    value = Integer(required=True)
    stock = Integer(required=True)
    registered_at = DateTime(required=True)


@ordering.event(part_of="Voucher")
class VoucherDeactivated:
    __version__ = "v1"

    voucher_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)


@ordering.event(part_of="Voucher")
class VoucherRestocked:
    __version__ = "v1"

    voucher_id = Identifier(required=True)
    added = Integer(required=True)
    new_stock = Integer(required=True)
