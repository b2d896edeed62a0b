"""Voucher registration, deactivation and restocking — commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.voucher.voucher import Voucher


@ordering.command(part_of="Voucher")
class RegisterVoucher:
    code = String(required=True, max_length=100)
    name = String(max_length=255)
    description = Text()
    scope = String(required=True, max_length=10)
    brand_id = Identifier()
    is_percent = Boolean(default=False)
    value = Integer(required=True, min_value=1)
    stock = Integer(default=0, min_value=0)
    effective_at = DateTime()
    expired_at = DateTime()


@ordering.command(part_of="Voucher")
class DeactivateVoucher:
    voucher_id = Identifier(required=True)


@ordering.command(part_of="Voucher")
class RestockVoucher:
    voucher_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@ordering.command_handler(part_of=Voucher)
class VoucherCommandHandler:
    @handle(RegisterVoucher)
    def register_voucher(self, command):
        repo = current_domain.repository_for(Voucher)
        if repo.find_by_code(command.code) is not None:
            raise ValidationError({"code": [f"Voucher code '{command.code}' is already in use"]})

        voucher = Voucher.register(
            code=command.code,
            name=command.name,
            description=command.description,
            scope=command.scope,
            brand_id=command.brand_id,
            is_percent=bool(command.is_percent),
            value=command.value,
            stock=command.stock or 0,
            effective_at=command.effective_at,
            expired_at=command.expired_at,
        )
        repo.add(voucher)
        return str(voucher.id)

    @handle(DeactivateVoucher)
    def deactivate_voucher(self, command):
        repo = current_domain.repository_for(Voucher)
        voucher = repo.get(command.voucher_id)
        voucher.deactivate()
        repo.add(voucher)

    @handle(RestockVoucher)
    def restock_voucher(self, command):
        repo = current_domain.repository_for(Voucher)
        voucher = repo.get(command.voucher_id)
        voucher.restock(command.quantity)
        repo.add(voucher)
