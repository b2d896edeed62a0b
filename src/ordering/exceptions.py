"""Settlement failure taxonomy.

Missing records reuse Protean's ``ObjectNotFoundError`` so repository lookups
and resolvers fail the same way. Everything else derives from
``SettlementError``.
"""

from protean.exceptions import ObjectNotFoundError


class VariantNotFound(ObjectNotFoundError):
    """A requested product variant does not exist."""


class VoucherNotFound(ObjectNotFoundError):
    """A voucher id was supplied but no active, in-window voucher matches it."""


class SettlementError(Exception):
    """Base class for failures raised by the settlement pipeline."""

    def __init__(self, message: str, **context) -> None:
        super().__init__(message)
        self.message = message
        self.context = context


class VoucherOutOfStock(SettlementError):
    def __init__(self, voucher_id: str) -> None:
        super().__init__(f"Voucher {voucher_id} has no remaining stock", voucher_id=voucher_id)
        self.voucher_id = voucher_id


class SettlementPersistenceError(SettlementError):
    """A storage failure aborted the active transaction."""


class InvoiceGatewayError(SettlementError):
    """The order was persisted and priced, but the invoice provider failed.

    Carries the order id so callers can report the persisted order separately
    from the failed invoicing step.
    """

    def __init__(self, order_id: str, reason: str) -> None:
        super().__init__(f"Invoice generation failed for order {order_id}: {reason}", order_id=order_id)
        self.order_id = order_id
        self.reason = reason
