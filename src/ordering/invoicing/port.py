"""Invoice gateway port (abstract interface).

Defines the contract every invoice provider adapter implements, so the
settlement pipeline can swap the fake adapter (dev/test) for the Xendit
adapter (production) without touching domain code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class BuyerProfile:
    """Contact and shipping snapshot shown on the provider's invoice."""

    given_names: str
    email: str | None
    mobile_number: str
    address: str
    city: str
    postal_code: str
    country: str = "Indonesia"


@dataclass(frozen=True)
class InvoiceLineItem:
    name: str
    unit_price: int
    quantity: int


@dataclass(frozen=True)
class InvoiceFee:
    """An adjustment on the invoice. Discounts carry a negative value."""

    value: int
    type: str = "discount"


@dataclass(frozen=True)
class InvoiceResult:
    """Result of an invoice generation attempt."""

    success: bool
    invoice_reference: str | None = None
    invoice_url: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


class InvoiceGateway(ABC):
    """Abstract invoice provider interface."""

    @abstractmethod
    def generate_invoice(
        self,
        order_id: str,
        buyer: BuyerProfile,
        line_items: list[InvoiceLineItem],
        fee_items: list[InvoiceFee],
        total: int,
    ) -> InvoiceResult:
        """Ask the provider to issue a payable invoice for ``total``.

        ``order_id`` is the external id; providers must treat a repeat call
        with the same id as the same invoice.
        """
        ...

    @abstractmethod
    def verify_callback_token(self, token: str) -> bool:
        """Check that a status callback really comes from the provider."""
        ...
