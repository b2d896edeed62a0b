"""Invoice gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeInvoiceGateway for development and testing
- XenditGateway for production (INVOICE_GATEWAY=xendit)
"""

import os

from ordering.invoicing.fake_adapter import FakeInvoiceGateway
from ordering.invoicing.port import InvoiceGateway
from ordering.invoicing.xendit_adapter import XenditGateway

_current_gateway: InvoiceGateway | None = None


def _gateway_from_env() -> InvoiceGateway:
    if os.environ.get("INVOICE_GATEWAY", "fake").lower() == "xendit":
        return XenditGateway(
            secret_key=os.environ["XENDIT_SECRET_KEY"],
            callback_token=os.environ.get("XENDIT_CALLBACK_TOKEN", ""),
            currency=os.environ.get("INVOICE_CURRENCY", "IDR"),
            invoice_duration=int(os.environ.get("INVOICE_DURATION_SECONDS", "86400")),
        )
    return FakeInvoiceGateway()


def get_gateway() -> InvoiceGateway:
    """Return the current invoice gateway, building it from the environment on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _gateway_from_env()
    return _current_gateway


def set_gateway(gateway: InvoiceGateway) -> None:
    """Override the active invoice gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
