"""Configurable fake invoice gateway for development and testing.

Simulates the invoice provider without any external calls. It can be told to
succeed or fail at runtime, and it records every call for assertions.
"""

from uuid import uuid4

from ordering.invoicing.port import (
    BuyerProfile,
    InvoiceFee,
    InvoiceGateway,
    InvoiceLineItem,
    InvoiceResult,
)

FAKE_CALLBACK_TOKEN = "test-callback-token"


class FakeInvoiceGateway(InvoiceGateway):
    """Configurable fake invoice gateway."""

    def __init__(self, callback_token: str = FAKE_CALLBACK_TOKEN) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Invoice provider unavailable"
        self.callback_token = callback_token
        self.calls: list[dict] = []
        self._issued: dict[str, InvoiceResult] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "Invoice provider unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def generate_invoice(
        self,
        order_id: str,
        buyer: BuyerProfile,
        line_items: list[InvoiceLineItem],
        fee_items: list[InvoiceFee],
        total: int,
    ) -> InvoiceResult:
        self.calls.append(
            {
                "method": "generate_invoice",
                "order_id": order_id,
                "buyer": buyer,
                "line_items": list(line_items),
                "fee_items": list(fee_items),
                "total": total,
            }
        )

        if not self.should_succeed:
            return InvoiceResult(
                success=False,
                gateway_status="failed",
                failure_reason=self.failure_reason,
            )

        # Same external id, same invoice
        if order_id not in self._issued:
            reference = f"fake_inv_{uuid4().hex[:12]}"
            self._issued[order_id] = InvoiceResult(
                success=True,
                invoice_reference=reference,
                invoice_url=f"https://invoices.example.test/{reference}",
                gateway_status="PENDING",
            )
        return self._issued[order_id]

    def verify_callback_token(self, token: str) -> bool:
        return token == self.callback_token
