"""Xendit invoice gateway adapter (production).

Creates invoices through Xendit's REST API. Amounts are already integers in
the smallest currency unit, which for IDR is the rupiah itself.
"""

import hmac

import requests
import structlog

from ordering.invoicing.port import (
    BuyerProfile,
    InvoiceFee,
    InvoiceGateway,
    InvoiceLineItem,
    InvoiceResult,
)

logger = structlog.get_logger(__name__)

XENDIT_INVOICE_URL = "https://api.xendit.co/v2/invoices"
INVOICE_DESCRIPTION = "Invoice for product(s) purchase"
NOTIFICATION_CHANNELS = ["email", "sms"]


class XenditGateway(InvoiceGateway):
    def __init__(
        self,
        secret_key: str,
        callback_token: str,
        currency: str = "IDR",
        invoice_duration: int = 86400,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.secret_key = secret_key
        self.callback_token = callback_token
        self.currency = currency
        self.invoice_duration = invoice_duration
        self.timeout = timeout
        self.session = session or requests.Session()

    def _payload(self, order_id, buyer, line_items, fee_items, total) -> dict:
        notifications = {
            "invoice_created": NOTIFICATION_CHANNELS,
            "invoice_reminder": NOTIFICATION_CHANNELS,
            "invoice_paid": NOTIFICATION_CHANNELS,
            "invoice_expired": NOTIFICATION_CHANNELS,
        }
        return {
            "external_id": str(order_id),
            "amount": total,
            "description": INVOICE_DESCRIPTION,
            "invoice_duration": self.invoice_duration,
            "currency": self.currency,
            "customer": {
                "given_names": buyer.given_names,
                "email": buyer.email,
                "mobile_number": buyer.mobile_number,
                "addresses": [
                    {
                        "country": buyer.country,
                        "street_line1": buyer.address,
                        "city": buyer.city,
                        "postal_code": buyer.postal_code,
                    }
                ],
            },
            "customer_notification_preference": notifications,
            "items": [{"name": i.name, "price": i.unit_price, "quantity": i.quantity} for i in line_items],
            "fees": [{"type": f.type, "value": f.value} for f in fee_items],
        }

    def generate_invoice(
        self,
        order_id: str,
        buyer: BuyerProfile,
        line_items: list[InvoiceLineItem],
        fee_items: list[InvoiceFee],
        total: int,
    ) -> InvoiceResult:
        try:
            response = self.session.post(
                XENDIT_INVOICE_URL,
                json=self._payload(order_id, buyer, line_items, fee_items, total),
                auth=(self.secret_key, ""),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("xendit.request_failed", order_id=order_id, error=str(exc))
            return InvoiceResult(success=False, gateway_status="unreachable", failure_reason=str(exc))

        if not response.ok:
            try:
                body = response.json()
                reason = body.get("message") or body.get("error_code") or response.text
            except ValueError:
                reason = response.text
            logger.warning("xendit.invoice_rejected", order_id=order_id, status_code=response.status_code)
            return InvoiceResult(
                success=False,
                gateway_status=str(response.status_code),
                failure_reason=reason or f"HTTP {response.status_code}",
            )

        try:
            body = response.json()
        except ValueError:
            logger.warning("xendit.invalid_response", order_id=order_id, status_code=response.status_code)
            return InvoiceResult(
                success=False,
                gateway_status=str(response.status_code),
                failure_reason=f"Unreadable invoice response: {response.text[:200]}",
            )

        logger.info("xendit.invoice_created", order_id=order_id, invoice_id=body.get("id"))
        return InvoiceResult(
            success=True,
            invoice_reference=body.get("id"),
            invoice_url=body.get("invoice_url"),
            gateway_status=body.get("status"),
        )

    def verify_callback_token(self, token: str) -> bool:
        if not self.callback_token:
            return False
        return hmac.compare_digest(token or "", self.callback_token)
