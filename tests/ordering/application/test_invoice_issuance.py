"""Application tests for invoice issuance as a retryable, idempotent step."""

import json

import pytest
from ordering.order import issuance
from ordering.order.creation import CreateOrder
from ordering.order.issuance import issue_invoice, issue_outstanding_invoices
from ordering.order.order import InvoiceStatus, Order
from ordering.order.totals import PriceOrder
from protean import current_domain
from protean.exceptions import ValidationError


@pytest.fixture(autouse=True)
def _seed(catalog):
    return catalog


def _priced_order(shipping, voucher_id=None, price=True):
    items = [{"variant_id": "var-x1", "quantity": 1}, {"variant_id": "var-x2", "quantity": 1}]
    order_id = current_domain.process(
        CreateOrder(user_id="user-1", buyer_name="Ayu", items=json.dumps(items), **shipping),
        asynchronous=False,
    )
    if price:
        current_domain.process(PriceOrder(order_id=order_id, voucher_id=voucher_id), asynchronous=False)
    return order_id


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestIssueInvoice:
    def test_issues_and_records_reference(self, shipping, fake_gateway):
        order_id = _priced_order(shipping)

        result = issue_invoice(order_id)

        assert result.success
        order = _order(order_id)
        assert order.invoice_status == InvoiceStatus.ISSUED.value
        assert order.invoice_reference == result.invoice_reference
        assert order.invoice_url == result.invoice_url

    def test_sends_snapshot_to_provider(self, shipping, fake_gateway, register_voucher):
        voucher_id = register_voucher(scope="brand", brand_id="brand-x", value=400)
        order_id = _priced_order(shipping, voucher_id=voucher_id)

        issue_invoice(order_id)

        call = fake_gateway.calls[0]
        assert call["order_id"] == order_id
        assert call["total"] == 2600
        assert call["buyer"].given_names == "Ayu"
        assert call["buyer"].postal_code == shipping["postal_code"]
        assert sorted((i.name, i.unit_price, i.quantity) for i in call["line_items"]) == [
            ("Canvas Tote", 2000, 1),
            ("Linen Shirt", 1000, 1),
        ]
        assert [(f.type, f.value) for f in call["fee_items"]] == [("discount", -400)]

    def test_unpriced_order_is_rejected(self, shipping, fake_gateway):
        order_id = _priced_order(shipping, price=False)
        with pytest.raises(ValidationError):
            issue_invoice(order_id)
        assert fake_gateway.calls == []

    def test_issued_invoice_is_not_requested_again(self, shipping, fake_gateway):
        order_id = _priced_order(shipping)
        first = issue_invoice(order_id)
        second = issue_invoice(order_id)

        assert len(fake_gateway.calls) == 1
        assert second.invoice_reference == first.invoice_reference
        assert _order(order_id).invoice_attempts == 1

    def test_retry_after_failure(self, shipping, fake_gateway):
        order_id = _priced_order(shipping)
        fake_gateway.configure(should_succeed=False, failure_reason="timeout")

        failed = issue_invoice(order_id)
        assert not failed.success
        order = _order(order_id)
        assert order.invoice_status == InvoiceStatus.FAILED.value
        assert order.invoice_error == "timeout"

        fake_gateway.configure(should_succeed=True)
        retried = issue_invoice(order_id)

        assert retried.success
        order = _order(order_id)
        assert order.invoice_status == InvoiceStatus.ISSUED.value
        assert order.invoice_attempts == 2
        assert order.total == 3000


class TestReconciliationSweep:
    def test_issues_pending_and_failed_priced_orders(self, shipping, fake_gateway):
        failed_id = _priced_order(shipping)
        fake_gateway.configure(should_succeed=False)
        issue_invoice(failed_id)
        fake_gateway.configure(should_succeed=True)

        pending_id = _priced_order(shipping)
        unpriced_id = _priced_order(shipping, price=False)

        results = issue_outstanding_invoices()

        assert set(results) == {failed_id, pending_id}
        assert all(result.success for result in results.values())
        assert _order(unpriced_id).invoice_status == InvoiceStatus.PENDING.value

    def test_one_broken_order_does_not_stop_the_batch(self, shipping, fake_gateway, monkeypatch):
        broken_id = _priced_order(shipping)
        healthy_id = _priced_order(shipping)

        def flaky_issue_invoice(order_id):
            if order_id == broken_id:
                raise RuntimeError("database unavailable")
            return issue_invoice(order_id)

        monkeypatch.setattr(issuance, "issue_invoice", flaky_issue_invoice)
        results = issue_outstanding_invoices()

        assert results[healthy_id].success
        assert not results[broken_id].success
        assert results[broken_id].failure_reason == "database unavailable"
        assert _order(healthy_id).invoice_status == InvoiceStatus.ISSUED.value
        assert _order(broken_id).invoice_status == InvoiceStatus.PENDING.value

    def test_nothing_outstanding(self, shipping, fake_gateway):
        order_id = _priced_order(shipping)
        issue_invoice(order_id)
        assert issue_outstanding_invoices() == {}
