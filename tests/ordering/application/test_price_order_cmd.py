"""Application tests for the two settlement transactions run separately."""

import json

import pytest
from ordering.order.creation import CreateOrder
from ordering.order.order import Order
from ordering.order.totals import PriceOrder
from ordering.voucher.voucher import Voucher
from protean import current_domain
from protean.exceptions import ValidationError


@pytest.fixture(autouse=True)
def _seed(catalog):
    return catalog


def _create_order(shipping, items=None):
    items = items or [{"variant_id": "var-x1", "quantity": 2}, {"variant_id": "var-y1", "quantity": 1}]
    command = CreateOrder(user_id="user-1", items=json.dumps(items), **shipping)
    return current_domain.process(command, asynchronous=False)


class TestCreateOrder:
    def test_creates_unpriced_shell(self, shipping):
        order_id = _create_order(shipping)

        order = current_domain.repository_for(Order).get(order_id)
        assert len(order.details) == 2
        assert len(order.lines) == 2
        assert order.total == 0
        assert not order.is_priced

    def test_line_snapshots_survive_repricing(self, shipping):
        from ordering.catalog.registration import RepriceVariant

        order_id = _create_order(shipping)
        current_domain.process(RepriceVariant(variant_id="var-x1", new_price=9999), asynchronous=False)

        order = current_domain.repository_for(Order).get(order_id)
        line = next(line for line in order.lines if str(line.variant_id) == "var-x1")
        assert line.price == 1000
        assert line.total == 2000

    def test_malformed_items(self, shipping):
        with pytest.raises(ValidationError):
            current_domain.process(
                CreateOrder(user_id="user-1", items=json.dumps([{"quantity": 1}]), **shipping),
                asynchronous=False,
            )


class TestPriceOrder:
    def test_prices_a_created_order(self, shipping):
        order_id = _create_order(shipping)
        current_domain.process(PriceOrder(order_id=order_id), asynchronous=False)

        order = current_domain.repository_for(Order).get(order_id)
        assert order.is_priced
        assert order.subtotal == order.total == 3500
        assert order.subtotal == sum(d.total for d in order.details)

    def test_rerunning_is_a_no_op(self, shipping, register_voucher):
        voucher_id = register_voucher(scope="total", value=500, stock=3)
        order_id = _create_order(shipping)

        current_domain.process(PriceOrder(order_id=order_id, voucher_id=voucher_id), asynchronous=False)
        current_domain.process(PriceOrder(order_id=order_id, voucher_id=voucher_id), asynchronous=False)

        order = current_domain.repository_for(Order).get(order_id)
        assert order.total == 3000
        assert current_domain.repository_for(Voucher).get(voucher_id).stock == 2

    def test_failed_pricing_keeps_the_voucher_unit(self, shipping, register_voucher, monkeypatch):
        """Consumption and totals commit together: a failure after consume rolls both back."""
        voucher_id = register_voucher(scope="total", value=500, stock=3)
        order_id = _create_order(shipping)

        def broken_apply_pricing(self, order_quote):
            raise RuntimeError("write failed")

        monkeypatch.setattr(Order, "apply_pricing", broken_apply_pricing)
        with pytest.raises(RuntimeError):
            current_domain.process(PriceOrder(order_id=order_id, voucher_id=voucher_id), asynchronous=False)
        monkeypatch.undo()

        assert current_domain.repository_for(Voucher).get(voucher_id).stock == 3
        assert not current_domain.repository_for(Order).get(order_id).is_priced

        current_domain.process(PriceOrder(order_id=order_id, voucher_id=voucher_id), asynchronous=False)

        assert current_domain.repository_for(Voucher).get(voucher_id).stock == 2
        order = current_domain.repository_for(Order).get(order_id)
        assert order.is_priced
        assert order.total == 3000

    def test_repairs_an_order_left_unpriced(self, shipping, register_voucher):
        """A crash between the two transactions is repaired by running pricing again."""
        voucher_id = register_voucher(scope="brand", brand_id="brand-y", value=200, stock=1)
        order_id = _create_order(shipping)
        assert current_domain.repository_for(Order).get(order_id).total == 0

        current_domain.process(PriceOrder(order_id=order_id, voucher_id=voucher_id), asynchronous=False)

        order = current_domain.repository_for(Order).get(order_id)
        by_brand = {str(d.brand_id): d for d in order.details}
        assert by_brand["brand-y"].total == 1300
        assert by_brand["brand-x"].total == 2000
        assert order.total == 3300
