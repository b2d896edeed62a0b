"""Shared BDD fixtures and step definitions for order settlement."""

import pytest
from ordering.catalog.registration import RegisterVariant
from ordering.voucher.management import DeactivateVoucher, RegisterVoucher
from protean import current_domain
from pytest_bdd import given, parsers


@pytest.fixture()
def voucher():
    """Container for the voucher registered by a Given step."""
    return {"id": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('variant "{variant_id}" of brand "{brand_id}" priced {price:d}'))
def _(variant_id, brand_id, price):
    current_domain.process(
        RegisterVariant(variant_id=variant_id, brand_id=brand_id, product_name=f"Product {variant_id}", price=price),
        asynchronous=False,
    )


@given(parsers.cfparse('a brand voucher for "{brand_id}" worth {value:d}'))
def _(voucher, brand_id, value):
    voucher["id"] = current_domain.process(
        RegisterVoucher(code="BRAND", scope="brand", brand_id=brand_id, value=value, stock=5),
        asynchronous=False,
    )


@given(parsers.cfparse("an order voucher worth {value:d} percent"))
def _(voucher, value):
    voucher["id"] = current_domain.process(
        RegisterVoucher(code="TOTAL", scope="total", is_percent=True, value=value, stock=5),
        asynchronous=False,
    )


@given("the voucher has been deactivated")
def _(voucher):
    current_domain.process(DeactivateVoucher(voucher_id=voucher["id"]), asynchronous=False)


@given("the invoice provider is down")
def _(fake_gateway):
    fake_gateway.configure(should_succeed=False, failure_reason="Invoice provider unavailable")
