import os

import pytest


@pytest.fixture(scope="session")
def _ordering_domain(request):
    """Initialize the ordering domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from ordering.domain import ordering

    ordering.init()
    return ordering


@pytest.fixture(scope="session", autouse=True)
def setup_db(_ordering_domain):
    from ordering.utils.db import drop_db, setup_db

    setup_db(_ordering_domain)

    yield

    drop_db(_ordering_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_ordering_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _ordering_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------
BRAND_X = "brand-x"
BRAND_Y = "brand-y"


@pytest.fixture()
def fake_gateway():
    from ordering.invoicing import set_gateway
    from ordering.invoicing.fake_adapter import FakeInvoiceGateway

    gateway = FakeInvoiceGateway()
    set_gateway(gateway)
    return gateway


@pytest.fixture()
def catalog():
    """Two variants from brand X (1000, 2000) and one from brand Y (1500)."""
    from ordering.catalog.registration import RegisterVariant
    from protean import current_domain

    variants = {
        "var-x1": (BRAND_X, "Linen Shirt", 1000),
        "var-x2": (BRAND_X, "Canvas Tote", 2000),
        "var-y1": (BRAND_Y, "Clay Mug", 1500),
    }
    for variant_id, (brand_id, name, price) in variants.items():
        current_domain.process(
            RegisterVariant(variant_id=variant_id, brand_id=brand_id, product_name=name, price=price, stock=10),
            asynchronous=False,
        )
    return variants


@pytest.fixture()
def register_voucher():
    """Factory: register a voucher and return its id."""
    from ordering.voucher.management import RegisterVoucher
    from protean import current_domain

    counter = {"n": 0}

    def _register(scope="total", value=10, is_percent=False, brand_id=None, stock=5, **extra):
        counter["n"] += 1
        return current_domain.process(
            RegisterVoucher(
                code=extra.pop("code", f"VOUCHER{counter['n']}"),
                scope=scope,
                value=value,
                is_percent=is_percent,
                brand_id=brand_id,
                stock=stock,
                **extra,
            ),
            asynchronous=False,
        )

    return _register


@pytest.fixture()
def shipping():
    return {
        "receiver": "Ayu Lestari",
        "phone_number": "+6281234567890",
        "address": "Jl. Merdeka 10",
        "city": "Bandung",
        "postal_code": "40115",
    }
