"""Tests for the Voucher aggregate."""

from datetime import UTC, datetime, timedelta

import pytest
from ordering.voucher.events import VoucherDeactivated, VoucherRegistered, VoucherRestocked
from ordering.voucher.voucher import Voucher
from protean.exceptions import ValidationError


def _voucher(**overrides):
    defaults = {"code": "SAVE10", "scope": "total", "value": 10, "is_percent": True, "stock": 3}
    defaults.update(overrides)
    return Voucher.register(**defaults)


class TestRegistration:
    def test_register_raises_event(self):
        voucher = _voucher()
        assert voucher.is_active
        assert isinstance(voucher._events[0], VoucherRegistered)

    def test_unknown_scope_is_rejected(self):
        with pytest.raises(ValidationError):
            _voucher(scope="shipping")

    def test_brand_scope_requires_brand(self):
        with pytest.raises(ValidationError) as exc_info:
            _voucher(scope="brand")
        assert "brand_id" in exc_info.value.messages

    def test_percent_cannot_exceed_hundred(self):
        with pytest.raises(ValidationError):
            _voucher(value=150)

    def test_fixed_value_can_exceed_hundred(self):
        assert _voucher(is_percent=False, value=15000).value == 15000

    def test_window_must_be_ordered(self):
        now = datetime.now(UTC)
        with pytest.raises(ValidationError):
            _voucher(effective_at=now, expired_at=now - timedelta(days=1))


class TestRedeemability:
    def test_open_ended_voucher_is_redeemable(self):
        assert _voucher().is_redeemable_at(datetime.now(UTC))

    def test_before_effective_date(self):
        now = datetime.now(UTC)
        voucher = _voucher(effective_at=now + timedelta(days=1))
        assert not voucher.is_redeemable_at(now)

    def test_after_expiry(self):
        now = datetime.now(UTC)
        voucher = _voucher(expired_at=now - timedelta(seconds=1))
        assert not voucher.is_redeemable_at(now)

    def test_inactive_voucher(self):
        voucher = _voucher()
        voucher.deactivate()
        assert not voucher.is_redeemable_at(datetime.now(UTC))


class TestLifecycle:
    def test_deactivate(self):
        voucher = _voucher()
        voucher._events.clear()
        voucher.deactivate()
        assert voucher.is_active is False
        assert isinstance(voucher._events[0], VoucherDeactivated)

    def test_deactivate_twice(self):
        voucher = _voucher()
        voucher.deactivate()
        with pytest.raises(ValidationError):
            voucher.deactivate()

    def test_restock(self):
        voucher = _voucher(stock=1)
        voucher._events.clear()
        voucher.restock(4)
        assert voucher.stock == 5
        assert isinstance(voucher._events[0], VoucherRestocked)

    def test_restock_requires_positive_quantity(self):
        with pytest.raises(ValidationError):
            _voucher().restock(0)
