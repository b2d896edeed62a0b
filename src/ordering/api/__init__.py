"""Ordering domain API package."""

from ordering.api.routes import callback_router, order_router, variant_router, voucher_router

__all__ = ["order_router", "callback_router", "voucher_router", "variant_router"]
