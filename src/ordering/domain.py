"""Ordering bounded context — order settlement.

Turns cart submissions into multi-brand orders: per-brand order details,
two-level voucher discounting and invoice issuance through an external
provider.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
ordering = Domain(name="ordering")
