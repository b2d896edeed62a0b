"""Repository for the Voucher aggregate — lookups and atomic stock consumption."""

from datetime import UTC, datetime

import structlog
from protean.exceptions import ObjectNotFoundError

from ordering.domain import ordering
from ordering.exceptions import VoucherNotFound, VoucherOutOfStock
from ordering.voucher.voucher import Voucher

logger = structlog.get_logger(__name__)

# Attempts before giving up when other settlements keep winning the race
MAX_CONSUME_ATTEMPTS = 5


@ordering.repository(part_of=Voucher)
class VoucherRepository:
    def get_active(self, voucher_id: str, at: datetime | None = None) -> Voucher:
        """Load a voucher that is active and inside its validity window."""
        moment = at or datetime.now(UTC)
        try:
            voucher = self.get(voucher_id)
        except ObjectNotFoundError as exc:
            raise VoucherNotFound({"voucher_id": [f"Voucher {voucher_id} does not exist"]}) from exc

        if not voucher.is_redeemable_at(moment):
            raise VoucherNotFound({"voucher_id": [f"Voucher {voucher_id} is not active"]})
        return voucher

    def find_by_code(self, code: str) -> Voucher | None:
        try:
            return self._dao.find_by(code=code)
        except ObjectNotFoundError:
            return None

    def consume(self, voucher_id: str) -> int:
        """Take one unit of stock and return what is left.

        Each attempt is a conditional update keyed on the stock value just
        read, so it matches zero rows if another settlement consumed first.
        """
        for attempt in range(1, MAX_CONSUME_ATTEMPTS + 1):
            try:
                observed = self._dao.get(voucher_id).stock
            except ObjectNotFoundError as exc:
                raise VoucherNotFound({"voucher_id": [f"Voucher {voucher_id} does not exist"]}) from exc

            if observed < 1:
                raise VoucherOutOfStock(voucher_id)

            updated = self._dao.query.filter(id=voucher_id, stock=observed).update_all(stock=observed - 1)
            if updated == 1:
                logger.info("voucher.consumed", voucher_id=voucher_id, remaining=observed - 1)
                return observed - 1

            logger.warning("voucher.consume_conflict", voucher_id=voucher_id, attempt=attempt)

        raise VoucherOutOfStock(voucher_id)
