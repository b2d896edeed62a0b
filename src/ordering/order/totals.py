"""Order totals — second settlement transaction.

Prices every OrderDetail and then the Order, consumes the voucher when its
rule applied, and writes all totals in one unit of work. Keyed by order id
and safe to re-run: an order that is already priced is left untouched and
its voucher is not consumed again.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.pricing import quote
from ordering.voucher.resolver import resolve_voucher
from ordering.voucher.voucher import Voucher

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PriceOrder:
    order_id = Identifier(required=True)
    voucher_id = Identifier()


@ordering.command_handler(part_of=Order)
class PriceOrderHandler:
    @handle(PriceOrder)
    def price_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if order.is_priced:
            logger.info("order.already_priced", order_id=str(order.id), total=order.total)
            return str(order.id)

        rule = resolve_voucher(command.voucher_id)
        order_quote = quote(order, rule)

        # Consume first: running out of stock must abort before any total is written
        if order_quote.consumes_voucher:
            current_domain.repository_for(Voucher).consume(order_quote.voucher_id)

        order.apply_pricing(order_quote)
        repo.add(order)
        return str(order.id)
