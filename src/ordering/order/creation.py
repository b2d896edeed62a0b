"""Order creation — first settlement transaction.

Persists the order shell (awaiting payment, zero totals) together with every
OrderDetail and InvoiceDetail. The handler runs in a single unit of work, so
a failure anywhere leaves nothing behind.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.catalog.resolver import resolve_lines
from ordering.domain import ordering
from ordering.order.assembly import assemble
from ordering.order.order import Order


@ordering.command(part_of="Order")
class CreateOrder:
    user_id = Identifier(required=True)
    receiver = String(required=True, max_length=255)
    phone_number = String(required=True, max_length=50)
    address = String(required=True, max_length=500)
    city = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    buyer_name = String(max_length=255)
    buyer_email = String(max_length=255)
    items = Text(required=True)  # JSON: list of {variant_id, quantity}


def _cart_lines(items):
    try:
        return [(str(item["variant_id"]), int(item["quantity"])) for item in items]
    except (KeyError, TypeError, ValueError):
        raise ValidationError({"items": ["Each item needs a variant_id and an integer quantity"]}) from None


@ordering.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        items = json.loads(command.items) if isinstance(command.items, str) else command.items
        lines = resolve_lines(_cart_lines(items))

        order = assemble(
            user_id=command.user_id,
            lines=lines,
            shipping={
                "receiver": command.receiver,
                "phone_number": command.phone_number,
                "address": command.address,
                "city": command.city,
                "postal_code": command.postal_code,
            },
            buyer_name=command.buyer_name,
            buyer_email=command.buyer_email,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
