"""Read-side helpers over persisted orders. Nothing here recomputes totals."""

from protean.utils.globals import current_domain

from ordering.order.order import InvoiceStatus, Order


def get_order(order_id: str) -> Order:
    return current_domain.repository_for(Order).get(order_id)


def orders_for_user(user_id: str, status: str | None = None) -> list[Order]:
    filters = {"user_id": user_id}
    if status:
        filters["status"] = status
    repo = current_domain.repository_for(Order)
    return repo._dao.query.filter(**filters).order_by("-created_at").all().items


def list_orders(status: str | None = None) -> list[Order]:
    query = current_domain.repository_for(Order)._dao.query
    if status:
        query = query.filter(status=status)
    return query.order_by("-created_at").all().items


def orders_awaiting_invoice() -> list[Order]:
    """Priced orders whose invoice has not been issued yet."""
    repo = current_domain.repository_for(Order)
    orders = (
        repo._dao.query.filter(invoice_status__in=[InvoiceStatus.PENDING.value, InvoiceStatus.FAILED.value])
        .order_by("created_at")
        .all()
        .items
    )
    return [order for order in orders if order.is_priced]
