"""Catalog Resolver — turns (variant id, quantity) pairs into priced lines."""

from dataclasses import dataclass

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.catalog.variant import ProductVariant
from ordering.exceptions import VariantNotFound


@dataclass(frozen=True)
class ResolvedLine:
    """A cart line with the catalog values captured at settlement time."""

    variant_id: str
    brand_id: str
    product_name: str
    price: int
    quantity: int

    @property
    def total(self) -> int:
        return self.price * self.quantity


def resolve_lines(lines: list[tuple[str, int]]) -> list[ResolvedLine]:
    """Resolve every requested line or fail as a whole.

    Raises ``VariantNotFound`` on the first unknown variant id and
    ``ValidationError`` for non-positive quantities. Read-only.
    """
    repo = current_domain.repository_for(ProductVariant)

    resolved = []
    for variant_id, quantity in lines:
        if quantity is None or int(quantity) < 1:
            raise ValidationError({"quantity": [f"Quantity for variant {variant_id} must be at least 1"]})

        try:
            variant = repo.get(variant_id)
        except ObjectNotFoundError as exc:
            raise VariantNotFound({"variant_id": [f"Product variant {variant_id} does not exist"]}) from exc

        resolved.append(
            ResolvedLine(
                variant_id=str(variant.id),
                brand_id=str(variant.brand_id),
                product_name=variant.product_name,
                price=variant.price,
                quantity=int(quantity),
            )
        )
    return resolved
