"""ProductVariant aggregate — the catalog read model consulted at settlement.

Catalog maintenance (products, images, categories) lives elsewhere; this
aggregate keeps only what settlement needs: the owning brand, the display
name snapshotted onto invoice lines, and the current price in the smallest
currency unit.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String

from ordering.catalog.events import VariantRegistered, VariantRepriced
from ordering.domain import ordering


@ordering.aggregate
class ProductVariant:
    brand_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    sku = String(max_length=50)
    price = Integer(required=True, min_value=0)
    stock = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, brand_id, product_name, price, sku=None, stock=0, variant_id=None):
        now = datetime.now(UTC)
        values = dict(
            brand_id=brand_id,
            product_name=product_name,
            sku=sku,
            price=price,
            stock=stock,
            created_at=now,
            updated_at=now,
        )
        if variant_id:
            values["id"] = variant_id

        variant = cls(**values)
        variant.raise_(
            VariantRegistered(
                variant_id=str(variant.id),
                brand_id=str(brand_id),
                product_name=product_name,
                price=price,
                registered_at=now,
            )
        )
        return variant

    def reprice(self, new_price):
        if new_price < 0:
            raise ValidationError({"price": ["Price cannot be negative"]})

        previous_price = self.price
        now = datetime.now(UTC)
        self.price = new_price
        self.updated_at = now
        self.raise_(
            VariantRepriced(
                variant_id=str(self.id),
                previous_price=previous_price,
                new_price=new_price,
                repriced_at=now,
            )
        )
