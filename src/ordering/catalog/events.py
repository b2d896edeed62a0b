"""Domain events for the ProductVariant aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="ProductVariant")
class VariantRegistered:
    """A purchasable variant became available to the settlement pipeline."""

    __version__ = "v1"

    variant_id = Identifier(required=True)
    brand_id = Identifier(required=True)
    product_name = String(required=True)
    price = Integer(required=True)
    registered_at = DateTime(required=True)


@ordering.event(part_of="ProductVariant")
class VariantRepriced:
    """A variant's price changed. Settled orders keep their price snapshot."""

    __version__ = "v1"

    variant_id = Identifier(required=True)
    previous_price = Integer(required=True)
    new_price = Integer(required=True)
    repriced_at = DateTime(required=True)
