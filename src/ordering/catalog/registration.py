"""Variant registration and repricing — commands and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.catalog.variant import ProductVariant
from ordering.domain import ordering


@ordering.command(part_of="ProductVariant")
class RegisterVariant:
    variant_id = Identifier()
    brand_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    sku = String(max_length=50)
    price = Integer(required=True, min_value=0)
    stock = Integer(default=0, min_value=0)


@ordering.command(part_of="ProductVariant")
class RepriceVariant:
    variant_id = Identifier(required=True)
    new_price = Integer(required=True, min_value=0)


@ordering.command_handler(part_of=ProductVariant)
class VariantCommandHandler:
    @handle(RegisterVariant)
    def register_variant(self, command):
        variant = ProductVariant.register(
            variant_id=command.variant_id,
            brand_id=command.brand_id,
            product_name=command.product_name,
            sku=command.sku,
            price=command.price,
            stock=command.stock or 0,
        )
        current_domain.repository_for(ProductVariant).add(variant)
        return str(variant.id)

    @handle(RepriceVariant)
    def reprice_variant(self, command):
        repo = current_domain.repository_for(ProductVariant)
        variant = repo.get(command.variant_id)
        variant.reprice(command.new_price)
        repo.add(variant)
