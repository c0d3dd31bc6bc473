"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer, Text

from storefront.domain import storefront


@storefront.event(part_of="Cart")
class CartItemAdded:
    """A product was added to the cart, or its quantity increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    line_quantity = Integer(required=True)
    price_snapshot = Float(required=True)


@storefront.event(part_of="Cart")
class CartItemQuantitySet:
    """The quantity of a cart line was set to an absolute value."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="Cart")
class CartItemRemoved:
    """A product line was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.event(part_of="Cart")
class CartCleared:
    """Every line was removed from the cart (manually or after checkout)."""

    __version__ = 1

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)
    items_removed = Integer(required=True)


@storefront.event(part_of="Cart")
class CartReconciled:
    """Lines pointing at missing or inactive products were dropped on read."""

    __version__ = 1

    cart_id = Identifier(required=True)
    dropped_product_ids = Text(required=True)  # JSON array
