"""Cart item management — commands and handler.

Carts are addressed by their owner: every command carries the ``user_id``
and the handler lazily creates the cart on first use.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.domain import storefront
from storefront.errors import NotFoundError
from storefront.inventory.catalog import ProductCatalog

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Cart")
class AddToCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1, default=1)


@storefront.command(part_of="Cart")
class SetCartItemQuantity:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Cart")
class RemoveFromCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="Cart")
class ClearCart:
    user_id = Identifier(required=True)


@storefront.command(part_of="Cart")
class ReconcileCart:
    """Drop lines whose product was deleted or deactivated since it was added."""

    user_id = Identifier(required=True)


def cart_for(user_id, create=True) -> Cart | None:
    cart = current_domain.repository_for(Cart).for_user(user_id)
    if cart is None and create:
        cart = Cart.create(user_id=user_id)
    return cart


def _is_available(catalog):
    def check(product_id):
        try:
            return catalog.get_product(product_id).is_active
        except NotFoundError:
            return False

    return check


@storefront.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        product = ProductCatalog().get_product(command.product_id)
        repo = current_domain.repository_for(Cart)
        cart = cart_for(command.user_id)
        cart.add_item(product, command.quantity)
        repo.add(cart)
        return str(cart.id)

    @handle(SetCartItemQuantity)
    def set_item_quantity(self, command):
        product = ProductCatalog().get_product(command.product_id)
        repo = current_domain.repository_for(Cart)
        cart = cart_for(command.user_id)
        cart.set_item_quantity(product, command.quantity)
        repo.add(cart)
        return str(cart.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = cart_for(command.user_id)
        cart.remove_item(command.product_id)
        repo.add(cart)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = cart_for(command.user_id)
        cart.clear()
        repo.add(cart)
        return str(cart.id)

    @handle(ReconcileCart)
    def reconcile_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = cart_for(command.user_id)
        dropped = cart.drop_unavailable(_is_available(ProductCatalog()))
        if dropped:
            logger.info("Dropped unavailable cart lines", user_id=str(command.user_id), product_ids=dropped)
        repo.add(cart)
        return str(cart.id)
