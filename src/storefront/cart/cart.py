"""Cart aggregate — one mutable cart per user, converted into an Order at checkout.

Each line keeps a price snapshot copied from the product when the line is
added or its quantity changes. Cart totals are advisory: checkout freezes
them onto the order but re-validates stock against the live catalogue.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from storefront.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemQuantitySet,
    CartItemRemoved,
    CartReconciled,
)
from storefront.domain import storefront
from storefront.errors import InsufficientStockError, UnavailableError


@storefront.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    price_snapshot = Float(required=True, min_value=0.0)
    added_at = DateTime()

    @property
    def subtotal(self) -> float:
        return round(self.price_snapshot * self.quantity, 2)


@storefront.aggregate
class Cart:
    user_id = Identifier(required=True, unique=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id):
        now = datetime.now(UTC)
        return cls(user_id=user_id, created_at=now, updated_at=now)

    # -------------------------------------------------------------------
    # Derived totals
    # -------------------------------------------------------------------
    @property
    def total_amount(self) -> float:
        return round(sum(item.subtotal for item in self.items), 2)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def line_for(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product, quantity):
        """Add ``quantity`` units of ``product``, summing into an existing line."""
        _ensure_positive(quantity)
        _ensure_sellable(product)

        existing = self.line_for(product.id)
        new_quantity = (existing.quantity if existing else 0) + quantity
        _ensure_in_stock(product, new_quantity)

        now = datetime.now(UTC)
        if existing:
            existing.quantity = new_quantity
            existing.price_snapshot = product.price
            existing.product_name = product.name
        else:
            self.add_items(
                CartItem(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=quantity,
                    price_snapshot=product.price,
                    added_at=now,
                )
            )
        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                user_id=str(self.user_id),
                product_id=str(product.id),
                quantity=quantity,
                line_quantity=new_quantity,
                price_snapshot=product.price,
            )
        )

    def set_item_quantity(self, product, quantity):
        """Set an existing line to an absolute quantity."""
        _ensure_positive(quantity)

        existing = self.line_for(product.id)
        if existing is None:
            raise ValidationError({"product_id": ["Product is not in the cart"]})

        _ensure_sellable(product)
        _ensure_in_stock(product, quantity)

        previous_quantity = existing.quantity
        existing.quantity = quantity
        existing.price_snapshot = product.price
        existing.product_name = product.name
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemQuantitySet(
                cart_id=str(self.id),
                product_id=str(product.id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_item(self, product_id):
        """Remove a line. Removing a product that is not in the cart is a no-op."""
        existing = self.line_for(product_id)
        if existing is None:
            return

        self.remove_items(existing)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), product_id=str(product_id)))

    def clear(self):
        """Remove every line."""
        removed = len(self.items)
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(cart_id=str(self.id), user_id=str(self.user_id), items_removed=removed))

    def drop_unavailable(self, is_available) -> list[str]:
        """Drop lines whose product fails ``is_available(product_id)``.

        Returns the dropped product ids.
        """
        dropped = [item for item in self.items if not is_available(str(item.product_id))]
        if not dropped:
            return []

        for item in dropped:
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        dropped_ids = [str(item.product_id) for item in dropped]
        self.raise_(CartReconciled(cart_id=str(self.id), dropped_product_ids=json.dumps(dropped_ids)))
        return dropped_ids


def _ensure_positive(quantity):
    if quantity is None or quantity < 1:
        raise ValidationError({"quantity": ["Quantity must be at least 1"]})


def _ensure_sellable(product):
    if not product.is_active:
        raise UnavailableError(f"Product {product.name} is not available", product_id=str(product.id))


def _ensure_in_stock(product, quantity):
    if quantity > product.stock:
        raise InsufficientStockError(
            str(product.id),
            available=product.stock,
            requested=quantity,
            product_name=product.name,
        )
