"""Product aggregate — the sellable unit and its on-hand stock.

Catalogue management (descriptions, images, categories) lives elsewhere;
checkout only needs the name, the current price, the stock counter and
whether the product is still for sale.
"""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from storefront.domain import storefront


@storefront.aggregate
class Product:
    name = String(required=True, max_length=255)
    description = Text()
    category = String(max_length=100)
    price = Float(required=True, min_value=0.0)
    stock = Integer(required=True, min_value=0, default=0)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, name, price, stock=0, description=None, category=None, is_active=True):
        now = datetime.now(UTC)
        return cls(
            name=name,
            price=round(float(price), 2),
            stock=stock,
            description=description,
            category=category,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )

    def reprice(self, price):
        self.price = round(float(price), 2)
        self.updated_at = datetime.now(UTC)

    def deactivate(self):
        self.is_active = False
        self.updated_at = datetime.now(UTC)

    def activate(self):
        self.is_active = True
        self.updated_at = datetime.now(UTC)
