import pytest
from protean.exceptions import ValidationError
from storefront.inventory.product import Product


class TestProductCreation:
    def test_create_rounds_price(self):
        product = Product.create(name="Yerba 1kg", price=4.999, stock=3)
        assert product.price == 5.0
        assert product.stock == 3
        assert product.is_active is True
        assert product.created_at is not None

    def test_negative_stock_is_rejected(self):
        with pytest.raises(ValidationError):
            Product.create(name="Yerba 1kg", price=5.0, stock=-1)

    def test_negative_price_is_rejected(self):
        with pytest.raises(ValidationError):
            Product.create(name="Yerba 1kg", price=-1.0, stock=1)


class TestProductLifecycle:
    def test_deactivate_and_activate(self):
        product = Product.create(name="Bombilla", price=7.5, stock=2)
        product.deactivate()
        assert product.is_active is False
        product.activate()
        assert product.is_active is True

    def test_reprice(self):
        product = Product.create(name="Bombilla", price=7.5, stock=2)
        product.reprice(8.129)
        assert product.price == 8.13
