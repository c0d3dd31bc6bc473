import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from storefront.cart.items import (
    AddToCart,
    ClearCart,
    ReconcileCart,
    RemoveFromCart,
    SetCartItemQuantity,
    cart_for,
)
from storefront.errors import InsufficientStockError, NotFoundError, UnavailableError
from storefront.inventory.product import Product


def _process(command):
    return current_domain.process(command, asynchronous=False)


class TestAddToCart:
    def test_creates_cart_on_first_add(self, make_product):
        mate = make_product(price=12.5, stock=5)

        cart_id = _process(AddToCart(user_id="user-1", product_id=str(mate.id), quantity=2))

        cart = cart_for("user-1", create=False)
        assert str(cart.id) == cart_id
        assert cart.total_amount == 25.0
        assert cart.items[0].price_snapshot == 12.5

    def test_one_cart_per_user(self, make_product):
        mate = make_product()
        first = _process(AddToCart(user_id="user-1", product_id=str(mate.id)))
        second = _process(AddToCart(user_id="user-1", product_id=str(mate.id)))

        assert first == second
        assert cart_for("user-1").items[0].quantity == 2

    def test_unknown_product(self):
        with pytest.raises(NotFoundError):
            _process(AddToCart(user_id="user-1", product_id="missing", quantity=1))

    def test_inactive_product(self, make_product):
        retired = make_product(is_active=False)
        with pytest.raises(UnavailableError):
            _process(AddToCart(user_id="user-1", product_id=str(retired.id)))

    def test_more_than_stock(self, make_product):
        mate = make_product(stock=2)
        with pytest.raises(InsufficientStockError):
            _process(AddToCart(user_id="user-1", product_id=str(mate.id), quantity=3))

    def test_zero_quantity_is_rejected_by_the_command(self, make_product):
        mate = make_product()
        with pytest.raises(ValidationError):
            AddToCart(user_id="user-1", product_id=str(mate.id), quantity=0)

    def test_adding_does_not_touch_stock(self, make_product, stock_of):
        mate = make_product(stock=5)
        _process(AddToCart(user_id="user-1", product_id=str(mate.id), quantity=3))
        assert stock_of(mate) == 5


class TestUpdateRemoveClear:
    def test_set_quantity(self, make_product, fill_cart):
        mate = make_product()
        fill_cart("user-1", (mate, 1))

        _process(SetCartItemQuantity(user_id="user-1", product_id=str(mate.id), quantity=4))

        assert cart_for("user-1").items[0].quantity == 4

    def test_remove(self, make_product, fill_cart):
        mate = make_product()
        yerba = make_product(name="Yerba 1kg", price=4.5)
        fill_cart("user-1", (mate, 1), (yerba, 2))

        _process(RemoveFromCart(user_id="user-1", product_id=str(mate.id)))

        cart = cart_for("user-1")
        assert [str(item.product_id) for item in cart.items] == [str(yerba.id)]

    def test_clear(self, make_product, fill_cart):
        mate = make_product()
        fill_cart("user-1", (mate, 2))

        _process(ClearCart(user_id="user-1"))

        assert cart_for("user-1").is_empty


class TestReconcile:
    def test_drops_deactivated_products(self, make_product, fill_cart):
        mate = make_product()
        yerba = make_product(name="Yerba 1kg", price=4.5)
        fill_cart("user-1", (mate, 1), (yerba, 1))

        repo = current_domain.repository_for(Product)
        product = repo.get(str(mate.id))
        product.deactivate()
        repo.add(product)

        _process(ReconcileCart(user_id="user-1"))

        cart = cart_for("user-1")
        assert [str(item.product_id) for item in cart.items] == [str(yerba.id)]
        assert cart.total_amount == 4.5
