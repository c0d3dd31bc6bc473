import pytest
from protean.integrations.pytest import DomainFixture

ADDRESS = {
    "street": "Av. Providencia 1234",
    "city": "Santiago",
    "state": "Metropolitana",
    "zip_code": "7500000",
    "country": "Chile",
}


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront
    from storefront.utils.db import drop_db, setup_db

    bed = DomainFixture(storefront)
    bed.setup()
    setup_db(storefront)
    yield bed
    drop_db(storefront)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    from protean import current_domain
    from storefront.notification.channel import reset_email_channel

    with storefront_bed.domain_context():
        yield

        # Clear all databases and drain the event store
        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    reset_email_channel()


@pytest.fixture
def address():
    return dict(ADDRESS)


@pytest.fixture
def settings():
    from storefront.config import Settings

    return Settings(PAYMENT_GATEWAY="fake", FRONTEND_URL="http://shop.test")


@pytest.fixture
def gateway():
    from storefront.payment.gateway import FakeGateway

    return FakeGateway()


@pytest.fixture
def orchestrator(gateway, settings):
    from storefront.checkout.orchestrator import CheckoutOrchestrator

    return CheckoutOrchestrator(gateway, settings=settings)


@pytest.fixture
def email_channel():
    from storefront.notification.channel import get_email_channel

    return get_email_channel()


@pytest.fixture
def customer():
    from storefront.identity import AuthContext

    return AuthContext(user_id="user-ana", email="ana@example.com")


@pytest.fixture
def other_customer():
    from storefront.identity import AuthContext

    return AuthContext(user_id="user-ben", email="ben@example.com")


@pytest.fixture
def admin():
    from storefront.identity import AuthContext

    return AuthContext(user_id="admin-1", is_admin=True, email="ops@example.com")


@pytest.fixture
def make_product():
    """Persist a product and return it."""
    from protean import current_domain
    from storefront.inventory.product import Product

    def _make(name="Mate Gourd", price=10.0, stock=5, is_active=True):
        product = Product.create(name=name, price=price, stock=stock, is_active=is_active)
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture
def fill_cart():
    """Add (product, quantity) pairs to a user's cart through the cart commands."""
    from protean import current_domain
    from storefront.cart.items import AddToCart

    def _fill(user_id, *lines):
        for product, quantity in lines:
            current_domain.process(
                AddToCart(user_id=user_id, product_id=str(product.id), quantity=quantity),
                asynchronous=False,
            )

    return _fill


@pytest.fixture
def stock_of():
    """Current stock of a product, read fresh from the repository."""
    from protean import current_domain
    from storefront.inventory.product import Product

    def _stock(product) -> int:
        return current_domain.repository_for(Product).get(str(product.id)).stock

    return _stock
