import pytest
from fastapi.testclient import TestClient
from storefront.api import create_app
from storefront.api.auth import create_access_token


@pytest.fixture
def client(settings, gateway):
    return TestClient(create_app(settings=settings, gateway=gateway))


@pytest.fixture
def auth_headers():
    def _headers(user_id="user-ana", is_admin=False, email="ana@example.com"):
        token = create_access_token(user_id, is_admin=is_admin, email=email)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def ana(auth_headers):
    return auth_headers()


@pytest.fixture
def ben(auth_headers):
    return auth_headers("user-ben", email="ben@example.com")


@pytest.fixture
def ops(auth_headers):
    return auth_headers("admin-1", is_admin=True, email="ops@example.com")


@pytest.fixture
def shipping():
    return {
        "street": "Av. Providencia 1234",
        "city": "Santiago",
        "state": "Metropolitana",
        "zipCode": "7500000",
        "country": "Chile",
    }
