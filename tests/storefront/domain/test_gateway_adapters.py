from unittest.mock import MagicMock

import pytest
import requests
from storefront.config import Settings
from storefront.errors import (
    ConfigurationError,
    GatewayAbortedError,
    GatewayInvalidStateError,
    GatewayUnavailableError,
)
from storefront.payment.gateway import build_gateway
from storefront.payment.gateway.fake_adapter import FAKE_GATEWAY_URL, FakeGateway
from storefront.payment.gateway.port import TransactionResult
from storefront.payment.gateway.webpay_adapter import (
    INTEGRATION_COMMERCE_CODE,
    TRANSACTIONS_PATH,
    WebpayGateway,
)


def _response(status_code=200, body=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = b"{}" if body is not None else b""
    resp.json.return_value = body
    resp.text = ""
    return resp


class TestTransactionResult:
    def test_authorized_requires_status_and_code(self):
        assert TransactionResult(status="AUTHORIZED", response_code=0).authorized
        assert not TransactionResult(status="AUTHORIZED", response_code=-1).authorized
        assert not TransactionResult(status="FAILED", response_code=0).authorized


class TestFakeGateway:
    @pytest.fixture
    def fake(self):
        return FakeGateway()

    def test_create_returns_token_and_redirect(self, fake):
        opened = fake.create("ORD-1", "session-1", 20.0, "http://shop.test/payment/return")

        assert opened.token.startswith("fake_tok_")
        assert opened.url == FAKE_GATEWAY_URL
        assert opened.redirect_url == f"{FAKE_GATEWAY_URL}?token_ws={opened.token}"

    def test_commit_authorizes(self, fake):
        token = fake.create("ORD-1", "s", 20.0, "http://r").token
        result = fake.commit(token)

        assert result.authorized
        assert result.amount == 20.0
        assert result.buy_order == "ORD-1"

    def test_commit_rejects_when_configured(self, fake):
        fake.configure(should_succeed=False)
        token = fake.create("ORD-1", "s", 20.0, "http://r").token

        assert not fake.commit(token).authorized

    def test_second_commit_is_refused(self, fake):
        token = fake.create("ORD-1", "s", 20.0, "http://r").token
        fake.commit(token)

        with pytest.raises(GatewayInvalidStateError):
            fake.commit(token)
        assert fake.status(token).status == "AUTHORIZED"

    def test_refund_tracks_balance(self, fake):
        token = fake.create("ORD-1", "s", 20.0, "http://r").token
        fake.commit(token)

        partial = fake.refund(token, 5.0)
        assert partial.balance == 15.0
        assert fake.status(token).status == "PARTIALLY_NULLIFIED"

        with pytest.raises(GatewayInvalidStateError):
            fake.refund(token, 16.0)

    def test_refund_of_uncommitted_transaction_is_refused(self, fake):
        token = fake.create("ORD-1", "s", 20.0, "http://r").token
        with pytest.raises(GatewayInvalidStateError):
            fake.refund(token, 5.0)

    def test_fail_on_raises_until_reset(self, fake):
        fake.fail_on("create", GatewayUnavailableError())
        with pytest.raises(GatewayUnavailableError):
            fake.create("ORD-1", "s", 20.0, "http://r")

        fake.reset()
        assert fake.create("ORD-1", "s", 20.0, "http://r").token
        assert len(fake.calls_to("create")) == 1


class TestWebpayGateway:
    @pytest.fixture
    def session(self):
        return MagicMock(spec=requests.Session)

    @pytest.fixture
    def webpay(self, session):
        return WebpayGateway.for_integration(timeout=5, session=session)

    def test_create_posts_to_transactions_endpoint(self, webpay, session):
        session.request.return_value = _response(200, {"token": "tok-1", "url": "https://webpay/init"})

        opened = webpay.create("ORD-1", "session-1", 20.0, "http://shop.test/payment/return")

        assert opened.redirect_url == "https://webpay/init?token_ws=tok-1"
        method, url = session.request.call_args.args
        kwargs = session.request.call_args.kwargs
        assert method == "POST"
        assert url == f"https://webpay3gint.transbank.cl{TRANSACTIONS_PATH}"
        assert kwargs["headers"]["Tbk-Api-Key-Id"] == INTEGRATION_COMMERCE_CODE
        assert kwargs["json"]["buy_order"] == "ORD-1"
        assert kwargs["timeout"] == 5

    def test_incomplete_create_response(self, webpay, session):
        session.request.return_value = _response(200, {"token": "tok-1"})
        with pytest.raises(GatewayUnavailableError):
            webpay.create("ORD-1", "s", 20.0, "http://r")

    def test_commit_parses_result(self, webpay, session):
        session.request.return_value = _response(
            200,
            {"status": "AUTHORIZED", "response_code": 0, "amount": 20, "authorization_code": "1213"},
        )

        result = webpay.commit("tok-1")

        assert result.authorized
        assert result.authorization_code == "1213"
        assert session.request.call_args.args[0] == "PUT"
        assert session.request.call_args.args[1].endswith("/tok-1")

    def test_aborted_transaction(self, webpay, session):
        session.request.return_value = _response(422, {"error_message": "Transaction aborted by the user"})
        with pytest.raises(GatewayAbortedError):
            webpay.commit("tok-1")

    def test_invalid_status(self, webpay, session):
        session.request.return_value = _response(422, {"error_message": "Invalid status '1' for transaction"})
        with pytest.raises(GatewayInvalidStateError):
            webpay.commit("tok-1")

    def test_rejected_credentials(self, webpay, session):
        session.request.return_value = _response(401, {"error_message": "Not Authorized"})
        with pytest.raises(ConfigurationError):
            webpay.commit("tok-1")

    def test_server_error_is_unavailable(self, webpay, session):
        session.request.return_value = _response(503)
        with pytest.raises(GatewayUnavailableError):
            webpay.commit("tok-1")
        assert session.request.call_count == 1

    def test_status_is_retried_on_transport_failure(self, webpay, session):
        session.request.side_effect = [
            requests.ConnectionError("reset"),
            _response(200, {"status": "AUTHORIZED", "response_code": 0}),
        ]

        assert webpay.status("tok-1").status == "AUTHORIZED"
        assert session.request.call_count == 2

    def test_refund(self, webpay, session):
        session.request.return_value = _response(200, {"type": "NULLIFIED", "nullified_amount": 20, "balance": 0})

        result = webpay.refund("tok-1", 20.0)

        assert result.type == "NULLIFIED"
        assert session.request.call_args.args[1].endswith("/tok-1/refunds")
        assert session.request.call_args.kwargs["json"] == {"amount": 20.0}

    def test_production_requires_credentials(self):
        with pytest.raises(ConfigurationError):
            WebpayGateway(commerce_code="", api_key="", environment="production")

    def test_unknown_environment(self):
        with pytest.raises(ConfigurationError):
            WebpayGateway(commerce_code="1", api_key="k", environment="staging")


class TestBuildGateway:
    def test_fake_by_default(self):
        assert isinstance(build_gateway(Settings(PAYMENT_GATEWAY="fake")), FakeGateway)

    def test_webpay_integration(self):
        gateway = build_gateway(Settings(PAYMENT_GATEWAY="webpay", TRANSBANK_ENVIRONMENT="integration"))
        assert isinstance(gateway, WebpayGateway)
        assert gateway.commerce_code == INTEGRATION_COMMERCE_CODE
