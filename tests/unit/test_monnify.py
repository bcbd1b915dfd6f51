"""
Tests para el gateway de Monnify contra respuestas simuladas.
"""
import json
import base64
import httpx
import pytest
from decimal import Decimal
from unittest.mock import patch

from tixhub.core.exceptions import PaymentError
from tixhub.services.gateways import get_gateway, MonnifyGateway, PaymentData, PaymentStatus

RealAsyncClient = httpx.AsyncClient

LOGIN_OK = {
    "requestSuccessful": True,
    "responseMessage": "success",
    "responseBody": {"accessToken": "access-token-123", "expiresIn": 3600},
}


def make_gateway() -> MonnifyGateway:
    gateway = MonnifyGateway()
    gateway.api_key = "MK_TEST_KEY"
    gateway.secret_key = "SECRET"
    gateway.contract_code = "1234567890"
    gateway.base_url = "https://sandbox.monnify.com"
    return gateway


def mock_monnify(handler):
    """Routes every httpx call made by the gateway through handler."""
    transport = httpx.MockTransport(handler)
    return patch(
        "httpx.AsyncClient",
        side_effect=lambda *args, **kwargs: RealAsyncClient(transport=transport)
    )


def payment_data(**overrides) -> PaymentData:
    values = dict(
        reference="TIX-order-1-1760000000000",
        amount=Decimal("13649.9965"),
        currency="NGN",
        customer_email="buyer@test.com",
        customer_name="Ada Obi",
        redirect_url="http://localhost:5173/payment/callback",
    )
    values.update(overrides)
    return PaymentData(**values)


class TestGetGateway:
    def test_default_is_monnify(self):
        assert get_gateway().name == "monnify"

    def test_unknown(self):
        with pytest.raises(ValueError):
            get_gateway("wompi")


class TestInitializeTransaction:
    """Tests para init-transaction."""

    @pytest.mark.asyncio
    async def test_returns_checkout_url(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.path == "/api/v1/auth/login":
                return httpx.Response(200, json=LOGIN_OK)
            return httpx.Response(200, json={
                "requestSuccessful": True,
                "responseMessage": "success",
                "responseBody": {
                    "transactionReference": "MNFY|20261016|000123",
                    "paymentReference": "TIX-order-1-1760000000000",
                    "checkoutUrl": "https://sandbox.monnify.com/checkout/MNFY|20261016|000123",
                },
            })

        with mock_monnify(handler):
            intent = await make_gateway().initialize_transaction(payment_data())

        assert intent.checkout_url.startswith("https://sandbox.monnify.com/checkout/")
        assert intent.transaction_reference == "MNFY|20261016|000123"
        assert intent.extra_data == {"environment": "sandbox"}

        login, init = requests
        expected_basic = base64.b64encode(b"MK_TEST_KEY:SECRET").decode()
        assert login.headers["Authorization"] == f"Basic {expected_basic}"
        assert init.headers["Authorization"] == "Bearer access-token-123"

        body = json.loads(init.content)
        assert body["amount"] == 13650.0
        assert body["paymentReference"] == "TIX-order-1-1760000000000"
        assert body["contractCode"] == "1234567890"
        assert body["currencyCode"] == "NGN"
        assert body["paymentMethods"] == ["CARD", "ACCOUNT_TRANSFER", "USSD"]

    @pytest.mark.asyncio
    async def test_rejected_by_monnify(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/v1/auth/login":
                return httpx.Response(200, json=LOGIN_OK)
            return httpx.Response(400, json={
                "requestSuccessful": False,
                "responseMessage": "Duplicate payment reference",
            })

        with mock_monnify(handler):
            with pytest.raises(PaymentError) as exc:
                await make_gateway().initialize_transaction(payment_data())

        assert "Duplicate payment reference" in exc.value.message

    @pytest.mark.asyncio
    async def test_login_failed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={
                "requestSuccessful": False,
                "responseMessage": "Invalid credentials",
            })

        with mock_monnify(handler):
            with pytest.raises(PaymentError):
                await make_gateway().initialize_transaction(payment_data())

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        gateway = make_gateway()
        gateway.secret_key = None

        with mock_monnify(lambda request: httpx.Response(500)):
            with pytest.raises(PaymentError) as exc:
                await gateway.initialize_transaction(payment_data())

        assert exc.value.message == "Monnify credentials not configured"

    @pytest.mark.asyncio
    async def test_non_json_response(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/v1/auth/login":
                return httpx.Response(200, json=LOGIN_OK)
            return httpx.Response(502, text="<html>Bad Gateway</html>")

        with mock_monnify(handler):
            with pytest.raises(PaymentError) as exc:
                await make_gateway().initialize_transaction(payment_data())

        assert "HTTP 502" in exc.value.message

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with mock_monnify(handler):
            with pytest.raises(PaymentError) as exc:
                await make_gateway().initialize_transaction(payment_data())

        assert exc.value.status_code == 402


class TestVerifyTransaction:
    """Tests para la consulta de estado."""

    @pytest.mark.asyncio
    async def test_paid(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.path == "/api/v1/auth/login":
                return httpx.Response(200, json=LOGIN_OK)
            return httpx.Response(200, json={
                "requestSuccessful": True,
                "responseMessage": "success",
                "responseBody": {
                    "transactionReference": "MNFY|20261016|000123",
                    "paymentReference": "TIX-order-1-1760000000000",
                    "paymentStatus": "PAID",
                    "amountPaid": "13650.00",
                    "paymentMethod": "CARD",
                },
            })

        with mock_monnify(handler):
            verification = await make_gateway().verify_transaction("TIX-order-1-1760000000000")

        assert verification.is_paid
        assert verification.amount_paid == Decimal("13650.00")
        assert verification.payment_method == "CARD"
        assert requests[1].method == "GET"
        assert requests[1].url.path == "/api/v2/transactions/TIX-order-1-1760000000000"

    @pytest.mark.asyncio
    async def test_pending(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/v1/auth/login":
                return httpx.Response(200, json=LOGIN_OK)
            return httpx.Response(200, json={
                "requestSuccessful": True,
                "responseMessage": "success",
                "responseBody": {"paymentStatus": "PENDING"},
            })

        with mock_monnify(handler):
            verification = await make_gateway().verify_transaction("TIX-order-1-1760000000000")

        assert verification.success
        assert not verification.is_paid
        assert verification.status == PaymentStatus.PENDING

    @pytest.mark.asyncio
    async def test_unknown_reference(self):
        """Monnify responde requestSuccessful=false: no es excepcion."""
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/v1/auth/login":
                return httpx.Response(200, json=LOGIN_OK)
            return httpx.Response(404, json={
                "requestSuccessful": False,
                "responseMessage": "Could not find transaction",
            })

        with mock_monnify(handler):
            verification = await make_gateway().verify_transaction("TIX-missing")

        assert not verification.success
        assert not verification.is_paid
        assert verification.status_message == "Could not find transaction"


class TestMapStatus:
    def test_known_statuses(self):
        gateway = make_gateway()

        assert gateway.map_status("PAID") == PaymentStatus.PAID
        assert gateway.map_status("paid") == PaymentStatus.PAID
        assert gateway.map_status("PARTIALLY_PAID") == PaymentStatus.PARTIALLY_PAID
        assert gateway.map_status("EXPIRED") == PaymentStatus.EXPIRED

    def test_unknown_is_pending(self):
        assert make_gateway().map_status("SOMETHING_NEW") == PaymentStatus.PENDING
        assert make_gateway().map_status(None) == PaymentStatus.PENDING
