"""
Monnify Payment Gateway (monnify.com)

Nigerian payment gateway supporting:
- Cards
- Bank transfer (dynamic account)
- USSD

Flow:
1. POST /api/v1/auth/login with Basic auth -> bearer access token
2. POST /api/v1/merchant/transactions/init-transaction -> checkoutUrl
3. Buyer pays on Monnify and is redirected to our callback page
4. GET /api/v2/transactions/{paymentReference} -> paymentStatus

Documentation: https://developers.monnify.com/
"""
import base64
import logging
import httpx
from typing import Dict, Any
from decimal import Decimal
from urllib.parse import quote

from tixhub.config import settings
from tixhub.core.exceptions import PaymentError
from tixhub.services.gateways.base import (
    BaseGateway, PaymentIntent, PaymentVerification, PaymentData, PaymentStatus
)
from tixhub.services.pricing_service import to_money

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ["CARD", "ACCOUNT_TRANSFER", "USSD"]


class MonnifyGateway(BaseGateway):
    """Monnify gateway implementation using the hosted checkout"""

    def __init__(self):
        self.api_key = settings.monnify_api_key
        self.secret_key = settings.monnify_secret_key
        self.contract_code = settings.monnify_contract_code
        self.base_url = settings.monnify_base_url.rstrip('/')

    @property
    def name(self) -> str:
        return "monnify"

    @property
    def display_name(self) -> str:
        return "Monnify"

    def _basic_auth_header(self) -> str:
        credentials = f"{self.api_key}:{self.secret_key}".encode()
        return f"Basic {base64.b64encode(credentials).decode()}"

    async def _get_access_token(self, client: httpx.AsyncClient) -> str:
        """Exchange API key/secret for a short-lived bearer token"""
        if not self.api_key or not self.secret_key:
            raise PaymentError("Monnify credentials not configured")

        response = await client.post(
            f"{self.base_url}/api/v1/auth/login",
            headers={
                "Authorization": self._basic_auth_header(),
                "Content-Type": "application/json"
            },
            timeout=30.0
        )
        data = self._parse_response(response)
        logger.info(f"Monnify auth response: {data.get('responseMessage')}")

        if not data.get("requestSuccessful"):
            raise PaymentError(f"Monnify auth failed: {data.get('responseMessage')}")

        token = (data.get("responseBody") or {}).get("accessToken")
        if not token:
            raise PaymentError("Monnify auth response missing access token")
        return token

    def _parse_response(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError:
            logger.error(f"Monnify returned non-JSON response: {response.status_code} - {response.text[:200]}")
            raise PaymentError(f"Unexpected Monnify response (HTTP {response.status_code})")

    async def initialize_transaction(self, data: PaymentData) -> PaymentIntent:
        """Initialize a transaction and return the hosted checkout URL"""
        payload = {
            "amount": float(to_money(data.amount)),
            "customerName": data.customer_name,
            "customerEmail": data.customer_email,
            "paymentReference": data.reference,
            "paymentDescription": data.description or "TixHub Ticket Purchase",
            "currencyCode": data.currency,
            "contractCode": self.contract_code,
            "redirectUrl": data.redirect_url,
            "paymentMethods": PAYMENT_METHODS,
        }
        if data.metadata:
            payload["metaData"] = data.metadata

        try:
            async with httpx.AsyncClient() as client:
                token = await self._get_access_token(client)
                response = await client.post(
                    f"{self.base_url}/api/v1/merchant/transactions/init-transaction",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Content-Type": "application/json"
                    },
                    timeout=30.0
                )
        except httpx.RequestError as e:
            logger.error(f"Monnify API request failed: {e}")
            raise PaymentError(f"Failed to connect to Monnify: {e}")

        response_data = self._parse_response(response)
        logger.info(f"Monnify init response: {response_data.get('responseMessage')}")

        if not response_data.get("requestSuccessful"):
            logger.error(f"Monnify init error: {response.status_code} - {response_data}")
            raise PaymentError(f"Monnify init failed: {response_data.get('responseMessage')}")

        body = response_data.get("responseBody") or {}
        checkout_url = body.get("checkoutUrl")
        if not checkout_url:
            raise PaymentError("Monnify response missing checkout URL")

        logger.info(f"Created Monnify transaction {body.get('transactionReference')} for reference {data.reference}")

        return PaymentIntent(
            reference=data.reference,
            checkout_url=checkout_url,
            amount=data.amount,
            currency=data.currency,
            transaction_reference=body.get("transactionReference"),
            extra_data={"environment": "sandbox" if "sandbox" in self.base_url else "live"}
        )

    async def verify_transaction(self, reference: str) -> PaymentVerification:
        """Query transaction status by our payment reference"""
        try:
            async with httpx.AsyncClient() as client:
                token = await self._get_access_token(client)
                response = await client.get(
                    f"{self.base_url}/api/v2/transactions/{quote(reference, safe='')}",
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Content-Type": "application/json"
                    },
                    timeout=30.0
                )
        except httpx.RequestError as e:
            logger.error(f"Failed to query Monnify transaction status: {e}")
            raise PaymentError(f"Failed to connect to Monnify: {e}")

        data = self._parse_response(response)
        logger.info(f"Monnify verify response: {data.get('responseMessage')}")

        body = data.get("responseBody") or {}
        if not data.get("requestSuccessful"):
            return PaymentVerification(
                success=False,
                reference=reference,
                status=self.map_status(body.get("paymentStatus")),
                status_message=data.get("responseMessage"),
                raw_data=data
            )

        amount_paid = body.get("amountPaid")
        return PaymentVerification(
            success=True,
            reference=reference,
            status=self.map_status(body.get("paymentStatus")),
            amount_paid=Decimal(str(amount_paid)) if amount_paid is not None else None,
            transaction_reference=body.get("transactionReference"),
            status_message=data.get("responseMessage"),
            payment_method=body.get("paymentMethod"),
            raw_data=body
        )

    def map_status(self, gateway_status: str) -> PaymentStatus:
        """Map Monnify paymentStatus to unified PaymentStatus"""
        status_map = {
            "PAID": PaymentStatus.PAID,
            "PENDING": PaymentStatus.PENDING,
            "FAILED": PaymentStatus.FAILED,
            "EXPIRED": PaymentStatus.EXPIRED,
            "CANCELLED": PaymentStatus.CANCELLED,
            "OVERPAID": PaymentStatus.OVERPAID,
            "PARTIALLY_PAID": PaymentStatus.PARTIALLY_PAID,
        }
        return status_map.get((gateway_status or "").upper(), PaymentStatus.PENDING)
