"""
Tests para la autenticacion con bearer token.
"""
import jwt
import pytest
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient

from tixhub.config import settings
from tixhub.core.security import create_access_token, decode_access_token


def token_with(**overrides) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": "11111111-1111-1111-1111-111111111111",
        "email": "buyer@test.com",
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + timedelta(hours=1),
    }
    payload.update(overrides)
    secret = payload.pop("_secret", settings.jwt_secret)
    return jwt.encode(payload, secret, algorithm="HS256")


class TestDecodeAccessToken:
    """Tests para decode_access_token."""

    def test_valid(self):
        session = decode_access_token(create_access_token("user-42", email="ada@test.com"))

        assert session["user_id"] == "user-42"
        assert session["email"] == "ada@test.com"

    def test_full_name_from_metadata(self):
        session = decode_access_token(token_with(user_metadata={"full_name": "Ada Obi"}))

        assert session["name"] == "Ada Obi"

    def test_expired(self):
        assert decode_access_token(create_access_token("user-42", expires_in=-10)) is None

    def test_wrong_secret(self):
        assert decode_access_token(token_with(_secret="another-secret-of-at-least-32-bytes!")) is None

    def test_wrong_audience(self):
        assert decode_access_token(token_with(aud="anon")) is None

    def test_missing_subject(self):
        assert decode_access_token(token_with(sub=None)) is None

    def test_garbage(self):
        assert decode_access_token("not-a-jwt") is None


class TestProtectedEndpoints:
    """Tests para rutas que requieren sesion."""

    @pytest.mark.asyncio
    async def test_expired_token(self, client: AsyncClient):
        token = create_access_token("user-42", expires_in=-10)

        response = await client.get("/cart", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Authentication required"

    @pytest.mark.asyncio
    async def test_wrong_scheme(self, client: AsyncClient):
        token = create_access_token("user-42")

        response = await client.get("/tickets/me", headers={"Authorization": f"Token {token}"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_public_endpoint_ignores_bad_token(self, client: AsyncClient):
        """Listado publico no falla con token invalido."""
        response = await client.get("/events", headers={"Authorization": "Bearer broken"})

        assert response.status_code == 200
