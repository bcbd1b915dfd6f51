"""
Tests para endpoints de salud.
"""
import pytest
from httpx import AsyncClient


class TestHealthEndpoints:
    """Tests para endpoints de health check."""

    @pytest.mark.asyncio
    async def test_root_endpoint(self, client: AsyncClient):
        """GET / retorna información del servicio."""
        response = await client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "TixHub API"
        assert data["version"] == "1.0.0"
        assert "database" in data
        assert "environment" in data

    @pytest.mark.asyncio
    async def test_health_endpoint(self, client: AsyncClient):
        """GET /health retorna status healthy."""
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_unknown_route(self, client: AsyncClient):
        """Ruta inexistente retorna 404."""
        response = await client.get("/does-not-exist")

        assert response.status_code == 404


class TestOpenAPI:
    """Tests para la documentacion publicada."""

    @pytest.mark.asyncio
    async def test_schema_texts(self, client: AsyncClient):
        """Descripciones de esquemas y rutas en un solo idioma."""
        response = await client.get("/openapi.json")

        assert response.status_code == 200
        schema = response.json()
        promo = schema["components"]["schemas"]["PromoCodeCreate"]["properties"]
        assert promo["max_uses"]["description"] == "None = unlimited"
        assert promo["event_id"]["description"] == "None = every event of the seller"

        cart_item = schema["components"]["schemas"]["CartItemCreate"]["properties"]
        assert cart_item["quantity"]["description"] == "Quantity to add"

        analytics = schema["paths"]["/seller/analytics"]["get"]
        assert analytics["description"] == "Daily sales, revenue per category and top events"
