"""
Tests para tokens QR y boletas del comprador.
"""
import re
import base64
import pytest
from httpx import AsyncClient

from tixhub.utils.qr_generator import (
    generate_qr_token, is_qr_token, render_qr_png_base64, generate_data_url
)
from tests.utils.factories import TicketFactory, new_id

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestQRToken:
    """Tests para generate_qr_token."""

    def test_format(self):
        token = generate_qr_token()

        assert re.fullmatch(r"TIXHUB-\d{13}-[A-Z0-9]{7}", token)

    def test_tokens_differ(self):
        tokens = {generate_qr_token() for _ in range(200)}

        assert len(tokens) == 200

    def test_shape_check(self):
        assert is_qr_token(generate_qr_token())
        assert not is_qr_token("TIXHUB-abc-ABC1234")
        assert not is_qr_token("TIXHUB-1760000000000-abc1234")
        assert not is_qr_token("TIXHUB-1760000000000-ABC12")
        assert not is_qr_token("")


class TestQRImage:
    """Tests para la imagen del QR."""

    def test_png_base64(self):
        data = render_qr_png_base64("TIXHUB-1760000000000-ABC1234")

        assert base64.b64decode(data).startswith(PNG_SIGNATURE)

    def test_data_url(self):
        assert generate_data_url("abc") == "data:image/png;base64,abc"


class TestMyTickets:
    """Tests para GET /tickets/me y /tickets/{id}/qr"""

    @pytest.mark.asyncio
    async def test_list_my_tickets(self, client: AsyncClient, db, auth_headers):
        db.set_fetch_return("FROM tickets t", [TicketFactory.create(), TicketFactory.create(status="used")])

        response = await client.get("/tickets/me", headers=auth_headers)

        assert response.status_code == 200
        assert [t["status"] for t in response.json()] == ["valid", "used"]

    @pytest.mark.asyncio
    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get("/tickets/me")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_qr_for_valid_ticket(self, client: AsyncClient, db, auth_headers, user_id):
        ticket = TicketFactory.create(user_id=user_id)
        db.set_fetchrow_return("FROM tickets", ticket)

        response = await client.get(f"/tickets/{ticket['id']}/qr", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["qr_code"] == ticket["qr_code"]
        assert data["qr_code_data_url"].startswith("data:image/png;base64,")

    @pytest.mark.asyncio
    async def test_no_qr_for_pending_ticket(self, client: AsyncClient, db, auth_headers, user_id):
        """Boleta sin pagar no muestra QR."""
        ticket = TicketFactory.create(user_id=user_id, status="pending")
        db.set_fetchrow_return("FROM tickets", ticket)

        response = await client.get(f"/tickets/{ticket['id']}/qr", headers=auth_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_qr_of_another_user(self, client: AsyncClient, db, auth_headers):
        ticket = TicketFactory.create(user_id=new_id())
        db.set_fetchrow_return("FROM tickets", ticket)

        response = await client.get(f"/tickets/{ticket['id']}/qr", headers=auth_headers)

        assert response.status_code == 404
