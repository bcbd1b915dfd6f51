"""
Tests para evaluacion y gestion de codigos promocionales.
"""
import re
import pytest
from decimal import Decimal
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient

from tixhub.models.promo_code import PromoCode, RejectionReason
from tixhub.services.promo_codes_service import evaluate_promo_code, find_promo_code
from tests.utils.factories import PromoCodeFactory, new_id
from tests.utils.mocks import mock_seller


def make_promo(**kwargs) -> PromoCode:
    return PromoCode(**PromoCodeFactory.create(**kwargs))


class TestEvaluatePromoCode:
    """Tests para la evaluacion pura de un codigo."""

    def test_percentage_discount(self):
        """20% sobre 10000 descuenta 2000."""
        result = evaluate_promo_code(make_promo(discount_value=Decimal("20")), Decimal("10000"))

        assert result.is_valid
        assert result.discount_amount == Decimal("2000")
        assert result.reason is None

    def test_fixed_discount(self):
        result = evaluate_promo_code(
            make_promo(discount_type="fixed", discount_value=Decimal("1500")),
            Decimal("10000")
        )

        assert result.is_valid
        assert result.discount_amount == Decimal("1500")

    def test_fixed_discount_capped_at_subtotal(self):
        """Un descuento fijo nunca supera el subtotal."""
        result = evaluate_promo_code(
            make_promo(discount_type="fixed", discount_value=Decimal("5000")),
            Decimal("3000")
        )

        assert result.is_valid
        assert result.discount_amount == Decimal("3000")

    def test_inactive_rejected(self):
        result = evaluate_promo_code(make_promo(is_active=False), Decimal("10000"))

        assert not result.is_valid
        assert result.reason == RejectionReason.INACTIVE

    def test_expired_rejected(self):
        expired = datetime.now(timezone.utc) - timedelta(days=1)
        result = evaluate_promo_code(make_promo(expires_at=expired), Decimal("10000"))

        assert not result.is_valid
        assert result.reason == RejectionReason.EXPIRED

    def test_naive_expiry_treated_as_utc(self):
        future = datetime.utcnow() + timedelta(days=1)
        result = evaluate_promo_code(make_promo(expires_at=future), Decimal("10000"))

        assert result.is_valid

    def test_exhausted_rejected(self):
        """max_uses=5 con used_count=5 ya no aplica."""
        result = evaluate_promo_code(make_promo(max_uses=5, used_count=5), Decimal("10000"))

        assert not result.is_valid
        assert result.reason == RejectionReason.EXHAUSTED

    def test_last_use_still_valid(self):
        result = evaluate_promo_code(make_promo(max_uses=5, used_count=4), Decimal("10000"))

        assert result.is_valid

    def test_unlimited_uses(self):
        result = evaluate_promo_code(make_promo(max_uses=None, used_count=10_000), Decimal("10000"))

        assert result.is_valid

    def test_minimum_not_met(self):
        result = evaluate_promo_code(make_promo(min_purchase=Decimal("20000")), Decimal("10000"))

        assert not result.is_valid
        assert result.reason == RejectionReason.MINIMUM_NOT_MET

    def test_minimum_exactly_met(self):
        result = evaluate_promo_code(make_promo(min_purchase=Decimal("10000")), Decimal("10000"))

        assert result.is_valid

    def test_checks_run_in_order(self):
        """Inactivo tiene prioridad sobre expirado y agotado."""
        expired = datetime.now(timezone.utc) - timedelta(days=1)
        result = evaluate_promo_code(
            make_promo(is_active=False, expires_at=expired, max_uses=1, used_count=1),
            Decimal("10000")
        )

        assert result.reason == RejectionReason.INACTIVE


class TestFindPromoCode:
    """Tests para la busqueda del codigo."""

    @pytest.mark.asyncio
    async def test_code_is_normalized(self, db):
        event_id = new_id()
        db.set_fetchrow_return("FROM promo_codes", PromoCodeFactory.create(code="SAVE20"))

        promo = await find_promo_code(db, "  save20 ", event_id)

        assert promo.code == "SAVE20"
        assert db.calls_with("fetchrow", "FROM promo_codes")[0] == ("SAVE20", event_id)

    @pytest.mark.asyncio
    async def test_event_specific_ordered_first(self, db):
        await find_promo_code(db, "SAVE20", new_id())

        query = db.get_call_history()[0][1]
        assert "ORDER BY (event_id IS NULL) ASC" in query

    @pytest.mark.asyncio
    async def test_blank_code(self, db):
        assert await find_promo_code(db, "   ", None) is None
        assert db.get_call_history() == []


class TestValidatePromoCodeEndpoint:
    """Tests para POST /promo-codes/validate"""

    @pytest.mark.asyncio
    async def test_valid_code(self, client: AsyncClient, db):
        """Codigo valido retorna el descuento calculado."""
        db.set_fetchrow_return("FROM promo_codes", PromoCodeFactory.create(code="SAVE20"))

        response = await client.post(
            "/promo-codes/validate",
            json={"code": "save20", "event_id": new_id(), "subtotal": "10000"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["is_valid"] is True
        assert data["code"] == "SAVE20"
        assert Decimal(data["discount_amount"]) == Decimal("2000")

    @pytest.mark.asyncio
    async def test_unknown_code(self, client: AsyncClient):
        """Codigo inexistente no es error HTTP."""
        response = await client.post(
            "/promo-codes/validate",
            json={"code": "NOPE", "subtotal": "10000"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["is_valid"] is False
        assert data["reason"] == "not_found"

    @pytest.mark.asyncio
    async def test_exhausted_code(self, client: AsyncClient, db):
        db.set_fetchrow_return("FROM promo_codes", PromoCodeFactory.create(max_uses=5, used_count=5))

        response = await client.post(
            "/promo-codes/validate",
            json={"code": "PROMO", "subtotal": "10000"}
        )

        data = response.json()
        assert data["is_valid"] is False
        assert data["reason"] == "exhausted"


class TestSellerPromoCodes:
    """Tests para /seller/promo-codes"""

    @pytest.mark.asyncio
    async def test_create_with_generated_code(self, client: AsyncClient, db, auth_headers, seller):
        """Sin codigo se genera uno de 8 caracteres."""
        db.set_fetchrow_return(
            "INSERT INTO promo_codes",
            lambda *args: PromoCodeFactory.create(seller_id=args[0], code=args[1])
        )

        with mock_seller(seller):
            response = await client.post(
                "/seller/promo-codes",
                json={"discount_type": "percentage", "discount_value": "15"},
                headers=auth_headers
            )

        assert response.status_code == 201
        assert re.fullmatch(r"[A-Z0-9]{8}", response.json()["code"])

    @pytest.mark.asyncio
    async def test_create_uppercases_code(self, client: AsyncClient, db, auth_headers, seller):
        db.set_fetchrow_return(
            "INSERT INTO promo_codes",
            lambda *args: PromoCodeFactory.create(seller_id=args[0], code=args[1])
        )

        with mock_seller(seller):
            response = await client.post(
                "/seller/promo-codes",
                json={"code": " lagos10 ", "discount_type": "fixed", "discount_value": "1000"},
                headers=auth_headers
            )

        assert response.status_code == 201
        assert response.json()["code"] == "LAGOS10"

    @pytest.mark.asyncio
    async def test_duplicate_code(self, client: AsyncClient, db, auth_headers, seller):
        db.set_fetchrow_return("SELECT id FROM promo_codes", {"id": new_id()})

        with mock_seller(seller):
            response = await client.post(
                "/seller/promo-codes",
                json={"code": "SAVE20", "discount_value": "20"},
                headers=auth_headers
            )

        assert response.status_code == 400
        assert "already exists" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_percentage_above_100(self, client: AsyncClient, auth_headers, seller):
        with mock_seller(seller):
            response = await client.post(
                "/seller/promo-codes",
                json={"code": "TOOMUCH", "discount_type": "percentage", "discount_value": "150"},
                headers=auth_headers
            )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_event_scope_must_be_owned(self, client: AsyncClient, auth_headers, seller):
        """Evento de otro vendedor retorna 404."""
        with mock_seller(seller):
            response = await client.post(
                "/seller/promo-codes",
                json={"code": "MINE", "discount_value": "10", "event_id": new_id()},
                headers=auth_headers
            )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_missing(self, client: AsyncClient, auth_headers, seller):
        with mock_seller(seller):
            response = await client.delete(f"/seller/promo-codes/{new_id()}", headers=auth_headers)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_requires_seller_profile(self, client: AsyncClient, auth_headers):
        """Usuario sin perfil de vendedor recibe 403."""
        response = await client.get("/seller/promo-codes", headers=auth_headers)

        assert response.status_code == 403
