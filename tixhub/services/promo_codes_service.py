import logging
import secrets
import string
import asyncpg
from typing import Optional, List
from decimal import Decimal
from datetime import datetime, timezone
from tixhub.database import get_db_connection
from tixhub.models.promo_code import (
    PromoCode, PromoCodeCreate, PromoEvaluation, PromoCodeValidation,
    DiscountType, RejectionReason
)
from tixhub.core.exceptions import ValidationError, NotFoundError

logger = logging.getLogger(__name__)

GENERATED_CODE_LENGTH = 8
CODE_ALPHABET = string.ascii_uppercase + string.digits


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def generate_promo_code() -> str:
    """Random 8-char code, A-Z0-9"""
    return ''.join(secrets.choice(CODE_ALPHABET) for _ in range(GENERATED_CODE_LENGTH))


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def evaluate_promo_code(
    promo: PromoCode,
    subtotal: Decimal,
    now: Optional[datetime] = None
) -> PromoEvaluation:
    """
    Check a promo code against a subtotal and compute its discount.

    Checks run in order: active, expiry, usage cap, minimum purchase.
    Percentage discounts are subtotal * value / 100; fixed discounts
    never exceed the subtotal.
    """
    now = _as_aware(now or datetime.now(timezone.utc))
    subtotal = Decimal(str(subtotal))

    if not promo.is_active:
        return PromoEvaluation(
            is_valid=False,
            reason=RejectionReason.INACTIVE,
            message="This promo code is no longer active"
        )

    if promo.expires_at and _as_aware(promo.expires_at) < now:
        return PromoEvaluation(
            is_valid=False,
            reason=RejectionReason.EXPIRED,
            message="This promo code has expired"
        )

    if promo.max_uses is not None and promo.used_count >= promo.max_uses:
        return PromoEvaluation(
            is_valid=False,
            reason=RejectionReason.EXHAUSTED,
            message="This promo code has reached its usage limit"
        )

    if subtotal < promo.min_purchase:
        return PromoEvaluation(
            is_valid=False,
            reason=RejectionReason.MINIMUM_NOT_MET,
            message=f"Minimum purchase of {promo.min_purchase:,.2f} required"
        )

    value = Decimal(str(promo.discount_value))
    if promo.discount_type == DiscountType.PERCENTAGE:
        discount = subtotal * value / 100
    else:
        discount = min(value, subtotal)

    return PromoEvaluation(
        is_valid=True,
        discount_amount=discount,
        message=f"You saved {discount:,.2f}"
    )


async def find_promo_code(conn, code: str, event_id: Optional[str] = None) -> Optional[PromoCode]:
    """
    Look up an active code usable for the event.
    A code scoped to the event wins over a global one with the same text.
    """
    code = normalize_code(code)
    if not code:
        return None

    row = await conn.fetchrow("""
        SELECT * FROM promo_codes
        WHERE code = $1
          AND is_active = true
          AND (event_id = $2 OR event_id IS NULL)
        ORDER BY (event_id IS NULL) ASC, created_at DESC
        LIMIT 1
    """, code, event_id)

    return PromoCode(**dict(row)) if row else None


async def validate_promo_code(
    code: str,
    event_id: Optional[str],
    subtotal: Decimal
) -> PromoCodeValidation:
    """Check a promo code without consuming a use"""
    async with get_db_connection(use_transaction=False) as conn:
        promo = await find_promo_code(conn, code, event_id)

    if not promo:
        return PromoCodeValidation(
            is_valid=False,
            code=normalize_code(code),
            reason=RejectionReason.NOT_FOUND,
            message="This promo code is not valid for this purchase"
        )

    evaluation = evaluate_promo_code(promo, subtotal)

    return PromoCodeValidation(
        is_valid=evaluation.is_valid,
        promo_code_id=promo.id,
        code=promo.code,
        discount_type=promo.discount_type,
        discount_amount=evaluation.discount_amount,
        reason=evaluation.reason,
        message=evaluation.message
    )


async def redeem_promo_code(conn, promo_id: str) -> bool:
    """
    Consume one use of the code.
    Returns False when the cap was reached by a concurrent checkout.
    """
    row = await conn.fetchrow("""
        UPDATE promo_codes
        SET used_count = COALESCE(used_count, 0) + 1
        WHERE id = $1
          AND is_active = true
          AND (max_uses IS NULL OR COALESCE(used_count, 0) + 1 <= max_uses)
        RETURNING id, used_count
    """, promo_id)

    if not row:
        logger.warning(f"Promo code {promo_id} could not be redeemed (cap reached or inactive)")
        return False
    return True


async def create_promo_code(seller_id: str, data: PromoCodeCreate) -> PromoCode:
    """Create a promo code for the seller"""
    code = normalize_code(data.code) or generate_promo_code()

    async with get_db_connection() as conn:
        if data.event_id:
            event = await conn.fetchrow(
                "SELECT id FROM events WHERE id = $1 AND seller_id = $2",
                data.event_id, seller_id
            )
            if not event:
                raise NotFoundError("Event not found")

        existing = await conn.fetchrow(
            "SELECT id FROM promo_codes WHERE code = $1",
            code
        )
        if existing:
            raise ValidationError(f"Promo code {code} already exists")

        try:
            row = await conn.fetchrow("""
                INSERT INTO promo_codes (
                    seller_id, code, discount_type, discount_value, max_uses,
                    used_count, min_purchase, expires_at, event_id, is_active
                )
                VALUES ($1, $2, $3, $4, $5, 0, $6, $7, $8, true)
                RETURNING *
            """, seller_id, code, data.discount_type.value, data.discount_value,
                data.max_uses, data.min_purchase, data.expires_at, data.event_id)
        except asyncpg.UniqueViolationError:
            raise ValidationError(f"Promo code {code} already exists")

        logger.info(f"Created promo code {code} for seller {seller_id}")
        return PromoCode(**dict(row))


async def list_promo_codes(seller_id: str) -> List[PromoCode]:
    async with get_db_connection(use_transaction=False) as conn:
        rows = await conn.fetch("""
            SELECT * FROM promo_codes
            WHERE seller_id = $1
            ORDER BY created_at DESC
        """, seller_id)

        return [PromoCode(**dict(row)) for row in rows]


async def delete_promo_code(seller_id: str, promo_id: str) -> bool:
    async with get_db_connection() as conn:
        row = await conn.fetchrow("""
            DELETE FROM promo_codes
            WHERE id = $1 AND seller_id = $2
            RETURNING id
        """, promo_id, seller_id)

        if not row:
            raise NotFoundError("Promo code not found")

        logger.info(f"Deleted promo code {promo_id} for seller {seller_id}")
        return True
