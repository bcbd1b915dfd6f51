"""
Checkout: turns the cart into pending orders, hands the payment to the
gateway and completes the orders once the gateway reports them paid.

One order is created per event in the cart. All orders of a checkout share
a single payment reference, so one verification completes all of them.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any, Tuple

from tixhub.config import settings
from tixhub.database import get_db_connection
from tixhub.models.order import (
    CheckoutPreview, CheckoutResponse, EventOrderBreakdown, PaymentVerificationResponse
)
from tixhub.models.promo_code import PromoCode, RejectionReason
from tixhub.services import cart_service, promo_codes_service, email_service
from tixhub.services.pricing_service import (
    group_items_by_event, calculate_order_pricing, cart_subtotal, to_money
)
from tixhub.services.gateways import get_gateway, PaymentData, PaymentStatus
from tixhub.utils.qr_generator import generate_qr_token
from tixhub.core.exceptions import (
    ValidationError, NotFoundError, CheckoutError, PromoCodeError, PaymentError
)

logger = logging.getLogger(__name__)


@dataclass
class PricedCart:
    """Cart grouped by event with per-order pricing"""
    groups: Dict[str, List[Dict[str, Any]]]
    breakdowns: List[EventOrderBreakdown]
    promo: Optional[PromoCode] = None
    promo_event_id: Optional[str] = None
    subtotal: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    service_fee: Decimal = Decimal("0")
    total: Decimal = Decimal("0")


def generate_payment_reference(first_order_id: str) -> str:
    timestamp_ms = int(datetime.now().timestamp() * 1000)
    return f"TIX-{first_order_id}-{timestamp_ms}"


async def _resolve_promo(conn, code: str, event_ids: List[str]) -> Tuple[PromoCode, str]:
    """
    Pick the code and the event group it discounts.
    An event-scoped code discounts its own event; a global code discounts
    the first event in cart order.
    """
    global_match = None
    for event_id in event_ids:
        promo = await promo_codes_service.find_promo_code(conn, code, event_id)
        if not promo:
            continue
        if promo.event_id:
            return promo, str(promo.event_id)
        if global_match is None:
            global_match = (promo, event_id)

    if global_match:
        return global_match

    raise PromoCodeError(
        "This promo code is not valid for this purchase",
        reason=RejectionReason.NOT_FOUND.value
    )


async def _price_cart(conn, user_id: str, promo_code: Optional[str] = None) -> PricedCart:
    items = await cart_service.load_cart_items(conn, user_id)
    if not items:
        raise ValidationError("Your cart is empty")

    groups = group_items_by_event(items)

    promo = None
    promo_event_id = None
    promo_discount = Decimal("0")

    if promo_code and promo_code.strip():
        promo, promo_event_id = await _resolve_promo(conn, promo_code, list(groups.keys()))
        evaluation = promo_codes_service.evaluate_promo_code(
            promo, cart_subtotal(groups[promo_event_id])
        )
        if not evaluation.is_valid:
            raise PromoCodeError(evaluation.message, reason=evaluation.reason.value)
        promo_discount = evaluation.discount_amount

    priced = PricedCart(groups=groups, breakdowns=[], promo=promo, promo_event_id=promo_event_id)

    for event_id, group_items in groups.items():
        discount = promo_discount if event_id == promo_event_id else Decimal("0")
        pricing = calculate_order_pricing(cart_subtotal(group_items), discount)

        priced.breakdowns.append(EventOrderBreakdown(
            event_id=event_id,
            event_title=group_items[0].get('event_title'),
            tickets_count=sum(item['quantity'] for item in group_items),
            subtotal=pricing.subtotal,
            discount=pricing.discount,
            service_fee=pricing.service_fee,
            total=pricing.total,
            promo_code_id=promo.id if promo and event_id == promo_event_id else None
        ))

        priced.subtotal += pricing.subtotal
        priced.discount += pricing.discount
        priced.service_fee += pricing.service_fee
        priced.total += pricing.total

    return priced


async def preview_checkout(user_id: str, promo_code: Optional[str] = None) -> CheckoutPreview:
    """Totals the buyer will pay. Writes nothing."""
    async with get_db_connection(use_transaction=False) as conn:
        priced = await _price_cart(conn, user_id, promo_code)

    return CheckoutPreview(
        orders=[
            b.model_copy(update={
                "subtotal": to_money(b.subtotal),
                "discount": to_money(b.discount),
                "service_fee": to_money(b.service_fee),
                "total": to_money(b.total),
            })
            for b in priced.breakdowns
        ],
        subtotal=to_money(priced.subtotal),
        discount=to_money(priced.discount),
        service_fee=to_money(priced.service_fee),
        total=to_money(priced.total),
        currency=settings.monnify_currency,
        applied_promo_code=priced.promo.code if priced.promo else None
    )


async def _reserve_tickets(conn, item: Dict[str, Any]) -> None:
    """Atomic stock reservation, fails instead of overselling"""
    reserved = await conn.fetchrow("""
        UPDATE ticket_types
        SET sold = COALESCE(sold, 0) + $2
        WHERE id = $1 AND COALESCE(sold, 0) + $2 <= quantity
        RETURNING id
    """, item['ticket_type_id'], item['quantity'])

    if not reserved:
        raise CheckoutError(
            f"Not enough tickets left for {item['ticket_type_name']}",
            {"ticket_type_id": str(item['ticket_type_id'])}
        )


async def _create_order(conn, user_id: str, breakdown: EventOrderBreakdown,
                        group_items: List[Dict[str, Any]]) -> str:
    order = await conn.fetchrow("""
        INSERT INTO orders (user_id, event_id, status, total_amount, discount_amount, promo_code_id)
        VALUES ($1, $2, 'pending', $3, $4, $5)
        RETURNING id
    """, user_id, breakdown.event_id, breakdown.total, breakdown.discount, breakdown.promo_code_id)
    order_id = str(order['id'])

    for item in group_items:
        await _reserve_tickets(conn, item)

        for _ in range(item['quantity']):
            await conn.execute("""
                INSERT INTO tickets (order_id, ticket_type_id, user_id, qr_code, status)
                VALUES ($1, $2, $3, $4, 'pending')
            """, order_id, item['ticket_type_id'], user_id, generate_qr_token())

    await conn.execute("""
        UPDATE events
        SET sold_tickets = COALESCE(sold_tickets, 0) + $2,
            status = CASE
                WHEN COALESCE(sold_tickets, 0) + $2 >= total_tickets THEN 'sold-out'
                ELSE status
            END
        WHERE id = $1
    """, breakdown.event_id, breakdown.tickets_count)

    return order_id


async def release_order_tickets(conn, order_id: str, event_id: str) -> int:
    """
    Cancel the pending tickets of an order and give their seats back to
    ticket_types.sold and events.sold_tickets. Returns the tickets released.
    """
    released = await conn.fetch("""
        UPDATE tickets
        SET status = 'cancelled'
        WHERE order_id = $1 AND status = 'pending'
        RETURNING ticket_type_id
    """, order_id)

    per_type = {}
    for ticket in released:
        per_type[ticket['ticket_type_id']] = per_type.get(ticket['ticket_type_id'], 0) + 1

    for ticket_type_id, count in per_type.items():
        await conn.execute("""
            UPDATE ticket_types
            SET sold = GREATEST(COALESCE(sold, 0) - $2, 0)
            WHERE id = $1
        """, ticket_type_id, count)

    if released:
        await conn.execute("""
            UPDATE events
            SET sold_tickets = GREATEST(COALESCE(sold_tickets, 0) - $2, 0),
                status = CASE WHEN status = 'sold-out' THEN 'active' ELSE status END
            WHERE id = $1
        """, event_id, len(released))

    return len(released)


async def _cancel_checkout(payment_reference: str, promo_id: Optional[str]) -> None:
    """Undo a committed checkout whose payment could not be started"""
    async with get_db_connection() as conn:
        orders = await conn.fetch("""
            UPDATE orders
            SET status = 'expired', updated_at = NOW()
            WHERE payment_reference = $1 AND status = 'pending'
            RETURNING id, event_id
        """, payment_reference)

        for order in orders:
            await release_order_tickets(conn, order['id'], order['event_id'])

        if promo_id and orders:
            await conn.execute("""
                UPDATE promo_codes
                SET used_count = GREATEST(COALESCE(used_count, 0) - 1, 0)
                WHERE id = $1
            """, promo_id)

    logger.warning(f"Checkout {payment_reference} cancelled: {len(orders)} orders released")


async def checkout(
    user_id: str,
    promo_code: Optional[str] = None,
    customer_name: Optional[str] = None,
    customer_email: Optional[str] = None
) -> CheckoutResponse:
    """
    Create one pending order per event, reserve stock, issue pending
    tickets, redeem the promo code and open a gateway transaction.

    Orders and reservations are committed before calling the gateway so no
    row locks are held during the HTTP round-trip. If the gateway refuses
    the transaction the orders are expired, their seats and the promo use
    are given back and the cart is left untouched.
    """
    if not customer_email:
        raise ValidationError("Customer email is required")

    gateway = get_gateway()

    async with get_db_connection() as conn:
        priced = await _price_cart(conn, user_id, promo_code)

        order_ids = []
        for breakdown in priced.breakdowns:
            order_id = await _create_order(conn, user_id, breakdown, priced.groups[breakdown.event_id])
            order_ids.append(order_id)

        if priced.promo:
            redeemed = await promo_codes_service.redeem_promo_code(conn, priced.promo.id)
            if not redeemed:
                raise PromoCodeError(
                    "This promo code has reached its usage limit",
                    reason=RejectionReason.EXHAUSTED.value
                )

        payment_reference = generate_payment_reference(order_ids[0])

        await conn.execute("""
            UPDATE orders SET payment_reference = $1, updated_at = NOW()
            WHERE id = ANY($2::uuid[])
        """, payment_reference, order_ids)

    titles = ", ".join(b.event_title for b in priced.breakdowns if b.event_title)
    try:
        intent = await gateway.initialize_transaction(PaymentData(
            reference=payment_reference,
            amount=priced.total,
            currency=settings.monnify_currency,
            customer_email=customer_email,
            customer_name=customer_name or customer_email,
            description=f"TixHub tickets: {titles}" if titles else None,
            redirect_url=settings.payment_callback_url,
            metadata={"order_ids": ",".join(order_ids)}
        ))
    except PaymentError:
        await _cancel_checkout(payment_reference, priced.promo.id if priced.promo else None)
        raise

    async with get_db_connection() as conn:
        if intent.transaction_reference:
            await conn.execute("""
                UPDATE orders SET payment_intent_id = $1
                WHERE payment_reference = $2
            """, intent.transaction_reference, payment_reference)

        await cart_service.clear_cart(user_id, conn=conn)

    logger.info(
        f"Checkout {payment_reference}: {len(order_ids)} orders, "
        f"total {to_money(priced.total)} {settings.monnify_currency}"
    )

    return CheckoutResponse(
        order_ids=order_ids,
        payment_reference=payment_reference,
        checkout_url=intent.checkout_url,
        transaction_reference=intent.transaction_reference,
        amount=to_money(priced.total),
        currency=settings.monnify_currency
    )


async def verify_payment(payment_reference: str) -> PaymentVerificationResponse:
    """
    Ask the gateway whether the reference was paid and, if so, complete
    every pending order carrying it and validate their tickets.
    Verifying an already completed reference reports success again.
    """
    async with get_db_connection(use_transaction=False) as conn:
        orders = await conn.fetch("""
            SELECT id, user_id, status, total_amount
            FROM orders
            WHERE payment_reference = $1
            ORDER BY created_at ASC
        """, payment_reference)

    if not orders:
        raise NotFoundError("No orders found for this payment reference")

    order_ids = [str(o['id']) for o in orders]
    expected_total = sum((Decimal(str(o['total_amount'])) for o in orders), Decimal("0"))

    if all(o['status'] == 'completed' for o in orders):
        return PaymentVerificationResponse(
            success=True,
            status=PaymentStatus.PAID.value,
            payment_reference=payment_reference,
            amount_paid=to_money(expected_total),
            order_ids=order_ids,
            message="Payment already verified"
        )

    if not any(o['status'] == 'pending' for o in orders):
        logger.warning(f"Payment {payment_reference} verified after its orders expired")
        return PaymentVerificationResponse(
            success=False,
            status=PaymentStatus.EXPIRED.value,
            payment_reference=payment_reference,
            order_ids=order_ids,
            message="Order expired before payment was confirmed"
        )

    verification = await get_gateway().verify_transaction(payment_reference)

    if not verification.is_paid:
        logger.info(f"Payment {payment_reference} not completed: {verification.status.value}")
        return PaymentVerificationResponse(
            success=False,
            status=verification.status.value,
            payment_reference=payment_reference,
            amount_paid=verification.amount_paid,
            order_ids=order_ids,
            message=verification.status_message or f"Payment {verification.status.value}"
        )

    if verification.amount_paid is not None and verification.amount_paid < to_money(expected_total):
        logger.warning(
            f"Payment {payment_reference} paid {verification.amount_paid}, expected {to_money(expected_total)}"
        )

    async with get_db_connection() as conn:
        completed = await conn.fetch("""
            UPDATE orders
            SET status = 'completed', updated_at = NOW()
            WHERE payment_reference = $1 AND status = 'pending'
            RETURNING id
        """, payment_reference)
        completed_ids = [str(row['id']) for row in completed]

        if completed_ids:
            await conn.execute("""
                UPDATE tickets SET status = 'valid'
                WHERE order_id = ANY($1::uuid[]) AND status = 'pending'
            """, completed_ids)
        else:
            current = await conn.fetch(
                "SELECT status FROM orders WHERE payment_reference = $1",
                payment_reference
            )

    if not completed_ids:
        # Orders changed while the gateway was queried
        if current and all(o['status'] == 'completed' for o in current):
            return PaymentVerificationResponse(
                success=True,
                status=PaymentStatus.PAID.value,
                payment_reference=payment_reference,
                amount_paid=verification.amount_paid,
                order_ids=order_ids,
                message="Payment already verified"
            )

        logger.warning(f"Payment {payment_reference} confirmed after its orders expired")
        return PaymentVerificationResponse(
            success=False,
            status=PaymentStatus.EXPIRED.value,
            payment_reference=payment_reference,
            amount_paid=verification.amount_paid,
            order_ids=order_ids,
            message="Order expired before payment was confirmed"
        )

    logger.info(f"Payment {payment_reference} verified: {len(completed_ids)} orders completed")

    await email_service.send_order_confirmation_for_reference(payment_reference)

    return PaymentVerificationResponse(
        success=True,
        status=PaymentStatus.PAID.value,
        payment_reference=payment_reference,
        amount_paid=verification.amount_paid,
        order_ids=order_ids,
        message="Payment successful"
    )
