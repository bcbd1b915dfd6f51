import logging
from typing import Optional, List, Dict, Any
import boto3
from botocore.exceptions import ClientError, BotoCoreError
from tixhub.config import settings
from tixhub.database import get_db_connection
from tixhub.services.pricing_service import to_money

logger = logging.getLogger(__name__)


def is_email_configured() -> bool:
    return bool(settings.aws_region and settings.email_from)


def get_ses_client():
    """Get AWS SES client"""
    return boto3.client(
        'ses',
        region_name=settings.aws_region,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key
    )


async def send_email(
    to_email: str,
    subject: str,
    html_body: str,
    text_body: Optional[str] = None
) -> bool:
    """Send email via AWS SES. Never raises, returns False on failure."""
    if not is_email_configured():
        logger.info(f"Email not configured, skipping '{subject}' to {to_email}")
        return False

    try:
        client = get_ses_client()

        message = {
            'Subject': {'Data': subject, 'Charset': 'UTF-8'},
            'Body': {
                'Html': {'Data': html_body, 'Charset': 'UTF-8'}
            }
        }

        if text_body:
            message['Body']['Text'] = {'Data': text_body, 'Charset': 'UTF-8'}

        response = client.send_email(
            Source=f"TixHub <{settings.email_from}>",
            Destination={'ToAddresses': [to_email]},
            Message=message
        )

        logger.info(f"Email sent to {to_email}: {response['MessageId']}")
        return True

    except (ClientError, BotoCoreError) as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


def build_order_confirmation(
    buyer_name: str,
    orders: List[Dict[str, Any]],
    currency: str
) -> Dict[str, str]:
    """
    Render subject, html and text bodies.
    orders: [{event_title, event_date, tickets_count, total_amount}]
    """
    my_tickets_url = f"{settings.frontend_url.rstrip('/')}/my-tickets"
    grand_total = sum(to_money(o['total_amount']) for o in orders)

    rows_html = ""
    rows_text = ""
    for order in orders:
        date_str = order['event_date'].strftime('%d %b %Y') if order.get('event_date') else 'TBA'
        amount = to_money(order['total_amount'])
        rows_html += f"""
        <tr>
            <td style="padding: 10px; border-bottom: 1px solid #eee;">{order['event_title']}</td>
            <td style="padding: 10px; border-bottom: 1px solid #eee;">{date_str}</td>
            <td style="padding: 10px; border-bottom: 1px solid #eee;">{order['tickets_count']}</td>
            <td style="padding: 10px; border-bottom: 1px solid #eee; text-align: right;">{currency} {amount:,.2f}</td>
        </tr>
        """
        rows_text += f"- {order['event_title']} ({date_str}): {order['tickets_count']} ticket(s), {currency} {amount:,.2f}\n"

    html_body = f"""
    <!DOCTYPE html>
    <html>
    <head><meta charset="utf-8"></head>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
            <h1>Your tickets are confirmed</h1>
            <p>Hi {buyer_name},</p>
            <p>Your payment was received. Here is your order:</p>
            <table style="width: 100%; border-collapse: collapse;">
                <thead>
                    <tr><th>Event</th><th>Date</th><th>Tickets</th><th style="text-align: right;">Total</th></tr>
                </thead>
                <tbody>{rows_html}</tbody>
            </table>
            <p style="font-weight: bold; text-align: right;">Total paid: {currency} {grand_total:,.2f}</p>
            <p><a href="{my_tickets_url}">View your tickets and QR codes</a></p>
        </div>
    </body>
    </html>
    """

    text_body = f"""Hi {buyer_name},

Your payment was received. Here is your order:

{rows_text}
Total paid: {currency} {grand_total:,.2f}

Your QR codes are available at {my_tickets_url}

----
TixHub
"""

    return {
        "subject": "Your TixHub tickets are confirmed",
        "html": html_body,
        "text": text_body,
    }


async def send_order_confirmation(
    to_email: str,
    buyer_name: Optional[str],
    orders: List[Dict[str, Any]]
) -> bool:
    """Send purchase confirmation email"""
    content = build_order_confirmation(buyer_name or "there", orders, settings.monnify_currency)
    return await send_email(to_email, content["subject"], content["html"], content["text"])


async def send_order_confirmation_for_reference(payment_reference: str) -> bool:
    """
    Load the buyer and orders behind a payment reference and send the
    confirmation. Failures are logged; a paid order is never rolled back
    because of an email.
    """
    if not is_email_configured():
        logger.info(f"Email not configured, no confirmation for {payment_reference}")
        return False

    try:
        async with get_db_connection(use_transaction=False) as conn:
            rows = await conn.fetch("""
                SELECT o.id, o.user_id, o.total_amount,
                       e.title as event_title, e.date as event_date,
                       p.email, p.full_name,
                       (SELECT COUNT(*) FROM tickets t WHERE t.order_id = o.id) as tickets_count
                FROM orders o
                JOIN events e ON o.event_id = e.id
                LEFT JOIN profiles p ON p.user_id = o.user_id
                WHERE o.payment_reference = $1
                ORDER BY o.created_at ASC
            """, payment_reference)
    except Exception as e:
        logger.error(f"Could not load orders for confirmation {payment_reference}: {e}")
        return False

    if not rows or not rows[0]['email']:
        logger.warning(f"No buyer email for payment {payment_reference}")
        return False

    orders = [dict(row) for row in rows]
    return await send_order_confirmation(rows[0]['email'], rows[0]['full_name'], orders)
