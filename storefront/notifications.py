"""
Fire-and-forget side channels run after an order is stored.

Nothing here may raise into the caller: a failed email or spreadsheet call
is logged and the order stands.
"""
# Standard Library
import json
import logging
from urllib.request import Request, urlopen

# Django
from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone


logger = logging.getLogger(__name__)

SHEETS_PLACEHOLDER_URL = "https://script.google.com/macros/s/YOUR_SCRIPT_ID/exec"
_SHEETS_TIMEOUT = 10  # seconds


def legacy_row(order, timestamp=None):
    """The flat row shape shared by the spreadsheet log and the local order backup."""
    return {
        "timestamp": timestamp or timezone.now().isoformat(),
        "orderId": order.get("order_id"),
        "orderType": order.get("order_type") or "regular",
        "name": order.get("name") or "",
        "email": order.get("email") or "",
        "phone": order.get("phone") or "",
        "address": order.get("address") or "",
        "products": order.get("products") or "",
        "quantity": order.get("quantity") or "",
        "paymentMethod": order.get("payment_method") or "",
        "notes": order.get("notes") or "",
        "status": order.get("status") or "Under Process",
        "customDescription": order.get("custom_description") or "",
        "customColors": order.get("custom_colors") or "",
        "customTimeline": order.get("custom_timeline") or "",
    }


def _order_email_body(order):
    lines = [
        f"Order ID: {order.get('order_id')}",
        f"Type: {order.get('order_type', 'regular')}",
        f"Status: {order.get('status', '')}",
        "",
        f"Name: {order.get('name', '')}",
        f"Email: {order.get('email', '')}",
        f"Phone: {order.get('phone', '')}",
        f"Address: {order.get('address', '')}",
        "",
        f"Products: {order.get('products', '')}",
        f"Quantity: {order.get('quantity', '')}",
        f"Payment method: {order.get('payment_method', '')}",
    ]
    if order.get("order_type") == "custom":
        lines += [
            f"Description: {order.get('custom_description', '')}",
            f"Colors: {order.get('custom_colors', '')}",
            f"Timeline: {order.get('custom_timeline', '')}",
        ]
    else:
        lines += [
            f"Subtotal: {order.get('subtotal', 0)}",
            f"Discount: {order.get('discount', 0)}" + (f" ({order['promo_code']})" if order.get("promo_code") else ""),
            f"Gift wrap: {order.get('gift_wrap_cost', 0)}" if order.get("gift_wrap") else "Gift wrap: no",
            f"Total: {order.get('total', 0)}",
        ]
    if order.get("gift_message"):
        lines.append(f"Gift message: {order['gift_message']}")
    if order.get("notes"):
        lines.append(f"Notes: {order['notes']}")
    return "\n".join(lines)


def send_order_email(order):
    recipients = [r for r in (getattr(settings, "ORDER_NOTIFY_EMAIL", ""), order.get("email")) if r]
    if not recipients:
        logger.info("No recipients for order %s email; skipping", order.get("order_id"))
        return False
    try:
        send_mail(
            subject=f"Phool Shop order {order.get('order_id')}",
            message=_order_email_body(order),
            from_email=None,
            recipient_list=recipients,
            fail_silently=False,
        )
    except Exception:
        logger.exception("Order email failed for %s", order.get("order_id"))
        return False
    return True


def sheets_url():
    url = (getattr(settings, "GOOGLE_SHEETS_URL", "") or "").strip()
    if not url or url == SHEETS_PLACEHOLDER_URL:
        return ""
    return url


def post_order_to_sheet(order):
    url = sheets_url()
    if not url:
        logger.info("Google Sheets URL not configured; skipping sheet log for %s", order.get("order_id"))
        return False
    req = Request(
        url,
        data=json.dumps(legacy_row(order)).encode("utf-8"),
        method="POST",
        headers={"Content-Type": "application/json"},
    )
    try:
        with urlopen(req, timeout=_SHEETS_TIMEOUT) as resp:
            resp.read()
    except Exception:
        logger.exception("Google Sheets submission failed for %s", order.get("order_id"))
        return False
    return True
