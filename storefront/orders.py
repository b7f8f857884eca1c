# Standard Library
import csv
import io
import itertools
import json
import logging
import secrets
import string
import threading
import time
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import NamedTuple, Optional

# Django
from django.utils.dateparse import parse_datetime

# Local Imports
from .basket import storage_lock
from .notifications import legacy_row
from .signals import order_placed
from .utilities import _as_bool


logger = logging.getLogger(__name__)

ORDERS_BACKUP_KEY = "phool_orders_backup"


class OrderStatus(str, Enum):
    QUOTE_REQUEST = "Quote Request"
    UNDER_PROCESS = "Under Process"
    CONFIRMED = "Confirmed"
    IN_PROGRESS = "In Progress"
    READY = "Ready"
    DISPATCHED = "Dispatched"
    COMPLETED = "Completed"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


# Workflow order; admins may still jump to any status from any status.
STATUS_ORDER = [s.value for s in OrderStatus]
TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED.value, OrderStatus.DELIVERED.value, OrderStatus.CANCELLED.value})


def is_valid_status(value):
    return value in STATUS_ORDER


def initial_status(order_type):
    return OrderStatus.QUOTE_REQUEST.value if order_type == "custom" else OrderStatus.UNDER_PROCESS.value


def status_rank(value):
    try:
        return STATUS_ORDER.index(value or OrderStatus.UNDER_PROCESS.value)
    except ValueError:
        return STATUS_ORDER.index(OrderStatus.UNDER_PROCESS.value)


# --------------------------
# Order ids
# --------------------------

_ALPHABET = string.digits + string.ascii_uppercase
_SEQ_SPACE = 36 ** 3
_sequence = itertools.count(secrets.randbelow(_SEQ_SPACE))
_sequence_lock = threading.Lock()


def _base36(n):
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_ALPHABET[r])
    return "".join(reversed(out))


def generate_order_id(now=None):
    """
    e.g. 'PS-LZ3K9QWE-0A7XF'

    Millisecond timestamp, then a per-process sequence (unique within the
    same millisecond), then two random characters to separate processes.
    """
    millis = int((time.time() if now is None else now) * 1000)
    with _sequence_lock:
        seq = next(_sequence) % _SEQ_SPACE
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(2))
    return f"PS-{_base36(millis)}-{_base36(seq).rjust(3, '0')}{suffix}"


# --------------------------
# Totals & snapshots
# --------------------------

class OrderTotals(NamedTuple):
    subtotal: float
    discount: int
    total: float
    promo_code: Optional[str]
    gift_wrap: bool
    gift_wrap_cost: int


def parse_promo_codes(raw):
    """'WELCOME10:10,EID20:20' -> {'WELCOME10': 10, 'EID20': 20}"""
    codes = {}
    for part in (raw or "").split(","):
        code, _, percent = part.partition(":")
        code = code.strip().upper()
        try:
            pct = int(percent.strip())
        except ValueError:
            continue
        if code and 0 < pct <= 100:
            codes[code] = pct
    return codes


def compute_totals(lines, promo_code=None, gift_wrap=False, promo_codes=None, gift_wrap_cost=0):
    subtotal = sum(line.price * line.quantity for line in lines)
    code = (promo_code or "").strip().upper()
    percent = (promo_codes or {}).get(code) if code else None

    discount = 0
    applied = None
    if percent:
        discount = int(Decimal(str(subtotal * percent / 100)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        discount = min(discount, int(subtotal))
        applied = code

    wrap_cost = gift_wrap_cost if gift_wrap else 0
    return OrderTotals(
        subtotal=subtotal,
        discount=discount,
        total=subtotal - discount + wrap_cost,
        promo_code=applied,
        gift_wrap=bool(gift_wrap),
        gift_wrap_cost=wrap_cost,
    )


def describe_lines(lines):
    parts = []
    for line in lines:
        label = f"{line.name} ({line.custom_text})" if line.custom_text else line.name
        parts.append(f"{label} x{line.quantity}")
    return ", ".join(parts)


def _clean(form, key, limit=None):
    value = str(form.get(key) or "").strip()
    return value[:limit] if limit else value


def validate_checkout(form, custom=False):
    errors = {}
    for key in ("name", "email", "phone"):
        if not _clean(form, key):
            errors[key] = "This field is required."
    if "@" not in _clean(form, "email"):
        errors.setdefault("email", "Enter a valid email address.")
    if not custom and not _clean(form, "address"):
        errors["address"] = "This field is required."
    if custom and not _clean(form, "custom_description"):
        errors["custom_description"] = "Describe what you would like us to make."
    return errors


def build_order_record(form, lines, totals, order_type="regular", order_id=None):
    items = []
    for line in lines:
        item = {"id": line.id, "name": line.name, "price": line.price, "quantity": line.quantity}
        if line.custom_text:
            item["customText"] = line.custom_text
        items.append(item)

    return {
        "order_id": order_id or generate_order_id(),
        "name": _clean(form, "name", 255),
        "email": _clean(form, "email", 254).lower(),
        "phone": _clean(form, "phone", 30),
        "address": _clean(form, "address"),
        "products": describe_lines(lines) or _clean(form, "products"),
        "quantity": str(sum(line.quantity for line in lines)) if lines else (_clean(form, "quantity") or "1"),
        "payment_method": _clean(form, "payment_method") or "Cash on Delivery",
        "notes": _clean(form, "notes"),
        "order_type": order_type,
        "status": initial_status(order_type),
        "items": items,
        "subtotal": totals.subtotal,
        "discount": totals.discount,
        "total": totals.total,
        "promo_code": totals.promo_code,
        "gift_wrap": totals.gift_wrap,
        "gift_wrap_cost": totals.gift_wrap_cost,
        "gift_message": _clean(form, "gift_message", 300) if totals.gift_wrap else "",
        "custom_description": _clean(form, "custom_description"),
        "custom_colors": _clean(form, "custom_colors"),
        "custom_timeline": _clean(form, "custom_timeline"),
    }


# --------------------------
# Legacy local backup
# --------------------------

def backup_entry(order, error=None):
    entry = legacy_row(order)
    if error:
        entry["error"] = error
    return entry


class LegacyOrderBackup:
    """
    Append-only audit trail of submitted orders.

    Not reconciled into the remote store; admins can list, export and clear it.
    """

    def __init__(self, storage, key=ORDERS_BACKUP_KEY):
        self.storage = storage
        self.key = key
        self._lock = storage_lock(storage.location(key))

    def list(self):
        try:
            raw = self.storage.get_item(self.key)
            parsed = json.loads(raw) if raw else []
        except Exception:
            logger.exception("Error retrieving backed-up orders")
            return []
        return parsed if isinstance(parsed, list) else []

    def append(self, entry):
        with self._lock:
            entries = self.list()
            entries.append(entry)
            try:
                self.storage.set_item(self.key, json.dumps(entries, default=str))
            except Exception:
                logger.exception("Error saving order backup")

    def clear(self):
        with self._lock:
            self.storage.remove_item(self.key)


# --------------------------
# Placement
# --------------------------

def _announce(order):
    for receiver, result in order_placed.send_robust(sender=LegacyOrderBackup, order=order):
        if isinstance(result, Exception):
            logger.error("order_placed receiver %r failed: %s", receiver, result)


def place_order(repo, basket, form, backup, promo_codes=None, gift_wrap_cost=0):
    """
    Snapshot the basket into an order. Returns the stored order, or None
    when the remote write failed (the basket is then left untouched). On
    success only the ordered lines leave the basket.
    """
    lines = basket.lines
    totals = compute_totals(
        lines,
        promo_code=form.get("promo_code"),
        gift_wrap=_as_bool(form.get("gift_wrap")),
        promo_codes=promo_codes,
        gift_wrap_cost=gift_wrap_cost,
    )
    record = build_order_record(form, lines, totals, order_type="regular")
    created = repo.create(record)

    backup.append(backup_entry(record, error=None if created else "Failed to save order remotely"))
    if created is None:
        return None

    basket.discard(lines)
    _announce(created)
    return created


def place_custom_order(repo, form, backup):
    totals = OrderTotals(0, 0, 0, None, False, 0)
    record = build_order_record(form, [], totals, order_type="custom")
    created = repo.create(record)

    backup.append(backup_entry(record, error=None if created else "Failed to save order remotely"))
    if created is None:
        return None

    _announce(created)
    return created


# --------------------------
# Admin views over loaded orders
# --------------------------

def _created_ts(order):
    dt = parse_datetime(str(order.get("created_at") or ""))
    return dt.timestamp() if dt else 0.0


def sort_orders(orders, key="timestamp", direction="desc"):
    reverse = direction != "asc"
    if key == "status":
        return sorted(orders, key=lambda o: status_rank(o.get("status")), reverse=reverse)
    return sorted(orders, key=_created_ts, reverse=reverse)


def status_counts(orders):
    counts = {s: 0 for s in STATUS_ORDER}
    for order in orders:
        s = order.get("status") or OrderStatus.UNDER_PROCESS.value
        counts[s] = counts.get(s, 0) + 1
    return counts


CSV_COLUMNS = [
    ("Order ID", "order_id"),
    ("Timestamp", "created_at"),
    ("Order Type", "order_type"),
    ("Status", "status"),
    ("Name", "name"),
    ("Email", "email"),
    ("Phone", "phone"),
    ("Address", "address"),
    ("Products", "products"),
    ("Quantity", "quantity"),
    ("Payment Method", "payment_method"),
    ("Notes", "notes"),
    ("Total", "total"),
    ("Custom Description", "custom_description"),
    ("Custom Colors", "custom_colors"),
    ("Custom Timeline", "custom_timeline"),
]


def orders_to_csv(orders):
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL)
    writer.writerow([header for header, _ in CSV_COLUMNS])
    for order in orders:
        writer.writerow(["" if order.get(col) is None else order.get(col) for _, col in CSV_COLUMNS])
    return buf.getvalue()
