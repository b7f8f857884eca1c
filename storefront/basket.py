"""
The shopping basket ("Tokri").

Lines are keyed by (product id, custom text). The whole list is written back
to storage as one JSON array after every mutation, so a crash can lose the
last change but never leaves a half-written basket behind.
"""
# Standard Library
import json
import logging
import threading
from dataclasses import asdict, dataclass
from typing import List, Optional

# Django
from django.core.cache import caches


logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "phool_cart_v1"


# --------------------------
# Local storage
# --------------------------

_location_locks = {}
_location_locks_guard = threading.Lock()


def storage_lock(location):
    """
    One re-entrant lock per stored value, shared by every store object in the
    process. Each request builds its own BasketStore, so an instance lock
    alone would not serialize two requests for the same device.
    """
    with _location_locks_guard:
        lock = _location_locks.get(location)
        if lock is None:
            lock = _location_locks[location] = threading.RLock()
        return lock


class MemoryLocalStorage:
    """dict-backed stand-in for a browser's localStorage."""

    def __init__(self, initial=None):
        self._items = dict(initial or {})

    def location(self, key):
        return f"memory:{id(self)}:{key}"

    def get_item(self, key):
        return self._items.get(key)

    def set_item(self, key, value):
        self._items[key] = str(value)

    def remove_item(self, key):
        self._items.pop(key, None)


class CacheLocalStorage:
    """
    Durable per-visitor storage on top of Django's cache framework.

    Keys are namespaced by the visitor (device UUID) and never expire.
    """

    def __init__(self, namespace, alias="default"):
        self.namespace = namespace
        self.alias = alias
        self._cache = caches[alias]

    def _key(self, key):
        return f"phool:{self.namespace}:{key}"

    def location(self, key):
        return f"cache:{self.alias}:{self._key(key)}"

    def get_item(self, key):
        return self._cache.get(self._key(key))

    def set_item(self, key, value):
        self._cache.set(self._key(key), str(value), timeout=None)

    def remove_item(self, key):
        self._cache.delete(self._key(key))


# --------------------------
# Basket
# --------------------------

@dataclass
class BasketLine:
    id: int
    name: str
    price: float
    quantity: int = 1
    image: Optional[str] = None
    custom_text: Optional[str] = None

    def same_entity(self, item_id, custom_text):
        return self.id == item_id and self.custom_text == custom_text

    @property
    def line_total(self):
        return self.price * self.quantity

    def to_storage(self):
        out = {"id": self.id, "name": self.name, "price": self.price, "quantity": self.quantity}
        if self.image is not None:
            out["image"] = self.image
        if self.custom_text is not None:
            out["customText"] = self.custom_text
        return out

    @classmethod
    def from_storage(cls, raw):
        return cls(
            id=raw["id"],
            name=str(raw.get("name") or ""),
            price=raw.get("price") or 0,
            quantity=max(1, int(raw.get("quantity") or 1)),
            image=raw.get("image"),
            custom_text=raw.get("customText"),
        )


class BasketStore:
    """
    Storage is the source of truth: every read and every mutation reloads
    the stored array under the location lock, so stores built by different
    requests for the same device see each other's changes.
    """

    def __init__(self, storage, key=CART_STORAGE_KEY):
        self.storage = storage
        self.key = key
        self._lock = storage_lock(storage.location(key))
        with self._lock:
            self._lines: List[BasketLine] = self._hydrate()

    def _hydrate(self):
        try:
            raw = self.storage.get_item(self.key)
            if not raw:
                return []
            parsed = json.loads(raw)
            if not isinstance(parsed, list):
                return []
            return [BasketLine.from_storage(entry) for entry in parsed]
        except Exception:
            logger.warning("Discarding unreadable basket under %r", self.key, exc_info=True)
            return []

    def _persist(self):
        try:
            self.storage.set_item(self.key, json.dumps([line.to_storage() for line in self._lines]))
        except Exception:
            logger.exception("Failed to persist basket")

    def _reload(self):
        self._lines = self._hydrate()
        return self._lines

    @property
    def lines(self):
        with self._lock:
            return list(self._reload())

    def add_item(self, item, qty=1):
        """
        `item` is a mapping or BasketLine with id, name, price and optional
        image / customText. Adding an existing (id, customText) merges the
        quantity; a different customText is a separate line.
        """
        if isinstance(item, BasketLine):
            item = asdict(item)
            item["customText"] = item.pop("custom_text")
        custom_text = item.get("customText", item.get("custom_text"))
        with self._lock:
            for line in self._reload():
                if line.same_entity(item["id"], custom_text):
                    line.quantity += qty
                    break
            else:
                self._lines.append(BasketLine(
                    id=item["id"],
                    name=str(item.get("name") or ""),
                    price=item.get("price") or 0,
                    quantity=qty,
                    image=item.get("image"),
                    custom_text=custom_text,
                ))
            self._persist()

    def remove_item(self, item_id, custom_text=None):
        with self._lock:
            self._lines = [line for line in self._reload() if not line.same_entity(item_id, custom_text)]
            self._persist()

    def update_quantity(self, item_id, qty, custom_text=None):
        with self._lock:
            for line in self._reload():
                if line.same_entity(item_id, custom_text):
                    line.quantity = max(1, qty)
            self._persist()

    def discard(self, ordered):
        """
        Take ordered lines out of the basket: each matching line loses the
        ordered quantity and is dropped at zero. Lines added after the order
        snapshot was taken stay in the basket.
        """
        with self._lock:
            remaining = self._reload()
            for done in ordered:
                for line in remaining:
                    if line.same_entity(done.id, done.custom_text):
                        line.quantity -= done.quantity
                        break
            self._lines = [line for line in remaining if line.quantity > 0]
            self._persist()

    def clear(self):
        with self._lock:
            self._lines = []
            self._persist()

    @property
    def total_items(self):
        return sum(line.quantity for line in self.lines)

    @property
    def total_price(self):
        return sum(line.line_total for line in self.lines)

    def as_dict(self):
        lines = self.lines
        return {
            "items": [line.to_storage() for line in lines],
            "total_items": sum(line.quantity for line in lines),
            "total_price": sum(line.line_total for line in lines),
        }
