# Standard Library
import logging
import threading
import time
from concurrent.futures import Future
from urllib.parse import unquote, urlparse

# Local Imports
from .cache import CacheEntry, apply_delete, apply_insert, apply_update, find_cached, is_fresh
from .ratings import clamp_rating, sanitize_review, truncate_comment
from .remote_store import RemoteStoreError
from .utilities import _to_number, inspect_image, join_category_tags, normalize_images


logger = logging.getLogger(__name__)

# Columns the server assigns; never sent on insert/update.
_SERVER_FIELDS = ("id", "created_at")


class _TableAccess:
    """
    Resolves which physical table to talk to.

    Older schemas used different casing ("Products" vs "products"); the
    candidates are tried in order and the first that answers without an
    error is remembered for every later call.
    """

    entity_name = "record"
    table_candidates = ()
    id_field = "id"

    def __init__(self, store):
        self.store = store
        self._table = None

    @property
    def table(self):
        return self._table

    def _call(self, op, *args, **kwargs):
        tables = (self._table,) if self._table else self.table_candidates
        last_error = None
        for table in tables:
            try:
                result = getattr(self.store, op)(table, *args, **kwargs)
            except RemoteStoreError as e:
                last_error = e
                if len(tables) > 1:
                    logger.debug("%s: table %r failed for %s (%s)", self.entity_name, table, op, e)
                continue
            self._table = table
            return result
        raise last_error or RemoteStoreError(f"No table configured for {self.entity_name}")

    def prepare_write(self, record):
        return {k: v for k, v in record.items() if k not in _SERVER_FIELDS}


class EntityRepository(_TableAccess):
    """
    Cached access to one remote table.

    load_all() serves a time-boxed snapshot and collapses concurrent misses
    into a single fetch. No public method raises: transport failures are
    logged and turned into [], None or False.
    """

    def __init__(self, store, ttl=60, clock=time.monotonic):
        super().__init__(store)
        self.ttl = ttl
        self._clock = clock
        self._cache = None
        self._in_flight = None
        self._lock = threading.Lock()

    @property
    def cache(self):
        return self._cache

    def normalize(self, record):
        return record

    def invalidate(self):
        with self._lock:
            self._cache = None

    # ---- reads

    def load_all(self):
        with self._lock:
            if is_fresh(self._cache, self._clock(), self.ttl):
                return self._cache.data
            pending = self._in_flight
            if pending is None:
                self._in_flight = owned = Future()

        if pending is not None:
            return pending.result()

        data = []
        try:
            data = self._fetch_all()
        finally:
            with self._lock:
                self._in_flight = None
            owned.set_result(data)
        return data

    def _fetch_all(self):
        try:
            rows = self._call("select_all", order_by="created_at", descending=True)
            data = [self.normalize(dict(row)) for row in rows or []]
        except Exception as e:
            if isinstance(e, RemoteStoreError):
                logger.warning("Failed to load %s list: %s", self.entity_name, e)
            else:
                logger.exception("Failed to load %s list", self.entity_name)
            with self._lock:
                previous = self._cache
            return previous.data if previous else []

        with self._lock:
            self._cache = CacheEntry(self._clock(), data)
        return data

    def load_by_id(self, record_id):
        with self._lock:
            cached = find_cached(self._cache, record_id, self.id_field)
        if cached is not None:
            return cached

        try:
            row = self._call("select_by_id", record_id, id_field=self.id_field)
            if not row:
                return None
            record = self.normalize(dict(row))
        except Exception:
            logger.exception("Failed to load %s %s", self.entity_name, record_id)
            return None

        with self._lock:
            self._cache = apply_update(self._cache, record_id, record, self.id_field)
        return record

    # ---- writes

    def create(self, record):
        try:
            row = self._call("insert", self.prepare_write(dict(record)))
            created = self.normalize(dict(row))
        except Exception:
            logger.exception("Failed to create %s", self.entity_name)
            return None

        with self._lock:
            self._cache = apply_insert(self._cache, created)
        return created

    def update(self, record_id, patch):
        try:
            row = self._call("update", record_id, self.prepare_write(dict(patch)), id_field=self.id_field)
            updated = self.normalize(dict(row))
        except Exception:
            logger.exception("Failed to update %s %s", self.entity_name, record_id)
            return None

        with self._lock:
            self._cache = apply_update(self._cache, record_id, updated, self.id_field)
        return updated

    def delete(self, record_id):
        try:
            self._call("delete", record_id, id_field=self.id_field)
        except Exception:
            logger.exception("Failed to delete %s %s", self.entity_name, record_id)
            return False

        with self._lock:
            self._cache = apply_delete(self._cache, record_id, self.id_field)
        return True


# --------------------------
# Catalog (products & cards)
# --------------------------

class CatalogRepository(EntityRepository):
    image_bucket = "product-images"

    def normalize(self, record):
        record["images"] = normalize_images(record.get("images"))
        return record

    def prepare_write(self, record):
        record = super().prepare_write(record)
        if "images" in record:
            record["images"] = normalize_images(record["images"])
        if "category" in record:
            record["category"] = join_category_tags(record["category"])
        return record

    def upload_image(self, data, filename, record_id, index=0, content_type=""):
        """Store an image blob and return its public URL, or None."""
        inspected = inspect_image(data, filename, content_type)
        if inspected is None:
            return None
        ext, ctype = inspected
        path = f"{record_id}/{int(time.time() * 1000)}-{index}{ext}"
        try:
            return self.store.upload(self.image_bucket, path, data, ctype)
        except RemoteStoreError as e:
            logger.warning("Failed to upload image %s: %s", path, e)
            return None

    def image_path_from_url(self, url):
        path = unquote(urlparse(url or "").path)
        marker = f"/{self.image_bucket}/"
        if marker in path:
            return path.split(marker, 1)[1]
        return path.rsplit("/", 1)[-1]

    def delete_image(self, url):
        path = self.image_path_from_url(url)
        if not path:
            return False
        try:
            self.store.remove(self.image_bucket, path)
        except RemoteStoreError as e:
            logger.warning("Failed to delete image %s: %s", path, e)
            return False
        return True


class ProductRepository(CatalogRepository):
    entity_name = "product"
    table_candidates = ("Products", "products")


class CardRepository(CatalogRepository):
    entity_name = "card"
    table_candidates = ("cards", "Cards")


# --------------------------
# Fundraisers
# --------------------------

class FundraiserRepository(EntityRepository):
    entity_name = "fundraiser"
    table_candidates = ("fundraisers", "Fundraisers")

    def normalize(self, record):
        goal_pkr = _to_number(record.get("goal_pkr"))
        if goal_pkr is not None:
            record["goal"] = f"PKR {goal_pkr}"
        return record

    def prepare_write(self, record):
        record = super().prepare_write(record)
        if record.get("goal_pkr") not in (None, ""):
            record["goal_pkr"] = _to_number(record["goal_pkr"])
            record["goal"] = f"PKR {record['goal_pkr']}"
        return record

    def load_active(self):
        return [f for f in self.load_all() if f.get("active")]


# --------------------------
# Reviews
# --------------------------

class ReviewRepository(EntityRepository):
    entity_name = "review"
    table_candidates = ("reviews", "Reviews")

    def create(self, record):
        return super().create(sanitize_review(record))

    def update(self, record_id, patch):
        patch = dict(patch)
        if "text" in patch:
            text = patch.pop("text")
            patch.setdefault("comment", text)
        if "rating" in patch:
            patch["rating"] = clamp_rating(patch["rating"])
        if "comment" in patch:
            patch["comment"] = truncate_comment(patch["comment"])
        return super().update(record_id, patch)

    def load_approved(self):
        return [r for r in self.load_all() if r.get("approved") is True]

    def load_for_product(self, product_id, include_unapproved=False):
        rows = self.load_all() if include_unapproved else self.load_approved()
        return [r for r in rows if r.get("product_id") == product_id]


# --------------------------
# Orders (no read cache)
# --------------------------

class OrderRepository(_TableAccess):
    entity_name = "order"
    table_candidates = ("orders", "Orders")
    id_field = "order_id"

    def create(self, order):
        try:
            return self._call("insert", self.prepare_write(dict(order)))
        except RemoteStoreError:
            logger.exception("Failed to create order %s", order.get("order_id"))
            return None

    def load_all(self):
        try:
            return self._call("select_all", order_by="created_at", descending=True)
        except RemoteStoreError:
            logger.exception("Failed to load orders")
            return []

    def search_by_order_id(self, text):
        needle = (text or "").strip().upper()
        if not needle:
            return []
        try:
            return self._call("select_all", ilike=("order_id", needle), order_by="created_at", descending=True)
        except RemoteStoreError:
            logger.exception("Failed to search orders for %s", needle)
            return []

    def load_by_email(self, email):
        email = (email or "").strip().lower()
        if not email:
            return []
        try:
            return self._call("select_all", filters={"email": email}, order_by="created_at", descending=True)
        except RemoteStoreError:
            logger.exception("Failed to load orders by email")
            return []

    def update_status(self, order_id, status):
        try:
            self._call("update", order_id, {"status": status}, id_field=self.id_field)
        except RemoteStoreError:
            logger.exception("Failed to update status of order %s", order_id)
            return False
        return True

    def delete_by_order_id(self, order_id):
        try:
            self._call("delete", order_id, id_field=self.id_field)
        except RemoteStoreError:
            logger.exception("Failed to delete order %s", order_id)
            return False
        return True
