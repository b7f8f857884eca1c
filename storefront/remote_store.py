# Standard Library
import abc
import copy
import itertools
import json
import logging
import threading
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

# Django
from django.utils import timezone


logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10  # seconds
_PLACEHOLDER_KEY = "your_anon_key"


class RemoteStoreError(Exception):
    """Raised by every store implementation on transport or query failure."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class RemoteStore(abc.ABC):
    """
    Table-scoped CRUD plus blob storage.

    Records are plain dicts keyed by column name. Every method raises
    RemoteStoreError on failure; callers decide how to degrade.
    """

    @abc.abstractmethod
    def select_all(self, table, filters=None, ilike=None, order_by="created_at", descending=True):
        ...

    @abc.abstractmethod
    def select_by_id(self, table, record_id, id_field="id"):
        ...

    @abc.abstractmethod
    def insert(self, table, record):
        ...

    @abc.abstractmethod
    def update(self, table, record_id, patch, id_field="id"):
        ...

    @abc.abstractmethod
    def delete(self, table, record_id, id_field="id"):
        ...

    @abc.abstractmethod
    def upload(self, bucket, path, data, content_type="application/octet-stream"):
        ...

    @abc.abstractmethod
    def remove(self, bucket, path):
        ...


# --------------------------
# Supabase (PostgREST + Storage)
# --------------------------

def _eq(value):
    if isinstance(value, bool):
        return "eq." + ("true" if value else "false")
    return f"eq.{value}"


class SupabaseRemoteStore(RemoteStore):
    def __init__(self, url, api_key, timeout=_DEFAULT_TIMEOUT):
        self.base_url = (url or "").rstrip("/")
        self.api_key = api_key or ""
        self.timeout = timeout

    def _headers(self, extra=None):
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(self, method, url, body=None, headers=None):
        req = Request(url, data=body, method=method, headers=self._headers(headers))
        try:
            with urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except HTTPError as e:
            detail = ""
            try:
                detail = e.read().decode("utf-8", "replace")[:300]
            except Exception:
                pass
            raise RemoteStoreError(f"{method} {url} -> HTTP {e.code} {detail}".strip(), status_code=e.code) from e
        except (URLError, OSError) as e:
            raise RemoteStoreError(f"{method} {url} failed: {e}") from e

        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise RemoteStoreError(f"{method} {url} returned malformed JSON") from e

    def _table_url(self, table, params):
        return f"{self.base_url}/rest/v1/{quote(table)}?{urlencode(params)}"

    def _json_body(self, payload):
        return json.dumps(payload, default=str).encode("utf-8")

    def _single(self, rows, what):
        if isinstance(rows, list):
            if not rows:
                raise RemoteStoreError(f"{what}: no matching row", status_code=404)
            return rows[0]
        if isinstance(rows, dict):
            return rows
        raise RemoteStoreError(f"{what}: unexpected response shape")

    def select_all(self, table, filters=None, ilike=None, order_by="created_at", descending=True):
        params = [("select", "*")]
        for col, value in (filters or {}).items():
            params.append((col, _eq(value)))
        if ilike:
            col, needle = ilike
            params.append((col, f"ilike.*{needle}*"))
        if order_by:
            params.append(("order", f"{order_by}.{'desc' if descending else 'asc'}"))
        rows = self._request("GET", self._table_url(table, params))
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise RemoteStoreError(f"select {table}: expected a list")
        return rows

    def select_by_id(self, table, record_id, id_field="id"):
        params = [("select", "*"), (id_field, _eq(record_id)), ("limit", "1")]
        rows = self._request("GET", self._table_url(table, params))
        if not rows:
            return None
        return rows[0] if isinstance(rows, list) else rows

    def insert(self, table, record):
        rows = self._request(
            "POST",
            self._table_url(table, [("select", "*")]),
            body=self._json_body(record),
            headers={"Content-Type": "application/json", "Prefer": "return=representation"},
        )
        return self._single(rows, f"insert {table}")

    def update(self, table, record_id, patch, id_field="id"):
        rows = self._request(
            "PATCH",
            self._table_url(table, [(id_field, _eq(record_id)), ("select", "*")]),
            body=self._json_body(patch),
            headers={"Content-Type": "application/json", "Prefer": "return=representation"},
        )
        return self._single(rows, f"update {table}")

    def delete(self, table, record_id, id_field="id"):
        self._request("DELETE", self._table_url(table, [(id_field, _eq(record_id))]))

    def public_url(self, bucket, path):
        return f"{self.base_url}/storage/v1/object/public/{quote(bucket)}/{quote(path)}"

    def upload(self, bucket, path, data, content_type="application/octet-stream"):
        url = f"{self.base_url}/storage/v1/object/{quote(bucket)}/{quote(path)}"
        self._request("POST", url, body=data, headers={"Content-Type": content_type, "x-upsert": "true"})
        return self.public_url(bucket, path)

    def remove(self, bucket, path):
        url = f"{self.base_url}/storage/v1/object/{quote(bucket)}"
        self._request(
            "DELETE", url,
            body=self._json_body({"prefixes": [path]}),
            headers={"Content-Type": "application/json"},
        )


# --------------------------
# In-memory store
# --------------------------

class InMemoryRemoteStore(RemoteStore):
    """
    Process-local tables. Used when Supabase is not configured and in tests.

    `tables` restricts which table names exist (selecting any other raises,
    like PostgREST does for an unknown relation). `fail_on` holds operation
    names ("select_all", "insert", ...) that raise RemoteStoreError.
    """

    def __init__(self, tables=None, public_base="memory://storage"):
        self._lock = threading.Lock()
        self._rows = {}
        self._ids = itertools.count(1)
        self._allowed = set(tables) if tables else None
        self.blobs = {}
        self.public_base = public_base
        self.fail_on = set()
        self.calls = []

    def _record_call(self, op, table):
        self.calls.append((op, table))
        if op in self.fail_on:
            raise RemoteStoreError(f"{op} {table}: injected failure", status_code=503)

    def _table(self, table):
        if self._allowed is not None and table not in self._allowed:
            raise RemoteStoreError(f"relation \"{table}\" does not exist", status_code=404)
        return self._rows.setdefault(table, [])

    def seed(self, table, records):
        """Insert records directly, bypassing failure injection."""
        with self._lock:
            rows = self._table(table)
            out = []
            for rec in records:
                row = dict(rec)
                row.setdefault("id", next(self._ids))
                row.setdefault("created_at", timezone.now().isoformat())
                rows.append(row)
                out.append(copy.deepcopy(row))
            return out

    def call_count(self, op, table=None):
        return sum(1 for o, t in self.calls if o == op and (table is None or t == table))

    def select_all(self, table, filters=None, ilike=None, order_by="created_at", descending=True):
        self._record_call("select_all", table)
        with self._lock:
            rows = [r for r in self._table(table) if self._matches(r, filters, ilike)]
            if order_by:
                # id breaks ties between rows created within the same clock tick
                rows = sorted(
                    rows,
                    key=lambda r: (str(r.get(order_by) or ""), r.get("id") or 0),
                    reverse=descending,
                )
            return copy.deepcopy(rows)

    def _matches(self, row, filters, ilike):
        for col, value in (filters or {}).items():
            if row.get(col) != value:
                return False
        if ilike:
            col, needle = ilike
            if str(needle).lower() not in str(row.get(col) or "").lower():
                return False
        return True

    def select_by_id(self, table, record_id, id_field="id"):
        self._record_call("select_by_id", table)
        with self._lock:
            for row in self._table(table):
                if row.get(id_field) == record_id:
                    return copy.deepcopy(row)
        return None

    def insert(self, table, record):
        self._record_call("insert", table)
        with self._lock:
            rows = self._table(table)
            row = copy.deepcopy(record)
            row["id"] = next(self._ids)
            row.setdefault("created_at", timezone.now().isoformat())
            rows.append(row)
            return copy.deepcopy(row)

    def update(self, table, record_id, patch, id_field="id"):
        self._record_call("update", table)
        with self._lock:
            for row in self._table(table):
                if row.get(id_field) == record_id:
                    row.update(copy.deepcopy(patch))
                    return copy.deepcopy(row)
        raise RemoteStoreError(f"update {table}: no matching row", status_code=404)

    def delete(self, table, record_id, id_field="id"):
        self._record_call("delete", table)
        with self._lock:
            rows = self._table(table)
            rows[:] = [r for r in rows if r.get(id_field) != record_id]

    def upload(self, bucket, path, data, content_type="application/octet-stream"):
        self._record_call("upload", bucket)
        self.blobs[(bucket, path)] = bytes(data)
        return f"{self.public_base}/{bucket}/{path}"

    def remove(self, bucket, path):
        self._record_call("remove", bucket)
        self.blobs.pop((bucket, path), None)


# --------------------------
# Factory
# --------------------------

def is_supabase_configured(url, api_key):
    if not url or not api_key:
        return False
    return "localhost" not in url and _PLACEHOLDER_KEY not in api_key


def build_remote_store(backend=None, url="", api_key="", timeout=_DEFAULT_TIMEOUT):
    """Pick the store implementation once, at construction time."""
    backend = (backend or "").strip().lower()
    if not backend:
        backend = "supabase" if is_supabase_configured(url, api_key) else "memory"

    if backend == "supabase":
        if not is_supabase_configured(url, api_key):
            logger.error("Supabase is not configured (SUPABASE_URL / SUPABASE_ANON_KEY); using in-memory store")
            return InMemoryRemoteStore()
        return SupabaseRemoteStore(url, api_key, timeout=timeout)
    if backend == "memory":
        logger.warning("Using in-memory remote store; data will not survive a restart")
        return InMemoryRemoteStore()
    raise ValueError(f"Unknown remote store backend: {backend!r}")
