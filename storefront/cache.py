"""
Cache snapshots for the entity repositories.

A snapshot is never mutated in place: every patch returns a new CacheEntry
that keeps the original timestamp, so a write never extends freshness.
All helpers are no-ops (return None) when there is no cache yet.
"""
from typing import List, NamedTuple, Optional


class CacheEntry(NamedTuple):
    timestamp: float
    data: List[dict]


def is_fresh(entry: Optional[CacheEntry], now: float, ttl: float) -> bool:
    return entry is not None and (now - entry.timestamp) < ttl


def find_cached(entry: Optional[CacheEntry], record_id, id_field: str = "id") -> Optional[dict]:
    if entry is None:
        return None
    for rec in entry.data:
        if rec.get(id_field) == record_id:
            return rec
    return None


def apply_insert(entry: Optional[CacheEntry], record: dict) -> Optional[CacheEntry]:
    """Newest first, matching the load order."""
    if entry is None:
        return None
    return CacheEntry(entry.timestamp, [record, *entry.data])


def apply_update(entry: Optional[CacheEntry], record_id, record: dict, id_field: str = "id") -> Optional[CacheEntry]:
    if entry is None:
        return None
    return CacheEntry(
        entry.timestamp,
        [record if rec.get(id_field) == record_id else rec for rec in entry.data],
    )


def apply_delete(entry: Optional[CacheEntry], record_id, id_field: str = "id") -> Optional[CacheEntry]:
    if entry is None:
        return None
    return CacheEntry(entry.timestamp, [rec for rec in entry.data if rec.get(id_field) != record_id])
