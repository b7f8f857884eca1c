"""
One long-lived repository per entity type, shared by every request in the
process. Views ask for them through get_repositories(); tests swap the store
by changing settings and calling reset_repositories().
"""
# Standard Library
import functools
import time
from typing import NamedTuple

# Django
from django.conf import settings

# Local Imports
from .basket import BasketStore, CacheLocalStorage
from .orders import LegacyOrderBackup
from .remote_store import RemoteStore, build_remote_store
from .repositories import (
    CardRepository,
    FundraiserRepository,
    OrderRepository,
    ProductRepository,
    ReviewRepository,
)

DEFAULT_TTL = {"products": 300, "cards": 60, "fundraisers": 60, "reviews": 60}


class Repositories(NamedTuple):
    store: RemoteStore
    products: ProductRepository
    cards: CardRepository
    fundraisers: FundraiserRepository
    reviews: ReviewRepository
    orders: OrderRepository

    def cached(self):
        return (self.products, self.cards, self.fundraisers, self.reviews)

    def catalog(self, kind):
        """'product' -> products repo, 'card' -> cards repo"""
        return self.cards if kind == "card" else self.products


def build_repositories(store, ttl=None, clock=time.monotonic):
    ttl = {**DEFAULT_TTL, **(ttl or {})}
    return Repositories(
        store=store,
        products=ProductRepository(store, ttl=ttl["products"], clock=clock),
        cards=CardRepository(store, ttl=ttl["cards"], clock=clock),
        fundraisers=FundraiserRepository(store, ttl=ttl["fundraisers"], clock=clock),
        reviews=ReviewRepository(store, ttl=ttl["reviews"], clock=clock),
        orders=OrderRepository(store),
    )


@functools.lru_cache(maxsize=None)
def get_repositories():
    store = build_remote_store(
        backend=getattr(settings, "PHOOL_REMOTE_STORE", ""),
        url=getattr(settings, "SUPABASE_URL", ""),
        api_key=getattr(settings, "SUPABASE_ANON_KEY", ""),
        timeout=getattr(settings, "PHOOL_REMOTE_TIMEOUT", 10),
    )
    return build_repositories(store, ttl=getattr(settings, "PHOOL_CACHE_TTL", None))


def reset_repositories():
    get_repositories.cache_clear()


def basket_for(device_uuid):
    return BasketStore(CacheLocalStorage(device_uuid))


ORDER_BACKUP_CACHE = "orders"


def order_backup():
    return LegacyOrderBackup(CacheLocalStorage("orders", alias=ORDER_BACKUP_CACHE))
