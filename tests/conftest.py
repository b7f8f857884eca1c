import pytest
from django.core.cache import caches
from rest_framework.test import APIClient

from storefront.remote_store import InMemoryRemoteStore
from storefront.registry import build_repositories, get_repositories, reset_repositories

FRONTEND_KEY = "test-frontend-key"
ADMIN_KEY = "test-admin-key"
DEVICE_UUID = "device-0001"


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture(autouse=True)
def storefront_settings(settings):
    settings.PHOOL_REMOTE_STORE = "memory"
    settings.FRONTEND_KEY = FRONTEND_KEY
    settings.ADMIN_KEY = ADMIN_KEY
    settings.GOOGLE_SHEETS_URL = ""
    settings.ORDER_NOTIFY_EMAIL = "owner@phoolshop.pk"
    settings.PHOOL_PROMO_CODES = "WELCOME10:10,EID20:20"
    settings.PHOOL_GIFT_WRAP_COST = 150
    settings.PHOOL_CUSTOM_TEXT_LIMIT = 150
    settings.CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "phool-tests",
        },
        "orders": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "phool-tests-orders",
        },
    }
    caches["default"].clear()
    caches["orders"].clear()
    reset_repositories()
    yield settings
    reset_repositories()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryRemoteStore()


@pytest.fixture
def repos(store, clock):
    """Repositories over a private in-memory store and a fake clock."""
    return build_repositories(store, clock=clock)


@pytest.fixture
def app_repos():
    """The process-wide repositories the views use."""
    return get_repositories()


@pytest.fixture
def api():
    client = APIClient()
    client.credentials(HTTP_X_FRONTEND_KEY=FRONTEND_KEY, HTTP_X_DEVICE_UUID=DEVICE_UUID)
    return client


@pytest.fixture
def admin_api():
    client = APIClient()
    client.credentials(
        HTTP_X_FRONTEND_KEY=FRONTEND_KEY,
        HTTP_X_ADMIN_KEY=ADMIN_KEY,
        HTTP_X_DEVICE_UUID="admin-device",
    )
    return client
