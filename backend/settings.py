"""
Django settings for backend project.

Everything deployment-specific comes from the environment (or a .env file
next to manage.py).
"""
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def _env_bool(name, default=False):
    val = os.environ.get(name)
    if val is None or val == "":
        return default
    return val.strip().lower() in ("true", "1", "yes", "on")


def _env_int(name, default):
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "django-insecure-phool-shop-dev-key")
DEBUG = _env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = [h.strip() for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h.strip()]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "storefront",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "backend.urls"
WSGI_APPLICATION = "backend.wsgi.application"

# All persistent data lives in the remote store; the local database only
# satisfies Django's contrib apps.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

# Baskets ("default") and the legacy order backup ("orders") are kept in file
# caches so they survive restarts. FileBasedCache culls 1/CULL_FREQUENCY of its
# entries, chosen at random, once it holds more than MAX_ENTRIES; one basket is
# one entry, so MAX_ENTRIES bounds the number of devices with a stored basket.
# The backup is a single entry in its own alias and is never culled.
_STORAGE_DIR = Path(os.environ.get("PHOOL_STORAGE_DIR", str(BASE_DIR / "var" / "storage")))

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.filebased.FileBasedCache",
        "LOCATION": str(_STORAGE_DIR / "baskets"),
        "OPTIONS": {
            "MAX_ENTRIES": _env_int("PHOOL_BASKET_MAX_ENTRIES", 1000000),
            "CULL_FREQUENCY": _env_int("PHOOL_BASKET_CULL_FREQUENCY", 10),
        },
    },
    "orders": {
        "BACKEND": "django.core.cache.backends.filebased.FileBasedCache",
        "LOCATION": str(_STORAGE_DIR / "orders"),
    },
}

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["storefront.permissions.FrontendOnlyPermission"],
    "UNAUTHENTICATED_USER": None,
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("DJANGO_TIME_ZONE", "Asia/Karachi")
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# --------------------------
# Storefront
# --------------------------
SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_ANON_KEY = os.environ.get("SUPABASE_ANON_KEY", "")
PHOOL_REMOTE_STORE = os.environ.get("PHOOL_REMOTE_STORE", "")
PHOOL_REMOTE_TIMEOUT = _env_int("PHOOL_REMOTE_TIMEOUT", 10)
PHOOL_CACHE_TTL = {
    "products": _env_int("PHOOL_CACHE_TTL_PRODUCTS", 300),
    "cards": _env_int("PHOOL_CACHE_TTL_CARDS", 60),
    "fundraisers": _env_int("PHOOL_CACHE_TTL_FUNDRAISERS", 60),
    "reviews": _env_int("PHOOL_CACHE_TTL_REVIEWS", 60),
}
PHOOL_CUSTOM_TEXT_LIMIT = _env_int("PHOOL_CUSTOM_TEXT_LIMIT", 150)
PHOOL_GIFT_WRAP_COST = _env_int("PHOOL_GIFT_WRAP_COST", 150)
PHOOL_PROMO_CODES = os.environ.get("PHOOL_PROMO_CODES", "")

FRONTEND_KEY = os.environ.get("FRONTEND_KEY", "")
ADMIN_KEY = os.environ.get("ADMIN_KEY", "")

GOOGLE_SHEETS_URL = os.environ.get("GOOGLE_SHEETS_URL", "")

# --------------------------
# Email
# --------------------------
EMAIL_BACKEND = os.environ.get("EMAIL_BACKEND", "django.core.mail.backends.smtp.EmailBackend")
EMAIL_HOST = os.environ.get("EMAIL_HOST", "localhost")
EMAIL_PORT = _env_int("EMAIL_PORT", 587)
EMAIL_HOST_USER = os.environ.get("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.environ.get("EMAIL_HOST_PASSWORD", "")
EMAIL_USE_TLS = _env_bool("EMAIL_USE_TLS", True)
DEFAULT_FROM_EMAIL = os.environ.get("DEFAULT_FROM_EMAIL", "Phool Shop <orders@phoolshop.pk>")
ORDER_NOTIFY_EMAIL = os.environ.get("ORDER_NOTIFY_EMAIL", "")

# --------------------------
# Logging
# --------------------------
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "storefront": {
            "handlers": ["console"],
            "level": os.environ.get("PHOOL_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}
