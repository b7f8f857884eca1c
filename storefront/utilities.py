# Standard Library
import base64
import json
import logging
import os
from io import BytesIO

# Third-party
from PIL import Image as PILImage, UnidentifiedImageError


logger = logging.getLogger(__name__)

# body of every unexpected-failure response; details go to the log only
SERVER_ERROR = "Something went wrong on our side. Please try again."

_CONTENT_TYPE_TO_EXT = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/bmp": ".bmp",
    "image/tiff": ".tiff",
}

_PIL_FORMAT_TO_EXT = {
    "jpeg": ".jpg",
    "png": ".png",
    "webp": ".webp",
    "gif": ".gif",
    "bmp": ".bmp",
    "tiff": ".tiff",
}

_EXT_TO_CONTENT_TYPE = {
    ".jpg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".tiff": "image/tiff",
}


def _clean_list(values):
    return [str(v) for v in values if v]


def normalize_images(value):
    """
    Coerce a stored image field into an ordered list of strings.

    Accepts a native list, a JSON-encoded list, a comma-separated string or
    nothing at all. Never raises; idempotent on its own output.
    """
    if isinstance(value, (list, tuple)):
        return _clean_list(value)
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return []
        try:
            parsed = json.loads(s)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return _clean_list(parsed)
        return [part.strip() for part in s.split(",") if part.strip()]
    return []


def parse_category_tags(value):
    """'Amigurumi, Gifts' -> ['Amigurumi', 'Gifts']"""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        parts = [str(v) for v in value]
    else:
        parts = str(value).split(",")
    tags = []
    for part in parts:
        tag = part.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def join_category_tags(value):
    return ", ".join(parse_category_tags(value))


def _as_bool(val, default=False):
    if isinstance(val, bool):
        return val
    if val is None or val == "":
        return default
    s = str(val).strip().lower()
    if s in ("true", "1", "yes", "on"):
        return True
    if s in ("false", "0", "no", "off"):
        return False
    return default


def _to_int(val, default=None):
    try:
        return int(str(val).strip())
    except (TypeError, ValueError):
        try:
            return int(float(val))
        except (TypeError, ValueError):
            return default


def _to_number(val, default=None):
    """Prices are whole currency units; keep ints as ints."""
    if val is None or val == "":
        return default
    try:
        num = float(val)
    except (TypeError, ValueError):
        return default
    return int(num) if num.is_integer() else num


def _parse_payload(request):
    """Consistent, tolerant request payload parsing."""
    if isinstance(request.data, dict):
        return request.data
    try:
        body = request.body.decode("utf-8") if request.body else "{}"
        data = json.loads(body or "{}")
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def device_uuid_from(request, data=None):
    data = data or {}
    return (str(data.get("device_uuid") or "") or request.headers.get("X-Device-UUID") or "").strip()


# --------------------------
# Images
# --------------------------

def _is_data_url(s):
    return isinstance(s, str) and s.startswith("data:image/")


def decode_data_url(s):
    """'data:image/png;base64,....' -> (bytes, 'image/png')"""
    header, encoded = s.split(",", 1)
    content_type = header[5:].split(";")[0].strip().lower()
    return base64.b64decode(encoded), content_type


def inspect_image(blob, filename="", content_type=""):
    """
    Validate image bytes with Pillow.

    Returns (extension, content_type) or None when the bytes are not a
    readable image.
    """
    try:
        img = PILImage.open(BytesIO(blob))
        img.load()  # force decode to catch truncated files early
    except (UnidentifiedImageError, OSError, ValueError):
        logger.warning("Rejected upload %r: not a readable image", filename or "<bytes>")
        return None

    ext = _CONTENT_TYPE_TO_EXT.get((content_type or "").lower())
    if not ext:
        _, file_ext = os.path.splitext(filename or "")
        file_ext = ".jpg" if file_ext.lower() == ".jpeg" else file_ext.lower()
        if file_ext in _EXT_TO_CONTENT_TYPE:
            ext = file_ext
    if not ext:
        ext = _PIL_FORMAT_TO_EXT.get((img.format or "").lower(), ".png")
    return ext, _EXT_TO_CONTENT_TYPE.get(ext, "application/octet-stream")
