# Standard Library
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import NamedTuple, Optional

MAX_REVIEW_LENGTH = 150
MIN_RATING = 1
MAX_RATING = 5


class RatingSummary(NamedTuple):
    average: Optional[float]  # None when nothing has been rated yet
    count: int

    def as_dict(self):
        return {"average": self.average, "count": self.count}


def _round_half_up(value, places="1"):
    return Decimal(str(value)).quantize(Decimal(places), rounding=ROUND_HALF_UP)


def clamp_rating(n):
    try:
        n = int(_round_half_up(float(n)))
    except (TypeError, ValueError, InvalidOperation, OverflowError):
        return MAX_RATING
    return max(MIN_RATING, min(MAX_RATING, n))


def truncate_comment(text):
    return str(text or "").strip()[:MAX_REVIEW_LENGTH]


def sanitize_review(payload):
    """
    Shape an inbound review for storage. Out-of-range ratings are clamped and
    long comments truncated, never rejected. `text` is accepted as an alias
    of `comment`.
    """
    data = dict(payload)
    comment = data.pop("text", None)
    if "comment" in data:
        comment = data["comment"]
    data["comment"] = truncate_comment(comment)
    data["rating"] = clamp_rating(data.get("rating"))
    data["name"] = str(data.get("name") or "").strip()[:120] or "Anonymous"
    data["approved"] = data.get("approved") is True
    return data


def summarize(reviews, product_id=None):
    rated = [
        r for r in reviews
        if r.get("approved") is True and (product_id is None or r.get("product_id") == product_id)
    ]
    if not rated:
        return RatingSummary(None, 0)
    total = sum(int(r.get("rating") or 0) for r in rated)
    average = float(_round_half_up(Decimal(total) / Decimal(len(rated)), "0.1"))
    return RatingSummary(average, len(rated))
