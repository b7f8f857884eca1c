import pytest

from storefront.ratings import RatingSummary, clamp_rating, sanitize_review, summarize


def test_average_excludes_unapproved():
    reviews = [
        {"product_id": 1, "rating": 5, "approved": True},
        {"product_id": 1, "rating": 3, "approved": True},
        {"product_id": 1, "rating": 1, "approved": False},
    ]
    assert summarize(reviews, product_id=1) == RatingSummary(4.0, 2)


def test_average_rounds_half_up_to_one_decimal():
    reviews = [{"rating": r, "approved": True} for r in (5, 4, 4, 4)]  # 4.25
    assert summarize(reviews).average == 4.3


def test_no_reviews():
    assert summarize([]) == RatingSummary(None, 0)
    assert summarize([{"rating": 4, "approved": False}]).as_dict() == {"average": None, "count": 0}


def test_summary_restricted_to_product():
    reviews = [
        {"product_id": 1, "rating": 2, "approved": True},
        {"product_id": 2, "rating": 5, "approved": True},
    ]
    assert summarize(reviews, product_id=2) == RatingSummary(5.0, 1)


@pytest.mark.parametrize("raw, expected", [
    (7, 5), (0, 1), (-2, 1), (3, 3), ("4", 4), (2.5, 3), (4.4, 4), ("junk", 5), (None, 5),
])
def test_clamp_rating(raw, expected):
    assert clamp_rating(raw) == expected


def test_sanitize_clamps_and_truncates():
    review = sanitize_review({"rating": 7, "text": "x" * 500, "name": "  Sana  "})
    assert review["rating"] == 5
    assert review["comment"] == "x" * 150
    assert "text" not in review
    assert review["name"] == "Sana"
    assert review["approved"] is False


def test_sanitize_keeps_explicit_approval():
    assert sanitize_review({"rating": 4, "comment": "lovely", "approved": True})["approved"] is True
