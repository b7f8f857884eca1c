from storefront.catalog import (
    ALL_CATEGORIES,
    CatalogFilter,
    CatalogItem,
    apply_filters,
    combine,
    list_categories,
)


def items():
    return combine(
        [
            {"id": 1, "name": "Rose Bouquet", "category": "Amigurumi", "price": 35, "in_stock": True},
            {"id": 2, "name": "Baby Whale", "category": "Amigurumi", "price": 30, "in_stock": False},
            {"id": 3, "name": "Rainbow Blanket", "category": "Blankets", "price": 95, "in_stock": True,
             "description": "Soft chunky knit"},
        ],
        [
            {"id": 1, "name": "eid mubarak card", "category": "Cards, Eid", "price": 15, "is_custom": True,
             "images": '["card.jpg"]'},
        ],
    )


def names(result):
    return [i.name for i in result]


def test_category_and_stock_compose():
    spec = CatalogFilter(category="Amigurumi", stock_filter="inStock")
    assert names(apply_filters(items(), spec)) == ["Rose Bouquet"]


def test_price_ascending_sort():
    products = [i for i in items() if i.kind == "product"]
    result = apply_filters(products, CatalogFilter(sort="priceAsc"))
    assert [(i.name, i.price) for i in result] == [
        ("Baby Whale", 30), ("Rose Bouquet", 35), ("Rainbow Blanket", 95),
    ]


def test_default_sort_preserves_order():
    assert names(apply_filters(items(), CatalogFilter())) == [
        "Rose Bouquet", "Baby Whale", "Rainbow Blanket", "eid mubarak card",
    ]


def test_text_matches_name_description_or_category():
    assert names(apply_filters(items(), CatalogFilter(search_text="KNIT"))) == ["Rainbow Blanket"]
    assert names(apply_filters(items(), CatalogFilter(search_text="eid"))) == ["eid mubarak card"]
    assert names(apply_filters(items(), CatalogFilter(search_text="blanket"))) == ["Rainbow Blanket"]


def test_category_is_tag_membership_not_substring():
    assert names(apply_filters(items(), CatalogFilter(category="Card"))) == []
    assert names(apply_filters(items(), CatalogFilter(category="cards"))) == ["eid mubarak card"]
    assert names(apply_filters(items(), CatalogFilter(category="Eid"))) == ["eid mubarak card"]


def test_price_bounds_ignore_zero():
    result = apply_filters(items(), CatalogFilter(min_price=30, max_price=0))
    assert names(result) == ["Rose Bouquet", "Baby Whale", "Rainbow Blanket"]
    result = apply_filters(items(), CatalogFilter(min_price=0, max_price=35))
    assert names(result) == ["Rose Bouquet", "Baby Whale", "eid mubarak card"]


def test_sorts_are_stable():
    data = combine(
        [{"id": i, "name": n, "price": 10} for i, n in enumerate(["b", "a", "c"], 1)], [],
    )
    assert names(apply_filters(data, CatalogFilter(sort="priceDesc"))) == ["b", "a", "c"]
    assert names(apply_filters(data, CatalogFilter(sort="nameAsc"))) == ["a", "b", "c"]


def test_name_sort_ignores_case():
    result = apply_filters(items(), CatalogFilter(sort="nameAsc"))
    assert names(result) == ["Baby Whale", "eid mubarak card", "Rainbow Blanket", "Rose Bouquet"]


def test_from_query_sanitizes_unknown_values():
    spec = CatalogFilter.from_query({"q": " rose ", "stock": "sometimes", "sort": "random", "min_price": "20"})
    assert spec.search_text == "rose"
    assert spec.category == ALL_CATEGORIES
    assert spec.stock_filter == "all"
    assert spec.sort == "default"
    assert spec.min_price == 20


def test_catalog_item_projection():
    card = CatalogItem.from_record({"id": 7, "name": "Card", "price": "15", "category": ["Cards", "Eid"],
                                    "images": "a.jpg,b.jpg", "is_custom": "true"}, "card")
    assert card.kind == "card"
    assert card.price == 15
    assert card.tags == ("Cards", "Eid")
    assert card.in_stock is True
    assert card.is_custom is True
    assert card.as_dict()["image"] == "a.jpg"


def test_list_categories():
    assert list_categories(items()) == ["All", "Amigurumi", "Blankets", "Cards", "Eid"]
