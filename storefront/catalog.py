# Standard Library
from dataclasses import dataclass
from typing import List, Optional

# Local Imports
from .utilities import _as_bool, _to_number, normalize_images, parse_category_tags

ALL_CATEGORIES = "All"

STOCK_FILTERS = ("all", "inStock", "outOfStock")
SORT_OPTIONS = ("default", "priceAsc", "priceDesc", "nameAsc")


@dataclass(frozen=True)
class CatalogItem:
    """Common projection of a product or a card row."""

    kind: str  # "product" | "card"
    id: int
    name: str
    price: float
    category: str
    tags: tuple
    images: tuple
    description: str
    in_stock: bool
    is_custom: bool

    @classmethod
    def from_record(cls, record, kind):
        category = record.get("category") or ""
        return cls(
            kind=kind,
            id=record.get("id"),
            name=str(record.get("name") or ""),
            price=_to_number(record.get("price"), 0),
            category=str(category) if not isinstance(category, (list, tuple)) else ", ".join(category),
            tags=tuple(parse_category_tags(category)),
            images=tuple(normalize_images(record.get("images"))),
            description=str(record.get("description") or ""),
            in_stock=_as_bool(record.get("in_stock"), default=True),
            is_custom=_as_bool(record.get("is_custom"), default=False),
        )

    def has_tag(self, category):
        wanted = category.strip().casefold()
        return any(tag.casefold() == wanted for tag in self.tags)

    def as_dict(self):
        return {
            "kind": self.kind,
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "category": self.category,
            "tags": list(self.tags),
            "images": list(self.images),
            "image": self.images[0] if self.images else None,
            "description": self.description,
            "in_stock": self.in_stock,
            "is_custom": self.is_custom,
        }


def combine(products, cards):
    return [CatalogItem.from_record(p, "product") for p in products] + [
        CatalogItem.from_record(c, "card") for c in cards
    ]


@dataclass
class CatalogFilter:
    search_text: str = ""
    category: str = ALL_CATEGORIES
    stock_filter: str = "all"
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    sort: str = "default"

    @classmethod
    def from_query(cls, params):
        stock = params.get("stock") or params.get("stock_filter") or "all"
        sort = params.get("sort") or "default"
        return cls(
            search_text=(params.get("search") or params.get("q") or "").strip(),
            category=(params.get("category") or ALL_CATEGORIES).strip() or ALL_CATEGORIES,
            stock_filter=stock if stock in STOCK_FILTERS else "all",
            min_price=_to_number(params.get("min_price")),
            max_price=_to_number(params.get("max_price")),
            sort=sort if sort in SORT_OPTIONS else "default",
        )


def match_text(items, search_text):
    needle = (search_text or "").strip().casefold()
    if not needle:
        return list(items)
    return [
        i for i in items
        if needle in i.name.casefold() or needle in i.description.casefold() or needle in i.category.casefold()
    ]


def match_category(items, category):
    if not category or category == ALL_CATEGORIES:
        return list(items)
    return [i for i in items if i.has_tag(category)]


def match_stock(items, stock_filter):
    if stock_filter == "inStock":
        return [i for i in items if i.in_stock]
    if stock_filter == "outOfStock":
        return [i for i in items if not i.in_stock]
    return list(items)


def match_price(items, min_price=None, max_price=None):
    out = list(items)
    if min_price is not None and min_price > 0:
        out = [i for i in out if i.price >= min_price]
    if max_price is not None and max_price > 0:
        out = [i for i in out if i.price <= max_price]
    return out


def sort_items(items, sort):
    # sorted() is stable, so equal keys keep their filtered order
    if sort == "priceAsc":
        return sorted(items, key=lambda i: i.price)
    if sort == "priceDesc":
        return sorted(items, key=lambda i: i.price, reverse=True)
    if sort == "nameAsc":
        return sorted(items, key=lambda i: (i.name.casefold(), i.name))
    return list(items)


def apply_filters(items, spec):
    out = match_text(items, spec.search_text)
    out = match_category(out, spec.category)
    out = match_stock(out, spec.stock_filter)
    out = match_price(out, spec.min_price, spec.max_price)
    return sort_items(out, spec.sort)


def list_categories(items) -> List[str]:
    seen = [ALL_CATEGORIES]
    for item in items:
        for tag in item.tags:
            if tag not in seen:
                seen.append(tag)
    return seen
