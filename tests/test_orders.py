import csv
import io
import re

import pytest

from storefront.basket import BasketStore, CacheLocalStorage, MemoryLocalStorage
from storefront.orders import (
    CSV_COLUMNS,
    STATUS_ORDER,
    LegacyOrderBackup,
    OrderStatus,
    build_order_record,
    compute_totals,
    generate_order_id,
    initial_status,
    is_valid_status,
    orders_to_csv,
    parse_promo_codes,
    place_custom_order,
    place_order,
    sort_orders,
    status_counts,
    validate_checkout,
)
from storefront.remote_store import InMemoryRemoteStore
from storefront.repositories import OrderRepository
from storefront.signals import order_placed

FORM = {
    "name": "Sana Malik",
    "email": "Sana@Example.com",
    "phone": "0300 1234567",
    "address": "House 12, Gulberg, Lahore",
}


@pytest.fixture
def basket():
    b = BasketStore(MemoryLocalStorage())
    b.add_item({"id": 1, "name": "Rose Bouquet", "price": 35}, 2)
    b.add_item({"id": 5, "name": "Eid card", "price": 85, "customText": "Eid Mubarak Ammi"}, 1)
    return b


@pytest.fixture
def backup():
    return LegacyOrderBackup(MemoryLocalStorage())


@pytest.fixture
def order_store():
    return InMemoryRemoteStore()


@pytest.fixture
def order_repo(order_store):
    return OrderRepository(order_store)


@pytest.fixture
def announced():
    seen = []

    def listener(sender, order, **kwargs):
        seen.append(order)

    order_placed.connect(listener, dispatch_uid="tests.announced")
    yield seen
    order_placed.disconnect(dispatch_uid="tests.announced")


# --------------------------
# Ids & statuses
# --------------------------

def test_order_ids_are_unique_in_a_tight_loop():
    ids = [generate_order_id() for _ in range(10000)]
    assert len(set(ids)) == 10000


def test_order_id_shape():
    assert re.fullmatch(r"PS-[0-9A-Z]+-[0-9A-Z]{5}", generate_order_id())


def test_statuses():
    assert initial_status("regular") == "Under Process"
    assert initial_status("custom") == "Quote Request"
    assert is_valid_status("Dispatched")
    assert not is_valid_status("Lost in transit")
    assert OrderStatus.CANCELLED == "Cancelled"


# --------------------------
# Totals
# --------------------------

def test_parse_promo_codes():
    assert parse_promo_codes("welcome10:10, EID20:20,broken,ZERO:0,BIG:150") == {"WELCOME10": 10, "EID20": 20}


def test_totals_with_promo_and_gift_wrap(basket):
    totals = compute_totals(basket.lines, promo_code=" welcome10 ", gift_wrap=True,
                            promo_codes={"WELCOME10": 10}, gift_wrap_cost=150)
    assert totals.subtotal == 155
    assert totals.discount == 16  # 15.5 rounds half up
    assert totals.promo_code == "WELCOME10"
    assert totals.gift_wrap_cost == 150
    assert totals.total == 155 - 16 + 150


def test_unknown_promo_is_ignored(basket):
    totals = compute_totals(basket.lines, promo_code="FAKE", promo_codes={"WELCOME10": 10}, gift_wrap_cost=150)
    assert totals.discount == 0
    assert totals.promo_code is None
    assert totals.gift_wrap_cost == 0
    assert totals.total == 155


# --------------------------
# Records
# --------------------------

def test_validate_checkout():
    assert validate_checkout(FORM) == {}
    errors = validate_checkout({"name": "x", "email": "nope", "phone": ""})
    assert set(errors) == {"email", "phone", "address"}
    assert "custom_description" in validate_checkout({**FORM}, custom=True)


def test_build_order_record_snapshots_lines(basket):
    totals = compute_totals(basket.lines)
    record = build_order_record(FORM, basket.lines, totals, order_id="PS-TEST-00001")

    assert record["order_id"] == "PS-TEST-00001"
    assert record["email"] == "sana@example.com"
    assert record["products"] == "Rose Bouquet x2, Eid card (Eid Mubarak Ammi) x1"
    assert record["quantity"] == "3"
    assert record["status"] == "Under Process"
    assert record["payment_method"] == "Cash on Delivery"
    assert record["items"][1] == {"id": 5, "name": "Eid card", "price": 85, "quantity": 1,
                                  "customText": "Eid Mubarak Ammi"}


# --------------------------
# Placement
# --------------------------

def test_place_order_success(order_repo, order_store, basket, backup, announced):
    order = place_order(order_repo, basket, {**FORM, "promo_code": "EID20"}, backup,
                        promo_codes={"EID20": 20}, gift_wrap_cost=150)

    assert order is not None
    assert order["total"] == 124
    assert order_store.select_all("orders")[0]["order_id"] == order["order_id"]
    assert basket.lines == []
    assert [o["order_id"] for o in announced] == [order["order_id"]]

    entry, = backup.list()
    assert entry["orderId"] == order["order_id"]
    assert "error" not in entry


def test_place_order_failure_keeps_basket_and_backs_up(order_repo, order_store, basket, backup, announced):
    order_store.fail_on.add("insert")

    assert place_order(order_repo, basket, FORM, backup) is None

    assert basket.total_items == 3
    assert announced == []
    entry, = backup.list()
    assert entry["error"] == "Failed to save order remotely"
    assert entry["name"] == "Sana Malik"
    assert entry["status"] == "Under Process"


def test_place_custom_order(order_repo, backup, announced):
    form = {**FORM, "address": "", "custom_description": "Crochet bouquet in my school colours",
            "custom_colors": "navy, gold", "custom_timeline": "Before 14 August"}

    order = place_custom_order(order_repo, form, backup)

    assert order["status"] == "Quote Request"
    assert order["order_type"] == "custom"
    assert order["total"] == 0
    assert order["custom_colors"] == "navy, gold"
    assert backup.list()[0]["customTimeline"] == "Before 14 August"
    assert len(announced) == 1


def test_backup_list_tolerates_garbage():
    storage = MemoryLocalStorage({"phool_orders_backup": "not json"})
    backup = LegacyOrderBackup(storage)
    assert backup.list() == []
    backup.append({"orderId": "PS-1"})
    assert backup.list() == [{"orderId": "PS-1"}]
    backup.clear()
    assert backup.list() == []


def test_place_order_keeps_lines_added_while_saving(order_repo, basket, backup, announced):
    class AddsWhileSaving:
        def create(self, record):
            # another request for the same device adds to the basket mid-save
            BasketStore(basket.storage).add_item({"id": 9, "name": "Gift bag", "price": 20})
            return order_repo.create(record)

    order = place_order(AddsWhileSaving(), basket, FORM, backup)

    assert order["subtotal"] == 155
    assert [(l.id, l.quantity) for l in basket.lines] == [(9, 1)]


def test_interleaved_backups_keep_every_entry():
    first = LegacyOrderBackup(CacheLocalStorage("orders", alias="orders"))
    second = LegacyOrderBackup(CacheLocalStorage("orders", alias="orders"))

    first.append({"orderId": "PS-1"})
    second.append({"orderId": "PS-2"})

    assert [e["orderId"] for e in first.list()] == ["PS-1", "PS-2"]


# --------------------------
# Admin helpers
# --------------------------

ORDERS = [
    {"order_id": "A", "status": "Dispatched", "created_at": "2024-03-02T10:00:00+00:00"},
    {"order_id": "B", "status": "Under Process", "created_at": "2024-03-03T10:00:00+00:00"},
    {"order_id": "C", "status": "Quote Request", "created_at": "2024-03-01T10:00:00+00:00"},
]


def test_sort_orders():
    assert [o["order_id"] for o in sort_orders(ORDERS)] == ["B", "A", "C"]
    assert [o["order_id"] for o in sort_orders(ORDERS, direction="asc")] == ["C", "A", "B"]
    assert [o["order_id"] for o in sort_orders(ORDERS, key="status", direction="asc")] == ["C", "B", "A"]


def test_status_counts():
    counts = status_counts(ORDERS + [{"order_id": "D"}])
    assert list(counts)[: len(STATUS_ORDER)] == STATUS_ORDER
    assert counts["Under Process"] == 2
    assert counts["Dispatched"] == 1
    assert counts["Cancelled"] == 0


def test_orders_to_csv():
    rows = list(csv.reader(io.StringIO(orders_to_csv([{"order_id": "A", "name": 'Sana "S" Malik', "total": 155}]))))
    assert rows[0] == [header for header, _ in CSV_COLUMNS]
    assert rows[1][0] == "A"
    assert rows[1][4] == 'Sana "S" Malik'
    assert rows[1][12] == "155"
