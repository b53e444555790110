import datetime
import json
from urllib.parse import parse_qsl, urlsplit

import pytest

from helpers import ListTransport, load_fixture, make_client, make_response

from shopify_admin.errors import ResponseError
from shopify_admin.resources import InventoryLevelOptions, PayoutListOptions, PayoutStatus

PREFIX = "https://fooshop.myshopify.com/admin/api/2024-01"


def test_payout_list():
    transport = ListTransport([make_response(200, load_fixture("payouts.json"))])
    client = make_client(transport)
    options = PayoutListOptions(status=PayoutStatus.PAID, date_min=datetime.date(2012, 11, 1))
    payouts = client.payouts.list(options)
    assert [p["id"] for p in payouts] == [623721858, 854088011]
    url = transport.calls[0].url
    assert url.startswith(f"{PREFIX}/shopify_payments/payouts.json?")
    assert parse_qsl(urlsplit(url).query) == [("status", "paid"), ("date_min", "2012-11-01")]


def test_payout_list_error_has_unknown_message():
    transport = ListTransport([make_response(500)])
    client = make_client(transport)
    with pytest.raises(ResponseError) as exc:
        client.payouts.list()
    assert str(exc.value) == "Unknown Error"


def test_payout_list_with_pagination():
    link = f'<{PREFIX}/shopify_payments/payouts.json?page_info=foo&limit=1>; rel="next"'
    transport = ListTransport([make_response(200, {"payouts": [{"id": 1}]}, {"Link": link})])
    client = make_client(transport)
    payouts, pagination = client.payouts.list_with_pagination()
    assert payouts == [{"id": 1}]
    assert pagination.next_page_options.page_info == "foo"
    assert pagination.next_page_options.limit == 1


def test_payout_get():
    transport = ListTransport([make_response(200, {"payout": {"id": 623721858}})])
    client = make_client(transport)
    assert client.payouts.get(623721858) == {"id": 623721858}
    assert transport.calls[0].url == f"{PREFIX}/shopify_payments/payouts/623721858.json"


def test_smart_collection_crud():
    transport = ListTransport([
        make_response(200, {"count": 3}),
        make_response(201, {"smart_collection": {"id": 7, "title": "Macbooks"}}),
        make_response(200, {"smart_collection": {"id": 7, "title": "Laptops"}}),
        make_response(200, b"{}"),
    ])
    client = make_client(transport)
    assert client.smart_collections.count() == 3
    created = client.smart_collections.create({"title": "Macbooks"})
    assert created["id"] == 7
    updated = client.smart_collections.update({"id": 7, "title": "Laptops"})
    assert updated["title"] == "Laptops"
    client.smart_collections.delete(7)

    methods = [call.method for call in transport.calls]
    urls = [call.url for call in transport.calls]
    assert methods == ["GET", "POST", "PUT", "DELETE"]
    assert urls == [
        f"{PREFIX}/smart_collections/count.json",
        f"{PREFIX}/smart_collections.json",
        f"{PREFIX}/smart_collections/7.json",
        f"{PREFIX}/smart_collections/7.json",
    ]
    assert json.loads(transport.calls[1].body) == {"smart_collection": {"title": "Macbooks"}}


def test_update_requires_id():
    client = make_client(ListTransport([]))
    with pytest.raises(ValueError):
        client.smart_collections.update({"title": "no id"})


def test_smart_collection_iterate_follows_cursors():
    link = f'<{PREFIX}/smart_collections.json?page_info=next1>; rel="next"'
    transport = ListTransport([
        make_response(200, {"smart_collections": [{"id": 1}]}, {"Link": link}),
        make_response(200, {"smart_collections": [{"id": 2}]}),
    ])
    client = make_client(transport)
    assert [c["id"] for c in client.smart_collections.iterate()] == [1, 2]


def test_shop_get():
    transport = ListTransport([make_response(200, {"shop": {"name": "Fooshop"}})])
    client = make_client(transport)
    assert client.shop.get() == {"name": "Fooshop"}
    assert transport.calls[0].url == f"{PREFIX}/shop.json"


def test_inventory_level_adjust_posts_unwrapped_body():
    level = {"inventory_item_id": 808950810, "location_id": 905684977, "available": 6}
    transport = ListTransport([make_response(200, {"inventory_level": level})])
    client = make_client(transport)
    result = client.inventory_levels.adjust(
        InventoryLevelOptions(inventory_item_id=808950810, location_id=905684977, available_adjustment=5)
    )
    assert result == level
    assert transport.calls[0].url == f"{PREFIX}/inventory_levels/adjust.json"
    assert json.loads(transport.calls[0].body) == {
        "inventory_item_id": 808950810,
        "location_id": 905684977,
        "available_adjustment": 5,
    }


def test_inventory_level_list_and_delete():
    transport = ListTransport([
        make_response(200, {"inventory_levels": [{"location_id": 1}]}),
        make_response(204),
    ])
    client = make_client(transport)
    assert client.inventory_levels.list({"inventory_item_ids": [808950810]}) == [{"location_id": 1}]
    client.inventory_levels.delete(808950810, 905684977)
    assert transport.calls[1].method == "DELETE"
    assert parse_qsl(urlsplit(transport.calls[1].url).query) == [
        ("inventory_item_id", "808950810"),
        ("location_id", "905684977"),
    ]
