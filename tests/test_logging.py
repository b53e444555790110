import json
import logging

from helpers import ListTransport, load_fixture, make_client, make_response


def test_debug_logs_request_and_response(caplog):
    logger = logging.getLogger("tests.shopify")
    transport = ListTransport([
        make_response(200, {"order": {"id": 1}}, {"X-Request-Id": "req-123"}),
    ])
    client = make_client(transport, logger=logger)
    with caplog.at_level(logging.DEBUG, logger="tests.shopify"):
        client.post("orders.json", {"order": {"id": 1}})
    messages = [r.getMessage() for r in caplog.records]
    assert f"POST: {transport.calls[0].url}" in messages
    assert 'SENT: {"order": {"id": 1}}' in messages
    assert "Shopify X-Request-Id: req-123" in messages
    assert "RECV 200: OK" in messages
    assert 'RESP: {"order": {"id": 1}}' in messages


def test_large_bodies_are_truncated_with_warning(caplog):
    body = json.dumps(load_fixture("payouts.json") | {"padding": "x" * 500})
    transport = ListTransport([make_response(200, body)])
    client = make_client(transport, max_body_bytes=64)
    with caplog.at_level(logging.DEBUG, logger="shopify_admin.client"):
        client.get("shopify_payments/payouts.json")
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "max_body_bytes" in warnings[0].getMessage()
    resp = [r.getMessage() for r in caplog.records if r.getMessage().startswith("RESP: ")]
    assert resp == ["RESP: " + body[:64]]


def test_bodies_not_logged_above_debug(caplog):
    transport = ListTransport([make_response(200, {"x": "y" * 100})])
    client = make_client(transport, max_body_bytes=8)
    with caplog.at_level(logging.INFO, logger="shopify_admin.client"):
        client.get("shop.json")
    assert caplog.records == []
