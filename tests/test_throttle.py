import threading

from helpers import load_fixture

from shopify_admin.throttle import GraphQLCost, GraphQLThrottleStatus, RateLimitInfo, RateLimitTracker


def test_retry_after_uses_requested_cost_without_actual():
    cost = GraphQLCost.from_extensions(load_fixture("graphql_throttled.json")["extensions"]["cost"])
    assert cost.actual_query_cost is None
    assert cost.retry_after_seconds() == 2.0


def test_retry_after_prefers_actual_cost():
    cost = GraphQLCost(
        requested_query_cost=1000,
        actual_query_cost=150,
        throttle_status=GraphQLThrottleStatus(1000, 100, 50),
    )
    assert cost.retry_after_seconds() == 1.0


def test_retry_after_zero_when_enough_points():
    cost = GraphQLCost(requested_query_cost=10, throttle_status=GraphQLThrottleStatus(1000, 500, 50))
    assert cost.retry_after_seconds() == 0.0


def test_retry_after_zero_without_restore_rate():
    cost = GraphQLCost(requested_query_cost=10, throttle_status=GraphQLThrottleStatus(1000, 0, 0))
    assert cost.retry_after_seconds() == 0.0


def test_update_from_headers():
    tracker = RateLimitTracker()
    info = tracker.update_from_headers({"X-Shopify-Shop-Api-Call-Limit": "12/80", "Retry-After": "0.5"})
    assert info == RateLimitInfo(request_count=12, bucket_size=80, retry_after_seconds=0.5)
    assert tracker.snapshot() is info


def test_update_from_headers_ignores_malformed_call_limit():
    tracker = RateLimitTracker()
    tracker.update_from_headers({"X-Shopify-Shop-Api-Call-Limit": "5/40"})
    info = tracker.update_from_headers({"X-Shopify-Shop-Api-Call-Limit": "garbage"})
    assert (info.request_count, info.bucket_size) == (5, 40)
    assert info.retry_after_seconds == 0.0


def test_graphql_cost_update_keeps_call_limit():
    tracker = RateLimitTracker()
    tracker.update_from_headers({"X-Shopify-Shop-Api-Call-Limit": "1/40"})
    cost = GraphQLCost(requested_query_cost=1)
    info = tracker.update_from_graphql_cost(cost, 3.0)
    assert info.graphql_cost is cost
    assert info.retry_after_seconds == 3.0
    assert info.request_count == 1


def test_concurrent_updates_leave_a_consistent_snapshot():
    tracker = RateLimitTracker()

    def worker(n):
        for _ in range(200):
            tracker.update_from_headers({"X-Shopify-Shop-Api-Call-Limit": f"{n}/{n}"})

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(1, 5)]
    for th in threads:
        th.start()
    for th in threads:
        th.join(timeout=5)
    info = tracker.snapshot()
    assert info.request_count == info.bucket_size
    assert info.request_count in {1, 2, 3, 4}
