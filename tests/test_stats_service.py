from unittest.mock import patch

import pytest

from stats_dashboard.config import STATS_ERROR_MESSAGE
from stats_dashboard.errors import StatsFetchError
from stats_dashboard.models import PieSlice
from stats_dashboard.services.stats_service import (
    StatsAggregator,
    StatsService,
    build_dashboard_metrics,
    slice_percent,
)

from conftest import FakeResponse, FakeSession

ENDPOINTS = {
    "l2_stats": "https://stats.test/l2",
    "offchain_stats": "https://stats.test/offchain",
    "listing_stats": "https://stats.test/listing",
    "resolution_stats": "https://stats.test/resolution",
    "subname_stats": "https://stats.test/subnames",
}

L2_STATS = {
    "perChain": {"8453": {"totalRegistries": 30}, "10": {"totalRegistries": 10}},
    "totalRegistries": 40,
    "totalFee": 12,
}
OFFCHAIN_STATS = {"total": 100, "names": {"alpha.eth": 60, "beta.eth": 40}}
LISTING_STATS = {"totalListings": {"base": 2, "mainnet": 5, "optimism": 1}, "totalCount": 8}
RESOLUTION_STATS = {
    "total": 90,
    "total_addr": 50,
    "total_text": 30,
    "contenthash": 10,
    "per_type": {"base": {"total": 40}, "optimism": {"total": 20}, "offchain": {"total": 30}},
}
SUBNAME_STATS = {
    "totalOveral": 900,
    "uniqueMinter": 77,
    "totalL1": {"total": 500, "volume": 1.5},
    "totalL2PerChain": {"base": {"total": 300, "volume": 0.25}, "optimism": {"total": 100, "volume": 0.25}},
}


def _routes(**overrides):
    routes = {
        ENDPOINTS["l2_stats"]: FakeResponse(200, L2_STATS),
        ENDPOINTS["offchain_stats"]: FakeResponse(200, OFFCHAIN_STATS),
        ENDPOINTS["listing_stats"]: FakeResponse(200, LISTING_STATS),
        ENDPOINTS["resolution_stats"]: FakeResponse(200, RESOLUTION_STATS),
        ENDPOINTS["subname_stats"]: FakeResponse(200, {"stats": SUBNAME_STATS}),
    }
    for name, answer in overrides.items():
        routes[ENDPOINTS[name]] = answer
    return routes


def test_snapshot_holds_all_five_documents():
    session = FakeSession(_routes())

    snapshot = StatsService(ENDPOINTS, session=session).fetch_snapshot()

    assert snapshot.l2_stats == L2_STATS
    assert snapshot.offchain_stats == OFFCHAIN_STATS
    assert snapshot.listing_stats == LISTING_STATS
    assert snapshot.resolution_stats == RESOLUTION_STATS
    assert snapshot.subname_stats == SUBNAME_STATS
    assert sorted(session.urls()) == sorted(ENDPOINTS.values())


def test_missing_endpoint_is_rejected():
    endpoints = dict(ENDPOINTS)
    endpoints.pop("listing_stats")

    with pytest.raises(ValueError, match="listing_stats"):
        StatsService(endpoints, session=FakeSession())


def test_any_failed_document_fails_the_snapshot(network_error):
    session = FakeSession(_routes(listing_stats=network_error))

    with pytest.raises(StatsFetchError, match="listing_stats"):
        StatsService(ENDPOINTS, session=session).fetch_snapshot()

    assert len(session.calls) == 5


def test_subname_document_without_stats_member_fails():
    session = FakeSession(_routes(subname_stats=FakeResponse(200, {"data": {}})))

    with pytest.raises(StatsFetchError, match="stats"):
        StatsService(ENDPOINTS, session=session).fetch_snapshot()


def test_listing_rejection_publishes_error_state(network_error):
    aggregator = StatsAggregator(StatsService(ENDPOINTS, session=FakeSession(_routes(listing_stats=network_error))))
    published = []
    aggregator.subscribe(published.append)

    state = aggregator.load()

    assert state.error == STATS_ERROR_MESSAGE
    assert state.snapshot is None
    assert state.loading is False
    assert [item.loading for item in published] == [True, False]


def test_failed_refresh_keeps_previous_snapshot():
    session = FakeSession(_routes())
    aggregator = StatsAggregator(StatsService(ENDPOINTS, session=session))
    first = aggregator.load().snapshot

    session.routes[ENDPOINTS["offchain_stats"]] = FakeResponse(500, {})
    state = aggregator.refresh()

    assert state.error == STATS_ERROR_MESSAGE
    assert state.snapshot is first


def test_successful_refresh_replaces_snapshot_and_clears_error():
    session = FakeSession(_routes(resolution_stats=FakeResponse(503, {})))
    aggregator = StatsAggregator(StatsService(ENDPOINTS, session=session))
    assert aggregator.load().error == STATS_ERROR_MESSAGE

    session.routes[ENDPOINTS["resolution_stats"]] = FakeResponse(200, RESOLUTION_STATS)
    state = aggregator.refresh()

    assert state.error is None
    assert state.snapshot.resolution_stats == RESOLUTION_STATS


def test_failing_listener_does_not_break_publication():
    aggregator = StatsAggregator(StatsService(ENDPOINTS, session=FakeSession(_routes())))

    def broken(state):
        raise RuntimeError("boom")

    aggregator.subscribe(broken)

    assert aggregator.load().error is None


def test_dashboard_metrics():
    snapshot = StatsService(ENDPOINTS, session=FakeSession(_routes())).fetch_snapshot()

    metrics = build_dashboard_metrics(snapshot)

    assert metrics.total_subnames_overall == 1000
    assert metrics.total_volume == 2.0
    assert metrics.subnames_per_chain == [
        PieSlice("Mainnet", 500),
        PieSlice("Base", 300),
        PieSlice("Optimism", 100),
        PieSlice("Offchain", 100),
    ]
    assert metrics.registries_per_chain == [PieSlice("Base", 30), PieSlice("Optimism", 10)]
    assert [item.value for item in metrics.resolutions_per_chain] == [40, 20, 30]
    assert [item.value for item in metrics.resolution_types] == [30, 50, 10]


def test_dashboard_metrics_default_missing_values_to_zero():
    session = FakeSession(
        _routes(
            l2_stats=FakeResponse(200, {}),
            subname_stats=FakeResponse(200, {"stats": {"totalOveral": 5}}),
        )
    )
    metrics = build_dashboard_metrics(StatsService(ENDPOINTS, session=session).fetch_snapshot())

    assert metrics.total_subnames_overall == 105
    assert metrics.total_volume == 0
    assert [item.value for item in metrics.registries_per_chain] == [0, 0]


def test_slice_percent():
    slices = [PieSlice("Base", 30), PieSlice("Optimism", 10)]

    assert slice_percent(slices, slices[0]) == 75.0
    assert slice_percent([PieSlice("Empty", 0)], PieSlice("Empty", 0)) == 0.0


def test_default_service_issues_plain_requests_per_document():
    routes = _routes()

    with patch("stats_dashboard.services.stats_service.requests.get", side_effect=lambda url, timeout: routes[url]) as get:
        snapshot = StatsService(ENDPOINTS).fetch_snapshot()

    assert snapshot.subname_stats == SUBNAME_STATS
    assert sorted(call.args[0] for call in get.call_args_list) == sorted(ENDPOINTS.values())
    assert all(call.kwargs["timeout"] == 30 for call in get.call_args_list)
