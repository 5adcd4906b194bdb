#------------------------------------------------------------
#                      stats_service.py
#        Fetches the platform statistics documents in
#          parallel and derives dashboard metrics.

import sys
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
import requests
from ..config import (
    BASE_CHAIN_ID,
    OPTIMISM_CHAIN_ID,
    STATS_ERROR_MESSAGE,
    STATS_REQUEST_TIMEOUT_SECONDS,
)
from ..errors import StatsFetchError
from ..models import DashboardMetrics, PieSlice, StatsSnapshot, StatsState

STATS_DOCUMENTS = (
    "l2_stats",
    "offchain_stats",
    "listing_stats",
    "resolution_stats",
    "subname_stats",
)
SUBNAME_STATS_FIELD = "stats"

STATS_REQUEST_FAILED_TEMPLATE = "{document} request to {url} failed: {error}"
STATS_STATUS_FAILED_TEMPLATE = "{document} request to {url} returned status {status}"
STATS_INVALID_BODY_TEMPLATE = "{document} response from {url} is not a JSON object"
STATS_MISSING_FIELD_TEMPLATE = "{document} response from {url} has no {field!r} member"
STATS_ERROR_LOG_TEMPLATE = "WARNING: error fetching stats: {error}"
STATS_LISTENER_ERROR_TEMPLATE = "WARNING: stats listener failed: {error}"

class StatsService:

    # This function does store endpoint URLs and the HTTP session.
    # Without an injected session each worker uses requests.get directly.
    def __init__(self, endpoints: Dict[str, str], session=None):
        missing = [name for name in STATS_DOCUMENTS if name not in endpoints]
        if missing:
            raise ValueError(f"Missing stats endpoints: {', '.join(missing)}")
        self.endpoints = endpoints
        self.session = session

    def _get(self, url: str):
        if self.session is None:
            return requests.get(url, timeout=STATS_REQUEST_TIMEOUT_SECONDS)
        return self.session.get(url, timeout=STATS_REQUEST_TIMEOUT_SECONDS)

    # This function does fetch one statistics document.
    # It raises StatsFetchError for transport, status and body failures.
    def fetch_document(self, document: str) -> dict:
        url = self.endpoints[document]
        try:
            response = self._get(url)
        except requests.RequestException as error:
            raise StatsFetchError(
                STATS_REQUEST_FAILED_TEMPLATE.format(document=document, url=url, error=error)
            ) from error

        if not 200 <= response.status_code < 300:
            raise StatsFetchError(
                STATS_STATUS_FAILED_TEMPLATE.format(document=document, url=url, status=response.status_code)
            )

        try:
            data = response.json()
        except ValueError as error:
            raise StatsFetchError(
                STATS_REQUEST_FAILED_TEMPLATE.format(document=document, url=url, error=error)
            ) from error
        if not isinstance(data, dict):
            raise StatsFetchError(STATS_INVALID_BODY_TEMPLATE.format(document=document, url=url))

        if document == "subname_stats":
            stats = data.get(SUBNAME_STATS_FIELD)
            if not isinstance(stats, dict):
                raise StatsFetchError(
                    STATS_MISSING_FIELD_TEMPLATE.format(document=document, url=url, field=SUBNAME_STATS_FIELD)
                )
            return stats
        return data

    # This function does fetch all documents concurrently.
    # It waits for every request and fails if any one of them fails.
    def fetch_snapshot(self) -> StatsSnapshot:
        with ThreadPoolExecutor(max_workers=len(STATS_DOCUMENTS)) as executor:
            futures = {name: executor.submit(self.fetch_document, name) for name in STATS_DOCUMENTS}
            results = {}
            errors = []
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                except StatsFetchError as error:
                    errors.append(error)

        if errors:
            raise errors[0]

        return StatsSnapshot(fetched_at=datetime.now(timezone.utc), **results)

class StatsAggregator:
    """Publishes statistics snapshots; a failed load keeps the previous one."""

    def __init__(self, service: StatsService):
        self.service = service
        self.state = StatsState()
        self._listeners: List[Callable[[StatsState], None]] = []

    def subscribe(self, listener: Callable[[StatsState], None]) -> None:
        self._listeners.append(listener)

    def _publish(self, state: StatsState) -> StatsState:
        self.state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as error:
                print(STATS_LISTENER_ERROR_TEMPLATE.format(error=error), file=sys.stderr)
        return state

    def load(self) -> StatsState:
        previous = self.state.snapshot
        self._publish(StatsState(snapshot=previous, loading=True, error=None))
        try:
            snapshot = self.service.fetch_snapshot()
        except StatsFetchError as error:
            print(STATS_ERROR_LOG_TEMPLATE.format(error=error), file=sys.stderr)
            return self._publish(StatsState(snapshot=previous, loading=False, error=STATS_ERROR_MESSAGE))
        return self._publish(StatsState(snapshot=snapshot, loading=False, error=None))

    def refresh(self) -> StatsState:
        return self.load()

# This function does read a nested numeric value.
# Missing keys and non-numeric values count as zero.
def read_number(data: Optional[dict], *path) -> float:
    current = data
    for key in path:
        if not isinstance(current, dict):
            return 0
        current = current.get(key)
    if isinstance(current, bool) or not isinstance(current, (int, float)):
        return 0
    return current

# This function does derive the dashboard cards and chart datasets.
# It mirrors the fields the dashboard view consumes.
def build_dashboard_metrics(snapshot: StatsSnapshot) -> DashboardMetrics:
    subnames = snapshot.subname_stats
    offchain = snapshot.offchain_stats
    l2 = snapshot.l2_stats
    resolution = snapshot.resolution_stats

    total_volume = (
        read_number(subnames, "totalL1", "volume")
        + read_number(subnames, "totalL2PerChain", "base", "volume")
        + read_number(subnames, "totalL2PerChain", "optimism", "volume")
    )

    return DashboardMetrics(
        total_subnames_overall=read_number(subnames, "totalOveral") + read_number(offchain, "total"),
        total_volume=total_volume,
        subnames_per_chain=[
            PieSlice("Mainnet", read_number(subnames, "totalL1", "total")),
            PieSlice("Base", read_number(subnames, "totalL2PerChain", "base", "total")),
            PieSlice("Optimism", read_number(subnames, "totalL2PerChain", "optimism", "total")),
            PieSlice("Offchain", read_number(offchain, "total")),
        ],
        registries_per_chain=[
            PieSlice("Base", read_number(l2, "perChain", BASE_CHAIN_ID, "totalRegistries")),
            PieSlice("Optimism", read_number(l2, "perChain", OPTIMISM_CHAIN_ID, "totalRegistries")),
        ],
        resolutions_per_chain=[
            PieSlice("Base", read_number(resolution, "per_type", "base", "total")),
            PieSlice("Optimism", read_number(resolution, "per_type", "optimism", "total")),
            PieSlice("Offchain", read_number(resolution, "per_type", "offchain", "total")),
        ],
        resolution_types=[
            PieSlice("Text", read_number(resolution, "total_text")),
            PieSlice("Address", read_number(resolution, "total_addr")),
            PieSlice("ContentHash", read_number(resolution, "contenthash")),
        ],
    )

# This function does compute a slice's share of its dataset.
# It returns zero when the dataset total is zero.
def slice_percent(slices: List[PieSlice], item: PieSlice) -> float:
    total = sum(entry.value for entry in slices)
    if total <= 0:
        return 0.0
    return (item.value / total) * 100
