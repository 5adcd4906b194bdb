#------------------------------------------------------------
#                        controller.py
#           Coordinates contributor aggregation and
#                dashboard section updates.

import os
import sys
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
from .config import (
    CONTRIBUTORS_END_MARKER,
    CONTRIBUTORS_START_MARKER,
    DEFAULT_GITHUB_USERNAME,
    ENV_GITHUB_TOKEN,
    ENV_GITHUB_USERNAME,
    ENV_SEARCH_TERM,
    NO_GITHUB_TOKEN_MESSAGE,
    NO_REPOSITORIES_MESSAGE,
    OFFCHAIN_NAMES_END_MARKER,
    OFFCHAIN_NAMES_START_MARKER,
    STATS_CARDS_END_MARKER,
    STATS_CARDS_START_MARKER,
    STATS_CHARTS_END_MARKER,
    STATS_CHARTS_START_MARKER,
    STATS_ERROR_MESSAGE,
    USERNAME_REQUIRED_MESSAGE,
    load_ignored_repos,
    resolve_cache_expiry_seconds,
    resolve_cache_path,
    resolve_dashboard_path,
    resolve_stats_endpoints,
)
from .errors import GitHubError
from .models import (
    ContributorDataset,
    ContributorRecord,
    ContributorResult,
    DashboardConfig,
    RepositorySummary,
    StatsState,
)
from .services.cache_service import ContributorCache, JsonFileCacheStore
from .services.contributor_service import build_repository_summary, generate_summary
from .services.document_service import load_document, replace_section, save_document
from .services.github_service import GitHubService
from .services.stats_service import StatsAggregator, StatsService, build_dashboard_metrics
from .views.markdown_view import (
    render_contributors_section,
    render_error_panel,
    render_loading,
    render_offchain_names,
    render_progress,
    render_stats_cards,
    render_stats_charts,
)

ENV_FORCE_REFRESH = "DASHBOARD_FORCE_REFRESH"
TRUTHY_VALUES = {"1", "true", "yes", "on"}

DASHBOARD_MARKER_PAIRS = [
    (STATS_CARDS_START_MARKER, STATS_CARDS_END_MARKER),
    (STATS_CHARTS_START_MARKER, STATS_CHARTS_END_MARKER),
    (OFFCHAIN_NAMES_START_MARKER, OFFCHAIN_NAMES_END_MARKER),
    (CONTRIBUTORS_START_MARKER, CONTRIBUTORS_END_MARKER),
]

STAGE_STARTING = "Starting..."
STAGE_FETCHING_REPOS = "Fetching repositories..."
STAGE_FOUND_REPOS_TEMPLATE = "Found {count} repositories..."
STAGE_PROCESSING_TEMPLATE = "Processing {count} repositories..."
STAGE_PROCESSING_REPO_TEMPLATE = "Processing {name} ({current}/{total})"
STAGE_COMPLETE = "Complete!"
CACHE_HIT_MESSAGE = "Loaded data from cache"
SKIPPED_REPO_TEMPLATE = "Skipping ignored repo: {name}"
CONTRIBUTOR_ERROR_TEMPLATE = "WARNING: contributor aggregation failed: {error}"

ProgressCallback = Callable[[int, int, str], None]

class ContributorAggregator:
    """Builds the contributor dataset for one GitHub user.

    A fresh cache entry short-circuits all network activity unless a
    forced refresh is requested. Repository-list failures raise
    ``GitHubError``; per-repository failures count as zero contributors.
    """

    def __init__(
        self,
        config: DashboardConfig,
        github_service: GitHubService,
        cache: ContributorCache,
        ignored_repos: Optional[set] = None,
        progress: Optional[ProgressCallback] = None,
    ):
        self.config = config
        self.github_service = github_service
        self.cache = cache
        self.ignored_repos = ignored_repos or set()
        self.progress = progress
        self.result: Optional[ContributorResult] = None
        self.error: Optional[str] = None

    def _report(self, current: int, total: int, stage: str) -> None:
        if self.progress is not None:
            self.progress(current, total, stage)

    def load_from_cache(self) -> Optional[ContributorResult]:
        dataset = self.cache.read(self.config.github_username)
        if dataset is None:
            return None
        self.result = ContributorResult(
            dataset=dataset,
            from_cache=True,
            fetched_at=self.cache.last_written(self.config.github_username),
        )
        return self.result

    def clear_cache(self) -> None:
        self.cache.clear(self.config.github_username)

    def cache_time_remaining(self) -> float:
        return self.cache.time_remaining(self.config.github_username)

    def last_fetched(self):
        return self.cache.last_written(self.config.github_username)

    # This function does collect contributors for each repository.
    # Repositories are visited sequentially in listing order.
    def _collect_contributors(self, repositories: List[dict]):
        all_contributors: List[ContributorRecord] = []
        contributors_by_repo: Dict[str, RepositorySummary] = {}
        total = len(repositories)

        for index, repo in enumerate(repositories, start=1):
            self._report(index, total, STAGE_PROCESSING_REPO_TEMPLATE.format(name=repo.get("name"), current=index, total=total))
            owner = (repo.get("owner") or {}).get("login") or self.config.github_username
            contributors = self.github_service.fetch_repo_contributors(owner, repo.get("name") or "")
            if not contributors:
                continue
            summary = build_repository_summary(repo, contributors)
            all_contributors.extend(contributors)
            contributors_by_repo[summary.repository] = summary

        return all_contributors, contributors_by_repo

    # This function does execute the contributor workflow end-to-end.
    # It checks the cache, fetches, aggregates and writes the cache back.
    def fetch_all(self, force_refresh: bool = False) -> ContributorResult:
        username = self.config.github_username
        if not username:
            self.error = USERNAME_REQUIRED_MESSAGE
            raise GitHubError(USERNAME_REQUIRED_MESSAGE)

        if not force_refresh:
            cached = self.load_from_cache()
            if cached is not None:
                print(CACHE_HIT_MESSAGE)
                self.error = None
                return cached

        self.error = None
        self._report(0, 0, STAGE_STARTING)
        try:
            self._report(0, 0, STAGE_FETCHING_REPOS)
            repositories = self.github_service.fetch_repos(
                on_page=lambda count: self._report(0, 0, STAGE_FOUND_REPOS_TEMPLATE.format(count=count))
            )
            if not repositories:
                raise GitHubError(NO_REPOSITORIES_MESSAGE)
        except GitHubError as error:
            self.error = str(error)
            raise

        kept = []
        for repo in repositories:
            if (repo.get("name") or "").strip().lower() in self.ignored_repos:
                print(SKIPPED_REPO_TEMPLATE.format(name=repo.get("name")))
                continue
            kept.append(repo)

        self._report(0, len(kept), STAGE_PROCESSING_TEMPLATE.format(count=len(kept)))
        all_contributors, contributors_by_repo = self._collect_contributors(kept)

        dataset = ContributorDataset(
            repositories=kept,
            contributors_by_repo=contributors_by_repo,
            all_contributors=all_contributors,
            summary=generate_summary(
                all_contributors,
                contributors_by_repo,
                kept,
                top_contributors=self.config.top_contributors,
                top_repositories=self.config.top_repositories,
            ),
        )

        cached = self.cache.write(username, dataset)
        self.result = ContributorResult(
            dataset=dataset,
            from_cache=False,
            fetched_at=self.cache.last_written(username) if cached else datetime.now(timezone.utc),
        )
        self._report(len(kept), len(kept), STAGE_COMPLETE)
        return self.result

def build_config() -> DashboardConfig:
    return DashboardConfig(
        github_username=os.environ.get(ENV_GITHUB_USERNAME, DEFAULT_GITHUB_USERNAME),
        github_token=os.environ.get(ENV_GITHUB_TOKEN, ""),
        cache_expiry_seconds=resolve_cache_expiry_seconds(),
        search_term=os.environ.get(ENV_SEARCH_TERM, "").strip(),
    )

def _print_progress(current: int, total: int, stage: str) -> None:
    print(render_progress(current, total, stage))

# This function does render the statistics sections into the document.
# A failed load replaces the card section with the error panel.
def _apply_stats_sections(document: str, state: StatsState, config: DashboardConfig) -> str:
    if state.error or state.snapshot is None:
        panel = render_error_panel(state.error or STATS_ERROR_MESSAGE)
        document = replace_section(document, STATS_CARDS_START_MARKER, STATS_CARDS_END_MARKER, panel)
        document = replace_section(document, STATS_CHARTS_START_MARKER, STATS_CHARTS_END_MARKER, "")
        return replace_section(document, OFFCHAIN_NAMES_START_MARKER, OFFCHAIN_NAMES_END_MARKER, "")

    metrics = build_dashboard_metrics(state.snapshot)
    document = replace_section(
        document, STATS_CARDS_START_MARKER, STATS_CARDS_END_MARKER, render_stats_cards(state.snapshot, metrics)
    )
    document = replace_section(document, STATS_CHARTS_START_MARKER, STATS_CHARTS_END_MARKER, render_stats_charts(metrics))
    return replace_section(
        document,
        OFFCHAIN_NAMES_START_MARKER,
        OFFCHAIN_NAMES_END_MARKER,
        render_offchain_names(state.snapshot.offchain_stats, config.offchain_names_visible),
    )

# This function does run both aggregators and rewrite the dashboard.
# It returns a process exit code that is non-zero only if both fail.
def run_update(session=None) -> int:
    config = build_config()
    force_refresh = os.environ.get(ENV_FORCE_REFRESH, "").strip().lower() in TRUTHY_VALUES
    if not config.github_token:
        print(NO_GITHUB_TOKEN_MESSAGE)

    print(render_loading("analytics"))
    stats_aggregator = StatsAggregator(StatsService(resolve_stats_endpoints(), session=session))
    stats_state = stats_aggregator.load()

    aggregator = ContributorAggregator(
        config,
        GitHubService(config, session=session),
        ContributorCache(JsonFileCacheStore(resolve_cache_path()), config.cache_expiry_seconds),
        ignored_repos=load_ignored_repos(),
        progress=_print_progress,
    )

    contributors_body = ""
    contributors_failed = False
    try:
        result = aggregator.fetch_all(force_refresh=force_refresh)
        contributors_body = render_contributors_section(
            result, aggregator.cache_time_remaining(), search_term=config.search_term
        )
    except GitHubError as error:
        contributors_failed = True
        print(CONTRIBUTOR_ERROR_TEMPLATE.format(error=error), file=sys.stderr)
        cached = aggregator.load_from_cache()
        contributors_body = render_error_panel(str(error), cache_available=cached is not None)
        if cached is not None:
            contributors_body += "\n\n" + render_contributors_section(
                cached, aggregator.cache_time_remaining(), search_term=config.search_term
            )

    dashboard_path = resolve_dashboard_path()
    document = load_document(dashboard_path, DASHBOARD_MARKER_PAIRS)
    document = _apply_stats_sections(document, stats_state, config)
    document = replace_section(document, CONTRIBUTORS_START_MARKER, CONTRIBUTORS_END_MARKER, contributors_body)
    save_document(dashboard_path, document)
    print(f"{os.path.basename(dashboard_path)} updated successfully.")

    return 1 if stats_state.error and contributors_failed else 0
