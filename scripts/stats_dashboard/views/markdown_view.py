#------------------------------------------------------------
#                      markdown_view.py
#              Renders markdown blocks for stats
#              cards, charts and contributor tabs.

from datetime import datetime
from typing import Iterable, List, Optional, Tuple
from ..config import EMPTY_CONTRIBUTORS_MESSAGE, EMPTY_OFFCHAIN_NAMES_MESSAGE
from ..models import (
    AggregateSummary,
    ContributorResult,
    ContributorSummary,
    DashboardMetrics,
    PieSlice,
    RepositorySummary,
    StatsSnapshot,
)
from ..services.contributor_service import filter_contributors, filter_repositories
from ..services.format_service import (
    format_number,
    format_percent,
    format_price,
    format_time_remaining,
    relative_time,
)
from ..services.stats_service import read_number, slice_percent

CARD_GROUP_TITLE_TEMPLATE = "### {title}"
CARD_LINE_TEMPLATE = "- **{label}:** {value}"
PIE_TITLE_TEMPLATE = "#### {title}"
PIE_LINE_TEMPLATE = "- **{name}:** {value} ({percent})"
NO_CHART_DATA_MESSAGE = "_No data available yet._"
OFFCHAIN_TITLE_TEMPLATE = "### Top Offchain Names ({visible} of {total})"
OFFCHAIN_LINE_TEMPLATE = "{rank}. **{name}** - {count} subnames"
OFFCHAIN_MORE_TEMPLATE = "<details>\n<summary>Show {remaining} more</summary>\n\n{lines}\n\n</details>"
LOADING_TEMPLATE = "_Loading {what}..._"
PROGRESS_TEMPLATE = "_{stage} ({current}/{total})_"
ERROR_TITLE = "**Error loading data**"
ERROR_RETRY_HINT = "Run the update again to retry."
ERROR_CACHE_HINT = "Cached data is available and can be loaded without a network round trip."
CACHE_USING_LABEL = "Using cached data"
CACHE_SAVED_LABEL = "Data cached successfully"
CACHE_LAST_FETCHED_TEMPLATE = "Last fetched: {when}"
CACHE_EXPIRES_TEMPLATE = "Expires in: {remaining}"
TAB_TITLE_TEMPLATE = "### {label}"
TAB_TITLE_COUNT_TEMPLATE = "### {label} ({count})"
SUMMARY_SPLIT_TEMPLATE = "{private} private, {public} public"
TOP_PREVIEW_LINE_TEMPLATE = "- [{login}]({url}) - {contributions} contributions"
CONTRIBUTOR_BLOCK_TEMPLATE = (
    "**{rank}. [{login}]({url})** - {contributions} contributions "
    "across {repo_count} repositories"
)
CONTRIBUTOR_REPO_LINE_TEMPLATE = "  - {repo}: {contributions}"
REPOSITORY_BLOCK_TEMPLATE = (
    "**[{name}]({url})** ({visibility}{language})\n"
    "- {contributor_count} contributors, {contributions} contributions{extras}"
)
REPOSITORY_DESCRIPTION_TEMPLATE = "- {description}"
REPOSITORY_CONTRIBUTORS_TEMPLATE = "- {contributors}"
REPOSITORY_CONTRIBUTOR_TEMPLATE = "{login} ({contributions})"

SUMMARY_PREVIEW_COUNT = 6
CONTRIBUTOR_TOP_REPOS = 3
REPOSITORY_CONTRIBUTORS_SHOWN = 10

def _render_card_group(title: str, cards: Iterable[Tuple[str, str]]) -> str:
    lines = [CARD_GROUP_TITLE_TEMPLATE.format(title=title)]
    lines.extend(CARD_LINE_TEMPLATE.format(label=label, value=value) for label, value in cards)
    return "\n".join(lines)

# This function does render every stats card group.
# Values come from the raw documents plus the derived metrics.
def render_stats_cards(snapshot: StatsSnapshot, metrics: DashboardMetrics) -> str:
    subnames = snapshot.subname_stats
    listing = snapshot.listing_stats
    l2 = snapshot.l2_stats
    groups = [
        _render_card_group(
            "Overview",
            [
                ("Total Subnames", format_number(metrics.total_subnames_overall)),
                ("Total Volume", format_price(metrics.total_volume)),
                ("Offchain Subnames", format_number(read_number(snapshot.offchain_stats, "total"))),
                ("Total Listings", format_number(read_number(listing, "totalCount"))),
                ("Total Resolutions", format_number(read_number(snapshot.resolution_stats, "total"))),
                ("L2 Registries", format_number(read_number(l2, "totalRegistries"))),
            ],
        ),
        _render_card_group(
            "Platform Metrics",
            [
                ("Onchain Subnames", format_number(read_number(subnames, "totalOveral"))),
                ("Unique Minters", format_number(read_number(subnames, "uniqueMinter"))),
            ],
        ),
        _render_card_group(
            "Subnames per Chain",
            [
                ("Base", format_number(read_number(subnames, "totalL2PerChain", "base", "total"))),
                ("Optimism", format_number(read_number(subnames, "totalL2PerChain", "optimism", "total"))),
                ("Mainnet", format_number(read_number(subnames, "totalL1", "total"))),
            ],
        ),
        _render_card_group(
            "Listings",
            [
                ("Mainnet", format_number(read_number(listing, "totalListings", "mainnet"))),
                ("Base", format_number(read_number(listing, "totalListings", "base"))),
                ("Optimism", format_number(read_number(listing, "totalListings", "optimism"))),
            ],
        ),
        _render_card_group(
            "Registries",
            [
                ("Base", format_number(metrics.registries_per_chain[0].value)),
                ("Optimism", format_number(metrics.registries_per_chain[1].value)),
                ("Total Fee", format_number(read_number(l2, "totalFee"))),
                ("Total Registries", format_number(read_number(l2, "totalRegistries"))),
            ],
        ),
    ]
    return "\n\n".join(groups)

# This function does render one pie dataset as a percentage list.
# It returns an empty-state message when every slice is zero.
def render_pie_chart(title: str, slices: List[PieSlice]) -> str:
    lines = [PIE_TITLE_TEMPLATE.format(title=title)]
    if not slices or sum(item.value for item in slices) <= 0:
        lines.append(NO_CHART_DATA_MESSAGE)
        return "\n".join(lines)
    for item in slices:
        lines.append(
            PIE_LINE_TEMPLATE.format(
                name=item.name,
                value=format_number(item.value),
                percent=format_percent(slice_percent(slices, item)),
            )
        )
    return "\n".join(lines)

def render_stats_charts(metrics: DashboardMetrics) -> str:
    return "\n\n".join(
        [
            render_pie_chart("Subnames per Chain", metrics.subnames_per_chain),
            render_pie_chart("Resolution Types", metrics.resolution_types),
            render_pie_chart("Resolutions per Chain", metrics.resolutions_per_chain),
            render_pie_chart("Registries per Chain", metrics.registries_per_chain),
        ]
    )

# This function does render the expandable offchain names list.
# Names are sorted by count; non-numeric counts read as zero.
def render_offchain_names(offchain_stats: dict, visible_count: int) -> str:
    names = (offchain_stats or {}).get("names") or {}
    if not isinstance(names, dict) or not names:
        return EMPTY_OFFCHAIN_NAMES_MESSAGE

    counts = [(name, read_number(count)) for name, count in names.items()]
    ranked = sorted(counts, key=lambda item: item[1], reverse=True)
    visible = ranked[:visible_count]
    hidden = ranked[visible_count:]

    lines = [OFFCHAIN_TITLE_TEMPLATE.format(visible=len(visible), total=len(ranked))]
    lines.extend(
        OFFCHAIN_LINE_TEMPLATE.format(rank=index, name=name, count=format_number(count))
        for index, (name, count) in enumerate(visible, start=1)
    )
    block = "\n".join(lines)
    if not hidden:
        return block

    hidden_lines = "\n".join(
        OFFCHAIN_LINE_TEMPLATE.format(rank=index, name=name, count=format_number(count))
        for index, (name, count) in enumerate(hidden, start=len(visible) + 1)
    )
    return block + "\n\n" + OFFCHAIN_MORE_TEMPLATE.format(remaining=len(hidden), lines=hidden_lines)

def render_loading(what: str) -> str:
    return LOADING_TEMPLATE.format(what=what)

def render_progress(current: int, total: int, stage: str) -> str:
    if total <= 0:
        return f"_{stage}_"
    return PROGRESS_TEMPLATE.format(stage=stage, current=current, total=total)

# This function does render the error panel with a retry hint.
# It mentions cached data when a cached dataset exists.
def render_error_panel(message: str, cache_available: bool = False) -> str:
    lines = [ERROR_TITLE, "", f"> {message}", "", ERROR_RETRY_HINT]
    if cache_available:
        lines.append(ERROR_CACHE_HINT)
    return "\n".join(lines)

def render_cache_banner(result: ContributorResult, seconds_remaining: float, now: Optional[datetime] = None) -> str:
    parts = [CACHE_USING_LABEL if result.from_cache else CACHE_SAVED_LABEL]
    if result.fetched_at is not None:
        parts.append(CACHE_LAST_FETCHED_TEMPLATE.format(when=relative_time(result.fetched_at, now)))
        if seconds_remaining > 0:
            parts.append(CACHE_EXPIRES_TEMPLATE.format(remaining=format_time_remaining(seconds_remaining)))
    return "_" + " - ".join(parts) + "_"

def render_summary_tab(summary: AggregateSummary) -> str:
    lines = [
        TAB_TITLE_TEMPLATE.format(label="Summary"),
        CARD_LINE_TEMPLATE.format(label="Repositories", value=format_number(summary.total_repositories)),
        f"  - {SUMMARY_SPLIT_TEMPLATE.format(private=summary.private_repositories, public=summary.public_repositories)}",
        CARD_LINE_TEMPLATE.format(label="With Contributors", value=format_number(summary.repositories_with_contributors)),
        CARD_LINE_TEMPLATE.format(label="Unique Contributors", value=format_number(summary.unique_contributors)),
        CARD_LINE_TEMPLATE.format(label="Total Contributions", value=format_number(summary.total_contributions)),
    ]
    preview = summary.top_contributors[:SUMMARY_PREVIEW_COUNT]
    if preview:
        lines.append("")
        lines.append("**Top Contributors**")
        lines.extend(
            TOP_PREVIEW_LINE_TEMPLATE.format(
                login=item.login,
                url=item.html_url,
                contributions=format_number(item.total_contributions),
            )
            for item in preview
        )
    return "\n".join(lines)

# This function does render the top contributors tab.
# Each contributor lists their three busiest repositories.
def render_contributors_tab(contributors: List[ContributorSummary], unique_count: int) -> str:
    title = TAB_TITLE_COUNT_TEMPLATE.format(label="Top Contributors", count=unique_count)
    if not contributors:
        return "\n".join([title, EMPTY_CONTRIBUTORS_MESSAGE])

    blocks = [title]
    for rank, contributor in enumerate(contributors, start=1):
        lines = [
            CONTRIBUTOR_BLOCK_TEMPLATE.format(
                rank=rank,
                login=contributor.login,
                url=contributor.html_url,
                contributions=format_number(contributor.total_contributions),
                repo_count=len(contributor.repositories),
            )
        ]
        busiest = sorted(contributor.repositories, key=lambda item: item.contributions, reverse=True)
        lines.extend(
            CONTRIBUTOR_REPO_LINE_TEMPLATE.format(repo=entry.repo, contributions=format_number(entry.contributions))
            for entry in busiest[:CONTRIBUTOR_TOP_REPOS]
        )
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)

def render_repository_block(repo: RepositorySummary) -> str:
    extras = ""
    if repo.stars > 0:
        extras += f", {format_number(repo.stars)} stars"
    if repo.forks > 0:
        extras += f", {format_number(repo.forks)} forks"
    lines = [
        REPOSITORY_BLOCK_TEMPLATE.format(
            name=repo.name,
            url=repo.url,
            visibility="Private" if repo.private else "Public",
            language=f", {repo.language}" if repo.language else "",
            contributor_count=repo.contributor_count,
            contributions=format_number(repo.total_contributions),
            extras=extras,
        )
    ]
    if repo.description:
        lines.append(REPOSITORY_DESCRIPTION_TEMPLATE.format(description=repo.description))
    shown = [
        REPOSITORY_CONTRIBUTOR_TEMPLATE.format(login=item.login, contributions=item.contributions)
        for item in repo.contributors[:REPOSITORY_CONTRIBUTORS_SHOWN]
    ]
    if shown:
        lines.append(REPOSITORY_CONTRIBUTORS_TEMPLATE.format(contributors=", ".join(shown)))
    return "\n".join(lines)

def render_repositories_tab(repositories: List[RepositorySummary]) -> str:
    title = TAB_TITLE_COUNT_TEMPLATE.format(label="Repositories", count=len(repositories))
    if not repositories:
        return "\n".join([title, EMPTY_CONTRIBUTORS_MESSAGE])
    ranked = sorted(repositories, key=lambda item: item.contributor_count, reverse=True)
    return "\n\n".join([title] + [render_repository_block(repo) for repo in ranked])

# This function does render the whole contributor section.
# It stacks the cache banner and the three tabs; a search term narrows
# the contributor and repository tabs.
def render_contributors_section(
    result: ContributorResult,
    seconds_remaining: float,
    now: Optional[datetime] = None,
    search_term: str = "",
) -> str:
    dataset = result.dataset
    contributors = dataset.summary.top_contributors
    repositories = list(dataset.contributors_by_repo.values())
    contributor_count = dataset.summary.unique_contributors
    if search_term.strip():
        contributors = filter_contributors(contributors, search_term)
        repositories = filter_repositories(repositories, search_term)
        contributor_count = len(contributors)
    return "\n\n".join(
        [
            render_cache_banner(result, seconds_remaining, now),
            render_summary_tab(dataset.summary),
            render_contributors_tab(contributors, contributor_count),
            render_repositories_tab(repositories),
        ]
    )
