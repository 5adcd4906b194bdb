#------------------------------------------------------------
#                          models.py
#     Defines dataclasses used by the dashboard pipeline.

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from .config import (
    DEFAULT_CACHE_EXPIRY_MINUTES,
    DEFAULT_OFFCHAIN_NAMES_VISIBLE,
    DEFAULT_PAGE_DELAY_SECONDS,
    DEFAULT_REPO_DELAY_SECONDS,
    DEFAULT_TOP_CONTRIBUTORS,
    DEFAULT_TOP_REPOSITORIES,
)

@dataclass(frozen=True)
class StatsSnapshot:
    l2_stats: Dict[str, Any]
    offchain_stats: Dict[str, Any]
    listing_stats: Dict[str, Any]
    resolution_stats: Dict[str, Any]
    subname_stats: Dict[str, Any]
    fetched_at: datetime

@dataclass(frozen=True)
class StatsState:
    snapshot: Optional[StatsSnapshot] = None
    loading: bool = False
    error: Optional[str] = None

@dataclass(frozen=True)
class PieSlice:
    name: str
    value: float

@dataclass(frozen=True)
class DashboardMetrics:
    total_subnames_overall: float
    total_volume: float
    subnames_per_chain: List[PieSlice]
    registries_per_chain: List[PieSlice]
    resolutions_per_chain: List[PieSlice]
    resolution_types: List[PieSlice]

@dataclass
class ContributorRecord:
    login: str
    contributions: int
    repository: str
    avatar_url: str = ""
    html_url: str = ""
    type: str = "User"

@dataclass
class RepoContribution:
    repo: str
    contributions: int

@dataclass
class ContributorSummary:
    login: str
    avatar_url: str
    html_url: str
    total_contributions: int = 0
    repositories: List[RepoContribution] = field(default_factory=list)

@dataclass
class RepositorySummary:
    repository: str
    name: str
    private: bool
    url: str
    description: Optional[str]
    language: Optional[str]
    stars: int
    forks: int
    contributors: List[ContributorRecord]
    contributor_count: int
    total_contributions: int

@dataclass
class AggregateSummary:
    total_repositories: int
    repositories_with_contributors: int
    private_repositories: int
    public_repositories: int
    unique_contributors: int
    total_contributors: int
    total_contributions: int
    top_contributors: List[ContributorSummary]
    top_repositories: List[RepositorySummary]

@dataclass
class ContributorDataset:
    repositories: List[dict]
    contributors_by_repo: Dict[str, RepositorySummary]
    all_contributors: List[ContributorRecord]
    summary: AggregateSummary

@dataclass
class ContributorResult:
    dataset: ContributorDataset
    from_cache: bool
    fetched_at: Optional[datetime]

@dataclass
class DashboardConfig:
    github_username: str
    github_token: str
    cache_expiry_seconds: int = DEFAULT_CACHE_EXPIRY_MINUTES * 60
    top_contributors: int = DEFAULT_TOP_CONTRIBUTORS
    top_repositories: int = DEFAULT_TOP_REPOSITORIES
    offchain_names_visible: int = DEFAULT_OFFCHAIN_NAMES_VISIBLE
    page_delay_seconds: float = DEFAULT_PAGE_DELAY_SECONDS
    repo_delay_seconds: float = DEFAULT_REPO_DELAY_SECONDS
    search_term: str = ""
