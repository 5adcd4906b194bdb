#------------------------------------------------------------
#                   contributor_service.py
#        Merges per-repository contributor lists into
#           contributor and repository summaries.

from typing import Dict, Iterable, List
from ..config import DEFAULT_TOP_CONTRIBUTORS, DEFAULT_TOP_REPOSITORIES
from ..models import (
    AggregateSummary,
    ContributorRecord,
    ContributorSummary,
    RepoContribution,
    RepositorySummary,
)

# This function does build the summary of one repository.
# Counts are derived from the contributor list it is given.
def build_repository_summary(repo: dict, contributors: List[ContributorRecord]) -> RepositorySummary:
    return RepositorySummary(
        repository=repo.get("full_name") or repo.get("name") or "",
        name=repo.get("name") or "",
        private=bool(repo.get("private")),
        url=repo.get("html_url") or "",
        description=repo.get("description"),
        language=repo.get("language"),
        stars=int(repo.get("stargazers_count") or 0),
        forks=int(repo.get("forks_count") or 0),
        contributors=list(contributors),
        contributor_count=len(contributors),
        total_contributions=sum(contributor.contributions for contributor in contributors),
    )

# This function does merge contributor records by login.
# Insertion order follows the first appearance of each login.
def merge_contributors(records: Iterable[ContributorRecord]) -> Dict[str, ContributorSummary]:
    merged: Dict[str, ContributorSummary] = {}
    for record in records:
        existing = merged.get(record.login)
        if existing is None:
            existing = ContributorSummary(
                login=record.login,
                avatar_url=record.avatar_url,
                html_url=record.html_url,
            )
            merged[record.login] = existing
        existing.total_contributions += record.contributions
        existing.repositories.append(RepoContribution(repo=record.repository, contributions=record.contributions))
    return merged

# This function does compute the global summary statistics.
# Sorting is stable so ties keep first-seen order.
def generate_summary(
    all_contributors: List[ContributorRecord],
    contributors_by_repo: Dict[str, RepositorySummary],
    repositories: List[dict],
    top_contributors: int = DEFAULT_TOP_CONTRIBUTORS,
    top_repositories: int = DEFAULT_TOP_REPOSITORIES,
) -> AggregateSummary:
    unique = merge_contributors(all_contributors)
    private_count = sum(1 for repo in repositories if repo.get("private"))

    ranked_contributors = sorted(unique.values(), key=lambda item: item.total_contributions, reverse=True)
    ranked_repositories = sorted(contributors_by_repo.values(), key=lambda item: item.contributor_count, reverse=True)

    return AggregateSummary(
        total_repositories=len(repositories),
        repositories_with_contributors=len(contributors_by_repo),
        private_repositories=private_count,
        public_repositories=len(repositories) - private_count,
        unique_contributors=len(unique),
        total_contributors=len(all_contributors),
        total_contributions=sum(record.contributions for record in all_contributors),
        top_contributors=ranked_contributors[:top_contributors],
        top_repositories=ranked_repositories[:top_repositories],
    )

def filter_contributors(contributors: List[ContributorSummary], term: str) -> List[ContributorSummary]:
    needle = (term or "").strip().lower()
    return [item for item in contributors if needle in item.login.lower()]

# This function does filter repositories by name or language.
# Matching is case-insensitive and results keep contributor-count order.
def filter_repositories(repositories: Iterable[RepositorySummary], term: str) -> List[RepositorySummary]:
    needle = (term or "").strip().lower()
    matches = [
        repo
        for repo in repositories
        if needle in repo.repository.lower() or needle in (repo.language or "").lower()
    ]
    return sorted(matches, key=lambda repo: repo.contributor_count, reverse=True)
