#------------------------------------------------------------
#                      github_service.py
#               Handles GitHub API requests and
#                      response shaping.

import sys
from typing import Callable, Dict, List, Optional
import requests
from ..config import (
    GITHUB_API_ACCEPT_HEADER,
    GITHUB_API_BASE_URL,
    GITHUB_CONTRIBUTORS_PER_PAGE,
    GITHUB_MAX_REPO_PAGES,
    GITHUB_REPOS_PER_PAGE,
    GITHUB_REQUEST_TIMEOUT_SECONDS,
    GITHUB_USER_AGENT,
)
from ..errors import GitHubError
from ..models import ContributorRecord, DashboardConfig
from .pacing_service import PacingPolicy

USER_REPOS_ENDPOINT_TEMPLATE = "/users/{username}/repos"
CONTRIBUTORS_ENDPOINT_TEMPLATE = "/repos/{owner}/{repo}/contributors?per_page={per_page}"
REPO_QUERY_TEMPLATE = "{base}?type=all&per_page={per_page}&page={page}"
NEXT_LINK_REL = "next"

PAGE_RESULT_MESSAGE = "Page {page}: Found {count} repositories"
RATE_LIMIT_MESSAGE = "Rate limit exceeded or insufficient permissions"
REPO_FETCH_FAILED_TEMPLATE = "Failed to fetch repositories: {status}"
REPO_NETWORK_ERROR_TEMPLATE = "Failed to fetch repositories: {error}"
CONTRIBUTORS_FORBIDDEN_TEMPLATE = "WARNING: rate limited or no access to {owner}/{repo}"
CONTRIBUTORS_NOT_FOUND_TEMPLATE = "WARNING: repository {owner}/{repo} not found or no contributors"
CONTRIBUTORS_STATUS_TEMPLATE = "WARNING: unexpected status {status} fetching contributors for {owner}/{repo}"
CONTRIBUTORS_ERROR_TEMPLATE = "WARNING: error fetching contributors for {owner}/{repo}: {error}"

class GitHubService:

    # This function does initialize service state and pacing policies.
    # The HTTP session is injectable for tests and connection reuse.
    def __init__(
        self,
        config: DashboardConfig,
        session=None,
        page_pacing: Optional[PacingPolicy] = None,
        repo_pacing: Optional[PacingPolicy] = None,
        max_pages: int = GITHUB_MAX_REPO_PAGES,
    ):
        self.config = config
        self.session = session if session is not None else requests.Session()
        self.page_pacing = page_pacing or PacingPolicy(config.page_delay_seconds)
        self.repo_pacing = repo_pacing or PacingPolicy(config.repo_delay_seconds)
        self.max_pages = max_pages

    # This function does build request headers for GitHub API calls.
    # It adds auth headers when a token is configured.
    def headers(self) -> Dict[str, str]:
        headers = {"Accept": GITHUB_API_ACCEPT_HEADER, "User-Agent": GITHUB_USER_AGENT}
        if self.config.github_token:
            headers["Authorization"] = f"Bearer {self.config.github_token}"
        return headers

    def _get(self, url: str):
        return self.session.get(url, headers=self.headers(), timeout=GITHUB_REQUEST_TIMEOUT_SECONDS)

    # This function does fetch every repository of the configured user.
    # It stops on a short page or a full page without a next link.
    def fetch_repos(self, on_page: Optional[Callable[[int], None]] = None) -> List[dict]:
        repos: List[dict] = []
        base_url = f"{GITHUB_API_BASE_URL}{USER_REPOS_ENDPOINT_TEMPLATE.format(username=self.config.github_username)}"

        for page in range(1, self.max_pages + 1):
            self.page_pacing.wait()
            url = REPO_QUERY_TEMPLATE.format(base=base_url, per_page=GITHUB_REPOS_PER_PAGE, page=page)
            try:
                response = self._get(url)
            except requests.RequestException as error:
                raise GitHubError(REPO_NETWORK_ERROR_TEMPLATE.format(error=error)) from error

            if response.status_code == 403:
                raise GitHubError(RATE_LIMIT_MESSAGE)
            if response.status_code != 200:
                raise GitHubError(REPO_FETCH_FAILED_TEMPLATE.format(status=response.status_code))

            try:
                data = response.json()
            except ValueError as error:
                raise GitHubError(REPO_NETWORK_ERROR_TEMPLATE.format(error=error)) from error
            if not isinstance(data, list):
                raise GitHubError(REPO_FETCH_FAILED_TEMPLATE.format(status=response.status_code))

            print(PAGE_RESULT_MESSAGE.format(page=page, count=len(data)))
            repos.extend(data)
            if on_page is not None:
                on_page(len(repos))
            if len(data) < GITHUB_REPOS_PER_PAGE or not response.links.get(NEXT_LINK_REL):
                break

        return repos

    # This function does fetch the contributor list of one repository.
    # Any failure yields an empty list so the caller can keep going.
    def fetch_repo_contributors(self, owner: str, repo: str) -> List[ContributorRecord]:
        self.repo_pacing.wait()
        url = f"{GITHUB_API_BASE_URL}{CONTRIBUTORS_ENDPOINT_TEMPLATE.format(owner=owner, repo=repo, per_page=GITHUB_CONTRIBUTORS_PER_PAGE)}"
        try:
            response = self._get(url)
        except requests.RequestException as error:
            print(CONTRIBUTORS_ERROR_TEMPLATE.format(owner=owner, repo=repo, error=error), file=sys.stderr)
            return []

        if response.status_code == 403:
            print(CONTRIBUTORS_FORBIDDEN_TEMPLATE.format(owner=owner, repo=repo), file=sys.stderr)
            return []
        if response.status_code == 404:
            print(CONTRIBUTORS_NOT_FOUND_TEMPLATE.format(owner=owner, repo=repo), file=sys.stderr)
            return []
        if response.status_code == 204:
            return []
        if response.status_code != 200:
            print(CONTRIBUTORS_STATUS_TEMPLATE.format(status=response.status_code, owner=owner, repo=repo), file=sys.stderr)
            return []

        try:
            data = response.json()
        except ValueError as error:
            print(CONTRIBUTORS_ERROR_TEMPLATE.format(owner=owner, repo=repo, error=error), file=sys.stderr)
            return []
        if not isinstance(data, list):
            return []

        full_name = f"{owner}/{repo}"
        records = []
        for item in data:
            if not isinstance(item, dict) or not item.get("login"):
                continue
            records.append(
                ContributorRecord(
                    login=item["login"],
                    contributions=int(item.get("contributions") or 0),
                    repository=full_name,
                    avatar_url=item.get("avatar_url") or "",
                    html_url=item.get("html_url") or "",
                    type=item.get("type") or "User",
                )
            )
        return records
