import math

import pytest

from stats_dashboard.errors import GitHubError
from stats_dashboard.models import DashboardConfig
from stats_dashboard.services.github_service import GitHubService
from stats_dashboard.services.pacing_service import PacingPolicy

from conftest import (
    FakeResponse,
    FakeSession,
    contributors_url,
    make_contributor,
    make_repo,
    repo_page_routes,
    repos_url,
)


def _repos(count, prefix="repo"):
    return [make_repo(f"{prefix}{index}") for index in range(count)]


@pytest.mark.parametrize("repo_count", [1, 99, 100, 101, 150, 200, 250])
def test_pagination_never_exceeds_page_bound(config, repo_count):
    session = FakeSession(repo_page_routes("acme", _repos(repo_count)))

    fetched = GitHubService(config, session=session).fetch_repos()

    assert len(fetched) == repo_count
    assert len(session.calls) == math.ceil(repo_count / 100)


def test_full_page_without_next_link_ends_listing(config):
    session = FakeSession(
        {
            repos_url("acme", 1): FakeResponse(200, _repos(100)),
            repos_url("acme", 2): FakeResponse(200, []),
        }
    )

    fetched = GitHubService(config, session=session).fetch_repos()

    assert len(fetched) == 100
    assert session.urls() == [repos_url("acme", 1)]


def test_pagination_respects_page_cap(config):
    session = FakeSession(repo_page_routes("acme", _repos(400)))

    fetched = GitHubService(config, session=session, max_pages=3).fetch_repos()

    assert len(fetched) == 300
    assert len(session.calls) == 3


def test_pages_are_paced(config, clock):
    session = FakeSession(repo_page_routes("acme", _repos(103)))
    pacing = PacingPolicy(0.1, sleep=clock.sleep, clock=clock)

    GitHubService(config, session=session, page_pacing=pacing).fetch_repos()

    assert clock.sleeps == [0.1]


def test_repo_list_forbidden_is_fatal(config):
    session = FakeSession({repos_url("acme", 1): FakeResponse(403, {"message": "API rate limit exceeded"})})

    with pytest.raises(GitHubError, match="Rate limit exceeded or insufficient permissions"):
        GitHubService(config, session=session).fetch_repos()


def test_repo_list_server_error_is_fatal(config):
    session = FakeSession({repos_url("acme", 1): FakeResponse(502, {})})

    with pytest.raises(GitHubError, match="Failed to fetch repositories: 502"):
        GitHubService(config, session=session).fetch_repos()


def test_repo_list_network_error_is_wrapped(config, network_error):
    session = FakeSession({repos_url("acme", 1): network_error})

    with pytest.raises(GitHubError, match="connection refused"):
        GitHubService(config, session=session).fetch_repos()


def test_headers_include_bearer_token_when_configured():
    config = DashboardConfig(github_username="acme", github_token="secret", page_delay_seconds=0)
    session = FakeSession({repos_url("acme", 1): FakeResponse(200, [])})

    GitHubService(config, session=session).fetch_repos()

    headers = session.calls[0]["headers"]
    assert headers["Authorization"] == "Bearer secret"
    assert headers["Accept"] == "application/vnd.github+json"


def test_headers_omit_authorization_without_token(config):
    assert "Authorization" not in GitHubService(config, session=FakeSession()).headers()


def test_contributors_are_tagged_with_repository(config):
    session = FakeSession(
        {contributors_url("acme", "alpha"): FakeResponse(200, [make_contributor("alice", 7), {"contributions": 3}])}
    )

    records = GitHubService(config, session=session).fetch_repo_contributors("acme", "alpha")

    assert [(r.login, r.contributions, r.repository) for r in records] == [("alice", 7, "acme/alpha")]
    assert records[0].html_url == "https://github.com/alice"


@pytest.mark.parametrize("status", [403, 404, 500])
def test_contributor_errors_yield_empty_list(config, status, capsys):
    session = FakeSession({contributors_url("acme", "alpha"): FakeResponse(status, {"message": "nope"})})

    assert GitHubService(config, session=session).fetch_repo_contributors("acme", "alpha") == []
    assert "WARNING" in capsys.readouterr().err


def test_contributor_network_error_yields_empty_list(config, network_error):
    session = FakeSession({contributors_url("acme", "alpha"): network_error})

    assert GitHubService(config, session=session).fetch_repo_contributors("acme", "alpha") == []


def test_contributor_malformed_body_yields_empty_list(config):
    session = FakeSession({contributors_url("acme", "alpha"): FakeResponse(200, raise_on_json=True)})

    assert GitHubService(config, session=session).fetch_repo_contributors("acme", "alpha") == []


def test_empty_repository_has_no_contributors(config):
    session = FakeSession({contributors_url("acme", "alpha"): FakeResponse(204, None)})

    assert GitHubService(config, session=session).fetch_repo_contributors("acme", "alpha") == []
