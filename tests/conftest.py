"""Pytest configuration and shared fakes.

HTTP traffic goes through ``FakeSession`` objects that answer by URL, so no
test touches the network. Clocks and sleeps are replaced with ``FakeClock``.
"""

from __future__ import annotations

import math
import sys
from pathlib import Path

import pytest
import requests

ROOT = Path(__file__).resolve().parents[1]
SCRIPTS = ROOT / "scripts"
if str(SCRIPTS) not in sys.path:
    sys.path.insert(0, str(SCRIPTS))

from stats_dashboard.models import DashboardConfig  # noqa: E402

GITHUB = "https://api.github.com"


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, raise_on_json=False, links=None):
        self.status_code = status_code
        self.links = links or {}
        self._json = json_data
        self._raise_on_json = raise_on_json

    def json(self):
        if self._raise_on_json:
            raise ValueError("No JSON object could be decoded")
        return self._json


class FakeSession:
    """Answers GET requests from a URL -> response (or exception) table."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append({"url": url, "headers": headers or {}, "timeout": timeout})
        if url not in self.routes:
            return FakeResponse(404, {"message": "Not Found"})
        answer = self.routes[url]
        if isinstance(answer, Exception):
            raise answer
        return answer

    def urls(self):
        return [call["url"] for call in self.calls]


class FakeClock:
    def __init__(self, start=1_700_000_000.0):
        self.now = start
        self.sleeps = []

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def repos_url(username, page):
    return f"{GITHUB}/users/{username}/repos?type=all&per_page=100&page={page}"


def repo_page_routes(username, repos, per_page=100):
    """Routes for a paginated repository listing with GitHub-style next links."""
    pages = max(1, math.ceil(len(repos) / per_page))
    routes = {}
    for index in range(pages):
        links = {}
        if index + 1 < pages:
            links = {"next": {"url": repos_url(username, index + 2), "rel": "next"}}
        routes[repos_url(username, index + 1)] = FakeResponse(
            200, repos[index * per_page:(index + 1) * per_page], links=links
        )
    return routes


def contributors_url(owner, repo):
    return f"{GITHUB}/repos/{owner}/{repo}/contributors?per_page=100"


def make_repo(name, owner="acme", private=False, language="Python", stars=0, forks=0):
    return {
        "name": name,
        "full_name": f"{owner}/{name}",
        "owner": {"login": owner},
        "private": private,
        "html_url": f"https://github.com/{owner}/{name}",
        "description": f"{name} description",
        "language": language,
        "stargazers_count": stars,
        "forks_count": forks,
    }


def make_contributor(login, contributions, kind="User"):
    return {
        "login": login,
        "contributions": contributions,
        "avatar_url": f"https://avatars.example/{login}",
        "html_url": f"https://github.com/{login}",
        "type": kind,
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return DashboardConfig(
        github_username="acme",
        github_token="",
        page_delay_seconds=0,
        repo_delay_seconds=0,
    )


@pytest.fixture
def network_error():
    return requests.ConnectionError("connection refused")
