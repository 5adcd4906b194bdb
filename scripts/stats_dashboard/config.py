#------------------------------------------------------------
#                          config.py
#   Centralizes endpoints, file paths and JSON config helpers.

import json
import os
from typing import Set

# Environment variable names for configuration
ENV_GITHUB_USERNAME = "GITHUB_USERNAME"
ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
ENV_CACHE_PATH = "DASHBOARD_CACHE_PATH"
ENV_CACHE_EXPIRY_MINUTES = "DASHBOARD_CACHE_EXPIRY_MINUTES"
ENV_DASHBOARD_PATH = "DASHBOARD_PATH"
ENV_SEARCH_TERM = "DASHBOARD_SEARCH"
ENV_L2_STATS_URL = "L2_STATS_URL"
ENV_OFFCHAIN_STATS_URL = "OFFCHAIN_STATS_URL"
ENV_LISTING_STATS_URL = "LISTING_STATS_URL"
ENV_RESOLUTION_STATS_URL = "RESOLUTION_STATS_URL"
ENV_SUBNAME_STATS_URL = "SUBNAME_STATS_URL"

# Default values for configuration parameters
DEFAULT_GITHUB_USERNAME = "thenamespace"
DEFAULT_CACHE_EXPIRY_MINUTES = 30
DEFAULT_TOP_CONTRIBUTORS = 20
DEFAULT_TOP_REPOSITORIES = 10
DEFAULT_OFFCHAIN_NAMES_VISIBLE = 5
DEFAULT_PAGE_DELAY_SECONDS = 0.1
DEFAULT_REPO_DELAY_SECONDS = 0.2

# Upstream statistics endpoints.
DEFAULT_L2_STATS_URL = "https://indexer.namespace.ninja/api/v1/l2-subnames/stats"
DEFAULT_OFFCHAIN_STATS_URL = "https://offchain-manager.namespace.ninja/api/v1/statistics"
DEFAULT_LISTING_STATS_URL = "https://list-manager.namespace.ninja/api/v1/listing/stats"
DEFAULT_RESOLUTION_STATS_URL = "https://indexer.namespace.ninja/api/v1/ccip-resolutions/total"
DEFAULT_SUBNAME_STATS_URL = "https://indexer.namespace.ninja/api/v1/stats/global"
STATS_REQUEST_TIMEOUT_SECONDS = 30

# Constants for GitHub API interaction.
GITHUB_API_ACCEPT_HEADER = "application/vnd.github+json"
GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_USER_AGENT = "Contributors-Fetcher/1.0"
GITHUB_REPOS_PER_PAGE = 100
GITHUB_MAX_REPO_PAGES = 10
GITHUB_CONTRIBUTORS_PER_PAGE = 100
GITHUB_REQUEST_TIMEOUT_SECONDS = 30

# Chain identifiers used by the L2 registry statistics.
BASE_CHAIN_ID = "8453"
OPTIMISM_CHAIN_ID = "10"

# Cache key templates, one entry per requested username.
CONTRIBUTOR_CACHE_KEY_TEMPLATE = "github_contributors_{username}"

# Markers used in DASHBOARD.md to identify sections for updates.
STATS_CARDS_START_MARKER = "<!-- STATS_CARDS:start -->"
STATS_CARDS_END_MARKER = "<!-- STATS_CARDS:end -->"
STATS_CHARTS_START_MARKER = "<!-- STATS_CHARTS:start -->"
STATS_CHARTS_END_MARKER = "<!-- STATS_CHARTS:end -->"
OFFCHAIN_NAMES_START_MARKER = "<!-- OFFCHAIN_NAMES:start -->"
OFFCHAIN_NAMES_END_MARKER = "<!-- OFFCHAIN_NAMES:end -->"
CONTRIBUTORS_START_MARKER = "<!-- CONTRIBUTORS:start -->"
CONTRIBUTORS_END_MARKER = "<!-- CONTRIBUTORS:end -->"

# Messages shown in the dashboard and on the console.
STATS_ERROR_MESSAGE = "Failed to load statistics"
USERNAME_REQUIRED_MESSAGE = "Username is required"
NO_REPOSITORIES_MESSAGE = "No repositories found for this user"
NO_GITHUB_TOKEN_MESSAGE = "No GITHUB_TOKEN found - requests are unauthenticated and rate limits are low"
EMPTY_OFFCHAIN_NAMES_MESSAGE = "_No offchain names registered yet._"
EMPTY_CONTRIBUTORS_MESSAGE = "_No contributors found._"

# Directory paths for the project and configuration files.
SCRIPTS_DIR = os.path.dirname(os.path.dirname(__file__))
ROOT_DIR = os.path.dirname(SCRIPTS_DIR)
DEFAULT_DASHBOARD_PATH = os.path.join(ROOT_DIR, "DASHBOARD.md")
DEFAULT_CACHE_PATH = os.path.join(ROOT_DIR, ".cache", "contributors.json")
CONFIG_DIR = os.path.join(SCRIPTS_DIR, "config")
IGNORE_REPOS_PATH = os.path.join(CONFIG_DIR, "repo_ignore_list.json")

# This function does resolve a path-like environment value.
# Relative values are interpreted from the repository root.
def _resolve_path(env_name: str, default: str) -> str:
    configured = os.environ.get(env_name, "").strip()
    if not configured:
        return default
    if os.path.isabs(configured):
        return configured
    return os.path.join(ROOT_DIR, configured)

def resolve_dashboard_path() -> str:
    return _resolve_path(ENV_DASHBOARD_PATH, DEFAULT_DASHBOARD_PATH)

def resolve_cache_path() -> str:
    return _resolve_path(ENV_CACHE_PATH, DEFAULT_CACHE_PATH)

# This function does read the cache expiry window from the environment.
# Non-numeric or non-positive values fall back to the default.
def resolve_cache_expiry_seconds() -> int:
    raw = os.environ.get(ENV_CACHE_EXPIRY_MINUTES, "").strip()
    try:
        minutes = float(raw) if raw else DEFAULT_CACHE_EXPIRY_MINUTES
    except ValueError:
        minutes = DEFAULT_CACHE_EXPIRY_MINUTES
    if minutes <= 0:
        minutes = DEFAULT_CACHE_EXPIRY_MINUTES
    return int(minutes * 60)

# This function does map each statistics document to its endpoint URL.
# Environment overrides win over the built-in defaults.
def resolve_stats_endpoints() -> dict:
    return {
        "l2_stats": os.environ.get(ENV_L2_STATS_URL) or DEFAULT_L2_STATS_URL,
        "offchain_stats": os.environ.get(ENV_OFFCHAIN_STATS_URL) or DEFAULT_OFFCHAIN_STATS_URL,
        "listing_stats": os.environ.get(ENV_LISTING_STATS_URL) or DEFAULT_LISTING_STATS_URL,
        "resolution_stats": os.environ.get(ENV_RESOLUTION_STATS_URL) or DEFAULT_RESOLUTION_STATS_URL,
        "subname_stats": os.environ.get(ENV_SUBNAME_STATS_URL) or DEFAULT_SUBNAME_STATS_URL,
    }

# This function does load JSON content from disk safely.
# It returns None when the file is missing or invalid.
def _load_json(path: str):
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as file_handle:
            return json.load(file_handle)
    except (OSError, ValueError):
        return None

# This function does load the repository ignore list.
# It returns normalized lowercase names as a set.
def load_ignored_repos(path: str = IGNORE_REPOS_PATH) -> Set[str]:
    data = _load_json(path)
    if not isinstance(data, list):
        return set()
    return {str(item).strip().lower() for item in data if str(item).strip()}
