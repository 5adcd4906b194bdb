#!/usr/bin/env python3
"""
Regenerate the statistics and contributor sections of DASHBOARD.md
from the platform statistics APIs and the GitHub REST API.

Markers used in DASHBOARD.md:
  <!-- STATS_CARDS:start -->    ... <!-- STATS_CARDS:end -->
  <!-- STATS_CHARTS:start -->   ... <!-- STATS_CHARTS:end -->
  <!-- OFFCHAIN_NAMES:start --> ... <!-- OFFCHAIN_NAMES:end -->
  <!-- CONTRIBUTORS:start -->   ... <!-- CONTRIBUTORS:end -->

Environment variables:
  GITHUB_TOKEN: Optional personal access token sent as a bearer token
  GITHUB_USERNAME: GitHub user whose repositories are aggregated (default: thenamespace)
  DASHBOARD_PATH: Output document (default: DASHBOARD.md at the repository root)
  DASHBOARD_CACHE_PATH: Contributor cache file (default: .cache/contributors.json)
  DASHBOARD_CACHE_EXPIRY_MINUTES: Contributor cache lifetime (default: 30)
  DASHBOARD_FORCE_REFRESH: Set to 1 to bypass the contributor cache
  DASHBOARD_SEARCH: Optional term narrowing the contributor and repository tabs
"""

import sys

from stats_dashboard.controller import run_update


if __name__ == "__main__":
    sys.exit(run_update())
