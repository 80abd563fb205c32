"""
GitHub API client for fetching open issues.

This module provides a client for the GitHub REST API v3 that walks the
paginated issue listing of a repository and keeps only real issues.
"""

import logging
from typing import Any, Dict, List, Optional
import requests
from requests.exceptions import RequestException, Timeout

from .exceptions import UpstreamError
from .models import Issue


logger = logging.getLogger(__name__)


def is_valid_repository_id(repo: str) -> bool:
    """Check that a repository identifier has the form owner/name.

    Exactly one slash with a non-empty segment on each side.
    """
    if not isinstance(repo, str):
        return False
    parts = repo.split("/")
    return len(parts) == 2 and all(parts)


class GitHubClient:
    """Client for interacting with GitHub REST API.

    Attributes:
        token: Optional GitHub Personal Access Token
        base_url: Base URL for GitHub API (default: https://api.github.com)
        timeout: Request timeout in seconds (default: 10)
    """

    BASE_URL = "https://api.github.com"
    TIMEOUT = 10  # seconds
    PER_PAGE = 100  # Max allowed by GitHub API

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = BASE_URL,
        timeout: float = TIMEOUT
    ):
        """Initialize GitHub client.

        Args:
            token: GitHub Personal Access Token, anonymous access if None
            base_url: API root, overridable for GitHub Enterprise
            timeout: Per-request timeout in seconds
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": "GitHub-Issue-Analyzer/1.0"
        })
        if token:
            self.session.headers["Authorization"] = f"token {token}"

    def fetch_all_open_issues(self, repo: str) -> List[Issue]:
        """Fetch every open issue of a repository.

        Pages through the issue listing until GitHub returns an empty
        page. Pull requests share that listing and are skipped.

        Args:
            repo: Repository identifier (owner/name)

        Returns:
            Issues in the order GitHub returned them

        Raises:
            UpstreamError: If GitHub answers with an error status or
                cannot be reached
        """
        url = f"{self.base_url}/repos/{repo}/issues"
        issues: List[Issue] = []
        page = 1

        logger.info(f"Fetching open issues: {repo}")

        while True:
            items = self._fetch_page(url, page)
            if not items:
                break

            for item in items:
                if isinstance(item, dict) and "pull_request" in item:
                    continue
                issues.append(self._to_issue(item))

            logger.debug(f"Fetched page {page}: {len(items)} items")
            page += 1

        logger.info(f"Fetched {len(issues)} open issues from {repo} ({page - 1} pages)")
        return issues

    def _fetch_page(self, url: str, page: int) -> List[Dict[str, Any]]:
        """Fetch one page of the issue listing."""
        try:
            response = self.session.get(
                url,
                params={"state": "open", "page": page, "per_page": self.PER_PAGE},
                timeout=self.timeout
            )
        except Timeout as e:
            raise UpstreamError(
                "Request to GitHub API timed out. Please try again."
            ) from e
        except RequestException as e:
            raise UpstreamError(
                f"Network error while fetching GitHub data: {str(e)}"
            ) from e

        if not response.ok:
            message = self._error_message(response)
            logger.error(f"GitHub API error on page {page}: {response.status_code} - {message}")
            raise UpstreamError(
                f"GitHub API error: {response.status_code} - {message}",
                status=response.status_code
            )

        try:
            items = response.json()
        except ValueError as e:
            raise UpstreamError(
                f"GitHub API returned invalid JSON: {str(e)}",
                status=response.status_code
            ) from e
        if not isinstance(items, list):
            raise UpstreamError(
                "GitHub API returned an unexpected payload for the issue listing",
                status=response.status_code
            )
        return items

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        """Extract GitHub's error message from a failed response."""
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("message"):
            return data["message"]
        return response.reason or f"HTTP {response.status_code}"

    @staticmethod
    def _to_issue(item: Dict[str, Any]) -> Issue:
        """Project a listing item into an Issue.

        Raises:
            UpstreamError: If the item lacks the fields an Issue needs
        """
        try:
            return Issue(
                id=item["id"],
                title=item.get("title", ""),
                body=item.get("body") or "",  # Handle None
                html_url=item.get("html_url", ""),
                created_at=item.get("created_at", "")
            )
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise UpstreamError(
                f"GitHub API returned a malformed issue: {str(e)}"
            ) from e
