"""Pytest configuration and fixtures."""

import pytest
import responses
from responses import matchers

from issue_analyzer.cache import IssueCache
from issue_analyzer.github_client import GitHubClient
from issue_analyzer.llm_service import IssueAnalyzer, Summarizer
from issue_analyzer.models import Issue


GITHUB_API = "https://api.github.com"


class FakeSummarizer(Summarizer):
    """Summarizer that records its calls and returns a canned answer."""

    def __init__(self, answer="Theme: flaky tests dominate the backlog."):
        self.answer = answer
        self.calls = []

    def complete(self, system_text, user_text, max_output_tokens):
        self.calls.append((system_text, user_text, max_output_tokens))
        return self.answer


def issue_item(issue_id, title="Bug report", body="Something broke", **extra):
    """A raw item as returned by the GitHub issue listing."""
    item = {
        "id": issue_id,
        "number": issue_id,
        "title": title,
        "body": body,
        "html_url": f"https://github.com/octo/demo/issues/{issue_id}",
        "created_at": "2025-01-15T10:00:00Z",
        "state": "open",
    }
    item.update(extra)
    return item


def pull_request_item(issue_id, title="Add feature"):
    return issue_item(
        issue_id,
        title=title,
        pull_request={"url": f"https://api.github.com/repos/octo/demo/pulls/{issue_id}"},
    )


def add_issues_page(rsps, repo, page, items, status=200):
    """Register one page of the issue listing on a responses mock."""
    rsps.add(
        responses.GET,
        f"{GITHUB_API}/repos/{repo}/issues",
        json=items,
        status=status,
        match=[
            matchers.query_param_matcher(
                {"state": "open", "page": str(page), "per_page": "100"}
            )
        ],
    )


@pytest.fixture
def mocked_github():
    with responses.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def github_client():
    return GitHubClient()


@pytest.fixture
def cache_file(tmp_path):
    return tmp_path / "issues_cache.json"


@pytest.fixture
def issue_cache(cache_file):
    return IssueCache(str(cache_file))


@pytest.fixture
def fake_summarizer():
    return FakeSummarizer()


@pytest.fixture
def analyzer(fake_summarizer):
    return IssueAnalyzer(fake_summarizer)


@pytest.fixture
def sample_issues():
    return [
        Issue(
            id=1,
            title="Crash on startup",
            body="Stack trace attached",
            html_url="https://github.com/octo/demo/issues/1",
            created_at="2025-01-10T00:00:00Z",
        ),
        Issue(
            id=2,
            title="Docs typo",
            body="",
            html_url="https://github.com/octo/demo/issues/2",
            created_at="2025-01-11T00:00:00Z",
        ),
    ]
