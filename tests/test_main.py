"""Tests for the FastAPI endpoints."""

from unittest.mock import MagicMock

import pytest
import uvicorn
from fastapi.testclient import TestClient

from issue_analyzer import config
from issue_analyzer.exceptions import ConfigurationError, PersistenceError, ProviderError
from issue_analyzer.github_client import GitHubClient
from issue_analyzer.llm_service import NO_ISSUES_MESSAGE, IssueAnalyzer, OpenAISummarizer
from issue_analyzer.main import app, get_analyzer, get_cache, get_github_client, run

from conftest import add_issues_page, issue_item, pull_request_item


@pytest.fixture
def client(issue_cache, analyzer):
    github_client = GitHubClient()
    app.dependency_overrides[get_cache] = lambda: issue_cache
    app.dependency_overrides[get_github_client] = lambda: github_client
    app.dependency_overrides[get_analyzer] = lambda: analyzer
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestScan:
    def test_scan_caches_issues_without_pull_requests(self, client, mocked_github, issue_cache):
        add_issues_page(
            mocked_github,
            "octo/demo",
            1,
            [issue_item(1), issue_item(2), pull_request_item(3), issue_item(4)],
        )
        add_issues_page(mocked_github, "octo/demo", 2, [])

        response = client.post("/scan", json={"repo": "octo/demo"})

        assert response.status_code == 200
        assert response.json() == {
            "repo": "octo/demo",
            "issues_fetched": 3,
            "cached_successfully": True,
        }
        assert issue_cache.has("octo/demo")
        assert [issue.id for issue in issue_cache.get("octo/demo").issues] == [1, 2, 4]

    def test_rescan_replaces_cached_issues(self, client, mocked_github, issue_cache):
        add_issues_page(mocked_github, "octo/demo", 1, [issue_item(1), issue_item(2)])
        add_issues_page(mocked_github, "octo/demo", 2, [])
        client.post("/scan", json={"repo": "octo/demo"})

        mocked_github.reset()
        add_issues_page(mocked_github, "octo/demo", 1, [issue_item(5)])
        add_issues_page(mocked_github, "octo/demo", 2, [])
        response = client.post("/scan", json={"repo": "octo/demo"})

        assert response.json()["issues_fetched"] == 1
        assert [issue.id for issue in issue_cache.get("octo/demo").issues] == [5]

    def test_missing_repo(self, client):
        response = client.post("/scan", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing 'repo' field in request body"}

    @pytest.mark.parametrize("repo", ["bad", "a/b/c", "/b", "a/"])
    def test_invalid_repo(self, client, repo):
        response = client.post("/scan", json={"repo": repo})

        assert response.status_code == 400
        assert "Invalid repo format" in response.json()["error"]

    def test_non_json_body(self, client):
        response = client.post(
            "/scan", content="repo=octo/demo", headers={"Content-Type": "text/plain"}
        )

        assert response.status_code == 400
        assert "error" in response.json()

    def test_upstream_failure(self, client, mocked_github, issue_cache):
        add_issues_page(mocked_github, "octo/missing", 1, {"message": "Not Found"}, status=404)

        response = client.post("/scan", json={"repo": "octo/missing"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "GitHub API error: 404 - Not Found",
            "cached_successfully": False,
        }
        assert not issue_cache.has("octo/missing")

    def test_persistence_failure(self, client, mocked_github, issue_cache, monkeypatch):
        add_issues_page(mocked_github, "octo/demo", 1, [issue_item(1)])
        add_issues_page(mocked_github, "octo/demo", 2, [])

        def failing_store(repo, issues):
            raise PersistenceError("Failed to save cache to file")

        monkeypatch.setattr(issue_cache, "store", failing_store)

        response = client.post("/scan", json={"repo": "octo/demo"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to save cache to file",
            "cached_successfully": False,
        }


class TestAnalyze:
    def test_never_scanned(self, client):
        response = client.post("/analyze", json={"repo": "never/scanned", "prompt": "x"})

        assert response.status_code == 404
        assert "not yet scanned" in response.json()["error"]

    @pytest.mark.parametrize(
        "payload",
        [{}, {"repo": "octo/demo"}, {"prompt": "list themes"}, {"repo": "octo/demo", "prompt": ""}],
    )
    def test_missing_fields(self, client, payload):
        response = client.post("/analyze", json=payload)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing 'repo' or 'prompt' field in request body"}

    def test_analyze_cached_issues(self, client, issue_cache, sample_issues, fake_summarizer):
        issue_cache.store("octo/demo", sample_issues)

        response = client.post("/analyze", json={"repo": "octo/demo", "prompt": "list themes"})

        assert response.status_code == 200
        assert response.json() == {"analysis": fake_summarizer.answer}
        assert len(fake_summarizer.calls) == 1

    def test_empty_cache_entry_skips_llm(self, client, issue_cache, fake_summarizer):
        issue_cache.store("octo/empty", [])

        response = client.post("/analyze", json={"repo": "octo/empty", "prompt": "list themes"})

        assert response.status_code == 200
        assert response.json() == {"analysis": NO_ISSUES_MESSAGE}
        assert fake_summarizer.calls == []

    def test_provider_failure(self, client, issue_cache, sample_issues):
        summarizer = MagicMock()
        summarizer.complete.side_effect = ProviderError("LLM API error: invalid x-api-key")
        app.dependency_overrides[get_analyzer] = lambda: IssueAnalyzer(summarizer)
        issue_cache.store("octo/demo", sample_issues)

        response = client.post("/analyze", json={"repo": "octo/demo", "prompt": "x"})

        assert response.status_code == 500
        assert response.json() == {"error": "LLM API error: invalid x-api-key"}


def test_scan_then_analyze(client, mocked_github, fake_summarizer):
    add_issues_page(
        mocked_github,
        "octo/demo",
        1,
        [issue_item(1), pull_request_item(2), issue_item(3, body="x" * 900), issue_item(4, body=None)],
    )
    add_issues_page(mocked_github, "octo/demo", 2, [])

    scan = client.post("/scan", json={"repo": "octo/demo"})
    assert scan.json() == {"repo": "octo/demo", "issues_fetched": 3, "cached_successfully": True}

    analysis = client.post("/analyze", json={"repo": "octo/demo", "prompt": "list themes"})

    assert analysis.status_code == 200
    assert analysis.json()["analysis"]
    _, user_text, _ = fake_summarizer.calls[0]
    assert "Analyze the following GitHub issues from the repository 'octo/demo'." in user_text
    assert "Issue ID: 2\n" not in user_text
    assert f"Body: {'x' * 500}\nURL:" in user_text
    assert "Issue ID: 4\nTitle: Bug report\nBody: No description\n" in user_text


def test_scan_malformed_upstream_issue(client, mocked_github, issue_cache):
    add_issues_page(mocked_github, "octo/demo", 1, [issue_item(1, title=None)])

    response = client.post("/scan", json={"repo": "octo/demo"})

    assert response.status_code == 500
    body = response.json()
    assert body["cached_successfully"] is False
    assert body["error"].startswith("GitHub API returned a malformed issue")
    assert not issue_cache.has("octo/demo")


class TestStartup:
    @pytest.fixture(autouse=True)
    def fresh_settings(self, monkeypatch, tmp_path):
        for name in ("ANTHROPIC_API_KEY", "OPENAI_API_KEY"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("CACHE_FILE", str(tmp_path / "issues_cache.json"))
        # Keep a developer's .env out of the picture
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(config, "_settings", None)

    def test_lifespan_without_credentials_fails(self):
        with pytest.raises(ConfigurationError):
            with TestClient(app):
                pass

    def test_lifespan_wires_components(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "oai-key")

        with TestClient(app) as test_client:
            assert isinstance(app.state.analyzer.summarizer, OpenAISummarizer)
            assert test_client.get("/health").status_code == 200

    def test_run_without_credentials_exits(self, monkeypatch):
        uvicorn_run = MagicMock()
        monkeypatch.setattr(uvicorn, "run", uvicorn_run)

        with pytest.raises(SystemExit) as exc_info:
            run()

        assert exc_info.value.code == 1
        uvicorn_run.assert_not_called()

    def test_run_starts_uvicorn(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "ant-key")
        monkeypatch.setenv("PORT", "8123")
        uvicorn_run = MagicMock()
        monkeypatch.setattr(uvicorn, "run", uvicorn_run)

        run()

        uvicorn_run.assert_called_once()
        assert uvicorn_run.call_args.kwargs["port"] == 8123
