"""
Streamlit Frontend for GitHub Issue Analyzer.

Scan a repository's open issues into the backend cache, then ask the LLM
questions about them. Keeps a short history of analyses for the session.
"""

import streamlit as st
import requests
import time
from typing import Any, Dict
from datetime import datetime


# Configuration
API_URL = "http://localhost:5000"
PAGE_TITLE = "GitHub Issue Analyzer"
PAGE_ICON = "🔍"


# Page configuration
st.set_page_config(
    page_title=PAGE_TITLE,
    page_icon=PAGE_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)


# Initialize session state
if 'history' not in st.session_state:
    st.session_state.history = []
if 'scanned' not in st.session_state:
    st.session_state.scanned = {}
if 'api_url' not in st.session_state:
    st.session_state.api_url = API_URL
if 'api_timeout' not in st.session_state:
    st.session_state.api_timeout = 120


def check_api_health() -> bool:
    """Check if the backend API is healthy."""
    try:
        response = requests.get(f"{st.session_state.api_url}/health", timeout=5)
        return response.status_code == 200
    except requests.RequestException:
        return False


def post_json(path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """POST to the backend and normalize the answer.

    Returns the response body with an added ``_ok`` flag and
    ``_request_time``; transport failures become an ``error`` entry.
    """
    try:
        start_time = time.time()
        response = requests.post(
            f"{st.session_state.api_url}{path}",
            json=payload,
            timeout=st.session_state.api_timeout
        )
        request_time = time.time() - start_time
    except requests.Timeout:
        return {
            "_ok": False,
            "error": "Request timed out. Large repositories can take a while to scan.",
        }
    except requests.ConnectionError:
        return {
            "_ok": False,
            "error": f"Could not connect to the backend API at {st.session_state.api_url}.",
        }

    try:
        body = response.json()
    except ValueError:
        body = {"error": f"API request failed with status {response.status_code}"}

    body["_ok"] = response.status_code == 200
    body["_request_time"] = request_time
    return body


def scan_page():
    """Scan a repository into the backend cache."""
    st.markdown("### 1. Scan a repository")

    with st.form("scan_form"):
        repo = st.text_input(
            "Repository",
            placeholder="owner/repository-name",
            help="All open issues are fetched and cached by the backend"
        )
        submitted = st.form_submit_button("📥 Scan", use_container_width=True)

    if submitted:
        if not repo or not repo.strip():
            st.error("Please enter a repository")
            return

        with st.spinner(f"Fetching open issues of {repo.strip()}..."):
            result = post_json("/scan", {"repo": repo.strip()})

        if result["_ok"]:
            st.session_state.scanned[result["repo"]] = result["issues_fetched"]
            st.success(
                f"Cached {result['issues_fetched']} issues from **{result['repo']}** "
                f"in {result['_request_time']:.1f}s"
            )
        else:
            st.error(result.get("error", "Scan failed"))


def analyze_page():
    """Ask the LLM about a scanned repository."""
    st.markdown("### 2. Analyze cached issues")

    scanned = list(st.session_state.scanned)
    with st.form("analyze_form"):
        if scanned:
            repo = st.selectbox("Repository", scanned)
        else:
            repo = st.text_input("Repository", placeholder="owner/repository-name")
        prompt = st.text_area(
            "What do you want to know?",
            placeholder="Find themes across recent issues and recommend what the maintainers should fix first",
            height=120
        )
        submitted = st.form_submit_button("🔍 Analyze", use_container_width=True)

    if submitted:
        if not repo or not prompt or not prompt.strip():
            st.error("Please enter both a repository and a prompt")
            return

        with st.spinner("Analyzing issues... This may take 10-60 seconds..."):
            result = post_json("/analyze", {"repo": repo, "prompt": prompt.strip()})

        if not result["_ok"]:
            st.error(result.get("error", "Analysis failed"))
            return

        st.session_state.history.append({
            "repo": repo,
            "prompt": prompt.strip(),
            "analysis": result["analysis"],
            "timestamp": datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        })
        st.success(f"Analysis completed in {result['_request_time']:.1f}s")
        st.markdown(result["analysis"])
        st.download_button(
            "📥 Download Markdown",
            data=result["analysis"],
            file_name=f"{repo.replace('/', '_')}_analysis.md",
            mime="text/markdown"
        )


def settings_page():
    """Display the settings page."""
    st.markdown("### ⚙️ Settings")

    new_api_url = st.text_input("Backend API URL", value=st.session_state.api_url)
    new_timeout = st.number_input(
        "Request Timeout (seconds)",
        min_value=10,
        max_value=600,
        value=st.session_state.api_timeout,
        step=10
    )

    if st.button("💾 Save Settings"):
        if new_api_url.startswith(("http://", "https://")):
            st.session_state.api_url = new_api_url.rstrip('/')
            st.session_state.api_timeout = int(new_timeout)
            st.success(f"Settings saved! Backend URL: {st.session_state.api_url}")
        else:
            st.error("Invalid URL format. Must start with http:// or https://")


def main():
    """Main application function."""
    with st.sidebar:
        page = st.radio("Navigation", ["🏠 Issues", "⚙️ Settings"])

        st.divider()
        st.markdown("### 🔧 API Status")
        if check_api_health():
            st.success("Backend API is healthy")
        else:
            st.error("Backend API is not responding")
            st.warning("Start the server with:\n```bash\nissue-analyzer\n```")

        if st.session_state.history:
            st.divider()
            st.markdown("### 📜 Recent Analyses")
            for item in reversed(st.session_state.history[-5:]):
                with st.expander(f"{item['repo']} ({item['timestamp']})"):
                    st.write(f"**Prompt**: {item['prompt']}")
                    st.markdown(item["analysis"][:500])

    if page == "⚙️ Settings":
        settings_page()
        return

    st.title(f"{PAGE_ICON} {PAGE_TITLE}")
    st.caption("Cache open GitHub issues and analyze them with an LLM")

    scan_page()
    st.divider()
    analyze_page()


if __name__ == "__main__":
    main()
