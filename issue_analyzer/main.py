"""
FastAPI application for GitHub Issue Analyzer.

This module defines the main FastAPI application with endpoints for
scanning a repository's open issues into the local cache, analyzing cached
issues with an LLM, and health checks, along with middleware and error
handling.
"""

import logging
import sys
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings, select_provider
from .models import (
    AnalyzeRequest,
    AnalyzeResponse,
    ErrorResponse,
    HealthResponse,
    ScanRequest,
    ScanResponse
)
from .github_client import GitHubClient, is_valid_repository_id
from .llm_service import IssueAnalyzer, build_summarizer
from .cache import IssueCache
from .exceptions import (
    ConfigurationError,
    IssueAnalyzerError,
    NotFoundError,
    PersistenceError,
    UpstreamError,
    ValidationError
)
from . import __version__


logger = logging.getLogger(__name__)


# Lifespan context manager for startup and shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan (startup and shutdown)."""
    logger.info("Starting GitHub Issue Analyzer API")
    logger.info(f"Version: {__version__}")

    settings = get_settings()

    try:
        provider = select_provider(settings.provider_candidates())
    except ConfigurationError as e:
        logger.critical(f"Failed to initialize LLM service: {e.message}")
        raise

    app.state.cache = IssueCache(settings.CACHE_FILE)
    app.state.github_client = GitHubClient(settings.GITHUB_TOKEN)
    app.state.analyzer = IssueAnalyzer(build_summarizer(provider))
    logger.info(f"Configuration loaded successfully (LLM provider: {provider.provider})")

    yield

    logger.info("Shutting down GitHub Issue Analyzer API")


# Create FastAPI application
app = FastAPI(
    title="GitHub Issue Analyzer API",
    description="Fetch, cache and analyze open GitHub issues with an LLM",
    version=__version__,
    lifespan=lifespan
)


# Configure CORS for Streamlit frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:8501",  # Streamlit default port
        "http://127.0.0.1:8501",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request, call_next):
    """Log all incoming requests and responses."""
    logger.info(f"Request: {request.method} {request.url.path}")

    try:
        response = await call_next(request)
        logger.info(
            f"Response: {request.method} {request.url.path} - "
            f"Status: {response.status_code}"
        )
        return response
    except Exception as e:
        logger.error(
            f"Request failed: {request.method} {request.url.path} - "
            f"Error: {str(e)}"
        )
        raise


def get_cache(request: Request) -> IssueCache:
    return request.app.state.cache


def get_github_client(request: Request) -> GitHubClient:
    return request.app.state.github_client


def get_analyzer(request: Request) -> IssueAnalyzer:
    return request.app.state.analyzer


@app.get("/health", response_model=HealthResponse)
def health_check():
    """Health check endpoint.

    Returns:
        Health status and version information
    """
    return HealthResponse(
        status="healthy",
        version=__version__
    )


@app.post(
    "/scan",
    response_model=ScanResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
def scan_repository(
    request: ScanRequest,
    github_client: GitHubClient = Depends(get_github_client),
    cache: IssueCache = Depends(get_cache)
):
    """Fetch all open issues of a repository and cache them locally.

    A repeated scan replaces whatever was cached for the repository.

    Args:
        request: Scan request with the repository identifier

    Returns:
        Number of issues fetched and whether they were cached
    """
    if not request.repo:
        raise ValidationError("Missing 'repo' field in request body")

    repo = request.repo
    if not is_valid_repository_id(repo):
        logger.warning(f"Invalid repo format: {repo}")
        raise ValidationError("Invalid repo format. Expected 'owner/repository-name'")

    try:
        issues = github_client.fetch_all_open_issues(repo)
        cache.store(repo, issues)
    except (UpstreamError, PersistenceError) as e:
        logger.error(f"Scan failed for {repo}: {e.message}")
        return JSONResponse(
            status_code=e.status_code,
            content=ErrorResponse(error=e.message, cached_successfully=False).model_dump()
        )

    logger.info(f"Scanned {repo}: {len(issues)} issues cached")
    return ScanResponse(
        repo=repo,
        issues_fetched=len(issues),
        cached_successfully=True
    )


@app.post(
    "/analyze",
    response_model=AnalyzeResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse}
    }
)
def analyze_repository(
    request: AnalyzeRequest,
    cache: IssueCache = Depends(get_cache),
    analyzer: IssueAnalyzer = Depends(get_analyzer)
):
    """Analyze cached issues using an LLM with a natural-language prompt.

    Args:
        request: Analyze request with repository and prompt

    Returns:
        The LLM-generated analysis
    """
    if not request.repo or not request.prompt:
        raise ValidationError("Missing 'repo' or 'prompt' field in request body")

    repo = request.repo
    cached = cache.get(repo)
    if cached is None:
        raise NotFoundError(
            f"Repository '{repo}' not yet scanned. Please call /scan first."
        )

    analysis = analyzer.analyze(repo, cached.issues, request.prompt)
    return AnalyzeResponse(analysis=analysis)


@app.exception_handler(IssueAnalyzerError)
async def issue_analyzer_exception_handler(request, exc: IssueAnalyzerError):
    """Render typed errors as {"error": message} with their status."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message}")
    else:
        logger.warning(f"{type(exc).__name__}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message).model_dump(exclude_none=True)
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request, exc: RequestValidationError):
    """Report malformed request bodies as 400 instead of FastAPI's 422."""
    logger.warning(f"Malformed request body: {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Request body must be a JSON object with the expected fields"}
    )


# Custom exception handler for better error responses
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.exception(f"Unhandled exception: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal Server Error"}
    )


def run() -> None:
    """Start the API server with uvicorn."""
    import uvicorn

    settings = get_settings()
    try:
        select_provider(settings.provider_candidates())
    except ConfigurationError as e:
        logger.critical(f"Failed to initialize LLM service: {e.message}")
        sys.exit(1)

    uvicorn.run(
        "issue_analyzer.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    run()
