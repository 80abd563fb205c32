"""
Pydantic models for request/response validation and data structures.

This module defines all data models used throughout the application:
issues as fetched from GitHub, cache entries, and the API payloads.
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class Issue(BaseModel):
    """An open GitHub issue as stored in the cache.

    Attributes:
        id: GitHub's numeric issue identifier
        title: Issue title
        body: Issue body/description (may be empty)
        html_url: Link to the issue on github.com
        created_at: ISO timestamp of creation
    """
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    body: Optional[str] = ""
    html_url: str
    created_at: str


class CachedRepository(BaseModel):
    """Cached issues of one repository.

    Attributes:
        issues: Open issues in the order GitHub returned them
        last_updated: ISO timestamp of the scan that wrote this entry
    """
    issues: List[Issue] = Field(default_factory=list)
    last_updated: str


class ScanRequest(BaseModel):
    """Request model for the scan endpoint.

    The field is optional here so the handler can answer a missing
    value with a 400 and a readable message.
    """
    repo: Optional[str] = Field(
        None,
        description="Repository in owner/repository-name form",
        examples=["octocat/Hello-World"]
    )


class ScanResponse(BaseModel):
    """Response model for the scan endpoint."""
    repo: str
    issues_fetched: int = Field(..., ge=0)
    cached_successfully: bool


class AnalyzeRequest(BaseModel):
    """Request model for the analyze endpoint.

    Attributes:
        repo: Repository previously passed to /scan
        prompt: Free-text instruction for the analysis
    """
    repo: Optional[str] = Field(
        None,
        description="Repository in owner/repository-name form",
        examples=["octocat/Hello-World"]
    )
    prompt: Optional[str] = Field(
        None,
        description="What the analysis should focus on",
        examples=["Find themes across recent issues and recommend what to fix first"]
    )


class AnalyzeResponse(BaseModel):
    """Response model for the analyze endpoint."""
    analysis: str


class ErrorResponse(BaseModel):
    """Error body returned by every endpoint on failure."""
    error: str
    cached_successfully: Optional[bool] = None


class HealthResponse(BaseModel):
    """Response model for health check endpoint.

    Attributes:
        status: Service status
        version: Application version
    """
    status: Literal["healthy", "unhealthy"] = Field(
        ...,
        description="Service health status"
    )
    version: str = Field(
        ...,
        description="Application version",
        examples=["1.0.0"]
    )
