"""
LLM service for analyzing cached GitHub issues.

This module builds the analysis prompt from cached issues and sends it to
one of the supported LLM providers. Each provider sits behind the same
``Summarizer`` interface, so the analyzer never knows which one is active.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Sequence

import anthropic
import openai
from anthropic import Anthropic
from openai import OpenAI

from .config import ANTHROPIC, OPENAI, ProviderConfig
from .exceptions import ConfigurationError, EmptyResponseError, ProviderError
from .models import Issue


logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are an expert software project analyst. You analyze GitHub issues to identify "
    "patterns, themes, and priorities. Provide clear, actionable insights based on the issues provided."
)

NO_ISSUES_MESSAGE = (
    "No issues found in the cache for this repository. "
    "The repository may not have any open issues."
)

MAX_BODY_CHARS = 500
MAX_RESPONSE_TOKENS = 4000


class Summarizer(ABC):
    """A text-completion provider."""

    @abstractmethod
    def complete(self, system_text: str, user_text: str, max_output_tokens: int) -> str:
        """Return the provider's text answer to a system + user prompt.

        Raises:
            ProviderError: If the provider call fails
            EmptyResponseError: If the provider returns no text
        """


class AnthropicSummarizer(Summarizer):
    """Summarizer backed by the Anthropic Messages API."""

    def __init__(self, api_key: str, model: str):
        self.client = Anthropic(api_key=api_key)
        self.model = model
        logger.info(f"Initialized Anthropic summarizer with model: {model}")

    def complete(self, system_text: str, user_text: str, max_output_tokens: int) -> str:
        try:
            message = self.client.messages.create(
                model=self.model,
                max_tokens=max_output_tokens,
                system=system_text,
                messages=[
                    {
                        "role": "user",
                        "content": user_text
                    }
                ]
            )
        except anthropic.RateLimitError as e:
            raise ProviderError(
                "Anthropic API rate limit exceeded. Please try again later."
            ) from e
        except anthropic.APIConnectionError as e:
            raise ProviderError(f"Failed to connect to Anthropic API: {str(e)}") from e
        except anthropic.AnthropicError as e:
            raise ProviderError(f"LLM API error: {str(e)}") from e

        text = next(
            (block.text for block in message.content if getattr(block, "type", None) == "text"),
            None
        )
        if not text:
            raise EmptyResponseError("No text content in LLM response")
        return text


class OpenAISummarizer(Summarizer):
    """Summarizer backed by the OpenAI Chat Completions API."""

    def __init__(self, api_key: str, model: str):
        self.client = OpenAI(api_key=api_key)
        self.model = model
        logger.info(f"Initialized OpenAI summarizer with model: {model}")

    def complete(self, system_text: str, user_text: str, max_output_tokens: int) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "system",
                        "content": system_text
                    },
                    {
                        "role": "user",
                        "content": user_text
                    }
                ],
                max_tokens=max_output_tokens
            )
        except openai.RateLimitError as e:
            raise ProviderError(
                "OpenAI API rate limit exceeded. Please try again later."
            ) from e
        except openai.APIConnectionError as e:
            raise ProviderError(f"Failed to connect to OpenAI API: {str(e)}") from e
        except openai.OpenAIError as e:
            raise ProviderError(f"LLM API error: {str(e)}") from e

        if not response.choices:
            raise EmptyResponseError("No text content in LLM response")
        content = response.choices[0].message.content
        if not content:
            raise EmptyResponseError("No text content in LLM response")
        return content


def build_summarizer(config: ProviderConfig) -> Summarizer:
    """Create the summarizer for the provider chosen at startup."""
    if config.provider == ANTHROPIC:
        return AnthropicSummarizer(config.api_key, config.model)
    if config.provider == OPENAI:
        return OpenAISummarizer(config.api_key, config.model)
    raise ConfigurationError(f"Unsupported LLM provider: {config.provider}")


class IssueAnalyzer:
    """Analyzes a repository's cached issues with an LLM.

    Attributes:
        summarizer: Provider used for every analysis
        max_tokens: Upper bound on the length of the answer
    """

    def __init__(self, summarizer: Summarizer, max_tokens: int = MAX_RESPONSE_TOKENS):
        self.summarizer = summarizer
        self.max_tokens = max_tokens

    def analyze(self, repo: str, issues: Sequence[Issue], user_prompt: str) -> str:
        """Analyze issues against a free-text instruction.

        An empty issue list is answered directly, without calling the
        provider.

        Args:
            repo: Repository identifier
            issues: Cached issues of the repository
            user_prompt: What the caller wants to know

        Returns:
            The provider's analysis text

        Raises:
            ProviderError: If the provider call fails
            EmptyResponseError: If the provider returns no text
        """
        if not issues:
            logger.info(f"No cached issues for {repo}, skipping LLM call")
            return NO_ISSUES_MESSAGE

        prompt = self.build_user_prompt(repo, user_prompt, issues)
        logger.info(f"Analyzing {len(issues)} issues from {repo} with {len(prompt)} chars prompt")

        analysis = self.summarizer.complete(SYSTEM_PROMPT, prompt, self.max_tokens)

        logger.info(f"Successfully analyzed issues for {repo}")
        return analysis

    @staticmethod
    def render_issues(issues: Sequence[Issue]) -> str:
        """Render issues as text blocks, one per issue.

        Bodies are cut to their first 500 characters to keep the prompt
        bounded; an empty body is shown as "No description".
        """
        blocks: List[str] = []
        for issue in issues:
            body = issue.body[:MAX_BODY_CHARS] if issue.body else "No description"
            blocks.append(
                f"\nIssue ID: {issue.id}\n"
                f"Title: {issue.title}\n"
                f"Body: {body}\n"
                f"URL: {issue.html_url}\n"
                f"Created: {issue.created_at}\n"
                f"---"
            )
        return "\n".join(blocks)

    def build_user_prompt(self, repo: str, user_prompt: str, issues: Sequence[Issue]) -> str:
        issues_text = self.render_issues(issues)
        return f"""Analyze the following GitHub issues from the repository '{repo}'.

{user_prompt}

Here are the issues:

{issues_text}

Please provide a comprehensive analysis based on the request above."""
