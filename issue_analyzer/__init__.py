"""
GitHub Issue Analyzer Backend

A FastAPI-based backend service that caches open GitHub issues locally
and analyzes them with a hosted LLM (Anthropic Claude or OpenAI GPT).
"""

__version__ = "1.0.0"
