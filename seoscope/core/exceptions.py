"""
Typed errors raised across the audit pipeline.

Only failures that end an audit are raised. Probe failures (robots.txt,
sitemap.xml) and unparseable JSON-LD blocks are absorbed where they occur.
"""

from __future__ import annotations


class SEOScopeError(Exception):
    """Base class for all seoscope errors."""


class FetchFailed(SEOScopeError):
    """The target markup could not be fetched (transport error, timeout or non-2xx)."""

    def __init__(self, url: str, reason: str, status_code: int | None = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {reason}")


class RecommendationGenerationFailed(SEOScopeError):
    """The recommendation collaborator errored or returned unusable output."""
