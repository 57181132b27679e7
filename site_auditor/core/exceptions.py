"""
Error taxonomy for the auditor.

- ConfigurationError: bad input detected before any crawling starts.
- FetchError: transport-level failure for a single URL (DNS, connect,
  timeout, reset). HTTP error statuses are NOT fetch errors.
"""

from __future__ import annotations


class AuditorError(Exception):
    """Base class for all auditor errors."""


class ConfigurationError(AuditorError, ValueError):
    """Invalid configuration or arguments. Raised before any work begins."""


class FetchError(AuditorError):
    """A page could not be fetched at the transport level."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason
