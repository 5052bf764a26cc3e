"""Exceptions raised by the scraping and extraction stages."""

from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """Base class for recoverable pipeline failures."""


class FetchError(PipelineError):
    """Raised when a page cannot be retrieved."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class StructureMismatch(PipelineError):
    """Raised when scraped tokens no longer line up with the expected page layout."""

    def __init__(self, check: str, expected: Any, observed: Any):
        super().__init__(f"{check}: expected {expected}, observed {observed}")
        self.check = check
        self.expected = expected
        self.observed = observed


class ParseError(PipelineError):
    """Raised when a coordinate field is not a usable number."""

    def __init__(self, value: str, reason: str):
        super().__init__(f"Cannot parse {value!r}: {reason}")
        self.value = value
        self.reason = reason
