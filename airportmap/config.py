"""
Runtime configuration for the airport map pipeline.

Values come from environment variables and can be overridden from the command
line. Malformed environment values fall back to the defaults instead of
aborting the run.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_DIRECTORY_URL = "https://www.leonardsguide.com/us-airport-codes.shtml"
DEFAULT_COORDINATES_URL_TEMPLATE = "https://www.latlong.net/category/airports-236-19-{page}.html"
DEFAULT_COORDINATE_PAGES = 103
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

# environment variable -> config field
ENV_FIELDS: Mapping[str, str] = {
    "AIRPORT_DIRECTORY_URL": "directory_url",
    "AIRPORT_COORDINATES_URL_TEMPLATE": "coordinates_url_template",
    "AIRPORT_COORDINATES_PAGES": "coordinate_pages",
    "HTTP_TIMEOUT_SECONDS": "timeout_seconds",
    "HTTP_USER_AGENT": "user_agent",
    "FETCH_WORKERS": "workers",
    "STRUCTURE_TOLERANCE": "structure_tolerance",
    "JOIN_MODE": "join_mode",
}


class PipelineConfig(BaseModel):
    directory_url: str = Field(DEFAULT_DIRECTORY_URL, description="Page holding the state/airport/code table.")
    coordinates_url_template: str = Field(
        DEFAULT_COORDINATES_URL_TEMPLATE,
        description="Coordinate page URL with a {page} placeholder.",
    )
    coordinate_pages: int = Field(DEFAULT_COORDINATE_PAGES, ge=1, description="Number of coordinate pages to fetch.")
    timeout_seconds: float = Field(30.0, gt=0, description="Per-request HTTP timeout.")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1)
    workers: int = Field(1, ge=1, le=32, description="Thread pool size for coordinate pages.")
    structure_tolerance: float = Field(0.1, ge=0, le=1, description="Allowed relative drift between token counts.")
    join_mode: Literal["inner", "left"] = "inner"

    @field_validator("coordinates_url_template")
    @classmethod
    def _require_page_placeholder(cls, value: str) -> str:
        if "{page}" not in value:
            raise ValueError("must contain a {page} placeholder")
        try:
            value.format(page=1)
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(f"cannot be formatted with a page number: {exc}") from exc
        return value

    def coordinate_urls(self) -> list[str]:
        return [self.coordinates_url_template.format(page=page) for page in range(1, self.coordinate_pages + 1)]

    def with_overrides(self, **overrides: Any) -> "PipelineConfig":
        """Return a validated copy with the non-None overrides applied."""
        values = self.model_dump()
        values.update({key: value for key, value in overrides.items() if value is not None})
        return PipelineConfig(**values)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PipelineConfig":
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for env_name, field_name in ENV_FIELDS.items():
            raw = environ.get(env_name)
            if raw is None or not raw.strip():
                continue
            values[field_name] = raw.strip()

        try:
            return cls(**values)
        except ValidationError as exc:
            invalid = {str(error["loc"][0]) for error in exc.errors() if error.get("loc")}
            for field_name in sorted(invalid):
                logger.warning("Ignoring invalid value for %s; using default", field_name)
                values.pop(field_name, None)
            return cls(**values)
