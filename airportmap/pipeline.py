"""End-to-end run: scrape both sources, reshape the flights, join."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional, Union

import pandas as pd

from .config import PipelineConfig
from .coordinate_extractor import extract_coordinates
from .directory_extractor import extract_directory
from .errors import StructureMismatch
from .fetcher import Fetcher, select_tokens, select_tokens_from_pages
from .flights import clean_flights, join_flight_legs, load_flights, reshape_flights

logger = logging.getLogger(__name__)

DIRECTORY_SELECTOR = "td"
COORDINATE_SELECTOR = "b"


def scrape_directory(fetcher: Fetcher, config: PipelineConfig) -> pd.DataFrame:
    # A failed directory fetch is fatal: FetchError propagates to the caller.
    html = fetcher.fetch(config.directory_url)
    tokens = select_tokens(html, DIRECTORY_SELECTOR)
    try:
        return extract_directory(tokens, tolerance=config.structure_tolerance)
    except StructureMismatch:
        logger.error("directory page no longer matches the expected layout", exc_info=True)
        return extract_directory([])


def scrape_coordinates(fetcher: Fetcher, config: PipelineConfig) -> pd.DataFrame:
    pages = fetcher.fetch_pages(config.coordinate_urls())
    if not pages:
        logger.warning("no coordinate pages could be fetched", extra={"dropped": config.coordinate_pages})
        return extract_coordinates([])
    tokens = select_tokens_from_pages(pages, COORDINATE_SELECTOR)
    try:
        return extract_coordinates(tokens, tolerance=config.structure_tolerance)
    except StructureMismatch:
        # Misaligned coordinates would misplace markers; map nothing instead.
        logger.error("coordinate pages no longer match the expected layout", exc_info=True)
        return extract_coordinates([])


def run_pipeline(
    config: PipelineConfig,
    flights: Union[str, Path, pd.DataFrame],
    fetcher: Optional[Fetcher] = None,
) -> Dict[str, pd.DataFrame]:
    """Return every intermediate table of one run, keyed by stage name."""
    fetcher = fetcher or Fetcher.from_config(config)

    flights_df = clean_flights(flights) if isinstance(flights, pd.DataFrame) else load_flights(flights)
    directory = scrape_directory(fetcher, config)
    coordinates = scrape_coordinates(fetcher, config)

    legs = reshape_flights(flights_df)
    joined = join_flight_legs(legs, directory, coordinates, how=config.join_mode)
    logger.info("joined flight legs", extra={"rows": len(joined), "dropped": len(legs) - len(joined)})

    return {
        "directory": directory,
        "coordinates": coordinates,
        "legs": legs,
        "joined": joined,
    }
