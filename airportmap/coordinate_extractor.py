"""
Recover per-airport latitude/longitude from the bold (`b`) texts of the
paginated coordinate pages.

Each logical row contributes a three-letter code followed, two tokens later,
by the latitude and then the longitude as separate tokens. The latitude token
sits on a fixed stride, so every stride slot is glued to the token after it
to form one "lat,long" string before parsing.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import pandas as pd

from .directory_extractor import check_count_parity
from .errors import ParseError, StructureMismatch

logger = logging.getLogger(__name__)

CODE_PATTERN = re.compile(r"[A-Z]{3}")
NUMERIC_PATTERN = re.compile(r"[-+]?[\d.]")

CODE = "CODE"
NUMERIC = "NUMERIC"
OTHER = "OTHER"

COORDINATE_COLUMNS = ["AirportCode", "Latitude", "Longitude"]


@dataclass(frozen=True)
class CoordinateOffsets:
    """Layout of the coordinate token stream."""

    lookahead: int = 2  # code token -> latitude token
    stride: int = 4  # tokens per logical row
    pair_phase: int = 2  # position of the latitude token within a stride

    def __post_init__(self):
        if self.lookahead < 1:
            raise ValueError("Coordinate lookahead must be at least 1.")
        if self.stride < 2:
            raise ValueError("Coordinate stride must leave room for a latitude/longitude pair.")
        if not 0 <= self.pair_phase < self.stride:
            raise ValueError("Coordinate pair phase must fall inside one stride.")
        if self.lookahead + 1 >= self.stride:
            raise ValueError("A row's latitude/longitude pair must fit inside one stride.")


def classify_coordinate_tokens(tokens: Sequence[str]) -> pd.Series:
    text = pd.Series(list(tokens), dtype="string").fillna("").str.strip()
    is_code = text.str.fullmatch(CODE_PATTERN.pattern).fillna(False).astype(bool)
    is_numeric = text.str.match(NUMERIC_PATTERN.pattern).fillna(False).astype(bool)
    category = pd.Series(OTHER, index=text.index, dtype="string")
    return category.mask(is_numeric, NUMERIC).mask(is_code, CODE)


def pair_stride_tokens(tokens: Sequence[str], offsets: CoordinateOffsets) -> pd.Series:
    """Join each stride-slot token with its successor into one "lat,long" string."""
    text = pd.Series(list(tokens), dtype="string").fillna("").str.strip()
    following = text.shift(-1)
    position = pd.Series(range(len(text)), index=text.index)
    is_slot = (position % offsets.stride == offsets.pair_phase) & following.notna()
    combined = text.str.rstrip(",") + "," + following.str.lstrip(",")
    return combined.where(is_slot)


def parse_coordinate_pair(value: str) -> Tuple[float, float]:
    parts = [part.strip() for part in str(value).split(",")]
    if len(parts) != 2:
        raise ParseError(value, "expected exactly one comma")
    try:
        latitude, longitude = float(parts[0]), float(parts[1])
    except ValueError as exc:
        raise ParseError(value, "non-numeric coordinate") from exc
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise ParseError(value, "non-finite coordinate")
    if not -90.0 <= latitude <= 90.0:
        raise ParseError(value, "latitude out of range")
    if not -180.0 <= longitude <= 180.0:
        raise ParseError(value, "longitude out of range")
    return latitude, longitude


def extract_coordinates(
    tokens: Sequence[str],
    offsets: CoordinateOffsets = CoordinateOffsets(),
    tolerance: float = 0.1,
) -> pd.DataFrame:
    """Turn concatenated coordinate-page tokens into AirportCode/Latitude/Longitude rows."""
    if len(tokens) == 0:
        return _empty_coordinates()

    category = classify_coordinate_tokens(tokens)
    pairs = pair_stride_tokens(tokens, offsets)

    code_count = int((category == CODE).sum())
    slot_count = int(pairs.notna().sum())
    if code_count == 0:
        raise StructureMismatch("coordinate code tokens", "at least 1", 0)
    check_count_parity("coordinate pairs per code", code_count, slot_count, tolerance)

    codes = pd.Series(list(tokens), dtype="string").str.strip().where(category == CODE)
    numeric_slot = (pairs.notna() & (category == NUMERIC)).astype(bool)
    aligned = pd.DataFrame(
        {
            "AirportCode": codes,
            "Pair": pairs.shift(-offsets.lookahead),
            "NumericSlot": numeric_slot.shift(-offsets.lookahead, fill_value=False),
        }
    )
    aligned = aligned.dropna(subset=["AirportCode", "Pair"])
    check_count_parity("aligned coordinate rows per code", code_count, len(aligned), tolerance)

    rows: List[dict] = []
    failures = 0
    for code, pair, numeric in zip(aligned["AirportCode"], aligned["Pair"], aligned["NumericSlot"]):
        try:
            if not numeric:
                raise ParseError(pair, "coordinate slot does not start with a number")
            latitude, longitude = parse_coordinate_pair(pair)
        except ParseError as exc:
            failures += 1
            logger.debug("coordinate row dropped: %s", exc)
            continue
        rows.append({"AirportCode": str(code), "Latitude": latitude, "Longitude": longitude})

    if failures:
        logger.info("dropped unparseable coordinate rows", extra={"dropped": failures})
    logger.info(
        "extracted airport coordinates",
        extra={"rows": len(rows), "dropped": code_count - len(rows)},
    )

    if not rows:
        return _empty_coordinates()
    return pd.DataFrame(rows, columns=COORDINATE_COLUMNS)


def _empty_coordinates() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "AirportCode": pd.Series(dtype="string"),
            "Latitude": pd.Series(dtype="float64"),
            "Longitude": pd.Series(dtype="float64"),
        }
    )
