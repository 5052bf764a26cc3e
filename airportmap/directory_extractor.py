"""
Rebuild the airport directory table from the flat list of scraped `td` texts.

The directory page has no usable row markup, so rows are recovered from the
shape of each cell: three-character cells are airport codes, cells ending in
the marker word are airport names, and everything else is a state name or a
two-letter state abbreviation. Each field is then pulled back onto its row
anchor (the state cell) with fixed offsets.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence

import pandas as pd

from .errors import StructureMismatch

logger = logging.getLogger(__name__)

MARKER_WORD = "Airport"
CODE_PATTERN = re.compile(r"[A-Z]{3}")

CODE = "CODE"
AIRPORT_NAME = "AIRPORT_NAME"
STATE_OR_ABBR = "STATE_OR_ABBR"

DIRECTORY_COLUMNS = ["State", "StateAbbreviation", "AirportName", "AirportCode"]


@dataclass(frozen=True)
class DirectoryOffsets:
    """Token distance from a row's state cell to each of its fields."""

    state: int = 0
    abbreviation: int = 1
    name: int = 2
    code: int = 3

    def __post_init__(self):
        values = (self.state, self.abbreviation, self.name, self.code)
        if any(value < 0 for value in values):
            raise ValueError("Directory offsets must be non-negative.")
        if len(set(values)) != len(values):
            raise ValueError("Directory offsets must point at distinct tokens.")
        if self.name >= self.code:
            raise ValueError("The airport name must precede its code.")

    def as_dict(self) -> dict:
        return {
            "State": self.state,
            "StateAbbreviation": self.abbreviation,
            "AirportName": self.name,
            "AirportCode": self.code,
        }


def check_count_parity(check: str, expected: int, observed: int, tolerance: float) -> None:
    """Raise StructureMismatch when two counts drift apart by more than `tolerance`."""
    allowed = int(tolerance * max(expected, observed))
    if abs(expected - observed) > allowed:
        raise StructureMismatch(check, expected, observed)


def repair_marker_words(tokens: Iterable[str], marker: str = MARKER_WORD) -> List[str]:
    """
    Append `marker` to every airport name that sits right before a code but lacks it.

    Blank cells and cells that are themselves codes are left alone. The pass is
    idempotent: a repaired name already contains the marker.
    """
    repaired = ["" if token is None else str(token) for token in tokens]
    for index in range(1, len(repaired)):
        if not CODE_PATTERN.fullmatch(repaired[index].strip()):
            continue
        previous = repaired[index - 1]
        if not previous.strip() or CODE_PATTERN.fullmatch(previous.strip()):
            continue
        if marker not in previous:
            repaired[index - 1] = f"{previous.rstrip()} {marker}"
    return repaired


def classify_tokens(tokens: Sequence[str], marker: str = MARKER_WORD) -> pd.DataFrame:
    """
    Tag each token and spread it into its candidate column.

    Returns one row per token with a `Category` column and the four directory
    columns, each holding the token text where it qualifies and NA elsewhere.
    """
    text = pd.Series(list(tokens), dtype="string").fillna("").str.strip()
    length = text.str.len()

    is_code = length == 3
    is_name = ~is_code & text.str.endswith(marker)
    is_other = ~is_code & ~is_name
    present = text != ""

    category = pd.Series(STATE_OR_ABBR, index=text.index, dtype="string")
    category = category.mask(is_code, CODE).mask(is_name, AIRPORT_NAME)

    return pd.DataFrame(
        {
            "Token": text,
            "Category": category,
            "State": text.where(is_other & present & (length != 2)),
            "StateAbbreviation": text.where(is_other & (length == 2)),
            "AirportName": text.where(is_name),
            "AirportCode": text.where(is_code).str.upper(),
        }
    )


def align_fields(classified: pd.DataFrame, offsets: DirectoryOffsets) -> pd.DataFrame:
    """Shift each column up by its offset so all four fields land on the anchor row."""
    aligned = pd.DataFrame(index=classified.index)
    for column, offset in offsets.as_dict().items():
        aligned[column] = classified[column].shift(-offset)
    return aligned


def extract_directory(
    tokens: Sequence[str],
    marker: str = MARKER_WORD,
    offsets: DirectoryOffsets = DirectoryOffsets(),
    tolerance: float = 0.1,
) -> pd.DataFrame:
    """Turn scraped directory cells into State/StateAbbreviation/AirportName/AirportCode rows."""
    if len(tokens) == 0:
        return pd.DataFrame(columns=DIRECTORY_COLUMNS, dtype="string")

    repaired = repair_marker_words(tokens, marker)
    classified = classify_tokens(repaired, marker)

    code_count = int((classified["Category"] == CODE).sum())
    name_count = int((classified["Category"] == AIRPORT_NAME).sum())
    if code_count == 0:
        raise StructureMismatch("airport code tokens", "at least 1", 0)
    check_count_parity("airport names per code", code_count, name_count, tolerance)

    aligned = align_fields(classified, offsets)
    aligned = aligned.dropna(subset=["AirportName", "AirportCode"])
    aligned = aligned[aligned["AirportCode"].str.fullmatch(CODE_PATTERN.pattern).fillna(False).astype(bool)].copy()

    # Rows with a blank state cell take the state and abbreviation of the
    # nearest state row above; a state row never borrows an abbreviation.
    state_columns = ["State", "StateAbbreviation"]
    has_state = aligned["State"].notna()
    block = has_state.cumsum()
    anchors = aligned.loc[has_state, state_columns].set_axis(block[has_state].to_numpy(), axis=0)
    filled = anchors.reindex(block.to_numpy()).set_axis(aligned.index, axis=0)
    for column in state_columns:
        aligned[column] = filled[column]
    directory = aligned.dropna(subset=state_columns)
    check_count_parity("directory rows per code", code_count, len(directory), tolerance)

    directory = directory[DIRECTORY_COLUMNS].reset_index(drop=True)
    logger.info(
        "extracted airport directory",
        extra={"rows": len(directory), "dropped": code_count - len(directory)},
    )
    return directory
