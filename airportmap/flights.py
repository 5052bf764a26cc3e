import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

JOIN_MODES = ("inner", "left")
ROLES = ("origin", "destination")

FLIGHT_COLUMN_CANDIDATES = {
    "origin": ["origin", "ORIGIN", "Origin", "Source airport", "from_airport"],
    "destination": ["dest", "DEST", "Dest", "destination", "Destination", "Destination airport", "to_airport"],
}


def _read_frame(path: Union[str, Path]) -> pd.DataFrame:
    if str(path).lower().endswith(".parquet"):
        return pd.read_parquet(path)
    return pd.read_csv(path)


def _canonicalize_columns(df: pd.DataFrame, mapping: dict) -> pd.DataFrame:
    cols = {col.lower(): col for col in df.columns}
    rename = {}
    for target, candidates in mapping.items():
        for cand in candidates:
            key = cand.lower()
            if key in cols:
                rename[cols[key]] = target
                break
    return df.rename(columns=rename)


def _clean_code(series: pd.Series) -> pd.Series:
    return series.astype("string").str.strip().str.upper()


def clean_flights(df: pd.DataFrame) -> pd.DataFrame:
    """Normalize origin/destination codes and drop flights without a usable pair."""
    flights = _canonicalize_columns(df, FLIGHT_COLUMN_CANDIDATES)
    missing = [col for col in ("origin", "destination") if col not in flights.columns]
    if missing:
        raise ValueError(f"Flights data is missing columns: {', '.join(missing)}")

    flights = flights.copy()
    flights["origin"] = _clean_code(flights["origin"])
    flights["destination"] = _clean_code(flights["destination"])

    code_pattern = r"[A-Z]{3}"
    valid_mask = (
        flights["origin"].str.fullmatch(code_pattern).fillna(False).astype(bool)
        & flights["destination"].str.fullmatch(code_pattern).fillna(False).astype(bool)
    )
    dropped = int((~valid_mask).sum())
    if dropped:
        logger.info("dropped flights without origin/destination codes", extra={"dropped": dropped})
    return flights.loc[valid_mask].reset_index(drop=True)


def load_flights(path: Union[str, Path]) -> pd.DataFrame:
    """Load a flights CSV or Parquet file and clean its airport code columns."""
    data_path = Path(path)
    if not data_path.exists():
        raise FileNotFoundError(f"Missing flights file: {data_path}")
    return clean_flights(_read_frame(data_path))


def reshape_flights(flights: pd.DataFrame) -> pd.DataFrame:
    """
    Un-pivot origin/destination into one row per flight and role.

    Every other flight column is carried onto both legs; `FlightRow` points
    back at the source row so the two legs of a flight can be paired again.
    """
    df = flights.copy()
    df["FlightRow"] = range(len(df))
    id_columns = [col for col in df.columns if col not in ROLES]
    legs = df.melt(
        id_vars=id_columns,
        value_vars=list(ROLES),
        var_name="Role",
        value_name="AirportCode",
    )
    legs = legs.sort_values(["FlightRow", "Role"], ascending=[True, False], kind="stable")
    return legs.reset_index(drop=True)


def _dedupe_by_code(df: pd.DataFrame, label: str) -> pd.DataFrame:
    duplicated = df["AirportCode"].duplicated(keep="last")
    if duplicated.any():
        logger.info("duplicate %s codes resolved last-write-wins", label, extra={"dropped": int(duplicated.sum())})
    return df.loc[~duplicated]


def join_flight_legs(
    legs: pd.DataFrame,
    directory: pd.DataFrame,
    coordinates: pd.DataFrame,
    how: str = "inner",
) -> pd.DataFrame:
    """
    Attach directory and coordinate columns to every flight leg by `AirportCode`.

    `how="inner"` keeps only legs matched on both sides; `how="left"` keeps
    every leg and leaves the missing columns empty. Unmatched counts are logged
    in both modes.
    """
    if how not in JOIN_MODES:
        raise ValueError(f"Unsupported join mode: {how!r} (expected one of {', '.join(JOIN_MODES)})")

    directory = _dedupe_by_code(directory, "directory")
    coordinates = _dedupe_by_code(coordinates[["AirportCode", "Latitude", "Longitude"]], "coordinate")

    leg_codes = legs["AirportCode"].astype(str)
    missing_directory = int((~leg_codes.isin(set(directory["AirportCode"].astype(str)))).sum())
    missing_coordinates = int((~leg_codes.isin(set(coordinates["AirportCode"].astype(str)))).sum())
    if missing_directory:
        logger.info("flight legs without a directory match", extra={"dropped": missing_directory})
    if missing_coordinates:
        logger.info("flight legs without coordinates", extra={"dropped": missing_coordinates})

    joined = legs.assign(AirportCode=leg_codes)
    joined = joined.merge(directory.assign(AirportCode=directory["AirportCode"].astype(str)), on="AirportCode", how=how)
    joined = joined.merge(
        coordinates.assign(AirportCode=coordinates["AirportCode"].astype(str)), on="AirportCode", how=how
    )
    return joined.reset_index(drop=True)


def airport_traffic_summary(joined: pd.DataFrame, top_n: Optional[int] = None) -> pd.DataFrame:
    """Legs per airport split by role, busiest first."""
    if joined.empty:
        return pd.DataFrame(columns=["AirportCode", "AirportName", "origin", "destination", "Total Legs"])

    keys = [col for col in ("AirportCode", "AirportName") if col in joined.columns]
    counts = (
        joined.groupby(keys + ["Role"], dropna=False)
        .size()
        .unstack("Role", fill_value=0)
        .reindex(columns=list(ROLES), fill_value=0)
        .reset_index()
    )
    counts.columns.name = None
    counts["Total Legs"] = counts["origin"] + counts["destination"]
    counts = counts.sort_values(["Total Legs", "AirportCode"], ascending=[False, True]).reset_index(drop=True)
    if top_n:
        counts = counts.head(top_n)
    return counts


def persist_tables(save_dir: Union[str, Path, None], tables: Dict[str, pd.DataFrame]) -> List[Path]:
    if not save_dir:
        return []
    output_dir = Path(save_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for name, table in tables.items():
        path = output_dir / f"{name}.csv"
        table.to_csv(path, index=False)
        logger.info("saved table %s", name, extra={"rows": len(table)})
        written.append(path)
    return written
