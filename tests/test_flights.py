import pandas as pd
import pytest

from airportmap.flights import (
    airport_traffic_summary,
    clean_flights,
    join_flight_legs,
    load_flights,
    persist_tables,
    reshape_flights,
)
from tests.helpers import sample_flights


@pytest.fixture
def directory():
    return pd.DataFrame(
        [
            {"State": "New York", "StateAbbreviation": "NY", "AirportName": "John F Kennedy International Airport", "AirportCode": "JFK"},
            {"State": "New York", "StateAbbreviation": "NY", "AirportName": "LaGuardia Airport", "AirportCode": "LGA"},
            {"State": "New Jersey", "StateAbbreviation": "NJ", "AirportName": "Newark Liberty International Airport", "AirportCode": "EWR"},
            {"State": "California", "StateAbbreviation": "CA", "AirportName": "Los Angeles International Airport", "AirportCode": "LAX"},
            {"State": "California", "StateAbbreviation": "CA", "AirportName": "San Francisco International Airport", "AirportCode": "SFO"},
        ]
    )


@pytest.fixture
def coordinates():
    return pd.DataFrame(
        [
            {"AirportCode": "JFK", "Latitude": 40.6413, "Longitude": -73.7781},
            {"AirportCode": "LGA", "Latitude": 40.7769, "Longitude": -73.8740},
            {"AirportCode": "EWR", "Latitude": 40.6895, "Longitude": -74.1745},
            {"AirportCode": "LAX", "Latitude": 33.9416, "Longitude": -118.4085},
            {"AirportCode": "SFO", "Latitude": 37.6213, "Longitude": -122.3790},
        ]
    )


def test_clean_flights_normalizes_codes_and_drops_invalid_rows():
    raw = pd.DataFrame(
        [
            {"ORIGIN": " jfk ", "DEST": "lax", "flight": 1},
            {"ORIGIN": "LGA", "DEST": None, "flight": 2},
            {"ORIGIN": "EWRX", "DEST": "SFO", "flight": 3},
        ]
    )

    flights = clean_flights(raw)

    assert list(flights["origin"]) == ["JFK"]
    assert list(flights["destination"]) == ["LAX"]
    assert list(flights["flight"]) == [1]


def test_clean_flights_requires_origin_and_destination():
    with pytest.raises(ValueError, match="destination"):
        clean_flights(pd.DataFrame([{"origin": "JFK"}]))


def test_load_flights_reads_csv(tmp_path):
    path = tmp_path / "flights.csv"
    sample_flights().to_csv(path, index=False)

    flights = load_flights(path)

    assert len(flights) == 3
    assert {"origin", "destination"}.issubset(flights.columns)


def test_load_flights_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_flights(tmp_path / "missing.csv")


def test_reshape_flights_emits_origin_and_destination_legs():
    legs = reshape_flights(clean_flights(sample_flights()))

    assert len(legs) == 6
    assert list(legs["Role"][:2]) == ["origin", "destination"]
    assert list(legs["AirportCode"][:2]) == ["JFK", "LAX"]
    assert list(legs["FlightRow"]) == [0, 0, 1, 1, 2, 2]
    assert set(legs["carrier"]) == {"B6", "UA", "AA"}
    assert "origin" not in legs.columns
    assert "destination" not in legs.columns


def test_join_keeps_cardinality_when_every_code_matches(directory, coordinates):
    legs = reshape_flights(clean_flights(sample_flights()))

    joined = join_flight_legs(legs, directory, coordinates)

    assert len(joined) == len(legs)
    assert joined["Latitude"].notna().all()
    assert joined["State"].notna().all()


def test_join_drops_legs_without_directory_match(directory, coordinates):
    flights = clean_flights(pd.DataFrame([{"origin": "JFK", "dest": "ORD"}]))
    legs = reshape_flights(flights)

    joined = join_flight_legs(legs, directory, coordinates)

    assert list(joined["AirportCode"]) == ["JFK"]


def test_join_drops_legs_without_coordinates(directory, coordinates):
    legs = reshape_flights(clean_flights(sample_flights()))

    joined = join_flight_legs(legs, directory, coordinates[coordinates["AirportCode"] != "LAX"])

    assert "LAX" not in set(joined["AirportCode"])
    assert len(joined) == 4


def test_left_join_keeps_every_leg(directory, coordinates):
    flights = clean_flights(pd.DataFrame([{"origin": "JFK", "dest": "ORD"}]))
    legs = reshape_flights(flights)

    joined = join_flight_legs(legs, directory, coordinates, how="left")

    assert list(joined["AirportCode"]) == ["JFK", "ORD"]
    assert pd.isna(joined.loc[1, "AirportName"])
    assert pd.isna(joined.loc[1, "Latitude"])


def test_join_resolves_duplicate_codes_last_write_wins(directory, coordinates):
    duplicated = pd.concat(
        [
            directory,
            pd.DataFrame([{"State": "Texas", "StateAbbreviation": "TX", "AirportName": "Renamed Airport", "AirportCode": "JFK"}]),
        ],
        ignore_index=True,
    )
    legs = reshape_flights(clean_flights(sample_flights()))

    joined = join_flight_legs(legs, duplicated, coordinates)

    assert len(joined) == len(legs)
    assert set(joined.loc[joined["AirportCode"] == "JFK", "AirportName"]) == {"Renamed Airport"}


def test_join_rejects_unknown_mode(directory, coordinates):
    legs = reshape_flights(clean_flights(sample_flights()))

    with pytest.raises(ValueError):
        join_flight_legs(legs, directory, coordinates, how="outer")


def test_airport_traffic_summary_counts_roles(directory, coordinates):
    legs = reshape_flights(clean_flights(sample_flights()))
    joined = join_flight_legs(legs, directory, coordinates)

    summary = airport_traffic_summary(joined)

    top = summary.iloc[0]
    assert top["AirportCode"] == "LAX"
    assert top["origin"] == 0
    assert top["destination"] == 2
    assert top["Total Legs"] == 2
    assert summary["Total Legs"].sum() == 6
    assert len(airport_traffic_summary(joined, top_n=2)) == 2


def test_airport_traffic_summary_empty():
    summary = airport_traffic_summary(pd.DataFrame())

    assert summary.empty
    assert "Total Legs" in summary.columns


def test_persist_tables_writes_csv(tmp_path, coordinates):
    written = persist_tables(tmp_path / "out", {"coordinates": coordinates})

    assert [path.name for path in written] == ["coordinates.csv"]
    assert len(pd.read_csv(written[0])) == len(coordinates)
    assert persist_tables(None, {"coordinates": coordinates}) == []
