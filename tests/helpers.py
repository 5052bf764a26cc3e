import pandas as pd

SAMPLE_DIRECTORY_ROWS = [
    ("New York", "NY", "John F Kennedy International Airport", "JFK"),
    ("New York", "NY", "LaGuardia", "LGA"),
    ("New Jersey", "NJ", "Newark Liberty International Airport", "EWR"),
    ("California", "CA", "Los Angeles International Airport", "LAX"),
    ("California", "CA", "San Francisco International", "SFO"),
]

SAMPLE_COORDINATES = [
    ("JFK", "John F Kennedy International", "40.6413", "-73.7781"),
    ("LGA", "LaGuardia", "40.7769", "-73.8740"),
    ("EWR", "Newark Liberty International", "40.6895", "-74.1745"),
    ("LAX", "Los Angeles International", "33.9416", "-118.4085"),
    ("SFO", "San Francisco International", "37.6213", "-122.3790"),
]


def directory_tokens(rows=SAMPLE_DIRECTORY_ROWS, blank_repeats=True):
    """Flatten (state, abbreviation, name, code) rows the way the directory page lays out its cells."""
    tokens = []
    previous_state = None
    for state, abbreviation, name, code in rows:
        if blank_repeats and state == previous_state:
            tokens.extend(["", ""])
        else:
            tokens.extend([state, abbreviation])
        tokens.extend([name, code])
        previous_state = state
    return tokens


def coordinate_tokens(rows=SAMPLE_COORDINATES):
    """Flatten (code, name, latitude, longitude) rows; the latitude carries the trailing comma."""
    tokens = []
    for code, name, latitude, longitude in rows:
        tokens.extend([code, name, f"{latitude},", longitude])
    return tokens


def directory_page(rows=SAMPLE_DIRECTORY_ROWS):
    cells = "".join(f"<td>{token}</td>" for token in directory_tokens(rows))
    return f"<html><body><table><tr>{cells}</tr></table></body></html>"


def drifted_directory_page():
    """Directory page with a stray cell between each abbreviation and airport name."""
    cells = "".join(f"<td>{token}</td>" for token in ["New York", "NY", "x", "Kennedy Airport", "JFK"] * 3)
    return f"<html><body><table><tr>{cells}</tr></table></body></html>"


def coordinate_page(rows):
    bold = "".join(f"<b>{token}</b>" for token in coordinate_tokens(rows))
    return f"<html><body><p>{bold}</p></body></html>"


def sample_flights():
    return pd.DataFrame(
        [
            {"year": 2013, "carrier": "B6", "flight": 1545, "origin": "JFK", "dest": "LAX"},
            {"year": 2013, "carrier": "UA", "flight": 1714, "origin": "LGA", "dest": "SFO"},
            {"year": 2013, "carrier": "AA", "flight": 1141, "origin": "EWR", "dest": "LAX"},
        ]
    )
