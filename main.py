import argparse
import logging

from pydantic import ValidationError

from airportmap.config import PipelineConfig
from airportmap.errors import FetchError
from airportmap.flights import JOIN_MODES, airport_traffic_summary, persist_tables
from airportmap.logging_setup import setup_logging
from airportmap.map_render import DEFAULT_CENTER, DEFAULT_ZOOM, render_map, save_map
from airportmap.pipeline import run_pipeline

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        description="Scrape airport metadata, join it onto a flights dataset and map the result."
    )
    parser.add_argument(
        "--flights",
        required=True,
        help="Flights CSV or Parquet file with origin and destination airport codes."
    )
    parser.add_argument(
        "--output",
        default="airport_map.html",
        help="Where to write the clustered-marker map."
    )
    parser.add_argument(
        "--directory-url",
        help="Override the airport directory page (state, abbreviation, airport name, code)."
    )
    parser.add_argument(
        "--coordinates-url-template",
        help="Override the coordinate page URL template; must contain a {page} placeholder."
    )
    parser.add_argument(
        "--coordinate-pages",
        type=int,
        help="Number of coordinate pages to fetch."
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Fetch coordinate pages with this many threads (page order is preserved)."
    )
    parser.add_argument(
        "--join-mode",
        choices=JOIN_MODES,
        help="Keep only fully matched legs (inner) or every leg (left)."
    )
    parser.add_argument(
        "--center-lat",
        type=float,
        default=DEFAULT_CENTER[0],
        help="Latitude of the initial map view."
    )
    parser.add_argument(
        "--center-lon",
        type=float,
        default=DEFAULT_CENTER[1],
        help="Longitude of the initial map view."
    )
    parser.add_argument(
        "--zoom",
        type=int,
        default=DEFAULT_ZOOM,
        help="Initial map zoom level."
    )
    parser.add_argument(
        "--save-dir",
        type=str,
        help="Optional directory to persist the directory, coordinate, leg and joined tables as CSV files."
    )
    parser.add_argument(
        "--top-n",
        type=int,
        default=10,
        help="Number of airports to show in the traffic summary."
    )
    return parser


def parse_args(argv=None):
    return build_parser().parse_args(argv)


def build_config(args):
    return PipelineConfig.from_env().with_overrides(
        directory_url=args.directory_url,
        coordinates_url_template=args.coordinates_url_template,
        coordinate_pages=args.coordinate_pages,
        workers=args.workers,
        join_mode=args.join_mode,
    )


def main(argv=None):
    setup_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = build_config(args)
    except ValidationError as exc:
        problems = "; ".join(f"{error['loc'][0]}: {error['msg']}" for error in exc.errors() if error["loc"])
        parser.error(f"invalid option: {problems}")

    try:
        tables = run_pipeline(config, args.flights)
    except FetchError as exc:
        logger.error("airport scrape failed", exc_info=True)
        raise SystemExit(f"Airport scrape failed: {exc}")

    joined = tables["joined"]
    print(f"\nJoined {len(joined)} flight legs across {joined['AirportCode'].nunique()} airports.")
    if not joined.empty:
        preview_columns = ["FlightRow", "Role", "AirportCode", "AirportName", "State", "Latitude", "Longitude"]
        available_columns = [col for col in preview_columns if col in joined.columns]
        print(joined[available_columns].head(10).to_string(index=False))

        summary = airport_traffic_summary(joined, top_n=args.top_n)
        print("\nBusiest airports:")
        print(summary.to_string(index=False))

    persist_tables(args.save_dir, tables)

    airport_map = render_map(joined, center=(args.center_lat, args.center_lon), zoom=args.zoom)
    out_path = save_map(airport_map, args.output)
    print(f"\nSaved map to {out_path}")


if __name__ == "__main__":
    main()
