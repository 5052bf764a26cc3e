import html
import logging
from pathlib import Path
from typing import Sequence, Tuple, Union

import folium
import pandas as pd
from folium.plugins import MarkerCluster

logger = logging.getLogger(__name__)

# Geographic center of the contiguous United States.
DEFAULT_CENTER: Tuple[float, float] = (39.8283, -98.5795)
DEFAULT_ZOOM = 4

ROLE_COLORS = {"origin": "blue", "destination": "red"}


def _popup_html(row: pd.Series) -> str:
    parts = [f"<b>{html.escape(str(row.get('AirportCode', '')))}</b>"]
    name = row.get("AirportName")
    if isinstance(name, str) and name:
        parts.append(html.escape(name))
    state = row.get("State")
    if isinstance(state, str) and state:
        parts.append(html.escape(state))
    role = row.get("Role")
    if isinstance(role, str) and role:
        parts.append(f"Role: {html.escape(role)}")
    return "<br>".join(parts)


def render_map(
    table: pd.DataFrame,
    center: Sequence[float] = DEFAULT_CENTER,
    zoom: int = DEFAULT_ZOOM,
) -> folium.Map:
    """Draw one clustered marker per row with valid Latitude/Longitude."""
    missing = [col for col in ("Latitude", "Longitude") if col not in table.columns]
    if missing:
        raise ValueError(f"Map table is missing columns: {', '.join(missing)}")

    m = folium.Map(location=list(center), zoom_start=zoom, tiles="CartoDB Positron", prefer_canvas=True)
    cluster = MarkerCluster(name="Flight legs").add_to(m)

    plot_df = table.dropna(subset=["Latitude", "Longitude"])
    if plot_df.empty:
        logger.warning("map rendered without markers", extra={"rows": 0})
        return m

    for _, row in plot_df.iterrows():
        folium.Marker(
            location=[float(row["Latitude"]), float(row["Longitude"])],
            popup=folium.Popup(_popup_html(row), max_width=260),
            tooltip=str(row.get("AirportCode", "")),
            icon=folium.Icon(color=ROLE_COLORS.get(row.get("Role"), "gray")),
        ).add_to(cluster)

    logger.info("rendered map markers", extra={"rows": len(plot_df)})
    return m


def save_map(m: folium.Map, path: Union[str, Path]) -> Path:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    m.save(str(out_path))
    return out_path
