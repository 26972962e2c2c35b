"""NITAG world map rendered as a plotly choropleth."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from vacciprofile.models import Nitag

logger = logging.getLogger(__name__)

# alternate spellings seen in NITAG records -> canonical name
COUNTRY_ALIASES: Dict[str, str] = {
    "usa": "United States",
    "us": "United States",
    "united states of america": "United States",
    "uk": "United Kingdom",
    "great britain": "United Kingdom",
    "england": "United Kingdom",
    "republic of korea": "South Korea",
    "korea, republic of": "South Korea",
    "korea": "South Korea",
    "russian federation": "Russia",
    "viet nam": "Vietnam",
    "türkiye": "Turkey",
    "turkiye": "Turkey",
    "uae": "United Arab Emirates",
    "the netherlands": "Netherlands",
    "holland": "Netherlands",
    "people's republic of china": "China",
    "prc": "China",
}

COUNTRY_ISO3: Dict[str, str] = {
    "United States": "USA",
    "United Kingdom": "GBR",
    "Canada": "CAN",
    "Australia": "AUS",
    "Germany": "DEU",
    "France": "FRA",
    "Japan": "JPN",
    "India": "IND",
    "Brazil": "BRA",
    "South Africa": "ZAF",
    "China": "CHN",
    "Mexico": "MEX",
    "Italy": "ITA",
    "Spain": "ESP",
    "Netherlands": "NLD",
    "Russia": "RUS",
    "South Korea": "KOR",
    "Singapore": "SGP",
    "Switzerland": "CHE",
    "Sweden": "SWE",
    "Norway": "NOR",
    "Denmark": "DNK",
    "Belgium": "BEL",
    "Austria": "AUT",
    "Poland": "POL",
    "Argentina": "ARG",
    "Chile": "CHL",
    "Colombia": "COL",
    "Turkey": "TUR",
    "Saudi Arabia": "SAU",
    "United Arab Emirates": "ARE",
    "Thailand": "THA",
    "Indonesia": "IDN",
    "Malaysia": "MYS",
    "Philippines": "PHL",
    "Vietnam": "VNM",
    "Egypt": "EGY",
    "Nigeria": "NGA",
    "Kenya": "KEN",
    "New Zealand": "NZL",
}

AVAILABLE_WITH_WEBSITE = "NITAG with website"
AVAILABLE_NO_WEBSITE = "NITAG without website"
NOT_AVAILABLE = "No NITAG"

STATUS_COLORS: Dict[str, str] = {
    AVAILABLE_WITH_WEBSITE: "#0d8c50",
    AVAILABLE_NO_WEBSITE: "#eeb923",
    NOT_AVAILABLE: "#b42328",
}
NO_DATA_COLOR = "#d1d5db"

MAP_COLUMNS = ["country", "iso3", "status", "nitag_name", "website", "established"]


def canonical_country(name: str) -> str:
    name = (name or "").strip()
    if not name:
        return ""
    alias = COUNTRY_ALIASES.get(name.lower())
    if alias:
        return alias
    for canonical in COUNTRY_ISO3:
        if canonical.lower() == name.lower():
            return canonical
    return name


def country_iso3(name: str) -> Optional[str]:
    return COUNTRY_ISO3.get(canonical_country(name))


def nitag_status(nitag: Nitag) -> str:
    if not nitag.available:
        return NOT_AVAILABLE
    if nitag.has_website:
        return AVAILABLE_WITH_WEBSITE
    return AVAILABLE_NO_WEBSITE


def nitag_map_frame(nitags: Iterable[Nitag]) -> pd.DataFrame:
    """One row per mappable country; unknown countries are left off the map."""
    rows = []
    for n in nitags:
        iso3 = country_iso3(n.country)
        if iso3 is None:
            logger.debug("No ISO code for NITAG country %r", n.country)
            continue
        rows.append(
            {
                "country": canonical_country(n.country),
                "iso3": iso3,
                "status": nitag_status(n),
                "nitag_name": n.nitag_name,
                "website": n.website,
                "established": n.established,
            }
        )
    df = pd.DataFrame(rows, columns=MAP_COLUMNS)
    return df.drop_duplicates(subset=["iso3"], keep="first").reset_index(drop=True)


def build_nitag_map(nitags: Iterable[Nitag]) -> Dict[str, Any]:
    """Plotly figure JSON for the NITAG status map."""
    df = nitag_map_frame(nitags)

    if df.empty:
        fig = go.Figure(go.Choropleth(locations=[], z=[], locationmode="ISO-3"))
    else:
        fig = px.choropleth(
            df,
            locations="iso3",
            locationmode="ISO-3",
            color="status",
            hover_name="country",
            hover_data={"iso3": False, "nitag_name": True, "established": True},
            color_discrete_map=STATUS_COLORS,
            category_orders={"status": list(STATUS_COLORS)},
        )
    fig.update_geos(showcountries=True, showland=True, landcolor=NO_DATA_COLOR)
    fig.update_layout(
        template="plotly_white",
        margin=dict(l=0, r=0, t=30, b=0),
        legend_title_text="NITAG status",
    )
    return json.loads(fig.to_json())
