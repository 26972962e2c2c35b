from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vacciprofile import database
from vacciprofile.api.admin import router as admin_router
from vacciprofile.api.schemas import HealthResponse
from vacciprofile.config import api_base_url, settings
from vacciprofile.fetchers.candidates import CandidateFetcher
from vacciprofile.fetchers.licensers import LicenserFetcher
from vacciprofile.fetchers.manufacturers import ManufacturerFetcher
from vacciprofile.fetchers.nitags import NitagFetcher
from vacciprofile.fetchers.pathogens import PathogenFetcher
from vacciprofile.fetchers.utils import flatten_vaccines, licensed_only
from vacciprofile.fetchers.vaccines import VaccineDetailLoader, VaccineFetcher
from vacciprofile.pages import (
    NO_DATA_MESSAGE,
    compute_authorities,
    compute_candidates,
    compute_compare,
    compute_manufacturer_detail,
    compute_manufacturers,
    compute_nitags,
    compute_vaccine_detail,
    compute_vaccines,
)
from vacciprofile.selection import Selection, normalize_selection
from vacciprofile.worldmap import build_nitag_map

VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def build_fetchers(base_url: Optional[str] = None) -> Dict[str, Any]:
    base = base_url or api_base_url()
    return {
        "pathogens": PathogenFetcher(base_url=base),
        "licensers": LicenserFetcher(base_url=base),
        "manufacturers": ManufacturerFetcher(base_url=base),
        "candidates": CandidateFetcher(base_url=base),
        "nitags": NitagFetcher(base_url=base),
        "vaccines": VaccineFetcher(base_url=base),
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("VacciProfile API starting up, upstream %s", api_base_url())
    app.state.fetchers = build_fetchers()
    app.state.details = VaccineDetailLoader(base_url=api_base_url())
    conn = database.connect()
    try:
        database.create_tables(conn)
    finally:
        conn.close()
    try:
        yield
    finally:
        logger.info("VacciProfile API shutting down")


app = FastAPI(title="VacciProfile API", version=VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(admin_router)


def load_context(request: Request, *names: str) -> Dict[str, Any]:
    """Fetch and normalize the named resources; failures come back empty."""
    fetchers = request.app.state.fetchers
    ctx: Dict[str, Any] = {}
    for name in names:
        ctx[name] = fetchers[name].standardize()
    if "pathogens" in ctx:
        # populated vaccines stand in when the pathogen collection carries none
        ctx["vaccines"] = flatten_vaccines(ctx["pathogens"]) or licensed_only(
            fetchers["vaccines"].standardize()
        )
    return ctx


def _selection(request: Request) -> Selection:
    return normalize_selection(dict(request.query_params))


@app.exception_handler(Exception)
async def unhandled(request: Request, exc: Exception):
    logger.exception("%s %s failed", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/", response_model=HealthResponse)
def root():
    return HealthResponse(
        api_base_url=api_base_url(),
        admin_enabled=bool(settings.ADMIN_PASSWORD),
        version=VERSION,
    )


@app.get("/vaccines")
def vaccines(request: Request):
    ctx = load_context(request, "pathogens")
    return compute_vaccines(_selection(request), ctx)


@app.get("/vaccines/details")
def vaccine_details(
    request: Request,
    vaccine: str = Query(..., description="licensed vaccine id"),
    channel: str = Query("default", description="client channel for latest-wins loads"),
):
    ctx = load_context(request, "pathogens")
    found = next((v for v in ctx["vaccines"] if v.licensed_vaccine_id == vaccine), None)
    if found is None:
        return compute_vaccine_detail(None)

    loaded = request.app.state.details.load(found, channel=channel)
    if loaded is None:
        return JSONResponse(
            status_code=409,
            content={"error": "Superseded by a newer request", "type": "StaleRequest"},
        )
    return compute_vaccine_detail(loaded)


@app.get("/authorities")
def authorities(request: Request):
    ctx = load_context(request, "licensers", "pathogens")
    return compute_authorities(_selection(request), ctx)


@app.get("/manufacturers")
def manufacturers(request: Request):
    ctx = load_context(request, "manufacturers", "pathogens", "candidates")
    return compute_manufacturers(_selection(request), ctx)


@app.get("/manufacturers/{manufacturer_id}")
def manufacturer_detail(manufacturer_id: int, request: Request):
    ctx = load_context(request, "manufacturers")
    payload = compute_manufacturer_detail(manufacturer_id, ctx)
    if payload is None:
        raise HTTPException(status_code=404, detail=NO_DATA_MESSAGE)
    return payload


@app.get("/candidates")
def candidates(request: Request):
    ctx = load_context(request, "candidates")
    return compute_candidates(_selection(request), ctx)


@app.get("/compare")
def compare(
    request: Request,
    single: bool = True,
    combination: bool = True,
    toggle: str = "",
    channel: str = "default",
):
    selection = _selection(request)
    ctx = load_context(request, "pathogens")

    details = {}
    loader: VaccineDetailLoader = request.app.state.details
    wanted = set(selection.vaccine_ids) | {toggle}
    for v in ctx["vaccines"]:
        if v.licensed_vaccine_id not in wanted:
            continue
        loaded = loader.load(v, channel=f"compare:{channel}:{v.licensed_vaccine_id}")
        if loaded is not None:
            details[v.licensed_vaccine_id] = loaded

    return compute_compare(
        selection, ctx, details, single=single, combination=combination, toggle=toggle
    )


@app.get("/nitags")
def nitags(request: Request):
    ctx = load_context(request, "nitags")
    return compute_nitags(_selection(request), ctx)


@app.get("/nitags/map")
def nitags_map(request: Request):
    ctx = load_context(request, "nitags")
    return build_nitag_map(ctx["nitags"])
