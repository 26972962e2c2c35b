"""Page payloads: one compute_* function per browsing view."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from vacciprofile.fetchers.utils import (
    first_name,
    flatten_vaccines,
    format_authority_name,
    format_pathogen_name,
    pathogen_names,
)
from vacciprofile.indexing import (
    build_candidates_by_manufacturer,
    build_candidates_by_pathogen,
    build_vaccines_by_country,
    build_vaccines_by_licenser,
    build_vaccines_by_manufacturer,
    build_vaccines_by_pathogen,
    comparable_profile_types,
    default_licenser,
    find_manufacturer,
    licensing_dates_for_profile,
    lookup_by_name,
    other_countries,
    sort_product_profiles,
    split_pinned,
    vaccines_for_pathogen,
)
from vacciprofile.models import (
    CandidateVaccine,
    LicensedVaccine,
    Licenser,
    Manufacturer,
    Nitag,
    PathogenData,
    Vaccine,
)
from vacciprofile.selection import (
    Selection,
    filter_items,
    resolve_choice,
    select_pathogen,
    toggle_vaccine,
)

NO_DATA_MESSAGE = "No data found"

SINGLE = "Single Pathogen Vaccine"
COMBINATION = "Combination Vaccine"


def _message(*collections: Sequence[Any]) -> Optional[str]:
    return None if any(collections) else NO_DATA_MESSAGE


def _pathogen_entry(name: str) -> Dict[str, Any]:
    return {"name": name, **format_pathogen_name(name)}


def vaccine_row(vaccine: Vaccine) -> Dict[str, Any]:
    row = vaccine.model_dump(exclude={"product_profiles", "licensing_dates"})
    row["authorities"] = [
        {"name": name, "display_name": format_authority_name(name), "link": link}
        for name, link in vaccine.authorities
    ]
    row["pathogen"] = format_pathogen_name(vaccine.pathogen_name)
    row["first_manufacturer"] = first_name(vaccine.manufacturers)
    return row


def candidate_row(candidate: CandidateVaccine) -> Dict[str, Any]:
    row = candidate.model_dump()
    row["pathogen"] = format_pathogen_name(candidate.pathogen_name)
    return row


def _find_pathogen(pathogens: Sequence[PathogenData], name: str) -> Optional[PathogenData]:
    for p in pathogens:
        if p.name == name:
            return p
    return None


def _licenser_text(licenser: Licenser) -> str:
    return f"{licenser.acronym} {licenser.full_name} {licenser.region} {licenser.country}"


# ---------------- vaccines ----------------

def compute_vaccines(selection: Selection, ctx: Dict[str, Any]) -> Dict[str, Any]:
    pathogens: List[PathogenData] = ctx.get("pathogens", []) or []
    vaccines: List[Vaccine] = ctx.get("vaccines") or flatten_vaccines(pathogens)

    names = pathogen_names(pathogens) or sorted({v.pathogen_name for v in vaccines if v.pathogen_name})
    visible = filter_items(names, selection)
    current = resolve_choice(visible, selection.pathogen)

    rows = [vaccine_row(v) for v in build_vaccines_by_pathogen(vaccines).get(current, [])]
    pathogen = _find_pathogen(pathogens, current)

    return {
        "pathogens": [_pathogen_entry(n) for n in visible],
        "selected_pathogen": current or None,
        "pathogen": pathogen.model_dump(exclude={"vaccines"}) if pathogen else None,
        "vaccines": rows,
        "message": _message(rows),
    }


def compute_vaccine_detail(vaccine: Optional[Vaccine]) -> Dict[str, Any]:
    """Product profiles in authority order, each with its licensing dates."""
    if vaccine is None:
        return {"vaccine": None, "profiles": [], "licensing_dates": [], "message": NO_DATA_MESSAGE}

    profiles = []
    for p in sort_product_profiles(vaccine.product_profiles):
        entry = p.model_dump()
        entry["licensing_dates"] = [
            ld.model_dump() for ld in licensing_dates_for_profile(p, vaccine.licensing_dates)
        ]
        profiles.append(entry)

    return {
        "vaccine": vaccine_row(vaccine),
        "profiles": profiles,
        "licensing_dates": [ld.model_dump() for ld in vaccine.licensing_dates],
        "message": _message(profiles, vaccine.licensing_dates),
    }


# ---------------- authorities ----------------

def compute_authorities(selection: Selection, ctx: Dict[str, Any]) -> Dict[str, Any]:
    licensers: List[Licenser] = ctx.get("licensers", []) or []
    vaccines: List[Vaccine] = ctx.get("vaccines") or flatten_vaccines(ctx.get("pathogens", []) or [])

    visible = filter_items(
        licensers, selection, text=_licenser_text, initial=lambda l: l.acronym
    )
    pinned, others = split_pinned(visible)

    by_licenser = build_vaccines_by_licenser(licensers, vaccines)
    current = default_licenser(licensers, acronym=selection.authority, country=selection.country)

    if selection.country and current is not None:
        by_country = build_vaccines_by_country(licensers, by_licenser)
        selected_vaccines = by_country.get(current.country, [])
    elif current is not None:
        selected_vaccines = by_licenser.get(current.acronym, [])
    else:
        selected_vaccines = []

    rows = [vaccine_row(v) for v in selected_vaccines]
    return {
        "pinned": [l.model_dump() for l in pinned],
        "others": [l.model_dump() for l in others],
        "countries": other_countries(others),
        "selected": current.model_dump() if current else None,
        "vaccines": rows,
        "message": _message(rows) if licensers else NO_DATA_MESSAGE,
    }


# ---------------- manufacturers ----------------

def compute_manufacturers(selection: Selection, ctx: Dict[str, Any]) -> Dict[str, Any]:
    manufacturers: List[Manufacturer] = ctx.get("manufacturers", []) or []
    vaccines: List[Vaccine] = ctx.get("vaccines", []) or []
    candidates: List[CandidateVaccine] = ctx.get("candidates", []) or []

    visible = filter_items(manufacturers, selection, text=lambda m: m.name)
    current = find_manufacturer(manufacturers, selection.manufacturer)
    if current is None and visible:
        current = visible[0]

    payload: Dict[str, Any] = {
        "manufacturers": [{"manufacturer_id": m.manufacturer_id, "name": m.name} for m in visible],
        "selected": None,
        "vaccines": [],
        "candidates": [],
        "message": _message(visible),
    }
    if current is None:
        return payload

    vaccine_index = build_vaccines_by_manufacturer(vaccines)
    candidate_index = build_candidates_by_manufacturer(candidates)
    payload["selected"] = current.model_dump(exclude={"licensed_vaccines", "candidate_vaccines"})
    # no joined rows: show the vaccines the manufacturer record carries
    joined = lookup_by_name(vaccine_index, current.name)
    payload["vaccines"] = (
        [vaccine_row(v) for v in joined]
        if joined
        else [_licensed_row(v) for v in current.licensed_vaccines]
    )
    joined_candidates = lookup_by_name(candidate_index, current.name) or current.candidate_vaccines
    payload["candidates"] = [candidate_row(c) for c in joined_candidates]
    return payload


def _licensed_row(vaccine: LicensedVaccine) -> Dict[str, Any]:
    return {
        **vaccine.model_dump(),
        "authorities": [format_authority_name(ld.name) for ld in vaccine.licensing_dates if ld.name],
    }


def compute_manufacturer_detail(
    manufacturer_id: int, ctx: Dict[str, Any]
) -> Optional[Dict[str, Any]]:
    manufacturers: List[Manufacturer] = ctx.get("manufacturers", []) or []
    for m in manufacturers:
        if m.manufacturer_id == manufacturer_id:
            break
    else:
        return None

    payload = m.model_dump()
    payload["licensed_vaccines"] = [_licensed_row(v) for v in m.licensed_vaccines]
    payload["candidate_vaccines"] = [candidate_row(c) for c in m.candidate_vaccines]
    payload["message"] = _message(m.licensed_vaccines, m.candidate_vaccines)
    return payload


# ---------------- candidates ----------------

def compute_candidates(selection: Selection, ctx: Dict[str, Any]) -> Dict[str, Any]:
    candidates: List[CandidateVaccine] = ctx.get("candidates", []) or []
    index = build_candidates_by_pathogen(candidates)

    names = sorted(index, key=str.lower)
    visible = filter_items(names, selection)
    current = resolve_choice(visible, selection.pathogen)

    rows = [candidate_row(c) for c in index.get(current, [])]
    return {
        "pathogens": [_pathogen_entry(n) for n in visible],
        "selected_pathogen": current or None,
        "candidates": rows,
        "message": _message(rows),
    }


# ---------------- compare ----------------

def compute_compare(
    selection: Selection,
    ctx: Dict[str, Any],
    details: Optional[Dict[str, Vaccine]] = None,
    *,
    single: bool = True,
    combination: bool = True,
    toggle: str = "",
) -> Dict[str, Any]:
    """
    Side-by-side product profiles for the compared vaccines of one pathogen.

    ``details`` maps vaccine id to the vaccine with its profiles loaded.
    ``toggle`` adds or removes one vaccine id from the compared set. A
    pathogen that cannot be honoured clears the compared set.
    """
    pathogens: List[PathogenData] = ctx.get("pathogens", []) or []
    vaccines: List[Vaccine] = ctx.get("vaccines") or flatten_vaccines(pathogens)
    details = details or {}

    names = pathogen_names(pathogens) or sorted({v.pathogen_name for v in vaccines if v.pathogen_name})
    current = resolve_choice(names, selection.pathogen)
    selection = select_pathogen(selection, current)

    allowed = set()
    if single:
        allowed.add(SINGLE)
    if combination:
        allowed.add(COMBINATION)
    available = [
        v for v in vaccines_for_pathogen(vaccines, current) if v.single_or_combination in allowed
    ]
    selection = toggle_vaccine(selection, toggle, [v.licensed_vaccine_id for v in available])
    compared = [details.get(vid) or _by_id(available, vid) for vid in selection.vaccine_ids]

    types = comparable_profile_types(compared)
    table = []
    for kind in types:
        table.append(
            {
                "type": kind,
                "vaccines": {
                    v.licensed_vaccine_id: next(
                        (p.model_dump() for p in v.product_profiles if p.type == kind), None
                    )
                    for v in compared
                },
            }
        )

    return {
        "pathogens": [_pathogen_entry(n) for n in names],
        "selected_pathogen": current or None,
        "vaccines": [vaccine_row(v) for v in available],
        "selected": [v.licensed_vaccine_id for v in compared],
        "profile_types": types,
        "table": table,
        "message": _message(available),
    }


def _by_id(vaccines: Sequence[Vaccine], vaccine_id: str) -> Vaccine:
    return next(v for v in vaccines if v.licensed_vaccine_id == vaccine_id)


# ---------------- nitags ----------------

def compute_nitags(selection: Selection, ctx: Dict[str, Any]) -> Dict[str, Any]:
    nitags: List[Nitag] = ctx.get("nitags", []) or []
    visible = sorted(
        filter_items(nitags, selection, text=lambda n: n.country),
        key=lambda n: n.country.lower(),
    )

    summary = {
        "total": len(nitags),
        "available": sum(1 for n in nitags if n.available),
        "with_website": sum(1 for n in nitags if n.available and n.has_website),
    }
    return {
        "nitags": [n.model_dump() for n in visible],
        "summary": summary,
        "message": _message(visible),
    }
