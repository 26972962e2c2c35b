"""Lookup structures joining flat API records by their natural keys."""

from __future__ import annotations

import re
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from vacciprofile.fetchers.utils import as_name_list
from vacciprofile.models import (
    CandidateVaccine,
    Licenser,
    LicensingDate,
    Manufacturer,
    ProductProfile,
    Vaccine,
)

T = TypeVar("T")

NOT_LICENSED_YET = "- not licensed yet -"

# product profile ordering: EMA, WHO, FDA, then everything else
PROFILE_PRIORITY = ("EMA", "WHO", "FDA")


# ---------------- authorities ----------------

def _composites(licenser: Licenser) -> List[str]:
    out = []
    if licenser.full_name and licenser.country:
        out.append(f"{licenser.full_name} ({licenser.country})")
    if licenser.full_name and licenser.acronym:
        out.append(f"{licenser.full_name} ({licenser.acronym})")
    return out


def _contains_either_way(a: str, b: str) -> bool:
    a, b = a.lower(), b.lower()
    if not a or not b:
        return False
    return a in b or b in a


def _has_word(text: str, word: str) -> bool:
    if not word:
        return False
    return re.search(rf"\b{re.escape(word.lower())}\b", text.lower()) is not None


def resolve_licenser(name: str, licensers: Sequence[Licenser]) -> Optional[Licenser]:
    """
    Find the licenser a licensing-date name refers to.

    Steps are tried in order and the first licenser matching a step wins:
    exact acronym, exact full name, exact "full name (country)" or
    "full name (acronym)", then case-insensitive containment.
    """
    name = (name or "").strip()
    if not name:
        return None

    for l in licensers:
        if l.acronym and name == l.acronym:
            return l
    for l in licensers:
        if l.full_name and name == l.full_name:
            return l
    for l in licensers:
        if name in _composites(l):
            return l
    for l in licensers:
        if _contains_either_way(name, l.full_name):
            return l
        if len(l.acronym) > 1 and (_has_word(name, l.acronym) or _has_word(l.acronym, name)):
            return l
    return None


def build_vaccines_by_licenser(
    licensers: Sequence[Licenser], vaccines: Iterable[Vaccine]
) -> Dict[str, List[Vaccine]]:
    """acronym -> vaccines licensed by it, each vaccine at most once per bucket."""
    index: Dict[str, List[Vaccine]] = {l.acronym: [] for l in licensers}
    seen: Dict[str, set] = defaultdict(set)

    for vaccine in vaccines:
        names = list(vaccine.authority_names) or [ld.name for ld in vaccine.licensing_dates]
        for name in names:
            licenser = resolve_licenser(name, licensers)
            if licenser is None:
                continue
            bucket = licenser.acronym
            if vaccine.licensed_vaccine_id in seen[bucket]:
                continue
            seen[bucket].add(vaccine.licensed_vaccine_id)
            index.setdefault(bucket, []).append(vaccine)
    return index


def build_vaccines_by_country(
    licensers: Sequence[Licenser], by_licenser: Dict[str, List[Vaccine]]
) -> Dict[str, List[Vaccine]]:
    index: Dict[str, List[Vaccine]] = {}
    seen: Dict[str, set] = defaultdict(set)
    for l in licensers:
        if not l.country:
            continue
        bucket = index.setdefault(l.country, [])
        for vaccine in by_licenser.get(l.acronym, []):
            if vaccine.licensed_vaccine_id in seen[l.country]:
                continue
            seen[l.country].add(vaccine.licensed_vaccine_id)
            bucket.append(vaccine)
    return index


def licensers_for_country(licensers: Iterable[Licenser], country: str) -> List[Licenser]:
    country = (country or "").lower()
    return [l for l in licensers if (l.country or "").lower() == country]


def split_pinned(licensers: Iterable[Licenser]) -> Tuple[List[Licenser], List[Licenser]]:
    """EMA/FDA/WHO first, the rest after; each group in acronym order."""
    ordered = sorted(licensers, key=lambda l: (not l.is_pinned, l.acronym.lower()))
    pinned = [l for l in ordered if l.is_pinned]
    others = [l for l in ordered if not l.is_pinned]
    return pinned, others


def other_countries(others: Iterable[Licenser]) -> List[str]:
    # others are already filtered by the search text, a country stays
    # listed while any of its licensers matched
    countries = {l.country or "Unknown" for l in others}
    return sorted(countries)


def default_licenser(
    licensers: Sequence[Licenser], acronym: str = "", country: str = ""
) -> Optional[Licenser]:
    """Country first, then acronym, then EMA, then the first licenser."""
    if country:
        in_country = licensers_for_country(licensers, country)
        if in_country:
            return in_country[0]
    elif acronym:
        for l in licensers:
            if l.acronym.upper() == acronym.upper():
                return l
    for l in licensers:
        if l.acronym.upper() == "EMA":
            return l
    return licensers[0] if licensers else None


# ---------------- pathogens ----------------

def build_vaccines_by_pathogen(vaccines: Iterable[Vaccine]) -> Dict[str, List[Vaccine]]:
    index: Dict[str, List[Vaccine]] = defaultdict(list)
    seen: Dict[str, set] = defaultdict(set)
    for vaccine in vaccines:
        for pathogen in vaccine.pathogens or [vaccine.pathogen_name]:
            if not pathogen or vaccine.licensed_vaccine_id in seen[pathogen]:
                continue
            seen[pathogen].add(vaccine.licensed_vaccine_id)
            index[pathogen].append(vaccine)
    return dict(index)


def vaccines_for_pathogen(vaccines: Iterable[Vaccine], pathogen: str) -> List[Vaccine]:
    return [
        v for v in vaccines
        if pathogen and (v.pathogen_name == pathogen or pathogen in v.pathogens)
    ]


def build_candidates_by_pathogen(
    candidates: Iterable[CandidateVaccine],
) -> Dict[str, List[CandidateVaccine]]:
    index: Dict[str, List[CandidateVaccine]] = defaultdict(list)
    for c in candidates:
        for pathogen in dict.fromkeys(as_name_list(c.pathogen_name)):
            index[pathogen].append(c)
    return dict(index)


# ---------------- manufacturers ----------------

def build_vaccines_by_manufacturer(vaccines: Iterable[Vaccine]) -> Dict[str, List[Vaccine]]:
    index: Dict[str, List[Vaccine]] = defaultdict(list)
    seen: Dict[str, set] = defaultdict(set)
    for vaccine in vaccines:
        for name in vaccine.manufacturers:
            if vaccine.licensed_vaccine_id in seen[name]:
                continue
            seen[name].add(vaccine.licensed_vaccine_id)
            index[name].append(vaccine)
    return dict(index)


def build_candidates_by_manufacturer(
    candidates: Iterable[CandidateVaccine],
) -> Dict[str, List[CandidateVaccine]]:
    index: Dict[str, List[CandidateVaccine]] = defaultdict(list)
    for c in candidates:
        for name in (n.strip() for n in c.manufacturer.split(",")):
            if name:
                index[name].append(c)
    return dict(index)


def find_manufacturer(manufacturers: Sequence[Manufacturer], name: str) -> Optional[Manufacturer]:
    """Exact name, then case-insensitive, then containment either way."""
    name = (name or "").strip()
    if not name:
        return None
    for m in manufacturers:
        if m.name == name:
            return m
    for m in manufacturers:
        if m.name.lower() == name.lower():
            return m
    for m in manufacturers:
        if _contains_either_way(m.name, name):
            return m
    return None


# ---------------- product profiles ----------------

def profile_priority(profile: ProductProfile) -> int:
    kind = (profile.type or "").upper()
    for rank, acronym in enumerate(PROFILE_PRIORITY):
        if acronym in kind:
            return rank
    return len(PROFILE_PRIORITY)


def sort_product_profiles(profiles: Iterable[ProductProfile]) -> List[ProductProfile]:
    return sorted(profiles, key=profile_priority)


def licensing_dates_for_profile(
    profile: ProductProfile, licensing_dates: Iterable[LicensingDate]
) -> List[LicensingDate]:
    return [ld for ld in licensing_dates if _contains_either_way(ld.name, profile.type)]


def is_licensed_profile(profile: ProductProfile) -> bool:
    composition = (profile.composition or "").strip().lower()
    return bool(composition) and composition != NOT_LICENSED_YET


def comparable_profile_types(vaccines: Iterable[Vaccine]) -> List[str]:
    """Licensed profile types across the compared vaccines, in authority order."""
    types: List[ProductProfile] = []
    for v in vaccines:
        for p in v.product_profiles:
            if is_licensed_profile(p) and p.type not in {t.type for t in types}:
                types.append(p)
    return [p.type for p in sort_product_profiles(types)]


def lookup_by_name(index: Dict[str, List[T]], name: str) -> List[T]:
    """Bucket for a manufacturer name: exact key, then case-insensitive, then containment."""
    name = (name or "").strip()
    if not name:
        return []
    if name in index:
        return index[name]
    for key, items in index.items():
        if key.lower() == name.lower():
            return items
    for key, items in index.items():
        if _contains_either_way(key, name):
            return items
    return []
