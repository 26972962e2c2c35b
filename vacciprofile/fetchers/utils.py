"""Utility helpers shared by fetchers: turn raw API records into view models."""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup

from vacciprofile.models import (
    CandidateVaccine,
    LicensedVaccine,
    Licenser,
    LicensingDate,
    Manufacturer,
    ManufacturerDetails,
    Nitag,
    PathogenData,
    PhaseBuckets,
    ProductProfile,
    Vaccine,
    VaccineType,
)

# canonical field -> raw keys seen across API versions, first hit wins
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    # vaccines
    "vaccine_id": ("vaccineId", "vaccine_id", "licensed_vaccine_id", "id", "_id"),
    "brand_name": ("name", "vaccineBrandName", "vaccine_brand_name", "vaccine_name"),
    "vaccine_type": ("vaccineType", "single_or_combination", "type"),
    "vaccine_link": ("vaccineLink", "vaccine_link", "link"),
    "pathogens": ("pathogens", "pathogenNames", "pathogen_name", "pathogenName", "pathogen"),
    "manufacturers": (
        "manufacturers",
        "manufacturerDetails",
        "manufacturer",
        "manufacturer_name",
        "manufacturerName",
    ),
    "last_updated": ("lastUpdated", "last_updated", "updatedAt", "updated_at"),
    # pathogens
    "pathogen_id": ("pathogenId", "pathogen_id", "id"),
    # licensers
    "licenser_id": ("licenserId", "licenser_id", "authority_id", "id"),
    "full_name": ("fullName", "full_name", "authority_name", "name"),
    # manufacturers
    "manufacturer_id": ("manufacturerId", "manufacturer_id", "id"),
    "licensed_vaccines": ("licensedVaccines", "licensed_vaccines", "vaccines"),
    "candidate_vaccines": ("candidateVaccines", "candidate_vaccines", "vaccine_candidates"),
    "number_of_employees": ("numberOfEmployees", "number_of_employees", "num_employees"),
    "operating_income": ("operatingIncome", "operating_income"),
    "net_income": ("netIncome", "net_income"),
    "total_assets": ("totalAssets", "total_assets"),
    "total_equity": ("totalEquity", "total_equity"),
    # candidates
    "candidate_id": ("_id", "candidateId", "candidate_id", "id"),
    "clinical_phase": ("clinicalPhase", "clinical_phase", "phase"),
    "company_url": ("companyUrl", "company_url", "vaccine_link"),
    # nitags
    "nitag_available": ("availableNitag", "available"),
    "nitag_website": ("websiteUrl", "website", "url"),
    "nitag_has_website": ("availableWebsite", "available_website"),
    "nitag_name": ("nationalNitagName", "nitag_name", "name"),
    "established": ("yearEstablished", "established", "year_established"),
    # product profiles / licensing dates
    "vaccine_name": ("vaccineName", "vaccine_name"),
    "strain_coverage": ("strainCoverage", "strain_coverage"),
    "efficacy": ("Efficacy", "efficacy"),
    "duration_of_protection": ("durationOfProtection", "duration_of_protection"),
    "co_administration": ("coAdministration", "co_administration"),
    "vaccination_goal": ("vaccinationGoal", "vaccination_goal"),
    "approval_date": ("approvalDate", "approval_date"),
    "last_update_on_vaccine": ("lastUpdateOnVaccine", "last_update_on_vaccine"),
}

NO_PHASE_DATA = "no data"


def clean_text(s: Any) -> str:
    if s is None or isinstance(s, (dict, list)):
        return ""
    s = re.sub(r"\s+", " ", str(s)).strip()
    return s


def strip_markup(s: Any) -> str:
    """Long-text fields sometimes arrive as HTML fragments."""
    text = clean_text(s)
    if "<" not in text:
        return text
    soup = BeautifulSoup(text, "html.parser")
    return clean_text(soup.get_text(" ", strip=True))


def pick(raw: Optional[Dict[str, Any]], field: str, default: Any = "") -> Any:
    """Return the first non-empty value among the aliases of ``field``."""
    if not raw:
        return default
    for key in FIELD_ALIASES.get(field, (field,)):
        value = raw.get(key)
        if value is None or value == "" or value == []:
            continue
        return value
    return default


def as_name_list(value: Any) -> List[str]:
    """
    Coerce a string-or-array field into a list of names.

    Accepts "X, Y", ["X", "Y"] and [{"name": "X"}, {"name": "Y"}].
    """
    if value is None:
        return []
    if isinstance(value, str):
        parts = value.split(",")
    elif isinstance(value, dict):
        parts = [value.get("name")]
    elif isinstance(value, (list, tuple)):
        parts = []
        for item in value:
            if isinstance(item, dict):
                parts.append(item.get("name"))
            else:
                parts.append(item)
    else:
        parts = [value]

    names: List[str] = []
    for p in parts:
        name = clean_text(p)
        if name:
            names.append(name)
    return names


def join_names(value: Any) -> str:
    return ", ".join(as_name_list(value))


def first_name(value: Any) -> str:
    names = as_name_list(value)
    return names[0] if names else ""


def classify_vaccine_type(value: Any) -> VaccineType:
    if "combination" in clean_text(value).lower():
        return "Combination Vaccine"
    return "Single Pathogen Vaccine"


def as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return clean_text(value).lower() in {"yes", "true", "1", "y"}


def as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    m = re.search(r"\d+", clean_text(value))
    return int(m.group(0)) if m else None


def as_int_list(values: Any) -> List[int]:
    if values is None:
        return []
    if not isinstance(values, (list, tuple)):
        values = [values]
    out: List[int] = []
    for v in values:
        n = as_int(v)
        if n is not None:
            out.append(n)
    return out


def unwrap_envelope(payload: Any, key: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Pull the record list out of an API response.

    Handles ``{success, count, <key>: [...]}``, the legacy ``{data: [...]}``
    and a bare JSON array.
    """
    if isinstance(payload, list):
        records = payload
    elif isinstance(payload, dict):
        if payload.get("success") is False:
            return []
        records = None
        if key and isinstance(payload.get(key), list):
            records = payload[key]
        elif isinstance(payload.get("data"), list):
            records = payload["data"]
        if records is None:
            return []
    else:
        return []
    return [r for r in records if isinstance(r, dict)]


def split_bulletpoints(value: Any) -> List[str]:
    if isinstance(value, list):
        return [clean_text(v) for v in value if clean_text(v)]
    return [bp.strip() for bp in clean_text(value).split("|") if bp.strip()]


# ---------------- display formatting ----------------

def format_authority_name(authority_name: str) -> str:
    """
    Show only the country when the authority carries one in parentheses.

    'Bulgarian Drug Agency (BDA) (Bulgaria)' -> 'Bulgaria', 'FDA' -> 'FDA'.
    """
    if not authority_name:
        return ""
    matches = re.findall(r"\(([^)]+)\)", authority_name)
    if matches and matches[-1].strip():
        return matches[-1].strip()
    return authority_name.strip()


# name -> (lowercase, italic)
PATHOGEN_FORMATTING_RULES: Dict[str, Tuple[bool, bool]] = {
    "adenovirus": (True, False),
    "bacillus anthracis": (False, True),
    "bordetella pertussis": (False, True),
    "chikungunya virus": (True, False),
    "clostridium tetani": (False, True),
    "corynebacterium diphtheriae": (False, True),
    "dengue virus": (True, False),
    "ebola virus": (False, False),
    "haemophilus influenzae": (False, True),
    "hepatitis a virus": (True, False),
    "hepatitis b virus": (True, False),
    "human papilloma virus (hpv)": (True, False),
    "influenza virus": (True, False),
    "japanese encephalitis virus (jev)": (False, False),
    "measles virus": (True, False),
    "mpox virus (mpxv, hmpxv)": (True, False),
    "mumps virus": (True, False),
    "mycobacterium tuberculosis": (False, True),
    "neisseria meningitidis": (False, True),
    "plasmodium falciparum": (False, True),
    "poliovirus": (True, False),
    "rabies virus (rabv)": (True, False),
    "respiratory syncytial virus (rsv)": (True, False),
    "rotavirus": (True, False),
    "rubella virus": (True, False),
    "salmonella typhi": (False, True),
    "severe acute respiratory syndrome coronavirus 2 (sars-cov-2)": (True, False),
    "streptococcus pneumoniae": (False, True),
    "tick-borne encephalitis (tbe)": (True, False),
    "varicella-zoster virus (vzv)": (True, False),
    "variola virus": (True, False),
    "vibrio cholerae": (False, True),
    "yellow fever virus": (True, False),
}


def format_pathogen_name(pathogen_name: str) -> Dict[str, Any]:
    if not pathogen_name:
        return {"display_name": "", "italic": False}
    lowercase, italic = PATHOGEN_FORMATTING_RULES.get(
        pathogen_name.strip().lower(), (False, False)
    )
    display = pathogen_name.lower() if lowercase else pathogen_name
    return {"display_name": display, "italic": italic}


def phase_buckets(clinical_phase: Any, manufacturer: str) -> PhaseBuckets:
    """Place the manufacturer in the bucket named by a free-text phase."""
    phase = clean_text(clinical_phase)
    if not phase or phase.lower() == NO_PHASE_DATA:
        return PhaseBuckets()

    upper = phase.upper()
    # most advanced phase first: "PHASE I" is a prefix of the others
    if "PHASE IV" in upper or "PHASE 4" in upper:
        return PhaseBuckets(phase_iv=manufacturer)
    if "PHASE III" in upper or "PHASE 3" in upper:
        return PhaseBuckets(phase_iii=manufacturer)
    if "PHASE II" in upper or "PHASE 2" in upper:
        return PhaseBuckets(phase_ii=manufacturer)
    if "PHASE I" in upper or "PHASE 1" in upper:
        return PhaseBuckets(phase_i=manufacturer)
    return PhaseBuckets()


# ---------------- record normalizers ----------------

def normalize_licensing_date(raw: Dict[str, Any]) -> LicensingDate:
    return LicensingDate(
        id=clean_text(pick(raw, "id") or raw.get("_id")),
        vaccine_name=clean_text(pick(raw, "vaccine_name")),
        name=clean_text(raw.get("name")),
        type=clean_text(raw.get("type")),
        approval_date=clean_text(pick(raw, "approval_date")),
        source=clean_text(raw.get("source")),
        last_update_on_vaccine=clean_text(pick(raw, "last_update_on_vaccine")),
    )


def normalize_product_profile(raw: Dict[str, Any]) -> ProductProfile:
    return ProductProfile(
        type=clean_text(raw.get("type")),
        name=clean_text(raw.get("name")),
        composition=clean_text(raw.get("composition")),
        strain_coverage=clean_text(pick(raw, "strain_coverage")),
        indication=clean_text(raw.get("indication")),
        contraindication=clean_text(raw.get("contraindication")),
        dosing=clean_text(raw.get("dosing")),
        immunogenicity=clean_text(raw.get("immunogenicity")),
        efficacy=clean_text(pick(raw, "efficacy")),
        duration_of_protection=clean_text(pick(raw, "duration_of_protection")),
        co_administration=clean_text(pick(raw, "co_administration")),
        reactogenicity=clean_text(raw.get("reactogenicity")),
        safety=clean_text(raw.get("safety")),
        vaccination_goal=clean_text(pick(raw, "vaccination_goal")),
        others=clean_text(raw.get("others")),
        vaccine_name=clean_text(pick(raw, "vaccine_name")),
    )


def _records(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


def normalize_vaccine(
    raw: Dict[str, Any],
    *,
    pathogen: Optional[PathogenData] = None,
    index: int = 0,
) -> Vaccine:
    """
    Build a Vaccine from either the populated-pathogen nesting or the
    populated-vaccine collection.
    """
    licensing_dates = [normalize_licensing_date(d) for d in _records(raw.get("licensingDates"))]

    authority_names: List[str] = []
    authority_links: List[str] = []
    for ld in licensing_dates:
        # keep the arrays parallel: a name without a source gets an empty link
        if not ld.name:
            continue
        authority_names.append(ld.name)
        authority_links.append(ld.source)

    if pathogen is not None:
        pathogens = [pathogen.name] if pathogen.name else []
    else:
        pathogens = as_name_list(pick(raw, "pathogens", None))

    manufacturers = as_name_list(pick(raw, "manufacturers", None))

    vaccine_id = as_int(pick(raw, "vaccine_id", None))
    if vaccine_id is not None:
        licensed_vaccine_id = str(vaccine_id)
    elif pathogen is not None:
        licensed_vaccine_id = f"{pathogen.pathogen_id}-{index}"
    else:
        licensed_vaccine_id = str(index)

    vaccine_link = clean_text(pick(raw, "vaccine_link"))
    if not vaccine_link and pathogen is not None:
        vaccine_link = pathogen.link

    return Vaccine(
        licensed_vaccine_id=licensed_vaccine_id,
        vaccine_id=vaccine_id,
        pathogen_name=", ".join(pathogens),
        pathogens=pathogens,
        vaccine_brand_name=clean_text(pick(raw, "brand_name")) or "Unknown Vaccine",
        single_or_combination=classify_vaccine_type(pick(raw, "vaccine_type")),
        authority_names=authority_names,
        authority_links=authority_links,
        vaccine_link=vaccine_link,
        manufacturer=", ".join(manufacturers),
        manufacturers=manufacturers,
        last_updated=clean_text(pick(raw, "last_updated")),
        product_profiles=[normalize_product_profile(p) for p in _records(raw.get("productProfiles"))],
        licensing_dates=licensing_dates,
    )


def normalize_pathogen(raw: Dict[str, Any]) -> PathogenData:
    pathogen = PathogenData(
        pathogen_id=as_int(pick(raw, "pathogen_id", None)) or 0,
        name=clean_text(raw.get("name")) or "Unknown Pathogen",
        description=strip_markup(raw.get("description")),
        image=clean_text(raw.get("image")),
        bulletpoints=split_bulletpoints(raw.get("bulletpoints")),
        link=clean_text(raw.get("link")),
        updated_at=clean_text(pick(raw, "last_updated")),
    )
    pathogen.vaccines = [
        normalize_vaccine(v, pathogen=pathogen, index=i)
        for i, v in enumerate(_records(raw.get("vaccines")))
    ]
    return pathogen


def normalize_licenser(raw: Dict[str, Any]) -> Licenser:
    return Licenser(
        licenser_id=as_int(pick(raw, "licenser_id", None)) or 0,
        acronym=clean_text(raw.get("acronym")),
        region=clean_text(raw.get("region")),
        country=clean_text(raw.get("country")),
        full_name=clean_text(pick(raw, "full_name")),
        description=strip_markup(raw.get("description") or raw.get("info")),
        website=clean_text(raw.get("website")),
        updated_at=clean_text(pick(raw, "last_updated")),
    )


def normalize_candidate(raw: Dict[str, Any]) -> CandidateVaccine:
    manufacturer = join_names(pick(raw, "manufacturers", None))
    clinical_phase = clean_text(pick(raw, "clinical_phase"))
    return CandidateVaccine(
        candidate_id=clean_text(pick(raw, "candidate_id")),
        pathogen_name=join_names(pick(raw, "pathogens", None)),
        name=clean_text(pick(raw, "brand_name")),
        manufacturer=manufacturer,
        platform=clean_text(raw.get("platform")),
        clinical_phase=clinical_phase,
        company_url=clean_text(pick(raw, "company_url")),
        other=clean_text(raw.get("other")),
        last_updated=clean_text(pick(raw, "last_updated")),
        phases=phase_buckets(clinical_phase, manufacturer),
    )


def normalize_manufacturer_details(raw: Dict[str, Any]) -> ManufacturerDetails:
    return ManufacturerDetails(
        website=clean_text(raw.get("website")),
        founded=clean_text(raw.get("founded")),
        headquarters=clean_text(raw.get("headquarters")),
        ceo=clean_text(raw.get("ceo")),
        revenue=clean_text(raw.get("revenue") or raw.get("revenue_operating_income_net_income")),
        operating_income=clean_text(pick(raw, "operating_income")),
        net_income=clean_text(pick(raw, "net_income")),
        total_assets=clean_text(pick(raw, "total_assets") or raw.get("total_assets_total_equity")),
        total_equity=clean_text(pick(raw, "total_equity")),
        number_of_employees=clean_text(pick(raw, "number_of_employees")),
    )


def normalize_licensed_vaccine(raw: Dict[str, Any]) -> LicensedVaccine:
    return LicensedVaccine(
        vaccine_id=as_int(pick(raw, "vaccine_id", None)),
        name=clean_text(pick(raw, "brand_name")),
        pathogen_ids=as_int_list(raw.get("pathogenId") or raw.get("pathogenIds")),
        vaccine_type=classify_vaccine_type(pick(raw, "vaccine_type")),
        licensing_dates=[normalize_licensing_date(d) for d in _records(raw.get("licensingDates"))],
    )


def normalize_manufacturer(raw: Dict[str, Any]) -> Manufacturer:
    details = raw.get("details") if isinstance(raw.get("details"), dict) else raw
    return Manufacturer(
        manufacturer_id=as_int(pick(raw, "manufacturer_id", None)) or 0,
        name=clean_text(raw.get("name")),
        description=strip_markup(raw.get("description")),
        history=strip_markup(raw.get("history")),
        details=normalize_manufacturer_details(details),
        licensed_vaccines=[
            normalize_licensed_vaccine(v) for v in _records(pick(raw, "licensed_vaccines", None))
        ],
        candidate_vaccines=[
            normalize_candidate(c) for c in _records(pick(raw, "candidate_vaccines", None))
        ],
        last_updated=clean_text(pick(raw, "last_updated")),
    )


def normalize_nitag(raw: Dict[str, Any]) -> Nitag:
    website = clean_text(pick(raw, "nitag_website"))
    has_website = raw.get("availableWebsite", raw.get("available_website"))
    return Nitag(
        country=clean_text(raw.get("country")),
        available=as_bool(pick(raw, "nitag_available", False)),
        has_website=as_bool(has_website) if has_website is not None else bool(website),
        website=website,
        nitag_name=clean_text(pick(raw, "nitag_name")),
        established=as_int(pick(raw, "established", None)),
        updated_at=clean_text(pick(raw, "last_updated")),
    )


def licensed_only(vaccines: Iterable[Vaccine]) -> List[Vaccine]:
    """Vaccines with at least one authority, sorted by pathogen then brand name."""
    out = [v for v in vaccines if v.authority_names]
    out.sort(key=lambda v: (v.pathogen_name.lower(), v.vaccine_brand_name.lower()))
    return out


def flatten_vaccines(pathogens: Iterable[PathogenData]) -> List[Vaccine]:
    return licensed_only(v for p in pathogens for v in p.vaccines)


def pathogen_names(pathogens: Iterable[PathogenData]) -> List[str]:
    return sorted({p.name for p in pathogens if p.name}, key=str.lower)
