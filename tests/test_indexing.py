from vacciprofile.fetchers.utils import flatten_vaccines, normalize_licenser, normalize_pathogen
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
    resolve_licenser,
    sort_product_profiles,
    split_pinned,
    vaccines_for_pathogen,
)
from vacciprofile.models import (
    CandidateVaccine,
    Licenser,
    LicensingDate,
    Manufacturer,
    ProductProfile,
    Vaccine,
)

from conftest import LICENSERS_PAYLOAD, PATHOGENS_PAYLOAD


def _licensers():
    return [normalize_licenser(raw) for raw in LICENSERS_PAYLOAD["licensers"]]


def _vaccines():
    return flatten_vaccines(normalize_pathogen(p) for p in PATHOGENS_PAYLOAD["pathogens"])


def _vaccine(vid, names, **kw):
    return Vaccine(
        licensed_vaccine_id=vid,
        authority_names=names,
        authority_links=[""] * len(names),
        **kw,
    )


def test_fda_vaccine_listed_exactly_once():
    index = build_vaccines_by_licenser(_licensers(), _vaccines())

    fda = [v.vaccine_brand_name for v in index["FDA"]]
    assert fda == ["Ervebo"]
    assert [v.vaccine_brand_name for v in index["EMA"]] == ["Ervebo"]
    assert [v.vaccine_brand_name for v in index["WHO"]] == ["RotaTeq"]
    assert index["BDA"] == []


def test_resolve_licenser_priority_order():
    licensers = [
        Licenser(acronym="ABC", full_name="Agency Beta Corp", country="Xland"),
        Licenser(acronym="FDA", full_name="Food and Drug Administration", country="United States"),
        Licenser(acronym="Food and Drug Administration", full_name="Shadow"),
    ]

    # exact acronym beats exact full name of an earlier licenser
    assert resolve_licenser("Food and Drug Administration", licensers).full_name == "Shadow"
    assert resolve_licenser("Agency Beta Corp", licensers).acronym == "ABC"
    assert resolve_licenser("Agency Beta Corp (Xland)", licensers).acronym == "ABC"
    assert resolve_licenser("Agency Beta Corp (ABC)", licensers).acronym == "ABC"
    assert resolve_licenser("US Food and Drug Administration (CBER)", licensers).acronym == "FDA"
    assert resolve_licenser("approved by fda in 2019", licensers).acronym == "FDA"
    assert resolve_licenser("Nobody", licensers) is None
    assert resolve_licenser("", licensers) is None


def test_short_acronym_does_not_match_inside_words():
    licensers = [Licenser(acronym="MA", full_name="Medicines Authority")]
    assert resolve_licenser("Pharmaceutical Board", licensers) is None
    assert resolve_licenser("MA (Malta)", licensers).acronym == "MA"


def test_licenser_buckets_dedupe_by_vaccine_id():
    licensers = [Licenser(acronym="FDA", full_name="Food and Drug Administration")]
    v = _vaccine("1", ["FDA", "Food and Drug Administration", "FDA"])
    index = build_vaccines_by_licenser(licensers, [v, v])
    assert len(index["FDA"]) == 1


def test_country_index_unions_licensers():
    licensers = [
        Licenser(acronym="A1", country="Xland"),
        Licenser(acronym="A2", country="Xland"),
    ]
    v1 = _vaccine("1", ["A1"])
    v2 = _vaccine("2", ["A2", "A1"])
    by_licenser = build_vaccines_by_licenser(licensers, [v1, v2])
    by_country = build_vaccines_by_country(licensers, by_licenser)
    assert [v.licensed_vaccine_id for v in by_country["Xland"]] == ["1", "2"]


def test_selecting_pathogen_a_yields_one_vaccine():
    vaccines = [
        Vaccine(licensed_vaccine_id="1", pathogen_name="A", pathogens=["A"]),
        Vaccine(licensed_vaccine_id="2", pathogen_name="B", pathogens=["B"]),
    ]
    assert len(vaccines_for_pathogen(vaccines, "A")) == 1
    assert vaccines_for_pathogen(vaccines, "") == []


def test_split_pinned_and_other_countries():
    pinned, others = split_pinned(_licensers())
    assert [l.acronym for l in pinned] == ["EMA", "FDA", "WHO"]
    assert [l.acronym for l in others] == ["BDA"]
    assert other_countries(others + [Licenser(acronym="ZZ")]) == ["Bulgaria", "Unknown"]


def test_default_licenser_order():
    licensers = _licensers()
    assert default_licenser(licensers).acronym == "EMA"
    assert default_licenser(licensers, acronym="fda").acronym == "FDA"
    assert default_licenser(licensers, country="bulgaria").acronym == "BDA"
    assert default_licenser(licensers, country="Nowhere").acronym == "EMA"
    assert default_licenser([]) is None


def test_manufacturer_indexes_and_lookup():
    vaccines = _vaccines()
    by_name = build_vaccines_by_manufacturer(vaccines)
    assert [v.vaccine_brand_name for v in by_name["Merck"]] == ["Ervebo", "RotaTeq"]
    assert [v.vaccine_brand_name for v in by_name["Acme"]] == ["RotaTeq"]

    candidates = [CandidateVaccine(name="C", manufacturer="Acme, Merck")]
    assert [c.name for c in build_candidates_by_manufacturer(candidates)["Merck"]] == ["C"]

    manufacturers = [Manufacturer(manufacturer_id=1, name="Merck & Co"), Manufacturer(manufacturer_id=2, name="Acme")]
    assert find_manufacturer(manufacturers, "acme").manufacturer_id == 2
    assert find_manufacturer(manufacturers, "Merck").manufacturer_id == 1
    assert find_manufacturer(manufacturers, "Unknown") is None


def test_product_profiles_sort_ema_who_fda_then_others():
    profiles = [
        ProductProfile(type="Other"),
        ProductProfile(type="FDA"),
        ProductProfile(type="Swissmedic"),
        ProductProfile(type="WHO PQ"),
        ProductProfile(type="ema"),
    ]
    assert [p.type for p in sort_product_profiles(profiles)] == [
        "ema", "WHO PQ", "FDA", "Other", "Swissmedic",
    ]


def test_licensing_dates_for_profile_and_comparable_types():
    dates = [LicensingDate(name="EMA"), LicensingDate(name="FDA (US)"), LicensingDate(name="")]
    assert [d.name for d in licensing_dates_for_profile(ProductProfile(type="FDA"), dates)] == ["FDA (US)"]

    v1 = Vaccine(
        licensed_vaccine_id="1",
        product_profiles=[
            ProductProfile(type="EMA", composition="x"),
            ProductProfile(type="WHO", composition="- Not licensed yet -"),
        ],
    )
    v2 = Vaccine(licensed_vaccine_id="2", product_profiles=[ProductProfile(type="FDA", composition="y")])
    assert comparable_profile_types([v1, v2]) == ["EMA", "FDA"]


def test_pathogen_index_lists_combination_vaccines_under_each_pathogen():
    combo = Vaccine(licensed_vaccine_id="1", pathogen_name="A, B", pathogens=["A", "B"])
    single = Vaccine(licensed_vaccine_id="2", pathogen_name="A", pathogens=["A"])
    index = build_vaccines_by_pathogen([combo, single, combo])

    assert [v.licensed_vaccine_id for v in index["A"]] == ["1", "2"]
    assert [v.licensed_vaccine_id for v in index["B"]] == ["1"]


def test_other_licensers_sort_ignoring_case():
    licensers = [
        Licenser(acronym="Swissmedic"),
        Licenser(acronym="BDA"),
        Licenser(acronym="anmat"),
        Licenser(acronym="EMA"),
    ]
    pinned, others = split_pinned(licensers)
    assert [l.acronym for l in pinned] == ["EMA"]
    assert [l.acronym for l in others] == ["anmat", "BDA", "Swissmedic"]


def test_candidate_pathogen_index_splits_joined_names():
    combo = CandidateVaccine(name="Combo", pathogen_name="A, B")
    single = CandidateVaccine(name="Solo", pathogen_name="A")
    index = build_candidates_by_pathogen([combo, single, CandidateVaccine(name="None")])

    assert [c.name for c in index["A"]] == ["Combo", "Solo"]
    assert [c.name for c in index["B"]] == ["Combo"]
    assert "A, B" not in index


def test_lookup_by_name_exact_then_case_then_containment():
    index = {"Merck": ["m"], "acme": ["a"]}
    assert lookup_by_name(index, "Merck") == ["m"]
    assert lookup_by_name(index, "ACME") == ["a"]
    assert lookup_by_name(index, "Merck & Co") == ["m"]
    assert lookup_by_name(index, "Pfizer") == []
    assert lookup_by_name(index, "") == []
