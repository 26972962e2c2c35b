"""Utils test."""

from vacciprofile.fetchers.utils import (
    as_name_list,
    classify_vaccine_type,
    first_name,
    flatten_vaccines,
    format_authority_name,
    format_pathogen_name,
    join_names,
    normalize_candidate,
    normalize_licenser,
    normalize_manufacturer,
    normalize_nitag,
    normalize_pathogen,
    normalize_vaccine,
    phase_buckets,
    strip_markup,
    unwrap_envelope,
)

from conftest import MANUFACTURERS_PAYLOAD, PATHOGENS_PAYLOAD


def test_string_and_array_manufacturers_give_same_display():
    assert join_names("X, Y") == "X, Y"
    assert join_names(["X", "Y"]) == "X, Y"
    assert join_names([{"name": "X"}, {"name": "Y"}]) == "X, Y"
    assert first_name("X, Y") == "X"
    assert first_name(None) == ""


def test_as_name_list_drops_blanks():
    assert as_name_list(" X ,, Y ") == ["X", "Y"]
    assert as_name_list([None, "", "Z"]) == ["Z"]
    assert as_name_list({"name": "Solo"}) == ["Solo"]


def test_phase_iii_goes_to_its_bucket():
    buckets = phase_buckets("Phase III", "Acme")
    assert buckets.model_dump() == {
        "phase_i": None,
        "phase_ii": None,
        "phase_iii": "Acme",
        "phase_iv": None,
    }


def test_phase_parsing_prefers_most_advanced_and_handles_no_data():
    assert phase_buckets("phase iv", "A").phase_iv == "A"
    assert phase_buckets("Phase 2", "A").phase_ii == "A"
    assert phase_buckets("Phase I", "A").phase_i == "A"
    assert phase_buckets("No data", "A").model_dump() == phase_buckets("", "A").model_dump()
    assert phase_buckets("Preclinical", "A").phase_i is None


def test_classify_vaccine_type():
    assert classify_vaccine_type("COMBINATION vaccine") == "Combination Vaccine"
    assert classify_vaccine_type("single") == "Single Pathogen Vaccine"
    assert classify_vaccine_type(None) == "Single Pathogen Vaccine"


def test_unwrap_envelope_shapes():
    assert unwrap_envelope({"success": True, "count": 1, "pathogens": [{"a": 1}]}, "pathogens") == [{"a": 1}]
    assert unwrap_envelope({"data": [{"a": 1}, "junk"]}, "pathogens") == [{"a": 1}]
    assert unwrap_envelope([{"a": 1}], "pathogens") == [{"a": 1}]
    assert unwrap_envelope({"success": False, "pathogens": [{"a": 1}]}, "pathogens") == []
    assert unwrap_envelope(None, "pathogens") == []
    assert unwrap_envelope({"pathogens": "oops"}, "pathogens") == []


def test_format_authority_name():
    assert format_authority_name("Bulgarian Drug Agency (BDA) (Bulgaria)") == "Bulgaria"
    assert format_authority_name("  FDA ") == "FDA"
    assert format_authority_name("") == ""


def test_format_pathogen_name():
    assert format_pathogen_name("Rotavirus") == {"display_name": "rotavirus", "italic": False}
    assert format_pathogen_name("Vibrio cholerae") == {"display_name": "Vibrio cholerae", "italic": True}
    assert format_pathogen_name("Ebola Virus") == {"display_name": "Ebola Virus", "italic": False}


def test_strip_markup():
    assert strip_markup("<p>Filovirus <b>bad</b></p>") == "Filovirus bad"
    assert strip_markup("plain  text") == "plain text"
    assert strip_markup(None) == ""


def test_normalize_pathogen_nests_vaccines():
    pathogen = normalize_pathogen(PATHOGENS_PAYLOAD["pathogens"][0])

    assert pathogen.name == "Ebola Virus"
    assert pathogen.bulletpoints == ["Outbreaks in Africa", "High fatality"]
    assert "<" not in pathogen.description

    ervebo = pathogen.vaccines[0]
    assert ervebo.licensed_vaccine_id == "10"
    assert ervebo.pathogen_name == "Ebola Virus"
    assert ervebo.manufacturer == "Merck"
    assert ervebo.vaccine_link == "https://example.org/ebola"
    assert len(ervebo.authority_names) == len(ervebo.authority_links) == 3


def test_normalize_vaccine_defaults_on_empty_record():
    vaccine = normalize_vaccine({}, index=3)

    assert vaccine.licensed_vaccine_id == "3"
    assert vaccine.vaccine_brand_name == "Unknown Vaccine"
    assert vaccine.authority_names == []
    assert vaccine.authority_links == []
    assert vaccine.manufacturers == []


def test_normalize_vaccine_keeps_authority_arrays_parallel():
    vaccine = normalize_vaccine(
        {"name": "V", "licensingDates": [{"name": "FDA"}, {"source": "x"}, {"name": "EMA", "source": "y"}]}
    )
    assert vaccine.authority_names == ["FDA", "EMA"]
    assert vaccine.authority_links == ["", "y"]


def test_flatten_vaccines_keeps_licensed_only_and_sorts():
    pathogens = [normalize_pathogen(p) for p in PATHOGENS_PAYLOAD["pathogens"]]
    vaccines = flatten_vaccines(pathogens)

    assert [v.vaccine_brand_name for v in vaccines] == ["Ervebo", "RotaTeq"]
    assert vaccines[1].single_or_combination == "Combination Vaccine"
    assert vaccines[1].manufacturers == ["Merck", "Acme"]


def test_normalize_candidate_and_licenser_and_nitag():
    candidate = normalize_candidate(
        {"_id": "c1", "pathogenName": "Ebola Virus", "name": "EboVac-2",
         "manufacturer": "Acme", "clinicalPhase": "Phase III"}
    )
    assert candidate.candidate_id == "c1"
    assert candidate.phases.phase_iii == "Acme"

    licenser = normalize_licenser({"acronym": "FDA", "fullName": "Food and Drug Administration"})
    assert licenser.full_name == "Food and Drug Administration"
    assert licenser.is_pinned

    nitag = normalize_nitag({"country": "Kenya", "availableNitag": "Yes", "yearEstablished": "est. 2014"})
    assert nitag.available is True
    assert nitag.has_website is False
    assert nitag.established == 2014


def test_normalize_manufacturer_reads_nested_details():
    manufacturer = normalize_manufacturer(MANUFACTURERS_PAYLOAD["manufacturers"][0])

    assert manufacturer.manufacturer_id == 7
    assert manufacturer.details.founded == "1891"
    assert manufacturer.licensed_vaccines[0].name == "Ervebo"
    assert manufacturer.licensed_vaccines[0].vaccine_type == "Single Pathogen Vaccine"
