"""Module for Models"""

from __future__ import annotations

from typing import List, Literal, Optional

import pydantic as pyd


VaccineType = Literal["Single Pathogen Vaccine", "Combination Vaccine"]

PINNED_AUTHORITIES = ("EMA", "FDA", "WHO")


class ViewModel(pyd.BaseModel):
    model_config = pyd.ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )


class LicensingDate(ViewModel):
    id: str = ""
    vaccine_name: str = ""
    name: str = ""
    type: str = ""
    approval_date: str = ""
    source: str = ""
    last_update_on_vaccine: str = ""


class ProductProfile(ViewModel):
    # "type" is the regulatory authority that published the profile
    type: str = ""
    name: str = ""
    composition: str = ""
    strain_coverage: str = ""
    indication: str = ""
    contraindication: str = ""
    dosing: str = ""
    immunogenicity: str = ""
    efficacy: str = ""
    duration_of_protection: str = ""
    co_administration: str = ""
    reactogenicity: str = ""
    safety: str = ""
    vaccination_goal: str = ""
    others: str = ""
    vaccine_name: str = ""


class Vaccine(ViewModel):
    licensed_vaccine_id: str
    vaccine_id: Optional[int] = None

    pathogen_name: str = ""
    pathogens: List[str] = pyd.Field(default_factory=list)
    vaccine_brand_name: str = ""
    single_or_combination: VaccineType = "Single Pathogen Vaccine"

    authority_names: List[str] = pyd.Field(default_factory=list)
    authority_links: List[str] = pyd.Field(default_factory=list)

    vaccine_link: str = ""
    manufacturer: str = ""
    manufacturers: List[str] = pyd.Field(default_factory=list)
    last_updated: str = ""

    product_profiles: List[ProductProfile] = pyd.Field(default_factory=list)
    licensing_dates: List[LicensingDate] = pyd.Field(default_factory=list)

    @pyd.model_validator(mode="after")
    def _authorities_are_parallel(self) -> "Vaccine":
        if len(self.authority_names) != len(self.authority_links):
            raise ValueError("authority_names and authority_links must have equal length")
        return self

    @property
    def authorities(self) -> List[tuple[str, str]]:
        return list(zip(self.authority_names, self.authority_links))


class PathogenData(ViewModel):
    pathogen_id: int = 0
    name: str = ""
    description: str = ""
    image: str = ""
    bulletpoints: List[str] = pyd.Field(default_factory=list)
    link: str = ""
    updated_at: str = ""
    vaccines: List[Vaccine] = pyd.Field(default_factory=list)


class Licenser(ViewModel):
    licenser_id: int = 0
    acronym: str = ""
    region: str = ""
    country: str = ""
    full_name: str = ""
    description: str = ""
    website: str = ""
    updated_at: str = ""

    @property
    def is_pinned(self) -> bool:
        return self.acronym.strip().upper() in PINNED_AUTHORITIES


class PhaseBuckets(ViewModel):
    phase_i: Optional[str] = None
    phase_ii: Optional[str] = None
    phase_iii: Optional[str] = None
    phase_iv: Optional[str] = None


class CandidateVaccine(ViewModel):
    candidate_id: str = ""
    pathogen_name: str = ""
    name: str = ""
    manufacturer: str = ""
    platform: str = ""
    clinical_phase: str = ""
    company_url: str = ""
    other: str = ""
    last_updated: str = ""
    phases: PhaseBuckets = pyd.Field(default_factory=PhaseBuckets)


class ManufacturerDetails(ViewModel):
    website: str = ""
    founded: str = ""
    headquarters: str = ""
    ceo: str = ""
    revenue: str = ""
    operating_income: str = ""
    net_income: str = ""
    total_assets: str = ""
    total_equity: str = ""
    number_of_employees: str = ""


class LicensedVaccine(ViewModel):
    vaccine_id: Optional[int] = None
    name: str = ""
    pathogen_ids: List[int] = pyd.Field(default_factory=list)
    vaccine_type: VaccineType = "Single Pathogen Vaccine"
    licensing_dates: List[LicensingDate] = pyd.Field(default_factory=list)


class Manufacturer(ViewModel):
    manufacturer_id: int = 0
    name: str = ""
    description: str = ""
    history: str = ""
    details: ManufacturerDetails = pyd.Field(default_factory=ManufacturerDetails)
    licensed_vaccines: List[LicensedVaccine] = pyd.Field(default_factory=list)
    candidate_vaccines: List[CandidateVaccine] = pyd.Field(default_factory=list)
    last_updated: str = ""


class Nitag(ViewModel):
    country: str = ""
    available: bool = False
    has_website: bool = False
    website: str = ""
    nitag_name: str = ""
    established: Optional[int] = None
    updated_at: str = ""
