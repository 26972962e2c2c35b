"""Conftest"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import requests

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from vacciprofile.config import settings  # noqa: E402


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200, raw: Optional[str] = None):
        self.payload = payload
        self.status_code = status_code
        self.raw = raw

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error", response=self)

    def json(self) -> Any:
        if self.raw is not None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.payload


PATHOGENS_PAYLOAD: Dict[str, Any] = {
    "success": True,
    "count": 2,
    "pathogens": [
        {
            "pathogenId": 1,
            "name": "Ebola Virus",
            "description": "<p>Filovirus causing <b>haemorrhagic</b> fever.</p>",
            "bulletpoints": "Outbreaks in Africa|High fatality",
            "link": "https://example.org/ebola",
            "vaccines": [
                {
                    "vaccineId": 10,
                    "name": "Ervebo",
                    "vaccineType": "single",
                    "manufacturers": [{"name": "Merck"}],
                    "licensingDates": [
                        {"name": "FDA", "source": "https://fda.example/ervebo", "type": "FDA"},
                        {"name": "FDA", "source": "https://fda.example/ervebo-2", "type": "FDA"},
                        {"name": "European Medicines Agency", "source": "https://ema.example/ervebo"},
                    ],
                },
                {
                    "vaccineId": 11,
                    "name": "Unlicensed Ebola Shot",
                    "manufacturers": "Acme",
                    "licensingDates": [],
                },
            ],
        },
        {
            "pathogenId": 2,
            "name": "Rotavirus",
            "link": "https://example.org/rota",
            "vaccines": [
                {
                    "vaccineId": 20,
                    "name": "RotaTeq",
                    "vaccineType": "Combination",
                    "manufacturers": "Merck, Acme",
                    "licensingDates": [{"name": "WHO", "source": "https://who.example/rotateq"}],
                },
            ],
        },
    ],
}

LICENSERS_PAYLOAD: Dict[str, Any] = {
    "success": True,
    "licensers": [
        {"licenserId": 1, "acronym": "FDA", "fullName": "Food and Drug Administration",
         "region": "Americas", "country": "United States"},
        {"licenserId": 2, "acronym": "EMA", "fullName": "European Medicines Agency",
         "region": "Europe", "country": "European Union"},
        {"licenserId": 3, "acronym": "WHO", "fullName": "World Health Organization",
         "region": "Global", "country": ""},
        {"licenserId": 4, "acronym": "BDA", "fullName": "Bulgarian Drug Agency",
         "region": "Europe", "country": "Bulgaria"},
    ],
}

MANUFACTURERS_PAYLOAD: Dict[str, Any] = {
    "success": True,
    "manufacturers": [
        {
            "manufacturerId": 7,
            "name": "Merck",
            "description": "Pharmaceutical company",
            "details": {"website": "https://merck.example", "founded": "1891", "ceo": "R. Davis"},
            "licensedVaccines": [
                {"vaccineId": 10, "name": "Ervebo", "vaccineType": "single",
                 "licensingDates": [{"name": "Bulgarian Drug Agency (BDA) (Bulgaria)"}]},
            ],
            "candidateVaccines": [],
        },
        {"manufacturerId": 8, "name": "Acme", "details": {}},
    ],
}

CANDIDATES_PAYLOAD: Dict[str, Any] = {
    "success": True,
    "candidateVaccines": [
        {"_id": "c1", "pathogenName": "Ebola Virus", "name": "EboVac-2",
         "manufacturer": "Acme", "clinicalPhase": "Phase III", "platform": "Viral vector"},
        {"_id": "c2", "pathogenName": "Malaria", "name": "R21",
         "manufacturer": ["Serum Institute"], "clinicalPhase": "No data"},
    ],
}

NITAGS_PAYLOAD: Dict[str, Any] = {
    "data": [
        {"country": "United States of America", "availableNitag": "Yes",
         "websiteUrl": "https://cdc.example/acip", "nationalNitagName": "ACIP",
         "yearEstablished": "1964"},
        {"country": "Kenya", "availableNitag": "Yes", "availableWebsite": "No",
         "nationalNitagName": "KENITAG"},
        {"country": "Atlantis", "availableNitag": "No"},
    ],
}

PROFILES_PAYLOAD: Dict[str, Any] = {
    "success": True,
    "productProfiles": [
        {"type": "Other", "composition": "x"},
        {"type": "FDA", "composition": "Live vector", "vaccineName": "Ervebo"},
        {"type": "EMA", "composition": "Live vector", "vaccineName": "Ervebo"},
        {"type": "WHO", "composition": "- not licensed yet -", "vaccineName": "Ervebo"},
    ],
}

LICENSING_DATES_PAYLOAD: Dict[str, Any] = {
    "success": True,
    "licensingDates": [
        {"name": "FDA", "type": "FDA", "approvalDate": "2019-12-19", "vaccineName": "Ervebo"},
        {"name": "EMA", "type": "EMA", "approvalDate": "2019-11-11", "vaccineName": "Ervebo"},
    ],
}

VACCINES_PAYLOAD: Dict[str, Any] = {
    "success": True,
    "vaccines": [
        {
            "vaccineId": 30,
            "name": "Qdenga",
            "vaccineType": "single",
            "pathogens": [{"name": "Dengue"}],
            "manufacturers": [{"name": "Takeda"}],
            "licensingDates": [{"name": "EMA", "source": "https://ema.example/qdenga"}],
        },
    ],
}

ROUTES: Dict[str, Any] = {
    "/api/pathogens/populated": PATHOGENS_PAYLOAD,
    "/api/licensers": LICENSERS_PAYLOAD,
    "/api/manufacturers/populated": MANUFACTURERS_PAYLOAD,
    "/candidate-vaccines": CANDIDATES_PAYLOAD,
    "/api/nitags": NITAGS_PAYLOAD,
    "/api/product-profiles": PROFILES_PAYLOAD,
    "/api/licensing-dates": LICENSING_DATES_PAYLOAD,
    "/api/vaccines/populated": VACCINES_PAYLOAD,
}


@pytest.fixture
def calls() -> List[str]:
    return []


@pytest.fixture
def fake_api(monkeypatch, calls):
    """Patch requests.get to serve the canned payloads by path."""

    def fake_get(url: str, params=None, timeout=None, **kwargs):
        calls.append(url)
        for path, payload in ROUTES.items():
            if url.endswith(path):
                return FakeResponse(payload)
        return FakeResponse({"success": False}, status_code=404)

    monkeypatch.setattr(requests, "get", fake_get)
    return fake_get


@pytest.fixture
def failing_api(monkeypatch, calls):
    """Every upstream call answers 500."""

    def fake_get(url: str, params=None, timeout=None, **kwargs):
        calls.append(url)
        return FakeResponse({"error": "boom"}, status_code=500)

    monkeypatch.setattr(requests, "get", fake_get)
    return fake_get


@pytest.fixture
def admin_settings(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "DATABASE_PATH", str(tmp_path / "admin.db"))
    monkeypatch.setattr(settings, "ADMIN_USERNAME", "admin")
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", "s3cret")
    return settings
