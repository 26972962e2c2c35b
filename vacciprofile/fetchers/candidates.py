"""Fetcher for candidate vaccines still in clinical development."""

from __future__ import annotations

from typing import List, Optional

from vacciprofile.models import CandidateVaccine

from .base import BaseFetcher
from .config import CANDIDATES
from .utils import normalize_candidate


class CandidateFetcher(BaseFetcher):
    def __init__(self, cfg: Optional[dict] = None, **kwargs) -> None:
        super().__init__(cfg or CANDIDATES, **kwargs)

    def standardize(self) -> List[CandidateVaccine]:
        return [normalize_candidate(raw) for raw in self.fetch_records()]
