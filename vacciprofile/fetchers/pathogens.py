"""Fetcher for pathogens populated with their licensed vaccines."""

from __future__ import annotations

from typing import List, Optional

from vacciprofile.models import PathogenData

from .base import BaseFetcher
from .config import PATHOGENS
from .utils import normalize_pathogen


class PathogenFetcher(BaseFetcher):
    def __init__(self, cfg: Optional[dict] = None, **kwargs) -> None:
        super().__init__(cfg or PATHOGENS, **kwargs)

    def standardize(self) -> List[PathogenData]:
        return [normalize_pathogen(raw) for raw in self.fetch_records()]
