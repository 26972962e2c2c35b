"""Fetcher for manufacturers populated with licensed and candidate vaccines."""

from __future__ import annotations

from typing import List, Optional

from vacciprofile.models import Manufacturer

from .base import BaseFetcher
from .config import MANUFACTURERS
from .utils import normalize_manufacturer


class ManufacturerFetcher(BaseFetcher):
    def __init__(self, cfg: Optional[dict] = None, **kwargs) -> None:
        super().__init__(cfg or MANUFACTURERS, **kwargs)

    def standardize(self) -> List[Manufacturer]:
        manufacturers = [normalize_manufacturer(raw) for raw in self.fetch_records()]
        manufacturers = [m for m in manufacturers if m.name]
        manufacturers.sort(key=lambda m: m.name.lower())
        return manufacturers
