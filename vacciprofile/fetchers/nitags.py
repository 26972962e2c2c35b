"""Fetcher for national immunization technical advisory groups."""

from __future__ import annotations

from typing import List, Optional

from vacciprofile.models import Nitag

from .base import BaseFetcher
from .config import NITAGS
from .utils import normalize_nitag


class NitagFetcher(BaseFetcher):
    def __init__(self, cfg: Optional[dict] = None, **kwargs) -> None:
        super().__init__(cfg or NITAGS, **kwargs)

    def standardize(self) -> List[Nitag]:
        nitags = [normalize_nitag(raw) for raw in self.fetch_records()]
        return [n for n in nitags if n.country]
