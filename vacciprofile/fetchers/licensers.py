"""Fetcher for licensing authorities."""

from __future__ import annotations

from typing import List, Optional

from vacciprofile.models import Licenser

from .base import BaseFetcher
from .config import LICENSERS
from .utils import normalize_licenser


class LicenserFetcher(BaseFetcher):
    def __init__(self, cfg: Optional[dict] = None, **kwargs) -> None:
        super().__init__(cfg or LICENSERS, **kwargs)

    def standardize(self) -> List[Licenser]:
        licensers = [normalize_licenser(raw) for raw in self.fetch_records()]
        # an authority without an acronym cannot be keyed or linked
        return [l for l in licensers if l.acronym]
