"""Fetchers for vaccines and their per-vaccine detail records."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from vacciprofile.models import LicensingDate, ProductProfile, Vaccine
from vacciprofile.selection import RequestGenerations

from .base import BaseFetcher
from .config import LICENSING_DATES, PRODUCT_PROFILES, VACCINES
from .utils import normalize_licensing_date, normalize_product_profile, normalize_vaccine

logger = logging.getLogger(__name__)


class VaccineFetcher(BaseFetcher):
    def __init__(self, cfg: Optional[dict] = None, **kwargs) -> None:
        super().__init__(cfg or VACCINES, **kwargs)

    def standardize(self) -> List[Vaccine]:
        return [normalize_vaccine(raw, index=i) for i, raw in enumerate(self.fetch_records())]


class ProductProfileFetcher(BaseFetcher):
    def __init__(self, cfg: Optional[dict] = None, **kwargs) -> None:
        super().__init__(cfg or PRODUCT_PROFILES, **kwargs)

    def standardize(self, vaccine_name: str) -> List[ProductProfile]:
        if not vaccine_name:
            return []
        records = self.fetch_records({self.cfg["query_param"]: vaccine_name})
        return [normalize_product_profile(raw) for raw in records]


class LicensingDateFetcher(BaseFetcher):
    def __init__(self, cfg: Optional[dict] = None, **kwargs) -> None:
        super().__init__(cfg or LICENSING_DATES, **kwargs)

    def standardize(self, vaccine_name: str) -> List[LicensingDate]:
        if not vaccine_name:
            return []
        records = self.fetch_records({self.cfg["query_param"]: vaccine_name})
        return [normalize_licensing_date(raw) for raw in records]


class VaccineDetailLoader:
    """
    Loads product profiles and licensing dates for one vaccine in parallel.

    Every load opens a new generation on its channel; a load that finishes
    after a newer one was requested on the same channel returns None so a
    late response never replaces the current selection.
    """

    def __init__(
        self,
        profiles: Optional[ProductProfileFetcher] = None,
        licensing_dates: Optional[LicensingDateFetcher] = None,
        generations: Optional[RequestGenerations] = None,
        **kwargs,
    ) -> None:
        self.profiles = profiles or ProductProfileFetcher(**kwargs)
        self.licensing_dates = licensing_dates or LicensingDateFetcher(**kwargs)
        self.generations = generations or RequestGenerations()

    def load(self, vaccine: Vaccine, channel: str = "default") -> Optional[Vaccine]:
        token = self.generations.begin(channel)
        name = vaccine.vaccine_brand_name
        if not name:
            return vaccine

        with ThreadPoolExecutor(max_workers=2) as ex:
            profiles_future = ex.submit(self.profiles.standardize, name)
            dates_future = ex.submit(self.licensing_dates.standardize, name)
            profiles = profiles_future.result()
            licensing_dates = dates_future.result()

        if not self.generations.is_current(channel, token):
            logger.info("Discarding stale detail load for %r on channel %r", name, channel)
            return None

        return vaccine.model_copy(
            update={"product_profiles": profiles, "licensing_dates": licensing_dates}
        )
