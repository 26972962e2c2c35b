"""Base fetcher utilities shared across resource-specific fetchers."""

from __future__ import annotations

import abc
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

import requests
from pydantic import BaseModel

from vacciprofile.config import api_base_url, settings

from .utils import unwrap_envelope

logger = logging.getLogger(__name__)


class BaseFetcher(abc.ABC):
    """
    Single-attempt GET against one upstream collection.

    Subclasses implement standardize() to turn the raw records into view
    models. Failures never propagate: they are logged and read as an empty
    collection.
    """

    def __init__(
        self,
        cfg: Dict[str, Any],
        *,
        base_url: Optional[str] = None,
        args: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
        cache_ttl: Optional[float] = None,
    ) -> None:
        self.cfg = cfg
        self.resource_id = cfg["resource_id"]
        self.base_url = (base_url or api_base_url()).rstrip("/")
        self.url = f"{self.base_url}{cfg['path']}"
        self.args = args or {}
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT

        if not cfg.get("cacheable", False):
            self.cache_ttl = None
        else:
            self.cache_ttl = cache_ttl if cache_ttl is not None else settings.CACHE_TTL_SECONDS
        self._cache: Dict[Tuple[Tuple[str, str], ...], Tuple[float, Any]] = {}

        self.args.setdefault("headers", {})
        self.args["headers"].setdefault("Accept", "application/json")
        self.args["headers"].setdefault("User-Agent", "VacciProfile/1.0")

    def fetch(self, params: Optional[Dict[str, Any]] = None) -> Any:
        """Return the decoded JSON body, or None when the request failed."""
        key = tuple(sorted((str(k), str(v)) for k, v in (params or {}).items()))

        if self.cache_ttl:
            hit = self._cache.get(key)
            if hit and hit[0] > time.monotonic():
                return hit[1]

        try:
            resp = requests.get(self.url, params=params, timeout=self.timeout, **self.args)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("GET %s failed (%s): %s", self.url, self.resource_id, exc)
            return None

        if self.cache_ttl:
            self._cache[key] = (time.monotonic() + self.cache_ttl, payload)
        return payload

    def fetch_records(self, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        payload = self.fetch(params)
        records = unwrap_envelope(payload, self.cfg.get("envelope_key"))
        logger.debug("%s: %d records", self.resource_id, len(records))
        return records

    def clear_cache(self) -> None:
        self._cache.clear()

    @abc.abstractmethod
    def standardize(self) -> List[BaseModel]:
        raise NotImplementedError
