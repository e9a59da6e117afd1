"""
OpenAQ v3 client: authenticated GETs, TTL-cached envelopes.
Why: one gateway for every page so quota headers and caching behave the same
everywhere.
"""

import hashlib
import json
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, TypeVar

import requests

from .cache import ResponseCache, SimpleCache
from .errors import ConfigurationError, DecodeError, TransportError, UpstreamError
from .filters import Filters, to_query
from .logging import get_logger
from .metrics import metrics
from .schemas import RateLimitHeaders, ResponseEnvelope

_LOG = get_logger(__name__)

API_KEY_HEADER = "X-API-Key"
DEFAULT_TTL_SECONDS = 60
PARAMETERS_TTL_SECONDS = 3600
CATALOG_TTL_SECONDS = 600
CACHE_PREFIX = "openaq:"

T = TypeVar("T")


def canonical_query(query: Optional[Mapping[str, Any]]) -> str:
    """Key-order independent serialization; None and {} stay distinct."""
    return json.dumps(query, sort_keys=True, separators=(",", ":"), default=str)


def cache_key(path: str, query: Optional[Mapping[str, Any]]) -> str:
    digest = hashlib.md5((path + canonical_query(query)).encode("utf-8")).hexdigest()
    return CACHE_PREFIX + digest


def _param_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


@dataclass(frozen=True)
class ApiRequest:
    path: str
    query: Optional[Dict[str, Any]] = None
    ttl_seconds: int = DEFAULT_TTL_SECONDS
    key: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        object.__setattr__(self, "key", cache_key(self.path, self.query))

    @property
    def url_params(self) -> Optional[Dict[str, Any]]:
        if not self.query:
            return None
        return {k: _param_value(v) for k, v in self.query.items() if v is not None}


class OpenAQClient:
    """Thin cached gateway to the OpenAQ v3 REST API.

    Every public method returns a ``ResponseEnvelope`` or raises one of the
    errors in ``openaq_dashboard.core.errors``. Failures are never cached and
    never retried.
    """

    def __init__(
        self,
        base_url: Optional[str],
        api_key: Optional[str],
        *,
        cache: Optional[ResponseCache] = None,
        default_ttl_seconds: int = DEFAULT_TTL_SECONDS,
        timeout_seconds: float = 15.0,
        session: Optional[requests.Session] = None,
        single_flight: bool = False,
    ) -> None:
        if not base_url or not base_url.strip():
            raise ConfigurationError("OpenAQ base URL is not configured")
        if not api_key or not api_key.strip():
            raise ConfigurationError("OpenAQ API key is not configured")
        if default_ttl_seconds < 0:
            raise ConfigurationError("default_ttl_seconds must be >= 0")

        self.base_url = base_url.strip().rstrip("/")
        self.default_ttl_seconds = default_ttl_seconds
        self.timeout_seconds = timeout_seconds
        self.cache: ResponseCache = cache if cache is not None else SimpleCache()
        self._api_key = api_key.strip()
        self._session = session or requests.Session()
        self._single_flight = single_flight
        # key -> [lock, waiters]; dropped when the last waiter leaves
        self._inflight: Dict[str, List[Any]] = {}
        self._inflight_guard = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Any, **kwargs: Any) -> "OpenAQClient":
        """Build from ``Settings().openaq``-style config."""
        return cls(
            settings.base_url,
            settings.api_key,
            default_ttl_seconds=settings.default_ttl_seconds,
            timeout_seconds=settings.timeout_seconds,
            **kwargs,
        )

    # ---- core ----

    def fetch(
        self,
        path: str,
        query: Optional[Mapping[str, Any]] = None,
        ttl_seconds: Optional[int] = None,
    ) -> ResponseEnvelope:
        request = ApiRequest(
            path=path,
            query=dict(query) if query is not None else None,
            ttl_seconds=self.default_ttl_seconds if ttl_seconds is None else ttl_seconds,
        )

        cached = self.cache.get(request.key)
        if cached is not None:
            metrics.increment_cache_hits()
            return cached.model_copy(deep=True)

        if not self._single_flight:
            return self._fetch_and_store(request)

        with self._key_lock(request.key):
            # another thread may have filled it while we waited
            cached = self.cache.get(request.key)
            if cached is not None:
                metrics.increment_cache_hits()
                return cached.model_copy(deep=True)
            return self._fetch_and_store(request)

    @contextmanager
    def _key_lock(self, key: str) -> Iterator[None]:
        with self._inflight_guard:
            entry = self._inflight.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._inflight_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._inflight[key]

    def _fetch_and_store(self, request: ApiRequest) -> ResponseEnvelope:
        metrics.increment_cache_misses()
        envelope = self._get(request)
        if request.ttl_seconds > 0:
            # the stored copy is never handed to callers
            self.cache.set(request.key, envelope.model_copy(deep=True), request.ttl_seconds)
        return envelope

    def _get(self, request: ApiRequest) -> ResponseEnvelope:
        url = self.base_url + request.path
        _LOG.info(f"openaq GET {request.path} params={request.url_params}")
        try:
            res = self._session.get(
                url,
                params=request.url_params,
                headers={API_KEY_HEADER: self._api_key, "Accept": "application/json"},
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            metrics.increment_upstream_errors()
            _LOG.warning(f"openaq transport failure path={request.path}: {exc}")
            raise TransportError(str(exc), path=request.path, query=request.query) from exc

        headers = RateLimitHeaders.from_response_headers(res.headers)
        metrics.record_rate_limit(headers)

        if not 200 <= res.status_code < 300:
            metrics.increment_upstream_errors()
            _LOG.warning(
                f"openaq upstream error path={request.path} status={res.status_code} "
                f"remaining={headers.remaining}"
            )
            raise UpstreamError(
                res.status_code, res.text, path=request.path, query=request.query
            )

        try:
            data = res.json()
        except ValueError as exc:
            metrics.increment_upstream_errors()
            raise DecodeError(
                f"OpenAQ returned a non-JSON body: {exc}",
                path=request.path,
                query=request.query,
            ) from exc

        _LOG.debug(f"openaq quota used={headers.used} remaining={headers.remaining}")
        return ResponseEnvelope(data=data, headers=headers)

    # ---- Locations ----

    def locations(self, filters: Optional[Filters] = None) -> ResponseEnvelope:
        return self.fetch("/v3/locations", to_query(filters))

    def location(self, location_id: int) -> ResponseEnvelope:
        return self.fetch(f"/v3/locations/{int(location_id)}")

    def latest(self, location_id: int) -> ResponseEnvelope:
        return self.fetch(f"/v3/locations/{int(location_id)}/latest")

    def sensors_at(self, location_id: int) -> ResponseEnvelope:
        return self.fetch(f"/v3/locations/{int(location_id)}/sensors")

    def location_flags(self, location_id: int) -> ResponseEnvelope:
        return self.fetch(f"/v3/locations/{int(location_id)}/flags")

    # ---- Sensors & series ----

    def sensors(self, filters: Optional[Filters] = None) -> ResponseEnvelope:
        return self.fetch("/v3/sensors", to_query(filters))

    def sensor(self, sensor_id: int) -> ResponseEnvelope:
        return self.fetch(f"/v3/sensors/{int(sensor_id)}")

    def sensor_flags(self, sensor_id: int) -> ResponseEnvelope:
        return self.fetch(f"/v3/sensors/{int(sensor_id)}/flags")

    def measurements(self, sensor_id: int, filters: Optional[Filters] = None) -> ResponseEnvelope:
        """Raw measurements; prefer ``hours``/``days`` for charts."""
        return self.fetch(f"/v3/sensors/{int(sensor_id)}/measurements", to_query(filters))

    def hours(self, sensor_id: int, filters: Optional[Filters] = None) -> ResponseEnvelope:
        return self.fetch(f"/v3/sensors/{int(sensor_id)}/hours", to_query(filters))

    def days(self, sensor_id: int, filters: Optional[Filters] = None) -> ResponseEnvelope:
        return self.fetch(f"/v3/sensors/{int(sensor_id)}/days", to_query(filters))

    def days_yearly(self, sensor_id: int, filters: Optional[Filters] = None) -> ResponseEnvelope:
        return self.fetch(f"/v3/sensors/{int(sensor_id)}/days/yearly", to_query(filters))

    # ---- Parameters / providers / countries ----

    def parameters(self) -> ResponseEnvelope:
        return self.fetch("/v3/parameters", None, PARAMETERS_TTL_SECONDS)

    def parameter_latest(
        self, parameter_id: int, filters: Optional[Filters] = None
    ) -> ResponseEnvelope:
        return self.fetch(f"/v3/parameters/{int(parameter_id)}/latest", to_query(filters))

    def providers(self, filters: Optional[Filters] = None) -> ResponseEnvelope:
        return self.fetch("/v3/providers", to_query(filters), CATALOG_TTL_SECONDS)

    def countries(self, filters: Optional[Filters] = None) -> ResponseEnvelope:
        return self.fetch("/v3/countries", to_query(filters), CATALOG_TTL_SECONDS)


def fetch_concurrently(
    calls: Mapping[str, Callable[[], T]], max_workers: int = 4
) -> Dict[str, T]:
    """Run independent calls in parallel and join them all.

    The first failure (in ``calls`` order) is re-raised unchanged once every
    call has finished.
    """
    if not calls:
        return {}
    with ThreadPoolExecutor(max_workers=min(max_workers, len(calls))) as pool:
        futures = {name: pool.submit(fn) for name, fn in calls.items()}
    return {name: fut.result() for name, fut in futures.items()}
