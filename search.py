# ------------------------------------------------------------
# search.py
#
# Search orchestration for pediatric doctors and hospitals.
#
# One call = one page:
#   cache check -> cancellation check -> HTTP request
#   -> normalize -> sort -> cache write (first pages only)
#
# Pagination is driven by the caller: pass the returned
# next_page_token back in to get the following page.
# ------------------------------------------------------------

import copy
import logging
import threading
from typing import Optional

from cache import CacheKey, ResultCache
from errors import Cancelled, MissingCredential
from models import DOCTOR, HOSPITAL, PROVIDER_KINDS, Location, SearchPage
from normalizer import normalize_places
from places_google import GOOGLE_PLACES_API_KEY, GooglePlacesClient, build_nearby_body, build_text_body, is_valid_api_key
from ranking import rank_providers
from vocabulary import PEDIATRIC_DOCTOR_QUERY, PEDIATRIC_QUERY_PREFIX, PEDIATRIC_QUERY_WORDS, contains_any


logger = logging.getLogger(__name__)

# Default nearby radius per kind, in meters
DEFAULT_RADIUS_M = {
    DOCTOR: 3000.0,
    HOSPITAL: 6000.0,
}

# Text search location bias when the caller gives no radius
DEFAULT_BIAS_RADIUS_M = 50000.0

# Google place type each kind is restricted to
INCLUDED_TYPES = {
    DOCTOR: ("doctor",),
    HOSPITAL: ("hospital",),
}


class CancellationToken:
    """
    Cooperative cancellation flag shared between a caller and a search.

    The search only looks at it before sending a request and right after
    the response arrives; a request already on the wire is never aborted.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise Cancelled("Search was cancelled")


def pediatric_query(query: str) -> str:
    """Prefix a doctor query with "çocuk doktoru" unless it is already pediatric."""
    if contains_any(query, PEDIATRIC_QUERY_WORDS):
        return query
    return f"{PEDIATRIC_QUERY_PREFIX} {query}"


def _check_kind(kind: str) -> None:
    if kind not in PROVIDER_KINDS:
        raise ValueError(f"Unknown provider kind: {kind!r}")


def _cached_page(entry) -> SearchPage:
    # Callers may edit what they get; the cached copies must stay as written
    return SearchPage(copy.deepcopy(list(entry.providers)), entry.next_page_token)


def _check(cancel_token: Optional[CancellationToken]) -> None:
    if cancel_token is not None:
        cancel_token.raise_if_cancelled()


class CareProviderSearch:
    """
    Resolves nearby / free-text searches into ranked CareProvider pages.

    The cache is owned by whoever constructs this object; pass the same
    ResultCache to several searches to share it, or a fresh one per test.
    """

    def __init__(self, api_key: Optional[str] = None, cache: Optional[ResultCache] = None, client=None):
        self.api_key = api_key if api_key is not None else GOOGLE_PLACES_API_KEY
        self.cache = cache if cache is not None else ResultCache()
        self._client = client

    @property
    def has_valid_api_key(self) -> bool:
        return is_valid_api_key(self.api_key)

    @property
    def client(self) -> GooglePlacesClient:
        if self._client is None:
            self._client = GooglePlacesClient(self.api_key)
        return self._client

    def _require_key(self) -> None:
        if not self.has_valid_api_key:
            raise MissingCredential("Google Places")

    def clear_cache(self) -> None:
        self.cache.clear()

    def search_nearby(
        self,
        kind: str,
        latitude: float,
        longitude: float,
        radius_m: Optional[float] = None,
        page_token: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> SearchPage:
        """
        Find doctors or hospitals inside a circle around (latitude, longitude).

        Results are sorted by rating, best first. First pages are served
        from the cache for 5 minutes.
        """
        _check_kind(kind)
        self._require_key()

        if radius_m is None:
            radius_m = DEFAULT_RADIUS_M[kind]

        key = None
        if page_token is None:
            key = CacheKey.build(kind, latitude, longitude, radius_m)
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Serving %s nearby search from cache", kind)
                return _cached_page(cached)

        body = build_nearby_body(latitude, longitude, radius_m, INCLUDED_TYPES[kind], page_token)

        _check(cancel_token)
        places, next_token = self.client.search_nearby(body)
        _check(cancel_token)

        user_location = Location(latitude, longitude)
        providers = normalize_places(places, kind, user_location)

        # Nearby search has no relevance order of its own: rating decides
        providers = rank_providers(providers)
        logger.info(
            "Nearby %s search: %d of %d places usable, more pages: %s",
            kind, len(providers), len(places), next_token is not None,
        )

        if key is not None:
            self.cache.put(key, providers, next_token)

        return SearchPage(providers, next_token)

    def search_pediatric_doctors(
        self,
        latitude: float,
        longitude: float,
        radius_m: Optional[float] = None,
        page_token: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> SearchPage:
        """
        Pediatricians around (latitude, longitude), closest first.

        The "doctor" place type alone also brings back dentists, vets and
        adult specialists, so this asks the text endpoint for pediatric
        doctors biased to the same circle a nearby search would use.
        """
        if radius_m is None:
            radius_m = DEFAULT_RADIUS_M[DOCTOR]
        return self.search_by_text(
            PEDIATRIC_DOCTOR_QUERY, DOCTOR, latitude, longitude,
            radius_m=radius_m, page_token=page_token, cancel_token=cancel_token,
        )

    def search_by_text(
        self,
        query: str,
        kind: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        radius_m: Optional[float] = None,
        page_token: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> SearchPage:
        """
        Free-text search ("Acıbadem", "çocuk kardiyoloji Kadıköy"...).

        A location, when given, biases the results toward it and switches
        the ordering from best-rated to closest.
        """
        _check_kind(kind)
        if not query or not query.strip():
            raise ValueError("query must not be empty")
        self._require_key()

        query = query.strip()
        if kind == DOCTOR:
            query = pediatric_query(query)

        user_location = None
        bias_radius = None
        if latitude is not None and longitude is not None:
            user_location = Location(latitude, longitude)
            bias_radius = radius_m if radius_m is not None else DEFAULT_BIAS_RADIUS_M

        key = None
        if page_token is None:
            key = CacheKey.build(kind, latitude, longitude, bias_radius, query)
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Serving %s text search %r from cache", kind, query)
                return _cached_page(cached)

        body = build_text_body(
            query,
            INCLUDED_TYPES[kind][0],
            latitude=latitude if user_location else None,
            longitude=longitude if user_location else None,
            bias_radius_m=bias_radius,
            page_token=page_token,
        )

        _check(cancel_token)
        places, next_token = self.client.search_text(body)
        _check(cancel_token)

        providers = normalize_places(places, kind, user_location)
        providers = rank_providers(providers, user_location)
        logger.info(
            "Text %s search %r: %d of %d places usable, more pages: %s",
            kind, query, len(providers), len(places), next_token is not None,
        )

        if key is not None:
            self.cache.put(key, providers, next_token)

        return SearchPage(providers, next_token)
