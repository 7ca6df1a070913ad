# ------------------------------------------------------------
# places_google.py
#
# Thin HTTP client for the Google Places API (New, v1).
#
# It:
#   - reads the API key from the environment / .env
#   - builds searchNearby / searchText request bodies
#   - POSTs them with the API key and field mask headers
#   - turns HTTP / payload / transport failures into our exceptions
#   - returns the raw place dicts plus the continuation token
#
# Normalization and ranking happen elsewhere (normalizer.py, ranking.py).
# ------------------------------------------------------------

import logging
import os
from typing import List, Optional, Sequence, Tuple

import requests
from dotenv import load_dotenv

from errors import NetworkError, ProviderError


load_dotenv()

logger = logging.getLogger(__name__)

# Key used when none is passed explicitly; GOOGLE_MAPS_API_KEY works too
GOOGLE_PLACES_API_KEY = os.environ.get("GOOGLE_PLACES_API_KEY") or os.environ.get("GOOGLE_MAPS_API_KEY")

# Value shipped in sample config files; never a real key
PLACEHOLDER_API_KEY = "YOUR_GOOGLE_PLACES_API_KEY_HERE"

BASE_URL = "https://places.googleapis.com/v1"
NEARBY_URL = f"{BASE_URL}/places:searchNearby"
TEXT_URL = f"{BASE_URL}/places:searchText"

FIELD_MASK = ",".join([
    "places.id",
    "places.displayName",
    "places.formattedAddress",
    "places.location",
    "places.rating",
    "places.userRatingCount",
    "places.regularOpeningHours",
    "places.internationalPhoneNumber",
    "places.nationalPhoneNumber",
    "places.types",
    "nextPageToken",
])

PAGE_SIZE = 20
LANGUAGE_CODE = "tr"
REQUEST_TIMEOUT = 30


def is_valid_api_key(api_key: Optional[str]) -> bool:
    return bool(api_key) and api_key != PLACEHOLDER_API_KEY


def _circle(latitude: float, longitude: float, radius: float) -> dict:
    return {
        "circle": {
            "center": {"latitude": latitude, "longitude": longitude},
            "radius": float(radius),
        }
    }


def build_nearby_body(
    latitude: float,
    longitude: float,
    radius_m: float,
    included_types: Sequence[str],
    page_token: Optional[str] = None,
) -> dict:
    """Request body for places:searchNearby (hard location restriction)."""
    body = {
        "includedTypes": list(included_types),
        "maxResultCount": PAGE_SIZE,
        "locationRestriction": _circle(latitude, longitude, radius_m),
        "languageCode": LANGUAGE_CODE,
    }
    if page_token:
        body["pageToken"] = page_token
    return body


def build_text_body(
    query: str,
    included_type: str,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    bias_radius_m: Optional[float] = None,
    page_token: Optional[str] = None,
) -> dict:
    """
    Request body for places:searchText.

    The location, when given, is only a bias: Google may still return
    places outside the circle.
    """
    body = {
        "textQuery": query,
        "includedType": included_type,
        "maxResultCount": PAGE_SIZE,
        "languageCode": LANGUAGE_CODE,
    }
    if page_token:
        body["pageToken"] = page_token
    if latitude is not None and longitude is not None and bias_radius_m is not None:
        body["locationBias"] = _circle(latitude, longitude, bias_radius_m)
    return body


def _error_message(resp) -> Optional[str]:
    # Google wraps failures as {"error": {"code": 400, "message": "...", "status": "..."}}
    try:
        data = resp.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return None


class GooglePlacesClient:
    """
    Issues one HTTP request per call; no retries, no caching.

    A requests.Session can be injected (tests pass a fake one).
    """

    def __init__(self, api_key: str, session=None, timeout: float = REQUEST_TIMEOUT):
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": FIELD_MASK,
        }

    def _post(self, url: str, body: dict) -> Tuple[List[dict], Optional[str]]:
        try:
            resp = self.session.post(url, json=body, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(f"Request to Google Places failed: {e}") from e

        if resp.status_code != 200:
            message = _error_message(resp)
            logger.warning("Google Places returned HTTP %s: %s", resp.status_code, message)
            raise ProviderError(status_code=resp.status_code, message=message)

        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError(status_code=resp.status_code, message="Response was not valid JSON") from e

        if not isinstance(data, dict):
            raise ProviderError(status_code=resp.status_code, message="Unexpected response shape")

        # An empty result comes back as {} (no "places" key at all)
        places = data.get("places") or []
        next_token = data.get("nextPageToken") or None
        return [p for p in places if isinstance(p, dict)], next_token

    def search_nearby(self, body: dict) -> Tuple[List[dict], Optional[str]]:
        return self._post(NEARBY_URL, body)

    def search_text(self, body: dict) -> Tuple[List[dict], Optional[str]]:
        return self._post(TEXT_URL, body)
