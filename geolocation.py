# geolocation.py
# ------------------------------------------------------------
# This module resolves a city / district name to coordinates
# using the Google Geocoding API.
#
# Used when the device location is not available: the user picks
# a city (and optionally a district) and nearby search runs around
# the geocoded point instead.
# ------------------------------------------------------------

import logging
import os
from typing import Optional, Tuple

import requests
from dotenv import load_dotenv

from errors import GeocodingError, MissingCredential, NetworkError


load_dotenv()

logger = logging.getLogger(__name__)

GOOGLE_MAPS_API_KEY = os.environ.get("GOOGLE_MAPS_API_KEY") or os.environ.get("GOOGLE_PLACES_API_KEY")

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

DEFAULT_COUNTRY = "Türkiye"


def build_address(city: str, district: Optional[str] = None, country: str = DEFAULT_COUNTRY) -> str:
    """Build an address like "Kadıköy, İstanbul, Türkiye" for the geocoder."""
    parts = [p.strip() for p in (district, city, country) if p and p.strip()]
    return ", ".join(parts)


def geocode_city(
    city: str,
    district: Optional[str] = None,
    country: str = DEFAULT_COUNTRY,
    api_key: Optional[str] = None,
    session=None,
) -> Tuple[float, float, str]:
    """
    Convert a city (and optional district) into geographic coordinates.

    Args:
        city (str): City / province name, e.g. "İstanbul".
        district (str): Optional district, e.g. "Kadıköy".
        country (str): Appended to narrow the search.

    Returns:
        Tuple(lat, lon, formatted_address)

    Raises:
        MissingCredential: no API key configured
        NetworkError: the request could not be sent
        GeocodingError: Google answered with an error or no results
    """
    if not city or not city.strip():
        raise GeocodingError("City must not be empty.")

    api_key = api_key or GOOGLE_MAPS_API_KEY
    if not api_key:
        raise MissingCredential("Google Geocoding")

    address = build_address(city, district, country)
    params = {
        "address": address,
        "key": api_key,
    }

    http = session or requests
    try:
        resp = http.get(GEOCODE_URL, params=params, timeout=10)
    except requests.RequestException as e:
        raise NetworkError(f"Geocoding request failed: {e}") from e

    if resp.status_code != 200:
        raise GeocodingError(f"HTTP error from Geocoding API: {resp.status_code}")

    try:
        data = resp.json()
    except ValueError as e:
        raise GeocodingError("Geocoding API returned invalid JSON") from e
    if not isinstance(data, dict):
        raise GeocodingError("Geocoding API returned an unexpected response")

    # Google's own "status" field; ZERO_RESULTS also lands here
    status = data.get("status")
    if status != "OK" or not data.get("results"):
        msg = data.get("error_message") or status
        raise GeocodingError(f"Geocoding failed: {msg}")

    result = data["results"][0]
    loc = result["geometry"]["location"]

    formatted = result.get("formatted_address", address)
    logger.debug("Geocoded %r -> %s, %s", address, loc["lat"], loc["lng"])

    return loc["lat"], loc["lng"], formatted
