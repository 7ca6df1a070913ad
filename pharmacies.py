# ------------------------------------------------------------
# pharmacies.py
#
# On-duty ("nöbetçi") pharmacy lookup through NosyAPI.
#
# It:
#   - finds on-duty pharmacies around a coordinate (closest first)
#   - lists on-duty pharmacies of a city / district (provider order)
#
# Runs independently of the doctor / hospital search and has no cache.
# ------------------------------------------------------------

import logging
import math
import os
import uuid
from typing import List, Optional

import requests
from dotenv import load_dotenv

from errors import MissingCredential, NetworkError, ProviderError
from models import Location, Pharmacy
from ranking import distance_between


load_dotenv()

logger = logging.getLogger(__name__)

NOSY_API_KEY = os.environ.get("NOSY_API_KEY")

NOSY_BASE_URL = "https://www.nosyapi.com/apiv2/service"
NEARBY_PATH = "pharmacies-on-duty/locations"
CITY_PATH = "pharmacies-on-duty"

REQUEST_TIMEOUT = 30


def _parse_location(item: dict) -> Optional[Location]:
    loc = item.get("location")
    if isinstance(loc, dict):
        lat, lon = loc.get("latitude"), loc.get("longitude")
    else:
        lat, lon = item.get("latitude"), item.get("longitude")
    try:
        lat, lon = float(lat), float(lon)
    except (TypeError, ValueError):
        return None
    if math.isnan(lat) or math.isnan(lon):
        return None
    # NosyAPI uses 0,0 for "unknown"
    if lat == 0.0 and lon == 0.0:
        return None
    return Location(lat, lon)


def parse_pharmacy(item: dict, user_location: Optional[Location] = None) -> Optional[Pharmacy]:
    """Build a Pharmacy from one NosyAPI record, or None without coordinates."""
    if not isinstance(item, dict):
        return None
    location = _parse_location(item)
    if location is None:
        return None

    distance = distance_between(user_location, location) if user_location else None
    return Pharmacy(
        id=str(item.get("id") or uuid.uuid4().hex),
        name=str(item.get("name") or item.get("pharmacyName") or "Pharmacy").strip(),
        address=str(item.get("address") or "").strip(),
        phone=str(item.get("phone") or "").strip(),
        location=location,
        district=str(item.get("district") or "").strip(),
        province=str(item.get("province") or item.get("city") or "").strip(),
        distance_km=distance,
    )


class PharmacyClient:

    def __init__(self, api_key: Optional[str] = None, session=None, timeout: float = REQUEST_TIMEOUT):
        self.api_key = api_key if api_key is not None else NOSY_API_KEY
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get(self, path: str, params: dict) -> List[dict]:
        if not self.api_key:
            raise MissingCredential("NosyAPI")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            resp = self.session.get(f"{NOSY_BASE_URL}/{path}", params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(f"Request to NosyAPI failed: {e}") from e

        if resp.status_code != 200:
            logger.warning("NosyAPI returned HTTP %s", resp.status_code)
            raise ProviderError(status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError(status_code=resp.status_code, message="Response was not valid JSON") from e

        status = data.get("status") if isinstance(data, dict) else None
        if status not in (True, "ok", "success"):
            message = data.get("message") if isinstance(data, dict) else None
            raise ProviderError(status_code=resp.status_code, message=message or "Request was not successful")

        return data.get("data") or []

    def nearby(self, latitude: float, longitude: float) -> List[Pharmacy]:
        """On-duty pharmacies around a point, closest first."""
        items = self._get(NEARBY_PATH, {"lat": latitude, "lng": longitude})
        user_location = Location(latitude, longitude)
        pharmacies = [p for p in (parse_pharmacy(i, user_location) for i in items) if p is not None]
        pharmacies.sort(key=lambda p: p.distance_km)
        logger.info("Found %d on-duty pharmacies near %s, %s", len(pharmacies), latitude, longitude)
        return pharmacies

    def by_city(self, city: str, district: Optional[str] = None) -> List[Pharmacy]:
        """On-duty pharmacies of a city (and district), in the provider's order."""
        params = {"city": city}
        if district:
            params["district"] = district
        items = self._get(CITY_PATH, params)
        return [p for p in (parse_pharmacy(i) for i in items) if p is not None]
