import unittest
from unittest import mock

import requests

from errors import GeocodingError, MissingCredential, NetworkError, ProviderError
from fakes import FakeResponse, FakeSession
from geolocation import GEOCODE_URL, build_address, geocode_city
from pharmacies import CITY_PATH, NEARBY_PATH, NOSY_BASE_URL, PharmacyClient, parse_pharmacy


NOSY_KEY = "nosy-key"

MODA = {
    "pharmacyName": "Moda Eczanesi",
    "address": "Moda Cd. No:1 Kadıköy",
    "phone": "0216 000 00 00",
    "district": "Kadıköy",
    "city": "İstanbul",
    "latitude": 41.02,
    "longitude": 29.0,
}
FAR = {
    "id": 77,
    "name": "Bostancı Eczanesi",
    "location": {"latitude": 41.1, "longitude": 29.0},
    "district": "Kadıköy",
    "province": "İstanbul",
}
UNKNOWN_LOCATION = {"name": "Yeni Eczane", "latitude": 0, "longitude": 0}


def nosy(*items, status="success"):
    return FakeResponse(200, {"status": status, "data": list(items)})


class TestPharmacies(unittest.TestCase):
    def setUp(self):
        self.session = FakeSession()
        self.client = PharmacyClient(api_key=NOSY_KEY, session=self.session)

    def test_nearby(self):
        print("==Testing on-duty pharmacies nearby...")

        self.session.add(nosy(FAR, UNKNOWN_LOCATION, MODA))
        found = self.client.nearby(41.0, 29.0)

        method, url, kwargs = self.session.calls[0]
        assert method == "GET"
        assert url == f"{NOSY_BASE_URL}/{NEARBY_PATH}"
        assert kwargs["params"] == {"lat": 41.0, "lng": 29.0}
        assert kwargs["headers"]["Authorization"] == f"Bearer {NOSY_KEY}"

        # Closest first; 0,0 means the provider has no coordinates
        assert [p.name for p in found] == ["Moda Eczanesi", "Bostancı Eczanesi"]
        assert found[0].distance_km < found[1].distance_km
        assert found[0].province == "İstanbul"
        assert found[1].id == "77"
        assert all(p.is_on_duty for p in found)

    def test_by_city(self):
        print("==Testing on-duty pharmacies by city...")

        self.session.add(nosy(FAR, MODA))
        found = self.client.by_city("İstanbul", "Kadıköy")

        _, url, kwargs = self.session.calls[0]
        assert url == f"{NOSY_BASE_URL}/{CITY_PATH}"
        assert kwargs["params"] == {"city": "İstanbul", "district": "Kadıköy"}
        assert [p.name for p in found] == ["Bostancı Eczanesi", "Moda Eczanesi"]
        assert all(p.distance_km is None for p in found)

        self.session.add(nosy())
        assert self.client.by_city("Bayburt") == []
        assert self.session.calls[-1][2]["params"] == {"city": "Bayburt"}

    def test_missing_key(self):
        client = PharmacyClient(api_key="", session=self.session)

        with self.assertRaises(MissingCredential) as ctx:
            client.nearby(41.0, 29.0)

        assert ctx.exception.service == "NosyAPI"
        assert self.session.calls == []

    def test_errors(self):
        print("==Testing pharmacy errors...")

        self.session.add(FakeResponse(200, {"status": "failure", "message": "Invalid city"}))
        with self.assertRaises(ProviderError) as ctx:
            self.client.by_city("Atlantis")
        assert ctx.exception.message == "Invalid city"

        self.session.add(FakeResponse(401))
        with self.assertRaises(ProviderError) as ctx:
            self.client.nearby(41.0, 29.0)
        assert ctx.exception.status_code == 401

        self.session.add(FakeResponse(200, invalid_json=True))
        with self.assertRaises(ProviderError):
            self.client.nearby(41.0, 29.0)

        self.session.add(requests.ConnectionError("no route to host"))
        with self.assertRaises(NetworkError):
            self.client.nearby(41.0, 29.0)

    def test_parse(self):
        assert parse_pharmacy(UNKNOWN_LOCATION) is None
        assert parse_pharmacy({"name": "x", "latitude": "abc", "longitude": 29.0}) is None
        assert parse_pharmacy("not a record") is None

        pharmacy = parse_pharmacy(MODA)
        assert pharmacy.name == "Moda Eczanesi"
        assert pharmacy.location.latitude == 41.02
        assert pharmacy.duty_start == "08:00" and pharmacy.duty_end == "08:00"


GEOCODE_OK = {
    "status": "OK",
    "results": [{
        "formatted_address": "Kadıköy/İstanbul, Türkiye",
        "geometry": {"location": {"lat": 40.9903, "lng": 29.0205}},
    }],
}


class TestGeolocation(unittest.TestCase):
    def setUp(self):
        self.session = FakeSession()

    def test_geocode(self):
        print("==Testing city geocoding...")

        self.session.add(FakeResponse(200, GEOCODE_OK))
        lat, lon, formatted = geocode_city("İstanbul", "Kadıköy", api_key="maps-key", session=self.session)

        assert (lat, lon) == (40.9903, 29.0205)
        assert formatted == "Kadıköy/İstanbul, Türkiye"

        method, url, kwargs = self.session.calls[0]
        assert method == "GET" and url == GEOCODE_URL
        assert kwargs["params"] == {"address": "Kadıköy, İstanbul, Türkiye", "key": "maps-key"}

    def test_build_address(self):
        assert build_address("İstanbul") == "İstanbul, Türkiye"
        assert build_address(" Ankara ", "  ") == "Ankara, Türkiye"

    def test_no_results(self):
        self.session.add(FakeResponse(200, {"status": "ZERO_RESULTS", "results": []}))

        with self.assertRaises(GeocodingError):
            geocode_city("Atlantis", api_key="maps-key", session=self.session)

    def test_errors(self):
        with self.assertRaises(GeocodingError):
            geocode_city("  ", api_key="maps-key", session=self.session)

        with mock.patch("geolocation.GOOGLE_MAPS_API_KEY", None):
            with self.assertRaises(MissingCredential):
                geocode_city("İstanbul", session=self.session)

        assert self.session.calls == []

        self.session.add(FakeResponse(500))
        with self.assertRaises(GeocodingError):
            geocode_city("İstanbul", api_key="maps-key", session=self.session)

        self.session.add(requests.Timeout("timed out"))
        with self.assertRaises(NetworkError):
            geocode_city("İstanbul", api_key="maps-key", session=self.session)

    def test_invalid_json(self):
        print("==Testing geocoding with a broken body...")

        self.session.add(FakeResponse(200, invalid_json=True))
        with self.assertRaises(GeocodingError):
            geocode_city("İstanbul", api_key="maps-key", session=self.session)

        self.session.add(FakeResponse(200, ["not", "an", "object"]))
        with self.assertRaises(GeocodingError):
            geocode_city("İstanbul", api_key="maps-key", session=self.session)


if __name__ == "__main__":
    unittest.main()
