# fakes.py
# Test doubles shared by the *_test.py modules: a requests-like session
# that returns canned responses and records what was sent.

from collections import deque


class FakeResponse:
    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json or self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """
    Stand-in for requests.Session.

    Queue responses (or exceptions) with add(); every post()/get() pops
    the next one. calls keeps (method, url, kwargs) for assertions.
    on_request, when set, is called before the response is returned.
    """

    def __init__(self, *responses):
        self.responses = deque(responses)
        self.calls = []
        self.on_request = None

    def add(self, response):
        self.responses.append(response)
        return self

    def _next(self, method, url, kwargs):
        self.calls.append((method, url, kwargs))
        if self.on_request is not None:
            self.on_request()
        if not self.responses:
            raise AssertionError(f"Unexpected {method} {url}")
        response = self.responses.popleft()
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url, **kwargs):
        return self._next("POST", url, kwargs)

    def get(self, url, **kwargs):
        return self._next("GET", url, kwargs)

    @property
    def bodies(self):
        return [kwargs.get("json") for _, _, kwargs in self.calls]


def place(name, lat=41.0, lon=29.0, rating=None, place_id=None, **extra):
    """A Google Places v1 record as returned with our field mask."""
    record = {"displayName": {"text": name, "languageCode": "tr"}}
    if lat is not None and lon is not None:
        record["location"] = {"latitude": lat, "longitude": lon}
    if rating is not None:
        record["rating"] = rating
    if place_id is not None:
        record["id"] = place_id
    record.update(extra)
    return record


def places_payload(*places, next_page_token=None):
    payload = {"places": list(places)}
    if next_page_token:
        payload["nextPageToken"] = next_page_token
    return payload
