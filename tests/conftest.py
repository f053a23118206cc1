import pytest
import requests

from controller import DashboardController
from device_api import DeviceClient

BASE_URL = "http://device.test"


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=None):
        self.payload = payload
        self.status_code = status_code
        self.text = text if text is not None else repr(payload)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error", response=self)

    def json(self):
        if self.payload is None:
            raise ValueError("No JSON object could be decoded")
        return self.payload


class FakeSession:
    """
    Stands in for requests.Session.

    routes maps (METHOD, path) to a FakeResponse, an exception instance to
    raise, or a callable returning either. Unrouted requests fail with a
    ConnectionError, like an unreachable server.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.closed = False

    def route(self, method, path, reply):
        self.routes[(method, path)] = reply

    def request(self, method, url, timeout=None):
        assert url.startswith(BASE_URL)
        path = url[len(BASE_URL):]
        self.calls.append((method, path))
        reply = self.routes.get((method, path))
        if reply is None:
            raise requests.ConnectionError(f"Connection refused: {url}")
        if callable(reply) and not isinstance(reply, FakeResponse):
            reply = reply()
        if isinstance(reply, Exception):
            raise reply
        return reply

    def paths(self, method=None):
        return [p for m, p in self.calls if method is None or m == method]

    def close(self):
        self.closed = True


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def device(session):
    return DeviceClient(base_url=BASE_URL, timeout=1, session=session)


@pytest.fixture
def controller(device):
    return DashboardController(device, interval=60)
