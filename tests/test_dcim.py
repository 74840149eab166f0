"""
Tests for the Nautobot client.
"""

import json

import pynautobot
import pytest
import requests
from requests.adapters import HTTPAdapter

from gimme.core.config import load_settings
from gimme.core.errors import ApiError, FeatureDisabledError, NodeNotFound
from gimme.dcim import NautobotClient
from gimme.dcim.client import TimeoutHTTPAdapter

URL = "https://nautobot.example.com"

DEVICE = {
    "id": "5b1f7e1c-0000-4000-8000-000000000001",
    "name": "node-a1",
    "status": {"display": "Active", "name": "Active"},
    "role": {"display": "k8s-worker"},
    "serial": "ABC1234",
    "location": {"display": "dc1"},
    "rack": {"display": "r12", "name": "r12"},
    "position": 14,
    "face": {"value": "front", "label": "Front"},
    "comments": "",
}


def http_response(status_code, body, reason="Bad Request"):
    """A real requests.Response, as pynautobot.RequestError expects."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response.url = f"{URL}/api/dcim/devices/"
    response._content = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
    response.request = requests.Request("GET", response.url).prepare()
    return response


class FakeEndpoint:
    """Stands in for a pynautobot Endpoint; result is a list of records or an exception."""

    def __init__(self, result=None):
        self.result = [] if result is None else result
        self.calls = []

    def filter(self, **filters):
        self.calls.append(filters)
        if isinstance(self.result, Exception):
            raise self.result
        return list(self.result)


class FakeApp:
    def __init__(self, **endpoints):
        self.__dict__.update(endpoints)


class FakeApi:
    """Stands in for pynautobot.api."""

    def __init__(self, devices=None, notes=None):
        self.dcim = FakeApp(devices=FakeEndpoint(devices))
        self.extras = FakeApp(notes=FakeEndpoint(notes))


def client_for(devices=None, notes=None):
    api = FakeApi(devices, notes)
    return NautobotClient(URL, "0123456789abcdef", api=api), api


class TestNautobotClient:
    """Test device status, rack location and notes."""

    def test_from_settings_requires_url_and_token(self):
        with pytest.raises(FeatureDisabledError):
            NautobotClient.from_settings(load_settings(nautobot_url=URL))

    def test_from_settings(self):
        settings = load_settings(nautobot_url=URL + "/", nautobot_token="t0ken", nautobot_timeout="10s")
        client = NautobotClient.from_settings(settings, api=FakeApi())
        assert client.url == URL
        assert client.token == "t0ken"
        assert client.timeout == 10.0

    def test_device_status(self):
        client, api = client_for([DEVICE])
        assert client.device_status("node-a1") == "Active"
        assert api.dcim.devices.calls == [{"name": "node-a1", "depth": 1}]

    def test_rack_location(self):
        client, _ = client_for([DEVICE])
        location = client.rack_location("node-a1")
        assert location.rack == "r12"
        assert location.position == 14.0
        assert location.describe() == "dc1 / r12 / U14 (Front)"

    def test_unracked_device(self):
        client, _ = client_for([dict(DEVICE, rack=None, position=None, face=None)])
        assert client.rack_location("node-a1").describe() == "dc1 / not racked"

    def test_notes(self):
        client, api = client_for(
            [dict(DEVICE, comments="Replaced PSU 2")],
            [
                {"note": "Reimaged", "user_name": "alice", "created": "2024-03-01T10:00:00Z"},
                {"note": "BMC firmware updated", "user": {"display": "bob"}},
            ],
        )

        notes = client.notes("node-a1")

        assert [n.note for n in notes] == ["Replaced PSU 2", "Reimaged", "BMC firmware updated"]
        assert notes[0].author == "comments"
        assert notes[1].author == "alice"
        assert notes[2].author == "bob"
        assert api.extras.notes.calls == [
            {"assigned_object_type": "dcim.device", "assigned_object_id": DEVICE["id"]}
        ]

    def test_unknown_device(self):
        client, _ = client_for([])
        with pytest.raises(NodeNotFound):
            client.device_status("node-zz")

    def test_duplicate_device_names(self):
        client, _ = client_for([DEVICE, DEVICE])
        with pytest.raises(ApiError):
            client.device_status("node-a1")

    def test_http_error_carries_status(self):
        error = pynautobot.RequestError(http_response(403, {"detail": "Invalid token"}, "Forbidden"))
        client, _ = client_for(error)
        with pytest.raises(ApiError) as excinfo:
            client.device_status("node-a1")
        assert excinfo.value.status_code == 403
        assert "Invalid token" in str(excinfo.value)

    def test_list_bodied_validation_error(self):
        error = pynautobot.RequestError(http_response(400, ["bad filter"]))
        client, _ = client_for(error)
        with pytest.raises(ApiError) as excinfo:
            client.device_status("node-a1")
        assert excinfo.value.status_code == 400
        assert "bad filter" in str(excinfo.value)

    def test_non_json_error_body(self):
        error = pynautobot.RequestError(http_response(502, b"<html>Bad Gateway</html>", "Bad Gateway"))
        client, _ = client_for(error)
        with pytest.raises(ApiError) as excinfo:
            client.device_status("node-a1")
        assert excinfo.value.status_code == 502
        assert "Bad Gateway" in str(excinfo.value)

    def test_connection_error(self):
        client, _ = client_for(requests.ConnectionError("connection refused"))
        with pytest.raises(ApiError) as excinfo:
            client.device_status("node-a1")
        assert excinfo.value.status_code is None


class TestTimeoutHTTPAdapter:
    """Test the default request timeout."""

    def test_fills_in_missing_timeout(self, monkeypatch):
        seen = {}

        def send(self, request, **kwargs):
            seen.update(kwargs)

        monkeypatch.setattr(HTTPAdapter, "send", send)
        TimeoutHTTPAdapter(timeout=4.0).send(object(), timeout=None)
        assert seen["timeout"] == 4.0

        TimeoutHTTPAdapter(timeout=4.0).send(object(), timeout=1.0)
        assert seen["timeout"] == 1.0
