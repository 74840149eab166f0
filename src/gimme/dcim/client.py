"""
Nautobot DCIM client.

Wraps pynautobot for device status, rack location and notes. Only usable when
both NAUTOBOT_URL and NAUTOBOT_TOKEN are configured. Responses are never
cached; every call goes to the API.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import pynautobot
import requests
from requests.adapters import HTTPAdapter

from gimme.core.config import GimmeSettings
from gimme.core.errors import ApiError, FeatureDisabledError, NodeNotFound
from gimme.dcim.models import DcimDevice, DcimNote, RackLocation

logger = logging.getLogger(__name__)


class TimeoutHTTPAdapter(HTTPAdapter):
    """HTTPAdapter that applies a default timeout to every request."""

    def __init__(self, *args, timeout: Optional[float] = None, **kwargs):
        self.timeout = timeout
        super().__init__(*args, **kwargs)

    def send(self, request, **kwargs):
        if kwargs.get("timeout") is None:
            kwargs["timeout"] = self.timeout
        return super().send(request, **kwargs)


def _display(value: Any) -> Optional[str]:
    """Render a nested Nautobot value (object, choice or scalar) as text."""
    if value is None or value == "":
        return None
    if isinstance(value, dict):
        for key in ("display", "label", "name", "value"):
            if value.get(key):
                return str(value[key])
        return None
    return str(value)


def _error_detail(response: Any) -> str:
    """Best human readable message from an error response body."""
    try:
        body = response.json()
    except ValueError:
        return (getattr(response, "text", "") or "").strip()
    if isinstance(body, dict):
        body = body.get("detail") or body
    if isinstance(body, list):
        return "; ".join(str(item) for item in body)
    return str(body)


class NautobotClient:
    """
    Client for the Nautobot DCIM API.

    Usage:
        client = NautobotClient.from_settings(settings)
        print(client.device_status("node-a1"))
    """

    def __init__(
        self,
        url: str,
        token: str,
        timeout: Optional[float] = None,
        api: Optional[Any] = None,
    ):
        """
        Initialize Nautobot client.

        Args:
            url: Nautobot base URL (e.g. https://nautobot.example.com)
            token: API token
            timeout: Request timeout in seconds (default: none)
            api: pynautobot.api instance (injected in tests); built on first use otherwise
        """
        self.url = url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._api = api
        logger.debug(f"Initialized NautobotClient with URL: {self.url}")

    @classmethod
    def from_settings(cls, settings: GimmeSettings, api: Optional[Any] = None) -> "NautobotClient":
        """
        Build a client from settings.

        Raises:
            FeatureDisabledError: If URL or token is missing
        """
        if not settings.nautobot_enabled:
            raise FeatureDisabledError(
                "Nautobot integration is not configured "
                "(set NAUTOBOT_URL and NAUTOBOT_TOKEN in ~/.config/gimme/config)"
            )
        return cls(
            settings.nautobot_url,
            settings.nautobot_token,
            timeout=settings.nautobot_timeout,
            api=api,
        )

    @contextmanager
    def _api_errors(self) -> Iterator[None]:
        """Translate pynautobot and transport failures into ApiError."""
        try:
            yield
        except pynautobot.RequestError as e:
            status = getattr(e.req, "status_code", None)
            raise ApiError(f"Nautobot request failed: {_error_detail(e.req)}", status_code=status) from e
        except pynautobot.ContentError as e:
            raise ApiError(f"Nautobot returned invalid JSON: {e}") from e
        except requests.RequestException as e:
            raise ApiError(f"Cannot reach Nautobot at {self.url}: {e}") from e

    @property
    def api(self) -> Any:
        """The pynautobot API object, connected on first use."""
        if self._api is None:
            with self._api_errors():
                api = pynautobot.api(self.url, token=self.token)
            if self.timeout is not None:
                adapter = TimeoutHTTPAdapter(timeout=self.timeout)
                api.http_session.mount("http://", adapter)
                api.http_session.mount("https://", adapter)
            self._api = api
        return self._api

    def _filter(self, endpoint: Any, **filters: Any) -> List[Dict[str, Any]]:
        """Run a filtered list query and return plain dicts."""
        logger.debug(f"Nautobot query {filters}")
        with self._api_errors():
            return [dict(record) for record in endpoint.filter(**filters)]

    def _get_device(self, name: str) -> Dict[str, Any]:
        devices = self._filter(self.api.dcim.devices, name=name, depth=1)
        if not devices:
            raise NodeNotFound(name, where="Nautobot")
        if len(devices) > 1:
            raise ApiError(f"Nautobot returned {len(devices)} devices named '{name}'")
        return devices[0]

    def device(self, name: str) -> DcimDevice:
        """Return the device's status, role, serial and location."""
        record = self._get_device(name)
        position = record.get("position")
        return DcimDevice(
            name=str(record.get("name") or name),
            status=_display(record.get("status")),
            role=_display(record.get("role") or record.get("device_role")),
            serial=record.get("serial") or None,
            location=_display(record.get("location") or record.get("site")),
            rack=_display(record.get("rack")),
            position=float(position) if position is not None else None,
            face=_display(record.get("face")),
            comments=record.get("comments") or None,
        )

    def device_status(self, name: str) -> str:
        """Return the device's status label, e.g. 'Active'."""
        return self.device(name).status or "unknown"

    def rack_location(self, name: str) -> RackLocation:
        """Return where the device is racked."""
        device = self.device(name)
        return RackLocation(
            name=device.name,
            location=device.location,
            rack=device.rack,
            position=device.position,
            face=device.face,
        )

    def notes(self, name: str) -> List[DcimNote]:
        """
        Return the device's notes in API order.

        The device's free-text comments field, if set, is listed first.
        """
        record = self._get_device(name)
        result = []
        if record.get("comments"):
            result.append(DcimNote(note=record["comments"], author="comments"))

        notes = self._filter(
            self.api.extras.notes,
            assigned_object_type="dcim.device",
            assigned_object_id=record.get("id"),
        )
        for note in notes:
            result.append(
                DcimNote(
                    note=str(note.get("note") or ""),
                    author=note.get("user_name") or _display(note.get("user")),
                    created=note.get("created") or None,
                )
            )
        return result
