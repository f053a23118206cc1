"""
HTTP client for the device-control server (LEDs, buzzer, LDR, ultrasonic).
Each reply is checked against one canonical shape; anything else is reported
as a MalformedPayload instead of being guessed at.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import requests
from pydantic import BaseModel, ValidationError, field_validator

import settings

# Controllable outputs, in display order
OUTPUTS = ("led1", "led2", "led3", "led4", "buzzer")
STATES = ("on", "off")

Reading = int | float | str


# ──────────────────────── Errors ────────────────────────
class DeviceError(Exception):
    """Base class for every failure talking to the device server."""


class TransportError(DeviceError):
    """Network failure, timeout or non-success HTTP status."""


class MalformedPayload(DeviceError, ValueError):
    """Reply body is not JSON or does not match the expected shape."""


class SensorFault(DeviceError):
    """The server answered, but reported that a sensor read failed."""

    def __init__(self, raw: Any):
        super().__init__(f"Sensor error reported by device: {raw}")
        self.raw = raw


# ──────────────────────── Reading Unwrap ────────────────────────
def _decode_object(text: str) -> dict | None:
    """Return `text` parsed as a JSON object, or None if it is not one."""
    try:
        decoded = json.loads(text)
    except ValueError:
        return None
    return decoded if isinstance(decoded, dict) else None


def unwrap_reading(value: Any, field: str) -> Any:
    """
    Recover a scalar reading that may arrive wrapped one level deep.

    Accepted forms (for field="ldr"):
    - 512 or "512"            -> returned unchanged
    - {"ldr": 512}            -> 512
    - '{"ldr": 512}'          -> 512

    The result is always a plain scalar, so unwrapping twice is a no-op.
    Raises MalformedPayload for any other shape.
    """
    if isinstance(value, str):
        decoded = _decode_object(value)
        if decoded is None:
            return value
        value = decoded

    if isinstance(value, dict):
        if field not in value:
            raise MalformedPayload(f"reading has no '{field}' field: {value!r}")
        inner = value[field]
        if isinstance(inner, (dict, list)) or (
            isinstance(inner, str) and _decode_object(inner) is not None
        ):
            raise MalformedPayload(f"'{field}' is nested more than one level: {inner!r}")
        return inner

    return value


# ──────────────────────── Canonical Reply Shapes ────────────────────────
class ControlReply(BaseModel):
    result: str


class LdrReply(BaseModel):
    ldr_value: Reading

    @field_validator("ldr_value", mode="before")
    @classmethod
    def _unwrap(cls, v):
        return unwrap_reading(v, "ldr")


class UltrasonicReply(BaseModel):
    distance_cm: Reading

    @field_validator("distance_cm", mode="before")
    @classmethod
    def _unwrap(cls, v):
        return unwrap_reading(v, "distance")


class CombinedReply(BaseModel):
    distance: Reading | None = None
    ldr: Reading | None = None
    error: Any = None
    raw: Any = None

    @field_validator("distance", "ldr", mode="before")
    @classmethod
    def _unwrap(cls, v, info):
        return None if v is None else unwrap_reading(v, info.field_name)

    @property
    def failed(self) -> bool:
        incomplete = self.distance is None or self.ldr is None
        return bool(self.error) or (self.raw is not None and incomplete)


# ──────────────────────── Client ────────────────────────
def output_path(output_id: str, state: str) -> str:
    """Map an output id and on/off state to its device-server path."""
    if state not in STATES:
        raise ValueError(f"state must be one of {STATES}, got {state!r}")
    if output_id == "buzzer":
        return f"/buzzer/{state}"
    if output_id in OUTPUTS:
        return f"/led/{output_id[len('led'):]}/{state}"
    raise ValueError(f"Unknown output: {output_id}")


class DeviceClient:
    """Thin request/response wrapper around the device-control server."""

    def __init__(
        self,
        base_url: str = settings.DEVICE_BASE_URL,
        timeout: float = settings.DEVICE_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # Used from several worker threads at once; only its urllib3 connection
        # pool (thread-safe) is relied on, no auth or session headers are set
        self.session = session or requests.Session()

    def _request(self, method: str, path: str) -> Any:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        try:
            return r.json()
        except ValueError as exc:
            raise MalformedPayload(
                f"{method} {path} returned a non-JSON body: {r.text[:80]!r}"
            ) from exc

    def _parse(self, model: type[BaseModel], payload: Any, path: str) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            logging.debug("Rejected payload from %s: %r", path, payload)
            raise MalformedPayload(f"unexpected reply from {path}: {exc}") from exc

    def set_output(self, output_id: str, state: str) -> str:
        """
        Switch an output on or off.

        Returns the server's `result` text, e.g. "LED1 ON".
        """
        path = output_path(output_id, state)
        reply = self._parse(ControlReply, self._request("POST", path), path)
        return reply.result

    def read_ldr(self) -> Reading:
        reply = self._parse(LdrReply, self._request("GET", "/ldr"), "/ldr")
        return reply.ldr_value

    def read_distance(self) -> Reading:
        reply = self._parse(UltrasonicReply, self._request("GET", "/ultrasonic"), "/ultrasonic")
        return reply.distance_cm

    def read_sensors(self) -> tuple[Reading, Reading]:
        """Return (distance, ldr) from the combined endpoint."""
        reply = self._parse(CombinedReply, self._request("GET", "/sensors"), "/sensors")
        if reply.failed:
            raise SensorFault(reply.raw if reply.raw is not None else reply.error)
        if reply.distance is None or reply.ldr is None:
            raise MalformedPayload(f"/sensors reply is missing a reading: {reply!r}")
        return reply.distance, reply.ldr

    def close(self) -> None:
        self.session.close()
