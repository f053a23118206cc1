import pytest
import requests

from conftest import FakeResponse
from device_api import (
    OUTPUTS,
    MalformedPayload,
    SensorFault,
    TransportError,
    output_path,
    unwrap_reading,
)


@pytest.mark.parametrize(
    "output_id,state,path",
    [
        ("led1", "on", "/led/1/on"),
        ("led4", "off", "/led/4/off"),
        ("buzzer", "on", "/buzzer/on"),
        ("buzzer", "off", "/buzzer/off"),
    ],
)
def test_output_path(output_id, state, path):
    assert output_path(output_id, state) == path


@pytest.mark.parametrize("output_id,state", [("led5", "on"), ("fan", "off"), ("led1", "toggle")])
def test_output_path_rejects_unknown(output_id, state):
    with pytest.raises(ValueError):
        output_path(output_id, state)


def test_set_output_posts_once_and_returns_result(device, session):
    session.route("POST", "/led/2/on", FakeResponse({"result": "LED2 ON"}))

    assert device.set_output("led2", "on") == "LED2 ON"
    assert session.calls == [("POST", "/led/2/on")]


def test_http_error_status_is_transport_error(device, session):
    session.route("POST", "/buzzer/on", FakeResponse({"detail": "boom"}, status_code=500))

    with pytest.raises(TransportError):
        device.set_output("buzzer", "on")


def test_unreachable_server_is_transport_error(device):
    with pytest.raises(TransportError):
        device.read_ldr()


def test_timeout_is_transport_error(device, session):
    session.route("GET", "/ultrasonic", requests.Timeout("read timed out"))

    with pytest.raises(TransportError):
        device.read_distance()


def test_non_json_body_is_malformed(device, session):
    session.route("GET", "/ldr", FakeResponse(None, text="<html>oops</html>"))

    with pytest.raises(MalformedPayload):
        device.read_ldr()


def test_control_reply_without_result_is_malformed(device, session):
    session.route("POST", "/led/1/off", FakeResponse({"status": "ok"}))

    with pytest.raises(MalformedPayload):
        device.set_output("led1", "off")


# ─────────────────────── Reading unwrap ───────────────────────
@pytest.mark.parametrize(
    "value,expected",
    [
        (512, 512),
        (12.5, 12.5),
        ("512", "512"),
        ("n/a", "n/a"),
        ({"ldr": 512}, 512),
        ('{"ldr": 512}', 512),
        ('{"ldr": "dark"}', "dark"),
    ],
)
def test_unwrap_reading(value, expected):
    assert unwrap_reading(value, "ldr") == expected


@pytest.mark.parametrize("value", [512, "512", {"ldr": 7}, '{"ldr": 7}', '{"ldr": 3.5}'])
def test_unwrap_is_idempotent(value):
    once = unwrap_reading(value, "ldr")
    assert unwrap_reading(once, "ldr") == once


@pytest.mark.parametrize(
    "value",
    [
        {"distance": 4},
        '{"other": 1}',
        {"ldr": {"ldr": 1}},
        {"ldr": '{"ldr": 1}'},
        {"ldr": [1, 2]},
    ],
)
def test_unwrap_rejects_unexpected_shapes(value):
    with pytest.raises(MalformedPayload):
        unwrap_reading(value, "ldr")


def test_read_ldr_unwraps_double_encoding(device, session):
    session.route("GET", "/ldr", FakeResponse({"ldr_value": '{"ldr": 731}'}))

    assert device.read_ldr() == 731


def test_read_distance_plain_value(device, session):
    session.route("GET", "/ultrasonic", FakeResponse({"distance_cm": 23.4}))

    assert device.read_distance() == 23.4


def test_read_distance_wrong_inner_field_is_malformed(device, session):
    session.route("GET", "/ultrasonic", FakeResponse({"distance_cm": '{"ldr": 1}'}))

    with pytest.raises(MalformedPayload):
        device.read_distance()


# ─────────────────────── Combined endpoint ───────────────────────
def test_read_sensors_returns_both(device, session):
    session.route("GET", "/sensors", FakeResponse({"distance": 42, "ldr": 300}))

    assert device.read_sensors() == (42, 300)


def test_read_sensors_error_indicator(device, session):
    session.route("GET", "/sensors", FakeResponse({"error": "parse failed", "raw": "D:??"}))

    with pytest.raises(SensorFault) as info:
        device.read_sensors()
    assert info.value.raw == "D:??"


def test_read_sensors_raw_only_is_fault(device, session):
    session.route("GET", "/sensors", FakeResponse({"raw": "garbage"}))

    with pytest.raises(SensorFault):
        device.read_sensors()


def test_read_sensors_missing_field_is_malformed(device, session):
    session.route("GET", "/sensors", FakeResponse({"distance": 42}))

    with pytest.raises(MalformedPayload):
        device.read_sensors()


def test_outputs_are_fixed():
    assert OUTPUTS == ("led1", "led2", "led3", "led4", "buzzer")
