import json

import pytest

from glass_scout import TelemetryPacket, DecodeErrorKind, decode_datagram

from conftest import SAMPLE_PAYLOAD, encode


def test_decode_reads_capitalized_wire_keys(sample_datagram):
    result = decode_datagram(sample_datagram, "10.0.1.29")

    assert result.ok
    packet = result.packet
    assert packet.heading == 110.7
    assert packet.pitch == -1.58
    assert packet.light_level == 46
    assert isinstance(packet.light_level, int)
    assert packet.linear_acceleration == (0.34, 0.32, 0.02)
    assert packet.gravity == (1.28, 1.28, 1.28)
    assert packet.lat == 42.583073
    assert packet.lng == -83.6001525
    assert packet.time == 1396035112067
    assert packet.glass_id == "android_id"
    assert packet.source_address == "10.0.1.29"


def test_decode_accepts_float_light_level():
    packet = decode_datagram(encode({"LightLevel": 12.5}), "10.0.0.1").packet

    assert packet.light_level == 12.5


def test_decode_matches_keys_case_insensitively():
    result = decode_datagram(encode({"heading": 1.5, "PITCH": 2.5, "linearacceleration": [1, 2, 3]}))

    assert result.ok
    assert result.packet.heading == 1.5
    assert result.packet.pitch == 2.5
    assert result.packet.accel_z == 3.0


def test_sender_address_overrides_payload_address():
    payload = dict(SAMPLE_PAYLOAD, address="1.2.3.4")

    packet = decode_datagram(encode(payload), "10.0.1.29").packet

    assert packet.source_address == "10.0.1.29"


def test_missing_fields_decode_to_none():
    packet = decode_datagram(encode({"Heading": 10.0}), "10.0.0.1").packet

    assert packet.heading == 10.0
    assert packet.pitch is None
    assert packet.light_level is None
    assert packet.linear_acceleration is None
    assert packet.accel_x is None
    assert packet.accel_y is None
    assert packet.accel_z is None


def test_unknown_fields_are_ignored():
    result = decode_datagram(encode({"Heading": 10.0, "Battery": 99}), "10.0.0.1")

    assert result.ok


@pytest.mark.parametrize(
    "data, kind",
    [
        (b"\xff\xfe\xfa", DecodeErrorKind.NOT_UTF8),
        (b"Fri Mar 28 15:31:52 EDT 2014", DecodeErrorKind.NOT_JSON),
        (b"", DecodeErrorKind.NOT_JSON),
        (b"[1, 2, 3]", DecodeErrorKind.NOT_OBJECT),
        (b"[" * 60000, DecodeErrorKind.NOT_JSON),
    ],
)
def test_decode_failures_are_reported_not_raised(data, kind):
    result = decode_datagram(data, "10.0.0.1")

    assert not result.ok
    assert result.kind == kind
    assert result.packet is None
    assert result.error


def test_packet_is_immutable(sample_datagram):
    packet = decode_datagram(sample_datagram, "10.0.1.29").packet

    with pytest.raises(Exception):
        packet.heading = 0.0


def test_to_wire_uses_capitalized_keys_and_omits_source_address():
    packet = TelemetryPacket(heading=1.0, linear_acceleration=(0.1, 0.2, 0.3), source_address="10.0.0.9")

    wire = packet.to_wire()

    assert wire == {"Heading": 1.0, "LinearAcceleration": [0.1, 0.2, 0.3]}
    assert json.loads(packet.to_bytes().decode("utf-8")) == wire


@pytest.mark.parametrize(
    "field, bad_value, attribute",
    [
        ("Heading", "north", "heading"),
        ("LinearAcceleration", [1.0, 2.0], "linear_acceleration"),
        ("LightLevel", {"lux": 3}, "light_level"),
        ("GlassId", 12345, "glass_id"),
        ("Gravity", [1.0, 2.0], "gravity"),
        ("Time", "yesterday", "time"),
        ("Lat", [42], "lat"),
    ],
)
def test_invalid_field_is_blanked_and_packet_kept(field, bad_value, attribute):
    payload = dict(SAMPLE_PAYLOAD)
    payload[field] = bad_value

    result = decode_datagram(encode(payload), "10.0.1.29")

    assert result.ok
    assert getattr(result.packet, attribute) is None
    assert result.packet.pitch == -1.58
    assert result.packet.source_address == "10.0.1.29"
