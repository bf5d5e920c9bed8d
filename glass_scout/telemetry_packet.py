#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Abstraction of a telemetry datagram sent by a glass device.

A glass device broadcasts a UTF-8 JSON object over UDP several times a second, e.g.:

    { "GlassId": "android_id",
      "Heading": 110.71527099609375,
      "Pitch": -1.5754826068878174,
      "LightLevel": 46,
      "Gravity": [ 1.28, 1.28, 1.28 ],
      "LinearAcceleration": [ 0.3386, 0.3227, 0.0233 ],
      "Lat": 42.583073,
      "Lng": -83.6001525,
      "Time": 1396035112067 }

Every field is optional on the wire; an absent field decodes to None. The sender's
IP address is not part of the payload--it is attached by the receiver.
"""

from __future__ import annotations

import json
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, ValidatorFunctionWrapHandler, field_validator

from .internal_types import *
from .pkg_logging import logger
from .util import canonicalize_keys

Vector3 = Tuple[float, float, float]

class TelemetryPacket(BaseModel):
    """One decoded telemetry update from a glass device. Immutable."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra='ignore')

    heading: Optional[float] = Field(None, alias='Heading', description="Compass heading in degrees")
    pitch: Optional[float] = Field(None, alias='Pitch', description="Head pitch in degrees")
    light_level: Optional[Union[int, float]] = Field(None, alias='LightLevel', description="Ambient light sensor reading")
    linear_acceleration: Optional[Vector3] = Field(None, alias='LinearAcceleration', description="Acceleration minus gravity (x, y, z)")
    gravity: Optional[Vector3] = Field(None, alias='Gravity')
    lat: Optional[float] = Field(None, alias='Lat')
    lng: Optional[float] = Field(None, alias='Lng')
    time: Optional[int] = Field(None, alias='Time', description="Device clock, milliseconds since the epoch")
    glass_id: Optional[str] = Field(None, alias='GlassId')
    source_address: Optional[str] = Field(None, alias='address', description="IP address of the sender, set by the receiver")

    @field_validator("*", mode="wrap")
    @classmethod
    def _invalid_field_to_none(cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo) -> Any:
        # a bad value only blanks its own field; the rest of the packet is still usable
        try:
            return handler(value)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid value for telemetry field '{info.field_name}': {value!r} ({e.error_count()} error(s))")
            return None

    @property
    def accel_x(self) -> Optional[float]:
        return None if self.linear_acceleration is None else self.linear_acceleration[0]

    @property
    def accel_y(self) -> Optional[float]:
        return None if self.linear_acceleration is None else self.linear_acceleration[1]

    @property
    def accel_z(self) -> Optional[float]:
        return None if self.linear_acceleration is None else self.linear_acceleration[2]

    def to_wire(self) -> JsonableDict:
        """Returns the wire representation (capitalized keys) of this packet, omitting absent
           fields and the receiver-assigned source address."""
        result: JsonableDict = self.model_dump(by_alias=True, exclude_none=True, exclude={'source_address'}, mode='json')
        return result

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_wire()).encode('utf-8')

WIRE_FIELD_NAMES: Tuple[str, ...] = tuple(
    field.alias for field in TelemetryPacket.model_fields.values() if not field.alias is None
  )
"""The canonical wire keys understood by TelemetryPacket."""

class DecodeErrorKind(str, Enum):
    OK = 'ok'
    NOT_UTF8 = 'not_utf8'
    NOT_JSON = 'not_json'
    NOT_OBJECT = 'not_object'
    INVALID_FIELDS = 'invalid_fields'

class DecodeResult:
    """The outcome of decoding one datagram. Exactly one of packet or error is set."""

    kind: DecodeErrorKind
    packet: Optional[TelemetryPacket]
    error: Optional[str]

    def __init__(self, kind: DecodeErrorKind, packet: Optional[TelemetryPacket]=None, error: Optional[str]=None):
        assert (kind == DecodeErrorKind.OK) == (not packet is None)
        self.kind = kind
        self.packet = packet
        self.error = error

    @property
    def ok(self) -> bool:
        return self.kind == DecodeErrorKind.OK

    def __str__(self) -> str:
        if self.ok:
            return f"DecodeResult(ok, {self.packet!r})"
        return f"DecodeResult({self.kind.value}: {self.error})"

    def __repr__(self) -> str:
        return str(self)

def decode_datagram(data: bytes, source_address: Optional[str]=None) -> DecodeResult:
    """Decodes a raw UDP payload into a TelemetryPacket.

    Never raises for bad input; the reason for a failure is reported in the
    returned DecodeResult. If source_address is provided it replaces any
    "address" key present in the payload.
    """
    try:
        text = data.decode('utf-8')
    except UnicodeDecodeError as e:
        return DecodeResult(DecodeErrorKind.NOT_UTF8, error=str(e))
    try:
        obj = json.loads(text)
    except (ValueError, RecursionError) as e:
        return DecodeResult(DecodeErrorKind.NOT_JSON, error=str(e))
    if not isinstance(obj, dict):
        return DecodeResult(DecodeErrorKind.NOT_OBJECT, error=f"Expected a JSON object, got {type(obj).__name__}")
    fields = canonicalize_keys(obj, WIRE_FIELD_NAMES)
    if not source_address is None:
        fields.pop('source_address', None)
        fields['address'] = source_address
    try:
        packet = TelemetryPacket.model_validate(fields)
    except ValidationError as e:
        return DecodeResult(DecodeErrorKind.INVALID_FIELDS, error=str(e))
    return DecodeResult(DecodeErrorKind.OK, packet=packet)
