import json

import pytest

SAMPLE_PAYLOAD = {
    "Lng": -83.6001525,
    "Time": 1396035112067,
    "Gravity": [1.28, 1.28, 1.28],
    "LightLevel": 46,
    "Heading": 110.7,
    "Lat": 42.583073,
    "LinearAcceleration": [0.34, 0.32, 0.02],
    "GlassId": "android_id",
    "Pitch": -1.58,
}

SAMPLE_ADDR = ("10.0.1.29", 50123)


class RecordingEmitter:
    def __init__(self, name):
        self.name = name
        self.values = []

    def emit(self, value):
        self.values.append(value)


class RecordingRegistry:
    """A StreamRegistry that hands out RecordingEmitters, optionally only for some names."""

    def __init__(self, only=None):
        self.only = only
        self.requested = []
        self.emitters = {}

    def stream(self, name, on_registered):
        self.requested.append(name)
        if self.only is None or name in self.only:
            emitter = RecordingEmitter(name)
            self.emitters[name] = emitter
            on_registered(emitter)
        return self

    def emitted(self):
        return {name: emitter.values for name, emitter in self.emitters.items() if emitter.values}


def encode(payload):
    return json.dumps(payload).encode("utf-8")


@pytest.fixture
def sample_payload():
    return dict(SAMPLE_PAYLOAD)


@pytest.fixture
def sample_datagram():
    return encode(SAMPLE_PAYLOAD)
