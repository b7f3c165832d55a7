"""BLE Heart Rate Monitor."""

from .ble import HeartRateSession, SessionState, scan_hr_devices
from .config import Config, load_config
from .decoder import (
    BodySensorLocation,
    DecodeError,
    EmptyPayloadError,
    PayloadTooShortError,
    decode_body_location,
    decode_heart_rate,
)
from .log import setup_logging
from .server import HRMServer

__all__ = [
    "decode_body_location",
    "decode_heart_rate",
    "BodySensorLocation",
    "DecodeError",
    "EmptyPayloadError",
    "PayloadTooShortError",
    "HeartRateSession",
    "SessionState",
    "scan_hr_devices",
    "Config",
    "load_config",
    "setup_logging",
    "HRMServer",
]
