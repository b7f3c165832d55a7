"""Shared test fixtures for hrm_monitor tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from hrm_monitor.ble import BODY_SENSOR_LOCATION_UUID, HR_MEASUREMENT_UUID, HeartRateSession
from tests.helpers import make_characteristic, make_client, make_hr_packet


@pytest.fixture
def hr_packet_simple() -> bytes:
    """Simple 8-bit BPM packet (72 bpm)."""
    return make_hr_packet(72)


@pytest.fixture
def hr_packet_16bit() -> bytes:
    """16-bit BPM packet (300 bpm)."""
    return make_hr_packet(300, is_16bit=True)


# Mock fixtures for BLE
@pytest.fixture
def location_char():
    """Readable Body Sensor Location characteristic."""
    return make_characteristic(BODY_SENSOR_LOCATION_UUID, ["read"])


@pytest.fixture
def measurement_char():
    """Notifying Heart Rate Measurement characteristic."""
    return make_characteristic(HR_MEASUREMENT_UUID, ["notify"])


@pytest.fixture
def mock_bleak_client(location_char, measurement_char):
    """Mock BleakClient with both Heart Rate characteristics."""
    return make_client(characteristics=[location_char, measurement_char])


@pytest.fixture
def callbacks():
    """Session callbacks as a simple namespace of AsyncMocks."""
    cb = MagicMock()
    cb.on_heart_rate = AsyncMock()
    cb.on_body_location = AsyncMock()
    cb.on_state = AsyncMock()
    return cb


@pytest.fixture
def session(mock_bleak_client, callbacks):
    """HeartRateSession wired to a mock client."""
    return HeartRateSession(
        mock_bleak_client,
        on_heart_rate=callbacks.on_heart_rate,
        on_body_location=callbacks.on_body_location,
        on_state=callbacks.on_state,
    )


@pytest.fixture
def mock_ble_device():
    """Create a mock BLEDevice."""
    device = MagicMock()
    device.address = "AA:BB:CC:DD:EE:FF"
    device.name = "HR Monitor"
    return device


@pytest.fixture
def mock_advertisement_data():
    """Create mock AdvertisementData with HR service UUID."""
    from bleak.uuids import normalize_uuid_str

    adv = MagicMock()
    adv.service_uuids = [normalize_uuid_str("180D")]
    return adv


# Mock fixtures for WebSocket
@pytest.fixture
def mock_websocket():
    """Create a mock WebSocket connection."""
    ws = AsyncMock()
    ws.send = AsyncMock()
    ws.close = AsyncMock()
    return ws


# Config fixtures
@pytest.fixture
def sample_config_dict() -> dict:
    """Sample config dict as would be parsed from TOML."""
    return {
        "server": {
            "host": "0.0.0.0",
            "port": 9000,
            "broadcast_timeout": 1.0,
            "log_level": "DEBUG",
        },
        "ble": {
            "scan_timeout": 10.0,
            "connect_timeout": 20.0,
        },
        "device": {
            "address": "11:22:33:44:55:66",
            "name_filter": "Polar",
        },
    }


@pytest.fixture
def partial_config_dict() -> dict:
    """Partial config dict with some values missing."""
    return {
        "server": {"port": 8080},
        "ble": {"scan_timeout": 3.0},
    }
