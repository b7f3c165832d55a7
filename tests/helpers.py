"""Shared test helper functions for hrm_monitor tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock


def make_hr_packet(bpm: int, *, is_16bit: bool = False, flags: int = 0) -> bytes:
    """Build a Heart Rate Measurement packet.

    The 16-bit value is written high byte first, matching how
    decode_heart_rate reads it.

    Args:
        bpm: Heart rate in BPM
        is_16bit: If True, use 16-bit BPM format
        flags: Extra flag bits to set alongside the format bit
    """
    if is_16bit:
        return bytes([flags | 0b1]) + bpm.to_bytes(2, "big")
    return bytes([flags & ~0b1, bpm])


def make_characteristic(uuid: str, properties: list[str]) -> MagicMock:
    """Build a mock BleakGATTCharacteristic."""
    char = MagicMock()
    char.uuid = uuid
    char.properties = properties
    return char


def make_client(*, characteristics: list | None = None, has_service: bool = True) -> AsyncMock:
    """Build a mock BleakClient exposing a Heart Rate service."""
    client = AsyncMock()
    client.address = "AA:BB:CC:DD:EE:FF"
    client.is_connected = True
    client.read_gatt_char = AsyncMock(return_value=bytearray(b"TestDevice"))

    service = MagicMock()
    service.characteristics = characteristics or []
    services = MagicMock()
    services.get_service = MagicMock(return_value=service if has_service else None)
    client.services = services

    return client
