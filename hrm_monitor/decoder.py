"""Decoders for BLE Heart Rate Service characteristic payloads."""

from enum import Enum


class DecodeError(ValueError):
    """Payload could not be decoded into a reading."""


class EmptyPayloadError(DecodeError):
    """Characteristic value carried no bytes."""


class PayloadTooShortError(DecodeError):
    """Payload ended before the field selected by its flags."""

    def __init__(self, length: int, required: int):
        super().__init__(f"Payload too short: {length} bytes, need {required}")
        self.length = length
        self.required = required


class BodySensorLocation(Enum):
    """Body Sensor Location values (characteristic 0x2A38)."""

    OTHER = 0
    CHEST = 1
    WRIST = 2
    FINGER = 3
    HAND = 4
    EAR_LOBE = 5
    FOOT = 6
    RESERVED = 7  # Stands in for every value from 7 to 255

    @property
    def label(self) -> str:
        return _LOCATION_LABELS[self]


_LOCATION_LABELS = {
    BodySensorLocation.OTHER: "Other",
    BodySensorLocation.CHEST: "Chest",
    BodySensorLocation.WRIST: "Wrist",
    BodySensorLocation.FINGER: "Finger",
    BodySensorLocation.HAND: "Hand",
    BodySensorLocation.EAR_LOBE: "Ear Lobe",
    BodySensorLocation.FOOT: "Foot",
    BodySensorLocation.RESERVED: "Reserved for future use",
}


def decode_body_location(payload: bytes) -> BodySensorLocation:
    """Decode a Body Sensor Location characteristic value.

    Only the first byte is inspected.

    Raises:
        EmptyPayloadError: If the payload has no bytes
    """
    if not payload:
        raise EmptyPayloadError("Empty body sensor location payload")

    value = payload[0]
    if value >= BodySensorLocation.RESERVED.value:
        return BodySensorLocation.RESERVED
    return BodySensorLocation(value)


def decode_heart_rate(payload: bytes) -> int:
    """Decode the BPM value of a Heart Rate Measurement notification.

    Args:
        payload: Raw bytes from HR measurement characteristic (0x2A37)

    Returns:
        Heart rate in beats per minute

    Raises:
        EmptyPayloadError: If the payload has no bytes
        PayloadTooShortError: If the BPM bytes selected by the format flag are missing
    """
    if not payload:
        raise EmptyPayloadError("Empty HR measurement payload")

    # Bit 0: HR format (0 = uint8 in byte 1, 1 = uint16 in bytes 1-2)
    is_16_bit = payload[0] & 0b1 == 1

    required = 3 if is_16_bit else 2
    if len(payload) < required:
        raise PayloadTooShortError(len(payload), required)

    if is_16_bit:
        return (payload[1] << 8) | payload[2]
    return payload[1]
