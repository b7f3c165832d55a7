"""BLE heart rate sensor scanning and GATT session."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from time import time_ns

from bleak import BleakClient, BleakScanner
from bleak.backends.characteristic import BleakGATTCharacteristic
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.backends.service import BleakGATTService
from bleak.uuids import normalize_uuid_str

from .decoder import BodySensorLocation, DecodeError, decode_body_location, decode_heart_rate

logger = logging.getLogger(__name__)

HR_SERVICE_UUID = normalize_uuid_str("180D")
HR_MEASUREMENT_UUID = normalize_uuid_str("2A37")
BODY_SENSOR_LOCATION_UUID = normalize_uuid_str("2A38")
DEVICE_NAME_UUID = normalize_uuid_str("2A00")


class SessionState(StrEnum):
    """States shown on the display while looking for and talking to a sensor.

    SCANNING is reported by the caller before a session exists; a
    HeartRateSession itself stays IDLE until it starts connecting.
    """

    IDLE = "idle"
    SCANNING = "scanning"
    CONNECTING = "connecting"
    DISCOVERING_SERVICES = "discovering_services"
    DISCOVERING_CHARACTERISTICS = "discovering_characteristics"
    READY = "ready"


HeartRateCallback = Callable[[int, int], Awaitable[None]]
BodyLocationCallback = Callable[[BodySensorLocation], Awaitable[None]]
StateCallback = Callable[[str, str | None], Awaitable[None]]


async def scan_hr_devices(
    timeout: float = 5.0,
    name_filter: str | None = None,
) -> list[tuple[str, str]]:
    """Scan for BLE devices advertising Heart Rate service.

    Args:
        timeout: Scan duration in seconds
        name_filter: Optional case-insensitive substring to filter device names

    Returns:
        List of (address, name) tuples in discovery order
    """
    devices: dict[str, str] = {}  # Keyed by address to deduplicate
    filter_lower = name_filter.lower() if name_filter else None

    def detection_callback(device: BLEDevice, adv: AdvertisementData) -> None:
        service_uuids = adv.service_uuids or []
        if HR_SERVICE_UUID not in service_uuids or device.address in devices:
            return
        name = device.name or "Unknown"
        if filter_lower is None or filter_lower in name.lower():
            logger.debug("Discovered: %s (%s)", name, device.address)
            devices[device.address] = name

    scanner = BleakScanner(detection_callback=detection_callback)
    await scanner.start()
    await asyncio.sleep(timeout)
    await scanner.stop()

    logger.debug("Scan complete, found %d device(s)", len(devices))
    return list(devices.items())


class HeartRateSession:
    """One connection to a heart rate peripheral, from connect to disconnect.

    The client is owned by the session for its whole lifetime. Values read
    or notified on the Heart Rate service are decoded and handed to the
    callbacks; payloads that fail to decode are logged and dropped so the
    last good reading stays on display.
    """

    def __init__(
        self,
        client: BleakClient,
        on_heart_rate: HeartRateCallback,
        on_body_location: BodyLocationCallback,
        on_state: StateCallback,
    ):
        self._client = client
        self.on_heart_rate = on_heart_rate
        self.on_body_location = on_body_location
        self.on_state = on_state
        self.state = SessionState.IDLE
        self._subscribed: list[BleakGATTCharacteristic] = []
        self._running = False

    @property
    def address(self) -> str:
        return self._client.address

    def _is_connected(self) -> bool:
        return self._client.is_connected

    async def _set_state(self, state: SessionState, device: str | None = None) -> None:
        """Record a state transition and report it."""
        logger.debug("Session state: %s -> %s", self.state, state)
        self.state = state
        await self.on_state(state, device)

    async def _connect(self) -> bool:
        """Attempt to connect to the peripheral."""
        await self._set_state(SessionState.CONNECTING)
        try:
            logger.debug("Connecting to %s...", self.address)
            await self._client.connect()
            return True
        except Exception as e:
            logger.warning("Connection failed: %s", e)
            return False

    async def _discover_service(self) -> BleakGATTService | None:
        """Find the Heart Rate service among the peripheral's services."""
        await self._set_state(SessionState.DISCOVERING_SERVICES)
        service = self._client.services.get_service(HR_SERVICE_UUID)
        if service is None:
            logger.warning("Heart Rate service not found on %s", self.address)
        return service

    async def _discover_characteristics(self, service: BleakGATTService) -> bool:
        """Read readable characteristics once and subscribe to notifying ones."""
        await self._set_state(SessionState.DISCOVERING_CHARACTERISTICS)
        for char in service.characteristics:
            logger.debug("Characteristic %s: %s", char.uuid, ", ".join(char.properties))

            if "read" in char.properties:
                await self._read_characteristic(char)

            if "notify" in char.properties:
                try:
                    await self._client.start_notify(char, self._notify_handler)
                except Exception as e:
                    logger.warning("Subscribing to %s failed: %s", char.uuid, e)
                    return False
                self._subscribed.append(char)
                logger.debug("Subscribed to %s notifications", char.uuid)
        return True

    async def _read_characteristic(self, char: BleakGATTCharacteristic) -> None:
        try:
            data = await self._client.read_gatt_char(char)
        except Exception as e:
            logger.warning("Reading %s failed: %s", char.uuid, e)
            return
        await self._dispatch(char.uuid, bytes(data))

    async def _notify_handler(self, char: BleakGATTCharacteristic, data: bytearray) -> None:
        """Handle incoming characteristic notifications."""
        await self._dispatch(char.uuid, bytes(data))

    async def _dispatch(self, uuid: str, data: bytes) -> None:
        """Decode a characteristic value and forward it to its callback."""
        if uuid == BODY_SENSOR_LOCATION_UUID:
            try:
                location = decode_body_location(data)
            except DecodeError as e:
                logger.warning("Malformed body sensor location: %s", e)
                return
            logger.info("Body sensor location: %s", location.label)
            await self.on_body_location(location)
        elif uuid == HR_MEASUREMENT_UUID:
            try:
                bpm = decode_heart_rate(data)
            except DecodeError as e:
                logger.warning("Malformed HR packet: %s", e)
                return
            timestamp_ms = time_ns() // 1_000_000
            logger.debug("BPM: %d", bpm)
            await self.on_heart_rate(bpm, timestamp_ms)
        else:
            logger.debug("Unhandled characteristic UUID: %s", uuid)

    async def _read_device_name(self) -> str:
        """Read device name from GATT, fallback to address."""
        try:
            name_bytes = await self._client.read_gatt_char(DEVICE_NAME_UUID)
            return name_bytes.decode("utf-8", errors="ignore")
        except Exception:
            return self.address

    async def _cleanup_client(self) -> None:
        """Unsubscribe and disconnect, tolerating an already dropped link."""
        subscribed, self._subscribed = self._subscribed, []
        if not self._is_connected():
            return
        try:
            for char in subscribed:
                await self._client.stop_notify(char)
            await self._client.disconnect()
            logger.debug("Disconnected from %s", self.address)
        except Exception as e:
            logger.debug("Error during disconnect: %s", e)

    async def run(self) -> bool:
        """Connect, set up the Heart Rate service and stay subscribed until disconnect.

        Returns:
            True if the session reached the ready state, False otherwise
        """
        self._running = True
        try:
            if not await self._connect():
                return False

            service = await self._discover_service()
            if service is None:
                return False

            if not await self._discover_characteristics(service):
                return False

            name = await self._read_device_name()
            logger.info("Connected to %s", name)
            await self._set_state(SessionState.READY, name)

            while self._running and self._is_connected():
                await asyncio.sleep(0.5)

            if self._running:
                logger.info("Peripheral disconnected")
            return True
        finally:
            self._running = False
            await self._cleanup_client()
            await self._set_state(SessionState.IDLE)

    async def stop(self) -> None:
        """Stop the session."""
        logger.debug("Stopping session...")
        self._running = False
        await self._cleanup_client()
