"""Entry point for hrm-monitor."""

import argparse
import asyncio
import logging
import signal

from bleak import BleakClient

from .ble import HeartRateSession, SessionState, scan_hr_devices
from .config import Config, load_config
from .log import setup_logging
from .server import HRMServer

logger = logging.getLogger(__name__)

# Set on SIGINT/SIGTERM
_shutdown_event: asyncio.Event | None = None


def _signal_handler() -> None:
    """Handle shutdown signals."""
    if _shutdown_event:
        logger.info("Shutdown requested...")
        _shutdown_event.set()


def _filter_description(name_filter: str | None) -> str:
    """Return description suffix for filter-aware messages."""
    return f" matching '{name_filter}'" if name_filter else ""


async def scan_until_found(
    config: Config,
    name_filter: str | None,
    server: HRMServer,
) -> str | None:
    """Scan repeatedly until a device is found, returning the first one's address."""
    desc = _filter_description(name_filter)

    while not (_shutdown_event and _shutdown_event.is_set()):
        await server.broadcast_status(SessionState.SCANNING, None)
        logger.info("Scanning for HR devices%s...", desc)

        devices = await scan_hr_devices(
            timeout=config.ble.scan_timeout,
            name_filter=name_filter,
        )

        if _shutdown_event and _shutdown_event.is_set():
            break

        if devices:
            address, name = devices[0]
            logger.info("Found: %s (%s)", name, address)
            return address

        logger.warning("No HR devices%s found, retrying in %.0fs...", desc, config.ble.scan_timeout)
        await asyncio.sleep(config.ble.scan_timeout)

    return None


async def run(config: Config, host: str, port: int, device: str | None, name_filter: str | None) -> None:
    """Run the heart rate monitor."""
    global _shutdown_event
    _shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    # Display comes up first so clients can watch the scan
    server = HRMServer(
        host=host,
        port=port,
        broadcast_timeout=config.server.broadcast_timeout,
    )
    await server.start()
    logger.info("WebSocket server running on ws://%s:%d", host, port)

    session = None
    try:
        if device:
            address = device
        else:
            address = await scan_until_found(config, name_filter, server)

        # Shutdown requested while scanning
        if address is None:
            return

        session = HeartRateSession(
            client=BleakClient(address, timeout=config.ble.connect_timeout),
            on_heart_rate=server.show_heart_rate,
            on_body_location=server.show_body_location,
            on_state=server.broadcast_status,
        )

        session_task = asyncio.create_task(session.run())
        shutdown_task = asyncio.create_task(_shutdown_event.wait())

        done, pending = await asyncio.wait(
            [session_task, shutdown_task],
            return_when=asyncio.FIRST_COMPLETED,
        )

        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if session_task in done and not session_task.result():
            logger.error("Could not set up heart rate session with %s", address)
    finally:
        if session:
            await session.stop()
        await server.stop()
        logger.info("Shutdown complete")


def main() -> None:
    """CLI entry point."""
    config = load_config()

    parser = argparse.ArgumentParser(description="BLE Heart Rate Monitor")
    parser.add_argument("-H", "--host", default=config.server.host, help="Server host")
    parser.add_argument("-p", "--port", type=int, default=config.server.port, help="Server port")
    parser.add_argument("-d", "--device", default=config.device.address or None, help="Device address (skip scanning)")
    parser.add_argument(
        "-n",
        "--name",
        default=config.device.name_filter or None,
        help="Filter by device name (case-insensitive, connects to first match)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    # Logging before anything else
    log_level = "DEBUG" if args.verbose else config.server.log_level
    setup_logging(log_level)

    asyncio.run(run(config, args.host, args.port, args.device, args.name))


if __name__ == "__main__":
    main()
