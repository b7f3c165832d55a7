"""WebSocket server showing the live heart rate readings."""

import asyncio
import json
import logging

from websockets.asyncio.server import ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from .decoder import BodySensorLocation

logger = logging.getLogger(__name__)


class HRMServer:
    """Display surface that broadcasts readings to all connected clients.

    The last shown values are kept so that a client connecting mid-session
    sees the current heart rate and sensor location right away.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 8765,
        broadcast_timeout: float = 0.5,
    ):
        self.host = host
        self.port = port
        self._broadcast_timeout = broadcast_timeout
        self._clients: set[ServerConnection] = set()
        self._server = None
        self.heart_rate: int | None = None
        self.heart_rate_timestamp: int | None = None
        self.body_location: BodySensorLocation | None = None
        self.status: str | None = None
        self.device: str | None = None

    def _client_info(self, websocket: ServerConnection) -> str:
        """Get client info string for logging."""
        addr = websocket.remote_address
        if addr:
            return f"{addr[0]}:{addr[1]}"
        return "unknown"

    def snapshot(self) -> dict:
        """Currently displayed values, omitting anything never shown."""
        msg: dict[str, str | int] = {}
        if self.status is not None:
            msg["status"] = self.status
        if self.device:
            msg["device"] = self.device
        if self.heart_rate is not None:
            msg["bpm"] = self.heart_rate
            msg["timestamp"] = self.heart_rate_timestamp
        if self.body_location is not None:
            msg["body_location"] = self.body_location.label
        return msg

    async def _handler(self, websocket: ServerConnection) -> None:
        """Handle a WebSocket connection."""
        self._clients.add(websocket)
        logger.info("Client connected: %s (%d total)", self._client_info(websocket), len(self._clients))
        try:
            current = self.snapshot()
            if current:
                await websocket.send(json.dumps(current))
            async for _ in websocket:
                pass  # Clients only listen
        except ConnectionClosed:
            pass  # Client went away, cleanly or not
        finally:
            self._clients.discard(websocket)
            logger.info("Client disconnected: %s (%d total)", self._client_info(websocket), len(self._clients))

    async def broadcast(self, message: dict) -> None:
        """Broadcast a message to all connected clients."""
        if not self._clients:
            return
        # Snapshot clients, the set may change while sends are pending
        clients = list(self._clients)
        data = json.dumps(message)
        try:
            results = await asyncio.wait_for(
                asyncio.gather(
                    *[client.send(data) for client in clients],
                    return_exceptions=True,
                ),
                timeout=self._broadcast_timeout,
            )
            self._remove_failed_clients(clients, results)
        except TimeoutError:
            logger.warning("Broadcast timeout, slow client(s) skipped")

    def _remove_failed_clients(self, clients: list[ServerConnection], results: list) -> None:
        """Remove clients that failed to receive a message."""
        for client, result in zip(clients, results, strict=True):
            if isinstance(result, Exception):
                self._clients.discard(client)
                logger.debug("Removed failed client: %s", result)

    async def show_heart_rate(self, bpm: int, timestamp_ms: int) -> None:
        """Display a new heart rate reading."""
        self.heart_rate = bpm
        self.heart_rate_timestamp = timestamp_ms
        await self.broadcast({"bpm": bpm, "timestamp": timestamp_ms})

    async def show_body_location(self, location: BodySensorLocation) -> None:
        """Display the sensor's body location."""
        self.body_location = location
        await self.broadcast({"body_location": location.label})

    async def broadcast_status(self, status: str, device: str | None = None) -> None:
        """Display the session status."""
        self.status = str(status)
        self.device = device
        msg = {"status": self.status}
        if device:
            msg["device"] = device
        await self.broadcast(msg)

    async def start(self) -> None:
        """Start the WebSocket server."""
        self._server = await serve(self._handler, self.host, self.port)
        logger.debug("Server started on %s:%d", self.host, self.port)

    async def stop(self) -> None:
        """Stop the WebSocket server."""
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            logger.debug("Server stopped")

    @property
    def client_count(self) -> int:
        """Number of connected clients."""
        return len(self._clients)
