"""
Connection Adapter
==================

Duplex WebSocket channel between the client and the telemetry server.

This module provides:
    - ConnectionAdapter: Protocol the streaming core depends on
    - WebSocketConnection: websockets-based implementation that
        - Connects to the server and keeps the channel open
        - Delivers inbound text messages to ``on_server_message``
        - Reconnects with exponential backoff
        - Drives the Session state machine from socket events

Design Rules:
    - The adapter alone owns reconnect/backoff policy
    - Inbound callbacks run synchronously on the event loop thread
    - Sends issued by one caller keep their order on the wire
    - Exceptions from the inbound callback never tear down the connection
"""

import asyncio
import logging
from typing import Callable, Optional, Protocol, Set

import websockets
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedError,
    ConnectionClosedOK,
)

from posecast.errors import NotConnectedError
from posecast.session import Session, SessionState


logger = logging.getLogger(__name__)


MessageCallback = Callable[[str], None]


class ConnectionAdapter(Protocol):
    """
    Contract between the streaming core and the transport.

    The core only needs to start the channel, send text or binary frames,
    and be notified of inbound text.
    """

    on_server_message: Optional[MessageCallback]

    def start_connection(self) -> "asyncio.Task":
        ...

    def send_text(self, text: str) -> None:
        ...

    async def send_text_async(self, text: str) -> None:
        ...

    def send_binary(self, data: bytes) -> None:
        ...


class ConnectionMetrics:
    """Metrics for WebSocketConnection observability."""

    __slots__ = (
        "connect_count",
        "reconnect_count",
        "messages_received",
        "binary_ignored",
        "messages_sent",
        "handler_errors",
    )

    def __init__(self) -> None:
        self.connect_count: int = 0
        self.reconnect_count: int = 0
        self.messages_received: int = 0
        self.binary_ignored: int = 0
        self.messages_sent: int = 0
        self.handler_errors: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "connect_count": self.connect_count,
            "reconnect_count": self.reconnect_count,
            "messages_received": self.messages_received,
            "binary_ignored": self.binary_ignored,
            "messages_sent": self.messages_sent,
            "handler_errors": self.handler_errors,
        }


class WebSocketConnection:
    """
    WebSocket connection to the telemetry server.

    Attributes:
        url: WebSocket URL to connect to
        session: Session state machine driven by this connection
        on_server_message: Callback for inbound text messages
        metrics: Operational metrics

    Example:
        session = Session()
        connection = WebSocketConnection(
            url="ws://localhost:8765/ws",
            session=session,
            reconnect_backoff_ms=500,
        )
        connection.on_server_message = dispatcher.dispatch

        task = connection.start_connection()
        ...
        await connection.stop()
        await task
    """

    def __init__(
        self,
        url: str,
        session: Session,
        reconnect_backoff_ms: int = 500,
        max_reconnect_backoff_ms: int = 10_000,
        max_reconnect_attempts: int = 0,
        ping_interval: Optional[float] = 20.0,
        ping_timeout: Optional[float] = 10.0,
        close_timeout: float = 5.0,
        on_server_message: Optional[MessageCallback] = None,
    ) -> None:
        """
        Initialize connection.

        Args:
            url: WebSocket URL of the telemetry server
            session: Session to drive through the connection lifecycle
            reconnect_backoff_ms: Base backoff before the first reconnect
            max_reconnect_backoff_ms: Upper bound on the backoff
            max_reconnect_attempts: Consecutive failures allowed (0 = unlimited)
            ping_interval: Keepalive ping interval in seconds
            ping_timeout: Keepalive pong timeout in seconds
            close_timeout: Seconds to wait for the closing handshake
            on_server_message: Callback for inbound text messages
        """
        self.url = url
        self.session = session
        self.reconnect_backoff_ms = reconnect_backoff_ms
        self.max_reconnect_backoff_ms = max_reconnect_backoff_ms
        self.max_reconnect_attempts = max_reconnect_attempts
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self.close_timeout = close_timeout
        self.on_server_message = on_server_message

        # State
        self._websocket = None
        self._running: bool = False
        self._stop_event: asyncio.Event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._pending_sends: Set[asyncio.Task] = set()
        self._consecutive_failures: int = 0

        # Metrics
        self.metrics = ConnectionMetrics()

    @property
    def connected(self) -> bool:
        """Whether a socket is open and the session is CONNECTED."""
        return self._websocket is not None and self.session.connected

    def start_connection(self) -> asyncio.Task:
        """
        Start the connection task if it is not already running.

        Returns:
            The task running ``run()``
        """
        if self._task is not None and not self._task.done():
            return self._task

        self._task = asyncio.create_task(self.run(), name="websocket_connection")
        return self._task

    def backoff_seconds(self, attempt: int) -> float:
        """Exponential backoff for the given consecutive failure count."""
        backoff_ms = self.reconnect_backoff_ms * (2 ** max(attempt - 1, 0))
        return min(backoff_ms, self.max_reconnect_backoff_ms) / 1000.0

    async def run(self) -> None:
        """
        Connect and consume until stopped.

        Reconnects on disconnect. Moves the session to FAILED and returns
        once ``max_reconnect_attempts`` consecutive attempts have failed.
        """
        self._running = True
        self._stop_event.clear()
        self._consecutive_failures = 0

        logger.info(f"Connection starting, connecting to {self.url}")

        while self._running:
            self.session.on_connecting()
            reason = "closed by server"

            try:
                await self._connect_and_consume()
            except Exception as e:
                if not self._running:
                    break
                reason = str(e) or type(e).__name__
                logger.error(f"Connection error: {reason}")

            if not self._running:
                break

            self._consecutive_failures += 1

            if (
                self.max_reconnect_attempts > 0
                and self._consecutive_failures > self.max_reconnect_attempts
            ):
                logger.error(
                    f"Max reconnect attempts ({self.max_reconnect_attempts}) exceeded"
                )
                self.session.on_failed(f"max reconnect attempts exceeded: {reason}")
                break

            self.session.on_disconnected(reason)
            self.metrics.reconnect_count += 1
            backoff_sec = self.backoff_seconds(self._consecutive_failures)
            logger.info(
                f"Reconnecting in {backoff_sec:.1f}s "
                f"(attempt {self._consecutive_failures})"
            )

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=backoff_sec)
                break
            except asyncio.TimeoutError:
                pass

        self._running = False
        if self.session.state != SessionState.FAILED:
            self.session.on_disconnected("stopped")
        logger.info("Connection stopped")

    async def stop(self) -> None:
        """
        Stop the connection gracefully.

        Signals the run loop to exit and closes the socket.
        """
        logger.info("Connection stopping...")
        self._running = False
        self._stop_event.set()

        websocket = self._websocket
        if websocket is not None:
            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error while closing socket: {e}")

    async def _connect_and_consume(self) -> None:
        """Connect to the server and consume messages until disconnect."""
        async with websockets.connect(
            self.url,
            ping_interval=self.ping_interval,
            ping_timeout=self.ping_timeout,
            close_timeout=self.close_timeout,
        ) as ws:
            self._websocket = ws
            self._consecutive_failures = 0
            self.metrics.connect_count += 1
            self.session.on_connected()
            logger.info(f"Connected to telemetry server: {self.url}")

            try:
                async for message in ws:
                    if not self._running:
                        break
                    self._handle_message(message)

            except ConnectionClosedOK:
                logger.info("Connection closed normally")
            except ConnectionClosedError as e:
                logger.warning(f"Connection closed with error: {e}")
                raise
            finally:
                self._websocket = None

    def _handle_message(self, message) -> None:
        """Deliver one inbound frame to the callback."""
        if isinstance(message, (bytes, bytearray)):
            self.metrics.binary_ignored += 1
            logger.debug(f"Ignoring inbound binary message ({len(message)} bytes)")
            return

        self.metrics.messages_received += 1
        callback = self.on_server_message
        if callback is None:
            return

        try:
            callback(message)
        except Exception as e:
            self.metrics.handler_errors += 1
            logger.error(f"Inbound message handler error: {e}")

    async def send_text_async(self, text: str) -> None:
        """
        Send a text frame and wait until it is written.

        Raises:
            NotConnectedError: If no socket is open or it closed mid-send
        """
        websocket = self._websocket
        if websocket is None or not self.session.connected:
            raise NotConnectedError(f"Not connected to {self.url}")

        try:
            await websocket.send(text)
        except ConnectionClosed as e:
            raise NotConnectedError(str(e)) from e

        self.metrics.messages_sent += 1

    async def send_binary_async(self, data: bytes) -> None:
        """Send a binary frame and wait until it is written."""
        websocket = self._websocket
        if websocket is None or not self.session.connected:
            raise NotConnectedError(f"Not connected to {self.url}")

        try:
            await websocket.send(bytes(data))
        except ConnectionClosed as e:
            raise NotConnectedError(str(e)) from e

        self.metrics.messages_sent += 1

    def send_text(self, text: str) -> None:
        """Fire-and-forget text send. Failures are logged, not raised."""
        self._spawn(self.send_text_async(text))

    def send_binary(self, data: bytes) -> None:
        """Fire-and-forget binary send. Failures are logged, not raised."""
        self._spawn(self.send_binary_async(data))

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending_sends.add(task)
        task.add_done_callback(self._on_send_done)

    def _on_send_done(self, task: asyncio.Task) -> None:
        self._pending_sends.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Fire-and-forget send failed: {exc}")
