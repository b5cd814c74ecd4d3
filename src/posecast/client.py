"""
Streaming Client Runtime
========================

Composition root that wires the streaming core together.

Wiring:
    TickDriver → CaptureStreamLoop → OutboundQueue → WebSocketConnection
    WebSocketConnection → InboundDispatcher → AnchorRegistry
    WebSocketConnection → Session (state transitions)

All tasks run on one asyncio event loop, so the dispatcher, the registry
and the loop accumulator are only ever touched from that loop.

Example:
    from posecast.config import settings
    from posecast.client import build_client

    client = build_client(settings)
    await client.start()
    ...
    await client.stop()
"""

import asyncio
import logging
from typing import List, Optional

from posecast.anchors import AnchorRegistry, InMemoryScene
from posecast.capture import (
    CameraFrameSource,
    CaptureStreamLoop,
    FrameSource,
    OrbitPoseSource,
    SyntheticFrameSource,
    TickDriver,
)
from posecast.config import CaptureConfig, Settings
from posecast.dispatch import InboundDispatcher
from posecast.models.inbound import ObjectPositionMessage
from posecast.session import Session
from posecast.stream import JpegEncoder, OutboundQueue, WebSocketConnection


logger = logging.getLogger(__name__)


def create_frame_source(capture: CaptureConfig) -> FrameSource:
    """
    Create the frame source selected in config.

    Raises:
        ValueError: If the source name is unknown
    """
    source = capture.source

    if source == "synthetic":
        logger.info("Using SyntheticFrameSource")
        return SyntheticFrameSource(
            width=capture.width,
            height=capture.height,
            depth_enabled=capture.depth_enabled,
        )

    elif source == "camera":
        logger.info(f"Using CameraFrameSource (device {capture.camera_index})")
        camera = CameraFrameSource(
            device_index=capture.camera_index,
            width=capture.width,
            height=capture.height,
        )
        camera.start()
        return camera

    else:
        raise ValueError(f"Unknown frame source: {source}")


class StreamingClient:
    """
    Owns the session, its tasks and the components they drive.

    Attributes:
        session: Connection state machine
        connection: WebSocket adapter
        outbound: Ordered outbound queue
        loop: Capture-and-stream loop
        driver: Tick source for the loop
        dispatcher: Inbound message router
        registry: Anchor registry
        scene: Anchor scene, if anchors are enabled
    """

    def __init__(
        self,
        session: Session,
        connection: WebSocketConnection,
        outbound: OutboundQueue,
        loop: CaptureStreamLoop,
        driver: TickDriver,
        dispatcher: InboundDispatcher,
        registry: AnchorRegistry,
        scene: Optional[InMemoryScene] = None,
    ) -> None:
        self.session = session
        self.connection = connection
        self.outbound = outbound
        self.loop = loop
        self.driver = driver
        self.dispatcher = dispatcher
        self.registry = registry
        self.scene = scene

        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    async def start(self) -> None:
        """Start connection, outbound consumer and tick driver tasks."""
        if self.running:
            return

        self._tasks = [
            self.connection.start_connection(),
            asyncio.create_task(self.outbound.run(self.connection), name="outbound_queue"),
            asyncio.create_task(self.driver.run(), name="tick_driver"),
        ]
        logger.info("Streaming client started")

    async def stop(self, timeout: float = 5.0) -> None:
        """Stop all tasks, waiting up to ``timeout`` seconds for each."""
        logger.info("Streaming client stopping...")

        self.driver.stop()
        self.outbound.stop()
        await self.connection.stop()

        for task in self._tasks:
            try:
                await asyncio.wait_for(task, timeout=timeout)
            except asyncio.TimeoutError:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
            except asyncio.CancelledError:
                pass

        self._tasks = []

        frame_source = self.loop.frame_source
        if isinstance(frame_source, CameraFrameSource):
            frame_source.stop()

        logger.info("Streaming client stopped")

    def status(self) -> dict:
        """Aggregate metrics from every component."""
        return {
            "session": self.session.to_dict(),
            "connection": self.connection.metrics.to_dict(),
            "outbound": self.outbound.metrics(),
            "capture": self.loop.metrics.to_dict(),
            "dispatcher": self.dispatcher.metrics.to_dict(),
            "anchors": {
                "tracked": len(self.registry),
                **self.registry.metrics.to_dict(),
            },
            "tick_errors": self.driver.tick_errors,
        }


def build_client(settings: Settings) -> StreamingClient:
    """Create a fully wired client from settings."""
    session = Session()

    connection = WebSocketConnection(
        url=settings.connection.url,
        session=session,
        reconnect_backoff_ms=settings.connection.reconnect_backoff_ms,
        max_reconnect_backoff_ms=settings.connection.max_reconnect_backoff_ms,
        max_reconnect_attempts=settings.connection.max_reconnect_attempts,
        ping_interval=settings.connection.ping_interval_seconds,
        ping_timeout=settings.connection.ping_timeout_seconds,
        close_timeout=settings.connection.close_timeout_seconds,
    )

    outbound = OutboundQueue(maxsize=settings.outbound.max_queue_size)

    loop = CaptureStreamLoop(
        session=session,
        frame_source=create_frame_source(settings.capture),
        pose_source=OrbitPoseSource(
            radius=settings.pose.orbit_radius,
            height=settings.pose.orbit_height,
            period_seconds=settings.pose.orbit_period_seconds,
        ),
        sink=outbound,
        interval=settings.capture.send_interval_seconds,
        encoder=JpegEncoder(quality=settings.capture.jpeg_quality),
        resample_pose_per_envelope=settings.capture.resample_pose_per_envelope,
    )
    driver = TickDriver(loop, tick_rate_hz=settings.capture.tick_rate_hz)

    scene = InMemoryScene() if settings.anchors.enabled else None
    registry = AnchorRegistry(
        factory=scene,
        min_separation=settings.anchors.min_separation,
        reference_frame=settings.anchors.reference_frame,
    )

    dispatcher = InboundDispatcher()
    dispatcher.register(
        ObjectPositionMessage,
        lambda message: registry.place_if_far(message.position),
    )
    connection.on_server_message = dispatcher.dispatch

    return StreamingClient(
        session=session,
        connection=connection,
        outbound=outbound,
        loop=loop,
        driver=driver,
        dispatcher=dispatcher,
        registry=registry,
        scene=scene,
    )
