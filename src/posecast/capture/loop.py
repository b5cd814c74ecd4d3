"""
Capture-and-Stream Loop
=======================

Interval-gated capture of color/depth frames plus pose, serialized into
envelopes and submitted for sending.

Cycle (fires when the elapsed-time accumulator reaches the interval):
    1. For each kind (color, depth): pull raster, convert to an encodable
       buffer. Conversion failure skips that kind only.
    2. Encode each buffer (JPEG). Encode failure skips that kind only.
    3. Sample the pose once and share it across the cycle's envelopes.
    4. Build one envelope per payload and submit in color-then-depth order.

Guards:
    - No frame source, or frame source unavailable -> tick does nothing
    - Session not connected -> tick does nothing
    Guards are checked before the accumulator is advanced.

Design Rules:
    - tick() never blocks; submission goes through a non-blocking sink
    - No retry; nothing in a tick is fatal
"""

import asyncio
import logging
import time
from typing import Callable, List, Optional, Protocol

import numpy as np

from posecast.capture.sources import FrameSource, PoseSource
from posecast.errors import FrameConversionError, ImageEncodeError
from posecast.models.envelope import OutgoingEnvelope
from posecast.models.pose import Pose
from posecast.session import Session
from posecast.stream.encoder import JpegEncoder, to_encodable
from posecast.stream.frame import FrameKind, FrameMessage


logger = logging.getLogger(__name__)


Encoder = Callable[[np.ndarray], bytes]


class EnvelopeSink(Protocol):
    """Non-blocking destination for serialized envelopes."""

    def submit(self, text: str) -> bool:
        ...


class LoopMetrics:
    """Counters for capture loop observability."""

    __slots__ = (
        "ticks",
        "cycles",
        "guarded_ticks",
        "envelopes_submitted",
        "conversion_failures",
        "encode_failures",
    )

    def __init__(self) -> None:
        self.ticks: int = 0
        self.cycles: int = 0
        self.guarded_ticks: int = 0
        self.envelopes_submitted: int = 0
        self.conversion_failures: int = 0
        self.encode_failures: int = 0

    def to_dict(self) -> dict:
        return {
            "ticks": self.ticks,
            "cycles": self.cycles,
            "guarded_ticks": self.guarded_ticks,
            "envelopes_submitted": self.envelopes_submitted,
            "conversion_failures": self.conversion_failures,
            "encode_failures": self.encode_failures,
        }


class CaptureStreamLoop:
    """
    Scheduler-driven capture and send.

    Attributes:
        session: Session whose connectivity gates sending
        frame_source: Raster provider (None disables the loop)
        pose_source: Pose provider
        sink: Destination for serialized envelopes
        interval: Seconds between capture cycles
        resample_pose_per_envelope: Sample pose per envelope instead of per cycle

    Example:
        loop = CaptureStreamLoop(
            session=session,
            frame_source=SyntheticFrameSource(),
            pose_source=OrbitPoseSource(),
            sink=outbound_queue,
            interval=0.5,
        )
        loop.tick(1 / 60)
    """

    def __init__(
        self,
        session: Session,
        frame_source: Optional[FrameSource],
        pose_source: PoseSource,
        sink: EnvelopeSink,
        interval: float = 0.5,
        encoder: Optional[Encoder] = None,
        resample_pose_per_envelope: bool = False,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be > 0")

        self.session = session
        self.frame_source = frame_source
        self.pose_source = pose_source
        self.sink = sink
        self.interval = interval
        self.encoder: Encoder = encoder or JpegEncoder()
        self.resample_pose_per_envelope = resample_pose_per_envelope

        self._elapsed: float = 0.0
        self.metrics = LoopMetrics()

    @property
    def elapsed(self) -> float:
        """Time accumulated since the last cycle."""
        return self._elapsed

    def tick(self, dt: float) -> int:
        """
        Advance the loop by one scheduler tick.

        Args:
            dt: Seconds since the previous tick

        Returns:
            Number of envelopes submitted on this tick
        """
        self.metrics.ticks += 1

        if self.frame_source is None or not self.frame_source.available:
            self.metrics.guarded_ticks += 1
            return 0
        if not self.session.connected:
            self.metrics.guarded_ticks += 1
            return 0

        self._elapsed += dt
        if self._elapsed < self.interval:
            return 0

        self._elapsed = 0.0
        return self.run_cycle()

    def run_cycle(self) -> int:
        """
        Capture, encode, and submit one cycle.

        Returns:
            Number of envelopes submitted
        """
        self.metrics.cycles += 1

        frames = self._capture_frames()
        if not frames:
            logger.debug("Capture cycle produced no frames")
            return 0

        pose: Optional[Pose] = None
        submitted = 0
        for frame in frames:
            if pose is None or self.resample_pose_per_envelope:
                pose = self.pose_source.current_pose()
            envelope = OutgoingEnvelope.build(frame, pose)
            self.sink.submit(envelope.to_wire())
            submitted += 1

        self.metrics.envelopes_submitted += submitted
        logger.debug(
            f"Capture cycle {self.metrics.cycles}: submitted "
            f"{', '.join(f.kind.value for f in frames)}"
        )
        return submitted

    def _capture_frames(self) -> List[FrameMessage]:
        frames: List[FrameMessage] = []

        for kind in FrameKind:
            try:
                buffer = to_encodable(self.frame_source.capture(kind))
            except FrameConversionError as e:
                self.metrics.conversion_failures += 1
                logger.debug(f"Skipping {kind.value} frame: {e}")
                continue

            try:
                payload = self.encoder(buffer)
            except ImageEncodeError as e:
                self.metrics.encode_failures += 1
                logger.debug(f"Skipping {kind.value} frame, encode failed: {e}")
                continue

            frames.append(FrameMessage(kind=kind, payload=payload))

        return frames


class TickDriver:
    """
    Periodic tick source for a CaptureStreamLoop.

    Calls ``loop.tick(dt)`` at ``tick_rate_hz`` with monotonic ``dt``.
    Exceptions raised by a tick are logged and the driver keeps going.
    """

    def __init__(
        self,
        loop: CaptureStreamLoop,
        tick_rate_hz: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if tick_rate_hz <= 0:
            raise ValueError("tick_rate_hz must be > 0")

        self.loop = loop
        self.tick_rate_hz = tick_rate_hz
        self._clock = clock
        self._running: bool = False
        self._stop_event: asyncio.Event = asyncio.Event()
        self.tick_errors: int = 0

    async def run(self) -> None:
        """Drive ticks until stopped."""
        self._running = True
        self._stop_event.clear()
        period = 1.0 / self.tick_rate_hz
        last = self._clock()

        logger.info(f"TickDriver started at {self.tick_rate_hz:.0f} Hz")

        while self._running:
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=period)
                break
            except asyncio.TimeoutError:
                pass

            now = self._clock()
            dt = now - last
            last = now

            try:
                self.loop.tick(dt)
            except Exception as e:
                self.tick_errors += 1
                logger.error(f"Tick error: {e}")

        self._running = False
        logger.info("TickDriver stopped")

    def stop(self) -> None:
        self._running = False
        self._stop_event.set()
