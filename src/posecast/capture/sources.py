"""
Frame and Pose Sources
======================

Providers the capture loop pulls from on every cycle.

This module provides the FrameSource / PoseSource protocols plus concrete
implementations:
    - SyntheticFrameSource: Deterministic color gradient + float depth field
    - CameraFrameSource: OpenCV camera for color; no depth
    - StaticPoseSource: Fixed pose
    - OrbitPoseSource: Circles the origin, always facing it

Rasters are RGB(A) numpy arrays (color) or single-channel arrays (depth).
Returning None, or an object the encoder does not understand, makes the
capture loop skip that frame kind for the cycle.
"""

import logging
import math
import time
from typing import Callable, Optional, Protocol

import cv2
import numpy as np

from posecast.models.pose import Pose, Quaternion, Vector3
from posecast.stream.frame import FrameKind


logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    """
    Protocol for raster providers.

    ``available`` gates the whole capture cycle; ``capture`` may still
    return None for an individual kind.
    """

    @property
    def available(self) -> bool:
        ...

    def capture(self, kind: FrameKind) -> Optional[object]:
        ...


class PoseSource(Protocol):
    """Protocol for pose providers."""

    def current_pose(self) -> Pose:
        ...


class SyntheticFrameSource:
    """
    Deterministic frame generator for development and testing.

    Color is a horizontal/vertical gradient whose hue shifts every call.
    Depth is a float32 radial field in meters.

    Attributes:
        width: Raster width in pixels
        height: Raster height in pixels
        depth_enabled: When False, depth capture returns None
    """

    def __init__(
        self,
        width: int = 320,
        height: int = 240,
        depth_enabled: bool = True,
    ) -> None:
        self.width = width
        self.height = height
        self.depth_enabled = depth_enabled
        self._frame_index: int = 0

        ys, xs = np.mgrid[0:height, 0:width]
        self._xs = xs.astype(np.float32) / max(width - 1, 1)
        self._ys = ys.astype(np.float32) / max(height - 1, 1)

        logger.info(
            f"SyntheticFrameSource initialized: {width}x{height}, "
            f"depth={'on' if depth_enabled else 'off'}"
        )

    @property
    def available(self) -> bool:
        return True

    def capture(self, kind: FrameKind) -> Optional[np.ndarray]:
        if kind == FrameKind.COLOR:
            return self._color()
        if kind == FrameKind.DEPTH:
            return self._depth() if self.depth_enabled else None
        return None

    def _color(self) -> np.ndarray:
        self._frame_index += 1
        shift = (self._frame_index % 256) / 255.0
        r = (self._xs + shift) % 1.0
        g = self._ys
        b = 1.0 - self._xs
        rgb = np.stack([r, g, b], axis=-1) * 255.0
        return rgb.astype(np.uint8)

    def _depth(self) -> np.ndarray:
        cx, cy = 0.5, 0.5
        radius = np.sqrt((self._xs - cx) ** 2 + (self._ys - cy) ** 2)
        return (0.5 + 4.0 * radius).astype(np.float32)


class CameraFrameSource:
    """
    OpenCV camera as a color-only frame source.

    Depth capture always returns None, so only color envelopes are sent.

    Example:
        source = CameraFrameSource(device_index=0)
        if source.start():
            raster = source.capture(FrameKind.COLOR)
    """

    def __init__(
        self,
        device_index: int = 0,
        width: int = 640,
        height: int = 480,
    ) -> None:
        self.device_index = device_index
        self.width = width
        self.height = height
        self._capture: Optional[cv2.VideoCapture] = None

    @property
    def available(self) -> bool:
        return self._capture is not None and self._capture.isOpened()

    def start(self) -> bool:
        """
        Open the camera.

        Returns:
            True if the device opened
        """
        if self.available:
            return True

        self._capture = cv2.VideoCapture(self.device_index)
        if not self._capture.isOpened():
            logger.error(f"Failed to open camera {self.device_index}")
            self._capture = None
            return False

        self._capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self._capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        actual_width = int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info(f"Camera {self.device_index} opened: {actual_width}x{actual_height}")
        return True

    def stop(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info(f"Camera {self.device_index} released")

    def capture(self, kind: FrameKind) -> Optional[np.ndarray]:
        if kind != FrameKind.COLOR or not self.available:
            return None

        ok, bgr = self._capture.read()
        if not ok or bgr is None:
            logger.debug(f"Camera {self.device_index} returned no frame")
            return None

        return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


class StaticPoseSource:
    """Always returns the same pose."""

    def __init__(self, pose: Optional[Pose] = None) -> None:
        self.pose = pose or Pose(position=Vector3(x=0.0, y=0.0, z=0.0))

    def current_pose(self) -> Pose:
        return self.pose


class OrbitPoseSource:
    """
    Pose moving on a horizontal circle around the origin, facing inward.

    Attributes:
        radius: Orbit radius in world units
        height: Constant Y coordinate
        period_seconds: Time for one full orbit
    """

    def __init__(
        self,
        radius: float = 2.0,
        height: float = 1.6,
        period_seconds: float = 20.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if period_seconds <= 0:
            raise ValueError("period_seconds must be > 0")
        self.radius = radius
        self.height = height
        self.period_seconds = period_seconds
        self._clock = clock
        self._t0 = clock()

    def current_pose(self) -> Pose:
        angle = 2 * math.pi * ((self._clock() - self._t0) / self.period_seconds)
        x = self.radius * math.cos(angle)
        z = self.radius * math.sin(angle)
        # Yaw that points the forward (+Z) axis at the origin
        yaw = math.atan2(-x, -z)
        return Pose(
            position=Vector3(x=x, y=self.height, z=z),
            rotation=Quaternion.from_yaw(yaw),
        )
