"""
Test Configuration
==================

Pytest fixtures and test doubles for the PoseCast client.
"""

from typing import List, Optional

import numpy as np
import pytest


class RecordingSink:
    """Envelope sink that keeps every submitted text."""

    def __init__(self) -> None:
        self.texts: List[str] = []

    def submit(self, text: str) -> bool:
        self.texts.append(text)
        return True


class FakeFrameSource:
    """Frame source returning fixed rasters per kind."""

    def __init__(self, color=None, depth=None, available: bool = True) -> None:
        self.color = color
        self.depth = depth
        self._available = available

    @property
    def available(self) -> bool:
        return self._available

    def capture(self, kind) -> Optional[object]:
        from posecast.stream.frame import FrameKind

        return self.color if kind == FrameKind.COLOR else self.depth


class CountingPoseSource:
    """Pose source that moves 1 unit along X on every call."""

    def __init__(self) -> None:
        self.calls = 0

    def current_pose(self):
        from posecast.models.pose import Pose, Vector3

        self.calls += 1
        return Pose(position=Vector3(x=float(self.calls), y=0.0, z=0.0))


def fake_encoder(buffer: np.ndarray) -> bytes:
    """Encoder stand-in that records the buffer rank in the payload."""
    return b"\xff\xd8" + bytes([buffer.ndim])


@pytest.fixture
def color_raster() -> np.ndarray:
    """Provide a small RGB raster."""
    raster = np.zeros((8, 8, 3), dtype=np.uint8)
    raster[:, :, 0] = 255
    return raster


@pytest.fixture
def depth_raster() -> np.ndarray:
    """Provide a small float depth raster in meters."""
    return np.linspace(0.5, 4.0, 64, dtype=np.float32).reshape(8, 8)


@pytest.fixture
def connected_session():
    """Provide a session in CONNECTED state."""
    from posecast.session import Session

    session = Session()
    session.on_connecting()
    session.on_connected()
    return session


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def pose_source() -> CountingPoseSource:
    return CountingPoseSource()


@pytest.fixture
def scene():
    """Provide an empty in-memory anchor scene."""
    from posecast.anchors.scene import InMemoryScene

    return InMemoryScene()


@pytest.fixture
def registry(scene):
    """Provide a registry with the default 1.0 separation."""
    from posecast.anchors.registry import AnchorRegistry

    return AnchorRegistry(factory=scene, min_separation=1.0, reference_frame="player")
