"""
Capture Module
==============

Frame/pose acquisition and the capture-and-stream loop.

    - FrameSource / PoseSource: Provider protocols
    - SyntheticFrameSource, CameraFrameSource: Raster providers
    - StaticPoseSource, OrbitPoseSource: Pose providers
    - CaptureStreamLoop: Interval-gated capture and submit
    - TickDriver: Async periodic tick source
"""

from posecast.capture.sources import (
    CameraFrameSource,
    FrameSource,
    OrbitPoseSource,
    PoseSource,
    StaticPoseSource,
    SyntheticFrameSource,
)
from posecast.capture.loop import CaptureStreamLoop, LoopMetrics, TickDriver


__all__ = [
    "FrameSource",
    "PoseSource",
    "SyntheticFrameSource",
    "CameraFrameSource",
    "StaticPoseSource",
    "OrbitPoseSource",
    "CaptureStreamLoop",
    "LoopMetrics",
    "TickDriver",
]
