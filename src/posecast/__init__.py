"""
PoseCast Client
===============

Real-time telemetry streaming client for color/depth frames and 6-DoF pose.

This package captures two image frames (color, depth) plus the current pose
on a fixed interval, serializes them into JSON envelopes, and pushes them to
a remote server over a long-lived WebSocket. Server-pushed position events
are decoded and turned into deduplicated spatial anchors.

Components:
    - stream: WebSocket connection adapter, outbound queue, frame codec
    - capture: Frame/pose sources and the capture-and-stream loop
    - dispatch: Inbound message protocol and dispatcher
    - anchors: Anchor registry with minimum-separation placement
    - session: Explicit connection state machine

Example:
    from posecast.config import settings
    from posecast.client import build_client

    client = build_client(settings)
    await client.run()
"""

__version__ = "0.1.0"
__author__ = "PoseCast Project"

__all__ = [
    "__version__",
]
