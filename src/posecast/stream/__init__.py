"""
Stream Module
=============

Transport-facing components of the PoseCast client.

This module provides the egress layer:
    - FrameKind / FrameMessage: Typed encoded-frame representation
    - to_encodable / JpegEncoder: Raster conversion and JPEG compression
    - OutboundQueue: Ordered, bounded queue drained by one consumer task
    - WebSocketConnection: Duplex channel with reconnection

Example:
    from posecast.session import Session
    from posecast.stream import OutboundQueue, WebSocketConnection

    session = Session()
    connection = WebSocketConnection(url="ws://localhost:8765/ws", session=session)
    queue = OutboundQueue(maxsize=8)

    connection.start_connection()
    asyncio.create_task(queue.run(connection))
"""

from posecast.stream.frame import FrameKind, FrameMessage
from posecast.stream.encoder import JpegEncoder, encode_jpeg, to_encodable
from posecast.stream.outbound import OutboundQueue
from posecast.stream.connection import (
    ConnectionAdapter,
    ConnectionMetrics,
    WebSocketConnection,
)


__all__ = [
    "FrameKind",
    "FrameMessage",
    "JpegEncoder",
    "encode_jpeg",
    "to_encodable",
    "OutboundQueue",
    "ConnectionAdapter",
    "ConnectionMetrics",
    "WebSocketConnection",
]
