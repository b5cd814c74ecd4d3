"""
Dispatch Module
===============

Inbound message protocol and routing.

    - decode_message: Text -> typed message (or None for unknown tags)
    - InboundDispatcher: Typed message -> registered handler
"""

from posecast.dispatch.protocol import decode_message, known_tags, parse_decimal
from posecast.dispatch.dispatcher import DispatcherMetrics, InboundDispatcher


__all__ = [
    "decode_message",
    "known_tags",
    "parse_decimal",
    "DispatcherMetrics",
    "InboundDispatcher",
]
