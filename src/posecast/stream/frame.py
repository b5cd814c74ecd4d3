"""
Frame Data Model
================

Internal representation of an encoded frame on its way to the wire.

Design Rules:
    - One FrameMessage per tick per available frame kind
    - The payload is the compressed image (JPEG bytes), never raw pixels
    - Color and depth are independent; either may be missing on a tick
"""

from dataclasses import dataclass
from enum import Enum


class FrameKind(str, Enum):
    """
    Frame types captured each cycle.

    The enum value is the envelope ``type`` on the wire. Declaration order
    is the order in which kinds are captured and sent within a tick.
    """

    COLOR = "color"
    DEPTH = "depth"


@dataclass(frozen=True, slots=True)
class FrameMessage:
    """
    Encoded frame ready to be wrapped in an envelope.

    Attributes:
        kind: Which camera stream the payload came from
        payload: Compressed image bytes
    """

    kind: FrameKind
    payload: bytes

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the payload."""
        return f"FrameMessage(kind={self.kind.value}, bytes={len(self.payload)})"
