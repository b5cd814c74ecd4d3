"""
Error Types
===========

Exception hierarchy for the streaming core.

None of these are fatal to the client. Each is raised where the problem is
detected and handled at the owning component's boundary:

    FrameConversionError -> capture loop skips that frame kind for the tick
    ImageEncodeError     -> capture loop skips that frame kind for the tick
    MessageDecodeError   -> dispatcher drops the message and logs a warning
    NotConnectedError    -> outbound queue drops the envelope
"""


class PoseCastError(Exception):
    """Base class for all client errors."""
    pass


class FrameConversionError(PoseCastError):
    """Raised when a raster cannot be converted to an encodable buffer."""
    pass


class ImageEncodeError(PoseCastError):
    """Raised when the image codec fails to produce a payload."""
    pass


class MessageDecodeError(PoseCastError):
    """
    Raised when an inbound message has a known tag but a bad payload.

    Attributes:
        tag: The tag that matched
        raw: The original message text
        reason: Human-readable reason for the failure
    """

    def __init__(self, tag: str, raw: str, reason: str) -> None:
        super().__init__(f"Cannot decode '{tag}' message {raw!r}: {reason}")
        self.tag = tag
        self.raw = raw
        self.reason = reason


class NotConnectedError(PoseCastError, ConnectionError):
    """Raised when sending while no socket is open."""
    pass
