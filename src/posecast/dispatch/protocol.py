"""
Inbound Protocol
================

Decoding of server text messages into typed inbound messages.

Wire Format:
    object_position <x> <y> <z>

    - The literal tag, optionally followed by whitespace
    - Exactly three decimal floating-point tokens separated by single spaces

Decoding Rules:
    - Tags are checked in priority order; the first prefix match wins
    - Unknown tag       -> None (caller ignores the message)
    - Known tag, bad payload -> MessageDecodeError
"""

import math
import re
from typing import Callable, List, Optional, Tuple

from posecast.errors import MessageDecodeError
from posecast.models.inbound import (
    OBJECT_POSITION_TAG,
    InboundMessage,
    ObjectPositionMessage,
)
from posecast.models.pose import Vector3


_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")


PayloadDecoder = Callable[[str, str], InboundMessage]


def parse_decimal(token: str) -> float:
    """
    Parse a decimal floating-point literal.

    Stricter than ``float()``: rejects "nan", "inf", underscores and
    surrounding whitespace.

    Raises:
        ValueError: If the token is not a finite decimal literal
    """
    if not _DECIMAL_RE.match(token):
        raise ValueError(f"not a decimal number: {token!r}")
    value = float(token)
    if not math.isfinite(value):
        raise ValueError(f"not a finite number: {token!r}")
    return value


def _decode_object_position(payload: str, raw: str) -> ObjectPositionMessage:
    tokens = payload.split(" ")
    if len(tokens) != 3:
        raise MessageDecodeError(
            OBJECT_POSITION_TAG, raw, f"expected 3 tokens, got {len(tokens)}"
        )

    try:
        x, y, z = (parse_decimal(token) for token in tokens)
    except ValueError as e:
        raise MessageDecodeError(OBJECT_POSITION_TAG, raw, str(e))

    return ObjectPositionMessage(position=Vector3(x=x, y=y, z=z))


# Priority order: first matching tag wins
_DECODERS: List[Tuple[str, PayloadDecoder]] = [
    (OBJECT_POSITION_TAG, _decode_object_position),
]


def known_tags() -> List[str]:
    """Tags in priority order."""
    return [tag for tag, _ in _DECODERS]


def decode_message(raw: str) -> Optional[InboundMessage]:
    """
    Decode one inbound text message.

    Args:
        raw: Message text as received from the socket

    Returns:
        Typed message, or None if no known tag matches

    Raises:
        MessageDecodeError: If a tag matches but the payload is malformed
    """
    for tag, decoder in _DECODERS:
        if raw.startswith(tag):
            payload = raw[len(tag):].strip()
            return decoder(payload, raw)
    return None
