"""
Inbound Message Types
=====================

Closed set of typed messages the server can push to the client.

Input Contract (text frames from the server):
    "object_position <x> <y> <z>"

Decoding lives in ``posecast.dispatch.protocol``; this module only holds
the message shapes so that handlers can be typed against them.
"""

from dataclasses import dataclass
from typing import Union

from posecast.models.pose import Vector3


OBJECT_POSITION_TAG = "object_position"


@dataclass(frozen=True)
class ObjectPositionMessage:
    """
    Server-detected object position.

    Attributes:
        position: World-space position of the detected object
    """

    position: Vector3


InboundMessage = Union[ObjectPositionMessage]
