"""
Data Models
===========

Pydantic models and message types for the PoseCast client.

Models:
    Pose:
        - Vector3, Quaternion, Pose: Spatial primitives

    Output:
        - OutgoingEnvelope: One frame + pose snapshot on the wire

    Input:
        - ObjectPositionMessage: Server-pushed object position
        - InboundMessage: Union of all inbound message types
"""

from posecast.models.pose import Pose, Quaternion, Vector3
from posecast.models.envelope import OutgoingEnvelope
from posecast.models.inbound import (
    OBJECT_POSITION_TAG,
    InboundMessage,
    ObjectPositionMessage,
)

__all__ = [
    # Pose
    "Vector3",
    "Quaternion",
    "Pose",
    # Output
    "OutgoingEnvelope",
    # Input
    "OBJECT_POSITION_TAG",
    "ObjectPositionMessage",
    "InboundMessage",
]
