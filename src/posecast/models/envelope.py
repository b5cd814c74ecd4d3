"""
Outgoing Envelope Schema
========================

This module defines the wire-level unit sent to the server for each frame.

Output Contract (one text message per frame kind per cycle):
    {
        "type": "color",
        "position": {"x": 0.0, "y": 1.6, "z": 0.0},
        "rotation": {"x": 0.0, "y": 0.0, "z": 0.0, "w": 1.0},
        "imageData": "<base64 JPEG>"
    }

Color and depth envelopes of the same cycle are independent messages.
Position and rotation are embedded in every envelope; no separate pose
messages are sent.

Example:
    envelope = OutgoingEnvelope.build(frame_message, pose)
    await connection.send_text_async(envelope.to_wire())
"""

import base64

from pydantic import BaseModel, Field

from posecast.models.pose import Pose, Quaternion, Vector3
from posecast.stream.frame import FrameKind, FrameMessage


class OutgoingEnvelope(BaseModel):
    """
    One outbound frame message with its pose snapshot.

    Attributes:
        type: Frame kind ("color" or "depth")
        position: Capture position
        rotation: Capture orientation
        image_data: Base64-encoded compressed image (``imageData`` on the wire)
    """

    type: FrameKind = Field(..., description="Frame kind")

    position: Vector3 = Field(..., description="Capture position")

    rotation: Quaternion = Field(..., description="Capture orientation")

    image_data: str = Field(
        ...,
        alias="imageData",
        description="Base64-encoded compressed image bytes",
    )

    class Config:
        """Pydantic model configuration."""

        frozen = True
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "type": "color",
                "position": {"x": 0.0, "y": 1.6, "z": 0.0},
                "rotation": {"x": 0.0, "y": 0.0, "z": 0.0, "w": 1.0},
                "imageData": "/9j/4AAQSkZJRg...",
            }
        }

    @classmethod
    def build(cls, frame: FrameMessage, pose: Pose) -> "OutgoingEnvelope":
        """Wrap an encoded frame and a pose snapshot into an envelope."""
        return cls(
            type=frame.kind,
            position=pose.position,
            rotation=pose.rotation,
            image_data=base64.b64encode(frame.payload).decode("ascii"),
        )

    def to_wire(self) -> str:
        """Serialize to the JSON text sent on the socket."""
        return self.model_dump_json(by_alias=True)
