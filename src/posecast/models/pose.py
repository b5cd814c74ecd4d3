"""
Pose Models
===========

Spatial primitives shared by the outbound envelopes and the anchor registry.

Supported Types:
    - Vector3: 3D position (x, y, z)
    - Quaternion: Orientation (x, y, z, w)
    - Pose: Position + rotation snapshot

All models are frozen. A Pose captured on a tick is never modified
afterwards; it is copied into every envelope built from it.

Example:
    from posecast.models.pose import Pose, Quaternion, Vector3

    pose = Pose(
        position=Vector3(x=0.0, y=1.6, z=0.0),
        rotation=Quaternion(x=0.0, y=0.0, z=0.0, w=1.0),
    )
"""

import math

from pydantic import BaseModel, Field


class Vector3(BaseModel):
    """
    3D position in world units.

    Attributes:
        x: X coordinate
        y: Y coordinate
        z: Z coordinate
    """

    x: float = Field(..., description="X coordinate")
    y: float = Field(..., description="Y coordinate")
    z: float = Field(..., description="Z coordinate")

    class Config:
        """Pydantic model configuration."""

        frozen = True
        allow_inf_nan = False

    def as_tuple(self) -> tuple:
        return (self.x, self.y, self.z)

    def distance_to(self, other: "Vector3") -> float:
        """Euclidean distance to another point."""
        return math.sqrt(
            (self.x - other.x) ** 2
            + (self.y - other.y) ** 2
            + (self.z - other.z) ** 2
        )


class Quaternion(BaseModel):
    """Orientation as a unit quaternion (x, y, z, w)."""

    x: float = Field(default=0.0, description="X component")
    y: float = Field(default=0.0, description="Y component")
    z: float = Field(default=0.0, description="Z component")
    w: float = Field(default=1.0, description="Scalar component")

    class Config:
        """Pydantic model configuration."""

        frozen = True

    @classmethod
    def identity(cls) -> "Quaternion":
        return cls(x=0.0, y=0.0, z=0.0, w=1.0)

    @classmethod
    def from_yaw(cls, yaw_radians: float) -> "Quaternion":
        """Rotation about the vertical (Y) axis."""
        half = yaw_radians / 2.0
        return cls(x=0.0, y=math.sin(half), z=0.0, w=math.cos(half))


class Pose(BaseModel):
    """
    6-DoF pose snapshot.

    Attributes:
        position: Position in world units
        rotation: Orientation quaternion
    """

    position: Vector3 = Field(..., description="Position in world units")
    rotation: Quaternion = Field(
        default_factory=Quaternion.identity,
        description="Orientation quaternion",
    )

    class Config:
        """Pydantic model configuration."""

        frozen = True
