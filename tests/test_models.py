"""
Model Tests
===========
"""

import base64
import json
import math

import pytest


class TestPose:

    def test_distance(self):
        from posecast.models.pose import Vector3

        assert Vector3(x=0, y=0, z=0).distance_to(Vector3(x=1, y=2, z=2)) == 3.0

    def test_default_rotation_is_identity(self):
        from posecast.models.pose import Pose, Vector3

        pose = Pose(position=Vector3(x=1, y=2, z=3))
        assert (pose.rotation.x, pose.rotation.y, pose.rotation.z, pose.rotation.w) == (0, 0, 0, 1)

    def test_yaw_quaternion_is_unit(self):
        from posecast.models.pose import Quaternion

        q = Quaternion.from_yaw(math.pi / 3)
        assert q.x ** 2 + q.y ** 2 + q.z ** 2 + q.w ** 2 == pytest.approx(1.0)

    def test_frozen(self):
        from pydantic import ValidationError

        from posecast.models.pose import Vector3

        point = Vector3(x=1, y=2, z=3)
        with pytest.raises(ValidationError):
            point.x = 5.0


class TestEnvelope:

    def test_wire_format(self):
        from posecast.models.envelope import OutgoingEnvelope
        from posecast.models.pose import Pose, Quaternion, Vector3
        from posecast.stream.frame import FrameKind, FrameMessage

        pose = Pose(
            position=Vector3(x=1.0, y=2.0, z=3.0),
            rotation=Quaternion(x=0.0, y=0.5, z=0.0, w=0.5),
        )
        frame = FrameMessage(kind=FrameKind.DEPTH, payload=b"\xff\xd8jpeg")

        data = json.loads(OutgoingEnvelope.build(frame, pose).to_wire())

        assert data == {
            "type": "depth",
            "position": {"x": 1.0, "y": 2.0, "z": 3.0},
            "rotation": {"x": 0.0, "y": 0.5, "z": 0.0, "w": 0.5},
            "imageData": base64.b64encode(b"\xff\xd8jpeg").decode("ascii"),
        }

    def test_parse_from_wire(self):
        from posecast.models.envelope import OutgoingEnvelope
        from posecast.stream.frame import FrameKind

        envelope = OutgoingEnvelope.model_validate_json(
            '{"type": "color", "position": {"x": 0, "y": 0, "z": 0},'
            ' "rotation": {"x": 0, "y": 0, "z": 0, "w": 1}, "imageData": "AAAA"}'
        )
        assert envelope.type == FrameKind.COLOR
        assert envelope.image_data == "AAAA"

    def test_frame_repr_hides_payload(self):
        from posecast.stream.frame import FrameKind, FrameMessage

        frame = FrameMessage(kind=FrameKind.COLOR, payload=b"x" * 1000)
        assert repr(frame) == "FrameMessage(kind=color, bytes=1000)"
