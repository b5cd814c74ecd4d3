"""
Inbound Dispatcher Tests
========================

Decoding rules and routing of server messages.
"""

import logging

import pytest


DISPATCH_LOGGER = "posecast.dispatch.dispatcher"


def _warnings(caplog):
    return [
        r for r in caplog.records
        if r.name == DISPATCH_LOGGER and r.levelno >= logging.WARNING
    ]


@pytest.fixture
def recorded():
    return []


@pytest.fixture
def dispatcher(recorded):
    from posecast.dispatch.dispatcher import InboundDispatcher
    from posecast.models.inbound import ObjectPositionMessage

    dispatcher = InboundDispatcher()
    dispatcher.register(ObjectPositionMessage, lambda msg: recorded.append(msg.position))
    return dispatcher


class TestDecode:
    """decode_message behavior."""

    def test_object_position(self):
        from posecast.dispatch.protocol import decode_message
        from posecast.models.inbound import ObjectPositionMessage
        from posecast.models.pose import Vector3

        message = decode_message("object_position 1.0 2.0 3.0")
        assert message == ObjectPositionMessage(position=Vector3(x=1.0, y=2.0, z=3.0))

    def test_known_tags_in_priority_order(self):
        from posecast.dispatch.protocol import known_tags
        from posecast.models.inbound import OBJECT_POSITION_TAG

        assert known_tags() == [OBJECT_POSITION_TAG]

    def test_unknown_tag_returns_none(self):
        from posecast.dispatch.protocol import decode_message

        assert decode_message("hello 1 2 3") is None
        assert decode_message("") is None

    def test_whitespace_after_tag(self):
        from posecast.dispatch.protocol import decode_message

        message = decode_message("object_position    -1.5 0 2e1")
        assert message.position.as_tuple() == (-1.5, 0.0, 20.0)

    @pytest.mark.parametrize("raw", [
        "object_position",
        "object_position 1.0 abc",
        "object_position 1.0 2.0",
        "object_position 1.0 2.0 3.0 4.0",
        "object_position 1.0  2.0 3.0",
        "object_position 1.0 abc 3.0",
        "object_position nan 0 0",
        "object_position inf 0 0",
        "object_position 1_0 0 0",
    ])
    def test_malformed_payload_raises(self, raw):
        from posecast.dispatch.protocol import decode_message
        from posecast.errors import MessageDecodeError

        with pytest.raises(MessageDecodeError) as exc_info:
            decode_message(raw)
        assert exc_info.value.tag == "object_position"
        assert exc_info.value.raw == raw

    def test_parse_decimal(self):
        from posecast.dispatch.protocol import parse_decimal

        assert parse_decimal("+.5") == 0.5
        assert parse_decimal("3.") == 3.0
        assert parse_decimal("-1E-3") == -0.001
        with pytest.raises(ValueError):
            parse_decimal(" 1")


class TestDispatch:
    """Routing, diagnostics and metrics."""

    def test_round_trip(self, dispatcher, recorded):
        from posecast.models.pose import Vector3

        assert dispatcher.dispatch("object_position 1.0 2.0 3.0") is True
        assert recorded == [Vector3(x=1.0, y=2.0, z=3.0)]

    def test_malformed_emits_one_diagnostic(self, dispatcher, recorded, caplog):
        caplog.set_level(logging.DEBUG)

        assert dispatcher.dispatch("object_position 1.0 abc") is False
        assert recorded == []
        assert len(_warnings(caplog)) == 1
        assert dispatcher.metrics.decode_errors == 1

    def test_unknown_tag_ignored_silently(self, dispatcher, recorded, caplog):
        caplog.set_level(logging.DEBUG)

        assert dispatcher.dispatch("pose_update 1 2 3") is False
        assert recorded == []
        assert _warnings(caplog) == []
        assert dispatcher.metrics.ignored == 1
        assert any(
            r.name == DISPATCH_LOGGER and "known: object_position" in r.getMessage()
            for r in caplog.records
        )

    def test_unhandled_type(self):
        from posecast.dispatch.dispatcher import InboundDispatcher

        dispatcher = InboundDispatcher()
        assert dispatcher.dispatch("object_position 0 0 0") is False
        assert dispatcher.metrics.unhandled == 1

    def test_duplicate_registration_rejected(self, dispatcher):
        from posecast.models.inbound import ObjectPositionMessage

        with pytest.raises(ValueError):
            dispatcher.register(ObjectPositionMessage, lambda msg: None)

    def test_metrics_counts(self, dispatcher):
        dispatcher.dispatch("object_position 0 0 0")
        dispatcher.dispatch("object_position x")
        dispatcher.dispatch("other")

        assert dispatcher.metrics.to_dict() == {
            "received": 3,
            "dispatched": 1,
            "ignored": 1,
            "decode_errors": 1,
            "unhandled": 0,
        }


class TestDispatchToRegistry:
    """Dispatcher wired to a real anchor registry."""

    def test_malformed_does_not_mutate_registry(self, registry):
        from posecast.dispatch.dispatcher import InboundDispatcher
        from posecast.models.inbound import ObjectPositionMessage

        dispatcher = InboundDispatcher()
        dispatcher.register(ObjectPositionMessage, lambda m: registry.place_if_far(m.position))

        dispatcher.dispatch("object_position 1.0 abc")
        assert len(registry) == 0

        dispatcher.dispatch("object_position 1.0 2.0 3.0")
        assert [a.position.as_tuple() for a in registry.anchors] == [(1.0, 2.0, 3.0)]
