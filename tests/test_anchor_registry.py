"""
Anchor Registry Tests
=====================

Minimum-separation placement, pruning and degraded configurations.
"""

import itertools
import logging

import numpy as np
import pytest


REGISTRY_LOGGER = "posecast.anchors.registry"


def v(x, y=0.0, z=0.0):
    from posecast.models.pose import Vector3

    return Vector3(x=x, y=y, z=z)


class TestPlacement:
    """Separation rule."""

    def test_first_candidate_placed(self, registry, scene):
        anchor = registry.place_if_far(v(0.0))

        assert anchor is not None
        assert anchor.position == v(0.0)
        assert len(registry) == 1
        assert len(scene) == 1

    def test_reject_then_accept_scenario(self, registry):
        assert registry.place_if_far(v(0.0)) is not None
        assert registry.place_if_far(v(0.5)) is None
        assert registry.place_if_far(v(2.0)) is not None

        assert [a.position.x for a in registry.anchors] == [0.0, 2.0]
        assert registry.metrics.rejected == 1
        assert registry.metrics.placed == 2

    def test_exact_separation_rejected(self, registry):
        registry.place_if_far(v(0.0))

        assert registry.place_if_far(v(1.0)) is None
        assert registry.place_if_far(v(0.0, 0.0, -1.0)) is None
        assert len(registry) == 1

    def test_just_beyond_separation_accepted(self, registry):
        registry.place_if_far(v(0.0))

        assert registry.place_if_far(v(1.0001)) is not None

    def test_same_candidate_twice_is_idempotent(self, registry):
        registry.place_if_far(v(3.0, 1.0, -2.0))
        registry.place_if_far(v(3.0, 1.0, -2.0))

        assert len(registry) == 1

    def test_rejection_is_logged_as_notice(self, registry, caplog):
        caplog.set_level(logging.DEBUG)
        registry.place_if_far(v(0.0))
        registry.place_if_far(v(0.2))

        records = [r for r in caplog.records if r.name == REGISTRY_LOGGER and "rejected" in r.getMessage()]
        assert len(records) == 1
        assert records[0].levelno == logging.INFO

    def test_pairwise_separation_holds(self, registry):
        rng = np.random.default_rng(7)
        for point in rng.uniform(-3.0, 3.0, size=(300, 3)):
            registry.place_if_far(v(*map(float, point)))

        positions = [a.position for a in registry.anchors]
        assert len(positions) > 1
        for a, b in itertools.combinations(positions, 2):
            assert a.distance_to(b) > registry.min_separation

    def test_custom_separation(self, scene):
        from posecast.anchors.registry import AnchorRegistry

        registry = AnchorRegistry(factory=scene, min_separation=0.25)
        registry.place_if_far(v(0.0))

        assert registry.place_if_far(v(0.5)) is not None

    def test_negative_separation_rejected(self, scene):
        from posecast.anchors.registry import AnchorRegistry

        with pytest.raises(ValueError):
            AnchorRegistry(factory=scene, min_separation=-1.0)


class TestNonFiniteCandidates:
    """NaN/inf positions never reach the tracked set."""

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
    def test_vector_rejects_non_finite(self, bad):
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            v(bad)

    def test_unvalidated_nan_does_not_disable_separation(self, registry, caplog):
        from posecast.models.pose import Vector3

        caplog.set_level(logging.DEBUG)
        registry.place_if_far(v(0.0))

        nan_candidate = Vector3.model_construct(x=float("nan"), y=0.0, z=0.0)
        assert registry.place_if_far(nan_candidate) is None
        assert registry.place_if_far(v(0.0)) is None

        assert len(registry) == 1
        assert registry.metrics.invalid == 1
        assert any(
            r.name == REGISTRY_LOGGER and r.levelno == logging.WARNING
            for r in caplog.records
        )


class TestPruning:
    """Anchors removed from the scene are dropped lazily."""

    def test_removed_anchor_frees_its_space(self, registry, scene):
        anchor = registry.place_if_far(v(0.0))
        scene.remove(anchor.entity)

        assert len(registry) == 1
        assert registry.place_if_far(v(0.5)) is not None
        assert [a.position.x for a in registry.anchors] == [0.5]
        assert registry.metrics.pruned == 1

    def test_scene_teardown(self, registry, scene):
        registry.place_if_far(v(0.0))
        registry.place_if_far(v(5.0))
        scene.remove_all()

        assert registry.prune() == 2
        assert registry.anchors == ()

    def test_prune_committed_on_rejection(self, registry, scene):
        first = registry.place_if_far(v(0.0))
        registry.place_if_far(v(5.0))
        scene.remove(first.entity)

        assert registry.place_if_far(v(5.5)) is None
        assert [a.position.x for a in registry.anchors] == [5.0]


class TestDegraded:
    """Missing factory or capability."""

    def test_missing_factory_is_noop(self, caplog):
        from posecast.anchors.registry import AnchorRegistry

        caplog.set_level(logging.DEBUG)
        registry = AnchorRegistry(factory=None)

        assert registry.place_if_far(v(0.0)) is None
        assert len(registry) == 0
        assert registry.metrics.unconfigured == 1
        assert any(
            r.name == REGISTRY_LOGGER and r.levelno == logging.WARNING
            for r in caplog.records
        )

    def test_entity_without_binding_still_placed(self, caplog):
        from posecast.anchors.registry import AnchorRegistry

        class BareFactory:
            def instantiate(self, position):
                return object()

            def is_alive(self, entity):
                return True

        caplog.set_level(logging.DEBUG)
        registry = AnchorRegistry(factory=BareFactory(), reference_frame="player")

        assert registry.place_if_far(v(0.0)) is not None
        assert len(registry) == 1
        assert registry.metrics.missing_capability == 1
        assert any(
            r.name == REGISTRY_LOGGER and r.levelno == logging.WARNING
            for r in caplog.records
        )

    def test_entity_bound_to_reference_frame(self, registry):
        anchor = registry.place_if_far(v(0.0))

        assert anchor.entity.reference_frame == "player"


class TestViews:
    """Read-only views."""

    def test_nearest_distance(self, registry):
        assert registry.nearest_distance(v(0.0)) is None
        registry.place_if_far(v(3.0))

        assert registry.nearest_distance(v(0.0, 4.0)) == pytest.approx(5.0)

    def test_to_list_and_clear(self, registry):
        anchor = registry.place_if_far(v(1.0, 2.0, 3.0))

        assert registry.to_list() == [
            {"id": anchor.id, "position": {"x": 1.0, "y": 2.0, "z": 3.0}}
        ]
        assert registry.clear() == 1
        assert registry.to_list() == []
