"""
Anchor Registry
===============

Tracks placed spatial anchors and enforces a minimum-separation rule.

Placement Algorithm (place_if_far):
    1. Snapshot the tracked anchors and drop those the factory reports gone
    2. Compute Euclidean distance from the candidate to every survivor
    3. If any distance <= min_separation: reject (INFO notice).
       Non-finite candidates are rejected up front (WARNING).
    4. Otherwise instantiate, bind to the reference frame, and track

Invariant:
    When a placement decision completes, no two tracked anchors are within
    min_separation of each other. A placement at exactly min_separation is
    rejected.

Concurrency:
    The tracked collection is an immutable tuple replaced wholesale
    (snapshot-then-commit). Pruning and scanning always work on a snapshot
    and never observe a half-mutated collection.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from posecast.anchors.scene import AnchorFactory
from posecast.models.pose import Vector3


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Anchor:
    """
    Tracked anchor record.

    Attributes:
        id: Unique anchor id (UUID4 string)
        position: World position, immutable after creation
        entity: Scene entity returned by the factory
    """

    id: str
    position: Vector3
    entity: object = field(compare=False, repr=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "position": self.position.model_dump(),
        }


class RegistryMetrics:
    """Counters for registry observability."""

    __slots__ = (
        "placed",
        "rejected",
        "pruned",
        "unconfigured",
        "missing_capability",
        "invalid",
    )

    def __init__(self) -> None:
        self.placed: int = 0
        self.rejected: int = 0
        self.pruned: int = 0
        self.unconfigured: int = 0
        self.missing_capability: int = 0
        self.invalid: int = 0

    def to_dict(self) -> dict:
        return {
            "placed": self.placed,
            "rejected": self.rejected,
            "pruned": self.pruned,
            "unconfigured": self.unconfigured,
            "missing_capability": self.missing_capability,
            "invalid": self.invalid,
        }


class AnchorRegistry:
    """
    Deduplicated set of spatial anchors.

    Attributes:
        factory: Anchor factory / scene (None disables placement)
        min_separation: Minimum distance between anchors (inclusive reject)
        reference_frame: Frame of reference new anchors are bound to

    Example:
        registry = AnchorRegistry(factory=InMemoryScene(), min_separation=1.0)

        registry.place_if_far(Vector3(x=0, y=0, z=0))    # placed
        registry.place_if_far(Vector3(x=0.5, y=0, z=0))  # rejected
        registry.place_if_far(Vector3(x=2, y=0, z=0))    # placed
    """

    def __init__(
        self,
        factory: Optional[AnchorFactory],
        min_separation: float = 1.0,
        reference_frame: Optional[str] = "player",
    ) -> None:
        if min_separation < 0:
            raise ValueError("min_separation must be >= 0")

        self.factory = factory
        self.min_separation = min_separation
        self.reference_frame = reference_frame

        self._anchors: Tuple[Anchor, ...] = ()
        self.metrics = RegistryMetrics()

        logger.info(
            f"AnchorRegistry initialized: min_separation={min_separation}, "
            f"reference_frame={reference_frame}, "
            f"factory={'configured' if factory is not None else 'missing'}"
        )

    @property
    def anchors(self) -> Tuple[Anchor, ...]:
        """Current tracked anchors (immutable snapshot)."""
        return self._anchors

    def __len__(self) -> int:
        return len(self._anchors)

    def _alive(self, snapshot: Tuple[Anchor, ...]) -> Tuple[Anchor, ...]:
        if self.factory is None:
            return snapshot
        return tuple(a for a in snapshot if self.factory.is_alive(a.entity))

    def prune(self) -> int:
        """
        Drop anchors whose entities no longer exist.

        Returns:
            Number of anchors pruned
        """
        snapshot = self._anchors
        alive = self._alive(snapshot)
        pruned = len(snapshot) - len(alive)
        if pruned:
            self.metrics.pruned += pruned
            logger.debug(f"Pruned {pruned} anchors no longer in the scene")
        self._anchors = alive
        return pruned

    def nearest_distance(self, candidate: Vector3, anchors: Optional[Tuple[Anchor, ...]] = None) -> Optional[float]:
        """
        Distance from ``candidate`` to the closest anchor.

        Returns:
            Minimum Euclidean distance, or None when there are no anchors
        """
        anchors = self._anchors if anchors is None else anchors
        if not anchors:
            return None
        positions = np.array([a.position.as_tuple() for a in anchors], dtype=np.float64)
        distances = np.linalg.norm(positions - np.array(candidate.as_tuple()), axis=1)
        return float(distances.min())

    def place_if_far(self, candidate: Vector3) -> Optional[Anchor]:
        """
        Place an anchor at ``candidate`` unless one is already close by.

        Args:
            candidate: Proposed anchor position

        Returns:
            The new Anchor, or None if placement was rejected or disabled
        """
        if self.factory is None:
            self.metrics.unconfigured += 1
            logger.warning("Anchor factory not configured, skipping placement")
            return None

        if not np.all(np.isfinite(candidate.as_tuple())):
            self.metrics.invalid += 1
            logger.warning(f"Anchor candidate is not finite, skipping: {candidate.as_tuple()}")
            return None

        snapshot = self._anchors
        alive = self._alive(snapshot)
        pruned = len(snapshot) - len(alive)
        if pruned:
            self.metrics.pruned += pruned
            logger.debug(f"Pruned {pruned} anchors no longer in the scene")

        nearest = self.nearest_distance(candidate, alive)
        if nearest is not None and nearest <= self.min_separation:
            self._anchors = alive
            self.metrics.rejected += 1
            logger.info(
                f"Anchor rejected at ({candidate.x:.3f}, {candidate.y:.3f}, {candidate.z:.3f}): "
                f"nearest anchor {nearest:.3f} <= {self.min_separation}"
            )
            return None

        entity = self.factory.instantiate(candidate)
        self._bind(entity)

        anchor = Anchor(id=str(uuid.uuid4()), position=candidate, entity=entity)
        self._anchors = alive + (anchor,)
        self.metrics.placed += 1

        logger.info(
            f"Anchor {anchor.id} placed at "
            f"({candidate.x:.3f}, {candidate.y:.3f}, {candidate.z:.3f}); "
            f"tracking {len(self._anchors)}"
        )
        return anchor

    def _bind(self, entity: object) -> None:
        """Associate a new entity with the reference frame, if it supports it."""
        if self.reference_frame is None:
            return

        bind = getattr(entity, "bind_reference_frame", None)
        if not callable(bind):
            self.metrics.missing_capability += 1
            logger.warning(
                f"Anchor entity {type(entity).__name__} cannot be bound to a "
                f"reference frame; placing unbound"
            )
            return

        bind(self.reference_frame)

    def clear(self) -> int:
        """
        Stop tracking all anchors (entities are left in the scene).

        Returns:
            Number of anchors dropped
        """
        count = len(self._anchors)
        self._anchors = ()
        return count

    def to_list(self) -> List[dict]:
        return [a.to_dict() for a in self._anchors]
