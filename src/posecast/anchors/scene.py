"""
Anchor Scene
============

Factory contract for anchor entities, and an in-memory scene implementation.

The registry does not own anchor entities. It asks a factory to instantiate
them and asks the same factory whether they still exist, so that entities
removed externally (scene teardown) are pruned lazily.

Capabilities:
    Entities MAY expose ``bind_reference_frame(frame: str)`` to associate
    themselves with the owning player / frame of reference. Entities that
    lack it are still placed; the registry logs a diagnostic.
"""

import itertools
import logging
import threading
from typing import Dict, List, Optional, Protocol

from posecast.models.pose import Vector3


logger = logging.getLogger(__name__)


class AnchorFactory(Protocol):
    """Creates anchor entities and reports whether they still exist."""

    def instantiate(self, position: Vector3) -> object:
        ...

    def is_alive(self, entity: object) -> bool:
        ...


class SceneAnchor:
    """
    Anchor entity living in an InMemoryScene.

    Attributes:
        entity_id: Scene-unique integer id
        position: World position (immutable after creation)
        reference_frame: Frame of reference it is bound to, if any
    """

    __slots__ = ("entity_id", "position", "reference_frame", "_alive")

    def __init__(self, entity_id: int, position: Vector3) -> None:
        self.entity_id = entity_id
        self.position = position
        self.reference_frame: Optional[str] = None
        self._alive = True

    @property
    def alive(self) -> bool:
        return self._alive

    def bind_reference_frame(self, frame: str) -> None:
        self.reference_frame = frame

    def destroy(self) -> None:
        self._alive = False

    def __repr__(self) -> str:
        return (
            f"SceneAnchor(id={self.entity_id}, "
            f"position=({self.position.x:.2f}, {self.position.y:.2f}, {self.position.z:.2f}), "
            f"frame={self.reference_frame})"
        )


class InMemoryScene:
    """
    Minimal scene that hosts anchor entities.

    Stands in for the rendering engine's scene graph: it instantiates
    anchors on request and supports external removal.

    Example:
        scene = InMemoryScene()
        registry = AnchorRegistry(factory=scene)

        scene.remove_all()  # teardown; registry prunes on next placement
    """

    def __init__(self) -> None:
        self._entities: Dict[int, SceneAnchor] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def instantiate(self, position: Vector3) -> SceneAnchor:
        with self._lock:
            entity = SceneAnchor(next(self._ids), position)
            self._entities[entity.entity_id] = entity
        logger.debug(f"Scene instantiated {entity!r}")
        return entity

    def is_alive(self, entity: object) -> bool:
        return isinstance(entity, SceneAnchor) and entity.alive

    def remove(self, entity: SceneAnchor) -> bool:
        """Destroy one entity. Returns False if it was not in the scene."""
        with self._lock:
            found = self._entities.pop(entity.entity_id, None)
        if found is None:
            return False
        found.destroy()
        return True

    def remove_all(self) -> int:
        """Destroy every entity (scene teardown)."""
        with self._lock:
            entities = list(self._entities.values())
            self._entities.clear()
        for entity in entities:
            entity.destroy()
        logger.info(f"Scene teardown removed {len(entities)} anchors")
        return len(entities)

    def entities(self) -> List[SceneAnchor]:
        with self._lock:
            return list(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)
