"""
Anchors Module
==============

Spatial anchors placed in response to server-provided positions.

    - AnchorRegistry: Minimum-separation placement and tracking
    - AnchorFactory: Contract for creating anchor entities
    - InMemoryScene: Scene implementation with external removal
"""

from posecast.anchors.scene import AnchorFactory, InMemoryScene, SceneAnchor
from posecast.anchors.registry import Anchor, AnchorRegistry, RegistryMetrics


__all__ = [
    "Anchor",
    "AnchorFactory",
    "AnchorRegistry",
    "InMemoryScene",
    "RegistryMetrics",
    "SceneAnchor",
]
