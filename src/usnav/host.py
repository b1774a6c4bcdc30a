"""
Adapter between a NavigationSession and a host application.

A host (scene graph, GUI, tracking bridge) drives the session through four
lifecycle hooks and delivers pointer pose updates. The session itself has no
dependency on any host framework.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from usnav.session import NavigationSession
from usnav.types import MatchResult, PoseUpdate

logger = logging.getLogger(__name__)


class HostHooks(ABC):
    """
    Lifecycle hooks a host calls on its navigation component.

    Example:
        >>> class MyHost(HostHooks):
        ...     def on_node_added(self, node): ...
        ...     def on_node_removed(self, node): ...
        ...     def on_scene_attached(self, scene): ...
        ...     def on_scene_updated(self): ...
    """

    @abstractmethod
    def on_node_added(self, node: Any) -> None:
        """Called when the host adds a node to its scene."""

    @abstractmethod
    def on_node_removed(self, node: Any) -> None:
        """Called when the host removes a node from its scene."""

    @abstractmethod
    def on_scene_attached(self, scene: Any) -> None:
        """Called when a scene is attached (or detached, with None)."""

    @abstractmethod
    def on_scene_updated(self) -> None:
        """Called after the host finished a batch of scene changes."""


class SessionHostAdapter(HostHooks):
    """
    Binds a NavigationSession to a host.

    Attributes:
        session: The session driven by the host.
        scene: The currently attached host scene, or None.
    """

    def __init__(self, session: NavigationSession) -> None:
        """
        Initialize the adapter.

        Args:
            session: Session to drive.

        Raises:
            TypeError: If session is not a NavigationSession.
        """
        if not isinstance(session, NavigationSession):
            raise TypeError(
                f"session must be NavigationSession, got {type(session).__name__}"
            )
        self.session = session
        self.scene: Optional[Any] = None

    def on_node_added(self, node: Any) -> None:
        logger.debug("Node added: %r", node)

    def on_node_removed(self, node: Any) -> None:
        logger.debug("Node removed: %r", node)

    def on_scene_attached(self, scene: Any) -> None:
        self.scene = scene
        logger.debug("Scene attached: %r", scene)

    def on_scene_updated(self) -> None:
        """
        Refresh after a host scene update.

        Raises:
            RuntimeError: If no scene is attached.
        """
        if self.scene is None:
            raise RuntimeError("on_scene_updated called without an attached scene")
        logger.debug(
            "Scene updated; frame %d/%d (%s)",
            self.session.get_current_frame(),
            self.session.get_frame_count(),
            self.session.get_current_frame_status(),
        )

    def dispatch(self, update: PoseUpdate) -> Optional[MatchResult]:
        """Forward a pose update to the session and return its match result."""
        return self.session.handle_pose_update(update)
