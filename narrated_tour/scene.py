"""Scene gateway interface and a console rendition of the 3-D stage."""

import asyncio
import logging
from abc import ABC, abstractmethod

from narrated_tour.constants import (
    CAMERA_MOVE_SECONDS,
    DEFAULT_CAMERA,
    ENTRANCE_AVATAR_SECONDS,
    ENTRANCE_UNPACK_SECONDS,
    SECTION_GESTURES,
    SECTION_HIDE_SECONDS,
    SECTION_REVEAL_SECONDS,
)
from narrated_tour.errors import SceneGatewayError
from narrated_tour.models import Presentation

logger = logging.getLogger(__name__)


class SceneGateway(ABC):
    """Visual side of the presentation, as seen by the orchestrator."""

    @abstractmethod
    async def transition_to(self, section_id: str) -> None:
        """Move to a section; resolves when the primary motion completes."""

    @abstractmethod
    def play_gesture(self, section_id: str) -> None:
        """Fire-and-forget avatar gesture cue."""

    @abstractmethod
    async def play_entrance(self) -> None:
        """One-time opening sequence before the first section."""


class ConsoleSceneGateway(SceneGateway):
    """Logs camera moves and gestures and waits out their timings.

    The outgoing section's exit and the incoming section's reveal are awaited;
    the camera glide is reported but not waited for.
    """

    def __init__(
        self,
        presentation: Presentation,
        hide_seconds: float = SECTION_HIDE_SECONDS,
        reveal_seconds: float = SECTION_REVEAL_SECONDS,
        entrance_seconds: tuple[float, float] = (ENTRANCE_UNPACK_SECONDS, ENTRANCE_AVATAR_SECONDS),
    ):
        self.presentation = presentation
        self.hide_seconds = hide_seconds
        self.reveal_seconds = reveal_seconds
        self.entrance_seconds = entrance_seconds
        self.current: str | None = None
        self.last_gesture: str | None = None

    async def transition_to(self, section_id: str) -> None:
        section = self.presentation.get(section_id)
        if section is None:
            raise SceneGatewayError(f"Unknown section: {section_id}")

        if self.current and self.current != section_id:
            logger.debug("Hiding section %s", self.current)
            await asyncio.sleep(self.hide_seconds)

        self.current = section_id
        camera = section.camera or DEFAULT_CAMERA
        logger.info(
            "Camera → (%.1f, %.1f, %.1f) over %.1fs for %s",
            *camera, CAMERA_MOVE_SECONDS, section_id,
        )
        await asyncio.sleep(self.reveal_seconds)

    def play_gesture(self, section_id: str) -> None:
        section = self.presentation.get(section_id)
        gesture = section.gesture if section and section.gesture else SECTION_GESTURES.get(section_id)
        self.last_gesture = gesture
        if gesture:
            logger.info("Avatar gesture: %s", gesture)

    async def play_entrance(self) -> None:
        unpack, avatar = self.entrance_seconds
        logger.info("Unpacking the box")
        await asyncio.sleep(unpack)
        logger.info("Avatar appears and waves")
        await asyncio.sleep(avatar)
