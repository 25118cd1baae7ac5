"""Presentation orchestrator: section sequencing, auto-advance, interruption."""

import asyncio
import logging
from typing import Coroutine

from narrated_tour.constants import AUTO_ADVANCE_DELAY
from narrated_tour.models import OrchestratorContext, PlaybackState
from narrated_tour.narration import NarrationEngine
from narrated_tour.panel import PresentationSink
from narrated_tour.scene import SceneGateway

logger = logging.getLogger(__name__)


class PresentationOrchestrator:
    """Plays sections in order and reacts to navigation.

    Every play_section() call bumps a generation token. Each suspension point
    (transition, narration, auto-advance timer) re-checks the token on resume
    and drops its continuation if a newer call has run in the meantime, so the
    most recent navigation always wins.
    """

    def __init__(
        self,
        sections: list[str],
        narrations: dict[str, str],
        engine: NarrationEngine,
        gateway: SceneGateway,
        sink: PresentationSink | None = None,
        advance_delay: float = AUTO_ADVANCE_DELAY,
    ):
        if not sections:
            raise ValueError("A presentation needs at least one section")
        self.sections = tuple(sections)
        self.narrations = dict(narrations)
        self.engine = engine
        self.gateway = gateway
        self.sink = sink or PresentationSink()
        self.advance_delay = advance_delay
        self.context = OrchestratorContext()
        self._tasks: set[asyncio.Task] = set()
        self._stopped = asyncio.Event()

    @property
    def state(self) -> PlaybackState:
        return self.context.state

    @property
    def current_index(self) -> int:
        return self.context.current_index

    @property
    def current_section(self) -> str:
        return self.sections[self.context.current_index]

    @property
    def last_index(self) -> int:
        return len(self.sections) - 1

    def _set_state(self, state: PlaybackState) -> None:
        self.context.state = state
        if state is PlaybackState.STOPPED:
            self._stopped.set()
        else:
            self._stopped.clear()

    def _is_stale(self, token: int) -> bool:
        return token != self.context.generation

    async def start(self) -> None:
        """Play the entrance, then begin the auto-advancing run at section 0."""
        ctx = self.context
        if ctx.state is not PlaybackState.IDLE:
            logger.warning("Presentation already started")
            return
        ctx.is_playing = True
        self._set_state(PlaybackState.TRANSITIONING)
        token = ctx.generation
        await self.gateway.play_entrance()
        if self._is_stale(token):
            logger.debug("Navigation during entrance; not starting at section 0")
            return
        await self.play_section(0)

    async def play_section(self, index: int) -> None:
        """Transition to, gesture at, and narrate one section.

        The index is not range-checked; navigation handlers clamp it.
        """
        ctx = self.context
        ctx.generation += 1
        token = ctx.generation

        self.engine.stop()
        self._cancel_advance_timer()

        ctx.current_index = index
        ctx.narration_token = None
        section_id = self.sections[index]
        self._set_state(PlaybackState.TRANSITIONING)
        self.sink.show_section(index, section_id)
        logger.info("Playing section %d: %s", index, section_id)

        try:
            await self.gateway.transition_to(section_id)
        except Exception:
            if not self._is_stale(token):
                self._set_state(PlaybackState.STOPPED)
            raise
        if self._is_stale(token):
            logger.debug("Discarding stale transition to %s", section_id)
            return

        self.gateway.play_gesture(section_id)

        if not ctx.is_muted:
            text = self.narrations.get(section_id, "")
            ctx.narration_token = token
            self._set_state(PlaybackState.NARRATING)
            self.sink.show_caption(text)
            await self.engine.speak(text)
            if self._is_stale(token):
                logger.debug("Discarding stale narration for %s", section_id)
                return
            ctx.narration_token = None
            self.sink.hide_caption()

        if index < self.last_index and ctx.is_playing:
            self._set_state(PlaybackState.WAITING)
            loop = asyncio.get_running_loop()
            ctx.advance_timer = loop.call_later(
                self.advance_delay, self._on_advance_timer, token, index,
            )
        else:
            self._set_state(PlaybackState.STOPPED)

    def _on_advance_timer(self, token: int, index: int) -> None:
        ctx = self.context
        ctx.advance_timer = None
        if self._is_stale(token) or not ctx.is_playing or ctx.current_index != index:
            logger.debug("Dropping stale auto-advance from section %d", index)
            return
        self._spawn(self.play_section(index + 1))

    def _cancel_advance_timer(self) -> None:
        timer = self.context.advance_timer
        if timer is not None:
            timer.cancel()
            self.context.advance_timer = None

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Section playback failed: %s", exc, exc_info=exc)

    # --- User commands ---

    def go_to_section(self, index: int) -> asyncio.Task:
        """Jump to a section. Stops the auto-advance chain."""
        self.context.is_playing = False
        self.engine.stop()
        self.sink.hide_caption()
        return self._spawn(self.play_section(index))

    def skip_to_next(self) -> asyncio.Task | None:
        if self.context.current_index >= self.last_index:
            return None
        return self.go_to_section(self.context.current_index + 1)

    def previous(self) -> asyncio.Task:
        return self.go_to_section(max(0, self.context.current_index - 1))

    def toggle_mute(self) -> bool:
        """Flip mute. Muting cuts narration off; unmuting never replays it."""
        ctx = self.context
        ctx.is_muted = not ctx.is_muted
        if ctx.is_muted:
            self.engine.stop()
        self.sink.set_muted(ctx.is_muted)
        logger.info("Muted" if ctx.is_muted else "Unmuted")
        return ctx.is_muted

    def pause_narration(self) -> None:
        self.engine.pause()

    def resume_narration(self) -> None:
        self.engine.resume()

    async def wait_stopped(self) -> None:
        """Wait until nothing is in flight and no auto-advance is armed."""
        await self._stopped.wait()

    async def close(self) -> None:
        """Cancel the timer, narration and any section still playing."""
        self.context.is_playing = False
        self._cancel_advance_timer()
        self.engine.stop()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._set_state(PlaybackState.STOPPED)
