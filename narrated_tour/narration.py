"""Narration engine: voice selection, cancellable speech, and keep-alive."""

import asyncio
import logging
from typing import Callable

from narrated_tour.constants import (
    KEEP_ALIVE_INTERVAL,
    PREFERRED_VOICES,
    SPEECH_PITCH,
    SPEECH_RATE,
    SPEECH_VOLUME,
    TARGET_LANGUAGE,
)
from narrated_tour.errors import NarrationInterrupted, NarrationPlatformError
from narrated_tour.models import NarrationOutcome, NarrationRequest, NarrationSession, Voice
from narrated_tour.speech import SpeechPlatform
from narrated_tour.voices import select_voice

logger = logging.getLogger(__name__)


class NarrationEngine:
    """Wraps a SpeechPlatform for section narration.

    speak() never raises: cancellation and platform errors both resolve
    normally. The outcome of the most recent session is kept in last_outcome.

    Some speech backends silently halt long utterances unless playback is
    periodically paused and resumed, so while speaking the engine re-arms a
    keep-alive timer every keep_alive_interval seconds.
    """

    def __init__(
        self,
        platform: SpeechPlatform,
        preferred_voices: list[str] | None = None,
        language: str = TARGET_LANGUAGE,
        keep_alive_interval: float = KEEP_ALIVE_INTERVAL,
        rate: float = SPEECH_RATE,
        pitch: float = SPEECH_PITCH,
        volume: float = SPEECH_VOLUME,
    ):
        self.platform = platform
        self.preferred_voices = preferred_voices if preferred_voices is not None else list(PREFERRED_VOICES)
        self.language = language
        self.keep_alive_interval = keep_alive_interval
        self.rate = rate
        self.pitch = pitch
        self.volume = volume

        self.voice: Voice | None = None
        self.is_speaking = False
        self.is_paused = False
        self.last_outcome: NarrationOutcome | None = None
        self.keep_alive_cycles = 0
        self._generation = 0
        self._session: NarrationSession | None = None
        self._keep_alive_handle: asyncio.TimerHandle | None = None
        self._on_speaking_change: Callable[[bool], None] | None = None

    @property
    def session(self) -> NarrationSession | None:
        return self._session

    def set_on_speaking_change(self, callback: Callable[[bool], None] | None) -> None:
        """Register the single speaking-state listener (replaces any previous one)."""
        self._on_speaking_change = callback

    async def initialize(self) -> Voice | None:
        """Wait for the voice catalog and resolve the narration voice."""
        voices = self.platform.get_voices()
        if not voices:
            ready = asyncio.get_running_loop().create_future()

            def on_ready():
                if not ready.done():
                    ready.set_result(None)

            self.platform.on_voices_changed = on_ready
            try:
                await ready
            finally:
                self.platform.on_voices_changed = None
            voices = self.platform.get_voices()

        self.voice = select_voice(voices, self.preferred_voices, self.language)
        if self.voice is None:
            logger.info("No synthesizable voice available; narration is silent")
        else:
            logger.info("Narrating with %s (%s)", self.voice.name, self.voice.lang)
        return self.voice

    async def speak(self, text: str) -> None:
        """Speak text, superseding anything already speaking."""
        self.platform.cancel()
        self._cancel_keep_alive()
        self.is_paused = False

        self._generation += 1
        session = NarrationSession(generation=self._generation, text=text)
        self._session = session

        if self.voice is None or not text.strip():
            session.outcome = NarrationOutcome.COMPLETED
            self._finish(session)
            return

        request = NarrationRequest(
            text=text,
            voice=self.voice,
            rate=self.rate,
            pitch=self.pitch,
            volume=self.volume,
        )
        try:
            await self.platform.speak(request, on_start=lambda: self._on_start(session))
        except NarrationInterrupted:
            session.outcome = NarrationOutcome.CANCELLED
        except NarrationPlatformError as e:
            logger.warning("Speech synthesis error: %s", e)
            session.outcome = NarrationOutcome.FAILED
        else:
            session.outcome = NarrationOutcome.COMPLETED
        finally:
            if session.outcome is None:
                session.outcome = NarrationOutcome.CANCELLED
            self._finish(session)

    def stop(self) -> None:
        """Cancel any narration in flight. Safe to call at any time."""
        self.platform.cancel()
        self._session = None
        self.is_paused = False
        self._set_speaking(False)

    def pause(self) -> None:
        if self.is_speaking:
            self.platform.pause()
            self.is_paused = True

    def resume(self) -> None:
        self.platform.resume()
        self.is_paused = False

    def _on_start(self, session: NarrationSession) -> None:
        if self._session is not session:
            return
        self._set_speaking(True)
        self._arm_keep_alive()

    def _finish(self, session: NarrationSession) -> None:
        self.last_outcome = session.outcome
        logger.debug("Narration %d ended: %s", session.generation, session.outcome.value)
        # A superseded session leaves the speaking flag to its successor
        if self._session is session:
            self._session = None
            self._set_speaking(False)

    def _set_speaking(self, speaking: bool) -> None:
        if not speaking:
            self._cancel_keep_alive()
        if speaking == self.is_speaking:
            return
        self.is_speaking = speaking
        if self._on_speaking_change:
            self._on_speaking_change(speaking)

    def _arm_keep_alive(self) -> None:
        self._cancel_keep_alive()
        loop = asyncio.get_running_loop()
        self._keep_alive_handle = loop.call_later(self.keep_alive_interval, self._keep_alive)

    def _keep_alive(self) -> None:
        self._keep_alive_handle = None
        if not self.is_speaking:
            return
        # Never un-pause narration the user paused
        if not self.is_paused:
            self.platform.pause()
            self.platform.resume()
            self.keep_alive_cycles += 1
        self._arm_keep_alive()

    def _cancel_keep_alive(self) -> None:
        if self._keep_alive_handle is not None:
            self._keep_alive_handle.cancel()
            self._keep_alive_handle = None
