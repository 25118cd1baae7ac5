"""Speech platform interface and the edge-tts + ffplay implementation."""

import asyncio
import logging
import os
import signal
import tempfile
from abc import ABC, abstractmethod
from typing import Callable

import edge_tts
from pydub import AudioSegment

from narrated_tour.constants import AUDIO_PLAYER, NARRATION_TARGET_DBFS
from narrated_tour.errors import NarrationInterrupted, NarrationPlatformError
from narrated_tour.models import NarrationRequest, Voice
from narrated_tour.voices import voice_from_edge

logger = logging.getLogger(__name__)


class SpeechPlatform(ABC):
    """Text-to-speech capability driven by the NarrationEngine.

    Platforms report cancellation as NarrationInterrupted and every other
    failure as NarrationPlatformError from speak().
    """

    on_voices_changed: Callable[[], None] | None = None

    @abstractmethod
    def get_voices(self) -> list[Voice]:
        """Return the catalog as currently known; may be empty until loaded."""

    @abstractmethod
    async def speak(self, request: NarrationRequest, on_start: Callable[[], None]) -> None:
        """Speak one request, calling on_start when audio begins."""

    @abstractmethod
    def cancel(self) -> None:
        """Cancel everything queued or playing. Safe when idle."""

    @abstractmethod
    def pause(self) -> None:
        pass

    @abstractmethod
    def resume(self) -> None:
        pass


def edge_prosody(rate: float, pitch: float, volume: float) -> dict[str, str]:
    """Convert multiplicative prosody to edge-tts strings.

    rate=0.95 → "-5%", volume=1.0 → "+0%", pitch=1.1 → "+10Hz" relative to
    a nominal 100 Hz base.
    """
    return {
        "rate": f"{round((rate - 1.0) * 100):+d}%",
        "volume": f"{round((volume - 1.0) * 100):+d}%",
        "pitch": f"{round((pitch - 1.0) * 100):+d}Hz",
    }


def prepare_clip(mp3_path: str, wav_path: str, target_dbfs: float = NARRATION_TARGET_DBFS) -> float:
    """Normalize a synthesized clip and write it as WAV for the player.

    Silent clips (dBFS = -inf) are left unchanged. Returns duration in seconds.
    """
    audio = AudioSegment.from_mp3(mp3_path)
    if audio.dBFS != float("-inf"):
        audio = audio + (target_dbfs - audio.dBFS)
    audio.export(wav_path, format="wav")
    return len(audio) / 1000


class _Utterance:
    def __init__(self, request: NarrationRequest):
        self.request = request
        self.cancelled = False
        self.paused = False
        self.process: asyncio.subprocess.Process | None = None


class EdgeSpeechPlatform(SpeechPlatform):
    """Synthesizes with edge-tts and plays through ffplay.

    Pause and resume stop and continue the player process (POSIX signals),
    which is why the keep-alive pause/resume pair is harmless here.
    """

    def __init__(self, player: str = AUDIO_PLAYER, target_dbfs: float = NARRATION_TARGET_DBFS):
        self.player = player
        self.target_dbfs = target_dbfs
        self.on_voices_changed = None
        self._voices: list[Voice] = []
        self._voices_task: asyncio.Task | None = None
        self._current: _Utterance | None = None

    def get_voices(self) -> list[Voice]:
        # The catalog loads lazily, like a browser's voice list
        if not self._voices and self._voices_task is None:
            self._voices_task = asyncio.get_running_loop().create_task(self._load_voices())
        return list(self._voices)

    async def _load_voices(self) -> None:
        try:
            entries = await edge_tts.list_voices()
            self._voices = [voice_from_edge(e) for e in entries]
            logger.debug("Loaded %d voices", len(self._voices))
        except Exception as e:
            logger.warning("Could not load voice catalog: %s", e)
            self._voices = []
        if self.on_voices_changed:
            self.on_voices_changed()

    async def speak(self, request: NarrationRequest, on_start: Callable[[], None]) -> None:
        utterance = _Utterance(request)
        self._current = utterance
        try:
            with tempfile.TemporaryDirectory(prefix="narration-") as tmp:
                await self._synthesize(utterance, tmp)
                await self._play(utterance, os.path.join(tmp, "narration.wav"), on_start)
        finally:
            if utterance.process and utterance.process.returncode is None:
                try:
                    utterance.process.kill()
                except ProcessLookupError:
                    pass
            if self._current is utterance:
                self._current = None

    async def _synthesize(self, utterance: _Utterance, tmp: str) -> None:
        request = utterance.request
        mp3_path = os.path.join(tmp, "narration.mp3")
        wav_path = os.path.join(tmp, "narration.wav")
        try:
            communicate = edge_tts.Communicate(
                request.text,
                request.voice.id,
                **edge_prosody(request.rate, request.pitch, request.volume),
            )
            await communicate.save(mp3_path)
            if utterance.cancelled:
                raise NarrationInterrupted("canceled")
            # 0-byte output counts as failure
            if not os.path.exists(mp3_path) or os.path.getsize(mp3_path) == 0:
                raise NarrationPlatformError(f"TTS produced 0-byte file for: {request.text[:50]}...")
            duration = await asyncio.to_thread(prepare_clip, mp3_path, wav_path, self.target_dbfs)
            logger.debug("Synthesized %.1fs of narration with %s", duration, request.voice.id)
        except (NarrationInterrupted, NarrationPlatformError):
            raise
        except Exception as e:
            if utterance.cancelled:
                raise NarrationInterrupted("canceled") from e
            raise NarrationPlatformError(str(e)) from e
        if utterance.cancelled:
            raise NarrationInterrupted("canceled")

    async def _play(self, utterance: _Utterance, wav_path: str, on_start: Callable[[], None]) -> None:
        try:
            utterance.process = await asyncio.create_subprocess_exec(
                self.player, "-nodisp", "-autoexit", "-loglevel", "quiet", wav_path,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise NarrationPlatformError(f"Could not start {self.player}: {e}") from e

        on_start()
        returncode = await utterance.process.wait()
        if utterance.cancelled:
            raise NarrationInterrupted("canceled")
        if returncode != 0:
            raise NarrationPlatformError(f"{self.player} exited with status {returncode}")

    def cancel(self) -> None:
        utterance = self._current
        if utterance is None:
            return
        utterance.cancelled = True
        process = utterance.process
        if process and process.returncode is None:
            if utterance.paused:
                self._signal(process, signal.SIGCONT)
            try:
                process.terminate()
            except ProcessLookupError:
                pass

    def pause(self) -> None:
        utterance = self._current
        if utterance and utterance.process and not utterance.paused:
            self._signal(utterance.process, signal.SIGSTOP)
            utterance.paused = True

    def resume(self) -> None:
        utterance = self._current
        if utterance and utterance.process and utterance.paused:
            self._signal(utterance.process, signal.SIGCONT)
            utterance.paused = False

    @staticmethod
    def _signal(process: asyncio.subprocess.Process, sig: int) -> None:
        if process.returncode is not None:
            return
        try:
            process.send_signal(sig)
        except ProcessLookupError:
            pass
