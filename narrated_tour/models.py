"""Data models for narrated presentations."""

from asyncio import TimerHandle
from dataclasses import dataclass, field
from enum import Enum

from narrated_tour.constants import SPEECH_RATE, SPEECH_PITCH, SPEECH_VOLUME


class PlaybackState(Enum):
    IDLE = "idle"                   # before the experience starts
    TRANSITIONING = "transitioning" # scene gateway moving to a section
    NARRATING = "narrating"         # narration in flight
    WAITING = "waiting"             # auto-advance timer armed
    STOPPED = "stopped"             # nothing in flight, no timer armed


class NarrationOutcome(Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class Voice:
    id: str            # identifier handed to the synthesizer
    name: str          # display name, matched against voice preferences
    lang: str          # language tag, e.g. "en-GB"


@dataclass
class NarrationRequest:
    text: str
    voice: Voice
    rate: float = SPEECH_RATE
    pitch: float = SPEECH_PITCH
    volume: float = SPEECH_VOLUME


@dataclass
class NarrationSession:
    generation: int
    text: str
    outcome: NarrationOutcome | None = None


@dataclass(frozen=True)
class Section:
    id: str
    narration: str
    title: str = ""
    subtitle: str = ""
    content: str = ""
    gesture: str | None = None
    camera: tuple[float, float, float] | None = None


@dataclass
class Presentation:
    title: str
    sections: list[Section] = field(default_factory=list)

    @property
    def section_ids(self) -> list[str]:
        return [s.id for s in self.sections]

    @property
    def narrations(self) -> dict[str, str]:
        return {s.id: s.narration for s in self.sections}

    def get(self, section_id: str) -> Section | None:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None


@dataclass
class OrchestratorContext:
    current_index: int = 0
    is_playing: bool = False          # auto-advance authorized
    is_muted: bool = False
    state: PlaybackState = PlaybackState.IDLE
    generation: int = 0               # bumped by every play_section call
    narration_token: int | None = None  # generation of the narration in flight
    advance_timer: TimerHandle | None = None
