"""Shared fixtures for narrated tour tests."""

import asyncio

import pytest

from narrated_tour.errors import NarrationInterrupted, SceneGatewayError
from narrated_tour.models import Presentation, Section, Voice
from narrated_tour.panel import PresentationSink
from narrated_tour.scene import SceneGateway
from narrated_tour.speech import SpeechPlatform


class FakeSpeechPlatform(SpeechPlatform):
    """In-memory speech platform: each utterance lasts `duration` seconds."""

    def __init__(self, voices=None, duration=0.05, error=None):
        self.on_voices_changed = None
        self.voices = list(voices or [])
        self.duration = duration
        self.error = error          # raised instead of completing, if set
        self.spoken = []            # NarrationRequest objects, in order
        self.calls = []             # "cancel", "pause", "resume"
        self.active = 0             # utterances currently in flight
        self._current = None

    def get_voices(self):
        return list(self.voices)

    def load_catalog(self, voices):
        self.voices = list(voices)
        if self.on_voices_changed:
            self.on_voices_changed()

    async def speak(self, request, on_start):
        loop = asyncio.get_running_loop()
        done = loop.create_future()
        self._current = done
        self.spoken.append(request)
        self.active += 1

        def finish():
            if done.done():
                return
            if self.error is not None:
                done.set_exception(self.error)
            else:
                done.set_result(None)

        handle = loop.call_later(self.duration, finish)
        on_start()
        try:
            await done
        finally:
            handle.cancel()
            self.active -= 1
            if self._current is done:
                self._current = None

    def cancel(self):
        self.calls.append("cancel")
        if self._current is not None and not self._current.done():
            self._current.set_exception(NarrationInterrupted("canceled"))

    def pause(self):
        self.calls.append("pause")

    def resume(self):
        self.calls.append("resume")


class FakeSceneGateway(SceneGateway):
    def __init__(self, delay=0.01, fail_on=None, entrance_delay=0.0):
        self.delay = delay
        self.entrance_delay = entrance_delay
        self.fail_on = fail_on
        self.transitions = []
        self.gestures = []
        self.entrances = 0

    async def transition_to(self, section_id):
        self.transitions.append(section_id)
        await asyncio.sleep(self.delay)
        if section_id == self.fail_on:
            raise SceneGatewayError(f"Broken scene: {section_id}")

    def play_gesture(self, section_id):
        self.gestures.append(section_id)

    async def play_entrance(self):
        self.entrances += 1
        await asyncio.sleep(self.entrance_delay)


class RecordingSink(PresentationSink):
    def __init__(self):
        self.events = []

    def show_section(self, index, section_id):
        self.events.append(("section", index, section_id))

    def show_caption(self, text):
        self.events.append(("caption", text))

    def hide_caption(self):
        self.events.append(("hide_caption",))

    def set_speaking(self, speaking):
        self.events.append(("speaking", speaking))

    def set_muted(self, muted):
        self.events.append(("muted", muted))


async def wait_for(predicate, timeout=2.0):
    """Poll until predicate() is true or fail after timeout seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture
def voices():
    return [
        Voice(id="alex", name="Alex", lang="en-US"),
        Voice(id="daniel", name="Daniel", lang="en-GB"),
    ]


@pytest.fixture
def platform(voices):
    return FakeSpeechPlatform(voices=voices)


@pytest.fixture
def gateway():
    return FakeSceneGateway()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def sample_presentation():
    """Three-section presentation used by orchestrator and console tests."""
    return Presentation(
        title="Tour",
        sections=[
            Section(id="welcome", narration="Hello there.", title="Welcome", camera=(0.0, 1.5, 5.0)),
            Section(id="about", narration="About me.", title="About", subtitle="Background"),
            Section(id="contact", narration="Goodbye.", title="Contact", content="Email\nPhone"),
        ],
    )
