"""Integration tests — full presentation run with console collaborators."""

import asyncio
import io
import logging
import os

from narrated_tour.models import NarrationOutcome, PlaybackState
from narrated_tour.narration import NarrationEngine
from narrated_tour.orchestrator import PresentationOrchestrator
from narrated_tour.panel import ConsolePanel
from narrated_tour.scene import ConsoleSceneGateway
from narrated_tour.script import load_script

from conftest import FakeSpeechPlatform, wait_for

DEMO_SCRIPT = os.path.join(os.path.dirname(os.path.dirname(__file__)), "demo", "tour.json")


def _build(platform, out, delay=0.01):
    presentation = load_script(DEMO_SCRIPT)
    engine = NarrationEngine(platform, keep_alive_interval=0.02)
    panel = ConsolePanel(presentation, stream=out)
    engine.set_on_speaking_change(panel.set_speaking)
    gateway = ConsoleSceneGateway(presentation, hide_seconds=0, reveal_seconds=0, entrance_seconds=(0, 0))
    orchestrator = PresentationOrchestrator(
        presentation.section_ids, presentation.narrations, engine, gateway,
        sink=panel, advance_delay=delay,
    )
    return presentation, engine, gateway, orchestrator


def test_demo_tour_plays_through(voices, caplog):
    platform = FakeSpeechPlatform(voices=voices, duration=0.01)
    out = io.StringIO()
    presentation, engine, gateway, orch = _build(platform, out)

    async def scenario():
        await engine.initialize()
        await orch.start()
        await asyncio.wait_for(orch.wait_stopped(), timeout=5.0)

    with caplog.at_level(logging.INFO):
        asyncio.run(scenario())

    assert [r.text for r in platform.spoken] == [s.narration for s in presentation.sections]
    assert all(r.voice.name == "Daniel" for r in platform.spoken)
    assert gateway.current == "contact"
    assert orch.current_index == 5
    text = out.getvalue()
    assert "[1/6] Welcome" in text
    assert "[6/6] Thanks" in text
    assert text.count("(speaking)") == 6
    for gesture in ("thinking", "point-left", "open-arms", "point-up", "wave"):
        assert f"Avatar gesture: {gesture}" in caplog.text


def test_demo_tour_navigation_and_mute(voices):
    platform = FakeSpeechPlatform(voices=voices, duration=0.3)
    out = io.StringIO()
    presentation, engine, gateway, orch = _build(platform, out)

    async def scenario():
        await engine.initialize()
        asyncio.ensure_future(orch.start())
        await wait_for(lambda: engine.is_speaking)
        # Skip ahead twice, then mute mid-narration
        orch.skip_to_next()
        await asyncio.sleep(0)
        orch.skip_to_next()
        await wait_for(lambda: orch.current_index == 2 and engine.is_speaking)
        orch.toggle_mute()
        await orch.go_to_section(4)
        await asyncio.wait_for(orch.wait_stopped(), timeout=2.0)

    asyncio.run(scenario())
    assert orch.current_index == 4
    assert orch.state == PlaybackState.STOPPED
    assert gateway.current == "education"
    # Only the sections reached with sound on were ever narrated
    spoken_ids = [r.text for r in platform.spoken]
    assert presentation.get("education").narration not in spoken_ids
    assert engine.last_outcome == NarrationOutcome.CANCELLED


def test_silent_catalog_still_advances():
    """No voices at all: narration is a no-op and the chain still runs."""
    platform = FakeSpeechPlatform(voices=[])
    out = io.StringIO()
    presentation, engine, gateway, orch = _build(platform, out)

    async def scenario():
        init = asyncio.ensure_future(engine.initialize())
        await asyncio.sleep(0)
        platform.load_catalog([])
        await init
        await orch.start()
        await asyncio.wait_for(orch.wait_stopped(), timeout=5.0)

    asyncio.run(scenario())
    assert platform.spoken == []
    assert orch.current_index == len(presentation.sections) - 1
