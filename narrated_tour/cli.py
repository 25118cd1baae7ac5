"""CLI interface: play a presentation, list voices, inspect a script."""

import argparse
import asyncio
import logging
import shutil
import sys

import edge_tts

from narrated_tour.constants import AUDIO_PLAYER, PREFERRED_VOICES, VERSION
from narrated_tour.errors import ScriptError
from narrated_tour.models import Presentation
from narrated_tour.narration import NarrationEngine
from narrated_tour.orchestrator import PresentationOrchestrator
from narrated_tour.panel import ConsolePanel
from narrated_tour.scene import ConsoleSceneGateway
from narrated_tour.script import load_script
from narrated_tour.speech import EdgeSpeechPlatform
from narrated_tour.voices import filter_voices, voice_from_edge

logger = logging.getLogger(__name__)


HELP_TEXT = "Commands: n(ext), b(ack), <number>, m(ute), pause, resume, q(uit)"


def _check_player():
    """Verify ffplay (part of ffmpeg) is installed."""
    if not shutil.which(AUDIO_PLAYER):
        print(f"Error: {AUDIO_PLAYER} is required but not found.", file=sys.stderr)
        print("Install ffmpeg, e.g.: brew install ffmpeg", file=sys.stderr)
        raise SystemExit(1)


def _load(path: str) -> Presentation:
    try:
        return load_script(path)
    except ScriptError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)


def parse_command(line: str) -> tuple[str, int | None] | None:
    """Map one line of input to (command, argument).

    Section numbers are 1-based on input and returned 0-based. Unknown input
    returns None.
    """
    word = line.strip().lower()
    if word in ("n", "next", ""):
        return ("skip_next", None)
    if word in ("b", "back", "previous"):
        return ("previous", None)
    if word in ("m", "mute"):
        return ("toggle_mute", None)
    if word in ("pause", "resume"):
        return (word, None)
    if word in ("q", "quit", "exit"):
        return ("quit", None)
    if word.isdecimal():
        return ("go_to", int(word) - 1)
    return None


def dispatch(orchestrator: PresentationOrchestrator, command: str, arg: int | None) -> None:
    """Apply a parsed command to the orchestrator."""
    if command == "skip_next":
        orchestrator.skip_to_next()
    elif command == "previous":
        orchestrator.previous()
    elif command == "go_to":
        index = min(max(arg, 0), orchestrator.last_index)
        orchestrator.go_to_section(index)
    elif command == "toggle_mute":
        orchestrator.toggle_mute()
    elif command == "pause":
        orchestrator.pause_narration()
    elif command == "resume":
        orchestrator.resume_narration()


async def _play(presentation: Presentation, args) -> None:
    platform = EdgeSpeechPlatform()
    preferred = list(args.voice or []) + list(PREFERRED_VOICES)
    engine = NarrationEngine(platform, preferred_voices=preferred)
    print("Loading voices...")
    voice = await engine.initialize()
    if voice is None:
        print("No voices available; continuing without narration.")
    else:
        print(f"Voice: {voice.name}")

    panel = ConsolePanel(presentation)
    engine.set_on_speaking_change(panel.set_speaking)
    gateway = ConsoleSceneGateway(presentation)
    orchestrator = PresentationOrchestrator(
        presentation.section_ids,
        presentation.narrations,
        engine,
        gateway,
        sink=panel,
    )
    if args.muted:
        orchestrator.toggle_mute()

    if presentation.title:
        print(presentation.title)
    print(HELP_TEXT)
    start = asyncio.get_running_loop().create_task(orchestrator.start())

    try:
        while True:
            line = await asyncio.to_thread(sys.stdin.readline)
            if not line:
                # End of input: let the presentation run out
                await asyncio.wait({start})
                if start.exception() is None:
                    await orchestrator.wait_stopped()
                break
            parsed = parse_command(line)
            if parsed is None:
                print(HELP_TEXT)
                continue
            command, arg = parsed
            if command == "quit":
                break
            dispatch(orchestrator, command, arg)
    finally:
        if not start.done():
            start.cancel()
        elif not start.cancelled() and start.exception() is not None:
            logger.error("Presentation failed: %s", start.exception())
        await orchestrator.close()


def cmd_play(args):
    """Play a presentation script interactively."""
    _check_player()
    presentation = _load(args.script)
    asyncio.run(_play(presentation, args))
    print("Done.")


def cmd_voices(args):
    """List available voices."""
    try:
        entries = asyncio.run(edge_tts.list_voices())
    except Exception as e:
        print(f"Error: Could not fetch voice catalog: {e}", file=sys.stderr)
        raise SystemExit(1)
    voices = filter_voices([voice_from_edge(e) for e in entries], args.filter)
    if not voices:
        print("No matching voices found.")
        return
    print("Available voices:")
    for v in voices:
        print(f"  {v.id:<32} {v.lang:<8} {v.name}")


def cmd_sections(args):
    """List the sections of a script."""
    presentation = _load(args.script)
    if presentation.title:
        print(presentation.title)
    for i, section in enumerate(presentation.sections):
        words = len(section.narration.split())
        print(f"  {i + 1}. {section.id:<15} {words} words")


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="narrated-tour",
        description="Narrated Tour — play a multi-section presentation with spoken narration",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # play
    play_parser = subparsers.add_parser("play", help="Play a presentation script")
    play_parser.add_argument("script", help="Path to the presentation JSON file")
    play_parser.add_argument("--muted", action="store_true", help="Start with narration muted")
    play_parser.add_argument(
        "--voice", action="append",
        help="Preferred voice name or language tag (repeatable, tried first)",
    )
    play_parser.set_defaults(func=cmd_play)

    # voices
    voices_parser = subparsers.add_parser("voices", help="List available voices")
    voices_parser.add_argument("--filter", help="Filter voices by substring")
    voices_parser.set_defaults(func=cmd_voices)

    # sections
    sections_parser = subparsers.add_parser("sections", help="List a script's sections")
    sections_parser.add_argument("script", help="Path to the presentation JSON file")
    sections_parser.set_defaults(func=cmd_sections)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return

    args.func(args)
