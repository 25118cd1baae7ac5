"""Voice catalog handling and priority-based voice selection."""

import logging

from narrated_tour.constants import PREFERRED_VOICES, TARGET_LANGUAGE
from narrated_tour.models import Voice

logger = logging.getLogger(__name__)


def voice_from_edge(entry: dict) -> Voice:
    """Convert an edge-tts catalog entry to a Voice.

    edge-tts entries carry "ShortName" (what the synthesizer wants), an
    optional "FriendlyName" such as "Microsoft Ryan Online (Natural) - English
    (United Kingdom)", and "Locale".
    """
    short_name = entry["ShortName"]
    return Voice(
        id=short_name,
        name=entry.get("FriendlyName") or short_name,
        lang=entry.get("Locale", ""),
    )


def select_voice(
    voices: list[Voice],
    preferred: list[str] | None = None,
    language: str = TARGET_LANGUAGE,
) -> Voice | None:
    """Pick the narration voice from a catalog.

    Priority: first preference matching a voice name or language tag → first
    voice in the target language → first voice of any kind → None.
    """
    if preferred is None:
        preferred = PREFERRED_VOICES

    for wanted in preferred:
        for voice in voices:
            if wanted in voice.name or wanted in voice.lang:
                return voice

    for voice in voices:
        if voice.lang.startswith(language):
            return voice

    if voices:
        logger.debug("No %s voice in catalog, using %s", language, voices[0].name)
        return voices[0]
    return None


def filter_voices(voices: list[Voice], text: str | None) -> list[Voice]:
    """Case-insensitive substring filter over id, name and language."""
    if not text:
        return list(voices)
    needle = text.lower()
    return [
        v for v in voices
        if needle in v.id.lower() or needle in v.name.lower() or needle in v.lang.lower()
    ]
