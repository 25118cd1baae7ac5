"""Presentation script loading (JSON)."""

import json
import logging
import os

from narrated_tour.errors import ScriptError
from narrated_tour.models import Presentation, Section

logger = logging.getLogger(__name__)


def _parse_camera(value, section_id: str) -> tuple[float, float, float] | None:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise ScriptError(f"Section '{section_id}': camera must be [x, y, z]")
    try:
        return tuple(float(v) for v in value)
    except (TypeError, ValueError):
        raise ScriptError(f"Section '{section_id}': camera values must be numbers")


def _text_field(entry: dict, key: str, section_id: str) -> str:
    value = entry.get(key, "")
    if not isinstance(value, str):
        raise ScriptError(f"Section '{section_id}': {key} must be a string")
    return value


def parse_script(data: dict) -> Presentation:
    """Build a Presentation from decoded script JSON.

    Expected shape:
      {"title": "...", "sections": [{"id": "welcome", "narration": "...",
        "title": "...", "subtitle": "...", "content": "...",
        "gesture": "wave", "camera": [0, 1.5, 5]}, ...]}
    Only "id" is required per section; ids must be unique.
    """
    if not isinstance(data, dict):
        raise ScriptError("Script must be a JSON object")
    entries = data.get("sections")
    if not isinstance(entries, list) or not entries:
        raise ScriptError("Script must contain a non-empty 'sections' list")
    title = data.get("title", "")
    if not isinstance(title, str):
        raise ScriptError("Script title must be a string")

    sections = []
    seen = set()
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ScriptError(f"Section {i + 1} must be an object")
        section_id = str(entry.get("id", "")).strip()
        if not section_id:
            raise ScriptError(f"Section {i + 1} has no id")
        if section_id in seen:
            raise ScriptError(f"Duplicate section id: {section_id}")
        seen.add(section_id)

        narration = _text_field(entry, "narration", section_id)
        if not narration:
            logger.warning("Section '%s' has no narration text", section_id)
        gesture = entry.get("gesture")
        if gesture is not None and not isinstance(gesture, str):
            raise ScriptError(f"Section '{section_id}': gesture must be a string or null")

        sections.append(Section(
            id=section_id,
            narration=narration,
            title=_text_field(entry, "title", section_id),
            subtitle=_text_field(entry, "subtitle", section_id),
            content=_text_field(entry, "content", section_id),
            gesture=gesture,
            camera=_parse_camera(entry.get("camera"), section_id),
        ))

    return Presentation(title=title, sections=sections)


def load_script(path: str) -> Presentation:
    """Load a presentation script file. Raises ScriptError on any problem."""
    if not os.path.exists(path):
        raise ScriptError(f"Script not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ScriptError(f"Malformed script {path}: {e}") from e
    except OSError as e:
        raise ScriptError(f"Could not read script {path}: {e}") from e
    return parse_script(data)
