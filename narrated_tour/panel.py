"""Presentation sinks: where section, caption and speaking state are shown."""

import sys

from narrated_tour.models import Presentation


class PresentationSink:
    """Receives display updates from the orchestrator. Defaults do nothing."""

    def show_section(self, index: int, section_id: str) -> None:
        pass

    def show_caption(self, text: str) -> None:
        pass

    def hide_caption(self) -> None:
        pass

    def set_speaking(self, speaking: bool) -> None:
        pass

    def set_muted(self, muted: bool) -> None:
        pass


class ConsolePanel(PresentationSink):
    """Prints the info panel and captions to a text stream."""

    def __init__(self, presentation: Presentation, stream=None):
        self.presentation = presentation
        self.stream = stream or sys.stdout
        self.caption_visible = False

    def _print(self, text: str = "") -> None:
        print(text, file=self.stream, flush=True)

    def show_section(self, index: int, section_id: str) -> None:
        total = len(self.presentation.sections)
        section = self.presentation.get(section_id)
        self._print()
        self._print(f"[{index + 1}/{total}] {section.title if section and section.title else section_id}")
        if section and section.subtitle:
            self._print(f"  {section.subtitle}")
        if section and section.content:
            for line in section.content.splitlines():
                self._print(f"  {line}")

    def show_caption(self, text: str) -> None:
        self.caption_visible = True
        self._print(f"  » {text}")

    def hide_caption(self) -> None:
        self.caption_visible = False

    def set_speaking(self, speaking: bool) -> None:
        if speaking:
            self._print("  (speaking)")

    def set_muted(self, muted: bool) -> None:
        self._print("  [muted]" if muted else "  [sound on]")
