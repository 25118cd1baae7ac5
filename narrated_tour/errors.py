"""Exception types for narration, scenes, and presentation scripts."""


class NarrationError(Exception):
    """Base class for failures reported by a speech platform."""


class NarrationInterrupted(NarrationError):
    """Narration was cancelled before it finished.

    Raised whenever stop() or a newer speak() supersedes an utterance. This is
    routine during navigation and is never reported to the user.
    """


class NarrationPlatformError(NarrationError):
    """Synthesis or playback failed for a reason other than cancellation."""


class SceneGatewayError(Exception):
    """A scene transition could not be performed."""


class ScriptError(ValueError):
    """A presentation script is missing or malformed."""
