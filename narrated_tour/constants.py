"""All magic numbers and configuration constants."""

AUTO_ADVANCE_DELAY = 1.5            # seconds between narration end and the next section
KEEP_ALIVE_INTERVAL = 10.0          # seconds between keep-alive pause/resume pairs
SPEECH_RATE = 0.95                  # slightly slower than normal for clarity
SPEECH_PITCH = 1.0
SPEECH_VOLUME = 1.0
TARGET_LANGUAGE = "en"              # fallback voice language prefix
PREFERRED_VOICES = [                # matched against voice name or language tag, in order
    "Google UK English Male",
    "Microsoft Ryan Online (Natural)",
    "Microsoft Guy Online (Natural)",
    "Daniel",
    "Alex",
    "English (United Kingdom)",
    "en-GB",
]
NARRATION_TARGET_DBFS = -20.0       # loudness every narration clip is normalized to
AUDIO_PLAYER = "ffplay"
SECTION_HIDE_SECONDS = 0.3          # outgoing section drops away (awaited)
SECTION_REVEAL_SECONDS = 0.6        # incoming section rises in (awaited)
CAMERA_MOVE_SECONDS = 1.5           # camera glide, continues after the transition resolves
ENTRANCE_UNPACK_SECONDS = 2.5       # box unpack before the avatar appears
ENTRANCE_AVATAR_SECONDS = 1.0
SECTION_GESTURES = {
    "welcome": None,                # the avatar already waved on entrance
    "about": "thinking",
    "experience": "point-left",
    "skills": "open-arms",
    "education": "point-up",
    "contact": "wave",
}
DEFAULT_CAMERA = (0.0, 1.5, 4.0)
VERSION = "0.1.0"
