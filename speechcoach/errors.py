"""
Error types for the transcript analysis engine.

Only configuration problems are exceptions. A transcript with no speech is a
normal outcome and is reported on the score itself (see
SessionScore.no_speech_detected).
"""


class ConfigError(ValueError):
    """
    Raised when a vocabulary, rubric, or setting is malformed.

    These errors surface at startup, when the engine is constructed, and are
    never recovered from silently: a bad rubric would mis-score every session.
    """
