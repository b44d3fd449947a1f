"""
Error taxonomy for TapVocab.

Only LoadError and EmptyQueue ever reach the learner as a visible message.
The rest are handled inside the engine:
- NoHistory is ignored by the controller
- PersistenceError is logged, in-memory state stays authoritative
- ValidationMismatch becomes a rejected answer
"""


class TapVocabError(Exception):
    """Base class for all TapVocab errors."""


class LoadError(TapVocabError):
    """Prompt data could not be read, parsed, or was empty."""


class EmptyQueue(TapVocabError):
    """A session queue was built from zero prompts."""


class NoHistory(TapVocabError):
    """go_back() was called with nothing to undo."""


class PersistenceError(TapVocabError):
    """A key-value store write was denied."""


class ValidationMismatch(TapVocabError):
    """All slots are filled but the reconstruction differs from the target."""

    def __init__(self, expected: str, actual: str):
        super().__init__(f"Reconstruction {actual!r} does not match target {expected!r}")
        self.expected = expected
        self.actual = actual
