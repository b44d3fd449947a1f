"""
Presentation collaborator interface.

Calls are fire-and-forget. The engine behaves the same whether they
render something or do nothing.
"""

from typing import Protocol


class Feedback(Protocol):
    def flash_success(self) -> None: ...

    def flash_error(self) -> None: ...

    def confetti(self, count: int = 30) -> None: ...


class NullFeedback:
    """Feedback that does nothing (tests, headless use)."""

    def flash_success(self) -> None:
        pass

    def flash_error(self) -> None:
        pass

    def confetti(self, count: int = 30) -> None:
        pass
