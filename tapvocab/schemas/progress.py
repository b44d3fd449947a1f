"""
Progress schemas for TapVocab.

Defines Pydantic models for:
- Tab-wide reward statistics (read-only snapshot)
- Per-session answer counters
"""

from pydantic import BaseModel, Field


class ProgressStats(BaseModel):
    correct: int = Field(0, ge=0)
    total: int = Field(0, ge=0)
    discrete_count: int = Field(0, ge=0)   # completed sentences
    unlocked: bool = False

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0


class SessionCounters(BaseModel):
    """Counters for one exercise run, reset on every start."""
    correct: int = 0
    wrong: int = 0
    skipped: int = 0
    completed: int = 0
