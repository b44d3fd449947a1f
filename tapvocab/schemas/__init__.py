"""
TapVocab Schemas - Pydantic models and enums for the session engine.

This module exports all schema classes for:
- Prompt: learning items and their natural key
- Session: exercise kinds, outcomes, controller status
- Progress: reward statistics and session counters
"""

# Prompt schemas
from .prompt import (
    NaturalKey,
    Prompt,
)

# Session enums
from .session import (
    ExerciseKind,
    ProgressKind,
    Outcome,
    SessionStatus,
)

# Progress schemas
from .progress import (
    ProgressStats,
    SessionCounters,
)

__all__ = [
    # Prompt
    'NaturalKey',
    'Prompt',
    # Session
    'ExerciseKind',
    'ProgressKind',
    'Outcome',
    'SessionStatus',
    # Progress
    'ProgressStats',
    'SessionCounters',
]
