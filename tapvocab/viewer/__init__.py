"""
TapVocab Viewer - Rendering components for exercise display.

This module provides:
- HTML fragments for build areas, tables, blanks and flashcards
- Session counters and reward banner
- Streamlit-backed answer feedback
"""

from .exercise import (
    get_exercise_css,
    render_prompt_header,
    render_build_area,
    render_conjugation_table,
    render_blank_sentence,
    render_flashcard,
    render_counters,
    render_reward_status,
)

from .feedback import StreamlitFeedback

__all__ = [
    # Exercise rendering
    "get_exercise_css",
    "render_prompt_header",
    "render_build_area",
    "render_conjugation_table",
    "render_blank_sentence",
    "render_flashcard",
    "render_counters",
    "render_reward_status",
    # Feedback
    "StreamlitFeedback",
]
