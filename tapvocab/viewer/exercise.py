"""
Exercise renderer - HTML fragments for the tap-to-build exercises.

Provides:
- Build area (filled and empty slots)
- Conjugation table (pronoun labels beside the slots)
- Fill-in-the-blank sentence
- Flashcard face
- Session counters and reward banner
"""

import html
from typing import Optional

from tapvocab.schemas import ProgressStats, Prompt, SessionCounters
from tapvocab.trainer.loader import BLANK_MARKER
from tapvocab.trainer.validators import Slot


def get_exercise_css() -> str:
    """Get CSS styles for exercise display."""
    return """
    <style>
    .tv-prompt {
        font-size: 1.3em;
        font-weight: 600;
        color: #333;
        margin-bottom: 0.8em;
    }
    .tv-category {
        display: inline-block;
        background: #e3f2fd;
        color: #1565C0;
        border-radius: 10px;
        padding: 0.1em 0.7em;
        font-size: 0.8em;
        margin-bottom: 0.5em;
    }
    .tv-build-area {
        display: flex;
        flex-wrap: wrap;
        gap: 0.4em;
        min-height: 2.6em;
        padding: 0.8em;
        border: 2px dashed #bbb;
        border-radius: 10px;
        margin-bottom: 1em;
    }
    .tv-build-area.solved {
        border-color: #388E3C;
        background: #e8f5e9;
    }
    .tv-slot {
        min-width: 2em;
        padding: 0.3em 0.6em;
        border-radius: 6px;
        background: #1976D2;
        color: white;
        text-align: center;
    }
    .tv-slot.empty {
        background: #f5f5f5;
        color: #f5f5f5;
        border: 1px solid #ddd;
    }
    .tv-slot.space {
        min-width: 0.8em;
        background: transparent;
    }
    .tv-conj-table {
        border-collapse: collapse;
        margin-bottom: 1em;
    }
    .tv-conj-table td {
        padding: 0.3em 0.8em;
        border-bottom: 1px solid #eee;
    }
    .tv-conj-label {
        color: #666;
        font-style: italic;
    }
    .tv-blank-sentence {
        font-size: 1.2em;
        margin-bottom: 1em;
    }
    .tv-blank {
        display: inline-block;
        min-width: 3em;
        border-bottom: 2px solid #1976D2;
        text-align: center;
        color: #388E3C;
        font-weight: 600;
    }
    .tv-flashcard {
        background: #fff8e1;
        border-radius: 12px;
        padding: 1.5em;
        text-align: center;
        font-size: 1.4em;
        margin-bottom: 1em;
    }
    .tv-flashcard-answer {
        color: #388E3C;
        font-weight: 700;
        margin-top: 0.6em;
    }
    .tv-counters {
        display: flex;
        gap: 1.5em;
        color: #666;
        font-size: 0.9em;
    }
    .tv-reward {
        border-radius: 8px;
        padding: 0.6em 1em;
        text-align: center;
    }
    .tv-reward.locked {
        background: #f5f5f5;
        color: #999;
    }
    .tv-reward.unlocked {
        background: #e8f5e9;
        color: #388E3C;
        font-weight: 600;
    }
    </style>
    """


def render_prompt_header(prompt: Prompt) -> str:
    """Source text with its category tag."""
    parts = []
    if prompt.category:
        parts.append(f'<span class="tv-category">{html.escape(prompt.category)}</span>')
    parts.append(f'<div class="tv-prompt">{html.escape(prompt.source_text)}</div>')
    return ''.join(parts)


def render_build_area(slots: list[Slot], solved: bool = False) -> str:
    """
    Render the reconstruction row.

    Args:
        slots: Validator slots in order
        solved: Highlight the whole row as correct

    Returns:
        HTML string for the build area
    """
    css = "tv-build-area solved" if solved else "tv-build-area"
    parts = [f'<div class="{css}">']
    for slot in slots:
        if slot.fixed:
            parts.append('<span class="tv-slot space">&nbsp;</span>')
        elif slot.is_filled:
            parts.append(f'<span class="tv-slot">{html.escape(slot.filled)}</span>')
        else:
            # Keep the expected width without revealing the text
            parts.append(f'<span class="tv-slot empty">{html.escape(slot.expected)}</span>')
    parts.append('</div>')
    return ''.join(parts)


def render_conjugation_table(labels: list[str], slots: list[Slot]) -> str:
    """Pronoun labels next to their (possibly empty) forms."""
    parts = ['<table class="tv-conj-table">']
    for label, slot in zip(labels, slots):
        form = html.escape(slot.filled) if slot.is_filled else "&nbsp;"
        parts.append(
            f'<tr><td class="tv-conj-label">{html.escape(label)}</td><td>{form}</td></tr>'
        )
    parts.append('</table>')
    return ''.join(parts)


def render_blank_sentence(prompt: Prompt, answer: Optional[str] = None) -> str:
    """Spanish sentence with its blank, filled in once answered."""
    text = prompt.display_text or BLANK_MARKER
    fill = html.escape(answer) if answer else "&nbsp;"
    before, marker, after = text.partition(BLANK_MARKER)
    if not marker:
        return f'<div class="tv-blank-sentence">{html.escape(text)}</div>'
    return (
        f'<div class="tv-blank-sentence">{html.escape(before)}'
        f'<span class="tv-blank">{fill}</span>{html.escape(after)}</div>'
    )


def render_flashcard(prompt: Prompt, revealed: bool) -> str:
    parts = ['<div class="tv-flashcard">', html.escape(prompt.source_text)]
    if revealed:
        parts.append(f'<div class="tv-flashcard-answer">{html.escape(prompt.target_text)}</div>')
    parts.append('</div>')
    return ''.join(parts)


def render_counters(counters: SessionCounters, progress_text: str = "") -> str:
    items = [
        f"✓ {counters.correct}",
        f"✗ {counters.wrong}",
        f"⤼ {counters.skipped}",
    ]
    if progress_text:
        items.insert(0, html.escape(progress_text))
    spans = ''.join(f'<span>{item}</span>' for item in items)
    return f'<div class="tv-counters">{spans}</div>'


def render_reward_status(stats: ProgressStats, min_total: int, discrete_target: int) -> str:
    """Reward banner: unlocked, or how far the learner still has to go."""
    if stats.unlocked:
        return '<div class="tv-reward unlocked">🎮 Games unlocked!</div>'
    if stats.total:
        detail = f"{stats.correct}/{stats.total} correct ({stats.accuracy:.0%})"
    else:
        detail = f"Answer {min_total} questions"
    detail += f" · {stats.discrete_count}/{discrete_target} sentences"
    return f'<div class="tv-reward locked">🔒 {html.escape(detail)}</div>'
