"""
Prompt loaders - Read tab-separated data files into Prompt records.

Supported files (header row required, extra columns ignored):
- words.tsv: category, es, de
- verbs.tsv: infinitive, de, yo, tu, él, nosotros, vosotros, ellos
- fill-in-blank.tsv: category, de, es_with_blank, correct_answer, wrong_answers

Paths may be local files or URLs. Any read or parse failure, and any file
that yields no usable rows, raises LoadError.
"""

import csv
import logging
import re
from pathlib import Path
from typing import Callable, Optional, Union

import pandas as pd
from pydantic import ValidationError

from tapvocab.errors import LoadError
from tapvocab.schemas import Prompt


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

PRONOUNS = [
    ("yo", "yo"),
    ("tu", "tú"),
    ("él", "él/ella"),
    ("nosotros", "nosotros/as"),
    ("vosotros", "vosotros/as"),
    ("ellos", "ellos/ellas"),
]

BLANK_MARKER = "___"

_SENTENCE_END = re.compile(r"[.?!]$")


# -----------------------------------------------------------------------------
# TSV reading
# -----------------------------------------------------------------------------

def read_tsv(path: PathLike) -> pd.DataFrame:
    """
    Read a TSV file into a DataFrame of stripped strings.

    Raises:
        LoadError: If the file cannot be fetched or parsed
    """
    try:
        df = pd.read_csv(
            path,
            sep="\t",
            dtype=str,
            keep_default_na=False,
            quoting=csv.QUOTE_NONE,
            skip_blank_lines=True,
            on_bad_lines="warn",
        )
    except (OSError, ValueError) as e:
        raise LoadError(f"Failed to load {path}: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    df = df.fillna("")
    for column in df.columns:
        df[column] = df[column].astype(str).str.strip()
    return df


def _col(df: pd.DataFrame, name: str) -> pd.Series:
    """Column by name, or empty strings if the header lacks it."""
    if name in df.columns:
        return df[name]
    return pd.Series([""] * len(df), index=df.index, dtype=str)


def _build(rows: list[dict], path: PathLike, exercise: Optional[str]) -> list[Prompt]:
    prompts = []
    for row in rows:
        try:
            prompts.append(Prompt(exercise=exercise, **row))
        except ValidationError as e:
            logger.warning("Skipping invalid row in %s: %s", path, e)
    if not prompts:
        raise LoadError(f"No usable rows found in {path}")
    logger.info("Loaded %d prompts from %s", len(prompts), path)
    return prompts


# -----------------------------------------------------------------------------
# Filters
# -----------------------------------------------------------------------------

def is_sentence(text: str) -> bool:
    """Spanish text ending in . ? or ! (but not an ellipsis)."""
    text = text.strip()
    return bool(_SENTENCE_END.search(text)) and not text.endswith("..")


def by_category(category: str) -> Callable[[Prompt], bool]:
    """Case-insensitive category filter for SessionController.start()."""
    wanted = category.strip().lower()
    return lambda prompt: prompt.category.lower() == wanted


def categories(prompts: list[Prompt]) -> list[str]:
    """Distinct categories in first-seen order."""
    seen: dict[str, None] = {}
    for prompt in prompts:
        if prompt.category:
            seen.setdefault(prompt.category, None)
    return list(seen)


# -----------------------------------------------------------------------------
# Loaders
# -----------------------------------------------------------------------------

def load_words(path: PathLike, exercise: Optional[str] = None) -> list[Prompt]:
    """Load words.tsv rows that have category, es and de."""
    df = read_tsv(path)
    frame = pd.DataFrame({
        "category": _col(df, "category"),
        "source_text": _col(df, "de"),
        "target_text": _col(df, "es"),
    })
    frame = frame[(frame != "").all(axis=1)]
    return _build(frame.to_dict("records"), path, exercise)


def load_sentences(path: PathLike, exercise: Optional[str] = None) -> list[Prompt]:
    """Load only the sentence rows of words.tsv."""
    words = load_words(path, exercise)
    sentences = [prompt for prompt in words if is_sentence(prompt.target_text)]
    if not sentences:
        raise LoadError(f"No sentences found in {path}")
    return sentences


def load_vocabulary(path: PathLike, exercise: Optional[str] = None) -> list[Prompt]:
    """Load only the non-sentence rows of words.tsv."""
    words = load_words(path, exercise)
    vocabulary = [prompt for prompt in words if not is_sentence(prompt.target_text)]
    if not vocabulary:
        raise LoadError(f"No single words found in {path}")
    return vocabulary


def load_verbs(path: PathLike, exercise: Optional[str] = None) -> list[Prompt]:
    """Load verbs.tsv; each verb becomes a six-form prompt."""
    df = read_tsv(path)
    rows = []
    for record in df.to_dict("records"):
        infinitive = record.get("infinitive", "")
        meaning = record.get("de", "")
        if not infinitive or not meaning:
            continue
        forms = [record.get(key, "") for key, _ in PRONOUNS]
        if not all(forms):
            logger.warning("Skipping %s in %s: missing conjugated forms", infinitive, path)
            continue
        rows.append({
            "category": record.get("category", "") or "verbs",
            "source_text": meaning,
            "target_text": infinitive,
            "forms": forms,
            "labels": [label for _, label in PRONOUNS],
        })
    return _build(rows, path, exercise)


def load_fill_blank(path: PathLike, exercise: Optional[str] = None) -> list[Prompt]:
    """Load fill-in-blank.tsv; wrong answers are comma-separated."""
    df = read_tsv(path)
    rows = []
    for record in df.to_dict("records"):
        meaning = record.get("de", "")
        with_blank = record.get("es_with_blank", "")
        answer = record.get("correct_answer", "")
        if not meaning or not with_blank or not answer:
            continue
        rows.append({
            "category": record.get("category", ""),
            "source_text": meaning,
            "target_text": answer,
            "display_text": with_blank,
            "distractors": [w.strip() for w in record.get("wrong_answers", "").split(",") if w.strip()],
        })
    return _build(rows, path, exercise)
