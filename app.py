"""
TapVocab - Tap-to-build Spanish vocabulary trainer

Streamlit application with five exercises (conjugation, fill-in-the-blank,
sentence builder, flashcards, spelling), a practice list of missed items,
and coins that unlock games.

Usage:
    streamlit run app.py
"""

import logging
import sqlite3
import uuid

import streamlit as st

from tapvocab.errors import LoadError
from tapvocab.schemas import ExerciseKind, SessionStatus
from tapvocab.trainer import (
    COMPLETED,
    EXERCISES,
    AtomicChoiceValidator,
    CoinLedger,
    KeyValueStore,
    MemoryKeyValueStore,
    OrderedTokenValidator,
    PracticeListStore,
    PrefixedKeyValueStore,
    ProgressTracker,
    SelectionStore,
    SelfReportValidator,
    SessionController,
    SqliteKeyValueStore,
    by_category,
    categories,
)
from tapvocab.trainer.validators import SEGMENT_FORMS
from tapvocab.utils import load_config
from tapvocab.viewer import (
    StreamlitFeedback,
    get_exercise_css,
    render_blank_sentence,
    render_build_area,
    render_conjugation_table,
    render_counters,
    render_flashcard,
    render_prompt_header,
    render_reward_status,
)


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

st.set_page_config(
    page_title="TapVocab",
    page_icon="🇪🇸",
    layout="centered",
    initial_sidebar_state="expanded",
)

ALL_CATEGORIES = "All categories"
POLL_SECONDS = 0.25
TAB_PARAM = "tab"


@st.cache_resource
def get_persistent_store(storage_path) -> SqliteKeyValueStore:
    return SqliteKeyValueStore(storage_path)


def open_persistent_store(storage_path) -> KeyValueStore:
    """The shared SQLite store, or this session's state if it cannot be opened."""
    try:
        return get_persistent_store(storage_path)
    except (sqlite3.Error, OSError) as e:
        logger.warning("Storage unavailable, keeping data for this session only: %s", e)
        return MemoryKeyValueStore(st.session_state)


def get_tab_id() -> str:
    """
    Stable id for this browser tab.

    Kept in the URL, so a reload keeps it and a newly opened tab gets a new one.
    """
    tab_id = st.query_params.get(TAB_PARAM)
    if not tab_id:
        tab_id = uuid.uuid4().hex
        st.query_params[TAB_PARAM] = tab_id
    return tab_id


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "config" not in st.session_state:
        st.session_state.config = load_config()
    config = st.session_state.config

    persistent = open_persistent_store(config.storage_path)

    if "tab_store" not in st.session_state:
        # Reward counters survive a reload of this tab, not a new tab
        st.session_state.tab_store = PrefixedKeyValueStore(persistent, f"tab:{get_tab_id()}:")

    if "practice_list" not in st.session_state:
        st.session_state.practice_list = PracticeListStore(persistent)

    if "coins" not in st.session_state:
        st.session_state.coins = CoinLedger(persistent)

    if "selection" not in st.session_state:
        st.session_state.selection = SelectionStore(persistent)

    if "progress" not in st.session_state:
        st.session_state.progress = ProgressTracker(
            st.session_state.tab_store,
            min_total=config.unlock_min_total,
            min_ratio=config.unlock_min_ratio,
            discrete_target=config.unlock_discrete_target,
        )

    if "controllers" not in st.session_state:
        st.session_state.controllers = {}

    if "view_mode" not in st.session_state:
        st.session_state.view_mode = "exercise"  # exercise, practice, sentences

    if "exercise" not in st.session_state:
        st.session_state.exercise = ExerciseKind.SENTENCES


def get_controller(kind: ExerciseKind) -> SessionController:
    """One controller per exercise, kept for the lifetime of the tab."""
    controllers = st.session_state.controllers
    if kind not in controllers:
        controllers[kind] = SessionController.for_exercise(
            kind,
            st.session_state.config,
            practice_list=st.session_state.practice_list,
            progress=st.session_state.progress,
            coins=st.session_state.coins,
            feedback=StreamlitFeedback(),
        )
    return controllers[kind]


# -----------------------------------------------------------------------------
# Sidebar
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with exercise picker, coins and reward status."""
    config = st.session_state.config
    st.sidebar.title("🇪🇸 TapVocab")

    coins = st.session_state.coins
    st.sidebar.metric("Coins", coins.balance)
    if st.sidebar.button(
        f"Play a game ({config.coins_per_game} coins)",
        disabled=coins.balance < config.coins_per_game or not st.session_state.progress.is_unlocked(),
        use_container_width=True,
    ):
        if coins.spend(config.coins_per_game):
            logger.info("Game bought, %d coins left", coins.balance)
            st.sidebar.success("Enjoy your game!")

    st.sidebar.markdown(get_exercise_css(), unsafe_allow_html=True)
    st.sidebar.markdown(
        render_reward_status(
            st.session_state.progress.get_stats(),
            config.unlock_min_total,
            config.unlock_discrete_target,
        ),
        unsafe_allow_html=True,
    )

    st.sidebar.divider()

    st.sidebar.subheader("View Mode")
    modes = ["exercise", "practice", "sentences"]
    view_mode = st.sidebar.radio(
        "Select view",
        ["Exercises", "Practice list", "Sentence manager"],
        index=modes.index(st.session_state.view_mode),
        label_visibility="collapsed",
    )
    st.session_state.view_mode = modes[["Exercises", "Practice list", "Sentence manager"].index(view_mode)]

    if st.session_state.view_mode == "exercise":
        st.sidebar.divider()
        st.sidebar.subheader("Exercise")
        kinds = list(EXERCISES)
        choice = st.sidebar.radio(
            "Select exercise",
            kinds,
            index=kinds.index(st.session_state.exercise),
            format_func=lambda kind: EXERCISES[kind].title,
            label_visibility="collapsed",
        )
        if choice != st.session_state.exercise:
            get_controller(st.session_state.exercise).stop()
            st.session_state.exercise = choice

    st.sidebar.caption(f"Practice list: {len(st.session_state.practice_list)} items")


# -----------------------------------------------------------------------------
# Exercise View
# -----------------------------------------------------------------------------

def start_controller(controller: SessionController, category: str, from_practice_list: bool = False):
    predicate = None
    if controller.exercise.kind == ExerciseKind.SENTENCES and not from_practice_list:
        predicate = st.session_state.selection.predicate()
    if category != ALL_CATEGORIES:
        by_cat = by_category(category)
        predicate = by_cat if predicate is None else (lambda p, a=predicate: a(p) and by_cat(p))
    controller.start(predicate, from_practice_list=from_practice_list)


def render_exercise_view():
    """Render the active exercise."""
    kind = st.session_state.exercise
    controller = get_controller(kind)
    exercise = controller.exercise

    st.title(exercise.title)
    st.caption(exercise.description)
    st.markdown(get_exercise_css(), unsafe_allow_html=True)

    try:
        category_options = [ALL_CATEGORIES] + categories(controller.load())
    except LoadError as e:
        st.error(f"Could not load {exercise.data_file}: {e}")
        return

    col1, col2 = st.columns([3, 1])
    with col1:
        category = st.selectbox("Category", category_options, key=f"category_{kind.value}")
    with col2:
        st.write("")
        if st.button("Start", type="primary", use_container_width=True, key=f"start_{kind.value}"):
            start_controller(controller, category)
            st.rerun()

    render_session(controller)


def render_session(controller: SessionController):
    """Render whatever state the controller is in."""
    controller.tick()

    if controller.status == SessionStatus.NOT_STARTED:
        st.info("Pick a category and press Start.")
        return
    if controller.status in (SessionStatus.EMPTY, SessionStatus.LOAD_FAILED):
        st.warning(controller.message)
        return

    st.markdown(render_counters(controller.counters, controller.progress_text()), unsafe_allow_html=True)

    if controller.current() is COMPLETED:
        counters = controller.counters
        st.success(f"Done! {counters.correct} correct, {counters.wrong} missed, {counters.skipped} skipped.")
        if st.button("Practice again", type="primary"):
            controller.restart()
            st.rerun()
        return

    validator = controller.validator
    st.markdown(render_prompt_header(validator.prompt), unsafe_allow_html=True)

    if isinstance(validator, OrderedTokenValidator):
        render_ordered_tokens(controller, validator)
    elif isinstance(validator, AtomicChoiceValidator):
        render_choices(controller, validator)
    elif isinstance(validator, SelfReportValidator):
        render_flashcard_input(controller, validator)

    render_navigation(controller)

    if controller.awaiting_advance:
        poll_auto_advance(controller)


def render_ordered_tokens(controller: SessionController, validator: OrderedTokenValidator):
    if validator.unit == SEGMENT_FORMS:
        st.markdown(
            render_conjugation_table(validator.prompt.labels, validator.slots),
            unsafe_allow_html=True,
        )
    else:
        st.markdown(
            render_build_area(validator.slots, solved=validator.is_solved),
            unsafe_allow_html=True,
        )

    locked = controller.awaiting_advance
    columns = st.columns(min(len(validator.bank), 6) or 1)
    for idx, token in enumerate(validator.bank):
        with columns[idx % len(columns)]:
            if st.button(token.text, key=f"bank_{id(validator)}_{idx}",
                         disabled=token.used or locked, use_container_width=True):
                controller.submit_token(token.text)
                st.rerun()

    if validator.filled_count and not locked:
        render_placed_tokens(controller, validator)


def render_placed_tokens(controller: SessionController, validator: OrderedTokenValidator):
    """One button per placed token; tapping it takes back that token and every later one."""
    placed = [(idx, slot) for idx, slot in enumerate(validator.slots) if slot.is_filled and not slot.fixed]
    st.caption("Tap a placed word to take it back")
    columns = st.columns(min(len(placed), 6))
    for pos, (idx, slot) in enumerate(placed):
        with columns[pos % len(columns)]:
            if st.button(f"✕ {slot.filled}", key=f"slot_{id(validator)}_{idx}",
                         use_container_width=True):
                controller.remove_token(idx)
                st.rerun()


def render_choices(controller: SessionController, validator: AtomicChoiceValidator):
    answer = validator.prompt.target_text if validator.is_solved else None
    st.markdown(render_blank_sentence(validator.prompt, answer), unsafe_allow_html=True)

    columns = st.columns(len(validator.choices))
    for idx, choice in enumerate(validator.choices):
        with columns[idx]:
            if st.button(choice, key=f"choice_{id(validator)}_{idx}",
                         disabled=choice in validator.disabled or validator.is_solved,
                         use_container_width=True):
                controller.submit_choice(choice)
                st.rerun()


def render_flashcard_input(controller: SessionController, validator: SelfReportValidator):
    st.markdown(render_flashcard(validator.prompt, validator.revealed), unsafe_allow_html=True)
    if controller.awaiting_advance:
        return

    if not validator.revealed:
        if st.button("Reveal", type="primary", use_container_width=True):
            if not controller.reveal():
                st.info(f"Think first... {validator.remaining_ms() / 1000:.1f}s")
            else:
                st.rerun()
        return

    col1, col2 = st.columns(2)
    with col1:
        if st.button("✓ I knew it", use_container_width=True):
            controller.declare(True)
            st.rerun()
    with col2:
        if st.button("✗ I didn't", use_container_width=True):
            controller.declare(False)
            st.rerun()


def render_navigation(controller: SessionController):
    st.divider()
    col1, col2, col3 = st.columns(3)
    with col1:
        if st.button("← Back", disabled=not controller.can_go_back(), use_container_width=True):
            controller.go_back()
            st.rerun()
    with col2:
        if st.button("↺ Reset", use_container_width=True):
            controller.reset()
            st.rerun()
    with col3:
        if st.button("Skip →", use_container_width=True):
            controller.skip()
            st.rerun()


def poll_auto_advance(controller: SessionController):
    """Rerun the page once the pending auto-advance has fired."""

    @st.fragment(run_every=POLL_SECONDS)
    def _poll():
        if controller.tick():
            st.rerun()

    _poll()


# -----------------------------------------------------------------------------
# Practice List View
# -----------------------------------------------------------------------------

def render_practice_view():
    """Missed prompts, grouped by exercise, with a practice button each."""
    st.title("Practice List")
    practice_list = st.session_state.practice_list

    if not len(practice_list):
        st.info("Nothing to practise. Missed answers will show up here.")
        return

    for kind, exercise in EXERCISES.items():
        try:
            entries = practice_list.members(get_controller(kind).load())
        except LoadError as e:
            logger.warning("Practice list: could not load %s data: %s", kind.value, e)
            continue
        if not entries:
            continue
        with st.expander(f"**{exercise.title}** ({len(entries)})", expanded=True):
            for prompt in entries:
                st.markdown(f"- {prompt.source_text} → *{prompt.target_text}*")
            if st.button(f"Practise {exercise.title}", key=f"practise_{kind.value}", type="primary"):
                st.session_state.exercise = kind
                st.session_state.view_mode = "exercise"
                start_controller(get_controller(kind), ALL_CATEGORIES, from_practice_list=True)
                st.rerun()

    st.divider()
    if st.button("Clear practice list"):
        practice_list.clear()
        st.rerun()


# -----------------------------------------------------------------------------
# Sentence Manager View
# -----------------------------------------------------------------------------

def render_sentence_manager():
    """Enable or disable individual sentences for the sentence builder."""
    st.title("Sentence Manager")
    selection = st.session_state.selection
    controller = get_controller(ExerciseKind.SENTENCES)

    try:
        sentences = controller.load()
    except LoadError as e:
        st.error(f"Could not load sentences: {e}")
        return

    selection.ensure_initialized(sentences)
    st.markdown(f"**{selection.enabled_count(sentences)} of {len(sentences)} sentences enabled**")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Enable all", use_container_width=True):
            selection.set_all(sentences, True)
            selection.save()
            st.rerun()
    with col2:
        if st.button("Disable all", use_container_width=True):
            selection.set_all(sentences, False)
            selection.save()
            st.rerun()

    with st.form("sentence_selection"):
        choices = {
            prompt.source_text: st.checkbox(
                f"{prompt.target_text} ({prompt.source_text})",
                value=selection.is_enabled(prompt),
                key=f"sentence_{prompt.source_text}",
            )
            for prompt in sentences
        }
        if st.form_submit_button("Save", type="primary"):
            for prompt in sentences:
                selection.set_enabled(prompt, choices[prompt.source_text])
            selection.save()
            st.success("Selection saved.")


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()
    render_sidebar()

    if st.session_state.view_mode == "exercise":
        render_exercise_view()
    elif st.session_state.view_mode == "practice":
        render_practice_view()
    elif st.session_state.view_mode == "sentences":
        render_sentence_manager()


if __name__ == "__main__":
    main()
