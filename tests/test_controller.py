"""
SessionController tests: scoring, auto-advance, navigation and the
practice-list flow.
"""

import random

import pytest

from tapvocab.errors import LoadError
from tapvocab.schemas import ExerciseKind, Outcome, Prompt, SessionStatus
from tapvocab.trainer import (
    COMPLETED,
    CoinLedger,
    MemoryKeyValueStore,
    OrderedTokenValidator,
    PracticeListStore,
    ProgressTracker,
    SessionController,
    get_exercise,
)
from tapvocab.trainer.controller import PRACTICE_LIST_EMPTY_MESSAGE
from tapvocab.utils import TrainerConfig


def make_controller(kind, prompts, store, clock, feedback=None, **kwargs):
    source = prompts if callable(prompts) else (lambda: list(prompts))
    return SessionController(
        get_exercise(kind),
        prompt_source=source,
        practice_list=PracticeListStore(store),
        progress=ProgressTracker(MemoryKeyValueStore()),
        coins=CoinLedger(store),
        feedback=feedback,
        shuffle=False,
        rng=random.Random(0),
        clock=clock,
        **kwargs,
    )


def solve_tokens(controller):
    outcome = None
    for slot in list(controller.validator.slots):
        if not slot.fixed:
            outcome = controller.submit_token(slot.expected)
    return outcome


def solve_remaining(controller):
    outcome = None
    for slot in list(controller.validator.slots):
        if not slot.fixed and not slot.is_filled:
            outcome = controller.submit_token(slot.expected)
    return outcome


def solve_choice(controller):
    return controller.submit_choice(controller.validator.prompt.target_text)


@pytest.fixture
def sentences(sentence_prompts, store, clock, feedback):
    return make_controller(ExerciseKind.SENTENCES, sentence_prompts, store, clock, feedback)


@pytest.fixture
def fill_blank(choice_prompts, store, clock, feedback):
    return make_controller(ExerciseKind.FILL_BLANK, choice_prompts, store, clock, feedback)


class TestStart:
    """Test session start and its failure states."""

    def test_not_started(self, sentences):
        assert sentences.status == SessionStatus.NOT_STARTED
        assert sentences.current() is None
        assert sentences.submit_token("Me") is None
        assert sentences.progress_text() == ""

    def test_start_presents_first_prompt(self, sentences, sentence_prompts):
        assert sentences.start() == SessionStatus.ACTIVE
        assert sentences.current() == sentence_prompts[0]
        assert isinstance(sentences.validator, OrderedTokenValidator)
        assert sentences.progress_text() == "1 / 3"

    def test_load_failure(self, store, clock):
        def broken():
            raise LoadError("HTTP 404")

        controller = make_controller(ExerciseKind.SENTENCES, broken, store, clock)
        assert controller.start() == SessionStatus.LOAD_FAILED
        assert "HTTP 404" in controller.message
        assert controller.current() is None

    def test_empty_source_is_load_failure(self, store, clock):
        controller = make_controller(ExerciseKind.SPELLING, [], store, clock)
        assert controller.start() == SessionStatus.LOAD_FAILED

    def test_filter_to_nothing(self, sentences):
        assert sentences.start(lambda prompt: False) == SessionStatus.EMPTY
        assert sentences.message == get_exercise(ExerciseKind.SENTENCES).empty_message
        assert sentences.current() is None

    def test_filter(self, sentences, sentence_prompts):
        sentences.start(lambda prompt: prompt.target_text.startswith("Tengo"))
        assert sentences.queue.prompts == (sentence_prompts[1],)

    def test_empty_practice_list(self, sentences):
        assert sentences.start(from_practice_list=True) == SessionStatus.EMPTY
        assert sentences.message == PRACTICE_LIST_EMPTY_MESSAGE

    def test_loads_once(self, sentence_prompts, store, clock):
        calls = []

        def source():
            calls.append(1)
            return sentence_prompts

        controller = make_controller(ExerciseKind.SENTENCES, source, store, clock)
        controller.start()
        controller.restart()
        controller.load()
        assert calls == [1]

    def test_for_exercise_uses_config(self, store, clock):
        config = TrainerConfig(auto_advance_ms=900, seed=3)
        controller = SessionController.for_exercise(
            ExerciseKind.FILL_BLANK,
            config,
            practice_list=PracticeListStore(store),
            progress=ProgressTracker(MemoryKeyValueStore()),
            coins=CoinLedger(store),
            clock=clock,
        )
        assert controller.auto_advance_ms == 900
        assert controller.start() == SessionStatus.ACTIVE


class TestScoring:
    """Test outcome bookkeeping."""

    def test_correct_sentence(self, sentences, feedback):
        sentences.start()
        assert solve_tokens(sentences) == Outcome.ACCEPTED_FINAL
        assert sentences.coins.balance == 1
        stats = sentences.progress.get_stats()
        assert stats.discrete_count == 1
        assert stats.total == 0
        assert sentences.counters.correct == 1
        assert sentences.counters.completed == 1
        assert sentences.awaiting_advance
        assert "success" in feedback.events
        assert ("confetti", 30) in feedback.events

    def test_input_ignored_while_advance_pending(self, sentences, sentence_prompts):
        sentences.start()
        solve_tokens(sentences)
        assert sentences.submit_token("Tengo") is None
        assert sentences.remove_token(0) == []
        assert sentences.counters.wrong == 0
        assert sentences.current() == sentence_prompts[0]

    def test_auto_advance(self, sentences, sentence_prompts, clock):
        sentences.start()
        solve_tokens(sentences)
        assert sentences.pending_advance_ms() == 1500
        clock.advance(1.0)
        assert not sentences.tick()
        clock.advance(1.0)
        assert sentences.tick()
        assert sentences.current() == sentence_prompts[1]
        assert not sentences.awaiting_advance

    def test_due_advance_runs_before_next_event(self, sentences, clock):
        sentences.start()
        solve_tokens(sentences)
        clock.advance(2.0)
        assert sentences.submit_token("Tengo") == Outcome.ACCEPTED_PARTIAL
        assert sentences.queue.cursor == 1

    def test_first_rejection_counts_once(self, fill_blank, choice_prompts):
        fill_blank.start()
        prompt = choice_prompts[0]
        assert fill_blank.submit_choice("estoy") == Outcome.REJECTED
        assert fill_blank.submit_choice("eres") == Outcome.REJECTED
        assert fill_blank.counters.wrong == 1
        assert fill_blank.progress.get_stats().total == 1
        assert prompt in fill_blank.practice_list

        assert solve_choice(fill_blank) == Outcome.ACCEPTED_FINAL
        stats = fill_blank.progress.get_stats()
        assert (stats.correct, stats.total) == (0, 1)
        assert fill_blank.counters.correct == 0
        assert fill_blank.coins.balance == 1
        assert fill_blank.awaiting_advance

    def test_clean_answer_counts_correct(self, fill_blank):
        fill_blank.start()
        solve_choice(fill_blank)
        stats = fill_blank.progress.get_stats()
        assert (stats.correct, stats.total) == (1, 1)
        assert len(fill_blank.practice_list) == 0

    def test_sentence_miss_not_in_ratio(self, sentences, sentence_prompts):
        sentences.start()
        assert sentences.submit_token("café.") == Outcome.REJECTED
        assert sentences.progress.get_stats().total == 0
        assert sentence_prompts[0] in sentences.practice_list
        assert solve_tokens(sentences) == Outcome.ACCEPTED_FINAL
        assert sentences.progress.get_stats().discrete_count == 1

    def test_twenty_sentences_unlock(self, store, clock):
        prompts = [Prompt(source_text=f"Satz {i}.", target_text=f"Frase {i}.") for i in range(20)]
        controller = make_controller(ExerciseKind.SENTENCES, prompts, store, clock)
        controller.start()
        for _ in prompts:
            solve_tokens(controller)
            clock.advance(2.0)
            controller.tick()
        assert controller.status == SessionStatus.COMPLETED
        assert controller.progress.is_unlocked()
        assert controller.coins.balance == 20

    def test_flashcard_flow(self, store, clock, feedback):
        cards = [
            Prompt(source_text="der Hund", target_text="el perro", exercise="flashcards"),
            Prompt(source_text="die Katze", target_text="el gato", exercise="flashcards"),
        ]
        controller = make_controller(ExerciseKind.FLASHCARDS, cards, store, clock, feedback,
                                     reveal_delay_ms=1000)
        controller.start()
        assert controller.declare(True) is None
        assert not controller.reveal()
        clock.advance(1.5)
        assert controller.reveal()
        assert controller.declare(False) == Outcome.REJECTED
        assert controller.counters.wrong == 1
        assert cards[0] in controller.practice_list
        assert controller.awaiting_advance
        assert controller.declare(True) is None

        clock.advance(2.0)
        assert controller.tick()
        assert controller.current() == cards[1]
        clock.advance(1.5)
        controller.reveal()
        assert controller.declare(True) == Outcome.ACCEPTED_FINAL
        assert controller.coins.balance == 1
        assert controller.progress.get_stats().correct == 1

    def test_conjugation(self, store, clock):
        verb = Prompt(source_text="sein", target_text="ser",
                      forms=["soy", "eres", "es", "somos", "sois", "son"])
        controller = make_controller(ExerciseKind.CONJUGATION, [verb], store, clock)
        controller.start()
        assert controller.submit_token("eres") == Outcome.REJECTED
        assert solve_tokens(controller) == Outcome.ACCEPTED_FINAL
        assert controller.progress.get_stats().total == 1

    def test_spelling(self, store, clock):
        word = Prompt(source_text="der Kaffee", target_text="el café")
        controller = make_controller(ExerciseKind.SPELLING, [word], store, clock)
        controller.start()
        assert solve_tokens(controller) == Outcome.ACCEPTED_FINAL
        assert controller.validator.reconstruction() == "el café"

    def test_wrong_input_kind(self, sentences):
        sentences.start()
        with pytest.raises(TypeError):
            sentences.submit_choice("soy")
        with pytest.raises(TypeError):
            sentences.reveal()

    def test_remove_token(self, sentences):
        sentences.start()
        sentences.submit_token("Me")
        sentences.submit_token("gusta")
        assert sentences.remove_token(0) == ["Me", "gusta"]
        assert sentences.validator.filled_count == 0

    def test_remove_token_from_the_middle(self, sentences):
        sentences.start()
        for word in ("Me", "gusta", "el"):
            sentences.submit_token(word)
        placed = [idx for idx, slot in enumerate(sentences.validator.slots) if slot.is_filled and not slot.fixed]
        assert sentences.remove_token(placed[1]) == ["gusta", "el"]
        assert sentences.validator.reconstruction().startswith("Me ")
        assert sentences.validator.filled_count == 1
        assert "gusta" in sentences.validator.available_tokens()
        assert solve_remaining(sentences) == Outcome.ACCEPTED_FINAL
        assert sentences.counters.wrong == 0

    def test_coin_listener(self, sentences):
        seen = []
        unsubscribe = sentences.on_coins_changed(seen.append)
        sentences.start()
        solve_tokens(sentences)
        unsubscribe()
        assert seen == [1]


class TestNavigation:
    """Test skip / go_back / reset / restart."""

    def test_skip(self, sentences, sentence_prompts):
        sentences.start()
        assert sentences.skip()
        assert sentences.counters.skipped == 1
        assert sentences.current() == sentence_prompts[1]

    def test_skip_to_completion(self, sentences, feedback):
        sentences.start()
        for _ in range(3):
            assert sentences.skip()
        assert sentences.status == SessionStatus.COMPLETED
        assert sentences.current() is COMPLETED
        assert not sentences.skip()
        assert sentences.queue.cursor == 3
        assert ("confetti", 50) in feedback.events

    def test_skip_during_pending_advance(self, sentences, sentence_prompts, clock):
        sentences.start()
        solve_tokens(sentences)
        clock.advance(0.5)
        assert sentences.skip()
        assert sentences.queue.cursor == 1
        assert sentences.counters.skipped == 0
        clock.advance(2.0)
        assert not sentences.tick()
        assert sentences.queue.cursor == 1
        assert sentences.current() == sentence_prompts[1]

    def test_go_back_cancels_pending_advance(self, sentences, sentence_prompts, clock):
        sentences.start()
        sentences.skip()
        solve_tokens(sentences)
        assert sentences.go_back()
        assert sentences.queue.cursor == 0
        clock.advance(5.0)
        assert not sentences.tick()
        assert sentences.queue.cursor == 0
        assert sentences.current() == sentence_prompts[0]
        assert not sentences.validator.is_solved

    def test_go_back_without_history_keeps_advance(self, sentences, clock):
        sentences.start()
        solve_tokens(sentences)
        assert not sentences.go_back()
        assert sentences.awaiting_advance
        clock.advance(2.0)
        assert sentences.tick()
        assert sentences.queue.cursor == 1

    def test_go_back_from_completed(self, sentences, sentence_prompts):
        sentences.start()
        for _ in range(3):
            sentences.skip()
        assert sentences.go_back()
        assert sentences.status == SessionStatus.ACTIVE
        assert sentences.current() == sentence_prompts[2]

    def test_reset_clears_attempt(self, sentences):
        sentences.start()
        sentences.submit_token("Me")
        assert sentences.reset()
        assert sentences.validator.filled_count == 0
        assert sentences.queue.cursor == 0

    def test_reset_cancels_pending_advance(self, sentences, sentence_prompts, clock):
        sentences.start()
        solve_tokens(sentences)
        assert sentences.reset()
        assert not sentences.awaiting_advance
        clock.advance(5.0)
        assert not sentences.tick()
        assert sentences.current() == sentence_prompts[0]

    def test_restart(self, sentences):
        sentences.start()
        solve_tokens(sentences)
        sentences.skip()
        sentences.skip()
        sentences.skip()
        assert sentences.restart() == SessionStatus.ACTIVE
        assert sentences.queue.cursor == 0
        assert sentences.counters.correct == 0
        assert not sentences.awaiting_advance


class TestPracticeListSession:
    """Test practising stored misses."""

    @pytest.fixture
    def practising(self, fill_blank, choice_prompts):
        for prompt in choice_prompts:
            fill_blank.practice_list.add(prompt)
        fill_blank.practice_list.add(
            Prompt(source_text="Ich mag Kaffee.", target_text="Me gusta el café.", exercise="sentences")
        )
        fill_blank.start(from_practice_list=True)
        return fill_blank

    def test_only_matching_exercise(self, practising):
        assert practising.queue.length == 3

    def test_mastered_prompt_spliced_out(self, practising, choice_prompts):
        a, b, c = choice_prompts
        assert solve_choice(practising) == Outcome.ACCEPTED_FINAL
        assert a not in practising.practice_list
        assert practising.queue.prompts == (b, c)
        assert practising.current() == b
        assert practising.last_solved == a
        assert not practising.awaiting_advance
        assert practising.coins.balance == 1

    def test_missed_again_stays(self, practising, choice_prompts):
        practising.submit_choice(choice_prompts[0].distractors[0])
        assert solve_choice(practising) == Outcome.ACCEPTED_FINAL
        assert choice_prompts[0] in practising.practice_list
        assert practising.awaiting_advance

    def test_clearing_everything_completes(self, practising, choice_prompts):
        for _ in range(3):
            solve_choice(practising)
        assert practising.status == SessionStatus.COMPLETED
        assert practising.practice_list.members(choice_prompts) == []
        assert len(practising.practice_list) == 1

    def test_miss_shared_across_exercises(self, store, clock):
        card = Prompt(source_text="der Kaffee", target_text="el café", exercise="flashcards")
        word = Prompt(source_text="der Kaffee", target_text="el café", exercise="spelling")
        other = Prompt(source_text="der Hund", target_text="el perro", exercise="spelling")
        flashcards = make_controller(ExerciseKind.FLASHCARDS, [card], store, clock, reveal_delay_ms=0)

        flashcards.start()
        assert flashcards.reveal()
        assert flashcards.declare(False) == Outcome.REJECTED
        spelling = make_controller(ExerciseKind.SPELLING, [other, word], store, clock)

        assert spelling.start(from_practice_list=True) == SessionStatus.ACTIVE
        assert spelling.queue.prompts == (word,)
        assert spelling.current().exercise == "spelling"
        assert solve_tokens(spelling) == Outcome.ACCEPTED_FINAL
        assert card not in PracticeListStore(store)
        assert spelling.status == SessionStatus.COMPLETED
