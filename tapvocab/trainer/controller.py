"""
SessionController - One generic session engine for every exercise.

Composes:
- SessionQueue (order, cursor, undo)
- an AnswerValidator per presentation (from the exercise definition)
- ProgressTracker, PracticeListStore and CoinLedger (outcome bookkeeping)
- DeferredAdvance (auto-advance after a correct answer)

Scoring is per presentation. The first rejection is the prompt's Wrong
outcome: it counts against accuracy and puts the prompt on the practice
list. A final acceptance with no earlier rejection is its Correct outcome.
Every final acceptance earns a coin and, for discrete exercises, one
completion.
"""

import logging
import random
import time
from typing import Callable, Optional

from tapvocab.errors import EmptyQueue, LoadError, NoHistory
from tapvocab.schemas import (
    ExerciseKind,
    Outcome,
    ProgressKind,
    Prompt,
    SessionCounters,
    SessionStatus,
)
from tapvocab.utils.config import TrainerConfig
from .coins import CoinLedger
from .deferred import DeferredAdvance
from .exercises import ExerciseDefinition, ValidatorOptions, get_exercise
from .feedback import Feedback, NullFeedback
from .practice_list import PracticeListStore
from .progress import ProgressTracker
from .queue import COMPLETED, QueueItem, SessionQueue
from .validators import (
    AnswerValidator,
    AtomicChoiceValidator,
    OrderedTokenValidator,
    SelfReportValidator,
)


logger = logging.getLogger(__name__)

PromptFilter = Callable[[Prompt], bool]

PRACTICE_LIST_EMPTY_MESSAGE = "Your practice list has nothing for this exercise. Great job!"


class SessionController:
    """
    Drive one exercise: start, accept input, navigate.

    Navigation (skip, go_back, reset, restart) always cancels a pending
    auto-advance before it touches the queue.
    """

    def __init__(
        self,
        exercise: ExerciseDefinition,
        prompt_source: Callable[[], list[Prompt]],
        practice_list: PracticeListStore,
        progress: ProgressTracker,
        coins: CoinLedger,
        feedback: Optional[Feedback] = None,
        auto_advance_ms: int = 1500,
        reveal_delay_ms: int = 1000,
        shuffle: bool = True,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        confetti_count: int = 30,
    ):
        """
        Initialize controller.

        Args:
            exercise: Exercise definition (validator variant, progress kind)
            prompt_source: Loads the full prompt set; called at most once
            practice_list: Persistent practice list
            progress: Tab-scoped reward tracker
            coins: Persistent coin ledger
            feedback: Presentation collaborator (default: no-op)
            auto_advance_ms: Delay between a correct answer and the next prompt
            reveal_delay_ms: Minimum time before a flashcard can be revealed
            shuffle: Shuffle prompts when building a queue
            rng: Random source for queue and token-bank shuffles
            clock: Monotonic clock in seconds
            confetti_count: Confetti pieces per correct answer
        """
        self.exercise = exercise
        self.practice_list = practice_list
        self.progress = progress
        self.coins = coins
        self.feedback = feedback or NullFeedback()
        self.auto_advance_ms = auto_advance_ms
        self.shuffle = shuffle
        self.confetti_count = confetti_count

        self._source = prompt_source
        self._prompts: Optional[list[Prompt]] = None
        self._rng = rng or random.Random()
        self._options = ValidatorOptions(rng=self._rng, clock=clock, reveal_delay_ms=reveal_delay_ms)
        self._deferred = DeferredAdvance(clock)

        self.queue: Optional[SessionQueue] = None
        self.validator: Optional[AnswerValidator] = None
        self.status = SessionStatus.NOT_STARTED
        self.message: Optional[str] = None
        self.counters = SessionCounters()
        self.from_practice_list = False
        self.last_solved: Optional[Prompt] = None
        self._filter: Optional[PromptFilter] = None
        self._missed = False

    @classmethod
    def for_exercise(
        cls,
        kind: ExerciseKind,
        config: TrainerConfig,
        practice_list: PracticeListStore,
        progress: ProgressTracker,
        coins: CoinLedger,
        feedback: Optional[Feedback] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> "SessionController":
        """Build a controller whose prompts come from config.data_dir."""
        exercise = get_exercise(kind)
        return cls(
            exercise,
            prompt_source=lambda: exercise.load(config.data_dir),
            practice_list=practice_list,
            progress=progress,
            coins=coins,
            feedback=feedback,
            auto_advance_ms=config.auto_advance_ms,
            reveal_delay_ms=config.reveal_delay_ms,
            shuffle=config.shuffle,
            rng=random.Random(config.seed) if config.seed is not None else None,
            clock=clock,
            confetti_count=config.confetti_count,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def load(self) -> list[Prompt]:
        """
        Full prompt set for this exercise, loaded on first call.

        Raises:
            LoadError: If the data cannot be loaded or is empty
        """
        if self._prompts is None:
            prompts = list(self._source())
            if not prompts:
                raise LoadError(f"No {self.exercise.title.lower()} data found")
            self._prompts = prompts
        return list(self._prompts)

    def start(
        self,
        filter_predicate: Optional[PromptFilter] = None,
        *,
        from_practice_list: bool = False,
    ) -> SessionStatus:
        """
        Build a fresh queue and present its first prompt.

        Args:
            filter_predicate: Keep only prompts for which this returns True
            from_practice_list: Practise the stored missed prompts instead

        Returns:
            The new status (ACTIVE, EMPTY or LOAD_FAILED)
        """
        self._deferred.cancel()
        self._filter = filter_predicate
        self.from_practice_list = from_practice_list
        self.counters = SessionCounters()
        self.queue = None
        self.validator = None
        self.last_solved = None
        self.message = None

        try:
            if from_practice_list:
                pool = self.practice_list.members(self.load())
            else:
                pool = self.load()
        except LoadError as e:
            logger.error("Could not start %s: %s", self.exercise.kind.value, e)
            self.status = SessionStatus.LOAD_FAILED
            self.message = f"Could not load {self.exercise.title}: {e}"
            return self.status

        if filter_predicate is not None:
            pool = [prompt for prompt in pool if filter_predicate(prompt)]

        try:
            self.queue = SessionQueue.build(pool, shuffle=self.shuffle, rng=self._rng)
        except EmptyQueue:
            self.status = SessionStatus.EMPTY
            self.message = PRACTICE_LIST_EMPTY_MESSAGE if from_practice_list else self.exercise.empty_message
            return self.status

        logger.info("Started %s with %d prompts%s", self.exercise.kind.value, self.queue.length,
                    " from practice list" if from_practice_list else "")
        self._present()
        return self.status

    def restart(self) -> SessionStatus:
        """Rebuild the queue with the same source and filter."""
        return self.start(self._filter, from_practice_list=self.from_practice_list)

    def stop(self):
        self._deferred.cancel()

    def _present(self):
        """Create a validator for the prompt at the cursor (or complete)."""
        self._missed = False
        item = self.queue.current()
        if item is COMPLETED:
            self.validator = None
            if self.status != SessionStatus.COMPLETED:
                self.status = SessionStatus.COMPLETED
                logger.info("Completed %s: %s", self.exercise.kind.value, self.counters.model_dump())
                self.feedback.confetti(50)
            return
        self.status = SessionStatus.ACTIVE
        self.validator = self.exercise.make_validator(item, self._options)

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    def current(self) -> Optional[QueueItem]:
        """Prompt on screen, COMPLETED, or None if no queue exists."""
        if self.queue is None:
            return None
        return self.queue.current()

    @property
    def awaiting_advance(self) -> bool:
        """True between a correct answer and the auto-advance."""
        return self._deferred.armed

    def pending_advance_ms(self) -> int:
        return self._deferred.remaining_ms()

    def can_go_back(self) -> bool:
        return self.queue is not None and self.queue.can_go_back

    def progress_text(self) -> str:
        return self.queue.progress_text() if self.queue else ""

    def on_coins_changed(self, listener: Callable[[int], None]) -> Callable[[], None]:
        return self.coins.subscribe(listener)

    def tick(self) -> bool:
        """Fire the auto-advance if it is due. Returns True if it fired."""
        return self._deferred.poll()

    # -------------------------------------------------------------------------
    # Input events
    # -------------------------------------------------------------------------

    def _accepting_input(self) -> bool:
        self.tick()
        return (
            self.status == SessionStatus.ACTIVE
            and self.validator is not None
            and not self.validator.is_solved
            and not self._deferred.armed
        )

    def _require(self, variant: type) -> AnswerValidator:
        if not isinstance(self.validator, variant):
            raise TypeError(
                f"{self.exercise.kind.value} does not accept {variant.__name__} input"
            )
        return self.validator

    def submit_token(self, token: str) -> Optional[Outcome]:
        """Tap one token from the bank. None if input is not accepted now."""
        if not self._accepting_input():
            logger.debug("Ignoring token %r", token)
            return None
        validator = self._require(OrderedTokenValidator)
        outcome = validator.tap(token)
        self._handle(outcome)
        return outcome

    def remove_token(self, slot_index: int) -> list[str]:
        """Take back a placed token and everything placed after it."""
        if not self._accepting_input():
            return []
        return self._require(OrderedTokenValidator).remove(slot_index)

    def submit_choice(self, choice: str) -> Optional[Outcome]:
        """Pick one candidate. None if input is not accepted now."""
        if not self._accepting_input():
            logger.debug("Ignoring choice %r", choice)
            return None
        validator = self._require(AtomicChoiceValidator)
        outcome = validator.choose(choice)
        self._handle(outcome)
        return outcome

    def reveal(self) -> bool:
        """Show the flashcard answer once the reveal delay has passed."""
        if not self._accepting_input():
            return False
        return self._require(SelfReportValidator).reveal()

    def declare(self, correct: bool) -> Optional[Outcome]:
        """Learner's verdict on a revealed flashcard."""
        if not self._accepting_input():
            return None
        outcome = self._require(SelfReportValidator).declare(correct)
        if outcome is None:
            logger.debug("Ignoring declaration before reveal")
            return None
        self._handle(outcome, ends_presentation=True)
        return outcome

    # -------------------------------------------------------------------------
    # Outcome bookkeeping
    # -------------------------------------------------------------------------

    def _handle(self, outcome: Outcome, ends_presentation: bool = False):
        prompt = self.validator.prompt
        if outcome == Outcome.REJECTED:
            self.feedback.flash_error()
            if not self._missed:
                self._missed = True
                self._record_wrong(prompt)
            if ends_presentation:
                self._schedule_advance()
        elif outcome == Outcome.ACCEPTED_FINAL:
            self._record_final(prompt)

    def _record_wrong(self, prompt: Prompt):
        self.counters.wrong += 1
        self.progress.record_wrong(self.exercise.progress_kind)
        self.practice_list.add(prompt)

    def _record_final(self, prompt: Prompt):
        clean = not self._missed
        self.last_solved = prompt
        self.feedback.flash_success()
        self.feedback.confetti(self.confetti_count)
        self.coins.add(1)
        self.counters.completed += 1

        if self.exercise.progress_kind == ProgressKind.DISCRETE:
            self.progress.record_correct(ProgressKind.DISCRETE)
        elif clean:
            self.progress.record_correct(ProgressKind.CONTINUOUS)

        if clean:
            self.counters.correct += 1
            if self.from_practice_list:
                self._mark_mastered(prompt)
                return
        self._schedule_advance()

    def _mark_mastered(self, prompt: Prompt):
        """Drop a prompt from the store and from the rest of this run."""
        self.practice_list.remove(prompt)
        self.queue.remove(prompt)
        self._present()

    def _schedule_advance(self):
        self._deferred.schedule(self.auto_advance_ms, self._auto_advance)

    def _auto_advance(self):
        if self.queue is not None and self.queue.advance():
            self._present()

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def skip(self) -> bool:
        """Move past the current prompt without grading it."""
        self.tick()
        if self.status != SessionStatus.ACTIVE or self.queue is None:
            return False
        answered = self._deferred.cancel()
        if not self.queue.skip():
            return False
        if not answered:
            self.counters.skipped += 1
        self._present()
        return True

    def go_back(self) -> bool:
        """Return to the previous prompt. False if there is none."""
        self.tick()
        if self.queue is None or not self.queue.can_go_back:
            return False
        self._deferred.cancel()
        try:
            self.queue.go_back()
        except NoHistory:
            logger.debug("go_back ignored: no history")
            return False
        self._present()
        return True

    def reset(self) -> bool:
        """Clear the current attempt and present the same prompt again."""
        self.tick()
        if self.status != SessionStatus.ACTIVE or self.queue is None:
            return False
        self._deferred.cancel()
        self._present()
        return True
