"""Page state machines: topic form, flashcard viewer, quiz runner.

Nothing here does I/O. Pages rebuild the state from query or form
parameters on every request.
"""
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

IDLE = "idle"
SUBMITTING = "submitting"
SUCCESS = "success"

LOADING = "loading"
ANSWERING = "answering"
COMPLETED = "completed"


class InvalidTransition(Exception):
    pass


@dataclass
class TopicSubmission:
    """idle -> submitting -> success | idle with an error message."""

    state: str = IDLE
    error: str = ""
    topic_id: str | None = None

    def submit(self) -> None:
        if self.state == SUBMITTING:
            raise InvalidTransition("Submission already in progress")
        self.state = SUBMITTING
        self.error = ""

    def succeed(self, topic_id: str) -> None:
        if self.state != SUBMITTING:
            raise InvalidTransition("Nothing is being submitted")
        self.state = SUCCESS
        self.topic_id = topic_id

    def fail(self, message: str) -> None:
        if self.state != SUBMITTING:
            raise InvalidTransition("Nothing is being submitted")
        self.state = IDLE
        self.error = message


@dataclass
class FlashcardViewer:
    """Cyclic index over a fixed deck plus which face is showing."""

    count: int
    index: int = 0
    flipped: bool = False

    def __post_init__(self):
        self.index = self.index % self.count if self.count else 0

    def next(self) -> "FlashcardViewer":
        if self.count:
            self.index = (self.index + 1) % self.count
        self.flipped = False
        return self

    def previous(self) -> "FlashcardViewer":
        if self.count:
            self.index = (self.index - 1 + self.count) % self.count
        self.flipped = False
        return self

    def flip(self) -> "FlashcardViewer":
        self.flipped = not self.flipped
        return self

    @property
    def next_index(self) -> int:
        return (self.index + 1) % self.count if self.count else 0

    @property
    def previous_index(self) -> int:
        return (self.index - 1 + self.count) % self.count if self.count else 0


@dataclass
class QuizRunner:
    """loading -> answering -> completed. Completion is terminal."""

    questions: list[Mapping[str, Any]] = field(default_factory=list)
    current: int = 0
    score: int = 0
    selected: str | None = None
    state: str = LOADING

    @classmethod
    def resume(cls, questions: Sequence[Mapping[str, Any]], current: int = 0, score: int = 0) -> "QuizRunner":
        runner = cls()
        runner.load(questions)
        if not 0 <= current < len(runner.questions):
            raise InvalidTransition("Question index out of range")
        runner.current = current
        runner.score = max(0, min(score, current))
        return runner

    def load(self, questions: Sequence[Mapping[str, Any]]) -> None:
        if self.state != LOADING:
            raise InvalidTransition("Quiz already loaded")
        if not questions:
            raise InvalidTransition("No quiz questions available")
        self.questions = list(questions)
        self.state = ANSWERING

    @property
    def question(self) -> Mapping[str, Any]:
        return self.questions[self.current]

    @property
    def is_last(self) -> bool:
        return self.current + 1 == len(self.questions)

    def select(self, option: str) -> None:
        if self.state != ANSWERING:
            raise InvalidTransition("Quiz is not accepting answers")
        self.selected = option

    def advance(self) -> None:
        if self.state != ANSWERING:
            raise InvalidTransition("Quiz is not accepting answers")
        if self.selected is None:
            raise InvalidTransition("Select an answer first")
        if self.selected == self.question["correctAnswer"]:
            self.score += 1
        if self.current + 1 < len(self.questions):
            self.current += 1
            self.selected = None
        else:
            self.state = COMPLETED

    @property
    def percentage(self) -> float:
        return round(self.score / len(self.questions) * 100, 1) if self.questions else 0.0
