"""Content generator: prompt the LLM, parse its JSON text, validate the shape.

Every call goes to the completion API; nothing is cached. A response that is
not JSON raises GenerationFormatError; JSON of the wrong shape raises the
format error for that content type (InvalidQuizFormat for quizzes), and the
whole batch is rejected. Transport failures surface as GenerationError from
the client and are never retried. Format failures are retried only when
`max_attempts` > 1.
"""
import json
import logging
import re
from typing import Any, Iterable, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from cardforge.core.errors import GenerationFormatError, InvalidQuizFormat
from cardforge.schemas.flashcard import FlashcardDraft
from cardforge.schemas.quiz import QuizQuestion
from cardforge.schemas.recommendation import RecommendationItem
from cardforge.services.llm import CompletionClient

logger = logging.getLogger(__name__)

FLASHCARD_COUNT = 5
QUIZ_QUESTION_COUNT = 5
RECOMMENDATION_COUNT = 3

FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)

M = TypeVar("M", bound=BaseModel)


def flashcard_prompt(topic: str) -> str:
    return (
        f'Create a set of {FLASHCARD_COUNT} flashcards to teach the topic: "{topic}". '
        'Each flashcard should be in JSON format with "question" and "answer" fields. '
        "Return only a JSON array of the flashcards."
    )


def quiz_prompt(flashcards: list[dict]) -> str:
    return (
        f"Create a quiz with {QUIZ_QUESTION_COUNT} multiple-choice questions based on these "
        f"flashcards: {json.dumps(flashcards)}. Each question should have 4 options. "
        "Return the quiz as a JSON array with fields: question, options (array), and "
        "correctAnswer (the exact text of the correct option)."
    )


def recommendation_prompt(progress: list[dict], topics: list[dict]) -> str:
    return (
        f"Based on the user's progress {json.dumps(progress)} and their topics "
        f"{json.dumps(topics)}, provide {RECOMMENDATION_COUNT} personalized learning "
        "recommendations. Return the recommendations as a JSON array with fields: "
        "title and description."
    )


def parse_json_text(text: str) -> Any:
    """Parse the model's reply; accepts a bare document or one fenced ```json block."""
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        pass
    match = FENCED_JSON_RE.search(text or "")
    if match:
        try:
            return json.loads(match.group(1))
        except ValueError:
            pass
    raise GenerationFormatError("LLM response is not valid JSON", details=(text or "")[:200])


def _unwrap_list(data: Any) -> Any:
    # {"flashcards": [...]} and similar single-key wrappers
    if isinstance(data, dict) and len(data) == 1:
        (value,) = data.values()
        if isinstance(value, list):
            return value
    return data


def validate_items(data: Any, model: type[M], error_cls: type[GenerationFormatError]) -> list[M]:
    """Validate a non-empty JSON array of `model`; any bad item rejects the batch."""
    data = _unwrap_list(data)
    if not isinstance(data, list) or not data:
        raise error_cls(f"Expected a non-empty JSON array of {model.__name__} items")
    try:
        return TypeAdapter(list[model]).validate_python(data)
    except ValidationError as e:
        raise error_cls(f"Invalid {model.__name__} data generated", details=str(e)) from e


class ContentGenerator:
    def __init__(self, client: CompletionClient, max_attempts: int = 1):
        self.client = client
        self.max_attempts = max(1, max_attempts)

    async def _generate(
        self,
        prompt: str,
        model: type[M],
        error_cls: type[GenerationFormatError] = GenerationFormatError,
    ) -> list[M]:
        last_error: GenerationFormatError | None = None
        for attempt in range(1, self.max_attempts + 1):
            text = await self.client.complete(prompt)
            try:
                return validate_items(parse_json_text(text), model, error_cls)
            except GenerationFormatError as e:
                logger.warning(
                    "Rejected %s output (attempt %d/%d): %s",
                    model.__name__, attempt, self.max_attempts, e.message,
                )
                last_error = e
        raise last_error

    async def generate_flashcards(self, topic: str) -> list[FlashcardDraft]:
        return await self._generate(flashcard_prompt(topic), FlashcardDraft)

    async def generate_quiz(self, flashcards: Iterable[dict]) -> list[QuizQuestion]:
        return await self._generate(quiz_prompt(list(flashcards)), QuizQuestion, InvalidQuizFormat)

    async def generate_recommendations(
        self, progress: Iterable[dict], topics: Iterable[dict]
    ) -> list[RecommendationItem]:
        return await self._generate(
            recommendation_prompt(list(progress), list(topics)), RecommendationItem
        )
