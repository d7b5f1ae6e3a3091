"""API routes: JSON for topics, flashcards, quizzes, progress, recommendations.

Every route authenticates first, then validates the body, then runs its
pipeline. Only the declared method is routed; anything else gets a 405.
"""
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends

from cardforge.dependencies import get_generator, get_store, require_user
from cardforge.schemas.flashcard import FlashcardOutSchema
from cardforge.schemas.progress import ProgressOutSchema
from cardforge.schemas.topic import TopicOutSchema
from cardforge.services import learning
from cardforge.services.generator import ContentGenerator
from cardforge.services.identity import AuthenticatedUser
from cardforge.services.learning import handler_boundary
from cardforge.services.store import Store
from cardforge.services.validation import (
    validate_progress,
    validate_quiz_request,
    validate_topic,
    validate_topic_id,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

CurrentUser = Annotated[AuthenticatedUser, Depends(require_user)]
StoreDep = Annotated[Store, Depends(get_store)]
GeneratorDep = Annotated[ContentGenerator, Depends(get_generator)]
JsonBody = Annotated[Any, Body()]


def _cards(cards) -> list[dict]:
    return [FlashcardOutSchema.model_validate(c).model_dump() for c in cards]


@router.post("/topics")
async def create_topic(
    user: CurrentUser,
    store: StoreDep,
    generator: GeneratorDep,
    body: JsonBody = None,
):
    """Store a topic and generate its flashcards."""
    text = validate_topic(body)
    with handler_boundary("Error submitting topic and generating flashcards"):
        topic, cards = await learning.submit_topic(store, generator, user.id, text)
    return {"topicId": topic.id, "flashcards": _cards(cards)}


@router.get("/topics")
async def list_topics(user: CurrentUser, store: StoreDep):
    with handler_boundary("Error fetching topics"):
        topics = await store.list_topics(user.id)
    return {"topics": [TopicOutSchema.model_validate(t).model_dump() for t in topics]}


@router.get("/flashcards/{topic_id}")
async def get_flashcards(
    topic_id: str,
    user: CurrentUser,
    store: StoreDep,
    generator: GeneratorDep,
):
    """Stored flashcards of a topic; generated on first access."""
    topic_id = validate_topic_id(topic_id)
    with handler_boundary("Error generating flashcards"):
        cards = await learning.get_or_generate_flashcards(store, generator, user.id, topic_id)
    return {"flashcards": _cards(cards)}


@router.post("/quizzes/generate")
async def generate_quiz(
    user: CurrentUser,
    store: StoreDep,
    generator: GeneratorDep,
    body: JsonBody = None,
):
    """Build a new quiz from the topic's flashcards."""
    topic_id = validate_quiz_request(body)
    with handler_boundary("Error generating quiz"):
        quiz = await learning.generate_quiz(store, generator, user.id, topic_id)
    return {"quizId": quiz.id, "quiz": quiz.quiz_content}


@router.post("/progress/update")
async def update_progress(
    user: CurrentUser,
    store: StoreDep,
    body: JsonBody = None,
):
    topic_id, score = validate_progress(body)
    with handler_boundary("Error updating progress"):
        progress = await learning.update_progress(store, user.id, topic_id, score)
    return {"progress": ProgressOutSchema.model_validate(progress).model_dump(mode="json")}


@router.get("/progress")
async def list_progress(user: CurrentUser, store: StoreDep):
    with handler_boundary("Error fetching progress"):
        rows = await store.list_progress(user.id)
    return {"progress": [ProgressOutSchema.model_validate(p).model_dump(mode="json") for p in rows]}


@router.get("/recommendations/generate")
async def generate_recommendations(
    user: CurrentUser,
    store: StoreDep,
    generator: GeneratorDep,
):
    """Ask the LLM for recommendations from progress and topics; stores the batch."""
    with handler_boundary("Error generating recommendations"):
        items = await learning.generate_recommendations(store, generator, user.id)
    return {"recommendations": [i.model_dump() for i in items]}


@router.get("/recommendations")
async def list_recommendations(user: CurrentUser, store: StoreDep):
    """Latest stored batch, or an empty list."""
    with handler_boundary("Error fetching recommendations"):
        items = await learning.latest_recommendations(store, user.id)
    return {"recommendations": items}
