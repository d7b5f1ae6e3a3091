"""Request pipelines shared by the JSON API and the browser pages.

Steps run strictly in order and the first failure stops the rest. Writes that
already committed stay committed: a topic whose flashcard generation fails is
kept without cards.
"""
import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cardforge.core.errors import AppError, GenerationError, NotFound, PersistenceError
from cardforge.models.flashcard import Flashcard
from cardforge.models.progress import Progress
from cardforge.models.quiz import Quiz
from cardforge.models.topic import Topic
from cardforge.schemas.recommendation import RecommendationItem
from cardforge.services.generator import ContentGenerator
from cardforge.services.store import Store

logger = logging.getLogger(__name__)


@contextmanager
def handler_boundary(message: str) -> Iterator[None]:
    """Log generation/persistence failures and re-raise them as a generic 500."""
    try:
        yield
    except (GenerationError, PersistenceError) as e:
        logger.error("%s: %s (%s)", message, e.message, e.details or "-")
        raise AppError(message, details=e.message) from e


async def submit_topic(
    store: Store, generator: ContentGenerator, user_id: str, text: str
) -> tuple[Topic, list[Flashcard]]:
    topic = await store.create_topic(user_id, text)
    logger.info("Created topic %s for user %s", topic.id, user_id)
    drafts = await generator.generate_flashcards(text)
    cards = await store.bulk_insert_flashcards(topic.id, drafts)
    logger.info("Stored %d flashcards for topic %s", len(cards), topic.id)
    return topic, cards


async def get_or_generate_flashcards(
    store: Store, generator: ContentGenerator, user_id: str, topic_id: str
) -> list[Flashcard]:
    """Stored cards of the user's topic; generated and stored on first access."""
    topic = await store.get_topic(user_id, topic_id)
    cards = await store.list_flashcards(topic.id)
    if cards:
        return cards
    drafts = await generator.generate_flashcards(topic.topic)
    return await store.bulk_insert_flashcards(topic.id, drafts)


async def generate_quiz(
    store: Store, generator: ContentGenerator, user_id: str, topic_id: str
) -> Quiz:
    """Always inserts a new quiz row built from the topic's flashcards."""
    topic = await store.get_topic(user_id, topic_id)
    cards = await store.list_flashcards(topic.id)
    if not cards:
        raise NotFound("No flashcards found for this topic")
    questions = await generator.generate_quiz(
        {"question": c.question, "answer": c.answer} for c in cards
    )
    quiz = await store.insert_quiz(user_id, topic.id, [q.model_dump() for q in questions])
    logger.info("Created quiz %s (%d questions) for topic %s", quiz.id, len(questions), topic.id)
    return quiz


async def update_progress(store: Store, user_id: str, topic_id: str, score: float) -> Progress:
    await store.get_topic(user_id, topic_id)
    return await store.upsert_progress(user_id, topic_id, score)


async def generate_recommendations(
    store: Store, generator: ContentGenerator, user_id: str
) -> list[RecommendationItem]:
    progress = await store.list_progress(user_id)
    topics = await store.list_topics(user_id)
    items = await generator.generate_recommendations(
        ({"topic_id": p.topic_id, "score": p.score} for p in progress),
        ({"id": t.id, "topic": t.topic} for t in topics),
    )
    await store.insert_recommendations(user_id, [i.model_dump() for i in items])
    return items


async def latest_recommendations(store: Store, user_id: str) -> list[dict]:
    batches = await store.list_recommendations(user_id)
    return list(batches[0].recommendation_content) if batches else []


@dataclass
class DashboardData:
    topics: list[Topic] = field(default_factory=list)
    progress: list[Progress] = field(default_factory=list)
    recommendations: list[dict] = field(default_factory=list)

    def score_for(self, topic_id: str) -> float:
        for p in self.progress:
            if p.topic_id == topic_id:
                return p.score
        return 0


async def load_dashboard(
    session_factory: async_sessionmaker[AsyncSession], user_id: str
) -> DashboardData:
    """Fetch topics, progress and recommendations concurrently, one session each.

    Any failure propagates and the other results are dropped.
    """

    async def fetch(call):
        async with session_factory() as session:
            return await call(Store(session))

    topics, progress, recommendations = await asyncio.gather(
        fetch(lambda s: s.list_topics(user_id)),
        fetch(lambda s: s.list_progress(user_id)),
        fetch(lambda s: latest_recommendations(s, user_id)),
    )
    return DashboardData(topics=topics, progress=progress, recommendations=recommendations)
