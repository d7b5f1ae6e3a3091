"""Persistence adapter over an AsyncSession.

Each write commits on its own. Reads and writes are scoped by user id, or by a
topic id the caller has already checked against the user. SQLAlchemy failures
are rolled back and re-raised as PersistenceError.
"""
import functools
import logging
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cardforge.core.errors import NotFound, PersistenceError
from cardforge.models.flashcard import Flashcard
from cardforge.models.progress import Progress
from cardforge.models.quiz import Quiz
from cardforge.models.recommendation import Recommendation
from cardforge.models.topic import Topic
from cardforge.models.user import User
from cardforge.schemas.flashcard import FlashcardDraft

logger = logging.getLogger(__name__)


def _wrap_db_errors(method):
    @functools.wraps(method)
    async def wrapper(self: "Store", *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error("Store error in %s: %s", method.__name__, e)
            await self.session.rollback()
            raise PersistenceError("Database operation failed", details=str(e)) from e

    return wrapper


class Store:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ---------- users ----------

    @_wrap_db_errors
    async def create_user(self, email: str, hashed_password: str) -> User:
        user = User(email=email, hashed_password=hashed_password)
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    @_wrap_db_errors
    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    # ---------- topics ----------

    @_wrap_db_errors
    async def create_topic(self, user_id: str, text: str) -> Topic:
        topic = Topic(user_id=user_id, topic=text)
        self.session.add(topic)
        await self.session.commit()
        await self.session.refresh(topic)
        return topic

    @_wrap_db_errors
    async def get_topic(self, user_id: str, topic_id: str) -> Topic:
        result = await self.session.execute(
            select(Topic).where(Topic.id == topic_id, Topic.user_id == user_id)
        )
        topic = result.scalar_one_or_none()
        if topic is None:
            raise NotFound("Topic not found")
        return topic

    @_wrap_db_errors
    async def list_topics(self, user_id: str) -> list[Topic]:
        result = await self.session.execute(
            select(Topic).where(Topic.user_id == user_id).order_by(Topic.created_at, Topic.id)
        )
        return list(result.scalars().all())

    # ---------- flashcards ----------

    @_wrap_db_errors
    async def list_flashcards(self, topic_id: str) -> list[Flashcard]:
        result = await self.session.execute(
            select(Flashcard).where(Flashcard.topic_id == topic_id).order_by(Flashcard.position)
        )
        return list(result.scalars().all())

    @_wrap_db_errors
    async def bulk_insert_flashcards(
        self, topic_id: str, items: Iterable[FlashcardDraft]
    ) -> list[Flashcard]:
        cards = [
            Flashcard(topic_id=topic_id, position=i, question=item.question, answer=item.answer)
            for i, item in enumerate(items)
        ]
        self.session.add_all(cards)
        await self.session.commit()
        return cards

    # ---------- quizzes ----------

    @_wrap_db_errors
    async def insert_quiz(self, user_id: str, topic_id: str, content: list[dict]) -> Quiz:
        quiz = Quiz(user_id=user_id, topic_id=topic_id, quiz_content=content)
        self.session.add(quiz)
        await self.session.commit()
        await self.session.refresh(quiz)
        return quiz

    @_wrap_db_errors
    async def get_quiz(self, user_id: str, quiz_id: str) -> Quiz:
        result = await self.session.execute(
            select(Quiz).where(Quiz.id == quiz_id, Quiz.user_id == user_id)
        )
        quiz = result.scalar_one_or_none()
        if quiz is None:
            raise NotFound("Quiz not found")
        return quiz

    # ---------- progress ----------

    @_wrap_db_errors
    async def upsert_progress(self, user_id: str, topic_id: str, score: float) -> Progress:
        """Last write wins on score and timestamp; one row per (user, topic)."""
        result = await self.session.execute(
            select(Progress).where(Progress.user_id == user_id, Progress.topic_id == topic_id)
        )
        progress = result.scalar_one_or_none()
        now = datetime.now(timezone.utc)
        if progress is None:
            progress = Progress(user_id=user_id, topic_id=topic_id, score=score, updated_at=now)
            self.session.add(progress)
        else:
            progress.score = score
            progress.updated_at = now
        await self.session.commit()
        await self.session.refresh(progress)
        return progress

    @_wrap_db_errors
    async def list_progress(self, user_id: str) -> list[Progress]:
        result = await self.session.execute(
            select(Progress).where(Progress.user_id == user_id).order_by(Progress.updated_at.desc())
        )
        return list(result.scalars().all())

    # ---------- recommendations ----------

    @_wrap_db_errors
    async def insert_recommendations(self, user_id: str, items: list[dict]) -> Recommendation:
        row = Recommendation(user_id=user_id, recommendation_content=items)
        self.session.add(row)
        await self.session.commit()
        await self.session.refresh(row)
        return row

    @_wrap_db_errors
    async def list_recommendations(self, user_id: str) -> list[Recommendation]:
        """Stored batches, newest first."""
        result = await self.session.execute(
            select(Recommendation)
            .where(Recommendation.user_id == user_id)
            .order_by(Recommendation.created_at.desc(), Recommendation.id)
        )
        return list(result.scalars().all())
