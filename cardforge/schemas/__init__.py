from cardforge.schemas.auth import CredentialsSchema, TokenOutSchema, UserOutSchema
from cardforge.schemas.flashcard import FlashcardDraft, FlashcardOutSchema
from cardforge.schemas.progress import ProgressOutSchema
from cardforge.schemas.quiz import QuizOutSchema, QuizQuestion
from cardforge.schemas.recommendation import RecommendationItem
from cardforge.schemas.topic import TopicOutSchema

__all__ = [
    "CredentialsSchema",
    "FlashcardDraft",
    "FlashcardOutSchema",
    "ProgressOutSchema",
    "QuizOutSchema",
    "QuizQuestion",
    "RecommendationItem",
    "TokenOutSchema",
    "TopicOutSchema",
    "UserOutSchema",
]
