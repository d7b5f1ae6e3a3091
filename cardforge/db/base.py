"""SQLAlchemy declarative base and model imports for Alembic."""
from cardforge.db.session import Base

# Import all models so Alembic can see them
from cardforge.models.flashcard import Flashcard  # noqa: F401
from cardforge.models.progress import Progress  # noqa: F401
from cardforge.models.quiz import Quiz  # noqa: F401
from cardforge.models.recommendation import Recommendation  # noqa: F401
from cardforge.models.topic import Topic  # noqa: F401
from cardforge.models.user import User  # noqa: F401

__all__ = ["Base", "User", "Topic", "Flashcard", "Quiz", "Progress", "Recommendation"]
