from cardforge.models.user import User
from cardforge.models.topic import Topic
from cardforge.models.flashcard import Flashcard
from cardforge.models.quiz import Quiz
from cardforge.models.progress import Progress
from cardforge.models.recommendation import Recommendation

__all__ = ["User", "Topic", "Flashcard", "Quiz", "Progress", "Recommendation"]
