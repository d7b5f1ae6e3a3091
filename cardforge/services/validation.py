"""Request-body checks. Pure functions: no I/O, no mutation."""
import math
import re
from typing import Any

from cardforge.core.errors import InvalidInput

TOPIC_MIN_LENGTH = 3
TOPIC_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_BYTES = 72  # bcrypt hard limit

# Simple, practical email check
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _require_object(body: Any) -> dict:
    if not isinstance(body, dict):
        raise InvalidInput("Invalid request body")
    return body


def _is_number(value: Any) -> bool:
    # bool is an int subclass but not a score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    # json.loads accepts NaN and Infinity
    return math.isfinite(value)


def validate_topic(body: Any) -> str:
    """Return the trimmed topic text or raise InvalidInput naming the broken rule."""
    topic = _require_object(body).get("topic")
    if not isinstance(topic, str):
        raise InvalidInput("Topic must be a string")
    text = topic.strip()
    if len(text) < TOPIC_MIN_LENGTH:
        raise InvalidInput(f"Topic must be at least {TOPIC_MIN_LENGTH} characters long")
    if len(text) > TOPIC_MAX_LENGTH:
        raise InvalidInput(f"Topic must be less than {TOPIC_MAX_LENGTH} characters long")
    return text


def validate_topic_id(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput("Invalid topicId")
    return value


def validate_quiz_request(body: Any) -> str:
    return validate_topic_id(_require_object(body).get("topicId"))


def validate_progress(body: Any) -> tuple[str, float]:
    body = _require_object(body)
    topic_id = body.get("topicId")
    score = body.get("score")
    if not isinstance(topic_id, str) or not topic_id.strip() or not _is_number(score):
        raise InvalidInput("Invalid topicId or score")
    return topic_id, score


def validate_credentials(email: str | None, password: str | None) -> tuple[str, str]:
    """Normalize email and check password bounds for sign-up."""
    email_norm = (email or "").strip().lower()
    pwd = password or ""
    if not email_norm or not EMAIL_RE.match(email_norm):
        raise InvalidInput("Invalid email address")
    if len(pwd) < PASSWORD_MIN_LENGTH:
        raise InvalidInput(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if len(pwd.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise InvalidInput(f"Password must be at most {PASSWORD_MAX_BYTES} bytes long")
    return email_norm, pwd
