"""Password hashing, access tokens (JWT) and signed quiz state."""
import hashlib
import hmac
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from cardforge.core.config import Settings, get_settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    subject: str,
    extra: dict[str, Any] | None = None,
    settings: Settings | None = None,
) -> str:
    """Sign an access token for `subject` (user id) with the shared secret."""
    settings = settings or get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {"sub": str(subject), "exp": expire, "type": "access"}
    if settings.auth_issuer:
        to_encode["iss"] = settings.auth_issuer
    if settings.auth_audience:
        to_encode["aud"] = settings.auth_audience
    if extra:
        to_encode.update(extra)
    return jwt.encode(to_encode, settings.auth_jwt_secret, algorithm=settings.auth_algorithm)


def decode_access_token(token: str, settings: Settings | None = None) -> dict | None:
    """Return verified claims, or None when the token is bad or expired."""
    settings = settings or get_settings()
    key = settings.auth_public_key or settings.auth_jwt_secret
    options = {"verify_aud": bool(settings.auth_audience)}
    try:
        return jwt.decode(
            token,
            key,
            algorithms=[settings.auth_algorithm],
            audience=settings.auth_audience,
            issuer=settings.auth_issuer,
            options=options,
        )
    except JWTError:
        return None


# Quiz progress travels through the browser as question:score.hmac
def _quiz_payload(user_id: str, quiz_id: str, question: int, score: int) -> bytes:
    return f"{user_id}:{quiz_id}:{question}:{score}".encode("utf-8")


def sign_quiz_state(
    user_id: str, quiz_id: str, question: int, score: int, settings: Settings | None = None
) -> str:
    settings = settings or get_settings()
    return hmac.new(
        settings.auth_jwt_secret.encode("utf-8"),
        _quiz_payload(user_id, quiz_id, question, score),
        hashlib.sha256,
    ).hexdigest()


def verify_quiz_state(
    user_id: str,
    quiz_id: str,
    question: int,
    score: int,
    sig: str | None,
    settings: Settings | None = None,
) -> bool:
    """True when `sig` was issued for this position. The opening position needs none."""
    if question == 0 and score == 0:
        return True
    if not sig:
        return False
    expected = sign_quiz_state(user_id, quiz_id, question, score, settings)
    return hmac.compare_digest(expected, sig)
