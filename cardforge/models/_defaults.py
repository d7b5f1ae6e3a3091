"""Column defaults shared by every table."""
import uuid
from datetime import datetime, timezone


def new_id() -> str:
    """Opaque text id."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
