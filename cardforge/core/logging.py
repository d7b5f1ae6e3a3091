"""Root logger setup for the web app."""
import logging

LOG_FORMAT = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # uvicorn access lines are enough; keep SQL echo off unless asked
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
