"""
TagNotes Backend: Logging Configuration

Shared by the server lifespan and the run-once schema script.
"""

import logging
import sys


def setup_logging(level: str) -> None:
    """
    Configure root logging once, before anything else in startup.

    Format: 2024-01-15T12:00:00 [INFO] tagnotes.services.notes_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that log every statement / connection
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
