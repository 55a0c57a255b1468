"""
TagNotes Backend: Run-Once Schema Script Tests
"""

from sqlalchemy import create_engine, inspect

from tagnotes.config import Settings
from tagnotes import migrate
from tagnotes.migrate import main


def _table_names(db_file):
    engine = create_engine(f"sqlite:///{db_file}")
    try:
        return set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def test_migrate_creates_schema(tmp_path):
    db_file = tmp_path / "nested" / "notes.db"
    settings = Settings(database_url=f"sqlite+aiosqlite:///{db_file}", log_level="WARNING")

    assert main(settings) == 0
    assert {"notes", "note_tags"} <= _table_names(db_file)


def test_migrate_can_run_twice(tmp_path):
    settings = Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}",
        log_level="WARNING",
    )

    assert main(settings) == 0
    assert main(settings) == 0


def test_migrate_logging_does_not_come_from_app_module():
    # tagnotes.main builds an application at import time
    assert migrate.setup_logging.__module__ == "tagnotes.logging_config"
