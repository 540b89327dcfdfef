"""Creates the debate tables from the ``tables/*.sql`` files."""

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

# Referenced tables come before the tables holding their foreign keys
TABLE_FILES: tuple[str, ...] = (
    "topics.sql",
    "sensitive_words.sql",
    "sessions.sql",
    "roles.sql",
    "arguments.sql",
    "round_score_records.sql",
    "scoring_rules.sql",
    "score_records.sql",
    "moderator_messages.sql",
    "indexes.sql",
)


class SchemaManager:
    """Applies the table files in dependency order; every file is idempotent."""

    def __init__(self, tables_dir: Path | None = None):
        self.tables_dir = tables_dir or Path(__file__).parent / "tables"

    def missing_files(self) -> list[str]:
        return [name for name in TABLE_FILES if not (self.tables_dir / name).is_file()]

    def statements(self, filename: str) -> list[str]:
        sql = (self.tables_dir / filename).read_text(encoding="utf-8")
        return [part.strip() for part in sql.split(";") if part.strip()]

    def apply(self, conn: sqlite3.Connection) -> None:
        missing = self.missing_files()
        if missing:
            raise RuntimeError(f"Schema files missing from {self.tables_dir}: {missing}")

        for filename in TABLE_FILES:
            try:
                for statement in self.statements(filename):
                    conn.execute(statement)
            except sqlite3.Error as e:
                logger.error(f"Schema file {filename} failed: {e}")
                raise
        logger.debug(f"Applied {len(TABLE_FILES)} schema files")
