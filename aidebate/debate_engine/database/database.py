"""SQLite repositories for debate sessions, arguments, roles and scores."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Iterator

from aidebate.config.settings import PersonaConfig
from ..models import (
    Argument,
    ModeratorMessage,
    Role,
    RoundScoreRecord,
    ScoreRecord,
    ScoringRule,
    Topic,
)
from ..session import DebateSession
from ..types import MessageType, PlaybackSpeed, RoleType, SessionStatus, Side, Winner
from .schema import SchemaManager

logger = logging.getLogger(__name__)


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _dec(value: str | None) -> Decimal | None:
    return Decimal(value) if value is not None else None


def _str_or_none(value: object | None) -> str | None:
    return str(value) if value is not None else None


class DatabaseManager:
    """Manages SQLite database connections and row-store repositories."""

    def __init__(self, db_path: str | Path = "aidebate.db"):
        self.db_path = Path(db_path)
        self.schema_manager = SchemaManager()
        self._init_database()

    def _init_database(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._get_connection() as conn:
            self.schema_manager.apply(conn)
            conn.commit()
        logger.info(f"Database ready at {self.db_path}")

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row  # Enable column access by name
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            if conn:
                conn.close()

    # ------------------------------------------------------------------ topics

    def create_topic(self, topic: Topic) -> Topic:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "INSERT INTO topics (title, description, created_at) VALUES (?, ?, ?)",
                (topic.title, topic.description, _iso(topic.created_at)),
            )
            conn.commit()
            topic.topic_id = cursor.lastrowid
        return topic

    @staticmethod
    def _row_to_topic(row: sqlite3.Row) -> Topic:
        return Topic(
            topic_id=row["topic_id"],
            title=row["title"],
            description=row["description"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def get_topic(self, topic_id: int) -> Topic | None:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM topics WHERE topic_id = ?", (topic_id,)).fetchone()
        return self._row_to_topic(row) if row else None

    def list_topics(self) -> list[Topic]:
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM topics ORDER BY topic_id").fetchall()
        return [self._row_to_topic(row) for row in rows]

    # ---------------------------------------------------------------- sessions

    def create_session(self, session: DebateSession) -> DebateSession:
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO sessions (
                    topic_id, affirmative_persona, negative_persona, playback_speed,
                    language, round_count, judge_count, status, is_paused, checkpoint,
                    progress, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session.topic_id,
                    session.affirmative_persona.model_dump_json(),
                    session.negative_persona.model_dump_json(),
                    session.playback_speed.value,
                    session.language,
                    session.round_count,
                    session.judge_count,
                    session.status.value,
                    int(session.is_paused),
                    session.checkpoint,
                    session.progress,
                    _iso(session.created_at),
                ),
            )
            conn.commit()
            session.session_id = cursor.lastrowid
        logger.info(f"Created session {session.session_id} for topic {session.topic_id}")
        return session

    def get_session(self, session_id: int) -> DebateSession | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM sessions WHERE session_id = ?", (session_id,)
            ).fetchone()
        if row is None:
            return None

        return DebateSession(
            session_id=row["session_id"],
            topic_id=row["topic_id"],
            affirmative_persona=PersonaConfig(**json.loads(row["affirmative_persona"])),
            negative_persona=PersonaConfig(**json.loads(row["negative_persona"])),
            playback_speed=PlaybackSpeed(row["playback_speed"]),
            language=row["language"],
            round_count=row["round_count"],
            judge_count=row["judge_count"],
            status=SessionStatus(row["status"]),
            is_paused=bool(row["is_paused"]),
            checkpoint=row["checkpoint"],
            progress=row["progress"],
            started_at=_dt(row["started_at"]),
            completed_at=_dt(row["completed_at"]),
            final_score_affirmative=_dec(row["final_score_affirmative"]),
            final_score_negative=_dec(row["final_score_negative"]),
            winner=Winner(row["winner"]) if row["winner"] else None,
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def save_session(self, session: DebateSession) -> None:
        """Persist lifecycle fields in a single committed UPDATE."""
        with self._get_connection() as conn:
            conn.execute(
                """
                UPDATE sessions SET
                    status = ?, is_paused = ?, checkpoint = ?, progress = ?, started_at = ?,
                    completed_at = ?, final_score_affirmative = ?,
                    final_score_negative = ?, winner = ?
                WHERE session_id = ?
                """,
                (
                    session.status.value,
                    int(session.is_paused),
                    session.checkpoint,
                    session.progress,
                    _iso(session.started_at),
                    _iso(session.completed_at),
                    _str_or_none(session.final_score_affirmative),
                    _str_or_none(session.final_score_negative),
                    session.winner.value if session.winner else None,
                    session.session_id,
                ),
            )
            conn.commit()

    def request_pause(self, session_id: int) -> bool:
        """Raise the pause flag of an in-progress session; False if not in progress."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "UPDATE sessions SET is_paused = 1 WHERE session_id = ? AND status = ?",
                (session_id, SessionStatus.IN_PROGRESS.value),
            )
            conn.commit()
            return cursor.rowcount == 1

    def record_progress(self, session_id: int, progress: str) -> None:
        """Store the boundary the running loop reached, leaving the pause flag alone."""
        with self._get_connection() as conn:
            conn.execute(
                "UPDATE sessions SET progress = ? WHERE session_id = ?", (progress, session_id)
            )
            conn.commit()

    def is_pause_requested(self, session_id: int) -> bool:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT is_paused FROM sessions WHERE session_id = ?", (session_id,)
            ).fetchone()
        return bool(row and row["is_paused"])

    # ------------------------------------------------------------------- roles

    def create_roles(self, roles: list[Role]) -> list[Role]:
        with self._get_connection() as conn:
            for role in roles:
                cursor = conn.execute(
                    "INSERT INTO roles (session_id, role_type, name, judge_number) VALUES (?, ?, ?, ?)",
                    (role.session_id, role.role_type.value, role.name, role.judge_number),
                )
                role.role_id = cursor.lastrowid
            conn.commit()
        return roles

    def list_roles(self, session_id: int) -> list[Role]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM roles WHERE session_id = ? ORDER BY role_id", (session_id,)
            ).fetchall()
        return [
            Role(
                role_id=row["role_id"],
                session_id=row["session_id"],
                role_type=RoleType(row["role_type"]),
                name=row["name"],
                judge_number=row["judge_number"],
            )
            for row in rows
        ]

    def get_role(self, session_id: int, role_type: RoleType) -> Role | None:
        return next(
            (role for role in self.list_roles(session_id) if role.role_type is role_type),
            None,
        )

    # --------------------------------------------------------------- arguments

    def _row_to_argument(self, row: sqlite3.Row) -> Argument:
        return Argument(
            argument_id=row["argument_id"],
            session_id=row["session_id"],
            role_id=row["role_id"],
            side=Side(row["side"]),
            round_number=row["round_number"],
            content=row["content"],
            submitted_at=datetime.fromisoformat(row["submitted_at"]),
        )

    def insert_argument(self, argument: Argument) -> Argument:
        if argument.argument_id is not None:
            raise ValueError(f"Argument {argument.argument_id} is already persisted")

        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO arguments (
                    session_id, role_id, side, round_number, content,
                    character_count, submitted_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    argument.session_id,
                    argument.role_id,
                    argument.side.value,
                    argument.round_number,
                    argument.content,
                    argument.character_count,
                    _iso(argument.submitted_at),
                ),
            )
            conn.commit()
            argument.argument_id = cursor.lastrowid
        return argument

    def get_argument(self, argument_id: int) -> Argument | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM arguments WHERE argument_id = ?", (argument_id,)
            ).fetchone()
        return self._row_to_argument(row) if row else None

    def list_arguments(self, session_id: int) -> list[Argument]:
        """All arguments of a session in chronological order."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM arguments WHERE session_id = ? ORDER BY argument_id",
                (session_id,),
            ).fetchall()
        return [self._row_to_argument(row) for row in rows]

    def find_argument(self, session_id: int, round_number: int, side: Side) -> Argument | None:
        """Latest argument for a round and side."""
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM arguments
                WHERE session_id = ? AND round_number = ? AND side = ?
                ORDER BY argument_id DESC LIMIT 1
                """,
                (session_id, round_number, side.value),
            ).fetchone()
        return self._row_to_argument(row) if row else None

    def latest_argument_round(self, session_id: int) -> int | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT MAX(round_number) AS latest FROM arguments WHERE session_id = ?",
                (session_id,),
            ).fetchone()
        return row["latest"] if row else None

    # ------------------------------------------------------------ round scores

    def insert_round_scores(self, records: list[RoundScoreRecord]) -> list[RoundScoreRecord]:
        """Persist a round's score batch in one transaction."""
        with self._get_connection() as conn:
            for record in records:
                cursor = conn.execute(
                    """
                    INSERT INTO round_score_records (
                        session_id, round_number, judge_number, side, score,
                        feedback, is_fallback, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.session_id,
                        record.round_number,
                        record.judge_number,
                        record.side.value,
                        str(record.score),
                        record.feedback,
                        int(record.is_fallback),
                        _iso(record.created_at),
                    ),
                )
                record.record_id = cursor.lastrowid
            conn.commit()
        return records

    def list_round_scores(
        self, session_id: int, round_number: int | None = None
    ) -> list[RoundScoreRecord]:
        query = "SELECT * FROM round_score_records WHERE session_id = ?"
        params: tuple = (session_id,)
        if round_number is not None:
            query += " AND round_number = ?"
            params = (session_id, round_number)
        query += " ORDER BY record_id"

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [
            RoundScoreRecord(
                record_id=row["record_id"],
                session_id=row["session_id"],
                round_number=row["round_number"],
                judge_number=row["judge_number"],
                side=Side(row["side"]),
                score=Decimal(row["score"]),
                feedback=row["feedback"],
                is_fallback=bool(row["is_fallback"]),
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    # ------------------------------------------------- per-argument scoring

    def create_scoring_rules(self, rules: list[ScoringRule]) -> list[ScoringRule]:
        with self._get_connection() as conn:
            for rule in rules:
                cursor = conn.execute(
                    """
                    INSERT INTO scoring_rules (session_id, criterion, weight, max_score, description)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (rule.session_id, rule.criterion, str(rule.weight), str(rule.max_score), rule.description),
                )
                rule.rule_id = cursor.lastrowid
            conn.commit()
        return rules

    def list_scoring_rules(self, session_id: int) -> list[ScoringRule]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM scoring_rules WHERE session_id = ? ORDER BY rule_id", (session_id,)
            ).fetchall()
        return [
            ScoringRule(
                rule_id=row["rule_id"],
                session_id=row["session_id"],
                criterion=row["criterion"],
                weight=Decimal(row["weight"]),
                max_score=Decimal(row["max_score"]),
                description=row["description"],
            )
            for row in rows
        ]

    def insert_score_records(self, records: list[ScoreRecord]) -> list[ScoreRecord]:
        with self._get_connection() as conn:
            for record in records:
                cursor = conn.execute(
                    """
                    INSERT INTO score_records (argument_id, judge_number, rule_id, score, feedback, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.argument_id,
                        record.judge_number,
                        record.rule_id,
                        str(record.score),
                        record.feedback,
                        _iso(record.created_at),
                    ),
                )
                record.record_id = cursor.lastrowid
            conn.commit()
        return records

    def list_score_records(self, argument_id: int) -> list[ScoreRecord]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM score_records WHERE argument_id = ? ORDER BY record_id", (argument_id,)
            ).fetchall()
        return [
            ScoreRecord(
                record_id=row["record_id"],
                argument_id=row["argument_id"],
                judge_number=row["judge_number"],
                rule_id=row["rule_id"],
                score=Decimal(row["score"]),
                feedback=row["feedback"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    # ------------------------------------------------------ moderator messages

    def insert_moderator_message(self, message: ModeratorMessage) -> ModeratorMessage:
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO moderator_messages (
                    session_id, message_type, content, round_number, side,
                    argument_id, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    message.session_id,
                    message.message_type.value,
                    message.content,
                    message.round_number,
                    message.side.value if message.side else None,
                    message.argument_id,
                    _iso(message.created_at),
                ),
            )
            conn.commit()
            message.message_id = cursor.lastrowid
        return message

    def list_moderator_messages(self, session_id: int) -> list[ModeratorMessage]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM moderator_messages WHERE session_id = ? ORDER BY message_id",
                (session_id,),
            ).fetchall()
        return [
            ModeratorMessage(
                message_id=row["message_id"],
                session_id=row["session_id"],
                message_type=MessageType(row["message_type"]),
                content=row["content"],
                round_number=row["round_number"],
                side=Side(row["side"]) if row["side"] else None,
                argument_id=row["argument_id"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    # --------------------------------------------------------- sensitive words

    def add_sensitive_word(self, word: str, severity: str) -> int:
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO sensitive_words (word, severity, is_active, created_at)
                VALUES (?, ?, 1, ?)
                ON CONFLICT(word) DO UPDATE SET severity = excluded.severity, is_active = 1
                """,
                (word, severity, datetime.now().isoformat()),
            )
            conn.commit()
            return cursor.lastrowid or 0

    def deactivate_sensitive_word(self, word: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "UPDATE sensitive_words SET is_active = 0 WHERE lower(word) = lower(?) AND is_active = 1",
                (word,),
            )
            conn.commit()
            return cursor.rowcount > 0

    def list_active_sensitive_words(self) -> list[tuple[str, str]]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT word, severity FROM sensitive_words WHERE is_active = 1 ORDER BY word"
            ).fetchall()
        return [(row["word"], row["severity"]) for row in rows]
