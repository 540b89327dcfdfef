"""Sensitive-word matching with a cached word list."""

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import IntEnum

from aidebate.debate_engine.database import DatabaseManager
from .exceptions import TopicRejectedError

logger = logging.getLogger(__name__)


class Severity(IntEnum):
    """Ordered so that max() picks the worst violation."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


@dataclass
class ValidationResult:
    valid: bool
    violated_words: list[str] = field(default_factory=list)
    max_severity: Severity | None = None

    @property
    def is_critical(self) -> bool:
        return self.max_severity is Severity.CRITICAL

    @property
    def is_high_severity(self) -> bool:
        return self.max_severity is not None and self.max_severity >= Severity.HIGH


class ContentModerator:
    """Validates free text against the active sensitive words.

    Matching is a case-insensitive substring test. The word list is read from
    the database at most once per ``cache_ttl`` seconds unless invalidated.
    """

    def __init__(
        self,
        db: DatabaseManager,
        cache_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.db = db
        self.cache_ttl = cache_ttl
        self._clock = clock
        self._words: list[tuple[str, Severity]] | None = None
        self._loaded_at = 0.0

    def _active_words(self) -> list[tuple[str, Severity]]:
        now = self._clock()
        if self._words is None or now - self._loaded_at >= self.cache_ttl:
            self._words = [
                (word, Severity[severity]) for word, severity in self.db.list_active_sensitive_words()
            ]
            self._loaded_at = now
            logger.debug(f"Loaded {len(self._words)} sensitive words")
        return self._words

    def invalidate_cache(self) -> None:
        self._words = None
        logger.info("Sensitive word cache invalidated")

    def add_word(self, word: str, severity: Severity) -> None:
        self.db.add_sensitive_word(word.strip(), severity.name)
        self.invalidate_cache()

    def remove_word(self, word: str) -> bool:
        """Deactivate ``word``; False when it was not on the active list."""
        removed = self.db.deactivate_sensitive_word(word.strip())
        self.invalidate_cache()
        return removed

    def seed(self, banned_words: Mapping[str, str]) -> None:
        """Activate configured words, overwriting the severity of existing entries."""
        for word, severity in banned_words.items():
            self.db.add_sensitive_word(word.strip(), Severity[severity].name)
        if banned_words:
            self.invalidate_cache()
            logger.info(f"Seeded {len(banned_words)} banned words from config")

    def list_words(self) -> list[tuple[str, Severity]]:
        return list(self._active_words())

    def validate(self, text: str | None) -> ValidationResult:
        if not text or not text.strip():
            return ValidationResult(valid=True)

        lowered = text.lower()
        violations = [(word, severity) for word, severity in self._active_words() if word.lower() in lowered]
        if not violations:
            return ValidationResult(valid=True)

        return ValidationResult(
            valid=False,
            violated_words=[word for word, _ in violations],
            max_severity=max(severity for _, severity in violations),
        )

    def ensure_acceptable(self, *texts: str | None) -> None:
        """Raise TopicRejectedError when any text has a HIGH or CRITICAL term."""
        for text in texts:
            result = self.validate(text)
            if result.is_high_severity:
                assert result.max_severity is not None
                logger.warning(f"Rejected content containing {result.violated_words}")
                raise TopicRejectedError(result.violated_words, result.max_severity.name)
            if not result.valid:
                logger.info(f"Accepted content with low-severity terms {result.violated_words}")
