"""Tests for sensitive-word moderation."""

from __future__ import annotations

import pytest

from aidebate.debate_engine.database import DatabaseManager
from aidebate.moderation import ContentModerator, Severity, TopicRejectedError


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def moderator(db: DatabaseManager, clock: FakeClock) -> ContentModerator:
    moderator = ContentModerator(db, cache_ttl=300.0, clock=clock)
    moderator.add_word("scam", Severity.LOW)
    moderator.add_word("violence", Severity.HIGH)
    moderator.add_word("terror", Severity.CRITICAL)
    return moderator


def test_clean_text_is_valid(moderator: ContentModerator) -> None:
    assert moderator.validate("Should schools teach coding?").valid is True
    assert moderator.validate("").valid is True
    assert moderator.validate(None).valid is True


def test_matching_is_case_insensitive_substring(moderator: ContentModerator) -> None:
    """Words match anywhere in the text regardless of case."""
    result = moderator.validate("Is VIOLENCE in games a SCAMmy argument?")

    assert result.valid is False
    assert sorted(result.violated_words) == ["scam", "violence"]
    assert result.max_severity is Severity.HIGH
    assert result.is_high_severity is True
    assert result.is_critical is False


def test_critical_severity_wins(moderator: ContentModerator) -> None:
    result = moderator.validate("terror and scams")

    assert result.max_severity is Severity.CRITICAL
    assert result.is_critical is True


def test_ensure_acceptable_rejects_high_severity(moderator: ContentModerator) -> None:
    with pytest.raises(TopicRejectedError) as excinfo:
        moderator.ensure_acceptable("Fine title", "A description about violence")

    assert excinfo.value.violated_words == ["violence"]
    assert excinfo.value.severity == "HIGH"


def test_ensure_acceptable_allows_low_severity(moderator: ContentModerator) -> None:
    moderator.ensure_acceptable("Is crypto a scam?", None)


def test_word_list_is_cached_until_ttl(db: DatabaseManager, moderator: ContentModerator, clock: FakeClock) -> None:
    """Direct database changes show up only after the cache expires."""
    assert moderator.validate("fraud").valid is True

    db.add_sensitive_word("fraud", "MEDIUM")
    clock.now += 299
    assert moderator.validate("fraud").valid is True

    clock.now += 1
    result = moderator.validate("fraud")
    assert result.valid is False
    assert result.max_severity is Severity.MEDIUM


def test_add_and_remove_invalidate_cache(moderator: ContentModerator) -> None:
    assert moderator.validate("propaganda").valid is True

    moderator.add_word("propaganda", Severity.MEDIUM)
    assert moderator.validate("propaganda").valid is False

    assert moderator.remove_word("propaganda") is True
    assert moderator.validate("propaganda").valid is True
    assert moderator.remove_word("unknown") is False


def test_seed_reactivates_and_overrides_severity(moderator: ContentModerator) -> None:
    assert moderator.remove_word("Violence") is True
    assert moderator.remove_word("violence") is False

    moderator.seed({"violence": "CRITICAL", "scam": "HIGH"})

    assert dict(moderator.list_words()) == {
        "scam": Severity.HIGH,
        "terror": Severity.CRITICAL,
        "violence": Severity.CRITICAL,
    }
    assert moderator.validate("a scam").is_high_severity is True
