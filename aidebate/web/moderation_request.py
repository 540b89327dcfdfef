from pydantic import BaseModel, Field, field_validator

from aidebate.config.settings import SeverityName
from aidebate.moderation import Severity


class SensitiveWordRequest(BaseModel):
    """Request model for adding a banned term."""

    word: str = Field(..., max_length=100)
    severity: SeverityName = "MEDIUM"

    @field_validator("word")
    @classmethod
    def validate_word(cls, v: str) -> str:
        """Reject blank terms."""
        v = v.strip()
        if not v:
            raise ValueError("Banned word must not be empty")
        return v


class SensitiveWordResponse(BaseModel):
    word: str
    severity: SeverityName

    @classmethod
    def from_entry(cls, word: str, severity: Severity) -> "SensitiveWordResponse":
        return cls(word=word, severity=severity.name)
