from pydantic import BaseModel, Field, field_validator

from aidebate.debate_engine.models import Topic


class TopicCreateRequest(BaseModel):
    """Request model for creating a debate topic."""

    title: str = Field(..., max_length=500)
    description: str = Field(default="", max_length=5000)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Reject blank titles."""
        v = v.strip()
        if not v:
            raise ValueError("Topic title must not be empty")
        return v


class TopicResponse(BaseModel):
    """Response model for a debate topic."""

    id: int
    title: str
    description: str
    created_at: str

    @classmethod
    def from_topic(cls, topic: Topic) -> "TopicResponse":
        assert topic.topic_id is not None
        return cls(
            id=topic.topic_id,
            title=topic.title,
            description=topic.description,
            created_at=topic.created_at.isoformat(),
        )
