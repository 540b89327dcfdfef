from pydantic import BaseModel

from aidebate.debate_engine.models import Argument, ModeratorMessage


class ArgumentResponse(BaseModel):
    """Response model for a persisted debate argument."""

    id: int
    round_number: int
    side: str
    content: str
    character_count: int
    submitted_at: str

    @classmethod
    def from_argument(cls, argument: Argument) -> "ArgumentResponse":
        assert argument.argument_id is not None
        return cls(
            id=argument.argument_id,
            round_number=argument.round_number,
            side=argument.side.value,
            content=argument.content,
            character_count=argument.character_count,
            submitted_at=argument.submitted_at.isoformat(),
        )


class MessageResponse(BaseModel):
    """Response model for moderator messages."""

    id: int
    message_type: str
    content: str
    round_number: int | None = None
    side: str | None = None
    argument_id: int | None = None
    timestamp: str

    @classmethod
    def from_message(cls, message: ModeratorMessage) -> "MessageResponse":
        assert message.message_id is not None
        return cls(
            id=message.message_id,
            message_type=message.message_type.value,
            content=message.content,
            round_number=message.round_number,
            side=message.side.value if message.side else None,
            argument_id=message.argument_id,
            timestamp=message.created_at.isoformat(),
        )
