"""Exceptions raised by the debate engine."""


class DebateEngineError(Exception):
    """Base class for debate engine errors."""


class SessionNotFoundError(DebateEngineError):
    """No session exists with the requested identifier."""

    def __init__(self, session_id: int):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class TopicNotFoundError(DebateEngineError):
    """No topic exists with the requested identifier."""

    def __init__(self, topic_id: int):
        self.topic_id = topic_id
        super().__init__(f"Topic not found: {topic_id}")


class InvalidTransitionError(DebateEngineError):
    """A lifecycle operation was attempted from a state that does not allow it."""

    def __init__(self, operation: str, status: str):
        self.operation = operation
        self.status = status
        super().__init__(f"Cannot {operation} a session in status {status}")


class CheckpointError(DebateEngineError):
    """A checkpoint string could not be decoded."""


class SessionBusyError(DebateEngineError):
    """An orchestration loop is already running for the session."""

    def __init__(self, session_id: int):
        self.session_id = session_id
        super().__init__(f"Session {session_id} is already streaming")


class ArgumentMissingError(DebateEngineError):
    """A sub-step marked complete has no persisted argument."""


class ArgumentNotFoundError(DebateEngineError):
    """No argument with the requested identifier belongs to the session."""

    def __init__(self, session_id: int, argument_id: int):
        self.session_id = session_id
        self.argument_id = argument_id
        super().__init__(f"Argument {argument_id} not found in session {session_id}")
