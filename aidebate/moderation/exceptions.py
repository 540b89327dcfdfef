"""Moderation-specific exceptions."""


class TopicRejectedError(Exception):
    """Raised when submitted text contains banned terms of high severity."""

    def __init__(self, violated_words: list[str], severity: str):
        self.violated_words = violated_words
        self.severity = severity
        super().__init__(
            f"Content rejected ({severity}): contains {', '.join(violated_words)}"
        )
