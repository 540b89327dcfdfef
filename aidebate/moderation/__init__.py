"""Banned-term content moderation for topics and other user input."""

from .content_moderator import ContentModerator, Severity, ValidationResult
from .exceptions import TopicRejectedError

__all__ = ["ContentModerator", "Severity", "ValidationResult", "TopicRejectedError"]
