from __future__ import annotations

"""Error taxonomy for the training session engine."""


class TrainingError(Exception):
    """Base class for every error raised by the engine."""


class InvalidConfigError(TrainingError):
    """The session configuration cannot start a session."""


class InsufficientPoolError(TrainingError):
    """Fewer matching questions are available than were requested."""

    def __init__(self, requested: int, available: int) -> None:
        super().__init__(f"Requested {requested} questions but only {available} are available")
        self.requested = requested
        self.available = available


class DuplicateAnswerError(TrainingError):
    """A question already has a recorded outcome."""

    def __init__(self, question_id: str) -> None:
        super().__init__(f"Question {question_id!r} already has a recorded answer")
        self.question_id = question_id


class UnknownQuestionError(TrainingError):
    """The question id is not part of the planned sequence (or not presented)."""

    def __init__(self, question_id: str, reason: str = "not in the planned sequence") -> None:
        super().__init__(f"Question {question_id!r} is {reason}")
        self.question_id = question_id
        self.reason = reason
