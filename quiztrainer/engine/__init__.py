from .errors import (
    TrainingError,
    InvalidConfigError,
    InsufficientPoolError,
    DuplicateAnswerError,
    UnknownQuestionError,
)
from .models import (
    QuestionType,
    QuestionTypeFilter,
    SubTheme,
    Theme,
    Scoring,
    ScoringWeights,
    SessionConfig,
    AnswerOption,
    Question,
    SessionAnswer,
    SessionResult,
)
from .pool import QuestionPool, InMemoryQuestionPool
from .planner import SelectionPlanner, allocate_quotas, plan
from .recorder import AnswerRecorder, evaluate
from .scoring import score, fold, session_stats, calculate_points, weighted_points, SessionStats, PointsBreakdown
from .assembler import assemble
from .timer import QuestionTimer
from .session import TrainingSession, SessionPhase, QuestionPhase

__all__ = [
    "TrainingError",
    "InvalidConfigError",
    "InsufficientPoolError",
    "DuplicateAnswerError",
    "UnknownQuestionError",
    "QuestionType",
    "QuestionTypeFilter",
    "SubTheme",
    "Theme",
    "Scoring",
    "ScoringWeights",
    "SessionConfig",
    "AnswerOption",
    "Question",
    "SessionAnswer",
    "SessionResult",
    "QuestionPool",
    "InMemoryQuestionPool",
    "SelectionPlanner",
    "allocate_quotas",
    "plan",
    "AnswerRecorder",
    "evaluate",
    "score",
    "fold",
    "session_stats",
    "calculate_points",
    "weighted_points",
    "SessionStats",
    "PointsBreakdown",
    "assemble",
    "QuestionTimer",
    "TrainingSession",
    "SessionPhase",
    "QuestionPhase",
]
