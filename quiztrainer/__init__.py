"""QuizTrainer package initialization.

Themed multiple-choice training sessions: plan a question sequence, run it
with an optional per-question timer, record answers and score the result.
The session engine lives in ``quiztrainer.engine``.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
