from __future__ import annotations

"""CLI entry point for QuizTrainer."""

import sys

from . import __version__
from .app.cli import main


def cli() -> None:
    if "--version" in sys.argv[1:]:
        print(f"quiztrainer {__version__}")
        sys.exit(0)
    sys.exit(main(sys.argv[1:]))


if __name__ == "__main__":
    cli()
