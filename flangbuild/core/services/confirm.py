"""
Interactive confirmation — the single place the build driver asks.

Every "warn and ask" point in the pipeline goes through a Confirmer.
The decision itself is the pure ``should_proceed``; the terminal read
is an injectable prompt callable, so tests never need a TTY.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import click

logger = logging.getLogger(__name__)

Prompt = Callable[[str], bool]


class Aborted(Exception):
    """The user declined a confirmation.

    ``exit_code`` is 1 when a fallback tool was refused during detection
    and 0 when the final configuration prompt was declined.
    """

    def __init__(self, message: str = "Aborted by user.", exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


def should_proceed(assume_yes: bool, answer: bool) -> bool:
    """Decide whether to continue at a confirmation point."""
    return assume_yes or answer


def click_prompt(question: str) -> bool:
    """Ask on the terminal; anything but y/yes is a no, and so is a closed stdin."""
    try:
        answer = click.prompt(
            f"{question} [y/N]",
            default="",
            show_default=False,
            prompt_suffix=" ",
        )
    except (click.Abort, EOFError):
        click.echo()
        return False
    return answer.strip().lower() in ("y", "yes")


class Confirmer:
    """Ask-and-branch helper bound to the ``--yes`` setting."""

    def __init__(self, assume_yes: bool = False, prompt: Prompt | None = None):
        self.assume_yes = assume_yes
        self._prompt = prompt or click_prompt

    def ask(self, question: str) -> bool:
        """Return True to proceed. Never prompts when ``assume_yes`` is set."""
        if self.assume_yes:
            logger.debug("Auto-confirmed: %s", question)
            return True
        return should_proceed(self.assume_yes, self._prompt(question))

    def require(self, question: str, exit_code: int = 1) -> None:
        """Like ``ask``, but raise Aborted on a no."""
        if not self.ask(question):
            raise Aborted(exit_code=exit_code)
