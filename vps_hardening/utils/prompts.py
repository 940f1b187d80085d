"""
Confirmation providers for the interactive hardener.

The hardener only ever asks ``confirm(question)``; where the answer comes
from is up to the provider.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

import click


class ConfirmationProvider(ABC):
    """Source of yes/no decisions."""

    @abstractmethod
    def confirm(self, question: str) -> bool:
        pass


class ConsoleConfirmation(ConfirmationProvider):
    """
    Asks on the terminal until the operator answers y, yes, n or no.

    There is no default answer, so empty or unknown input is asked again.
    End of input aborts the command.
    """

    def confirm(self, question: str) -> bool:
        return click.confirm(click.style(question, fg="blue"), default=None)


class ScriptedConfirmation(ConfirmationProvider):
    """Answers from a prepared list, recording every question asked."""

    def __init__(self, answers: Iterable[bool] = (), default: Optional[bool] = None):
        self.answers: List[bool] = list(answers)
        self.default = default
        self.questions: List[str] = []

    def confirm(self, question: str) -> bool:
        self.questions.append(question)
        if self.answers:
            return self.answers.pop(0)
        if self.default is None:
            raise LookupError(f"No scripted answer for: {question}")
        return self.default
