"""Structural validation results shared by the message codecs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..exceptions import InvalidMessageError


@dataclass(frozen=True)
class Violation:
    """One broken structural rule of a message.

    Attributes:
        field: Name of the offending field
        exception: Error raised when this violation stops an encode
        fatal: False for modelling problems that only warrant a warning
    """

    field: str
    exception: InvalidMessageError
    fatal: bool = True

    @property
    def error(self) -> type[InvalidMessageError]:
        """Exception class of the violation."""
        return type(self.exception)

    @property
    def message(self) -> str:
        return str(self.exception)

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


def fatal_violations(violations: Iterable[Violation]) -> list[Violation]:
    """Return only the violations that must stop encoding."""
    return [violation for violation in violations if violation.fatal]


def raise_for_violations(violations: Iterable[Violation]) -> None:
    """Raise the exception of the first fatal violation, if any.

    Raises:
        InvalidMessageError: The subclass recorded on the first fatal violation
    """
    for violation in violations:
        if violation.fatal:
            raise violation.exception
