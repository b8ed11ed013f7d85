"""Formfather exception hierarchy.

Shared across the validation engine, the form handle layer and the
submission path so every module raises and catches the same types.
"""

from dataclasses import dataclass


class FormFatherError(Exception):
    """Base for all formfather-specific errors."""


class ConfigurationError(FormFatherError):
    """Raised when a form or its options are invalid.

    Typically raised while constructing a ``Form``: the element is not a
    ``<form>``, it has no submit button, or an unknown option was passed.
    """


class HttpClientNotInstalledError(FormFatherError):
    """Raised when httpx is not installed."""


@dataclass(frozen=True, slots=True)
class SubmissionError(FormFatherError):
    """The server answered a submission with something we cannot read.

    Raised when the response body is not JSON. Carries the HTTP status so
    callers can still branch on it.
    """

    status: int
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)
