"""Immutable per-invocation results.

A rule evaluates to one of four shapes: pass, pass with an effect (and
optionally stopping later rules), fail, or fail with a message. Rules may
return a plain ``bool`` as shorthand; the registry turns it into a
``RuleOutcome`` with ``RuleOutcome.from_bool`` before the executor sees it.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, TypeAlias


@dataclass(frozen=True, slots=True)
class EffectContext:
    """What an outcome's effect receives when it runs."""

    value: str
    field: Any
    form: Any
    params: Any = None


Effect: TypeAlias = Callable[[EffectContext], None | Awaitable[None]]


@dataclass(frozen=True, slots=True)
class RuleOutcome:
    """The result of running one rule against one field.

    ``message`` overrides the schema message and the rule's default
    message when the rule fails. ``effect`` runs (and is awaited) only when
    the rule passes. ``stop_others`` ends the field's rule chain even
    though this rule passed, letting one rule own the field.
    """

    valid: bool
    message: str | None = None
    effect: Effect | None = None
    stop_others: bool = False

    @classmethod
    def passed(cls, *, effect: Effect | None = None, stop_others: bool = False) -> "RuleOutcome":
        return cls(valid=True, effect=effect, stop_others=stop_others)

    @classmethod
    def failed(cls, message: str | None = None) -> "RuleOutcome":
        return cls(valid=False, message=message)

    @classmethod
    def from_bool(cls, flag: bool) -> "RuleOutcome":
        """Expand the ``bool`` shorthand: no message, no effect, no stop."""
        return _PASS if flag else _FAIL

    def __bool__(self) -> bool:
        return self.valid


_PASS = RuleOutcome(valid=True)
_FAIL = RuleOutcome(valid=False)


@dataclass(frozen=True, slots=True)
class FieldValidationResult:
    """The outcome of validating one field in one run.

    Falsy when the field failed::

        result = await validator.validate_field(field, form, rules)
        if not result:
            print(result.failing_rule, result.message)
    """

    field: Any
    passed: bool
    failing_rule: str | None = None
    message: str | None = None

    def __bool__(self) -> bool:
        return self.passed


class RunState(StrEnum):
    """Phases of one ``FormValidator.validate()`` run, in order."""

    IDLE = "idle"
    COLLECTING_SCHEMA_FIELDS = "collecting-schema-fields"
    COLLECTING_ADHOC_FIELDS = "collecting-adhoc-fields"
    AGGREGATING = "aggregating"
    DONE = "done"
