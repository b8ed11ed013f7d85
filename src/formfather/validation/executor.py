"""Run a field's resolved rules, first failure wins."""

import inspect
from collections.abc import Mapping, Sequence
from typing import Any

from formfather.validation.outcome import EffectContext, FieldValidationResult
from formfather.validation.registry import RuleRegistry
from formfather.validation.schema import RuleInvocation


async def maybe_await(value: Any) -> Any:
    """Await *value* if it is awaitable; return it otherwise."""
    if inspect.isawaitable(value):
        return await value
    return value


def is_empty(field: Any) -> bool:
    """Unchecked for checkboxes and radios, blank after trimming otherwise."""
    if field.type in ("checkbox", "radio"):
        return not field.checked
    return len((field.value or "").strip()) == 0


class FieldValidator:
    """Runs resolved invocations against one field at a time.

    Rules run strictly in order and each one (and, on success, its effect)
    settles before the next starts. The chain stops at the first failure
    or at a passing outcome with ``stop_others``. Exceptions raised by a
    rule are not caught here.
    """

    __slots__ = ("display", "registry")

    def __init__(self, registry: RuleRegistry, display: Any) -> None:
        self.registry = registry
        self.display = display

    async def validate_field(
        self,
        field: Any,
        form: Any,
        invocations: Sequence[RuleInvocation],
        messages: Mapping[str, str] | None = None,
    ) -> FieldValidationResult:
        """Validate *field* and update its error display.

        Args:
            field: Field handle.
            form: Form handle passed through to rules.
            invocations: Output of ``resolve_rules``; every rule exists.
            messages: Per-rule message overrides from the schema entry.

        Returns:
            A ``FieldValidationResult``; falsy when a rule failed.
        """
        if is_empty(field) and not any(inv.rule == "required" for inv in invocations):
            await maybe_await(self.display.hide_error(field))
            return FieldValidationResult(field=field, passed=True)

        value = field.value or ""
        for invocation in invocations:
            definition = self.registry[invocation.rule]
            outcome = await definition.evaluate(value, field, form, invocation.params)

            if not outcome.valid:
                message = outcome.message
                if message is None and messages:
                    message = messages.get(invocation.rule)
                if message is None:
                    message = definition.default_message
                await maybe_await(self.display.show_error(field, message))
                return FieldValidationResult(
                    field=field,
                    passed=False,
                    failing_rule=invocation.rule,
                    message=message,
                )

            if outcome.effect is not None:
                context = EffectContext(value=value, field=field, form=form, params=invocation.params)
                await maybe_await(outcome.effect(context))
            if outcome.stop_others:
                break

        await maybe_await(self.display.hide_error(field))
        return FieldValidationResult(field=field, passed=True)
