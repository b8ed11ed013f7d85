"""Registered rules, schemas, ordered async execution.

Usage::

    from formfather.validation import RuleOutcome, register

    async def username_free(value, field, form):
        taken = await lookup_username(value)
        return RuleOutcome.failed(f"{value} is taken") if taken else True

    register("username-free", username_free, "Username is taken")

Then request it from a schema or directly in markup::

    <input name="username" required data-validate="not-numbers, username-free">
"""

from formfather.validation.executor import FieldValidator
from formfather.validation.orchestrator import FormValidator
from formfather.validation.outcome import (
    EffectContext,
    FieldValidationResult,
    RuleOutcome,
    RunState,
)
from formfather.validation.registry import (
    RuleDefinition,
    RuleRegistry,
    default_registry,
    lookup,
    register,
    snapshot_all,
)
from formfather.validation.resolver import parse_adhoc_rules, resolve_rules
from formfather.validation.schema import (
    RuleInvocation,
    SchemaEntry,
    ValidationSchema,
    coerce_schema,
    merge_schemas,
)

__all__ = [
    "EffectContext",
    "FieldValidationResult",
    "FieldValidator",
    "FormValidator",
    "RuleDefinition",
    "RuleInvocation",
    "RuleOutcome",
    "RuleRegistry",
    "RunState",
    "SchemaEntry",
    "ValidationSchema",
    "coerce_schema",
    "default_registry",
    "lookup",
    "merge_schemas",
    "parse_adhoc_rules",
    "register",
    "resolve_rules",
    "snapshot_all",
]
