"""Which rules run on a field, and in what order.

Three tiers are concatenated without deduplication:

1. ``required`` when the field carries the ``required`` attribute
2. the rules of the schema entry that matched the field
3. the field's own comma-separated ad-hoc list (``data-validate``)

A name may appear in more than one tier; execution order, not uniqueness,
is what matters. Names missing from the registry are dropped here, with
one warning per distinct name, so the executor only ever sees rules it
can look up.
"""

import logging
from collections.abc import Iterable
from typing import Any

from formfather.validation.registry import RuleRegistry
from formfather.validation.schema import RuleInvocation

logger = logging.getLogger("formfather.validation")

DEFAULT_RULE_ATTRIBUTE = "data-validate"

REQUIRED = RuleInvocation("required")


def parse_adhoc_rules(raw: str | None) -> list[RuleInvocation]:
    """Split ``"email, not-numbers,"`` into invocations; blanks are dropped."""
    if not raw:
        return []
    return [RuleInvocation(name) for part in raw.split(",") if (name := part.strip())]


def adhoc_rules(field: Any, attribute: str = DEFAULT_RULE_ATTRIBUTE) -> list[RuleInvocation]:
    return parse_adhoc_rules(field.get(attribute))


def resolve_rules(
    field: Any,
    schema_rules: Iterable[RuleInvocation],
    registry: RuleRegistry,
    *,
    attribute: str = DEFAULT_RULE_ATTRIBUTE,
) -> list[RuleInvocation]:
    """Build the ordered invocation list for *field*.

    Args:
        field: Field handle; ``required`` and ``get(attribute)`` are read.
        schema_rules: Invocations from the matching schema entry, or
            nothing for fields reached only through their ad-hoc list.
        registry: Where rule names are looked up.
        attribute: Name of the ad-hoc rule attribute.

    Returns:
        The invocations whose rule exists in *registry*, in tier order.
    """
    raw: list[RuleInvocation] = []
    if field.required:
        raw.append(REQUIRED)
    raw.extend(schema_rules)
    raw.extend(adhoc_rules(field, attribute))

    resolved: list[RuleInvocation] = []
    unknown: set[str] = set()
    for invocation in raw:
        if invocation.rule in registry:
            resolved.append(invocation)
        elif invocation.rule not in unknown:
            unknown.add(invocation.rule)
            logger.warning(
                "Unknown validation rule %r on field %r; skipping it",
                invocation.rule,
                field.name,
            )
    return resolved
