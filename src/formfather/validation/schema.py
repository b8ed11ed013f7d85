"""Declarative mappings from field groups to rules.

A schema maps a key to the fields it governs, the rules to run on them
and optional per-rule messages::

    schema = coerce_schema({
        "email": {"selector": "input[type=email]", "rules": ["email"]},
        "phone": {"rules": ["tel"], "messages": {"tel": "Use +7XXXXXXXXXX"}},
        "age": {"rules": [{"rule": "min", "params": 18}]},
    })

An entry without a selector governs the fields whose ``name`` equals the
key (``phone`` above matches ``<input name="phone">``).
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, TypeAlias


@dataclass(frozen=True, slots=True)
class RuleInvocation:
    """A request to apply the rule *rule* with optional *params*."""

    rule: str
    params: Any = None

    @classmethod
    def coerce(cls, obj: Any) -> "RuleInvocation":
        """Accept a rule name, ``{"rule": ..., "params": ...}``,
        ``(rule, params)`` or an existing invocation.

        Raises:
            TypeError: If *obj* has none of those shapes.
        """
        if isinstance(obj, cls):
            return obj
        if isinstance(obj, str):
            return cls(obj)
        if isinstance(obj, Mapping) and "rule" in obj:
            return cls(obj["rule"], obj.get("params"))
        if isinstance(obj, tuple) and len(obj) == 2:
            return cls(obj[0], obj[1])
        msg = f"Cannot interpret {obj!r} as a rule invocation"
        raise TypeError(msg)


@dataclass(frozen=True, slots=True)
class SchemaEntry:
    """Rules and messages for one field group."""

    selector: str | None = None
    rules: tuple[RuleInvocation, ...] = ()
    messages: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def coerce(cls, obj: "SchemaEntry | Mapping[str, Any]") -> "SchemaEntry":
        if isinstance(obj, cls):
            return obj
        return cls(
            selector=obj.get("selector"),
            rules=tuple(RuleInvocation.coerce(r) for r in obj.get("rules", ())),
            messages=MappingProxyType(dict(obj.get("messages") or {})),
        )


ValidationSchema: TypeAlias = dict[str, SchemaEntry]


def coerce_schema(obj: Mapping[str, Any] | None) -> ValidationSchema:
    """Normalize a schema written as plain dicts."""
    if not obj:
        return {}
    return {key: SchemaEntry.coerce(entry) for key, entry in obj.items()}


def merge_schemas(*schemas: Mapping[str, Any] | None) -> ValidationSchema:
    """Shallow merge: a later schema replaces earlier entries by key.

    Rule lists are not combined: an overriding entry replaces the whole
    entry it shadows.
    """
    merged: ValidationSchema = {}
    for schema in schemas:
        merged.update(coerce_schema(schema))
    return merged


def builtin_schema() -> dict[str, dict[str, Any]]:
    """The library-wide default schema, as a fresh dict.

    Required fields that no entry governs are validated in
    ``FormValidator``'s ad-hoc pass.
    """
    return {
        "email": {"selector": 'input[type="email"], [data-check-type="email"]', "rules": ["email"]},
        "tel": {"selector": 'input[type="tel"], [data-check-type="tel"]', "rules": ["tel"]},
        "url": {"selector": 'input[type="url"], [data-check-type="url"]', "rules": ["url"]},
        "not-numbers": {"selector": '[data-check-type="not-numbers"]', "rules": ["not-numbers"]},
    }
