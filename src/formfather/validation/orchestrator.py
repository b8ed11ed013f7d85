"""Drive the field validator across a whole form.

One ``validate()`` call is one run:

``idle → collecting-schema-fields → collecting-adhoc-fields → aggregating → done``

Schema entries are visited first, in merged-schema order; each field is
validated at most once per run even if several entries match it. Fields
that carry an ad-hoc rule list or the ``required`` attribute but matched
no entry are validated next, with ``required`` and their ad-hoc rules only.
Fields settle one at a time.
"""

import logging
from collections.abc import Mapping
from typing import Any

from formfather.validation.executor import FieldValidator, maybe_await
from formfather.validation.outcome import FieldValidationResult, RunState
from formfather.validation.registry import RuleRegistry
from formfather.validation.resolver import DEFAULT_RULE_ATTRIBUTE, resolve_rules
from formfather.validation.schema import SchemaEntry, merge_schemas

logger = logging.getLogger("formfather.validation")


def first_in_document_order(form: Any, fields: list[Any]) -> Any:
    """Return whichever of *fields* comes first in *form*'s markup.

    Independent of the order the fields were validated in.
    """
    order = {id(field): index for index, field in enumerate(form.fields())}
    return min(fields, key=lambda field: order.get(id(field), len(order)))


class FormValidator:
    """Validates every governed field of one form.

    Usage::

        validator = FormValidator(form, registry, display, schema={
            "email": {"selector": "input[type=email]", "rules": ["email"]},
        })
        if await validator.validate():
            ...

    ``default_schema`` is read when the run starts, so changes made to it
    between runs are picked up.
    """

    def __init__(
        self,
        form: Any,
        registry: RuleRegistry,
        display: Any,
        *,
        schema: Mapping[str, Any] | None = None,
        default_schema: Mapping[str, Any] | None = None,
        scroll_to_first_error: bool = True,
        rule_attribute: str = DEFAULT_RULE_ATTRIBUTE,
    ) -> None:
        self.form = form
        self.registry = registry
        self.display = display
        self.schema = schema
        self.default_schema = default_schema
        self.scroll_to_first_error = scroll_to_first_error
        self.rule_attribute = rule_attribute
        self.state = RunState.IDLE
        self.results: list[FieldValidationResult] = []
        self._field_validator = FieldValidator(registry, display)

    async def validate(self) -> bool:
        """Run every rule on every governed field.

        Returns:
            True if no field failed.

        Raises:
            Exception: Whatever a rule or effect raised; the run stops there.
        """
        merged = merge_schemas(self.default_schema, self.schema)
        processed: set[int] = set()
        results: list[FieldValidationResult] = []
        self.results = results

        self._enter(RunState.COLLECTING_SCHEMA_FIELDS)
        for key, entry in merged.items():
            for field in self._fields_for(key, entry):
                if id(field) in processed:
                    continue
                processed.add(id(field))
                invocations = resolve_rules(
                    field, entry.rules, self.registry, attribute=self.rule_attribute
                )
                results.append(
                    await self._field_validator.validate_field(
                        field, self.form, invocations, entry.messages
                    )
                )

        self._enter(RunState.COLLECTING_ADHOC_FIELDS)
        for field in self.form.select(f"[{self.rule_attribute}], [required]"):
            if id(field) in processed:
                continue
            processed.add(id(field))
            invocations = resolve_rules(field, (), self.registry, attribute=self.rule_attribute)
            results.append(await self._field_validator.validate_field(field, self.form, invocations))

        self._enter(RunState.AGGREGATING)
        failed = [result.field for result in results if not result.passed]
        if failed and self.scroll_to_first_error:
            await maybe_await(self.display.scroll_to(first_in_document_order(self.form, failed)))

        self._enter(RunState.DONE)
        return not failed

    def failed_fields(self) -> list[Any]:
        """Fields that failed in the last run, in the order they were validated."""
        return [result.field for result in self.results if not result.passed]

    def _fields_for(self, key: str, entry: SchemaEntry) -> list[Any]:
        if entry.selector:
            return self.form.select(entry.selector)
        return self.form.named(key)

    def _enter(self, state: RunState) -> None:
        self.state = state
        logger.debug("validation run: %s", state)
