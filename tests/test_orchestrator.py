"""Tests for formfather.validation.orchestrator: whole-form runs."""

import logging

import pytest

from formfather.dom import HtmlForm
from formfather.testing import RecordingDisplay
from formfather.validation import FormValidator, RuleOutcome, RuleRegistry, RunState
from formfather.validation.schema import builtin_schema


def _validator(markup: str, schema=None, *, default_schema=None, registry=None, **kw):
    form = HtmlForm.from_html(f"<form>{markup}</form>")
    display = RecordingDisplay()
    validator = FormValidator(
        form,
        registry or RuleRegistry(),
        display,
        schema=schema,
        default_schema=builtin_schema() if default_schema is None else default_schema,
        **kw,
    )
    return validator, form, display


class TestEndToEnd:
    async def test_required_empty_field(self) -> None:
        validator, form, display = _validator('<input name="name" required>')
        assert await validator.validate() is False
        result = validator.results[0]
        assert result.failing_rule == "required"
        assert display.messages() == {"name": "Пустое значение"}

    async def test_only_required_rule_invoked(self) -> None:
        registry = RuleRegistry()
        calls: list[str] = []

        def spy(name: str):
            def rule(value: str) -> bool:
                calls.append(name)
                return True

            return rule

        for name in ("email", "not-numbers"):
            registry.register(name, spy(name), "msg", override=True)

        validator, _, _ = _validator(
            '<input name="name" required data-validate="not-numbers">', registry=registry
        )
        assert await validator.validate() is False
        assert calls == []

    async def test_email_schema_invalid(self) -> None:
        validator, form, display = _validator(
            '<input name="contact" value="not-an-email">',
            {"contact": {"rules": ["email"]}},
        )
        assert await validator.validate() is False
        assert display.messages() == {"contact": "Неверный формат"}

    async def test_email_schema_valid(self) -> None:
        validator, form, display = _validator(
            '<input name="contact" value="user@example.com">'
            '<input name="city" required>',
            {"contact": {"rules": ["email"]}},
        )
        assert await validator.validate() is False
        assert display.messages() == {"city": "Пустое значение"}

        form.named("city")[0].set_value("Москва")
        assert await validator.validate() is True
        assert display.messages() == {}

    async def test_radio_group_required(self) -> None:
        validator, form, display = _validator(
            '<input type="radio" name="rating" value="1">'
            '<input type="radio" name="rating" value="2">',
            {"rating": {"rules": ["required"]}},
        )
        assert await validator.validate() is False
        assert {r.failing_rule for r in validator.results} == {"required"}

        form.named("rating")[1].set_checked()
        assert await validator.validate() is True

    async def test_idempotent(self) -> None:
        validator, _, display = _validator(
            '<input name="a" required><input type="email" name="b" value="x">'
        )
        first = await validator.validate()
        first_messages = display.messages()
        second = await validator.validate()
        assert first == second is False
        assert display.messages() == first_messages == {
            "a": "Пустое значение",
            "b": "Неверный формат",
        }


class TestSchemaHandling:
    async def test_selector_match(self) -> None:
        validator, _, display = _validator(
            '<input class="phone" name="p1" value="123"><input class="phone" name="p2" value="+79991234567">',
            {"phones": {"selector": ".phone", "rules": ["tel"]}},
        )
        assert await validator.validate() is False
        assert display.messages() == {"p1": "Неверный формат"}

    async def test_field_validated_once_per_run(self) -> None:
        registry = RuleRegistry()
        calls: list[str] = []
        registry.register("count", lambda v: calls.append(v) or True, "msg")
        validator, _, _ = _validator(
            '<input class="x" name="a" value="1" data-validate="count">',
            {
                "first": {"selector": ".x", "rules": ["count"]},
                "second": {"selector": "[name=a]", "rules": ["count"]},
            },
            registry=registry,
        )
        assert await validator.validate() is True
        # first entry's rule plus the field's own ad-hoc rule; nothing from "second"
        assert calls == ["1", "1"]

    async def test_custom_schema_overrides_default_entry(self) -> None:
        validator, _, display = _validator(
            '<input type="email" name="mail" value="anything">',
            {"email": {"selector": 'input[type="email"]', "rules": []}},
        )
        assert await validator.validate() is True
        assert display.messages() == {}

    async def test_schema_messages(self) -> None:
        validator, _, display = _validator(
            '<input name="phone" value="123">',
            {"phone": {"rules": ["tel"], "messages": {"tel": "Формат +7XXXXXXXXXX"}}},
        )
        assert await validator.validate() is False
        assert display.messages() == {"phone": "Формат +7XXXXXXXXXX"}

    async def test_required_field_gets_custom_entry_rules(self) -> None:
        validator, _, display = _validator(
            '<input name="phone" value="12345" required>',
            {"phone": {"rules": ["tel"], "messages": {"tel": "Формат +7"}}},
        )
        assert await validator.validate() is False
        assert display.messages() == {"phone": "Формат +7"}

    async def test_required_field_without_entry_validated(self) -> None:
        validator, _, display = _validator('<input name="a" required>', default_schema={})
        assert await validator.validate() is False
        assert display.messages() == {"a": "Пустое значение"}

    async def test_default_schema_read_at_run_time(self) -> None:
        default = builtin_schema()
        validator, _, _ = _validator('<input name="nick" value="R2D2">', default_schema=default)
        assert await validator.validate() is True

        default["nick"] = {"rules": ["not-numbers"]}
        assert await validator.validate() is False

    async def test_unknown_schema_rule_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        validator, _, _ = _validator(
            '<input name="a" value="x">', {"a": {"rules": ["ghost", "not-numbers"]}}
        )
        with caplog.at_level(logging.WARNING, logger="formfather.validation"):
            assert await validator.validate() is True
        assert sum("ghost" in r.getMessage() for r in caplog.records) == 1


class TestAdhocFields:
    async def test_adhoc_only_field(self) -> None:
        validator, _, display = _validator('<input name="nick" value="R2D2" data-validate="not-numbers">')
        assert await validator.validate() is False
        assert display.messages() == {"nick": "Неверный формат"}

    async def test_adhoc_field_gets_no_schema_messages(self) -> None:
        validator, _, display = _validator(
            '<input name="other" value="R2D2" data-validate="not-numbers">',
            {"nick": {"rules": ["not-numbers"], "messages": {"not-numbers": "Только буквы"}}},
        )
        assert await validator.validate() is False
        assert display.messages() == {"other": "Неверный формат"}

    async def test_empty_optional_adhoc_field_passes(self) -> None:
        validator, _, _ = _validator('<input name="site" data-validate="url">')
        assert await validator.validate() is True


class TestAggregation:
    async def test_results_in_validation_order(self) -> None:
        validator, form, _ = _validator(
            '<input name="late" value="1" data-validate="not-numbers">'
            '<input name="early" value="1">',
            {"early": {"rules": ["not-numbers"]}},
            default_schema={},
        )
        assert await validator.validate() is False
        assert [f.name for f in validator.failed_fields()] == ["early", "late"]

    async def test_scroll_to_first_in_document_order(self) -> None:
        validator, form, display = _validator(
            '<input name="late" value="1" data-validate="not-numbers">'
            '<input name="early" value="1">',
            {"early": {"rules": ["not-numbers"]}},
            default_schema={},
        )
        await validator.validate()
        assert display.scrolled_to is form.named("late")[0]

    async def test_no_scroll_when_disabled(self) -> None:
        validator, _, display = _validator('<input name="a" required>', scroll_to_first_error=False)
        await validator.validate()
        assert display.scrolled_to is None

    async def test_no_scroll_when_valid(self) -> None:
        validator, _, display = _validator('<input name="a" value="x" required>')
        assert await validator.validate() is True
        assert display.scrolled_to is None

    async def test_state_machine_reaches_done(self) -> None:
        validator, _, _ = _validator('<input name="a">')
        assert validator.state is RunState.IDLE
        await validator.validate()
        assert validator.state is RunState.DONE

    async def test_rule_exception_propagates(self) -> None:
        registry = RuleRegistry()

        async def broken(value: str) -> RuleOutcome:
            raise LookupError("backend down")

        registry.register("remote", broken, "msg")
        validator, _, _ = _validator('<input name="a" value="x" data-validate="remote">', registry=registry)
        with pytest.raises(LookupError, match="backend down"):
            await validator.validate()
