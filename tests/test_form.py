"""Tests for formfather.form: construction, validation and the type-based check."""

from collections.abc import Iterator

import pytest

from formfather import Form
from formfather.config import FormConfig
from formfather.errors import ConfigurationError
from formfather.testing import RecordingDisplay
from formfather.validation import RuleOutcome, RuleRegistry


def _markup(inner: str) -> str:
    return f'<form action="https://example.test/send">{inner}<button type="submit">Go</button></form>'


@pytest.fixture(autouse=True)
def _restore_form_defaults() -> Iterator[None]:
    schema = dict(Form.default_schema)
    params = dict(Form._default_params)
    yield
    Form.default_schema.clear()
    Form.default_schema.update(schema)
    Form._default_params = params


class TestConstruction:
    def test_accepts_markup(self) -> None:
        form = Form(_markup('<input name="a">'))
        assert form.form.action == "https://example.test/send"

    def test_requires_form_element(self) -> None:
        from formfather.dom import HtmlForm

        html_form = HtmlForm.from_html(_markup(""))
        html_form.tag.name = "div"
        with pytest.raises(ConfigurationError, match="<form>"):
            Form(html_form)

    def test_requires_submit_button(self) -> None:
        with pytest.raises(ConfigurationError, match="submit"):
            Form('<form><input name="a"></form>')

    def test_unknown_option(self) -> None:
        with pytest.raises(ConfigurationError, match="bogus"):
            Form(_markup(""), bogus=True)

    def test_options_layering(self) -> None:
        Form.set_default_params(logging=True, input_selector=".field")
        form = Form(_markup(""), input_selector=".custom")
        assert form.config.logging is True
        assert form.config.input_selector == ".custom"
        assert form.options == {"input_selector": ".custom"}

    def test_set_default_params_merges(self) -> None:
        Form.set_default_params(logging=True)
        Form.set_default_params(scroll_to_first_errored_input=False)
        config = Form(_markup("")).config
        assert config.logging is True
        assert config.scroll_to_first_errored_input is False

    def test_set_default_params_validates(self) -> None:
        with pytest.raises(ConfigurationError):
            Form.set_default_params(nope=1)

    def test_config_defaults(self) -> None:
        config = FormConfig()
        assert config.scroll_to_first_errored_input is True
        assert config.input_selector == ".input"
        assert config.input_wrapper_selector == ".input-primary"


class TestValidate:
    async def test_default_schema_applies(self) -> None:
        display = RecordingDisplay()
        form = Form(_markup('<input type="email" name="mail" value="nope">'), display=display)
        assert await form.validate() is False
        assert display.messages() == {"mail": "Неверный формат"}

    async def test_custom_schema(self) -> None:
        display = RecordingDisplay()
        form = Form(
            _markup('<input name="nick" value="R2D2">'),
            schema={"nick": {"rules": ["not-numbers"], "messages": {"not-numbers": "Только буквы"}}},
            display=display,
        )
        assert await form.validate() is False
        assert display.messages() == {"nick": "Только буквы"}

    async def test_custom_entry_on_required_field(self) -> None:
        display = RecordingDisplay()
        form = Form(
            _markup('<input name="phone" value="12345" required>'),
            schema={"phone": {"rules": ["tel"], "messages": {"tel": "Формат +7"}}},
            display=display,
        )
        assert await form.validate() is False
        assert display.messages() == {"phone": "Формат +7"}

    async def test_default_schema_mutation_seen_by_existing_form(self) -> None:
        display = RecordingDisplay()
        form = Form(_markup('<input name="nick" value="R2D2">'), display=display)
        assert await form.validate() is True
        Form.default_schema["nick"] = {"rules": ["not-numbers"]}
        assert await form.validate() is False

    async def test_private_registry(self) -> None:
        registry = RuleRegistry()
        registry.register(
            "owner",
            lambda v: RuleOutcome.passed(stop_others=True),
            "msg",
        )
        display = RecordingDisplay()
        form = Form(
            _markup('<input name="x" value="R2D2" data-validate="owner, not-numbers">'),
            registry=registry,
            display=display,
        )
        assert await form.validate() is True

    async def test_markup_display_by_default(self) -> None:
        form = Form(
            _markup('<div class="input-primary"><input name="a" required></div>'),
        )
        assert await form.validate() is False
        assert 'data-error-message="Пустое значение"' in form.form.render()
        assert form.form.tag["data-scroll-target"] == "a"

    async def test_last_run_kept(self) -> None:
        form = Form(_markup('<input name="a" required>'), display=RecordingDisplay())
        await form.validate()
        assert [f.name for f in form.last_run.failed_fields()] == ["a"]

    async def test_scroll_option(self) -> None:
        display = RecordingDisplay()
        form = Form(
            _markup('<input name="a" required>'),
            display=display,
            scroll_to_first_errored_input=False,
        )
        await form.validate()
        assert display.scrolled_to is None


class TestCheckInputs:
    async def _check(self, inner: str, **options) -> tuple[bool, RecordingDisplay]:
        display = RecordingDisplay()
        form = Form(_markup(inner), display=display, **options)
        return await form.check_inputs(), display

    async def test_required_empty(self) -> None:
        ok, display = await self._check('<input class="input" name="a" required>')
        assert ok is False
        assert display.messages() == {"a": "Пустое значение"}

    async def test_required_checkbox(self) -> None:
        ok, display = await self._check('<input class="input" type="checkbox" name="c" required>')
        assert ok is False
        assert display.messages() == {"c": "Необходимо согласие"}

    async def test_required_select(self) -> None:
        ok, display = await self._check(
            '<select class="input" name="s" required><option value="">-</option></select>'
        )
        assert ok is False
        assert display.messages() == {"s": "Пустое значение"}

    async def test_permissive_phone(self) -> None:
        ok, _ = await self._check('<input class="input" type="tel" name="p" value="8 (999) 123-45-67">')
        assert ok is True

    async def test_custom_phone_check(self) -> None:
        ok, display = await self._check(
            '<input class="input" type="tel" name="p" value="8 (999) 123-45-67">',
            validate_phone=lambda field: field.value.startswith("+"),
        )
        assert ok is False
        assert display.messages() == {"p": "Неверный формат"}

    async def test_email_and_url(self) -> None:
        ok, display = await self._check(
            '<input class="input" type="email" name="e" value="bad">'
            '<input class="input" type="url" name="u" value="example.com">'
        )
        assert ok is False
        assert display.messages() == {"e": "Неверный формат"}

    async def test_not_numbers_check_type(self) -> None:
        ok, display = await self._check(
            '<input class="input" data-check-type="not-numbers" name="n" value="R2D2">'
        )
        assert ok is False
        assert display.messages() == {"n": "Неверный формат"}

    async def test_custom_type_skipped(self) -> None:
        class CustomType:
            name = "email"

        ok, _ = await self._check(
            '<input class="input" type="email" name="e" value="bad">',
            custom_type_error=CustomType(),
        )
        assert ok is True

    async def test_required_radio_group(self) -> None:
        ok, display = await self._check(
            '<input class="input" type="radio" name="r" value="1" required>'
            '<input class="input" type="radio" name="r" value="2">'
        )
        assert ok is False
        assert display.form_errors == ["Необходимо указать оценку"]

    async def test_fields_outside_input_selector_ignored(self) -> None:
        ok, _ = await self._check('<input name="a" required>')
        assert ok is True


class TestConsentAndReset:
    def test_consent_disables_submit(self) -> None:
        form = Form(_markup('<input type="checkbox" data-input-name="user-consent">'))
        assert form.submit_enabled is False
        form.consent.set_checked()
        form.sync_consent()
        assert form.submit_enabled is True

    def test_no_consent_checkbox(self) -> None:
        assert Form(_markup("")).submit_enabled is True

    def test_clear_inputs(self) -> None:
        form = Form(
            _markup(
                '<div class="filled"><input class="input" name="a" value="x"></div>'
                '<input class="input" type="radio" name="r" value="1" checked>'
                '<textarea class="input" name="t">text</textarea>'
            )
        )
        form.clear_inputs()
        assert form.form.named("a")[0].value == ""
        assert not form.form.named("r")[0].checked
        assert form.form.named("t")[0].value == ""
        assert "filled" not in form.form.named("a")[0].tag.parent.get("class", [])
