"""Validate, serialize and submit one HTML form.

Usage::

    form = Form(markup, schema={
        "phone": {"rules": ["tel"], "messages": {"tel": "Формат +7XXXXXXXXXX"}},
    })
    body = await form.submit()
    if body is not None and body.success:
        ...

Options are merged ``FormConfig`` defaults → ``Form.set_default_params``
→ constructor keywords. The rule registry defaults to the shared
``default_registry``; pass ``registry=RuleRegistry()`` to isolate a form.
"""

import logging
from typing import Any, ClassVar

from formfather.config import FormConfig
from formfather.display import ErrorDisplay, MarkupErrorDisplay
from formfather.dom import HtmlField, HtmlForm
from formfather.errors import ConfigurationError, HttpClientNotInstalledError, SubmissionError
from formfather.response import ResponseBody
from formfather.serialize import encode_body, serialize_form
from formfather.validation.executor import maybe_await
from formfather.validation.orchestrator import FormValidator, first_in_document_order
from formfather.validation.registry import RuleRegistry, default_registry
from formfather.validation.rules import (
    EMPTY_MESSAGE,
    FORMAT_MESSAGE,
    is_email_valid,
    is_phone_valid,
    is_url_valid,
)
from formfather.validation.schema import ValidationSchema, builtin_schema, coerce_schema

logger = logging.getLogger("formfather.form")

CONSENT_MESSAGE = "Необходимо согласие"
RATING_MESSAGE = "Необходимо указать оценку"


def _get_httpx() -> Any:
    """Import httpx or raise a clear error."""
    try:
        import httpx

        return httpx
    except ImportError:
        msg = (
            "Submitting forms requires 'httpx'. "
            "Install it with: pip install formfather[http]"
        )
        raise HttpClientNotInstalledError(msg) from None


class Form:
    """One ``<form>``: its schema, its display and its submission.

    Attributes:
        default_schema: Library-wide schema shared by every form; a form's
            own schema overrides it key by key. Mutations are seen by the
            next ``validate()`` of any form.
    """

    default_schema: ClassVar[dict[str, Any]] = builtin_schema()
    _default_params: ClassVar[dict[str, Any]] = {}

    def __init__(
        self,
        form: HtmlForm | str,
        *,
        schema: dict[str, Any] | None = None,
        registry: RuleRegistry | None = None,
        display: ErrorDisplay | None = None,
        client: Any = None,
        **options: Any,
    ) -> None:
        """Wrap *form*, a parsed ``HtmlForm`` or raw markup.

        Args:
            form: The form handle, or HTML containing a ``<form>``.
            schema: This form's schema; see ``formfather.validation.schema``.
            registry: Rule registry; the shared ``default_registry`` if omitted.
            display: Error display; markup-based if omitted.
            client: An ``httpx.AsyncClient`` to submit with. A short-lived
                client is opened per submission if omitted.
            **options: ``FormConfig`` fields.

        Raises:
            ConfigurationError: If *form* is not a ``<form>``, has no submit
                button, or an option is unknown.
        """
        self.form = form if isinstance(form, HtmlForm) else HtmlForm.from_html(form)
        self._options = options
        self.config = FormConfig.from_options(type(self)._default_params, options)
        self.schema: ValidationSchema = coerce_schema(schema)
        self.registry = registry if registry is not None else default_registry
        self.display: ErrorDisplay = (
            display
            if display is not None
            else MarkupErrorDisplay(self.form, self.config.input_wrapper_selector)
        )
        self.client = client
        self.wait_response = False
        self.last_run: FormValidator | None = None

        self._check_arguments()
        self.inputs: list[HtmlField] = self.form.select(self.config.input_selector)
        self.consent: HtmlField | None = self.form.select_one(self.config.consent_selector)
        self.sync_consent()

    @classmethod
    def set_default_params(cls, **params: Any) -> None:
        """Update the defaults every later form starts from.

        Only the given keys change; earlier defaults are kept.

        Raises:
            ConfigurationError: If a key is not a ``FormConfig`` field.
        """
        FormConfig.from_options(params)
        cls._default_params = {**cls._default_params, **params}

    @property
    def options(self) -> dict[str, Any]:
        """The keyword options this form was constructed with."""
        return dict(self._options)

    def _check_arguments(self) -> None:
        if not self.form.is_form:
            msg = f"Expected a <form> element, got <{self.form.tag.name}>"
            raise ConfigurationError(msg)
        if self.form.submit_button is None:
            msg = "Form has no submit button (input or button with type=\"submit\")"
            raise ConfigurationError(msg)

    # -- validation --

    async def validate(self) -> bool:
        """Validate every governed field; True if the form may be submitted.

        Exceptions raised by rules propagate.
        """
        run = FormValidator(
            self.form,
            self.registry,
            self.display,
            schema=self.schema,
            default_schema=type(self).default_schema,
            scroll_to_first_error=self.config.scroll_to_first_errored_input,
            rule_attribute=self.config.rule_attribute,
        )
        self.last_run = run
        return await run.validate()

    async def check_inputs(self) -> bool:
        """Type-based check of the ``input_selector`` fields, without the registry.

        Selects and checkboxes are checked for presence; ``email``, ``tel``,
        ``url`` and ``not-numbers`` (``data-check-type`` or ``type``) use
        the permissive helpers and ``FormConfig.validate_phone``. A required
        radio group with nothing checked, or with more than one checked
        radio, fails the form.
        """
        custom = self.config.custom_type_error
        check_phone = self.config.validate_phone or (lambda field: is_phone_valid(field.value))
        failed: list[HtmlField] = []
        radio_groups: dict[str, list[HtmlField]] = {}

        async def fail(field: HtmlField, message: str) -> None:
            await maybe_await(self.display.show_error(field, message))
            failed.append(field)

        for field in self.inputs:
            input_type = field.get("data-check-type") or field.get("type") or ""

            if field.tag_name == "select":
                if field.required and field.options() and field.value == "":
                    await fail(field, EMPTY_MESSAGE)
            elif input_type == "checkbox":
                if field.required and not field.checked:
                    await fail(field, CONSENT_MESSAGE)
            elif getattr(custom, "name", None) != input_type or (
                field.tag_name == "textarea" and custom is None
            ):
                value = field.value
                if not value:
                    if field.required:
                        await fail(field, EMPTY_MESSAGE)
                elif input_type == "email" and not is_email_valid(value):
                    await fail(field, FORMAT_MESSAGE)
                elif input_type == "tel" and not check_phone(field):
                    await fail(field, FORMAT_MESSAGE)
                elif input_type == "url" and not is_url_valid(value):
                    await fail(field, FORMAT_MESSAGE)
                elif input_type == "not-numbers" and any(ch in "0123456789" for ch in value):
                    await fail(field, FORMAT_MESSAGE)
                elif input_type == "radio":
                    radio_groups.setdefault(field.name, []).append(field)

        groups_ok = True
        for group in radio_groups.values():
            checked = [radio for radio in group if radio.checked]
            if len(checked) > 1:
                groups_ok = False
            elif not checked and any(radio.required for radio in group):
                await maybe_await(self.display.show_form_error(RATING_MESSAGE))
                groups_ok = False

        if failed and self.config.scroll_to_first_errored_input:
            await maybe_await(self.display.scroll_to(first_in_document_order(self.form, failed)))
        return groups_ok and not failed

    # -- consent --

    @property
    def submit_enabled(self) -> bool:
        button = self.form.submit_button
        return button is not None and not button.has_attr("disabled")

    def sync_consent(self) -> None:
        """Enable the submit button only while the consent checkbox is checked."""
        if self.consent is None:
            return
        button = self.form.submit_button
        if self.consent.checked:
            if button.has_attr("disabled"):
                del button["disabled"]
        else:
            button["disabled"] = ""

    # -- submission --

    async def submit(self) -> ResponseBody | None:
        """Validate and, if valid, send the form.

        Returns:
            The parsed response, or ``None`` if nothing was sent: another
            submission is still in flight, validation failed, or the
            consent checkbox is unchecked.

        Raises:
            SubmissionError: If the response body is not a JSON object.
        """
        if self.wait_response:
            logger.debug("Submission already in flight; ignoring")
            return None
        self.wait_response = True
        try:
            if not await self.validate():
                return None
            if self.consent is not None and not self.consent.checked:
                return None
            await maybe_await(self.display.hide_form_error())
            await maybe_await(self.config.on_submit(self))
            response = await self._send()
        finally:
            self.wait_response = False

        body = self._decode(response)
        await maybe_await(self.config.on_response(body, self))
        if body.ok:
            await self._handle_ok(body)
        return body

    async def _send(self) -> Any:
        httpx = _get_httpx()
        form_data = serialize_form(self.form)
        if self.config.logging:
            for key, value in form_data.multi_items():
                logger.info("%s=%r", key, value)

        kwargs = encode_body(
            form_data, self.form.enctype, wrap_data=self.config.wrap_data
        ).as_request_kwargs()
        method, action = self.form.method, self.form.action
        logger.debug("Submitting %s %s (%s)", method, action, self.form.enctype)

        if self.client is not None:
            return await self.client.request(method, action, timeout=self.config.request_timeout, **kwargs)
        async with httpx.AsyncClient() as client:
            return await client.request(method, action, timeout=self.config.request_timeout, **kwargs)

    @staticmethod
    def _decode(response: Any) -> ResponseBody:
        try:
            data = response.json()
        except ValueError:
            raise SubmissionError(response.status_code, "Response body is not JSON") from None
        if not isinstance(data, dict):
            raise SubmissionError(response.status_code, "Response body is not a JSON object")
        return ResponseBody.from_json(data, status=response.status_code)

    async def _handle_ok(self, body: ResponseBody) -> None:
        if body.success:
            await maybe_await(self.config.on_response_success(body, self))
            return

        await maybe_await(self.config.on_response_unsuccess(body, self))
        if not body.error:
            return
        if body.error_msg:
            await maybe_await(self.display.show_form_error(body.error_msg))

        targets: list[HtmlField] = []
        for error in body.errors:
            matches = [f for f in self.form.named(error.name) if f.tag_name == "input"]
            if not matches:
                logger.warning(
                    "No field named %r to show error %r on", error.name, error.message
                )
                continue
            targets.append(matches[0])
            await maybe_await(self.display.show_error(matches[0], error.message))
        if targets and self.config.scroll_to_first_errored_input:
            await maybe_await(self.display.scroll_to(first_in_document_order(self.form, targets)))

    # -- reset --

    def clear_inputs(self) -> None:
        """Uncheck radios and empty every other ``input_selector`` field."""
        for field in self.inputs:
            if field.type == "radio":
                field.set_checked(False)
                continue
            field.set_value("")
            parent = field.tag.parent
            if parent is not None and "filled" in parent.get("class", []):
                parent["class"] = [c for c in parent["class"] if c != "filled"]

    def __repr__(self) -> str:
        return f"Form({self.form!r})"
