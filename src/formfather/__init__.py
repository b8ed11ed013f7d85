"""Formfather: validate, serialize and submit HTML forms.

Rules live in a registry and are requested per field, from a schema or
straight from the markup::

    from formfather import Form, RuleOutcome, register

    register("no-spam", lambda value: "viagra" not in value.lower(), "Нет, спасибо")

    form = Form('''
        <form action="https://example.com/feedback" method="post">
          <div class="input-primary">
            <input class="input" name="email" type="email" required>
          </div>
          <textarea class="input" name="text" data-validate="no-spam"></textarea>
          <button type="submit">Send</button>
        </form>
    ''')

    if await form.validate():
        body = await form.submit()

Submission needs ``httpx`` (``pip install formfather[http]``).
"""

__version__ = "0.1.0"
__all__ = [
    "ConfigurationError",
    "Form",
    "FormConfig",
    "FormData",
    "FormFatherError",
    "HtmlField",
    "HtmlForm",
    "ResponseBody",
    "RuleOutcome",
    "RuleRegistry",
    "SubmissionError",
    "default_registry",
    "lookup",
    "register",
    "serialize_form",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import formfather`` fast while providing a clean top-level API.
    """
    if name == "Form":
        from formfather.form import Form

        return Form

    if name == "FormConfig":
        from formfather.config import FormConfig

        return FormConfig

    if name in ("HtmlField", "HtmlForm"):
        from formfather import dom as _dom

        return getattr(_dom, name)

    if name in ("FormData", "serialize_form"):
        from formfather import serialize as _serialize

        return getattr(_serialize, name)

    if name == "ResponseBody":
        from formfather.response import ResponseBody

        return ResponseBody

    if name in ("RuleOutcome", "RuleRegistry", "default_registry", "lookup", "register"):
        from formfather import validation as _validation

        return getattr(_validation, name)

    if name in ("ConfigurationError", "FormFatherError", "SubmissionError"):
        from formfather import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
