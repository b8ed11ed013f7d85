"""Form configuration.

FormConfig is a frozen dataclass, immutable after creation.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from typing import Any

from formfather.errors import ConfigurationError


def _noop(*args: Any) -> None:
    return None


@dataclass(frozen=True, slots=True)
class FormConfig:
    """Form configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = FormConfig(scroll_to_first_errored_input=False, logging=True)
    """

    # Response hooks: each receives (body, form); on_submit receives (form,)
    on_submit: Callable[..., Any] = _noop
    on_response: Callable[..., Any] = _noop
    on_response_success: Callable[..., Any] = _noop
    on_response_unsuccess: Callable[..., Any] = _noop

    # Validation
    scroll_to_first_errored_input: bool = True
    rule_attribute: str = "data-validate"  # Comma-separated ad-hoc rule list

    # Legacy type-based check (Form.check_inputs)
    custom_type_error: Any = None  # Object with a ``name`` attr; fields of that type are skipped
    validate_phone: Callable[[Any], bool] | None = None  # Receives the field handle

    # Markup
    input_selector: str = ".input"
    input_wrapper_selector: str = ".input-primary"
    consent_selector: str = 'input[data-input-name="user-consent"]'

    # Submission
    wrap_data: Callable[[dict[str, Any]], dict[str, Any]] | None = None
    request_timeout: float = 30.0

    # Diagnostics: log serialized values before each submission
    logging: bool = False

    @classmethod
    def from_options(cls, *layers: Mapping[str, Any]) -> "FormConfig":
        """Build a config from option layers; later layers win.

        Raises:
            ConfigurationError: If any layer names an unknown option.
        """
        known = {f.name for f in fields(cls)}
        merged: dict[str, Any] = {}
        for layer in layers:
            unknown = set(layer) - known
            if unknown:
                names = ", ".join(sorted(unknown))
                msg = f"Unknown form option(s): {names}"
                raise ConfigurationError(msg)
            merged.update(layer)
        return cls(**merged)
