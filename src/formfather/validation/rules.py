"""Built-in validation rules.

Each rule takes ``(value, field, form)``, or just ``value``, and
returns ``True`` when the value is acceptable. ``register_builtin_rules``
installs them into a registry with their default messages.

The permissive ``is_*_valid`` helpers at the bottom are separate,
general-purpose checks used by ``Form.check_inputs``. They are
deliberately not the same as the ``email``/``tel``/``url`` rules: the
``tel`` rule only accepts ``+7`` followed by ten digits, while
``is_phone_valid`` accepts any number with enough digits.
"""

import re
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from formfather.validation.registry import RuleRegistry

EMPTY_MESSAGE = "Пустое значение"
FORMAT_MESSAGE = "Неверный формат"


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


def required(value: str, field: Any = None, form: Any = None) -> bool:
    """Checkbox must be checked, a radio group must have a checked member,
    anything else must be non-blank.

    Without a field handle only the string test applies.
    """
    field_type = getattr(field, "type", None) if field is not None else None
    if field_type == "checkbox":
        return bool(field.checked)
    if field_type == "radio":
        group = form.radio_group(field.name) if form is not None else [field]
        return any(radio.checked for radio in group)
    return len(value.strip()) > 0


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------

_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_TEL_RE = re.compile(r"\+7[0-9]{10}")
_URL_RE = re.compile(r"^(https?://).+\..+")
_DIGIT_RE = re.compile(r"[0-9]")


def email(value: str) -> bool:
    """``local@domain.tld`` shape; no RFC 5322 compliance."""
    return _EMAIL_RE.fullmatch(value) is not None


def tel(value: str) -> bool:
    """Russian national format only: ``+7`` and exactly ten digits."""
    return _TEL_RE.fullmatch(value) is not None


def url(value: str) -> bool:
    """``http://`` or ``https://`` followed by a dotted host."""
    return _URL_RE.match(value) is not None


def not_numbers(value: str) -> bool:
    """No ASCII digits anywhere."""
    return _DIGIT_RE.search(value) is None


def register_builtin_rules(registry: "RuleRegistry") -> None:
    """Install the built-in rules into *registry*, replacing any existing ones."""
    registry.register("required", required, EMPTY_MESSAGE, override=True)
    registry.register("email", email, FORMAT_MESSAGE, override=True)
    registry.register("tel", tel, FORMAT_MESSAGE, override=True)
    registry.register("url", url, FORMAT_MESSAGE, override=True)
    registry.register("not-numbers", not_numbers, FORMAT_MESSAGE, override=True)


# ---------------------------------------------------------------------------
# General-purpose checks
# ---------------------------------------------------------------------------

_PERMISSIVE_EMAIL_RE = re.compile(
    r"^(([^<>()\[\].,;:\s@\"]+(\.[^<>()\[\].,;:\s@\"]+)*)|(\".+\"))"
    r"@(([^<>()\[\].,;:\s@\"]+\.)+[^<>()\[\].,;:\s@\"]{2,})$",
    re.IGNORECASE,
)
_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def is_email_valid(value: str) -> bool:
    """Looser address check: quoted local parts, multi-level domains."""
    return _PERMISSIVE_EMAIL_RE.fullmatch(value) is not None


def is_url_valid(value: str) -> bool:
    """True if *value* parses as a URL; the scheme is optional."""
    candidate = value if _SCHEME_RE.match(value) else f"http://{value}"
    try:
        parts = urlsplit(candidate)
        parts.port  # noqa: B018 raises ValueError on a malformed port
    except ValueError:
        return False
    return bool(parts.hostname) and not any(ch.isspace() for ch in parts.netloc)


def is_phone_valid(value: str) -> bool:
    """At least eleven digits, in any punctuation.

    Twelve are required when the second character is ``+``.
    """
    digits = [ch for ch in value if ch in "0123456789"]
    if len(digits) < 11:
        return False
    return not (len(digits) < 12 and value[1:2] == "+")
