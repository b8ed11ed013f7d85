"""Submission response bodies.

The server answers a submission with a JSON object::

    {
        "success": false,
        "error": true,
        "error-msg": "Проверьте данные",
        "errors": [{"name": "email", "error-msg": "Адрес уже занят"}],
        "redirect-url": "/thanks",
        "reload": false,
        "error-toast": "Сервис недоступен"
    }

Navigation, reloads and toasts are browser concerns; they are exposed
here as data for the ``on_response*`` hooks to act on.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class FieldError:
    """A server-side error for the field named *name*."""

    name: str
    message: str


@dataclass(frozen=True, slots=True)
class ResponseBody:
    """Parsed submission response."""

    status: int
    success: bool = False
    error: bool = False
    error_msg: str | None = None
    errors: tuple[FieldError, ...] = ()
    redirect_url: str | None = None
    reload: bool = False
    error_toast: str | None = None
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: Mapping[str, Any], status: int = 200) -> "ResponseBody":
        errors = tuple(
            FieldError(name=str(item.get("name", "")), message=str(item.get("error-msg", "")))
            for item in data.get("errors") or ()
            if isinstance(item, Mapping)
        )
        return cls(
            status=status,
            success=data.get("success") is True,
            error=data.get("error") is True,
            error_msg=data.get("error-msg") or None,
            errors=errors,
            redirect_url=data.get("redirect-url"),
            reload=data.get("reload") is True,
            error_toast=data.get("error-toast"),
            raw=dict(data),
        )

    @property
    def ok(self) -> bool:
        return self.status == 200
