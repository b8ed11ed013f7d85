"""Test helpers for formfather forms and custom rules.

``RecordingDisplay`` stands in for a real error display and remembers
every call, so tests can assert on what the user would have seen::

    display = RecordingDisplay()
    form = Form(markup, display=display)
    assert not await form.validate()
    assert display.messages() == {"email": "Неверный формат"}
"""

from typing import Any


class RecordingDisplay:
    """An ``ErrorDisplay`` that records calls instead of rendering."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any, str | None]] = []
        self.shown: dict[int, tuple[Any, str]] = {}
        self.form_errors: list[str] = []
        self.scrolled_to: Any = None

    def show_error(self, field: Any, message: str) -> None:
        self.calls.append(("show", field, message))
        self.shown[id(field)] = (field, message)

    def hide_error(self, field: Any) -> None:
        self.calls.append(("hide", field, None))
        self.shown.pop(id(field), None)

    def show_form_error(self, message: str) -> None:
        self.calls.append(("form", None, message))
        self.form_errors.append(message)

    def hide_form_error(self) -> None:
        self.calls.append(("hide-form", None, None))
        self.form_errors.clear()

    def scroll_to(self, field: Any) -> None:
        self.calls.append(("scroll", field, None))
        self.scrolled_to = field

    def messages(self) -> dict[str, str]:
        """Currently shown messages keyed by field name."""
        return {field.name: message for field, message in self.shown.values()}

    def message_for(self, field: Any) -> str | None:
        entry = self.shown.get(id(field))
        return None if entry is None else entry[1]
