"""Headless form handles over BeautifulSoup markup.

``HtmlForm`` wraps a ``<form>`` tag and hands out one ``HtmlField`` per
form control. Handles are cached per tag, so selecting the same element
twice yields the same object; validation runs rely on that identity to
avoid validating a field twice.

State lives in the markup itself: ``set_value`` writes the ``value``
attribute, ``set_checked`` toggles ``checked``, and ``render()`` returns
the updated HTML.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING

import bs4

from formfather.errors import ConfigurationError

if TYPE_CHECKING:
    from formfather.serialize import UploadFile

FIELD_TAGS = ("input", "select", "textarea", "button")

_SUBMIT_SELECTOR = 'input[type="submit"], button[type="submit"]'


def _attr(tag: bs4.Tag, name: str) -> str | None:
    value = tag.get(name)
    if isinstance(value, list):  # multi-valued attributes such as class
        return " ".join(value)
    return value


class HtmlField:
    """One form control: ``<input>``, ``<select>``, ``<textarea>`` or ``<button>``."""

    __slots__ = ("files", "form", "tag")

    def __init__(self, tag: bs4.Tag, form: "HtmlForm") -> None:
        self.tag = tag
        self.form = form
        self.files: list[UploadFile] = []

    # -- attributes --

    @property
    def tag_name(self) -> str:
        return self.tag.name

    @property
    def name(self) -> str:
        return _attr(self.tag, "name") or ""

    @property
    def type(self) -> str:
        """Control type as a browser reports it (``select-one``, ``textarea``, ...)."""
        if self.tag.name == "select":
            return "select-multiple" if self.tag.has_attr("multiple") else "select-one"
        if self.tag.name == "textarea":
            return "textarea"
        default = "submit" if self.tag.name == "button" else "text"
        return (_attr(self.tag, "type") or default).lower()

    @property
    def required(self) -> bool:
        return self.tag.has_attr("required")

    @property
    def checked(self) -> bool:
        return self.tag.has_attr("checked")

    def get(self, name: str, default: str | None = None) -> str | None:
        value = _attr(self.tag, name)
        return default if value is None else value

    def has(self, name: str) -> bool:
        return self.tag.has_attr(name)

    # -- value --

    @property
    def value(self) -> str:
        if self.tag.name == "textarea":
            return self.tag.get_text()
        if self.tag.name == "select":
            selected = self.selected_values()
            return selected[0] if selected else ""
        value = _attr(self.tag, "value")
        if value is None:
            return "on" if self.type in ("checkbox", "radio") else ""
        return value

    def options(self) -> list[bs4.Tag]:
        return self.tag.find_all("option")

    def selected_values(self) -> list[str]:
        """Values of the selected options; a single select falls back to its first option."""
        options = self.options()
        chosen = [o for o in options if o.has_attr("selected")]
        if not chosen and options and self.type == "select-one":
            chosen = options[:1]
        return [_option_value(o) for o in chosen]

    def set_value(self, value: str) -> None:
        if self.tag.name == "textarea":
            self.tag.string = value
        elif self.tag.name == "select":
            self.select_options([value] if value else [])
        else:
            self.tag["value"] = value

    def select_options(self, values: Iterable[str]) -> None:
        wanted = set(values)
        for option in self.options():
            if _option_value(option) in wanted:
                option["selected"] = ""
            elif option.has_attr("selected"):
                del option["selected"]

    def set_checked(self, checked: bool = True) -> None:
        """Check or uncheck; checking a radio unchecks the rest of its group."""
        if checked and self.type == "radio":
            for radio in self.form.radio_group(self.name):
                if radio is not self:
                    radio.set_checked(False)
        if checked:
            self.tag["checked"] = ""
        elif self.tag.has_attr("checked"):
            del self.tag["checked"]

    def attach_files(self, *files: "UploadFile") -> None:
        """Stand in for a user picking files in an ``<input type="file">``."""
        self.files = list(files)

    def __repr__(self) -> str:
        return f"HtmlField({self.tag.name}, name={self.name!r}, type={self.type!r})"


def _option_value(option: bs4.Tag) -> str:
    value = _attr(option, "value")
    return option.get_text().strip() if value is None else value


class HtmlForm:
    """A ``<form>`` element and its controls.

    Usage::

        form = HtmlForm.from_html(markup)
        form.named("email")[0].set_value("user@example.com")
        print(form.render())
    """

    __slots__ = ("_handles", "tag")

    def __init__(self, tag: bs4.Tag) -> None:
        self.tag = tag
        self._handles: dict[int, HtmlField] = {}

    @classmethod
    def from_html(cls, markup: str) -> "HtmlForm":
        """Parse *markup* and wrap its first ``<form>``.

        Raises:
            ConfigurationError: If the markup has no ``<form>`` element.
        """
        soup = bs4.BeautifulSoup(markup, "html.parser")
        tag = soup.find("form")
        if tag is None:
            msg = "Markup contains no <form> element"
            raise ConfigurationError(msg)
        return cls(tag)

    @property
    def is_form(self) -> bool:
        return self.tag.name == "form"

    @property
    def action(self) -> str:
        return _attr(self.tag, "action") or ""

    @property
    def method(self) -> str:
        return (_attr(self.tag, "method") or "POST").upper()

    @property
    def enctype(self) -> str:
        return _attr(self.tag, "enctype") or "application/x-www-form-urlencoded"

    @property
    def submit_button(self) -> bs4.Tag | None:
        return self.tag.select_one(_SUBMIT_SELECTOR)

    def field(self, tag: bs4.Tag) -> HtmlField:
        """Return the cached handle for *tag*."""
        handle = self._handles.get(id(tag))
        if handle is None:
            handle = self._handles[id(tag)] = HtmlField(tag, self)
        return handle

    def fields(self) -> list[HtmlField]:
        """Every control, in document order."""
        return [self.field(tag) for tag in self.tag.find_all(FIELD_TAGS)]

    def select(self, selector: str) -> list[HtmlField]:
        """Controls matching the CSS *selector*, in document order."""
        return [self.field(tag) for tag in self.tag.select(selector) if tag.name in FIELD_TAGS]

    def select_one(self, selector: str) -> HtmlField | None:
        found = self.select(selector)
        return found[0] if found else None

    def named(self, name: str) -> list[HtmlField]:
        return [self.field(tag) for tag in self.tag.find_all(FIELD_TAGS, attrs={"name": name})]

    def radio_group(self, name: str) -> list[HtmlField]:
        return [f for f in self.named(name) if f.type == "radio"]

    def render(self) -> str:
        return str(self.tag)

    def __repr__(self) -> str:
        return f"HtmlForm(action={self.action!r}, method={self.method!r})"
