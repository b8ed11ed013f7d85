"""Error display collaborators.

The validation engine only talks to an ``ErrorDisplay``. Methods may be
plain or ``async``; callers await whatever comes back.

``MarkupErrorDisplay`` writes errors into the form's own markup:
the closest ancestor matching the wrapper selector gets the
``input__wrapper--error`` class and a ``data-error-message`` attribute.
"""

from typing import Any, Protocol

import bs4

from formfather.dom import HtmlField, HtmlForm

ERROR_CLASS = "input__wrapper--error"
ERROR_ATTR = "data-error-message"
FORM_ERROR_WRAPPER = "error-block-under-input__wrapper"
FORM_ERROR_TEXT = "error-block-under-input__main-text"
SCROLL_ATTR = "data-scroll-target"

_FORM_ERROR_MARKUP = (
    f'<div class="{FORM_ERROR_WRAPPER}">'
    '<div class="error-block-under-input error-block-under-input--warning">'
    '<p class="error-block-under-input__text">'
    f'<span class="{FORM_ERROR_TEXT}"></span>'
    '<span class="error-block-under-input__secondary-text"></span>'
    "</p></div></div>"
)


class ErrorDisplay(Protocol):
    """What validation and submission need from the UI."""

    def show_error(self, field: Any, message: str) -> Any: ...

    def hide_error(self, field: Any) -> Any: ...

    def show_form_error(self, message: str) -> Any: ...

    def hide_form_error(self) -> Any: ...

    def scroll_to(self, field: Any) -> Any: ...


class MarkupErrorDisplay:
    """Render field and form errors as classes and attributes on the markup."""

    def __init__(self, form: HtmlForm, wrapper_selector: str = ".input-primary") -> None:
        self.form = form
        self.wrapper_selector = wrapper_selector

    def wrapper_for(self, field: HtmlField) -> bs4.Tag | None:
        """Closest ancestor matching the wrapper selector, else the parent."""
        for parent in field.tag.parents:
            if parent is self.form.tag.parent:
                break
            if parent.css.match(self.wrapper_selector):
                return parent
        return field.tag.parent

    def show_error(self, field: HtmlField, message: str) -> None:
        wrapper = self.wrapper_for(field)
        if wrapper is None:
            return
        classes = wrapper.get("class", [])
        if ERROR_CLASS not in classes:
            wrapper["class"] = [*classes, ERROR_CLASS]
        wrapper[ERROR_ATTR] = message

    def hide_error(self, field: HtmlField) -> None:
        wrapper = self.wrapper_for(field)
        if wrapper is None:
            return
        classes = [c for c in wrapper.get("class", []) if c != ERROR_CLASS]
        if classes:
            wrapper["class"] = classes
        elif wrapper.has_attr("class"):
            del wrapper["class"]
        if wrapper.has_attr(ERROR_ATTR):
            del wrapper[ERROR_ATTR]

    def error_for(self, field: HtmlField) -> str | None:
        """The message currently shown for *field*, if any."""
        wrapper = self.wrapper_for(field)
        return None if wrapper is None else wrapper.get(ERROR_ATTR)

    def show_form_error(self, message: str) -> None:
        """Show *message* under the last ``.input__wrapper`` (or at the end of the form)."""
        block = self.form.tag.select_one(f".{FORM_ERROR_WRAPPER}")
        if block is None:
            block = bs4.BeautifulSoup(_FORM_ERROR_MARKUP, "html.parser").div.extract()
            wrappers = self.form.tag.select(".input__wrapper")
            if wrappers:
                wrappers[-1].insert_after(block)
            else:
                self.form.tag.append(block)
        block.select_one(f".{FORM_ERROR_TEXT}").string = message

    def hide_form_error(self) -> None:
        block = self.form.tag.select_one(f".{FORM_ERROR_WRAPPER}")
        if block is not None:
            block.decompose()

    def form_error(self) -> str | None:
        text = self.form.tag.select_one(f".{FORM_ERROR_TEXT}")
        return None if text is None else text.get_text()

    def scroll_to(self, field: HtmlField) -> None:
        """Mark *field* as the scroll target; actual scrolling is up to the host."""
        self.form.tag[SCROLL_ATTR] = field.name
