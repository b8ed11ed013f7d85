"""Form serialization and request body encoding.

``serialize_form`` walks a form's controls the way a browser builds a
submission, with a few conventions of its own:

- controls without a ``name`` or with ``data-no-serialize`` are skipped
- ``type="tel"`` values lose spaces, dashes and parentheses, and a
  leading ``8`` becomes ``+7``
- ``type="date"`` values are reformatted through ``data-date-format``
  (``dd``, ``mm`` and ``yyyy`` tokens)
- multi-selects and ``multiple="true"`` file inputs send ``name[0]``,
  ``name[1]``, ...
- empty values are not sent

``encode_body`` turns the result into httpx request arguments for the
form's ``enctype``.
"""

import json
import logging
import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any
from urllib.parse import quote, urlencode

from formfather.dom import HtmlForm

logger = logging.getLogger("formfather.form")

URLENCODED = "application/x-www-form-urlencoded"
MULTIPART = "multipart/form-data"
TEXT_PLAIN = "text/plain"
JSON = "application/json"

_TEL_JUNK_RE = re.compile(r"[\s()-]")
_URI_COMPONENT_SAFE = "!'()*-._~"


@dataclass(frozen=True, slots=True)
class UploadFile:
    """A file attached to an ``<input type="file">``.

    Content is held in memory as bytes.
    """

    filename: str
    content_type: str
    size: int
    _content: bytes

    @classmethod
    def from_bytes(cls, filename: str, content: bytes, content_type: str = "application/octet-stream") -> "UploadFile":
        return cls(filename=filename, content_type=content_type, size=len(content), _content=content)

    def read(self) -> bytes:
        return self._content

    def __repr__(self) -> str:
        return f"UploadFile({self.filename!r}, {self.content_type!r}, {self.size} bytes)"


class FormData(Mapping[str, str]):
    """Immutable, ordered serialized form data.

    ``__getitem__`` returns the first value for a key.
    ``get_list`` returns all values for a key.
    ``multi_items`` returns every ``(key, value)`` pair in submission order.
    ``files`` holds uploaded files as ``(key, UploadFile)`` pairs.
    """

    __slots__ = ("_files", "_pairs")

    def __init__(
        self,
        pairs: list[tuple[str, str]],
        files: list[tuple[str, UploadFile]] | None = None,
    ) -> None:
        object.__setattr__(self, "_pairs", pairs)
        object.__setattr__(self, "_files", files or [])

    @property
    def files(self) -> list[tuple[str, UploadFile]]:
        return list(self._files)

    def __getitem__(self, key: str) -> str:
        for name, value in self._pairs:
            if name == key:
                return value
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name for name, _ in self._pairs))

    def __len__(self) -> int:
        return len(dict.fromkeys(name for name, _ in self._pairs))

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {v!r}" for k, v in self._pairs)
        return f"FormData([{items}])"

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key* (checkboxes, multi-selects)."""
        return [value for name, value in self._pairs if name == key]

    def multi_items(self) -> list[tuple[str, str]]:
        return list(self._pairs)


def format_date(value: str, fmt: str) -> str:
    """Render an ISO ``YYYY-MM-DD`` *value* with ``dd``/``mm``/``yyyy`` tokens.

    Values that are not ISO dates are returned unchanged.
    """
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        return value
    return (
        fmt.replace("dd", f"{parsed.day:02d}", 1)
        .replace("mm", f"{parsed.month:02d}", 1)
        .replace("yyyy", str(parsed.year), 1)
    )


def normalize_phone(value: str) -> str:
    stripped = _TEL_JUNK_RE.sub("", value)
    return "+7" + stripped[1:] if stripped.startswith("8") else stripped


def serialize_form(form: HtmlForm) -> FormData:
    """Collect the name/value pairs a submission of *form* would send."""
    pairs: list[tuple[str, str]] = []
    files: list[tuple[str, UploadFile]] = []

    for control in form.fields():
        name = control.name
        if not name or control.has("data-no-serialize"):
            continue
        kind = control.type

        if kind == "file":
            if control.get("multiple") == "true":
                files.extend((f"{name}[{i}]", upload) for i, upload in enumerate(control.files))
            elif control.files:
                files.append((name, control.files[0]))
            continue

        if kind == "select-multiple":
            pairs.extend((f"{name}[{i}]", v) for i, v in enumerate(control.selected_values()))
            continue
        if kind == "select-one":
            if control.value:
                pairs.append((name, control.value))
            continue

        if kind in ("checkbox", "radio"):
            if not control.checked:
                continue
            value = control.value
        elif kind == "tel":
            value = normalize_phone(control.value)
        elif kind == "date":
            fmt = control.get("data-date-format")
            value = format_date(control.value, fmt) if fmt else control.value
        else:
            value = control.value

        if value:
            pairs.append((name, value))

    return FormData(pairs, files)


def serialize_to_json(form_data: FormData) -> dict[str, Any]:
    """Group values by key; a repeated key becomes a list."""
    result: dict[str, Any] = {}
    for key, value in form_data.multi_items():
        if key not in result:
            result[key] = value
        elif isinstance(result[key], list):
            result[key].append(value)
        else:
            result[key] = [result[key], value]
    return result


@dataclass(frozen=True, slots=True)
class EncodedBody:
    """Keyword arguments for ``httpx.AsyncClient.request``."""

    content: str | None = None
    files: list[tuple[str, tuple[Any, ...]]] | None = None
    headers: dict[str, str] = field(default_factory=dict)

    def as_request_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"headers": dict(self.headers)}
        if self.content is not None:
            kwargs["content"] = self.content
        if self.files is not None:
            kwargs["files"] = self.files
        return kwargs


def encode_body(
    form_data: FormData,
    enctype: str,
    *,
    wrap_data: Callable[[dict[str, Any]], dict[str, Any]] | None = None,
) -> EncodedBody:
    """Encode *form_data* for *enctype*.

    ``wrap_data`` only applies to JSON bodies, where it receives the
    last-value-wins dict of fields and returns the object to send.
    Multipart bodies carry no ``Content-Type`` header here: httpx adds one
    with the boundary it generates. Unknown enctypes fall back to
    URL-encoding with a warning.
    """
    pairs = form_data.multi_items()

    if enctype == MULTIPART:
        parts: list[tuple[str, tuple[Any, ...]]] = [(key, (None, value)) for key, value in pairs]
        parts.extend(
            (key, (upload.filename, upload.read(), upload.content_type))
            for key, upload in form_data.files
        )
        return EncodedBody(files=parts)

    if enctype == TEXT_PLAIN:
        lines = (
            f"{quote(key, safe=_URI_COMPONENT_SAFE)}={quote(value, safe=_URI_COMPONENT_SAFE)}"
            for key, value in pairs
        )
        return EncodedBody(content="\n".join(lines), headers={"Content-Type": TEXT_PLAIN})

    if enctype == JSON:
        data: dict[str, Any] = dict(pairs)
        if wrap_data is not None:
            data = wrap_data(data)
        return EncodedBody(content=json.dumps(data), headers={"Content-Type": JSON})

    if enctype != URLENCODED:
        logger.warning("Unknown enctype %r; sending %s", enctype, URLENCODED)
    return EncodedBody(content=urlencode(pairs), headers={"Content-Type": URLENCODED})
