"""Named validation rules with default messages.

A rule function has the signature::

    def rule(value: str, field, form, params) -> bool | RuleOutcome: ...

It may also be ``async``. Rules that do not need every argument may
declare fewer positional parameters; the registry inspects the signature
once, at registration, and passes only what the rule accepts::

    registry.register("even-length", lambda value: len(value) % 2 == 0, "Odd length")

Registration is expected to happen during setup, before any form
validates. The registry is not locked: registering while a validation run
is in flight is a usage error.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from typing import Any, TypeAlias

from formfather.validation.outcome import RuleOutcome

logger = logging.getLogger("formfather.validation")

RuleFunction: TypeAlias = Callable[..., bool | RuleOutcome | Awaitable[bool | RuleOutcome]]
Evaluator: TypeAlias = Callable[[str, Any, Any, Any], Awaitable[RuleOutcome]]

_RULE_ARGS = 4  # value, field, form, params


def _accepted_args(fn: Callable[..., Any]) -> int:
    """How many of the four rule arguments *fn* takes positionally."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return _RULE_ARGS
    count = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return _RULE_ARGS
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1
    return min(count, _RULE_ARGS)


def _make_evaluator(name: str, fn: RuleFunction) -> Evaluator:
    """Wrap *fn* so every call yields a ``RuleOutcome``.

    Booleans expand through ``RuleOutcome.from_bool``; awaitables are
    awaited. Anything else is a broken rule and raises ``TypeError``.
    """
    arity = _accepted_args(fn)

    async def evaluate(value: str, field: Any, form: Any, params: Any = None) -> RuleOutcome:
        result = fn(*(value, field, form, params)[:arity])
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, RuleOutcome):
            return result
        if isinstance(result, bool):
            return RuleOutcome.from_bool(result)
        msg = f"Rule {name!r} returned {type(result).__name__}; expected bool or RuleOutcome"
        raise TypeError(msg)

    return evaluate


@dataclass(frozen=True, slots=True)
class RuleDefinition:
    """A registered rule. Immutable; replace it with ``override=True``."""

    name: str
    fn: RuleFunction
    default_message: str
    evaluate: Evaluator


class RuleRegistry:
    """Mapping from rule name to ``RuleDefinition``.

    Names are case-sensitive. A second registration under an existing
    name is ignored with a warning unless ``override=True`` is passed.

    Usage::

        registry = RuleRegistry()

        @registry.rule("slug", "Only lowercase letters and dashes")
        def slug(value: str) -> bool:
            return re.fullmatch(r"[a-z-]+", value) is not None
    """

    __slots__ = ("_rules",)

    def __init__(self, *, builtins: bool = True) -> None:
        self._rules: dict[str, RuleDefinition] = {}
        if builtins:
            from formfather.validation.rules import register_builtin_rules

            register_builtin_rules(self)

    def register(
        self,
        name: str,
        fn: RuleFunction,
        default_message: str,
        *,
        override: bool = False,
    ) -> None:
        """Store *fn* under *name*.

        Raises:
            ValueError: If *name* is empty.
        """
        if not isinstance(name, str) or not name:
            msg = f"Rule name must be a non-empty string, got {name!r}"
            raise ValueError(msg)
        if name in self._rules and not override:
            logger.warning(
                "Rule %r already exists; pass override=True to replace it", name
            )
            return
        self._rules[name] = RuleDefinition(
            name=name,
            fn=fn,
            default_message=default_message,
            evaluate=_make_evaluator(name, fn),
        )

    def rule(
        self, name: str, default_message: str, *, override: bool = False
    ) -> Callable[[RuleFunction], RuleFunction]:
        """Decorator form of ``register``. Returns the function unchanged."""

        def decorator(fn: RuleFunction) -> RuleFunction:
            self.register(name, fn, default_message, override=override)
            return fn

        return decorator

    def lookup(self, name: str) -> RuleDefinition | None:
        """Return the rule registered as *name*, or ``None``."""
        return self._rules.get(name)

    def snapshot_all(self) -> dict[str, RuleDefinition]:
        """Return a copy of every registered rule, safe to mutate."""
        return dict(self._rules)

    def names(self) -> list[str]:
        return list(self._rules)

    def __getitem__(self, name: str) -> RuleDefinition:
        try:
            return self._rules[name]
        except KeyError:
            msg = f"No rule registered as {name!r}"
            raise KeyError(msg) from None

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleRegistry({', '.join(self._rules)})"


# Shared by every Form that is not handed its own registry.
default_registry = RuleRegistry()


def register(
    name: str,
    fn: RuleFunction,
    default_message: str,
    *,
    override: bool = False,
) -> None:
    """Register a rule on the shared ``default_registry``."""
    default_registry.register(name, fn, default_message, override=override)


def lookup(name: str) -> RuleDefinition | None:
    """Look up a rule on the shared ``default_registry``."""
    return default_registry.lookup(name)


def snapshot_all() -> dict[str, RuleDefinition]:
    """Copy every rule on the shared ``default_registry``."""
    return default_registry.snapshot_all()
