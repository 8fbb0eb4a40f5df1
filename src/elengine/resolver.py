"""Resolver protocol: how evaluation finds variables and functions.

The evaluator owns no names. Every evaluation call is given a resolver,
which maps a variable name to a value and a ``(prefix, name)`` pair to a
callable. Hosts implement the protocol however they like (a dict, a request
scope, a lazy database lookup); ``SimpleResolver`` covers the common case.
"""

from collections.abc import Mapping
from typing import Any, Callable, Protocol, runtime_checkable

from elengine.functions import FunctionRegistry


class _Undefined:
    """Marker for a variable name the resolver does not know.

    Distinct from None, which is a defined null value.
    """

    _instance: "_Undefined | None" = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNDEFINED"


UNDEFINED = _Undefined()


@runtime_checkable
class Resolver(Protocol):
    """Interface hosts implement to supply names to an evaluation.

    A resolver may raise on internal failure; that surfaces as a
    ``ResolverError`` (variables) or ``FunctionInvocationError`` (functions).
    Thread-safety of a shared resolver is the host's concern.
    """

    def resolve_variable(self, name: str) -> Any:
        """Return the variable's value, or ``UNDEFINED`` if it is not known."""
        ...

    def resolve_function(
        self, prefix: str | None, name: str
    ) -> Callable[..., Any] | None:
        """Return the callable for a function name, or None if not known."""
        ...


class SimpleResolver:
    """Resolver backed by a dict of variables and an optional registry.

    Usage:
        resolver = SimpleResolver({"user": {"name": "Ann"}})
        resolver.set("limit", 10)
    """

    def __init__(
        self,
        variables: Mapping[str, Any] | None = None,
        functions: FunctionRegistry | None = None,
    ):
        self._variables: dict[str, Any] = dict(variables or {})
        self.functions = functions

    def set(self, name: str, value: Any) -> None:
        """Define or replace a variable."""
        self._variables[name] = value

    def resolve_variable(self, name: str) -> Any:
        return self._variables.get(name, UNDEFINED)

    def resolve_function(
        self, prefix: str | None, name: str
    ) -> Callable[..., Any] | None:
        if self.functions is None:
            return None
        return self.functions.lookup(prefix, name)


def as_resolver(source: Resolver | Mapping[str, Any] | None) -> Resolver:
    """Accept a resolver, a plain mapping of variables, or None."""
    if source is None:
        return SimpleResolver()
    if isinstance(source, Mapping):
        return SimpleResolver(source)
    return source
