"""Function registry for the expression language.

Functions are callable from expressions (e.g., ``fn:length(items) > 0``).
Each function is registered under an optional namespace prefix with
metadata for documentation. Registries are ordinary objects: a host builds
one, fills it, and hands it to a resolver. Nothing is registered globally.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from elengine.errors import qualified_name


class FunctionCategory(Enum):
    """Categories for organizing functions in documentation."""

    STRING = "string"
    COLLECTION = "collection"
    MARKUP = "markup"
    OTHER = "other"


@dataclass
class FunctionParameter:
    """Definition of a function parameter.

    Attributes:
        name: Parameter name
        type: Expected type ("string", "number", "any", "array", etc.)
        description: Human-readable description
    """

    name: str
    type: str
    description: str = ""


@dataclass
class FunctionDefinition:
    """Complete definition of an expression function.

    Attributes:
        name: Function name as used in expressions
        implementation: The Python callable invoked with evaluated arguments
        prefix: Namespace prefix (``fn`` in ``fn:trim``), None for bare names
        description: Human-readable description
        category: Category for documentation organization
        parameters: List of parameter definitions
        return_type: Type of the return value
        examples: Example expressions using this function
    """

    name: str
    implementation: Callable[..., Any]
    prefix: str | None = None
    description: str = ""
    category: FunctionCategory = FunctionCategory.OTHER
    parameters: list[FunctionParameter] = field(default_factory=list)
    return_type: str = "any"
    examples: list[str] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return qualified_name(self.prefix, self.name)

    def to_dict(self) -> dict[str, Any]:
        """Export for documentation output."""
        return {
            "name": self.qualified_name,
            "description": self.description,
            "category": self.category.value,
            "parameters": [
                {
                    "name": p.name,
                    "type": p.type,
                    "description": p.description,
                }
                for p in self.parameters
            ],
            "returnType": self.return_type,
            "examples": self.examples,
        }


class FunctionRegistry:
    """Registry of expression functions keyed by ``(prefix, name)``.

    Example:
        registry = FunctionRegistry()
        registry.register(FunctionDefinition(
            name="trim",
            prefix="fn",
            implementation=lambda s: s.strip(),
        ))

        registry.lookup("fn", "trim")("  x ")  # Returns "x"
    """

    def __init__(self) -> None:
        self._functions: dict[tuple[str | None, str], FunctionDefinition] = {}

    def register(self, func_def: FunctionDefinition) -> None:
        """Register a function definition, replacing any previous one."""
        self._functions[(func_def.prefix, func_def.name)] = func_def

    def register_callable(
        self,
        name: str,
        implementation: Callable[..., Any],
        prefix: str | None = None,
        description: str = "",
    ) -> None:
        """Register a plain callable without further metadata."""
        self.register(
            FunctionDefinition(
                name=name,
                implementation=implementation,
                prefix=prefix,
                description=description,
            )
        )

    def function(self, name: str, prefix: str | None = None, **metadata: Any):
        """Decorator form of ``register``.

        Example:
            @registry.function("double", prefix="math")
            def double(x):
                return x * 2
        """

        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            self.register(
                FunctionDefinition(
                    name=name, implementation=fn, prefix=prefix, **metadata
                )
            )
            return fn

        return decorator

    def get(self, prefix: str | None, name: str) -> FunctionDefinition:
        """Get a function definition.

        Raises:
            ValueError: If function is not registered
        """
        key = (prefix, name)
        if key not in self._functions:
            raise ValueError(f"Unknown function: {qualified_name(prefix, name)}")
        return self._functions[key]

    def lookup(self, prefix: str | None, name: str) -> Callable[..., Any] | None:
        """Return the implementation for a name, or None if unregistered."""
        func_def = self._functions.get((prefix, name))
        if func_def is None:
            return None
        return func_def.implementation

    def is_registered(self, prefix: str | None, name: str) -> bool:
        """Check if a function is registered."""
        return (prefix, name) in self._functions

    def list_all(self) -> list[FunctionDefinition]:
        """List all registered functions."""
        return list(self._functions.values())

    def list_by_category(self, category: FunctionCategory) -> list[FunctionDefinition]:
        """List functions in a specific category."""
        return [f for f in self._functions.values() if f.category == category]

    def export_documentation(self) -> dict[str, Any]:
        """Export the registry for documentation.

        Returns:
            Dict with all function definitions, also grouped by category
        """
        by_category: dict[str, list[dict[str, Any]]] = {}
        for func_def in self._functions.values():
            by_category.setdefault(func_def.category.value, []).append(
                func_def.to_dict()
            )

        return {
            "functions": {
                f.qualified_name: f.to_dict() for f in self._functions.values()
            },
            "byCategory": by_category,
        }

    def clear(self) -> None:
        """Remove all registrations."""
        self._functions.clear()

    def __len__(self) -> int:
        return len(self._functions)

    def __contains__(self, key: object) -> bool:
        return key in self._functions
