"""Built-in ``fn:`` functions, following the JSTL functions tag library.

These are ordinary host functions registered by name; the evaluator knows
nothing about them. Call ``register_builtins`` on a registry to make them
available:

    registry = FunctionRegistry()
    register_builtins(registry)
    evaluate('fn:toUpperCase(name)', SimpleResolver(vars, registry))

Null string arguments are treated as the empty string.

Categories:
- String: contains, containsIgnoreCase, endsWith, startsWith, indexOf,
  replace, substring, substringAfter, substringBefore, toLowerCase,
  toUpperCase, trim
- Collection: join, length, split
- Markup: escapeXml
"""

from collections.abc import Sized
from typing import Any

from elengine.functions import (
    FunctionCategory,
    FunctionDefinition,
    FunctionParameter,
    FunctionRegistry,
)
from elengine.values import to_long, to_string

DEFAULT_PREFIX = "fn"


def register_builtins(registry: FunctionRegistry, prefix: str | None = DEFAULT_PREFIX) -> None:
    """Register all built-in functions under ``prefix``."""
    _register_string_functions(registry, prefix)
    _register_collection_functions(registry, prefix)
    _register_markup_functions(registry, prefix)


def _str(value: Any) -> str:
    return to_string(value)


# -----------------------------------------------------------------------------
# String Functions
# -----------------------------------------------------------------------------


def _contains(value: Any, substring: Any) -> bool:
    """Test if a string contains a substring."""
    return _str(substring) in _str(value)


def _contains_ignore_case(value: Any, substring: Any) -> bool:
    """Case-insensitive ``contains``."""
    return _str(substring).upper() in _str(value).upper()


def _ends_with(value: Any, suffix: Any) -> bool:
    return _str(value).endswith(_str(suffix))


def _starts_with(value: Any, prefix: Any) -> bool:
    return _str(value).startswith(_str(prefix))


def _index_of(value: Any, substring: Any) -> int:
    """Index of the first occurrence, -1 if absent."""
    return _str(value).find(_str(substring))


def _replace(value: Any, before: Any, after: Any) -> str:
    text = _str(value)
    old = _str(before)
    if old == "":
        return text
    return text.replace(old, _str(after))


def _substring(value: Any, begin: Any, end: Any) -> str:
    """Substring from ``begin`` up to ``end``.

    Indices are clamped to the string; a negative ``end`` means "to the end".
    """
    text = _str(value)
    start = max(to_long(begin), 0)
    stop = to_long(end)
    if stop < 0 or stop > len(text):
        stop = len(text)
    if start >= stop:
        return ""
    return text[start:stop]


def _substring_after(value: Any, separator: Any) -> str:
    """The part after the first occurrence of ``separator``, "" if absent."""
    text = _str(value)
    sep = _str(separator)
    if sep == "":
        return text
    index = text.find(sep)
    if index < 0:
        return ""
    return text[index + len(sep):]


def _substring_before(value: Any, separator: Any) -> str:
    """The part before the first occurrence of ``separator``, "" if absent."""
    text = _str(value)
    sep = _str(separator)
    if sep == "":
        return ""
    index = text.find(sep)
    if index < 0:
        return ""
    return text[:index]


def _to_lower_case(value: Any) -> str:
    return _str(value).lower()


def _to_upper_case(value: Any) -> str:
    return _str(value).upper()


def _trim(value: Any) -> str:
    return _str(value).strip()


def _string_params(*names: str) -> list[FunctionParameter]:
    return [FunctionParameter(name, "string") for name in names]


def _register_string_functions(registry: FunctionRegistry, prefix: str | None) -> None:
    string_functions = [
        ("contains", _contains, "Tests if a string contains a substring",
         ["input", "substring"], "boolean", 'fn:contains(name, "son")'),
        ("containsIgnoreCase", _contains_ignore_case,
         "Tests if a string contains a substring, ignoring case",
         ["input", "substring"], "boolean", 'fn:containsIgnoreCase(name, "SON")'),
        ("endsWith", _ends_with, "Tests if a string ends with a suffix",
         ["input", "suffix"], "boolean", 'fn:endsWith(file, ".pdf")'),
        ("startsWith", _starts_with, "Tests if a string starts with a prefix",
         ["input", "prefix"], "boolean", 'fn:startsWith(sku, "PRD-")'),
        ("indexOf", _index_of,
         "Index of the first occurrence of a substring, or -1",
         ["input", "substring"], "number", 'fn:indexOf(email, "@")'),
        ("replace", _replace, "Replaces every occurrence of a substring",
         ["input", "before", "after"], "string", 'fn:replace(path, "/", ".")'),
        ("substringAfter", _substring_after,
         "The part of a string after the first occurrence of a separator",
         ["input", "separator"], "string", 'fn:substringAfter(email, "@")'),
        ("substringBefore", _substring_before,
         "The part of a string before the first occurrence of a separator",
         ["input", "separator"], "string", 'fn:substringBefore(email, "@")'),
        ("toLowerCase", _to_lower_case, "Converts a string to lowercase",
         ["input"], "string", "fn:toLowerCase(code)"),
        ("toUpperCase", _to_upper_case, "Converts a string to uppercase",
         ["input"], "string", "fn:toUpperCase(code)"),
        ("trim", _trim, "Removes whitespace from both ends of a string",
         ["input"], "string", 'fn:trim(name) != ""'),
    ]

    for name, impl, description, params, return_type, example in string_functions:
        registry.register(
            FunctionDefinition(
                name=name,
                implementation=impl,
                prefix=prefix,
                description=description,
                category=FunctionCategory.STRING,
                parameters=_string_params(*params),
                return_type=return_type,
                examples=[example],
            )
        )

    registry.register(
        FunctionDefinition(
            name="substring",
            implementation=_substring,
            prefix=prefix,
            description="Substring between two indices (end exclusive)",
            category=FunctionCategory.STRING,
            parameters=[
                FunctionParameter("input", "string", "The source string"),
                FunctionParameter("beginIndex", "number", "First index, clamped to 0"),
                FunctionParameter("endIndex", "number", "End index; negative means the end"),
            ],
            return_type="string",
            examples=["fn:substring(code, 0, 3)"],
        )
    )


# -----------------------------------------------------------------------------
# Collection Functions
# -----------------------------------------------------------------------------


def _join(items: Any, separator: Any) -> str:
    """Join the string forms of a sequence's items."""
    if items is None:
        return ""
    if isinstance(items, str):
        return items
    return _str(separator).join(_str(item) for item in items)


def _length(value: Any) -> int:
    """Length of a string or collection; 0 for null or anything unsized."""
    if value is None:
        return 0
    if isinstance(value, Sized):
        return len(value)
    return 0


def _split(value: Any, delimiters: Any) -> list[str]:
    """Split on any of the delimiter characters, dropping empty tokens."""
    text = _str(value)
    if text == "":
        return [""]
    chars = _str(delimiters)
    if chars == "":
        return [text]

    tokens = []
    current = []
    for char in text:
        if char in chars:
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(char)
    if current:
        tokens.append("".join(current))
    return tokens


def _register_collection_functions(registry: FunctionRegistry, prefix: str | None) -> None:
    registry.register(
        FunctionDefinition(
            name="join",
            implementation=_join,
            prefix=prefix,
            description="Joins the items of an array into a string",
            category=FunctionCategory.COLLECTION,
            parameters=[
                FunctionParameter("array", "array", "Items to join"),
                FunctionParameter("separator", "string", "Text between items"),
            ],
            return_type="string",
            examples=['fn:join(tags, ", ")'],
        )
    )

    registry.register(
        FunctionDefinition(
            name="length",
            implementation=_length,
            prefix=prefix,
            description="Number of characters in a string or items in a collection",
            category=FunctionCategory.COLLECTION,
            parameters=[
                FunctionParameter("input", "string|array", "The value to measure")
            ],
            return_type="number",
            examples=["fn:length(items) > 0"],
        )
    )

    registry.register(
        FunctionDefinition(
            name="split",
            implementation=_split,
            prefix=prefix,
            description="Splits a string on any of the given delimiter characters",
            category=FunctionCategory.COLLECTION,
            parameters=[
                FunctionParameter("input", "string", "The string to split"),
                FunctionParameter("delimiters", "string", "Delimiter characters"),
            ],
            return_type="array",
            examples=['fn:split(csv, ",")[0]'],
        )
    )


# -----------------------------------------------------------------------------
# Markup Functions
# -----------------------------------------------------------------------------

XML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&#034;",
    "'": "&#039;",
}


def _escape_xml(value: Any) -> str:
    """Escape characters that would be interpreted as XML markup."""
    return "".join(XML_ESCAPES.get(char, char) for char in _str(value))


def _register_markup_functions(registry: FunctionRegistry, prefix: str | None) -> None:
    registry.register(
        FunctionDefinition(
            name="escapeXml",
            implementation=_escape_xml,
            prefix=prefix,
            description="Escapes characters that would be interpreted as XML markup",
            category=FunctionCategory.MARKUP,
            parameters=[FunctionParameter("input", "string", "The text to escape")],
            return_type="string",
            examples=["fn:escapeXml(comment)"],
        )
    )
