"""Parser configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

_FALSE_VALUES = {"0", "false", "no", "off"}
_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    """Read a boolean environment variable, or return ``default`` when unset."""
    raw = os.environ.get(name)
    if not raw:
        return default

    lowered = raw.strip().lower()
    if lowered in _FALSE_VALUES:
        return False
    if lowered in _TRUE_VALUES:
        return True
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class ParserOptions:
    """Options controlling what the parser accepts.

    Attributes:
        max_depth: Deepest nesting of sub-expressions before parsing fails
        conditional_allowed: Whether ``a ? b : c`` is part of the grammar
        match_allowed: Whether the wildcard match operator ``a ~= "x*"`` is
            part of the grammar
        join_allowed: Whether the string join operator ``a # b`` is part of
            the grammar
    """

    max_depth: int = 50
    conditional_allowed: bool = True
    match_allowed: bool = False
    join_allowed: bool = False

    @classmethod
    def from_env(cls) -> ParserOptions:
        """Create options from environment variables.

        Resolution order for each setting:
        1. ELENGINE_MAX_DEPTH / ELENGINE_CONDITIONAL / ELENGINE_MATCH /
           ELENGINE_JOIN env vars
        2. Default value

        Raises:
            ValueError: If a variable is set to something unparsable.
        """
        defaults = cls()

        max_depth = defaults.max_depth
        raw_depth = os.environ.get("ELENGINE_MAX_DEPTH")
        if raw_depth:
            try:
                max_depth = int(raw_depth)
            except ValueError:
                raise ValueError(
                    f"ELENGINE_MAX_DEPTH must be an integer, got {raw_depth!r}"
                ) from None
            if max_depth < 1:
                raise ValueError("ELENGINE_MAX_DEPTH must be at least 1")

        return cls(
            max_depth=max_depth,
            conditional_allowed=_env_flag(
                "ELENGINE_CONDITIONAL", defaults.conditional_allowed
            ),
            match_allowed=_env_flag("ELENGINE_MATCH", defaults.match_allowed),
            join_allowed=_env_flag("ELENGINE_JOIN", defaults.join_allowed),
        )
