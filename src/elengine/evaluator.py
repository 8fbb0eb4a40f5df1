"""Evaluator for the expression language.

Walks the AST and computes the result against a resolver supplying
variables and functions. Evaluation is single-pass and keeps no state
between calls, so one parsed tree can be evaluated concurrently by callers
holding their own resolvers.
"""

import logging
import math
import re
from collections.abc import Mapping, Sequence, Sized
from typing import Any

from elengine.config import ParserOptions
from elengine.errors import (
    ArithmeticEvaluationError,
    EvaluationError,
    FunctionInvocationError,
    InvalidAccessError,
    ResolverError,
    TypeCoercionError,
    UnknownFunctionError,
    qualified_name,
)
from elengine.nodes import (
    ASTNode,
    BinaryOp,
    Conditional,
    FunctionCall,
    Identifier,
    Literal,
    MemberAccess,
    UnaryOp,
)
from elengine.parser import parse
from elengine.resolver import UNDEFINED, Resolver, as_resolver
from elengine.values import (
    DOUBLE_PATTERN,
    ValueKind,
    is_floating,
    is_number,
    kind_of,
    to_boolean,
    to_double,
    to_long,
    to_string,
    type_name,
)

logger = logging.getLogger(__name__)


class Evaluator:
    """Evaluates expression AST against a resolver.

    Usage:
        evaluator = Evaluator(SimpleResolver({"count": 5}))
        result = evaluator.evaluate(parse("count * 2"))
    """

    def __init__(self, resolver: Resolver | Mapping[str, Any] | None = None):
        self.resolver = as_resolver(resolver)

    def evaluate(self, node: ASTNode) -> Any:
        """Evaluate an AST node and return the result."""
        method_name = f"_eval_{type(node).__name__.lower()}"
        method = getattr(self, method_name, None)

        if method is None:
            raise TypeError(f"Unknown node type: {type(node).__name__}")

        return method(node)

    # -------------------------------------------------------------------------
    # Node type evaluators
    # -------------------------------------------------------------------------

    def _eval_literal(self, node: Literal) -> Any:
        """Evaluate a literal value."""
        return node.value

    def _eval_identifier(self, node: Identifier) -> Any:
        """Evaluate a variable reference. Undefined names are null."""
        try:
            value = self.resolver.resolve_variable(node.name)
        except EvaluationError:
            raise
        except Exception as e:
            raise ResolverError(node.name, e) from e

        if value is UNDEFINED:
            logger.debug("Variable '%s' is undefined; evaluating as null", node.name)
            return None

        return value

    def _eval_memberaccess(self, node: MemberAccess) -> Any:
        """Evaluate member access (a.b) or index access (a[b]).

        A chain such as ``a.b[c].d`` is walked from its base outwards in a
        loop, so chain length is not limited by the interpreter stack.
        """
        chain = []
        base: ASTNode = node
        while isinstance(base, MemberAccess):
            chain.append(base)
            base = base.object

        obj = self.evaluate(base)

        for access in reversed(chain):
            if obj is None:
                return None

            if isinstance(access.member, str):
                key = access.member
            else:
                key = self.evaluate(access.member)

            if key is None:
                return None

            obj = self._access(obj, key)

        return obj

    def _eval_unaryop(self, node: UnaryOp) -> Any:
        """Evaluate a unary operation."""
        operand = self.evaluate(node.operand)

        if node.operator == "!":
            return not to_boolean(operand)

        if node.operator == "-":
            return self._negate(operand)

        if node.operator == "empty":
            return self._is_empty(operand)

        raise ValueError(f"Unknown unary operator: {node.operator}")

    def _eval_binaryop(self, node: BinaryOp) -> Any:
        """Evaluate a binary operation.

        The parser builds ``a + b + c`` as a left-leaning tree. Its left
        spine is collected first and then folded in a loop, so a long flat
        chain of operators evaluates without deep recursion.
        """
        spine = []
        leftmost: ASTNode = node
        while isinstance(leftmost, BinaryOp):
            spine.append(leftmost)
            leftmost = leftmost.left

        value = self.evaluate(leftmost)
        for op_node in reversed(spine):
            value = self._apply_binary(op_node.operator, value, op_node.right)
        return value

    def _apply_binary(self, op: str, left: Any, right_node: ASTNode) -> Any:
        """Combine an evaluated left operand with the right operand node."""
        # Short-circuit evaluation for logical operators
        if op == "&&":
            if not to_boolean(left):
                return False
            return to_boolean(self.evaluate(right_node))

        if op == "||":
            if to_boolean(left):
                return True
            return to_boolean(self.evaluate(right_node))

        right = self.evaluate(right_node)

        # Comparison operators
        if op == "==":
            return self._equals(left, right)
        if op == "!=":
            return not self._equals(left, right)
        if op in ("<", "<=", ">", ">="):
            return self._compare(op, left, right)
        if op == "~=":
            return self._match_pattern(left, right)

        # Arithmetic operators
        if op == "+":
            return self._add(left, right)
        if op == "/":
            return self._divide(left, right)
        if op in ("-", "*", "%"):
            return self._arithmetic(op, left, right)
        if op == "#":
            return to_string(left) + to_string(right)

        raise ValueError(f"Unknown operator: {op}")

    def _eval_conditional(self, node: Conditional) -> Any:
        """Evaluate a conditional; only the selected branch is visited."""
        if to_boolean(self.evaluate(node.condition)):
            return self.evaluate(node.then_branch)
        return self.evaluate(node.else_branch)

    def _eval_functioncall(self, node: FunctionCall) -> Any:
        """Evaluate a function call."""
        name = qualified_name(node.prefix, node.name)

        try:
            func = self.resolver.resolve_function(node.prefix, node.name)
        except EvaluationError:
            raise
        except Exception as e:
            raise FunctionInvocationError(node.prefix, node.name, e) from e

        if func is None:
            raise UnknownFunctionError(node.prefix, node.name)

        # Arguments are evaluated left to right before the call
        args = [self.evaluate(arg) for arg in node.arguments]

        try:
            return func(*args)
        except Exception as e:
            logger.debug("Function %s raised %s: %s", name, type(e).__name__, e)
            raise FunctionInvocationError(node.prefix, node.name, e) from e

    # -------------------------------------------------------------------------
    # Helper methods
    # -------------------------------------------------------------------------

    def _access(self, obj: Any, key: Any) -> Any:
        """Look up ``key`` on a non-null base value."""
        if kind_of(obj) in (ValueKind.BOOLEAN, ValueKind.LONG, ValueKind.DOUBLE):
            raise InvalidAccessError(
                f"Cannot access member '{to_string(key)}' of {type_name(obj)}"
            )

        if isinstance(obj, Mapping):
            try:
                return obj.get(key)
            except TypeError as e:
                raise InvalidAccessError(
                    f"Invalid key {key!r} for {type_name(obj)}"
                ) from e

        if isinstance(obj, Sequence):
            try:
                index = to_long(key)
            except TypeCoercionError:
                raise InvalidAccessError(
                    f"Cannot use '{to_string(key)}' as an index into {type_name(obj)}"
                ) from None
            if 0 <= index < len(obj):
                return obj[index]
            return None

        name = to_string(key)
        if not name or name.startswith("_"):
            raise InvalidAccessError(
                f"Cannot access member '{name}' of {type_name(obj)}"
            )
        try:
            return getattr(obj, name)
        except AttributeError:
            raise InvalidAccessError(
                f"{type_name(obj)} has no member '{name}'"
            ) from None
        except Exception as e:
            raise InvalidAccessError(
                f"Error reading member '{name}' of {type_name(obj)}: {e}"
            ) from e

    def _negate(self, operand: Any) -> Any:
        """Unary minus."""
        if operand is None:
            return 0
        if isinstance(operand, str):
            if is_floating(operand):
                return -to_double(operand)
            return -to_long(operand)
        if is_number(operand):
            return -operand
        raise TypeCoercionError(f"Cannot negate {type_name(operand)}")

    def _is_empty(self, operand: Any) -> bool:
        """The ``empty`` operator: null, "" and empty collections."""
        if operand is None:
            return True
        if isinstance(operand, Sized):
            return len(operand) == 0
        return False

    def _equals(self, left: Any, right: Any) -> bool:
        """Check equality with type coercion."""
        if left is None or right is None:
            return left is None and right is None

        left_kind = kind_of(left)
        right_kind = kind_of(right)

        if ValueKind.BOOLEAN in (left_kind, right_kind):
            return to_boolean(left) == to_boolean(right)

        if left_kind is ValueKind.STRING and right_kind is ValueKind.STRING:
            return left == right

        if is_number(left) or is_number(right):
            a, b = self._numeric_pair(left, right)
            return a == b

        if ValueKind.STRING in (left_kind, right_kind):
            return to_string(left) == to_string(right)

        return left == right

    def _compare(self, op: str, left: Any, right: Any) -> bool:
        """Evaluate an ordering operator."""
        if left is None or right is None:
            if left is None and right is None:
                return op in ("<=", ">=")
            return False

        left_kind = kind_of(left)
        right_kind = kind_of(right)

        if ValueKind.BOOLEAN in (left_kind, right_kind):
            raise TypeCoercionError(
                f"Cannot order {type_name(left)} and {type_name(right)}"
            )

        if left_kind is ValueKind.STRING and right_kind is ValueKind.STRING:
            comparison = _three_way(left, right)
        elif is_number(left) or is_number(right):
            a, b = self._numeric_pair(left, right)
            comparison = _three_way(a, b)
        elif left_kind is ValueKind.OPAQUE and right_kind is ValueKind.OPAQUE:
            try:
                comparison = _three_way(left, right)
            except TypeError:
                raise TypeCoercionError(
                    f"Cannot order {type_name(left)} and {type_name(right)}"
                ) from None
        else:
            raise TypeCoercionError(
                f"Cannot order {type_name(left)} and {type_name(right)}"
            )

        if op == "<":
            return comparison < 0
        if op == "<=":
            return comparison <= 0
        if op == ">":
            return comparison > 0
        return comparison >= 0

    def _match_pattern(self, left: Any, right: Any) -> bool:
        """The ``~=`` operator: match a string against a wildcard pattern.

        ``*`` matches any run of characters, ``?`` a single character and
        ``\\`` escapes the character after it. Null on either side is false.
        """
        for operand in (left, right):
            if operand is not None and not isinstance(operand, str):
                raise TypeCoercionError(
                    f"Cannot match {type_name(left)} against {type_name(right)}"
                )
        if left is None or right is None:
            return False

        regex = _wildcard_regex(right)
        return regex is not None and regex.fullmatch(left) is not None

    def _numeric_pair(self, left: Any, right: Any) -> tuple[Any, Any]:
        """Coerce both operands to a common numeric type."""
        if is_floating(left) or is_floating(right):
            return to_double(left), to_double(right)
        return to_long(left), to_long(right)

    def _add(self, left: Any, right: Any) -> Any:
        """Add two values, falling back to string concatenation."""
        if left is None and right is None:
            return 0

        if isinstance(left, str) or isinstance(right, str):
            if not (_clean_number(left) and _clean_number(right)):
                return to_string(left) + to_string(right)

        return self._arithmetic("+", left, right)

    def _divide(self, left: Any, right: Any) -> Any:
        """Divide two values. The result is always a float.

        A zero divisor raises ArithmeticEvaluationError. This departs from
        the Java EL library, where double division yields Infinity or NaN.
        """
        if left is None and right is None:
            return 0

        dividend = to_double(left)
        divisor = to_double(right)
        if divisor == 0:
            raise ArithmeticEvaluationError("Division by zero")
        return dividend / divisor

    def _arithmetic(self, op: str, left: Any, right: Any) -> Any:
        """Apply +, - , * or % in long or double context."""
        if left is None and right is None:
            return 0

        a, b = self._numeric_pair(left, right)

        if op == "+":
            return a + b
        if op == "-":
            return a - b
        if op == "*":
            return a * b

        if b == 0:
            raise ArithmeticEvaluationError("Modulo by zero")
        if isinstance(a, float):
            return math.fmod(a, b)
        # Remainder takes the sign of the dividend
        remainder = abs(a) % abs(b)
        return -remainder if a < 0 else remainder


def _clean_number(value: Any) -> bool:
    """True if ``value`` takes part in ``+`` as a number rather than text."""
    if value is None or is_number(value):
        return True
    return isinstance(value, str) and DOUBLE_PATTERN.fullmatch(value) is not None


def _wildcard_regex(pattern: str) -> re.Pattern[str] | None:
    """Translate a ``~=`` pattern to a regex. A trailing escape matches nothing."""
    parts = []
    chars = iter(pattern)
    for char in chars:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        elif char == "\\":
            escaped = next(chars, None)
            if escaped is None:
                return None
            parts.append(re.escape(escaped))
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def _three_way(a: Any, b: Any) -> int:
    if a < b:
        return -1
    if b < a:
        return 1
    return 0


# -----------------------------------------------------------------------------
# Convenience functions
# -----------------------------------------------------------------------------


def evaluate(
    expression: str | ASTNode,
    resolver: Resolver | Mapping[str, Any] | None = None,
    options: ParserOptions | None = None,
) -> Any:
    """Evaluate an expression against a resolver.

    This is the main entry point for expression evaluation.

    Args:
        expression: The expression string, or an AST from ``parse``
        resolver: A Resolver, or a plain mapping of variable names to values
        options: Parser options, used only when ``expression`` is a string

    Returns:
        The result of evaluating the expression

    Example:
        result = evaluate('status eq "active" && count > 0',
                          {"status": "active", "count": 5})
        # result = True
    """
    ast = parse(expression, options) if isinstance(expression, str) else expression
    return Evaluator(resolver).evaluate(ast)


def evaluate_bool(
    expression: str | ASTNode,
    resolver: Resolver | Mapping[str, Any] | None = None,
    options: ParserOptions | None = None,
) -> bool:
    """Evaluate an expression and coerce the result to a boolean."""
    return to_boolean(evaluate(expression, resolver, options))
