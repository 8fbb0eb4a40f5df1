"""AST node types for the expression language.

The node set is closed: every parsed expression is a tree of these seven
shapes. Nodes are frozen, so a parsed tree can be cached and evaluated any
number of times, from any number of threads, against different resolvers.

Operator strings are canonical regardless of how they were spelled in the
source: ``a and b`` and ``a && b`` both produce ``BinaryOp("&&", ...)``.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ASTNode:
    """Base class for AST nodes."""
    pass


@dataclass(frozen=True)
class Literal(ASTNode):
    """A literal value (number, string, boolean, null)."""
    value: Any


@dataclass(frozen=True)
class Identifier(ASTNode):
    """A variable reference, resolved at evaluation time."""
    name: str


@dataclass(frozen=True)
class UnaryOp(ASTNode):
    """Unary operation: ``-x``, ``!x`` or ``empty x``."""
    operator: str
    operand: ASTNode


@dataclass(frozen=True)
class BinaryOp(ASTNode):
    """Binary operation (e.g., a + b, x == y, p && q)."""
    operator: str
    left: ASTNode
    right: ASTNode


@dataclass(frozen=True)
class Conditional(ASTNode):
    """Ternary conditional ``condition ? then_branch : else_branch``."""
    condition: ASTNode
    then_branch: ASTNode
    else_branch: ASTNode


@dataclass(frozen=True)
class MemberAccess(ASTNode):
    """Member or index access.

    ``customer.name`` stores the member as a string; ``items[i + 1]`` stores
    the index expression as a node. Both evaluate the same way.
    """
    object: ASTNode
    member: str | ASTNode


@dataclass(frozen=True)
class FunctionCall(ASTNode):
    """Function call, optionally namespaced (e.g., ``fn:length(items)``)."""
    name: str
    arguments: tuple[ASTNode, ...] = ()
    prefix: str | None = None


def to_source(node: ASTNode) -> str:
    """Render an AST back to expression text.

    Compound operands are parenthesized, so the output re-parses to an equal
    tree without relying on precedence.
    """
    if isinstance(node, Literal):
        return _literal_source(node.value)

    if isinstance(node, Identifier):
        return node.name

    if isinstance(node, UnaryOp):
        operand = _operand_source(node.operand)
        if node.operator == "empty":
            return f"empty {operand}"
        return f"{node.operator}{operand}"

    if isinstance(node, BinaryOp):
        left = _operand_source(node.left)
        right = _operand_source(node.right)
        return f"{left} {node.operator} {right}"

    if isinstance(node, Conditional):
        return (
            f"{_operand_source(node.condition)} ? "
            f"{_operand_source(node.then_branch)} : "
            f"{_operand_source(node.else_branch)}"
        )

    if isinstance(node, MemberAccess):
        base = _operand_source(node.object)
        if isinstance(node.object, Literal) and type(node.object.value) in (int, float):
            # "1.x" would lex as a malformed number
            base = f"({base})"
        if isinstance(node.member, str):
            return f"{base}.{node.member}"
        return f"{base}[{to_source(node.member)}]"

    if isinstance(node, FunctionCall):
        args = ", ".join(to_source(arg) for arg in node.arguments)
        name = f"{node.prefix}:{node.name}" if node.prefix else node.name
        return f"{name}({args})"

    raise TypeError(f"Unknown node type: {type(node).__name__}")


def _operand_source(node: ASTNode) -> str:
    text = to_source(node)
    if isinstance(node, (UnaryOp, BinaryOp, Conditional)):
        return f"({text})"
    return text


def _literal_source(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        escaped = (
            value.replace("\\", "\\\\")
            .replace('"', '\\"')
            .replace("\n", "\\n")
            .replace("\t", "\\t")
            .replace("\r", "\\r")
        )
        return f'"{escaped}"'
    return repr(value)
