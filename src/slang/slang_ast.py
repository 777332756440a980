"""
Defines the expression syntax tree built by the SLang parser.

Only expressions are materialized as nodes; statements and declarations are
validated by the parser and left for a later phase to represent.

Classes:
    Expr:
        Base class of every expression node. Tracks the source position and
        provides structural equality, `children()`, `walk()` and `to_dict()`.

    Identifier, ArrayLookup, UnaryExpr, BinaryExpr, NumberLiteral,
    BooleanLiteral, ArrayLiteral, CallExpr:
        The closed set of expression variants.

    ASTDict:
        TypedDict representation for serializing nodes to plain Python
        dictionaries, suitable for JSON output or debugging.

Each node exclusively owns its children: the tree is built bottom-up by the
parser from freshly parsed sub-trees, so there is no sharing and there are no
back-references. Operator nodes keep the operator `Token` verbatim so later
phases can recover both its exact spelling and its source location.

Example:
    BinaryExpr(minus_token, Identifier(a_token), Identifier(b_token))
"""

from __future__ import annotations

from typing import Any, Iterator, TypedDict

from slang.slang_lexer import Token


class ASTDict(TypedDict, total=False):
    """
    TypedDict representation of an Expr used for serialization.

    Fields:
        kind (str): The variant name (e.g., "binary", "call", "identifier").
        value (Any): Lexeme, operator spelling or boolean value, when the node has one.
        line (int): Line number where the node originates.
        col (int): Column number where the node originates.
        children (list[ASTDict]): Owned sub-expressions, in source order.
    """

    kind: str
    value: Any
    line: int
    col: int
    children: list["ASTDict"]


class Expr:
    """
    Base class for SLang expression nodes.

    Subclasses set `kind` and list the attributes that define them in
    `_fields`; equality compares those attributes, which include the tokens
    and therefore the source positions.

    Attributes:
        line (int): Source line of the token that introduces the node.
        col (int): Source column of that token.
    """

    kind: str = "expr"
    _fields: tuple[str, ...] = ()

    def __init__(self, line: int = 0, col: int = 0) -> None:
        self.line = line
        self.col = col

    def children(self) -> list[Expr]:
        """Returns the directly owned sub-expressions, in source order."""
        return []

    def walk(self) -> Iterator[Expr]:
        """Yields this node and every descendant, parents before children."""
        yield self
        for child in self.children():
            yield from child.walk()

    def value(self) -> Any:
        return None

    def __eq__(self, other: Any) -> bool:
        if type(self) is not type(other):
            return False
        return all(getattr(self, f) == getattr(other, f) for f in self._fields)

    def __repr__(self) -> str:
        parts = [self.kind]
        if self.value() is not None:
            parts.append(f"value={self.value()!r}")
        children = self.children()
        if children:
            parts.append(f"children=[{', '.join(repr(c) for c in children)}]")
        return f"Expr({', '.join(parts)})"

    def to_dict(self) -> ASTDict:
        result: ASTDict = {"kind": self.kind, "line": self.line, "col": self.col}
        if self.value() is not None:
            result["value"] = self.value()
        result["children"] = [child.to_dict() for child in self.children()]
        return result


class Identifier(Expr):
    kind = "identifier"
    _fields = ("token",)

    def __init__(self, token: Token) -> None:
        super().__init__(token.line, token.col)
        self.token = token

    @property
    def name(self) -> str:
        return self.token.lexeme

    def value(self) -> Any:
        return self.name


class ArrayLookup(Expr):
    """`array[index]`; positioned at the array expression."""

    kind = "array_lookup"
    _fields = ("array", "index")

    def __init__(self, array: Expr, index: Expr) -> None:
        super().__init__(array.line, array.col)
        self.array = array
        self.index = index

    def children(self) -> list[Expr]:
        return [self.array, self.index]


class UnaryExpr(Expr):
    kind = "unary"
    _fields = ("op", "operand")

    def __init__(self, op: Token, operand: Expr) -> None:
        super().__init__(op.line, op.col)
        self.op = op
        self.operand = operand

    def value(self) -> Any:
        return self.op.lexeme

    def children(self) -> list[Expr]:
        return [self.operand]


class BinaryExpr(Expr):
    """`left op right`; positioned at the operator token."""

    kind = "binary"
    _fields = ("op", "left", "right")

    def __init__(self, op: Token, left: Expr, right: Expr) -> None:
        super().__init__(op.line, op.col)
        self.op = op
        self.left = left
        self.right = right

    def value(self) -> Any:
        return self.op.lexeme

    def children(self) -> list[Expr]:
        return [self.left, self.right]


class NumberLiteral(Expr):
    """A number literal; the lexeme is kept exactly as written."""

    kind = "number"
    _fields = ("token",)

    def __init__(self, token: Token) -> None:
        super().__init__(token.line, token.col)
        self.token = token

    def value(self) -> Any:
        return self.token.lexeme


class BooleanLiteral(Expr):
    kind = "boolean"
    _fields = ("token", "literal")

    def __init__(self, token: Token, literal: bool) -> None:
        super().__init__(token.line, token.col)
        self.token = token
        self.literal = literal

    def value(self) -> Any:
        return self.literal


class ArrayLiteral(Expr):
    """`[e1, e2, ...]`; positioned at the opening bracket."""

    kind = "array"
    _fields = ("elements",)

    def __init__(self, open_token: Token, elements: list[Expr]) -> None:
        super().__init__(open_token.line, open_token.col)
        self.open_token = open_token
        self.elements = elements

    def children(self) -> list[Expr]:
        return list(self.elements)


class CallExpr(Expr):
    """
    Function call or type constructor.

    Type constructors such as `vec2(1, 2)` are calls whose callee is the type
    name, so downstream phases resolve both through the same node.
    """

    kind = "call"
    _fields = ("callee", "args")

    def __init__(self, callee: Identifier, args: list[Expr]) -> None:
        super().__init__(callee.line, callee.col)
        self.callee = callee
        self.args = args

    def value(self) -> Any:
        return self.callee.name

    def children(self) -> list[Expr]:
        return list(self.args)


__all__ = [
    "ASTDict",
    "ArrayLiteral",
    "ArrayLookup",
    "BinaryExpr",
    "BooleanLiteral",
    "CallExpr",
    "Expr",
    "Identifier",
    "NumberLiteral",
    "UnaryExpr",
]
