"""
Token vocabulary for the SLang shading language.

Every token kind the lexer can produce is a member of `TokenKind`. Members are
`str` subclasses whose value is the literal spelling of the keyword, punctuation
mark or operator they stand for, so `TokenKind.ARROW == "->"`. The three
non-literal kinds (`ID`, `NUM_LIT`, `EOF`) use their marker names as values.

Tables:
    keyword_kinds: word -> kind for every reserved word.
    operator_kinds: spelling -> kind for every punctuation mark and operator.
    token_hashmap: union of both tables, used by the lexer for lookups.
    MAX_OPERATOR_LENGTH: length of the longest operator spelling.

Exports:
    - TokenKind
    - keyword_kinds
    - operator_kinds
    - token_hashmap
    - MAX_OPERATOR_LENGTH
"""

from enum import Enum


class TokenKind(str, Enum):
    """Closed set of token kinds produced by the SLang lexer."""

    # Markers
    ID = "ID"
    NUM_LIT = "NUM_LIT"
    EOF = "EOF"

    # Declarations and attributes
    LET = "let"
    CONST = "const"
    FN = "fn"
    VERTEX = "vertex"
    FRAGMENT = "fragment"
    ENTRY = "entry"
    IN = "in"
    OUT = "out"
    LOC = "loc"
    RETURN = "return"

    # Types
    VEC2 = "vec2"
    VEC3 = "vec3"
    VEC4 = "vec4"
    VOID = "void"

    # Word operators and boolean literals
    AND = "and"
    OR = "or"
    NOT = "not"
    TRUE = "true"
    FALSE = "false"

    # Delimiters
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    LBRACK = "["
    RBRACK = "]"
    COLON = ":"
    SEMI = ";"
    COMMA = ","
    ASSIGN = "="
    ARROW = "->"

    # Arithmetic
    PLUS = "+"
    SUB = "-"
    MULT = "*"
    DIV = "/"
    MOD = "%"

    # Comparison and bitwise
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    EQ = "=="
    NE = "!="
    AMP = "&"
    PIPE = "|"

    def __str__(self) -> str:
        return self.value


MARKER_KINDS: frozenset[TokenKind] = frozenset(
    {TokenKind.ID, TokenKind.NUM_LIT, TokenKind.EOF}
)

keyword_kinds: dict[str, TokenKind] = {
    kind.value: kind
    for kind in TokenKind
    if kind not in MARKER_KINDS and kind.value[0].isalpha()
}

operator_kinds: dict[str, TokenKind] = {
    kind.value: kind
    for kind in TokenKind
    if kind not in MARKER_KINDS and kind.value not in keyword_kinds
}

token_hashmap: dict[str, TokenKind] = {**keyword_kinds, **operator_kinds}

MAX_OPERATOR_LENGTH: int = max(len(spelling) for spelling in operator_kinds)

__all__ = [
    "MARKER_KINDS",
    "MAX_OPERATOR_LENGTH",
    "TokenKind",
    "keyword_kinds",
    "operator_kinds",
    "token_hashmap",
]
