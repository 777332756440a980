"""
Error types raised by the SLang front end.

All user-facing failures derive from `SlangError`, which is a `SyntaxError`
so callers that already guard against malformed source keep working. Each
error carries the 1-based line and column where it was detected and renders
as ``Line L, Col C: message``.

Classes:
    SlangError: Base class with source location.
    ScanError: Unrecognized character or input ending in the middle of a token.
    ParseError: Base class for parser failures.
    UnexpectedToken: The single parse failure: a token outside the expected set.
    GrammarError: The grammar tables are not LL(1) (a programming error).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from slang.slang_constants import TokenKind
    from slang.slang_lexer import Token


class SlangError(SyntaxError):
    """
    Base class for every malformed-source error.

    Args:
        message (str): Description of the problem, without the location.
        line (int): 1-based line where the problem was detected.
        column (int): 1-based column where the problem was detected.

    Attributes:
        message, line, column: The constructor arguments, kept for callers
            that format their own diagnostics.
    """

    def __init__(self, message: str, line: int = 0, column: int = 0) -> None:
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"Line {line}, Col {column}: {message}")


class ScanError(SlangError):
    """Raised by the lexer; `char` is None when the input ended mid-token."""

    def __init__(
        self, message: str, line: int = 0, column: int = 0, char: str | None = None
    ) -> None:
        self.char = char
        super().__init__(message, line, column)


class ParseError(SlangError):
    pass


class UnexpectedToken(ParseError):
    """
    The current token cannot continue the production being parsed.

    Attributes:
        token (Token): The offending token.
        expected (frozenset[TokenKind]): Every kind that would have been accepted.
    """

    def __init__(self, token: Token, expected: Iterable[TokenKind]) -> None:
        self.token = token
        self.expected: frozenset[TokenKind] = frozenset(expected)
        shown = token.lexeme if token.lexeme else token.kind.value
        super().__init__(
            f"Unexpected token {shown!r}, expected one of: "
            + " ".join(self.expected_spellings()),
            token.line,
            token.col,
        )

    def expected_spellings(self) -> list[str]:
        """Returns the expected kinds as sorted, duplicate-free spellings."""
        return sorted(kind.value for kind in self.expected)


class GrammarError(ValueError):
    pass


__all__ = [
    "GrammarError",
    "ParseError",
    "ScanError",
    "SlangError",
    "UnexpectedToken",
]
