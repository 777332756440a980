"""
Lexical analyzer for the SLang shading language.

This module converts raw source text into a flat list of tokens:

Classes:
    CharacterStream: Stream abstraction for reading characters with line/column tracking.
    TextCoord: A 1-based (line, column) position.
    Span: Start and end coordinates of a token.
    Token: A single immutable token with kind, lexeme and span.
    Lexer: Converts a CharacterStream into a sequence of tokens.

Features:
    - Skips whitespace, tracking newlines for source positions
    - Recognizes identifiers and the reserved words in `keyword_kinds`
    - Recognizes number literals (`12`, `1.5`, `1.`) without normalizing them
    - Longest-match recognition of punctuation and operators
    - Appends exactly one synthetic EOF token

Raises:
    ScanError: On an unrecognized character or input ending in the middle of a token.

Example:
    >>> [tok.kind.value for tok in scan("let x : vec2;")]
    ['let', 'ID', ':', 'vec2', ';', 'EOF']

Exports:
    - CharacterStream
    - TextCoord
    - Span
    - Token
    - Lexer
    - scan
"""

import logging
from typing import NamedTuple

from slang.slang_constants import (
    MAX_OPERATOR_LENGTH,
    TokenKind,
    keyword_kinds,
    operator_kinds,
)
from slang.slang_errors import ScanError

logger = logging.getLogger(__name__)


def is_digit(ch: str) -> bool:
    return ch.isascii() and ch.isdigit()


def is_identifier_char(ch: str) -> bool:
    return ch == "_" or (ch.isascii() and ch.isalnum())


class CharacterStream:
    """
    A utility for reading characters from a string source with line and column tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Returns:
            str: The next character.

        Raises:
            ScanError: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise ScanError("Unexpected end of input", self.line, self.column)
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """Returns the character `offset` places ahead, or an empty string if out of bounds."""
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)

    def coord(self) -> "TextCoord":
        """Returns the current line and column as a TextCoord."""
        return TextCoord(self.line, self.column)


class TextCoord(NamedTuple):
    line: int
    column: int


class Span(NamedTuple):
    """Source range of a token; `end` points just past its last character."""

    start: TextCoord
    end: TextCoord


class Token(NamedTuple):
    """Represents a single lexical token in the SLang language.

    Attributes:
        kind (TokenKind): The token kind the parser dispatches on.
        lexeme (str): The exact source text of the token ("" for EOF).
        span (Span): Where the token starts and ends in the source.
    """

    kind: TokenKind
    lexeme: str
    span: Span

    @property
    def line(self) -> int:
        return self.span.start.line

    @property
    def col(self) -> int:
        return self.span.start.column

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.lexeme})"


class Lexer:
    """Lexical analyzer for the SLang language.

    The Lexer takes a CharacterStream and converts it into Token objects. It
    makes a single pass: once the EOF token has been produced the lexer is
    exhausted and `tokenize()` may not be called again.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
        exhausted (bool): True once the EOF token has been produced, or once
            `tokenize()` has stopped on a scan error.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream
        self.exhausted = False

    def peek(self) -> str:
        return self.stream.peek()

    def advance(self) -> str:
        return self.stream.next()

    def skip_whitespace(self) -> None:
        """Skips all whitespace, including newlines."""
        while not self.stream.end_of_file() and self.peek().isspace():
            self.advance()

    def make_token(self, kind: TokenKind, start: TextCoord, start_pos: int) -> Token:
        lexeme = self.stream.source[start_pos : self.stream.position]
        return Token(kind, lexeme, Span(start, self.stream.coord()))

    def match_operator(self) -> Token | None:
        """Attempts to match the longest valid operator from the current position.

        Returns:
            Token | None: A Token if a match is found, otherwise None.
        """
        start, start_pos = self.stream.coord(), self.stream.position
        match_len = 0
        candidate = ""

        for i in range(MAX_OPERATOR_LENGTH):
            ch = self.stream.peek(i)
            if ch == "":
                break
            candidate += ch
            if candidate in operator_kinds:
                match_len = i + 1

        if not match_len:
            return None
        for _ in range(match_len):
            self.advance()
        return self.make_token(
            operator_kinds[candidate[:match_len]], start, start_pos
        )

    def identifier(self) -> Token:
        start, start_pos = self.stream.coord(), self.stream.position
        while is_identifier_char(self.peek()):
            self.advance()
        token = self.make_token(TokenKind.ID, start, start_pos)
        kind = keyword_kinds.get(token.lexeme)
        return token._replace(kind=kind) if kind else token

    def number(self) -> Token:
        start, start_pos = self.stream.coord(), self.stream.position
        while is_digit(self.peek()):
            self.advance()
        if self.peek() == ".":
            self.advance()
            while is_digit(self.peek()):
                self.advance()
        return self.make_token(TokenKind.NUM_LIT, start, start_pos)

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream.

        Returns:
            Token: The next token; an EOF token once the source is consumed.

        Raises:
            ScanError: If an unrecognized character is encountered or the input
                ends in the middle of a token.
        """
        self.skip_whitespace()

        if self.stream.end_of_file():
            self.exhausted = True
            here = self.stream.coord()
            return Token(TokenKind.EOF, "", Span(here, here))

        ch = self.peek()

        # 1. Identifier or keyword (ASCII only)
        if ch == "_" or (ch.isascii() and ch.isalpha()):
            return self.identifier()

        # 2. Number literal
        if is_digit(ch):
            return self.number()

        # 3. Punctuation or operator
        token = self.match_operator()
        if token:
            return token

        # 4. Prefix of a longer operator cut short (only `!` today)
        line, col = self.stream.line, self.stream.column
        if any(len(op) > 1 and op.startswith(ch) for op in operator_kinds):
            self.advance()
            if self.stream.end_of_file():
                raise ScanError(
                    f"Unexpected end of input after {ch!r}",
                    self.stream.line,
                    self.stream.column,
                )
            bad = self.peek()
            raise ScanError(
                f"Unexpected character {bad!r} after {ch!r}",
                self.stream.line,
                self.stream.column,
                bad,
            )

        raise ScanError(f"Unexpected character {ch!r}", line, col, ch)

    def tokenize(self) -> list[Token]:
        """Scans the remaining source and returns every token, ending with EOF.

        Raises:
            RuntimeError: If the lexer has already produced its EOF token or
                stopped on a scan error.
            ScanError: On the first malformed character.
        """
        if self.exhausted:
            raise RuntimeError("Lexer is exhausted; create a new one to rescan")
        tokens: list[Token] = []
        try:
            while True:
                tok = self.next_token()
                tokens.append(tok)
                if tok.kind is TokenKind.EOF:
                    break
        finally:
            # Also set on ScanError: the stream is left mid-token.
            self.exhausted = True
        logger.debug("scanned %d tokens", len(tokens))
        return tokens


def scan(source: str) -> list[Token]:
    """Tokenizes `source` with a fresh lexer."""
    return Lexer(CharacterStream(source)).tokenize()


__all__ = ["CharacterStream", "Lexer", "Span", "TextCoord", "Token", "scan"]
