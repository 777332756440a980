"""
SLang grammar tables.

The grammar is declared once, as data, in `PRODUCTIONS`: each nonterminal maps
to its ordered alternatives, and each alternative is a tuple of symbols. A
`TokenKind` symbol is a terminal; a plain `str` symbol names a nonterminal; the
empty tuple is the epsilon alternative.

`Grammar` derives everything the predictive parser needs from that data:

    nullable   -- nonterminals that can derive the empty string
    first      -- FIRST set of every nonterminal
    follow     -- FOLLOW set of every nonterminal reachable from the start symbol
    predict    -- nonterminal -> {token kind -> alternative index}

The predict table doubles as the error vocabulary: the expected set reported
for a nonterminal is exactly the set of kinds its predict row accepts, so
dispatch and diagnostics cannot drift apart. A conflict while building the
table raises `GrammarError`.

Alternative indices are part of the parser's contract; keep `PRODUCTIONS` in
the order `slang_parser.Parser` expects when editing it.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Union

from slang.slang_constants import TokenKind as K
from slang.slang_errors import GrammarError

Symbol = Union[K, str]
Alternative = tuple[Symbol, ...]

EMPTY: Alternative = ()

PRODUCTIONS: dict[str, tuple[Alternative, ...]] = {
    # Top level
    "program": (("global_stmt", "global_stmt_list"),),
    "global_stmt_list": (("global_stmt", "global_stmt_list"), EMPTY),
    "global_stmt": (("function",), ("scoped_var_decl",)),
    # Functions
    "function": (("function_def", "compound_stmt"),),
    "function_def": (
        ("stage_attr", "entry_attr", K.FN, K.ID, "parameters", K.ARROW, "types"),
    ),
    "stage_attr": ((K.VERTEX,), (K.FRAGMENT,), EMPTY),
    "entry_attr": ((K.ENTRY,), EMPTY),
    "parameters": ((K.LPAREN, "param_list", K.RPAREN),),
    "param_list": (("param", "param_list_tail"), EMPTY),
    "param_list_tail": ((K.COMMA, "param", "param_list_tail"), EMPTY),
    "param": ((K.ID, K.COLON, "types"),),
    # Declarations
    "scoped_var_decl": (
        ("attr_list", "var_keyword", K.ID, K.COLON, "types", "opt_init", K.SEMI),
    ),
    "attr_list": (("attr", "attr_list"), EMPTY),
    "attr": ((K.IN,), (K.OUT,), (K.LOC, K.LPAREN, K.NUM_LIT, K.RPAREN)),
    "var_keyword": ((K.LET,), (K.CONST,)),
    "opt_init": ((K.ASSIGN, "expr"), EMPTY),
    # Statements
    "compound_stmt": ((K.LBRACE, "stmt_list", K.RBRACE),),
    "stmt_list": (("stmt", "stmt_list"), EMPTY),
    "stmt": (
        (K.RETURN, "expr", K.SEMI),
        (K.ID, K.ASSIGN, "expr", K.SEMI),
        ("var_decl", K.SEMI),
    ),
    "var_decl": (("var_keyword", K.ID, "var_decl_tail"),),
    "var_decl_tail": ((K.COLON, "types", "opt_init"), (K.ASSIGN, "expr")),
    # Expressions, lowest binding power first
    "expr": (("and_expr", "expr_tail"),),
    "expr_tail": ((K.OR, "expr"), EMPTY),
    "and_expr": (("comp_expr", "and_expr_tail"),),
    "and_expr_tail": ((K.AND, "and_expr"), EMPTY),
    "comp_expr": (("add_expr", "comp_expr_tail"),),
    "comp_expr_tail": (("comp_op", "comp_expr"), EMPTY),
    "comp_op": tuple(
        (kind,) for kind in (K.EQ, K.NE, K.LT, K.LE, K.GT, K.GE, K.AMP, K.PIPE)
    ),
    "add_expr": (("mul_expr", "add_expr_tail"),),
    "add_expr_tail": (("add_op", "add_expr"), EMPTY),
    "add_op": ((K.PLUS,), (K.SUB,)),
    "mul_expr": (("unary_expr", "mul_expr_tail"),),
    "mul_expr_tail": (("mul_op", "mul_expr"), EMPTY),
    "mul_op": ((K.MULT,), (K.DIV,), (K.MOD,)),
    "unary_expr": (("unary_op", "unary_expr"), ("base_expr",)),
    "unary_op": ((K.SUB,), (K.NOT,)),
    "base_expr": (
        ("type_constructor",),
        ("id_expr",),
        ("array_literal",),
        (K.NUM_LIT,),
        (K.TRUE,),
        (K.FALSE,),
        ("grouped_expr",),
    ),
    "type_constructor": (("base_type", "call_args"),),
    "id_expr": ((K.ID, "id_expr_tail"),),
    "id_expr_tail": ((K.LBRACK, "expr", K.RBRACK), ("call_args",), EMPTY),
    "array_literal": ((K.LBRACK, "expr_list", K.RBRACK),),
    "call_args": ((K.LPAREN, "expr_list", K.RPAREN),),
    "expr_list": (("expr", "expr_list_tail"),),
    "expr_list_tail": ((K.COMMA, "expr", "expr_list_tail"), EMPTY),
    "grouped_expr": ((K.LPAREN, "expr", K.RPAREN),),
    # Types
    "types": (("base_type", "opt_array_size"),),
    "opt_array_size": ((K.LBRACK, K.NUM_LIT, K.RBRACK), EMPTY),
    "base_type": ((K.VEC2,), (K.VEC3,), (K.VEC4,), (K.VOID,)),
}


def is_terminal(symbol: Symbol) -> bool:
    return isinstance(symbol, K)


class Grammar:
    """
    Predictive-parsing tables for one start symbol.

    Args:
        productions: Nonterminal -> alternatives, as in `PRODUCTIONS`.
        start: The nonterminal an entry point parses; EOF is appended after it
            when computing FOLLOW sets.

    Raises:
        GrammarError: If a symbol is undefined or the grammar is not LL(1).
    """

    def __init__(
        self, productions: dict[str, tuple[Alternative, ...]], start: str
    ) -> None:
        if start not in productions:
            raise GrammarError(f"Unknown start symbol {start!r}")
        self.productions = productions
        self.start = start
        self._check_symbols()
        self.reachable = self._compute_reachable()
        self.nullable = self._compute_nullable()
        self.first = self._compute_first()
        self.follow = self._compute_follow()
        self.predict = self._compute_predict()

    def _check_symbols(self) -> None:
        """Raises GrammarError for any symbol that is neither a TokenKind nor defined."""
        for name, alternatives in self.productions.items():
            for alternative in alternatives:
                for symbol in alternative:
                    if not is_terminal(symbol) and symbol not in self.productions:
                        raise GrammarError(
                            f"Production {name!r} references undefined {symbol!r}"
                        )

    def _compute_reachable(self) -> frozenset[str]:
        """Nonterminals reachable from the start symbol, the start included."""
        seen = {self.start}
        pending = [self.start]
        while pending:
            for alternative in self.productions[pending.pop()]:
                for symbol in alternative:
                    if not is_terminal(symbol) and symbol not in seen:
                        seen.add(symbol)
                        pending.append(symbol)
        return frozenset(seen)

    def _compute_nullable(self) -> frozenset[str]:
        """Fixed point: a nonterminal is nullable if some alternative is all-nullable."""
        nullable: set[str] = set()
        changed = True
        while changed:
            changed = False
            for name, alternatives in self.productions.items():
                if name in nullable:
                    continue
                if any(all(s in nullable for s in alt) for alt in alternatives):
                    nullable.add(name)
                    changed = True
        return frozenset(nullable)

    def first_of(
        self, sequence: Alternative, first: dict[str, set[K]] | None = None
    ) -> set[K]:
        """
        FIRST set of a symbol sequence, without epsilon.

        Args:
            sequence: Terminals and nonterminals, in order.
            first: FIRST table to read from; defaults to the finished `self.first`
                and is passed explicitly while that table is still being built.

        Returns:
            set[TokenKind]: Every kind that can begin the sequence.
        """
        table = self.first if first is None else first
        result: set[K] = set()
        for symbol in sequence:
            if is_terminal(symbol):
                result.add(symbol)  # type: ignore[arg-type]
                return result
            result |= table[symbol]
            if symbol not in self.nullable:
                return result
        return result

    def sequence_nullable(self, sequence: Alternative) -> bool:
        """
        Returns True when every symbol of `sequence` can derive the empty string.

        Terminals never can, so any terminal makes the sequence non-nullable;
        the empty sequence is nullable.
        """
        return all(not is_terminal(s) and s in self.nullable for s in sequence)

    def _compute_first(self) -> dict[str, set[K]]:
        """Fixed point over every production until no FIRST set grows."""
        first: dict[str, set[K]] = {name: set() for name in self.productions}
        changed = True
        while changed:
            changed = False
            for name, alternatives in self.productions.items():
                for alternative in alternatives:
                    extra = self.first_of(alternative, first) - first[name]
                    if extra:
                        first[name] |= extra
                        changed = True
        return first

    def _compute_follow(self) -> dict[str, set[K]]:
        """FOLLOW sets of the reachable nonterminals, seeded with EOF after the start."""
        follow: dict[str, set[K]] = {name: set() for name in self.reachable}
        follow[self.start].add(K.EOF)
        changed = True
        while changed:
            changed = False
            for name in self.reachable:
                for alternative in self.productions[name]:
                    for i, symbol in enumerate(alternative):
                        if is_terminal(symbol):
                            continue
                        rest = alternative[i + 1 :]
                        extra = self.first_of(rest)
                        if self.sequence_nullable(rest):
                            extra = extra | follow[name]
                        extra -= follow[symbol]  # type: ignore[index]
                        if extra:
                            follow[symbol] |= extra  # type: ignore[index]
                            changed = True
        return follow

    def _compute_predict(self) -> dict[str, dict[K, int]]:
        """
        Maps each reachable nonterminal and lookahead kind to an alternative index.

        Raises:
            GrammarError: If two alternatives of one nonterminal share a lookahead.
        """
        predict: dict[str, dict[K, int]] = {}
        for name in self.reachable:
            row: dict[K, int] = {}
            for index, alternative in enumerate(self.productions[name]):
                lookahead = self.first_of(alternative)
                if self.sequence_nullable(alternative):
                    lookahead |= self.follow[name]
                for kind in lookahead:
                    if kind in row:
                        raise GrammarError(
                            f"LL(1) conflict in {name!r} on {kind.value!r}: "
                            f"alternatives {row[kind]} and {index}"
                        )
                    row[kind] = index
            predict[name] = row
        return predict

    def choose(self, nonterminal: str, kind: K) -> int | None:
        """Returns the alternative index selected by `kind`, or None."""
        return self.predict[nonterminal].get(kind)

    def expected(self, nonterminal: str) -> frozenset[K]:
        """Every token kind that can legally appear where `nonterminal` begins."""
        return frozenset(self.predict[nonterminal])

    def terminals(self) -> frozenset[K]:
        """Every terminal used by the productions reachable from the start symbol."""
        return frozenset(
            symbol  # type: ignore[misc]
            for name in self.reachable
            for alternative in self.productions[name]
            for symbol in alternative
            if is_terminal(symbol)
        )


@lru_cache(maxsize=None)
def grammar_for(start: str) -> Grammar:
    """Returns the (cached) tables for parsing from `start`."""
    return Grammar(PRODUCTIONS, start)


ENTRY_POINTS = ("program", "stmt", "expr")

# Build the entry-point tables now so a non-LL(1) edit fails on import.
for _start in ENTRY_POINTS:
    grammar_for(_start)


__all__ = ["ENTRY_POINTS", "EMPTY", "PRODUCTIONS", "Grammar", "grammar_for", "is_terminal"]
