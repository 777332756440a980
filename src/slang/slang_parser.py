"""
SLang Language Parser

Recognizes SLang token streams with a predictive (LL(1)) recursive-descent
parser and builds syntax trees for the expressions it meets.

Every grammar nonterminal in `slang_grammar.PRODUCTIONS` has a method of the
same name here. A method starts by asking the grammar's predict table which
alternative the current token selects; when the table has no entry the parser
raises `UnexpectedToken` carrying the exact set of kinds the table would have
accepted. Matching a terminal consumes exactly one token. There is no
backtracking and no lookahead beyond the current token.

Supported Constructs
--------------------
- Global declarations: `in out loc(0) let color : vec4 = vec4(1, 0, 0, 1);`
- Functions: `vertex entry fn main(pos : vec2) -> vec4 { ... }`
- Statements: `return e;`, `x = e;`, `let x : vec3 = e;`, `const n = e;`
- Expressions, loosest first: `or`, `and`, comparisons (`== != < <= > >= & |`),
  `+ -`, `* / %`, unary `-`/`not`, then primaries (type constructors, calls,
  array lookups, array literals, numbers, booleans, parentheses).

Parser Behavior
---------------
- Fails fast: the first mismatch raises `UnexpectedToken`, nothing recovers.
- Binary operator levels are right-recursive, so a run of operators from one
  level nests to the right: `a - b - c` parses as `a - (b - c)`.
- Statements and declarations are validated but not materialized; the
  expressions embedded directly in them are collected, in source order.

Entry Points
------------
- `parse()`: Parse a full program; returns its top-level expression trees.
- `parse_statement()`: Parse a single statement; returns its expression trees.
- `parse_expression()`: Parse a single expression; returns its tree.

Raises
------
UnexpectedToken
    When the current token is not in the expected set of the production
    being parsed.
"""

from __future__ import annotations

import logging

from slang.slang_ast import (
    ArrayLiteral,
    ArrayLookup,
    BinaryExpr,
    BooleanLiteral,
    CallExpr,
    Expr,
    Identifier,
    NumberLiteral,
    UnaryExpr,
)
from slang.slang_constants import TokenKind as K
from slang.slang_errors import UnexpectedToken
from slang.slang_grammar import Grammar, grammar_for
from slang.slang_lexer import Token, scan

logger = logging.getLogger(__name__)

BinaryTail = tuple[Token, Expr] | None


def fold(lhs: Expr, tail: BinaryTail) -> Expr:
    if tail is None:
        return lhs
    op, rhs = tail
    return BinaryExpr(op, lhs, rhs)


class Parser:
    """
    SLang Parser Class

    Holds a token list ending with EOF and a single forward-only cursor into
    it. A parser is meant for one entry-point call.

    Attributes
    ----------
    tokens : list[Token]
        The input token stream, ending with an EOF token.
    position : int
        Index of the current token.
    grammar : Grammar
        Tables for the active entry point's start symbol.
    expressions : list[Expr]
        Expression trees embedded directly in the statements and declarations
        parsed so far, in source order.

    Raises
    ------
    ValueError
        If the token list does not end with an EOF token.
    """

    def __init__(self, tokens: list[Token]) -> None:
        if not tokens or tokens[-1].kind is not K.EOF:
            raise ValueError("Token stream must end with an EOF token")
        self.tokens: list[Token] = tokens
        self.position: int = 0
        self.grammar: Grammar = grammar_for("program")
        self.expressions: list[Expr] = []

    # -- Cursor -------------------------------------------------------------

    def current(self) -> Token:
        return self.tokens[min(self.position, len(self.tokens) - 1)]

    @property
    def at_end(self) -> bool:
        """True once every token, EOF included, has been consumed."""
        return self.position >= len(self.tokens)

    def advance(self) -> Token:
        tok = self.current()
        self.position += 1
        return tok

    def match(self, kind: K) -> Token:
        tok = self.current()
        if tok.kind is kind and not self.at_end:
            return self.advance()
        raise UnexpectedToken(tok, {kind})

    def choose(self, nonterminal: str) -> int:
        """Returns the alternative of `nonterminal` selected by the current token."""
        tok = self.current()
        alternative = None if self.at_end else self.grammar.choose(nonterminal, tok.kind)
        if alternative is None:
            raise UnexpectedToken(tok, self.grammar.expected(nonterminal))
        return alternative

    # -- Entry points -------------------------------------------------------

    def parse(self) -> list[Expr]:
        """Parse a full SLang program and return its top-level expression trees."""
        self.grammar = grammar_for("program")
        self.program()
        self.match(K.EOF)
        logger.debug(
            "accepted program: %d tokens, %d top-level expressions",
            len(self.tokens),
            len(self.expressions),
        )
        return self.expressions

    def parse_statement(self) -> list[Expr]:
        """Parse exactly one statement followed by EOF."""
        self.grammar = grammar_for("stmt")
        self.stmt()
        self.match(K.EOF)
        return self.expressions

    def parse_expression(self) -> Expr:
        """Parse exactly one expression followed by EOF."""
        self.grammar = grammar_for("expr")
        expr = self.expr()
        self.match(K.EOF)
        return expr

    def statement_expr(self) -> Expr:
        """Parse an expression embedded directly in a statement or declaration."""
        expr = self.expr()
        self.expressions.append(expr)
        logger.debug("parsed expression %r", expr)
        return expr

    # -- Top level ----------------------------------------------------------

    def program(self) -> None:
        """program -> global_stmt global_stmt_list"""
        self.choose("program")
        self.global_stmt()
        self.global_stmt_list()

    def global_stmt_list(self) -> None:
        """global_stmt_list -> global_stmt global_stmt_list | ε"""
        while self.choose("global_stmt_list") == 0:
            self.global_stmt()

    def global_stmt(self) -> None:
        """global_stmt -> function | scoped_var_decl"""
        if self.choose("global_stmt") == 0:
            self.function()
        else:
            self.scoped_var_decl()

    # -- Functions ----------------------------------------------------------

    def function(self) -> None:
        """function -> function_def compound_stmt"""
        self.choose("function")
        self.function_def()
        self.compound_stmt()

    def function_def(self) -> None:
        """function_def -> stage_attr entry_attr 'fn' ID parameters '->' types"""
        self.choose("function_def")
        self.stage_attr()
        self.entry_attr()
        self.match(K.FN)
        self.match(K.ID)
        self.parameters()
        self.match(K.ARROW)
        self.types()

    def stage_attr(self) -> None:
        """stage_attr -> 'vertex' | 'fragment' | ε"""
        if self.choose("stage_attr") != 2:  # vertex | fragment
            self.advance()

    def entry_attr(self) -> None:
        """entry_attr -> 'entry' | ε"""
        if self.choose("entry_attr") == 0:
            self.match(K.ENTRY)

    def parameters(self) -> None:
        """parameters -> '(' param_list ')'"""
        self.choose("parameters")
        self.match(K.LPAREN)
        self.param_list()
        self.match(K.RPAREN)

    def param_list(self) -> None:
        """param_list -> param param_list_tail | ε"""
        if self.choose("param_list") == 0:
            self.param()
            self.param_list_tail()

    def param_list_tail(self) -> None:
        """param_list_tail -> ',' param param_list_tail | ε"""
        while self.choose("param_list_tail") == 0:
            self.match(K.COMMA)
            self.param()

    def param(self) -> None:
        """param -> ID ':' types"""
        self.choose("param")
        self.match(K.ID)
        self.match(K.COLON)
        self.types()

    # -- Declarations -------------------------------------------------------

    def scoped_var_decl(self) -> None:
        """scoped_var_decl -> attr_list var_keyword ID ':' types opt_init ';'"""
        self.choose("scoped_var_decl")
        self.attr_list()
        self.var_keyword()
        self.match(K.ID)
        self.match(K.COLON)
        self.types()
        self.opt_init()
        self.match(K.SEMI)

    def attr_list(self) -> None:
        """attr_list -> attr attr_list | ε"""
        while self.choose("attr_list") == 0:
            self.attr()

    def attr(self) -> None:
        """attr -> 'in' | 'out' | 'loc' '(' NUM_LIT ')'"""
        if self.choose("attr") == 2:
            self.match(K.LOC)
            self.match(K.LPAREN)
            self.match(K.NUM_LIT)
            self.match(K.RPAREN)
        else:  # in | out
            self.advance()

    def var_keyword(self) -> None:
        """var_keyword -> 'let' | 'const'"""
        self.choose("var_keyword")
        self.advance()

    def opt_init(self) -> None:
        """opt_init -> '=' expr | ε"""
        if self.choose("opt_init") == 0:
            self.match(K.ASSIGN)
            self.statement_expr()

    # -- Statements ---------------------------------------------------------

    def compound_stmt(self) -> None:
        """compound_stmt -> '{' stmt_list '}'"""
        self.choose("compound_stmt")
        self.match(K.LBRACE)
        self.stmt_list()
        self.match(K.RBRACE)

    def stmt_list(self) -> None:
        """stmt_list -> stmt stmt_list | ε"""
        while self.choose("stmt_list") == 0:
            self.stmt()

    def stmt(self) -> None:
        """stmt -> 'return' expr ';' | ID '=' expr ';' | var_decl ';'"""
        alternative = self.choose("stmt")
        if alternative == 0:
            self.match(K.RETURN)
            self.statement_expr()
        elif alternative == 1:
            self.match(K.ID)
            self.match(K.ASSIGN)
            self.statement_expr()
        else:
            self.var_decl()
        self.match(K.SEMI)

    def var_decl(self) -> None:
        """var_decl -> var_keyword ID var_decl_tail"""
        self.choose("var_decl")
        self.var_keyword()
        self.match(K.ID)
        self.var_decl_tail()

    def var_decl_tail(self) -> None:
        """var_decl_tail -> ':' types opt_init | '=' expr"""
        if self.choose("var_decl_tail") == 0:
            self.match(K.COLON)
            self.types()
            self.opt_init()
        else:
            self.match(K.ASSIGN)
            self.statement_expr()

    # -- Expressions --------------------------------------------------------

    def expr(self) -> Expr:
        """expr -> and_expr expr_tail"""
        self.choose("expr")
        return fold(self.and_expr(), self.expr_tail())

    def expr_tail(self) -> BinaryTail:
        """expr_tail -> 'or' expr | ε"""
        if self.choose("expr_tail") == 0:
            return self.match(K.OR), self.expr()
        return None

    def and_expr(self) -> Expr:
        """and_expr -> comp_expr and_expr_tail"""
        self.choose("and_expr")
        return fold(self.comp_expr(), self.and_expr_tail())

    def and_expr_tail(self) -> BinaryTail:
        """and_expr_tail -> 'and' and_expr | ε"""
        if self.choose("and_expr_tail") == 0:
            return self.match(K.AND), self.and_expr()
        return None

    def comp_expr(self) -> Expr:
        """comp_expr -> add_expr comp_expr_tail"""
        self.choose("comp_expr")
        return fold(self.add_expr(), self.comp_expr_tail())

    def comp_expr_tail(self) -> BinaryTail:
        """comp_expr_tail -> comp_op comp_expr | ε"""
        if self.choose("comp_expr_tail") == 0:
            return self.comp_op(), self.comp_expr()
        return None

    def comp_op(self) -> Token:
        """comp_op -> '==' | '!=' | '<' | '<=' | '>' | '>=' | '&' | '|'"""
        self.choose("comp_op")
        return self.advance()

    def add_expr(self) -> Expr:
        """add_expr -> mul_expr add_expr_tail"""
        self.choose("add_expr")
        return fold(self.mul_expr(), self.add_expr_tail())

    def add_expr_tail(self) -> BinaryTail:
        """add_expr_tail -> add_op add_expr | ε"""
        if self.choose("add_expr_tail") == 0:
            return self.add_op(), self.add_expr()
        return None

    def add_op(self) -> Token:
        """add_op -> '+' | '-'"""
        self.choose("add_op")
        return self.advance()

    def mul_expr(self) -> Expr:
        """mul_expr -> unary_expr mul_expr_tail"""
        self.choose("mul_expr")
        return fold(self.unary_expr(), self.mul_expr_tail())

    def mul_expr_tail(self) -> BinaryTail:
        """mul_expr_tail -> mul_op mul_expr | ε"""
        if self.choose("mul_expr_tail") == 0:
            return self.mul_op(), self.mul_expr()
        return None

    def mul_op(self) -> Token:
        """mul_op -> '*' | '/' | '%'"""
        self.choose("mul_op")
        return self.advance()

    def unary_expr(self) -> Expr:
        """unary_expr -> unary_op unary_expr | base_expr"""
        if self.choose("unary_expr") == 0:
            op = self.unary_op()
            return UnaryExpr(op, self.unary_expr())
        return self.base_expr()

    def unary_op(self) -> Token:
        """unary_op -> '-' | 'not'"""
        self.choose("unary_op")
        return self.advance()

    def base_expr(self) -> Expr:
        """base_expr -> type_constructor | id_expr | array_literal | NUM_LIT |
            'true' | 'false' | grouped_expr
        """
        alternative = self.choose("base_expr")
        if alternative == 0:
            return self.type_constructor()
        if alternative == 1:
            return self.id_expr()
        if alternative == 2:
            return self.array_literal()
        if alternative == 3:
            return NumberLiteral(self.match(K.NUM_LIT))
        if alternative == 4:
            return BooleanLiteral(self.match(K.TRUE), True)
        if alternative == 5:
            return BooleanLiteral(self.match(K.FALSE), False)
        return self.grouped_expr()

    def type_constructor(self) -> Expr:
        """type_constructor -> base_type call_args"""
        self.choose("type_constructor")
        type_name = self.base_type()
        return CallExpr(Identifier(type_name), self.call_args())

    def id_expr(self) -> Expr:
        """id_expr -> ID id_expr_tail"""
        self.choose("id_expr")
        ident = Identifier(self.match(K.ID))
        tail = self.id_expr_tail()
        if tail is None:
            return ident
        if isinstance(tail, Expr):
            return ArrayLookup(ident, tail)
        return CallExpr(ident, tail)

    def id_expr_tail(self) -> Expr | list[Expr] | None:
        """Returns the index expression, the call arguments, or None for a bare name."""
        alternative = self.choose("id_expr_tail")
        if alternative == 0:
            self.match(K.LBRACK)
            index = self.expr()
            self.match(K.RBRACK)
            return index
        if alternative == 1:
            return self.call_args()
        return None

    def array_literal(self) -> Expr:
        """array_literal -> '[' expr_list ']'"""
        self.choose("array_literal")
        open_token = self.match(K.LBRACK)
        elements = self.expr_list()
        self.match(K.RBRACK)
        return ArrayLiteral(open_token, elements)

    def call_args(self) -> list[Expr]:
        """call_args -> '(' expr_list ')'"""
        self.choose("call_args")
        self.match(K.LPAREN)
        args = self.expr_list()
        self.match(K.RPAREN)
        return args

    def expr_list(self) -> list[Expr]:
        """expr_list -> expr expr_list_tail"""
        self.choose("expr_list")
        items = [self.expr()]
        while self.choose("expr_list_tail") == 0:
            self.match(K.COMMA)
            items.append(self.expr())
        return items

    def grouped_expr(self) -> Expr:
        """grouped_expr -> '(' expr ')'"""
        self.choose("grouped_expr")
        self.match(K.LPAREN)
        expr = self.expr()
        self.match(K.RPAREN)
        return expr

    # -- Types --------------------------------------------------------------

    def types(self) -> None:
        """types -> base_type opt_array_size"""
        self.choose("types")
        self.base_type()
        self.opt_array_size()

    def opt_array_size(self) -> None:
        """opt_array_size -> '[' NUM_LIT ']' | ε"""
        if self.choose("opt_array_size") == 0:
            self.match(K.LBRACK)
            self.match(K.NUM_LIT)
            self.match(K.RBRACK)

    def base_type(self) -> Token:
        """base_type -> 'vec2' | 'vec3' | 'vec4' | 'void'"""
        self.choose("base_type")
        return self.advance()


def parse_source(source: str) -> list[Expr]:
    """
    Scan and parse a full program.

    Args:
        source (str): SLang program text.

    Returns:
        list[Expr]: The top-level expression trees, in source order.

    Raises:
        ScanError: If the text contains a malformed token.
        UnexpectedToken: If the tokens do not form a program.
    """
    return Parser(scan(source)).parse()


def parse_expression_source(source: str) -> Expr:
    """
    Scan and parse a single expression.

    Args:
        source (str): Text holding exactly one expression.

    Returns:
        Expr: The expression tree.

    Raises:
        ScanError: If the text contains a malformed token.
        UnexpectedToken: If the tokens are not exactly one expression.
    """
    return Parser(scan(source)).parse_expression()


__all__ = ["Parser", "fold", "parse_expression_source", "parse_source"]
