from typing import Any

import pytest
from hypothesis import given
from hypothesis import strategies as st

from slang.slang_ast import BinaryExpr, CallExpr, Expr, Identifier, NumberLiteral
from slang.slang_constants import TokenKind
from slang.slang_errors import ParseError, UnexpectedToken
from slang.slang_grammar import grammar_for
from slang.slang_lexer import Span, TextCoord, Token, scan
from slang.slang_parser import Parser, parse_expression_source, parse_source

EXPR_FIRST = {
    "(", "-", "[", "ID", "NUM_LIT", "false", "not", "true",
    "vec2", "vec3", "vec4", "void",
}  # fmt: skip
PROGRAM_FIRST = {"const", "entry", "fn", "fragment", "in", "let", "loc", "out", "vertex"}
BINARY_OPS = {
    "%", "*", "/", "+", "-", "==", "!=", "<", "<=", ">", ">=", "&", "|", "and", "or",
}  # fmt: skip
EXPR_FOLLOW = {";", "]", ")", ","}


def make_token(kind: TokenKind, lexeme: str | None = None) -> Token:
    here = TextCoord(1, 1)
    return Token(kind, kind.value if lexeme is None else lexeme, Span(here, here))


def make_tokens(*kinds: TokenKind) -> list[Token]:
    return [make_token(k) for k in kinds] + [make_token(TokenKind.EOF, "")]


def prune(node: Any) -> Any:
    """Remove source positions so trees can be compared by shape."""
    if isinstance(node, list):
        return [prune(n) for n in node]
    if isinstance(node, dict):
        return {
            k: prune(v)
            for k, v in node.items()
            if k not in ("line", "col") and not (k == "children" and v == [])
        }
    return node


def shape(source: str) -> Any:
    return prune(parse_expression_source(source).to_dict())


def ident(name: str) -> dict[str, Any]:
    return {"kind": "identifier", "value": name}


def num(text: str) -> dict[str, Any]:
    return {"kind": "number", "value": text}


def binary(op: str, left: Any, right: Any) -> dict[str, Any]:
    return {"kind": "binary", "value": op, "children": [left, right]}


def parse_error(source: str, entry: str = "parse") -> UnexpectedToken:
    with pytest.raises(UnexpectedToken) as excinfo:
        getattr(Parser(scan(source)), entry)()
    return excinfo.value


def spelled(err: UnexpectedToken) -> set[str]:
    return set(err.expected_spellings())


# -- Accepted programs ------------------------------------------------------


@pytest.mark.parametrize(
    "source",
    [
        "let x : vec2[4] = [1,2,3,4];",
        "fn f ( x : void ) -> void { return x; }",
        "entry fn f() -> void {}",
        "fragment fn f() -> void {}",
        "vertex fn f() -> void {}",
        "vertex entry fn f() -> void {}",
        "in out loc(0) let color : vec4;",
        "loc(1) in let uv : vec2;",
        "const scale : vec3 = vec3(1, 2, 3);",
        "let a : vec2; let b : vec3[2] = [vec3(0, 0, 0), vec3(1, 1, 1)];",
        """
        fn add(a : vec2, b : vec2) -> vec2 {
            let c : vec2 = a + b;
            const d = c * 2;
            let e : vec2;
            c = d;
            return c;
        }
        """,
        "fn g() -> vec4[2] { return [vec4(0,0,0,1), vec4(1,1,1,1)]; }",
        "fn h(xs : vec2[3]) -> void { return xs[0] + f(xs[1], -xs[2]) % 2; }",
        "fn c() -> void { return a < b < c and not d or e != f & g | h >= 1.5; }",
        "fn u() -> void { return - - not (x); }",
        "fn e() -> void { return f(g(x)); }",
        """
        in loc(0) let position : vec3;
        out loc(0) let color : vec4;
        vertex entry fn main() -> void {
            color = vec4(position[0], position[1], position[2], 1.0);
        }
        fragment entry fn shade(tint : vec4) -> vec4 { return color * tint; }
        """,
    ],
)
def test_valid_programs_are_accepted(source: str) -> None:
    parser = Parser(scan(source))
    parser.parse()
    assert parser.at_end


def test_parse_returns_top_level_expressions_in_order() -> None:
    source = """
    let a : vec2 = x;
    fn f() -> void { y = 1 + 2; let w = g(p, q); return z; }
    """
    exprs = parse_source(source)
    assert [e.kind for e in exprs] == ["identifier", "binary", "call", "identifier"]
    assert [e.value() for e in exprs] == ["x", "+", "g", "z"]


def test_nested_expressions_are_not_collected_separately() -> None:
    exprs = parse_source("fn f() -> void { return g(a, [b, c]); }")
    assert len(exprs) == 1
    assert isinstance(exprs[0], CallExpr)


def test_declarations_without_initializer_yield_no_expressions() -> None:
    assert parse_source("in let a : vec2; out let b : vec4;") == []


def test_parse_statement_returns_statement_expressions() -> None:
    parser = Parser(scan("let v = a + 1;"))
    (expr,) = parser.parse_statement()
    assert prune(expr.to_dict()) == binary("+", ident("a"), num("1"))
    assert parser.at_end


def test_parse_expression_consumes_everything() -> None:
    parser = Parser(scan("f(x) + y[0]"))
    parser.parse_expression()
    assert parser.at_end


# -- Rejected input ---------------------------------------------------------


def test_assignment_missing_operand_reports_expression_starts() -> None:
    err = parse_error("x = 1 +;", "parse_statement")
    assert err.token.kind is TokenKind.SEMI
    assert (err.token.line, err.token.col) == (1, 8)
    assert spelled(err) == EXPR_FIRST
    assert str(err) == (
        "Line 1, Col 8: Unexpected token ';', expected one of: "
        "( - ID NUM_LIT [ false not true vec2 vec3 vec4 void"
    )


def test_empty_program_is_rejected() -> None:
    err = parse_error("")
    assert err.token.kind is TokenKind.EOF
    assert spelled(err) == PROGRAM_FIRST
    assert "Unexpected token 'EOF'" in str(err)


def test_statement_at_top_level_is_rejected() -> None:
    err = parse_error("x = 1;")
    assert err.token.lexeme == "x"
    assert spelled(err) == PROGRAM_FIRST


def test_missing_semicolon_after_return_value() -> None:
    err = parse_error("fn f() -> void { return 1 }")
    assert err.token.kind is TokenKind.RBRACE
    assert spelled(err) == BINARY_OPS | EXPR_FOLLOW


def test_identifier_tail_expected_set() -> None:
    err = parse_error("fn f() -> void { return a b; }")
    assert err.token.lexeme == "b"
    assert spelled(err) == BINARY_OPS | EXPR_FOLLOW | {"[", "("}


def test_optional_array_size_includes_follow_set() -> None:
    err = parse_error("let x : vec2")
    assert err.token.kind is TokenKind.EOF
    assert spelled(err) == {"[", "{", ")", ",", "=", ";"}


def test_stage_attribute_must_precede_function() -> None:
    err = parse_error("vertex let x : vec2;")
    assert spelled(err) == {"entry", "fn"}


def test_entry_before_stage_is_rejected() -> None:
    err = parse_error("entry vertex fn f() -> void {}")
    assert err.token.kind is TokenKind.VERTEX
    assert spelled(err) == {"fn"}


def test_parameter_requires_type() -> None:
    err = parse_error("fn f(x) -> void {}")
    assert err.token.kind is TokenKind.RPAREN
    assert err.expected == {TokenKind.COLON}


def test_location_requires_number() -> None:
    err = parse_error("loc(x) let a : vec2;")
    assert err.expected == {TokenKind.NUM_LIT}


def test_unknown_type_name() -> None:
    err = parse_error("let a : float;")
    assert spelled(err) == {"vec2", "vec3", "vec4", "void"}


def test_global_declaration_requires_type() -> None:
    err = parse_error("let a = 1;")
    assert err.expected == {TokenKind.COLON}


def test_empty_array_literal_is_rejected() -> None:
    err = parse_error("[]", "parse_expression")
    assert err.token.kind is TokenKind.RBRACK
    assert spelled(err) == EXPR_FIRST


def test_expression_entry_point_accepts_eof_after_expression() -> None:
    err = parse_error("a b", "parse_expression")
    assert spelled(err) == BINARY_OPS | {"[", "(", "EOF", ")", ",", "]"}


def test_parse_error_is_a_syntax_error() -> None:
    with pytest.raises(ParseError):
        parse_source("fn")
    with pytest.raises(SyntaxError):
        parse_source("fn")


def test_parser_requires_eof_terminated_tokens() -> None:
    with pytest.raises(ValueError, match="EOF"):
        Parser([])
    with pytest.raises(ValueError, match="EOF"):
        Parser(scan("x")[:-1])


def test_eof_cannot_be_consumed_twice() -> None:
    parser = Parser(scan("x"))
    parser.parse_expression()
    with pytest.raises(UnexpectedToken):
        parser.match(TokenKind.EOF)


non_expr_kinds = sorted(
    set(TokenKind) - grammar_for("expr").expected("expr"), key=lambda k: k.value
)


@given(st.sampled_from(non_expr_kinds))  # type: ignore[misc]
def test_expression_rejects_every_kind_outside_first_set(kind: TokenKind) -> None:
    bad = make_token(kind)
    with pytest.raises(UnexpectedToken) as excinfo:
        Parser([bad, make_token(TokenKind.EOF, "")]).parse_expression()
    assert excinfo.value.token == bad
    assert excinfo.value.expected == grammar_for("expr").expected("expr")


non_program_kinds = sorted(
    set(TokenKind) - grammar_for("program").expected("program"), key=lambda k: k.value
)


@given(st.sampled_from(non_program_kinds))  # type: ignore[misc]
def test_program_rejects_every_kind_outside_first_set(kind: TokenKind) -> None:
    tokens = [make_token(kind), make_token(TokenKind.EOF, "")]
    with pytest.raises(UnexpectedToken) as excinfo:
        Parser(tokens).parse()
    assert excinfo.value.token is tokens[0]
    assert spelled(excinfo.value) == PROGRAM_FIRST


def test_parser_works_on_hand_built_tokens() -> None:
    tokens = make_tokens(TokenKind.ID, TokenKind.MULT, TokenKind.NUM_LIT)
    expr = Parser(tokens).parse_expression()
    assert isinstance(expr, BinaryExpr)
    assert expr.op.kind is TokenKind.MULT


# -- Tree shapes ------------------------------------------------------------


def test_subtraction_nests_to_the_right() -> None:
    assert shape("a - b - c") == binary("-", ident("a"), binary("-", ident("b"), ident("c")))


def test_and_nests_to_the_right() -> None:
    assert shape("a and b and c") == binary(
        "and", ident("a"), binary("and", ident("b"), ident("c"))
    )


def test_chained_comparison_is_legal() -> None:
    assert shape("a < b < c") == binary("<", ident("a"), binary("<", ident("b"), ident("c")))


def test_parentheses_override_nesting() -> None:
    assert shape("(a - b) - c") == binary("-", binary("-", ident("a"), ident("b")), ident("c"))


@pytest.mark.parametrize(
    "source,expected",
    [
        ("a + b * c", binary("+", ident("a"), binary("*", ident("b"), ident("c")))),
        ("a * b + c", binary("+", binary("*", ident("a"), ident("b")), ident("c"))),
        ("a or b and c", binary("or", ident("a"), binary("and", ident("b"), ident("c")))),
        ("a == b + 1", binary("==", ident("a"), binary("+", ident("b"), num("1")))),
        ("a & b and c", binary("and", binary("&", ident("a"), ident("b")), ident("c"))),
        (
            "-a * b",
            binary("*", {"kind": "unary", "value": "-", "children": [ident("a")]}, ident("b")),
        ),
        (
            "not a == b",
            binary("==", {"kind": "unary", "value": "not", "children": [ident("a")]}, ident("b")),
        ),
    ],
)
def test_precedence_levels(source: str, expected: Any) -> None:
    assert shape(source) == expected


def test_array_lookup() -> None:
    assert shape("x[i + 1]") == {
        "kind": "array_lookup",
        "children": [ident("x"), binary("+", ident("i"), num("1"))],
    }


def test_function_call_with_mixed_arguments() -> None:
    assert shape("f(1, true, [2, 3])") == {
        "kind": "call",
        "value": "f",
        "children": [
            num("1"),
            {"kind": "boolean", "value": True},
            {"kind": "array", "children": [num("2"), num("3")]},
        ],
    }


def test_type_constructor_is_a_call_on_the_type_name() -> None:
    expr = parse_expression_source("vec3(1.0, 0., 2)")
    assert isinstance(expr, CallExpr)
    assert expr.callee.token.kind is TokenKind.VEC3
    assert [arg.value() for arg in expr.args] == ["1.0", "0.", "2"]


@pytest.mark.parametrize("source", ["f()", "void()", "vec2(1, )"])
def test_calls_need_at_least_one_argument(source: str) -> None:
    err = parse_error(source, "parse_expression")
    assert err.token.kind is TokenKind.RPAREN
    assert spelled(err) == EXPR_FIRST


def test_false_literal() -> None:
    assert shape("false") == {"kind": "boolean", "value": False}


def test_operator_token_is_kept_verbatim() -> None:
    expr = parse_expression_source("a\n  <= b")
    assert isinstance(expr, BinaryExpr)
    assert expr.op == Token(TokenKind.LE, "<=", Span(TextCoord(2, 3), TextCoord(2, 5)))
    assert (expr.line, expr.col) == (2, 3)
    assert isinstance(expr.left, Identifier)
    assert (expr.left.line, expr.left.col) == (1, 1)


def test_moderately_deep_nesting_parses() -> None:
    depth = 40
    expr = parse_expression_source("(" * depth + "x" + ")" * depth)
    assert expr == Identifier(scan(" " * depth + "x")[0])


def test_long_operator_chain_nests_right() -> None:
    expr = parse_expression_source(" + ".join(["1"] * 100))
    depth = 0
    while isinstance(expr, BinaryExpr):
        assert isinstance(expr.left, NumberLiteral)
        expr = expr.right
        depth += 1
    assert depth == 99


def test_pathological_nesting_exhausts_the_stack() -> None:
    depth = 5000
    with pytest.raises(RecursionError):
        parse_expression_source("(" * depth + "x" + ")" * depth)


# -- Properties -------------------------------------------------------------

names = st.sampled_from(["a", "b", "c", "x", "y1", "_t"])
same_level_ops = st.sampled_from(
    ["or", "and", "==", "<", "&", "|", "+", "-", "*", "/", "%"]
)


@given(st.lists(names, min_size=2, max_size=12), same_level_ops)  # type: ignore[misc]
def test_same_operator_chains_are_right_nested(operands: list[str], op: str) -> None:
    expr: Expr = parse_expression_source(f" {op} ".join(operands))
    seen: list[str] = []
    while isinstance(expr, BinaryExpr):
        assert expr.op.lexeme == op
        assert isinstance(expr.left, Identifier)
        seen.append(expr.left.name)
        expr = expr.right
    assert isinstance(expr, Identifier)
    assert seen + [expr.name] == operands


leaves = st.one_of(
    names,
    st.from_regex(r"[0-9]{1,3}(\.[0-9]{1,2})?", fullmatch=True),
    st.sampled_from(["true", "false"]),
)


def extend(children: st.SearchStrategy[str]) -> st.SearchStrategy[str]:
    binary_ops = st.sampled_from(sorted(BINARY_OPS))
    return st.one_of(
        st.tuples(children, binary_ops, children).map(" ".join),
        st.tuples(st.sampled_from(["-", "not "]), children).map("".join),
        children.map(lambda e: f"({e})"),
        st.tuples(names, children).map(lambda t: f"{t[0]}[{t[1]}]"),
        st.tuples(
            st.sampled_from(["f", "vec2", "vec3", "vec4", "void"]),
            st.lists(children, min_size=1, max_size=3),
        ).map(lambda t: f"{t[0]}({', '.join(t[1])})"),
        st.lists(children, min_size=1, max_size=3).map(lambda xs: f"[{', '.join(xs)}]"),
    )


expressions = st.recursive(leaves, extend, max_leaves=12)


@given(expressions)  # type: ignore[misc]
def test_generated_programs_are_accepted_and_fully_consumed(source: str) -> None:
    program = (
        f"let g : vec4 = {source};\n"
        f"fn main(p : vec2) -> void {{ p = {source}; return {source}; }}"
    )
    tokens = scan(program)
    parser = Parser(tokens)
    exprs = parser.parse()
    assert parser.at_end
    assert parser.position == len(tokens)
    assert len(exprs) == 3
    expected = prune(parse_expression_source(source).to_dict())
    assert [prune(e.to_dict()) for e in exprs] == [expected] * 3
