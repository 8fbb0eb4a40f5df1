"""Tests for the expression parser and AST rendering."""

import pytest

from elengine import (
    BinaryOp,
    Conditional,
    FunctionCall,
    Identifier,
    Lexer,
    LexerError,
    Literal,
    MemberAccess,
    ParseError,
    Parser,
    ParserOptions,
    UnaryOp,
    parse,
    to_source,
)


# =============================================================================
# Primaries and postfix
# =============================================================================


class TestPrimaries:
    def test_parse_literals(self):
        assert parse("42") == Literal(42)
        assert parse("3.5") == Literal(3.5)
        assert parse('"hello"') == Literal("hello")
        assert parse("null") == Literal(None)
        assert parse("false").value is False

    def test_parse_identifier(self):
        assert parse("user") == Identifier("user")

    def test_parse_grouping(self):
        assert parse("((x))") == Identifier("x")

    def test_member_and_index_access(self):
        ast = parse("a.b[c].d")

        assert ast == MemberAccess(
            MemberAccess(MemberAccess(Identifier("a"), "b"), Identifier("c")),
            "d",
        )

    def test_index_with_expression(self):
        ast = parse("items[i + 1]")
        assert ast == MemberAccess(
            Identifier("items"), BinaryOp("+", Identifier("i"), Literal(1))
        )

    def test_unprefixed_function_call(self):
        assert parse("now()") == FunctionCall("now", (), None)

    def test_prefixed_function_call(self):
        ast = parse('fn:contains(name, "x")')

        assert ast == FunctionCall(
            "contains", (Identifier("name"), Literal("x")), "fn"
        )

    def test_postfix_access_on_call_result(self):
        ast = parse('fn:split(s, ",")[0]')

        assert isinstance(ast, MemberAccess)
        assert isinstance(ast.object, FunctionCall)
        assert ast.member == Literal(0)

    def test_nested_calls(self):
        ast = parse("fn:length(fn:trim(x))")
        assert ast.arguments[0] == FunctionCall("trim", (Identifier("x"),), "fn")


# =============================================================================
# Operators and precedence
# =============================================================================


class TestOperators:
    def test_multiplication_binds_tighter(self):
        assert parse("1 + 2 * 3") == BinaryOp(
            "+", Literal(1), BinaryOp("*", Literal(2), Literal(3))
        )

    def test_left_associative_arithmetic(self):
        assert parse("10 - 4 - 3") == BinaryOp(
            "-", BinaryOp("-", Literal(10), Literal(4)), Literal(3)
        )

    def test_keyword_spellings_are_canonical(self):
        assert parse("a and b") == parse("a && b")
        assert parse("a or b") == parse("a || b")
        assert parse("not a") == parse("!a")
        assert parse("a eq b") == parse("a == b")
        assert parse("a ne b") == parse("a != b")
        assert parse("a lt b") == parse("a < b")
        assert parse("a le b") == parse("a <= b")
        assert parse("a gt b") == parse("a > b")
        assert parse("a ge b") == parse("a >= b")
        assert parse("a div b") == parse("a / b")
        assert parse("a mod b") == parse("a % b")

    def test_and_binds_tighter_than_or(self):
        assert parse("a || b && c") == BinaryOp(
            "||", Identifier("a"), BinaryOp("&&", Identifier("b"), Identifier("c"))
        )

    def test_relational_binds_tighter_than_equality(self):
        assert parse("a < b == c > d") == BinaryOp(
            "==",
            BinaryOp("<", Identifier("a"), Identifier("b")),
            BinaryOp(">", Identifier("c"), Identifier("d")),
        )

    def test_unary_operators(self):
        assert parse("-x") == UnaryOp("-", Identifier("x"))
        assert parse("not empty x") == UnaryOp("!", UnaryOp("empty", Identifier("x")))
        assert parse("- -1") == UnaryOp("-", UnaryOp("-", Literal(1)))

    def test_unary_binds_tighter_than_binary(self):
        assert parse("-a * b") == BinaryOp(
            "*", UnaryOp("-", Identifier("a")), Identifier("b")
        )

    def test_empty_applies_to_postfix_expression(self):
        assert parse("empty a.b") == UnaryOp(
            "empty", MemberAccess(Identifier("a"), "b")
        )

    def test_conditional(self):
        assert parse("a ? 1 : 2") == Conditional(Identifier("a"), Literal(1), Literal(2))

    def test_conditional_is_right_associative(self):
        assert parse("a ? b : c ? d : e") == Conditional(
            Identifier("a"),
            Identifier("b"),
            Conditional(Identifier("c"), Identifier("d"), Identifier("e")),
        )

    def test_conditional_has_lowest_precedence(self):
        ast = parse("x > 1 || y ? a + 1 : b")

        assert isinstance(ast, Conditional)
        assert ast.condition.operator == "||"
        assert ast.then_branch.operator == "+"


# =============================================================================
# Errors
# =============================================================================


class TestParseErrors:
    def test_unclosed_parenthesis(self):
        with pytest.raises(ParseError) as exc_info:
            parse("(1 + 2")

        assert "Expected ')'" in str(exc_info.value)
        assert exc_info.value.position == 6

    def test_trailing_tokens(self):
        with pytest.raises(ParseError) as exc_info:
            parse("1 2")

        assert exc_info.value.position == 2
        assert "Unexpected token '2'" in str(exc_info.value)

    def test_empty_expression(self):
        with pytest.raises(ParseError, match="Empty expression"):
            parse("   ")

    def test_missing_operand(self):
        with pytest.raises(ParseError, match="Unexpected end"):
            parse("1 +")

    def test_chained_equality_needs_parentheses(self):
        with pytest.raises(ParseError, match="Chained equality"):
            parse("a == b == c")

        assert parse("(a == b) == c") == BinaryOp(
            "==", BinaryOp("==", Identifier("a"), Identifier("b")), Identifier("c")
        )

    def test_call_on_member_is_rejected(self):
        with pytest.raises(ParseError, match="Function call requires a function name"):
            parse("a.b(1)")

    def test_keyword_is_not_a_member_name(self):
        with pytest.raises(ParseError, match="Expected identifier after '.'"):
            parse("a.empty")

    def test_reserved_word(self):
        with pytest.raises(ParseError, match="Reserved word 'instanceof'"):
            parse("1 + instanceof")

    def test_conditional_without_colon(self):
        with pytest.raises(ParseError, match="Expected ':'"):
            parse("a ? b")

    def test_unclosed_index(self):
        with pytest.raises(ParseError, match="Expected ']'"):
            parse("a[1")

    def test_unclosed_argument_list(self):
        with pytest.raises(ParseError, match="Expected '\\)' after arguments"):
            parse("fn:f(1, 2")

    def test_lexer_errors_propagate(self):
        with pytest.raises(LexerError):
            parse("a + @")

    def test_syntax_error_reported_before_later_lexical_error(self):
        # Tokens are pulled on demand, so "@" is never reached
        with pytest.raises(ParseError):
            parse("1 2 @")

    def test_error_token_carries_line_and_column(self):
        with pytest.raises(ParseError) as exc_info:
            parse("a +\n  * b")

        assert exc_info.value.line == 2
        assert exc_info.value.column == 3


# =============================================================================
# Options and inputs
# =============================================================================


class TestParserOptions:
    def test_depth_limit(self):
        options = ParserOptions(max_depth=3)

        assert parse("(1)", options) == Literal(1)
        with pytest.raises(ParseError, match="nested too deeply"):
            parse("((((1))))", options)

    def test_depth_limit_counts_unary_chains(self):
        with pytest.raises(ParseError, match="nested too deeply"):
            parse("-" * 10 + "1", ParserOptions(max_depth=5))

    def test_default_depth_accepts_reasonable_nesting(self):
        source = "(" * 20 + "1" + ")" * 20
        assert parse(source) == Literal(1)

    def test_conditional_can_be_disabled(self):
        options = ParserOptions(conditional_allowed=False)

        with pytest.raises(ParseError, match="Conditional expressions are not allowed"):
            parse("a ? 1 : 2", options)
        assert parse("a + 1", options) == BinaryOp("+", Identifier("a"), Literal(1))

    def test_match_operator_when_enabled(self):
        options = ParserOptions(match_allowed=True)

        assert parse("name ~= 'A*' && ok", options) == BinaryOp(
            "&&",
            BinaryOp("~=", Identifier("name"), Literal("A*")),
            Identifier("ok"),
        )

    def test_join_operator_when_enabled(self):
        options = ParserOptions(join_allowed=True)

        assert parse("a # b * 2", options) == BinaryOp(
            "#", Identifier("a"), BinaryOp("*", Identifier("b"), Literal(2))
        )

    @pytest.mark.parametrize("source,operator", [("a ~= b", "~="), ("a # b", "#")])
    def test_optional_operators_are_off_by_default(self, source, operator):
        with pytest.raises(ParseError) as exc_info:
            parse(source)

        assert f"Operator '{operator}' is not allowed" in str(exc_info.value)
        assert exc_info.value.position == 2

    def test_enabling_one_operator_leaves_the_other_off(self):
        with pytest.raises(ParseError, match="'#' is not allowed"):
            parse("a # b", ParserOptions(match_allowed=True))

    def test_parser_accepts_tokens(self):
        tokens = Lexer("price * 2").tokenize()
        assert Parser(tokens).parse() == BinaryOp(
            "*", Identifier("price"), Literal(2)
        )

    def test_parser_accepts_tokens_without_eof(self):
        tokens = Lexer("1 +").tokenize()[:-1]
        with pytest.raises(ParseError, match="Unexpected end"):
            Parser(tokens).parse()

    def test_parse_is_deterministic(self):
        source = 'a.b[c] > 1 && fn:trim(d) != "" ? -x : y'
        assert parse(source) == parse(source)


class TestToSource:
    @pytest.mark.parametrize(
        "source",
        [
            "1 + 2 * 3",
            "(1 + 2) * 3",
            'a.b[c].d ? "x\\"y" : -1 + 2',
            "not empty items || fn:length(s) >= 3",
            "a ? b : c ? d : e",
            "x[0][1].y",
            "null == false",
        ],
    )
    def test_rendered_source_reparses_to_same_tree(self, source):
        ast = parse(source)
        assert parse(to_source(ast)) == ast

    def test_numeric_base_is_parenthesized(self):
        ast = MemberAccess(Literal(1), "x")

        assert to_source(ast) == "(1).x"
        assert parse(to_source(ast)) == ast

    def test_optional_operators_render(self):
        options = ParserOptions(match_allowed=True, join_allowed=True)
        ast = parse("a # 'b' ~= c", options)

        assert to_source(ast) == "(a # \"b\") ~= c"
        assert parse(to_source(ast), options) == ast

    def test_rendering_uses_symbolic_operators(self):
        assert to_source(parse("a and b eq 1")) == "a && (b == 1)"
