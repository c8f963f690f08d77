"""Rivulet parser — recursive descent, one method per grammar production."""

from __future__ import annotations

from .ast import (
    Binary,
    Block,
    Combine,
    Dam,
    Expr,
    ExprStmt,
    Flow,
    Grouping,
    Literal,
    Logical,
    Output,
    Print,
    River,
    Stmt,
    Unary,
    VarDecl,
    Variable,
)
from .errors import RivuletError
from .tokens import TK_EOF, TK_IDENT, TK_NUMBER, TK_OP, TK_STRING, Token

EQUALITY_OPS: set[str] = {"==", "!="}

COMPARE_OPS: set[str] = {"<", "<=", ">", ">="}

DAM_MODES: set[str] = {"open", "close", "adjust"}

# Keywords that begin a statement; recovery stops in front of these.
STMT_KEYWORDS: set[str] = {
    "river",
    "output",
    "combine",
    "flow",
    "dam",
    "var",
    "print",
}


class ParseError(RivuletError):
    """Parse error at a specific token."""

    def __init__(self, msg: str, tok: Token):
        super().__init__(msg, tok.line)
        self.tok: Token = tok

    @property
    def where(self) -> str:
        if self.tok.type == TK_EOF:
            return " at end"
        return " at '" + self.tok.value + "'"


class Parser:
    """Recursive descent parser for Rivulet."""

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0
        self.errors: list[ParseError] = []

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TK_EOF:
            self.pos += 1
        return tok

    def at(self, value: str) -> bool:
        tok = self.current()
        return tok.value == value and tok.type != TK_STRING

    def at_type(self, type_: str) -> bool:
        return self.current().type == type_

    def at_end(self) -> bool:
        return self.at_type(TK_EOF)

    def expect(self, value: str, msg: str) -> Token:
        if self.at(value):
            return self.advance()
        raise self.error(msg)

    def expect_ident(self, msg: str) -> Token:
        if self.at_type(TK_IDENT):
            return self.advance()
        raise self.error(msg)

    def error(self, msg: str) -> ParseError:
        return ParseError(msg, self.current())

    def _end_stmt(self) -> None:
        """Statements may be terminated by an optional ';'."""
        if self.at(";"):
            self.advance()

    def synchronize(self) -> None:
        """Discard tokens until the next likely statement boundary."""
        self.advance()
        while not self.at_end():
            if self.previous().value == ";" and self.previous().type == TK_OP:
                return
            if self.current().type in STMT_KEYWORDS:
                return
            self.advance()

    # ── Top Level ────────────────────────────────────────────

    def parse_program(self) -> list[Stmt]:
        stmts: list[Stmt] = []
        while not self.at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                stmts.append(stmt)
        return stmts

    def parse_declaration(self) -> Stmt | None:
        """Parse one statement, recording and recovering from a syntax error."""
        try:
            return self.parse_stmt()
        except ParseError as e:
            self.errors.append(e)
            self.synchronize()
            return None

    # ── Statements ───────────────────────────────────────────

    def parse_stmt(self) -> Stmt:
        tok = self.current()
        if tok.type == "river":
            stmt: Stmt = self.parse_river_stmt()
        elif tok.type == "output":
            stmt = self.parse_output_stmt()
        elif tok.type == "combine":
            stmt = self.parse_combine_stmt()
        elif tok.type == "flow":
            stmt = self.parse_flow_stmt()
        elif tok.type == "dam":
            stmt = self.parse_dam_stmt()
        elif tok.type == "var":
            stmt = self.parse_var_stmt()
        elif tok.type == "print":
            self.advance()
            stmt = Print(self.parse_expr())
        elif self.at("{"):
            stmt = Block(self.parse_block())
        else:
            stmt = ExprStmt(self.parse_expr())
        self._end_stmt()
        return stmt

    def parse_block(self) -> list[Stmt]:
        self.expect("{", "Expect '{' before block.")
        stmts: list[Stmt] = []
        while not self.at("}") and not self.at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                stmts.append(stmt)
        self.expect("}", "Expect '}' after block.")
        return stmts

    def parse_river_stmt(self) -> River:
        """River = 'river' IDENT ( '=' Expr )?"""
        self.advance()
        name = self.expect_ident("Expect river name.")
        flow_rate: Expr | None = None
        if self.at("="):
            self.advance()
            flow_rate = self.parse_expr()
        return River(name, flow_rate)

    def parse_output_stmt(self) -> Output:
        self.advance()
        return Output(self.expect_ident("Expect river name after 'output'."))

    def parse_combine_stmt(self) -> Combine:
        """Combine = 'combine' IDENT '=' IDENT ( '+' IDENT )*"""
        self.advance()
        name = self.expect_ident("Expect river name after 'combine'.")
        self.expect("=", "Expect '=' after combined river name.")
        sources: list[Token] = [self.expect_ident("Expect source river name.")]
        while self.at("+"):
            self.advance()
            sources.append(self.expect_ident("Expect source river name after '+'."))
        return Combine(name, sources)

    def parse_flow_stmt(self) -> Flow:
        """Flow = 'flow' IDENT '->' IDENT"""
        self.advance()
        source = self.expect_ident("Expect source river name after 'flow'.")
        self.expect("->", "Expect '->' after source river.")
        target = self.expect_ident("Expect target river name after '->'.")
        return Flow(source, target)

    def parse_dam_stmt(self) -> Dam:
        """Dam = 'dam' IDENT ( 'open' | 'close' | 'adjust' Expr )"""
        self.advance()
        river = self.expect_ident("Expect river name after 'dam'.")
        if self.current().type not in DAM_MODES:
            raise self.error("Expect dam mode 'open', 'close' or 'adjust'.")
        mode = self.advance()
        adjustment: Expr | None = None
        if mode.type == "adjust":
            adjustment = self.parse_expr()
        return Dam(river, mode, adjustment)

    def parse_var_stmt(self) -> VarDecl:
        self.advance()
        name = self.expect_ident("Expect variable name.")
        initializer: Expr | None = None
        if self.at("="):
            self.advance()
            initializer = self.parse_expr()
        return VarDecl(name, initializer)

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        return self.parse_or()

    def parse_or(self) -> Expr:
        """Or = And ( 'or' And )*"""
        left = self.parse_and()
        while self.at_type("or"):
            op = self.advance()
            right = self.parse_and()
            left = Logical(op, left, right)
        return left

    def parse_and(self) -> Expr:
        """And = Equality ( 'and' Equality )*"""
        left = self.parse_equality()
        while self.at_type("and"):
            op = self.advance()
            right = self.parse_equality()
            left = Logical(op, left, right)
        return left

    def parse_equality(self) -> Expr:
        """Equality = Compare ( ( '==' | '!=' ) Compare )*"""
        left = self.parse_compare()
        while self.at_type(TK_OP) and self.current().value in EQUALITY_OPS:
            op = self.advance()
            right = self.parse_compare()
            left = Binary(op, left, right)
        return left

    def parse_compare(self) -> Expr:
        """Compare = Sum ( CompOp Sum )*"""
        left = self.parse_sum()
        while self.at_type(TK_OP) and self.current().value in COMPARE_OPS:
            op = self.advance()
            right = self.parse_sum()
            left = Binary(op, left, right)
        return left

    def parse_sum(self) -> Expr:
        """Sum = Product ( ( '+' | '-' ) Product )*"""
        left = self.parse_product()
        while self.at("+") or self.at("-"):
            op = self.advance()
            right = self.parse_product()
            left = Binary(op, left, right)
        return left

    def parse_product(self) -> Expr:
        """Product = Unary ( ( '*' | '/' ) Unary )*"""
        left = self.parse_unary()
        while self.at("*") or self.at("/"):
            op = self.advance()
            right = self.parse_unary()
            left = Binary(op, left, right)
        return left

    def parse_unary(self) -> Expr:
        """Unary = ( '-' | '!' ) Unary | Primary"""
        if self.at("-") or self.at("!"):
            op = self.advance()
            operand = self.parse_unary()
            return Unary(op, operand)
        return self.parse_primary()

    def parse_primary(self) -> Expr:
        """Parse a primary expression."""
        tok = self.current()

        # Literals
        if tok.type == TK_NUMBER or tok.type == TK_STRING:
            self.advance()
            return Literal(tok.literal)
        if tok.type == "true":
            self.advance()
            return Literal(True)
        if tok.type == "false":
            self.advance()
            return Literal(False)
        if tok.type == "nil":
            self.advance()
            return Literal(None)

        if tok.type == TK_IDENT:
            self.advance()
            return Variable(tok)

        if self.at("("):
            self.advance()
            inner = self.parse_expr()
            self.expect(")", "Expect ')' after expression.")
            return Grouping(inner)

        raise self.error("Expect expression.")
