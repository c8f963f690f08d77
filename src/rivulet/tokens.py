"""Rivulet tokenizer — lexes source into a flat token list."""

from __future__ import annotations

from .errors import RivuletError


# Token type constants
TK_NUMBER = "NUMBER"
TK_STRING = "STRING"
TK_IDENT = "IDENT"
TK_OP = "OP"
TK_EOF = "EOF"

KEYWORDS: set[str] = {
    "adjust",
    "and",
    "close",
    "combine",
    "dam",
    "false",
    "flow",
    "nil",
    "open",
    "or",
    "output",
    "print",
    "river",
    "true",
    "var",
}

# Multi-character operators, matched before single characters
MULTI_OPS: list[str] = [
    "->",
    "==",
    "!=",
    "<=",
    ">=",
]

SINGLE_OPS: set[str] = {
    "+",
    "-",
    "*",
    "/",
    "!",
    "<",
    ">",
    "=",
    "(",
    ")",
    "{",
    "}",
    ";",
    ",",
}


class TokenizeError(RivuletError):
    """Error during tokenization."""

    def __init__(self, msg: str, line: int, col: int):
        super().__init__(msg, line)
        self.col: int = col


class Token:
    """A token with type, lexeme, optional literal value, and position."""

    def __init__(
        self,
        type_: str,
        value: str,
        line: int,
        col: int,
        literal: float | str | None = None,
    ):
        self.type: str = type_
        self.value: str = value
        self.line: int = line
        self.col: int = col
        self.literal: float | str | None = literal

    def __repr__(self) -> str:
        return (
            "Token("
            + self.type
            + ", "
            + repr(self.value)
            + ", "
            + str(self.line)
            + ", "
            + str(self.col)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


def tokenize(source: str, errors: list[TokenizeError] | None = None) -> list[Token]:
    """Tokenize Rivulet source into a flat list ending with TK_EOF.

    Without an ``errors`` list the first lexical error is raised. With one,
    every error is appended to it and scanning carries on past the bad input,
    so a single pass can surface several problems.
    """
    tokens: list[Token] = []
    pos = 0
    line = 1
    col = 1
    length = len(source)

    def fail(err: TokenizeError) -> None:
        if errors is None:
            raise err
        errors.append(err)

    while pos < length:
        c = source[pos]

        # Newlines
        if c == "\n":
            pos += 1
            line += 1
            col = 1
            continue

        # Whitespace
        if c == " " or c == "\t" or c == "\r":
            pos += 1
            col += 1
            continue

        # Line comment: //
        if c == "/" and pos + 1 < length and source[pos + 1] == "/":
            while pos < length and source[pos] != "\n":
                pos += 1
            continue

        start_pos = pos
        start_line = line
        start_col = col

        # Number: digits with an optional fractional part
        if _is_digit(c):
            while pos < length and _is_digit(source[pos]):
                pos += 1
                col += 1
            if (
                pos + 1 < length
                and source[pos] == "."
                and _is_digit(source[pos + 1])
            ):
                pos += 1
                col += 1
                while pos < length and _is_digit(source[pos]):
                    pos += 1
                    col += 1
            raw = source[start_pos:pos]
            tokens.append(Token(TK_NUMBER, raw, start_line, start_col, float(raw)))
            continue

        # String literal: "..." (may span lines)
        if c == '"':
            pos += 1
            col += 1
            while pos < length and source[pos] != '"':
                if source[pos] == "\n":
                    line += 1
                    col = 1
                else:
                    col += 1
                pos += 1
            if pos >= length:
                fail(TokenizeError("Unterminated string.", start_line, start_col))
                continue
            pos += 1  # skip closing "
            col += 1
            raw = source[start_pos:pos]
            tokens.append(Token(TK_STRING, raw, start_line, start_col, raw[1:-1]))
            continue

        # Identifier or keyword
        if _is_alpha(c):
            while pos < length and _is_alnum(source[pos]):
                pos += 1
                col += 1
            word = source[start_pos:pos]
            if word in KEYWORDS:
                tokens.append(Token(word, word, start_line, start_col))
            else:
                tokens.append(Token(TK_IDENT, word, start_line, start_col))
            continue

        # Multi-character operators
        matched = False
        for op in MULTI_OPS:
            op_len = len(op)
            if source[pos : pos + op_len] == op:
                tokens.append(Token(TK_OP, op, start_line, start_col))
                pos += op_len
                col += op_len
                matched = True
                break
        if matched:
            continue

        # Single-character operators
        if c in SINGLE_OPS:
            tokens.append(Token(TK_OP, c, start_line, start_col))
            pos += 1
            col += 1
            continue

        fail(TokenizeError("Unexpected character.", line, col))
        pos += 1
        col += 1

    tokens.append(Token(TK_EOF, "", line, col))
    return tokens
