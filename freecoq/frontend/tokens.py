"""IR tokenizer - lexes source into a flat token list."""

from __future__ import annotations


# Token type constants
TK_INT = "INT"
TK_STRING = "STRING"
TK_IDENT = "IDENT"  # variables and functions: xs, go'
TK_CONID = "CONID"  # constructors and type constructors: Cons, List
TK_OP = "OP"  # operators and punctuation
TK_EOF = "EOF"

KEYWORDS: set[str] = {
    "case",
    "data",
    "else",
    "forall",
    "if",
    "module",
    "of",
    "then",
    "type",
    "where",
}

# Characters that make up operator symbols (Haskell's symbol class)
SYMBOL_CHARS: str = "!#$%&*+./<=>?@\\^|-~:"

PUNCTUATION: set[str] = {"(", ")", "[", "]", "{", "}", ",", ";", "`"}

# Operator spellings with a fixed syntactic meaning
RESERVED_OPS: set[str] = {"=", "->", "::", "|", "\\", "@"}

ESCAPE_MAP: dict[str, str] = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    '"': '"',
    "'": "'",
    "0": "\0",
}


class TokenizeError(Exception):
    """Error during tokenization."""

    def __init__(self, msg: str, line: int, col: int):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        super().__init__(msg + " at line " + str(line) + " col " + str(col))


class Token:
    """A token with type, value, and position."""

    def __init__(self, type_: str, value: str, line: int, col: int):
        self.type: str = type_
        self.value: str = value
        self.line: int = line
        self.col: int = col
        self.end_line: int = line
        self.end_col: int = col + len(value)

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


def _is_lower(c: str) -> bool:
    return (c >= "a" and c <= "z") or c == "_"


def _is_upper(c: str) -> bool:
    return c >= "A" and c <= "Z"


def _is_ident_char(c: str) -> bool:
    return _is_lower(c) or _is_upper(c) or _is_digit(c) or c == "'"


def tokenize(source: str) -> list[Token]:
    """Tokenize IR source into a flat list ending with TK_EOF."""
    tokens: list[Token] = []
    pos = 0
    line = 1
    col = 1
    length = len(source)

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

        # Line comment: -- (but not an operator such as -->)
        if c == "-" and pos + 1 < length and source[pos + 1] == "-":
            end = pos
            while end < length and source[end] == "-":
                end += 1
            if end >= length or source[end] not in SYMBOL_CHARS:
                while pos < length and source[pos] != "\n":
                    pos += 1
                continue

        start_line = line
        start_col = col

        # Integer literal
        if _is_digit(c):
            start = pos
            while pos < length and _is_digit(source[pos]):
                pos += 1
                col += 1
            tokens.append(Token(TK_INT, source[start:pos], start_line, start_col))
            continue

        # Identifier, keyword or constructor
        if _is_lower(c) or _is_upper(c):
            start = pos
            while pos < length and _is_ident_char(source[pos]):
                pos += 1
                col += 1
            word = source[start:pos]
            if _is_upper(c):
                tokens.append(Token(TK_CONID, word, start_line, start_col))
            elif word in KEYWORDS:
                tokens.append(Token(TK_OP, word, start_line, start_col))
            else:
                tokens.append(Token(TK_IDENT, word, start_line, start_col))
            continue

        # String literal
        if c == '"':
            pos += 1
            col += 1
            chars: list[str] = []
            while pos < length and source[pos] != '"':
                if source[pos] == "\n":
                    raise TokenizeError("unterminated string literal", start_line, start_col)
                if source[pos] == "\\":
                    if pos + 1 >= length or source[pos + 1] not in ESCAPE_MAP:
                        raise TokenizeError("invalid escape in string literal", line, col)
                    chars.append(ESCAPE_MAP[source[pos + 1]])
                    pos += 2
                    col += 2
                    continue
                chars.append(source[pos])
                pos += 1
                col += 1
            if pos >= length:
                raise TokenizeError("unterminated string literal", start_line, start_col)
            pos += 1
            col += 1
            tok = Token(TK_STRING, "".join(chars), start_line, start_col)
            tok.end_col = col
            tokens.append(tok)
            continue

        # Punctuation
        if c in PUNCTUATION:
            tokens.append(Token(TK_OP, c, start_line, start_col))
            pos += 1
            col += 1
            continue

        # Operator symbols, lexed greedily
        if c in SYMBOL_CHARS:
            start = pos
            while pos < length and source[pos] in SYMBOL_CHARS:
                pos += 1
                col += 1
            tokens.append(Token(TK_OP, source[start:pos], start_line, start_col))
            continue

        raise TokenizeError("unexpected character: " + repr(c), line, col)

    tokens.append(Token(TK_EOF, "", line, col))
    return tokens
