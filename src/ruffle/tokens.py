"""Token kinds and token representation for the Ruffle lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ruffle.source import Span


class TokenKind(Enum):
    # Symbols
    PERIOD = auto()
    COMMA = auto()
    SEMI = auto()
    BANG = auto()
    QUESTION = auto()
    COLON = auto()
    COLON_COLON = auto()
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LBRACE = auto()
    RBRACE = auto()
    ARROW = auto()
    FAT_ARROW = auto()

    # Arithmetic
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()

    # Comparison
    EQ_EQ = auto()
    EQ_EQ_EQ = auto()
    NOT_EQ = auto()
    NOT_EQ_EQ = auto()
    LESS = auto()
    LESS_EQ = auto()
    GREATER = auto()
    GREATER_EQ = auto()

    # Logical
    AND_AND = auto()
    OR_OR = auto()

    # Assignment
    ASSIGN = auto()
    PLUS_ASSIGN = auto()
    MINUS_ASSIGN = auto()
    STAR_ASSIGN = auto()
    SLASH_ASSIGN = auto()

    # Keywords
    LET = auto()
    FN = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    FOR = auto()
    RETURN = auto()
    CLASS = auto()
    IMPL = auto()
    STRUCT = auto()
    ENUM = auto()
    SELF = auto()
    SUPER = auto()
    USE = auto()
    MOD = auto()
    CONST = auto()
    STATIC = auto()

    # Literals
    INTEGER_LIT = auto()
    FLOAT_LIT = auto()
    STRING_LIT = auto()

    IDENTIFIER = auto()

    # Special
    EOF = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    span: Span


KEYWORDS: dict[str, TokenKind] = {
    "let": TokenKind.LET,
    "fn": TokenKind.FN,
    "if": TokenKind.IF,
    "else": TokenKind.ELSE,
    "while": TokenKind.WHILE,
    "for": TokenKind.FOR,
    "return": TokenKind.RETURN,
    "class": TokenKind.CLASS,
    "impl": TokenKind.IMPL,
    "struct": TokenKind.STRUCT,
    "enum": TokenKind.ENUM,
    "self": TokenKind.SELF,
    "super": TokenKind.SUPER,
    "use": TokenKind.USE,
    "mod": TokenKind.MOD,
    "const": TokenKind.CONST,
    "static": TokenKind.STATIC,
}

# Longest match first within each leading character.
OPERATORS: tuple[tuple[str, TokenKind], ...] = (
    ("===", TokenKind.EQ_EQ_EQ),
    ("!==", TokenKind.NOT_EQ_EQ),
    ("::", TokenKind.COLON_COLON),
    ("->", TokenKind.ARROW),
    ("=>", TokenKind.FAT_ARROW),
    ("==", TokenKind.EQ_EQ),
    ("!=", TokenKind.NOT_EQ),
    ("<=", TokenKind.LESS_EQ),
    (">=", TokenKind.GREATER_EQ),
    ("&&", TokenKind.AND_AND),
    ("||", TokenKind.OR_OR),
    ("+=", TokenKind.PLUS_ASSIGN),
    ("-=", TokenKind.MINUS_ASSIGN),
    ("*=", TokenKind.STAR_ASSIGN),
    ("/=", TokenKind.SLASH_ASSIGN),
    (".", TokenKind.PERIOD),
    (",", TokenKind.COMMA),
    (";", TokenKind.SEMI),
    ("!", TokenKind.BANG),
    ("?", TokenKind.QUESTION),
    (":", TokenKind.COLON),
    ("(", TokenKind.LPAREN),
    (")", TokenKind.RPAREN),
    ("[", TokenKind.LBRACKET),
    ("]", TokenKind.RBRACKET),
    ("{", TokenKind.LBRACE),
    ("}", TokenKind.RBRACE),
    ("+", TokenKind.PLUS),
    ("-", TokenKind.MINUS),
    ("*", TokenKind.STAR),
    ("/", TokenKind.SLASH),
    ("%", TokenKind.PERCENT),
    ("<", TokenKind.LESS),
    (">", TokenKind.GREATER),
    ("=", TokenKind.ASSIGN),
)

# Display form of each kind, for "expected ..." messages.
TOKEN_TEXT: dict[TokenKind, str] = {kind: text for text, kind in OPERATORS}
TOKEN_TEXT.update({kind: word for word, kind in KEYWORDS.items()})
TOKEN_TEXT.update({
    TokenKind.INTEGER_LIT: "integer literal",
    TokenKind.FLOAT_LIT: "float literal",
    TokenKind.STRING_LIT: "string literal",
    TokenKind.IDENTIFIER: "identifier",
    TokenKind.EOF: "end of input",
})


VALUED_KINDS: frozenset[TokenKind] = frozenset({
    TokenKind.INTEGER_LIT,
    TokenKind.FLOAT_LIT,
    TokenKind.STRING_LIT,
    TokenKind.IDENTIFIER,
})


def describe(kind: TokenKind) -> str:
    """Human-readable name of a token kind for messages."""
    text = TOKEN_TEXT[kind]
    if kind in VALUED_KINDS or kind == TokenKind.EOF:
        return text
    return f"'{text}'"
