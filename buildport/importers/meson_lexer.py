"""Tokenizer for meson.build files."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..errors import ParseError


class TokenKind(str, Enum):
    IDENT = "ident"
    STRING = "string"
    NUMBER = "number"
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    LBRACE = "{"
    RBRACE = "}"
    COMMA = ","
    COLON = ":"
    DOT = "."
    OPERATOR = "operator"
    NEWLINE = "newline"
    EOF = "eof"


@dataclass
class Token:
    kind: TokenKind
    text: str
    line: int

    def is_op(self, *ops: str) -> bool:
        return self.kind is TokenKind.OPERATOR and self.text in ops

    def is_keyword(self, *words: str) -> bool:
        return self.kind is TokenKind.IDENT and self.text in words


_PUNCTUATION = {
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    ",": TokenKind.COMMA,
    ":": TokenKind.COLON,
    ".": TokenKind.DOT,
}

_OPENERS = {TokenKind.LPAREN, TokenKind.LBRACKET, TokenKind.LBRACE}
_CLOSERS = {TokenKind.RPAREN, TokenKind.RBRACKET, TokenKind.RBRACE}

_TWO_CHAR_OPS = ("+=", "==", "!=", "<=", ">=")
_ONE_CHAR_OPS = "=+-*/%<>?"

_STRING_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", "'": "'", '"': '"'}


class Lexer:
    """
    Turns meson.build text into a token list.

    Newlines are significant as statement separators, except inside
    brackets and after a trailing backslash.
    """

    def __init__(self, text: str, path: Optional[str] = None):
        self.text = text
        self.path = path
        self.pos = 0
        self.line = 1
        self.depth = 0

    def _error(self, message: str, line: Optional[int] = None):
        raise ParseError(message, self.path, line or self.line)

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.text[index] if index < len(self.text) else ""

    def _read_string(self, quote: str) -> str:
        start_line = self.line
        if self.text.startswith(quote * 3, self.pos):
            end = self.text.find(quote * 3, self.pos + 3)
            if end < 0:
                self._error("unterminated multi-line string", start_line)
            body = self.text[self.pos + 3:end]
            self.line += body.count("\n")
            self.pos = end + 3
            return body

        self.pos += 1
        out = []
        while True:
            ch = self._peek()
            if ch == "" or ch == "\n":
                self._error("unterminated string", start_line)
            if ch == "\\":
                nxt = self._peek(1)
                out.append(_STRING_ESCAPES.get(nxt, "\\" + nxt))
                self.pos += 2
                continue
            self.pos += 1
            if ch == quote:
                return "".join(out)
            out.append(ch)

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == "\n":
                if self.depth == 0 and tokens and tokens[-1].kind is not TokenKind.NEWLINE:
                    tokens.append(Token(TokenKind.NEWLINE, "\n", self.line))
                self.line += 1
                self.pos += 1
            elif ch in " \t\r":
                self.pos += 1
            elif ch == "\\" and self._peek(1) == "\n":
                self.pos += 2
                self.line += 1
            elif ch == "#":
                end = text.find("\n", self.pos)
                self.pos = len(text) if end < 0 else end
            elif ch in "'\"":
                line = self.line
                tokens.append(Token(TokenKind.STRING, self._read_string(ch), line))
            elif ch.isdigit():
                start = self.pos
                while self._peek().isalnum():
                    self.pos += 1
                tokens.append(Token(TokenKind.NUMBER, text[start:self.pos], self.line))
            elif ch.isalpha() or ch == "_":
                start = self.pos
                while self._peek().isalnum() or self._peek() == "_":
                    self.pos += 1
                tokens.append(Token(TokenKind.IDENT, text[start:self.pos], self.line))
            elif ch in _PUNCTUATION:
                kind = _PUNCTUATION[ch]
                if kind in _OPENERS:
                    self.depth += 1
                elif kind in _CLOSERS:
                    if self.depth == 0:
                        self._error(f"unbalanced '{ch}'")
                    self.depth -= 1
                tokens.append(Token(kind, ch, self.line))
                self.pos += 1
            elif text[self.pos:self.pos + 2] in _TWO_CHAR_OPS:
                tokens.append(Token(TokenKind.OPERATOR, text[self.pos:self.pos + 2], self.line))
                self.pos += 2
            elif ch in _ONE_CHAR_OPS:
                tokens.append(Token(TokenKind.OPERATOR, ch, self.line))
                self.pos += 1
            else:
                self._error(f"unexpected character {ch!r}")

        if self.depth != 0:
            self._error("unbalanced brackets at end of file")
        if tokens and tokens[-1].kind is not TokenKind.NEWLINE:
            tokens.append(Token(TokenKind.NEWLINE, "\n", self.line))
        tokens.append(Token(TokenKind.EOF, "", self.line))
        return tokens


def tokenize(text: str, path: Optional[str] = None) -> List[Token]:
    return Lexer(text, path).tokenize()
