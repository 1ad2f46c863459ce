"""
Low-level reader for CMake scripts.

``extract_commands`` splits a script into ``name(args)`` invocations and
``tokenize_arguments`` splits one argument span into tokens. Neither step
knows anything about variables or command semantics.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..errors import ParseError

_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_BRACKET_OPEN_RE = re.compile(r"\[(=*)\[")

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0"}


@dataclass
class Command:
    name: str
    args_text: str
    line: int

    @property
    def key(self) -> str:
        """Command names are case-insensitive."""
        return self.name.lower()


@dataclass
class Token:
    text: str
    quoted: bool = False
    bracket: bool = False


def _line_at(text: str, pos: int) -> int:
    return text.count("\n", 0, pos) + 1


def _skip_bracket(text: str, pos: int, path: Optional[str]) -> Tuple[str, int]:
    """Consume a ``[==[ ... ]==]`` block starting at pos, return (body, end)."""
    match = _BRACKET_OPEN_RE.match(text, pos)
    closer = "]" + match.group(1) + "]"
    start = match.end()
    end = text.find(closer, start)
    if end < 0:
        raise ParseError("unterminated bracket argument", path, _line_at(text, pos))
    return text[start:end], end + len(closer)


def _skip_comment(text: str, pos: int, path: Optional[str]) -> int:
    """pos points at '#'; return the index just after the comment."""
    if _BRACKET_OPEN_RE.match(text, pos + 1):
        _, end = _skip_bracket(text, pos + 1, path)
        return end
    end = text.find("\n", pos)
    return len(text) if end < 0 else end


def _skip_string(text: str, pos: int, path: Optional[str]) -> int:
    """pos points at the opening quote; return the index after the closing one."""
    i = pos + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            return i + 1
        i += 1
    raise ParseError("unterminated string", path, _line_at(text, pos))


def extract_commands(text: str, path: Optional[str] = None) -> List[Command]:
    """
    Split a CMake script into command invocations.

    Parentheses, quotes and comments are tracked so that ``)`` or ``#``
    inside a string never ends a command.

    Raises:
        ParseError: on unterminated strings or unbalanced parentheses
    """
    commands: List[Command] = []
    i = 0
    length = len(text)
    while i < length:
        ch = text[i]
        if ch.isspace():
            i += 1
            continue
        if ch == "#":
            i = _skip_comment(text, i, path)
            continue
        match = _IDENT_RE.match(text, i)
        if not match:
            if ch == ")":
                raise ParseError("unbalanced ')'", path, _line_at(text, i))
            raise ParseError(f"unexpected character {ch!r}", path, _line_at(text, i))

        name = match.group(0)
        start_line = _line_at(text, i)
        i = match.end()
        while i < length and text[i] in " \t":
            i += 1
        if i >= length or text[i] != "(":
            raise ParseError(f"expected '(' after '{name}'", path, start_line)

        i += 1
        args_start = i
        depth = 1
        while i < length:
            ch = text[i]
            if ch == '"':
                i = _skip_string(text, i, path)
                continue
            if ch == "#":
                i = _skip_comment(text, i, path)
                continue
            if ch == "\\":
                i += 2
                continue
            if ch == "[" and _BRACKET_OPEN_RE.match(text, i):
                _, i = _skip_bracket(text, i, path)
                continue
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0:
                    break
            i += 1
        if depth != 0:
            raise ParseError(f"unbalanced parentheses in '{name}'", path, start_line)

        commands.append(Command(name, text[args_start:i], start_line))
        i += 1
    return commands


def _read_quoted(text: str, pos: int) -> Tuple[str, int]:
    out = []
    i = pos + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            if nxt == "\n":
                pass
            elif nxt in _ESCAPES:
                out.append(_ESCAPES[nxt])
            elif nxt == ";":
                out.append("\\;")
            else:
                out.append(nxt)
            i += 2
            continue
        if ch == '"':
            return "".join(out), i + 1
        out.append(ch)
        i += 1
    raise ParseError("unterminated string")


def tokenize_arguments(args_text: str) -> List[Token]:
    """
    Split the text between a command's parentheses into tokens.

    Quoted arguments keep their spaces, bracket arguments are taken
    verbatim, and comments are dropped. Parentheses nested in an argument
    list become tokens of their own.
    """
    tokens: List[Token] = []
    i = 0
    length = len(args_text)
    while i < length:
        ch = args_text[i]
        if ch.isspace():
            i += 1
            continue
        if ch == "#":
            i = _skip_comment(args_text, i, None)
            continue
        if ch in "()":
            tokens.append(Token(ch))
            i += 1
            continue
        if ch == '"':
            value, i = _read_quoted(args_text, i)
            tokens.append(Token(value, quoted=True))
            continue
        if ch == "[" and _BRACKET_OPEN_RE.match(args_text, i):
            body, i = _skip_bracket(args_text, i, None)
            if body.startswith("\n"):
                body = body[1:]
            tokens.append(Token(body, quoted=True, bracket=True))
            continue

        # Unquoted argument; an embedded "..." segment continues the word
        out = []
        while i < length:
            ch = args_text[i]
            if ch.isspace() or ch in "()#":
                break
            if ch == '"':
                value, i = _read_quoted(args_text, i)
                out.append('"' + value + '"')
                continue
            if ch == "\\" and i + 1 < length:
                nxt = args_text[i + 1]
                out.append("\\;" if nxt == ";" else _ESCAPES.get(nxt, nxt))
                i += 2
                continue
            out.append(ch)
            i += 1
        tokens.append(Token("".join(out)))
    return tokens
