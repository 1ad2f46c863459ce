"""
Reader for Xcode ``project.pbxproj`` files (old-style ASCII property lists).

``extract_objects`` only balances braces to cut the ``objects`` table into
raw per-UUID literals; ``parse_literal`` turns one literal into Python
dicts, lists and strings when an object is actually needed.
"""

import re
from typing import Any, Dict, Optional, Tuple

from ..errors import ParseError

# Characters allowed in an unquoted plist string
_BARE_RE = re.compile(r"[A-Za-z0-9_$+/:.\-<>@~\\]+")

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\", "'": "'"}


class PlistScanner:
    """Cursor over plist text that knows about strings and comments."""

    def __init__(self, text: str, path: Optional[str] = None):
        self.text = text
        self.path = path
        self.pos = 0

    def error(self, message: str):
        line = self.text.count("\n", 0, self.pos) + 1
        raise ParseError(message, self.path, line)

    def skip_trivia(self):
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch.isspace():
                self.pos += 1
            elif text.startswith("/*", self.pos):
                end = text.find("*/", self.pos + 2)
                if end < 0:
                    self.error("unterminated comment")
                self.pos = end + 2
            elif text.startswith("//", self.pos):
                end = text.find("\n", self.pos)
                self.pos = len(text) if end < 0 else end + 1
            else:
                return

    def peek(self) -> str:
        self.skip_trivia()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def expect(self, ch: str):
        if self.peek() != ch:
            found = self.text[self.pos] if self.pos < len(self.text) else "end of file"
            self.error(f"expected '{ch}', found '{found}'")
        self.pos += 1

    def read_string(self) -> str:
        ch = self.peek()
        if ch == '"':
            return self._read_quoted()
        match = _BARE_RE.match(self.text, self.pos)
        if not match:
            self.error(f"unexpected character {ch!r}" if ch else "unexpected end of file")
        self.pos = match.end()
        return match.group(0)

    def _read_quoted(self) -> str:
        start = self.pos
        self.pos += 1
        out = []
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == "\\" and self.pos + 1 < len(text):
                nxt = text[self.pos + 1]
                out.append(_ESCAPES.get(nxt, nxt))
                self.pos += 2
                continue
            self.pos += 1
            if ch == '"':
                return "".join(out)
            out.append(ch)
        self.pos = start
        self.error("unterminated string")

    def skip_value(self) -> Tuple[int, int]:
        """Skip one value without interpreting it; return its (start, end) span."""
        self.skip_trivia()
        start = self.pos
        if self.peek() not in "{(":
            self.read_string()
            return start, self.pos

        stack = []
        text = self.text
        while self.pos < len(text):
            self.skip_trivia()
            if self.pos >= len(text):
                break
            ch = text[self.pos]
            if ch == '"':
                self._read_quoted()
                continue
            if ch in "{(":
                stack.append("}" if ch == "{" else ")")
            elif ch in "})":
                if not stack or stack.pop() != ch:
                    self.error(f"unbalanced '{ch}'")
                if not stack:
                    self.pos += 1
                    return start, self.pos
            self.pos += 1
        self.pos = start
        self.error("unbalanced braces")

    def read_value(self) -> Any:
        ch = self.peek()
        if ch == "{":
            return self._read_dict()
        if ch == "(":
            return self._read_list()
        return self.read_string()

    def _read_dict(self) -> Dict[str, Any]:
        self.expect("{")
        result: Dict[str, Any] = {}
        while self.peek() != "}":
            if not self.peek():
                self.error("unterminated dictionary")
            key = self.read_string()
            self.expect("=")
            result[key] = self.read_value()
            self.expect(";")
        self.pos += 1
        return result

    def _read_list(self) -> list:
        self.expect("(")
        result = []
        while self.peek() != ")":
            if not self.peek():
                self.error("unterminated list")
            result.append(self.read_value())
            if self.peek() == ",":
                self.pos += 1
        self.pos += 1
        return result


def extract_objects(text: str, path: Optional[str] = None) -> Tuple[Dict[str, str], Dict[str, Any]]:
    """
    Split a pbxproj into its object table and top-level keys.

    Returns:
        (objects, top_level) where objects maps each UUID to the raw text of
        its literal and top_level holds the remaining top-level entries
        parsed (``rootObject``, ``archiveVersion``, ...)
    """
    scanner = PlistScanner(text, path)
    scanner.expect("{")
    objects: Dict[str, str] = {}
    top_level: Dict[str, Any] = {}
    while scanner.peek() != "}":
        if not scanner.peek():
            scanner.error("unterminated project file")
        key = scanner.read_string()
        scanner.expect("=")
        if key == "objects":
            scanner.expect("{")
            while scanner.peek() != "}":
                if not scanner.peek():
                    scanner.error("unterminated objects table")
                uuid = scanner.read_string()
                scanner.expect("=")
                start, end = scanner.skip_value()
                objects[uuid] = text[start:end]
                scanner.expect(";")
            scanner.pos += 1
        else:
            top_level[key] = scanner.read_value()
        scanner.expect(";")
    return objects, top_level


def parse_literal(text: str, path: Optional[str] = None) -> Any:
    return PlistScanner(text, path).read_value()
