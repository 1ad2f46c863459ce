"""
Scoped variable store for the CMake importer.

Every variable holds a list of values. ``add_subdirectory`` gets a child
scope that reads through to its parent; ``include`` shares the caller's
scope. Expansion follows two rules:

* an unquoted argument that is exactly ``${NAME}`` becomes one argument per
  value (zero arguments for an empty list);
* a reference embedded in a longer argument, or inside quotes, is replaced
  by the values joined with ``;``.

References to unknown variables are left in the text untouched.
"""

import os
import re
from typing import Dict, Iterable, List, Optional

from .cmake_scanner import Token

# Innermost reference first: names may not contain another reference
_REF_RE = re.compile(r"\$(ENV)?\{([^${}]*)\}")
_WHOLE_RE = re.compile(r"^\$\{([^${}]*)\}$")
_TRUE_VALUES = {"1", "ON", "YES", "TRUE", "Y"}

MAX_EXPANSION_PASSES = 16


def split_list(value: str) -> List[str]:
    """Split a CMake list string on unescaped semicolons."""
    items = re.split(r"(?<!\\);", value)
    return [item.replace("\\;", ";") for item in items if item != ""]


def is_true(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.upper() in _TRUE_VALUES or (value.isdigit() and value != "0")


class VariableScope:
    """A name -> list-of-values table with an optional parent."""

    _UNSET = object()

    def __init__(self, parent: Optional["VariableScope"] = None):
        self.parent = parent
        self._vars: Dict[str, object] = {}

    def child(self) -> "VariableScope":
        return VariableScope(self)

    def get(self, name: str) -> Optional[List[str]]:
        scope = self
        while scope is not None:
            if name in scope._vars:
                value = scope._vars[name]
                return None if value is VariableScope._UNSET else list(value)
            scope = scope.parent
        return None

    def get_first(self, name: str) -> Optional[str]:
        values = self.get(name)
        return values[0] if values else None

    def set(self, name: str, values: Iterable[str]) -> None:
        flat: List[str] = []
        for value in values:
            flat.extend(split_list(value))
        self._vars[name] = flat

    def set_parent(self, name: str, values: Iterable[str]) -> None:
        """``set(... PARENT_SCOPE)``: a no-op at the top-level scope."""
        if self.parent is not None:
            self.parent.set(name, values)

    def append(self, name: str, values: Iterable[str]) -> None:
        current = self.get(name) or []
        self.set(name, current + list(values))

    def unset(self, name: str) -> None:
        self._vars[name] = VariableScope._UNSET

    def is_true(self, name: str) -> bool:
        return is_true(self.get_first(name))

    def _substitute(self, match: "re.Match") -> str:
        if match.group(1):
            value = os.environ.get(match.group(2))
            return match.group(0) if value is None else value
        values = self.get(match.group(2))
        if values is None:
            return match.group(0)
        return ";".join(values)

    def expand(self, text: str) -> str:
        """Expand every reference in place, innermost first."""
        for _ in range(MAX_EXPANSION_PASSES):
            expanded = _REF_RE.sub(self._substitute, text)
            if expanded == text:
                break
            text = expanded
        return text

    def expand_word(self, text: str) -> List[str]:
        """Expand one unquoted list element, honoring whole-token references."""
        for _ in range(MAX_EXPANSION_PASSES):
            whole = _WHOLE_RE.match(text)
            if whole:
                values = self.get(whole.group(1))
                return [text] if values is None else values
            expanded = _REF_RE.sub(self._substitute, text)
            if expanded == text:
                break
            text = expanded
        return [text]

    def expand_tokens(self, tokens: Iterable[Token]) -> List[Token]:
        """
        Expand variable references in a tokenized argument list.

        Quoted arguments stay one token; unquoted arguments are split on
        ``;`` and each element may expand into several tokens.
        """
        result: List[Token] = []
        for token in tokens:
            if token.bracket:
                result.append(token)
            elif token.quoted:
                result.append(Token(self.expand(token.text), quoted=True))
            else:
                for element in split_list(token.text) if token.text else [""]:
                    for value in self.expand_word(element):
                        result.append(Token(value))
        return result
