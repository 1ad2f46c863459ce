"""Resolution of glob-style source patterns into concrete files."""

import glob
import os
from typing import List

GLOB_CHARS = set("*?[")


def is_pattern(path: str) -> bool:
    return any(ch in GLOB_CHARS for ch in path)


class SourceResolver:
    """
    Expand source entries relative to a project root.

    Plain paths are returned unchanged, even when they do not exist on
    disk. Patterns are expanded recursively (``**`` is honored) and sorted
    so results do not depend on directory iteration order.
    """

    def __init__(self, root: str):
        self.root = root

    def resolve(self, pattern: str) -> List[str]:
        if not is_pattern(pattern):
            return [pattern]
        base = pattern if os.path.isabs(pattern) else os.path.join(self.root, pattern)
        matches = []
        for match in sorted(glob.glob(base, recursive=True)):
            if not os.path.isfile(match):
                continue
            if os.path.isabs(pattern):
                matches.append(match)
            else:
                matches.append(os.path.relpath(match, self.root).replace(os.sep, "/"))
        return matches

    def resolve_all(self, patterns: List[str]) -> List[str]:
        result: List[str] = []
        for pattern in patterns:
            for path in self.resolve(pattern):
                if path not in result:
                    result.append(path)
        return result
