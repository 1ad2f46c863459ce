"""
Shared pieces for importers.

Importers that follow file inclusions (CMake ``add_subdirectory``/``include``,
Meson ``subdir``) pass an IncludeGuard down their call chain. The guard's
visited set stops cycles; its depth counter stops arbitrarily deep chains.
"""

import logging
import os
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, Optional, Set

from ..config import DEFAULT_MAX_INCLUDE_DEPTH, TranslationOptions
from ..errors import SourceNotFoundError
from ..model import BuildFormat, Project

logger = logging.getLogger(__name__)


class IncludeGuard:
    """Visited-path set plus a depth counter for recursive imports."""

    def __init__(self, max_depth: int = DEFAULT_MAX_INCLUDE_DEPTH):
        self.max_depth = max_depth
        self.depth = 0
        self.visited: Set[str] = set()

    def visit(self, path: str) -> bool:
        """
        Mark a file as parsed.

        Returns:
            False when the file was already visited, True otherwise
        """
        key = os.path.normcase(os.path.realpath(path))
        if key in self.visited:
            return False
        self.visited.add(key)
        return True

    @property
    def exhausted(self) -> bool:
        return self.depth >= self.max_depth

    @contextmanager
    def descend(self) -> Iterator[None]:
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1


def read_text(path: str) -> str:
    if not os.path.isfile(path):
        raise SourceNotFoundError(path)
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def project_path(root: str, directory: str, path: str) -> str:
    """
    Express a path from a build file relative to the project root.

    Relative paths are taken relative to ``directory`` (the directory of the
    file that mentioned them). Paths outside the root stay absolute.
    Unexpanded variable references are kept as written.
    """
    path = path.replace("\\", "/")
    if "$" in path:
        return path
    full = path if os.path.isabs(path) else os.path.join(directory, path)
    full = os.path.normpath(full)
    rel = os.path.relpath(full, root)
    if rel == ".." or rel.startswith(".." + os.sep):
        return full.replace(os.sep, "/")
    return rel.replace(os.sep, "/")


class Importer(ABC):
    """Base class for everything that turns a foreign build file into a Project."""

    format: BuildFormat

    def __init__(self, options: Optional[TranslationOptions] = None):
        self.options = options or TranslationOptions()

    @abstractmethod
    def import_file(self, path: str) -> Project:
        """
        Import a build description.

        Args:
            path: Path to the build file (or bundle directory)

        Returns:
            A fully populated Project, even when parts of the input were skipped
        """
        pass

    def new_guard(self) -> IncludeGuard:
        return IncludeGuard(self.options.max_include_depth)

    @staticmethod
    def default_name(path: str) -> str:
        """Project name fallback: the directory holding the build file."""
        directory = os.path.dirname(os.path.abspath(path))
        return os.path.basename(directory) or "project"
