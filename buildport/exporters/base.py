"""
Exporter base class.

An exporter renders a Project into one or more text documents in memory.
Files are only written once every document has been rendered, and each one
goes through a temporary file and ``os.replace`` so a failed export never
leaves a truncated file behind.
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from ..config import TranslationOptions
from ..model import BuildFormat, Project, Target

logger = logging.getLogger(__name__)

C_EXTENSIONS = (".c",)
CXX_EXTENSIONS = (".cpp", ".cc", ".cxx", ".c++", ".C", ".mm")
HEADER_EXTENSIONS = (".h", ".hh", ".hpp", ".hxx", ".inl", ".ipp")


def is_c_source(path: str) -> bool:
    return path.endswith(C_EXTENSIONS)


def object_path(target: Target, source: str) -> str:
    """Object file location for a source, kept apart per target."""
    stem = os.path.splitext(source.lstrip("/").replace("..", "__"))[0]
    return f"build/{target.name}/{stem}.o"


def artifact_name(target: Target, platform: str = "unix") -> str:
    """File name of the linked product of a target."""
    if target.kind.value == "static_library":
        return f"{target.name}.lib" if platform == "windows" else f"lib{target.name}.a"
    if target.kind.value == "shared_library":
        return f"{target.name}.dll" if platform == "windows" else f"lib{target.name}.so"
    return target.name


def write_atomic(path: str, content: str):
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".buildport-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


class Exporter(ABC):
    """Base exporter class."""

    format: BuildFormat
    default_filename: str

    def __init__(self, options: Optional[TranslationOptions] = None):
        self.options = options or TranslationOptions()

    @abstractmethod
    def render(self, project: Project) -> str:
        """
        Render the project in the target format.

        Args:
            project: Project to render

        Returns:
            The main document's text
        """
        pass

    def resolve_path(self, path: str) -> str:
        """Map an output location to the main document path."""
        if os.path.isdir(path) or path.endswith(("/", os.sep)):
            return os.path.join(path, self.default_filename)
        return path

    def outputs(self, project: Project, path: str) -> Dict[str, str]:
        """
        Render every document this export produces.

        Returns:
            Mapping of file path to content; nothing is written yet
        """
        return {self.resolve_path(path): self.render(project)}

    def write(self, project: Project, path: str) -> List[str]:
        """
        Render and then write the export.

        Returns:
            Paths of the files written
        """
        documents = self.outputs(project, path)
        for file_path, content in documents.items():
            write_atomic(file_path, content)
            logger.info(f"Wrote {self.format.value} output to {file_path}")
        return list(documents)
