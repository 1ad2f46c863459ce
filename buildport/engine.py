"""
Translation engine.

Ties format detection, importers and exporters together. An engine holds
nothing but its options, so independent translations can run on separate
engine instances.
"""

import fnmatch
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .config import TranslationOptions
from .errors import FormatDetectionError, SourceNotFoundError, StrictModeViolation
from .exporters import get_exporter
from .exporters.compile_db import CompileCommandsExporter
from .importers import get_importer
from .model import BuildFormat, Project, TranslationWarning

logger = logging.getLogger(__name__)

# Checked in order; the first matching pattern wins
FILENAME_PATTERNS: List[Tuple[str, BuildFormat]] = [
    ("CMakeLists.txt", BuildFormat.CMAKE),
    ("*.cmake", BuildFormat.CMAKE),
    ("meson.build", BuildFormat.MESON),
    ("Makefile", BuildFormat.MAKEFILE),
    ("makefile", BuildFormat.MAKEFILE),
    ("GNUmakefile", BuildFormat.MAKEFILE),
    ("*.mk", BuildFormat.MAKEFILE),
    ("build.ninja", BuildFormat.NINJA),
    ("compile_commands.json", BuildFormat.COMPILE_COMMANDS),
    ("vcpkg.json", BuildFormat.VCPKG),
    ("conanfile.txt", BuildFormat.CONAN),
    ("conanfile.py", BuildFormat.CONAN),
    ("*.xcodeproj", BuildFormat.XCODE),
    ("project.pbxproj", BuildFormat.XCODE),
    ("*.vcxproj", BuildFormat.MSBUILD),
    ("*.sln", BuildFormat.MSBUILD),
    ("*.pc", BuildFormat.PKG_CONFIG),
]

# Manifests looked for when a directory is given, in priority order
DIRECTORY_PROBES: List[Tuple[str, BuildFormat]] = [
    ("CMakeLists.txt", BuildFormat.CMAKE),
    ("meson.build", BuildFormat.MESON),
    ("*.xcodeproj", BuildFormat.XCODE),
    ("*.sln", BuildFormat.MSBUILD),
    ("*.vcxproj", BuildFormat.MSBUILD),
    ("vcpkg.json", BuildFormat.VCPKG),
    ("conanfile.py", BuildFormat.CONAN),
    ("conanfile.txt", BuildFormat.CONAN),
    ("GNUmakefile", BuildFormat.MAKEFILE),
    ("Makefile", BuildFormat.MAKEFILE),
    ("makefile", BuildFormat.MAKEFILE),
]


@dataclass
class TranslationResult:
    """Outcome of a translate() call."""
    project: Project
    warnings: List[TranslationWarning] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)


def format_for_name(name: str) -> Optional[BuildFormat]:
    """Map a file or bundle name to its format, or None."""
    name = os.path.basename(name.rstrip("/" + os.sep))
    for pattern, fmt in FILENAME_PATTERNS:
        # Exact names are case sensitive, Makefile and makefile are both listed
        if "*" in pattern:
            if fnmatch.fnmatch(name.lower(), pattern.lower()):
                return fmt
        elif name == pattern:
            return fmt
    return None


class TranslationEngine:
    """Detects, imports, exports and translates build descriptions."""

    def __init__(self, options: Optional[TranslationOptions] = None):
        self.options = options or TranslationOptions()

    def _probe_directory(self, directory: str,
                         wanted: Optional[BuildFormat] = None) -> Optional[Tuple[BuildFormat, str]]:
        try:
            entries = sorted(os.listdir(directory))
        except OSError:
            return None
        for pattern, fmt in DIRECTORY_PROBES:
            if wanted is not None and fmt is not wanted:
                continue
            for entry in entries:
                if fnmatch.fnmatchcase(entry, pattern):
                    return fmt, os.path.join(directory, entry)
        return None

    def detect_format(self, path: str) -> BuildFormat:
        """
        Work out the build format of a path.

        Files and bundles are recognized by name. A plain directory is probed
        for well-known manifests.

        Raises:
            FormatDetectionError: when nothing matches
        """
        fmt = format_for_name(path)
        if fmt is not None:
            logger.info(f"Detected {fmt.value} format for {path}")
            return fmt
        if os.path.isdir(path):
            found = self._probe_directory(path)
            if found is not None:
                logger.info(f"Detected {found[0].value} format for {path} via {found[1]}")
                return found[0]
        raise FormatDetectionError(path)

    def _manifest_path(self, fmt: BuildFormat, path: str) -> str:
        """Resolve a directory to the manifest file the importer should read."""
        if not os.path.isdir(path) or format_for_name(path) is not None:
            return path
        found = self._probe_directory(path, fmt)
        if found is None:
            raise SourceNotFoundError(path)
        return found[1]

    def import_project(self, fmt: Optional[BuildFormat], path: str) -> Project:
        """
        Import a build description.

        Args:
            fmt: Source format, or None to detect it
            path: Manifest file, bundle or directory

        Returns:
            The populated Project, warnings included
        """
        if not os.path.exists(path):
            raise SourceNotFoundError(path)
        if fmt is None:
            fmt = self.detect_format(path)
        fmt = BuildFormat(fmt)
        importer = get_importer(fmt, self.options)
        manifest = self._manifest_path(fmt, path)
        logger.info(f"Importing {fmt.value} project from {manifest}")
        project = importer.import_file(manifest)
        logger.info(f"Imported {project.name}: {len(project.targets)} target(s), "
                    f"{len(project.dependencies)} dependency(ies), {len(project.warnings)} warning(s)")
        return project

    def export_project(self, project: Project, fmt: Optional[BuildFormat], path: str) -> List[str]:
        """
        Export a project. Nothing is written unless every document renders.

        Returns:
            Paths of the files written
        """
        if fmt is None:
            fmt = format_for_name(path)
            if fmt is None:
                raise FormatDetectionError(path)
        exporter = get_exporter(BuildFormat(fmt), self.options)
        logger.info(f"Exporting {project.name} as {exporter.format.value} to {path}")
        return exporter.write(project, path)

    def translate(self, src_fmt: Optional[BuildFormat], src_path: str,
                  dst_fmt: Optional[BuildFormat], dst_path: str) -> TranslationResult:
        """
        Import from one format and export to another.

        In strict mode any error-severity warning stops the translation
        after import and before anything is written.

        Raises:
            StrictModeViolation: strict mode and the import recorded errors
        """
        project = self.import_project(src_fmt, src_path)
        if self.options.strict and project.has_errors():
            logger.error(f"Strict mode: not exporting {project.name}")
            raise StrictModeViolation(project.errors(), project)

        outputs = self.export_project(project, dst_fmt, dst_path)
        exported_fmt = BuildFormat(dst_fmt) if dst_fmt is not None else format_for_name(dst_path)
        if self.options.emit_compile_commands and exported_fmt is not BuildFormat.COMPILE_COMMANDS:
            directory = os.path.dirname(outputs[0]) if outputs else dst_path
            if directory.endswith(".xcodeproj"):
                directory = os.path.dirname(directory)
            sidecar = os.path.join(directory, "compile_commands.json")
            outputs += CompileCommandsExporter(self.options).write(project, sidecar)
        return TranslationResult(project=project, warnings=list(project.warnings), outputs=outputs)
