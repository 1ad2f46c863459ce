"""
Conan manifest importer.

conanfile.txt is an INI-like file and is read section by section.
conanfile.py is Python, but it is scanned with regular expressions rather
than executed: only literal attribute assignments and ``self.requires()``
style calls are recognized.
"""

import logging
import os
import re
from typing import List, Optional

from ..model import BuildFormat, Dependency, DependencyKind, Project, Severity
from .base import Importer, read_text

logger = logging.getLogger(__name__)

_SECTION_RE = re.compile(r"^\[([A-Za-z_]+)\]$")
_CLASS_RE = re.compile(r"^class\s+(\w+)\s*\(\s*ConanFile\s*\)", re.MULTILINE)
_ATTRIBUTE_RE = re.compile(r"^\s+(name|version|description|url|homepage|license)\s*=\s*([\"'])(.*?)\2",
                           re.MULTILINE)
_REQUIRES_ATTR_RE = re.compile(
    r"^\s+(requires|tool_requires|build_requires|test_requires)\s*=\s*(\[[^\]]*\]|\([^)]*\)|[\"'][^\"']*[\"'])",
    re.MULTILINE)
_REQUIRES_CALL_RE = re.compile(r"self\.(requires|tool_requires|build_requires|test_requires)\(\s*([\"'])(.+?)\2")
_STRING_RE = re.compile(r"([\"'])(.+?)\1")

_SECTION_KINDS = {
    "requires": DependencyKind.BUILD,
    "tool_requires": DependencyKind.DEV,
    "build_requires": DependencyKind.DEV,
    "test_requires": DependencyKind.DEV,
}


def parse_reference(reference: str, kind: DependencyKind = DependencyKind.BUILD) -> Optional[Dependency]:
    """
    Parse ``name/version[@user/channel][#revision]`` into a Dependency.

    Version ranges such as ``[>=1.0 <2.0]`` are kept verbatim.
    """
    reference = reference.strip()
    if not reference:
        return None
    reference = reference.split("#", 1)[0]
    name, _, rest = reference.partition("/")
    version = rest.split("@", 1)[0] if rest else None
    return Dependency(name=name.strip(), version=version or None, kind=kind)


class ConanImporter(Importer):
    """Import dependencies from conanfile.txt or conanfile.py."""

    format = BuildFormat.CONAN

    def import_file(self, path: str) -> Project:
        path = os.path.abspath(path)
        if os.path.isdir(path):
            for candidate in ("conanfile.py", "conanfile.txt"):
                if os.path.isfile(os.path.join(path, candidate)):
                    path = os.path.join(path, candidate)
                    break
        text = read_text(path)
        project = Project(self.default_name(path), os.path.dirname(path))
        if path.endswith(".py"):
            self._read_python(text, project, path)
        else:
            self._read_text(text, project, path)
        logger.debug(f"Conan manifest {path}: {len(project.dependencies)} dependencies")
        return project

    def _read_text(self, text: str, project: Project, path: str):
        section = None
        generators: List[str] = []
        options: List[str] = []
        for number, raw in enumerate(text.splitlines(), 1):
            line = raw.split("#", 1)[0].strip()
            if not line:
                continue
            match = _SECTION_RE.match(line)
            if match:
                section = match.group(1)
                continue
            if section in _SECTION_KINDS:
                dep = parse_reference(line, _SECTION_KINDS[section])
                if dep is not None:
                    project.add_dependency(dep)
            elif section == "generators":
                generators.append(line)
            elif section == "options":
                options.append(line)
            elif section is not None and self.options.verbose:
                project.warn(Severity.INFO, f"Section [{section}] is not translated", f"{path}:{number}")

        if generators:
            project.warn(Severity.INFO, f"Conan generators ignored: {', '.join(generators)}", path,
                         "The target build system replaces Conan generators")
        if options:
            project.warn(Severity.INFO, f"Conan options not translated: {', '.join(options)}", path)

    def _read_python(self, text: str, project: Project, path: str):
        match = _CLASS_RE.search(text)
        if match:
            project.name = match.group(1)
        for attr, _, value in _ATTRIBUTE_RE.findall(text):
            if attr == "name":
                project.name = value
            elif attr == "version":
                project.version = value
            elif attr == "description":
                project.description = value
            elif attr in ("url", "homepage"):
                project.homepage = value
            elif attr == "license":
                project.license = value

        for attr, value in _REQUIRES_ATTR_RE.findall(text):
            kind = _SECTION_KINDS[attr]
            for _, reference in _STRING_RE.findall(value):
                dep = parse_reference(reference, kind)
                if dep is not None:
                    project.add_dependency(dep)

        for call, _, reference in _REQUIRES_CALL_RE.findall(text):
            dep = parse_reference(reference, _SECTION_KINDS[call])
            if dep is not None:
                project.add_dependency(dep)

        if "def requirements" in text and not project.dependencies:
            project.warn(Severity.WARNING, "requirements() could not be read statically", path,
                         "List the requirements as plain strings")
