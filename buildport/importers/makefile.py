"""
Best-effort Makefile importer.

Make is a general-purpose language, so this importer only reads
conventional variables (CC, CFLAGS, SRCS, ...) and rule lines. Everything
it reports is a guess and the project always carries an info warning
saying so.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..model import BuildFormat, Project, Severity, Target, TargetKind
from .base import Importer, project_path, read_text

logger = logging.getLogger(__name__)

_ASSIGN_RE = re.compile(r"^(?:override\s+|export\s+)?([A-Za-z_][A-Za-z0-9_.]*)\s*(::=|:=|\?=|\+=|!=|=)\s*(.*)$")
_RULE_RE = re.compile(r"^([^:=#\t][^:=#]*?)\s*::?\s*(?!=)(.*)$")
_REF_RE = re.compile(r"\$(?:\(([^()]+)\)|\{([^{}]+)\}|([A-Za-z_@<^]))")
_SUBST_REF_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*):([^=]*)=(.*)$")

SOURCE_EXTENSIONS = (".c", ".cc", ".cpp", ".cxx", ".c++", ".C", ".m", ".mm")
HEADER_EXTENSIONS = (".h", ".hh", ".hpp", ".hxx")

_NAME_VARIABLES = ("TARGET", "NAME", "PROGRAM", "PROG", "BIN", "LIB", "LIBRARY")
_SOURCE_VARIABLES = ("SRCS", "SOURCES", "SRC", "CSRCS", "CXXSRCS", "C_SOURCES", "CXX_SOURCES")
_HEADER_VARIABLES = ("HEADERS", "HDRS", "INCS")
_COMPILE_VARIABLES = ("CFLAGS", "CXXFLAGS", "CPPFLAGS")
_LINK_VARIABLES = ("LDFLAGS", "LDLIBS", "LIBS")

MAX_EXPANSION_DEPTH = 10


@dataclass
class Rule:
    targets: List[str]
    prerequisites: List[str]
    recipe: List[str] = field(default_factory=list)
    line: int = 0


class MakefileReader:
    """Reads variables and rules; does not evaluate conditionals or functions."""

    def __init__(self, text: str):
        self.variables: Dict[str, str] = {}
        self.rules: List[Rule] = []
        self.phony: List[str] = []
        self._read(text)

    @staticmethod
    def _logical_lines(text: str):
        """Yield (line_number, text) with backslash continuations joined."""
        buffer = ""
        start = 0
        for number, raw in enumerate(text.splitlines(), 1):
            if not buffer:
                start = number
            if raw.endswith("\\"):
                buffer += raw[:-1] + " "
                continue
            yield start, buffer + raw
            buffer = ""
        if buffer:
            yield start, buffer

    def _read(self, text: str):
        current: Optional[Rule] = None
        for number, line in self._logical_lines(text):
            if line.startswith("\t"):
                if current is not None:
                    current.recipe.append(line.strip())
                continue
            stripped = line.split("#", 1)[0].strip()
            if not stripped:
                continue

            assign = _ASSIGN_RE.match(stripped)
            if assign:
                name, op, value = assign.groups()
                value = value.strip()
                if op == "+=":
                    existing = self.variables.get(name, "")
                    self.variables[name] = f"{existing} {value}".strip()
                elif op == "?=":
                    self.variables.setdefault(name, value)
                elif op in (":=", "::="):
                    self.variables[name] = self.expand(value)
                elif op == "=":
                    self.variables[name] = value
                current = None
                continue

            rule = _RULE_RE.match(stripped)
            if rule and not stripped.startswith(("ifeq", "ifneq", "ifdef", "ifndef", "else", "endif",
                                                  "include", "-include", "define", "endef")):
                targets = self.expand(rule.group(1)).split()
                prerequisites = rule.group(2).split(";", 1)
                current = Rule(targets, self.expand(prerequisites[0]).split(), line=number)
                if len(prerequisites) > 1 and prerequisites[1].strip():
                    current.recipe.append(prerequisites[1].strip())
                if ".PHONY" in targets:
                    self.phony.extend(current.prerequisites)
                else:
                    self.rules.append(current)
                continue
            current = None

    def expand(self, text: str, depth: int = 0) -> str:
        """Expand $(VAR), ${VAR} and $V references; unknown ones stay as written."""
        if depth > MAX_EXPANSION_DEPTH or "$" not in text:
            return text

        def substitute(match):
            name = match.group(1) or match.group(2) or match.group(3)
            subst = _SUBST_REF_RE.match(name)
            if subst:
                value = self.variables.get(subst.group(1))
                if value is None:
                    return match.group(0)
                words = self.expand(value, depth + 1).split()
                suffix, replacement = subst.group(2), subst.group(3)
                return " ".join(w[: -len(suffix)] + replacement if suffix and w.endswith(suffix) else w
                                for w in words)
            if name not in self.variables:
                return match.group(0)
            return self.expand(self.variables[name], depth + 1)

        return _REF_RE.sub(substitute, text)

    def get(self, name: str) -> List[str]:
        value = self.variables.get(name)
        return self.expand(value).split() if value else []


class MakefileImporter(Importer):
    """Heuristic Makefile importer."""

    format = BuildFormat.MAKEFILE

    def import_file(self, path: str) -> Project:
        path = os.path.abspath(path)
        if os.path.isdir(path):
            for candidate in ("GNUmakefile", "Makefile", "makefile"):
                if os.path.isfile(os.path.join(path, candidate)):
                    path = os.path.join(path, candidate)
                    break
        text = read_text(path)
        root = os.path.dirname(path)
        reader = MakefileReader(text)
        project = Project(self.default_name(path), root)
        project.warn(Severity.INFO, "Makefile import is heuristic; review the generated targets", path)

        name = self._project_name(reader)
        if name:
            project.name = name

        target = Target(name=project.name, kind=self._target_kind(reader, project.name))
        sources = []
        for var in _SOURCE_VARIABLES:
            sources.extend(reader.get(var))
        if not sources:
            sources = self._sources_from_rules(reader)
        for source in sources:
            if "%" in source or "$" in source:
                continue
            target.add_sources([project_path(root, root, source)])
        for var in _HEADER_VARIABLES:
            for header in reader.get(var):
                if header.endswith(HEADER_EXTENSIONS):
                    target.add_headers([project_path(root, root, header)])

        self._read_flags(reader, target, root, project)
        project.add_target(target)
        logger.debug(f"Makefile {path}: {len(reader.rules)} rules, {len(reader.variables)} variables")
        return project

    @staticmethod
    def _project_name(reader: MakefileReader) -> Optional[str]:
        for var in _NAME_VARIABLES:
            values = reader.get(var)
            if values:
                return os.path.basename(values[0])
        for rule in reader.rules:
            for target in rule.targets:
                if target in reader.phony or target.startswith(".") or "%" in target:
                    continue
                if target in ("all", "clean", "install", "test", "check", "distclean"):
                    continue
                if target.endswith((".o", ".obj")):
                    continue
                return os.path.basename(target)
        return None

    @staticmethod
    def _target_kind(reader: MakefileReader, name: str) -> TargetKind:
        if name.endswith((".so", ".dylib", ".dll")):
            return TargetKind.SHARED_LIBRARY
        if name.endswith((".a", ".lib")):
            return TargetKind.STATIC_LIBRARY
        recipes = [line for rule in reader.rules for line in rule.recipe]
        link_flags = " ".join(reader.get("LDFLAGS"))
        if "-shared" in link_flags or any("-shared" in r for r in recipes):
            return TargetKind.SHARED_LIBRARY
        if any(re.match(r"^(?:\$\(AR\)|ar)\s", r) for r in recipes):
            return TargetKind.STATIC_LIBRARY
        if reader.get("LIB") or reader.get("LIBRARY"):
            return TargetKind.STATIC_LIBRARY
        return TargetKind.EXECUTABLE

    @staticmethod
    def _sources_from_rules(reader: MakefileReader) -> List[str]:
        sources = []
        for rule in reader.rules:
            for prerequisite in rule.prerequisites:
                if prerequisite.endswith(SOURCE_EXTENSIONS) and prerequisite not in sources:
                    sources.append(prerequisite)
        return sources

    @staticmethod
    def _read_flags(reader: MakefileReader, target: Target, root: str, project: Project):
        flags = target.flags
        compile_words = []
        for var in _COMPILE_VARIABLES:
            compile_words.extend(reader.get(var))
        system_next = False
        for word in compile_words:
            if system_next:
                flags.system_include_paths.append(project_path(root, root, word))
                system_next = False
            elif word == "-isystem":
                system_next = True
            elif word.startswith("-D"):
                flags.defines.append(word[2:])
            elif word.startswith("-I"):
                flags.include_paths.append(project_path(root, root, word[2:]))
            elif word.startswith("-isystem"):
                flags.system_include_paths.append(project_path(root, root, word[len("-isystem"):]))
            else:
                if word.startswith("-std="):
                    standard = word[len("-std="):]
                    if "++" in standard:
                        project.set_cxx_standard(standard)
                    else:
                        project.set_c_standard(standard)
                flags.compile_flags.append(word)

        link_words = []
        for var in _LINK_VARIABLES:
            link_words.extend(reader.get(var))
        framework_next = False
        for word in link_words:
            if framework_next:
                flags.frameworks.append(word)
                framework_next = False
            elif word == "-framework":
                framework_next = True
            elif word.startswith("-l"):
                flags.link_libraries.append(word[2:])
            elif word != "-shared":
                flags.link_flags.append(word)
