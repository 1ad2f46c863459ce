"""
Intermediate project model shared by every importer and exporter.

A Project is built up by exactly one importer and is read-only afterwards.
Nothing in this module knows about any particular foreign build format.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional


class TargetKind(str, Enum):
    EXECUTABLE = "executable"
    STATIC_LIBRARY = "static_library"
    SHARED_LIBRARY = "shared_library"
    HEADER_ONLY = "header_only"
    INTERFACE = "interface"
    OBJECT_LIBRARY = "object_library"

    @property
    def is_library(self) -> bool:
        return self is not TargetKind.EXECUTABLE

    @property
    def has_sources(self) -> bool:
        """Whether targets of this kind compile anything on their own."""
        return self not in (TargetKind.HEADER_ONLY, TargetKind.INTERFACE)


class DependencyKind(str, Enum):
    BUILD = "build"
    DEV = "dev"
    OPTIONAL = "optional"
    SYSTEM = "system"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class BuildFormat(str, Enum):
    """Every build description format the engine knows about."""
    NATIVE = "native"
    CMAKE = "cmake"
    MESON = "meson"
    XCODE = "xcode"
    MSBUILD = "msbuild"
    MAKEFILE = "makefile"
    NINJA = "ninja"
    COMPILE_COMMANDS = "compile_commands"
    VCPKG = "vcpkg"
    CONAN = "conan"
    PKG_CONFIG = "pkg_config"

    @property
    def importable(self) -> bool:
        return self in _IMPORTABLE

    @property
    def exportable(self) -> bool:
        return self in _EXPORTABLE


_IMPORTABLE = frozenset({
    BuildFormat.CMAKE,
    BuildFormat.MESON,
    BuildFormat.XCODE,
    BuildFormat.MSBUILD,
    BuildFormat.MAKEFILE,
    BuildFormat.VCPKG,
    BuildFormat.CONAN,
})

_EXPORTABLE = frozenset({
    BuildFormat.CMAKE,
    BuildFormat.NINJA,
    BuildFormat.MAKEFILE,
    BuildFormat.PKG_CONFIG,
    BuildFormat.COMPILE_COMMANDS,
    BuildFormat.MSBUILD,
    BuildFormat.XCODE,
})


def _extend_unique(dest: List[str], items: Iterable[str]) -> None:
    for item in items:
        if item not in dest:
            dest.append(item)


@dataclass
class CompileFlags:
    """Compiler and linker settings attached to a target."""
    defines: List[str] = field(default_factory=list)
    include_paths: List[str] = field(default_factory=list)
    system_include_paths: List[str] = field(default_factory=list)
    compile_flags: List[str] = field(default_factory=list)
    link_flags: List[str] = field(default_factory=list)
    link_libraries: List[str] = field(default_factory=list)
    frameworks: List[str] = field(default_factory=list)

    def merge(self, other: "CompileFlags") -> None:
        _extend_unique(self.defines, other.defines)
        _extend_unique(self.include_paths, other.include_paths)
        _extend_unique(self.system_include_paths, other.system_include_paths)
        _extend_unique(self.compile_flags, other.compile_flags)
        _extend_unique(self.link_flags, other.link_flags)
        _extend_unique(self.link_libraries, other.link_libraries)
        _extend_unique(self.frameworks, other.frameworks)


@dataclass
class Target:
    name: str
    kind: TargetKind = TargetKind.EXECUTABLE
    sources: List[str] = field(default_factory=list)
    headers: List[str] = field(default_factory=list)
    flags: CompileFlags = field(default_factory=CompileFlags)
    dependencies: List[str] = field(default_factory=list)

    def add_sources(self, paths: Iterable[str]) -> None:
        _extend_unique(self.sources, paths)

    def add_headers(self, paths: Iterable[str]) -> None:
        _extend_unique(self.headers, paths)

    def add_dependencies(self, names: Iterable[str]) -> None:
        _extend_unique(self.dependencies, (n for n in names if n != self.name))

    def merge(self, other: "Target") -> None:
        """
        Fold a second declaration of the same target into this one.

        The first declaration decides the kind, except that a concrete kind
        replaces a placeholder interface/header-only kind.
        """
        if not self.kind.has_sources and other.kind.has_sources:
            self.kind = other.kind
        self.add_sources(other.sources)
        self.add_headers(other.headers)
        self.flags.merge(other.flags)
        self.add_dependencies(other.dependencies)


@dataclass
class Dependency:
    name: str
    version: Optional[str] = None
    url: Optional[str] = None
    path: Optional[str] = None
    hash: Optional[str] = None
    kind: DependencyKind = DependencyKind.BUILD

    def __post_init__(self):
        # Accept plain strings from manifest readers
        self.kind = DependencyKind(self.kind)


# Lower index wins when the same dependency is declared twice
_KIND_STRENGTH = [
    DependencyKind.BUILD,
    DependencyKind.SYSTEM,
    DependencyKind.DEV,
    DependencyKind.OPTIONAL,
]


@dataclass
class TranslationWarning:
    severity: Severity
    message: str
    location: Optional[str] = None
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        text = f"[{self.severity.value}]"
        if self.location:
            text += f" {self.location}:"
        text += f" {self.message}"
        if self.suggestion:
            text += f" (suggestion: {self.suggestion})"
        return text


_STD_RE = re.compile(r"^(?:c\+\+|gnu\+\+|cxx_std_|c|gnu|c_std_|std:c\+\+)?(\d+|latest)$",
                     re.IGNORECASE)

# Two-digit standards wrap around the century
_STD_ORDER = {"89": 1989, "90": 1990, "98": 1998, "99": 1999, "03": 2003,
              "11": 2011, "14": 2014, "17": 2017, "20": 2020, "23": 2023,
              "26": 2026, "latest": 9999}


def normalize_standard(value: str) -> Optional[str]:
    """
    Reduce a language standard spelling to its bare year suffix.

    ``c++17``, ``gnu++17``, ``cxx_std_17``, ``17`` and ``stdcpp17`` all map
    to ``"17"``. Returns None for anything unrecognized.
    """
    text = value.strip().strip('"').lower()
    for prefix in ("stdcpp", "stdc"):
        if text.startswith(prefix):
            text = text[len(prefix):]
            break
    for alias, canonical in (("0x", "11"), ("1y", "14"), ("1z", "17"), ("2a", "20"), ("2b", "23")):
        if text.endswith(alias):
            text = text[: -len(alias)] + canonical
            break
    match = _STD_RE.match(text)
    if not match:
        return None
    return match.group(1)


def _standard_rank(std: str) -> int:
    return _STD_ORDER.get(std, 0)


class Project:
    """
    Canonical in-memory description of a native project.

    Importers only ever append; exporters only ever read. Adding a target
    whose name already exists merges into the existing target.
    """

    def __init__(self, name: str, source_root: str = "."):
        self.name = name
        self.source_root = source_root
        self.version: Optional[str] = None
        self.description: Optional[str] = None
        self.homepage: Optional[str] = None
        self.license: Optional[str] = None
        self.c_standard: Optional[str] = None
        self.cxx_standard: Optional[str] = None
        self.targets: List[Target] = []
        self.dependencies: List[Dependency] = []
        self.warnings: List[TranslationWarning] = []

    def __repr__(self) -> str:
        return (f"Project(name={self.name!r}, targets={len(self.targets)}, "
                f"dependencies={len(self.dependencies)}, warnings={len(self.warnings)})")

    def get_target(self, name: str) -> Optional[Target]:
        for target in self.targets:
            if target.name == name:
                return target
        return None

    def add_target(self, target: Target) -> Target:
        """
        Add a target, merging it into an existing one with the same name.

        Returns:
            The target instance that now lives in the project
        """
        existing = self.get_target(target.name)
        if existing is not None:
            existing.merge(target)
            return existing
        self.targets.append(target)
        return target

    def get_dependency(self, name: str) -> Optional[Dependency]:
        for dep in self.dependencies:
            if dep.name == name:
                return dep
        return None

    def add_dependency(self, dependency: Dependency) -> Dependency:
        existing = self.get_dependency(dependency.name)
        if existing is None:
            self.dependencies.append(dependency)
            return dependency
        for attr in ("version", "url", "path", "hash"):
            if getattr(existing, attr) is None:
                setattr(existing, attr, getattr(dependency, attr))
        if _KIND_STRENGTH.index(dependency.kind) < _KIND_STRENGTH.index(existing.kind):
            existing.kind = dependency.kind
        return existing

    def add_warning(self, warning: TranslationWarning) -> None:
        self.warnings.append(warning)

    def warn(self, severity, message: str, location: Optional[str] = None,
             suggestion: Optional[str] = None) -> TranslationWarning:
        warning = TranslationWarning(Severity(severity), message, location, suggestion)
        self.warnings.append(warning)
        return warning

    def errors(self) -> List[TranslationWarning]:
        return [w for w in self.warnings if w.severity is Severity.ERROR]

    def has_errors(self) -> bool:
        return any(w.severity is Severity.ERROR for w in self.warnings)

    def set_cxx_standard(self, value: str) -> Optional[str]:
        """Record a declared C++ standard; the newest one declared wins."""
        std = normalize_standard(value)
        if std is None:
            return self.cxx_standard
        if self.cxx_standard is None or _standard_rank(std) > _standard_rank(self.cxx_standard):
            self.cxx_standard = std
        return self.cxx_standard

    def set_c_standard(self, value: str) -> Optional[str]:
        std = normalize_standard(value)
        if std is None:
            return self.c_standard
        if self.c_standard is None or _standard_rank(std) > _standard_rank(self.c_standard):
            self.c_standard = std
        return self.c_standard
