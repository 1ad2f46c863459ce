"""
CMake importer.

Runs a CMakeLists.txt through the scanner, expands variables, and maps a
fixed vocabulary of commands onto the project model. Control flow is not
interpreted: every branch of an ``if`` is processed and bodies of
``function``/``macro`` definitions are skipped.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..errors import ParseError, UnsupportedConstruct
from ..model import (
    BuildFormat,
    Dependency,
    DependencyKind,
    Project,
    Severity,
    Target,
    TargetKind,
)
from .base import IncludeGuard, Importer, project_path, read_text
from .cmake_scanner import Command, Token, extract_commands, tokenize_arguments
from .variables import VariableScope, split_list

logger = logging.getLogger(__name__)

HEADER_EXTENSIONS = (".h", ".hh", ".hpp", ".hxx", ".h++", ".inl", ".ipp", ".tcc")

_STD_FLAG_RE = re.compile(r"^[-/]std[:=](?:c|gnu)\+\+(\w+)$")
_C_STD_FLAG_RE = re.compile(r"^-std=(?:c|gnu)(\d+)$")
_FEATURE_RE = re.compile(r"^(c|cxx)_std_(\d+)$")
_PKG_MODULE_RE = re.compile(r"^([^<>=]+)((?:[<>]=?|=).+)?$")

# Well-known find_package names and the dependency they stand for
KNOWN_PACKAGES: Dict[str, tuple] = {
    "zlib": ("zlib", "https://github.com/madler/zlib"),
    "png": ("libpng", None),
    "jpeg": ("libjpeg", None),
    "openssl": ("openssl", None),
    "threads": ("pthread", None),
    "curl": ("curl", None),
    "sqlite3": ("sqlite", None),
    "boost": ("boost", None),
    "gtest": ("googletest", None),
    "fmt": ("fmt", None),
    "spdlog": ("spdlog", None),
    "nlohmann_json": ("json", None),
}

# System packages never fetched from anywhere
SYSTEM_PACKAGES = {"threads", "opengl", "x11", "pkgconfig"}

# Visibility and scope keywords that carry no information for the model
_SCOPE_KEYWORDS = {"PUBLIC", "PRIVATE", "INTERFACE", "BEFORE", "AFTER"}
_LINK_KEYWORDS = {
    "PUBLIC", "PRIVATE", "INTERFACE", "LINK_PUBLIC", "LINK_PRIVATE",
    "LINK_INTERFACE_LIBRARIES", "debug", "optimized", "general",
}

# Commands that are understood well enough to be ignored without comment
_SILENT_COMMANDS = {
    "if", "elseif", "else", "endif", "foreach", "endforeach", "while",
    "endwhile", "break", "continue", "return", "message", "cmake_policy",
    "enable_testing", "enable_language", "include_guard", "endfunction",
    "endmacro", "block", "endblock",
}

# Hidden variables holding directory-level settings inherited by subdirectories
_DIR_INCLUDES = "__buildport_include_directories"
_DIR_SYSTEM_INCLUDES = "__buildport_system_include_directories"
_DIR_DEFINES = "__buildport_compile_definitions"
_DIR_OPTIONS = "__buildport_compile_options"
_DIR_LINK_LIBS = "__buildport_link_libraries"
_DIR_LINK_DIRS = "__buildport_link_directories"


@dataclass
class _Frame:
    """Per-file parser state; each recursive parse gets its own frame."""
    path: str
    directory: str
    scope: VariableScope

    def location(self, cmd: Command) -> str:
        return f"{self.path}:{cmd.line}"


@dataclass
class _Context:
    """State shared by every file of one import."""
    project: Project
    root: str
    guard: IncludeGuard
    verbose: bool
    named: bool = False
    aliases: Dict[str, str] = field(default_factory=dict)


def _is_header(path: str) -> bool:
    return path.lower().endswith(HEADER_EXTENSIONS)


def _values(args: List[Token]) -> List[str]:
    return [t.text for t in args]


def _items(args: List[Token]) -> List[str]:
    """Values of list-taking arguments; a quoted "${X}" list splits into its elements."""
    items = []
    for token in args:
        if token.quoted and ";" in token.text:
            items.extend(split_list(token.text))
        else:
            items.append(token.text)
    return items


class CMakeImporter(Importer):
    """Import CMakeLists.txt files, following add_subdirectory and include."""

    format = BuildFormat.CMAKE

    def import_file(self, path: str) -> Project:
        path = os.path.abspath(path)
        if os.path.isdir(path):
            path = os.path.join(path, "CMakeLists.txt")
        text = read_text(path)
        root = os.path.dirname(path)

        project = Project(self.default_name(path), root)
        ctx = _Context(project, root, self.new_guard(), self.options.verbose)
        scope = VariableScope()
        for name in ("CMAKE_SOURCE_DIR", "CMAKE_CURRENT_SOURCE_DIR", "PROJECT_SOURCE_DIR",
                     "CMAKE_CURRENT_LIST_DIR"):
            scope.set(name, [root])
        scope.set("CMAKE_CURRENT_LIST_FILE", [path])

        ctx.guard.visit(path)
        logger.debug(f"Importing CMake project from {path}")
        self._run(text, _Frame(path, root, scope), ctx)
        self._resolve_target_links(ctx)
        return project

    # -- driver -------------------------------------------------------------

    def _run(self, text: str, frame: _Frame, ctx: _Context):
        commands = extract_commands(text, frame.path)
        i = 0
        while i < len(commands):
            cmd = commands[i]
            key = cmd.key
            if key in ("function", "macro"):
                i = self._skip_block(commands, i, key)
                continue

            handler = self.COMMANDS.get(key)
            if handler is None:
                if key not in _SILENT_COMMANDS and ctx.verbose:
                    ctx.project.warn(Severity.INFO, f"Unrecognized CMake command '{cmd.name}' ignored",
                                     frame.location(cmd))
                i += 1
                continue

            raw = tokenize_arguments(cmd.args_text)
            args = self._drop_generator_expressions(frame.scope.expand_tokens(raw), frame, cmd, ctx)
            handler(self, ctx, frame, cmd, args)
            i += 1

    @staticmethod
    def _skip_block(commands: List[Command], start: int, key: str) -> int:
        end_key = "end" + key
        depth = 0
        for i in range(start, len(commands)):
            if commands[i].key == key:
                depth += 1
            elif commands[i].key == end_key:
                depth -= 1
                if depth == 0:
                    return i + 1
        return len(commands)

    @staticmethod
    def _drop_generator_expressions(args: List[Token], frame: _Frame, cmd: Command,
                                    ctx: _Context) -> List[Token]:
        kept = []
        for token in args:
            if "$<" in token.text:
                ctx.project.add_warning(UnsupportedConstruct(
                    f"generator expression '{token.text}' in {cmd.name}()",
                    frame.location(cmd),
                    "Expand the expression by hand for the target configuration",
                ).as_warning())
            else:
                kept.append(token)
        return kept

    def _recurse(self, ctx: _Context, frame: _Frame, cmd: Command, path: str, new_frame: _Frame):
        location = frame.location(cmd)
        if not os.path.isfile(path):
            ctx.project.warn(Severity.WARNING, f"{cmd.name}: '{path}' not found", location)
            return
        if not ctx.guard.visit(path):
            logger.debug(f"Skipping already parsed {path}")
            return
        if ctx.guard.exhausted:
            ctx.project.warn(Severity.WARNING,
                             f"{cmd.name}: include depth limit ({ctx.guard.max_depth}) reached, "
                             f"skipping '{path}'", location)
            return

        text = read_text(path)
        logger.debug(f"Entering {path}")
        with ctx.guard.descend():
            try:
                self._run(text, new_frame, ctx)
            except ParseError as e:
                ctx.project.warn(Severity.WARNING, f"{cmd.name}: failed to parse '{path}': {e}",
                                 location)

    def _resolve_target_links(self, ctx: _Context):
        """Turn link items naming project targets into target dependencies."""
        names = {t.name for t in ctx.project.targets}
        for target in ctx.project.targets:
            remaining = []
            for lib in target.flags.link_libraries:
                name = ctx.aliases.get(lib, lib)
                if name in names:
                    target.add_dependencies([name])
                else:
                    remaining.append(lib)
            target.flags.link_libraries = remaining

    def _get_target(self, ctx: _Context, frame: _Frame, cmd: Command, name: str) -> Optional[Target]:
        name = ctx.aliases.get(name, name)
        target = ctx.project.get_target(name)
        if target is None:
            ctx.project.warn(Severity.WARNING, f"{cmd.name}() refers to unknown target '{name}'",
                             frame.location(cmd))
        return target

    def _path(self, ctx: _Context, frame: _Frame, path: str) -> str:
        return project_path(ctx.root, frame.directory, path)

    def _note_std_flag(self, ctx: _Context, flag: str):
        match = _STD_FLAG_RE.match(flag)
        if match:
            ctx.project.set_cxx_standard(match.group(1))
            return
        match = _C_STD_FLAG_RE.match(flag)
        if match:
            ctx.project.set_c_standard(match.group(1))

    # -- command handlers ---------------------------------------------------

    def _cmd_project(self, ctx: _Context, frame: _Frame, cmd: Command, args: List[Token]):
        if not args:
            return
        name = args[0].text
        scope = frame.scope
        scope.set("PROJECT_NAME", [name])
        scope.set("PROJECT_SOURCE_DIR", [frame.directory])
        scope.set(f"{name}_SOURCE_DIR", [frame.directory])
        if not ctx.named:
            ctx.project.name = name
            scope.set("CMAKE_PROJECT_NAME", [name])

        values = _values(args[1:])
        for i, arg in enumerate(values):
            nxt = values[i + 1] if i + 1 < len(values) else None
            if nxt is None:
                break
            if arg == "VERSION":
                scope.set("PROJECT_VERSION", [nxt])
                scope.set(f"{name}_VERSION", [nxt])
                if not ctx.named:
                    ctx.project.version = nxt
            elif arg == "DESCRIPTION" and not ctx.named:
                ctx.project.description = nxt
            elif arg == "HOMEPAGE_URL" and not ctx.named:
                ctx.project.homepage = nxt
        ctx.named = True

    def _cmd_cmake_minimum_required(self, ctx, frame, cmd, args):
        values = _values(args)
        if "VERSION" in values:
            index = values.index("VERSION")
            if index + 1 < len(values):
                frame.scope.set("CMAKE_MINIMUM_REQUIRED_VERSION", [values[index + 1]])

    def _cmd_set(self, ctx, frame, cmd, args):
        if not args:
            return
        name = args[0].text
        values = _values(args[1:])
        if not values:
            frame.scope.unset(name)
            return

        if "CACHE" in values:
            values = values[: values.index("CACHE")]
            if frame.scope.get(name) is not None and "FORCE" not in _values(args):
                return
        if values and values[-1] == "PARENT_SCOPE":
            frame.scope.set_parent(name, values[:-1])
            return
        frame.scope.set(name, values)

        if name == "CMAKE_CXX_STANDARD" and values:
            ctx.project.set_cxx_standard(values[0])
        elif name == "CMAKE_C_STANDARD" and values:
            ctx.project.set_c_standard(values[0])
        elif name in ("CMAKE_CXX_FLAGS", "CMAKE_C_FLAGS"):
            for value in values:
                for flag in value.split():
                    self._note_std_flag(ctx, flag)

    def _cmd_unset(self, ctx, frame, cmd, args):
        if not args:
            return
        if len(args) > 1 and args[1].text == "PARENT_SCOPE":
            if frame.scope.parent is not None:
                frame.scope.parent.unset(args[0].text)
            return
        frame.scope.unset(args[0].text)

    def _cmd_option(self, ctx, frame, cmd, args):
        if not args:
            return
        name = args[0].text
        if frame.scope.get(name) is None:
            default = args[2].text if len(args) > 2 else "OFF"
            frame.scope.set(name, [default])

    def _cmd_list(self, ctx, frame, cmd, args):
        if len(args) < 2:
            return
        op = args[0].text.upper()
        name = args[1].text
        items = _items(args[2:])
        scope = frame.scope
        if op == "APPEND":
            scope.append(name, items)
        elif op == "PREPEND":
            scope.set(name, items + (scope.get(name) or []))
        elif op == "REMOVE_ITEM":
            scope.set(name, [v for v in scope.get(name) or [] if v not in items])
        elif op == "REMOVE_DUPLICATES":
            unique: List[str] = []
            for value in scope.get(name) or []:
                if value not in unique:
                    unique.append(value)
            scope.set(name, unique)
        elif ctx.verbose:
            ctx.project.warn(Severity.INFO, f"list({op}) is not evaluated", frame.location(cmd))

    def _new_target(self, ctx: _Context, frame: _Frame, name: str, kind: TargetKind,
                    items: List[str]) -> Target:
        target = Target(name=name, kind=kind)
        for item in items:
            path = self._path(ctx, frame, item)
            if _is_header(item):
                target.add_headers([path])
            else:
                target.add_sources([path])

        scope = frame.scope
        flags = target.flags
        flags.include_paths.extend(scope.get(_DIR_INCLUDES) or [])
        flags.system_include_paths.extend(scope.get(_DIR_SYSTEM_INCLUDES) or [])
        flags.defines.extend(scope.get(_DIR_DEFINES) or [])
        flags.compile_flags.extend(scope.get(_DIR_OPTIONS) or [])
        flags.link_libraries.extend(scope.get(_DIR_LINK_LIBS) or [])
        flags.link_flags.extend(f"-L{d}" for d in scope.get(_DIR_LINK_DIRS) or [])
        return ctx.project.add_target(target)

    def _cmd_add_executable(self, ctx, frame, cmd, args):
        if not args:
            return
        name = args[0].text
        items = _items(args[1:])
        if "IMPORTED" in items:
            ctx.project.warn(Severity.INFO, f"Imported executable '{name}' skipped", frame.location(cmd))
            return
        if "ALIAS" in items:
            index = items.index("ALIAS")
            if index + 1 < len(items):
                ctx.aliases[name] = items[index + 1]
            return
        items = [i for i in items if i not in ("WIN32", "MACOSX_BUNDLE", "EXCLUDE_FROM_ALL")]
        self._new_target(ctx, frame, name, TargetKind.EXECUTABLE, items)

    def _cmd_add_library(self, ctx, frame, cmd, args):
        if not args:
            return
        name = args[0].text
        items = _items(args[1:])
        location = frame.location(cmd)
        if "ALIAS" in items:
            index = items.index("ALIAS")
            if index + 1 < len(items):
                ctx.aliases[name] = items[index + 1]
            return
        if "IMPORTED" in items:
            ctx.project.warn(Severity.INFO, f"Imported library '{name}' skipped", location)
            return

        if frame.scope.is_true("BUILD_SHARED_LIBS"):
            kind = TargetKind.SHARED_LIBRARY
        else:
            kind = TargetKind.STATIC_LIBRARY
        sources = []
        for item in items:
            if item == "STATIC":
                kind = TargetKind.STATIC_LIBRARY
            elif item == "SHARED":
                kind = TargetKind.SHARED_LIBRARY
            elif item == "MODULE":
                kind = TargetKind.SHARED_LIBRARY
                ctx.project.warn(Severity.WARNING,
                                 f"MODULE library '{name}' translated as a shared library", location)
            elif item == "OBJECT":
                kind = TargetKind.OBJECT_LIBRARY
            elif item == "INTERFACE":
                kind = TargetKind.INTERFACE
            elif item in ("EXCLUDE_FROM_ALL", "GLOBAL"):
                continue
            else:
                sources.append(item)
        self._new_target(ctx, frame, name, kind, sources)

    def _cmd_add_subdirectory(self, ctx, frame, cmd, args):
        if not args:
            return
        directory = os.path.normpath(os.path.join(frame.directory, args[0].text))
        path = os.path.join(directory, "CMakeLists.txt")
        scope = frame.scope.child()
        for name in ("CMAKE_CURRENT_SOURCE_DIR", "CMAKE_CURRENT_LIST_DIR"):
            scope.set(name, [directory])
        scope.set("CMAKE_CURRENT_LIST_FILE", [path])
        self._recurse(ctx, frame, cmd, path, _Frame(path, directory, scope))

    def _cmd_include(self, ctx, frame, cmd, args):
        if not args:
            return
        name = args[0].text
        optional = "OPTIONAL" in _values(args[1:])
        if not name.endswith(".cmake") and "/" not in name:
            # Module from CMAKE_MODULE_PATH or CMake itself
            logger.debug(f"Ignoring include of module {name}")
            return
        path = os.path.normpath(os.path.join(frame.directory, name))
        if optional and not os.path.isfile(path):
            return
        self._recurse(ctx, frame, cmd, path, _Frame(path, frame.directory, frame.scope))

    def _cmd_target_sources(self, ctx, frame, cmd, args):
        if not args:
            return
        target = self._get_target(ctx, frame, cmd, args[0].text)
        if target is None:
            return
        mode = "sources"
        for item in _items(args[1:]):
            if item in _SCOPE_KEYWORDS:
                mode = "sources"
            elif item in ("FILE_SET", "TYPE"):
                mode = "skip-one"
            elif item == "BASE_DIRS":
                mode = "base-dirs"
            elif item == "FILES":
                mode = "headers"
            elif mode == "skip-one":
                mode = "sources"
            elif mode == "base-dirs":
                target.flags.include_paths.append(self._path(ctx, frame, item))
            else:
                path = self._path(ctx, frame, item)
                if mode == "headers" or _is_header(item):
                    target.add_headers([path])
                else:
                    target.add_sources([path])

    def _cmd_target_include_directories(self, ctx, frame, cmd, args):
        if not args:
            return
        target = self._get_target(ctx, frame, cmd, args[0].text)
        if target is None:
            return
        system = False
        for item in _items(args[1:]):
            if item == "SYSTEM":
                system = True
            elif item in _SCOPE_KEYWORDS:
                continue
            else:
                dest = target.flags.system_include_paths if system else target.flags.include_paths
                path = self._path(ctx, frame, item)
                if path not in dest:
                    dest.append(path)

    def _cmd_target_link_libraries(self, ctx, frame, cmd, args):
        if not args:
            return
        target = self._get_target(ctx, frame, cmd, args[0].text)
        if target is None:
            return
        self._add_link_items(ctx, target.flags, _items(args[1:]))

    def _add_link_items(self, ctx: _Context, flags, items: List[str]):
        framework_next = False
        for item in items:
            if framework_next:
                flags.frameworks.append(item)
                framework_next = False
            elif item in _LINK_KEYWORDS:
                continue
            elif item == "-framework":
                framework_next = True
            elif item.startswith("-framework "):
                flags.frameworks.append(item.split(None, 1)[1].strip())
            elif item.endswith(".framework"):
                flags.frameworks.append(os.path.basename(item)[: -len(".framework")])
            elif item.startswith("-l"):
                flags.link_libraries.append(item[2:])
            elif item.startswith("-"):
                flags.link_flags.append(item)
            elif item not in flags.link_libraries:
                flags.link_libraries.append(ctx.aliases.get(item, item))

    def _cmd_target_compile_definitions(self, ctx, frame, cmd, args):
        if not args:
            return
        target = self._get_target(ctx, frame, cmd, args[0].text)
        if target is None:
            return
        for item in _items(args[1:]):
            if item not in _SCOPE_KEYWORDS:
                define = item[2:] if item.startswith("-D") else item
                if define and define not in target.flags.defines:
                    target.flags.defines.append(define)

    def _cmd_target_compile_options(self, ctx, frame, cmd, args):
        if not args:
            return
        target = self._get_target(ctx, frame, cmd, args[0].text)
        if target is None:
            return
        for item in _items(args[1:]):
            if item in _SCOPE_KEYWORDS:
                continue
            self._note_std_flag(ctx, item)
            target.flags.compile_flags.append(item)

    def _cmd_target_link_options(self, ctx, frame, cmd, args):
        if not args:
            return
        target = self._get_target(ctx, frame, cmd, args[0].text)
        if target is None:
            return
        target.flags.link_flags.extend(i for i in _items(args[1:]) if i not in _SCOPE_KEYWORDS)

    def _cmd_target_compile_features(self, ctx, frame, cmd, args):
        for item in _items(args[1:]):
            match = _FEATURE_RE.match(item)
            if not match:
                continue
            if match.group(1) == "cxx":
                ctx.project.set_cxx_standard(match.group(2))
            else:
                ctx.project.set_c_standard(match.group(2))

    def _cmd_set_property(self, ctx, frame, cmd, args):
        values = _values(args)
        if "PROPERTY" not in values:
            return
        index = values.index("PROPERTY")
        if index + 2 > len(values):
            return
        self._apply_property(ctx, values[index + 1], values[index + 2:])

    def _cmd_set_target_properties(self, ctx, frame, cmd, args):
        values = _values(args)
        if "PROPERTIES" not in values:
            return
        props = values[values.index("PROPERTIES") + 1:]
        for i in range(0, len(props) - 1, 2):
            self._apply_property(ctx, props[i], [props[i + 1]])

    def _apply_property(self, ctx: _Context, name: str, values: List[str]):
        if not values:
            return
        if name == "CXX_STANDARD":
            ctx.project.set_cxx_standard(values[0])
        elif name == "C_STANDARD":
            ctx.project.set_c_standard(values[0])

    def _append_dir_setting(self, frame: _Frame, name: str, values: List[str]):
        current = frame.scope.get(name) or []
        frame.scope.set(name, current + [v for v in values if v not in current])

    def _cmd_include_directories(self, ctx, frame, cmd, args):
        values = _items(args)
        system = "SYSTEM" in values
        paths = [self._path(ctx, frame, v) for v in values if v not in ("SYSTEM", "BEFORE", "AFTER")]
        self._append_dir_setting(frame, _DIR_SYSTEM_INCLUDES if system else _DIR_INCLUDES, paths)

    def _cmd_add_definitions(self, ctx, frame, cmd, args):
        defines = []
        options = []
        for item in _items(args):
            if item.startswith(("-D", "/D")):
                defines.append(item[2:])
            else:
                options.append(item)
        self._append_dir_setting(frame, _DIR_DEFINES, defines)
        self._append_dir_setting(frame, _DIR_OPTIONS, options)

    def _cmd_add_compile_definitions(self, ctx, frame, cmd, args):
        defines = [v[2:] if v.startswith("-D") else v for v in _items(args)]
        self._append_dir_setting(frame, _DIR_DEFINES, defines)

    def _cmd_add_compile_options(self, ctx, frame, cmd, args):
        values = _items(args)
        for value in values:
            self._note_std_flag(ctx, value)
        self._append_dir_setting(frame, _DIR_OPTIONS, values)

    def _cmd_link_libraries(self, ctx, frame, cmd, args):
        self._append_dir_setting(frame, _DIR_LINK_LIBS, [v for v in _items(args) if v not in _LINK_KEYWORDS])

    def _cmd_link_directories(self, ctx, frame, cmd, args):
        paths = [self._path(ctx, frame, v) for v in _items(args) if v not in ("BEFORE", "AFTER")]
        self._append_dir_setting(frame, _DIR_LINK_DIRS, paths)

    def _cmd_find_package(self, ctx, frame, cmd, args):
        if not args:
            return
        package = args[0].text
        values = _values(args[1:])
        required = "REQUIRED" in values
        version = values[0] if values and values[0][:1].isdigit() else None
        kind = DependencyKind.BUILD if required else DependencyKind.OPTIONAL
        key = package.lower()
        if key in SYSTEM_PACKAGES:
            kind = DependencyKind.SYSTEM

        mapping = KNOWN_PACKAGES.get(key)
        if mapping is not None:
            name, url = mapping
            ctx.project.add_dependency(Dependency(name=name, version=version, url=url, kind=kind))
            return
        ctx.project.add_dependency(Dependency(name=package, version=version, kind=kind))
        if kind is not DependencyKind.SYSTEM:
            ctx.project.warn(Severity.INFO,
                             f"Unknown package '{package}', manual configuration may be needed",
                             frame.location(cmd),
                             "Add the dependency's source URL and hash to the manifest")

    def _cmd_pkg_check_modules(self, ctx, frame, cmd, args):
        if len(args) < 2:
            return
        values = _items(args[1:])
        required = "REQUIRED" in values
        for module in values:
            if module in ("REQUIRED", "QUIET", "IMPORTED_TARGET", "GLOBAL", "NO_CMAKE_PATH",
                          "NO_CMAKE_ENVIRONMENT_PATH"):
                continue
            match = _PKG_MODULE_RE.match(module)
            if not match:
                continue
            name, version = match.group(1), match.group(2)
            ctx.project.add_dependency(Dependency(
                name=name,
                version=version,
                kind=DependencyKind.SYSTEM if required else DependencyKind.OPTIONAL,
            ))

    COMMANDS = {
        "project": _cmd_project,
        "cmake_minimum_required": _cmd_cmake_minimum_required,
        "set": _cmd_set,
        "unset": _cmd_unset,
        "option": _cmd_option,
        "list": _cmd_list,
        "add_executable": _cmd_add_executable,
        "add_library": _cmd_add_library,
        "add_subdirectory": _cmd_add_subdirectory,
        "include": _cmd_include,
        "target_sources": _cmd_target_sources,
        "target_include_directories": _cmd_target_include_directories,
        "target_link_libraries": _cmd_target_link_libraries,
        "target_compile_definitions": _cmd_target_compile_definitions,
        "target_compile_options": _cmd_target_compile_options,
        "target_link_options": _cmd_target_link_options,
        "target_compile_features": _cmd_target_compile_features,
        "set_property": _cmd_set_property,
        "set_target_properties": _cmd_set_target_properties,
        "include_directories": _cmd_include_directories,
        "add_definitions": _cmd_add_definitions,
        "add_compile_definitions": _cmd_add_compile_definitions,
        "add_compile_options": _cmd_add_compile_options,
        "link_libraries": _cmd_link_libraries,
        "link_directories": _cmd_link_directories,
        "find_package": _cmd_find_package,
        "pkg_check_modules": _cmd_pkg_check_modules,
    }
