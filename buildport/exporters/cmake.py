"""CMakeLists.txt exporter."""

from typing import List

from ..model import BuildFormat, DependencyKind, Project, Target, TargetKind
from .base import Exporter, is_c_source

_LIBRARY_TYPES = {
    TargetKind.STATIC_LIBRARY: "STATIC",
    TargetKind.SHARED_LIBRARY: "SHARED",
    TargetKind.OBJECT_LIBRARY: "OBJECT",
    TargetKind.INTERFACE: "INTERFACE",
    TargetKind.HEADER_ONLY: "INTERFACE",
}


def quote(value: str) -> str:
    """Quote a CMake argument when it would otherwise be split or expanded."""
    if value and not any(ch in value for ch in ' \t\n"();#\\'):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _block(command: str, target: str, keyword: str, items: List[str]) -> str:
    lines = f"{command}({target} {keyword}\n"
    for item in items:
        lines += f"    {quote(item)}\n"
    lines += ")\n"
    return lines


class CMakeExporter(Exporter):
    """Render a project as a CMakeLists.txt."""

    format = BuildFormat.CMAKE
    default_filename = "CMakeLists.txt"

    def render(self, project: Project) -> str:
        languages = "CXX"
        if any(is_c_source(s) for t in project.targets for s in t.sources):
            languages = "C CXX"

        content = f"""# Generated CMakeLists.txt for {project.name}
# Exported by buildport

cmake_minimum_required(VERSION {self.options.cmake_minimum_version})
"""
        content += f"project({quote(project.name)}"
        if project.version:
            content += f" VERSION {project.version}"
        if project.description:
            content += f" DESCRIPTION {quote(project.description)}"
        if project.homepage:
            content += f" HOMEPAGE_URL {quote(project.homepage)}"
        content += f" LANGUAGES {languages})\n\n"

        if project.cxx_standard:
            content += f"set(CMAKE_CXX_STANDARD {project.cxx_standard})\n"
            content += "set(CMAKE_CXX_STANDARD_REQUIRED ON)\n"
        if project.c_standard:
            content += f"set(CMAKE_C_STANDARD {project.c_standard})\n"
        if project.cxx_standard or project.c_standard:
            content += "\n"

        for dep in project.dependencies:
            if dep.kind is DependencyKind.DEV:
                continue
            content += f"find_package({dep.name}"
            if dep.version and dep.version[:1].isdigit():
                content += f" {dep.version}"
            if dep.kind is not DependencyKind.OPTIONAL:
                content += " REQUIRED"
            content += ")\n"
        if project.dependencies:
            content += "\n"

        for target in project.targets:
            content += self._render_target(target) + "\n"
        return content

    def _render_target(self, target: Target) -> str:
        files = target.sources + target.headers
        if target.kind is TargetKind.EXECUTABLE:
            content = f"add_executable({target.name}"
        else:
            content = f"add_library({target.name} {_LIBRARY_TYPES[target.kind]}"
        if files and target.kind.has_sources:
            content += "\n"
            for path in files:
                content += f"    {quote(path)}\n"
        content += ")\n"

        # Interface targets can only carry usage requirements
        visibility = "PUBLIC" if target.kind.has_sources else "INTERFACE"
        if not target.kind.has_sources and files:
            content += _block("target_sources", target.name, "INTERFACE", files)
        flags = target.flags
        if flags.include_paths:
            content += _block("target_include_directories", target.name, visibility, flags.include_paths)
        if flags.system_include_paths:
            content += _block("target_include_directories", target.name, f"SYSTEM {visibility}",
                              flags.system_include_paths)
        if flags.defines:
            content += _block("target_compile_definitions", target.name, visibility, flags.defines)
        if flags.compile_flags:
            content += _block("target_compile_options", target.name, visibility, flags.compile_flags)
        if flags.link_flags:
            content += _block("target_link_options", target.name, visibility, flags.link_flags)
        libraries = target.dependencies + flags.link_libraries
        libraries += [f"-framework {name}" for name in flags.frameworks]
        if libraries:
            content += _block("target_link_libraries", target.name, visibility, libraries)
        return content
