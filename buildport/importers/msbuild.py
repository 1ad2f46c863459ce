"""
MSBuild importer for Visual C++ projects (.vcxproj) and solutions (.sln).
"""

import logging
import os
import re
import xml.etree.ElementTree as ET
from typing import List, Optional

from ..errors import ParseError, SourceNotFoundError
from ..model import BuildFormat, Project, Severity, Target, TargetKind
from .base import Importer, project_path, read_text

logger = logging.getLogger(__name__)

# Project("{type-guid}") = "Name", "path\to\Name.vcxproj", "{project-guid}"
SLN_PROJECT_RE = re.compile(r'Project\("{([^}]+)}"\)\s*=\s*"([^"]+)"\s*,\s*"([^"]+)"\s*,\s*"{([^}]+)}"')

_CONFIGURATION_KINDS = {
    "Application": TargetKind.EXECUTABLE,
    "StaticLibrary": TargetKind.STATIC_LIBRARY,
    "DynamicLibrary": TargetKind.SHARED_LIBRARY,
    "Utility": TargetKind.INTERFACE,
}


def split_items(text: Optional[str]) -> List[str]:
    """Split a semicolon list, dropping inherited ``%(...)`` placeholders."""
    if not text:
        return []
    items = []
    for item in text.split(";"):
        item = item.strip()
        if not item or (item.startswith("%(") and item.endswith(")")):
            continue
        items.append(item)
    return items


def _strip_namespaces(root: ET.Element):
    for elem in root.iter():
        if isinstance(elem.tag, str) and "}" in elem.tag:
            elem.tag = elem.tag.split("}", 1)[1]


class MSBuildImporter(Importer):
    """Import a .vcxproj file, or every C++ project listed in a .sln file."""

    format = BuildFormat.MSBUILD

    def import_file(self, path: str) -> Project:
        path = os.path.abspath(path)
        if path.lower().endswith(".sln"):
            return self._import_solution(path)

        if not os.path.isfile(path):
            raise SourceNotFoundError(path)
        root = os.path.dirname(path)
        project = Project(os.path.splitext(os.path.basename(path))[0], root)
        target = self._import_vcxproj(path, project, root)
        project.name = target.name
        return project

    def _import_solution(self, path: str) -> Project:
        text = read_text(path)
        root = os.path.dirname(path)
        project = Project(os.path.splitext(os.path.basename(path))[0], root)
        for match in SLN_PROJECT_RE.finditer(text):
            name, relative = match.group(2), match.group(3)
            if not relative.lower().endswith(".vcxproj"):
                logger.debug(f"Skipping non C++ solution entry {name}")
                continue
            proj_path = os.path.normpath(os.path.join(root, relative.replace("\\", "/")))
            try:
                self._import_vcxproj(proj_path, project, root)
            except (SourceNotFoundError, ParseError) as e:
                project.warn(Severity.WARNING, f"Skipping project '{name}': {e}", path)
        return project

    def _import_vcxproj(self, path: str, project: Project, root: str) -> Target:
        if not os.path.isfile(path):
            raise SourceNotFoundError(path)
        try:
            tree = ET.parse(path)
        except ET.ParseError as e:
            raise ParseError(str(e), path) from e
        xml_root = tree.getroot()
        _strip_namespaces(xml_root)
        proj_dir = os.path.dirname(path)
        logger.debug(f"Importing MSBuild project {path}")

        name = None
        kind = None
        for group in xml_root.iter("PropertyGroup"):
            for child in group:
                text = (child.text or "").strip()
                if child.tag == "ProjectName" and text:
                    name = text
                elif child.tag == "RootNamespace" and text and name is None:
                    name = text
                elif child.tag == "ConfigurationType" and kind is None:
                    kind = _CONFIGURATION_KINDS.get(text)
                    if kind is None:
                        project.warn(Severity.WARNING,
                                     f"ConfigurationType '{text}' has no equivalent, treated as interface",
                                     path)
                        kind = TargetKind.INTERFACE
        target = Target(name=name or os.path.splitext(os.path.basename(path))[0],
                        kind=kind or TargetKind.EXECUTABLE)

        for group in xml_root.iter("ItemGroup"):
            for item in group:
                include = item.get("Include")
                if not include or include.startswith("$("):
                    continue
                if item.tag == "ClCompile":
                    target.add_sources([project_path(root, proj_dir, include)])
                elif item.tag == "ClInclude":
                    target.add_headers([project_path(root, proj_dir, include)])
                elif item.tag == "ProjectReference":
                    stem = os.path.splitext(os.path.basename(include.replace("\\", "/")))[0]
                    target.add_dependencies([stem])

        flags = target.flags
        for group in xml_root.iter("ItemDefinitionGroup"):
            compile_settings = group.find("ClCompile")
            if compile_settings is not None:
                for define in split_items(compile_settings.findtext("PreprocessorDefinitions")):
                    if define not in flags.defines:
                        flags.defines.append(define)
                for directory in split_items(compile_settings.findtext("AdditionalIncludeDirectories")):
                    include_path = project_path(root, proj_dir, directory)
                    if include_path not in flags.include_paths:
                        flags.include_paths.append(include_path)
                for option in (compile_settings.findtext("AdditionalOptions") or "").split():
                    if not option.startswith("%(") and option not in flags.compile_flags:
                        flags.compile_flags.append(option)
                standard = compile_settings.findtext("LanguageStandard")
                if standard:
                    project.set_cxx_standard(standard)
                c_standard = compile_settings.findtext("LanguageStandard_C")
                if c_standard:
                    project.set_c_standard(c_standard)

            link_settings = group.find("Link")
            if link_settings is not None:
                for lib in split_items(link_settings.findtext("AdditionalDependencies")):
                    if lib.lower().endswith(".lib"):
                        lib = lib[:-4]
                    if lib not in flags.link_libraries:
                        flags.link_libraries.append(lib)
                for option in (link_settings.findtext("AdditionalOptions") or "").split():
                    if not option.startswith("%(") and option not in flags.link_flags:
                        flags.link_flags.append(option)

        if self.options.verbose:
            project.warn(Severity.INFO, f"Parsed MSBuild project '{target.name}'", path)
        return project.add_target(target)
