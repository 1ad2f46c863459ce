"""
Visual Studio exporter.

Each target becomes its own .vcxproj; writing also produces a .sln tying
them together. Project GUIDs depend only on the identifier seed and the
target name, so ProjectReference entries and the solution agree with each
other and stay the same across exports.
"""

import os
from typing import Dict, List, Optional
from xml.sax.saxutils import escape, quoteattr

from ..model import BuildFormat, Project, Target, TargetKind
from .base import Exporter
from .identifiers import stable_guid

CPP_PROJECT_TYPE = "8BC9CEB8-8B4A-11D0-8D11-00A0C91BC942"

CONFIGURATIONS = ["Debug", "Release"]
PLATFORMS = ["Win32", "x64"]

_CONFIGURATION_TYPES = {
    TargetKind.EXECUTABLE: "Application",
    TargetKind.STATIC_LIBRARY: "StaticLibrary",
    TargetKind.SHARED_LIBRARY: "DynamicLibrary",
    TargetKind.OBJECT_LIBRARY: "StaticLibrary",
    TargetKind.HEADER_ONLY: "Utility",
    TargetKind.INTERFACE: "Utility",
}


def language_standard(std: Optional[str]) -> Optional[str]:
    """MSVC LanguageStandard value for a normalized C++ standard."""
    if not std:
        return None
    if std == "latest":
        return "stdcpplatest"
    if std in ("98", "03", "11", "14"):
        # MSVC has no switch below C++14
        return "stdcpp14"
    return f"stdcpp{std}"


def c_language_standard(std: Optional[str]) -> Optional[str]:
    if std in ("11", "17"):
        return f"stdc{std}"
    return None


def _condition(configuration: str, platform: str) -> str:
    return f"'$(Configuration)|$(Platform)'=='{configuration}|{platform}'"


def _joined(items: List[str], inherited: str) -> str:
    return escape(";".join(items + [f"%({inherited})"]))


class MSBuildExporter(Exporter):
    """Render a project as Visual Studio C++ projects."""

    format = BuildFormat.MSBUILD
    default_filename = "project.vcxproj"

    def project_guid(self, target_name: str) -> str:
        return stable_guid(self.options.xcode_seed, target_name)

    def render(self, project: Project) -> str:
        """Render the first target's .vcxproj (or an empty utility project)."""
        if project.targets:
            return self.render_target(project, project.targets[0])
        return self.render_target(project, Target(name=project.name, kind=TargetKind.INTERFACE))

    def render_target(self, project: Project, target: Target,
                      file_names: Optional[Dict[str, str]] = None) -> str:
        guid = self.project_guid(target.name)
        configuration_type = _CONFIGURATION_TYPES[target.kind]

        content = """<?xml version="1.0" encoding="utf-8"?>
<!-- Generated by buildport -->
<Project DefaultTargets="Build" xmlns="http://schemas.microsoft.com/developer/msbuild/2003">
  <ItemGroup Label="ProjectConfigurations">
"""
        for configuration in CONFIGURATIONS:
            for platform in PLATFORMS:
                content += f"""    <ProjectConfiguration Include="{configuration}|{platform}">
      <Configuration>{configuration}</Configuration>
      <Platform>{platform}</Platform>
    </ProjectConfiguration>
"""
        content += f"""  </ItemGroup>
  <PropertyGroup Label="Globals">
    <VCProjectVersion>16.0</VCProjectVersion>
    <Keyword>Win32Proj</Keyword>
    <ProjectGuid>{{{guid}}}</ProjectGuid>
    <ProjectName>{escape(target.name)}</ProjectName>
    <RootNamespace>{escape(target.name)}</RootNamespace>
    <WindowsTargetPlatformVersion>10.0</WindowsTargetPlatformVersion>
  </PropertyGroup>
  <Import Project="$(VCTargetsPath)\\Microsoft.Cpp.Default.props" />
"""
        for configuration in CONFIGURATIONS:
            debug = configuration == "Debug"
            for platform in PLATFORMS:
                content += f"""  <PropertyGroup Condition="{_condition(configuration, platform)}" Label="Configuration">
    <ConfigurationType>{configuration_type}</ConfigurationType>
    <UseDebugLibraries>{str(debug).lower()}</UseDebugLibraries>
    <PlatformToolset>v143</PlatformToolset>
"""
                if not debug:
                    content += "    <WholeProgramOptimization>true</WholeProgramOptimization>\n"
                content += """    <CharacterSet>Unicode</CharacterSet>
  </PropertyGroup>
"""
        content += """  <Import Project="$(VCTargetsPath)\\Microsoft.Cpp.props" />
  <PropertyGroup Label="UserMacros" />
"""
        for configuration in CONFIGURATIONS:
            for platform in PLATFORMS:
                content += self._item_definitions(project, target, configuration, platform)

        sources = target.sources if target.kind.has_sources else []
        if sources:
            content += "  <ItemGroup>\n"
            for path in sources:
                content += f"    <ClCompile Include={quoteattr(_windows_path(path))} />\n"
            content += "  </ItemGroup>\n"
        headers = target.headers + ([] if target.kind.has_sources else target.sources)
        if headers:
            content += "  <ItemGroup>\n"
            for path in headers:
                content += f"    <ClInclude Include={quoteattr(_windows_path(path))} />\n"
            content += "  </ItemGroup>\n"

        references = [name for name in target.dependencies if project.get_target(name) is not None]
        if references:
            content += "  <ItemGroup>\n"
            for name in references:
                content += f"""    <ProjectReference Include={quoteattr(_project_file(name, file_names))}>
      <Project>{{{self.project_guid(name)}}}</Project>
    </ProjectReference>
"""
            content += "  </ItemGroup>\n"

        content += """  <Import Project="$(VCTargetsPath)\\Microsoft.Cpp.targets" />
</Project>
"""
        return content

    def _item_definitions(self, project: Project, target: Target, configuration: str, platform: str) -> str:
        flags = target.flags
        debug = configuration == "Debug"
        defines = [("_DEBUG" if debug else "NDEBUG")] + flags.defines
        includes = [_windows_path(p) for p in flags.include_paths + flags.system_include_paths]

        content = f"""  <ItemDefinitionGroup Condition="{_condition(configuration, platform)}">
    <ClCompile>
      <WarningLevel>Level3</WarningLevel>
      <SDLCheck>true</SDLCheck>
      <PreprocessorDefinitions>{_joined(defines, "PreprocessorDefinitions")}</PreprocessorDefinitions>
"""
        if includes:
            content += (f"      <AdditionalIncludeDirectories>{_joined(includes, 'AdditionalIncludeDirectories')}"
                        f"</AdditionalIncludeDirectories>\n")
        cxx_std = language_standard(project.cxx_standard)
        if cxx_std:
            content += f"      <LanguageStandard>{cxx_std}</LanguageStandard>\n"
        c_std = c_language_standard(project.c_standard)
        if c_std:
            content += f"      <LanguageStandard_C>{c_std}</LanguageStandard_C>\n"
        if flags.compile_flags:
            content += (f"      <AdditionalOptions>{escape(' '.join(flags.compile_flags))} "
                        f"%(AdditionalOptions)</AdditionalOptions>\n")
        content += """    </ClCompile>
    <Link>
      <SubSystem>Console</SubSystem>
      <GenerateDebugInformation>true</GenerateDebugInformation>
"""
        libraries = [f"{lib}.lib" for lib in flags.link_libraries]
        if libraries:
            content += (f"      <AdditionalDependencies>{_joined(libraries, 'AdditionalDependencies')}"
                        f"</AdditionalDependencies>\n")
        if flags.link_flags:
            content += (f"      <AdditionalOptions>{escape(' '.join(flags.link_flags))} "
                        f"%(AdditionalOptions)</AdditionalOptions>\n")
        content += """    </Link>
  </ItemDefinitionGroup>
"""
        return content

    def render_solution(self, project: Project, file_names: Optional[Dict[str, str]] = None) -> str:
        content = """Microsoft Visual Studio Solution File, Format Version 12.00
# Visual Studio Version 17
VisualStudioVersion = 17.0.31903.59
MinimumVisualStudioVersion = 10.0.40219.1
"""
        guids = []
        for target in project.targets:
            guid = self.project_guid(target.name)
            guids.append(guid)
            content += (f'Project("{{{CPP_PROJECT_TYPE}}}") = "{target.name}", '
                        f'"{_project_file(target.name, file_names)}", "{{{guid}}}"\nEndProject\n')

        content += "Global\n\tGlobalSection(SolutionConfigurationPlatforms) = preSolution\n"
        for configuration in CONFIGURATIONS:
            for platform in PLATFORMS:
                content += f"\t\t{configuration}|{platform} = {configuration}|{platform}\n"
        content += "\tEndGlobalSection\n\tGlobalSection(ProjectConfigurationPlatforms) = postSolution\n"
        for guid in guids:
            for configuration in CONFIGURATIONS:
                for platform in PLATFORMS:
                    key = f"{{{guid}}}.{configuration}|{platform}"
                    content += f"\t\t{key}.ActiveCfg = {configuration}|{platform}\n"
                    content += f"\t\t{key}.Build.0 = {configuration}|{platform}\n"
        content += "\tEndGlobalSection\nEndGlobal\n"
        return content

    def outputs(self, project: Project, path: str) -> Dict[str, str]:
        """
        Render every .vcxproj plus the solution.

        ``path`` may be a directory, a .sln file or a .vcxproj file; in the
        last case it receives the first target's project, and the solution
        and project references point at that file.
        """
        documents: Dict[str, str] = {}
        file_names: Dict[str, str] = {}
        if os.path.isdir(path) or path.endswith(("/", os.sep)):
            directory, solution = path, os.path.join(path, f"{project.name}.sln")
        elif path.lower().endswith(".sln"):
            directory, solution = os.path.dirname(path), path
        else:
            directory = os.path.dirname(path)
            solution = os.path.join(directory, f"{project.name}.sln")
            if project.targets:
                first = project.targets[0]
                file_names[first.name] = os.path.basename(path)
                documents[path] = self.render_target(project, first, file_names)
            else:
                documents[path] = self.render(project)

        for target in project.targets:
            target_path = os.path.join(directory, f"{target.name}.vcxproj")
            if documents and target is project.targets[0]:
                continue
            documents[target_path] = self.render_target(project, target, file_names)
        if not project.targets and not documents:
            documents[os.path.join(directory, f"{project.name}.vcxproj")] = self.render(project)
        documents[solution] = self.render_solution(project, file_names)
        return documents


def _project_file(target_name: str, file_names: Optional[Dict[str, str]]) -> str:
    return (file_names or {}).get(target_name, f"{target_name}.vcxproj")


def _windows_path(path: str) -> str:
    if "$" in path:
        return path
    return path.replace("/", "\\")
