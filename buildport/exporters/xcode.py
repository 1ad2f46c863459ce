"""
Xcode project exporter.

Generation happens in two passes. The first walks the project and reserves
every object UUID (targets, phases, build files, file references,
configurations) from a seeded IdentifierFactory. The second emits the
pbxproj sections in the alphabetical order Xcode itself uses, looking up the
reserved identifiers, so no section can reference an object that has no
identifier yet.
"""

import os
import re
from typing import Dict, List

from ..model import BuildFormat, Project, Target, TargetKind
from .base import Exporter
from .identifiers import IdentifierFactory, UuidPool

_BARE_RE = re.compile(r"^[A-Za-z0-9_$/.]+$")

_PRODUCTS = {
    TargetKind.EXECUTABLE: ("com.apple.product-type.tool", "compiled.mach-o.executable", "{name}"),
    TargetKind.STATIC_LIBRARY: ("com.apple.product-type.library.static", "archive.ar", "lib{name}.a"),
    TargetKind.SHARED_LIBRARY: ("com.apple.product-type.library.dynamic", "compiled.mach-o.dylib",
                                "lib{name}.dylib"),
    TargetKind.OBJECT_LIBRARY: ("com.apple.product-type.library.static", "archive.ar", "lib{name}.a"),
    TargetKind.HEADER_ONLY: ("com.apple.product-type.library.static", "archive.ar", "lib{name}.a"),
    TargetKind.INTERFACE: ("com.apple.product-type.library.static", "archive.ar", "lib{name}.a"),
}

_FILE_TYPES = {
    ".c": "sourcecode.c.c",
    ".m": "sourcecode.c.objc",
    ".mm": "sourcecode.cpp.objcpp",
    ".cpp": "sourcecode.cpp.cpp",
    ".cc": "sourcecode.cpp.cpp",
    ".cxx": "sourcecode.cpp.cpp",
    ".c++": "sourcecode.cpp.cpp",
    ".h": "sourcecode.c.h",
    ".hh": "sourcecode.cpp.h",
    ".hpp": "sourcecode.cpp.h",
    ".hxx": "sourcecode.cpp.h",
    ".inl": "sourcecode.cpp.h",
    ".swift": "sourcecode.swift",
}

CONFIGURATIONS = ["Debug", "Release"]


def pbx_string(value: str) -> str:
    """Quote a value for the pbxproj property-list syntax when needed."""
    if _BARE_RE.match(value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def _comment(text: str) -> str:
    return text.replace("*/", "*_/")


def _file_type(path: str) -> str:
    return _FILE_TYPES.get(os.path.splitext(path)[1].lower(), "text")


def _list_setting(values: List[str], indent: str) -> str:
    lines = "(\n"
    for value in ["$(inherited)"] + values:
        lines += f"{indent}\t{pbx_string(value)},\n"
    return lines + f"{indent})"


class _TargetIds:
    """Identifiers reserved for one target during the first pass."""

    def __init__(self, pool: UuidPool, target: Target):
        key = f"target:{target.name}"
        self.target = pool[key]
        self.product = pool[f"{key}:product"]
        self.sources_phase = pool[f"{key}:sources"]
        self.headers_phase = pool[f"{key}:headers"]
        self.frameworks_phase = pool[f"{key}:frameworks"]
        self.config_list = pool[f"{key}:configurations"]
        self.configs = [pool[f"{key}:configuration:{c}"] for c in CONFIGURATIONS]
        self.source_files = [pool[f"{key}:source:{s}"] for s in target.sources]
        self.header_files = [pool[f"{key}:header:{h}"] for h in target.headers]
        self.link_files: Dict[str, str] = {}
        self.proxies: Dict[str, str] = {}
        self.target_dependencies: Dict[str, str] = {}


class XcodeExporter(Exporter):
    """Render a project as an Xcode project.pbxproj."""

    format = BuildFormat.XCODE
    default_filename = "project.pbxproj"

    def outputs(self, project: Project, path: str) -> Dict[str, str]:
        if path.rstrip("/" + os.sep).endswith(".xcodeproj"):
            path = os.path.join(path, "project.pbxproj")
        elif os.path.isdir(path) or path.endswith(("/", os.sep)):
            path = os.path.join(path, f"{project.name}.xcodeproj", "project.pbxproj")
        return {path: self.render(project)}

    def render(self, project: Project) -> str:
        pool = UuidPool(IdentifierFactory(self.options.xcode_seed))

        # First pass: reserve every identifier in project order
        root_id = pool["project"]
        main_group = pool["group:main"]
        products_group = pool["group:products"]
        frameworks_group = pool["group:frameworks"]
        project_config_list = pool["project:configurations"]
        project_configs = [pool[f"project:configuration:{c}"] for c in CONFIGURATIONS]

        files: List[str] = []
        for target in project.targets:
            for path in target.sources + target.headers:
                if path not in files:
                    files.append(path)
        file_refs = {path: pool[f"file:{path}"] for path in files}

        system_refs: Dict[str, str] = {}
        for target in project.targets:
            for framework in target.flags.frameworks:
                system_refs.setdefault(f"{framework}.framework", pool[f"framework:{framework}"])
            for lib in target.flags.link_libraries:
                system_refs.setdefault(f"lib{lib}.tbd", pool[f"library:{lib}"])

        ids: Dict[str, _TargetIds] = {}
        for target in project.targets:
            ids[target.name] = _TargetIds(pool, target)
        for target in project.targets:
            own = ids[target.name]
            for dep_name in target.dependencies:
                dep = project.get_target(dep_name)
                if dep is None:
                    continue
                own.proxies[dep_name] = pool[f"target:{target.name}:proxy:{dep_name}"]
                own.target_dependencies[dep_name] = pool[f"target:{target.name}:dependency:{dep_name}"]
                if dep.kind in (TargetKind.STATIC_LIBRARY, TargetKind.SHARED_LIBRARY):
                    own.link_files[f"product:{dep_name}"] = pool[f"target:{target.name}:link:{dep_name}"]
            for framework in target.flags.frameworks:
                own.link_files[f"{framework}.framework"] = pool[f"target:{target.name}:link:{framework}.framework"]
            for lib in target.flags.link_libraries:
                own.link_files[f"lib{lib}.tbd"] = pool[f"target:{target.name}:link:lib{lib}.tbd"]

        # Second pass: emit sections
        content = """// !$*UTF8*$!
{
\tarchiveVersion = 1;
\tclasses = {
\t};
\tobjectVersion = 56;
\tobjects = {
"""
        section = ""
        for target in project.targets:
            own = ids[target.name]
            for path, build_id in zip(target.sources, own.source_files):
                name = _comment(os.path.basename(path))
                section += (f"\t\t{build_id} /* {name} in Sources */ = {{isa = PBXBuildFile; "
                            f"fileRef = {file_refs[path]} /* {name} */; }};\n")
            for path, build_id in zip(target.headers, own.header_files):
                name = _comment(os.path.basename(path))
                section += (f"\t\t{build_id} /* {name} in Headers */ = {{isa = PBXBuildFile; "
                            f"fileRef = {file_refs[path]} /* {name} */; }};\n")
            for key, build_id in own.link_files.items():
                if key.startswith("product:"):
                    ref = ids[key[len("product:"):]].product
                else:
                    ref = system_refs[key]
                name = _comment(key.split(":")[-1])
                section += (f"\t\t{build_id} /* {name} in Frameworks */ = {{isa = PBXBuildFile; "
                            f"fileRef = {ref}; }};\n")
        content += self._section("PBXBuildFile", section)

        section = ""
        for target in project.targets:
            own = ids[target.name]
            for dep_name, proxy in own.proxies.items():
                section += f"""\t\t{proxy} /* PBXContainerItemProxy */ = {{
\t\t\tisa = PBXContainerItemProxy;
\t\t\tcontainerPortal = {root_id} /* Project object */;
\t\t\tproxyType = 1;
\t\t\tremoteGlobalIDString = {ids[dep_name].target};
\t\t\tremoteInfo = {pbx_string(dep_name)};
\t\t}};
"""
        content += self._section("PBXContainerItemProxy", section)

        section = ""
        for path, ref in file_refs.items():
            tree = "<absolute>" if os.path.isabs(path) else "<group>"
            section += (f"\t\t{ref} /* {_comment(os.path.basename(path))} */ = {{isa = PBXFileReference; "
                        f"lastKnownFileType = {pbx_string(_file_type(path))}; "
                        f"path = {pbx_string(path)}; sourceTree = {pbx_string(tree)}; }};\n")
        for name, ref in system_refs.items():
            if name.endswith(".framework"):
                file_type, location = "wrapper.framework", f"System/Library/Frameworks/{name}"
            else:
                file_type, location = "sourcecode.text-based-dylib-definition", f"usr/lib/{name}"
            section += (f"\t\t{ref} /* {_comment(name)} */ = {{isa = PBXFileReference; "
                        f"lastKnownFileType = {pbx_string(file_type)}; name = {pbx_string(name)}; "
                        f"path = {pbx_string(location)}; sourceTree = SDKROOT; }};\n")
        for target in project.targets:
            _, file_type, pattern = _PRODUCTS[target.kind]
            product = pattern.format(name=target.name)
            section += (f"\t\t{ids[target.name].product} /* {_comment(product)} */ = {{isa = PBXFileReference; "
                        f"explicitFileType = {pbx_string(file_type)}; includeInIndex = 0; "
                        f"path = {pbx_string(product)}; sourceTree = BUILT_PRODUCTS_DIR; }};\n")
        content += self._section("PBXFileReference", section)

        section = ""
        for target in project.targets:
            own = ids[target.name]
            section += self._phase(own.frameworks_phase, "Frameworks", "PBXFrameworksBuildPhase",
                                   list(own.link_files.values()))
        content += self._section("PBXFrameworksBuildPhase", section)

        section = f"\t\t{main_group} = {{\n\t\t\tisa = PBXGroup;\n\t\t\tchildren = (\n"
        for path, ref in file_refs.items():
            section += f"\t\t\t\t{ref} /* {_comment(os.path.basename(path))} */,\n"
        if system_refs:
            section += f"\t\t\t\t{frameworks_group} /* Frameworks */,\n"
        section += f"\t\t\t\t{products_group} /* Products */,\n"
        section += "\t\t\t);\n\t\t\tsourceTree = \"<group>\";\n\t\t};\n"
        section += f"\t\t{products_group} /* Products */ = {{\n\t\t\tisa = PBXGroup;\n\t\t\tchildren = (\n"
        for target in project.targets:
            section += f"\t\t\t\t{ids[target.name].product},\n"
        section += "\t\t\t);\n\t\t\tname = Products;\n\t\t\tsourceTree = \"<group>\";\n\t\t};\n"
        if system_refs:
            section += f"\t\t{frameworks_group} /* Frameworks */ = {{\n\t\t\tisa = PBXGroup;\n\t\t\tchildren = (\n"
            for name, ref in system_refs.items():
                section += f"\t\t\t\t{ref} /* {_comment(name)} */,\n"
            section += "\t\t\t);\n\t\t\tname = Frameworks;\n\t\t\tsourceTree = \"<group>\";\n\t\t};\n"
        content += self._section("PBXGroup", section)

        section = ""
        for target in project.targets:
            own = ids[target.name]
            if target.headers:
                section += self._phase(own.headers_phase, "Headers", "PBXHeadersBuildPhase", own.header_files)
        content += self._section("PBXHeadersBuildPhase", section)

        section = ""
        for target in project.targets:
            section += self._native_target(target, ids[target.name])
        content += self._section("PBXNativeTarget", section)

        section = f"""\t\t{root_id} /* Project object */ = {{
\t\t\tisa = PBXProject;
\t\t\tattributes = {{
\t\t\t\tBuildIndependentTargetsInParallel = 1;
\t\t\t\tLastUpgradeCheck = 1500;
\t\t\t}};
\t\t\tbuildConfigurationList = {project_config_list};
\t\t\tcompatibilityVersion = "Xcode 14.0";
\t\t\tdevelopmentRegion = en;
\t\t\thasScannedForEncodings = 0;
\t\t\tknownRegions = (
\t\t\t\ten,
\t\t\t\tBase,
\t\t\t);
\t\t\tmainGroup = {main_group};
\t\t\tproductRefGroup = {products_group} /* Products */;
\t\t\tprojectDirPath = "";
\t\t\tprojectRoot = "";
\t\t\ttargets = (
"""
        for target in project.targets:
            section += f"\t\t\t\t{ids[target.name].target} /* {_comment(target.name)} */,\n"
        section += "\t\t\t);\n\t\t};\n"
        content += self._section("PBXProject", section)

        section = ""
        for target in project.targets:
            own = ids[target.name]
            sources = own.source_files if target.kind.has_sources else []
            section += self._phase(own.sources_phase, "Sources", "PBXSourcesBuildPhase", sources)
        content += self._section("PBXSourcesBuildPhase", section)

        section = ""
        for target in project.targets:
            own = ids[target.name]
            for dep_name, dependency in own.target_dependencies.items():
                section += f"""\t\t{dependency} /* PBXTargetDependency */ = {{
\t\t\tisa = PBXTargetDependency;
\t\t\ttarget = {ids[dep_name].target} /* {_comment(dep_name)} */;
\t\t\ttargetProxy = {own.proxies[dep_name]} /* PBXContainerItemProxy */;
\t\t}};
"""
        content += self._section("PBXTargetDependency", section)

        section = ""
        for config_id, name in zip(project_configs, CONFIGURATIONS):
            section += self._configuration(config_id, name, self._project_settings(project, name))
        for target in project.targets:
            for config_id, name in zip(ids[target.name].configs, CONFIGURATIONS):
                section += self._configuration(config_id, name, self._target_settings(target, name))
        content += self._section("XCBuildConfiguration", section)

        section = self._configuration_list(project_config_list, f'PBXProject "{project.name}"', project_configs)
        for target in project.targets:
            own = ids[target.name]
            section += self._configuration_list(own.config_list, f'PBXNativeTarget "{target.name}"', own.configs)
        content += self._section("XCConfigurationList", section)

        content += f"""\t}};
\trootObject = {root_id} /* Project object */;
}}
"""
        return content

    @staticmethod
    def _section(name: str, body: str) -> str:
        if not body:
            return ""
        return f"\n/* Begin {name} section */\n{body}/* End {name} section */\n"

    @staticmethod
    def _phase(uuid: str, label: str, isa: str, files: List[str]) -> str:
        content = f"""\t\t{uuid} /* {label} */ = {{
\t\t\tisa = {isa};
\t\t\tbuildActionMask = 2147483647;
\t\t\tfiles = (
"""
        for file_id in files:
            content += f"\t\t\t\t{file_id},\n"
        content += "\t\t\t);\n\t\t\trunOnlyForDeploymentPostprocessing = 0;\n\t\t};\n"
        return content

    def _native_target(self, target: Target, own: _TargetIds) -> str:
        product_type = _PRODUCTS[target.kind][0]
        phases = []
        if target.headers:
            phases.append(f"{own.headers_phase} /* Headers */")
        phases += [f"{own.sources_phase} /* Sources */", f"{own.frameworks_phase} /* Frameworks */"]
        content = f"""\t\t{own.target} /* {_comment(target.name)} */ = {{
\t\t\tisa = PBXNativeTarget;
\t\t\tbuildConfigurationList = {own.config_list};
\t\t\tbuildPhases = (
"""
        for phase in phases:
            content += f"\t\t\t\t{phase},\n"
        content += "\t\t\t);\n\t\t\tbuildRules = (\n\t\t\t);\n\t\t\tdependencies = (\n"
        for dependency in own.target_dependencies.values():
            content += f"\t\t\t\t{dependency} /* PBXTargetDependency */,\n"
        content += f"""\t\t\t);
\t\t\tname = {pbx_string(target.name)};
\t\t\tproductName = {pbx_string(target.name)};
\t\t\tproductReference = {own.product};
\t\t\tproductType = {pbx_string(product_type)};
\t\t}};
"""
        return content

    @staticmethod
    def _project_settings(project: Project, configuration: str) -> Dict[str, str]:
        settings = {"SDKROOT": "macosx"}
        if project.cxx_standard:
            settings["CLANG_CXX_LANGUAGE_STANDARD"] = pbx_string(f"c++{project.cxx_standard}")
        if project.c_standard:
            settings["GCC_C_LANGUAGE_STANDARD"] = pbx_string(f"c{project.c_standard}")
        if configuration == "Debug":
            settings["GCC_OPTIMIZATION_LEVEL"] = "0"
            settings["ONLY_ACTIVE_ARCH"] = "YES"
        return settings

    @staticmethod
    def _target_settings(target: Target, configuration: str) -> Dict[str, str]:
        indent = "\t\t\t\t"
        flags = target.flags
        settings = {"PRODUCT_NAME": '"$(TARGET_NAME)"'}
        if flags.include_paths:
            settings["HEADER_SEARCH_PATHS"] = _list_setting(flags.include_paths, indent)
        if flags.system_include_paths:
            settings["SYSTEM_HEADER_SEARCH_PATHS"] = _list_setting(flags.system_include_paths, indent)
        if flags.defines:
            settings["GCC_PREPROCESSOR_DEFINITIONS"] = _list_setting(flags.defines, indent)
        if flags.compile_flags:
            settings["OTHER_CPLUSPLUSFLAGS"] = _list_setting(flags.compile_flags, indent)
        if flags.link_flags:
            settings["OTHER_LDFLAGS"] = _list_setting(flags.link_flags, indent)
        if target.kind is TargetKind.SHARED_LIBRARY:
            settings["EXECUTABLE_PREFIX"] = "lib"
        return settings

    @staticmethod
    def _configuration(uuid: str, name: str, settings: Dict[str, str]) -> str:
        content = f"\t\t{uuid} /* {name} */ = {{\n\t\t\tisa = XCBuildConfiguration;\n\t\t\tbuildSettings = {{\n"
        for key in sorted(settings):
            content += f"\t\t\t\t{key} = {settings[key]};\n"
        content += f"\t\t\t}};\n\t\t\tname = {name};\n\t\t}};\n"
        return content

    @staticmethod
    def _configuration_list(uuid: str, owner: str, configs: List[str]) -> str:
        content = f"""\t\t{uuid} /* Build configuration list for {_comment(owner)} */ = {{
\t\t\tisa = XCConfigurationList;
\t\t\tbuildConfigurations = (
"""
        for config_id, name in zip(configs, CONFIGURATIONS):
            content += f"\t\t\t\t{config_id} /* {name} */,\n"
        content += f"""\t\t\t);
\t\t\tdefaultConfigurationIsVisible = 0;
\t\t\tdefaultConfigurationName = Release;
\t\t}};
"""
        return content
