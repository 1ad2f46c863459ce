"""
Xcode project importer.

The pbxproj object table is a graph keyed by 24-character UUIDs. Targets
reach their files through build phase -> build file -> file reference, and
file references only carry a path relative to their parent group, so group
paths are resolved once up front.
"""

import logging
import os
from typing import Any, Dict, List, Optional

from ..model import BuildFormat, Project, Target, TargetKind
from .base import Importer, project_path, read_text
from .pbxproj import extract_objects, parse_literal

logger = logging.getLogger(__name__)

_PRODUCT_KINDS = [
    ("library.static", TargetKind.STATIC_LIBRARY),
    ("framework.static", TargetKind.STATIC_LIBRARY),
    ("library.dynamic", TargetKind.SHARED_LIBRARY),
    ("framework", TargetKind.SHARED_LIBRARY),
    ("bundle.unit-test", TargetKind.EXECUTABLE),
    ("bundle", TargetKind.SHARED_LIBRARY),
    ("application", TargetKind.EXECUTABLE),
    ("tool", TargetKind.EXECUTABLE),
]

_LIBRARY_EXTENSIONS = (".a", ".dylib", ".tbd", ".so")


def product_kind(product_type: str) -> TargetKind:
    for marker, kind in _PRODUCT_KINDS:
        if marker in product_type:
            return kind
    return TargetKind.EXECUTABLE


def _as_list(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    return str(value).split()


def _clean(values: List[str]) -> List[str]:
    """Drop inherited-value and bare build setting references."""
    cleaned = []
    for value in values:
        value = value.strip('"')
        if not value or (value.startswith("$(") and value.endswith(")")):
            continue
        cleaned.append(value)
    return cleaned


def _library_name(filename: str) -> str:
    stem = os.path.splitext(os.path.basename(filename))[0]
    return stem[3:] if stem.startswith("lib") else stem


class _ObjectGraph:
    """UUID -> object lookups, parsing each literal on first use."""

    def __init__(self, raw: Dict[str, str], path: str):
        self.raw = raw
        self.path = path
        self._parsed: Dict[str, Optional[Dict[str, Any]]] = {}

    def get(self, uuid: Optional[str]) -> Optional[Dict[str, Any]]:
        if uuid is None or uuid not in self.raw:
            return None
        if uuid not in self._parsed:
            value = parse_literal(self.raw[uuid], self.path)
            self._parsed[uuid] = value if isinstance(value, dict) else None
        return self._parsed[uuid]

    def of_type(self, isa: str) -> List[str]:
        return [uuid for uuid, text in self.raw.items()
                if isa in text and (self.get(uuid) or {}).get("isa") == isa]


class XcodeImporter(Importer):
    """Import an .xcodeproj bundle (or its project.pbxproj file)."""

    format = BuildFormat.XCODE

    def import_file(self, path: str) -> Project:
        path = os.path.abspath(path)
        if os.path.isdir(path):
            bundle = path
            pbxproj = os.path.join(path, "project.pbxproj")
        else:
            bundle = os.path.dirname(path)
            pbxproj = path
        text = read_text(pbxproj)
        root = os.path.dirname(bundle)
        name = os.path.splitext(os.path.basename(bundle))[0] or self.default_name(bundle)

        project = Project(name, root)
        raw, top_level = extract_objects(text, pbxproj)
        graph = _ObjectGraph(raw, pbxproj)
        logger.debug(f"Importing Xcode project {bundle} ({len(raw)} objects)")

        root_object = graph.get(top_level.get("rootObject")) or {}
        file_paths = self._resolve_file_paths(graph, root_object, root)
        products = {}
        for uuid in graph.of_type("PBXNativeTarget"):
            obj = graph.get(uuid)
            if obj.get("productReference"):
                products[obj["productReference"]] = obj.get("name", uuid)

        target_ids = _as_list(root_object.get("targets")) or graph.of_type("PBXNativeTarget")
        for uuid in target_ids:
            obj = graph.get(uuid)
            if obj is None or obj.get("isa") != "PBXNativeTarget":
                continue
            project.add_target(self._import_target(graph, obj, file_paths, products))

        for uuid in graph.of_type("XCBuildConfiguration"):
            settings = graph.get(uuid).get("buildSettings") or {}
            if "CLANG_CXX_LANGUAGE_STANDARD" in settings:
                project.set_cxx_standard(str(settings["CLANG_CXX_LANGUAGE_STANDARD"]))
            if "GCC_C_LANGUAGE_STANDARD" in settings:
                project.set_c_standard(str(settings["GCC_C_LANGUAGE_STANDARD"]))
        return project

    def _resolve_file_paths(self, graph: _ObjectGraph, root_object: Dict[str, Any],
                            root: str) -> Dict[str, str]:
        """Walk the group tree from mainGroup and return fileRef UUID -> project path."""
        paths: Dict[str, str] = {}
        project_dir = root_object.get("projectDirPath") or ""
        base = os.path.normpath(os.path.join(root, project_dir))

        def walk(uuid: str, parent: str, seen: set):
            if uuid in seen:
                return
            seen.add(uuid)
            obj = graph.get(uuid)
            if obj is None:
                return
            own = obj.get("path")
            tree = obj.get("sourceTree", "<group>")
            if tree == "<absolute>" and own:
                location = own
            elif tree == "SOURCE_ROOT":
                location = os.path.join(base, own) if own else base
            elif tree == "<group>":
                location = os.path.join(parent, own) if own else parent
            else:
                # SDKROOT, BUILT_PRODUCTS_DIR, DEVELOPER_DIR...
                location = own or obj.get("name", "")
                if obj.get("isa") == "PBXFileReference":
                    paths[uuid] = location
                return
            if obj.get("isa") == "PBXFileReference":
                paths[uuid] = project_path(root, root, location)
            for child in _as_list(obj.get("children")):
                walk(child, location, seen)

        main_group = root_object.get("mainGroup")
        if main_group:
            walk(main_group, base, set())
        # References that are not reachable from the main group
        for uuid in graph.of_type("PBXFileReference"):
            if uuid not in paths:
                obj = graph.get(uuid)
                paths[uuid] = obj.get("path") or obj.get("name", "")
        return paths

    def _phase_files(self, graph: _ObjectGraph, phase: Dict[str, Any]) -> List[str]:
        refs = []
        for build_file_id in _as_list(phase.get("files")):
            build_file = graph.get(build_file_id)
            if build_file and build_file.get("fileRef"):
                refs.append(build_file["fileRef"])
        return refs

    def _import_target(self, graph: _ObjectGraph, obj: Dict[str, Any],
                       file_paths: Dict[str, str], products: Dict[str, str]) -> Target:
        target = Target(name=obj.get("name", "target"), kind=product_kind(obj.get("productType", "")))

        for phase_id in _as_list(obj.get("buildPhases")):
            phase = graph.get(phase_id)
            if phase is None:
                continue
            isa = phase.get("isa")
            refs = self._phase_files(graph, phase)
            if isa == "PBXSourcesBuildPhase":
                target.add_sources(file_paths[r] for r in refs if r in file_paths)
            elif isa == "PBXHeadersBuildPhase":
                target.add_headers(file_paths[r] for r in refs if r in file_paths)
            elif isa == "PBXFrameworksBuildPhase":
                for ref in refs:
                    if ref in products:
                        target.add_dependencies([products[ref]])
                        continue
                    path = file_paths.get(ref, "")
                    if path.endswith(".framework"):
                        name = os.path.basename(path)[: -len(".framework")]
                        if name not in target.flags.frameworks:
                            target.flags.frameworks.append(name)
                    elif path.endswith(_LIBRARY_EXTENSIONS):
                        name = _library_name(path)
                        if name not in target.flags.link_libraries:
                            target.flags.link_libraries.append(name)

        for dep_id in _as_list(obj.get("dependencies")):
            dep = graph.get(dep_id) or {}
            other = graph.get(dep.get("target"))
            name = (other or {}).get("name") or dep.get("name")
            if name:
                target.add_dependencies([name])

        config_list = graph.get(obj.get("buildConfigurationList")) or {}
        configs = _as_list(config_list.get("buildConfigurations"))
        first = graph.get(configs[0]) if configs else None
        if first is not None:
            settings = first.get("buildSettings") or {}
            flags = target.flags
            flags.include_paths.extend(_clean(_as_list(settings.get("HEADER_SEARCH_PATHS"))))
            flags.system_include_paths.extend(_clean(_as_list(settings.get("SYSTEM_HEADER_SEARCH_PATHS"))))
            flags.defines.extend(_clean(_as_list(settings.get("GCC_PREPROCESSOR_DEFINITIONS"))))
            flags.compile_flags.extend(_clean(_as_list(settings.get("OTHER_CPLUSPLUSFLAGS"))
                                              or _as_list(settings.get("OTHER_CFLAGS"))))
            flags.link_flags.extend(_clean(_as_list(settings.get("OTHER_LDFLAGS"))))
        return target
