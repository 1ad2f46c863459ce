"""vcpkg manifest (vcpkg.json) importer."""

import json
import logging
import os
from typing import Any, Optional

from ..model import BuildFormat, Dependency, DependencyKind, Project, Severity
from .base import Importer, read_text

logger = logging.getLogger(__name__)

_VERSION_KEYS = ("version", "version-semver", "version-date", "version-string")


def _as_list(value) -> list:
    return value if isinstance(value, list) else []


class VcpkgImporter(Importer):
    """Import package metadata and dependencies from vcpkg.json."""

    format = BuildFormat.VCPKG

    def import_file(self, path: str) -> Project:
        path = os.path.abspath(path)
        if os.path.isdir(path):
            path = os.path.join(path, "vcpkg.json")
        text = read_text(path)
        project = Project(self.default_name(path), os.path.dirname(path))

        try:
            manifest = json.loads(text)
        except json.JSONDecodeError as e:
            project.warn(Severity.ERROR, f"Invalid JSON in vcpkg manifest: {e}", path)
            return project
        if not isinstance(manifest, dict):
            project.warn(Severity.ERROR, "vcpkg manifest must be a JSON object", path)
            return project

        if isinstance(manifest.get("name"), str):
            project.name = manifest["name"]
        for key in _VERSION_KEYS:
            if isinstance(manifest.get(key), str):
                project.version = manifest[key]
                break
        description = manifest.get("description")
        if isinstance(description, list):
            description = " ".join(str(line) for line in description)
        if isinstance(description, str):
            project.description = description
        if isinstance(manifest.get("homepage"), str):
            project.homepage = manifest["homepage"]
        if isinstance(manifest.get("license"), str):
            project.license = manifest["license"]

        for item in _as_list(manifest.get("dependencies")):
            dep = self._parse_dependency(item, project, path)
            if dep is not None:
                project.add_dependency(dep)

        for item in _as_list(manifest.get("dev-dependencies")):
            dep = self._parse_dependency(item, project, path)
            if dep is not None:
                dep.kind = DependencyKind.DEV
                project.add_dependency(dep)

        features = manifest.get("features", {})
        if isinstance(features, dict):
            for feature_name, feature in features.items():
                if not isinstance(feature, dict):
                    continue
                for item in _as_list(feature.get("dependencies")):
                    dep = self._parse_dependency(item, project, path)
                    if dep is None:
                        continue
                    dep.kind = DependencyKind.OPTIONAL
                    project.warn(Severity.INFO,
                                 f"Dependency '{dep.name}' is part of feature '{feature_name}'", path)
                    project.add_dependency(dep)

        default_features = manifest.get("default-features")
        if isinstance(default_features, list) and default_features:
            names = [f if isinstance(f, str) else f.get("name", "?") for f in default_features]
            project.warn(Severity.INFO, f"Default features: {', '.join(names)}", path)

        if "overrides" in manifest:
            project.warn(Severity.INFO, "Version overrides are not translated", path,
                         "Pin the overridden versions in the target manifest")
        logger.debug(f"vcpkg manifest {path}: {len(project.dependencies)} dependencies")
        return project

    @staticmethod
    def _parse_dependency(item: Any, project: Project, path: str) -> Optional[Dependency]:
        if isinstance(item, str):
            return Dependency(name=item)
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            project.warn(Severity.WARNING, f"Unrecognized dependency entry: {item!r}", path)
            return None

        dep = Dependency(name=item["name"])
        if isinstance(item.get("version>="), str):
            dep.version = ">=" + item["version>="]
        elif isinstance(item.get("version>"), str):
            dep.version = ">" + item["version>"]
        if item.get("host") is True:
            dep.kind = DependencyKind.DEV
        if isinstance(item.get("platform"), str):
            project.warn(Severity.INFO,
                         f"Dependency '{dep.name}' is limited to platform '{item['platform']}'", path)
        return dep
