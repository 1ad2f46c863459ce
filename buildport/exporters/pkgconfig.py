"""pkg-config .pc exporter."""

import os
import re
from typing import Dict, List

from ..model import BuildFormat, DependencyKind, Project, TargetKind
from .base import Exporter

_CONSTRAINT_RE = re.compile(r"^\s*(>=|<=|==|=|>|<)\s*(\S+)\s*$")


def requirement(name: str, version) -> str:
    """Render a Requires entry, turning a version constraint into pkg-config syntax."""
    if not version:
        return name
    match = _CONSTRAINT_RE.match(version)
    if match:
        op = "=" if match.group(1) == "==" else match.group(1)
        return f"{name} {op} {match.group(2)}"
    return f"{name} >= {version}"


class PkgConfigExporter(Exporter):
    """Render the project's libraries as a single pkg-config file."""

    format = BuildFormat.PKG_CONFIG
    default_filename = "project.pc"

    def outputs(self, project: Project, path: str) -> Dict[str, str]:
        # A directory receives <name>.pc rather than a fixed file name
        if os.path.isdir(path) or path.endswith(("/", os.sep)):
            path = os.path.join(path, f"{project.name}.pc")
        return {path: self.render(project)}

    def render(self, project: Project) -> str:
        libraries = [t for t in project.targets
                     if t.kind in (TargetKind.STATIC_LIBRARY, TargetKind.SHARED_LIBRARY)]
        exported = [t for t in project.targets if t.kind.is_library]

        libs: List[str] = ["-L${libdir}"]
        libs += [f"-l{t.name}" for t in libraries]
        for target in libraries:
            libs += [f"-l{lib}" for lib in target.flags.link_libraries if f"-l{lib}" not in libs]

        cflags: List[str] = ["-I${includedir}"]
        for target in exported:
            cflags += [f"-D{d}" for d in target.flags.defines if f"-D{d}" not in cflags]

        requires = [requirement(dep.name, dep.version) for dep in project.dependencies
                    if dep.kind in (DependencyKind.BUILD, DependencyKind.SYSTEM)]

        content = f"""# Generated pkg-config file for {project.name}
# Exported by buildport
prefix=/usr/local
exec_prefix=${{prefix}}
libdir=${{exec_prefix}}/lib
includedir=${{prefix}}/include

Name: {project.name}
Description: {project.description or project.name}
Version: {project.version or "0.0.0"}
"""
        if project.homepage:
            content += f"URL: {project.homepage}\n"
        if requires:
            content += f"Requires: {', '.join(requires)}\n"
        content += f"Libs: {' '.join(libs)}\n"
        content += f"Cflags: {' '.join(cflags)}\n"
        return content
