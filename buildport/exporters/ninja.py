"""build.ninja exporter."""

from typing import List

from ..model import BuildFormat, Project, Target, TargetKind
from .base import Exporter, artifact_name, is_c_source, object_path


def escape(path: str) -> str:
    """Escape a path for use in a ninja build line."""
    return path.replace("$", "$$").replace(" ", "$ ").replace(":", "$:")


def compile_flags(project: Project, target: Target, c_source: bool = False) -> List[str]:
    flags: List[str] = []
    if c_source and project.c_standard:
        flags.append(f"-std=c{project.c_standard}")
    elif not c_source and project.cxx_standard:
        flags.append(f"-std=c++{project.cxx_standard}")
    flags += [f"-D{d}" for d in target.flags.defines]
    flags += [f"-I{p}" for p in target.flags.include_paths]
    flags += [f"-isystem {p}" for p in target.flags.system_include_paths]
    flags += [f for f in target.flags.compile_flags if not f.startswith("-std=")]
    return flags


def link_flags(project: Project, target: Target) -> List[str]:
    flags = list(target.flags.link_flags)
    for dep_name in target.dependencies:
        dep = project.get_target(dep_name)
        if dep is not None and dep.kind in (TargetKind.STATIC_LIBRARY, TargetKind.SHARED_LIBRARY):
            flags.append(artifact_name(dep))
    flags += [f"-l{lib}" for lib in target.flags.link_libraries]
    for framework in target.flags.frameworks:
        flags += ["-framework", framework]
    return flags


class NinjaExporter(Exporter):
    """Render a project as build.ninja."""

    format = BuildFormat.NINJA
    default_filename = "build.ninja"

    def render(self, project: Project) -> str:
        content = f"""# Generated build.ninja for {project.name}
# Exported by buildport

ninja_required_version = 1.3

cxx = {self.options.compiler}
cc = {self.options.c_compiler}
ar = ar

rule cxx
  command = $cxx $cflags -MMD -MF $out.d -c $in -o $out
  depfile = $out.d
  deps = gcc
  description = CXX $out

rule cc
  command = $cc $cflags -MMD -MF $out.d -c $in -o $out
  depfile = $out.d
  deps = gcc
  description = CC $out

rule link
  command = $cxx $in -o $out $ldflags
  description = LINK $out

rule so
  command = $cxx -shared $in -o $out $ldflags
  description = SO $out

rule ar
  command = rm -f $out && $ar rcs $out $in
  description = AR $out

"""
        defaults = []
        for target in project.targets:
            if not target.kind.has_sources or not target.sources:
                continue
            content += f"# Target {target.name}\n"
            objects = []
            for source in target.sources:
                obj = object_path(target, source)
                objects.append(escape(obj))
                c_source = is_c_source(source)
                content += f"build {escape(obj)}: {'cc' if c_source else 'cxx'} {escape(source)}\n"
                flags = compile_flags(project, target, c_source)
                if target.kind is TargetKind.SHARED_LIBRARY:
                    flags.append("-fPIC")
                if flags:
                    content += f"  cflags = {' '.join(flags)}\n"

            if target.kind is TargetKind.OBJECT_LIBRARY:
                content += f"build {target.name}: phony {' '.join(objects)}\n\n"
                defaults.append(target.name)
                continue

            artifact = artifact_name(target)
            inputs = " ".join(objects)
            rule = {TargetKind.STATIC_LIBRARY: "ar", TargetKind.SHARED_LIBRARY: "so"}.get(target.kind, "link")
            implicit = [escape(artifact_name(dep)) for dep in
                        (project.get_target(n) for n in target.dependencies)
                        if dep is not None and dep.kind in (TargetKind.STATIC_LIBRARY, TargetKind.SHARED_LIBRARY)]
            content += f"build {escape(artifact)}: {rule} {inputs}"
            if implicit and rule != "ar":
                content += f" | {' '.join(implicit)}"
            content += "\n"
            ldflags = link_flags(project, target)
            if ldflags and rule != "ar":
                content += f"  ldflags = {' '.join(ldflags)}\n"
            if artifact != target.name:
                content += f"build {target.name}: phony {escape(artifact)}\n"
            content += "\n"
            defaults.append(escape(artifact))

        if defaults:
            content += f"default {' '.join(defaults)}\n"
        return content
