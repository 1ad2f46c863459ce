"""GNU Makefile exporter."""

from typing import List

from ..model import BuildFormat, Project, Target, TargetKind
from .base import Exporter, artifact_name, is_c_source, object_path
from .ninja import compile_flags, link_flags

_STANDARD_PREFIXES = ("-std=",)


def _target_var(target: Target) -> str:
    return "".join(ch if ch.isalnum() else "_" for ch in target.name).upper()


class MakefileExporter(Exporter):
    """
    Render a project as a GNU Makefile.

    Executables and shared libraries built purely from C++ sources are
    compiled and linked by one recipe; anything else goes through per-object
    rules under build/<target>/.
    """

    format = BuildFormat.MAKEFILE
    default_filename = "Makefile"

    def render(self, project: Project) -> str:
        cxxflags = ""
        if project.cxx_standard:
            cxxflags = f"-std=c++{project.cxx_standard}"
        cflags = ""
        if project.c_standard:
            cflags = f"-std=c{project.c_standard}"

        buildable = [t for t in project.targets if t.kind.has_sources and t.sources]
        products = [artifact_name(t) for t in buildable]

        content = f"""# Generated Makefile for {project.name}
# Exported by buildport

# Compiler settings
CXX = {self.options.compiler}
CC = {self.options.c_compiler}
AR = ar
CXXFLAGS = {cxxflags}
CFLAGS = {cflags}
LDFLAGS =

.PHONY: all clean

all: {' '.join(products)}

"""
        objects: List[str] = []
        for target in buildable:
            content += f"# Target {target.name}\n"
            content += self._render_target(project, target, objects)
            content += "\n"

        removable = products + objects
        content += f"""# Clean build artifacts
clean:
\trm -f {' '.join(removable)}
"""
        return content

    def _render_target(self, project: Project, target: Target, objects: List[str]) -> str:
        var = _target_var(target)
        extra = [f for f in compile_flags(project, target) if not f.startswith(_STANDARD_PREFIXES)]
        if target.kind is TargetKind.SHARED_LIBRARY:
            extra.append("-fPIC")
        content = f"{var}_FLAGS = {' '.join(extra)}\n".replace(" \n", "\n")
        ldflags = link_flags(project, target)
        if target.kind is not TargetKind.STATIC_LIBRARY and target.kind is not TargetKind.OBJECT_LIBRARY:
            content += f"{var}_LDFLAGS = {' '.join(ldflags)}\n".replace(" \n", "\n")

        artifact = artifact_name(target)
        prerequisites = []
        for dep_name in target.dependencies:
            dep = project.get_target(dep_name)
            if dep is not None and dep.kind in (TargetKind.STATIC_LIBRARY, TargetKind.SHARED_LIBRARY):
                prerequisites.append(artifact_name(dep))

        direct = (target.kind in (TargetKind.EXECUTABLE, TargetKind.SHARED_LIBRARY)
                  and not any(is_c_source(s) for s in target.sources))
        if direct:
            sources = " ".join(target.sources)
            shared = " -shared" if target.kind is TargetKind.SHARED_LIBRARY else ""
            content += f"{artifact}: {' '.join(target.sources + prerequisites)}\n"
            content += (f"\t$(CXX) $(CXXFLAGS) $({var}_FLAGS){shared} {sources} "
                        f"-o {artifact} $(LDFLAGS) $({var}_LDFLAGS)\n")
            return content

        target_objects = []
        rules = ""
        for source in target.sources:
            obj = object_path(target, source)
            target_objects.append(obj)
            if is_c_source(source):
                recipe = f"$(CC) $(CFLAGS) $({var}_FLAGS) -c {source} -o {obj}"
            else:
                recipe = f"$(CXX) $(CXXFLAGS) $({var}_FLAGS) -c {source} -o {obj}"
            rules += f"{obj}: {source}\n\t@mkdir -p $(dir $@)\n\t{recipe}\n"
        objects.extend(target_objects)
        object_list = " ".join(target_objects)

        if target.kind is TargetKind.STATIC_LIBRARY:
            content += f"{artifact}: {object_list}\n\t$(AR) rcs {artifact} {object_list}\n"
        elif target.kind is TargetKind.OBJECT_LIBRARY:
            content += f".PHONY: {artifact}\n{artifact}: {object_list}\n"
        else:
            shared = " -shared" if target.kind is TargetKind.SHARED_LIBRARY else ""
            content += f"{artifact}: {' '.join(target_objects + prerequisites)}\n"
            content += (f"\t$(CXX){shared} {object_list} -o {artifact} "
                        f"$(LDFLAGS) $({var}_LDFLAGS)\n")
        return content + rules
