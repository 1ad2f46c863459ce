import json
import re

import pytest

from buildport import TranslationOptions
from buildport.errors import ParseError, SourceNotFoundError, UnsupportedFormatError
from buildport.exporters import (
    CMakeExporter,
    CompileCommandsExporter,
    MakefileExporter,
    MSBuildExporter,
    NinjaExporter,
    PkgConfigExporter,
    XcodeExporter,
    augment,
    get_exporter,
    merge,
    stable_guid,
)
from buildport.exporters.base import artifact_name, object_path, write_atomic
from buildport.exporters.cmake import quote
from buildport.exporters.msbuild import language_standard
from buildport.exporters.ninja import escape
from buildport.exporters.pkgconfig import requirement
from buildport.exporters.xcode import pbx_string
from buildport.importers import CMakeImporter, MakefileImporter, MSBuildImporter, XcodeImporter
from buildport.importers.msbuild import SLN_PROJECT_RE
from buildport.model import BuildFormat, Dependency, DependencyKind, Project, Target, TargetKind


@pytest.fixture
def project():
    project = Project("demo", ".")
    project.version = "1.2.0"
    project.description = "Demo project"
    project.set_cxx_standard("17")

    core = Target("core", TargetKind.STATIC_LIBRARY, sources=["lib/core.cpp"], headers=["include/core.h"])
    core.flags.include_paths.append("include")
    core.flags.defines.append("CORE_STATIC")
    project.add_target(core)

    app = Target("app", TargetKind.EXECUTABLE, sources=["src/main.cpp"], dependencies=["core"])
    app.flags.link_libraries.append("z")
    project.add_target(app)

    project.add_dependency(Dependency("zlib", version=">=1.2"))
    return project


def test_get_exporter():
    assert isinstance(get_exporter(BuildFormat.NINJA), NinjaExporter)
    assert isinstance(get_exporter("makefile"), MakefileExporter)
    with pytest.raises(UnsupportedFormatError):
        get_exporter(BuildFormat.VCPKG)
    with pytest.raises(UnsupportedFormatError):
        get_exporter("scons")


def test_object_and_artifact_names():
    lib = Target("core", TargetKind.STATIC_LIBRARY)
    assert object_path(lib, "src/a.cpp") == "build/core/src/a.o"
    assert object_path(lib, "../shared/b.cpp") == "build/core/__/shared/b.o"
    assert artifact_name(lib) == "libcore.a"
    assert artifact_name(lib, "windows") == "core.lib"
    assert artifact_name(Target("core", TargetKind.SHARED_LIBRARY)) == "libcore.so"
    assert artifact_name(Target("app")) == "app"


def test_write_atomic_replaces_content(tmp_path):
    path = tmp_path / "nested" / "out.txt"
    write_atomic(str(path), "first\n")
    write_atomic(str(path), "second\n")
    assert path.read_text() == "second\n"
    assert [p.name for p in path.parent.iterdir()] == ["out.txt"]


class TestCMake:
    @pytest.mark.parametrize("value, expected", [
        ("plain", "plain"),
        ("a b", '"a b"'),
        ('say "hi"', '"say \\"hi\\""'),
        ("", '""'),
    ])
    def test_quote(self, value, expected):
        assert quote(value) == expected

    def test_render(self, project):
        text = CMakeExporter().render(project)
        assert text.startswith("# Generated CMakeLists.txt for demo\n")
        assert "cmake_minimum_required(VERSION 3.20)" in text
        assert 'project(demo VERSION 1.2.0 DESCRIPTION "Demo project" LANGUAGES CXX)' in text
        assert "set(CMAKE_CXX_STANDARD 17)" in text
        assert "find_package(zlib REQUIRED)" in text
        assert "add_library(core STATIC\n    lib/core.cpp\n    include/core.h\n)" in text
        assert "target_include_directories(core PUBLIC\n    include\n)" in text
        assert "target_link_libraries(app PUBLIC\n    core\n    z\n)" in text

    def test_minimum_version_option(self, project):
        text = CMakeExporter(TranslationOptions(cmake_minimum_version="3.16")).render(project)
        assert "cmake_minimum_required(VERSION 3.16)" in text

    def test_dependency_variants(self):
        project = Project("deps")
        project.add_dependency(Dependency("fmt", version="10.1"))
        project.add_dependency(Dependency("lz4", kind=DependencyKind.OPTIONAL))
        project.add_dependency(Dependency("gtest", kind=DependencyKind.DEV))
        text = CMakeExporter().render(project)
        assert "find_package(fmt 10.1 REQUIRED)" in text
        assert "find_package(lz4)" in text
        assert "gtest" not in text

    def test_interface_target(self):
        project = Project("hdr")
        target = Target("hdr", TargetKind.INTERFACE, headers=["include/hdr.hpp"])
        target.flags.include_paths.append("include")
        project.add_target(target)
        text = CMakeExporter().render(project)
        assert "add_library(hdr INTERFACE)\n" in text
        assert "target_sources(hdr INTERFACE\n    include/hdr.hpp\n)" in text
        assert "target_include_directories(hdr INTERFACE\n    include\n)" in text

    def test_c_sources_enable_c(self):
        project = Project("mixed")
        project.add_target(Target("tool", sources=["main.c"]))
        assert "LANGUAGES C CXX)" in CMakeExporter().render(project)

    def test_round_trip(self, project, tmp_path):
        project.get_target("app").flags.frameworks.append("Cocoa")
        path = tmp_path / "CMakeLists.txt"
        path.write_text(CMakeExporter().render(project))
        again = CMakeImporter().import_file(str(path))

        assert again.name == "demo"
        assert again.version == "1.2.0"
        assert again.cxx_standard == "17"
        assert [(t.name, t.kind) for t in again.targets] == [
            ("core", TargetKind.STATIC_LIBRARY), ("app", TargetKind.EXECUTABLE)]
        core = again.get_target("core")
        assert core.sources == ["lib/core.cpp"]
        assert core.headers == ["include/core.h"]
        assert core.flags.include_paths == ["include"]
        assert core.flags.defines == ["CORE_STATIC"]
        app = again.get_target("app")
        assert app.dependencies == ["core"]
        assert app.flags.link_libraries == ["z"]
        assert app.flags.frameworks == ["Cocoa"]
        assert again.get_dependency("zlib") is not None


class TestNinja:
    def test_escape(self):
        assert escape("my file.cpp") == "my$ file.cpp"
        assert escape("c:/x.cpp") == "c$:/x.cpp"
        assert escape("$v") == "$$v"

    def test_render(self, project):
        text = NinjaExporter().render(project)
        assert "rule cxx\n" in text
        assert "build build/core/lib/core.o: cxx lib/core.cpp\n  cflags = -std=c++17 -DCORE_STATIC -Iinclude\n" in text
        assert "build libcore.a: ar build/core/lib/core.o\n" in text
        assert "build core: phony libcore.a\n" in text
        assert "build app: link build/app/src/main.o | libcore.a\n  ldflags = libcore.a -lz\n" in text
        assert text.endswith("default libcore.a app\n")

    def test_shared_and_object_libraries(self):
        project = Project("kinds")
        project.add_target(Target("plugin", TargetKind.SHARED_LIBRARY, sources=["plugin.c"]))
        project.add_target(Target("objs", TargetKind.OBJECT_LIBRARY, sources=["a.cpp"]))
        project.add_target(Target("api", TargetKind.INTERFACE, headers=["api.h"]))
        text = NinjaExporter(TranslationOptions(c_compiler="clang")).render(project)
        assert "cc = clang\n" in text
        assert "build build/plugin/plugin.o: cc plugin.c\n  cflags = -fPIC\n" in text
        assert "build libplugin.so: so build/plugin/plugin.o\n" in text
        assert "build objs: phony build/objs/a.o\n" in text
        assert "api" not in text


class TestMakefile:
    def test_demo_round_trip(self, write_tree):
        root = write_tree({"CMakeLists.txt": "project(Demo)\nadd_executable(app src/main.cpp)\n"})
        project = CMakeImporter().import_file(str(root / "CMakeLists.txt"))
        text = MakefileExporter().render(project)
        assert "all: app\n" in text
        assert "app: src/main.cpp\n" in text
        assert "\t$(CXX) $(CXXFLAGS) $(APP_FLAGS) src/main.cpp -o app $(LDFLAGS) $(APP_LDFLAGS)\n" in text

    def test_render(self, project):
        text = MakefileExporter(TranslationOptions(compiler="clang++")).render(project)
        assert "CXX = clang++\n" in text
        assert "CXXFLAGS = -std=c++17\n" in text
        assert ".PHONY: all clean\n" in text
        assert "all: libcore.a app\n" in text
        assert "CORE_FLAGS = -DCORE_STATIC -Iinclude\n" in text
        assert ("libcore.a: build/core/lib/core.o\n"
                "\t$(AR) rcs libcore.a build/core/lib/core.o\n") in text
        assert ("build/core/lib/core.o: lib/core.cpp\n\t@mkdir -p $(dir $@)\n"
                "\t$(CXX) $(CXXFLAGS) $(CORE_FLAGS) -c lib/core.cpp -o build/core/lib/core.o\n") in text
        assert "APP_LDFLAGS = libcore.a -lz\n" in text
        assert "app: src/main.cpp libcore.a\n" in text
        assert "\trm -f libcore.a app build/core/lib/core.o\n" in text

    def test_c_sources_use_object_rules(self):
        project = Project("tool")
        project.set_c_standard("11")
        project.add_target(Target("tool", sources=["main.c", "util.cpp"]))
        text = MakefileExporter().render(project)
        assert "CFLAGS = -std=c11\n" in text
        assert "\t$(CC) $(CFLAGS) $(TOOL_FLAGS) -c main.c -o build/tool/main.o\n" in text
        assert "\t$(CXX) $(CXXFLAGS) $(TOOL_FLAGS) -c util.cpp -o build/tool/util.o\n" in text
        assert "tool: build/tool/main.o build/tool/util.o\n" in text

    def test_reimport(self, tmp_path):
        single = Project("demo")
        single.add_target(Target("app", sources=["src/main.cpp"]))
        (tmp_path / "Makefile").write_text(MakefileExporter().render(single))
        again = MakefileImporter().import_file(str(tmp_path / "Makefile"))
        assert again.targets[0].name == "app"
        assert again.targets[0].sources == ["src/main.cpp"]


class TestPkgConfig:
    @pytest.mark.parametrize("version, expected", [
        (None, "zlib"),
        (">=1.2", "zlib >= 1.2"),
        ("==2.0", "zlib = 2.0"),
        ("< 3", "zlib < 3"),
        ("1.3", "zlib >= 1.3"),
    ])
    def test_requirement(self, version, expected):
        assert requirement("zlib", version) == expected

    def test_render(self, project):
        text = PkgConfigExporter().render(project)
        assert "prefix=/usr/local\n" in text
        assert "exec_prefix=${prefix}\n" in text
        assert "libdir=${exec_prefix}/lib\n" in text
        assert "includedir=${prefix}/include\n" in text
        assert "Name: demo\n" in text
        assert "Description: Demo project\n" in text
        assert "Version: 1.2.0\n" in text
        assert "Requires: zlib >= 1.2\n" in text
        assert "Libs: -L${libdir} -lcore\n" in text
        assert "Cflags: -I${includedir} -DCORE_STATIC\n" in text

    def test_defaults(self):
        text = PkgConfigExporter().render(Project("bare"))
        assert "Version: 0.0.0\n" in text
        assert "Description: bare\n" in text
        assert "Requires" not in text

    def test_directory_output_uses_project_name(self, project, tmp_path):
        written = PkgConfigExporter().write(project, str(tmp_path))
        assert written == [str(tmp_path / "demo.pc")]


class TestCompileCommands:
    def test_entries_expand_globs(self, write_tree):
        root = write_tree({"src/a.cpp": "", "src/b.cpp": "", "src/notes.txt": ""})
        project = Project("globs", str(root))
        project.set_cxx_standard("17")
        app = Target("app", sources=["src/*.cpp", "main.cpp", "gen/*.cpp"])
        app.flags.defines.append("MSG=hello world")
        app.flags.system_include_paths.append("third_party")
        project.add_target(app)

        entries = json.loads(CompileCommandsExporter().render(project))
        assert [e["file"] for e in entries] == ["src/a.cpp", "src/b.cpp", "main.cpp"]
        assert all(e["directory"] == str(root) for e in entries)
        assert entries[0]["command"] == (
            "c++ -std=c++17 '-DMSG=hello world' -isystem third_party "
            "-c src/a.cpp -o build/app/src/a.o"
        )

    def test_c_sources_use_c_compiler(self):
        project = Project("c")
        project.set_c_standard("99")
        project.add_target(Target("tool", sources=["main.c"]))
        entry = CompileCommandsExporter(TranslationOptions(c_compiler="gcc")).entries(project)[0]
        assert entry["command"] == "gcc -std=c99 -c main.c -o build/tool/main.o"

    def test_interface_targets_have_no_entries(self):
        project = Project("hdr")
        project.add_target(Target("hdr", TargetKind.INTERFACE, sources=["hdr.hpp"]))
        assert CompileCommandsExporter().entries(project) == []

    def test_merge(self, write_tree, tmp_path):
        root = write_tree({
            "a/compile_commands.json": json.dumps([
                {"directory": "/a", "command": "cc -c x.c", "file": "x.c"},
                {"directory": "/a", "command": "cc -c y.c", "file": "y.c"},
            ]),
            "b/compile_commands.json": json.dumps([
                {"directory": "/a", "command": "cc -O2 -c x.c", "file": "x.c"},
                {"directory": "/b", "arguments": ["cc", "-c", "z.c"], "file": "z.c"},
            ]),
            "c/compile_commands.json": '{"not": "a list"}',
        })
        output = tmp_path / "out" / "compile_commands.json"
        merged = merge([str(root / d / "compile_commands.json") for d in ("a", "b", "c")], str(output))

        assert [(e["directory"], e["file"]) for e in merged] == [("/a", "x.c"), ("/a", "y.c"), ("/b", "z.c")]
        assert merged[0]["command"] == "cc -O2 -c x.c"
        assert json.loads(output.read_text()) == merged

    def test_merge_missing_or_invalid_input(self, write_tree, tmp_path):
        root = write_tree({"bad.json": "[{"})
        with pytest.raises(SourceNotFoundError):
            merge([str(tmp_path / "missing.json")], str(tmp_path / "out.json"))
        with pytest.raises(ParseError):
            merge([str(root / "bad.json")], str(tmp_path / "out.json"))
        assert not (tmp_path / "out.json").exists()

    def test_augment(self, write_tree):
        root = write_tree({"compile_commands.json": json.dumps([
            {"directory": "/p", "command": "c++ -c a.cpp", "file": "a.cpp"},
            {"directory": "/p", "arguments": ["c++", "-c", "b.cpp"], "file": "b.cpp"},
        ])})
        path = root / "compile_commands.json"
        augment(str(path), ["-DEXTRA", "-I/opt/my include"])

        entries = json.loads(path.read_text())
        assert entries[0]["command"] == "c++ -c a.cpp -DEXTRA '-I/opt/my include'"
        assert entries[1]["arguments"] == ["c++", "-c", "b.cpp", "-DEXTRA", "-I/opt/my include"]


class TestMSBuild:
    @pytest.mark.parametrize("std, expected", [
        (None, None),
        ("11", "stdcpp14"),
        ("17", "stdcpp17"),
        ("20", "stdcpp20"),
        ("latest", "stdcpplatest"),
    ])
    def test_language_standard(self, std, expected):
        assert language_standard(std) == expected

    def test_guids_depend_on_seed_and_name(self):
        exporter = MSBuildExporter()
        assert exporter.project_guid("core") == stable_guid("buildport", "core")
        assert exporter.project_guid("core") != exporter.project_guid("app")
        other = MSBuildExporter(TranslationOptions(xcode_seed="other"))
        assert other.project_guid("core") != exporter.project_guid("core")

    def test_render_target(self, project):
        exporter = MSBuildExporter()
        text = exporter.render_target(project, project.get_target("app"))
        assert '<ProjectConfiguration Include="Release|x64">' in text
        assert f"<ProjectGuid>{{{exporter.project_guid('app')}}}</ProjectGuid>" in text
        assert "<ConfigurationType>Application</ConfigurationType>" in text
        assert "<LanguageStandard>stdcpp17</LanguageStandard>" in text
        assert '<ClCompile Include="src\\main.cpp" />' in text
        assert "<AdditionalDependencies>z.lib;%(AdditionalDependencies)</AdditionalDependencies>" in text
        assert '<ProjectReference Include="core.vcxproj">' in text
        assert f"<Project>{{{exporter.project_guid('core')}}}</Project>" in text

    def test_item_definitions(self, project):
        text = MSBuildExporter().render_target(project, project.get_target("core"))
        assert "<PreprocessorDefinitions>_DEBUG;CORE_STATIC;%(PreprocessorDefinitions)</PreprocessorDefinitions>" in text
        assert "<PreprocessorDefinitions>NDEBUG;CORE_STATIC;%(PreprocessorDefinitions)</PreprocessorDefinitions>" in text
        assert "<AdditionalIncludeDirectories>include;%(AdditionalIncludeDirectories)</AdditionalIncludeDirectories>" in text
        assert '<ClInclude Include="include\\core.h" />' in text

    def test_outputs(self, project, tmp_path):
        documents = MSBuildExporter().outputs(project, str(tmp_path))
        assert sorted(documents) == sorted([
            str(tmp_path / "core.vcxproj"),
            str(tmp_path / "app.vcxproj"),
            str(tmp_path / "demo.sln"),
        ])
        solution = documents[str(tmp_path / "demo.sln")]
        assert solution.startswith("Microsoft Visual Studio Solution File, Format Version 12.00\n")
        assert solution.count("EndProject\n") == 2
        assert "\t\tDebug|x64 = Debug|x64\n" in solution

    def test_round_trip_through_solution(self, project, tmp_path):
        MSBuildExporter().write(project, str(tmp_path / "demo.sln"))
        again = MSBuildImporter().import_file(str(tmp_path / "demo.sln"))
        assert [(t.name, t.kind) for t in again.targets] == [
            ("core", TargetKind.STATIC_LIBRARY), ("app", TargetKind.EXECUTABLE)]
        core = again.get_target("core")
        assert core.sources == ["lib/core.cpp"]
        assert core.headers == ["include/core.h"]
        assert core.flags.include_paths == ["include"]
        assert "CORE_STATIC" in core.flags.defines
        app = again.get_target("app")
        assert app.dependencies == ["core"]
        assert app.flags.link_libraries == ["z"]
        assert again.cxx_standard == "17"

    def test_explicit_vcxproj_path_is_referenced(self, project, tmp_path):
        written = MSBuildExporter().write(project, str(tmp_path / "proj.vcxproj"))
        assert sorted(written) == sorted([
            str(tmp_path / "proj.vcxproj"),
            str(tmp_path / "app.vcxproj"),
            str(tmp_path / "demo.sln"),
        ])
        solution = (tmp_path / "demo.sln").read_text()
        paths = [m.group(3) for m in SLN_PROJECT_RE.finditer(solution)]
        assert paths == ["proj.vcxproj", "app.vcxproj"]
        assert all((tmp_path / p).is_file() for p in paths)
        assert '<ProjectReference Include="proj.vcxproj">' in (tmp_path / "app.vcxproj").read_text()

    def test_empty_project_gets_utility_project(self, tmp_path):
        documents = MSBuildExporter().outputs(Project("empty"), str(tmp_path))
        assert "<ConfigurationType>Utility</ConfigurationType>" in documents[str(tmp_path / "empty.vcxproj")]


class TestXcode:
    @pytest.mark.parametrize("value, expected", [
        ("main.cpp", "main.cpp"),
        ("src/lib_a.cpp", "src/lib_a.cpp"),
        ("My File.cpp", '"My File.cpp"'),
        ("<group>", '"<group>"'),
        ('a"b', '"a\\"b"'),
    ])
    def test_pbx_string(self, value, expected):
        assert pbx_string(value) == expected

    def test_output_is_byte_identical(self, project):
        assert XcodeExporter().render(project) == XcodeExporter().render(project)

    def test_seed_changes_identifiers(self, project):
        other = XcodeExporter(TranslationOptions(xcode_seed="elsewhere")).render(project)
        assert other != XcodeExporter().render(project)

    def test_object_keys_are_unique(self, project):
        text = XcodeExporter().render(project)
        keys = re.findall(r"^\t\t([0-9A-F]{24}) ", text, re.MULTILINE)
        assert keys
        assert len(keys) == len(set(keys))

    def test_sections_in_order(self, project):
        text = XcodeExporter().render(project)
        order = ["PBXBuildFile", "PBXContainerItemProxy", "PBXFileReference", "PBXFrameworksBuildPhase",
                 "PBXGroup", "PBXHeadersBuildPhase", "PBXNativeTarget", "PBXProject",
                 "PBXSourcesBuildPhase", "PBXTargetDependency", "XCBuildConfiguration",
                 "XCConfigurationList"]
        positions = [text.index(f"/* Begin {name} section */") for name in order]
        assert positions == sorted(positions)
        assert 'CLANG_CXX_LANGUAGE_STANDARD = "c++17";' in text
        assert "productType = \"com.apple.product-type.library.static\";" in text

    def test_outputs(self, project, tmp_path):
        exporter = XcodeExporter()
        assert list(exporter.outputs(project, str(tmp_path))) == [
            str(tmp_path / "demo.xcodeproj" / "project.pbxproj")]
        assert list(exporter.outputs(project, str(tmp_path / "Other.xcodeproj"))) == [
            str(tmp_path / "Other.xcodeproj" / "project.pbxproj")]

    def test_round_trip(self, project, tmp_path):
        project.get_target("app").flags.frameworks.append("Cocoa")
        XcodeExporter().write(project, str(tmp_path))
        again = XcodeImporter().import_file(str(tmp_path / "demo.xcodeproj"))

        assert again.name == "demo"
        assert again.cxx_standard == "17"
        assert [(t.name, t.kind) for t in again.targets] == [
            ("core", TargetKind.STATIC_LIBRARY), ("app", TargetKind.EXECUTABLE)]
        core = again.get_target("core")
        assert core.sources == ["lib/core.cpp"]
        assert core.headers == ["include/core.h"]
        assert core.flags.include_paths == ["include"]
        assert core.flags.defines == ["CORE_STATIC"]
        app = again.get_target("app")
        assert app.sources == ["src/main.cpp"]
        assert app.dependencies == ["core"]
        assert app.flags.link_libraries == ["z"]
        assert app.flags.frameworks == ["Cocoa"]
