import pytest

from buildport.config import TranslationOptions
from buildport.errors import ParseError, SourceNotFoundError
from buildport.importers import CMakeImporter
from buildport.model import DependencyKind, Severity, TargetKind


def import_cmake(root, options=None):
    return CMakeImporter(options).import_file(str(root / "CMakeLists.txt"))


def test_demo_project(write_tree):
    root = write_tree({"CMakeLists.txt": "project(Demo)\nadd_executable(app src/main.cpp)\n"})
    project = import_cmake(root)

    assert project.name == "Demo"
    assert len(project.targets) == 1
    app = project.targets[0]
    assert app.name == "app"
    assert app.kind is TargetKind.EXECUTABLE
    assert app.sources == ["src/main.cpp"]


def test_project_metadata(write_tree):
    root = write_tree({"CMakeLists.txt": (
        'project(Demo VERSION 1.4.2 DESCRIPTION "A demo" HOMEPAGE_URL https://example.org LANGUAGES CXX)\n'
    )})
    project = import_cmake(root)
    assert project.version == "1.4.2"
    assert project.description == "A demo"
    assert project.homepage == "https://example.org"


def test_list_variable_expands_to_one_source_per_value(write_tree):
    root = write_tree({"CMakeLists.txt": "set(X a.cpp b.cpp)\nadd_executable(app ${X})\n"})
    project = import_cmake(root)
    assert project.get_target("app").sources == ["a.cpp", "b.cpp"]


def test_quoted_list_expansion_splits_into_sources(write_tree):
    root = write_tree({"CMakeLists.txt": (
        'set(SRCS a.cpp b.cpp)\nset(INCS include;third_party)\n'
        'add_executable(app "${SRCS}")\n'
        'target_include_directories(app PRIVATE "${INCS}")\n'
    )})
    app = import_cmake(root).get_target("app")
    assert app.sources == ["a.cpp", "b.cpp"]
    assert app.flags.include_paths == ["include", "third_party"]


def test_quoted_project_description_is_kept_whole(write_tree):
    root = write_tree({"CMakeLists.txt": 'project(Demo DESCRIPTION "one;two")\n'})
    assert import_cmake(root).description == "one;two"


@pytest.mark.parametrize("command", ["add_executable(a ALIAS)", "add_executable(a x ALIAS)",
                                     "add_library(a ALIAS)"])
def test_alias_without_target_is_ignored(write_tree, command):
    root = write_tree({"CMakeLists.txt": command + "\n"})
    assert import_cmake(root).targets == []


def test_unresolved_variable_stays_literal(write_tree):
    root = write_tree({"CMakeLists.txt": "add_executable(app ${UNKNOWN_SOURCES} main.cpp)\n"})
    project = import_cmake(root)
    assert project.get_target("app").sources == ["${UNKNOWN_SOURCES}", "main.cpp"]


def test_headers_are_split_from_sources(write_tree):
    root = write_tree({"CMakeLists.txt": "add_library(core STATIC core.cpp core.h detail.hpp)\n"})
    core = import_cmake(root).get_target("core")
    assert core.sources == ["core.cpp"]
    assert core.headers == ["core.h", "detail.hpp"]


@pytest.mark.parametrize("keyword, kind", [
    ("STATIC", TargetKind.STATIC_LIBRARY),
    ("SHARED", TargetKind.SHARED_LIBRARY),
    ("OBJECT", TargetKind.OBJECT_LIBRARY),
    ("INTERFACE", TargetKind.INTERFACE),
])
def test_library_kinds(write_tree, keyword, kind):
    root = write_tree({"CMakeLists.txt": f"add_library(lib {keyword} a.cpp)\n"})
    assert import_cmake(root).get_target("lib").kind is kind


def test_module_library_warns(write_tree):
    root = write_tree({"CMakeLists.txt": "add_library(plugin MODULE p.cpp)\n"})
    project = import_cmake(root)
    assert project.get_target("plugin").kind is TargetKind.SHARED_LIBRARY
    assert any("MODULE" in w.message for w in project.warnings)


def test_build_shared_libs_default(write_tree):
    root = write_tree({"CMakeLists.txt": "set(BUILD_SHARED_LIBS ON)\nadd_library(lib a.cpp)\n"})
    assert import_cmake(root).get_target("lib").kind is TargetKind.SHARED_LIBRARY


def test_duplicate_add_library_yields_one_target(write_tree):
    root = write_tree({"CMakeLists.txt": "add_library(x STATIC a.cpp)\nadd_library(x STATIC b.cpp)\n"})
    project = import_cmake(root)
    assert [t.name for t in project.targets] == ["x"]
    assert project.get_target("x").sources == ["a.cpp", "b.cpp"]


def test_subdirectory_paths_and_child_scope(write_tree):
    root = write_tree({
        "CMakeLists.txt": "project(Top)\nset(FLAG top)\nadd_subdirectory(lib)\nadd_executable(app main.cpp)\n"
                          "target_compile_definitions(app PRIVATE FLAG_${FLAG})\n",
        "lib/CMakeLists.txt": "set(FLAG lib)\nadd_library(core STATIC core.cpp)\n"
                              "target_include_directories(core PUBLIC include)\n",
    })
    project = import_cmake(root)
    core = project.get_target("core")
    assert core.sources == ["lib/core.cpp"]
    assert core.flags.include_paths == ["lib/include"]
    # set() inside the subdirectory does not leak into the parent
    assert project.get_target("app").flags.defines == ["FLAG_top"]


def test_parent_scope_assignment(write_tree):
    root = write_tree({
        "CMakeLists.txt": "add_subdirectory(sub)\nadd_executable(app ${SUB_SOURCES})\n",
        "sub/CMakeLists.txt": "set(SUB_SOURCES sub/a.cpp PARENT_SCOPE)\n",
    })
    assert import_cmake(root).get_target("app").sources == ["sub/a.cpp"]


def test_self_referential_subdirectory_terminates(write_tree):
    root = write_tree({
        "CMakeLists.txt": "project(Loop)\nadd_subdirectory(sub)\nadd_library(top STATIC top.cpp)\n",
        "sub/CMakeLists.txt": "add_subdirectory(..)\nadd_library(inner STATIC inner.cpp)\n",
    })
    project = import_cmake(root)
    assert sorted(t.name for t in project.targets) == ["inner", "top"]


def test_include_depth_limit(write_tree):
    files = {"CMakeLists.txt": "add_subdirectory(d1)\n"}
    path = ""
    for i in range(1, 6):
        path += f"d{i}/"
        files[f"{path}CMakeLists.txt"] = f"add_subdirectory(d{i + 1})\nadd_library(l{i} STATIC x.cpp)\n"
    root = write_tree(files)

    project = import_cmake(root, TranslationOptions(max_include_depth=2))
    assert sorted(t.name for t in project.targets) == ["l1", "l2"]
    assert any("depth limit" in w.message for w in project.warnings)


def test_missing_subdirectory_is_a_warning(write_tree):
    root = write_tree({"CMakeLists.txt": "add_subdirectory(nope)\nadd_executable(app main.cpp)\n"})
    project = import_cmake(root)
    assert project.get_target("app") is not None
    assert any(w.severity is Severity.WARNING and "not found" in w.message for w in project.warnings)


def test_parse_error_in_subdirectory_is_a_warning(write_tree):
    root = write_tree({
        "CMakeLists.txt": "add_subdirectory(bad)\nadd_executable(app main.cpp)\n",
        "bad/CMakeLists.txt": 'add_library(broken "unterminated)\n',
    })
    project = import_cmake(root)
    assert project.get_target("app") is not None
    assert project.get_target("broken") is None
    assert any("failed to parse" in w.message for w in project.warnings)


def test_parse_error_at_top_level_raises(write_tree):
    root = write_tree({"CMakeLists.txt": "add_executable(app main.cpp\n"})
    with pytest.raises(ParseError):
        import_cmake(root)


def test_missing_top_level_file_raises(tmp_path):
    with pytest.raises(SourceNotFoundError):
        import_cmake(tmp_path)


def test_include_shares_scope(write_tree):
    root = write_tree({
        "CMakeLists.txt": "include(cmake/sources.cmake)\ninclude(GNUInstallDirs)\nadd_executable(app ${SRCS})\n",
        "cmake/sources.cmake": "set(SRCS main.cpp util.cpp)\n",
    })
    assert import_cmake(root).get_target("app").sources == ["main.cpp", "util.cpp"]


def test_function_bodies_are_skipped(write_tree):
    root = write_tree({"CMakeLists.txt": (
        "function(make_lib name)\n  add_library(${name} STATIC x.cpp)\nendfunction()\n"
        "make_lib(foo)\nadd_executable(app main.cpp)\n"
    )})
    project = import_cmake(root)
    assert [t.name for t in project.targets] == ["app"]


def test_every_if_branch_is_processed(write_tree):
    root = write_tree({"CMakeLists.txt": (
        "add_executable(app main.cpp)\n"
        "if(WIN32)\n  target_sources(app PRIVATE win.cpp)\nelse()\n  target_sources(app PRIVATE posix.cpp)\nendif()\n"
    )})
    assert import_cmake(root).get_target("app").sources == ["main.cpp", "win.cpp", "posix.cpp"]


def test_target_link_libraries(write_tree):
    root = write_tree({"CMakeLists.txt": (
        "add_library(core STATIC core.cpp)\n"
        "add_library(Demo::core ALIAS core)\n"
        "add_executable(app main.cpp)\n"
        "target_link_libraries(app PRIVATE Demo::core pthread -lm -Wl,--as-needed \"-framework Cocoa\" "
        "-framework Metal)\n"
    )})
    app = import_cmake(root).get_target("app")
    assert app.dependencies == ["core"]
    assert app.flags.link_libraries == ["pthread", "m"]
    assert "-Wl,--as-needed" in app.flags.link_flags
    assert "Metal" in app.flags.frameworks


def test_usage_requirements(write_tree):
    root = write_tree({"CMakeLists.txt": (
        "add_executable(app main.cpp)\n"
        "target_include_directories(app PUBLIC include SYSTEM PRIVATE third_party)\n"
        "target_compile_definitions(app PRIVATE -DFOO BAR=1)\n"
        "target_compile_options(app PRIVATE -Wall)\n"
        "target_link_options(app PRIVATE -static)\n"
    )})
    flags = import_cmake(root).get_target("app").flags
    assert flags.include_paths == ["include"]
    assert flags.system_include_paths == ["third_party"]
    assert flags.defines == ["FOO", "BAR=1"]
    assert flags.compile_flags == ["-Wall"]
    assert flags.link_flags == ["-static"]


def test_directory_settings_apply_to_later_targets(write_tree):
    root = write_tree({"CMakeLists.txt": (
        "include_directories(include)\nadd_definitions(-DLEGACY -fno-rtti)\n"
        "add_compile_definitions(MODERN)\nlink_directories(libs)\nlink_libraries(dl)\n"
        "add_executable(app main.cpp)\n"
    )})
    flags = import_cmake(root).get_target("app").flags
    assert flags.include_paths == ["include"]
    assert flags.defines == ["LEGACY", "MODERN"]
    assert flags.compile_flags == ["-fno-rtti"]
    assert flags.link_libraries == ["dl"]
    assert flags.link_flags == ["-Llibs"]


def test_cxx_standard_sources(write_tree):
    root = write_tree({"CMakeLists.txt": (
        "set(CMAKE_CXX_STANDARD 14)\nadd_executable(app main.cpp)\n"
        "target_compile_features(app PUBLIC cxx_std_17)\n"
        "set_target_properties(app PROPERTIES CXX_STANDARD 11 C_STANDARD 99)\n"
    )})
    project = import_cmake(root)
    assert project.cxx_standard == "17"
    assert project.c_standard == "99"


def test_std_flag_in_cmake_cxx_flags(write_tree):
    root = write_tree({"CMakeLists.txt": 'set(CMAKE_CXX_FLAGS "${CMAKE_CXX_FLAGS} -std=c++20 -O2")\n'})
    assert import_cmake(root).cxx_standard == "20"


def test_generator_expressions_become_warnings(write_tree):
    root = write_tree({"CMakeLists.txt": (
        "add_executable(app main.cpp)\n"
        "target_compile_definitions(app PRIVATE $<$<CONFIG:Debug>:DEBUG_BUILD> PLAIN)\n"
    )})
    project = import_cmake(root)
    assert project.get_target("app").flags.defines == ["PLAIN"]
    warnings = [w for w in project.warnings if "generator expression" in w.message]
    assert len(warnings) == 1
    assert warnings[0].severity is Severity.WARNING
    assert warnings[0].location.endswith(":2")


def test_find_package(write_tree):
    root = write_tree({"CMakeLists.txt": (
        "find_package(ZLIB 1.2 REQUIRED)\nfind_package(Threads REQUIRED)\n"
        "find_package(Foo)\n"
    )})
    project = import_cmake(root)
    zlib = project.get_dependency("zlib")
    assert zlib.version == "1.2"
    assert zlib.url == "https://github.com/madler/zlib"
    assert zlib.kind is DependencyKind.BUILD
    assert project.get_dependency("pthread").kind is DependencyKind.SYSTEM
    assert project.get_dependency("Foo").kind is DependencyKind.OPTIONAL
    unknown = [w for w in project.warnings if "Foo" in w.message]
    assert unknown and unknown[0].severity is Severity.INFO and unknown[0].suggestion


def test_pkg_check_modules(write_tree):
    root = write_tree({"CMakeLists.txt": "pkg_check_modules(GTK REQUIRED gtk+-3.0>=3.22 glib-2.0)\n"})
    project = import_cmake(root)
    gtk = project.get_dependency("gtk+-3.0")
    assert gtk.version == ">=3.22"
    assert gtk.kind is DependencyKind.SYSTEM
    assert project.get_dependency("glib-2.0") is not None


def test_unknown_command_reported_only_when_verbose(write_tree):
    root = write_tree({"CMakeLists.txt": "frobnicate(x)\nmessage(STATUS hi)\nadd_executable(app main.cpp)\n"})

    quiet = import_cmake(root)
    assert not [w for w in quiet.warnings if "frobnicate" in w.message]

    verbose = import_cmake(root, TranslationOptions(verbose=True))
    reported = [w for w in verbose.warnings if "frobnicate" in w.message]
    assert len(reported) == 1
    assert reported[0].severity is Severity.INFO
    assert not [w for w in verbose.warnings if "message" in w.message]


def test_list_operations(write_tree):
    root = write_tree({"CMakeLists.txt": (
        "set(S a.cpp)\nlist(APPEND S b.cpp c.cpp b.cpp)\nlist(REMOVE_ITEM S c.cpp)\n"
        "list(REMOVE_DUPLICATES S)\nlist(PREPEND S first.cpp)\nadd_executable(app ${S})\n"
    )})
    assert import_cmake(root).get_target("app").sources == ["first.cpp", "a.cpp", "b.cpp"]


def test_option_and_cache_do_not_override(write_tree):
    root = write_tree({"CMakeLists.txt": (
        "set(MODE fast)\noption(MODE \"doc\" slow)\nset(MODE cached CACHE STRING \"doc\")\n"
        "add_executable(app ${MODE}.cpp)\n"
    )})
    assert import_cmake(root).get_target("app").sources == ["fast.cpp"]


def test_target_sources_file_set(write_tree):
    root = write_tree({"CMakeLists.txt": (
        "add_library(core STATIC core.cpp)\n"
        "target_sources(core PUBLIC FILE_SET HEADERS BASE_DIRS include FILES include/core/api.h)\n"
    )})
    core = import_cmake(root).get_target("core")
    assert core.headers == ["include/core/api.h"]
    assert core.flags.include_paths == ["include"]


def test_unknown_target_reference_warns(write_tree):
    root = write_tree({"CMakeLists.txt": "target_link_libraries(ghost PRIVATE m)\n"})
    project = import_cmake(root)
    assert any("unknown target 'ghost'" in w.message for w in project.warnings)
