import pytest

from buildport.errors import SourceNotFoundError
from buildport.importers import MakefileImporter
from buildport.importers.makefile import MakefileReader
from buildport.model import Severity, TargetKind

MAKEFILE = (
    "CXX = g++\n"
    "CXXFLAGS = -std=c++17 -Wall -Iinclude -DDEBUG=1 -isystem third_party\n"
    "LDFLAGS = -pthread\n"
    "LDLIBS = -lm -framework Cocoa\n"
    "SRCS = src/main.cpp \\\n"
    "       src/util.cpp\n"
    "OBJS = $(SRCS:.cpp=.o)\n"
    "TARGET = app\n"
    "\n"
    "ifeq ($(OS),Windows_NT)\n"
    "LDLIBS += -lws2_32\n"
    "endif\n"
    "\n"
    "all: $(TARGET)\n"
    "\n"
    "$(TARGET): $(OBJS)\n"
    "\t$(CXX) $(CXXFLAGS) -o $@ $^ $(LDFLAGS) $(LDLIBS)\n"
    "\n"
    ".PHONY: all clean\n"
    "clean:\n"
    "\trm -f $(OBJS) $(TARGET)\n"
)


class TestMakefileReader:
    def test_assignment_flavors(self):
        reader = MakefileReader(
            "A = 1\nA += 2\nB ?= x\nB ?= y\nC := $(A) z\nA = changed\nD = $(A)\n"
        )
        assert reader.variables["B"] == "x"
        assert reader.variables["C"] == "1 2 z"
        assert reader.get("D") == ["changed"]

    def test_unknown_references_stay(self):
        reader = MakefileReader("A = $(NOPE) ${ALSO_NOPE}\n")
        assert reader.get("A") == ["$(NOPE)", "${ALSO_NOPE}"]

    def test_substitution_reference(self):
        reader = MakefileReader(MAKEFILE)
        assert reader.get("OBJS") == ["src/main.o", "src/util.o"]

    def test_rules_and_phony(self):
        reader = MakefileReader(MAKEFILE)
        assert [r.targets for r in reader.rules] == [["all"], ["app"], ["clean"]]
        assert reader.rules[1].prerequisites == ["src/main.o", "src/util.o"]
        assert reader.rules[1].recipe == ["$(CXX) $(CXXFLAGS) -o $@ $^ $(LDFLAGS) $(LDLIBS)"]
        assert reader.phony == ["all", "clean"]

    def test_recursive_definition_terminates(self):
        reader = MakefileReader("A = $(A) x\n")
        assert "x" in reader.get("A")


class TestImport:
    @pytest.fixture
    def project(self, write_tree):
        root = write_tree({"Makefile": MAKEFILE})
        return MakefileImporter().import_file(str(root))

    def test_heuristic_warning_is_always_present(self, project):
        assert project.warnings[0].severity is Severity.INFO
        assert "heuristic" in project.warnings[0].message

    def test_single_executable(self, project):
        assert project.name == "app"
        assert len(project.targets) == 1
        app = project.targets[0]
        assert app.kind is TargetKind.EXECUTABLE
        assert app.sources == ["src/main.cpp", "src/util.cpp"]

    def test_compile_flags(self, project):
        flags = project.targets[0].flags
        assert flags.defines == ["DEBUG=1"]
        assert flags.include_paths == ["include"]
        assert flags.system_include_paths == ["third_party"]
        assert flags.compile_flags == ["-std=c++17", "-Wall"]
        assert project.cxx_standard == "17"

    def test_link_flags(self, project):
        flags = project.targets[0].flags
        # Conditionals are not evaluated, so both branches contribute
        assert flags.link_libraries == ["m", "ws2_32"]
        assert flags.frameworks == ["Cocoa"]
        assert flags.link_flags == ["-pthread"]


def test_sources_from_rule_prerequisites(write_tree):
    root = write_tree({"makefile": "prog: main.c util.c\n\tcc -std=c99 -o prog main.c util.c\n"})
    project = MakefileImporter().import_file(str(root / "makefile"))
    assert project.name == "prog"
    assert project.targets[0].sources == ["main.c", "util.c"]


@pytest.mark.parametrize("text, kind", [
    ("LIB = libfoo.so\nSRCS = foo.c\n", TargetKind.SHARED_LIBRARY),
    ("libfoo.a: foo.o\n\tar rcs $@ $^\n", TargetKind.STATIC_LIBRARY),
    ("foo: foo.o\n\t$(CC) -shared -o $@ $^\n", TargetKind.SHARED_LIBRARY),
    ("foo: foo.o\n\t$(AR) rcs $@ $^\n", TargetKind.STATIC_LIBRARY),
    ("foo: foo.o\n\t$(CC) -o $@ $^\n", TargetKind.EXECUTABLE),
])
def test_target_kind_guess(write_tree, text, kind):
    root = write_tree({"Makefile": text})
    assert MakefileImporter().import_file(str(root)).targets[0].kind is kind


def test_fallback_name_is_directory(write_tree):
    root = write_tree({"widget/Makefile": "all:\n\techo hi\n"})
    project = MakefileImporter().import_file(str(root / "widget"))
    assert project.name == "widget"


def test_missing_makefile_raises(tmp_path):
    with pytest.raises(SourceNotFoundError):
        MakefileImporter().import_file(str(tmp_path / "Makefile"))
