import pytest

from buildport.errors import ParseError
from buildport.importers.cmake_scanner import extract_commands, tokenize_arguments
from buildport.importers.variables import VariableScope, is_true, split_list


class TestExtractCommands:
    def test_names_args_and_lines(self):
        commands = extract_commands("project(Demo)\n\nadd_executable(app\n  main.cpp)\n")
        assert [(c.name, c.line) for c in commands] == [("project", 1), ("add_executable", 3)]
        assert commands[1].args_text.split() == ["app", "main.cpp"]

    def test_names_are_case_insensitive(self):
        assert extract_commands("ADD_LIBRARY(x a.c)")[0].key == "add_library"

    def test_parenthesis_inside_string_does_not_close(self):
        commands = extract_commands('message("a ) b")\nset(X 1)')
        assert [c.name for c in commands] == ["message", "set"]

    def test_comments_are_skipped(self):
        text = "# set(A 1)\n#[[ set(B 2)\n]]\nset(C 3) # trailing ) comment\n"
        assert [c.name for c in extract_commands(text)] == ["set"]

    def test_bracket_argument_may_contain_parentheses(self):
        commands = extract_commands("set(X [=[ ) ( ]=])")
        assert len(commands) == 1

    def test_nested_parentheses(self):
        commands = extract_commands("if((A AND B) OR C)\nendif()")
        assert commands[0].args_text == "(A AND B) OR C"

    @pytest.mark.parametrize("text", [
        'set(X "unterminated)',
        "set(X (a b)",
        "set(X a))",
        "project Demo",
        "1set(X)",
    ])
    def test_malformed_input_raises(self, text):
        with pytest.raises(ParseError):
            extract_commands(text, "CMakeLists.txt")

    def test_parse_error_carries_location(self):
        with pytest.raises(ParseError) as info:
            extract_commands("set(A 1)\nset(B \"oops)\n", "CMakeLists.txt")
        assert info.value.line == 2
        assert info.value.location == "CMakeLists.txt:2"


class TestTokenizeArguments:
    def test_quoted_argument_keeps_spaces(self):
        tokens = tokenize_arguments('app "src/my file.cpp" other.cpp')
        assert [t.text for t in tokens] == ["app", "src/my file.cpp", "other.cpp"]
        assert [t.quoted for t in tokens] == [False, True, False]

    def test_escapes_in_quotes(self):
        tokens = tokenize_arguments(r'"a\tb\"c" "x\;y"')
        assert tokens[0].text == 'a\tb"c'
        assert tokens[1].text == "x\\;y"

    def test_bracket_argument_is_verbatim(self):
        tokens = tokenize_arguments("[[${NOT_EXPANDED}]]")
        assert tokens[0].text == "${NOT_EXPANDED}"
        assert tokens[0].bracket

    def test_comments_inside_arguments_are_dropped(self):
        tokens = tokenize_arguments("a # b c\n d")
        assert [t.text for t in tokens] == ["a", "d"]

    def test_parentheses_become_tokens(self):
        tokens = tokenize_arguments("(A AND B)")
        assert [t.text for t in tokens] == ["(", "A", "AND", "B", ")"]


class TestVariables:
    def test_split_list(self):
        assert split_list("a;b;;c") == ["a", "b", "c"]
        assert split_list("a\\;b;c") == ["a;b", "c"]

    def test_is_true(self):
        assert is_true("ON") and is_true("yes") and is_true("2")
        assert not is_true("OFF") and not is_true("0") and not is_true(None)

    def test_whole_reference_expands_to_each_value(self):
        scope = VariableScope()
        scope.set("X", ["a", "b"])
        tokens = scope.expand_tokens(tokenize_arguments("app ${X}"))
        assert [t.text for t in tokens] == ["app", "a", "b"]

    def test_embedded_reference_joins_with_semicolon(self):
        scope = VariableScope()
        scope.set("X", ["a", "b"])
        assert scope.expand("pre-${X}-post") == "pre-a;b-post"

    def test_quoted_reference_stays_one_token(self):
        scope = VariableScope()
        scope.set("X", ["a", "b"])
        tokens = scope.expand_tokens(tokenize_arguments('"${X}"'))
        assert [t.text for t in tokens] == ["a;b"]

    def test_empty_list_expands_to_nothing(self):
        scope = VariableScope()
        scope.set("EMPTY", [])
        tokens = scope.expand_tokens(tokenize_arguments("a ${EMPTY} b"))
        assert [t.text for t in tokens] == ["a", "b"]

    def test_nested_reference(self):
        scope = VariableScope()
        scope.set("NAME", ["SRC"])
        scope.set("SRC", ["main.cpp"])
        assert scope.expand("${${NAME}}") == "main.cpp"

    def test_unknown_reference_stays_literal(self):
        scope = VariableScope()
        assert scope.expand("${NOPE}/x") == "${NOPE}/x"
        assert scope.expand_word("${NOPE}") == ["${NOPE}"]

    def test_env_reference(self, monkeypatch):
        monkeypatch.setenv("BUILDPORT_TEST_DIR", "/opt/x")
        assert VariableScope().expand("$ENV{BUILDPORT_TEST_DIR}/lib") == "/opt/x/lib"

    def test_self_referential_expansion_terminates(self):
        scope = VariableScope()
        scope.set("A", ["${A}x"])
        assert scope.expand("${A}").startswith("${A}")

    def test_child_scope_reads_through_and_shadows(self):
        parent = VariableScope()
        parent.set("X", ["1"])
        child = parent.child()
        assert child.get("X") == ["1"]
        child.set("X", ["2"])
        assert parent.get("X") == ["1"]
        child.unset("X")
        assert child.get("X") is None
        assert parent.get("X") == ["1"]

    def test_set_parent(self):
        parent = VariableScope()
        child = parent.child()
        child.set_parent("OUT", ["v"])
        assert parent.get("OUT") == ["v"]
        assert child.get("OUT") == ["v"]
        VariableScope().set_parent("OUT", ["ignored"])
