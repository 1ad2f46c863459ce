"""
Meson importer.

meson.build files are tokenized, parsed into a small AST by a
recursive-descent parser, and then walked by an interpreter that knows a
fixed set of builder functions. Anything else is parsed and evaluated to an
opaque value so the walk can continue, without touching the project.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..errors import ParseError
from ..model import BuildFormat, Dependency, DependencyKind, Project, Severity, Target, TargetKind
from .base import IncludeGuard, Importer, project_path, read_text
from .meson_lexer import Token, TokenKind, tokenize

logger = logging.getLogger(__name__)

HEADER_EXTENSIONS = (".h", ".hh", ".hpp", ".hxx", ".inl", ".ipp")


# -- AST ----------------------------------------------------------------------

class Node:
    line: int = 0


@dataclass
class String(Node):
    value: str
    formatted: bool = False


@dataclass
class Number(Node):
    value: int


@dataclass
class Bool(Node):
    value: bool


@dataclass
class Array(Node):
    items: List[Node]


@dataclass
class DictLiteral(Node):
    items: List[Tuple[Node, Node]]


@dataclass
class Identifier(Node):
    name: str


@dataclass
class Call(Node):
    name: str
    args: List[Node]
    kwargs: Dict[str, Node]
    line: int = 0


@dataclass
class MethodCall(Node):
    obj: Node
    name: str
    args: List[Node]
    kwargs: Dict[str, Node]


@dataclass
class BinaryOp(Node):
    op: str
    left: Node
    right: Node


@dataclass
class UnaryOp(Node):
    op: str
    operand: Node


@dataclass
class Ternary(Node):
    condition: Node
    if_true: Node
    if_false: Node


@dataclass
class Subscript(Node):
    obj: Node
    index: Node


@dataclass
class Assign(Node):
    name: str
    value: Node
    augmented: bool = False


@dataclass
class ExpressionStatement(Node):
    expr: Node


@dataclass
class If(Node):
    branches: List[Tuple[Node, List[Node]]]
    orelse: List[Node]


@dataclass
class Foreach(Node):
    names: List[str]
    iterable: Node
    body: List[Node]


@dataclass
class LoopControl(Node):
    keyword: str


# -- parser -------------------------------------------------------------------

class Parser:
    """Recursive-descent parser over the token list of one file."""

    def __init__(self, tokens: List[Token], path: Optional[str] = None):
        self.tokens = tokens
        self.path = path
        self.pos = 0
        self.loop_depth = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind is not TokenKind.EOF:
            self.pos += 1
        return token

    def _error(self, message: str):
        raise ParseError(message, self.path, self.current.line)

    def _expect(self, kind: TokenKind) -> Token:
        if self.current.kind is not kind:
            self._error(f"expected '{kind.value}', found '{self.current.text or kind.value}'")
        return self._advance()

    def _skip_newlines(self):
        while self.current.kind is TokenKind.NEWLINE:
            self._advance()

    def parse(self) -> List[Node]:
        body = self._block(())
        if self.current.kind is not TokenKind.EOF:
            self._error(f"unexpected '{self.current.text}'")
        return body

    def _block(self, terminators: Tuple[str, ...]) -> List[Node]:
        statements: List[Node] = []
        while True:
            self._skip_newlines()
            token = self.current
            if token.kind is TokenKind.EOF or token.is_keyword(*terminators):
                return statements
            statements.append(self._statement())

    def _end_statement(self):
        if self.current.kind is TokenKind.EOF:
            return
        self._expect(TokenKind.NEWLINE)

    def _statement(self) -> Node:
        token = self.current
        if token.is_keyword("if"):
            return self._if()
        if token.is_keyword("foreach"):
            return self._foreach()
        if token.is_keyword("break", "continue"):
            if not self.loop_depth:
                self._error(f"'{token.text}' outside of foreach")
            self._advance()
            self._end_statement()
            return LoopControl(token.text)

        expr = self._expression()
        if self.current.is_op("=", "+="):
            op = self._advance().text
            if not isinstance(expr, Identifier):
                self._error("assignment target must be a name")
            value = self._expression()
            self._end_statement()
            return Assign(expr.name, value, augmented=(op == "+="))
        self._end_statement()
        return ExpressionStatement(expr)

    def _if(self) -> Node:
        branches = []
        orelse: List[Node] = []
        self._advance()
        condition = self._expression()
        branches.append((condition, self._block(("elif", "else", "endif"))))
        while self.current.is_keyword("elif"):
            self._advance()
            condition = self._expression()
            branches.append((condition, self._block(("elif", "else", "endif"))))
        if self.current.is_keyword("else"):
            self._advance()
            orelse = self._block(("endif",))
        if not self.current.is_keyword("endif"):
            self._error("missing 'endif'")
        self._advance()
        self._end_statement()
        return If(branches, orelse)

    def _foreach(self) -> Node:
        self._advance()
        names = [self._expect(TokenKind.IDENT).text]
        while self.current.kind is TokenKind.COMMA:
            self._advance()
            names.append(self._expect(TokenKind.IDENT).text)
        self._expect(TokenKind.COLON)
        iterable = self._expression()
        self.loop_depth += 1
        body = self._block(("endforeach",))
        self.loop_depth -= 1
        if not self.current.is_keyword("endforeach"):
            self._error("missing 'endforeach'")
        self._advance()
        self._end_statement()
        return Foreach(names, iterable, body)

    # Expressions, lowest precedence first

    def _expression(self) -> Node:
        condition = self._or()
        if self.current.is_op("?"):
            self._advance()
            if_true = self._expression()
            self._expect(TokenKind.COLON)
            if_false = self._expression()
            return Ternary(condition, if_true, if_false)
        return condition

    def _or(self) -> Node:
        left = self._and()
        while self.current.is_keyword("or"):
            self._advance()
            left = BinaryOp("or", left, self._and())
        return left

    def _and(self) -> Node:
        left = self._comparison()
        while self.current.is_keyword("and"):
            self._advance()
            left = BinaryOp("and", left, self._comparison())
        return left

    def _comparison(self) -> Node:
        left = self._additive()
        while True:
            if self.current.is_op("==", "!=", "<", ">", "<=", ">="):
                op = self._advance().text
            elif self.current.is_keyword("in"):
                self._advance()
                op = "in"
            elif self.current.is_keyword("not") and self.tokens[self.pos + 1].is_keyword("in"):
                self._advance()
                self._advance()
                op = "not in"
            else:
                return left
            left = BinaryOp(op, left, self._additive())

    def _additive(self) -> Node:
        left = self._multiplicative()
        while self.current.is_op("+", "-"):
            op = self._advance().text
            left = BinaryOp(op, left, self._multiplicative())
        return left

    def _multiplicative(self) -> Node:
        left = self._unary()
        while self.current.is_op("*", "/", "%"):
            op = self._advance().text
            left = BinaryOp(op, left, self._unary())
        return left

    def _unary(self) -> Node:
        if self.current.is_keyword("not"):
            self._advance()
            return UnaryOp("not", self._unary())
        if self.current.is_op("-"):
            self._advance()
            return UnaryOp("-", self._unary())
        return self._postfix()

    def _postfix(self) -> Node:
        node = self._primary()
        while True:
            if self.current.kind is TokenKind.DOT:
                self._advance()
                name = self._expect(TokenKind.IDENT).text
                self._expect(TokenKind.LPAREN)
                args, kwargs = self._arguments()
                node = MethodCall(node, name, args, kwargs)
            elif self.current.kind is TokenKind.LBRACKET:
                self._advance()
                index = self._expression()
                self._expect(TokenKind.RBRACKET)
                node = Subscript(node, index)
            else:
                return node

    def _primary(self) -> Node:
        token = self.current
        if token.kind is TokenKind.STRING:
            self._advance()
            return String(token.text)
        if token.kind is TokenKind.NUMBER:
            self._advance()
            try:
                return Number(int(token.text, 0))
            except ValueError:
                self._error(f"invalid number '{token.text}'")
        if token.kind is TokenKind.IDENT:
            self._advance()
            if token.text in ("true", "false"):
                return Bool(token.text == "true")
            if token.text == "f" and self.current.kind is TokenKind.STRING:
                return String(self._advance().text, formatted=True)
            if self.current.kind is TokenKind.LPAREN:
                self._advance()
                args, kwargs = self._arguments()
                return Call(token.text, args, kwargs, line=token.line)
            return Identifier(token.text)
        if token.kind is TokenKind.LPAREN:
            self._advance()
            expr = self._expression()
            self._expect(TokenKind.RPAREN)
            return expr
        if token.kind is TokenKind.LBRACKET:
            self._advance()
            items = []
            while self.current.kind is not TokenKind.RBRACKET:
                items.append(self._expression())
                if self.current.kind is not TokenKind.COMMA:
                    break
                self._advance()
            self._expect(TokenKind.RBRACKET)
            return Array(items)
        if token.kind is TokenKind.LBRACE:
            self._advance()
            pairs = []
            while self.current.kind is not TokenKind.RBRACE:
                key = self._expression()
                self._expect(TokenKind.COLON)
                pairs.append((key, self._expression()))
                if self.current.kind is not TokenKind.COMMA:
                    break
                self._advance()
            self._expect(TokenKind.RBRACE)
            return DictLiteral(pairs)
        self._error(f"unexpected '{token.text or token.kind.value}'")

    def _arguments(self) -> Tuple[List[Node], Dict[str, Node]]:
        """Parse call arguments after '(' up to and including ')'."""
        args: List[Node] = []
        kwargs: Dict[str, Node] = {}
        while self.current.kind is not TokenKind.RPAREN:
            if (self.current.kind is TokenKind.IDENT
                    and self.tokens[self.pos + 1].kind is TokenKind.COLON):
                key = self._advance().text
                self._advance()
                kwargs[key] = self._expression()
            else:
                args.append(self._expression())
            if self.current.kind is not TokenKind.COMMA:
                break
            self._advance()
        self._expect(TokenKind.RPAREN)
        return args, kwargs


def parse(text: str, path: Optional[str] = None) -> List[Node]:
    return Parser(tokenize(text, path), path).parse()


# -- runtime values -----------------------------------------------------------

class Opaque:
    """Result of anything the interpreter does not model."""

    def __init__(self, description: str):
        self.description = description

    def __repr__(self):
        return f"<opaque {self.description}>"


@dataclass
class FileRef:
    path: str


@dataclass
class TargetRef:
    name: str


@dataclass
class IncludeDirs:
    paths: List[str]
    system: bool = False


@dataclass
class DependencyRef:
    name: str
    found: bool = True


@dataclass
class DeclaredDependency:
    sources: List[str] = field(default_factory=list)
    include_dirs: List[IncludeDirs] = field(default_factory=list)
    compile_args: List[str] = field(default_factory=list)
    link_args: List[str] = field(default_factory=list)
    link_with: List[str] = field(default_factory=list)
    dependencies: List[Any] = field(default_factory=list)


class _LoopBreak(Exception):
    pass


class _LoopContinue(Exception):
    pass


def _flatten(value) -> List[Any]:
    if isinstance(value, list):
        out = []
        for item in value:
            out.extend(_flatten(item))
        return out
    return [value]


@dataclass
class _Frame:
    path: str
    directory: str


@dataclass
class _Context:
    project: Project
    root: str
    guard: IncludeGuard
    variables: Dict[str, Any] = field(default_factory=dict)
    options: Dict[str, str] = field(default_factory=dict)
    project_args: List[str] = field(default_factory=list)
    project_link_args: List[str] = field(default_factory=list)
    named: bool = False


class MesonImporter(Importer):
    """Import a meson.build tree."""

    format = BuildFormat.MESON

    def import_file(self, path: str) -> Project:
        path = os.path.abspath(path)
        if os.path.isdir(path):
            path = os.path.join(path, "meson.build")
        text = read_text(path)
        root = os.path.dirname(path)
        ctx = _Context(Project(self.default_name(path), root), root, self.new_guard())
        ctx.guard.visit(path)

        logger.debug(f"Importing Meson project from {path}")
        self._run(parse(text, path), _Frame(path, root), ctx)
        self._apply_project_arguments(ctx)
        return ctx.project

    def _run(self, statements: List[Node], frame: _Frame, ctx: _Context):
        for statement in statements:
            self._execute(statement, frame, ctx)

    def _execute(self, node: Node, frame: _Frame, ctx: _Context):
        if isinstance(node, Assign):
            value = self._eval(node.value, frame, ctx)
            if node.augmented:
                value = self._binary("+", ctx.variables.get(node.name, Opaque(node.name)), value)
            ctx.variables[node.name] = value
        elif isinstance(node, ExpressionStatement):
            self._eval(node.expr, frame, ctx)
        elif isinstance(node, If):
            self._execute_if(node, frame, ctx)
        elif isinstance(node, Foreach):
            self._execute_foreach(node, frame, ctx)
        elif isinstance(node, LoopControl):
            raise _LoopBreak() if node.keyword == "break" else _LoopContinue()

    def _execute_if(self, node: If, frame: _Frame, ctx: _Context):
        for condition, body in node.branches:
            value = self._eval(condition, frame, ctx)
            # Unknown conditions take the first branch they guard
            if isinstance(value, Opaque) or self._truthy(value):
                self._run(body, frame, ctx)
                return
        self._run(node.orelse, frame, ctx)

    def _execute_foreach(self, node: Foreach, frame: _Frame, ctx: _Context):
        iterable = self._eval(node.iterable, frame, ctx)
        if isinstance(iterable, dict):
            items = [[k, v] for k, v in iterable.items()]
        elif isinstance(iterable, list):
            items = [[item] for item in iterable]
        else:
            return
        for item in items:
            for name, value in zip(node.names, item):
                ctx.variables[name] = value
            try:
                self._run(node.body, frame, ctx)
            except _LoopContinue:
                continue
            except _LoopBreak:
                break

    @staticmethod
    def _truthy(value) -> bool:
        if isinstance(value, DependencyRef):
            return value.found
        return bool(value)

    # -- expression evaluation ---------------------------------------------

    def _eval(self, node: Node, frame: _Frame, ctx: _Context):
        if isinstance(node, String):
            if node.formatted:
                return self._format(node.value, ctx)
            return node.value
        if isinstance(node, (Number, Bool)):
            return node.value
        if isinstance(node, Array):
            return [self._eval(item, frame, ctx) for item in node.items]
        if isinstance(node, DictLiteral):
            return {self._eval(k, frame, ctx): self._eval(v, frame, ctx) for k, v in node.items}
        if isinstance(node, Identifier):
            return ctx.variables.get(node.name, Opaque(node.name))
        if isinstance(node, Call):
            return self._call(node, frame, ctx)
        if isinstance(node, MethodCall):
            return self._method(node, frame, ctx)
        if isinstance(node, BinaryOp):
            if node.op in ("and", "or"):
                left = self._eval(node.left, frame, ctx)
                if isinstance(left, Opaque):
                    return left
                if node.op == "and" and not self._truthy(left):
                    return False
                if node.op == "or" and self._truthy(left):
                    return True
                return self._eval(node.right, frame, ctx)
            return self._binary(node.op, self._eval(node.left, frame, ctx), self._eval(node.right, frame, ctx))
        if isinstance(node, UnaryOp):
            operand = self._eval(node.operand, frame, ctx)
            if isinstance(operand, Opaque):
                return operand
            return (not self._truthy(operand)) if node.op == "not" else -operand
        if isinstance(node, Ternary):
            condition = self._eval(node.condition, frame, ctx)
            if isinstance(condition, Opaque) or self._truthy(condition):
                return self._eval(node.if_true, frame, ctx)
            return self._eval(node.if_false, frame, ctx)
        if isinstance(node, Subscript):
            obj = self._eval(node.obj, frame, ctx)
            index = self._eval(node.index, frame, ctx)
            try:
                return obj[index]
            except (KeyError, IndexError, TypeError):
                return Opaque("subscript")
        return Opaque(type(node).__name__)

    @staticmethod
    def _format(template: str, ctx: _Context) -> str:
        for name, value in ctx.variables.items():
            if isinstance(value, (str, int, bool)):
                template = template.replace(f"@{name}@", str(value))
        return template

    @staticmethod
    def _binary(op: str, left, right):
        if isinstance(left, Opaque) or isinstance(right, Opaque):
            return Opaque(op)
        try:
            if op == "+":
                if isinstance(left, list):
                    return left + (right if isinstance(right, list) else [right])
                return left + right
            if op == "/" and isinstance(left, str):
                return os.path.join(left, right).replace("\\", "/")
            if op == "-":
                return left - right
            if op == "*":
                return left * right
            if op == "/":
                return left // right
            if op == "%":
                return left % right
            if op == "==":
                return left == right
            if op == "!=":
                return left != right
            if op == "<":
                return left < right
            if op == ">":
                return left > right
            if op == "<=":
                return left <= right
            if op == ">=":
                return left >= right
            if op == "in":
                return left in right
            if op == "not in":
                return left not in right
        except (TypeError, ZeroDivisionError):
            pass
        return Opaque(op)

    def _method(self, node: MethodCall, frame: _Frame, ctx: _Context):
        args = [self._eval(a, frame, ctx) for a in node.args]
        if isinstance(node.obj, Identifier) and node.obj.name == "meson":
            if node.name in ("current_source_dir", "source_root", "project_source_root", "global_source_root"):
                return frame.directory if node.name == "current_source_dir" else ctx.root
            if node.name == "project_version":
                return ctx.project.version or Opaque("project_version")
            if node.name == "project_name":
                return ctx.project.name
            return Opaque(f"meson.{node.name}")

        obj = self._eval(node.obj, frame, ctx)
        if isinstance(obj, DependencyRef) and node.name == "found":
            return obj.found
        if isinstance(obj, str):
            if node.name == "format":
                text = obj
                for i, arg in enumerate(args):
                    text = text.replace(f"@{i}@", str(arg))
                return text
            if node.name == "split":
                return obj.split(args[0]) if args else obj.split()
            if node.name == "strip":
                return obj.strip()
            if node.name == "to_upper":
                return obj.upper()
            if node.name == "to_lower":
                return obj.lower()
            if node.name == "contains" and args:
                return args[0] in obj
            if node.name == "startswith" and args:
                return obj.startswith(args[0])
            if node.name == "endswith" and args:
                return obj.endswith(args[0])
            if node.name == "join" and args:
                return obj.join(str(a) for a in _flatten(args[0]))
        if isinstance(obj, list):
            if node.name == "contains" and args:
                return args[0] in obj
            if node.name == "length":
                return len(obj)
            if node.name == "get" and args:
                try:
                    return obj[args[0]]
                except (IndexError, TypeError):
                    return args[1] if len(args) > 1 else Opaque("get")
        if isinstance(obj, dict):
            if node.name == "has_key" and args:
                return args[0] in obj
            if node.name == "get" and args:
                return obj.get(args[0], args[1] if len(args) > 1 else Opaque("get"))
            if node.name == "keys":
                return list(obj.keys())
        return Opaque(node.name)

    # -- builder functions --------------------------------------------------

    def _call(self, node: Call, frame: _Frame, ctx: _Context):
        builder = self.BUILDERS.get(node.name)
        if builder is None:
            logger.debug(f"{frame.path}:{node.line}: ignoring call to {node.name}()")
            # Arguments are still evaluated for their nested builder calls
            for arg in node.args:
                self._eval(arg, frame, ctx)
            for value in node.kwargs.values():
                self._eval(value, frame, ctx)
            return Opaque(node.name)
        args = [self._eval(a, frame, ctx) for a in node.args]
        kwargs = {k: self._eval(v, frame, ctx) for k, v in node.kwargs.items()}
        return builder(self, node, frame, ctx, args, kwargs)

    def _path(self, frame: _Frame, ctx: _Context, value) -> Optional[str]:
        if isinstance(value, FileRef):
            return value.path
        if isinstance(value, str):
            return project_path(ctx.root, frame.directory, value)
        return None

    def _location(self, frame: _Frame, node: Node) -> str:
        return f"{frame.path}:{node.line}"

    def _build_project(self, node, frame, ctx, args, kwargs):
        if ctx.named:
            return Opaque("project")
        ctx.named = True
        if args and isinstance(args[0], str):
            ctx.project.name = args[0]
        version = kwargs.get("version")
        if isinstance(version, str):
            ctx.project.version = version
        license_ = kwargs.get("license")
        if isinstance(license_, list):
            license_ = " OR ".join(str(item) for item in license_)
        if isinstance(license_, str):
            ctx.project.license = license_

        options = kwargs.get("default_options", [])
        if isinstance(options, dict):
            pairs = [(str(k), str(v)) for k, v in options.items()]
        else:
            pairs = [tuple(item.split("=", 1)) for item in _flatten(options)
                     if isinstance(item, str) and "=" in item]
        for key, value in pairs:
            ctx.options[key.strip()] = value.strip()
            if key.strip() == "cpp_std":
                ctx.project.set_cxx_standard(value.split(",")[0])
            elif key.strip() == "c_std":
                ctx.project.set_c_standard(value.split(",")[0])
        return Opaque("project")

    def _build_target(self, node, frame, ctx, args, kwargs, kind: TargetKind):
        if not args or not isinstance(args[0], str):
            ctx.project.warn(Severity.WARNING, f"{node.name}() without a name ignored",
                             self._location(frame, node))
            return Opaque(node.name)
        target = Target(name=args[0], kind=kind)
        for item in _flatten(args[1:]) + _flatten(kwargs.get("sources", [])):
            self._add_source(target, frame, ctx, item)

        flags = target.flags
        for language in ("c_args", "cpp_args"):
            for arg in _flatten(kwargs.get(language, [])):
                if not isinstance(arg, str):
                    continue
                if arg.startswith("-D"):
                    flags.defines.append(arg[2:])
                else:
                    if arg.startswith("-std="):
                        if language == "cpp_args":
                            ctx.project.set_cxx_standard(arg[5:])
                        else:
                            ctx.project.set_c_standard(arg[5:])
                    flags.compile_flags.append(arg)
        flags.link_flags.extend(a for a in _flatten(kwargs.get("link_args", [])) if isinstance(a, str))

        for lib in _flatten(kwargs.get("link_with", [])) + _flatten(kwargs.get("link_whole", [])):
            if isinstance(lib, TargetRef):
                target.add_dependencies([lib.name])
        self._add_include_dirs(target, frame, ctx, kwargs.get("include_directories", []))
        for dep in _flatten(kwargs.get("dependencies", [])):
            self._add_dependency_to_target(target, frame, ctx, dep)

        ctx.project.add_target(target)
        return TargetRef(target.name)

    def _add_source(self, target: Target, frame: _Frame, ctx: _Context, item):
        path = self._path(frame, ctx, item)
        if path is None:
            return
        if path.lower().endswith(HEADER_EXTENSIONS):
            target.add_headers([path])
        else:
            target.add_sources([path])

    def _add_include_dirs(self, target: Target, frame: _Frame, ctx: _Context, value):
        for item in _flatten(value):
            if isinstance(item, IncludeDirs):
                dest = target.flags.system_include_paths if item.system else target.flags.include_paths
                for path in item.paths:
                    if path not in dest:
                        dest.append(path)
            elif isinstance(item, str):
                path = project_path(ctx.root, frame.directory, item)
                if path not in target.flags.include_paths:
                    target.flags.include_paths.append(path)

    def _add_dependency_to_target(self, target: Target, frame: _Frame, ctx: _Context, dep):
        if isinstance(dep, DependencyRef):
            if dep.name not in target.flags.link_libraries:
                target.flags.link_libraries.append(dep.name)
        elif isinstance(dep, DeclaredDependency):
            for path in dep.sources:
                target.add_sources([path])
            for dirs in dep.include_dirs:
                self._add_include_dirs(target, frame, ctx, dirs)
            for arg in dep.compile_args:
                if arg.startswith("-D"):
                    target.flags.defines.append(arg[2:])
                else:
                    target.flags.compile_flags.append(arg)
            target.flags.link_flags.extend(dep.link_args)
            target.add_dependencies(dep.link_with)
            for nested in dep.dependencies:
                self._add_dependency_to_target(target, frame, ctx, nested)

    def _build_executable(self, node, frame, ctx, args, kwargs):
        return self._build_target(node, frame, ctx, args, kwargs, TargetKind.EXECUTABLE)

    def _build_library(self, node, frame, ctx, args, kwargs):
        if node.name == "shared_library":
            kind = TargetKind.SHARED_LIBRARY
        elif node.name == "static_library":
            kind = TargetKind.STATIC_LIBRARY
        elif node.name == "both_libraries":
            kind = TargetKind.SHARED_LIBRARY
            ctx.project.warn(Severity.INFO, "both_libraries() translated as a shared library",
                             self._location(frame, node))
        elif ctx.options.get("default_library") == "shared":
            kind = TargetKind.SHARED_LIBRARY
        else:
            kind = TargetKind.STATIC_LIBRARY
        return self._build_target(node, frame, ctx, args, kwargs, kind)

    def _build_dependency(self, node, frame, ctx, args, kwargs):
        if not args or not isinstance(args[0], str):
            return Opaque("dependency")
        name = args[0]
        version = kwargs.get("version")
        if isinstance(version, list):
            version = " ".join(str(v) for v in version)
        required = kwargs.get("required", True)
        kind = DependencyKind.OPTIONAL if required is False else DependencyKind.BUILD
        ctx.project.add_dependency(Dependency(
            name=name,
            version=version if isinstance(version, str) else None,
            kind=kind,
        ))
        return DependencyRef(name)

    def _build_declare_dependency(self, node, frame, ctx, args, kwargs):
        declared = DeclaredDependency()
        for item in _flatten(kwargs.get("sources", [])):
            path = self._path(frame, ctx, item)
            if path is not None:
                declared.sources.append(path)
        for item in _flatten(kwargs.get("include_directories", [])):
            if isinstance(item, IncludeDirs):
                declared.include_dirs.append(item)
            elif isinstance(item, str):
                declared.include_dirs.append(IncludeDirs([project_path(ctx.root, frame.directory, item)]))
        declared.compile_args = [a for a in _flatten(kwargs.get("compile_args", [])) if isinstance(a, str)]
        declared.link_args = [a for a in _flatten(kwargs.get("link_args", [])) if isinstance(a, str)]
        declared.link_with = [t.name for t in _flatten(kwargs.get("link_with", [])) if isinstance(t, TargetRef)]
        declared.dependencies = [d for d in _flatten(kwargs.get("dependencies", []))
                                 if isinstance(d, (DependencyRef, DeclaredDependency))]
        return declared

    def _build_include_directories(self, node, frame, ctx, args, kwargs):
        paths = [project_path(ctx.root, frame.directory, a) for a in _flatten(args) if isinstance(a, str)]
        return IncludeDirs(paths, system=kwargs.get("is_system") is True)

    def _build_files(self, node, frame, ctx, args, kwargs):
        return [FileRef(project_path(ctx.root, frame.directory, a)) for a in _flatten(args) if isinstance(a, str)]

    def _build_join_paths(self, node, frame, ctx, args, kwargs):
        if not all(isinstance(a, str) for a in args):
            return Opaque("join_paths")
        return "/".join(a.rstrip("/") for a in args)

    def _build_get_option(self, node, frame, ctx, args, kwargs):
        if args and isinstance(args[0], str) and args[0] in ctx.options:
            return ctx.options[args[0]]
        return Opaque("get_option")

    def _build_project_arguments(self, node, frame, ctx, args, kwargs):
        values = [a for a in _flatten(args) if isinstance(a, str)]
        if node.name.endswith("link_arguments"):
            ctx.project_link_args.extend(values)
        else:
            ctx.project_args.extend(values)
        return Opaque(node.name)

    def _build_subdir(self, node, frame, ctx, args, kwargs):
        if not args or not isinstance(args[0], str):
            return Opaque("subdir")
        directory = os.path.normpath(os.path.join(frame.directory, args[0]))
        path = os.path.join(directory, "meson.build")
        location = self._location(frame, node)
        if not os.path.isfile(path):
            ctx.project.warn(Severity.WARNING, f"subdir: '{path}' not found", location)
            return Opaque("subdir")
        if not ctx.guard.visit(path):
            logger.debug(f"Skipping already parsed {path}")
            return Opaque("subdir")
        if ctx.guard.exhausted:
            ctx.project.warn(Severity.WARNING,
                             f"subdir: include depth limit ({ctx.guard.max_depth}) reached, skipping '{path}'",
                             location)
            return Opaque("subdir")

        with ctx.guard.descend():
            try:
                statements = parse(read_text(path), path)
                self._run(statements, _Frame(path, directory), ctx)
            except ParseError as e:
                ctx.project.warn(Severity.WARNING, f"subdir: failed to parse '{path}': {e}", location)
        return Opaque("subdir")

    def _apply_project_arguments(self, ctx: _Context):
        for target in ctx.project.targets:
            for arg in ctx.project_args:
                if arg.startswith("-D"):
                    if arg[2:] not in target.flags.defines:
                        target.flags.defines.append(arg[2:])
                elif arg not in target.flags.compile_flags:
                    target.flags.compile_flags.append(arg)
            for arg in ctx.project_link_args:
                if arg not in target.flags.link_flags:
                    target.flags.link_flags.append(arg)

    BUILDERS = {
        "project": _build_project,
        "executable": _build_executable,
        "library": _build_library,
        "static_library": _build_library,
        "shared_library": _build_library,
        "both_libraries": _build_library,
        "dependency": _build_dependency,
        "declare_dependency": _build_declare_dependency,
        "include_directories": _build_include_directories,
        "files": _build_files,
        "join_paths": _build_join_paths,
        "get_option": _build_get_option,
        "add_project_arguments": _build_project_arguments,
        "add_global_arguments": _build_project_arguments,
        "add_project_link_arguments": _build_project_arguments,
        "subdir": _build_subdir,
    }
