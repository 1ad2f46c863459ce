"""compile_commands.json exporter."""

import json
import logging
import os
import shlex
from typing import Dict, List

from ..errors import ParseError, SourceNotFoundError
from ..model import BuildFormat, Project
from ..sources import SourceResolver
from .base import Exporter, is_c_source, object_path, write_atomic
from .ninja import compile_flags

logger = logging.getLogger(__name__)


class CompileCommandsExporter(Exporter):
    """
    Render a JSON compilation database.

    Source entries that are glob patterns are expanded against the project's
    source root; a pattern matching nothing contributes no entry.
    """

    format = BuildFormat.COMPILE_COMMANDS
    default_filename = "compile_commands.json"

    def entries(self, project: Project) -> List[Dict[str, str]]:
        directory = os.path.abspath(project.source_root)
        resolver = SourceResolver(directory)
        entries = []
        for target in project.targets:
            if not target.kind.has_sources:
                continue
            for source in resolver.resolve_all(target.sources):
                c_source = is_c_source(source)
                compiler = self.options.c_compiler if c_source else self.options.compiler
                args = [compiler] + compile_flags(project, target, c_source)
                args += ["-c", source, "-o", object_path(target, source)]
                entries.append({
                    "directory": directory,
                    "command": " ".join(shlex.quote(arg) for arg in _split_isystem(args)),
                    "file": source,
                })
        logger.debug(f"Compilation database for {project.name} has {len(entries)} entries")
        return entries

    def render(self, project: Project) -> str:
        return json.dumps(self.entries(project), indent=2) + "\n"


def _split_isystem(args: List[str]) -> List[str]:
    # compile_flags joins -isystem with its path for Makefile/Ninja use
    result = []
    for arg in args:
        if arg.startswith("-isystem "):
            result += ["-isystem", arg[len("-isystem "):]]
        else:
            result.append(arg)
    return result


def _load_database(path: str) -> List[Dict]:
    if not os.path.isfile(path):
        raise SourceNotFoundError(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid compilation database: {e.msg}", path, e.lineno)
    if not isinstance(data, list):
        logger.warning(f"Ignoring {path}: compilation database is not a JSON array")
        return []
    return [entry for entry in data if isinstance(entry, dict)]


def merge(paths: List[str], output: str) -> List[Dict]:
    """
    Combine several compile_commands.json files into one.

    Entries keep their input order. A later entry for the same
    (directory, file) pair replaces the earlier one in place.

    Returns:
        The merged entries, as written to ``output``
    """
    merged: Dict[tuple, Dict] = {}
    for path in paths:
        for entry in _load_database(path):
            key = (entry.get("directory"), entry.get("file"))
            merged[key] = entry
    entries = list(merged.values())
    write_atomic(output, json.dumps(entries, indent=2) + "\n")
    logger.info(f"Merged {len(paths)} compilation database(s) into {output} ({len(entries)} entries)")
    return entries


def augment(path: str, flags: List[str]) -> List[Dict]:
    """
    Append extra compiler flags to every entry of a compilation database.

    Entries in ``arguments`` form get the flags appended to the list;
    ``command`` strings get them shell-quoted and appended.
    """
    entries = _load_database(path)
    if not flags:
        return entries
    for entry in entries:
        if isinstance(entry.get("arguments"), list):
            entry["arguments"] = entry["arguments"] + list(flags)
        elif isinstance(entry.get("command"), str):
            entry["command"] += " " + " ".join(shlex.quote(flag) for flag in flags)
    write_atomic(path, json.dumps(entries, indent=2) + "\n")
    logger.info(f"Added {len(flags)} flag(s) to {len(entries)} entries in {path}")
    return entries
