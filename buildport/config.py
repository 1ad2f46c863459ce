"""Translation options and their TOML persistence."""

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import toml

logger = logging.getLogger(__name__)

DEFAULT_MAX_INCLUDE_DEPTH = 32


@dataclass
class TranslationOptions:
    """Knobs controlling a single translation run."""
    strict: bool = False  # Abort export when an error-severity warning was recorded
    verbose: bool = False  # Report unrecognized commands as info warnings
    max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH  # Backstop for nested includes
    emit_compile_commands: bool = False  # Write compile_commands.json next to exports
    cmake_minimum_version: str = "3.20"  # Version written by the CMake exporter
    compiler: str = "c++"  # C++ compiler used by Makefile/Ninja/compile_commands exports
    c_compiler: str = "cc"  # C compiler for .c sources
    xcode_seed: str = "buildport"  # Seed for deterministic Xcode/MSBuild identifiers

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranslationOptions":
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            key = key.replace("-", "_")
            if key in known:
                values[key] = value
            else:
                logger.warning(f"Ignoring unknown translation option '{key}'")
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def save(self, path: Union[str, Path]):
        """Save the options to a TOML file under a [translate] table."""
        with open(path, "w") as f:
            toml.dump({"translate": self.to_dict()}, f)


def load_options(path: Union[str, Path]) -> TranslationOptions:
    """
    Load translation options from a TOML file.

    Plain config files keep the options under ``[translate]``; a
    ``pyproject.toml`` keeps them under ``[tool.buildport]``. A file with
    neither table yields the defaults.

    Args:
        path: TOML file to read

    Returns:
        Parsed options
    """
    path = Path(path)
    with open(path, "r") as f:
        data = toml.load(f)

    if path.name == "pyproject.toml":
        section = data.get("tool", {}).get("buildport")
    else:
        section = data.get("translate")

    if section is None:
        logger.debug(f"No translation options in {path}, using defaults")
        return TranslationOptions()
    return TranslationOptions.from_dict(section)


def find_options(start: Union[str, Path]) -> Optional[TranslationOptions]:
    """Look for buildport.toml in a directory and its parents."""
    current = Path(start).resolve()
    if current.is_file():
        current = current.parent
    for directory in [current, *current.parents]:
        candidate = directory / "buildport.toml"
        if candidate.is_file():
            logger.info(f"Using translation options from {candidate}")
            return load_options(candidate)
    return None
