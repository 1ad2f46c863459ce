"""
Exporters: Project -> foreign build descriptions.

The table below is the single place mapping a BuildFormat to its exporter.
"""

from typing import Dict, Optional, Type

from ..config import TranslationOptions
from ..errors import UnsupportedFormatError
from ..model import BuildFormat
from .base import Exporter, write_atomic
from .cmake import CMakeExporter
from .compile_db import CompileCommandsExporter, augment, merge
from .identifiers import IdentifierFactory, stable_guid
from .makefile import MakefileExporter
from .msbuild import MSBuildExporter
from .ninja import NinjaExporter
from .pkgconfig import PkgConfigExporter
from .xcode import XcodeExporter

EXPORTERS: Dict[BuildFormat, Type[Exporter]] = {
    BuildFormat.CMAKE: CMakeExporter,
    BuildFormat.NINJA: NinjaExporter,
    BuildFormat.MAKEFILE: MakefileExporter,
    BuildFormat.PKG_CONFIG: PkgConfigExporter,
    BuildFormat.COMPILE_COMMANDS: CompileCommandsExporter,
    BuildFormat.MSBUILD: MSBuildExporter,
    BuildFormat.XCODE: XcodeExporter,
}


def get_exporter(fmt: BuildFormat, options: Optional[TranslationOptions] = None) -> Exporter:
    try:
        cls = EXPORTERS[BuildFormat(fmt)]
    except (KeyError, ValueError):
        raise UnsupportedFormatError(fmt, "export")
    return cls(options)


__all__ = [
    "EXPORTERS",
    "Exporter",
    "IdentifierFactory",
    "get_exporter",
    "stable_guid",
    "write_atomic",
    "CMakeExporter",
    "CompileCommandsExporter",
    "MakefileExporter",
    "MSBuildExporter",
    "NinjaExporter",
    "PkgConfigExporter",
    "XcodeExporter",
    "augment",
    "merge",
]
