"""
Importers: foreign build descriptions -> Project.

The table below is the single place mapping a BuildFormat to its importer.
"""

from typing import Dict, Optional, Type

from ..config import TranslationOptions
from ..errors import UnsupportedFormatError
from ..model import BuildFormat
from .base import IncludeGuard, Importer
from .cmake import CMakeImporter
from .conan import ConanImporter
from .makefile import MakefileImporter
from .meson import MesonImporter
from .msbuild import MSBuildImporter
from .vcpkg import VcpkgImporter
from .xcode import XcodeImporter

IMPORTERS: Dict[BuildFormat, Type[Importer]] = {
    BuildFormat.CMAKE: CMakeImporter,
    BuildFormat.MESON: MesonImporter,
    BuildFormat.XCODE: XcodeImporter,
    BuildFormat.MSBUILD: MSBuildImporter,
    BuildFormat.MAKEFILE: MakefileImporter,
    BuildFormat.VCPKG: VcpkgImporter,
    BuildFormat.CONAN: ConanImporter,
}


def get_importer(fmt: BuildFormat, options: Optional[TranslationOptions] = None) -> Importer:
    try:
        cls = IMPORTERS[BuildFormat(fmt)]
    except (KeyError, ValueError):
        raise UnsupportedFormatError(fmt, "import")
    return cls(options)


__all__ = [
    "IMPORTERS",
    "IncludeGuard",
    "Importer",
    "get_importer",
    "CMakeImporter",
    "ConanImporter",
    "MakefileImporter",
    "MesonImporter",
    "MSBuildImporter",
    "VcpkgImporter",
    "XcodeImporter",
]
