"""
buildport - build-system translation engine

Imports CMake, Meson, Xcode, MSBuild, Makefile, vcpkg and Conan descriptions
into one project model and exports it as CMake, Ninja, Makefile, pkg-config,
compile_commands.json, MSBuild or Xcode.
"""

__version__ = "0.3.0"

from .config import TranslationOptions, load_options
from .engine import TranslationEngine, TranslationResult
from .errors import (
    FormatDetectionError,
    ParseError,
    SourceNotFoundError,
    StrictModeViolation,
    TranslationError,
    UnsupportedConstruct,
    UnsupportedFormatError,
)
from .model import (
    BuildFormat,
    CompileFlags,
    Dependency,
    DependencyKind,
    Project,
    Severity,
    Target,
    TargetKind,
    TranslationWarning,
)

# Define what gets imported with "from buildport import *"
__all__ = [
    "__version__",
    "BuildFormat",
    "CompileFlags",
    "Dependency",
    "DependencyKind",
    "FormatDetectionError",
    "ParseError",
    "Project",
    "Severity",
    "SourceNotFoundError",
    "StrictModeViolation",
    "Target",
    "TargetKind",
    "TranslationEngine",
    "TranslationError",
    "TranslationOptions",
    "TranslationResult",
    "TranslationWarning",
    "UnsupportedConstruct",
    "UnsupportedFormatError",
    "load_options",
]
