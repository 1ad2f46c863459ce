"""Exceptions raised by the translation engine."""

from typing import List, Optional

from .model import Severity, TranslationWarning


class TranslationError(Exception):
    """Base exception for import/export failures."""


class FormatDetectionError(TranslationError):
    """Raised when a path does not map to any known build format."""

    def __init__(self, path: str):
        super().__init__(f"Cannot detect build format of '{path}'")
        self.path = path


class SourceNotFoundError(TranslationError):
    """Raised when the top-level build description does not exist."""

    def __init__(self, path: str):
        super().__init__(f"Build description not found: {path}")
        self.path = path


class ParseError(TranslationError):
    """Raised on malformed quoting or unbalanced delimiters."""

    def __init__(self, message: str, path: Optional[str] = None, line: Optional[int] = None):
        self.message = message
        self.path = path
        self.line = line
        super().__init__(f"{self.location}: {message}" if self.location else message)

    @property
    def location(self) -> Optional[str]:
        if self.path and self.line:
            return f"{self.path}:{self.line}"
        return self.path


class UnsupportedConstruct(TranslationError):
    """
    A recognized construct that is only partially handled.

    Importers never let this escape; it is recorded as a warning instead.
    """

    def __init__(self, construct: str, location: Optional[str] = None,
                 suggestion: Optional[str] = None):
        super().__init__(f"Unsupported construct: {construct}")
        self.construct = construct
        self.location = location
        self.suggestion = suggestion

    def as_warning(self) -> TranslationWarning:
        return TranslationWarning(Severity.WARNING, str(self), self.location, self.suggestion)


class UnsupportedFormatError(TranslationError):
    """Raised when a format has no importer or exporter."""

    def __init__(self, fmt, direction: str):
        name = getattr(fmt, "value", fmt)
        super().__init__(f"Format '{name}' cannot be used for {direction}")
        self.format = fmt
        self.direction = direction


class StrictModeViolation(TranslationError):
    """Raised instead of exporting when strict mode sees error-severity warnings."""

    def __init__(self, warnings: List[TranslationWarning], project=None):
        lines = "\n".join(f"  {w}" for w in warnings)
        super().__init__(f"Strict mode: {len(warnings)} error(s) during import\n{lines}")
        self.warnings = warnings
        self.project = project
