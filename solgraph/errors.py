"""Exception types raised while turning Solidity syntax trees into entities."""

from __future__ import annotations


class SolGraphError(Exception):
    """Base class for all solgraph errors."""


class StructuralError(SolGraphError):
    """The root node is not a SourceUnit."""


class ValidationError(SolGraphError):
    """A visibility or contract-kind keyword is outside the known set."""


class FormatError(SolGraphError):
    """A type-name node has a kind the formatter does not know."""


class ParseError(SolGraphError):
    """Source text could not be parsed into a syntax tree."""


class ImportResolutionError(SolGraphError):
    """An import directive could not be resolved to a file. Never fatal."""

    def __init__(self, import_path: str, source_path: str, reason: str | None = None) -> None:
        message = f"Failed to resolve import {import_path} from file {source_path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.import_path = import_path
        self.source_path = source_path


class FileExtractionError(SolGraphError):
    """A fatal error attributed to the file it came from."""

    def __init__(self, path: str, cause: Exception) -> None:
        super().__init__(f"Failed to extract {path}: {cause}")
        self.path = path
        self.cause = cause
