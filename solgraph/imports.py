"""Resolve Solidity import directives to file paths."""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import Iterable

from .errors import ImportResolutionError


logger = logging.getLogger(__name__)

MODULES_DIR = "node_modules"


def resolve_filesystem_import(import_path: str, relative_path: str) -> str:
    """Resolve an import the way a module loader would, returning an absolute path.

    Relative and absolute specifiers are taken from the importing file's folder.
    Bare specifiers such as `@openzeppelin/contracts/token/ERC20/ERC20.sol`
    are looked up in `node_modules` of that folder and each of its parents.
    """
    code_folder = Path(relative_path).resolve().parent

    if _is_path_specifier(import_path):
        candidate = (code_folder / import_path).resolve()
        if candidate.is_file():
            return str(candidate)
        raise ImportResolutionError(import_path, relative_path, "no such file")

    for folder in (code_folder, *code_folder.parents):
        candidate = folder / MODULES_DIR / import_path
        if candidate.is_file():
            return str(candidate.resolve())

    raise ImportResolutionError(
        import_path, relative_path, f"not found in any {MODULES_DIR} folder"
    )


def resolve_remote_import(import_path: str, relative_path: str) -> str:
    """Join an import onto the importing file's folder without touching the disk."""
    code_folder = posixpath.dirname(relative_path.replace("\\", "/")) or "."
    return posixpath.normpath(f"{code_folder}/{import_path}")


def resolve_imports(
    import_paths: Iterable[str],
    relative_path: str,
    filesystem: bool,
    log: logging.Logger | None = None,
) -> tuple[list[str], list[ImportResolutionError]]:
    log = log or logger
    resolved: list[str] = []
    errors: list[ImportResolutionError] = []

    for import_path in import_paths:
        if not filesystem:
            resolved.append(resolve_remote_import(import_path, relative_path))
            continue
        try:
            resolved.append(resolve_filesystem_import(import_path, relative_path))
        except ImportResolutionError as exc:
            log.debug("%s", exc)
            errors.append(exc)

    return resolved, errors


def _is_path_specifier(import_path: str) -> bool:
    return (
        import_path.startswith(("./", "../"))
        or import_path in {".", ".."}
        or Path(import_path).is_absolute()
    )
