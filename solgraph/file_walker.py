"""File walking utilities."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable


logger = logging.getLogger(__name__)

SOLIDITY_SUFFIX = ".sol"


def split_paths(value: str | Iterable[str]) -> list[str]:
    """Accept `a,b` strings as well as lists of paths."""
    if isinstance(value, str):
        value = [value]
    paths: list[str] = []
    for item in value:
        paths.extend(part.strip() for part in item.split(",") if part.strip())
    return paths


def iter_solidity_files(
    paths: str | Iterable[str],
    ignore: Iterable[str] | None = None,
    depth_limit: int = -1,
) -> list[str]:
    ignore_set = set(ignore or ())
    matches: list[str] = []

    for entry in split_paths(paths):
        path = Path(entry)
        if path.is_dir():
            matches.extend(_walk_folder(path, ignore_set, depth_limit))
        elif path.is_file():
            if path.suffix != SOLIDITY_SUFFIX:
                raise ValueError(f"File {entry} does not have a {SOLIDITY_SUFFIX} extension.")
            matches.append(str(path))
        else:
            raise FileNotFoundError(
                f"No such file or folder {entry}. "
                "Make sure you pass in the root directory of the contracts"
            )

    logger.debug("Got Solidity files to be parsed: %s", matches)
    return matches


def _walk_folder(root: Path, ignore: set[str], depth_limit: int) -> list[str]:
    matches: list[str] = []

    for current, dirnames, filenames in os.walk(root):
        current_path = Path(current)
        depth = len(current_path.relative_to(root).parts)
        dirnames[:] = sorted(name for name in dirnames if name not in ignore)
        if depth_limit >= 0 and depth >= depth_limit:
            dirnames[:] = []

        for filename in sorted(filenames):
            if filename in ignore or not filename.endswith(SOLIDITY_SUFFIX):
                continue
            matches.append(str(current_path / filename))

    return matches
