"""Solidity source parser producing ANTLR-style syntax trees."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import ParseError
from .grammar import load_solidity_parser


@dataclass
class ParsedSource:
    tree: dict[str, Any]
    source_text: str


class SolidityParser:
    def __init__(self) -> None:
        self._parser = load_solidity_parser()

    def parse_text(self, source_text: str) -> ParsedSource:
        try:
            tree = self._parser.parse(source_text, loc=False)
        except Exception as exc:
            raise ParseError(f"Failed to parse Solidity source: {exc}") from exc
        return ParsedSource(tree=tree, source_text=source_text)

    def parse_file(self, path: str | Path) -> ParsedSource:
        source_text = Path(path).read_text(encoding="utf-8")
        try:
            return self.parse_text(source_text)
        except ParseError as exc:
            raise ParseError(f"Failed to parse solidity file {path}.") from exc
