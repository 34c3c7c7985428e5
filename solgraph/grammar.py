"""Loader for the Solidity ANTLR grammar package."""

from __future__ import annotations


def load_solidity_parser():
    """Return the `solidity_parser.parser` module."""
    try:
        from solidity_parser import parser as solidity_parser
    except Exception as exc:  # pragma: no cover - import guard
        raise RuntimeError("solidity_parser is not installed") from exc

    if not hasattr(solidity_parser, "parse"):
        raise RuntimeError("Unsupported solidity_parser API")
    return solidity_parser
