"""End-to-end pipeline from Solidity sources to entities and an association graph."""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable

import networkx as nx

from .errors import FileExtractionError, ImportResolutionError, SolGraphError
from .explorer import ExplorerConfig, fetch_contract_source, flatten_source, is_address
from .extract import convert_source_unit
from .file_walker import iter_solidity_files
from .graph import build_graph, entities_connected_to
from .models import Entity
from .parser import ParsedSource, SolidityParser
from .storage import save_entities, save_graph, stamp_snapshot


logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    entities: list[Entity] = field(default_factory=list)
    failures: list[FileExtractionError] = field(default_factory=list)
    import_errors: list[ImportResolutionError] = field(default_factory=list)
    contract_name: str | None = None


def extract_sources(
    sources: Iterable[tuple[str, dict[str, Any]]],
    filesystem: bool = True,
    skip_failures: bool = False,
    log: logging.Logger | None = None,
) -> ExtractionResult:
    """Convert `(path, tree)` pairs in order into one aggregate result.

    A file only contributes entities once its whole tree converted. Fatal
    errors are tagged with the file path and either raised or, with
    `skip_failures`, collected.
    """
    log = log or logger
    result = ExtractionResult()

    for path, tree in sources:
        try:
            extraction = convert_source_unit(tree, path, filesystem=filesystem, log=log)
        except SolGraphError as exc:
            failure = FileExtractionError(path, exc)
            if not skip_failures:
                raise failure from exc
            log.warning("%s", failure)
            result.failures.append(failure)
            continue
        result.entities.extend(extraction.entities)
        result.import_errors.extend(extraction.import_errors)

    return result


def extract_paths(
    paths: str | Iterable[str],
    ignore: Iterable[str] | None = None,
    depth_limit: int = -1,
    skip_failures: bool = False,
    parser: SolidityParser | None = None,
) -> ExtractionResult:
    files = iter_solidity_files(paths, ignore=ignore, depth_limit=depth_limit)
    parser = parser or SolidityParser()
    parse_failures: list[FileExtractionError] = []
    parsed = _parse_each(
        ((os.path.relpath(path), path) for path in files),
        parser.parse_file,
        skip_failures,
        parse_failures,
    )
    result = extract_sources(parsed, filesystem=True, skip_failures=skip_failures)
    result.failures.extend(parse_failures)
    return result


def extract_texts(
    files: Iterable[tuple[str, str]],
    filesystem: bool = False,
    skip_failures: bool = False,
    parser: SolidityParser | None = None,
) -> ExtractionResult:
    """Parse and convert `(label, source_text)` pairs that are already in memory."""
    parser = parser or SolidityParser()
    parse_failures: list[FileExtractionError] = []
    parsed = _parse_each(files, parser.parse_text, skip_failures, parse_failures)
    result = extract_sources(parsed, filesystem=filesystem, skip_failures=skip_failures)
    result.failures.extend(parse_failures)
    return result


def extract_address(
    address: str,
    config: ExplorerConfig | None = None,
    skip_failures: bool = False,
    parser: SolidityParser | None = None,
) -> ExtractionResult:
    config = config or ExplorerConfig.from_env()
    source = fetch_contract_source(config, address)
    result = extract_texts(source.files, skip_failures=skip_failures, parser=parser)
    result.contract_name = source.contract_name
    return result


def flatten_address(
    address: str,
    output_path: str | Path,
    network: str | None = None,
    api_key: str | None = None,
) -> Path:
    """Save the verified source files of `address` concatenated into one file."""
    if not is_address(address):
        raise ValueError(f"Flattening needs a 0x contract address, got {address!r}")
    config = ExplorerConfig.from_env(network=network, api_key=api_key)
    source = fetch_contract_source(config, address)
    output_path = Path(output_path)
    output_path.write_text(flatten_source(source), encoding="utf-8")
    logger.info(
        "Flattened %d files of %s to %s", len(source.files), source.contract_name, output_path
    )
    return output_path


def build_graph_from_root(
    root: str | Path,
    output_path: str | Path | None = None,
    ignore: Iterable[str] | None = None,
    depth_limit: int = -1,
    base_contracts: Iterable[str] | None = None,
    skip_failures: bool = False,
    parser: SolidityParser | None = None,
) -> nx.DiGraph:
    result = extract_paths(
        str(root),
        ignore=ignore,
        depth_limit=depth_limit,
        skip_failures=skip_failures,
        parser=parser,
    )
    entities = result.entities
    if base_contracts:
        entities = entities_connected_to(entities, base_contracts)

    graph = stamp_snapshot(build_graph(entities), root)
    if output_path:
        save_graph(graph, output_path)
    return graph


def _parse_each(
    items: Iterable[tuple[str, str]],
    parse: Callable[[str], ParsedSource],
    skip_failures: bool,
    failures: list[FileExtractionError],
) -> Iterable[tuple[str, dict[str, Any]]]:
    for relative_path, value in items:
        try:
            parsed = parse(value)
        except SolGraphError as exc:
            failure = FileExtractionError(relative_path, exc)
            if not skip_failures:
                raise failure from exc
            logger.warning("%s", failure)
            failures.append(failure)
            continue
        yield relative_path, parsed.tree


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="solgraph",
        description="Extract contracts, structs and enums and their associations from Solidity code",
    )
    parser.add_argument(
        "target",
        nargs="?",
        default=".",
        help="Comma separated files or folders, or a 0x contract address",
    )
    parser.add_argument("--output", default="solgraph_graph.json", help="Graph JSON path")
    parser.add_argument("--entities-output", default=None, help="Entity list JSON path")
    parser.add_argument(
        "--ignore",
        default="",
        help="Comma separated file or folder names to skip",
    )
    parser.add_argument(
        "--depth-limit",
        type=int,
        default=-1,
        help="Number of sub folders searched for Solidity files (-1 for all)",
    )
    parser.add_argument(
        "--base-contracts",
        default=None,
        help="Only keep entities connected to these comma separated contract names",
    )
    parser.add_argument("--network", default=None, help="Explorer network for addresses")
    parser.add_argument("--api-key", default=None, help="Explorer API key")
    parser.add_argument(
        "--flatten",
        default=None,
        metavar="PATH",
        help="Write the verified source of an address target to PATH as one file and stop",
    )
    parser.add_argument(
        "--skip-failures",
        action="store_true",
        help="Skip files that fail to parse or convert instead of stopping",
    )
    parser.add_argument("--verbose", action="store_true", help="Log debug output")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        if args.flatten:
            flatten_address(args.target, args.flatten, args.network, args.api_key)
            return 0
        if is_address(args.target):
            config = ExplorerConfig.from_env(network=args.network, api_key=args.api_key)
            result = extract_address(args.target, config, skip_failures=args.skip_failures)
        else:
            ignore = [name for name in args.ignore.split(",") if name]
            result = extract_paths(
                args.target,
                ignore=ignore,
                depth_limit=args.depth_limit,
                skip_failures=args.skip_failures,
            )
    except (SolGraphError, OSError, ValueError, RuntimeError) as exc:
        logger.error("%s", exc)
        return 1

    entities = result.entities
    if args.base_contracts:
        entities = entities_connected_to(entities, args.base_contracts.split(","))

    graph = stamp_snapshot(build_graph(entities), args.target)
    save_graph(graph, args.output)
    if args.entities_output:
        save_entities(entities, args.entities_output)

    print(len(entities), graph.number_of_nodes(), graph.number_of_edges())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
