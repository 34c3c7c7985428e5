"""FastAPI service to extract Solidity entities from an uploaded archive or an address."""

from __future__ import annotations

import argparse
import zipfile
from pathlib import Path
from tempfile import TemporaryDirectory

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse
from networkx.readwrite import json_graph

from .errors import FileExtractionError, ParseError
from .explorer import (
    ExplorerConfig,
    ExplorerRequestError,
    fetch_contract_source,
    flatten_source,
    is_address,
)
from .file_walker import iter_solidity_files
from .graph import build_graph, entities_connected_to
from .parser import SolidityParser
from .pipeline import ExtractionResult, extract_address, extract_texts
from .storage import entities_to_data


app = FastAPI(title="solgraph API")


def get_parser() -> SolidityParser:
    return SolidityParser()


def _extract_zip_bytes(zip_bytes: bytes, target_dir: Path) -> Path:
    if not zip_bytes:
        raise HTTPException(status_code=400, detail="Empty archive.")

    archive_path = target_dir / "contracts.zip"
    archive_path.write_bytes(zip_bytes)

    try:
        with zipfile.ZipFile(archive_path) as archive:
            archive.extractall(target_dir / "contracts")
    except zipfile.BadZipFile as exc:
        raise HTTPException(status_code=400, detail="Invalid zip archive.") from exc

    extracted_root = target_dir / "contracts"
    entries = list(extracted_root.iterdir())
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return extracted_root


def _extract_archive(root: Path, skip_failures: bool) -> ExtractionResult:
    files: list[tuple[str, str]] = []
    decode_failures: list[FileExtractionError] = []
    for path in iter_solidity_files(str(root)):
        label = Path(path).relative_to(root).as_posix()
        try:
            files.append((label, Path(path).read_text(encoding="utf-8")))
        except UnicodeDecodeError as exc:
            failure = FileExtractionError(label, ParseError(f"Source is not UTF-8 text: {exc}"))
            if not skip_failures:
                raise failure from exc
            decode_failures.append(failure)

    # Archive contents are labelled relative to the archive root, so imports
    # are joined textually rather than looked up on disk.
    result = extract_texts(
        files, filesystem=False, skip_failures=skip_failures, parser=get_parser()
    )
    result.failures.extend(decode_failures)
    return result


def _response(result: ExtractionResult, base_contracts: str | None) -> JSONResponse:
    entities = result.entities
    if base_contracts:
        entities = entities_connected_to(entities, base_contracts.split(","))
    graph = build_graph(entities)
    return JSONResponse(
        content={
            "contract_name": result.contract_name,
            "entities": entities_to_data(entities),
            "failures": [
                {"path": failure.path, "error": str(failure.cause)}
                for failure in result.failures
            ],
            "graph": json_graph.node_link_data(graph),
        }
    )


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/parse")
def parse_contracts(
    file: UploadFile | None = File(default=None),
    address: str | None = Query(default=None),
    network: str | None = Query(default=None),
    base_contracts: str | None = Query(default=None),
    skip_failures: bool = False,
) -> JSONResponse:
    if file is None and not address:
        raise HTTPException(
            status_code=400, detail="Provide either a zip file upload or a contract address."
        )

    try:
        if address:
            if not is_address(address):
                raise HTTPException(status_code=400, detail="address must be a 0x address.")
            try:
                config = ExplorerConfig.from_env(network=network)
            except ValueError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
            try:
                result = extract_address(
                    address, config, skip_failures=skip_failures, parser=get_parser()
                )
            except ExplorerRequestError as exc:
                raise HTTPException(status_code=502, detail=str(exc)) from exc
            return _response(result, base_contracts)

        if not file or not file.filename or not file.filename.lower().endswith(".zip"):
            raise HTTPException(status_code=400, detail="Upload a .zip archive.")
        with TemporaryDirectory() as temp_dir:
            root = _extract_zip_bytes(file.file.read(), Path(temp_dir))
            result = _extract_archive(root, skip_failures)
        return _response(result, base_contracts)
    except FileExtractionError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/flatten", response_class=PlainTextResponse)
def flatten_contract(
    address: str = Query(...),
    network: str | None = Query(default=None),
) -> PlainTextResponse:
    if not is_address(address):
        raise HTTPException(status_code=400, detail="address must be a 0x address.")
    try:
        config = ExplorerConfig.from_env(network=network)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    try:
        source = fetch_contract_source(config, address)
    except ExplorerRequestError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return PlainTextResponse(
        flatten_source(source),
        headers={"X-Contract-Name": source.contract_name},
    )


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the solgraph API server")
    parser.add_argument("--host", default="127.0.0.1", help="Bind host")
    parser.add_argument("--port", type=int, default=9000, help="Bind port")
    args = parser.parse_args()

    import uvicorn

    uvicorn.run("solgraph.api:app", host=args.host, port=args.port, reload=False)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
