"""Fetch verified Solidity source code from Etherscan-family explorers."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from typing import Any

import httpx


logger = logging.getLogger(__name__)

NETWORK_API_URLS = {
    "mainnet": "https://api.etherscan.io/api",
    "polygon": "https://api.polygonscan.com/api",
    "bsc": "https://api.bscscan.com/api",
    "ropsten": "https://api-ropsten.etherscan.io/api",
    "kovan": "https://api-kovan.etherscan.io/api",
    "rinkeby": "https://api-rinkeby.etherscan.io/api",
    "goerli": "https://api-goerli.etherscan.io/api",
}

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_address(value: str) -> bool:
    return bool(ADDRESS_PATTERN.match(value or ""))


@dataclass(frozen=True)
class ExplorerConfig:
    api_key: str | None = None
    network: str = "mainnet"
    timeout_seconds: float = 60.0

    def __post_init__(self) -> None:
        if self.network not in NETWORK_API_URLS:
            raise ValueError(
                f"Invalid network {self.network}. "
                f"Must be one of {', '.join(NETWORK_API_URLS)}"
            )

    @property
    def api_url(self) -> str:
        return NETWORK_API_URLS[self.network]

    @classmethod
    def from_env(cls, **overrides: Any) -> "ExplorerConfig":
        values: dict[str, Any] = {
            "api_key": os.getenv("ETHERSCAN_API_KEY"),
            "network": os.getenv("SOLGRAPH_NETWORK", "mainnet"),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


@dataclass(frozen=True)
class ContractSource:
    contract_name: str
    files: tuple[tuple[str, str], ...]


class ExplorerRequestError(RuntimeError):
    def __init__(self, status_code: int | None, payload: Any) -> None:
        super().__init__(f"Explorer request failed ({status_code}): {payload}")
        self.status_code = status_code
        self.payload = payload


def fetch_contract_source(config: ExplorerConfig, address: str) -> ContractSource:
    """Download the verified source files for the contract at `address`."""
    if not is_address(address):
        raise ValueError(f"Contract address {address!r} is not a 0x address")

    params = {
        "module": "contract",
        "action": "getsourcecode",
        "address": address,
    }
    if config.api_key:
        params["apikey"] = config.api_key

    try:
        response = httpx.get(config.api_url, params=params, timeout=config.timeout_seconds)
    except httpx.RequestError as exc:
        raise ExplorerRequestError(None, str(exc)) from exc
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        try:
            payload = response.json()
        except Exception:
            payload = response.text
        raise ExplorerRequestError(response.status_code, payload) from exc

    payload = response.json()
    result = payload.get("result")
    if payload.get("status") != "1" or not isinstance(result, list) or not result:
        raise ExplorerRequestError(response.status_code, result or payload)

    record = result[0]
    contract_name = record.get("ContractName") or ""
    source_code = record.get("SourceCode") or ""
    if not source_code:
        raise ExplorerRequestError(
            response.status_code,
            f"No verified source code for {address} on {config.network}",
        )

    files = parse_source_code(source_code, contract_name)
    logger.debug("Fetched %d source files for %s (%s)", len(files), address, contract_name)
    return ContractSource(contract_name=contract_name, files=files)


def parse_source_code(source_code: str, contract_name: str) -> tuple[tuple[str, str], ...]:
    """Split an explorer SourceCode field into `(filename, code)` pairs.

    The field is either plain Solidity, a standard JSON input wrapped in an
    extra pair of braces, or a JSON object of `{filename: {content}}`.
    """
    text = source_code.strip()
    if text.startswith("{{") and text.endswith("}}"):
        text = text[1:-1]
    if not text.startswith("{"):
        return ((f"{contract_name}.sol", source_code),)

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return ((f"{contract_name}.sol", source_code),)

    sources = data.get("sources", data)
    return tuple(
        (filename, entry.get("content", "") if isinstance(entry, dict) else str(entry))
        for filename, entry in sources.items()
    )


def flatten_source(source: ContractSource) -> str:
    """Concatenate all source files into one text, each headed by its filename."""
    parts = [f"// File: {filename}\n\n{code}" for filename, code in source.files]
    return "\n\n".join(parts)
