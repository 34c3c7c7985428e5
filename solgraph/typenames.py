"""Type-name formatting and keyword classification for Solidity declarations."""

from __future__ import annotations

from typing import Any

from .errors import FormatError, ValidationError
from .models import ClassStereotype, Visibility, is_elementary_type


FUNCTION_TYPE_PLACEHOLDER = "function()"

VISIBILITIES = {
    "default": Visibility.PUBLIC,
    "public": Visibility.PUBLIC,
    "external": Visibility.EXTERNAL,
    "internal": Visibility.INTERNAL,
    "private": Visibility.PRIVATE,
}

CONTRACT_KINDS = {
    "contract": ClassStereotype.NONE,
    "interface": ClassStereotype.INTERFACE,
    "library": ClassStereotype.LIBRARY,
    "abstract": ClassStereotype.ABSTRACT,
}

__all__ = [
    "format_type_name",
    "parse_visibility",
    "parse_contract_kind",
    "parse_payable",
    "class_name",
    "is_elementary_type",
]


def format_type_name(type_name: dict[str, Any]) -> str:
    """Render a type-name node the way it reads in source.

    `uint256[]` stays `uint256[]`, user-defined types keep their full dotted
    path and mappings become `mapping(K=>V)`. Function types collapse to a
    fixed placeholder.
    """
    kind = type_name.get("type") if isinstance(type_name, dict) else None

    if kind == "ElementaryTypeName":
        return type_name["name"]
    if kind == "UserDefinedTypeName":
        return type_name["namePath"]
    if kind == "FunctionTypeName":
        return FUNCTION_TYPE_PLACEHOLDER
    if kind == "ArrayTypeName":
        return format_type_name(type_name["baseTypeName"]) + "[]"
    if kind == "Mapping":
        key = _mapping_key(type_name.get("keyType"))
        value = format_type_name(type_name["valueType"])
        return f"mapping({key}=>{value})"

    raise FormatError(f"Invalid type name {kind!r}")


def _mapping_key(key_type: dict[str, Any] | None) -> str:
    if not key_type:
        raise FormatError("Mapping has no key type")
    return key_type.get("name") or key_type.get("namePath") or format_type_name(key_type)


def parse_visibility(keyword: str | None) -> Visibility:
    try:
        return VISIBILITIES[keyword]
    except KeyError:
        raise ValidationError(
            f"Invalid visibility {keyword}. Was not public, external, internal or private"
        ) from None


def parse_contract_kind(keyword: str | None) -> ClassStereotype:
    try:
        return CONTRACT_KINDS[keyword]
    except KeyError:
        raise ValidationError(f"Invalid contract kind {keyword}") from None


def parse_payable(state_mutability: str | None) -> bool:
    return state_mutability == "payable"


def class_name(name_path: str | None) -> str:
    """First segment of a possibly library-qualified name, e.g. `Set.Data` -> `Set`."""
    if not name_path or not isinstance(name_path, str):
        return ""
    return name_path.split(".")[0]
