"""Extract entities from a parsed Solidity source unit."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any

from .associations import AssociationResolver
from .errors import ImportResolutionError, StructuralError
from .imports import resolve_imports
from .models import (
    Attribute,
    ClassStereotype,
    Entity,
    EntityBuilder,
    Operator,
    OperatorStereotype,
    Parameter,
    ReferenceType,
)
from .typenames import format_type_name, parse_contract_kind, parse_payable, parse_visibility


logger = logging.getLogger(__name__)

Node = dict[str, Any]


@dataclass(frozen=True)
class FileExtraction:
    path: str
    entities: tuple[Entity, ...]
    imported_paths: tuple[str, ...]
    import_errors: tuple[ImportResolutionError, ...] = field(default=())


def convert_source_unit(
    node: Node,
    relative_path: str,
    filesystem: bool = False,
    log: logging.Logger | None = None,
) -> FileExtraction:
    """Build one entity per top-level contract, struct and enum in `node`.

    With `filesystem` set, imports are resolved against the local disk and
    entities get an absolute path. Otherwise the path label came from a
    remote explorer and is used as is.
    """
    log = log or logger
    if not isinstance(node, dict) or node.get("type") != "SourceUnit":
        raise StructuralError("AST node not of type SourceUnit")

    absolute_path = os.path.abspath(relative_path) if filesystem else relative_path
    builders: list[EntityBuilder] = []
    raw_imports: list[str] = []

    for child in node.get("children") or []:
        child_type = child.get("type") if child else None

        if child_type == "ContractDefinition":
            log.debug("Adding contract %s", child.get("name"))
            entity = EntityBuilder(
                name=child["name"],
                absolute_path=absolute_path,
                relative_path=relative_path,
            )
            _parse_contract_definition(entity, child, log)
            builders.append(entity)
        elif child_type == "StructDefinition":
            log.debug("Adding struct %s", child.get("name"))
            entity = EntityBuilder(
                name=child["name"],
                absolute_path=absolute_path,
                relative_path=relative_path,
                stereotype=ClassStereotype.STRUCT,
            )
            _parse_struct_definition(entity, child, log)
            builders.append(entity)
        elif child_type == "EnumDefinition":
            log.debug("Adding enum %s", child.get("name"))
            entity = EntityBuilder(
                name=child["name"],
                absolute_path=absolute_path,
                relative_path=relative_path,
                stereotype=ClassStereotype.ENUM,
            )
            _parse_enum_definition(entity, child, log)
            builders.append(entity)
        elif child_type == "ImportDirective":
            raw_imports.append(child["path"])

    imported_paths, import_errors = resolve_imports(
        raw_imports, relative_path, filesystem, log
    )
    for entity in builders:
        entity.imported_paths = list(imported_paths)
    entities = tuple(entity.build() for entity in builders)

    return FileExtraction(
        path=relative_path,
        entities=entities,
        imported_paths=tuple(imported_paths),
        import_errors=tuple(import_errors),
    )


def _parse_struct_definition(entity: EntityBuilder, node: Node, log: logging.Logger) -> None:
    members = node.get("members") or []
    for member in members:
        entity.attributes.append(
            Attribute(name=member["name"], type=format_type_name(member["typeName"]))
        )
    AssociationResolver(entity, log).resolve(members)


def _parse_enum_definition(entity: EntityBuilder, node: Node, log: logging.Logger) -> None:
    members = node.get("members") or []
    for index, member in enumerate(members):
        entity.attributes.append(Attribute(name=member["name"], type=str(index)))
    AssociationResolver(entity, log).resolve(members)


def _parse_contract_definition(entity: EntityBuilder, node: Node, log: logging.Logger) -> None:
    entity.stereotype = parse_contract_kind(node.get("kind"))
    resolver = AssociationResolver(entity, log)

    for base in node.get("baseContracts") or []:
        entity.add_association(
            base["baseName"]["namePath"], ReferenceType.STORAGE, realization=True
        )

    for sub_node in node.get("subNodes") or []:
        sub_type = sub_node.get("type")

        if sub_type == "StateVariableDeclaration":
            for variable in sub_node.get("variables") or []:
                entity.attributes.append(
                    Attribute(
                        name=variable["name"],
                        type=format_type_name(variable["typeName"]),
                        visibility=parse_visibility(variable.get("visibility")),
                    )
                )
            resolver.resolve(sub_node)
        elif sub_type == "UsingForDeclaration":
            entity.add_association(sub_node.get("libraryName"), ReferenceType.MEMORY)
        elif sub_type == "FunctionDefinition":
            _parse_function_definition(entity, sub_node, resolver)
        elif sub_type == "ModifierDefinition":
            parameters = _parameter_nodes(sub_node.get("parameters"))
            entity.operators.append(
                Operator(
                    name=sub_node["name"],
                    stereotype=OperatorStereotype.MODIFIER,
                    parameters=_parse_parameters(parameters),
                )
            )
            resolver.resolve(parameters)
            body = sub_node.get("body")
            if body:
                resolver.resolve(body.get("statements"))
        elif sub_type == "EventDefinition":
            parameters = _parameter_nodes(sub_node.get("parameters"))
            entity.operators.append(
                Operator(
                    name=sub_node["name"],
                    stereotype=OperatorStereotype.EVENT,
                    parameters=_parse_parameters(parameters),
                )
            )
            resolver.resolve(parameters)
        elif sub_type == "StructDefinition":
            members = sub_node.get("members") or []
            entity.structs[sub_node["name"]] = [
                Parameter(name=member["name"], type=format_type_name(member["typeName"]))
                for member in members
            ]
            resolver.resolve(members)
        elif sub_type == "EnumDefinition":
            members = sub_node.get("members") or []
            entity.enums[sub_node["name"]] = [member["name"] for member in members]
            resolver.resolve(members)


def _parse_function_definition(
    entity: EntityBuilder, node: Node, resolver: AssociationResolver
) -> None:
    parameters = _parameter_nodes(node.get("parameters"))
    return_parameters = _parameter_nodes(node.get("returnParameters"))
    body = node.get("body") or None
    name = node.get("name") or ""

    if node.get("isConstructor") or name == "constructor":
        entity.operators.append(
            Operator(
                name="constructor",
                stereotype=OperatorStereotype.NONE,
                parameters=_parse_parameters(parameters),
            )
        )
    elif not name or node.get("isFallback") or node.get("isReceive"):
        entity.operators.append(
            Operator(
                name="",
                stereotype=OperatorStereotype.FALLBACK,
                parameters=_parse_parameters(parameters),
                is_payable=parse_payable(node.get("stateMutability")),
            )
        )
    else:
        if body is None:
            stereotype = OperatorStereotype.ABSTRACT
        elif node.get("stateMutability") == "payable":
            stereotype = OperatorStereotype.PAYABLE
        else:
            stereotype = OperatorStereotype.NONE
        entity.operators.append(
            Operator(
                name=name,
                stereotype=stereotype,
                visibility=parse_visibility(node.get("visibility")),
                parameters=_parse_parameters(parameters),
                return_parameters=_parse_parameters(return_parameters),
            )
        )

    resolver.resolve(parameters)
    resolver.resolve(return_parameters)

    # Interfaces declare every function without a body and keep their stereotype.
    if body is None:
        if entity.stereotype != ClassStereotype.INTERFACE:
            entity.stereotype = ClassStereotype.ABSTRACT
    else:
        resolver.resolve(body.get("statements"))


def _parameter_nodes(value: Any) -> list[Node | None]:
    if not value:
        return []
    if isinstance(value, dict):
        return list(value.get("parameters") or [])
    return list(value)


def _parse_parameters(params: list[Node | None]) -> tuple[Parameter, ...]:
    return tuple(
        Parameter(name=param.get("name") or "", type=format_type_name(param["typeName"]))
        for param in params
        if param is not None
    )
