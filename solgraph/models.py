"""Data models for extracted Solidity entities and their associations."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


ELEMENTARY_TYPE_PATTERN = re.compile(
    r"^(address|bool|string|byte|bytes\d*|u?int\d*|u?fixed(\d+x\d+)?|var)$"
)


def is_elementary_type(name: str) -> bool:
    return bool(ELEMENTARY_TYPE_PATTERN.match(name))


def _empty_mapping() -> Mapping[str, Any]:
    return MappingProxyType({})


class ClassStereotype(str, Enum):
    NONE = "None"
    INTERFACE = "Interface"
    LIBRARY = "Library"
    ABSTRACT = "Abstract"
    STRUCT = "Struct"
    ENUM = "Enum"


class OperatorStereotype(str, Enum):
    NONE = "None"
    ABSTRACT = "Abstract"
    PAYABLE = "Payable"
    FALLBACK = "Fallback"
    MODIFIER = "Modifier"
    EVENT = "Event"


class Visibility(str, Enum):
    PUBLIC = "Public"
    EXTERNAL = "External"
    INTERNAL = "Internal"
    PRIVATE = "Private"


class ReferenceType(str, Enum):
    STORAGE = "Storage"
    MEMORY = "Memory"


@dataclass(frozen=True)
class Parameter:
    name: str
    type: str


@dataclass(frozen=True)
class Attribute:
    name: str
    type: str
    visibility: Visibility | None = None


@dataclass(frozen=True)
class Operator:
    name: str
    stereotype: OperatorStereotype = OperatorStereotype.NONE
    visibility: Visibility | None = None
    parameters: tuple[Parameter, ...] = ()
    return_parameters: tuple[Parameter, ...] = ()
    is_payable: bool | None = None


@dataclass(frozen=True)
class Association:
    target: str
    reference_type: ReferenceType
    realization: bool = False

    def merge(self, reference_type: ReferenceType, realization: bool) -> "Association":
        """Fold a repeated discovery of the same target into this record.

        Realization is sticky once set. The reference type can be upgraded
        from Memory to Storage but is never downgraded.
        """
        upgraded = self.reference_type
        if reference_type == ReferenceType.STORAGE:
            upgraded = ReferenceType.STORAGE
        if upgraded == self.reference_type and (self.realization or not realization):
            return self
        return replace(
            self,
            reference_type=upgraded,
            realization=self.realization or realization,
        )


@dataclass(frozen=True)
class Entity:
    """One contract, interface, library, abstract contract, struct or enum.

    Entities are read-only once extraction hands them out; `EntityBuilder`
    is the mutable form the extractor fills in.
    """

    name: str
    absolute_path: str
    relative_path: str
    stereotype: ClassStereotype = ClassStereotype.NONE
    attributes: tuple[Attribute, ...] = ()
    operators: tuple[Operator, ...] = ()
    structs: Mapping[str, tuple[Parameter, ...]] = field(default_factory=_empty_mapping)
    enums: Mapping[str, tuple[str, ...]] = field(default_factory=_empty_mapping)
    associations: Mapping[str, Association] = field(default_factory=_empty_mapping)
    imported_paths: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "stereotype": self.stereotype.value,
            "absolutePath": self.absolute_path,
            "relativePath": self.relative_path,
            "attributes": [_attribute_dict(attr) for attr in self.attributes],
            "operators": [_operator_dict(op) for op in self.operators],
            "structs": {
                name: [_parameter_dict(member) for member in members]
                for name, members in self.structs.items()
            },
            "enums": {name: list(values) for name, values in self.enums.items()},
            "associations": {
                target: {
                    "referenceType": assoc.reference_type.value,
                    "realization": assoc.realization,
                }
                for target, assoc in self.associations.items()
            },
            "importedPaths": list(self.imported_paths),
        }


@dataclass
class EntityBuilder:
    name: str
    absolute_path: str
    relative_path: str
    stereotype: ClassStereotype = ClassStereotype.NONE
    attributes: list[Attribute] = field(default_factory=list)
    operators: list[Operator] = field(default_factory=list)
    structs: dict[str, list[Parameter]] = field(default_factory=dict)
    enums: dict[str, list[str]] = field(default_factory=dict)
    associations: dict[str, Association] = field(default_factory=dict)
    imported_paths: list[str] = field(default_factory=list)

    def add_association(
        self,
        target: str,
        reference_type: ReferenceType,
        realization: bool = False,
    ) -> None:
        if not target or target == self.name or is_elementary_type(target):
            return
        existing = self.associations.get(target)
        if existing is None:
            self.associations[target] = Association(
                target=target,
                reference_type=reference_type,
                realization=realization,
            )
        else:
            self.associations[target] = existing.merge(reference_type, realization)

    def build(self) -> Entity:
        return Entity(
            name=self.name,
            absolute_path=self.absolute_path,
            relative_path=self.relative_path,
            stereotype=self.stereotype,
            attributes=tuple(self.attributes),
            operators=tuple(self.operators),
            structs=MappingProxyType(
                {name: tuple(members) for name, members in self.structs.items()}
            ),
            enums=MappingProxyType(
                {name: tuple(values) for name, values in self.enums.items()}
            ),
            associations=MappingProxyType(dict(self.associations)),
            imported_paths=tuple(self.imported_paths),
        )


def _parameter_dict(param: Parameter) -> dict[str, Any]:
    return {"name": param.name, "type": param.type}


def _attribute_dict(attr: Attribute) -> dict[str, Any]:
    data: dict[str, Any] = {"name": attr.name, "type": attr.type}
    if attr.visibility is not None:
        data["visibility"] = attr.visibility.value
    return data


def _operator_dict(op: Operator) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": op.name,
        "stereotype": op.stereotype.value,
        "parameters": [_parameter_dict(param) for param in op.parameters],
        "returnParameters": [_parameter_dict(param) for param in op.return_parameters],
    }
    if op.visibility is not None:
        data["visibility"] = op.visibility.value
    if op.is_payable is not None:
        data["isPayable"] = op.is_payable
    return data
