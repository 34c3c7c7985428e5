from __future__ import annotations

import dataclasses

import pytest

from solgraph.models import EntityBuilder, ReferenceType


def _entity() -> EntityBuilder:
    return EntityBuilder(name="A", absolute_path="/tmp/A.sol", relative_path="A.sol")


def test_repeated_discovery_merges_into_one_record():
    entity = _entity()
    entity.add_association("B", ReferenceType.MEMORY)
    entity.add_association("B", ReferenceType.MEMORY)

    assert list(entity.associations) == ["B"]
    assert entity.associations["B"].reference_type == ReferenceType.MEMORY
    assert entity.associations["B"].realization is False


def test_realization_is_sticky():
    entity = _entity()
    entity.add_association("B", ReferenceType.STORAGE, realization=True)
    entity.add_association("B", ReferenceType.MEMORY)

    assoc = entity.associations["B"]
    assert assoc.realization is True
    assert assoc.reference_type == ReferenceType.STORAGE


def test_reference_type_is_never_downgraded():
    entity = _entity()
    entity.add_association("C", ReferenceType.MEMORY)
    entity.add_association("C", ReferenceType.STORAGE)
    entity.add_association("C", ReferenceType.MEMORY)

    assert entity.associations["C"].reference_type == ReferenceType.STORAGE


def test_self_and_elementary_targets_are_dropped():
    entity = _entity()
    entity.add_association("A", ReferenceType.MEMORY)
    entity.add_association("address", ReferenceType.STORAGE)
    entity.add_association("", ReferenceType.MEMORY)

    assert entity.associations == {}


def test_to_dict():
    entity = _entity()
    entity.add_association("B", ReferenceType.STORAGE, realization=True)
    data = entity.build().to_dict()

    assert data["name"] == "A"
    assert data["stereotype"] == "None"
    assert data["associations"] == {"B": {"referenceType": "Storage", "realization": True}}
    assert data["importedPaths"] == []


def test_build_freezes_collections():
    builder = _entity()
    builder.add_association("B", ReferenceType.MEMORY)
    builder.imported_paths.append("B.sol")
    builder.structs["Pair"] = []
    entity = builder.build()

    builder.add_association("C", ReferenceType.MEMORY)
    builder.imported_paths.append("C.sol")

    assert list(entity.associations) == ["B"]
    assert entity.imported_paths == ("B.sol",)
    assert entity.structs["Pair"] == ()
    with pytest.raises(dataclasses.FrozenInstanceError):
        entity.stereotype = entity.stereotype  # type: ignore[misc]
    with pytest.raises(TypeError):
        entity.enums["Side"] = ()  # type: ignore[index]
