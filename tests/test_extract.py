from __future__ import annotations

import dataclasses
import os
from pathlib import Path

import pytest

from solgraph.errors import FormatError, StructuralError, ValidationError
from solgraph.extract import convert_source_unit
from solgraph.models import (
    Attribute,
    ClassStereotype,
    OperatorStereotype,
    Parameter,
    ReferenceType,
    Visibility,
)

from solidity_ast import (
    array,
    contract,
    elementary,
    enum,
    event,
    expression_statement,
    function,
    ident,
    import_directive,
    mapping,
    modifier,
    param,
    source_unit,
    state_var,
    struct,
    user_type,
    using_for,
    var,
)


def _associations(entity) -> dict[str, tuple[str, bool]]:
    return {
        target: (assoc.reference_type.value, assoc.realization)
        for target, assoc in entity.associations.items()
    }


def test_end_to_end_contract():
    tree = source_unit(
        contract(
            "A",
            [
                state_var("c", user_type("C"), visibility="public"),
                function("f", parameters=[param("d", user_type("D"))]),
            ],
            bases=["B"],
        )
    )
    extraction = convert_source_unit(tree, "contracts/A.sol")

    assert len(extraction.entities) == 1
    entity = extraction.entities[0]
    assert entity.name == "A"
    assert entity.stereotype == ClassStereotype.NONE
    assert entity.relative_path == "contracts/A.sol"
    assert entity.absolute_path == "contracts/A.sol"
    assert _associations(entity) == {
        "B": ("Storage", True),
        "C": ("Storage", False),
        "D": ("Memory", False),
    }
    assert entity.attributes == (Attribute(name="c", type="C", visibility=Visibility.PUBLIC),)
    assert len(entity.operators) == 1
    operator = entity.operators[0]
    assert operator.name == "f"
    assert operator.stereotype == OperatorStereotype.NONE
    assert operator.visibility == Visibility.PUBLIC
    assert operator.parameters == (Parameter(name="d", type="D"),)


def test_base_contract_produces_single_realization():
    tree = source_unit(
        contract(
            "A",
            [
                state_var("b", user_type("B")),
                function("g", statements=[expression_statement(ident("B"))]),
            ],
            bases=["B"],
        )
    )
    entity = convert_source_unit(tree, "A.sol").entities[0]

    assert _associations(entity) == {"B": ("Storage", True)}


def test_contract_without_references_has_no_associations():
    tree = source_unit(
        contract("Plain", [state_var("count", elementary("uint256"), visibility="private")])
    )
    entity = convert_source_unit(tree, "Plain.sol").entities[0]

    assert dict(entity.associations) == {}
    assert entity.attributes[0].visibility == Visibility.PRIVATE


def test_state_mapping_to_struct():
    tree = source_unit(
        contract("Vault", [state_var("m", mapping(elementary("address"), user_type("S")))])
    )
    entity = convert_source_unit(tree, "Vault.sol").entities[0]

    assert _associations(entity) == {"S": ("Storage", False)}
    assert entity.attributes[0].type == "mapping(address=>S)"
    assert entity.attributes[0].visibility == Visibility.PUBLIC


def test_bodiless_function_reclassifies_contract_as_abstract():
    tree = source_unit(contract("Base", [function("run", abstract=True)]))
    entity = convert_source_unit(tree, "Base.sol").entities[0]

    assert entity.stereotype == ClassStereotype.ABSTRACT
    assert entity.operators[0].stereotype == OperatorStereotype.ABSTRACT


def test_interface_keeps_its_stereotype():
    tree = source_unit(
        contract("IToken", [function("run", abstract=True, visibility="external")], kind="interface")
    )
    entity = convert_source_unit(tree, "IToken.sol").entities[0]

    assert entity.stereotype == ClassStereotype.INTERFACE
    assert entity.operators[0].visibility == Visibility.EXTERNAL


def test_library_and_using_for():
    tree = source_unit(
        contract("SafeMath", kind="library"),
        contract("Token", [using_for("SafeMath", elementary("uint256"))]),
    )
    library, token = convert_source_unit(tree, "Token.sol").entities

    assert library.stereotype == ClassStereotype.LIBRARY
    assert _associations(token) == {"SafeMath": ("Memory", False)}


def test_operator_kinds():
    tree = source_unit(
        contract(
            "Shop",
            [
                function("", constructor=True, parameters=[param("owner", elementary("address"))]),
                function("", mutability="payable", visibility="external"),
                function("buy", mutability="payable", returns=[param("", user_type("Receipt"))]),
                modifier("onlyOwner", statements=[expression_statement(ident("Auth"))]),
                event("Bought", [var("item", user_type("Item"))]),
            ],
        )
    )
    entity = convert_source_unit(tree, "Shop.sol").entities[0]
    constructor, fallback, buy, only_owner, bought = entity.operators

    assert constructor.name == "constructor"
    assert constructor.stereotype == OperatorStereotype.NONE
    assert constructor.visibility is None
    assert constructor.parameters == (Parameter(name="owner", type="address"),)

    assert fallback.name == ""
    assert fallback.stereotype == OperatorStereotype.FALLBACK
    assert fallback.is_payable is True

    assert buy.stereotype == OperatorStereotype.PAYABLE
    assert buy.return_parameters == (Parameter(name="", type="Receipt"),)

    assert only_owner.stereotype == OperatorStereotype.MODIFIER
    assert bought.stereotype == OperatorStereotype.EVENT
    assert bought.parameters == (Parameter(name="item", type="Item"),)

    assert _associations(entity) == {
        "Receipt": ("Memory", False),
        "Auth": ("Memory", False),
        "Item": ("Memory", False),
    }


def test_constructor_modifier_and_return_parameters_are_memory():
    tree = source_unit(
        contract(
            "Desk",
            [
                function("", constructor=True, parameters=[param("k", user_type("K"))]),
                modifier("guarded", parameters=[param("m", user_type("M"))]),
                function("quote", returns=[param("", user_type("R"))]),
            ],
        ),
        contract(
            "IDesk",
            [function("settle", parameters=[param("s", user_type("S"))], abstract=True)],
            kind="interface",
        ),
    )
    desk, idesk = convert_source_unit(tree, "Desk.sol").entities

    assert _associations(desk) == {
        "K": ("Memory", False),
        "M": ("Memory", False),
        "R": ("Memory", False),
    }
    assert _associations(idesk) == {"S": ("Memory", False)}


def test_extracted_entities_are_read_only():
    tree = source_unit(contract("A", [state_var("c", user_type("C"))], bases=["B"]))
    entity = convert_source_unit(tree, "A.sol").entities[0]

    with pytest.raises(dataclasses.FrozenInstanceError):
        entity.name = "Z"  # type: ignore[misc]
    with pytest.raises(TypeError):
        entity.associations["D"] = entity.associations["C"]  # type: ignore[index]
    assert isinstance(entity.attributes, tuple)
    assert isinstance(entity.operators, tuple)


def test_plain_parameter_lists_and_missing_bodies_are_accepted():
    definition = function("run")
    definition["parameters"] = [var("cfg", user_type("Config"))]
    definition["returnParameters"] = None
    definition["body"] = None
    entity = convert_source_unit(source_unit(contract("Runner", [definition])), "R.sol").entities[0]

    assert entity.operators[0].parameters == (Parameter(name="cfg", type="Config"),)
    assert entity.operators[0].stereotype == OperatorStereotype.ABSTRACT
    assert entity.stereotype == ClassStereotype.ABSTRACT


def test_nested_structs_and_enums_stay_on_the_contract():
    tree = source_unit(
        contract(
            "Market",
            [
                struct("Order", [var("maker", elementary("address")), var("asset", user_type("Asset"))]),
                enum("Status", ["Open", "Closed"]),
            ],
        )
    )
    extraction = convert_source_unit(tree, "Market.sol")

    assert [entity.name for entity in extraction.entities] == ["Market"]
    market = extraction.entities[0]
    assert dict(market.structs) == {
        "Order": (Parameter(name="maker", type="address"), Parameter(name="asset", type="Asset"))
    }
    assert dict(market.enums) == {"Status": ("Open", "Closed")}
    assert _associations(market) == {"Asset": ("Memory", False)}


def test_top_level_struct_and_enum():
    tree = source_unit(
        struct("Position", [var("owner", elementary("address")), var("tokens", array(user_type("Token")))]),
        enum("Side", ["Buy", "Sell"]),
    )
    position, side = convert_source_unit(tree, "Types.sol").entities

    assert position.stereotype == ClassStereotype.STRUCT
    assert position.attributes == (
        Attribute(name="owner", type="address"),
        Attribute(name="tokens", type="Token[]"),
    )
    assert _associations(position) == {"Token": ("Memory", False)}

    assert side.stereotype == ClassStereotype.ENUM
    assert side.attributes == (Attribute(name="Buy", type="0"), Attribute(name="Sell", type="1"))
    assert dict(side.associations) == {}


def test_mutually_referencing_structs():
    tree = source_unit(
        struct("Left", [var("right", user_type("Right"))]),
        struct("Right", [var("left", user_type("Left"))]),
    )
    left, right = convert_source_unit(tree, "Pair.sol").entities

    assert set(left.associations) == {"Right"}
    assert set(right.associations) == {"Left"}


def test_remote_imports_are_stamped_on_every_entity():
    tree = source_unit(
        import_directive("./IERC20.sol"),
        contract("Token"),
        import_directive("../utils/Math.sol"),
        struct("Balance", [var("amount", elementary("uint256"))]),
    )
    extraction = convert_source_unit(tree, "contracts/token/Token.sol", filesystem=False)

    expected = ("contracts/token/IERC20.sol", "contracts/utils/Math.sol")
    assert extraction.imported_paths == expected
    assert all(entity.imported_paths == expected for entity in extraction.entities)


def test_filesystem_imports_skip_unresolvable(tmp_path: Path):
    source = tmp_path / "Token.sol"
    source.write_text("", encoding="utf-8")
    (tmp_path / "IERC20.sol").write_text("", encoding="utf-8")
    tree = source_unit(
        import_directive("./IERC20.sol"),
        import_directive("./Missing.sol"),
        contract("Token"),
    )
    extraction = convert_source_unit(tree, str(source), filesystem=True)

    entity = extraction.entities[0]
    assert entity.absolute_path == os.path.abspath(source)
    assert entity.imported_paths == (str((tmp_path / "IERC20.sol").resolve()),)
    assert len(extraction.import_errors) == 1
    assert extraction.import_errors[0].import_path == "./Missing.sol"


def test_extraction_is_deterministic():
    tree = source_unit(
        contract(
            "A",
            [
                state_var("x", user_type("X")),
                state_var("y", mapping(user_type("K"), user_type("V"))),
                function("f", parameters=[param("z", user_type("Z"))]),
                function("g", statements=[expression_statement(ident("W"))]),
            ],
            bases=["B", "C"],
        )
    )
    first = convert_source_unit(tree, "A.sol").entities[0]
    second = convert_source_unit(tree, "A.sol").entities[0]

    assert first.attributes == second.attributes
    assert first.operators == second.operators
    assert list(first.associations.items()) == list(second.associations.items())


def test_non_source_unit_is_rejected():
    with pytest.raises(StructuralError):
        convert_source_unit({"type": "ContractDefinition"}, "A.sol")


def test_unknown_visibility_is_rejected():
    with pytest.raises(ValidationError):
        convert_source_unit(
            source_unit(contract("A", [state_var("x", elementary("uint"), visibility="protected")])),
            "A.sol",
        )


def test_unknown_contract_kind_is_rejected():
    with pytest.raises(ValidationError):
        convert_source_unit(source_unit(contract("A", kind="module")), "A.sol")


def test_unknown_type_name_is_rejected():
    with pytest.raises(FormatError):
        convert_source_unit(
            source_unit(contract("A", [state_var("x", {"type": "Mystery"})])),
            "A.sol",
        )
