"""Walk declarations, statements and expressions for references to other entities.

This is a structural scan, not name resolution. Any identifier reached in an
expression is recorded as a Memory association, so local variables and
functions that share a name with nothing in particular still produce edges.
Consumers are expected to drop targets that do not match a known entity.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from .models import EntityBuilder, ReferenceType
from .typenames import class_name


logger = logging.getLogger(__name__)

Node = dict[str, Any]


class AssociationResolver:
    """Records associations onto the one entity it was created for."""

    def __init__(self, entity: EntityBuilder, log: logging.Logger | None = None) -> None:
        self.entity = entity
        self.log = log or logger

    def resolve(self, nodes: Iterable[Node | None] | Node | None) -> None:
        if nodes is None:
            return
        if isinstance(nodes, dict):
            nodes = [nodes]
        if not isinstance(nodes, (list, tuple)):
            self.log.debug(
                "Can not scan %s for associations of %s, not a node list",
                type(nodes).__name__,
                self.entity.name,
            )
            return

        for node in nodes:
            # Skipped slots in a destructuring declaration, e.g. `var (a,,,) = f();`.
            # Everything after the first gap is left unscanned.
            if node is None:
                self.log.debug(
                    "Stopped scanning declaration list of %s at an empty slot",
                    self.entity.name,
                )
                break
            if isinstance(node, dict):
                self._resolve_node(node)

    def _resolve_node(self, node: Node) -> None:
        node_type = node.get("type")

        if node_type in {"VariableDeclaration", "Parameter"}:
            reference_type = (
                ReferenceType.STORAGE if node.get("isStateVar") else ReferenceType.MEMORY
            )
            self.resolve_type_name(node.get("typeName"), reference_type)
        elif node_type == "StateVariableDeclaration":
            for variable in node.get("variables") or []:
                if variable is None:
                    break
                self.resolve_type_name(variable.get("typeName"), ReferenceType.STORAGE)
            self.resolve_expression(node.get("initialValue"))
        elif node_type == "VariableDeclarationStatement":
            self.resolve(node.get("variables"))
            self.resolve_expression(node.get("initialValue"))
        elif node_type in {"UserDefinedTypeName", "ArrayTypeName", "Mapping"}:
            self.resolve_type_name(node, ReferenceType.MEMORY)
        elif node_type == "Block":
            self.resolve(node.get("statements"))
        elif node_type == "ForStatement":
            self.resolve(node.get("initExpression"))
            self._resolve_body(node.get("body"))
            self.resolve_expression(node.get("conditionExpression"))
            loop_expression = node.get("loopExpression")
            if loop_expression:
                self.resolve_expression(loop_expression.get("expression"))
        elif node_type == "WhileStatement":
            self._resolve_body(node.get("body"))
            self.resolve_expression(node.get("condition"))
        elif node_type == "DoWhileStatement":
            self._resolve_body(node.get("body"))
            self.resolve_expression(node.get("condition"))
        elif node_type == "IfStatement":
            self._resolve_body(_branch(node, "TrueBody"))
            self._resolve_body(_branch(node, "FalseBody"))
            self.resolve_expression(node.get("condition"))
        elif node_type in {"ReturnStatement", "ExpressionStatement"}:
            self.resolve_expression(node.get("expression"))

    def _resolve_body(self, body: Node | None) -> None:
        if not body:
            return
        if "statements" in body:
            self.resolve(body["statements"])
        else:
            self._resolve_node(body)

    def resolve_type_name(self, type_name: Node | None, reference_type: ReferenceType) -> None:
        if not type_name:
            return
        kind = type_name.get("type")

        if kind == "UserDefinedTypeName":
            self.entity.add_association(class_name(type_name.get("namePath")), reference_type)
        elif kind == "Mapping":
            self.resolve_type_name(type_name.get("keyType"), reference_type)
            self.resolve_type_name(type_name.get("valueType"), reference_type)
        elif kind == "ArrayTypeName":
            self.resolve_type_name(type_name.get("baseTypeName"), reference_type)

    def resolve_expression(self, expression: Node | None) -> None:
        if not expression or not isinstance(expression, dict):
            return
        kind = expression.get("type")

        if kind == "BinaryOperation":
            self.resolve_expression(expression.get("left"))
            self.resolve_expression(expression.get("right"))
        elif kind == "UnaryOperation":
            self.resolve_expression(expression.get("subExpression"))
        elif kind == "FunctionCall":
            self.resolve_expression(expression.get("expression"))
            for argument in expression.get("arguments") or []:
                self.resolve_expression(argument)
        elif kind == "IndexAccess":
            self.resolve_expression(expression.get("base"))
            self.resolve_expression(expression.get("index"))
        elif kind == "TupleExpression":
            for component in expression.get("components") or []:
                self.resolve_expression(component)
        elif kind == "MemberAccess":
            self.resolve_expression(expression.get("expression"))
        elif kind == "Conditional":
            # The condition is walked by whoever owns the surrounding statement.
            self.resolve_expression(_branch(expression, "TrueExpression"))
            self.resolve_expression(_branch(expression, "FalseExpression"))
        elif kind == "Identifier":
            self.entity.add_association(expression.get("name"), ReferenceType.MEMORY)
        elif kind == "NewExpression":
            self.resolve_type_name(expression.get("typeName"), ReferenceType.MEMORY)


def add_associations(
    nodes: Iterable[Node | None] | Node | None,
    entity: EntityBuilder,
    log: logging.Logger | None = None,
) -> EntityBuilder:
    AssociationResolver(entity, log).resolve(nodes)
    return entity


def _branch(node: Node, key: str) -> Node | None:
    # solidity-parser capitalises branch keys, camelCase trees come from elsewhere.
    value = node.get(key)
    if value is None:
        value = node.get(key[0].lower() + key[1:])
    return value
