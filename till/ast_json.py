"""JSON serialization/deserialization for the Till AST.

This module converts between Till AST dataclasses and plain Python
dict/list structures suitable for JSON encoding. It supports a full
round-trip for all node types and `TypeSpec`. Source positions are kept as
``[line, column]`` pairs so errors reported for a loaded program still point
into the original file.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .ast import (
    Program,
    Block,
    VarDecl,
    Param,
    FunctionDecl,
    IfStmt,
    WhileStmt,
    Assignment,
    ReturnStmt,
    DisplayStmt,
    BinaryExpr,
    UnaryExpr,
    Literal,
    Identifier,
    Call,
    Node,
)
from .errors import Position
from .types import TypeSpec


def typespec_to_obj(t: Optional[TypeSpec]) -> Optional[str]:
    return t.kind if t is not None else None


def typespec_from_obj(o: Optional[str]) -> Optional[TypeSpec]:
    return TypeSpec(o) if o is not None else None


def node_to_obj(node: Node, **fields: Any) -> Dict[str, Any]:
    obj: Dict[str, Any] = {"type": type(node).__name__}
    obj.update(fields)
    if node.position is not None:
        obj["position"] = [node.position.line, node.position.column]
    return obj


def position_from_obj(obj: Dict[str, Any]) -> Optional[Position]:
    pos = obj.get("position")
    if pos is None:
        return None
    return Position(pos[0], pos[1])


def ast_to_obj(node: Any) -> Any:
    if node is None:
        return None

    if isinstance(node, Program):
        return node_to_obj(node, body=[ast_to_obj(n) for n in node.body])
    if isinstance(node, Block):
        return node_to_obj(node, statements=[ast_to_obj(s) for s in node.statements])
    if isinstance(node, VarDecl):
        return node_to_obj(
            node,
            type_spec=typespec_to_obj(node.type_spec),
            name=node.name,
            initializer=ast_to_obj(node.initializer),
        )
    if isinstance(node, Param):
        return node_to_obj(node, type_spec=typespec_to_obj(node.type_spec), name=node.name)
    if isinstance(node, FunctionDecl):
        return node_to_obj(
            node,
            name=node.name,
            params=[ast_to_obj(p) for p in node.params],
            return_type=typespec_to_obj(node.return_type),
            body=ast_to_obj(node.body),
        )
    if isinstance(node, IfStmt):
        return node_to_obj(node, condition=ast_to_obj(node.condition), body=ast_to_obj(node.body))
    if isinstance(node, WhileStmt):
        return node_to_obj(node, condition=ast_to_obj(node.condition), body=ast_to_obj(node.body))
    if isinstance(node, Assignment):
        return node_to_obj(node, name=node.name, value=ast_to_obj(node.value))
    if isinstance(node, ReturnStmt):
        return node_to_obj(node, value=ast_to_obj(node.value))
    if isinstance(node, DisplayStmt):
        return node_to_obj(node, value=ast_to_obj(node.value))
    if isinstance(node, BinaryExpr):
        return node_to_obj(node, op=node.op, left=ast_to_obj(node.left), right=ast_to_obj(node.right))
    if isinstance(node, UnaryExpr):
        return node_to_obj(node, op=node.op, operand=ast_to_obj(node.operand))
    if isinstance(node, Literal):
        return node_to_obj(node, value=node.value, kind=node.kind)
    if isinstance(node, Identifier):
        return node_to_obj(node, name=node.name)
    if isinstance(node, Call):
        return node_to_obj(node, callee=node.callee, args=[ast_to_obj(a) for a in node.args])

    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


def ast_from_obj(obj: Any) -> Any:
    if obj is None:
        return None
    if not isinstance(obj, dict):
        raise TypeError("Invalid AST object")
    t = obj.get("type")
    pos = position_from_obj(obj)
    if t == "Program":
        return Program(body=[ast_from_obj(n) for n in obj["body"]], position=pos)
    if t == "Block":
        return Block(statements=[ast_from_obj(s) for s in obj["statements"]], position=pos)
    if t == "VarDecl":
        return VarDecl(
            type_spec=typespec_from_obj(obj["type_spec"]),
            name=obj["name"],
            initializer=ast_from_obj(obj.get("initializer")),
            position=pos,
        )
    if t == "Param":
        return Param(type_spec=typespec_from_obj(obj["type_spec"]), name=obj["name"], position=pos)
    if t == "FunctionDecl":
        return FunctionDecl(
            name=obj["name"],
            params=[ast_from_obj(p) for p in obj["params"]],
            return_type=typespec_from_obj(obj.get("return_type")),
            body=ast_from_obj(obj["body"]),
            position=pos,
        )
    if t == "IfStmt":
        return IfStmt(condition=ast_from_obj(obj["condition"]), body=ast_from_obj(obj["body"]), position=pos)
    if t == "WhileStmt":
        return WhileStmt(condition=ast_from_obj(obj["condition"]), body=ast_from_obj(obj["body"]), position=pos)
    if t == "Assignment":
        return Assignment(name=obj["name"], value=ast_from_obj(obj["value"]), position=pos)
    if t == "ReturnStmt":
        return ReturnStmt(value=ast_from_obj(obj.get("value")), position=pos)
    if t == "DisplayStmt":
        return DisplayStmt(value=ast_from_obj(obj["value"]), position=pos)
    if t == "BinaryExpr":
        return BinaryExpr(op=obj["op"], left=ast_from_obj(obj["left"]), right=ast_from_obj(obj["right"]), position=pos)
    if t == "UnaryExpr":
        return UnaryExpr(op=obj["op"], operand=ast_from_obj(obj["operand"]), position=pos)
    if t == "Literal":
        value = obj["value"]
        if obj["kind"] == "Num":
            value = float(value)
        return Literal(value=value, kind=obj["kind"], position=pos)
    if t == "Identifier":
        return Identifier(name=obj["name"], position=pos)
    if t == "Call":
        return Call(callee=obj["callee"], args=[ast_from_obj(a) for a in obj["args"]], position=pos)

    raise ValueError(f"Unknown AST node type: {t}")
