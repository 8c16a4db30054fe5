"""JSON serialization/deserialization for the RetroScript AST.

This module converts between AST dataclasses and plain Python dict/list
structures suitable for JSON encoding. Every node becomes an object with a
"type" key naming its class plus one key per field; tuples become lists.
Source positions are kept so a program loaded back from JSON reports errors
at the same lines.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Dict, get_args

from .ast import Expression, Node, Program, Statement

NODE_TYPES: Dict[str, type] = {
    cls.__name__: cls for cls in (*get_args(Statement), *get_args(Expression), Program)
}


def ast_to_obj(node: Any) -> Any:
    # Primitives
    if node is None or isinstance(node, (bool, int, float, str)):
        return node

    # Children and (key, value) pairs
    if isinstance(node, (tuple, list)):
        return [ast_to_obj(item) for item in node]

    if isinstance(node, Node) and type(node).__name__ in NODE_TYPES:
        obj: Dict[str, Any] = {"type": type(node).__name__}
        for f in fields(node):
            obj[f.name] = ast_to_obj(getattr(node, f.name))
        return obj

    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


def ast_from_obj(obj: Any) -> Any:
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, list):
        return tuple(ast_from_obj(item) for item in obj)
    if not isinstance(obj, dict):
        raise TypeError("Invalid AST object")
    t = obj.get("type")
    cls = NODE_TYPES.get(t)
    if cls is None:
        raise ValueError(f"Unknown AST node type: {t}")
    kwargs = {}
    for f in fields(cls):
        if f.name in obj:
            kwargs[f.name] = ast_from_obj(obj[f.name])
    try:
        return cls(**kwargs)
    except TypeError as error:
        raise ValueError(f"Invalid {t} node: {error}") from None
