"""Route declaration nodes and the shared tree walk.

A route declaration is a plain mapping from names to nodes. Every value is
classified into exactly one of three variants:

- ``ProcedureNode``: a single ``Procedure``/``TypedProcedure``;
- ``ProcedureArrayNode``: a list/tuple of procedures plus at most one nested
  declaration (procedures share the array's path, nested names extend it);
- ``SubDeclarationNode``: a nested mapping (names extend the path).

Anything else, including an array holding two nested mappings, is a
``DeclarationError``.

``walk_declaration`` visits the tree with an explicit stack (no recursion, so
depth is unbounded), depth-first with keys in declaration order. The visitor
returns the state handed to the node's children, which is how the compiler,
the hydration encoder and the stub builders attach their own output.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from typed_rpc.exceptions import DeclarationError

from .procedure import Procedure, TypedProcedure, is_procedure

__all__ = [
    "DeclarationNode",
    "ProcedureArrayNode",
    "ProcedureNode",
    "SubDeclarationNode",
    "classify",
    "walk_declaration",
]


@dataclass(frozen=True)
class ProcedureNode:
    procedure: Procedure | TypedProcedure


@dataclass(frozen=True)
class ProcedureArrayNode:
    procedures: tuple[Procedure | TypedProcedure, ...]
    sub_declaration: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class SubDeclarationNode:
    declaration: Mapping[str, Any]


DeclarationNode = ProcedureNode | ProcedureArrayNode | SubDeclarationNode

Visitor = Callable[[str, str, DeclarationNode, Any], Any]


def classify(value: Any, path: str = "") -> DeclarationNode:
    """Return the variant describing ``value``."""
    if is_procedure(value):
        return ProcedureNode(value)
    if isinstance(value, (list, tuple)):
        procedures = []
        sub_declaration: Mapping[str, Any] | None = None
        for item in value:
            if is_procedure(item):
                procedures.append(item)
            elif isinstance(item, Mapping):
                if sub_declaration is not None:
                    raise DeclarationError(
                        "An array may hold at most one nested declaration", path
                    )
                sub_declaration = item
            else:
                raise DeclarationError(
                    f"Unsupported array item of type {type(item).__name__}", path
                )
        return ProcedureArrayNode(tuple(procedures), sub_declaration)
    if isinstance(value, Mapping):
        return SubDeclarationNode(value)
    raise DeclarationError(f"Unsupported declaration node of type {type(value).__name__}", path)


def _check_key(key: Any, parent_path: str) -> None:
    if not isinstance(key, str) or not key or "/" in key:
        raise DeclarationError(f"Invalid declaration key {key!r}", parent_path)


def walk_declaration(
    declaration: Mapping[str, Any], visit: Visitor, root_state: Any = None
) -> None:
    """Visit every node of ``declaration``, parents before children.

    Args:
        declaration: The route declaration to walk.
        visit: ``visit(path, key, node, state)``; its return value becomes the
            ``state`` of the node's children.
        root_state: State handed to the top-level keys.
    """
    if not isinstance(declaration, Mapping):
        raise DeclarationError(
            f"A route declaration must be a mapping, got {type(declaration).__name__}"
        )
    stack: list[tuple[str, str, Mapping[str, Any], Any]] = []

    def push_children(children: Mapping[str, Any], prefix: str, state: Any) -> None:
        for key in reversed(list(children)):
            _check_key(key, prefix)
            path = f"{prefix}/{key}" if prefix else key
            stack.append((path, key, children, state))

    push_children(declaration, "", root_state)
    while stack:
        path, key, container, state = stack.pop()
        node = classify(container[key], path)
        child_state = visit(path, key, node, state)
        if isinstance(node, ProcedureNode):
            continue
        if isinstance(node, ProcedureArrayNode):
            if node.sub_declaration is not None:
                push_children(node.sub_declaration, path, child_state)
            continue
        push_children(node.declaration, path, child_state)
