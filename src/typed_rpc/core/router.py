"""Compiled router for typed-rpc.

``Router`` flattens a route declaration into a ``path -> {Method -> procedure}``
index. The whole tree is walked once, at construction; a malformed
declaration raises ``DeclarationError`` and no router is produced.

Index rules
-----------
- A single procedure registers its method at the node's path.
- An array registers the path (even with no procedures, in which case every
  method is rejected) and each of its procedures under their method; names in
  the array's nested declaration extend the path.
- A nested declaration registers nothing by itself; its names extend the path.
- Paths are the ``/``-joined keys from the root (``"user/settings"``).
- When two branches produce the same path, method maps are merged and the
  procedure visited last wins for a given method. Visits follow declaration
  order, depth-first.

After construction the index is exposed through read-only views and is
safe to share between concurrent dispatches.

Example::

    router = Router({
        "hello": procedure.GET.query(lambda: "hi"),
        "user": [
            procedure.GET.query(get_user),
            procedure.POST.input(UserIn).query(save_user),
            {"avatar": procedure.PUT.input(AnyFormDataInput).query(upload)},
        ],
    })
    router.paths          # ("hello", "user", "user/avatar")
    router.get_path("user")[Method.POST]
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from typed_rpc.exceptions import DeclarationError

from .declaration import (
    DeclarationNode,
    ProcedureArrayNode,
    ProcedureNode,
    walk_declaration,
)
from .procedure import Method, Procedure, TypedProcedure

__all__ = ["Router", "compile_router"]

MethodMap = Mapping[Method, Procedure | TypedProcedure]


class Router:
    """Immutable dispatch index built from a route declaration.

    Attributes:
        endpoints: The original declaration (used for hydration and SSR).
    """

    __slots__ = ("endpoints", "_paths", "_path_table")

    def __init__(self, endpoints: Mapping[str, Any]) -> None:
        table: dict[str, dict[Method, Procedure | TypedProcedure]] = {}

        def register(path: str, procedure: Procedure | TypedProcedure) -> None:
            if procedure.callback is None:
                raise DeclarationError(
                    f"{procedure.method.value} procedure has no callback; call query()", path
                )
            table.setdefault(path, {})[procedure.method] = procedure

        def visit(path: str, key: str, node: DeclarationNode, state: Any) -> None:
            if isinstance(node, ProcedureNode):
                register(path, node.procedure)
            elif isinstance(node, ProcedureArrayNode):
                table.setdefault(path, {})
                for procedure in node.procedures:
                    register(path, procedure)

        walk_declaration(endpoints, visit)
        self.endpoints = endpoints
        self._paths: tuple[str, ...] = tuple(table)
        self._path_table: Mapping[str, MethodMap] = MappingProxyType(
            {path: MappingProxyType(methods) for path, methods in table.items()}
        )

    @property
    def declaration(self) -> Mapping[str, Any]:
        return self.endpoints

    @property
    def paths(self) -> tuple[str, ...]:
        """Registered paths, in first-visit order."""
        return self._paths

    @property
    def path_table(self) -> Mapping[str, MethodMap]:
        return self._path_table

    def includes(self, path: str) -> bool:
        """Return True if ``path`` is registered."""
        return path in self._path_table

    def get_path(self, path: str) -> MethodMap | None:
        """Return the method map registered at ``path``, or None."""
        return self._path_table.get(path)

    def __contains__(self, path: object) -> bool:
        return path in self._path_table

    def __len__(self) -> int:
        return len(self._path_table)

    def __repr__(self) -> str:
        return f"Router(paths={len(self._paths)})"


def compile_router(declaration: Mapping[str, Any]) -> Router:
    """Compile ``declaration`` into a :class:`Router`."""
    return Router(declaration)
