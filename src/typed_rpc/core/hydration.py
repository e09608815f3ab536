"""Hydration shapes: encoding a declaration and rebuilding stub trees.

A hydration shape mirrors a route declaration with all logic removed:

- a procedure becomes its method name (``"GET"``);
- an array becomes the list of its procedures' method names, followed by one
  nested shape when the array holds a nested declaration;
- a nested declaration becomes a nested shape.

Example::

    encode({
        "hello": procedure.GET.query(hello),
        "user": [procedure.GET.query(get_user), {"avatar": procedure.PUT.input(str).query(up)}],
    })
    # {"hello": "GET", "user": ["GET", {"avatar": "PUT"}]}

The shape contains only JSON types and is what crosses the process boundary.
``build_stub_tree`` walks a shape back into a :class:`StubTree` whose leaves
are produced by a ``make_leaf(path, method)`` factory; the client builds
network stubs with it and the server builds its direct-call tree with it.
Both walks use an explicit stack.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any

from typed_rpc.exceptions import ShapeError

from .declaration import DeclarationNode, ProcedureArrayNode, ProcedureNode, walk_declaration
from .procedure import Method

__all__ = ["StubTree", "build_stub_tree", "encode"]


def encode(declaration: Mapping[str, Any]) -> dict[str, Any]:
    """Return the hydration shape of ``declaration``.

    Only ``method`` tags are read; no callback or middleware is invoked.
    """
    shape: dict[str, Any] = {}

    def visit(path: str, key: str, node: DeclarationNode, parent: dict[str, Any]) -> Any:
        if isinstance(node, ProcedureNode):
            parent[key] = node.procedure.method.value
            return None
        if isinstance(node, ProcedureArrayNode):
            methods: list[Any] = [procedure.method.value for procedure in node.procedures]
            if node.sub_declaration is None:
                parent[key] = methods
                return None
            nested: dict[str, Any] = {}
            parent[key] = [*methods, nested]
            return nested
        nested = {}
        parent[key] = nested
        return nested

    walk_declaration(declaration, visit, shape)
    return shape


class StubTree:
    """Read-only tree of stubs with attribute and item access.

    ``tree.user.GET`` and ``tree["user"]["GET"]`` are equivalent; item access
    also works for names that collide with the methods of this class or start
    with an underscore.
    """

    __slots__ = ("_children",)

    def __init__(self) -> None:
        self._children: dict[str, Any] = {}

    def _set(self, key: str, value: Any) -> None:
        self._children[key] = value

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._children[name]
        except KeyError:
            raise AttributeError(f"No stub named '{name}'") from None

    def __getitem__(self, key: str) -> Any:
        return self._children[key]

    def __contains__(self, key: object) -> bool:
        return key in self._children

    def __iter__(self) -> Iterator[str]:
        return iter(self._children)

    def __len__(self) -> int:
        return len(self._children)

    def keys(self) -> list[str]:
        return list(self._children)

    def __repr__(self) -> str:
        return f"StubTree({', '.join(self._children)})"


LeafFactory = Callable[[str, Method], Any]


def _method(value: Any, path: str) -> Method:
    method = Method.parse(value) if isinstance(value, str) else None
    if method is None or method.value != value:
        raise ShapeError(f"Unknown method {value!r}", path)
    return method


def build_stub_tree(shape: Mapping[str, Any], make_leaf: LeafFactory) -> StubTree:
    """Rebuild a stub tree from ``shape``.

    Args:
        shape: A hydration shape, as produced by :func:`encode`.
        make_leaf: ``make_leaf(path, method)`` returns the callable stored for
            one endpoint; ``path`` is the ``/``-joined key path.

    Raises:
        ShapeError: On anything that is not a method name, a list or a mapping.
    """
    if not isinstance(shape, Mapping):
        raise ShapeError(f"A hydration shape must be a mapping, got {type(shape).__name__}")
    root = StubTree()
    stack: list[tuple[str, str, Mapping[str, Any], StubTree]] = []

    def push_children(children: Mapping[str, Any], prefix: str, parent: StubTree) -> None:
        for key in reversed(list(children)):
            if not isinstance(key, str) or not key:
                raise ShapeError(f"Invalid shape key {key!r}", prefix)
            stack.append((f"{prefix}/{key}" if prefix else key, key, children, parent))

    push_children(shape, "", root)
    while stack:
        path, key, container, parent = stack.pop()
        value = container[key]
        if isinstance(value, str):
            parent._set(key, make_leaf(path, _method(value, path)))
        elif isinstance(value, list):
            node = StubTree()
            nested_seen = False
            for item in value:
                if isinstance(item, Mapping):
                    if nested_seen:
                        raise ShapeError("A method list may end with one nested shape only", path)
                    nested_seen = True
                    push_children(item, path, node)
                else:
                    node._set(str(item), make_leaf(path, _method(item, path)))
            parent._set(key, node)
        elif isinstance(value, Mapping):
            node = StubTree()
            parent._set(key, node)
            push_children(value, path, node)
        else:
            raise ShapeError(f"Unsupported shape value of type {type(value).__name__}", path)
    return root
