"""Core runtime aggregator for typed-rpc.

Exposes the runtime building blocks from a single module:
procedures, the compiled ``Router``, the ``Dispatcher`` and the hydration
helpers.

Importing this module performs only imports; it does not compile routers
or dispatch anything.
"""

from .declaration import (
    ProcedureArrayNode,
    ProcedureNode,
    SubDeclarationNode,
    classify,
    walk_declaration,
)
from .dispatcher import Dispatcher, RequestBody, dispatch, shape_result
from .exchange import Exchange
from .hydration import StubTree, build_stub_tree, encode
from .procedure import BaseProcedure, Continue, Method, Procedure, ShortCircuit, TypedProcedure
from .router import Router, compile_router
from .schema import AnyFormDataInput, FormDataInput, Schema, ValidationOutcome

__all__ = [
    "AnyFormDataInput",
    "BaseProcedure",
    "Continue",
    "Dispatcher",
    "Exchange",
    "FormDataInput",
    "Method",
    "Procedure",
    "ProcedureArrayNode",
    "ProcedureNode",
    "RequestBody",
    "Router",
    "Schema",
    "ShortCircuit",
    "StubTree",
    "SubDeclarationNode",
    "TypedProcedure",
    "ValidationOutcome",
    "build_stub_tree",
    "classify",
    "compile_router",
    "dispatch",
    "encode",
    "shape_result",
    "walk_declaration",
]
