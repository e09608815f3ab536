"""Pydantic-backed input schemas.

The dispatcher never talks to pydantic directly: every schema handle given to
``Procedure.input()`` is wrapped in a :class:`Schema`, whose ``validate``
returns a :class:`ValidationOutcome` (success flag plus validated data, or the
error message(s) to send back).

Accepted schema sources:
    - a pydantic model class
    - any annotation ``pydantic.TypeAdapter`` understands (``str``,
      ``list[int]``, ``TypedDict`` subclasses, ...)
    - a ready ``TypeAdapter``
    - a form-data schema (:class:`FormDataInput`)

Form data
---------
``FormDataInput`` schemas carry the ``is_form_data`` tag, telling the
dispatcher to read the request body as a form instead of JSON.
``AnyFormDataInput`` accepts any form mapping unchanged;
``FormDataInput(model)`` validates the form fields against ``model``.

Example::

    from pydantic import BaseModel
    from typed_rpc import FormDataInput

    class Login(BaseModel):
        username: str
        password: str

    procedure.POST.input(FormDataInput(Login)).query(login)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from genro_toolbox.typeutils import safe_is_instance
from pydantic import TypeAdapter, ValidationError

__all__ = [
    "AnyFormDataInput",
    "FormDataInput",
    "Schema",
    "ValidationOutcome",
    "as_schema",
    "form_to_dict",
]

INVALID_INPUT = "Invalid input"


@dataclass
class ValidationOutcome:
    """Result of validating one input value.

    Attributes:
        success: True when the value matched the schema.
        data: Validated (possibly coerced) value when successful.
        message: Single message or per-field messages when rejected.
    """

    success: bool
    data: Any = None
    message: str | list[str] = INVALID_INPUT


def _error_messages(exc: ValidationError) -> str | list[str]:
    """Return per-field messages, or the generic message for root errors."""
    fields = [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
        if err.get("loc")
    ]
    return fields or INVALID_INPUT


class Schema:
    """Validation handle attached to a ``TypedProcedure``."""

    __slots__ = ("source", "_adapter")

    is_form_data = False

    def __init__(self, source: Any) -> None:
        self.source = source
        self._adapter: TypeAdapter | None = None
        if source is not None:
            self._adapter = source if isinstance(source, TypeAdapter) else TypeAdapter(source)

    def validate(self, data: Any) -> ValidationOutcome:
        if self._adapter is None:
            return ValidationOutcome(True, data)
        try:
            validated = self._adapter.validate_python(data)
        except ValidationError as exc:
            return ValidationOutcome(False, message=_error_messages(exc))
        return ValidationOutcome(True, validated)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.source!r})"


def form_to_dict(form: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten a form mapping; repeated multipart fields become lists."""
    if not safe_is_instance(form, "starlette.datastructures.ImmutableMultiDict"):
        return dict(form)
    result: dict[str, Any] = {}
    for key, value in form.multi_items():  # type: ignore[attr-defined]
        if key not in result:
            result[key] = value
        elif isinstance(result[key], list):
            result[key].append(value)
        else:
            result[key] = [result[key], value]
    return result


class FormDataInput(Schema):
    """Schema tagged as form data, optionally checked against a model."""

    __slots__ = ()

    is_form_data = True

    def __init__(self, model: Any = None) -> None:
        super().__init__(model)

    def validate(self, data: Any) -> ValidationOutcome:
        if not isinstance(data, Mapping):
            return ValidationOutcome(False)
        if self._adapter is None:
            return ValidationOutcome(True, data)
        return super().validate(form_to_dict(data))


AnyFormDataInput = FormDataInput()


def as_schema(source: Any) -> Schema:
    """Wrap ``source`` in a :class:`Schema` unless it already is one."""
    if isinstance(source, Schema):
        return source
    return Schema(source)
