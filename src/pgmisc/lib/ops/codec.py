"""Turn MCP tool arguments into operation payload dataclasses."""

from __future__ import annotations

import inspect
import types
from collections.abc import Mapping
from dataclasses import MISSING, Field, fields, is_dataclass
from typing import Any, TypeVar, Union, cast, get_args, get_origin, get_type_hints

PayloadT = TypeVar("PayloadT")


def unwrap_optional(annotation: Any) -> Any:
    """`int | None` -> `int`; anything else is returned unchanged."""

    if get_origin(annotation) not in {types.UnionType, Union}:
        return annotation
    members = [arg for arg in get_args(annotation) if arg is not type(None)]
    return members[0] if len(members) == 1 else annotation


def _coerce_value(annotation: Any, value: object) -> object:
    if value is None:
        return None
    target = unwrap_optional(annotation)
    if get_origin(target) is tuple:
        if not isinstance(value, (list, tuple)):
            raise TypeError(f"Expected an array, got {type(value).__name__}")
        item_type = get_args(target)[0]
        return tuple(_coerce_value(item_type, item) for item in cast("list[object]", value))
    if target is int:
        # bool is an int subclass; a JSON `true` is never a pid or signal.
        if isinstance(value, bool):
            raise TypeError("Expected an integer, got a boolean")
        return int(cast("Any", value))
    if target is str:
        return str(value)
    return value


def _field_default(field: Field[Any]) -> object:
    if field.default is not MISSING:
        return field.default
    if field.default_factory is not MISSING:
        return field.default_factory()
    return inspect.Parameter.empty


def coerce_input_payload(payload_type: type[PayloadT], raw_input: object) -> PayloadT:
    """Build `payload_type` from a tool argument mapping."""

    if not is_dataclass(payload_type):
        return payload_type()
    if raw_input is None:
        raw_input = {}
    if not isinstance(raw_input, Mapping):
        raise TypeError(f"Tool input must be an object, got {type(raw_input).__name__}")

    arguments = cast("Mapping[str, object]", raw_input)
    hints = get_type_hints(payload_type)
    kwargs: dict[str, object] = {}
    for field in fields(payload_type):
        if field.name in arguments:
            kwargs[field.name] = _coerce_value(hints[field.name], arguments[field.name])
            continue
        default = _field_default(field)
        if default is inspect.Parameter.empty:
            raise TypeError(f"Missing required field '{field.name}'")
        kwargs[field.name] = default
    return cast("PayloadT", payload_type(**kwargs))


def signature_from_dataclass(payload_type: type[object]) -> inspect.Signature:
    """Keyword-only signature mirroring the payload fields.

    FastMCP derives each tool's JSON schema from this signature.
    """

    if not is_dataclass(payload_type):
        return inspect.Signature()
    hints = get_type_hints(payload_type, include_extras=True)
    return inspect.Signature(
        [
            inspect.Parameter(
                field.name,
                inspect.Parameter.KEYWORD_ONLY,
                default=_field_default(field),
                annotation=hints[field.name],
            )
            for field in fields(payload_type)
        ]
    )
