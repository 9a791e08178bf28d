"""
Schema validator adapter.

The fetch pipeline only depends on the ``Schema`` capability defined here:
``parse(raw)`` validates and transforms a value in one pass, and
``field_names()`` exposes the declared top-level fields in order. Pydantic
backs the shipped implementation; endpoint schemas are plain pydantic
models built on ``WsdotInput`` / ``WsdotOutput`` and the wire-date types
below.
"""

from datetime import datetime
from typing import Annotated, Any, Iterable, List, Optional, Protocol, Tuple, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, TypeAdapter, ValidationError

from wsdottie.dates import decode_wsdot_date
from wsdottie.errors import Issue, SchemaValidationError


class Schema(Protocol):
    """Validate+transform capability consumed by the fetch pipeline."""

    def parse(self, raw: Any) -> Any: ...

    def field_names(self) -> Tuple[str, ...]: ...


def _coerce_wsdot_date(value: Any) -> Any:
    """Decode wire strings; leave datetimes (already parsed values) alone."""
    if isinstance(value, datetime):
        return value
    return decode_wsdot_date(value)


def _coerce_cache_flush_date(value: Any) -> Any:
    # Flush endpoints answer either with the bare wire string or with an
    # object wrapping it; a missing field means "no flush info".
    if isinstance(value, dict):
        value = value.get("CacheFlushDate")
    return _coerce_wsdot_date(value)


WsdotDateTime = Annotated[datetime, BeforeValidator(_coerce_wsdot_date)]
NullableWsdotDateTime = Annotated[Optional[datetime], BeforeValidator(_coerce_wsdot_date)]
CacheFlushDateValue = Annotated[Optional[datetime], BeforeValidator(_coerce_cache_flush_date)]


class WsdotInput(BaseModel):
    """Base for endpoint parameter schemas: unknown parameters are rejected."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class WsdotOutput(BaseModel):
    """Base for response schemas: extra upstream fields are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class EmptyInput(WsdotInput):
    """Parameter schema for endpoints that take no parameters."""


def format_path(loc: Iterable[Union[str, int]]) -> str:
    """
    Render a pydantic error location as a dotted/bracketed locator.

    Example:
        (2, "TerminalID") -> "[2].TerminalID"
        ("items", 2, "TerminalID") -> "items[2].TerminalID"
    """
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path


def issues_from_pydantic(error: ValidationError) -> List[Issue]:
    return [Issue(path=format_path(err["loc"]), message=err["msg"]) for err in error.errors()]


class PydanticSchema:
    """
    ``Schema`` implementation over any type pydantic can validate.

    Args:
        type_: A pydantic model, ``List[Model]``, or any annotated type
        name: Display name used in logs (defaults to the type's name)
    """

    def __init__(self, type_: Any, name: Optional[str] = None):
        self.type = type_
        self.name = name or getattr(type_, "__name__", repr(type_))
        self._adapter = TypeAdapter(type_)

    def _model(self):
        if isinstance(self.type, type) and issubclass(self.type, BaseModel):
            return self.type
        return None

    def parse(self, raw: Any) -> Any:
        try:
            return self._adapter.validate_python(raw)
        except ValidationError as e:
            raise SchemaValidationError(issues_from_pydantic(e)) from e

    def field_names(self) -> Tuple[str, ...]:
        model = self._model()
        return tuple(model.model_fields) if model else ()

    def required_field_names(self) -> Tuple[str, ...]:
        model = self._model()
        if not model:
            return ()
        return tuple(name for name, field in model.model_fields.items() if field.is_required())

    def __repr__(self) -> str:
        return f"PydanticSchema({self.name})"


def parse(schema: Schema, raw: Any) -> Any:
    """
    Validate ``raw`` against ``schema``.

    Either the whole value validates (with transformations applied) or
    nothing is returned.

    Raises:
        SchemaValidationError: With one ``Issue`` per problem found
    """
    return schema.parse(raw)
