"""Strict JSON request decoding and uniform JSON response encoding."""

import copy
import json
from functools import lru_cache
from types import UnionType
from typing import Annotated, Any, Literal, Union, get_args, get_origin

import orjson
from pydantic import BaseModel, ConfigDict, PydanticUserError, RootModel, TypeAdapter, ValidationError
from robyn import Response, status_codes

from toolkit.core.errors import (
    EmptyJSONBodyError,
    InvalidJSONTargetError,
    JSONBodyError,
    JSONBodyTooLargeError,
    JSONTypeError,
    MalformedJSONError,
    MultipleJSONValuesError,
    ResponseEncodeError,
    UnknownJSONFieldError,
)
from toolkit.core.logger import LogIcon, logger
from toolkit.core.settings import ToolkitConfig
from toolkit.models.core import JSONEnvelope

JSON_WHITESPACE = " \t\n\r"

# pydantic error types that mean "wrong JSON type for this slot"
_TYPE_ERROR_SUFFIXES = ("_type", "_parsing")
_TYPE_ERRORS = frozenset({"int_from_float"})


class _NonStandardConstant(ValueError):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name


def _reject_constant(name: str) -> Any:
    raise _NonStandardConstant(name)


# stdlib decoder only for raw_decode: orjson has no "first value + remainder" mode
_DECODER = json.JSONDecoder(parse_constant=_reject_constant)


def _position(text: str, index: int) -> int:
    """Bytes read up to and including the character at ``index``."""
    return len(text[:index].encode("utf-8")) + 1


def _with_extra(annotation: Any, extra: str, rebuilt: dict[type, type]) -> Any:
    """Rebuild ``annotation`` so every model reachable from it uses ``extra``."""
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return _model_with_extra(annotation, extra, rebuilt)

    origin, args = get_origin(annotation), get_args(annotation)
    if origin is None or origin is Literal or not args:
        return annotation
    if origin is Annotated:
        inner = _with_extra(args[0], extra, rebuilt)
        return annotation if inner is args[0] else Annotated[(inner, *args[1:])]

    new_args = tuple(_with_extra(arg, extra, rebuilt) for arg in args)
    if all(new is old for new, old in zip(new_args, args)):
        return annotation
    if origin in (Union, UnionType):
        return Union[new_args]
    return origin[new_args]


def _model_with_extra(model: type[BaseModel], extra: str, rebuilt: dict[type, type]) -> type[BaseModel]:
    if model in rebuilt:
        return rebuilt[model]
    # Self-references resolve to the original class
    rebuilt[model] = model

    namespace: dict[str, Any] = {
        "__module__": model.__module__,
        "__qualname__": model.__qualname__,
        "__annotations__": {},
    }
    # RootModel rejects `extra`; only its root annotation is rebuilt
    if not issubclass(model, RootModel):
        namespace["model_config"] = ConfigDict(extra=extra)
    for name, info in model.model_fields.items():
        annotation = _with_extra(info.annotation, extra, rebuilt)
        if annotation is not info.annotation:
            namespace["__annotations__"][name] = annotation
            namespace[name] = copy.copy(info)

    rebuilt[model] = type(model.__name__, (model,), namespace)
    return rebuilt[model]


@lru_cache(maxsize=256)
def _adapter_for(target: Any, allow_unknown_fields: bool) -> TypeAdapter:
    """TypeAdapter for ``target``, with the unknown-field policy applied to every nested model."""
    extra = "ignore" if allow_unknown_fields else "forbid"
    return TypeAdapter(_with_extra(target, extra, {}))


def _skip_whitespace(text: str, index: int) -> int:
    while index < len(text) and text[index] in JSON_WHITESPACE:
        index += 1
    return index


def _value_index(text: str, start: int, loc: tuple[int | str, ...]) -> int:
    """Index in ``text`` of the value a pydantic error ``loc`` points at.

    ``text`` is already known to be well-formed. Parts of ``loc`` that do not
    address JSON structure (union tags, ``[key]``) stop the walk at the deepest
    value reached.
    """
    index = _skip_whitespace(text, start)
    for part in loc:
        container = index
        opener = text[index]
        if opener not in "{[":
            break

        found, position = None, 0
        index = _skip_whitespace(text, index + 1)
        while text[index] not in "}]":
            if opener == "{":
                key, index = _DECODER.raw_decode(text, index)
                index = _skip_whitespace(text, _skip_whitespace(text, index) + 1)
                matched = key == str(part)
            else:
                matched = isinstance(part, int) and part == position
            if matched:
                # duplicate keys: the last one is the one validated
                found = index
            _, index = _DECODER.raw_decode(text, index)
            index = _skip_whitespace(text, index)
            if text[index] == ",":
                index = _skip_whitespace(text, index + 1)
            position += 1

        if found is None:
            index = container
            break
        index = found
    return index


def _classify_validation_error(ex: ValidationError, text: str, start: int) -> JSONBodyError:
    """Map the first pydantic error onto the toolkit's JSON error taxonomy."""
    error = ex.errors()[0]
    kind = error["type"]
    field = ".".join(str(part) for part in error["loc"])

    if kind == "extra_forbidden":
        return UnknownJSONFieldError(field)
    if kind.endswith(_TYPE_ERROR_SUFFIXES) or kind in _TYPE_ERRORS:
        return JSONTypeError(field or None, _position(text, _value_index(text, start, error["loc"])))
    return JSONBodyError(str(ex))


def decode_json(raw: str | bytes | None, target: Any, config: ToolkitConfig | None = None) -> Any:
    """Decode exactly one JSON value from ``raw`` into ``target``.

    ``target`` is a pydantic model or anything ``TypeAdapter`` accepts. Raises a
    ``JSONBodyError`` subclass whose message is safe to return to the client;
    a position in a message counts the bytes of ``raw`` read up to and
    including the offending one. The unknown-field policy reaches every model
    nested in ``target``.
    """
    config = config or ToolkitConfig()
    data = raw.encode("utf-8") if isinstance(raw, str) else bytes(raw or b"")

    if len(data) > config.max_json_bytes:
        raise JSONBodyTooLargeError(config.max_json_bytes)

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as ex:
        raise MalformedJSONError(ex.start + 1) from ex

    start = len(text) - len(text.lstrip(JSON_WHITESPACE))
    if start == len(text):
        raise EmptyJSONBodyError()

    try:
        _, end = _DECODER.raw_decode(text, start)
    except json.JSONDecodeError as ex:
        if ex.pos >= len(text) or ex.msg.startswith("Unterminated string"):
            raise MalformedJSONError() from ex
        raise MalformedJSONError(_position(text, ex.pos)) from ex
    except _NonStandardConstant as ex:
        raise MalformedJSONError(_position(text, text.find(ex.name, start))) from ex

    try:
        adapter = _adapter_for(target, config.allow_unknown_json_fields)
    except (PydanticUserError, TypeError) as ex:
        raise InvalidJSONTargetError(str(ex)) from ex

    try:
        value = adapter.validate_json(text[start:end], strict=True)
    except ValidationError as ex:
        raise _classify_validation_error(ex, text, start) from ex

    if text[end:].strip(JSON_WHITESPACE):
        raise MultipleJSONValuesError()

    return value


def read_json(request: Any, target: Any, config: ToolkitConfig | None = None) -> Any:
    """Decode the body of a Robyn ``request`` with ``decode_json``."""
    try:
        return decode_json(getattr(request, "body", None), target, config)
    except JSONBodyError as ex:
        logger.warning("Rejected JSON body", icon=LogIcon.JSON, error=str(ex))
        raise


def _encode_default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def write_json(
    status_code: int,
    payload: Any,
    headers: dict[str, str] | None = None,
) -> Response:
    """Serialize ``payload`` into a JSON ``Response``.

    Extra ``headers`` are applied after ``content-type`` and may override it.
    """
    body = payload.to_payload() if isinstance(payload, JSONEnvelope) else payload
    try:
        description = orjson.dumps(body, default=_encode_default).decode()
    except orjson.JSONEncodeError as ex:
        raise ResponseEncodeError(f"could not encode response: {ex}") from ex

    response_headers = {"content-type": "application/json"}
    response_headers.update({key.lower(): value for key, value in (headers or {}).items()})
    return Response(status_code=status_code, headers=response_headers, description=description)


def write_error(
    err: BaseException | str,
    status_code: int = status_codes.HTTP_400_BAD_REQUEST,
    headers: dict[str, str] | None = None,
) -> Response:
    """Error envelope: ``{"error": true, "message": str(err)}``."""
    return write_json(status_code, JSONEnvelope(error=True, message=str(err)), headers)
