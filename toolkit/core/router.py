"""Router with strict body decoding, file injection and envelope responses."""

import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any

import orjson
from pydantic import BaseModel
from robyn import Request, Response, SubRouter, status_codes
from robyn.robyn import HttpMethod
from robyn.types import Body

from toolkit.core.errors import JSONBodyError
from toolkit.core.jsonio import decode_json, write_error, write_json
from toolkit.core.logger import LogIcon, logger
from toolkit.core.settings import ToolkitConfig
from toolkit.models.core import BodyType, JSONEnvelope, UploadFile


def parse_endpoint_signature(
    sig: inspect.Signature,
) -> tuple[dict[str, tuple[BodyType, type | None]], set[str]]:
    """Parse function signature for body and file parameters."""
    parsed: dict[str, tuple[BodyType, type | None]] = {}
    file_params: set[str] = set()

    for name, param in sig.parameters.items():
        annotation = param.annotation

        if annotation is UploadFile:
            file_params.add(name)
            continue

        match annotation:
            case type() if issubclass(annotation, BaseModel):
                parsed[name] = (BodyType.PYDANTIC, type(annotation.__name__, (annotation, Body), {}))
            case type() if issubclass(annotation, Body):
                parsed[name] = (BodyType.JSONABLE, annotation)
            case type() if annotation is dict:
                parsed[name] = (BodyType.JSONABLE, None)
            case _ if name == "body":
                parsed[name] = (BodyType.JSONABLE, None)

    return parsed, file_params


def parse_request_body(
    body_config: dict[str, tuple[BodyType, type | None]],
    kwargs: dict[str, Any],
    config: ToolkitConfig | None = None,
) -> Response | None:
    """Decode JSON/Pydantic body parameters with the strict JSON engine."""
    for param_name, (body_type, model_cls) in body_config.items():
        if param_name not in kwargs:
            continue
        raw = kwargs[param_name]
        if not isinstance(raw, (str, bytes)):
            continue

        match body_type:
            case BodyType.PYDANTIC if model_cls:
                target = model_cls
            case BodyType.JSONABLE:
                target = Any
            case _:
                continue

        try:
            kwargs[param_name] = decode_json(raw, target, config)
        except JSONBodyError as ex:
            logger.warning("Rejected request body", icon=LogIcon.VALIDATION, param=param_name, error=str(ex))
            return write_error(ex, status_codes.HTTP_400_BAD_REQUEST)
    return None


def parse_request_files(
    file_params: set[str],
    request: Request,
    kwargs: dict[str, Any],
) -> Response | None:
    """Transfer request.files to UploadFile kwargs."""
    if not file_params:
        return None

    files = getattr(request, "files", None)
    if not files:
        return write_json(
            status_codes.HTTP_422_UNPROCESSABLE_ENTITY,
            JSONEnvelope(error=True, message="no files were submitted", data={"required": sorted(file_params)}),
        )

    for param_name in file_params:
        kwargs[param_name] = UploadFile(files=dict(files))

    return None


def parse_response(result: Any) -> Response:
    """Convert handler result to Response."""
    match result:
        case Response():
            return result
        case JSONEnvelope():
            return write_json(status_codes.HTTP_200_OK, result)
        case BaseModel():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": "application/json"},
                description=result.model_dump_json(indent=4),
            )
        case dict() | list():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": "application/json"},
                description=orjson.dumps(result).decode(),
            )
        case _:
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={},
                description=str(result),
            )


HTTP_METHODS = (
    HttpMethod.GET,
    HttpMethod.POST,
    HttpMethod.PUT,
    HttpMethod.DELETE,
    HttpMethod.PATCH,
    HttpMethod.HEAD,
    HttpMethod.OPTIONS,
    HttpMethod.TRACE,
    HttpMethod.CONNECT,
)


def _create_method_wrapper(
    original_method: Callable,
    toolkit_config: ToolkitConfig | None = None,
) -> Callable:
    @wraps(original_method)
    def method_wrapper(*args, **kwargs) -> Callable:
        decorator = original_method(*args, **kwargs)

        def handler_decorator(handler: Callable) -> Callable:
            sig = inspect.signature(handler)
            body_config, file_params = parse_endpoint_signature(sig)
            has_request_param = "request" in sig.parameters

            @wraps(handler)
            async def wrapped_handler(request: Request, **h_kwargs):
                if error := parse_request_body(body_config, h_kwargs, toolkit_config):
                    return error

                if file_params and (error := parse_request_files(file_params, request, h_kwargs)):
                    return error

                # Pass request to handler only if it declared it
                if has_request_param:
                    h_kwargs["request"] = request

                result = await handler(**h_kwargs)
                return parse_response(result)

            # Build signature: always include request for Robyn injection
            new_params = [inspect.Parameter("request", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=Request)]
            for name, param in sig.parameters.items():
                if name == "request" or name in file_params:
                    continue
                if name in body_config:
                    new_params.append(param.replace(annotation=body_config[name][1]))
                else:
                    new_params.append(param)

            wrapped_handler.__signature__ = sig.replace(parameters=new_params)  # type: ignore[attr-defined]
            return decorator(wrapped_handler)

        return handler_decorator

    return method_wrapper


class Router(SubRouter):
    """SubRouter whose handlers get strictly decoded bodies and envelope-aware responses.

    ``toolkit_config`` governs JSON body limits and unknown-field policy for every
    route registered on this router.
    """

    def __init__(self, *args, toolkit_config: ToolkitConfig | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.toolkit_config = toolkit_config or ToolkitConfig()
        self._wrap_methods()

    def _wrap_methods(self) -> None:
        """Wrap HTTP methods with parsing logic."""
        for method in HTTP_METHODS:
            method_name = str(method).split(".")[-1].lower()
            if hasattr(self, method_name):
                original_method = getattr(self, method_name)
                wrapped_method = _create_method_wrapper(original_method, self.toolkit_config)
                setattr(self, method_name, wrapped_method)
