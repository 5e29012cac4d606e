"""Tests for custom router with body parsing and response handling."""

import inspect

import orjson
import pytest
from pydantic import BaseModel
from robyn import Response

from toolkit.core.router import (
    BodyType,
    parse_endpoint_signature,
    parse_request_body,
    parse_request_files,
    parse_response,
)
from toolkit.core.settings import ToolkitConfig
from toolkit.models.core import JSONEnvelope, UploadFile


# -----------------------------------------------------------------------------
# Test Models
# -----------------------------------------------------------------------------


class SampleModel(BaseModel):
    """Sample Pydantic model for testing."""

    name: str
    value: int


# -----------------------------------------------------------------------------
# parse_endpoint_signature Tests
# -----------------------------------------------------------------------------


class TestParseEndpointSignature:
    """Tests for parse_endpoint_signature function."""

    def test_pydantic_model_annotation(self) -> None:
        """Verify Pydantic model annotations are detected."""

        async def handler(body: SampleModel) -> None:
            pass

        sig = inspect.signature(handler)
        body_config, file_params = parse_endpoint_signature(sig)

        assert "body" in body_config
        assert body_config["body"][0] == BodyType.PYDANTIC
        assert issubclass(body_config["body"][1], SampleModel)
        assert file_params == set()

    def test_dict_annotation(self) -> None:
        """Verify dict annotations are detected as JSONABLE."""

        async def handler(data: dict) -> None:
            pass

        body_config, file_params = parse_endpoint_signature(inspect.signature(handler))

        assert body_config["data"][0] == BodyType.JSONABLE
        assert file_params == set()

    def test_no_body_parameters(self) -> None:
        """Verify handlers without body params return empty dict."""

        async def handler(request, global_dependencies) -> None:
            pass

        body_config, file_params = parse_endpoint_signature(inspect.signature(handler))

        assert body_config == {}
        assert file_params == set()

    def test_upload_file_annotation(self) -> None:
        """Verify UploadFile annotations are detected as file params."""

        async def handler(files: UploadFile) -> None:
            pass

        body_config, file_params = parse_endpoint_signature(inspect.signature(handler))

        assert body_config == {}
        assert "files" in file_params


# -----------------------------------------------------------------------------
# parse_request_body Tests
# -----------------------------------------------------------------------------


class TestParseRequestBody:
    """Tests for parse_request_body function."""

    def test_pydantic_valid_json(self) -> None:
        """Verify valid JSON is parsed into Pydantic model."""
        body_config = {"body": (BodyType.PYDANTIC, SampleModel)}
        kwargs = {"body": '{"name": "test", "value": 42}'}

        error = parse_request_body(body_config, kwargs)

        assert error is None
        assert isinstance(kwargs["body"], SampleModel)
        assert kwargs["body"].name == "test"
        assert kwargs["body"].value == 42

    def test_pydantic_missing_field_returns_400(self) -> None:
        """Verify schema failures return a 400 error envelope."""
        body_config = {"body": (BodyType.PYDANTIC, SampleModel)}
        kwargs = {"body": '{"name": "test"}'}

        error = parse_request_body(body_config, kwargs)

        assert isinstance(error, Response)
        assert error.status_code == 400
        assert orjson.loads(error.description)["error"] is True

    def test_pydantic_unknown_field_rejected(self) -> None:
        """Verify unknown fields are refused under the default config."""
        body_config = {"body": (BodyType.PYDANTIC, SampleModel)}
        kwargs = {"body": '{"name": "test", "value": 1, "extra": true}'}

        error = parse_request_body(body_config, kwargs)

        assert isinstance(error, Response)
        assert orjson.loads(error.description)["message"] == 'request body contains unknown field "extra"'

    def test_pydantic_unknown_field_allowed_by_config(self) -> None:
        """Verify router config can relax the unknown-field policy."""
        body_config = {"body": (BodyType.PYDANTIC, SampleModel)}
        kwargs = {"body": '{"name": "test", "value": 1, "extra": true}'}

        error = parse_request_body(body_config, kwargs, ToolkitConfig(allow_unknown_json_fields=True))

        assert error is None
        assert kwargs["body"].value == 1

    def test_jsonable_valid_json(self) -> None:
        """Verify valid JSON is parsed to dict."""
        body_config = {"data": (BodyType.JSONABLE, None)}
        kwargs = {"data": '{"key": "value"}'}

        error = parse_request_body(body_config, kwargs)

        assert error is None
        assert kwargs["data"] == {"key": "value"}

    def test_jsonable_invalid_json(self) -> None:
        """Verify invalid JSON returns 400 Response."""
        body_config = {"data": (BodyType.JSONABLE, None)}
        kwargs = {"data": "not valid json"}

        error = parse_request_body(body_config, kwargs)

        assert isinstance(error, Response)
        assert error.status_code == 400

    def test_decoded_value_unchanged(self) -> None:
        """Verify values Robyn already decoded are left as they are."""
        body_config = {"data": (BodyType.JSONABLE, None)}
        original = {"key": "value"}
        kwargs = {"data": original}

        error = parse_request_body(body_config, kwargs)

        assert error is None
        assert kwargs["data"] == original

    def test_missing_param_ignored(self) -> None:
        """Verify missing parameters don't cause errors."""
        body_config = {"body": (BodyType.PYDANTIC, SampleModel)}
        kwargs = {}

        assert parse_request_body(body_config, kwargs) is None


# -----------------------------------------------------------------------------
# parse_request_files Tests
# -----------------------------------------------------------------------------


class TestParseRequestFiles:
    """Tests for parse_request_files function."""

    def test_files_injected(self, make_mock_request) -> None:
        request = make_mock_request(files={"a.png": b"1"})
        kwargs = {}

        assert parse_request_files({"files"}, request, kwargs) is None
        assert isinstance(kwargs["files"], UploadFile)
        assert kwargs["files"].get("a.png") == b"1"

    def test_missing_files_returns_422(self, make_mock_request) -> None:
        error = parse_request_files({"files"}, make_mock_request(), {})

        assert isinstance(error, Response)
        assert error.status_code == 422
        payload = orjson.loads(error.description)
        assert payload["error"] is True
        assert payload["data"] == {"required": ["files"]}


# -----------------------------------------------------------------------------
# parse_response Tests
# -----------------------------------------------------------------------------


class TestParseResponse:
    """Tests for parse_response function."""

    def test_response_passthrough(self) -> None:
        """Verify Response objects pass through unchanged."""
        original = Response(status_code=201, headers={}, description="created")
        result = parse_response(original)
        assert result is original

    def test_envelope_to_json(self) -> None:
        """Verify envelopes are serialized without absent data."""
        result = parse_response(JSONEnvelope(message="done"))

        assert result.status_code == 200
        assert result.headers["content-type"] == "application/json"
        assert orjson.loads(result.description) == {"error": False, "message": "done"}

    def test_pydantic_model_to_json(self) -> None:
        """Verify Pydantic models are serialized to JSON."""
        result = parse_response(SampleModel(name="test", value=123))

        assert result.status_code == 200
        assert result.headers["content-type"] == "application/json"
        assert "test" in result.description
        assert "123" in result.description

    def test_dict_to_json(self) -> None:
        """Verify dicts are serialized to JSON."""
        result = parse_response({"key": "value", "num": 42})

        assert result.status_code == 200
        assert result.headers["content-type"] == "application/json"
        assert "key" in result.description

    def test_other_to_string(self) -> None:
        """Verify other types are converted to string."""
        result = parse_response("plain text")
        assert result.status_code == 200
        assert result.description == "plain text"

    @pytest.mark.parametrize(
        "input_val",
        [
            Response(status_code=200, headers={}, description=""),
            SampleModel(name="x", value=1),
            JSONEnvelope(error=True, message="x"),
            {"a": 1},
            "text",
            123,
        ],
    )
    def test_always_returns_response(self, input_val) -> None:
        """Verify parse_response always returns a Response."""
        assert isinstance(parse_response(input_val), Response)
