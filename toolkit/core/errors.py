"""Error taxonomy shared by the toolkit operations.

Every failure raised by the toolkit is a ``ToolkitError``; its ``str()`` is the
human-readable message handlers forward to clients. Filesystem failures are
not wrapped and surface as the ``OSError`` the platform raised.
"""


class ToolkitError(Exception):
    """Base class for all toolkit failures."""


# -----------------------------------------------------------------------------
# Uploads
# -----------------------------------------------------------------------------


class UploadTooLargeError(ToolkitError):
    """Multipart body exceeds the configured upload limit."""

    def __init__(self, limit: int) -> None:
        super().__init__("the uploaded file is too big")
        self.limit = limit


class FileTypeNotPermittedError(ToolkitError):
    """Sniffed content type is not in the allow-list."""

    def __init__(self, content_type: str, filename: str) -> None:
        super().__init__(f"the uploaded file type is not permitted: {content_type}")
        self.content_type = content_type
        self.filename = filename


class NoFileUploadedError(ToolkitError):
    """A single-file upload was requested but the body carried no file parts."""

    def __init__(self) -> None:
        super().__init__("no file was uploaded")


# -----------------------------------------------------------------------------
# JSON
# -----------------------------------------------------------------------------


class JSONBodyError(ToolkitError):
    """Request body could not be decoded into the requested target."""


class JSONBodyTooLargeError(JSONBodyError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"request body must not be larger than {limit} bytes")
        self.limit = limit


class EmptyJSONBodyError(JSONBodyError):
    def __init__(self) -> None:
        super().__init__("request body must not be empty")


class MalformedJSONError(JSONBodyError):
    def __init__(self, offset: int | None = None) -> None:
        if offset is None:
            super().__init__("request body contains badly-formed JSON")
        else:
            super().__init__(f"request body contains badly-formed JSON (at position {offset})")
        self.offset = offset


class JSONTypeError(JSONBodyError):
    def __init__(self, field: str | None, offset: int | None = None) -> None:
        message = "request body contains an invalid value"
        if field:
            message = f'{message} for the "{field}" field'
        if offset is not None:
            message = f"{message} (at position {offset})"
        super().__init__(message)
        self.field = field
        self.offset = offset


class UnknownJSONFieldError(JSONBodyError):
    """``field`` is the dotted path of the key, e.g. ``inner.bogus``."""

    def __init__(self, field: str) -> None:
        super().__init__(f'request body contains unknown field "{field}"')
        self.field = field


class MultipleJSONValuesError(JSONBodyError):
    def __init__(self) -> None:
        super().__init__("the request body must only contain a single JSON object")


class InvalidJSONTargetError(JSONBodyError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"error unmarshalling request body: {detail}")


# -----------------------------------------------------------------------------
# Text & responses
# -----------------------------------------------------------------------------


class SlugifyError(ToolkitError):
    """Input cannot be turned into a non-empty slug."""


class ResponseEncodeError(ToolkitError):
    """Response payload could not be serialized to JSON."""
