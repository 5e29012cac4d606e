"""Static file delivery with forced-download headers."""

import mimetypes
import re
from email.utils import formatdate
from pathlib import Path
from typing import Any

from robyn import Response, status_codes

from toolkit.core.logger import LogIcon, logger
from toolkit.core.sniff import SNIFF_LEN, detect_content_type

_RANGE_SPEC = re.compile(r"^\s*(\d*)\s*-\s*(\d*)\s*$")


class RangeNotSatisfiable(Exception):
    """Range header is malformed or lies outside the file."""


def parse_range(header: str, size: int) -> tuple[int, int] | None:
    """Parse a single ``bytes=`` range into inclusive ``(start, end)`` offsets.

    Returns None when the whole file should be served (no header, or more than
    one range requested).
    """
    if not header:
        return None
    unit, _, spec = header.partition("=")
    if unit.strip().lower() != "bytes" or not spec:
        raise RangeNotSatisfiable(header)
    if "," in spec:
        return None

    match = _RANGE_SPEC.match(spec)
    if not match or match.group(1) == match.group(2) == "":
        raise RangeNotSatisfiable(header)

    first, last = match.groups()
    if first == "":
        # Suffix range: final N bytes
        length = int(last)
        if length == 0 or size == 0:
            raise RangeNotSatisfiable(header)
        return max(size - length, 0), size - 1

    start = int(first)
    end = int(last) if last else size - 1
    if start >= size or end < start:
        raise RangeNotSatisfiable(header)
    return start, min(end, size - 1)


def _content_type(path: Path) -> str:
    guessed, _ = mimetypes.guess_type(path.name)
    if guessed:
        return guessed
    with path.open("rb") as handle:
        return detect_content_type(handle.read(SNIFF_LEN))


def serve_static_file(request: Any, base_dir: str | Path, file_name: str, display_name: str) -> Response:
    """Respond with ``base_dir/file_name`` as an attachment named ``display_name``.

    Missing files answer 404; a single ``Range`` request answers 206 or 416.
    """
    path = Path(base_dir) / file_name
    disposition = f"attachment; filename={display_name}"

    if not path.is_file():
        logger.warning("Static file not found", icon=LogIcon.WARNING, path=str(path))
        return Response(
            status_code=status_codes.HTTP_404_NOT_FOUND,
            headers={"content-type": "text/plain; charset=utf-8"},
            description="404 page not found",
        )

    stat = path.stat()
    size = stat.st_size
    headers = {
        "content-disposition": disposition,
        "content-type": _content_type(path),
        "accept-ranges": "bytes",
        "last-modified": formatdate(stat.st_mtime, usegmt=True),
    }

    request_headers = getattr(request, "headers", None)
    range_header = request_headers.get("range") if request_headers is not None else None
    try:
        byte_range = parse_range(range_header or "", size)
    except RangeNotSatisfiable:
        headers["content-range"] = f"bytes */{size}"
        return Response(
            status_code=416,
            headers=headers,
            description="invalid range",
        )

    with path.open("rb") as handle:
        if byte_range is None:
            status_code = status_codes.HTTP_200_OK
            body = handle.read()
        else:
            start, end = byte_range
            handle.seek(start)
            body = handle.read(end - start + 1)
            status_code = 206
            headers["content-range"] = f"bytes {start}-{end}/{size}"

    headers["content-length"] = str(len(body))
    logger.info("Serving static file", icon=LogIcon.DOWNLOAD, path=str(path), status=status_code, size=len(body))
    return Response(status_code=status_code, headers=headers, description=body)
