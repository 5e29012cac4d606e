"""Multipart upload pipeline: sniff, allow-list, rename and persist each part."""

import io
import os
import shutil
from pathlib import Path
from typing import Any, BinaryIO

from toolkit.core.errors import FileTypeNotPermittedError, NoFileUploadedError, UploadTooLargeError
from toolkit.core.fs import create_dir_if_not_exist
from toolkit.core.logger import LogIcon, logger
from toolkit.core.settings import ToolkitConfig
from toolkit.core.sniff import SNIFF_LEN, detect_content_type
from toolkit.core.text import random_string
from toolkit.models.core import UploadBatch, UploadedFile

RANDOM_NAME_LENGTH = 25


def _declared_length(source: Any) -> int:
    """Content-Length of the request, 0 when absent or unparsable."""
    headers = getattr(source, "headers", None)
    if headers is None:
        return 0
    raw = headers.get("content-length")
    try:
        return int(raw) if raw else 0
    except (TypeError, ValueError):
        return 0


def _file_parts(source: Any) -> list[tuple[str, bytes]]:
    """Client filename and bytes of each file part, in multipart order."""
    files = getattr(source, "files", None) or {}
    return [(name, bytes(data)) for name, data in files.items()]


def is_content_type_allowed(content_type: str, config: ToolkitConfig) -> bool:
    """Case-insensitive exact match against the allow-list; empty list allows all."""
    if not config.allowed_content_types:
        return True
    sniffed = content_type.casefold()
    return any(sniffed == allowed.casefold() for allowed in config.allowed_content_types)


def destination_name(original_name: str, rename: bool) -> str:
    if not rename:
        return original_name
    return f"{random_string(RANDOM_NAME_LENGTH)}{os.path.splitext(original_name)[1]}"


def store_part(
    stream: BinaryIO,
    original_name: str,
    target_dir: Path,
    rename: bool,
    config: ToolkitConfig,
) -> UploadedFile:
    """Validate one part stream and copy it to ``target_dir``."""
    head = stream.read(SNIFF_LEN)
    content_type = detect_content_type(head)

    if not is_content_type_allowed(content_type, config):
        logger.warning(
            "Rejected upload content type",
            icon=LogIcon.FORBIDDEN,
            filename=original_name,
            content_type=content_type,
        )
        raise FileTypeNotPermittedError(content_type, original_name)

    stream.seek(0)
    new_name = destination_name(original_name, rename)

    with (target_dir / new_name).open("wb") as outfile:
        shutil.copyfileobj(stream, outfile)
        size_bytes = outfile.tell()

    logger.info("Stored file", icon=LogIcon.FILE, new_name=new_name, size=size_bytes, content_type=content_type)
    return UploadedFile(
        new_name=new_name,
        original_name=original_name,
        size_bytes=size_bytes,
        content_type=content_type,
    )


def upload_files(
    source: Any,
    target_dir: str | Path,
    rename: bool = True,
    config: ToolkitConfig | None = None,
) -> UploadBatch:
    """Persist every file part of ``source`` into ``target_dir``.

    ``source`` is a Robyn ``Request`` or an ``UploadFile`` container. Parts are
    processed in order and the first failure stops the loop; the returned batch
    holds the files already written together with that error.
    """
    config = config or ToolkitConfig()
    directory = create_dir_if_not_exist(target_dir)
    parts = _file_parts(source)

    received = max(_declared_length(source), sum(len(data) for _, data in parts))
    if received > config.max_upload_bytes:
        logger.warning(
            "Upload too large",
            icon=LogIcon.FORBIDDEN,
            received=received,
            limit=config.max_upload_bytes,
        )
        return UploadBatch(error=UploadTooLargeError(config.max_upload_bytes))

    logger.info("Processing upload", icon=LogIcon.UPLOAD, parts=len(parts), target=str(directory))

    stored: list[UploadedFile] = []
    for original_name, data in parts:
        try:
            with io.BytesIO(data) as stream:
                stored.append(store_part(stream, original_name, directory, rename, config))
        except (FileTypeNotPermittedError, OSError) as ex:
            logger.warning("Upload aborted", icon=LogIcon.ERROR, stored=len(stored), error=str(ex))
            return UploadBatch(files=stored, error=ex)

    logger.info("Upload complete", icon=LogIcon.SUCCESS, stored=len(stored))
    return UploadBatch(files=stored)


def upload_one_file(
    source: Any,
    target_dir: str | Path,
    rename: bool = True,
    config: ToolkitConfig | None = None,
) -> UploadedFile:
    """Upload expecting a single file; returns the first stored file.

    Raises the batch error when nothing was stored, ``NoFileUploadedError`` when
    the body carried no file parts at all.
    """
    batch = upload_files(source, target_dir, rename=rename, config=config)
    if batch.files:
        if batch.error is not None:
            logger.warning("Ignoring error after first file", icon=LogIcon.WARNING, error=str(batch.error))
        return batch.files[0]
    batch.raise_for_error()
    raise NoFileUploadedError()
