"""Upload and download endpoints."""

import asyncio

from robyn import Request, Response, status_codes

from toolkit.core.errors import ToolkitError
from toolkit.core.jsonio import write_error, write_json
from toolkit.core.router import Router
from toolkit.core.settings import settings as st
from toolkit.core.static import serve_static_file
from toolkit.core.upload import upload_files, upload_one_file
from toolkit.models.core import JSONEnvelope, UploadFile

router = Router(__file__, prefix="/files", toolkit_config=st.toolkit_config())


@router.post("/upload")
async def upload(files: UploadFile) -> JSONEnvelope | Response:
    """Store every submitted file under a random name."""
    batch = await asyncio.to_thread(upload_files, files, st.UPLOAD_PATH, True, router.toolkit_config)
    data = {"files": [uploaded.model_dump() for uploaded in batch.files]}

    if not batch.ok:
        return write_json(
            status_codes.HTTP_400_BAD_REQUEST,
            JSONEnvelope(error=True, message=str(batch.error), data=data),
        )
    return JSONEnvelope(message=f"{len(batch.files)} file(s) uploaded", data=data)


@router.post("/upload-one")
async def upload_one(request: Request) -> JSONEnvelope | Response:
    try:
        uploaded = await asyncio.to_thread(upload_one_file, request, st.UPLOAD_PATH, True, router.toolkit_config)
    except ToolkitError as ex:
        return write_error(ex)
    except OSError as ex:
        return write_error(ex, status_codes.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONEnvelope(message="file uploaded", data=uploaded)


@router.get("/download/:name")
async def download(request: Request) -> Response:
    name = request.path_params["name"]
    return serve_static_file(request, st.STATIC_PATH, name, name)
