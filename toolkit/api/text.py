"""Slug and random identifier endpoints."""

from pydantic import BaseModel
from robyn import Request, Response

from toolkit.core.errors import SlugifyError
from toolkit.core.jsonio import write_error
from toolkit.core.router import Router
from toolkit.core.settings import settings as st
from toolkit.core.text import random_string, slugify
from toolkit.models.core import JSONEnvelope

router = Router(__file__, prefix="/text", toolkit_config=st.toolkit_config())

MAX_RANDOM_LENGTH = 1024


class SlugRequest(BaseModel):
    text: str


@router.post("/slugify")
async def slugify_text(body: SlugRequest) -> JSONEnvelope | Response:
    try:
        slug = slugify(body.text)
    except SlugifyError as ex:
        return write_error(ex)
    return JSONEnvelope(message="slug created", data={"slug": slug})


@router.get("/random")
async def random_identifier(request: Request) -> JSONEnvelope | Response:
    raw_length = request.query_params.get("length", "25")
    if not raw_length.isdigit() or int(raw_length) > MAX_RANDOM_LENGTH:
        return write_error(f"length must be an integer between 0 and {MAX_RANDOM_LENGTH}")
    return JSONEnvelope(message="random string generated", data={"value": random_string(int(raw_length))})
