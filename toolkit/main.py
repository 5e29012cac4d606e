"""robyn-http-toolkit - demo service exposing the request/response helpers."""

from robyn import Robyn

from toolkit.api.files import router as files_router
from toolkit.api.health import router as health_router
from toolkit.api.text import router as text_router
from toolkit.core.fs import create_dir_if_not_exist
from toolkit.core.logger import logger
from toolkit.core.settings import settings as st

app = Robyn(__file__)

# Routers
app.include_router(health_router)
app.include_router(files_router)
app.include_router(text_router)


def main() -> None:
    create_dir_if_not_exist(st.UPLOAD_PATH)
    create_dir_if_not_exist(st.STATIC_PATH)
    logger.info("🚀 STARTING %s | HOST=%s | PORT=%s", st.API_NAME, st.API_HOST, st.API_PORT)
    app.start(host=st.API_HOST, port=st.API_PORT)


if __name__ == "__main__":
    main()
