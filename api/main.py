import logging
from contextlib import asynccontextmanager

import uvicorn
from dotenv import find_dotenv, load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core import db, migrations
from core.config import Settings
from core.logging_config import setup_logging
from songs import router as songs_router

logger = logging.getLogger(__name__)


def load_settings() -> Settings:
    """
    Load `.env` from the working directory (if any), build settings and
    configure logging. A missing .env is fine: the process environment is used.
    """
    dotenv_path = find_dotenv(usecwd=True)
    loaded = bool(dotenv_path) and load_dotenv(dotenv_path)
    settings = Settings.from_env()
    setup_logging(settings.log_level)

    if loaded:
        logger.info("dotenv_loaded path=%s", dotenv_path)
    else:
        logger.warning("dotenv_missing using process environment")
    return settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    app.state.settings = settings

    # Initialize the DB pool once per process; failures here abort startup.
    await db.init_pool(settings)
    try:
        await migrations.apply_migrations(settings.migrations_dir)
        yield
    finally:
        await db.close_pool()


app = FastAPI(title="Music Library API", version="1.0", lifespan=lifespan)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    logger.error("request_invalid errors=%s", exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid input data."},
    )


app.include_router(songs_router.router, tags=["songs"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


if __name__ == "__main__":
    startup_settings = load_settings()
    uvicorn.run(app, host=startup_settings.server_host, port=startup_settings.server_port)
