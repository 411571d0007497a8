import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from habitkernel.config import settings
from habitkernel.kernel.flatfile import FlatFileRepository
from habitkernel.kernel.repository import ConfigNotFoundError, StorageError
from habitkernel.kernel.router import router as kernel_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def init_storage() -> bool:
    """Create the flat-file config on first run. Returns True if files were written."""
    if settings.storage_backend != "file":
        return False
    try:
        return FlatFileRepository(settings.config_dir).initialize()
    except StorageError as exc:
        # requests will report the same problem as 503
        logger.error("cannot initialize storage: %s", exc.message)
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_storage()
    yield


app = FastAPI(title="HabitKernel", version="0.1.0", lifespan=lifespan)
app.include_router(kernel_router)


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("storage error on %s: %s", request.url.path, exc.message)
    code = "CONFIG_NOT_FOUND" if isinstance(exc, ConfigNotFoundError) else "STORAGE_ERROR"
    return JSONResponse(status_code=503, content={"code": code, "detail": exc.message})


@app.get("/")
async def root() -> dict:
    return {
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "kernel": {
            "habits": "/kernel/habits",
            "habit_status": "/kernel/habits/{name}/status",
            "graphs": "/kernel/graphs",
            "stats": "/kernel/stats",
            "score": "/kernel/score",
            "todos": "/kernel/todos",
            "entries": "/kernel/entries",
        },
    }


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
