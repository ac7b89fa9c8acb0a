import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.cover import router as cover_router
from .api.enhance import router as enhance_router
from .api.routes_health import router as health_router
from .core.config import settings
from .core.errors import CoverServiceError
from .core.request_limits import RequestSizeLimitMiddleware

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Cover enhancer ready (spotify configured=%s, cutout configured=%s)",
        settings.spotify_configured,
        bool(settings.CUTOUT_API_KEY),
    )
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title="Cover Enhancer API",
    description="Spotify cover lookup and 3000x3000 enhancement",
    lifespan=lifespan,
)

# CORS must stay the outermost middleware
app.add_middleware(RequestSizeLimitMiddleware, settings=settings)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CoverServiceError)
async def cover_service_error_handler(request: Request, exc: CoverServiceError):
    if exc.status_code >= 500:
        logger.warning("[%s] %s: %s", request.url.path, type(exc).__name__, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("[%s] unhandled error", request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})


app.include_router(health_router)
app.include_router(cover_router)
app.include_router(enhance_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("cover_enhancer.main:app", host=settings.API_HOST, port=settings.PORT)
