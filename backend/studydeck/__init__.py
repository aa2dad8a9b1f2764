import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from studydeck.config import settings
from studydeck.db import init_all_databases
from studydeck.errors import StudyDeckError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_all_databases(settings.data_dir)
    yield


async def _domain_error(request: Request, exc: StudyDeckError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request data", "details": jsonable_encoder(exc.errors())},
    )


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def create_app() -> FastAPI:
    application = FastAPI(
        title="StudyDeck Backend", version="0.1.0", lifespan=lifespan
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(StudyDeckError, _domain_error)
    application.add_exception_handler(RequestValidationError, _invalid_request)
    application.add_exception_handler(StarletteHTTPException, _http_error)

    from studydeck.routers import categories, flashcards, health, sentences, sessions

    application.include_router(health.router)
    application.include_router(
        categories.router, prefix="/api/categories", tags=["categories"]
    )
    application.include_router(
        flashcards.router, prefix="/api/flashcards", tags=["flashcards"]
    )
    application.include_router(
        sessions.router, prefix="/api/sessions", tags=["sessions"]
    )
    application.include_router(sentences.router, prefix="/api", tags=["sentences"])

    return application


app = create_app()
