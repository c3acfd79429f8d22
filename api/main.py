from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers import data_upload, documents, files, folders, health
from doc_vault.container import build_container
from doc_vault.exception.custom_exception import DocumentVaultException, ErrorKind
from doc_vault.logger import GLOBAL_LOGGER as log
from doc_vault.src.document_insights.insight_generator import InsightGenerator
from doc_vault.utils.settings import AppSettings


def create_app(
    settings: Optional[AppSettings] = None,
    generator: Optional[InsightGenerator] = None,
) -> FastAPI:
    settings = settings or AppSettings.load()

    # Use lifespan instead of deprecated on_event
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("Application startup initiated")
        container = build_container(settings, generator=generator)
        root = await container.initialize()
        app.state.container = container
        log.info("Vault ready | root_folder_id=%s", root.id)

        if settings.pipeline.recover_on_startup:
            await container.pipeline.recover_pending()
        yield
        log.info("Application shutdown")
        await container.close()

    app = FastAPI(title=settings.api.title, version="1.0", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DocumentVaultException)
    async def vault_exception_handler(request: Request, exc: DocumentVaultException):
        log.warning(
            "Request failed | path=%s | kind=%s | error=%s",
            request.url.path,
            exc.kind.name,
            str(exc),
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": ErrorKind.VALIDATION.value, "message": str(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        log.error(
            "Unhandled error | path=%s | error=%s", request.url.path, str(exc), exc_info=exc
        )
        return JSONResponse(
            status_code=500,
            content={"error": "INTERNAL_ERROR", "message": "An unexpected error occurred"},
        )

    # Router Registration
    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(data_upload.router, tags=["upload"])
    app.include_router(documents.router, tags=["documents"])
    app.include_router(folders.router, tags=["folders"])
    app.include_router(files.router, tags=["files"])

    @app.get("/")
    async def root():
        return {"message": "Backend is running"}

    return app


app = create_app()


def run():
    settings = app.state.settings
    uvicorn.run("api.main:app", host=settings.api.host, port=settings.api.port)
