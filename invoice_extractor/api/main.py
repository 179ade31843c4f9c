from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from ..core.logging import setup_logging
from ..core.config import settings
from ..core.errors import AppError, ValidationError
from ..services.invoice_service import InvoiceService, build_invoice_service
from .routers import health, invoice

logger = setup_logging()


def create_app(service: Optional[InvoiceService] = None) -> FastAPI:
    """
    Build the API.

    Pass ``service`` to inject a ready-made service graph (tests do this);
    otherwise one is built from settings when the app starts.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "invoice_service", None) is None:
            app.state.invoice_service = build_invoice_service(settings)
            logger.info(
                "Invoice service ready",
                database=settings.database_path,
                upload_dir=settings.upload_dir,
                default_provider=settings.llm_provider,
            )
        yield

    app = FastAPI(title="Invoice Extractor", lifespan=lifespan)
    app.state.invoice_service = service

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        log = logger.warning if exc.status_code < 500 else logger.error
        # messages can carry braces (ids, provider payloads), so they are arguments, not the template
        log("{}: {}", exc.kind, exc.message, path=request.url.path)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # Request body/query validation failures are reported like any other ValidationError
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.error(f"Validation error: {exc.errors()}")
        details = [
            {"field": ".".join(str(part) for part in err["loc"] if part != "body"), "message": err["msg"]}
            for err in exc.errors()
        ]
        error = ValidationError("Validation error", details=details)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}")
        message = str(exc) if settings.app_env == "dev" else "Internal server error"
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": message, "kind": AppError.kind},
        )

    # Configure CORS to allow frontend access
    # CORS_ORIGINS can be set in .env as comma-separated list
    allowed_origins = [origin.strip() for origin in settings.cors_origins.split(",")]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(invoice.router)
    return app


app = create_app()
