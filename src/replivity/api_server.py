"""
FastAPI application for the Replivity API
"""
import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .auth_routes import router as auth_router
from .billing_routes import (
    products_router,
    router as billing_router,
    settings_router,
    usage_router,
)
from .blog_routes import router as blog_router
from .config import config
from .db.engine import check_connection, init_db
from .exceptions import ReplivityError, http_exception_handler, replivity_exception_handler
from .feature_routes import router as feature_router
from .generation_routes import router as generation_router
from .hashtag_routes import router as hashtag_router
from .logging_config import RequestIDMiddleware, setup_logging
from .logging_filter import setup_pii_redaction
from .middleware.error_handler import (
    database_error_handler,
    generic_exception_handler,
    validation_error_handler,
)
from .security_routes import router as security_router
from .template_routes import router as template_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build the application: logging, tables, middleware, handlers and routers"""
    setup_logging(env=config.ENV, log_level=config.LOG_LEVEL)
    setup_pii_redaction()

    try:
        init_db()
    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)
        raise

    app = FastAPI(title="Replivity API", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(ReplivityError, replivity_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(auth_router)
    app.include_router(generation_router)
    app.include_router(products_router)
    app.include_router(billing_router)
    app.include_router(usage_router)
    app.include_router(settings_router)
    app.include_router(feature_router)
    app.include_router(security_router)
    app.include_router(template_router)
    app.include_router(hashtag_router)
    app.include_router(blog_router)

    @app.get("/")
    async def root():
        return {"message": "Replivity API", "status": "running"}

    @app.get("/health")
    async def health():
        """Health check with a database ping"""
        if not check_connection():
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "service": "replivity", "database": "unreachable"},
            )
        return {"status": "healthy", "service": "replivity", "database": "ok"}

    logger.info(f"Replivity API ready (env={config.ENV})")
    return app


app = create_app()
