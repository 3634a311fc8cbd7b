"""
Tax Filing API - Main Application Entry Point

Accounts, dependents, W-9/W-2 uploads and derived tax forms.
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taxfiler.core.config import settings
from taxfiler.core.database import init_db
from taxfiler.core.errors import register_exception_handlers
from taxfiler.modules.documents.storage import get_document_store

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Import module routers
from taxfiler.core.auth_router import router as auth_router  # noqa: E402
from taxfiler.modules.accounts.router import router as accounts_router  # noqa: E402
from taxfiler.modules.dependents.router import router as dependents_router  # noqa: E402
from taxfiler.modules.documents.router import router as documents_router  # noqa: E402
from taxfiler.modules.tax.router import router as tax_router  # noqa: E402


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Tax filing backend: accounts, document uploads and derived tax forms",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # Use ["*"] if CORS_ALLOW_ALL is True (development), otherwise use explicit origins
    cors_origins = ["*"] if settings.CORS_ALLOW_ALL else settings.CORS_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=not settings.CORS_ALLOW_ALL,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Register module routers
    app.include_router(auth_router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(accounts_router, prefix="/api/dashboard", tags=["Profile"])
    app.include_router(dependents_router, prefix="/api/dashboard", tags=["Dependents"])
    app.include_router(documents_router, prefix="/api/dashboard", tags=["Documents"])
    app.include_router(tax_router, prefix="/api/dashboard", tags=["Tax Forms"])

    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint - health check."""
        return {
            "message": f"{settings.APP_NAME} is running!",
            "version": settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        """API health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.on_event("startup")
    def startup_event():
        """Connect the database and prepare upload folders before serving."""
        init_db()
        get_document_store().ensure_directories()
        logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("taxfiler.main:app", host="0.0.0.0", port=settings.PORT, reload=settings.DEBUG)
