from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Optional
import logging

from academic_vault.core.config import settings
from academic_vault.core.exceptions import UploadBatchError
from academic_vault.core.session_registry import VaultSessionRegistry
from academic_vault.routers import analysis, auth, collections, profile, shared, vault
from academic_vault.services.ai_gateway import AIGateway, OpenAIGateway
from academic_vault.services.data_gateway import InMemoryVaultGateway, VaultDataGateway

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)

logger = logging.getLogger(__name__)


def build_gateway() -> VaultDataGateway:
    """Postgres + object storage when DATABASE_URL is set, otherwise in-memory"""
    if not settings.database_url:
        logger.warning("⚠️ DATABASE_URL not set, using the in-memory data gateway (data is lost on restart)")
        return InMemoryVaultGateway()

    from academic_vault.core.database import get_session_factory
    from academic_vault.services.blob_storage_service import BlobStorageService
    from academic_vault.services.sql_gateway import SqlVaultGateway

    logger.info("✅ Using the SQL data gateway")
    return SqlVaultGateway(get_session_factory(), BlobStorageService())


def create_app(
    gateway: Optional[VaultDataGateway] = None,
    ai_gateway: Optional[AIGateway] = None,
) -> FastAPI:
    app = FastAPI(
        title="Academic Vault API",
        description="Folders, uploads, sharing and AI study tools for academic files",
        version="1.0.0",
        redirect_slashes=False
    )

    app.state.gateway = gateway or build_gateway()
    app.state.ai_gateway = ai_gateway or OpenAIGateway()
    app.state.sessions = VaultSessionRegistry()

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.environment == "development" else [settings.frontend_url],
        allow_credentials=False if settings.environment == "development" else True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(UploadBatchError)
    async def upload_batch_error_handler(request: Request, exc: UploadBatchError):
        # Keep the partial result so the client can show what did upload
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "result": jsonable_encoder(exc.result)},
        )

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        return JSONResponse(content={
            "status": "healthy",
            "service": "Academic Vault API",
            "version": "1.0.0",
            "database_configured": bool(settings.database_url),
            "ai_configured": bool(settings.openai_api_key),
        })

    # Include routers
    app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(profile.router, prefix="/api/profile", tags=["Profile"])
    app.include_router(vault.router, prefix="/api/vault", tags=["Vault"])
    app.include_router(shared.router, prefix="/api/shared", tags=["Shared Vault"])
    app.include_router(collections.router, prefix="/api/collections", tags=["Collections"])
    app.include_router(analysis.router, prefix="/api", tags=["AI Study Tools"])

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
