from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError
import logging
from datetime import datetime, timezone
from typing import Optional

from config import Settings, load_settings
from database import ensure_indexes
from errors import register_error_handlers
from token_service import TokenService
from llm_client import GeminiClient
from account_service import AccountService, build_password_context
from analysis_service import AnalysisOrchestrator
from claim_service import ClaimService
from dependencies import Services
from auth_routes import auth_router
from analysis_routes import analysis_router, analyze_idea

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    database=None,
    model_client=None,
) -> FastAPI:
    """
    Build the API. Tests inject their own database and model client; in
    production both are created from settings.
    """
    settings = settings or load_settings()

    # MongoDB connection
    mongo_client = None
    if database is None:
        mongo_client = AsyncIOMotorClient(settings.mongo_url)
        database = mongo_client[settings.db_name]

    if model_client is None:
        model_client = GeminiClient(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            timeout=settings.model_timeout_seconds,
        )

    tokens = TokenService(settings.jwt_secret, settings.jwt_algorithm, settings.jwt_expiration_days)
    pwd_context = build_password_context(settings.bcrypt_rounds)

    app = FastAPI(title="Idea Analyzer API")
    app.state.services = Services(
        settings=settings,
        db=database,
        tokens=tokens,
        accounts=AccountService(database, pwd_context, tokens),
        orchestrator=AnalysisOrchestrator(
            database,
            model_client,
            max_idea_length=settings.max_idea_length,
            model_timeout=settings.model_timeout_seconds,
        ),
        claims=ClaimService(database),
    )

    register_error_handlers(app)
    app.include_router(auth_router)
    app.include_router(analysis_router)

    # Legacy endpoint kept for older clients
    app.add_api_route("/analyze-idea", analyze_idea, methods=["POST"])

    @app.get("/api/health")
    async def health_check():
        return {
            "status": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.environment,
        }

    # Root-level health check endpoint for Kubernetes (no /api prefix)
    @app.get("/health")
    async def root_health_check():
        return {"status": "healthy"}

    # Wildcard origins can't be combined with credentials
    if settings.cors_origins == ["*"]:
        allow_credentials = False
    else:
        allow_credentials = True

    app.add_middleware(
        CORSMiddleware,
        allow_credentials=allow_credentials,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def prepare_database():
        try:
            await ensure_indexes(database)
        except PyMongoError as e:
            logger.error(f"Could not ensure MongoDB indexes: {e}")

    @app.on_event("shutdown")
    async def shutdown_db_client():
        if mongo_client is not None:
            mongo_client.close()

    return app


_settings = load_settings()
logging.basicConfig(level=_settings.log_level)

app = create_app(_settings)
