"""
Claimflow - AI-assisted auto claim intake

FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from claimflow.api import router as claims_router
from claimflow.config import get_settings
from claimflow.state_machine.engine import WorkflowEngine

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(engine: WorkflowEngine | None = None) -> FastAPI:
    """
    Build the application around one workflow engine.

    A new engine (empty claim store, Ollama gateway) is created at startup
    unless one is passed in.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifecycle management."""
        logger.info("Starting Claimflow")
        app.state.engine = engine or WorkflowEngine(settings=settings)
        yield
        logger.info("Shutting down Claimflow")

    app = FastAPI(
        title="Claimflow",
        description="""
    Auto damage claim intake with AI assessment and a role-gated workflow.

    ## Workflow

    Submitted → AI Review → Estimated → Approved → In Repair → Pick Up Pending → Closed,
    with Rejected reachable from any open status by an Insurance Agent.

    1. Submit a claim with photos: `POST /claims`
    2. The AI gateway assesses damage, estimates cost and suggests repair shops
    3. Repair shops and agents negotiate with `POST /claims/{id}/estimates`
    4. Each role advances the claim with `POST /claims/{id}/transitions`
    """,
        version=settings.app_version,
        lifespan=lifespan
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(claims_router)

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with system info."""
        return {
            "system": settings.app_name,
            "version": settings.app_version,
            "status": "operational",
            "docs": "/docs"
        }

    @app.get("/health", tags=["health"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
