"""
FastAPI Application Entry Point

Integrates:
  - Dashboard routes (chat, news summaries, portfolio analysis)
  - Health checks
  - Middleware for logging & error handling

Run: uvicorn main:app --reload --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from config import Config
from dashboard.routes import router as dashboard_router
from dashboard.sessions import ChatSessionStore
from inference import CompletionBackend, create_backend
from tracing import Tracer, create_tracer

# Setup logging
logging.basicConfig(
    level=Config.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    backend: Optional[CompletionBackend] = None,
    tracer: Optional[Tracer] = None,
    max_sessions: Optional[int] = None,
) -> FastAPI:
    """
    Build the application.

    Tests inject a backend (usually StubCompletionBackend); production
    builds one from Config.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=" * 60)
        logger.info("Wisbee dashboard API starting up...")
        logger.info(f"Environment: {Config.ENVIRONMENT}")
        logger.info(f"LLM Backend: {Config.LLM_BACKEND}")
        logger.info("=" * 60)

        yield

        logger.info("Wisbee dashboard API shutting down...")

    app = FastAPI(
        title="Wisbee Dashboard API",
        description="AI features for the Wisbee financial dashboard",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.backend = backend or create_backend(Config)
    app.state.tracer = tracer or create_tracer(Config.TRACER_BACKEND)
    app.state.chat_sessions = ChatSessionStore(
        max_sessions=max_sessions or Config.CHAT_MAX_SESSIONS
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Restrict this in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests."""
        logger.debug(f"{request.method} {request.url.path}")
        try:
            response = await call_next(request)
            return response
        except Exception as e:
            logger.error(f"Request error: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error"},
            )

    app.include_router(dashboard_router)

    @app.get("/health/live")
    async def health_live():
        """Live health check."""
        return {"status": "healthy"}

    @app.get("/health/ready")
    async def health_ready():
        """Readiness: configuration is complete for the selected backend."""
        if Config.validate():
            return {"status": "ready"}
        return {"status": "not_ready", "reason": "GEMINI_API_KEY is not set"}

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Wisbee Dashboard API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "chat": "POST /chat",
                "chat_history": "GET /chat/{session_id}/history",
                "news_summary": "POST /news/summary",
                "portfolio_analyze": "POST /portfolio/analyze",
                "health_live": "GET /health/live",
                "health_ready": "GET /health/ready",
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=Config.APP_PORT,
        reload=Config.ENVIRONMENT == "development",
    )
