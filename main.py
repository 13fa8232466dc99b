"""
Main FastAPI application entry point
"""
import time
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import Settings, settings
from core.exceptions import ConfigurationError, ReadinessError
from core.logging import get_logger
from core.metrics import get_metrics_response, metrics
from d1_plugins.plugins import AnalysisSources, OpenAIClient, register_default_plugins
from d1_plugins.registry import PluginRegistry
from d3_assessment.api import router as analyze_router
from d3_assessment.engine import EngineConfig, ScoringEngine
from d3_assessment.orchestrator import AssessmentOrchestrator, OrchestratorConfig

logger = get_logger(__name__)


def build_ai_client(config: Settings) -> Optional[OpenAIClient]:
    """OpenAI client when AI assessment is enabled and configured"""
    if not (config.enable_ai_assessment and config.enable_openai):
        return None
    try:
        return OpenAIClient(settings=config)
    except ConfigurationError as e:
        logger.warning(f"AI assessment unavailable: {e.message}")
        return None


def build_engine(
    config: Settings,
    sources: Optional[AnalysisSources] = None,
    ai_client: Optional[OpenAIClient] = None,
) -> ScoringEngine:
    """Registry, plugins, orchestrator and engine wired from settings"""
    registry = PluginRegistry(**config.registry_options)
    register_default_plugins(
        registry,
        sources or AnalysisSources(),
        ai_client=ai_client,
        include_detailed_analysis=config.include_detailed_analysis,
    )
    engine_config = EngineConfig.from_settings(config)
    if ai_client is None:
        engine_config.enable_ai_assessment = False
    orchestrator = AssessmentOrchestrator(registry, OrchestratorConfig.from_settings(config))
    return ScoringEngine(registry, orchestrator, engine_config)


def create_app(
    config: Optional[Settings] = None,
    sources: Optional[AnalysisSources] = None,
    ai_client: Optional[OpenAIClient] = None,
    engine: Optional[ScoringEngine] = None,
) -> FastAPI:
    """Create the FastAPI application"""
    config = config or settings
    if engine is None:
        ai_client = ai_client or build_ai_client(config)
        engine = build_engine(config, sources, ai_client)

    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.engine = engine
    app.state.ai_client = ai_client

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if config.is_development else [config.base_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request tracking middleware
    @app.middleware("http")
    async def track_requests(request: Request, call_next):
        """Track all HTTP requests for metrics"""
        start_time = time.time()

        # Skip metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)

        response = await call_next(request)

        metrics.track_request(
            method=request.method,
            endpoint=request.url.path,
            status=response.status_code,
            duration=time.time() - start_time,
        )
        return response

    # Exception handlers
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Malformed request bodies are client errors"""
        errors = exc.errors()
        message = "; ".join(str(error.get("msg", "")).removeprefix("Value error, ") for error in errors)
        logger.info(f"Rejected request - path: {request.url.path}, errors: {message}")
        return JSONResponse(
            status_code=400,
            content={"error": "VALIDATION_ERROR", "message": message or "Invalid request", "kind": "validation"},
        )

    @app.exception_handler(ReadinessError)
    async def readiness_error_handler(request: Request, exc: ReadinessError):
        """Handle AgentReady errors raised outside the analyze route"""
        logger.error(f"AgentReady error - error_code: {exc.error_code}, path: {request.url.path}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors"""
        logger.exception(f"Unexpected error - path: {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": "INTERNAL_ERROR", "message": "An unexpected error occurred"},
        )

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok", "version": config.app_version, "environment": config.environment}

    # Custom metrics endpoint
    @app.get("/metrics", include_in_schema=False)
    async def prometheus_metrics():
        """Expose metrics for Prometheus scraping"""
        if not config.prometheus_enabled:
            return JSONResponse(status_code=404, content={"error": "Metrics not enabled"})

        metrics_data, content_type = get_metrics_response()
        return Response(content=metrics_data, media_type=content_type)

    @app.on_event("startup")
    async def startup_event():
        """Initialize application on startup"""
        logger.info(f"Starting {config.app_name} version={config.app_version} environment={config.environment}")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on shutdown"""
        if app.state.ai_client is not None:
            await app.state.ai_client.aclose()
        logger.info(f"Shutting down {config.app_name}")

    app.include_router(analyze_router)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
