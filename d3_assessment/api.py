"""
Analyze API Endpoints

Thin HTTP boundary over the scoring engine. Errors map to status codes by
their ErrorKind, never by message text.
"""

import asyncio
import ipaddress
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException, Request

from core.config import settings
from core.exceptions import DeadlineExceededError, ReadinessError, ValidationError
from core.logging import get_logger
from core.retry import Deadline
from d1_plugins.types import AnalysisType, AssessmentInput

from .engine import ScoringEngine
from .schemas import AnalyzeRequest, ErrorResponse, RegistryStatsResponse

logger = get_logger(__name__, domain="d3")

router = APIRouter(prefix="/api/v1/analyze", tags=["analyze"])

HostGuard = Callable[[str], Awaitable[None]]


def get_engine(request: Request) -> ScoringEngine:
    """Dependency to get the engine built at startup"""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise create_error_response("SERVICE_UNAVAILABLE", "Assessment engine is not configured", status_code=503)
    return engine


def get_request_timeout() -> float:
    return settings.request_timeout_seconds


def is_public_address(address: str) -> bool:
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    if ip.version == 6 and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return ip.is_global and not ip.is_multicast


async def ensure_public_host(url: str) -> None:
    """Reject website URLs that resolve to private or reserved addresses"""
    host = urlparse(url).hostname
    if not host:
        raise ValidationError("URL has no host", field="inputUrl")
    try:
        infos = await asyncio.get_running_loop().getaddrinfo(host, None)
    except OSError:
        raise ValidationError(f"Could not resolve host {host}", field="inputUrl") from None
    addresses = {info[4][0] for info in infos}
    if not addresses or not all(is_public_address(address) for address in addresses):
        raise ValidationError("URL must resolve to a public address", field="inputUrl")


def get_host_guard() -> HostGuard:
    return ensure_public_host


def create_error_response(
    error_type: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    status_code: int = 400,
    kind: Optional[str] = None,
) -> HTTPException:
    """Create standardized error response"""
    error_data = ErrorResponse(
        error=error_type, message=message, kind=kind, details=details, request_id=str(uuid.uuid4())
    )
    return HTTPException(status_code=status_code, detail=error_data.model_dump(mode="json"))


@router.post(
    "",
    summary="Analyze Repository or Website",
    description="Score how ready a GitHub repository or website is for AI agents",
    responses={400: {"model": ErrorResponse}, 408: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def analyze(
    request: AnalyzeRequest,
    engine: ScoringEngine = Depends(get_engine),
    timeout_seconds: float = Depends(get_request_timeout),
    host_guard: HostGuard = Depends(get_host_guard),
) -> Dict[str, Any]:
    """Run one assessment and return it in the legacy flat format"""
    input = AssessmentInput(type=request.input_type, url=request.input_url)
    deadline = Deadline(timeout_seconds, operation="analysis request")

    try:
        if input.type == AnalysisType.WEBSITE:
            await host_guard(input.url)
        result = await deadline.run(engine.assess(input))
    except DeadlineExceededError as e:
        logger.warning(f"Analysis of {input.url} timed out after {timeout_seconds}s")
        raise create_error_response(
            e.error_code,
            "Analysis timed out. The source may be too large, please try a smaller one.",
            details=e.details,
            status_code=e.status_code,
            kind=e.kind.value,
        )
    except ReadinessError as e:
        logger.error(f"Analysis of {input.url} failed - error_code: {e.error_code}, kind: {e.kind.value}")
        raise create_error_response(e.error_code, e.message, e.details, e.status_code, e.kind.value)
    except Exception as e:
        logger.exception(f"Unexpected error analyzing {input.url}", exc_info=e)
        raise create_error_response("INTERNAL_ERROR", "Failed to analyze source", status_code=500)

    legacy = engine.convert_to_legacy_format(result)

    # consumers expect the section for the input type to exist
    if "staticAnalysis" not in legacy and "websiteAnalysis" not in legacy:
        logger.warning(f"Analysis of {input.url} produced no analysis data")
        key = "staticAnalysis" if input.type == AnalysisType.REPOSITORY else "websiteAnalysis"
        legacy[key] = {}

    return legacy


@router.get(
    "/stats",
    response_model=RegistryStatsResponse,
    summary="Plugin Registry Stats",
    description="Registered plugins, cache size and hit rate",
)
async def registry_stats(engine: ScoringEngine = Depends(get_engine)) -> RegistryStatsResponse:
    return RegistryStatsResponse(**engine.registry.get_stats())
