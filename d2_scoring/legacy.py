"""
Legacy result format

Flattens an AssessmentResult into the rounded-integer, camelCase shape older
consumers (report renderer, v1 API clients) read. The conversion is total: a
section that cannot be converted is logged and reported as null.
"""
import dataclasses
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from core.logging import get_logger
from d1_plugins.types import RepositoryAnalysis, SubAnalysis, round_half_up

from .types import CORE_CATEGORIES, AssessmentResult

logger = get_logger(__name__, domain="d2")

MAX_CONTENT_CHARS = 5000
TRUNCATION_MARKER = "... [truncated]"
MAX_WORKFLOW_FILES = 50
MAX_TEST_FILES = 100


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def camelize(value: Any) -> Any:
    """JSON-ready copy of a payload with camelCase field names"""
    if isinstance(value, SubAnalysis):
        flat = {to_camel(k): v for k, v in value.metrics.items()}
        flat.update(
            findings=list(value.findings),
            recommendations=list(value.recommendations),
            confidence=value.confidence,
        )
        return flat
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {to_camel(f.name): camelize(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): camelize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [camelize(v) for v in value]
    return value


def truncate_content(content: Optional[str], limit: int = MAX_CONTENT_CHARS) -> Optional[str]:
    if content is None or len(content) <= limit:
        return content
    return content[:limit] + TRUNCATION_MARKER


def static_analysis_section(repo: Optional[RepositoryAnalysis]) -> Optional[Dict[str, Any]]:
    if repo is None:
        return None
    section = camelize(repo)
    for name in ("readmeContent", "contributingContent", "agentsContent"):
        section[name] = truncate_content(section.get(name))
    section["workflowFiles"] = section["workflowFiles"][:MAX_WORKFLOW_FILES]
    section["testFiles"] = section["testFiles"][:MAX_TEST_FILES]
    return section


def _section(name: str, build: Callable[[], Any]) -> Any:
    try:
        return build()
    except Exception as e:
        logger.error(f"Legacy conversion of {name} failed: {e}")
        return None


def convert_to_legacy_format(result: AssessmentResult) -> Dict[str, Any]:
    """Rich result to the flat legacy dict; every score rounded to an int"""
    scores = result.scores
    assessment = result.ai_assessment

    def categories() -> Dict[str, int]:
        values = {to_camel(name): round_half_up(score.value) for name, score in scores.categories.items()}
        for name in CORE_CATEGORIES:
            values.setdefault(to_camel(name), 0)
        return values

    def ai_status() -> Optional[Dict[str, Any]]:
        if assessment is None:
            return None
        return {
            "enabled": assessment.enabled,
            "instructionClarity": assessment.instruction_clarity,
            "workflowAutomation": assessment.workflow_automation,
            "contextEfficiency": assessment.context_efficiency,
            "riskCompliance": assessment.risk_compliance,
            "overallSuccess": assessment.overall_success,
            "reason": assessment.reason,
        }

    def confidence() -> Dict[str, Any]:
        return {
            "overall": scores.confidence.overall,
            "staticAnalysis": scores.confidence.static_analysis,
            "aiAssessment": scores.confidence.ai_assessment,
        }

    legacy = {
        "readinessScore": _section("readinessScore", lambda: round_half_up(scores.overall.value)) or 0,
        "aiAnalysisStatus": _section("aiAnalysisStatus", ai_status),
        "categories": _section("categories", categories) or {},
        "findings": _section("findings", lambda: [f.description for f in result.findings]) or [],
        "recommendations": _section("recommendations", lambda: [r.description for r in result.recommendations])
        or [],
        "detailedAnalysis": _section(
            "detailedAnalysis", lambda: camelize(assessment.detailed_analysis) if assessment else None
        ),
        "confidence": _section("confidence", confidence),
        "staticAnalysis": _section("staticAnalysis", lambda: static_analysis_section(result.analysis.repository)),
        "websiteAnalysis": _section("websiteAnalysis", lambda: camelize(result.analysis.website)),
        "businessTypeAnalysis": _section("businessTypeAnalysis", lambda: camelize(result.analysis.business_type)),
    }

    # absent sources are omitted rather than reported as null
    return {key: value for key, value in legacy.items() if value is not None}
