"""
Unified AI assessor plugin

Builds prompts from a repository or website analysis, calls the language
model in JSON mode and validates each response against a pydantic schema.
Invalid or missing responses raise, so the registry's retry loop sees them as
failed attempts.
"""
import asyncio
import re
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from core.exceptions import ReadinessError
from core.logging import get_logger

from ..base import AIAssessorPlugin
from ..types import (
    SUB_METRIC_MAX,
    SUB_METRICS,
    AIAssessment,
    AnalysisResult,
    AnalysisType,
    DetailedAIAnalysis,
    Insights,
    RepositoryAnalysis,
    SubAnalysis,
    WebsiteAnalysis,
)
from .openai_client import OpenAIClient

logger = get_logger(__name__, domain="d1", plugin="unified-ai-assessor")

SYSTEM_PROMPT = "You are an expert AI agent readiness assessor. Always respond with valid JSON."

CONTENT_PREVIEW_CHARS = 2000

_FENCE = re.compile(r"```(?:json)?\s*")


def clean_json_response(content: str) -> str:
    """Strip markdown code fences around a JSON body"""
    return _FENCE.sub("", content).strip()


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


class AssessmentResponse(BaseModel):
    """Top-level verdict returned by the model"""

    model_config = ConfigDict(alias_generator=_to_camel, populate_by_name=True)

    enabled: bool = True
    instruction_clarity: bool
    workflow_automation: bool
    context_efficiency: bool
    risk_compliance: bool
    overall_success: bool
    reason: str = ""


class SubAnalysisResponse(BaseModel):
    """One detailed sub-analysis; metric names vary by group"""

    model_config = ConfigDict(extra="allow")

    findings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    confidence: float = 0.0

    @field_validator("confidence")
    @classmethod
    def clamp_confidence(cls, v):
        return max(0.0, min(100.0, v))

    def metric(self, snake_name: str) -> float:
        extra = self.model_extra or {}
        raw = extra.get(_to_camel(snake_name), extra.get(snake_name, 0))
        try:
            value = float(raw)
        except (TypeError, ValueError):
            value = 0.0
        return max(0.0, min(SUB_METRIC_MAX, value))


def _repository_prompt(repo: RepositoryAnalysis) -> str:
    return f"""Analyze this repository for AI agent compatibility.

Repository Analysis Data:
- Has README: {repo.has_readme}
- Has Contributing: {repo.has_contributing}
- Has AGENTS.md: {repo.has_agents}
- Has License: {repo.has_license}
- Has Workflows: {repo.has_workflows}
- Has Tests: {repo.has_tests}
- Languages: {', '.join(repo.languages)}
- File Count: {repo.file_count}
- Repository Size: {repo.repository_size_mb}MB
- Error Handling: {repo.error_handling}

README Content (first {CONTENT_PREVIEW_CHARS} chars):
{(repo.readme_content or 'Not available')[:CONTENT_PREVIEW_CHARS]}

AGENTS.md Content (first {CONTENT_PREVIEW_CHARS} chars):
{(repo.agents_content or 'Not available')[:CONTENT_PREVIEW_CHARS]}
"""


def _website_prompt(site: WebsiteAnalysis) -> str:
    features = site.agent_readiness_features
    return f"""Analyze this website for AI agent compatibility.

Website Analysis Data:
- URL: {site.url}
- Page Title: {site.page_title or 'Not available'}
- Meta Description: {site.meta_description or 'Not available'}
- Has Structured Data: {site.has_structured_data}
- Has Open Graph: {site.has_open_graph}
- Has Twitter Cards: {site.has_twitter_cards}
- Has Sitemap: {site.has_sitemap}
- Has Robots.txt: {site.has_robots_txt}
- Content Length: {site.content_length}
- Technologies: {', '.join(site.technologies)}
- Contact Info: {', '.join(site.contact_info)}
- Social Media Links: {len(site.social_media_links)}
- Locations: {', '.join(site.locations)}

Agent Readiness Features:
- Information Gathering: {features.information_gathering.score}/{features.information_gathering.max_score}
- Direct Booking: {features.direct_booking.score}/{features.direct_booking.max_score}
- FAQ Support: {features.faq_support.score}/{features.faq_support.max_score}
- Task Management: {features.task_management.score}/{features.task_management.max_score}
- Personalization: {features.personalization.score}/{features.personalization.max_score}
"""


VERDICT_INSTRUCTIONS = """
Evaluate instruction clarity, workflow automation, context efficiency and risk & compliance.

Return a JSON response with:
{
  "enabled": boolean,
  "instructionClarity": boolean,
  "workflowAutomation": boolean,
  "contextEfficiency": boolean,
  "riskCompliance": boolean,
  "overallSuccess": boolean,
  "reason": "Brief explanation of the assessment"
}"""


def _sub_analysis_instructions(group: str) -> str:
    metrics = ", ".join(f'"{_to_camel(m)}": 0-20' for m in SUB_METRICS[group])
    title = group.replace("_", " ")
    return f"""
Score the {title} of this target. Return a JSON response with:
{{{metrics}, "findings": [string], "recommendations": [string], "confidence": 0-100}}"""


class UnifiedAIAssessor(AIAssessorPlugin):
    """AI assessor for repository and website analyses"""

    name = "unified-ai-assessor"
    version = "1.0.0"

    def __init__(
        self,
        client: OpenAIClient,
        type: AnalysisType = AnalysisType.REPOSITORY,
        include_detailed_analysis: bool = True,
        temperature: float = 0.0,
    ):
        self.client = client
        self.type = type
        self.include_detailed_analysis = include_detailed_analysis
        self.temperature = temperature

    def _context(self, analysis: AnalysisResult) -> str:
        data = analysis.data
        if isinstance(data, RepositoryAnalysis):
            return _repository_prompt(data)
        if isinstance(data, WebsiteAnalysis):
            return _website_prompt(data)
        raise ReadinessError(f"Unsupported analysis payload for AI assessment: {type(data).__name__}")

    async def _ask(self, prompt: str, schema: type) -> Any:
        content = await self.client.complete_json(SYSTEM_PROMPT, prompt, temperature=self.temperature)
        try:
            return schema.model_validate_json(clean_json_response(content))
        except PydanticValidationError as e:
            raise ReadinessError(
                f"Invalid AI response: {e.error_count()} schema errors",
                error_code="INVALID_AI_RESPONSE",
                details={"schema": schema.__name__},
            ) from e

    async def assess(self, analysis: AnalysisResult) -> AIAssessment:
        context = self._context(analysis)
        verdict = await self._ask(context + VERDICT_INSTRUCTIONS, AssessmentResponse)

        detailed = None
        if self.include_detailed_analysis:
            detailed = await self._detailed_analysis(context)

        logger.info(f"AI assessment for {analysis.type.value}: overall_success={verdict.overall_success}")
        return AIAssessment(
            enabled=verdict.enabled,
            instruction_clarity=verdict.instruction_clarity,
            workflow_automation=verdict.workflow_automation,
            context_efficiency=verdict.context_efficiency,
            risk_compliance=verdict.risk_compliance,
            overall_success=verdict.overall_success,
            reason=verdict.reason,
            detailed_analysis=detailed,
        )

    async def _detailed_analysis(self, context: str) -> DetailedAIAnalysis:
        groups = list(SUB_METRICS)
        responses = await asyncio.gather(
            *(self._ask(context + _sub_analysis_instructions(group), SubAnalysisResponse) for group in groups)
        )
        parts: Dict[str, SubAnalysis] = {}
        for group, response in zip(groups, responses):
            parts[group] = SubAnalysis(
                metrics={m: response.metric(m) for m in SUB_METRICS[group]},
                findings=tuple(response.findings),
                recommendations=tuple(response.recommendations),
                confidence=response.confidence,
            )
        return DetailedAIAnalysis(**parts)

    def generate_insights(self, assessment: AIAssessment) -> Insights:
        findings: List[str] = []
        recommendations: List[str] = []
        confidences: List[float] = []

        if assessment.detailed_analysis is not None:
            for _, part in assessment.detailed_analysis.groups():
                findings.extend(part.findings)
                recommendations.extend(part.recommendations)
                confidences.append(part.confidence / 100)

        if not findings and assessment.reason:
            findings.append(assessment.reason)

        passed = sum(assessment.flags)
        if passed >= 3:
            risk_level = "low"
        elif passed >= 2:
            risk_level = "medium"
        else:
            risk_level = "high"

        confidence = sum(confidences) / len(confidences) if confidences else 0.5
        return Insights(
            key_findings=tuple(findings),
            recommendations=tuple(recommendations),
            confidence=confidence,
            risk_level=risk_level,
        )
