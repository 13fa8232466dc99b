"""
Test Helper Utilities

Payload factories and in-memory plugins shared across the test suite, so
tests build realistic analyses without touching the network.
"""
import asyncio
from typing import Any, Callable, Iterable, Optional

from d1_plugins.base import AIAssessorPlugin, AnalyzerPlugin
from d1_plugins.types import (
    SUB_METRICS,
    AgentCompatibility,
    AIAssessment,
    AnalysisMetadata,
    AnalysisPayload,
    AnalysisResult,
    AnalysisType,
    AssessmentInput,
    BusinessTypeAnalysis,
    DetailedAIAnalysis,
    FileSizeAnalysis,
    Insights,
    RepositoryAnalysis,
    SubAnalysis,
    ValidationResult,
    WebsiteAnalysis,
    utcnow,
)

REPOSITORY_URL = "https://github.com/octocat/hello-world"
WEBSITE_URL = "https://example.com"


def create_async_mock(return_value: Any) -> Callable:
    """
    Create an async function that returns the specified value.

    Usage:
        analyzer = RepositoryAnalyzer(create_async_mock(repository_analysis()))
    """

    async def mock_coro(*args, **kwargs):
        return return_value

    return mock_coro


def create_async_mock_error(exception: Exception) -> Callable:
    """Create an async function that raises the specified exception"""

    async def mock_coro(*args, **kwargs):
        raise exception

    return mock_coro


def repository_input(url: str = REPOSITORY_URL) -> AssessmentInput:
    return AssessmentInput(type=AnalysisType.REPOSITORY, url=url)


def website_input(url: str = WEBSITE_URL) -> AssessmentInput:
    return AssessmentInput(type=AnalysisType.WEBSITE, url=url)


def repository_analysis(**overrides) -> RepositoryAnalysis:
    """A well documented repository; every static category scores 100"""
    fields = dict(
        has_readme=True,
        has_contributing=True,
        has_agents=True,
        has_license=True,
        has_workflows=True,
        has_tests=True,
        languages=("Python",),
        error_handling=True,
        file_count=42,
        lines_of_code=4200,
        repository_size_mb=3.5,
        readme_content="# Hello World\n" + "Install with pip and run the server. " * 20,
        contributing_content="Fork the repository and open a pull request. " * 10,
        agents_content="Run make test before committing any change. " * 6,
        workflow_files=(".github/workflows/ci.yml",),
        test_files=("tests/test_app.py",),
    )
    fields.update(overrides)
    return RepositoryAnalysis(**fields)


def bare_repository_analysis(**overrides) -> RepositoryAnalysis:
    """A repository with no documentation, workflows or tests"""
    fields = dict(file_count=3, lines_of_code=120, repository_size_mb=0.1)
    fields.update(overrides)
    return RepositoryAnalysis(**fields)


def website_analysis(**overrides) -> WebsiteAnalysis:
    fields = dict(
        url=WEBSITE_URL,
        page_title="Example Bistro",
        meta_description="Seasonal food in the city centre",
        has_structured_data=True,
        has_open_graph=True,
        has_sitemap=True,
        has_robots_txt=True,
        content_length=4200,
        technologies=("WordPress",),
        contact_info=("hello@example.com",),
        locations=("London",),
    )
    fields.update(overrides)
    return WebsiteAnalysis(**fields)


def business_type_analysis(**overrides) -> BusinessTypeAnalysis:
    fields = dict(
        business_type="restaurant",
        confidence=80.0,
        overall_score=60.0,
        agentic_flows={"reservations": 70.0, "menu_lookup": 50.0},
        findings=("No online reservation flow",),
        recommendations=("Add an online reservation form",),
    )
    fields.update(overrides)
    return BusinessTypeAnalysis(**fields)


def file_size_analysis(overall: int = 90, recommendations: Iterable[str] = ()) -> FileSizeAnalysis:
    return FileSizeAnalysis(
        total_size_mb=1.2,
        large_files=(),
        critical_files=(),
        agent_compatibility=AgentCompatibility(agents={}, overall=overall),
        recommendations=tuple(recommendations),
    )


def sub_analysis(
    group: str,
    value: float = 20.0,
    confidence: float = 80.0,
    findings: Iterable[str] = (),
    recommendations: Iterable[str] = (),
) -> SubAnalysis:
    """Sub-analysis with every metric of the group set to value (0-20)"""
    return SubAnalysis(
        metrics={name: value for name in SUB_METRICS[group]},
        findings=tuple(findings),
        recommendations=tuple(recommendations),
        confidence=confidence,
    )


def detailed_analysis(value: float = 20.0, confidence: float = 80.0, **groups: SubAnalysis) -> DetailedAIAnalysis:
    parts = {group: sub_analysis(group, value, confidence) for group in SUB_METRICS}
    parts.update(groups)
    return DetailedAIAnalysis(**parts)


def ai_assessment(
    detailed: Optional[DetailedAIAnalysis] = None,
    passed: bool = True,
    reason: str = "Clear instructions and automated checks",
) -> AIAssessment:
    return AIAssessment(
        enabled=True,
        instruction_clarity=passed,
        workflow_automation=passed,
        context_efficiency=passed,
        risk_compliance=passed,
        overall_success=passed,
        reason=reason,
        detailed_analysis=detailed,
    )


def analysis_result(payload: AnalysisPayload, analyzer: str = "stub-analyzer") -> AnalysisResult:
    return AnalysisResult(
        type=payload.kind,
        data=payload,
        metadata=AnalysisMetadata(analyzer=analyzer, version="1.0.0", timestamp=utcnow(), duration=0.01),
    )


class StubAnalyzer(AnalyzerPlugin):
    """
    Analyzer returning a fixed payload

    Queued errors are raised by the first calls in order; a failure, when
    set, is raised by every call after the queue is drained.
    """

    def __init__(
        self,
        payload: Optional[AnalysisPayload] = None,
        type: AnalysisType = AnalysisType.REPOSITORY,
        name: str = "stub-analyzer",
        errors: Iterable[Exception] = (),
        failure: Optional[Exception] = None,
        valid: bool = True,
        handles: bool = True,
        delay: float = 0.0,
    ):
        self.type = type
        self.name = name
        self.payload = payload if payload is not None else repository_analysis()
        self.errors = list(errors)
        self.failure = failure
        self.valid = valid
        self.handles = handles
        self.delay = delay
        self.calls = 0

    async def analyze(self, input: AssessmentInput) -> AnalysisResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.errors:
            raise self.errors.pop(0)
        if self.failure is not None:
            raise self.failure
        return AnalysisResult(
            type=self.type,
            data=self.payload,
            metadata=AnalysisMetadata(analyzer=self.name, version=self.version, timestamp=utcnow(), duration=0.01),
        )

    def validate(self, result: AnalysisResult) -> ValidationResult:
        return ValidationResult.from_checks([] if self.valid else ["payload rejected"], [])

    def can_handle(self, input: AssessmentInput) -> bool:
        return self.handles


class StubAssessor(AIAssessorPlugin):
    """AI assessor returning a fixed assessment, with the same failure knobs as StubAnalyzer"""

    def __init__(
        self,
        assessment: Optional[AIAssessment] = None,
        type: AnalysisType = AnalysisType.REPOSITORY,
        name: str = "stub-assessor",
        errors: Iterable[Exception] = (),
        failure: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.type = type
        self.name = name
        self.assessment = assessment if assessment is not None else ai_assessment(detailed_analysis())
        self.errors = list(errors)
        self.failure = failure
        self.delay = delay
        self.calls = 0

    async def assess(self, analysis: AnalysisResult) -> AIAssessment:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.errors:
            raise self.errors.pop(0)
        if self.failure is not None:
            raise self.failure
        return self.assessment

    def generate_insights(self, assessment: AIAssessment) -> Insights:
        return Insights(key_findings=(assessment.reason,), recommendations=(), confidence=0.5, risk_level="low")
