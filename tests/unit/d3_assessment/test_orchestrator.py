"""
Tests for the assessment orchestrator: step order, secondary analyses and
weight-normalised readiness
"""
import pytest

from core.exceptions import AssessmentFailedError, DeadlineExceededError, NetworkError
from core.retry import Deadline
from d1_plugins.types import AIAssessment, AnalysisData, AnalysisType
from d3_assessment.orchestrator import (
    AssessmentOrchestrator,
    OrchestratorConfig,
    SecondaryResults,
    ai_average,
    weighted_readiness,
)
from tests.helpers import (
    StubAnalyzer,
    StubAssessor,
    ai_assessment,
    business_type_analysis,
    detailed_analysis,
    file_size_analysis,
    repository_analysis,
    sub_analysis,
    website_analysis,
)

pytestmark = [pytest.mark.unit]


def _register_website(registry, business_type=None, business_failure=None, assessment=None):
    registry.register_analyzer(StubAnalyzer(website_analysis(), type=AnalysisType.WEBSITE, name="website"))
    registry.register_ai_assessor(StubAssessor(assessment, type=AnalysisType.WEBSITE))
    if business_type is not None or business_failure is not None:
        registry.register_analyzer(
            StubAnalyzer(
                business_type if business_type is not None else business_type_analysis(),
                type=AnalysisType.BUSINESS_TYPE,
                name="business-type",
                failure=business_failure,
            )
        )


class TestAIAverage:
    def test_mean_of_ai_category_scores(self):
        detail = detailed_analysis(value=20, instruction_clarity=sub_analysis("instruction_clarity", 8))

        assert ai_average(ai_assessment(detail)) == pytest.approx((5 * 100 + 40) / 6)

    def test_flag_share_without_detail(self):
        assessment = AIAssessment(
            enabled=True,
            instruction_clarity=True,
            workflow_automation=False,
            context_efficiency=True,
            risk_compliance=False,
            overall_success=False,
        )

        assert ai_average(assessment) == 50


class TestWeightedReadiness:
    def test_all_sources(self):
        assessment = ai_assessment(detailed_analysis(value=10))

        overall = weighted_readiness(assessment, business_type_analysis(overall_score=60), file_size_analysis(90))

        assert overall == pytest.approx(50 * 0.7 + 60 * 0.2 + 90 * 0.1)

    def test_missing_secondary_is_renormalised(self):
        assessment = ai_assessment(detailed_analysis(value=16))

        assert weighted_readiness(assessment) == pytest.approx(80)

    def test_ai_and_file_size(self):
        assessment = ai_assessment(detailed_analysis(value=20))

        overall = weighted_readiness(assessment, file_size=file_size_analysis(20))

        assert overall == pytest.approx((100 * 0.7 + 20 * 0.1) / 0.8)

    def test_no_sources(self):
        assert weighted_readiness(None) == 0


class TestSecondaryResults:
    def test_successful_analysis_replaces_embedded_copy(self):
        base = AnalysisData(repository=repository_analysis(), file_size=file_size_analysis(overall=10))
        fresh = file_size_analysis(overall=70)

        data = SecondaryResults(file_size=fresh).merge_into(base)

        assert data.file_size is fresh
        assert data.repository is base.repository

    def test_missing_analysis_keeps_embedded_copy(self):
        base = AnalysisData(repository=repository_analysis(), file_size=file_size_analysis(overall=10))

        assert SecondaryResults().merge_into(base).file_size is base.file_size

    def test_failed_analysis_is_dropped(self):
        base = AnalysisData(repository=repository_analysis(), file_size=file_size_analysis(overall=10))

        data = SecondaryResults(failed=(AnalysisType.FILE_SIZE,)).merge_into(base)

        assert data.file_size is None


class TestRun:
    async def test_repository_pipeline(self, registry, repo_input):
        registry.register_analyzer(StubAnalyzer(repository_analysis()))
        registry.register_ai_assessor(StubAssessor(ai_assessment(detailed_analysis(value=10))))
        orchestrator = AssessmentOrchestrator(registry, OrchestratorConfig(version="9.9.9"))

        result = await orchestrator.run(repo_input)

        assert result.type == AnalysisType.REPOSITORY
        assert result.url == repo_input.url
        assert result.scores.overall.value == pytest.approx(50)
        assert result.scores.categories.documentation.value == pytest.approx(85)
        assert result.analysis.repository is not None
        assert result.ai_assessment is not None
        assert result.metadata.version == "9.9.9"
        assert result.metadata.fallback_used is False
        assert result.metadata.ai_analysis_time is not None

    async def test_uses_embedded_file_size_without_analyzer(self, registry, orchestrator, repo_input):
        embedded = file_size_analysis(overall=40, recommendations=["Split the vendored bundle"])
        registry.register_analyzer(StubAnalyzer(repository_analysis(file_size_analysis=embedded)))
        registry.register_ai_assessor(StubAssessor(ai_assessment(detailed_analysis(value=20))))

        result = await orchestrator.run(repo_input)

        assert result.analysis.file_size is embedded
        assert result.scores.overall.value == pytest.approx((100 * 0.7 + 40 * 0.1) / 0.8)
        assert "Split the vendored bundle" in [f.description for f in result.findings]

    async def test_file_size_analyzer_is_preferred(self, registry, orchestrator, repo_input):
        registry.register_analyzer(StubAnalyzer(repository_analysis(file_size_analysis=file_size_analysis(10))))
        registry.register_analyzer(
            StubAnalyzer(file_size_analysis(overall=70), type=AnalysisType.FILE_SIZE, name="file-size")
        )
        registry.register_ai_assessor(StubAssessor())

        result = await orchestrator.run(repo_input)

        assert result.analysis.file_size.agent_compatibility.overall == 70

    async def test_website_with_business_type(self, registry, orchestrator, site_input):
        _register_website(registry, business_type=business_type_analysis(overall_score=60))

        result = await orchestrator.run(site_input)

        assert result.analysis.business_type is not None
        assert result.scores.overall.value == pytest.approx((100 * 0.7 + 60 * 0.2) / 0.9)
        assert result.scores.confidence.business_type_analysis == pytest.approx(0.8)
        assert "No online reservation flow" in [f.description for f in result.findings]
        assert result.metadata.warnings == ()

    async def test_business_type_failure_is_omitted(self, registry, orchestrator, site_input):
        _register_website(registry, business_failure=NetworkError("classifier", "unavailable"))

        result = await orchestrator.run(site_input)

        assert result.analysis.business_type is None
        assert result.scores.overall.value == pytest.approx(100)
        assert [w.code for w in result.metadata.warnings] == ["BUSINESS_TYPE_ANALYSIS_FAILED"]
        assert result.metadata.errors == ()

    async def test_business_type_disabled(self, registry, site_input):
        _register_website(registry, business_type=business_type_analysis())
        orchestrator = AssessmentOrchestrator(registry, OrchestratorConfig(enable_business_type_analysis=False))

        result = await orchestrator.run(site_input)

        assert result.analysis.business_type is None

    async def test_ai_failure_propagates(self, registry, orchestrator, repo_input):
        registry.register_analyzer(StubAnalyzer())
        registry.register_ai_assessor(StubAssessor(failure=RuntimeError("model down")))

        with pytest.raises(AssessmentFailedError):
            await orchestrator.run(repo_input)

    async def test_deadline_in_secondary_propagates(self, registry, orchestrator, site_input):
        _register_website(registry)
        registry.register_analyzer(
            StubAnalyzer(business_type_analysis(), type=AnalysisType.BUSINESS_TYPE, name="slow", delay=1)
        )

        with pytest.raises(DeadlineExceededError):
            await orchestrator.run(site_input, deadline=Deadline(0.1))

    async def test_reuses_supplied_analysis(self, registry, orchestrator, repo_input):
        analyzer = StubAnalyzer()
        registry.register_analyzer(analyzer)
        registry.register_ai_assessor(StubAssessor())
        analysis = await registry.execute_analysis(repo_input)

        await orchestrator.run(repo_input, analysis=analysis)

        assert analyzer.calls == 1


class TestUnify:
    async def test_findings_order_and_limit(self, registry, orchestrator, site_input):
        detail = detailed_analysis(
            instruction_clarity=sub_analysis(
                "instruction_clarity", findings=[f"AI finding {n}" for n in range(9)] + ["Shared"]
            ),
        )
        _register_website(
            registry,
            assessment=ai_assessment(detail),
            business_type=business_type_analysis(findings=("Shared", "Business finding")),
        )

        result = await orchestrator.run(site_input)
        descriptions = [f.description for f in result.findings]

        assert len(descriptions) == 10
        assert descriptions[0] == "AI finding 0"
        assert descriptions.count("Shared") == 1
        assert "Business finding" not in descriptions

    async def test_verdict_reason_when_no_detail(self, registry, orchestrator, repo_input):
        registry.register_analyzer(StubAnalyzer())
        registry.register_ai_assessor(StubAssessor(ai_assessment(None, reason="Ready for agents")))

        result = await orchestrator.run(repo_input)

        assert result.findings[0].id == "ai-verdict"
        assert result.scores.overall.value == pytest.approx(100)
